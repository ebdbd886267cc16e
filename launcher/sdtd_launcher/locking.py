from __future__ import annotations
import fcntl
import os
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator
from .errors import LockTimeoutError
from .logging_setup import get_logger

log = get_logger("sdtd.launcher.lock")

LOCK_NAME = ".sdtd-launcher.lock"

@contextmanager
def install_lock(directory: Path, timeout: float = 600.0, poll: float = 0.5) -> Iterator[Path]:
    """
    Exclusive lock on the install directory for one workflow run.
    Waits up to `timeout` seconds for a concurrent run to finish.
    """
    directory.mkdir(parents=True, exist_ok=True)
    lock_path = directory / LOCK_NAME
    lock_file = open(lock_path, "a+b")
    start = time.monotonic()
    try:
        while True:
            try:
                fcntl.flock(lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() - start > timeout:
                    raise LockTimeoutError(f"Timeout acquiring lock {lock_path}; another update is running")
                time.sleep(poll)
        lock_file.seek(0)
        lock_file.truncate()
        lock_file.write(str(os.getpid()).encode("ascii"))
        lock_file.flush()
        log.debug("Acquired lock: %s", lock_path)
        try:
            yield lock_path
        finally:
            fcntl.flock(lock_file.fileno(), fcntl.LOCK_UN)
            log.debug("Released lock: %s", lock_path)
    finally:
        lock_file.close()
