"""
Tests for the exclusive install directory lock.
"""

import fcntl

import pytest

from sdtd_launcher.errors import LockTimeoutError
from sdtd_launcher.locking import LOCK_NAME, install_lock


def test_lock_is_released(tmp_path):
    with install_lock(tmp_path / "srv") as path:
        assert path == tmp_path / "srv" / LOCK_NAME
    with install_lock(tmp_path / "srv", timeout=0.1):
        pass


def test_concurrent_run_times_out(tmp_path):
    target = tmp_path / "srv"
    with install_lock(target):
        with pytest.raises(LockTimeoutError):
            with install_lock(target, timeout=0.2, poll=0.05):
                pass


def test_lock_held_by_other_handle(tmp_path):
    target = tmp_path / "srv"
    target.mkdir()
    with open(target / LOCK_NAME, "a+b") as other:
        fcntl.flock(other.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        with pytest.raises(LockTimeoutError):
            with install_lock(target, timeout=0.1, poll=0.05):
                pass
