from __future__ import annotations
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional
from .logging_setup import get_logger

log = get_logger("sdtd.launcher.proc")

NOT_FOUND_RC = 127

# steamcmd chatter that only clutters the update log
NOISE_MARKERS = (
    "Redirecting stderr to",
    "ILocalize::AddFile()",
    "WARNING: setlocale(",
    "Logging directory:",
    "UpdateUI: ",
    "Restarting steamcmd by",
    "Steam Console Client ",
    "type 'quit'",
    "Loading Steam API",
    "Waiting for client config",
    "aiting for user info",
)

PROGRESS_MARKERS = ("Update state", "Downloading update", "Extracting", "Success", "ERROR", "Error!")

@dataclass
class CommandResult:
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

def _as_text(data) -> str:
    # TimeoutExpired carries raw bytes even when the call decodes its output
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data or ""

def _merged_env(env: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
    if not env:
        return None
    merged = dict(os.environ)
    merged.update(env)
    return merged

class CommandRunner:
    """Blocking execution of external commands (apt, steamcmd, systemctl, ...)."""

    def run(self, cmd: List[str], *, cwd: Optional[Path] = None, env: Optional[Dict[str, str]] = None,
            input: Optional[str] = None, timeout: Optional[float] = None) -> CommandResult:
        log.debug("Running: %s", " ".join(cmd))
        try:
            proc = subprocess.run(cmd, cwd=str(cwd) if cwd else None, env=_merged_env(env), input=input,
                                  capture_output=True, encoding="utf-8", errors="replace", timeout=timeout)
        except FileNotFoundError:
            log.debug("Executable not found: %s", cmd[0])
            return CommandResult(returncode=NOT_FOUND_RC, stderr=f"{cmd[0]}: not found")
        except subprocess.TimeoutExpired as e:
            log.warning("Command timed out after %ss: %s", timeout, " ".join(cmd))
            return CommandResult(returncode=-1, stdout=_as_text(e.stdout), stderr=_as_text(e.stderr))
        if proc.stdout:
            log.debug("stdout: %s", proc.stdout[-4000:])
        if proc.stderr:
            log.debug("stderr: %s", proc.stderr[-4000:])
        return CommandResult(returncode=proc.returncode, stdout=proc.stdout or "", stderr=proc.stderr or "")

    def stream(self, cmd: List[str], *, cwd: Optional[Path] = None, env: Optional[Dict[str, str]] = None,
               noise: Iterable[str] = NOISE_MARKERS) -> int:
        """Run a long command, forwarding its output line by line into the log."""
        log.info("Running: %s", " ".join(cmd))
        noise = tuple(noise)
        try:
            with subprocess.Popen(cmd, cwd=str(cwd) if cwd else None, env=_merged_env(env),
                                  stdout=subprocess.PIPE, stderr=subprocess.STDOUT, encoding="utf-8", errors="replace",
                                  bufsize=1) as proc:
                for line in proc.stdout:
                    output = line.rstrip("\n")
                    if not output.strip() or any(m in output for m in noise):
                        continue
                    if any(m in output for m in PROGRESS_MARKERS):
                        log.info(output)
                    else:
                        log.debug(output)
                return proc.wait()
        except FileNotFoundError:
            log.error("Executable not found: %s", cmd[0])
            return NOT_FOUND_RC

    def call(self, cmd: List[str]) -> int:
        """Run attached to the caller's terminal (systemctl status, journalctl -f)."""
        log.debug("Running: %s", " ".join(cmd))
        try:
            return subprocess.call(cmd)
        except FileNotFoundError:
            log.error("Executable not found: %s", cmd[0])
            return NOT_FOUND_RC

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)
