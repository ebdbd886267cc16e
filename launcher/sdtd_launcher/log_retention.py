from __future__ import annotations
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional
from .logging_setup import get_logger

log = get_logger("sdtd.launcher.retention")

SERVER_LOG_PATTERN = "output_log__*.txt"
DAY = 86400

@dataclass
class PurgeReport:
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.deleted)

def expired_logs(log_dir: Path, days: int = 30, *, pattern: str = SERVER_LOG_PATTERN,
                 now: Optional[float] = None) -> List[Path]:
    """Files directly in log_dir matching pattern whose age is strictly above `days`."""
    if not log_dir.is_dir():
        return []
    now = time.time() if now is None else now
    cutoff = days * DAY
    out = []
    for p in sorted(log_dir.glob(pattern)):
        if not p.is_file():
            continue
        if now - p.stat().st_mtime > cutoff:
            out.append(p)
    return out

def purge_old_logs(log_dir: Path, days: int = 30, *, pattern: str = SERVER_LOG_PATTERN,
                   now: Optional[float] = None, dry_run: bool = False) -> PurgeReport:
    report = PurgeReport()
    for p in expired_logs(log_dir, days, pattern=pattern, now=now):
        if dry_run:
            report.deleted.append(p.name)
            continue
        try:
            p.unlink()
        except OSError as e:
            log.warning("Could not delete %s: %s", p.name, e)
            report.failed.append(p.name)
            continue
        log.info("Deleted: %s", p.name)
        report.deleted.append(p.name)

    if report.count:
        log.info("%s %d old log file(s)", "Would purge" if dry_run else "Purged", report.count)
    else:
        log.info("No logs older than %d days found", days)
    return report
