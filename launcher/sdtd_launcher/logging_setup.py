from __future__ import annotations
import json
import logging
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from rich.console import Console
from rich.logging import RichHandler
from .settings import Settings

LOGGER_ROOT = "sdtd.launcher"

class _JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

def _plain_formatter() -> logging.Formatter:
    return logging.Formatter(
        fmt="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

def _console_handler(settings: Settings) -> logging.Handler:
    if settings.log_json:
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(_JsonFormatter())
        return ch
    if sys.stdout.isatty():
        # warnings/errors get colored level markers in interactive shells
        ch = RichHandler(console=Console(), show_path=False, log_time_format="[%Y-%m-%d %H:%M:%S]")
        ch.setFormatter(logging.Formatter("%(message)s"))
        return ch
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(_plain_formatter())
    return ch

def setup_logging(settings: Settings) -> None:
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(settings.log_level.upper())
    root.addHandler(_console_handler(settings))

    fmt = _JsonFormatter() if settings.log_json else _plain_formatter()
    try:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(settings.log_file, maxBytes=5_000_000, backupCount=3, encoding="utf-8")
    except OSError as e:
        logging.getLogger(LOGGER_ROOT).warning(
            "Could not open log file %s (%s), continuing with console logging only.", settings.log_file, e
        )
        return
    fh.setFormatter(fmt)
    fh.setLevel(settings.log_level.upper())
    root.addHandler(fh)

def clear_log_file(path: Path) -> None:
    """Truncate the update log, leaving a marker line behind."""
    path.parent.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    path.write_text(f"Log file cleared at {stamp}\n", encoding="utf-8")

def log_banner(log: logging.Logger, title: str) -> None:
    log.info("#" * 78)
    log.info("###%s###", title.center(72))
    log.info("#" * 78)

def log_section(log: logging.Logger, title: str) -> None:
    log.info("=" * 44)
    log.info(title)
    log.info("=" * 44)

def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
