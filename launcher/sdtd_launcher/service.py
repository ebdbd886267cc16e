"""
service.py — systemd binding for the dedicated server
-----------------------------------------------------
Writes the unit file (pre-start hook runs ``sdtd-launcher update``), enables
it, installs operator shell aliases and passes start/stop/status/journal
commands through to systemctl / journalctl.
"""

from __future__ import annotations
import os
import shutil
import sys
from pathlib import Path
from string import Template
from typing import Dict, List, Optional
from .errors import ServiceError
from .logging_setup import get_logger
from .process_runner import CommandResult, CommandRunner
from .settings import Settings

log = get_logger("sdtd.launcher.service")

UNIT_TEMPLATE = Template("""\
[Unit]
Description=7 Days to Die Dedicated Server
After=network.target
Wants=network-online.target

[Service]
Type=simple
User=root
WorkingDirectory=$server_dir
EnvironmentFile=-/etc/default/$service_name
Restart=on-failure
TimeoutStartSec=10min

# system packages, SteamCMD, server files and server config are updated before every start
ExecStartPre=$pre_start

# -logfile /dev/stdout hands the server output to journald
ExecStart=$server_dir/startserver.sh -configfile=serverconfig.xml -logfile /dev/stdout

TimeoutStopSec=30
KillMode=mixed

[Install]
WantedBy=multi-user.target
""")

ALIAS_BEGIN = "# >>> 7d2d service aliases >>>"
ALIAS_END = "# <<< 7d2d service aliases <<<"
LEGACY_ALIAS_HEADER = "# 7 Days to Die service management aliases"

ALIAS_TEMPLATE = Template("""\
$begin
alias ${prefix}_start='systemctl start $unit'
alias ${prefix}_restart='systemctl restart $unit'
alias ${prefix}_stop='systemctl stop $unit'
alias ${prefix}_status='systemctl status $unit'
alias ${prefix}_log='journalctl -u $unit -f'
alias ${prefix}_serverlog='$launcher serverlog --follow'
$end
""")


def launcher_executable() -> str:
    exe = shutil.which("sdtd-launcher")
    if exe:
        return exe
    return f"{sys.executable} -m sdtd_launcher"


def render_unit(settings: Settings, launcher: Optional[str] = None) -> str:
    return UNIT_TEMPLATE.substitute(
        server_dir=settings.server_dir,
        service_name=settings.service_name,
        pre_start=f"{launcher or launcher_executable()} update",
    )


def render_aliases(settings: Settings, launcher: Optional[str] = None) -> str:
    return ALIAS_TEMPLATE.substitute(
        begin=ALIAS_BEGIN,
        end=ALIAS_END,
        prefix=settings.service_name,
        unit=f"{settings.service_name}.service",
        launcher=launcher or launcher_executable(),
    )


def strip_alias_block(text: str) -> str:
    """Remove a previously installed alias block, including the old shell-script style one."""
    out: List[str] = []
    skip_until: Optional[str] = None
    for line in text.splitlines(keepends=True):
        stripped = line.strip()
        if skip_until is not None:
            if stripped == skip_until:
                skip_until = None
            continue
        if stripped == ALIAS_BEGIN:
            skip_until = ALIAS_END
            continue
        if stripped == LEGACY_ALIAS_HEADER:
            skip_until = "}"
            continue
        out.append(line)
    return "".join(out)


class ServiceManager:
    def __init__(self, settings: Settings, runner: CommandRunner):
        self.settings = settings
        self.runner = runner

    @property
    def unit(self) -> str:
        return f"{self.settings.service_name}.service"

    def _systemctl(self, *args: str) -> CommandResult:
        res = self.runner.run(["systemctl", *args])
        if not res.ok:
            log.error("systemctl %s failed (rc=%s): %s", " ".join(args), res.returncode, res.stderr.strip())
        return res

    def install(self, launcher: Optional[str] = None) -> Dict[str, object]:
        if os.geteuid() != 0:
            raise ServiceError("Installing the service requires root (use sudo)")
        s = self.settings

        log.info("Creating systemd service file: %s", s.service_file)
        s.service_file.parent.mkdir(parents=True, exist_ok=True)
        s.service_file.write_text(render_unit(s, launcher), encoding="utf-8")

        start_script = s.server_dir / "startserver.sh"
        if start_script.is_file():
            start_script.chmod(start_script.stat().st_mode | 0o111)
            log.info("Server script permissions verified")
        else:
            log.warning("Note: server will be installed on first update run")

        if not self._systemctl("daemon-reload").ok:
            raise ServiceError("systemctl daemon-reload failed")
        if not self._systemctl("enable", self.unit).ok:
            raise ServiceError(f"systemctl enable {self.unit} failed")
        log.info("Service %s enabled", self.unit)

        self.install_aliases(launcher)

        restarted = False
        if self.is_active():
            log.info("Service is running. Restarting to apply new configuration...")
            restarted = self.restart().ok
        return {"unit_file": str(s.service_file), "restarted": restarted}

    def install_aliases(self, launcher: Optional[str] = None) -> Path:
        path = self.settings.bashrc_file
        current = path.read_text(encoding="utf-8") if path.is_file() else ""
        cleaned = strip_alias_block(current).rstrip("\n")
        if cleaned:
            cleaned += "\n\n"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(cleaned + render_aliases(self.settings, launcher), encoding="utf-8")
        log.info("Aliases added to %s", path)
        return path

    def start(self) -> CommandResult:
        return self._systemctl("start", self.unit)

    def stop(self) -> CommandResult:
        return self._systemctl("stop", self.unit)

    def restart(self) -> CommandResult:
        return self._systemctl("restart", self.unit)

    def is_active(self) -> bool:
        return self.runner.run(["systemctl", "is-active", "--quiet", self.unit]).ok

    def status(self) -> Dict[str, str]:
        res = self.runner.run(["systemctl", "show", self.unit,
                               "--property=ActiveState,SubState,MainPID,ExecMainStartTimestamp"])
        out: Dict[str, str] = {}
        for line in res.stdout.splitlines():
            key, sep, value = line.partition("=")
            if sep:
                out[key] = value
        return out

    def show_status(self) -> int:
        return self.runner.call(["systemctl", "status", "--no-pager", self.unit])

    def journal(self, follow: bool = False, lines: int = 200) -> int:
        cmd = ["journalctl", "-u", self.unit, "-n", str(lines)]
        if follow:
            cmd.append("-f")
        return self.runner.call(cmd)
