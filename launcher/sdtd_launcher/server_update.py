from __future__ import annotations
from typing import List, Optional
from .build_gate import read_installed_build
from .errors import ServerUpdateError
from .logging_setup import get_logger
from .settings import Settings
from .steamcmd import SteamCMD

log = get_logger("sdtd.launcher.update")

ENTRY_POINTS = ("startserver.sh", "7DaysToDieServer.x86_64")

class ServerUpdater:
    def __init__(self, settings: Settings, steamcmd: SteamCMD):
        self.settings = settings
        self.steamcmd = steamcmd

    def update(self) -> Optional[str]:
        """Install or validate the server files; returns the installed build id."""
        s = self.settings
        log.info("Using steamcmd at: %s", self.steamcmd.bin)
        log.info("Target directory: %s", s.server_dir)
        log.info("App ID: %s", s.app_id)
        s.server_dir.mkdir(parents=True, exist_ok=True)

        rc = self.steamcmd.app_update(s.app_id, s.server_dir, branch=s.branch, validate=True)
        if rc != 0:
            raise ServerUpdateError(f"7 Days to Die server installation/update failed (steamcmd rc={rc})")
        log.info("7 Days to Die server installation/update completed successfully")

        self.make_executable()
        build = read_installed_build(s.manifest_file)
        if build:
            log.info("7 Days to Die server build ID: %s", build)
        return build

    def make_executable(self) -> List[str]:
        changed = []
        for name in ENTRY_POINTS:
            p = self.settings.server_dir / name
            if p.is_file():
                p.chmod(p.stat().st_mode | 0o111)
                log.info("Set executable permissions on %s", name)
                changed.append(name)
        return changed
