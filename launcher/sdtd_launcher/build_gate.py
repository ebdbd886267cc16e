from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional
from .errors import KeyValuesError
from .keyvalues import get_path, loads
from .logging_setup import get_logger
from .settings import Settings
from .steamcmd import SteamCMD

log = get_logger("sdtd.launcher.gate")

class UpdateDecision(str, Enum):
    SKIP = "skip"
    UPDATE = "update"

@dataclass(frozen=True)
class GateResult:
    installed: Optional[str]
    latest: Optional[str]
    decision: UpdateDecision

    @property
    def needs_update(self) -> bool:
        return self.decision is UpdateDecision.UPDATE

def read_installed_build(manifest: Path) -> Optional[str]:
    if not manifest.is_file():
        return None
    try:
        data = loads(manifest.read_text(encoding="utf-8", errors="replace"))
    except (OSError, KeyValuesError) as e:
        log.warning("Could not read app manifest %s: %s", manifest, e)
        return None
    build = get_path(data, "AppState", "buildid")
    return build if isinstance(build, str) and build else None

def decide(installed: Optional[str], latest: Optional[str]) -> UpdateDecision:
    # unknown on either side means "assume outdated"
    if installed and latest and installed == latest:
        return UpdateDecision.SKIP
    return UpdateDecision.UPDATE

class BuildGate:
    def __init__(self, settings: Settings, steamcmd: SteamCMD):
        self.settings = settings
        self.steamcmd = steamcmd

    def check(self) -> GateResult:
        installed = read_installed_build(self.settings.manifest_file)
        log.info("Checking latest build ID via SteamCMD...")
        latest = self.steamcmd.latest_build(self.settings.app_id, self.settings.branch)
        log.info("Installed build ID: %s", installed or "<none>")
        log.info("Latest build ID: %s", latest or "<unknown>")
        result = GateResult(installed=installed, latest=latest, decision=decide(installed, latest))
        if result.needs_update:
            log.info("Server update required")
        else:
            log.info("7 Days to Die server already up to date; skipping app_update")
        return result
