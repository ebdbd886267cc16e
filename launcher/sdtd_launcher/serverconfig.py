"""
serverconfig.py — applies the resolved settings to serverconfig.xml
-------------------------------------------------------------------
The game writes ``serverconfig.xml`` on its first start; we only update the
``value`` attribute of existing ``<property name="..."/>`` entries. All edits
are staged in memory and written in one go, or not at all.
"""

from __future__ import annotations
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional
from .config import ServerConfig
from .errors import SettingsSyncError
from .logging_setup import get_logger
from . import xmldoc

log = get_logger("sdtd.launcher.serverconfig")

REDACTED = "[REDACTED]"


class PropertySpec(NamedTuple):
    name: str
    key: str
    optional: bool = False
    secret: bool = False


PROPERTIES: List[PropertySpec] = [
    PropertySpec("ServerName", "SERVER_NAME"),
    PropertySpec("ServerDescription", "SERVER_DESCRIPTION"),
    PropertySpec("ServerPort", "SERVER_PORT"),
    PropertySpec("ServerVisibility", "SERVER_VISIBILITY"),
    PropertySpec("ServerPassword", "SERVER_PASSWORD", secret=True),
    PropertySpec("ServerMaxPlayerCount", "SERVER_MAX_PLAYERS"),
    PropertySpec("GameName", "GAME_NAME"),
    PropertySpec("GameDifficulty", "GAME_DIFFICULTY"),
    PropertySpec("GameWorld", "GAME_WORLD"),
    PropertySpec("WorldGenSeed", "WORLD_GEN_SEED", optional=True),
    PropertySpec("WorldGenSize", "WORLD_GEN_SIZE"),
    PropertySpec("DayNightLength", "DAY_NIGHT_LENGTH"),
    PropertySpec("LootRespawnDays", "LOOT_RESPAWN_DAYS"),
    # the game's own spelling
    PropertySpec("AirDropFequency", "AIR_DROP_FREQUENCY"),
    PropertySpec("PlayerKillingMode", "PLAYER_KILLING_MODE"),
    PropertySpec("EACEnabled", "EAC_ENABLED"),
    PropertySpec("TelnetPassword", "TELNET_PASSWORD", optional=True, secret=True),
    PropertySpec("BloodMoonFrequency", "BLOOD_MOON_FREQUENCY"),
]

# remote administration must stay reachable whatever the config says
FORCED: Dict[str, str] = {
    "TelnetEnabled": "true",
    "TelnetPort": "8081",
}

SECRET_PROPERTIES = {p.name for p in PROPERTIES if p.secret}


def desired_properties(cfg: ServerConfig) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for spec in PROPERTIES:
        value = cfg.get(spec.key)
        if spec.optional and not value:
            continue
        out[spec.name] = value
    out.update(FORCED)
    return out


def _shown(name: str, value: Optional[str]) -> str:
    if name in SECRET_PROPERTIES:
        return REDACTED
    return "" if value is None else value


@dataclass
class PropertyChange:
    name: str
    old: Optional[str]
    new: str

    def to_dict(self) -> dict:
        return {"name": self.name, "old": _shown(self.name, self.old), "new": _shown(self.name, self.new)}


@dataclass
class SettingsReport:
    path: Path
    skipped: bool = False
    written: bool = False
    changes: List[PropertyChange] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.changes)


class ServerConfigSync:
    def __init__(self, path: Path):
        self.path = path

    def _stage(self, root: ET.Element, desired: Dict[str, str]) -> List[PropertyChange]:
        by_name: Dict[str, List[ET.Element]] = {}
        for el in root.iter("property"):
            name = el.get("name")
            if name:
                by_name.setdefault(name, []).append(el)

        missing = [name for name in desired if name not in by_name]
        if missing:
            raise SettingsSyncError(
                f"{self.path.name}: properties not found: {', '.join(missing)} (document left unchanged)"
            )

        changes: List[PropertyChange] = []
        for name, value in desired.items():
            log.info("  %s: %s", name, _shown(name, value))
            for el in by_name[name]:
                old = el.get("value")
                if old != value:
                    el.set("value", value)
                    changes.append(PropertyChange(name=name, old=old, new=value))
        return changes

    def sync(self, cfg: ServerConfig, *, dry_run: bool = False) -> SettingsReport:
        report = SettingsReport(path=self.path)
        if not self.path.is_file():
            log.info("serverconfig.xml not found at %s - will be created by server on first run", self.path)
            log.info("Run the server once, then run the update again to apply config settings")
            report.skipped = True
            return report

        try:
            tree = xmldoc.parse(self.path)
        except (OSError, ET.ParseError) as e:
            raise SettingsSyncError(f"Cannot read {self.path}: {e}") from e

        log.info("Updating %s with resolved settings...", self.path)
        report.changes = self._stage(tree.getroot(), desired_properties(cfg))
        if not report.changes:
            log.info("serverconfig.xml already up to date")
            return report
        if dry_run:
            return report

        try:
            xmldoc.write_atomic(tree, self.path)
        except OSError as e:
            raise SettingsSyncError(f"Cannot write {self.path}: {e}") from e
        report.written = True
        log.info("Configuration applied to serverconfig.xml (%d value(s) changed)", len(report.changes))
        return report
