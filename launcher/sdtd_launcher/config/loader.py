from __future__ import annotations
import json
import re
import shlex
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple

from pydantic import ValidationError

from ..errors import ConfigError
from ..logging_setup import get_logger
from ..settings import Settings
from .defaults import DEFAULTS, OPTIONAL_KEYS
from .merger import resolve
from .models import ServerConfig

log = get_logger("sdtd.launcher.config")

_ASSIGNMENT = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)=(.*)$", re.DOTALL)

# launcher settings an override file may also carry (SERVER_DIR, LOG_FILE, ...)
LAUNCHER_KEYS: FrozenSet[str] = frozenset(
    f.alias for f in Settings.model_fields.values() if f.alias
) - {"CONFIG_OVERRIDE"}


def _to_str(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def _load_json(path: Path) -> Dict[str, str]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ConfigError(f"Config root must be an object: {path}")
    out: Dict[str, str] = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise ConfigError(f"Config value for {key} must be a scalar: {path}")
        out[str(key)] = _to_str(value)
    return out


def _load_shell(path: Path) -> Dict[str, str]:
    """Read KEY="value" lines of a shell override file without executing it."""
    out: Dict[str, str] = {}
    for lineno, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        try:
            tokens = shlex.split(line, comments=True)
        except ValueError as e:
            raise ConfigError(f"{path}:{lineno}: {e}") from e
        if tokens and tokens[0] == "export":
            tokens = tokens[1:]
        for tok in tokens:
            m = _ASSIGNMENT.match(tok)
            if m:
                out[m.group(1)] = m.group(2)
    return out


def load_override(path: Path) -> Optional[Dict[str, str]]:
    if not path.is_file():
        log.debug("No override config at %s, using built-in defaults", path)
        return None
    log.info("Loading config override: %s", path)
    try:
        if path.suffix == ".json":
            return _load_json(path)
        return _load_shell(path)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to read config override {path}: {e}") from e


def split_override(override: Mapping[str, str]) -> Tuple[Dict[str, str], Dict[str, str]]:
    """Separate game settings from launcher settings; unknown keys are dropped with a warning."""
    game: Dict[str, str] = {}
    launcher: Dict[str, str] = {}
    for key, value in override.items():
        if key in DEFAULTS:
            game[key] = value
        elif key in LAUNCHER_KEYS:
            launcher[key] = value
        else:
            log.warning("Ignoring unknown setting %s in config override", key)
    return game, launcher


def apply_launcher_overrides(settings: Settings, values: Mapping[str, str]) -> Settings:
    if not values:
        return settings
    data = settings.model_dump(by_alias=True)
    data.update(values)
    try:
        updated = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid launcher setting in config override: {e}") from e
    for key in sorted(values):
        log.info("Launcher setting from override: %s=%s", key, values[key])
    return updated


def build_server_config(game: Optional[Mapping[str, str]]) -> ServerConfig:
    values = resolve(DEFAULTS, game)
    for key in sorted(DEFAULTS):
        if not values.get(key) and key not in OPTIONAL_KEYS:
            log.warning("Setting %s resolved to an empty value", key)
    return ServerConfig(values=values)


def load_runtime_config(settings: Settings) -> Tuple[Settings, ServerConfig]:
    """
    Read the override file once and return the effective launcher settings
    together with the resolved settings table.
    """
    game, launcher = split_override(load_override(settings.config_override) or {})
    return apply_launcher_overrides(settings, launcher), build_server_config(game)


def load_server_config(settings: Settings) -> ServerConfig:
    return load_runtime_config(settings)[1]
