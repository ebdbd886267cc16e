"""
Configuration resolver: built-in defaults + optional deployment override.
"""

from .defaults import DEFAULTS, OPTIONAL_KEYS
from .merger import resolve
from .loader import (LAUNCHER_KEYS, apply_launcher_overrides, build_server_config, load_override,
                     load_runtime_config, load_server_config, split_override)
from .models import ServerConfig

__all__ = [
    "DEFAULTS",
    "OPTIONAL_KEYS",
    "LAUNCHER_KEYS",
    "resolve",
    "load_override",
    "split_override",
    "apply_launcher_overrides",
    "build_server_config",
    "load_runtime_config",
    "load_server_config",
    "ServerConfig",
]
