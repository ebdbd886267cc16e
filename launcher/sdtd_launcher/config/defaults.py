"""
Built-in base layer of the settings table.

Keys keep the variable names of the deployment override files so an existing
``7d2d-config.local.sh`` can be used as-is.
"""

from typing import Dict, FrozenSet

DEFAULTS: Dict[str, str] = {
    # server
    "SERVER_NAME": "My 7D2D Server",
    "SERVER_DESCRIPTION": "A 7 Days to Die Survival Server",
    "SERVER_REGION": "Europe",
    "SERVER_PORT": "26900",
    "SERVER_VISIBILITY": "0",
    "SERVER_PASSWORD": "changeme",
    "SERVER_MAX_PLAYERS": "8",
    "ALLOW_CROSSPLAY": "true",
    "DISABLED_NETWORK_PROTOCOLS": "SteamNetworking",
    # game
    "GAME_NAME": "MyWorld",
    "GAME_DIFFICULTY": "2",
    "GAME_WORLD": "Navezgane",
    "WORLD_GEN_SEED": "",
    "WORLD_GEN_SIZE": "4096",
    "DAY_NIGHT_LENGTH": "60",
    "LOOT_RESPAWN_DAYS": "7",
    "AIR_DROP_FREQUENCY": "72",
    "PLAYER_KILLING_MODE": "3",
    "EAC_ENABLED": "true",
    "TELNET_PASSWORD": "",
    "BLOOD_MOON_FREQUENCY": "7",
    # admins (SteamID64, space separated)
    "ADMIN_STEAM_IDS": "",
}

# allowed to resolve to an empty string
OPTIONAL_KEYS: FrozenSet[str] = frozenset({
    "WORLD_GEN_SEED",
    "TELNET_PASSWORD",
    "SERVER_PASSWORD",
    "ADMIN_STEAM_IDS",
    "DISABLED_NETWORK_PROTOCOLS",
})

SECRET_KEYS: FrozenSet[str] = frozenset({"SERVER_PASSWORD", "TELNET_PASSWORD"})
