from __future__ import annotations


class LauncherError(RuntimeError):
    """Base class for all launcher failures."""


class ConfigError(LauncherError):
    pass


class KeyValuesError(LauncherError):
    pass


class SteamCMDNotFoundError(LauncherError):
    pass


class ServerUpdateError(LauncherError):
    pass


class SettingsSyncError(LauncherError):
    pass


class AdminSyncError(LauncherError):
    pass


class LockTimeoutError(LauncherError):
    pass


class ServiceError(LauncherError):
    pass
