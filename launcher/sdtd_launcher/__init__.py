"""
sdtd_launcher package
---------------------
Install/update and lifecycle tooling for a 7 Days to Die dedicated server on
Linux hosts. Contains modules for configuration, SteamCMD integration, server
config and admin list synchronisation, log retention, logging and systemd
service management.
"""

__version__ = "0.3.0"
