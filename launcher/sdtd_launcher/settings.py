from __future__ import annotations
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

STEAMCMD_TARBALL_URL = "https://steamcdn-a.akamaihd.net/client/installer/steamcmd_linux.tar.gz"

class Settings(BaseSettings):
    server_dir: Path = Field(default=Path("/opt/7d2d-server"), alias="SERVER_DIR")
    app_id: int = Field(default=294420, alias="SERVER_APP_ID")
    branch: str = Field(default="public", alias="SERVER_BRANCH")

    steamcmd_root: Path = Field(default=Path("/opt/steamcmd"), alias="STEAMCMD_ROOT")
    steamcmd_link: Path = Field(default=Path("/usr/games/steamcmd"), alias="STEAMCMD_LINK")
    steamcmd_url: str = Field(default=STEAMCMD_TARBALL_URL, alias="STEAMCMD_URL")

    log_file: Path = Field(default=Path("/var/log/7d2d-update.log"), alias="LOG_FILE")
    admin_file: Path = Field(default=Path("/root/.local/share/7DaysToDie/Saves/serveradmin.xml"), alias="ADMIN_FILE")
    config_override: Path = Field(default=Path("/root/7d2d-config.local.json"), alias="CONFIG_OVERRIDE")

    log_retention_days: int = Field(default=30, alias="LOG_RETENTION_DAYS")
    skip_system_update: bool = Field(default=False, alias="SKIP_SYSTEM_UPDATE")
    lock_timeout: float = Field(default=600.0, alias="LOCK_TIMEOUT")

    service_name: str = Field(default="7d2d", alias="SERVICE_NAME")
    service_file: Path = Field(default=Path("/etc/systemd/system/7d2d.service"), alias="SERVICE_FILE")
    bashrc_file: Path = Field(default=Path("/root/.bashrc"), alias="BASHRC_FILE")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_json: bool = Field(default=False, alias="LOG_JSON")

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    @property
    def manifest_file(self) -> Path:
        return self.server_dir / "steamapps" / f"appmanifest_{self.app_id}.acf"

    @property
    def serverconfig_file(self) -> Path:
        return self.server_dir / "serverconfig.xml"

    @property
    def steamcmd_sh(self) -> Path:
        return self.steamcmd_root / "steamcmd.sh"
