"""
Shared fixtures: temp host layout, a fake CommandRunner and sample game files.
"""

import os
import time
from pathlib import Path
from typing import Callable, List, Optional

import pytest

from sdtd_launcher.process_runner import CommandResult
from sdtd_launcher.settings import Settings

APP_ID = 294420

APP_INFO_OUTPUT = """\
Redirecting stderr to '/root/Steam/logs/stderr.txt'
Loading Steam API...OK
Connecting anonymously to Steam Public...OK
Waiting for client config...OK
AppID : 294420, change number : 29811301/0, last change : Sun Nov  9 06:03:35 2025
"294420"
{
\t"common"
\t{
\t\t"name"\t\t"7 Days to Die Dedicated Server"
\t\t"type"\t\t"Tool"
\t}
\t"depots"
\t{
\t\t"294422"
\t\t{
\t\t\t"manifests"
\t\t\t{
\t\t\t\t"public"
\t\t\t\t{
\t\t\t\t\t"gid"\t\t"4027172715479418364"
\t\t\t\t}
\t\t\t}
\t\t}
\t\t"branches"
\t\t{
\t\t\t"public"
\t\t\t{
\t\t\t\t"buildid"\t\t"{build}"
\t\t\t\t"timeupdated"\t\t"1762674215"
\t\t\t}
\t\t\t"latest_experimental"
\t\t\t{
\t\t\t\t"buildid"\t\t"99999999"
\t\t\t\t"description"\t\t"Bleeding-edge updates"
\t\t\t}
\t\t}
\t}
}
"""

MANIFEST = """\
"AppState"
{
\t"appid"\t\t"294420"
\t"Universe"\t\t"1"
\t"name"\t\t"7 Days to Die Dedicated Server"
\t"StateFlags"\t\t"4"
\t"installdir"\t\t"7 Days to Die Dedicated Server"
\t"buildid"\t\t"{build}"
\t"InstalledDepots"
\t{
\t\t"294422"
\t\t{
\t\t\t"manifest"\t\t"4027172715479418364"
\t\t}
\t}
}
"""

SERVERCONFIG_XML = """\
<?xml version="1.0"?>
<ServerSettings>
\t<!-- GENERAL SERVER SETTINGS -->
\t<property name="ServerName" value="My Game Host" />
\t<property name="ServerDescription" value="A 7 Days to Die server" />
\t<property name="ServerWebsiteURL" value="" />
\t<property name="ServerPassword" value="" />
\t<property name="ServerPort" value="26900" />
\t<property name="ServerVisibility" value="2" />
\t<property name="ServerMaxPlayerCount" value="8" />
\t<!-- GAMEPLAY -->
\t<property name="GameWorld" value="Navezgane" />
\t<property name="WorldGenSeed" value="asdf" />
\t<property name="WorldGenSize" value="6144" />
\t<property name="GameName" value="My Game" />
\t<property name="GameDifficulty" value="1" />
\t<property name="DayNightLength" value="60" />
\t<property name="BloodMoonFrequency" value="7" />
\t<property name="LootRespawnDays" value="7" />
\t<property name="AirDropFequency" value="72" />
\t<property name="PlayerKillingMode" value="3" />
\t<property name="EACEnabled" value="true" />
\t<!-- ADMIN INTERFACES -->
\t<property name="TelnetEnabled" value="false" />
\t<property name="TelnetPort" value="8081" />
\t<property name="TelnetPassword" value="" />
</ServerSettings>
"""

SERVERADMIN_XML = """\
<?xml version="1.0" encoding="UTF-8"?>
<adminTools>
  <users>
    <!-- <user platform="Steam" userid="76561198021925107" name="Hint on who this user is" permission_level="0" /> -->
    <user platform="Steam" userid="76561198000000001" name="existing" permission_level="0" />
  </users>
  <whitelist>
  </whitelist>
  <blacklist>
  </blacklist>
</adminTools>
"""


class FakeRunner:
    """Records commands; results are scripted by substring match on the joined command."""

    def __init__(self):
        self.calls: List[List[str]] = []
        self.envs: List[Optional[dict]] = []
        self._handlers = []
        self.which_map = {}

    def on(self, match: str, returncode: int = 0, stdout: str = "",
           effect: Optional[Callable[[List[str]], None]] = None) -> "FakeRunner":
        self._handlers.append((match, returncode, stdout, effect))
        return self

    def _dispatch(self, cmd, env=None) -> CommandResult:
        cmd = [str(c) for c in cmd]
        self.calls.append(cmd)
        self.envs.append(env)
        joined = " ".join(cmd)
        for match, rc, out, effect in reversed(self._handlers):
            if match in joined:
                if effect:
                    effect(cmd)
                return CommandResult(returncode=rc, stdout=out)
        return CommandResult(returncode=0)

    def run(self, cmd, *, cwd=None, env=None, input=None, timeout=None) -> CommandResult:
        return self._dispatch(cmd, env)

    def stream(self, cmd, *, cwd=None, env=None, noise=()) -> int:
        return self._dispatch(cmd, env).returncode

    def call(self, cmd) -> int:
        return self._dispatch(cmd).returncode

    def which(self, name):
        return self.which_map.get(name)

    def commands(self) -> List[str]:
        return [" ".join(c) for c in self.calls]

    def ran(self, fragment: str) -> bool:
        return any(fragment in c for c in self.commands())


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        server_dir=tmp_path / "7d2d-server",
        steamcmd_root=tmp_path / "steamcmd",
        steamcmd_link=tmp_path / "games" / "steamcmd",
        log_file=tmp_path / "log" / "7d2d-update.log",
        admin_file=tmp_path / "saves" / "serveradmin.xml",
        config_override=tmp_path / "7d2d-config.local.json",
        service_file=tmp_path / "systemd" / "7d2d.service",
        bashrc_file=tmp_path / "bashrc",
        lock_timeout=1.0,
    )


def app_info(build: str) -> str:
    return APP_INFO_OUTPUT.replace("{build}", build)


def write_manifest(settings: Settings, build: str) -> Path:
    path = settings.manifest_file
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(MANIFEST.replace("{build}", build), encoding="utf-8")
    return path


def install_tarball_steamcmd(settings: Settings) -> Path:
    sh = settings.steamcmd_sh
    sh.parent.mkdir(parents=True, exist_ok=True)
    sh.write_text("#!/bin/sh\n", encoding="utf-8")
    sh.chmod(0o755)
    return sh


def write_serverconfig(settings: Settings, text: str = SERVERCONFIG_XML) -> Path:
    path = settings.serverconfig_file
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_serveradmin(settings: Settings, text: str = SERVERADMIN_XML) -> Path:
    path = settings.admin_file
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def touch_aged(path: Path, days: float, now: Optional[float] = None) -> Path:
    now = time.time() if now is None else now
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("log\n", encoding="utf-8")
    ts = now - days * 86400
    os.utime(path, (ts, ts))
    return path
