"""
installer.py — makes sure SteamCMD is available
-----------------------------------------------
Strategies, in order:
  1. existing install (PATH lookup, tarball root, /usr/games link)
  2. Debian/Ubuntu ``steamcmd`` package (needs the i386 architecture)
  3. Valve's tarball, extracted to the tarball root and linked into PATH
"""

from __future__ import annotations
import os
import tarfile
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional
from .apt import Apt
from .errors import SteamCMDNotFoundError
from .logging_setup import get_logger
from .process_runner import CommandRunner
from .settings import Settings
from .steamcmd import SteamCMD

log = get_logger("sdtd.launcher.installer")

TARBALL_PREREQUISITES = ["ca-certificates", "tar", "lib32gcc-s1", "lib32stdc++6"]


def download_file(url: str, dest: Path, timeout: int = 60) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    with urllib.request.urlopen(url, timeout=timeout) as response, dest.open("wb") as out_file:
        while True:
            chunk = response.read(65536)
            if not chunk:
                break
            out_file.write(chunk)


def _safe_extract(archive: Path, target: Path) -> None:
    # the "data" filter rejects absolute paths, ".." members and links leaving target
    with tarfile.open(archive, "r:gz") as tar:
        tar.extractall(target, filter="data")


class SteamCMDInstaller:
    def __init__(self, settings: Settings, runner: CommandRunner, apt: Optional[Apt] = None):
        self.settings = settings
        self.runner = runner
        self.apt = apt or Apt(runner)

    def locate(self) -> Optional[SteamCMD]:
        sh = self.settings.steamcmd_sh
        if sh.is_file():
            return SteamCMD(sh, self.runner, home=self.settings.steamcmd_root)
        found = self.runner.which("steamcmd")
        if found:
            return SteamCMD(Path(found), self.runner)
        link = self.settings.steamcmd_link
        if link.exists():
            return SteamCMD(link, self.runner)
        return None

    def ensure(self) -> SteamCMD:
        existing = self.locate()
        if existing is not None:
            log.info("SteamCMD is already installed (%s); skipping installation", existing.bin)
            return existing

        if self.install_from_apt():
            log.info("SteamCMD installed via apt")
        else:
            log.warning("steamcmd package not available; installing from Valve tarball")
            if self.install_from_tarball():
                log.info("SteamCMD installed from Valve tarball")

        tool = self.locate()
        if tool is None:
            raise SteamCMDNotFoundError("SteamCMD installation failed: executable not found after install")

        log.info("Bootstrapping SteamCMD client...")
        tool.bootstrap()
        log.info("SteamCMD installation completed (%s)", tool.bin)
        return tool

    def install_from_apt(self) -> bool:
        log.info("Updating package list...")
        self.apt.update()
        if not self.apt.has_foreign_architecture("i386"):
            if self.apt.add_architecture("i386"):
                self.apt.update()
        return self.apt.install(["steamcmd"])

    def install_from_tarball(self) -> bool:
        self.apt.install(TARBALL_PREREQUISITES)

        root = self.settings.steamcmd_root
        archive = root / "steamcmd_linux.tar.gz"
        try:
            log.info("Downloading steamcmd from %s", self.settings.steamcmd_url)
            download_file(self.settings.steamcmd_url, archive)
            log.info("Extracting steamcmd into %s", root)
            _safe_extract(archive, root)
        except (OSError, urllib.error.URLError, tarfile.TarError) as e:
            log.error("SteamCMD tarball install failed: %s", e)
            return False
        finally:
            archive.unlink(missing_ok=True)

        sh = self.settings.steamcmd_sh
        if not sh.is_file():
            log.error("steamcmd.sh missing after extraction: %s", sh)
            return False
        sh.chmod(sh.stat().st_mode | 0o111)

        link = self.settings.steamcmd_link
        try:
            link.parent.mkdir(parents=True, exist_ok=True)
            if link.is_symlink() or link.exists():
                link.unlink()
            os.symlink(sh, link)
            log.info("Linked %s -> %s", link, sh)
        except OSError as e:
            log.warning("Could not link %s: %s", link, e)
        return True
