from __future__ import annotations
from typing import List
from .logging_setup import get_logger
from .process_runner import CommandRunner

log = get_logger("sdtd.launcher.apt")

NONINTERACTIVE = {"DEBIAN_FRONTEND": "noninteractive"}

class Apt:
    def __init__(self, runner: CommandRunner):
        self.runner = runner

    def _stream(self, args: List[str]) -> bool:
        rc = self.runner.stream(args, env=NONINTERACTIVE, noise=())
        if rc != 0:
            log.warning("%s exited with rc=%s", " ".join(args), rc)
        return rc == 0

    def update(self) -> bool:
        return self._stream(["apt-get", "update"])

    def upgrade(self) -> bool:
        return self._stream(["apt-get", "upgrade", "-y"])

    def install(self, packages: List[str]) -> bool:
        log.info("Installing packages: %s", " ".join(packages))
        return self._stream(["apt-get", "install", "-y"] + packages)

    def has_foreign_architecture(self, arch: str) -> bool:
        res = self.runner.run(["dpkg", "--print-foreign-architectures"])
        return res.ok and arch in res.stdout.split()

    def add_architecture(self, arch: str) -> bool:
        log.info("Adding %s architecture...", arch)
        res = self.runner.run(["dpkg", "--add-architecture", arch])
        if not res.ok:
            log.warning("dpkg --add-architecture %s failed (rc=%s)", arch, res.returncode)
        return res.ok

def update_system_packages(apt: Apt) -> bool:
    """apt update + upgrade; a failure here never stops the workflow."""
    log.info("Running apt update...")
    if not apt.update():
        return False
    log.info("Running apt upgrade...")
    if not apt.upgrade():
        return False
    log.info("System packages updated successfully")
    return True
