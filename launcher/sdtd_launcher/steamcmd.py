from __future__ import annotations
from pathlib import Path
from typing import Dict, List, Optional
from .errors import KeyValuesError
from .keyvalues import find_block, get_path
from .logging_setup import get_logger
from .process_runner import CommandResult, CommandRunner

log = get_logger("sdtd.launcher.steamcmd")

class SteamCMD:
    """A located SteamCMD executable, always used with anonymous login."""

    def __init__(self, bin: Path, runner: CommandRunner, *, home: Optional[Path] = None):
        self.bin = bin
        self.runner = runner
        # tarball installs keep all Steam state under their own root
        self.home = home

    @property
    def _env(self) -> Optional[Dict[str, str]]:
        return {"HOME": str(self.home)} if self.home else None

    def _cmd(self, args: List[str]) -> List[str]:
        return [str(self.bin)] + args

    def run(self, args: List[str]) -> CommandResult:
        cmd = self._cmd(args)
        log.info("SteamCMD: %s", " ".join(cmd))
        return self.runner.run(cmd, cwd=self.home, env=self._env)

    def stream(self, args: List[str]) -> int:
        return self.runner.stream(self._cmd(args), cwd=self.home, env=self._env)

    def bootstrap(self) -> bool:
        """First start: lets steamcmd update itself and write its config."""
        res = self.run(["+quit"])
        if not res.ok:
            log.warning("SteamCMD bootstrap exited with rc=%s", res.returncode)
        return res.ok

    def latest_build(self, app_id: int, branch: str = "public") -> Optional[str]:
        res = self.run([
            "+login", "anonymous",
            "+app_info_update", "1",
            "+app_info_print", str(app_id),
            "+quit",
        ])
        if not res.ok:
            log.warning("app_info query failed (rc=%s)", res.returncode)
            return None
        try:
            info = find_block(res.stdout, str(app_id))
        except KeyValuesError as e:
            log.warning("Could not parse app_info output: %s", e)
            return None
        if info is None:
            log.warning("App %s not found in app_info output", app_id)
            return None
        build = get_path(info, "depots", "branches", branch, "buildid")
        if not isinstance(build, str) or not build:
            log.warning("No build id for branch %r in app_info output", branch)
            return None
        return build

    def app_update(self, app_id: int, install_dir: Path, *, branch: str = "public", validate: bool = True) -> int:
        args: List[str] = [
            "+@sSteamCmdForcePlatformType", "linux",
            "+force_install_dir", str(install_dir),
            "+login", "anonymous",
            "+app_update", str(app_id),
        ]
        if branch and branch != "public":
            args += ["-beta", branch]
        if validate:
            args.append("validate")
        args += ["+quit"]
        return self.stream(args)
