from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional
from .admins import AdminListSync
from .apt import Apt, update_system_packages
from .build_gate import BuildGate, GateResult, decide, read_installed_build
from .config import ServerConfig, load_runtime_config
from .errors import AdminSyncError, SettingsSyncError
from .installer import SteamCMDInstaller
from .locking import install_lock
from .log_retention import expired_logs, purge_old_logs
from .logging_setup import get_logger, log_banner, log_section
from .planner import Plan, PlanAction
from .process_runner import CommandRunner
from .serverconfig import ServerConfigSync
from .server_update import ServerUpdater
from .settings import Settings
from .steamcmd import SteamCMD

log = get_logger("sdtd.launcher.orch")

@dataclass
class WorkflowResult:
    installed_build: Optional[str] = None
    latest_build: Optional[str] = None
    updated: bool = False
    build: Optional[str] = None
    purged: List[str] = field(default_factory=list)
    admins_added: List[str] = field(default_factory=list)
    settings_changed: List[str] = field(default_factory=list)
    serverconfig_found: bool = False
    serveradmin_found: bool = False
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

class Orchestrator:
    def __init__(self, settings: Settings, runner: Optional[CommandRunner] = None):
        self.base_settings = settings
        self.settings = settings
        self.runner = runner or CommandRunner()
        self.apt = Apt(self.runner)
        self.installer = SteamCMDInstaller(settings, self.runner, self.apt)
        self._cfg: Optional[ServerConfig] = None

    def reload(self) -> ServerConfig:
        """Re-read the override file; every run works on a freshly resolved table."""
        self.settings, self._cfg = load_runtime_config(self.base_settings)
        self.installer = SteamCMDInstaller(self.settings, self.runner, self.apt)
        return self._cfg

    @property
    def cfg(self) -> ServerConfig:
        if self._cfg is None:
            return self.reload()
        return self._cfg

    def _warn(self, result: WorkflowResult, message: str) -> None:
        log.warning("WARNING: %s", message)
        result.warnings.append(message)

    def update_system(self, result: WorkflowResult) -> None:
        log_section(log, "Updating System Packages")
        if self.settings.skip_system_update:
            log.info("SKIP_SYSTEM_UPDATE: not touching system packages.")
            return
        if not update_system_packages(self.apt):
            self._warn(result, "System package update had issues (continuing anyway)")

    def ensure_steamcmd(self) -> SteamCMD:
        log_section(log, "Installing/Updating SteamCMD")
        tool = self.installer.ensure()
        log.info("SteamCMD ready")
        return tool

    def ensure_server(self, steamcmd: SteamCMD, result: WorkflowResult) -> GateResult:
        log_section(log, "Installing/Updating 7 Days to Die Dedicated Server")
        gate = BuildGate(self.settings, steamcmd).check()
        result.installed_build = gate.installed
        result.latest_build = gate.latest
        if gate.needs_update:
            result.build = ServerUpdater(self.settings, steamcmd).update()
            result.updated = True
        else:
            result.build = gate.installed
        log.info("7 Days to Die server ready")
        return gate

    def purge_logs(self, result: WorkflowResult) -> None:
        days = self.settings.log_retention_days
        log_section(log, f"Purging Old Server Logs (>{days} days)")
        result.purged = purge_old_logs(self.settings.server_dir, days).deleted

    def sync_admins(self, result: WorkflowResult) -> None:
        log_section(log, "Updating Server Admin List")
        try:
            report = AdminListSync(self.settings.admin_file).sync(self.cfg.admin_ids())
        except AdminSyncError as e:
            self._warn(result, f"Failed to update admin list: {e}")
            return
        result.serveradmin_found = not report.skipped
        result.admins_added = report.added

    def sync_settings(self, result: WorkflowResult) -> None:
        log_section(log, "Applying Configuration to serverconfig.xml")
        try:
            report = ServerConfigSync(self.settings.serverconfig_file).sync(self.cfg)
        except SettingsSyncError as e:
            self._warn(result, f"Failed to apply configuration (continuing anyway): {e}")
            return
        result.serverconfig_found = not report.skipped
        result.settings_changed = [c.name for c in report.changes]
        if not report.skipped:
            log.info("Server configuration applied")

    def run_update(self) -> WorkflowResult:
        """
        Full pre-start workflow. SteamCMD or server update failures propagate
        (the server must not start on a broken install); everything else is
        logged as a warning and the run continues.
        """
        result = WorkflowResult()
        log_banner(log, "SERVER STARTING")
        log_section(log, "7 Days to Die Server Install/Update Started")
        cfg = self.reload()
        s = self.settings
        log.info("Server directory: %s", s.server_dir)

        with install_lock(s.server_dir, timeout=s.lock_timeout):
            self.update_system(result)
            steamcmd = self.ensure_steamcmd()
            self.ensure_server(steamcmd, result)
            self.purge_logs(result)
            self.sync_admins(result)
            self.sync_settings(result)

        log.debug("Resolved settings: %s", cfg.redacted())
        log_section(log, "Script Completed Successfully")
        return result

    def plan(self) -> Plan:
        """Dry run: reports what run_update would change. Only queries SteamCMD."""
        self.reload()
        s = self.settings
        actions: List[PlanAction] = []
        notes: List[str] = []

        tool = self.installer.locate()
        actions.append(PlanAction(
            action="ensure_steamcmd",
            target=str(tool.bin if tool else s.steamcmd_root),
            detail="already installed" if tool else "would install SteamCMD (apt, then Valve tarball)",
            will_change=tool is None,
        ))

        installed = read_installed_build(s.manifest_file)
        latest = tool.latest_build(s.app_id, s.branch) if tool else None
        gate = GateResult(installed=installed, latest=latest, decision=decide(installed, latest))
        actions.append(PlanAction(
            action="app_update",
            target=str(s.server_dir),
            detail=f"installed={installed or '<none>'} latest={latest or '<unknown>'}",
            will_change=gate.needs_update,
            data={"app_id": s.app_id, "branch": s.branch, "decision": gate.decision.value},
        ))

        expired = expired_logs(s.server_dir, s.log_retention_days)
        actions.append(PlanAction(
            action="purge_logs",
            target=str(s.server_dir),
            detail=f"{len(expired)} log file(s) older than {s.log_retention_days} days",
            will_change=bool(expired),
            data={"files": [p.name for p in expired]},
        ))

        try:
            admins = AdminListSync(s.admin_file).sync(self.cfg.admin_ids(), dry_run=True)
            actions.append(PlanAction(
                action="sync_admins",
                target=str(s.admin_file),
                detail="not found, skipped" if admins.skipped else f"{len(admins.added)} admin(s) to add",
                will_change=bool(admins.added),
                data={"add": admins.added, "existing": admins.existing},
                severity="warn" if admins.skipped else "info",
            ))
        except AdminSyncError as e:
            actions.append(PlanAction(action="sync_admins", target=str(s.admin_file), detail=str(e),
                                      will_change=False, severity="error"))

        try:
            settings = ServerConfigSync(s.serverconfig_file).sync(self.cfg, dry_run=True)
            actions.append(PlanAction(
                action="sync_settings",
                target=str(s.serverconfig_file),
                detail="not found, skipped" if settings.skipped else f"{len(settings.changes)} value(s) to change",
                will_change=settings.changed,
                data={"changes": [c.to_dict() for c in settings.changes]},
            ))
        except SettingsSyncError as e:
            actions.append(PlanAction(action="sync_settings", target=str(s.serverconfig_file), detail=str(e),
                                      will_change=False, severity="error"))

        if s.skip_system_update:
            notes.append("SKIP_SYSTEM_UPDATE set: system packages are left alone")
        ok = not any(a.severity == "error" for a in actions)
        return Plan(ok=ok, actions=actions, notes=notes)
