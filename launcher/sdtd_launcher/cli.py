from __future__ import annotations
import argparse
import json
import sys
from .config import load_runtime_config
from .errors import ConfigError, LauncherError
from .logging_setup import clear_log_file, get_logger, setup_logging
from .log_reader import follow, latest_server_log, read_tail
from .orchestrator import Orchestrator
from .process_runner import CommandRunner
from .service import ServiceManager
from .settings import Settings

log = get_logger("sdtd.launcher.cli")

def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sdtd-launcher")
    sub = parser.add_subparsers(dest="cmd", required=True)

    up = sub.add_parser("update", help="Update system packages, SteamCMD and server; sync admins and serverconfig.xml")
    up.add_argument("-c", "--clear-logs", action="store_true", help="Clear the update log before starting")

    sub.add_parser("plan", help="Print a dry-run plan as JSON and exit")
    sub.add_parser("install-service", help="Write and enable the systemd unit, install shell aliases")

    for name in ("start", "stop", "restart", "status"):
        sub.add_parser(name, help=f"systemctl {name} for the server unit")

    jr = sub.add_parser("journal", help="Show the unit's journal (startup/errors)")
    jr.add_argument("-f", "--follow", action="store_true")
    jr.add_argument("-n", "--lines", type=int, default=200)

    sl = sub.add_parser("serverlog", help="Show the newest server output log (players/game events)")
    sl.add_argument("-f", "--follow", action="store_true")
    sl.add_argument("-n", "--lines", type=int, default=50)

    api_p = sub.add_parser("api", help="Run REST API (FastAPI)")
    api_p.add_argument("--host", default="127.0.0.1")
    api_p.add_argument("--port", type=int, default=8000)
    return parser

def _serverlog(settings: Settings, lines: int, follow_log: bool) -> int:
    path = latest_server_log(settings.server_dir)
    if path is None:
        print(f"Server log not found. Is the server running? Check: systemctl status {settings.service_name}.service")
        return 1
    if not follow_log:
        for line in read_tail(path, tail_lines=lines).entries:
            print(line)
        return 0
    try:
        for line in follow(path, tail_lines=lines):
            print(line, flush=True)
    except KeyboardInterrupt:
        pass
    return 0

def main(argv=None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings, _ = load_runtime_config(Settings())
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    if args.cmd == "update" and args.clear_logs:
        clear_log_file(settings.log_file)
    setup_logging(settings)
    runner = CommandRunner()

    if args.cmd == "update":
        try:
            result = Orchestrator(settings, runner).run_update()
        except LauncherError as e:
            log.error("ERROR: %s", e)
            return 1
        for w in result.warnings:
            log.warning("Completed with warning: %s", w)
        return 0

    if args.cmd == "plan":
        try:
            plan = Orchestrator(settings, runner).plan().to_dict()
        except LauncherError as e:
            log.error("ERROR: %s", e)
            return 1
        print(json.dumps(plan, indent=2, ensure_ascii=False))
        return 0 if plan.get("ok", True) else 1

    svc = ServiceManager(settings, runner)
    if args.cmd == "install-service":
        try:
            info = svc.install()
        except LauncherError as e:
            log.error("ERROR: %s", e)
            return 1
        print(json.dumps(info, indent=2))
        return 0
    if args.cmd in ("start", "stop", "restart"):
        return 0 if getattr(svc, args.cmd)().ok else 1
    if args.cmd == "status":
        return svc.show_status()
    if args.cmd == "journal":
        return svc.journal(follow=args.follow, lines=args.lines)
    if args.cmd == "serverlog":
        return _serverlog(settings, args.lines, args.follow)

    if args.cmd == "api":
        import uvicorn
        from .api import create_app
        app = create_app(settings, runner)
        uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
        return 0

    return 2

if __name__ == "__main__":
    sys.exit(main())
