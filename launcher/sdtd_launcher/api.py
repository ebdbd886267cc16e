from __future__ import annotations
from typing import Optional
from fastapi import FastAPI, HTTPException, Query
from pydantic import BaseModel
from .errors import LauncherError
from .log_reader import list_logs, read_from_cursor, read_tail, server_logs
from .orchestrator import Orchestrator
from .process_runner import CommandRunner
from .service import ServiceManager
from .settings import Settings

class ActionResult(BaseModel):
    ok: bool
    detail: str | None = None
    data: dict | None = None

def create_app(settings: Settings, runner: Optional[CommandRunner] = None) -> FastAPI:
    app = FastAPI(title="7D2D Launcher API", version="0.3.0")
    runner = runner or CommandRunner()
    orch = Orchestrator(settings, runner)

    def _current() -> Settings:
        # the override file may move SERVER_DIR or rename the service between requests
        try:
            orch.reload()
        except LauncherError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return orch.settings

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/config")
    def get_config():
        try:
            return orch.reload().redacted()
        except LauncherError as e:
            raise HTTPException(status_code=500, detail=str(e))

    @app.get("/plan")
    def plan():
        # dry-run; no side effects
        try:
            return orch.plan().to_dict()
        except LauncherError as e:
            raise HTTPException(status_code=500, detail=str(e))

    @app.post("/update", response_model=ActionResult)
    def update():
        try:
            result = orch.run_update()
        except LauncherError as e:
            raise HTTPException(status_code=500, detail=str(e))
        return ActionResult(ok=True, detail="updated", data=result.to_dict())

    @app.get("/status", response_model=ActionResult)
    def status():
        return ActionResult(ok=True, data=ServiceManager(_current(), runner).status())

    def _service_action(name: str) -> ActionResult:
        res = getattr(ServiceManager(_current(), runner), name)()
        if not res.ok:
            raise HTTPException(status_code=500, detail=res.stderr.strip() or f"{name} failed")
        return ActionResult(ok=True, detail=name)

    @app.post("/start", response_model=ActionResult)
    def start():
        return _service_action("start")

    @app.post("/stop", response_model=ActionResult)
    def stop():
        return _service_action("stop")

    @app.post("/restart", response_model=ActionResult)
    def restart():
        return _service_action("restart")

    @app.get("/logs")
    def logs():
        s = _current()
        return {"ok": True, "logs": list_logs(s.server_dir, s.log_file)}

    @app.get("/logs/{log_id}")
    def get_log(
        log_id: str,
        tail: int = Query(default=200, ge=0, le=5000),
        cursor: str | None = None,
        max_lines: int = Query(default=200, ge=1, le=5000),
    ):
        # only ids from the listing are served, never arbitrary paths
        s = _current()
        available = server_logs(s.server_dir)
        candidates = {p.stem: p for p in available}
        if available:
            candidates["latest"] = available[0]
        if s.log_file.is_file():
            candidates[s.log_file.stem] = s.log_file
        path = candidates.get(log_id)
        if path is None:
            raise HTTPException(status_code=404, detail="log_not_found")

        if cursor:
            chunk = read_from_cursor(path, cursor=cursor, max_lines=max_lines)
        else:
            chunk = read_tail(path, tail_lines=tail)

        return {
            "ok": True,
            "id": path.stem,
            "cursor": chunk.cursor,
            "entries": [{"n": i + 1, "line": line} for i, line in enumerate(chunk.entries)],
            "truncated": chunk.truncated,
        }
    return app
