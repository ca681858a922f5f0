"""
FastAPI application: control surface for the scheduled stock alert.
Run with: python -m api
"""
import logging
import os
import secrets
from typing import Callable, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from services.presenter import build_dashboard
from services.sync_controller import MonitorController, create_monitor

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

API_KEY = os.environ.get("MONITOR_API_KEY")
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("MONITOR_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]


class EmailSettings(BaseModel):
    email: str


def require_api_key(x_api_key: Optional[str] = Header(default=None, alias="X-API-Key")):
    """Guard mutating routes when MONITOR_API_KEY is configured."""
    if not API_KEY:
        return
    if not x_api_key or not secrets.compare_digest(x_api_key, API_KEY):
        raise HTTPException(status_code=401, detail="Invalid API key")


def get_controller(request: Request) -> MonitorController:
    controller = getattr(request.app.state, "controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Monitor is not running")
    return controller


def _action_response(controller: MonitorController, ok: bool) -> dict:
    return {"success": ok, "error": controller.view.error, "state": controller.state()}


def create_app(controller_factory: Callable[[], MonitorController] = create_monitor) -> FastAPI:
    app = FastAPI(title="Stock Alert Monitor", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup():
        controller = controller_factory()
        app.state.controller = controller
        await controller.activate()
        logger.info("[API] Monitor started")

    @app.on_event("shutdown")
    async def shutdown():
        controller = getattr(app.state, "controller", None)
        if controller is not None:
            controller.teardown()
            controller.scheduler.shutdown()
            close = getattr(controller.client, "close", None)
            if close:
                close()
        logger.info("[API] Monitor stopped")

    @app.get("/health")
    def health(controller: MonitorController = Depends(get_controller)):
        schedule = controller.view.schedule
        return {
            "status": "ok" if controller.active else "stopped",
            "schedule_loaded": schedule is not None,
            "history_size": len(controller.view.history),
        }

    @app.get("/api/state")
    def get_state(controller: MonitorController = Depends(get_controller)):
        return controller.state()

    @app.get("/api/dashboard")
    def get_dashboard(sample: bool = Query(False), controller: MonitorController = Depends(get_controller)):
        return build_dashboard(controller, sample_mode=sample)

    @app.post("/api/schedule/toggle")
    async def toggle_schedule(controller: MonitorController = Depends(get_controller),
                              _auth: None = Depends(require_api_key)):
        if controller.view.schedule is None:
            raise HTTPException(409, "Schedule has not been loaded yet")
        if controller.busy:
            raise HTTPException(409, "Another action is in progress")
        ok = await controller.toggle()
        return _action_response(controller, ok)

    @app.post("/api/schedule/trigger")
    async def trigger_schedule(controller: MonitorController = Depends(get_controller),
                               _auth: None = Depends(require_api_key)):
        if controller.busy:
            raise HTTPException(409, "Another action is in progress")
        ok = await controller.trigger_now()
        return _action_response(controller, ok)

    @app.post("/api/refresh")
    async def refresh(controller: MonitorController = Depends(get_controller)):
        await controller.refresh()
        return controller.state()

    @app.get("/api/settings/email")
    def get_email(controller: MonitorController = Depends(get_controller)):
        return {"email": controller.recipient_email}

    @app.put("/api/settings/email")
    def save_email(payload: EmailSettings, controller: MonitorController = Depends(get_controller),
                   _auth: None = Depends(require_api_key)):
        if not controller.save_recipient_email(payload.email):
            raise HTTPException(400, controller.view.error or "Invalid email")
        return {"success": True, "email": controller.recipient_email}

    return app


app = create_app()
