from __future__ import annotations

import logging
from typing import Optional

import uvicorn
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import Settings
from .message import format_welcome_message
from .models import utc_now
from .roster import AlreadySubscribedError, InMemoryRoster, InvalidPhoneNumberError
from .scheduler import PushAlreadyRunningError, PushScheduler
from .transports.base import MessageTransport


class PhoneRequest(BaseModel):
    phone: Optional[str] = None


def _require_phone(body: PhoneRequest) -> str:
    phone = (body.phone or "").strip()
    if not phone:
        raise HTTPException(status_code=400, detail="Phone number is required")
    return phone


def build_app(
    *,
    scheduler: PushScheduler,
    roster: InMemoryRoster,
    transport: MessageTransport,
    settings: Settings,
    logger: Optional[logging.Logger] = None,
) -> FastAPI:
    app_logger = logger or logging.getLogger("news_pusher.api")
    origins = tuple(origin.strip() for origin in settings.api_cors_origins if origin.strip())

    app = FastAPI(
        title="AI News Pusher API",
        description="Daily AI news digest delivered over WhatsApp",
        version="0.1.0",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
        error_message = exc.detail if isinstance(exc.detail, str) else "request_error"
        return JSONResponse(status_code=exc.status_code, content={"ok": False, "error": error_message})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        message = str(exc.errors()[0].get("msg", "validation_error")) if exc.errors() else "validation_error"
        return JSONResponse(status_code=422, content={"ok": False, "error": message})

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    @app.get("/api/health")
    def api_health() -> dict[str, object]:
        return {"ok": True, "timestamp": utc_now().isoformat()}

    @app.get("/api/news")
    def news() -> dict[str, object]:
        feed = scheduler.fetch_current_feed()
        items = feed.limited(settings.display_max_articles)
        return {
            "ok": True,
            "items": [article.to_dict() for article in items],
            "count": len(items),
            "generated_at": feed.generated_at.isoformat(),
            "failed_sources": [failure.source_name for failure in feed.failures],
        }

    @app.post("/api/subscribe")
    def subscribe(body: PhoneRequest) -> dict[str, object]:
        phone = _require_phone(body)
        try:
            phone = roster.add(phone)
        except (InvalidPhoneNumberError, AlreadySubscribedError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        welcome = transport.send(phone, format_welcome_message(settings.daily_at))
        if not welcome.success:
            app_logger.warning("welcome message failed: phone=%s error=%s", phone, welcome.error_message)
        app_logger.info("subscriber added: phone=%s total=%s", phone, len(roster))
        return {
            "ok": True,
            "message": "Successfully subscribed to AI news updates",
            "welcome_sent": welcome.success,
        }

    @app.post("/api/unsubscribe")
    def unsubscribe(body: PhoneRequest) -> dict[str, object]:
        phone = _require_phone(body)
        if not roster.remove(phone):
            raise HTTPException(status_code=404, detail="Phone number not found in subscribers")
        app_logger.info("subscriber removed: phone=%s total=%s", phone, len(roster))
        return {"ok": True, "message": "Successfully unsubscribed from AI news updates"}

    @app.get("/api/subscribers/count")
    def subscriber_count() -> dict[str, object]:
        return {"ok": True, "count": len(roster)}

    @app.post("/api/push-now")
    def push_now() -> dict[str, object]:
        try:
            report = scheduler.trigger_manual_push()
        except PushAlreadyRunningError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        except Exception as exc:
            raise HTTPException(status_code=500, detail=str(exc) or "internal_error") from exc
        return {"ok": True, "report": report.to_dict()}

    @app.get("/api/scheduler/status")
    def scheduler_status() -> dict[str, object]:
        return {"ok": True, "status": scheduler.status().to_dict()}

    return app


def run_api_server(
    *,
    scheduler: PushScheduler,
    roster: InMemoryRoster,
    transport: MessageTransport,
    settings: Settings,
    host: str = "127.0.0.1",
    port: int = 8000,
    logger: Optional[logging.Logger] = None,
) -> None:
    if port < 1 or port > 65535:
        raise ValueError("port must be in [1, 65535]")

    app_logger = logger or logging.getLogger("news_pusher.api")
    app = build_app(
        scheduler=scheduler,
        roster=roster,
        transport=transport,
        settings=settings,
        logger=app_logger,
    )
    scheduler.start()
    app_logger.info("api started: http://%s:%s daily_at=%s", host, port, scheduler.daily_at)
    try:
        uvicorn.run(app, host=host, port=port, log_level="info")
    finally:
        scheduler.stop(timeout=5)
