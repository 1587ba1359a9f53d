"""FastAPI application exposing one local accent session."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from mobile.accentlab.app import build_session
from mobile.accentlab.errors import SessionError
from mobile.accentlab.session.controller import SessionController

from .metrics import SESSION_ERRORS, instrument_app, router as metrics_router, track_phases
from .routers.session import get_controller, router as session_router
from .schemas import HealthResponse
from .settings import get_settings

LOGGER = logging.getLogger("accentlab.api")

ERROR_STATUS = {
    "OperationInProgress": 409,
    "InvalidPhase": 409,
    "StaleChunkIndex": 409,
    "MissingInput": 422,
    "EmptyRecording": 422,
    "PredictionFailed": 502,
    "SynthesisFailed": 502,
    "DeviceUnavailable": 503,
}


def create_app(controller: SessionController | None = None) -> FastAPI:
    settings = get_settings()
    controller = controller or build_session()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await app.state.controller.aclose()

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.state.controller = controller
    track_phases(controller)

    @app.exception_handler(SessionError)
    async def session_error_handler(request: Request, exc: SessionError) -> JSONResponse:
        SESSION_ERRORS.labels(kind=exc.kind).inc()
        status = ERROR_STATUS.get(exc.kind, 400)
        LOGGER.info("%s %s rejected: %s (%s)", request.method, request.url.path, exc.kind, exc)
        return JSONResponse(status_code=status, content={"error": exc.kind, "message": str(exc)})

    @app.get("/healthz", response_model=HealthResponse)
    async def healthz(controller: SessionController = Depends(get_controller)):
        return HealthResponse(
            ok=True,
            phase=controller.phase.value,
            timestamp=datetime.now(timezone.utc),
        )

    app.include_router(session_router)
    app.include_router(metrics_router)
    instrument_app(app)
    return app
