"""Prometheus metrics helpers."""

from __future__ import annotations

import time
from typing import Callable

from fastapi import APIRouter, Response
from prometheus_client import (
    Counter,
    Histogram,
    CONTENT_TYPE_LATEST,
    generate_latest,
)

from mobile.accentlab.session.controller import SessionController
from mobile.accentlab.session.state import SessionSnapshot

REQUEST_COUNTER = Counter(
    "api_requests_total",
    "Total API requests",
    labelnames=("path", "method", "status"),
)

REQUEST_LATENCY = Histogram(
    "api_request_latency_seconds",
    "API request latency",
    labelnames=("path", "method"),
)

SESSION_ERRORS = Counter(
    "session_errors_total",
    "Session intents rejected or failed, by error kind",
    labelnames=("kind",),
)

PHASE_TRANSITIONS = Counter(
    "session_phase_transitions_total",
    "Session phase changes, by phase entered",
    labelnames=("phase",),
)

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint() -> Response:
    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


def instrument_app(app):
    @app.middleware("http")
    async def prometheus_middleware(request, call_next: Callable):  # type: ignore
        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        method = request.method
        REQUEST_COUNTER.labels(path=path, method=method, status=response.status_code).inc()
        REQUEST_LATENCY.labels(path=path, method=method).observe(duration)
        return response

    return app


def track_phases(controller: SessionController) -> Callable[[], None]:
    """Count phase changes by subscribing to controller snapshots."""
    last = {"phase": controller.phase}

    def _on_change(snapshot: SessionSnapshot) -> None:
        if snapshot.phase is not last["phase"]:
            last["phase"] = snapshot.phase
            PHASE_TRANSITIONS.labels(phase=snapshot.phase.value).inc()

    return controller.subscribe(_on_change)
