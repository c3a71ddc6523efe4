"""Middleware configuration for the FastAPI application."""

import time
import uuid

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from counter_agent import __version__
from counter_agent.routers import metrics

logger = structlog.get_logger(__name__)

# Polled by callers and scrapers; completion logged at debug only
QUIET_PATHS = {"/status", "/metrics", "/availability"}


async def request_middleware(request: Request, call_next):
    """Add request ID, timing and metrics to all requests."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))

    # Bind request context to logger
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=request.method,
        path=request.url.path,
    )

    start_time = time.perf_counter()

    try:
        response = await call_next(request)
    except Exception as e:
        logger.exception("Request failed", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
            headers={
                "X-Request-ID": request_id,
                "X-API-Version": __version__,
            },
        )

    duration_ms = (time.perf_counter() - start_time) * 1000

    response.headers["X-Request-ID"] = request_id
    response.headers["X-Response-Time-Ms"] = f"{duration_ms:.2f}"
    response.headers["X-API-Version"] = __version__

    # Skip /metrics to avoid recursion
    if request.url.path != "/metrics":
        metrics.record_request(
            method=request.method,
            endpoint=request.url.path,
            status_code=response.status_code,
            duration=duration_ms / 1000,
        )

    log = logger.debug if request.url.path in QUIET_PATHS else logger.info
    log(
        "Request completed",
        status_code=response.status_code,
        duration_ms=round(duration_ms, 2),
    )

    return response


def setup_middleware(app: FastAPI) -> None:
    """Register application middleware."""
    app.middleware("http")(request_middleware)
