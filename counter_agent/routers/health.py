"""Availability and health endpoints."""

import time
from typing import Any

import structlog
from fastapi import APIRouter, Request

from counter_agent import __version__
from counter_agent.config import Settings
from counter_agent.schemas import AvailabilityResponse

router = APIRouter()
logger = structlog.get_logger(__name__)


def _uptime_seconds(request: Request) -> int:
    started_at = getattr(request.app.state, "started_at", None)
    if started_at is None:
        return 0
    return int(time.monotonic() - started_at)


@router.get("/availability", response_model=AvailabilityResponse)
async def availability(request: Request) -> AvailabilityResponse:
    """Report that the agent is up, with uptime in whole seconds."""
    settings: Settings = request.app.state.settings
    return AvailabilityResponse(
        status="available",
        uptime=_uptime_seconds(request),
        message=settings.agent_message,
    )


@router.get("/health")
async def health(request: Request) -> dict[str, Any]:
    """Ledger observer state and job counts, for operators."""
    observer = getattr(request.app.state, "observer", None)
    jobs = getattr(request.app.state, "jobs", None)

    observer_health = observer.get_health() if observer is not None else None
    job_counts = await jobs.registry.count_by_status() if jobs is not None else {}

    return {
        "status": "ok" if observer_health and observer_health.running else "degraded",
        "version": __version__,
        "uptime": _uptime_seconds(request),
        "ledger_observer": (
            {
                "running": observer_health.running,
                "interval_seconds": observer_health.interval_seconds,
                "last_tick_at": (
                    observer_health.last_tick_at.isoformat()
                    if observer_health.last_tick_at
                    else None
                ),
                "last_counter_value": observer_health.last_counter_value,
                "last_error": observer_health.last_error_message,
                "ticks": observer_health.ticks,
                "failures": observer_health.failures,
            }
            if observer_health
            else None
        ),
        "jobs": job_counts,
        "jobs_inflight": jobs.inflight if jobs is not None else 0,
    }
