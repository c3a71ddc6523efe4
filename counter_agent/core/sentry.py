"""Sentry initialization and configuration."""

import os
from typing import Optional

import sentry_sdk
import structlog
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sentry_sdk.integrations.logging import LoggingIntegration
from sentry_sdk.integrations.starlette import StarletteIntegration

from counter_agent import __version__
from counter_agent.config import Settings

logger = structlog.get_logger(__name__)


def _before_send(event: dict, hint: dict) -> Optional[dict]:
    """
    Filter out 4xx client errors from Sentry events.

    Rejected job requests and unknown job ids are caller errors, not faults.
    """
    if "exc_info" in hint:
        _exc_type, exc_value, _tb = hint["exc_info"]
        status_code = getattr(exc_value, "status_code", None)
        if isinstance(status_code, int) and 400 <= status_code < 500:
            return None

    response = event.get("contexts", {}).get("response", {})
    status_code = response.get("status_code", 0)
    if 400 <= status_code < 500:
        return None

    return event


def init_sentry(settings: Settings) -> bool:
    """
    Initialize Sentry if DSN is configured.

    Returns True if Sentry was initialized, False otherwise.
    """
    if not settings.sentry_dsn:
        return False

    # Only send ERROR-level logs as Sentry events
    sentry_logging = LoggingIntegration(
        level=None,  # Keep normal log levels
        event_level="ERROR",
    )

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        release=os.environ.get("GIT_SHA", f"counter-agent@{__version__}"),
        integrations=[
            sentry_logging,
            StarletteIntegration(transaction_style="endpoint"),
            FastApiIntegration(transaction_style="endpoint"),
        ],
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
        attach_stacktrace=True,
        before_send=_before_send,
    )

    sentry_sdk.set_tag("service", "counter-agent")
    sentry_sdk.set_tag("network", settings.network_id)

    logger.info(
        "Sentry initialized",
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
    )
    return True
