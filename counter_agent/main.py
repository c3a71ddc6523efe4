"""Counter Agent - FastAPI Application."""

from typing import Optional

import structlog
from fastapi import FastAPI

from counter_agent import __version__
from counter_agent.config import Settings, get_settings
from counter_agent.core.lifespan import build_lifespan
from counter_agent.core.logging import configure_logging
from counter_agent.core.middleware import setup_middleware
from counter_agent.core.sentry import init_sentry
from counter_agent.ledger.base import LedgerProvider
from counter_agent.payments.client import PaymentServiceClient
from counter_agent.routers import health, jobs, metrics

logger = structlog.get_logger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    ledger_provider: Optional[LedgerProvider] = None,
    payment_client: Optional[PaymentServiceClient] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Settings to use (default: cached environment settings)
        ledger_provider: Wallet/contract provider (default: ledger bridge client)
        payment_client: Payment service client (default: HTTP client)
    """
    settings = settings or get_settings()
    configure_logging(settings)
    init_sentry(settings)

    app = FastAPI(
        title="Counter Agent",
        description="Paid increment jobs against a ledger counter contract",
        version=__version__,
        lifespan=build_lifespan(ledger_provider, payment_client),
    )
    app.state.settings = settings

    setup_middleware(app)

    app.include_router(jobs.router, tags=["Jobs"])
    app.include_router(health.router, tags=["Health"])
    app.include_router(metrics.router)

    return app
