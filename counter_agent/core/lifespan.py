"""Application lifespan management - startup and shutdown logic."""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
from fastapi import FastAPI

from counter_agent import __version__
from counter_agent.config import Settings
from counter_agent.core.shutdown import ShutdownCoordinator
from counter_agent.exceptions import StartupError
from counter_agent.jobs.executor import JobExecutor
from counter_agent.jobs.lifecycle import JobLifecycleManager
from counter_agent.jobs.registry import JobRegistry
from counter_agent.ledger.base import CounterContract, LedgerProvider
from counter_agent.ledger.bridge import LedgerBridgeClient
from counter_agent.ledger.observer import LedgerObserver
from counter_agent.payments.client import PaymentServiceClient
from counter_agent.payments.poller import PaymentConfirmationPoller

logger = structlog.get_logger(__name__)


async def _connect_ledger(
    settings: Settings,
    provider: LedgerProvider,
    coordinator: ShutdownCoordinator,
) -> CounterContract:
    """Build the wallet and join the counter contract."""
    if not settings.wallet_seed:
        raise StartupError("WALLET_SEED is not configured")
    if not settings.contract_address:
        raise StartupError("CONTRACT_ADDRESS is not configured")

    logger.info(
        "Connecting to ledger",
        network=settings.network_id,
        bridge_url=settings.ledger_bridge_url,
    )
    try:
        wallet = await provider.build_wallet(settings.wallet_seed)
    except Exception as e:
        raise StartupError(f"Failed to build wallet: {e}") from e
    coordinator.wallet = wallet

    try:
        contract = await provider.join_contract(wallet, settings.contract_address)
    except Exception as e:
        raise StartupError(f"Failed to join contract: {e}") from e

    logger.info(
        "Successfully connected to ledger and joined contract",
        contract_address=contract.address,
    )
    return contract


def build_lifespan(
    ledger_provider: Optional[LedgerProvider] = None,
    payment_client: Optional[PaymentServiceClient] = None,
):
    """Create the lifespan context manager.

    ``ledger_provider`` and ``payment_client`` default to the HTTP clients
    built from settings; tests pass fakes.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        settings: Settings = app.state.settings
        app.state.started_at = time.monotonic()
        logger.info(
            "Starting Counter Agent",
            version=__version__,
            host=settings.service_host,
            port=settings.service_port,
            network=settings.network_id,
        )

        coordinator = ShutdownCoordinator(settings)
        app.state.shutdown = coordinator

        try:
            provider = ledger_provider
            if provider is None:
                provider = LedgerBridgeClient.from_settings(settings)
            coordinator.add_closer("ledger_bridge", provider.close)

            payments = payment_client
            if payments is None:
                payments = PaymentServiceClient.from_settings(settings)
            coordinator.add_closer("payment_service", payments.close)

            contract = await _connect_ledger(settings, provider, coordinator)

            registry = JobRegistry()
            jobs = JobLifecycleManager(
                registry=registry,
                poller=PaymentConfirmationPoller.from_settings(payments, settings),
                executor=JobExecutor(contract),
                settings=settings,
            )
            coordinator.jobs = jobs
            app.state.jobs = jobs

            if settings.ledger_observer_enabled:
                observer = LedgerObserver(
                    contract,
                    interval_seconds=settings.ledger_observer_interval_seconds,
                )
                coordinator.observer = observer
                app.state.observer = observer
                await observer.start()
            else:
                logger.info("Ledger observer disabled (LEDGER_OBSERVER_ENABLED=false)")

        except Exception as e:
            logger.error("Startup failed", error=str(e), error_type=type(e).__name__)
            await coordinator.abort()
            raise

        logger.info("Counter Agent ready")

        try:
            yield
        finally:
            logger.info("Shutting down Counter Agent")
            await coordinator.shutdown()

    return lifespan
