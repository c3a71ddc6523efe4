"""Shutdown coordination.

Owns the long-lived resources created at startup and releases them exactly
once, whether the process is stopping on a signal or startup failed halfway.
"""

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

from counter_agent.config import Settings
from counter_agent.jobs.lifecycle import JobLifecycleManager
from counter_agent.ledger.base import Wallet
from counter_agent.ledger.observer import LedgerObserver

logger = structlog.get_logger(__name__)

Closer = Callable[[], Awaitable[None]]


class ShutdownCoordinator:
    """
    Stops the ledger observer, cancels outstanding jobs and closes the wallet.

    Order on shutdown:
    1. Stop the ledger observer (it reads through the wallet's contract handle)
    2. Cancel job lifecycle tasks, failing non-terminal jobs
    3. Close the wallet
    4. Close auxiliary clients (payment service, ledger bridge)

    ``shutdown()`` and ``abort()`` share one idempotent path: the second and
    later calls return immediately.
    """

    def __init__(self, settings: Settings):
        self._settings = settings
        self._lock = asyncio.Lock()
        self._done = False

        self.observer: Optional[LedgerObserver] = None
        self.jobs: Optional[JobLifecycleManager] = None
        self.wallet: Optional[Wallet] = None
        self._closers: list[tuple[str, Closer]] = []

    @property
    def is_shut_down(self) -> bool:
        return self._done

    def add_closer(self, name: str, closer: Closer) -> None:
        """Register an extra async close callback, run after the wallet closes."""
        self._closers.append((name, closer))

    async def shutdown(self) -> bool:
        """Graceful shutdown. Returns False if shutdown already happened."""
        return await self._release(reason="shutdown")

    async def abort(self) -> bool:
        """Best-effort release after a startup failure."""
        return await self._release(reason="startup_failure")

    async def _release(self, reason: str) -> bool:
        async with self._lock:
            if self._done:
                logger.info("Shutdown already completed, ignoring", reason=reason)
                return False
            self._done = True

            logger.info("Releasing resources", reason=reason)

            if self.observer is not None:
                try:
                    await self.observer.stop(
                        timeout=self._settings.observer_stop_timeout_seconds
                    )
                except Exception as e:
                    logger.error("Error stopping ledger observer", error=str(e))

            if self.jobs is not None:
                try:
                    cancelled = await self.jobs.shutdown(
                        timeout=self._settings.job_cancel_timeout_seconds
                    )
                    logger.info("Job lifecycle tasks cancelled", count=cancelled)
                except Exception as e:
                    logger.error("Error cancelling job tasks", error=str(e))

            if self.wallet is not None:
                try:
                    await self.wallet.close()
                    logger.info("Wallet closed")
                except Exception as e:
                    logger.error("Error closing wallet", error=str(e))
                self.wallet = None

            for name, closer in reversed(self._closers):
                try:
                    await closer()
                except Exception as e:
                    logger.warning("Error closing client", client=name, error=str(e))

            logger.info("Resources released", reason=reason)
            return True
