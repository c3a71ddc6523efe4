"""Ledger observer.

Periodically samples the counter contract and logs its value as block
digits for operators. Independent of any job; shares only the contract
handle.
"""

import asyncio
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

import structlog
from prometheus_client import Counter, Gauge

from counter_agent.ledger.base import CounterContract
from counter_agent.ledger.render import render_counter

logger = structlog.get_logger(__name__)


# =============================================================================
# Prometheus Metrics
# =============================================================================

OBSERVER_RUNNING = Gauge(
    "counter_agent_ledger_observer_running",
    "Whether the ledger observer is running (1=running, 0=stopped)",
)
OBSERVER_TICKS_TOTAL = Counter(
    "counter_agent_ledger_observer_ticks_total",
    "Ledger observer ticks",
    ["status"],  # rendered, empty, failure
)
OBSERVER_LAST_TICK_TIMESTAMP = Gauge(
    "counter_agent_ledger_observer_last_tick_timestamp",
    "Unix timestamp of the last observer tick",
)
COUNTER_VALUE = Gauge(
    "counter_agent_counter_value",
    "Last counter value read from the ledger",
)


# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ObserverTickResult:
    """Result of a single observer tick."""

    counter_value: Optional[int] = None
    rendered: Optional[str] = None
    error: Optional[str] = None
    duration_ms: int = 0


@dataclass
class ObserverHealth:
    """Health status for the ledger observer."""

    running: bool = False
    interval_seconds: float = 5.0
    last_tick_at: Optional[datetime] = None
    last_counter_value: Optional[int] = None
    last_error_message: Optional[str] = None
    ticks: int = 0
    failures: int = 0


# =============================================================================
# Observer Service
# =============================================================================


class LedgerObserver:
    """
    Background task that logs the counter value every ``interval_seconds``.

    Sampling or rendering failures are logged and the timer keeps going.
    ``stop()`` ends the timer; after the first stop, further start/stop calls
    are no-ops.
    """

    def __init__(
        self,
        contract: CounterContract,
        interval_seconds: float = 5.0,
        renderer: Callable[[int], str] = render_counter,
    ):
        self._contract = contract
        self._interval = interval_seconds
        self._renderer = renderer

        # Background task management
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()
        self._running = False
        self._stopped = False

        # State tracking
        self._last_tick_at: Optional[datetime] = None
        self._last_result: Optional[ObserverTickResult] = None
        self._ticks = 0
        self._failures = 0

    @property
    def is_running(self) -> bool:
        """Check if the observer is currently running."""
        return self._running

    async def start(self) -> None:
        """Start the observer background task."""
        if self._running:
            logger.warning("Ledger observer already running")
            return
        if self._stopped:
            logger.warning("Ledger observer was stopped, not restarting")
            return

        logger.info(
            "Starting ledger observer",
            interval_seconds=self._interval,
            contract_address=self._contract.address,
        )
        self._stop_event.clear()
        self._running = True
        OBSERVER_RUNNING.set(1)
        self._task = asyncio.create_task(self._observe_loop())

    async def stop(self, timeout: float = 10.0) -> None:
        """
        Stop the observer background task.

        Args:
            timeout: Max seconds to wait for an in-flight sample to finish
        """
        if not self._running:
            return

        logger.info("Stopping ledger observer")
        self._stopped = True
        self._stop_event.set()

        if self._task:
            try:
                await asyncio.wait_for(self._task, timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("Observer stop timeout, cancelling task")
                self._task.cancel()
                try:
                    await self._task
                except asyncio.CancelledError:
                    pass

        self._running = False
        OBSERVER_RUNNING.set(0)
        logger.info("Ledger observer stopped")

    async def run_once(self) -> ObserverTickResult:
        """Sample and render once (for manual triggering)."""
        return await self._do_tick()

    def get_health(self) -> ObserverHealth:
        """Get current observer health status."""
        last = self._last_result
        return ObserverHealth(
            running=self._running,
            interval_seconds=self._interval,
            last_tick_at=self._last_tick_at,
            last_counter_value=last.counter_value if last else None,
            last_error_message=last.error if last else None,
            ticks=self._ticks,
            failures=self._failures,
        )

    # =========================================================================
    # Internal Methods
    # =========================================================================

    async def _observe_loop(self) -> None:
        """Main loop - runs until stop_event is set."""
        while not self._stop_event.is_set():
            # Wait for next tick (interruptible)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                break
            except asyncio.TimeoutError:
                pass

            result = await self._do_tick()
            self._last_result = result
            self._last_tick_at = datetime.now(timezone.utc)
            self._ticks += 1
            OBSERVER_LAST_TICK_TIMESTAMP.set(self._last_tick_at.timestamp())

    async def _do_tick(self) -> ObserverTickResult:
        """Sample the counter and log its rendering. Never raises."""
        start_time = time.time()
        result = ObserverTickResult()

        try:
            value = await self._contract.read_counter_value()
            result.counter_value = value
            if value is None:
                OBSERVER_TICKS_TOTAL.labels(status="empty").inc()
            else:
                result.rendered = self._renderer(int(value))
                COUNTER_VALUE.set(value)
                OBSERVER_TICKS_TOTAL.labels(status="rendered").inc()
                logger.info(
                    "ledger_state",
                    counter_value=value,
                    rendered="\n" + result.rendered + "\n",
                )
        except Exception as e:
            result.error = str(e) or e.__class__.__name__
            self._failures += 1
            OBSERVER_TICKS_TOTAL.labels(status="failure").inc()
            logger.exception("Error logging ledger state", error=result.error)

        result.duration_ms = int((time.time() - start_time) * 1000)
        return result
