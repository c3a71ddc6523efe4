"""Payment confirmation polling.

``poll_until`` is a generic bounded poll: wait, check, repeat until the check
succeeds, the deadline passes, or the check fails in a way that retrying
cannot fix. ``PaymentConfirmationPoller`` applies it to one payment id.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

import structlog
from prometheus_client import Counter

from counter_agent.config import Settings
from counter_agent.exceptions import PaymentServiceUnavailable
from counter_agent.payments.client import PaymentServiceClient

logger = structlog.get_logger(__name__)


PAYMENT_POLL_OUTCOMES_TOTAL = Counter(
    "counter_agent_payment_poll_outcomes_total",
    "Payment confirmation polls by outcome",
    ["outcome"],  # confirmed, timed_out, errored
)
PAYMENT_CHECKS_TOTAL = Counter(
    "counter_agent_payment_checks_total",
    "Individual payment status queries",
    ["status"],  # confirmed, pending, unavailable, error
)


class PollOutcome(str, Enum):
    """How a bounded poll ended."""

    CONFIRMED = "confirmed"
    TIMED_OUT = "timed_out"
    ERRORED = "errored"


@dataclass
class PollResult:
    """Result of a bounded poll."""

    outcome: PollOutcome
    attempts: int = 0
    elapsed_seconds: float = 0.0
    error: Optional[str] = None

    @property
    def confirmed(self) -> bool:
        return self.outcome is PollOutcome.CONFIRMED


async def poll_until(
    check: Callable[[], Awaitable[bool]],
    interval: float,
    timeout: float,
    transient: tuple[type[BaseException], ...] = (),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> PollResult:
    """
    Call ``check`` every ``interval`` seconds until it returns True.

    The first check happens one interval after the call; no check starts once
    ``timeout`` seconds have elapsed.

    Args:
        check: Async predicate, True means done
        interval: Seconds to wait before each check
        timeout: Deadline in seconds, measured from the call
        transient: Exception types treated as "not yet", polling continues
        sleep: Awaitable sleep (injectable for tests)
        clock: Monotonic clock (injectable for tests)

    Returns:
        PollResult with CONFIRMED, TIMED_OUT, or ERRORED (non-transient
        exception from ``check``, message in ``error``)
    """
    start = clock()
    attempts = 0

    while clock() - start < timeout:
        remaining = timeout - (clock() - start)
        await sleep(min(interval, remaining))
        if clock() - start >= timeout:
            break
        attempts += 1
        try:
            if await check():
                return PollResult(
                    outcome=PollOutcome.CONFIRMED,
                    attempts=attempts,
                    elapsed_seconds=clock() - start,
                )
        except transient as e:
            logger.warning("poll_check_transient_failure", attempt=attempts, error=str(e))
        except Exception as e:
            return PollResult(
                outcome=PollOutcome.ERRORED,
                attempts=attempts,
                elapsed_seconds=clock() - start,
                error=str(e) or e.__class__.__name__,
            )

    return PollResult(
        outcome=PollOutcome.TIMED_OUT,
        attempts=attempts,
        elapsed_seconds=clock() - start,
    )


class PaymentConfirmationPoller:
    """Waits for the payment service to report a payment as settled."""

    def __init__(
        self,
        client: PaymentServiceClient,
        interval_seconds: float = 5.0,
        timeout_seconds: float = 120.0,
        success_status: str = "Success",
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._client = client
        self.interval_seconds = interval_seconds
        self.timeout_seconds = timeout_seconds
        self.success_status = success_status
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls, client: PaymentServiceClient, settings: Settings
    ) -> "PaymentConfirmationPoller":
        return cls(
            client,
            interval_seconds=settings.payment_poll_interval_seconds,
            timeout_seconds=settings.payment_poll_timeout_seconds,
            success_status=settings.payment_success_status,
        )

    async def wait_for_confirmation(self, payment_id: str) -> PollResult:
        """Poll until the payment is confirmed or the deadline passes."""
        log = logger.bind(payment_id=payment_id)
        log.info(
            "payment_poll_started",
            interval_seconds=self.interval_seconds,
            timeout_seconds=self.timeout_seconds,
        )

        async def _is_confirmed() -> bool:
            try:
                status = await self._client.get_payment_status(payment_id)
            except PaymentServiceUnavailable:
                PAYMENT_CHECKS_TOTAL.labels(status="unavailable").inc()
                raise
            except Exception:
                PAYMENT_CHECKS_TOTAL.labels(status="error").inc()
                raise
            confirmed = status == self.success_status
            PAYMENT_CHECKS_TOTAL.labels(
                status="confirmed" if confirmed else "pending"
            ).inc()
            log.debug("payment_checked", payment_status=status)
            return confirmed

        result = await poll_until(
            _is_confirmed,
            interval=self.interval_seconds,
            timeout=self.timeout_seconds,
            transient=(PaymentServiceUnavailable,),
            sleep=self._sleep,
        )

        PAYMENT_POLL_OUTCOMES_TOTAL.labels(outcome=result.outcome.value).inc()
        log.info(
            "payment_poll_finished",
            outcome=result.outcome.value,
            attempts=result.attempts,
            elapsed_seconds=round(result.elapsed_seconds, 2),
            error=result.error,
        )
        return result
