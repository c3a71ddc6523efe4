"""Payment service access and confirmation polling."""

from counter_agent.payments.client import PaymentServiceClient
from counter_agent.payments.poller import (
    PaymentConfirmationPoller,
    PollOutcome,
    PollResult,
    poll_until,
)

__all__ = [
    "PaymentServiceClient",
    "PaymentConfirmationPoller",
    "PollOutcome",
    "PollResult",
    "poll_until",
]
