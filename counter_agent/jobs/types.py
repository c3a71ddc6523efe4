"""Job system type definitions."""

from enum import Enum


class JobStatus(str, Enum):
    """Job lifecycle statuses (values are the wire format of GET /status)."""

    AWAITING_PAYMENT = "AwaitingPayment"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"

    @property
    def is_terminal(self) -> bool:
        """Check if this status is terminal (job won't change)."""
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)

    def can_transition_to(self, target: "JobStatus") -> bool:
        """Check whether moving from this status to ``target`` is allowed."""
        return target in ALLOWED_TRANSITIONS[self]


ALLOWED_TRANSITIONS: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.AWAITING_PAYMENT: frozenset({JobStatus.RUNNING, JobStatus.FAILED}),
    JobStatus.RUNNING: frozenset({JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


# Failure results recorded on the job
PAYMENT_TIMEOUT_RESULT = "Payment timeout"
SHUTDOWN_RESULT = "Service shutting down"
UNKNOWN_ERROR_RESULT = "Unknown error"

SUPPORTED_TASK = "increment"
