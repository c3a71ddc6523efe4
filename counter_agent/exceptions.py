"""Exception hierarchy for the counter agent."""

from typing import Optional


class CounterAgentError(Exception):
    """Base error for the service."""


class JobNotFoundError(CounterAgentError, KeyError):
    """Raised when a job id is not present in the registry."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")

    def __str__(self) -> str:
        return self.args[0]


class DuplicateJobError(CounterAgentError):
    """Raised when a job id is registered twice."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job already exists: {job_id}")


class PaymentServiceError(CounterAgentError):
    """Base error for payment service queries."""


class PaymentServiceUnavailable(PaymentServiceError):
    """Transient failure: network error or 5xx. Polling continues."""


class PaymentLookupError(PaymentServiceError):
    """Non-transient failure, e.g. a rejected token or malformed response."""


class LedgerBridgeError(CounterAgentError):
    """Raised when the ledger bridge rejects or fails a call."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class StartupError(CounterAgentError):
    """Raised when wallet provisioning or contract join fails at startup."""


class ShuttingDownError(CounterAgentError):
    """Raised when a job is submitted after shutdown has begun."""
