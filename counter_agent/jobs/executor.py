"""Job executor - performs the unit of work for a paid job."""

from dataclasses import dataclass

import structlog

from counter_agent.jobs.models import Job
from counter_agent.jobs.types import UNKNOWN_ERROR_RESULT
from counter_agent.ledger.base import CounterContract

logger = structlog.get_logger(__name__)


@dataclass
class ExecutionResult:
    """Outcome of a single increment: tx id on success, error message otherwise."""

    ok: bool
    value: str


class JobExecutor:
    """Runs the counter increment exactly once per confirmed job. No retries."""

    def __init__(self, contract: CounterContract):
        self._contract = contract

    async def execute(self, job: Job) -> ExecutionResult:
        log = logger.bind(job_id=job.job_id)
        log.info("increment_started", contract_address=self._contract.address)
        try:
            tx_id = await self._contract.increment()
        except Exception as e:
            message = str(e) or UNKNOWN_ERROR_RESULT
            log.error("increment_failed", error=message, error_type=type(e).__name__)
            return ExecutionResult(ok=False, value=message)

        log.info("increment_succeeded", tx_id=tx_id)
        return ExecutionResult(ok=True, value=tx_id)
