"""Job lifecycle orchestration.

One asyncio task per accepted job:

    AwaitingPayment --(payment confirmed)--> Running --> Completed | Failed
    AwaitingPayment --(timeout / lookup error)--> Failed

Errors are recovered into job state; nothing propagates to the HTTP layer,
which has already responded by the time the task runs.
"""

import asyncio
from typing import Any, Optional

import structlog
from prometheus_client import Counter, Gauge

from counter_agent.config import Settings
from counter_agent.exceptions import ShuttingDownError
from counter_agent.jobs.executor import JobExecutor
from counter_agent.jobs.models import Job
from counter_agent.jobs.registry import JobRegistry
from counter_agent.jobs.types import (
    PAYMENT_TIMEOUT_RESULT,
    SHUTDOWN_RESULT,
    UNKNOWN_ERROR_RESULT,
    JobStatus,
)
from counter_agent.payments.poller import PaymentConfirmationPoller, PollOutcome

logger = structlog.get_logger(__name__)


JOBS_CREATED_TOTAL = Counter(
    "counter_agent_jobs_created_total",
    "Jobs accepted by /start_job",
)
JOBS_FINISHED_TOTAL = Counter(
    "counter_agent_jobs_finished_total",
    "Jobs reaching a terminal status",
    ["status"],
)
JOBS_INFLIGHT = Gauge(
    "counter_agent_jobs_inflight",
    "Job lifecycle tasks currently running",
)


class JobLifecycleManager:
    """Creates jobs and drives each one through its lifecycle task."""

    def __init__(
        self,
        registry: JobRegistry,
        poller: PaymentConfirmationPoller,
        executor: JobExecutor,
        settings: Settings,
    ):
        self._registry = registry
        self._poller = poller
        self._executor = executor
        self._settings = settings
        self._tasks: dict[str, asyncio.Task] = {}
        self._started: set[str] = set()
        self._closing = False

    @property
    def registry(self) -> JobRegistry:
        return self._registry

    @property
    def inflight(self) -> int:
        """Number of lifecycle tasks not yet finished."""
        return len(self._tasks)

    async def submit(self, input_data: list[dict[str, Any]]) -> Job:
        """Register a new job and schedule its lifecycle task.

        Returns as soon as the job is recorded; the task runs in the background.
        """
        if self._closing:
            raise ShuttingDownError("Service is shutting down")

        job = Job.new(
            input_data,
            blockchain_identifier=self._settings.blockchain_identifier,
            unlock_offset=self._settings.unlock_time_offset_seconds,
            submit_result_offset=self._settings.submit_result_time_offset_seconds,
            external_dispute_offset=self._settings.external_dispute_unlock_time_offset_seconds,
        )
        await self._registry.create(job)
        JOBS_CREATED_TOTAL.inc()
        self.start_lifecycle(job)
        return job

    def start_lifecycle(self, job: Job) -> asyncio.Task:
        """Spawn the lifecycle task for ``job``. At most once per job id."""
        if job.job_id in self._started:
            raise RuntimeError(f"Lifecycle already started for job {job.job_id}")
        self._started.add(job.job_id)

        task = asyncio.create_task(self._run(job), name=f"job-{job.job_id}")
        self._tasks[job.job_id] = task
        JOBS_INFLIGHT.inc()
        task.add_done_callback(lambda _t, job_id=job.job_id: self._forget(job_id))
        return task

    async def shutdown(self, timeout: Optional[float] = None) -> int:
        """
        Cancel outstanding lifecycle tasks and fail their jobs.

        Jobs still awaiting payment or running are marked Failed with a
        shutdown reason. Returns the number of tasks cancelled.
        """
        self._closing = True
        pending = dict(self._tasks)
        if not pending:
            return 0

        logger.info("Cancelling job lifecycle tasks", count=len(pending))
        for task in pending.values():
            task.cancel()

        wait_timeout = timeout if timeout is not None else self._settings.job_cancel_timeout_seconds
        _, not_done = await asyncio.wait(list(pending.values()), timeout=wait_timeout)
        if not_done:
            logger.warning("Job tasks did not finish cancelling", count=len(not_done))

        for job_id in pending:
            if await self._registry.transition(job_id, JobStatus.FAILED, SHUTDOWN_RESULT):
                JOBS_FINISHED_TOTAL.labels(status=JobStatus.FAILED.value).inc()

        return len(pending)

    # =========================================================================
    # Internal Methods
    # =========================================================================

    def _forget(self, job_id: str) -> None:
        if self._tasks.pop(job_id, None) is not None:
            JOBS_INFLIGHT.dec()

    async def _finish(self, job_id: str, status: JobStatus, result: str) -> None:
        if await self._registry.transition(job_id, status, result):
            JOBS_FINISHED_TOTAL.labels(status=status.value).inc()

    async def _run(self, job: Job) -> None:
        """Lifecycle task body: payment gate, then one increment."""
        log = logger.bind(job_id=job.job_id, payment_id=job.payment_id)
        try:
            poll = await self._poller.wait_for_confirmation(job.payment_id)

            if poll.outcome is PollOutcome.TIMED_OUT:
                log.info("payment_timeout")
                await self._finish(job.job_id, JobStatus.FAILED, PAYMENT_TIMEOUT_RESULT)
                return
            if poll.outcome is PollOutcome.ERRORED:
                log.warning("payment_check_failed", error=poll.error)
                await self._finish(
                    job.job_id,
                    JobStatus.FAILED,
                    f"Payment check failed: {poll.error}",
                )
                return

            if not await self._registry.transition(job.job_id, JobStatus.RUNNING):
                # Already terminal (e.g. failed by shutdown); nothing to execute
                return

            execution = await self._executor.execute(job)
            if execution.ok:
                await self._finish(job.job_id, JobStatus.COMPLETED, execution.value)
            else:
                await self._finish(job.job_id, JobStatus.FAILED, execution.value)

        except asyncio.CancelledError:
            log.info("job_lifecycle_cancelled")
            raise
        except Exception as e:
            log.exception("job_lifecycle_error", error=str(e))
            await self._finish(job.job_id, JobStatus.FAILED, str(e) or UNKNOWN_ERROR_RESULT)
