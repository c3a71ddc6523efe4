"""In-memory job registry.

Single source of truth for job status queries. Entries live for the lifetime
of the process; nothing is ever removed.
"""

import asyncio
import dataclasses
import time
from collections import Counter
from typing import Callable, Optional

import structlog

from counter_agent.exceptions import DuplicateJobError, JobNotFoundError
from counter_agent.jobs.models import Job
from counter_agent.jobs.types import JobStatus

logger = structlog.get_logger(__name__)

# Returning False means "no change": the stored record is left as is
JobMutation = Callable[[Job], Optional[bool]]


class JobRegistry:
    """Concurrency-safe mapping of job id to job record.

    Readers always receive a copy, so a status query sees each mutation only
    after it has been fully applied. Mutations of the same entry are serialized
    by a per-entry lock; different entries never contend.
    """

    def __init__(self):
        self._jobs: dict[str, Job] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._map_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: object) -> bool:
        return job_id in self._jobs

    async def create(self, job: Job) -> None:
        """Register a new job. Raises DuplicateJobError if the id is taken."""
        async with self._map_lock:
            if job.job_id in self._jobs:
                raise DuplicateJobError(job.job_id)
            self._jobs[job.job_id] = dataclasses.replace(job)
            self._locks[job.job_id] = asyncio.Lock()

        logger.info(
            "job_created",
            job_id=job.job_id,
            payment_id=job.payment_id,
            status=job.status.value,
        )

    async def get(self, job_id: str) -> Job:
        """Get a snapshot of a job. Raises JobNotFoundError if unknown."""
        lock = self._locks.get(job_id)
        if lock is None:
            raise JobNotFoundError(job_id)
        async with lock:
            return dataclasses.replace(self._jobs[job_id])

    async def update(self, job_id: str, mutation: JobMutation) -> Job:
        """Apply ``mutation`` to a job atomically and return the new snapshot.

        The mutation runs on a working copy; the stored record is replaced only
        if the mutation returns without raising and does not return False.
        """
        lock = self._locks.get(job_id)
        if lock is None:
            raise JobNotFoundError(job_id)
        async with lock:
            working = dataclasses.replace(self._jobs[job_id])
            if mutation(working) is False:
                return dataclasses.replace(self._jobs[job_id])
            working.updated_at = time.time()
            self._jobs[job_id] = working
            return dataclasses.replace(working)

    async def transition(
        self,
        job_id: str,
        status: JobStatus,
        result: Optional[str] = None,
    ) -> bool:
        """Move a job to ``status`` following the lifecycle state machine.

        Returns False (and leaves the job untouched) when the move is not
        allowed, e.g. a late signal for a job that is already terminal.
        """
        applied = False
        previous: Optional[JobStatus] = None

        def _apply(job: Job) -> bool:
            nonlocal applied, previous
            previous = job.status
            if not job.status.can_transition_to(status):
                return False
            job.status = status
            if status.is_terminal:
                job.result = result
            applied = True
            return True

        await self.update(job_id, _apply)

        if applied:
            logger.info(
                "job_transition",
                job_id=job_id,
                from_status=previous.value if previous else None,
                to_status=status.value,
                result=result if status.is_terminal else None,
            )
        else:
            logger.warning(
                "job_transition_discarded",
                job_id=job_id,
                current_status=previous.value if previous else None,
                requested_status=status.value,
            )
        return applied

    async def list_jobs(self) -> list[Job]:
        """Snapshot of every job, oldest first."""
        async with self._map_lock:
            job_ids = list(self._jobs)
        return [await self.get(job_id) for job_id in job_ids]

    async def count_by_status(self) -> dict[str, int]:
        """Number of jobs per status value."""
        jobs = await self.list_jobs()
        counts = Counter(job.status.value for job in jobs)
        return {status.value: counts.get(status.value, 0) for status in JobStatus}
