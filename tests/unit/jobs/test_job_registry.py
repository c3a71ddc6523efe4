"""Tests for the in-memory job registry."""

import asyncio

import pytest

from counter_agent.exceptions import DuplicateJobError, JobNotFoundError
from counter_agent.jobs.models import Job
from counter_agent.jobs.registry import JobRegistry
from counter_agent.jobs.types import JobStatus


def make_job() -> Job:
    return Job.new([{"key": "task", "value": "increment"}], blockchain_identifier="Cardano")


class TestCreateAndGet:
    @pytest.mark.asyncio
    async def test_job_visible_immediately(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)

        stored = await registry.get(job.job_id)
        assert stored.job_id == job.job_id
        assert stored.status == JobStatus.AWAITING_PAYMENT
        assert job.job_id in registry
        assert len(registry) == 1

    @pytest.mark.asyncio
    async def test_duplicate_create_raises(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)
        with pytest.raises(DuplicateJobError):
            await registry.create(job)

    @pytest.mark.asyncio
    async def test_unknown_job_raises(self):
        registry = JobRegistry()
        with pytest.raises(JobNotFoundError):
            await registry.get("missing")

    @pytest.mark.asyncio
    async def test_get_returns_copy(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)

        snapshot = await registry.get(job.job_id)
        snapshot.status = JobStatus.COMPLETED
        job.status = JobStatus.FAILED

        assert (await registry.get(job.job_id)).status == JobStatus.AWAITING_PAYMENT


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_unknown_raises(self):
        registry = JobRegistry()
        with pytest.raises(JobNotFoundError):
            await registry.update("missing", lambda j: None)

    @pytest.mark.asyncio
    async def test_failed_mutation_leaves_job_untouched(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)

        def _bad(j: Job) -> None:
            j.status = JobStatus.RUNNING
            raise ValueError("boom")

        with pytest.raises(ValueError):
            await registry.update(job.job_id, _bad)
        assert (await registry.get(job.job_id)).status == JobStatus.AWAITING_PAYMENT

    @pytest.mark.asyncio
    async def test_mutation_returning_false_keeps_record(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)
        before = await registry.get(job.job_id)

        def _no_change(j: Job) -> bool:
            j.result = "scratch"
            return False

        snapshot = await registry.update(job.job_id, _no_change)

        assert snapshot.result is None
        after = await registry.get(job.job_id)
        assert after.result is None
        assert after.updated_at == before.updated_at

    @pytest.mark.asyncio
    async def test_concurrent_creates_all_visible(self):
        registry = JobRegistry()
        jobs = [make_job() for _ in range(25)]
        await asyncio.gather(*(registry.create(j) for j in jobs))
        assert len(registry) == 25
        listed = await registry.list_jobs()
        assert {j.job_id for j in listed} == {j.job_id for j in jobs}


class TestTransition:
    @pytest.mark.asyncio
    async def test_happy_path(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)

        assert await registry.transition(job.job_id, JobStatus.RUNNING)
        running = await registry.get(job.job_id)
        assert running.status == JobStatus.RUNNING
        assert running.result is None

        assert await registry.transition(job.job_id, JobStatus.COMPLETED, "tx-1")
        done = await registry.get(job.job_id)
        assert done.status == JobStatus.COMPLETED
        assert done.result == "tx-1"

    @pytest.mark.asyncio
    async def test_awaiting_payment_can_fail_directly(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)

        assert await registry.transition(job.job_id, JobStatus.FAILED, "Payment timeout")
        failed = await registry.get(job.job_id)
        assert failed.status == JobStatus.FAILED
        assert failed.result == "Payment timeout"

    @pytest.mark.asyncio
    async def test_late_signal_for_terminal_job_is_discarded(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)
        await registry.transition(job.job_id, JobStatus.FAILED, "Payment timeout")
        failed_at = (await registry.get(job.job_id)).updated_at

        assert not await registry.transition(job.job_id, JobStatus.RUNNING)
        assert not await registry.transition(job.job_id, JobStatus.COMPLETED, "tx-late")

        final = await registry.get(job.job_id)
        assert final.status == JobStatus.FAILED
        assert final.result == "Payment timeout"
        assert final.updated_at == failed_at

    @pytest.mark.asyncio
    async def test_result_set_once(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)
        await registry.transition(job.job_id, JobStatus.RUNNING)
        await registry.transition(job.job_id, JobStatus.COMPLETED, "tx-1")
        await registry.transition(job.job_id, JobStatus.FAILED, "late error")

        assert (await registry.get(job.job_id)).result == "tx-1"

    @pytest.mark.asyncio
    async def test_concurrent_terminal_signals_only_one_wins(self):
        registry = JobRegistry()
        job = make_job()
        await registry.create(job)
        await registry.transition(job.job_id, JobStatus.RUNNING)

        results = await asyncio.gather(
            registry.transition(job.job_id, JobStatus.COMPLETED, "tx-1"),
            registry.transition(job.job_id, JobStatus.FAILED, "error"),
        )
        assert sorted(results) == [False, True]


class TestCountByStatus:
    @pytest.mark.asyncio
    async def test_counts_include_every_status(self):
        registry = JobRegistry()
        a, b = make_job(), make_job()
        await registry.create(a)
        await registry.create(b)
        await registry.transition(b.job_id, JobStatus.FAILED, "Payment timeout")

        counts = await registry.count_by_status()
        assert counts == {
            "AwaitingPayment": 1,
            "Running": 0,
            "Completed": 0,
            "Failed": 1,
        }
