"""Tests for the shutdown coordinator."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from counter_agent.core.shutdown import ShutdownCoordinator


class RecordingPart:
    """Stands in for observer/jobs/wallet and records call order."""

    def __init__(self, name: str, calls: list, error: Exception = None):
        self.name = name
        self.calls = calls
        self.error = error

    async def stop(self, timeout: float = 10.0) -> None:
        self.calls.append(f"{self.name}.stop")
        if self.error:
            raise self.error

    async def shutdown(self, timeout: float = 10.0) -> int:
        self.calls.append(f"{self.name}.shutdown")
        if self.error:
            raise self.error
        return 0

    async def close(self) -> None:
        self.calls.append(f"{self.name}.close")
        if self.error:
            raise self.error


@pytest.fixture
def coordinator(settings):
    return ShutdownCoordinator(settings)


class TestShutdownCoordinator:
    @pytest.mark.asyncio
    async def test_releases_in_order(self, coordinator):
        calls: list[str] = []
        coordinator.observer = RecordingPart("observer", calls)
        coordinator.jobs = RecordingPart("jobs", calls)
        coordinator.wallet = RecordingPart("wallet", calls)
        coordinator.add_closer("bridge", RecordingPart("bridge", calls).close)
        coordinator.add_closer("payments", RecordingPart("payments", calls).close)

        assert await coordinator.shutdown() is True

        assert calls == [
            "observer.stop",
            "jobs.shutdown",
            "wallet.close",
            "payments.close",
            "bridge.close",
        ]
        assert coordinator.is_shut_down

    @pytest.mark.asyncio
    async def test_second_call_is_noop(self, coordinator, fake_ledger):
        coordinator.wallet = fake_ledger.wallet

        assert await coordinator.shutdown() is True
        assert await coordinator.shutdown() is False
        assert await coordinator.abort() is False

        assert fake_ledger.wallet.close_calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_calls_release_once(self, coordinator, fake_ledger):
        coordinator.wallet = fake_ledger.wallet

        results = await asyncio.gather(
            coordinator.shutdown(), coordinator.abort(), coordinator.shutdown()
        )

        assert sorted(results) == [False, False, True]
        assert fake_ledger.wallet.close_calls == 1

    @pytest.mark.asyncio
    async def test_errors_do_not_stop_release(self, coordinator):
        calls: list[str] = []
        coordinator.observer = RecordingPart("observer", calls, error=RuntimeError("x"))
        coordinator.jobs = RecordingPart("jobs", calls, error=RuntimeError("y"))
        coordinator.wallet = RecordingPart("wallet", calls, error=RuntimeError("z"))
        closer = AsyncMock(side_effect=RuntimeError("closer"))
        coordinator.add_closer("payments", closer)

        assert await coordinator.shutdown() is True

        assert calls == ["observer.stop", "jobs.shutdown", "wallet.close"]
        closer.assert_awaited_once()
        assert coordinator.wallet is None

    @pytest.mark.asyncio
    async def test_nothing_registered(self, coordinator):
        assert await coordinator.abort() is True

    @pytest.mark.asyncio
    async def test_passes_configured_timeouts(self, coordinator, settings):
        observer = AsyncMock()
        jobs = AsyncMock()
        jobs.shutdown.return_value = 2
        coordinator.observer = observer
        coordinator.jobs = jobs

        await coordinator.shutdown()

        observer.stop.assert_awaited_once_with(timeout=settings.observer_stop_timeout_seconds)
        jobs.shutdown.assert_awaited_once_with(timeout=settings.job_cancel_timeout_seconds)
