"""Root conftest for test suite.

Provides in-memory fakes for the ledger and payment collaborators.
"""

import asyncio
from typing import Optional

import pytest

from counter_agent.config import Settings


# =============================================================================
# Fakes
# =============================================================================


class FakeWallet:
    """Wallet that records close() calls."""

    def __init__(self, fail_close: bool = False):
        self.close_calls = 0
        self.fail_close = fail_close

    async def close(self) -> None:
        self.close_calls += 1
        if self.fail_close:
            raise RuntimeError("wallet close failed")


class FakeContract:
    """Counter contract held in memory."""

    def __init__(self, address: str = "0200abc", value: Optional[int] = 0):
        self._address = address
        self.value = value
        self.increment_calls = 0
        self.read_calls = 0
        self.increment_error: Optional[Exception] = None
        self.read_error: Optional[Exception] = None
        # When set, increment() blocks until the event fires
        self.increment_gate: Optional[asyncio.Event] = None

    @property
    def address(self) -> str:
        return self._address

    async def increment(self) -> str:
        self.increment_calls += 1
        if self.increment_gate is not None:
            await self.increment_gate.wait()
        if self.increment_error is not None:
            raise self.increment_error
        self.value = (self.value or 0) + 1
        return f"tx-{self.increment_calls}"

    async def read_counter_value(self) -> Optional[int]:
        self.read_calls += 1
        if self.read_error is not None:
            raise self.read_error
        return self.value


class FakeLedgerProvider:
    """LedgerProvider returning a FakeWallet and FakeContract."""

    def __init__(self):
        self.wallet = FakeWallet()
        self.contract = FakeContract()
        self.build_error: Optional[Exception] = None
        self.join_error: Optional[Exception] = None
        self.close_calls = 0

    async def build_wallet(self, seed: str) -> FakeWallet:
        if self.build_error is not None:
            raise self.build_error
        return self.wallet

    async def join_contract(self, wallet: FakeWallet, address: str) -> FakeContract:
        if self.join_error is not None:
            raise self.join_error
        return self.contract

    async def close(self) -> None:
        self.close_calls += 1


class FakePaymentClient:
    """Payment service returning a fixed status per payment id."""

    def __init__(self, default_status: Optional[str] = None):
        self.default_status = default_status
        self.statuses: dict[str, Optional[str]] = {}
        self.error: Optional[Exception] = None
        self.calls: list[str] = []
        self.close_calls = 0

    async def get_payment_status(self, payment_id: str) -> Optional[str]:
        self.calls.append(payment_id)
        if self.error is not None:
            raise self.error
        return self.statuses.get(payment_id, self.default_status)

    async def close(self) -> None:
        self.close_calls += 1


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def settings() -> Settings:
    """Settings with fast timers and a configured wallet/contract."""
    return Settings(
        wallet_seed="a664514b5774b0a4567dcb700738c853be593590606ea471fe1146100d2f666c",
        contract_address="0200abc",
        payment_api_key="test-token",
        payment_poll_interval_seconds=0.01,
        payment_poll_timeout_seconds=0.5,
        ledger_observer_interval_seconds=0.01,
        observer_stop_timeout_seconds=1.0,
        job_cancel_timeout_seconds=1.0,
        sentry_dsn=None,
    )


@pytest.fixture
def fake_contract() -> FakeContract:
    return FakeContract()


@pytest.fixture
def fake_ledger() -> FakeLedgerProvider:
    return FakeLedgerProvider()


@pytest.fixture
def fake_payments() -> FakePaymentClient:
    return FakePaymentClient()
