"""Interfaces for the ledger collaborators."""

from typing import Optional, Protocol


class Wallet(Protocol):
    """Funding/identity resource. Must be closed exactly once."""

    async def close(self) -> None:
        """Release the wallet."""
        ...


class CounterContract(Protocol):
    """Handle on a deployed counter contract."""

    @property
    def address(self) -> str:
        """Contract address."""
        ...

    async def increment(self) -> str:
        """Submit an increment transaction and return its transaction id."""
        ...

    async def read_counter_value(self) -> Optional[int]:
        """Current counter value from the ledger, None if not yet readable."""
        ...


class LedgerProvider(Protocol):
    """Provisions wallets and attaches to deployed contracts."""

    async def build_wallet(self, seed: str) -> Wallet:
        """Restore a wallet from a seed and wait until it is funded."""
        ...

    async def join_contract(self, wallet: Wallet, address: str) -> CounterContract:
        """Attach to the counter contract at ``address`` using ``wallet``."""
        ...

    async def close(self) -> None:
        """Release provider resources."""
        ...
