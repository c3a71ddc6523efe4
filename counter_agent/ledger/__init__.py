"""Ledger collaborators: wallet, counter contract, and the ledger observer."""

from counter_agent.ledger.base import CounterContract, LedgerProvider, Wallet

__all__ = ["CounterContract", "LedgerProvider", "Wallet"]
