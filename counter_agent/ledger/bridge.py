"""Ledger bridge client.

The ledger SDK runs in a sidecar process (the "ledger bridge") that exposes
wallet and counter-contract operations over HTTP. This module is a thin
async client for it.

Bridge API:
    POST   /wallets                         {seed} -> {wallet_id}
    DELETE /wallets/{wallet_id}
    POST   /contracts/join                  {wallet_id, contract_address} -> {contract_address}
    POST   /contracts/{address}/increment   {wallet_id} -> {txId}
    GET    /contracts/{address}/state       -> {counterValue}
"""

from typing import Any, Optional

import httpx
import structlog

from counter_agent.config import Settings
from counter_agent.exceptions import LedgerBridgeError

logger = structlog.get_logger(__name__)


class LedgerBridgeClient:
    """LedgerProvider backed by the ledger bridge HTTP API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 300.0,
        network_id: str = "Preprod",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.network_id = network_id
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "LedgerBridgeClient":
        return cls(
            base_url=settings.ledger_bridge_url,
            timeout=settings.ledger_bridge_timeout,
            network_id=settings.network_id,
        )

    async def build_wallet(self, seed: str) -> "BridgeWallet":
        data = await self._request(
            "POST", "/wallets", json={"seed": seed, "network_id": self.network_id}
        )
        wallet_id = data.get("wallet_id")
        if not wallet_id:
            raise LedgerBridgeError("Ledger bridge did not return a wallet_id")
        logger.info("wallet_ready", wallet_id=wallet_id, network=self.network_id)
        return BridgeWallet(self, str(wallet_id))

    async def join_contract(
        self, wallet: "BridgeWallet", address: str
    ) -> "BridgeCounterContract":
        data = await self._request(
            "POST",
            "/contracts/join",
            json={"wallet_id": wallet.wallet_id, "contract_address": address},
        )
        joined = str(data.get("contract_address") or address)
        logger.info("contract_joined", contract_address=joined)
        return BridgeCounterContract(self, wallet, joined)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(
        self, method: str, path: str, json: Optional[dict[str, Any]] = None
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method, f"{self.base_url}{path}", json=json
            )
        except httpx.HTTPError as e:
            raise LedgerBridgeError(
                f"Ledger bridge request failed: {e.__class__.__name__}: {e}"
            ) from e

        if response.status_code >= 400:
            raise LedgerBridgeError(
                _error_message(response), status_code=response.status_code
            )
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise LedgerBridgeError("Ledger bridge returned invalid JSON") from e
        return data if isinstance(data, dict) else {}


class BridgeWallet:
    """Wallet held by the ledger bridge."""

    def __init__(self, bridge: LedgerBridgeClient, wallet_id: str):
        self._bridge = bridge
        self.wallet_id = wallet_id

    async def close(self) -> None:
        await self._bridge._request("DELETE", f"/wallets/{self.wallet_id}")
        logger.info("wallet_closed", wallet_id=self.wallet_id)


class BridgeCounterContract:
    """Counter contract joined through the ledger bridge."""

    def __init__(self, bridge: LedgerBridgeClient, wallet: BridgeWallet, address: str):
        self._bridge = bridge
        self._wallet = wallet
        self._address = address

    @property
    def address(self) -> str:
        return self._address

    async def increment(self) -> str:
        data = await self._bridge._request(
            "POST",
            f"/contracts/{self._address}/increment",
            json={"wallet_id": self._wallet.wallet_id},
        )
        tx_id = data.get("txId")
        if not tx_id:
            raise LedgerBridgeError("Increment returned no transaction id")
        return str(tx_id)

    async def read_counter_value(self) -> Optional[int]:
        data = await self._bridge._request("GET", f"/contracts/{self._address}/state")
        value = data.get("counterValue")
        if value is None:
            return None
        return int(value)


def _error_message(response: httpx.Response) -> str:
    """Best-effort error text from a bridge error response."""
    try:
        data = response.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Ledger bridge returned {response.status_code}"
