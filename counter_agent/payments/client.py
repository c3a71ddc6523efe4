"""Payment service HTTP client."""

from typing import Any, Optional

import httpx
import structlog

from counter_agent.config import Settings
from counter_agent.exceptions import PaymentLookupError, PaymentServiceUnavailable

logger = structlog.get_logger(__name__)


class PaymentServiceClient:
    """Reads payment status from the payment service.

    Each call is a point-in-time read. Network failures and 5xx responses
    raise PaymentServiceUnavailable so pollers can treat them as "not yet
    confirmed"; anything else that prevents reading a status raises
    PaymentLookupError.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        timeout: float = 10.0,
        verify: bool = True,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout, verify=verify)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PaymentServiceClient":
        return cls(
            base_url=settings.payment_service_url,
            api_key=settings.payment_api_key,
            timeout=settings.payment_request_timeout,
            verify=settings.payment_verify_tls,
        )

    async def get_payment_status(self, payment_id: str) -> Optional[str]:
        """Return the payment's current status string, or None if not reported."""
        headers = {"token": self._api_key} if self._api_key else {}
        try:
            response = await self._client.get(
                f"{self.base_url}/payment",
                params={"paymentId": payment_id},
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise PaymentServiceUnavailable(
                f"Payment service request failed: {e.__class__.__name__}: {e}"
            ) from e

        if response.status_code >= 500:
            raise PaymentServiceUnavailable(
                f"Payment service returned {response.status_code}"
            )
        if response.status_code >= 400:
            raise PaymentLookupError(
                f"Payment service rejected lookup with {response.status_code}"
            )

        try:
            body: Any = response.json()
        except ValueError as e:
            raise PaymentLookupError("Payment service returned invalid JSON") from e

        status = _extract_status(body)
        logger.debug("payment_status_read", payment_id=payment_id, status=status)
        return status

    async def close(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()


def _extract_status(body: Any) -> Optional[str]:
    """Pull ``data.data.status`` out of a payment service response."""
    if not isinstance(body, dict):
        return None
    outer = body.get("data")
    if not isinstance(outer, dict):
        return None
    inner = outer.get("data")
    if not isinstance(inner, dict):
        return None
    status = inner.get("status")
    return str(status) if status is not None else None
