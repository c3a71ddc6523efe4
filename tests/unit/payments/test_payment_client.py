"""Tests for the payment service HTTP client."""

import httpx
import pytest

from counter_agent.exceptions import PaymentLookupError, PaymentServiceUnavailable
from counter_agent.payments.client import PaymentServiceClient


def make_client(handler) -> PaymentServiceClient:
    transport = httpx.MockTransport(handler)
    return PaymentServiceClient(
        base_url="https://payments.test/api/v1/",
        api_key="secret-token",
        client=httpx.AsyncClient(transport=transport),
    )


class TestGetPaymentStatus:
    @pytest.mark.asyncio
    async def test_reads_nested_status(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["token"] = request.headers.get("token")
            return httpx.Response(200, json={"data": {"data": {"status": "Success"}}})

        client = make_client(handler)
        status = await client.get_payment_status("pay-1")

        assert status == "Success"
        assert seen["url"] == "https://payments.test/api/v1/payment?paymentId=pay-1"
        assert seen["token"] == "secret-token"

    @pytest.mark.asyncio
    async def test_missing_status_returns_none(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": {}}))
        assert await client.get_payment_status("pay-1") is None

    @pytest.mark.asyncio
    async def test_non_object_body_returns_none(self):
        client = make_client(lambda request: httpx.Response(200, json=["Success"]))
        assert await client.get_payment_status("pay-1") is None

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        client = make_client(lambda request: httpx.Response(503))
        with pytest.raises(PaymentServiceUnavailable):
            await client.get_payment_status("pay-1")

    @pytest.mark.asyncio
    async def test_network_error_is_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(PaymentServiceUnavailable):
            await client.get_payment_status("pay-1")

    @pytest.mark.asyncio
    async def test_client_error_is_lookup_error(self):
        client = make_client(lambda request: httpx.Response(401))
        with pytest.raises(PaymentLookupError, match="401"):
            await client.get_payment_status("pay-1")

    @pytest.mark.asyncio
    async def test_invalid_json_is_lookup_error(self):
        client = make_client(lambda request: httpx.Response(200, content=b"not json"))
        with pytest.raises(PaymentLookupError):
            await client.get_payment_status("pay-1")

    @pytest.mark.asyncio
    async def test_no_token_header_without_api_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["has_token"] = "token" in request.headers
            return httpx.Response(200, json={"data": {"data": {"status": "Pending"}}})

        client = PaymentServiceClient(
            base_url="https://payments.test/api/v1",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )
        assert await client.get_payment_status("pay-1") == "Pending"
        assert seen["has_token"] is False


class TestClose:
    @pytest.mark.asyncio
    async def test_borrowed_client_left_open(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = PaymentServiceClient(base_url="https://payments.test", client=http)
        await client.close()
        assert not http.is_closed
        await http.aclose()
