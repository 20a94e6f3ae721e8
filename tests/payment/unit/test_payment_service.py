"""
PaymentService Unit Tests

PayPal calls are answered by an httpx.MockTransport, no network needed.
"""

import json
from decimal import Decimal

import httpx
import pytest

import config
from enums.currency import Currency
from exceptions import PaymentLinkException
from services.payment import PaymentService


def paypal_handler(order_response: dict, order_status: int = 201, seen: list | None = None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if request.url.path == "/v1/oauth2/token":
            return httpx.Response(200, json={"access_token": "A21AA-test", "token_type": "Bearer"})
        if request.url.path == "/v2/checkout/orders":
            return httpx.Response(order_status, json=order_response)
        return httpx.Response(404)
    return handler


APPROVED_ORDER = {
    "id": "5O190127TN364715T",
    "status": "CREATED",
    "links": [
        {"href": "https://api-m.sandbox.paypal.com/v2/checkout/orders/5O190127TN364715T", "rel": "self"},
        {"href": "https://www.sandbox.paypal.com/checkoutnow?token=5O190127TN364715T", "rel": "approve"},
    ],
}


@pytest.fixture
def paypal_credentials(monkeypatch):
    monkeypatch.setattr(config, "PAYPAL_CLIENT_ID", "client-id")
    monkeypatch.setattr(config, "PAYPAL_CLIENT_SECRET", "client-secret")


class TestCreatePaymentLink:

    @pytest.mark.asyncio
    async def test_returns_approve_link(self, paypal_credentials):
        seen = []
        transport = httpx.MockTransport(paypal_handler(APPROVED_ORDER, seen=seen))
        async with httpx.AsyncClient(transport=transport, base_url="https://paypal.test") as client:
            payment_link = await PaymentService.create_payment_link(Decimal("146.50"), Currency.USD, 7, client)

        assert payment_link.id == "5O190127TN364715T"
        assert payment_link.link == "https://www.sandbox.paypal.com/checkoutnow?token=5O190127TN364715T"

        order_request = seen[1]
        body = json.loads(order_request.content)
        assert order_request.headers["Authorization"] == "Bearer A21AA-test"
        assert body["intent"] == "CAPTURE"
        assert body["purchase_units"][0]["amount"] == {"currency_code": "USD", "value": "146.50"}
        assert body["purchase_units"][0]["reference_id"] == "7"

    @pytest.mark.asyncio
    async def test_missing_approve_link(self, paypal_credentials):
        response = {"id": "X", "links": [{"href": "https://example.test/self", "rel": "self"}]}
        transport = httpx.MockTransport(paypal_handler(response))
        async with httpx.AsyncClient(transport=transport, base_url="https://paypal.test") as client:
            with pytest.raises(PaymentLinkException) as exc_info:
                await PaymentService.create_payment_link(Decimal("10.00"), Currency.USD, 1, client)

        assert "approval link" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_error_status(self, paypal_credentials):
        transport = httpx.MockTransport(paypal_handler({"name": "UNPROCESSABLE_ENTITY"}, order_status=422))
        async with httpx.AsyncClient(transport=transport, base_url="https://paypal.test") as client:
            with pytest.raises(PaymentLinkException):
                await PaymentService.create_payment_link(Decimal("10.00"), Currency.USD, 1, client)

    @pytest.mark.asyncio
    async def test_unreachable(self, paypal_credentials):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="https://paypal.test") as client:
            with pytest.raises(PaymentLinkException):
                await PaymentService.create_payment_link(Decimal("10.00"), Currency.USD, 1, client)

    @pytest.mark.asyncio
    async def test_missing_credentials(self, monkeypatch):
        monkeypatch.setattr(config, "PAYPAL_CLIENT_ID", None)
        transport = httpx.MockTransport(paypal_handler(APPROVED_ORDER))
        async with httpx.AsyncClient(transport=transport, base_url="https://paypal.test") as client:
            with pytest.raises(PaymentLinkException):
                await PaymentService.create_payment_link(Decimal("10.00"), Currency.USD, 1, client)
