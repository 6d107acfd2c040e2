"""Unit tests for the NOWPayments client using a mocked HTTP transport."""

import json
from decimal import Decimal

import httpx
import pytest

from advancia_pay.core.errors import PaymentProviderError, ServiceNotConfiguredError
from advancia_pay.payments.nowpayments import NOWPaymentsClient
from advancia_pay.server.core.config import NOWPaymentsConfig

pytestmark = pytest.mark.asyncio


def _config(**overrides) -> NOWPaymentsConfig:
    values = {"api_key": "np-key", "ipn_secret": "ipn", "base_url": "http://mock-nowpayments/v1"}
    values.update(overrides)
    return NOWPaymentsConfig(**values)


def _client(handler, **overrides) -> NOWPaymentsClient:
    return NOWPaymentsClient(_config(**overrides), transport=httpx.MockTransport(handler))


async def test_create_payment_sends_expected_body():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["api_key"] = request.headers["x-api-key"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(201, json={"payment_id": 42, "pay_address": "addr", "payment_status": "waiting"})

    result = await _client(handler).create_payment(
        price_amount=Decimal("25.50"),
        pay_currency="BTC",
        order_id="order-1",
        order_description="deposit",
        ipn_callback_url="http://localhost:4000/api/webhooks/nowpayments",
    )

    assert result["payment_id"] == 42
    assert seen["path"] == "/v1/payment"
    assert seen["api_key"] == "np-key"
    assert seen["body"]["price_amount"] == 25.5
    assert seen["body"]["pay_currency"] == "btc"
    assert seen["body"]["price_currency"] == "usd"
    assert seen["body"]["order_id"] == "order-1"


async def test_get_currencies_and_estimate():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/currencies"):
            return httpx.Response(200, json={"currencies": ["btc", "eth"]})
        assert request.url.params["currency_to"] == "btc"
        return httpx.Response(200, json={"estimated_amount": "0.0004"})

    client = _client(handler)
    assert await client.get_currencies() == ["btc", "eth"]
    estimate = await client.get_estimate(Decimal("10"), "USD", "BTC")
    assert estimate == {"estimated_amount": "0.0004"}


@pytest.mark.parametrize(
    "status,expected_status,message",
    [
        (429, 429, "Rate limit exceeded. Please try again later."),
        (500, 503, "NOWPayments service temporarily unavailable."),
        (503, 503, "NOWPayments service temporarily unavailable."),
    ],
)
async def test_provider_failures_map_to_status(status, expected_status, message):
    client = _client(lambda request: httpx.Response(status, json={"message": "nope"}))
    with pytest.raises(PaymentProviderError) as exc_info:
        await client.get_payment_status("1")
    assert exc_info.value.status_code == expected_status
    assert exc_info.value.message == message


async def test_client_error_includes_provider_message():
    client = _client(lambda request: httpx.Response(400, json={"message": "amountTo is too small"}))
    with pytest.raises(PaymentProviderError) as exc_info:
        await client.get_estimate(Decimal("0.01"), "usd", "btc")
    assert exc_info.value.status_code == 502
    assert "amountTo is too small" in exc_info.value.message


async def test_timeout_maps_to_504():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(PaymentProviderError) as exc_info:
        await _client(handler).get_currencies()
    assert exc_info.value.status_code == 504


async def test_missing_api_key():
    client = _client(lambda request: httpx.Response(200, json={}), api_key=None)
    assert client.is_configured is False
    with pytest.raises(ServiceNotConfiguredError):
        await client.get_currencies()


async def test_payment_url():
    client = NOWPaymentsClient(_config())
    assert client.payment_url("123") == "https://nowpayments.io/payment/?iid=123"
