"""
NOWPayments API client.

Thin async wrapper over the NOWPayments REST API used for crypto deposits.
Provider failures surface as :class:`PaymentProviderError` with the HTTP status
the API should answer with: 429 when NOWPayments rate limits us, 503 when it is
down, 502 for anything else it rejects.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import httpx

from advancia_pay.core.errors import PaymentProviderError, ServiceNotConfiguredError
from advancia_pay.core.logging_config import get_logger
from advancia_pay.server.core.config import NOWPaymentsConfig

logger = get_logger(__name__)

PROVIDER = "nowpayments"
ESTIMATE_TIMEOUT = 15.0
LOOKUP_TIMEOUT = 15.0


class NOWPaymentsClient:
    """Client for the NOWPayments v1 API."""

    def __init__(self, config: NOWPaymentsConfig, *, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.config = config
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key and self.config.ipn_secret)

    def payment_url(self, invoice_id: str) -> str:
        return f"{self.config.checkout_url}?iid={invoice_id}"

    async def create_payment(
        self,
        *,
        price_amount: Decimal,
        pay_currency: str,
        order_id: str,
        order_description: str,
        ipn_callback_url: str,
        price_currency: str = "usd",
    ) -> dict[str, Any]:
        """Create a payment and return the provider response (payment_id, pay_address, pay_amount...)."""
        body = {
            "price_amount": float(price_amount),
            "price_currency": price_currency.lower(),
            "pay_currency": pay_currency.lower(),
            "order_id": order_id,
            "order_description": order_description,
            "ipn_callback_url": ipn_callback_url,
        }
        return await self._request("POST", "/payment", json=body, timeout=self.config.timeout)

    async def get_payment_status(self, payment_id: str) -> dict[str, Any]:
        return await self._request("GET", f"/payment/{payment_id}", timeout=LOOKUP_TIMEOUT)

    async def get_currencies(self) -> list[str]:
        data = await self._request("GET", "/currencies", timeout=LOOKUP_TIMEOUT)
        return list(data.get("currencies", []))

    async def get_estimate(self, amount: Decimal, currency_from: str, currency_to: str) -> dict[str, Any]:
        params = {"amount": str(amount), "currency_from": currency_from.lower(), "currency_to": currency_to.lower()}
        return await self._request("GET", "/estimate", params=params, timeout=ESTIMATE_TIMEOUT)

    async def _request(self, method: str, path: str, *, timeout: float, **kwargs: Any) -> dict[str, Any]:
        if not self.config.api_key:
            raise ServiceNotConfiguredError("NOWPayments is not configured")

        headers = {"x-api-key": self.config.api_key, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                base_url=self.config.base_url, headers=headers, timeout=timeout, transport=self._transport
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            logger.error(f"NOWPayments {method} {path} timed out: {e}")
            raise PaymentProviderError(PROVIDER, "NOWPayments request timed out.", status_code=504) from e
        except httpx.HTTPError as e:
            logger.error(f"NOWPayments {method} {path} failed: {e}")
            raise PaymentProviderError(PROVIDER, "NOWPayments service temporarily unavailable.", status_code=503) from e

        if response.status_code == 429:
            raise PaymentProviderError(PROVIDER, "Rate limit exceeded. Please try again later.", status_code=429)
        if response.status_code >= 500:
            raise PaymentProviderError(PROVIDER, "NOWPayments service temporarily unavailable.", status_code=503)
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning(f"NOWPayments rejected {method} {path}: {response.status_code} {message}")
            raise PaymentProviderError(PROVIDER, f"NOWPayments error: {message}")

        return response.json()


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data)
    return str(data)
