"""
Stripe gateway.

Wraps the official ``stripe`` SDK for the few operations the ledger needs:
webhook verification, customer and subscription setup for instant accounts
and their cleanup when signup fails, and product/price creation for payment
plans. SDK calls are blocking, so they run in Starlette's threadpool.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import stripe
from starlette.concurrency import run_in_threadpool

from advancia_pay.core.errors import PaymentProviderError, ServiceNotConfiguredError, WebhookSignatureError
from advancia_pay.core.logging_config import get_logger
from advancia_pay.server.core.config import StripeConfig

logger = get_logger(__name__)

PROVIDER = "stripe"


class StripeGateway:
    """Stripe operations used by the payments service and webhooks."""

    def __init__(self, config: StripeConfig) -> None:
        self.config = config

    @property
    def is_configured(self) -> bool:
        return bool(self.config.secret_key)

    def construct_event(self, payload: bytes, signature: Optional[str]) -> stripe.Event:
        """Verify the ``stripe-signature`` header and parse the event.

        Raises:
            ServiceNotConfiguredError: no webhook secret is configured.
            WebhookSignatureError: the payload or signature is invalid.
        """
        if not self.config.webhook_secret:
            raise ServiceNotConfiguredError("Stripe webhooks are not configured")
        if not signature:
            raise WebhookSignatureError(PROVIDER)
        try:
            return stripe.Webhook.construct_event(payload, signature, self.config.webhook_secret)
        except ValueError as e:
            logger.warning(f"Invalid Stripe webhook payload: {e}")
            raise WebhookSignatureError(PROVIDER, "Invalid payload") from e
        except stripe.SignatureVerificationError as e:
            logger.warning(f"Stripe webhook signature verification failed: {e}")
            raise WebhookSignatureError(PROVIDER) from e

    async def create_customer_with_payment_method(
        self, *, email: str, name: Optional[str], payment_method_id: str, metadata: dict[str, str]
    ) -> Any:
        """Create a customer, attach the payment method and make it the invoice default."""
        customer = await self._call(stripe.Customer.create, email=email, name=name, metadata=metadata)
        await self._call(stripe.PaymentMethod.attach, payment_method_id, customer=customer.id)
        await self._call(
            stripe.Customer.modify,
            customer.id,
            invoice_settings={"default_payment_method": payment_method_id},
        )
        return customer

    async def create_subscription(self, *, customer_id: str, price_id: str, metadata: dict[str, str]) -> Any:
        return await self._call(
            stripe.Subscription.create,
            customer=customer_id,
            items=[{"price": price_id}],
            metadata=metadata,
            expand=["latest_invoice.payment_intent"],
        )

    async def delete_customer(self, customer_id: str) -> Any:
        """Delete a customer; Stripe cancels its subscriptions immediately."""
        return await self._call(stripe.Customer.delete, customer_id)

    async def create_plan_price(
        self, *, name: str, description: Optional[str], unit_amount_cents: int, interval_months: int
    ) -> tuple[Any, Any]:
        """Create a product and a recurring price for a payment plan."""
        product = await self._call(stripe.Product.create, name=name, description=description or None)
        if interval_months % 12 == 0:
            recurring = {"interval": "year", "interval_count": interval_months // 12}
        else:
            recurring = {"interval": "month", "interval_count": interval_months}
        price = await self._call(
            stripe.Price.create,
            product=product.id,
            unit_amount=unit_amount_cents,
            currency="usd",
            recurring=recurring,
        )
        return product, price

    async def _call(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        if not self.config.secret_key:
            raise ServiceNotConfiguredError("Stripe is not configured")
        try:
            return await run_in_threadpool(fn, *args, api_key=self.config.secret_key, **kwargs)
        except stripe.StripeError as e:
            message = getattr(e, "user_message", None) or str(e)
            logger.error(f"Stripe call {getattr(fn, '__qualname__', fn)} failed: {message}")
            raise PaymentProviderError(PROVIDER, f"Stripe error: {message}") from e
