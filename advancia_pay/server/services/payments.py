"""
Payments service.

Instant accounts (signup plus Stripe subscription in one step), payment plans,
and NOWPayments crypto deposits. Deposits are credited later by the webhook
processor when the provider reports them as completed.
"""

from __future__ import annotations

import re
import secrets
from decimal import Decimal
from typing import Any, Optional

from advancia_pay.core.database.entities import Payment, PaymentPlan, Subscription, Transaction, User
from advancia_pay.core.database.repositories import (
    PaymentPlanRepository,
    PaymentRepository,
    SubscriptionRepository,
    TransactionRepository,
    UserRepository,
)
from advancia_pay.core.errors import (
    ConflictError,
    NotFoundError,
    PaymentProviderError,
    ServiceNotConfiguredError,
    ValidationFailedError,
)
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import (
    NotificationLevel,
    PaymentProvider,
    SubscriptionStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
)
from advancia_pay.payments.nowpayments import NOWPaymentsClient
from advancia_pay.payments.status import normalize_nowpayments_status
from advancia_pay.payments.stripe_gateway import StripeGateway
from advancia_pay.realtime import events
from advancia_pay.server.core.config import Settings, settings as default_settings
from advancia_pay.server.core.security import generate_password, hash_password
from advancia_pay.server.schemas import UserPublic

from .auth import issue_token
from .base import TransactionalService

logger = get_logger(__name__)


def _username_from_email(email: str) -> str:
    base = re.sub(r"[^a-z0-9_]", "", email.split("@", 1)[0].lower())[:20] or "member"
    return f"{base}_{secrets.token_hex(3)}"


class PaymentService(TransactionalService):
    """Stripe subscriptions and NOWPayments deposits."""

    def __init__(
        self,
        *args,
        stripe_gateway: Optional[StripeGateway] = None,
        nowpayments: Optional[NOWPaymentsClient] = None,
        config: Optional[Settings] = None,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.config = config or default_settings
        self.stripe = stripe_gateway or StripeGateway(self.config.stripe)
        self.nowpayments = nowpayments or NOWPaymentsClient(self.config.nowpayments)
        self.users = UserRepository(self.session)
        self.plans = PaymentPlanRepository(self.session)
        self.subscriptions = SubscriptionRepository(self.session)
        self.payments = PaymentRepository(self.session)
        self.transactions = TransactionRepository(self.session)

    # ------------------------------------------------------------------
    # Instant account
    # ------------------------------------------------------------------

    async def create_instant_account(
        self,
        *,
        email: str,
        plan_id: str,
        payment_method_id: str,
        card: Optional[dict[str, Any]] = None,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> dict[str, Any]:
        """
        Create a user, a Stripe customer with the given card, and a subscription to ``plan_id``.

        The account gets a random password; the returned token lets the client
        sign in immediately. Nothing is persisted if any Stripe call fails, and a
        Stripe customer created before the failure is deleted again.
        """
        email = email.lower()
        card = card or {}
        customer_id: Optional[str] = None

        try:
            async with self.unit_of_work():
                if await self.users.get_by_email(email) is not None:
                    raise ConflictError("Email already registered")
                plan = await self.plans.get_by_id(plan_id)
                if plan is None or not plan.is_active:
                    raise NotFoundError("Payment plan not found")
                if not plan.stripe_price_id:
                    raise ValidationFailedError("Payment plan is not available for purchase")

                user = await self.users.create(
                    User(
                        email=email,
                        username=_username_from_email(email),
                        password_hash=hash_password(generate_password()),
                        role=UserRole.user.value,
                        first_name=first_name,
                        last_name=last_name,
                    )
                )
                name = " ".join(part for part in (first_name, last_name) if part) or None
                customer = await self.stripe.create_customer_with_payment_method(
                    email=email, name=name, payment_method_id=payment_method_id, metadata={"userId": user.id}
                )
                customer_id = customer.id
                stripe_subscription = await self.stripe.create_subscription(
                    customer_id=customer.id,
                    price_id=plan.stripe_price_id,
                    metadata={"userId": user.id, "planId": plan.id},
                )
                subscription = await self.subscriptions.create(
                    Subscription(
                        user_id=user.id,
                        plan_id=plan.id,
                        status=getattr(stripe_subscription, "status", None) or SubscriptionStatus.incomplete.value,
                        stripe_customer_id=customer.id,
                        stripe_subscription_id=stripe_subscription.id,
                        card_last4=card.get("last4"),
                        card_brand=card.get("brand"),
                        card_exp_month=card.get("exp_month"),
                        card_exp_year=card.get("exp_year"),
                    )
                )
                await self.notifier.create_notification(
                    user.id,
                    "Welcome to Advancia",
                    f"Your {plan.name} subscription is being activated.",
                    level=NotificationLevel.success,
                    data={"planId": plan.id, "subscriptionId": subscription.id},
                )
                self.notifier.broadcast(events.ACCOUNT_CREATED, {"userId": user.id, "planId": plan.id})
        except Exception:
            if customer_id is not None:
                await self._discard_stripe_customer(customer_id)
            raise

        logger.info(f"Instant account {user.id} created on plan {plan.id}")
        return {
            "token": issue_token(user),
            "user": UserPublic.model_validate(user),
            "subscription": events.serialize(subscription),
        }

    async def _discard_stripe_customer(self, customer_id: str) -> None:
        try:
            await self.stripe.delete_customer(customer_id)
        except PaymentProviderError as e:
            logger.error(f"Stripe customer {customer_id} left behind by failed signup: {e.message}")
            return
        logger.warning(f"Deleted Stripe customer {customer_id} after failed signup")

    # ------------------------------------------------------------------
    # Plans
    # ------------------------------------------------------------------

    async def list_plans(self) -> list[dict[str, Any]]:
        return [self._plan_view(plan) for plan in await self.plans.list_active()]

    async def create_plan(
        self,
        *,
        name: str,
        description: Optional[str],
        price_usd: Decimal,
        interval_months: int,
        features: list[str],
    ) -> dict[str, Any]:
        async with self.unit_of_work():
            product, price = await self.stripe.create_plan_price(
                name=name,
                description=description,
                unit_amount_cents=int((price_usd * 100).to_integral_value()),
                interval_months=interval_months,
            )
            plan = PaymentPlan(
                name=name,
                description=description,
                price_usd=price_usd,
                interval_months=interval_months,
                stripe_product_id=product.id,
                stripe_price_id=price.id,
            )
            plan.set_features_list(features)
            plan = await self.plans.create(plan)
        logger.info(f"Payment plan {plan.id} created ({name}, {price_usd} USD / {interval_months} months)")
        return self._plan_view(plan)

    @staticmethod
    def _plan_view(plan: PaymentPlan) -> dict[str, Any]:
        view = events.serialize(plan, exclude={"features"})
        view["features"] = plan.get_features_list()
        return view

    # ------------------------------------------------------------------
    # Crypto deposits
    # ------------------------------------------------------------------

    async def create_crypto_payment(self, user: User, *, amount_usd: Decimal, pay_currency: str) -> dict[str, Any]:
        """Open a NOWPayments deposit; the local payment id is sent as the order id."""
        if not self.nowpayments.is_configured:
            raise ServiceNotConfiguredError("NOWPayments is not configured")
        user_id = user.id

        async with self.unit_of_work():
            payment = await self.payments.create(
                Payment(
                    user_id=user_id,
                    provider=PaymentProvider.nowpayments.value,
                    amount_usd=amount_usd,
                    crypto_currency=pay_currency.lower(),
                )
            )
            response = await self.nowpayments.create_payment(
                price_amount=amount_usd,
                pay_currency=pay_currency,
                order_id=payment.id,
                order_description=f"Advancia deposit {payment.id}",
                ipn_callback_url=f"{self.config.backend_url.rstrip('/')}/api/webhooks/nowpayments",
            )
            raw_status = response.get("payment_status")
            payment.provider_payment_id = str(response.get("payment_id"))
            payment.provider_status = raw_status
            payment.status = normalize_nowpayments_status(raw_status or "waiting").value
            payment.pay_address = response.get("pay_address")
            if response.get("pay_amount") is not None:
                payment.amount_crypto = Decimal(str(response["pay_amount"]))
            payment = await self.payments.update(payment)

            transaction = Transaction(
                user_id=user_id,
                type=TransactionType.deposit.value,
                amount=amount_usd,
                currency="USD",
                status=TransactionStatus.pending.value,
                description=f"Crypto deposit ({pay_currency.upper()})",
                reference_id=payment.id,
                provider=PaymentProvider.nowpayments.value,
            )
            transaction.set_details({"providerPaymentId": payment.provider_payment_id, "payCurrency": pay_currency})
            transaction = await self.transactions.create(transaction)
            self.notifier.notify_transaction(transaction)

        logger.info(f"NOWPayments payment {payment.provider_payment_id} opened for user {user_id}")
        return {
            "payment": events.serialize(payment),
            "payAddress": payment.pay_address,
            "payAmount": str(payment.amount_crypto) if payment.amount_crypto is not None else None,
            "payCurrency": pay_currency.lower(),
            "paymentUrl": self.nowpayments.payment_url(payment.provider_payment_id),
        }

    async def history(self, user: User, *, limit: int = 50, offset: int = 0) -> list[dict[str, Any]]:
        return [events.serialize(p) for p in await self.payments.list_for_user(user.id, limit=limit, offset=offset)]

    async def currencies(self) -> list[str]:
        return await self.nowpayments.get_currencies()

    async def estimate(self, *, amount: Decimal, currency_from: str, currency_to: str) -> dict[str, Any]:
        return await self.nowpayments.get_estimate(amount, currency_from, currency_to)
