"""
Payment webhook processing.

Applies a verified provider event to the local :class:`Payment`, keeps the
linked deposit transaction in step with the normalized status, and credits the
user's fiat balance the first time a payment completes. All writes go through
the caller's session; the caller commits and then dispatches the queued pushes.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from advancia_pay.core.database.base import utc_now
from advancia_pay.core.database.entities import Payment, Transaction
from advancia_pay.core.database.repositories import (
    LedgerRepository,
    PaymentRepository,
    SubscriptionRepository,
    TransactionRepository,
    UserRepository,
)
from advancia_pay.core.errors import NotFoundError
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import (
    LedgerEntryType,
    NotificationLevel,
    PaymentProvider,
    PaymentStatus,
    TransactionStatus,
    TransactionType,
)
from advancia_pay.realtime.notifications import NotificationService

from .status import (
    normalize_alchemy_pay_status,
    normalize_nowpayments_status,
    normalize_stripe_event,
    settlement_status,
)

logger = get_logger(__name__)

SUBSCRIPTION_EVENTS = ("customer.subscription.updated", "customer.subscription.deleted")


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


class PaymentWebhookProcessor:
    """Applies provider webhook payloads to payments, balances and the ledger."""

    def __init__(self, session: AsyncSession, notifier: NotificationService) -> None:
        self.session = session
        self.notifier = notifier
        self.payments = PaymentRepository(session)
        self.transactions = TransactionRepository(session)
        self.users = UserRepository(session)
        self.ledger = LedgerRepository(session)
        self.subscriptions = SubscriptionRepository(session)

    # ------------------------------------------------------------------
    # Provider entry points
    # ------------------------------------------------------------------

    async def process_nowpayments(self, payload: dict[str, Any]) -> Payment:
        provider_id = str(payload.get("payment_id") or "")
        raw_status = payload.get("payment_status")
        payment = await self._find_payment(PaymentProvider.nowpayments, provider_id, payload.get("order_id"))

        payment.provider_payment_id = provider_id or payment.provider_payment_id
        payment.provider_status = raw_status
        payment.crypto_currency = payload.get("pay_currency") or payment.crypto_currency
        paid = _decimal(payload.get("actually_paid")) or _decimal(payload.get("pay_amount"))
        payment.amount_crypto = paid or payment.amount_crypto
        payment.pay_address = payload.get("pay_address") or payment.pay_address
        payment.tx_hash = payload.get("payin_hash") or payment.tx_hash
        if payload.get("confirmations") is not None:
            payment.confirmations = int(payload["confirmations"])

        return await self._apply_status(payment, normalize_nowpayments_status(raw_status))

    async def process_alchemy_pay(self, payload: dict[str, Any]) -> Payment:
        provider_id = str(payload.get("orderNo") or "")
        raw_status = payload.get("status")
        payment = await self._find_payment(PaymentProvider.alchemy_pay, provider_id, payload.get("merchantOrderNo"))

        payment.provider_payment_id = provider_id or payment.provider_payment_id
        payment.provider_status = raw_status
        payment.crypto_currency = payload.get("crypto") or payment.crypto_currency
        payment.amount_crypto = _decimal(payload.get("cryptoAmount")) or payment.amount_crypto
        payment.tx_hash = payload.get("txHash") or payment.tx_hash

        return await self._apply_status(payment, normalize_alchemy_pay_status(raw_status))

    async def process_stripe_event(self, event_type: str, data_object: dict[str, Any]) -> Optional[Payment]:
        """Apply a Stripe event; event types that carry no payment state are ignored."""
        if event_type in SUBSCRIPTION_EVENTS:
            await self._sync_subscription(data_object)
            return None

        status = normalize_stripe_event(event_type)
        if status is None:
            logger.info(f"Ignoring Stripe event type {event_type}")
            return None

        intent_id = data_object.get("id")
        payment = await self.payments.get_by_provider_id(PaymentProvider.stripe.value, intent_id)
        if payment is None:
            metadata = data_object.get("metadata") or {}
            user_id = metadata.get("userId") or metadata.get("user_id")
            if not user_id:
                logger.info(f"Stripe payment intent {intent_id} has no local payment or owner; ignoring")
                return None
            amount_cents = data_object.get("amount_received") or data_object.get("amount") or 0
            payment = await self.payments.create(
                Payment(
                    user_id=user_id,
                    provider=PaymentProvider.stripe.value,
                    provider_payment_id=intent_id,
                    amount_usd=Decimal(amount_cents) / 100,
                )
            )

        payment.provider_status = data_object.get("status") or event_type
        if status == PaymentStatus.failed:
            error = data_object.get("last_payment_error") or {}
            payment.failure_reason = error.get("message")
        return await self._apply_status(payment, status)

    # ------------------------------------------------------------------
    # Shared settlement logic
    # ------------------------------------------------------------------

    async def _find_payment(self, provider: PaymentProvider, provider_id: str, order_id: Optional[str]) -> Payment:
        payment = None
        if provider_id:
            payment = await self.payments.get_by_provider_id(provider.value, provider_id)
        if payment is None and order_id:
            candidate = await self.payments.get_by_id(str(order_id))
            if candidate is not None and candidate.provider == provider.value:
                payment = candidate
        if payment is None:
            raise NotFoundError(f"No {provider.value} payment matches id={provider_id or '-'} order={order_id or '-'}")
        return payment

    async def _apply_status(self, payment: Payment, status: PaymentStatus) -> Payment:
        previous = payment.status
        payment.status = status.value
        payment.updated_at = utc_now()
        if status == PaymentStatus.completed and payment.completed_at is None:
            payment.completed_at = utc_now()
        payment = await self.payments.update(payment)
        logger.info(f"Payment {payment.id} ({payment.provider}) {previous} -> {payment.status}")

        transaction = await self._sync_transaction(payment, status)
        if status == PaymentStatus.completed:
            await self._credit_once(payment)

        self.notifier.notify_transaction(transaction)
        self.notifier.notify_payment_update(payment)
        return payment

    async def _sync_transaction(self, payment: Payment, status: PaymentStatus) -> Transaction:
        settled = settlement_status(status)
        transaction = await self.transactions.get_by_reference(payment.id, TransactionType.deposit.value)
        if transaction is None:
            transaction = Transaction(
                user_id=payment.user_id,
                type=TransactionType.deposit.value,
                amount=payment.amount_usd,
                currency="USD",
                status=settled.value,
                description=f"{payment.provider} deposit",
                reference_id=payment.id,
                provider=payment.provider,
            )
            transaction.set_details({"providerPaymentId": payment.provider_payment_id, "paymentStatus": payment.status})
            return await self.transactions.create(transaction)

        if transaction.status == TransactionStatus.completed.value:
            return transaction
        return await self.transactions.set_status(
            transaction, settled.value, paymentStatus=payment.status, providerStatus=payment.provider_status
        )

    async def _credit_once(self, payment: Payment) -> None:
        if not await self.payments.claim_credit(payment.id):
            logger.debug(f"Payment {payment.id} already credited")
            return

        await self.users.credit(payment.user_id, "balance", payment.amount_usd)
        await self.ledger.record(
            user_id=payment.user_id,
            currency="USD",
            amount=payment.amount_usd,
            entry_type=LedgerEntryType.deposit.value,
            reference_id=payment.id,
            reason=f"{payment.provider} payment {payment.provider_payment_id}",
        )
        payment.credited = True

        user = await self.users.get_by_id(payment.user_id, fresh=True)
        if user is not None:
            self.notifier.notify_balance_update(user)
        await self.notifier.create_notification(
            payment.user_id,
            "Deposit received",
            f"Your deposit of ${payment.amount_usd} has been credited.",
            level=NotificationLevel.success,
            data={"paymentId": payment.id},
        )
        logger.info(f"Credited {payment.amount_usd} USD to user {payment.user_id} for payment {payment.id}")

    async def _sync_subscription(self, data_object: dict[str, Any]) -> None:
        subscription = await self.subscriptions.get_by_stripe_id(data_object.get("id", ""))
        if subscription is None:
            logger.info(f"Stripe subscription {data_object.get('id')} is not tracked locally")
            return
        subscription.status = data_object.get("status") or subscription.status
        await self.subscriptions.update(subscription)
