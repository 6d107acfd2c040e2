"""
Payment status normalization.

Each provider reports payment progress in its own vocabulary. These tables map
them onto :class:`PaymentStatus`, and :func:`settlement_status` collapses a
payment status onto the three transaction states shown to users.
"""

from __future__ import annotations

from typing import Optional

from advancia_pay.core.models.domain import PaymentStatus, TransactionStatus

NOWPAYMENTS_STATUS_MAP: dict[str, PaymentStatus] = {
    "waiting": PaymentStatus.pending,
    "confirming": PaymentStatus.confirming,
    "confirmed": PaymentStatus.confirmed,
    "sending": PaymentStatus.processing,
    "partially_paid": PaymentStatus.partial,
    "finished": PaymentStatus.completed,
    "failed": PaymentStatus.failed,
    "refunded": PaymentStatus.refunded,
    "expired": PaymentStatus.expired,
}

NOWPAYMENTS_FINAL_STATUSES = frozenset({"finished", "failed", "refunded", "expired"})

ALCHEMY_PAY_STATUS_MAP: dict[str, PaymentStatus] = {
    "SUCCESS": PaymentStatus.completed,
    "PENDING": PaymentStatus.pending,
    "FAILED": PaymentStatus.failed,
    "CANCELLED": PaymentStatus.cancelled,
}

STRIPE_EVENT_STATUS_MAP: dict[str, PaymentStatus] = {
    "payment_intent.succeeded": PaymentStatus.completed,
    "payment_intent.payment_failed": PaymentStatus.failed,
    "payment_intent.canceled": PaymentStatus.cancelled,
    "payment_intent.processing": PaymentStatus.processing,
}

_FAILED_SETTLEMENTS = frozenset(
    {PaymentStatus.failed, PaymentStatus.expired, PaymentStatus.cancelled, PaymentStatus.refunded}
)


def normalize_nowpayments_status(raw_status: Optional[str]) -> PaymentStatus:
    """Map a NOWPayments ``payment_status``; anything unrecognised is ``unknown``."""
    if not raw_status:
        return PaymentStatus.unknown
    return NOWPAYMENTS_STATUS_MAP.get(raw_status.strip().lower(), PaymentStatus.unknown)


def is_nowpayments_final(raw_status: Optional[str]) -> bool:
    return bool(raw_status) and raw_status.strip().lower() in NOWPAYMENTS_FINAL_STATUSES


def normalize_alchemy_pay_status(raw_status: Optional[str]) -> PaymentStatus:
    """Map an Alchemy Pay order status; unknown values stay ``pending``."""
    if not raw_status:
        return PaymentStatus.pending
    return ALCHEMY_PAY_STATUS_MAP.get(raw_status.strip().upper(), PaymentStatus.pending)


def normalize_stripe_event(event_type: str) -> Optional[PaymentStatus]:
    """Status implied by a Stripe event type, or None for events that carry no payment status."""
    return STRIPE_EVENT_STATUS_MAP.get(event_type)


def settlement_status(status: PaymentStatus) -> TransactionStatus:
    if status == PaymentStatus.completed:
        return TransactionStatus.completed
    if status in _FAILED_SETTLEMENTS:
        return TransactionStatus.failed
    return TransactionStatus.pending
