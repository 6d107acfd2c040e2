"""Domain enums for the ledger, payments and notification models."""

from __future__ import annotations

from enum import Enum


class UserRole(str, Enum):
    """
    Access role of a user.

    Ordering between roles is defined by ``ROLE_HIERARCHY``; a role satisfies every
    requirement whose level is lower than or equal to its own.
    """

    super_admin = "SUPER_ADMIN"
    admin = "ADMIN"
    doctor = "DOCTOR"
    moderator = "MODERATOR"
    user = "USER"
    guest = "GUEST"


ROLE_HIERARCHY: dict[UserRole, int] = {
    UserRole.super_admin: 100,
    UserRole.admin: 80,
    UserRole.doctor: 60,
    UserRole.moderator: 50,
    UserRole.user: 10,
    UserRole.guest: 0,
}

ADMIN_ROLES = (UserRole.admin, UserRole.super_admin)


class WithdrawalStatus(str, Enum):
    """Lifecycle status of a withdrawal request."""

    pending = "PENDING"  # Funds held, waiting for an admin decision.
    approved = "APPROVED"  # Approved, payout not yet sent.
    rejected = "REJECTED"  # Terminal; held funds returned.
    processed = "PROCESSED"  # Terminal; payout sent.


class TransactionType(str, Enum):
    deposit = "DEPOSIT"
    withdrawal = "WITHDRAWAL"
    payment = "PAYMENT"
    refund = "REFUND"
    transfer = "TRANSFER"
    adjustment = "ADJUSTMENT"


class TransactionStatus(str, Enum):
    """Settlement status of a transaction as shown to the user."""

    pending = "PENDING"
    completed = "COMPLETED"
    failed = "FAILED"


class LedgerEntryType(str, Enum):
    """
    Kind of balance movement recorded in the ledger.

    Amounts are signed: holds and payments are negative, deposits, releases and
    refunds positive. ``WITHDRAWAL_COMPLETE`` closes a hold and carries no amount.
    """

    deposit = "DEPOSIT"
    withdrawal_hold = "WITHDRAWAL_HOLD"
    withdrawal_release = "WITHDRAWAL_RELEASE"
    withdrawal_complete = "WITHDRAWAL_COMPLETE"
    payment = "PAYMENT"
    refund = "REFUND"
    adjustment = "ADJUSTMENT"


class PaymentProvider(str, Enum):
    stripe = "stripe"
    nowpayments = "nowpayments"
    alchemy_pay = "alchemy_pay"


class PaymentStatus(str, Enum):
    """Provider-independent payment status."""

    pending = "pending"
    confirming = "confirming"
    confirmed = "confirmed"
    processing = "processing"
    partial = "partial"
    completed = "completed"
    failed = "failed"
    refunded = "refunded"
    expired = "expired"
    cancelled = "cancelled"
    unknown = "unknown"


class NotificationLevel(str, Enum):
    info = "INFO"
    success = "SUCCESS"
    warning = "WARNING"
    error = "ERROR"


class WebhookProcessingResult(str, Enum):
    success = "success"
    error = "error"


class BookingStatus(str, Enum):
    """Lifecycle status of a chamber booking."""

    pending = "PENDING"
    confirmed = "CONFIRMED"
    cancelled = "CANCELLED"  # Terminal; cost refunded.
    completed = "COMPLETED"  # Terminal.


class SubscriptionStatus(str, Enum):
    active = "active"
    incomplete = "incomplete"
    past_due = "past_due"
    canceled = "canceled"
