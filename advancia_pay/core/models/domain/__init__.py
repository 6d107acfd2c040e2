"""Domain enums and constants."""

from .enums import (
    ADMIN_ROLES,
    ROLE_HIERARCHY,
    BookingStatus,
    LedgerEntryType,
    NotificationLevel,
    PaymentProvider,
    PaymentStatus,
    SubscriptionStatus,
    TransactionStatus,
    TransactionType,
    UserRole,
    WebhookProcessingResult,
    WithdrawalStatus,
)

__all__ = [
    "ADMIN_ROLES",
    "ROLE_HIERARCHY",
    "BookingStatus",
    "LedgerEntryType",
    "NotificationLevel",
    "PaymentProvider",
    "PaymentStatus",
    "SubscriptionStatus",
    "TransactionStatus",
    "TransactionType",
    "UserRole",
    "WebhookProcessingResult",
    "WithdrawalStatus",
]
