"""
Repositories for the database layer.

Each repository wraps one aggregate and shares the caller's session, so several
repositories can take part in a single unit of work.
"""

from .base import AsyncBaseRepository, QueryBuilder
from .bookings import BookingRepository
from .ledger import LedgerRepository
from .notifications import NotificationRepository
from .payments import PaymentPlanRepository, PaymentRepository, SubscriptionRepository
from .transactions import TransactionRepository
from .users import UserRepository
from .webhooks import WebhookEventRepository
from .withdrawals import WithdrawalRepository

__all__ = [
    "AsyncBaseRepository",
    "BookingRepository",
    "LedgerRepository",
    "NotificationRepository",
    "PaymentPlanRepository",
    "PaymentRepository",
    "QueryBuilder",
    "SubscriptionRepository",
    "TransactionRepository",
    "UserRepository",
    "WebhookEventRepository",
    "WithdrawalRepository",
]
