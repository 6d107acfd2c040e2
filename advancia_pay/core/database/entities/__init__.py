"""
Database entity models.

Modules:
- users: Accounts, roles and balances
- withdrawals: Withdrawal approval workflow
- transactions: User-visible transaction history
- ledger: Append-only balance movements
- payments: Provider-side payments updated by webhooks
- plans: Payment plans and subscriptions
- notifications: In-app notifications
- webhooks: Received webhook deliveries
- bookings: Paid chamber sessions
"""

from .bookings import Booking
from .ledger import LedgerEntry
from .notifications import Notification
from .payments import Payment
from .plans import PaymentPlan, Subscription
from .transactions import Transaction
from .users import User
from .webhooks import WebhookEvent
from .withdrawals import Withdrawal

__all__ = [
    "Booking",
    "LedgerEntry",
    "Notification",
    "Payment",
    "PaymentPlan",
    "Subscription",
    "Transaction",
    "User",
    "WebhookEvent",
    "Withdrawal",
]
