"""Socket.IO event names, room names and payload helpers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from sqlmodel import SQLModel

BALANCE_UPDATE = "balance_update"
TRANSACTION_UPDATE = "transaction_update"
WITHDRAWAL_UPDATE = "withdrawal_update"
BOOKING_UPDATE = "booking_update"
NEW_NOTIFICATION = "new_notification"
ADMIN_NOTIFICATION = "admin_notification"
PENDING_NOTIFICATIONS = "pending_notifications"
STATUS_UPDATE = "status_update"
ACCOUNT_CREATED = "account_created"
AUTH_ERROR = "auth_error"
AUTHENTICATED = "authenticated"

ADMINS_ROOM = "admins"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def payment_room(payment_id: str) -> str:
    return f"payment:{payment_id}"


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def serialize(entity: SQLModel, *, exclude: set[str] | None = None) -> dict[str, Any]:
    """JSON-safe dict of an entity; decimals become strings, datetimes ISO strings."""
    return entity.model_dump(mode="json", exclude=exclude)
