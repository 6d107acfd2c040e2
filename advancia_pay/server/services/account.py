"""
Per-user read models: notifications inbox and ledger statement.
"""

from __future__ import annotations

from typing import Any, Optional

from advancia_pay.core.database.entities import User
from advancia_pay.core.database.repositories import LedgerRepository, NotificationRepository
from advancia_pay.core.errors import NotFoundError
from advancia_pay.realtime import events

from .base import TransactionalService


class AccountService(TransactionalService):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.notifications = NotificationRepository(self.session)
        self.ledger = LedgerRepository(self.session)

    async def list_notifications(
        self, user: User, *, unread_only: bool = False, limit: int = 50
    ) -> list[dict[str, Any]]:
        rows = await self.notifications.list_for_user(user.id, unread_only=unread_only, limit=limit)
        return [self._notification_view(n) for n in rows]

    async def mark_read(self, user: User, notification_id: str) -> dict[str, Any]:
        async with self.unit_of_work():
            notification = await self.notifications.get_for_user(notification_id, user.id)
            if notification is None:
                raise NotFoundError("Notification not found")
            notification.read = True
            notification = await self.notifications.update(notification)
        return self._notification_view(notification)

    async def mark_all_read(self, user: User) -> int:
        async with self.unit_of_work():
            count = await self.notifications.mark_all_read(user.id)
        return count

    async def ledger_statement(
        self, user: User, *, currency: Optional[str] = None, limit: int = 100, offset: int = 0
    ) -> dict[str, Any]:
        """Entries newest first, with the ledger-derived total and the amount held by open withdrawals."""
        entries = await self.ledger.list_for_user(user.id, currency=currency, limit=limit, offset=offset)
        return {
            "entries": [events.serialize(e) for e in entries],
            "total": str(await self.ledger.sum_for_user(user.id, currency)),
            "held": str(await self.ledger.held_amount(user.id, currency)),
            "currency": currency.upper() if currency else None,
        }

    @staticmethod
    def _notification_view(notification) -> dict[str, Any]:
        view = events.serialize(notification, exclude={"data"})
        view["data"] = notification.get_data()
        return view
