"""
Notification service with a post-commit push outbox.

Services record notifications and queue socket pushes while their database
transaction is open. Pushes are only sent by :meth:`NotificationService.dispatch`
after the caller has committed, and :meth:`NotificationService.discard` drops
them when the transaction is rolled back, so clients never see an event for a
change that did not persist.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from advancia_pay.core.database.entities import Booking, Notification, Payment, Transaction, User, Withdrawal
from advancia_pay.core.database.repositories import NotificationRepository, UserRepository
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import ADMIN_ROLES, NotificationLevel

from . import events
from .gateway import RealtimeGateway

logger = get_logger(__name__)


@dataclass
class PendingPush:
    """A socket event waiting for its transaction to commit."""

    event: str
    data: dict[str, Any]
    user_id: Optional[str] = None
    payment_id: Optional[str] = None
    admins: bool = False


@dataclass
class NotificationService:
    """Persists notifications and buffers the matching socket pushes."""

    session: AsyncSession
    gateway: Optional[RealtimeGateway]
    outbox: list[PendingPush] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.notifications = NotificationRepository(self.session)
        self.users = UserRepository(self.session)

    # ------------------------------------------------------------------
    # Persistent notifications
    # ------------------------------------------------------------------

    async def create_notification(
        self,
        user_id: str,
        title: str,
        message: str,
        *,
        level: NotificationLevel = NotificationLevel.info,
        data: Optional[dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(user_id=user_id, title=title, message=message, level=level.value)
        notification.set_data(data or {})
        notification = await self.notifications.create(notification)
        self.push_to_user(user_id, events.NEW_NOTIFICATION, events.serialize(notification))
        return notification

    async def notify_admins(
        self,
        title: str,
        message: str,
        *,
        level: NotificationLevel = NotificationLevel.warning,
        data: Optional[dict[str, Any]] = None,
    ) -> int:
        """Notify every active admin; returns how many were notified."""
        admins = await self.users.list_by_roles(role.value for role in ADMIN_ROLES)
        for admin in admins:
            notification = Notification(user_id=admin.id, title=title, message=message, level=level.value)
            notification.set_data(data or {})
            await self.notifications.create(notification)
        self.outbox.append(
            PendingPush(
                event=events.ADMIN_NOTIFICATION,
                data={"title": title, "message": message, "level": level.value, "data": data or {}},
                admins=True,
            )
        )
        return len(admins)

    # ------------------------------------------------------------------
    # Typed pushes
    # ------------------------------------------------------------------

    def push_to_user(self, user_id: str, event: str, data: dict[str, Any]) -> None:
        self.outbox.append(PendingPush(event=event, data=data, user_id=user_id))

    def notify_balance_update(self, user: User) -> None:
        self.push_to_user(
            user.id,
            events.BALANCE_UPDATE,
            {"balance": str(user.balance), "cryptoBalance": str(user.crypto_balance)},
        )

    def notify_transaction(self, transaction: Transaction) -> None:
        self.push_to_user(transaction.user_id, events.TRANSACTION_UPDATE, events.serialize(transaction))

    def notify_withdrawal(self, withdrawal: Withdrawal) -> None:
        self.push_to_user(withdrawal.user_id, events.WITHDRAWAL_UPDATE, events.serialize(withdrawal))

    def notify_booking(self, booking: Booking) -> None:
        self.push_to_user(booking.user_id, events.BOOKING_UPDATE, events.serialize(booking))

    def notify_payment_update(self, payment: Payment) -> None:
        self.outbox.append(
            PendingPush(
                event=events.STATUS_UPDATE,
                data={
                    "paymentId": payment.id,
                    "status": payment.status,
                    "providerStatus": payment.provider_status,
                    "confirmations": payment.confirmations,
                },
                payment_id=payment.id,
            )
        )

    def broadcast(self, event: str, data: dict[str, Any]) -> None:
        self.outbox.append(PendingPush(event=event, data=data))

    # ------------------------------------------------------------------
    # Outbox
    # ------------------------------------------------------------------

    async def dispatch(self) -> int:
        """Send all queued pushes; call only after a successful commit."""
        pushes, self.outbox = self.outbox, []
        if self.gateway is None:
            if pushes:
                logger.debug(f"No realtime gateway; dropping {len(pushes)} pushes")
            return 0

        sent = 0
        for push in pushes:
            if push.user_id is not None:
                ok = await self.gateway.emit_to_user(push.user_id, push.event, push.data)
            elif push.payment_id is not None:
                ok = await self.gateway.emit_to_payment_room(push.payment_id, push.event, push.data)
            elif push.admins:
                ok = await self.gateway.emit_to_admins(push.event, push.data)
            else:
                ok = await self.gateway.broadcast(push.event, push.data)
            sent += int(ok)
        return sent

    def discard(self) -> None:
        if self.outbox:
            logger.debug(f"Discarding {len(self.outbox)} pushes after rollback")
        self.outbox.clear()
