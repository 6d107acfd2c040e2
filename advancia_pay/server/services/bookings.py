"""
Chamber bookings.

A booking is paid from the fiat balance when it is created and refunded in
full when it is cancelled.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from advancia_pay.core.database.base import utc_now
from advancia_pay.core.database.entities import Booking, Transaction, User
from advancia_pay.core.database.repositories import (
    BookingRepository,
    LedgerRepository,
    TransactionRepository,
    UserRepository,
)
from advancia_pay.core.errors import (
    InsufficientBalanceError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import (
    BookingStatus,
    LedgerEntryType,
    NotificationLevel,
    TransactionStatus,
    TransactionType,
)
from advancia_pay.server.core.config import settings

from .base import TransactionalService

logger = get_logger(__name__)

CANCELLABLE = (BookingStatus.pending.value, BookingStatus.confirmed.value)
STATUS_SOURCES = {
    BookingStatus.confirmed.value: (BookingStatus.pending.value,),
    BookingStatus.completed.value: (BookingStatus.pending.value, BookingStatus.confirmed.value),
}


def booking_cost(duration_minutes: int, hourly_rate: Optional[Decimal] = None) -> Decimal:
    rate = hourly_rate if hourly_rate is not None else settings.booking_hourly_rate
    return (Decimal(duration_minutes) / Decimal(60) * rate).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class BookingService(TransactionalService):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.bookings = BookingRepository(self.session)
        self.users = UserRepository(self.session)
        self.transactions = TransactionRepository(self.session)
        self.ledger = LedgerRepository(self.session)

    async def create(
        self, user: User, *, chamber: str, session_date: datetime, duration_minutes: int, notes: Optional[str] = None
    ) -> Booking:
        cost = booking_cost(duration_minutes)
        user_id = user.id

        async with self.unit_of_work():
            if not await self.users.debit(user_id, "balance", cost):
                current = await self.users.get_by_id(user_id, fresh=True)
                raise InsufficientBalanceError(cost, current.balance if current else Decimal("0"))

            booking = await self.bookings.create(
                Booking(
                    user_id=user_id,
                    chamber=chamber,
                    session_date=session_date,
                    duration_minutes=duration_minutes,
                    cost=cost,
                    notes=notes,
                )
            )
            await self.ledger.record(
                user_id=user_id,
                currency="USD",
                amount=-cost,
                entry_type=LedgerEntryType.payment.value,
                reference_id=booking.id,
                actor_id=user_id,
                reason=f"Booking {chamber}",
            )
            transaction = await self.transactions.create(
                Transaction(
                    user_id=user_id,
                    type=TransactionType.payment.value,
                    amount=cost,
                    currency="USD",
                    status=TransactionStatus.completed.value,
                    description=f"{chamber} session ({duration_minutes} min)",
                    reference_id=booking.id,
                )
            )
            await self._push_balance(user_id)
            self.notifier.notify_transaction(transaction)
            self.notifier.notify_booking(booking)

        logger.info(f"Booking {booking.id} created for user {user_id}, cost {cost}")
        return booking

    async def list_mine(self, user: User) -> list[Booking]:
        return await self.bookings.list_for_user(user.id)

    async def cancel(self, user: User, booking_id: str) -> Booking:
        """Cancel an open booking and refund its cost."""
        user_id = user.id
        async with self.unit_of_work():
            booking = await self.bookings.get_by_id(booking_id)
            if booking is None:
                raise NotFoundError("Booking not found")
            if booking.user_id != user_id:
                raise PermissionDeniedError("Not authorized to cancel this booking")

            updated = await self.bookings.transition(
                booking_id, CANCELLABLE, BookingStatus.cancelled.value, cancelled_at=utc_now()
            )
            if updated is None:
                current = await self.bookings.get_by_id(booking_id, fresh=True)
                raise InvalidTransitionError("Booking", current.status)
            booking = updated

            await self.users.credit(user_id, "balance", booking.cost)
            await self.ledger.record(
                user_id=user_id,
                currency="USD",
                amount=booking.cost,
                entry_type=LedgerEntryType.refund.value,
                reference_id=booking.id,
                actor_id=user_id,
                reason="Booking cancelled",
            )
            transaction = await self.transactions.create(
                Transaction(
                    user_id=user_id,
                    type=TransactionType.refund.value,
                    amount=booking.cost,
                    currency="USD",
                    status=TransactionStatus.completed.value,
                    description=f"Refund for cancelled {booking.chamber} session",
                    reference_id=booking.id,
                )
            )
            await self.notifier.create_notification(
                user_id,
                "Booking cancelled",
                f"Your booking was cancelled and ${booking.cost} was refunded.",
                level=NotificationLevel.info,
                data={"bookingId": booking.id},
            )
            await self._push_balance(user_id)
            self.notifier.notify_transaction(transaction)
            self.notifier.notify_booking(booking)

        logger.info(f"Booking {booking.id} cancelled and refunded")
        return booking

    async def update_status(self, booking_id: str, status: str) -> Booking:
        async with self.unit_of_work():
            updated = await self.bookings.transition(booking_id, STATUS_SOURCES[status], status)
            if updated is None:
                current = await self.bookings.get_by_id(booking_id, fresh=True)
                if current is None:
                    raise NotFoundError("Booking not found")
                raise InvalidTransitionError("Booking", current.status)
            self.notifier.notify_booking(updated)
        return updated

    async def _push_balance(self, user_id: str) -> None:
        user = await self.users.get_by_id(user_id, fresh=True)
        if user is not None:
            self.notifier.notify_balance_update(user)
