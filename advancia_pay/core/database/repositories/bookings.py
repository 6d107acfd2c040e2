"""
Bookings repository.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Optional

from sqlalchemy import update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.bookings import Booking
from .base import AsyncBaseRepository


class BookingRepository(AsyncBaseRepository[Booking]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Booking)

    async def list_for_user(self, user_id: str) -> List[Booking]:
        stmt = select(Booking).where(Booking.user_id == user_id).order_by(col(Booking.session_date).desc())
        return list((await self.session.exec(stmt)).all())

    async def transition(
        self, booking_id: str, from_statuses: Iterable[str], to_status: str, **values: Any
    ) -> Optional[Booking]:
        """Compare-and-set status change; None when the booking left ``from_statuses``."""
        stmt = (
            update(Booking)
            .where(col(Booking.id) == booking_id, col(Booking.status).in_(list(from_statuses)))
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.exec(stmt)  # type: ignore[call-overload]
        if result.rowcount != 1:
            return None
        return await self.get_by_id(booking_id, fresh=True)
