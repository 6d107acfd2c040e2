"""
Notifications repository.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.notifications import Notification
from .base import AsyncBaseRepository


class NotificationRepository(AsyncBaseRepository[Notification]):
    """Repository for in-app notifications."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Notification)

    async def list_for_user(self, user_id: str, *, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.read == False)  # noqa: E712
        stmt = stmt.order_by(col(Notification.created_at).desc()).limit(limit)
        return list((await self.session.exec(stmt)).all())

    async def get_for_user(self, notification_id: str, user_id: str) -> Optional[Notification]:
        stmt = select(Notification).where(Notification.id == notification_id, Notification.user_id == user_id)
        return (await self.session.exec(stmt)).one_or_none()

    async def mark_all_read(self, user_id: str) -> int:
        stmt = (
            update(Notification)
            .where(col(Notification.user_id) == user_id, col(Notification.read) == False)  # noqa: E712
            .values(read=True)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.exec(stmt)  # type: ignore[call-overload]
        return int(result.rowcount or 0)
