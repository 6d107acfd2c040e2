"""
Withdrawals repository.

State changes are compare-and-set: :meth:`WithdrawalRepository.transition` only
updates the row while it still has the expected status, so two reviewers acting
on the same request cannot both succeed.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from sqlalchemy import update
from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.users import User
from ..entities.withdrawals import Withdrawal
from .base import AsyncBaseRepository


class WithdrawalRepository(AsyncBaseRepository[Withdrawal]):
    """Repository for withdrawal requests."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Withdrawal)

    async def list_for_user(self, user_id: str, *, limit: int, offset: int) -> Tuple[List[Withdrawal], int]:
        """Newest first, with the total count for pagination."""
        stmt = (
            select(Withdrawal)
            .where(Withdrawal.user_id == user_id)
            .order_by(col(Withdrawal.requested_at).desc())
            .offset(offset)
            .limit(limit)
        )
        rows = list((await self.session.exec(stmt)).all())
        total = await self.count({"user_id": user_id})
        return rows, total

    async def list_pending_with_users(self, *, limit: int, offset: int) -> Tuple[List[Tuple[Withdrawal, User]], int]:
        """Pending requests oldest first, each paired with its requester."""
        stmt = (
            select(Withdrawal, User)
            .join(User, col(User.id) == col(Withdrawal.user_id))
            .where(Withdrawal.status == "PENDING")
            .order_by(col(Withdrawal.requested_at).asc())
            .offset(offset)
            .limit(limit)
        )
        rows = [(w, u) for w, u in (await self.session.exec(stmt)).all()]
        total = await self.count({"status": "PENDING"})
        return rows, total

    async def count_by_status(self) -> dict[str, int]:
        stmt = select(Withdrawal.status, func.count()).group_by(Withdrawal.status)
        return {status: int(n) for status, n in (await self.session.exec(stmt)).all()}

    async def transition(
        self, withdrawal_id: str, from_status: str, to_status: str, **values: Any
    ) -> Optional[Withdrawal]:
        """Move a withdrawal to ``to_status`` if it is still in ``from_status``.

        Returns:
            The reloaded withdrawal on success, None when the status had changed.
        """
        stmt = (
            update(Withdrawal)
            .where(col(Withdrawal.id) == withdrawal_id, col(Withdrawal.status) == from_status)
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.exec(stmt)  # type: ignore[call-overload]
        if result.rowcount != 1:
            return None
        return await self.get_by_id(withdrawal_id, fresh=True)
