"""
Transactions repository.
"""

from __future__ import annotations

from typing import List, Optional

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..base import utc_now
from ..entities.transactions import Transaction
from .base import AsyncBaseRepository


class TransactionRepository(AsyncBaseRepository[Transaction]):
    """Repository for user-visible transactions."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Transaction)

    async def get_by_reference(self, reference_id: str, tx_type: Optional[str] = None) -> Optional[Transaction]:
        stmt = select(Transaction).where(Transaction.reference_id == reference_id)
        if tx_type is not None:
            stmt = stmt.where(Transaction.type == tx_type)
        stmt = stmt.order_by(col(Transaction.created_at).desc()).limit(1)
        return (await self.session.exec(stmt)).first()

    async def list_for_user(self, user_id: str, *, limit: int = 50, offset: int = 0) -> List[Transaction]:
        stmt = (
            select(Transaction)
            .where(Transaction.user_id == user_id)
            .order_by(col(Transaction.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        return list((await self.session.exec(stmt)).all())

    async def set_status(self, transaction: Transaction, status: str, **details) -> Transaction:
        transaction.status = status
        transaction.updated_at = utc_now()
        if details:
            merged = transaction.get_details()
            merged.update(details)
            transaction.set_details(merged)
        return await self.update(transaction)
