"""
Ledger repository.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.ledger import LedgerEntry
from .base import AsyncBaseRepository, QueryBuilder

HOLD_TYPES = ("WITHDRAWAL_HOLD", "WITHDRAWAL_RELEASE")


def _amount(value) -> Decimal:
    # sums that cancel out come back from Numeric columns as 0E-8
    amount = Decimal(str(value))
    return amount if amount else Decimal("0")


class LedgerRepository(AsyncBaseRepository[LedgerEntry]):
    """Repository for the append-only ledger."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, LedgerEntry)

    async def record(
        self,
        *,
        user_id: str,
        currency: str,
        amount: Decimal,
        entry_type: str,
        reference_id: Optional[str] = None,
        actor_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> LedgerEntry:
        entry = LedgerEntry(
            user_id=user_id,
            currency=currency.upper(),
            amount=amount,
            entry_type=entry_type,
            reference_id=reference_id,
            actor_id=actor_id,
            reason=reason,
        )
        return await self.create(entry)

    async def list_for_user(
        self, user_id: str, *, currency: Optional[str] = None, limit: int = 100, offset: int = 0
    ) -> List[LedgerEntry]:
        stmt = select(LedgerEntry).where(LedgerEntry.user_id == user_id)
        if currency:
            stmt = stmt.where(LedgerEntry.currency == currency.upper())
        stmt = stmt.order_by(col(LedgerEntry.created_at).desc()).offset(offset).limit(limit)
        return list((await self.session.exec(stmt)).all())

    async def list_recent(
        self, filters: Optional[Dict[str, Any]] = None, *, limit: int = 50, offset: int = 0
    ) -> List[LedgerEntry]:
        """Entries across users, newest first, with equality ``filters`` as in :meth:`list`."""
        stmt = select(LedgerEntry)
        if filters:
            stmt = QueryBuilder.apply_filters(stmt, LedgerEntry, filters)
        stmt = stmt.order_by(col(LedgerEntry.created_at).desc()).offset(offset).limit(limit)
        return list((await self.session.exec(stmt)).all())

    async def sum_for_user(self, user_id: str, currency: Optional[str] = None) -> Decimal:
        stmt = select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(LedgerEntry.user_id == user_id)
        if currency:
            stmt = stmt.where(LedgerEntry.currency == currency.upper())
        return _amount((await self.session.exec(stmt)).one())

    async def held_amount(self, user_id: str, currency: Optional[str] = None) -> Decimal:
        """Funds currently held by open withdrawals.

        Holds are negative and releases positive, so the held amount is the
        negated sum of both over withdrawals that have not completed.
        """
        completed = select(LedgerEntry.reference_id).where(
            LedgerEntry.user_id == user_id, LedgerEntry.entry_type == "WITHDRAWAL_COMPLETE"
        )
        stmt = select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(
            LedgerEntry.user_id == user_id,
            col(LedgerEntry.entry_type).in_(HOLD_TYPES),
            col(LedgerEntry.reference_id).not_in(completed),
        )
        if currency:
            stmt = stmt.where(LedgerEntry.currency == currency.upper())
        total = _amount((await self.session.exec(stmt)).one())
        return -total if total else total
