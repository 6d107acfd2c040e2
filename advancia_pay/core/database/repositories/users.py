"""
Users repository.

Balance changes go through :meth:`UserRepository.debit` and
:meth:`UserRepository.credit`, which issue single conditional UPDATE statements.
A debit only succeeds when the balance still covers the amount at the moment the
row is written, so concurrent withdrawals can never overdraw an account.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..base import utc_now
from ..entities.users import User
from .base import AsyncBaseRepository

BALANCE_FIELDS = ("balance", "crypto_balance")


class UserRepository(AsyncBaseRepository[User]):
    """Repository for user accounts and balances."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.session.exec(select(User).where(User.email == email.lower()))
        return result.one_or_none()

    async def get_by_username(self, username: str) -> Optional[User]:
        result = await self.session.exec(select(User).where(User.username == username))
        return result.one_or_none()

    async def list_by_roles(self, roles: Iterable[str]) -> List[User]:
        stmt = select(User).where(col(User.role).in_(list(roles)), User.active == True)  # noqa: E712
        result = await self.session.exec(stmt)
        return list(result.all())

    async def touch_last_login(self, user: User) -> User:
        user.last_login = utc_now()
        return await self.update(user)

    async def debit(self, user_id: str, field: str, amount: Decimal) -> bool:
        """Subtract ``amount`` from a balance if and only if it is covered.

        Returns:
            True when the row was updated, False when funds were insufficient
            or the user does not exist.
        """
        column = _balance_column(field)
        stmt = (
            update(User)
            .where(col(User.id) == user_id, column >= amount)
            .values({field: column - amount, "updated_at": utc_now()})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount == 1

    async def credit(self, user_id: str, field: str, amount: Decimal) -> bool:
        column = _balance_column(field)
        stmt = (
            update(User)
            .where(col(User.id) == user_id)
            .values({field: column + amount, "updated_at": utc_now()})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount == 1


def _balance_column(field: str):
    if field not in BALANCE_FIELDS:
        raise ValueError(f"Unknown balance field: {field}")
    return getattr(User, field)
