"""
Payments and payment plans repositories.
"""

from __future__ import annotations

from typing import List, Optional

from sqlalchemy import update
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..base import utc_now
from ..entities.payments import Payment
from ..entities.plans import PaymentPlan, Subscription
from .base import AsyncBaseRepository


class PaymentRepository(AsyncBaseRepository[Payment]):
    """Repository for provider-side payments."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Payment)

    async def get_by_provider_id(self, provider: str, provider_payment_id: str) -> Optional[Payment]:
        stmt = select(Payment).where(
            Payment.provider == provider, Payment.provider_payment_id == str(provider_payment_id)
        )
        return (await self.session.exec(stmt)).one_or_none()

    async def list_for_user(self, user_id: str, *, limit: int = 50, offset: int = 0) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.user_id == user_id)
            .order_by(col(Payment.created_at).desc())
            .offset(offset)
            .limit(limit)
        )
        return list((await self.session.exec(stmt)).all())

    async def claim_credit(self, payment_id: str) -> bool:
        """Flag a completed payment as credited; only the first caller wins."""
        stmt = (
            update(Payment)
            .where(col(Payment.id) == payment_id, col(Payment.credited) == False)  # noqa: E712
            .values(credited=True, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount == 1


class PaymentPlanRepository(AsyncBaseRepository[PaymentPlan]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, PaymentPlan)

    async def list_active(self) -> List[PaymentPlan]:
        stmt = (
            select(PaymentPlan)
            .where(PaymentPlan.is_active == True)  # noqa: E712
            .order_by(col(PaymentPlan.price_usd).asc())
        )
        return list((await self.session.exec(stmt)).all())


class SubscriptionRepository(AsyncBaseRepository[Subscription]):
    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Subscription)

    async def get_by_stripe_id(self, stripe_subscription_id: str) -> Optional[Subscription]:
        stmt = select(Subscription).where(Subscription.stripe_subscription_id == stripe_subscription_id)
        return (await self.session.exec(stmt)).one_or_none()
