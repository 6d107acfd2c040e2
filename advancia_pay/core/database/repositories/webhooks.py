"""
Webhook events repository.
"""

from __future__ import annotations

from typing import Any, List, Optional

from sqlmodel import col, func, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..entities.webhooks import WebhookEvent
from .base import AsyncBaseRepository


class WebhookEventRepository(AsyncBaseRepository[WebhookEvent]):
    """Repository for received webhook deliveries."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, WebhookEvent)

    async def find_successful(self, provider: str, event_id: str) -> Optional[WebhookEvent]:
        """Return an earlier delivery of the same event that was processed successfully."""
        stmt = (
            select(WebhookEvent)
            .where(
                WebhookEvent.provider == provider,
                WebhookEvent.event_id == event_id,
                WebhookEvent.processed == True,  # noqa: E712
                WebhookEvent.processing_result == "success",
            )
            .limit(1)
        )
        return (await self.session.exec(stmt)).first()

    async def list_recent(self, limit: int = 100) -> List[WebhookEvent]:
        stmt = select(WebhookEvent).order_by(col(WebhookEvent.created_at).desc()).limit(limit)
        return list((await self.session.exec(stmt)).all())

    async def stats(self) -> dict[str, Any]:
        total = await self.count()
        processed = await self.count({"processed": True, "processing_result": "success"})
        failed = await self.count({"processing_result": "error"})
        by_provider_stmt = select(WebhookEvent.provider, func.count()).group_by(WebhookEvent.provider)
        by_provider = {p: int(n) for p, n in (await self.session.exec(by_provider_stmt)).all()}
        return {"total": total, "processed": processed, "failed": failed, "by_provider": by_provider}
