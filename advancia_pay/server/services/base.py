"""
Transactional service base.

A service method wraps its writes in :meth:`TransactionalService.unit_of_work`.
The block commits on success and then dispatches the queued socket pushes. On
any exception it rolls back, drops the queued pushes and re-raises.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlmodel.ext.asyncio.session import AsyncSession

from advancia_pay.core.logging_config import get_logger
from advancia_pay.realtime.gateway import RealtimeGateway
from advancia_pay.realtime.notifications import NotificationService

logger = get_logger(__name__)


class TransactionalService:
    def __init__(self, session: AsyncSession, gateway: Optional[RealtimeGateway] = None) -> None:
        self.session = session
        self.notifier = NotificationService(session, gateway)

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[None]:
        try:
            yield
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            self.notifier.discard()
            raise
        await self.notifier.dispatch()
