from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from advancia_pay.realtime import RealtimeGateway
from advancia_pay.server.core.idempotency import InMemoryIdempotencyStore, get_idempotency_store


@pytest_asyncio.fixture
async def idempotency_store() -> InMemoryIdempotencyStore:
    return InMemoryIdempotencyStore()


@pytest_asyncio.fixture(name="client")
async def client_fixture(
    session: AsyncSession, gateway: RealtimeGateway, idempotency_store: InMemoryIdempotencyStore
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client with overridden database, gateway and idempotency dependencies."""
    from advancia_pay.core.database import get_session
    from advancia_pay.server.main import app
    from advancia_pay.server.services.deps import get_realtime_gateway

    async def get_session_override() -> AsyncGenerator[AsyncSession, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override
    app.dependency_overrides[get_realtime_gateway] = lambda: gateway
    app.dependency_overrides[get_idempotency_store] = lambda: idempotency_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://localhost") as client:
        yield client

    app.dependency_overrides.clear()
