"""Shared fixtures for unit tests.

Every test gets its own in-memory SQLite database with the full schema, a
session bound to it, and a realtime gateway whose Socket.IO server is mocked so
emitted events can be asserted on.
"""

from __future__ import annotations

from decimal import Decimal
from typing import AsyncGenerator, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlmodel.pool import StaticPool

from advancia_pay.core.database import create_all, create_sessionmaker
from advancia_pay.core.database.entities import User
from advancia_pay.realtime import RealtimeGateway
from advancia_pay.server.core.config import (
    AlchemyPayConfig,
    NOWPaymentsConfig,
    Settings,
    StripeConfig,
)
from advancia_pay.server.core.security import hash_password
from advancia_pay.server.services.auth import issue_token

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create a fresh in-memory database for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_all(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(name="session")
async def session_fixture(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with create_sessionmaker(test_engine)() as session:
        yield session


@pytest.fixture
def sio_server() -> MagicMock:
    """Stand-in for ``socketio.AsyncServer`` recording emits and room joins."""
    server = MagicMock()
    server.emit = AsyncMock()
    server.enter_room = AsyncMock()
    return server


@pytest.fixture
def gateway(sio_server: MagicMock) -> RealtimeGateway:
    return RealtimeGateway(server=sio_server)


@pytest.fixture
def app_settings(test_config) -> Settings:
    """Application settings with every payment provider configured for tests."""
    providers = test_config.providers
    return Settings(
        nowpayments=NOWPaymentsConfig(
            api_key=providers.nowpayments_api_key,
            ipn_secret=providers.nowpayments_ipn_secret,
            base_url="http://mock-nowpayments/v1",
        ),
        alchemy_pay=AlchemyPayConfig(app_id="test-app", secret=providers.alchemy_pay_secret),
        stripe=StripeConfig(secret_key="sk_test_123", webhook_secret=providers.stripe_webhook_secret),
        backend_url="http://localhost:4000",
    )


@pytest.fixture
def make_user(session: AsyncSession):
    """Factory persisting a user with the given role and balances."""

    async def _make(
        email: str = "user@example.com",
        *,
        role: str = "USER",
        balance: str = "0",
        crypto_balance: str = "0",
        username: Optional[str] = None,
        password: str = "password123",
        active: bool = True,
    ) -> User:
        user = User(
            email=email,
            username=username or email.split("@")[0],
            password_hash=hash_password(password, rounds=4),
            role=role,
            active=active,
            balance=Decimal(balance),
            crypto_balance=Decimal(crypto_balance),
        )
        session.add(user)
        await session.commit()
        return user

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user: User) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(user)}"}

    return _headers


def emitted_events(sio_server: MagicMock) -> list[tuple[str, dict, dict]]:
    """(event, payload, target kwargs) for every emit on the mocked server."""
    return [(c.args[0], c.args[1], c.kwargs) for c in sio_server.emit.await_args_list]
