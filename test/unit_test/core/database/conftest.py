"""Test configuration for database unit tests.

Repositories only flush, so tests commit explicitly where they need state to
survive a rollback.
"""

from __future__ import annotations

import pytest_asyncio

from advancia_pay.core.database.entities import User


@pytest_asyncio.fixture
async def user(make_user) -> User:
    return await make_user("holder@example.com", balance="500", crypto_balance="2.5")
