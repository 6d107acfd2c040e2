"""Unit tests for engine and session factory helpers."""

import pytest
from sqlmodel.ext.asyncio.session import AsyncSession

from advancia_pay.core.database import create_engine, create_sessionmaker, new_id, utc_now


class TestCreateEngine:
    @pytest.mark.parametrize(
        "url",
        [
            "postgres://u:p@db:5432/app",
            "postgresql://u:p@db:5432/app",
            "postgresql+psycopg2://u:p@db:5432/app",
        ],
    )
    def test_postgres_urls_use_asyncpg(self, url):
        engine = create_engine(url)
        assert engine.url.drivername == "postgresql+asyncpg"
        assert engine.url.database == "app"

    def test_sqlite_url_is_untouched(self):
        engine = create_engine("sqlite+aiosqlite:///:memory:")
        assert engine.url.drivername == "sqlite+aiosqlite"


class TestSessionmaker:
    @pytest.mark.asyncio
    async def test_sessions_keep_objects_after_commit(self, test_engine):
        factory = create_sessionmaker(test_engine)
        assert factory.class_ is AsyncSession
        assert factory.kw["expire_on_commit"] is False


def test_new_id_is_unique_hex():
    first, second = new_id(), new_id()
    assert first != second
    assert len(first) == 32
    int(first, 16)


def test_utc_now_is_timezone_aware():
    assert utc_now().utcoffset().total_seconds() == 0
