"""Unit tests for the notifications inbox and ledger statement."""

from decimal import Decimal

import pytest
import pytest_asyncio

from advancia_pay.core.database.entities import Notification
from advancia_pay.core.database.repositories import LedgerRepository
from advancia_pay.core.errors import NotFoundError
from advancia_pay.server.services.account import AccountService

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def member(make_user):
    return await make_user("member@example.com")


@pytest.fixture
def service(session, gateway) -> AccountService:
    return AccountService(session, gateway)


@pytest_asyncio.fixture
async def inbox(session, member):
    first = Notification(user_id=member.id, title="First", message="one")
    first.set_data({"withdrawalId": "w1"})
    session.add(first)
    session.add(Notification(user_id=member.id, title="Second", message="two"))
    await session.commit()
    return first


async def test_list_notifications_decodes_data(service, member, inbox):
    views = await service.list_notifications(member)

    assert {v["title"] for v in views} == {"First", "Second"}
    first = next(v for v in views if v["title"] == "First")
    assert first["data"] == {"withdrawalId": "w1"}


async def test_mark_read(service, member, inbox):
    view = await service.mark_read(member, inbox.id)

    assert view["read"] is True
    unread = await service.list_notifications(member, unread_only=True)
    assert [v["title"] for v in unread] == ["Second"]


async def test_mark_read_of_another_user(service, inbox, make_user):
    stranger = await make_user("stranger@example.com")
    with pytest.raises(NotFoundError):
        await service.mark_read(stranger, inbox.id)


async def test_mark_all_read(service, member, inbox):
    assert await service.mark_all_read(member) == 2
    assert await service.list_notifications(member, unread_only=True) == []


async def test_ledger_statement(session, service, member):
    ledger = LedgerRepository(session)
    await ledger.record(user_id=member.id, currency="usd", amount=Decimal("100"), entry_type="DEPOSIT")
    await ledger.record(
        user_id=member.id, currency="USD", amount=Decimal("-40"), entry_type="WITHDRAWAL_HOLD", reference_id="w1"
    )
    await ledger.record(user_id=member.id, currency="BTC", amount=Decimal("0.5"), entry_type="DEPOSIT")
    await session.commit()

    statement = await service.ledger_statement(member, currency="usd")

    assert statement["currency"] == "USD"
    assert len(statement["entries"]) == 2
    assert Decimal(statement["total"]) == Decimal("60")
    assert Decimal(statement["held"]) == Decimal("40")

    everything = await service.ledger_statement(member)
    assert everything["currency"] is None
    assert len(everything["entries"]) == 3
