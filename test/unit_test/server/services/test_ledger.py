"""Unit tests for admin credits, deductions and account freezing."""

from decimal import Decimal

import pytest
import pytest_asyncio

from advancia_pay.core.database.repositories import LedgerRepository, TransactionRepository, UserRepository
from advancia_pay.core.errors import InsufficientBalanceError, NotFoundError, ValidationFailedError
from advancia_pay.server.services.ledger import LedgerAdminService
from test.unit_test.conftest import emitted_events

pytestmark = pytest.mark.asyncio


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin@example.com", role="ADMIN")


@pytest_asyncio.fixture
async def holder(make_user):
    return await make_user("holder@example.com", balance="100", crypto_balance="1")


@pytest.fixture
def service(session, gateway) -> LedgerAdminService:
    return LedgerAdminService(session, gateway)


async def test_credit_updates_balance_ledger_and_transaction(session, service, admin, holder, sio_server):
    result = await service.credit(admin, holder.id, amount=Decimal("40"), currency="usd", reason="Goodwill")

    refreshed = await UserRepository(session).get_by_id(holder.id, fresh=True)
    assert refreshed.balance == Decimal("140")
    assert result["entry"]["entry_type"] == "ADJUSTMENT"
    assert Decimal(result["entry"]["amount"]) == Decimal("40")
    assert result["entry"]["actor_id"] == admin.id
    transaction = await TransactionRepository(session).get_by_id(result["transaction"]["id"])
    assert transaction.type == "ADJUSTMENT"
    assert transaction.status == "COMPLETED"
    assert await LedgerRepository(session).sum_for_user(holder.id, "USD") == Decimal("40")
    emitted = {event for event, _, _ in emitted_events(sio_server)}
    assert {"balance_update", "transaction_update", "new_notification"} <= emitted


async def test_crypto_credit_routes_to_crypto_balance(session, service, admin, holder):
    await service.credit(admin, holder.id, amount=Decimal("0.25"), currency="BTC", reason="Airdrop")

    refreshed = await UserRepository(session).get_by_id(holder.id, fresh=True)
    assert refreshed.crypto_balance == Decimal("1.25")
    assert refreshed.balance == Decimal("100")


async def test_deduction_records_negative_entry(session, service, admin, holder):
    result = await service.deduct(
        admin, holder.id, amount=Decimal("30"), currency="USD", reason="Chargeback recovered"
    )

    assert (await UserRepository(session).get_by_id(holder.id, fresh=True)).balance == Decimal("70")
    assert Decimal(result["entry"]["amount"]) == Decimal("-30")


async def test_deduction_rejects_overdraft(session, service, admin, holder):
    holder_id = holder.id
    with pytest.raises(InsufficientBalanceError):
        await service.deduct(admin, holder_id, amount=Decimal("500"), currency="USD", reason="Chargeback recovered")

    assert (await UserRepository(session).get_by_id(holder_id, fresh=True)).balance == Decimal("100")
    assert await LedgerRepository(session).list_for_user(holder_id) == []


async def test_deduction_requires_detailed_reason(service, admin, holder):
    with pytest.raises(ValidationFailedError):
        await service.deduct(admin, holder.id, amount=Decimal("5"), currency="USD", reason="fee")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1")])
async def test_amount_must_be_positive(service, admin, holder, amount):
    with pytest.raises(ValidationFailedError):
        await service.credit(admin, holder.id, amount=amount, currency="USD", reason="Goodwill")


async def test_unknown_user(service, admin):
    with pytest.raises(NotFoundError):
        await service.credit(admin, "missing", amount=Decimal("1"), currency="USD", reason="Goodwill")


async def test_frozen_account_cannot_be_adjusted(session, service, admin, holder):
    holder_id, admin_id = holder.id, admin.id
    frozen = await service.set_frozen(admin, holder_id, frozen=True, reason="Fraud review")
    assert frozen.active is False

    with pytest.raises(ValidationFailedError):
        await service.credit(admin, holder_id, amount=Decimal("1"), currency="USD", reason="Goodwill")

    admin = await UserRepository(session).get_by_id(admin_id, fresh=True)
    user = await service.set_frozen(admin, holder_id, frozen=False)
    assert user.active is True


async def test_admin_cannot_freeze_self(service, admin):
    with pytest.raises(ValidationFailedError):
        await service.set_frozen(admin, admin.id, frozen=True)


async def test_user_statement_includes_balances(service, admin, holder):
    await service.credit(admin, holder.id, amount=Decimal("10"), currency="USD", reason="Goodwill")
    await service.deduct(admin, holder.id, amount=Decimal("10"), currency="USD", reason="Reverse goodwill")

    statement = await service.user_statement(holder.id, currency="usd")

    assert statement["user"]["email"] == "holder@example.com"
    assert Decimal(statement["balance"]) == Decimal("100")
    assert len(statement["entries"]) == 2
    assert statement["total"] == "0"
    assert statement["held"] == "0"
    assert statement["currency"] == "USD"


async def test_user_statement_unknown_user(service):
    with pytest.raises(NotFoundError):
        await service.user_statement("missing")


class TestAdjustment:
    async def test_negative_correction_debits(self, session, service, admin, holder):
        result = await service.adjust(
            admin, holder.id, amount=Decimal("-12.50"), currency="USD", reason="Duplicate deposit reversal"
        )

        assert (await UserRepository(session).get_by_id(holder.id, fresh=True)).balance == Decimal("87.50")
        assert Decimal(result["entry"]["amount"]) == Decimal("-12.50")
        transaction = await TransactionRepository(session).get_by_id(result["transaction"]["id"])
        assert transaction.get_details()["direction"] == "debit"

    async def test_negative_correction_is_guarded(self, session, service, admin, holder):
        holder_id = holder.id
        with pytest.raises(InsufficientBalanceError):
            await service.adjust(
                admin, holder_id, amount=Decimal("-101"), currency="USD", reason="Duplicate deposit reversal"
            )
        assert (await UserRepository(session).get_by_id(holder_id, fresh=True)).balance == Decimal("100")

    async def test_zero_is_rejected(self, service, admin, holder):
        with pytest.raises(ValidationFailedError, match="must not be zero"):
            await service.adjust(admin, holder.id, amount=Decimal("0"), currency="USD", reason="Nothing to see here")

    async def test_reason_needs_fifteen_characters(self, service, admin, holder):
        with pytest.raises(ValidationFailedError):
            await service.adjust(admin, holder.id, amount=Decimal("5"), currency="USD", reason="Fix rounding")


async def test_history_filters_and_paginates(service, admin, holder, make_user):
    other = await make_user("other@example.com", balance="10")
    await service.credit(admin, holder.id, amount=Decimal("1"), currency="USD", reason="First credit")
    await service.credit(admin, holder.id, amount=Decimal("2"), currency="USD", reason="Second credit")
    await service.credit(admin, other.id, amount=Decimal("3"), currency="USD", reason="Other credit")

    everything, total = await service.history(page=1, limit=10)
    first_page, holder_total = await service.history(user_id=holder.id, entry_type="adjustment", page=1, limit=1)
    deposits, deposit_total = await service.history(entry_type="DEPOSIT", page=1, limit=10)

    assert total == len(everything) == 3
    assert holder_total == 2
    assert len(first_page) == 1 and first_page[0]["user_id"] == holder.id
    assert (deposits, deposit_total) == ([], 0)
