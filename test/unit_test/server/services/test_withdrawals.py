"""Unit tests for the withdrawal approval workflow."""

from __future__ import annotations

from decimal import Decimal

import pytest
import pytest_asyncio

from advancia_pay.core.database.repositories import (
    LedgerRepository,
    NotificationRepository,
    TransactionRepository,
    UserRepository,
)
from advancia_pay.core.errors import (
    InsufficientBalanceError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailedError,
)
from advancia_pay.server.services.withdrawals import WithdrawalService, balance_field
from test.unit_test.conftest import emitted_events

pytestmark = pytest.mark.asyncio

WALLET = "bc1qxy2kgdygjrsqtzq2n0yrf2493p83kkfjhx0wlh"


@pytest_asyncio.fixture
async def customer(make_user):
    return await make_user("saver@example.com", balance="1000", crypto_balance="2")


@pytest_asyncio.fixture
async def admin(make_user):
    return await make_user("admin@example.com", role="ADMIN")


@pytest.fixture
def service(session, gateway) -> WithdrawalService:
    return WithdrawalService(session, gateway)


async def _balances(session, user_id: str) -> tuple[Decimal, Decimal]:
    user = await UserRepository(session).get_by_id(user_id, fresh=True)
    return user.balance, user.crypto_balance


async def test_balance_field_routing():
    assert balance_field("usd") == "balance"
    assert balance_field("FIAT") == "balance"
    assert balance_field("BTC") == "crypto_balance"
    assert balance_field("USDT") == "crypto_balance"


class TestRequestWithdrawal:
    async def test_holds_funds_and_records_everything(self, session, service, customer, admin, sio_server):
        withdrawal = await service.request_withdrawal(
            customer, amount=Decimal("250"), currency="usd", wallet_address=f"  {WALLET} "
        )

        assert withdrawal.status == "PENDING"
        assert withdrawal.currency == "USD"
        assert withdrawal.wallet_address == WALLET
        assert await _balances(session, customer.id) == (Decimal("750"), Decimal("2"))

        ledger = await LedgerRepository(session).list_for_user(customer.id)
        assert [(e.entry_type, e.amount) for e in ledger] == [("WITHDRAWAL_HOLD", Decimal("-250"))]
        assert await LedgerRepository(session).held_amount(customer.id, "USD") == Decimal("250")

        transaction = await TransactionRepository(session).get_by_reference(withdrawal.id, "WITHDRAWAL")
        assert transaction.status == "PENDING"

        assert len(await NotificationRepository(session).list_for_user(admin.id)) == 1

        sent = [event for event, _, _ in emitted_events(sio_server)]
        assert {"balance_update", "withdrawal_update", "transaction_update", "admin_notification"} <= set(sent)

    async def test_crypto_currency_uses_crypto_balance(self, session, service, customer):
        await service.request_withdrawal(customer, amount=Decimal("0.5"), currency="BTC", wallet_address=WALLET)
        assert await _balances(session, customer.id) == (Decimal("1000"), Decimal("1.5"))

    async def test_insufficient_balance_changes_nothing(self, session, service, customer, sio_server):
        customer_id = customer.id

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await service.request_withdrawal(
                customer, amount=Decimal("5000"), currency="USD", wallet_address=WALLET
            )

        assert exc_info.value.details["required"] == "5000"
        assert Decimal(exc_info.value.details["current"]) == Decimal("1000")
        assert await _balances(session, customer_id) == (Decimal("1000"), Decimal("2"))
        assert await LedgerRepository(session).list_for_user(customer_id) == []
        sio_server.emit.assert_not_awaited()

    @pytest.mark.parametrize(
        "amount,wallet",
        [(Decimal("0"), WALLET), (Decimal("-1"), WALLET), (Decimal("10"), "   ")],
    )
    async def test_rejects_invalid_input(self, service, customer, amount, wallet):
        with pytest.raises(ValidationFailedError):
            await service.request_withdrawal(customer, amount=amount, currency="USD", wallet_address=wallet)

    async def test_list_for_user_paginates(self, service, customer):
        for _ in range(3):
            await service.request_withdrawal(customer, amount=Decimal("1"), currency="USD", wallet_address=WALLET)

        items, total = await service.list_for_user(customer, page=2, limit=2)

        assert total == 3
        assert len(items) == 1


class TestReview:
    @pytest_asyncio.fixture
    async def pending(self, service, customer):
        return await service.request_withdrawal(
            customer, amount=Decimal("100"), currency="USD", wallet_address=WALLET
        )

    async def test_list_pending_includes_owner(self, service, pending, customer):
        items, total = await service.list_pending(page=1, limit=20)

        assert total == 1
        assert items[0]["id"] == pending.id
        assert items[0]["user"]["email"] == customer.email

    async def test_approve_then_process(self, session, service, pending, admin, customer):
        approved = await service.approve(pending.id, admin, notes="looks fine")

        assert approved.status == "APPROVED"
        assert approved.reviewed_by == admin.id
        assert approved.admin_notes == "looks fine"

        processed = await service.process(pending.id, admin, tx_hash="0xabc")

        assert processed.status == "PROCESSED"
        assert processed.tx_hash == "0xabc"
        assert await _balances(session, customer.id) == (Decimal("900"), Decimal("2"))
        assert await LedgerRepository(session).held_amount(customer.id, "USD") == Decimal("0")

        transaction = await TransactionRepository(session).get_by_reference(pending.id, "WITHDRAWAL")
        assert transaction.status == "COMPLETED"
        assert transaction.get_details()["txHash"] == "0xabc"

    async def test_reject_returns_funds(self, session, service, pending, admin, customer):
        rejected = await service.reject(pending.id, admin, reason="  Wallet flagged ")

        assert rejected.status == "REJECTED"
        assert rejected.rejection_reason == "Wallet flagged"
        assert await _balances(session, customer.id) == (Decimal("1000"), Decimal("2"))
        assert await LedgerRepository(session).sum_for_user(customer.id, "USD") == Decimal("0")

        transaction = await TransactionRepository(session).get_by_reference(pending.id, "WITHDRAWAL")
        assert transaction.status == "FAILED"

    async def test_reject_requires_reason(self, service, pending, admin):
        with pytest.raises(ValidationFailedError):
            await service.reject(pending.id, admin, reason="  ")

    async def test_second_approval_is_refused(self, service, pending, admin):
        await service.approve(pending.id, admin)

        with pytest.raises(InvalidTransitionError, match="Withdrawal is already approved"):
            await service.approve(pending.id, admin)

    async def test_reject_after_approval_is_refused(self, session, service, pending, admin, customer):
        customer_id = customer.id
        await service.approve(pending.id, admin)

        with pytest.raises(InvalidTransitionError):
            await service.reject(pending.id, admin, reason="changed my mind")
        assert await _balances(session, customer_id) == (Decimal("900"), Decimal("2"))

    async def test_process_requires_approval(self, service, pending, admin):
        with pytest.raises(InvalidTransitionError, match="Withdrawal is already pending"):
            await service.process(pending.id, admin)

    async def test_unknown_withdrawal(self, service, admin):
        with pytest.raises(NotFoundError):
            await service.approve("missing", admin)
