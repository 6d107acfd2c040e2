"""Unit tests for entity defaults, JSON columns and table constraints."""

from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from advancia_pay.core.database.entities import (
    Notification,
    PaymentPlan,
    Transaction,
    User,
    WebhookEvent,
    Withdrawal,
)


class TestDefaults:
    def test_user(self):
        user = User(email="a@example.com", username="a", password_hash="x")
        assert user.role == "USER"
        assert user.active is True
        assert user.balance == Decimal("0")
        assert user.trust_score == 50
        assert len(user.id) == 32

    def test_withdrawal_starts_pending(self):
        withdrawal = Withdrawal(user_id="u1", amount=Decimal("1"), currency="USD", wallet_address="w")
        assert withdrawal.status == "PENDING"
        assert withdrawal.requested_at.tzinfo is not None

    def test_webhook_event_retry_budget(self):
        event = WebhookEvent(provider="stripe", event_type="x", event_id="evt", payload="{}")
        assert (event.retry_count, event.max_retries, event.processed) == (0, 3, False)


class TestJsonColumns:
    def test_notification_data_round_trip_with_decimals(self):
        notification = Notification(user_id="u1", title="t", message="m")
        notification.set_data({"amount": Decimal("1.50")})
        assert notification.get_data() == {"amount": "1.50"}

    def test_corrupt_json_reads_as_empty(self):
        assert Notification(user_id="u1", title="t", message="m", data="{oops").get_data() == {}
        assert PaymentPlan(name="p", price_usd=Decimal("1"), features="nope").get_features_list() == []
        assert Transaction(user_id="u1", type="DEPOSIT", amount=Decimal("1"), details="").get_details() == {}

    def test_plan_features(self):
        plan = PaymentPlan(name="Pro", price_usd=Decimal("10"))
        assert plan.get_features_list() == []
        plan.set_features_list(["a", "b"])
        assert plan.get_features_list() == ["a", "b"]


@pytest.mark.asyncio
class TestConstraints:
    async def test_negative_balance_is_rejected(self, session):
        session.add(User(email="neg@example.com", username="neg", password_hash="x", balance=Decimal("-1")))
        with pytest.raises(IntegrityError):
            await session.commit()
        await session.rollback()

    async def test_email_is_unique(self, session, make_user):
        await make_user("dup@example.com", username="first")
        session.add(User(email="dup@example.com", username="second", password_hash="x"))
        with pytest.raises(IntegrityError):
            await session.commit()
        await session.rollback()
