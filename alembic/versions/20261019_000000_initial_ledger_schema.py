"""Initial schema for the Advancia Pay Ledger

Revision ID: 20261019_000000
Revises: None
Create Date: 2026-10-19 00:00:00.000000

Creates every ``ap_`` table:
- Accounts (users) and their append-only ledger
- Withdrawals and user-facing transactions
- Provider payments, payment plans and subscriptions
- Notifications, webhook deliveries and bookings

Revision format: YYYYMMDD_HHMMSS_description

"""

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_000000"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _money(precision: int = 20, scale: int = 8) -> sa.Numeric:
    return sa.Numeric(precision, scale)


def upgrade() -> None:
    """Create all tables."""

    op.create_table(
        "ap_users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("username", sa.String(64), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(32), nullable=False, server_default="USER"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("first_name", sa.String(100), nullable=True),
        sa.Column("last_name", sa.String(100), nullable=True),
        sa.Column("balance", _money(), nullable=False, server_default="0"),
        sa.Column("crypto_balance", _money(), nullable=False, server_default="0"),
        sa.Column("trust_score", sa.Integer(), nullable=False, server_default="50"),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("balance >= 0", name="ck_ap_users_balance_non_negative"),
        sa.CheckConstraint("crypto_balance >= 0", name="ck_ap_users_crypto_balance_non_negative"),
        sa.Index("ix_ap_users_email", "email", unique=True),
        sa.Index("ix_ap_users_username", "username", unique=True),
        sa.Index("ix_ap_users_role", "role"),
    )

    op.create_table(
        "ap_withdrawals",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("ap_users.id"), nullable=False),
        sa.Column("amount", _money(), nullable=False),
        sa.Column("currency", sa.String(16), nullable=False),
        sa.Column("wallet_address", sa.String(255), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        sa.Column("requested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.String(64), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("tx_hash", sa.String(255), nullable=True),
        sa.Column("processed_by", sa.String(64), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ap_withdrawals_user_id", "user_id"),
        sa.Index("ix_ap_withdrawals_status", "status"),
        sa.Index("ix_ap_withdrawals_requested_at", "requested_at"),
    )

    op.create_table(
        "ap_transactions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("ap_users.id"), nullable=False),
        sa.Column("type", sa.String(16), nullable=False),
        sa.Column("amount", _money(), nullable=False),
        sa.Column("currency", sa.String(16), nullable=False, server_default="USD"),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference_id", sa.String(128), nullable=True),
        sa.Column("provider", sa.String(32), nullable=True),
        sa.Column("details", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ap_transactions_user_id", "user_id"),
        sa.Index("ix_ap_transactions_type", "type"),
        sa.Index("ix_ap_transactions_status", "status"),
        sa.Index("ix_ap_transactions_reference_id", "reference_id"),
        sa.Index("ix_ap_transactions_created_at", "created_at"),
    )

    op.create_table(
        "ap_ledger_entries",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("ap_users.id"), nullable=False),
        sa.Column("currency", sa.String(16), nullable=False),
        sa.Column("amount", _money(), nullable=False),
        sa.Column("entry_type", sa.String(32), nullable=False),
        sa.Column("reference_id", sa.String(128), nullable=True),
        sa.Column("actor_id", sa.String(64), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ap_ledger_entries_user_id", "user_id"),
        sa.Index("ix_ap_ledger_entries_currency", "currency"),
        sa.Index("ix_ap_ledger_entries_entry_type", "entry_type"),
        sa.Index("ix_ap_ledger_entries_reference_id", "reference_id"),
        sa.Index("ix_ap_ledger_entries_created_at", "created_at"),
    )

    op.create_table(
        "ap_payments",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("ap_users.id"), nullable=False),
        sa.Column("provider", sa.String(32), nullable=False),
        sa.Column("provider_payment_id", sa.String(128), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("provider_status", sa.String(64), nullable=True),
        sa.Column("amount_usd", _money(), nullable=False),
        sa.Column("amount_crypto", _money(28, 12), nullable=True),
        sa.Column("crypto_currency", sa.String(16), nullable=True),
        sa.Column("pay_address", sa.String(255), nullable=True),
        sa.Column("tx_hash", sa.String(255), nullable=True),
        sa.Column("confirmations", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        sa.Column("credited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("provider", "provider_payment_id", name="uq_ap_payments_provider_id"),
        sa.Index("ix_ap_payments_user_id", "user_id"),
        sa.Index("ix_ap_payments_provider", "provider"),
        sa.Index("ix_ap_payments_provider_payment_id", "provider_payment_id"),
        sa.Index("ix_ap_payments_status", "status"),
        sa.Index("ix_ap_payments_created_at", "created_at"),
    )

    op.create_table(
        "ap_payment_plans",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_usd", sa.Numeric(12, 2), nullable=False),
        sa.Column("interval_months", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("features", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("stripe_product_id", sa.String(128), nullable=True),
        sa.Column("stripe_price_id", sa.String(128), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ap_payment_plans_is_active", "is_active"),
    )

    op.create_table(
        "ap_subscriptions",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("ap_users.id"), nullable=False),
        sa.Column("plan_id", sa.String(64), sa.ForeignKey("ap_payment_plans.id"), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="incomplete"),
        sa.Column("stripe_customer_id", sa.String(128), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(128), nullable=True),
        sa.Column("card_last4", sa.String(4), nullable=True),
        sa.Column("card_brand", sa.String(32), nullable=True),
        sa.Column("card_exp_month", sa.Integer(), nullable=True),
        sa.Column("card_exp_year", sa.Integer(), nullable=True),
        sa.Column("current_period_start", sa.DateTime(timezone=True), nullable=True),
        sa.Column("current_period_end", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ap_subscriptions_user_id", "user_id"),
        sa.Index("ix_ap_subscriptions_plan_id", "plan_id"),
        sa.Index("ix_ap_subscriptions_stripe_subscription_id", "stripe_subscription_id"),
    )

    op.create_table(
        "ap_notifications",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("ap_users.id"), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("level", sa.String(16), nullable=False, server_default="INFO"),
        sa.Column("data", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ap_notifications_user_id", "user_id"),
        sa.Index("ix_ap_notifications_read", "read"),
        sa.Index("ix_ap_notifications_created_at", "created_at"),
    )

    op.create_table(
        "ap_webhook_events",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("provider", sa.String(32), nullable=False),
        sa.Column("event_type", sa.String(128), nullable=False),
        sa.Column("event_id", sa.String(255), nullable=False),
        sa.Column("payload", sa.Text(), nullable=False),
        sa.Column("signature", sa.String(512), nullable=True),
        sa.Column("processed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("processing_result", sa.String(16), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("retry_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_retries", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ap_webhook_events_provider", "provider"),
        sa.Index("ix_ap_webhook_events_event_id", "event_id"),
        sa.Index("ix_ap_webhook_events_processed", "processed"),
        sa.Index("ix_ap_webhook_events_created_at", "created_at"),
    )

    op.create_table(
        "ap_bookings",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("user_id", sa.String(64), sa.ForeignKey("ap_users.id"), nullable=False),
        sa.Column("chamber", sa.String(64), nullable=False),
        sa.Column("session_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("cost", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="PENDING"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_ap_bookings_user_id", "user_id"),
        sa.Index("ix_ap_bookings_session_date", "session_date"),
        sa.Index("ix_ap_bookings_status", "status"),
    )


def downgrade() -> None:
    """Drop all tables created in upgrade."""
    op.drop_table("ap_bookings")
    op.drop_table("ap_webhook_events")
    op.drop_table("ap_notifications")
    op.drop_table("ap_subscriptions")
    op.drop_table("ap_payment_plans")
    op.drop_table("ap_payments")
    op.drop_table("ap_ledger_entries")
    op.drop_table("ap_transactions")
    op.drop_table("ap_withdrawals")
    op.drop_table("ap_users")
