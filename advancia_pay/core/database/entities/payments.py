"""
Payment entity models.

A ``Payment`` mirrors a payment created at an external provider (Stripe,
NOWPayments, Alchemy Pay). Webhooks update it; the first transition into
``completed`` credits the user exactly once, tracked by ``credited``.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class Payment(Base, table=True):
    """Entity for provider-side payments.

    Table: ap_payments
    """

    __tablename__ = "ap_payments"
    __table_args__ = (UniqueConstraint("provider", "provider_payment_id", name="uq_ap_payments_provider_id"),)

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True, foreign_key="ap_users.id")
    provider: str = Field(max_length=32, index=True)
    provider_payment_id: Optional[str] = Field(default=None, max_length=128, index=True)

    # Normalized and raw provider status
    status: str = Field(default="pending", max_length=16, index=True)
    provider_status: Optional[str] = Field(default=None, max_length=64)

    amount_usd: Decimal = Field(max_digits=20, decimal_places=8)
    amount_crypto: Optional[Decimal] = Field(default=None, max_digits=28, decimal_places=12)
    crypto_currency: Optional[str] = Field(default=None, max_length=16)
    pay_address: Optional[str] = Field(default=None, max_length=255)
    tx_hash: Optional[str] = Field(default=None, max_length=255)
    confirmations: int = Field(default=0)
    failure_reason: Optional[str] = Field(default=None, sa_type=Text)
    credited: bool = Field(default=False)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"Payment(id={self.id}, provider={self.provider}, status={self.status})"
