"""
User entity models.

A user owns two balances: ``balance`` for fiat settlement and ``crypto_balance``
for every other currency. Balances are only ever changed through guarded
repository updates that also write a ledger entry.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime
from sqlmodel import Field

from ..base import Base, new_id, utc_now


class User(Base, table=True):
    """Entity for platform accounts.

    Table: ap_users
    """

    __tablename__ = "ap_users"
    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_ap_users_balance_non_negative"),
        CheckConstraint("crypto_balance >= 0", name="ck_ap_users_crypto_balance_non_negative"),
    )

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    email: str = Field(max_length=255, unique=True, index=True)
    username: str = Field(max_length=64, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    role: str = Field(default="USER", max_length=32, index=True)
    active: bool = Field(default=True)

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)

    # Balances
    balance: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=8)
    crypto_balance: Decimal = Field(default=Decimal("0"), max_digits=20, decimal_places=8)
    trust_score: int = Field(default=50)

    last_login: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"User(id={self.id}, email={self.email}, role={self.role})"
