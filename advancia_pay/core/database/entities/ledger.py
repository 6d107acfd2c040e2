"""
Ledger entity models.

Append-only record of every balance movement. The sum of a user's entries in a
currency equals the balance routed for that currency.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class LedgerEntry(Base, table=True):
    """Entity for signed balance movements.

    Table: ap_ledger_entries
    """

    __tablename__ = "ap_ledger_entries"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True, foreign_key="ap_users.id")
    currency: str = Field(max_length=16, index=True)
    amount: Decimal = Field(max_digits=20, decimal_places=8)
    entry_type: str = Field(max_length=32, index=True)
    reference_id: Optional[str] = Field(default=None, max_length=128, index=True)
    actor_id: Optional[str] = Field(default=None, max_length=64)
    reason: Optional[str] = Field(default=None, sa_type=Text)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)

    def __repr__(self) -> str:
        return f"LedgerEntry(id={self.id}, type={self.entry_type}, amount={self.amount} {self.currency})"
