"""
Transaction entity models.

Transactions are the user-facing history of money movement; the ledger
(see ``ledger.py``) is the accounting record behind them.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class Transaction(Base, table=True):
    """Entity for user-visible transactions.

    Table: ap_transactions
    """

    __tablename__ = "ap_transactions"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True, foreign_key="ap_users.id")

    type: str = Field(max_length=16, index=True)
    amount: Decimal = Field(max_digits=20, decimal_places=8)
    currency: str = Field(default="USD", max_length=16)
    status: str = Field(default="PENDING", max_length=16, index=True)
    description: Optional[str] = Field(default=None, sa_type=Text)

    # Link to the withdrawal, payment or booking that produced it
    reference_id: Optional[str] = Field(default=None, max_length=128, index=True)
    provider: Optional[str] = Field(default=None, max_length=32)
    details: str = Field(default="{}", sa_type=Text, description="JSON object with provider specifics")

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)
    updated_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    def get_details(self) -> dict[str, Any]:
        try:
            return json.loads(self.details) if self.details else {}
        except (json.JSONDecodeError, TypeError):
            return {}

    def set_details(self, details: dict[str, Any]) -> None:
        self.details = json.dumps(details, default=str)

    def __repr__(self) -> str:
        return f"Transaction(id={self.id}, type={self.type}, amount={self.amount}, status={self.status})"
