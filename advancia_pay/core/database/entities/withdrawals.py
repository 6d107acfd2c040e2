"""
Withdrawal entity models.

This module contains the database entity for the withdrawal approval workflow.
A withdrawal moves PENDING -> APPROVED -> PROCESSED, or PENDING -> REJECTED;
the funds are held from the moment the request is created.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class Withdrawal(Base, table=True):
    """Entity for withdrawal requests and their review trail.

    Table: ap_withdrawals
    """

    __tablename__ = "ap_withdrawals"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True, foreign_key="ap_users.id")

    # Request details
    amount: Decimal = Field(max_digits=20, decimal_places=8)
    currency: str = Field(max_length=16)
    wallet_address: str = Field(max_length=255)
    notes: Optional[str] = Field(default=None, sa_type=Text)
    status: str = Field(default="PENDING", max_length=16, index=True)
    requested_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)

    # Review
    admin_notes: Optional[str] = Field(default=None, sa_type=Text)
    rejection_reason: Optional[str] = Field(default=None, sa_type=Text)
    reviewed_by: Optional[str] = Field(default=None, max_length=64)
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    # Payout
    tx_hash: Optional[str] = Field(default=None, max_length=255)
    processed_by: Optional[str] = Field(default=None, max_length=64)
    processed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"Withdrawal(id={self.id}, amount={self.amount} {self.currency}, status={self.status})"
