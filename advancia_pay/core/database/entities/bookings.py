"""
Booking entity models.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class Booking(Base, table=True):
    """Entity for paid chamber sessions.

    Table: ap_bookings
    """

    __tablename__ = "ap_bookings"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True, foreign_key="ap_users.id")
    chamber: str = Field(max_length=64)
    session_date: datetime = Field(sa_type=DateTime(timezone=True), index=True)
    duration_minutes: int = Field()
    cost: Decimal = Field(max_digits=12, decimal_places=2)
    status: str = Field(default="PENDING", max_length=16, index=True)
    notes: Optional[str] = Field(default=None, sa_type=Text)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
