"""
Webhook event entity models.

Every verified provider delivery is stored with its raw payload so that a
failed delivery can be replayed by an admin.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class WebhookEvent(Base, table=True):
    """Entity for received webhook deliveries.

    Table: ap_webhook_events
    """

    __tablename__ = "ap_webhook_events"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    provider: str = Field(max_length=32, index=True)
    event_type: str = Field(max_length=128)
    event_id: str = Field(max_length=255, index=True)
    payload: str = Field(sa_type=Text)
    signature: Optional[str] = Field(default=None, max_length=512)

    # Processing state
    processed: bool = Field(default=False, index=True)
    processing_result: Optional[str] = Field(default=None, max_length=16)
    error_message: Optional[str] = Field(default=None, sa_type=Text)
    retry_count: int = Field(default=0)
    max_retries: int = Field(default=3)

    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)
    processed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"WebhookEvent(id={self.id}, provider={self.provider}, event_id={self.event_id})"
