"""
Notification entity models.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class Notification(Base, table=True):
    """Entity for in-app notifications.

    Unread notifications are replayed to a socket when it authenticates.

    Table: ap_notifications
    """

    __tablename__ = "ap_notifications"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True, foreign_key="ap_users.id")
    title: str = Field(max_length=255)
    message: str = Field(sa_type=Text)
    level: str = Field(default="INFO", max_length=16)
    data: str = Field(default="{}", sa_type=Text, description="JSON payload for the client")
    read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True), index=True)

    def get_data(self) -> dict[str, Any]:
        try:
            return json.loads(self.data) if self.data else {}
        except (json.JSONDecodeError, TypeError):
            return {}

    def set_data(self, data: dict[str, Any]) -> None:
        self.data = json.dumps(data, default=str)
