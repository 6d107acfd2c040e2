"""
Payment plan and subscription entity models.
"""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import DateTime
from sqlmodel import Field, Text

from ..base import Base, new_id, utc_now


class PaymentPlan(Base, table=True):
    """Entity for subscription plans backed by a Stripe price.

    Table: ap_payment_plans
    """

    __tablename__ = "ap_payment_plans"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    name: str = Field(max_length=128)
    description: Optional[str] = Field(default=None, sa_type=Text)
    price_usd: Decimal = Field(max_digits=12, decimal_places=2)
    interval_months: int = Field(default=1)
    features: str = Field(default="[]", sa_type=Text, description="JSON array of feature names")
    stripe_product_id: Optional[str] = Field(default=None, max_length=128)
    stripe_price_id: Optional[str] = Field(default=None, max_length=128)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))

    def get_features_list(self) -> List[str]:
        try:
            return json.loads(self.features) if self.features else []
        except (json.JSONDecodeError, TypeError):
            return []

    def set_features_list(self, features: List[str]) -> None:
        self.features = json.dumps(features)


class Subscription(Base, table=True):
    """Entity linking a user to a plan through a Stripe subscription.

    Table: ap_subscriptions
    """

    __tablename__ = "ap_subscriptions"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=64)
    user_id: str = Field(max_length=64, index=True, foreign_key="ap_users.id")
    plan_id: str = Field(max_length=64, index=True, foreign_key="ap_payment_plans.id")
    status: str = Field(default="incomplete", max_length=32)
    stripe_customer_id: Optional[str] = Field(default=None, max_length=128)
    stripe_subscription_id: Optional[str] = Field(default=None, max_length=128, index=True)

    # Card summary for display only
    card_last4: Optional[str] = Field(default=None, max_length=4)
    card_brand: Optional[str] = Field(default=None, max_length=32)
    card_exp_month: Optional[int] = Field(default=None)
    card_exp_year: Optional[int] = Field(default=None)

    current_period_start: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    current_period_end: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
