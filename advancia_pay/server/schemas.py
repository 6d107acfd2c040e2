"""
API Schemas.

This module contains Pydantic models used for API request bodies and response validation.
Request bodies accept both snake_case and the camelCase names used by the web client.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


# =====================================================================
# Auth
# =====================================================================


class RegisterRequest(RequestModel):
    """
    Schema for creating an account.
    """

    email: EmailStr = Field(..., description="Login email; stored lowercased.", examples=["jane@example.com"])
    password: str = Field(..., min_length=8, description="At least 8 characters.")
    username: str = Field(..., min_length=3, max_length=30, examples=["jane"])
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(RequestModel):
    email: EmailStr = Field(..., examples=["jane@example.com"])
    password: str = Field(..., min_length=1)


class UserPublic(BaseModel):
    """User profile as returned by the API; never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    username: str
    role: str
    active: bool
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    balance: Decimal
    crypto_balance: Decimal
    trust_score: int
    last_login: Optional[datetime] = None
    created_at: datetime


class AuthResponse(BaseModel):
    token: str = Field(..., description="Bearer token for the Authorization header.")
    user: UserPublic


# =====================================================================
# Withdrawals
# =====================================================================


class WithdrawalCreate(RequestModel):
    """
    Schema for requesting a withdrawal.

    The amount is held from the balance matching ``currency`` as soon as the
    request is accepted.
    """

    amount: Decimal = Field(..., description="Amount to withdraw; must be positive.", examples=["100.00"])
    currency: str = Field(..., min_length=2, max_length=16, examples=["USD", "BTC"])
    wallet_address: str = Field(
        ..., min_length=1, max_length=255, examples=["bc1qxy2kgdygjrsqtzq2n0yrf2493p83kkfjhx0wlh"]
    )
    notes: Optional[str] = Field(default=None, max_length=1000)

    model_config = ConfigDict(
        json_schema_extra={"example": {"amount": "250.00", "currency": "USD", "walletAddress": "0xabc123"}}
    )


class WithdrawalApprove(RequestModel):
    notes: Optional[str] = Field(default=None, max_length=1000, description="Internal admin notes.")


class WithdrawalReject(RequestModel):
    reason: Optional[str] = Field(default=None, max_length=1000, description="Shown to the user; required.")


class WithdrawalProcess(RequestModel):
    tx_hash: Optional[str] = Field(
        default=None, max_length=255, description="On-chain or bank reference of the payout."
    )
    notes: Optional[str] = Field(default=None, max_length=1000)


# =====================================================================
# Payments
# =====================================================================


class CardDetails(RequestModel):
    last4: Optional[str] = Field(default=None, max_length=4)
    brand: Optional[str] = None
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None


class PaymentMethodIn(RequestModel):
    id: str = Field(..., description="Stripe PaymentMethod id created by Stripe.js.", examples=["pm_card_visa"])
    card: Optional[CardDetails] = None


class InstantAccountRequest(RequestModel):
    """
    Schema for one-step signup with a paid plan.
    """

    email: EmailStr
    plan_id: str
    payment_method: PaymentMethodIn
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class PaymentPlanCreate(RequestModel):
    name: str = Field(..., min_length=1, max_length=128)
    description: Optional[str] = None
    price_usd: Decimal = Field(..., gt=0)
    interval_months: int = Field(default=1, ge=1, le=36)
    features: List[str] = Field(default_factory=list)


class CryptoPaymentCreate(RequestModel):
    amount_usd: Decimal = Field(..., gt=0, examples=["50.00"])
    pay_currency: str = Field(..., min_length=2, max_length=16, examples=["btc", "usdttrc20"])


# =====================================================================
# Ledger
# =====================================================================


class LedgerAdjustment(RequestModel):
    """
    Schema for an admin credit or deduction.

    Deductions require a reason of at least 10 characters.
    """

    user_id: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., gt=0, examples=["100.00"])
    currency: str = Field(..., min_length=2, max_length=16, examples=["USD", "BTC"])
    reason: str = Field(..., min_length=1, max_length=1000)
    tx_hash: Optional[str] = Field(default=None, max_length=255, description="External reference of a credit.")


class LedgerCorrection(RequestModel):
    """
    Schema for a signed admin correction; the reason needs at least 15 characters.
    """

    user_id: str = Field(..., min_length=1, max_length=64)
    amount: Decimal = Field(..., description="Positive to add funds, negative to remove them.", examples=["-12.50"])
    currency: str = Field(..., min_length=2, max_length=16, examples=["USD", "BTC"])
    reason: str = Field(..., min_length=1, max_length=1000)


class AccountFreeze(RequestModel):
    reason: Optional[str] = Field(default=None, max_length=1000)


# =====================================================================
# Bookings
# =====================================================================


class BookingCreate(RequestModel):
    chamber: str = Field(..., min_length=1, max_length=64)
    session_date: datetime
    duration_minutes: int = Field(..., gt=0, le=24 * 60)
    notes: Optional[str] = Field(default=None, max_length=1000)


class BookingStatusUpdate(RequestModel):
    status: Literal["CONFIRMED", "COMPLETED"]


# =====================================================================
# AI
# =====================================================================


class AIChatRequest(RequestModel):
    provider: Literal["ollama", "cohere"] = "ollama"
    message: str = Field(..., min_length=1, max_length=8000)
    system: Optional[str] = Field(default=None, max_length=4000)


class AIChatResponse(BaseModel):
    provider: str
    reply: str


# =====================================================================
# Shared
# =====================================================================


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class Page(BaseModel):
    items: List[Dict[str, Any]]
    pagination: Pagination

    @classmethod
    def build(cls, items: List[Dict[str, Any]], *, page: int, limit: int, total: int) -> "Page":
        pages = (total + limit - 1) // limit if limit else 0
        return cls(items=items, pagination=Pagination(page=page, limit=limit, total=total, pages=pages))
