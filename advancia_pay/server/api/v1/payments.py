"""
Payments API Endpoints.

Instant accounts with a Stripe subscription, payment plans, and NOWPayments
crypto deposits.
"""

from decimal import Decimal

from fastapi import APIRouter, Query, status

from advancia_pay.server.schemas import CryptoPaymentCreate, InstantAccountRequest, PaymentPlanCreate
from advancia_pay.server.services.deps import AdminUser, CurrentUser, PaymentServiceDep

router = APIRouter()


@router.post(
    "/instant-account",
    status_code=status.HTTP_201_CREATED,
    summary="Create Instant Account",
    description="Create an account, attach the card to a new Stripe customer and subscribe it to a plan.",
    response_description="Token, user and subscription.",
    responses={
        400: {"description": "Validation failed"},
        404: {"description": "Payment plan not found"},
        409: {"description": "Email already registered"},
        502: {"description": "Stripe rejected the request"},
    },
)
async def instant_account(body: InstantAccountRequest, service: PaymentServiceDep):
    """
    Create an instant account.

    The account receives a random password; clients use the returned token and
    offer a password reset later.
    """
    card = body.payment_method.card.model_dump() if body.payment_method.card else None
    result = await service.create_instant_account(
        email=body.email,
        plan_id=body.plan_id,
        payment_method_id=body.payment_method.id,
        card=card,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return {"success": True, **result}


@router.get(
    "/plans",
    summary="List Plans",
    description="Active payment plans, cheapest first.",
    response_description="A list of plans.",
)
async def list_plans(service: PaymentServiceDep):
    return {"plans": await service.list_plans()}


@router.post(
    "/plans",
    status_code=status.HTTP_201_CREATED,
    summary="Create Plan",
    description="Create a Stripe product and recurring price, then store the plan.",
    response_description="The created plan.",
    responses={403: {"description": "Insufficient permissions"}, 502: {"description": "Stripe rejected the request"}},
)
async def create_plan(body: PaymentPlanCreate, admin: AdminUser, service: PaymentServiceDep):
    plan = await service.create_plan(
        name=body.name,
        description=body.description,
        price_usd=body.price_usd,
        interval_months=body.interval_months,
        features=body.features,
    )
    return {"success": True, "plan": plan}


@router.post(
    "/crypto",
    status_code=status.HTTP_201_CREATED,
    summary="Create Crypto Payment",
    description="Open a NOWPayments deposit and return the address and amount to pay.",
    response_description="Payment details and the hosted payment URL.",
    responses={
        429: {"description": "NOWPayments rate limit"},
        502: {"description": "NOWPayments rejected the request"},
        503: {"description": "NOWPayments is not configured or unavailable"},
    },
)
async def create_crypto_payment(body: CryptoPaymentCreate, user: CurrentUser, service: PaymentServiceDep):
    result = await service.create_crypto_payment(user, amount_usd=body.amount_usd, pay_currency=body.pay_currency)
    return {"success": True, **result}


@router.get(
    "/history",
    summary="Payment History",
    description="The caller's provider payments, newest first.",
    response_description="A list of payments.",
)
async def history(
    user: CurrentUser,
    service: PaymentServiceDep,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
):
    return {"payments": await service.history(user, limit=limit, offset=offset)}


@router.get(
    "/currencies",
    summary="Crypto Currencies",
    description="Currencies NOWPayments accepts.",
    response_description="A list of currency codes.",
)
async def currencies(service: PaymentServiceDep):
    return {"currencies": await service.currencies()}


@router.get(
    "/estimate",
    summary="Estimate Price",
    description="Estimated crypto amount for a fiat price.",
    response_description="The NOWPayments estimate.",
)
async def estimate(
    service: PaymentServiceDep,
    amount: Decimal = Query(..., gt=0),
    currency_from: str = Query(default="usd"),
    currency_to: str = Query(...),
):
    return await service.estimate(amount=amount, currency_from=currency_from, currency_to=currency_to)
