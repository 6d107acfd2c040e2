"""
Payment Webhook Endpoints.

Provider callbacks are verified against the raw request body, so these
handlers read ``request.body()`` instead of declaring a JSON model.
"""

from fastapi import APIRouter, Query, Request

from advancia_pay.server.core import constant
from advancia_pay.server.services.deps import AdminUser, WebhookServiceDep

router = APIRouter()

_WEBHOOK_RESPONSES = {
    400: {"description": "Invalid signature or payload"},
    500: {"description": "Webhook processing failed; the event is kept for retry"},
    503: {"description": "Provider is not configured"},
}


@router.post(
    "/stripe",
    summary="Stripe Webhook",
    description="Receive a Stripe event signed with the `stripe-signature` header.",
    response_description="Acknowledgement.",
    responses=_WEBHOOK_RESPONSES,
)
async def stripe_webhook(request: Request, service: WebhookServiceDep):
    raw = await request.body()
    return await service.handle_stripe(raw, request.headers.get(constant.STRIPE_SIGNATURE_HEADER))


@router.post(
    "/nowpayments",
    summary="NOWPayments IPN",
    description="Receive a NOWPayments IPN signed with HMAC-SHA512 in `x-nowpayments-sig`.",
    response_description="Acknowledgement.",
    responses=_WEBHOOK_RESPONSES,
)
async def nowpayments_webhook(request: Request, service: WebhookServiceDep):
    raw = await request.body()
    return await service.handle_nowpayments(raw, request.headers.get(constant.NOWPAYMENTS_SIGNATURE_HEADER))


@router.post(
    "/alchemy-pay",
    summary="Alchemy Pay Webhook",
    description="Receive an Alchemy Pay order callback signed with HMAC-SHA256 in `signature`.",
    response_description="Acknowledgement.",
    responses=_WEBHOOK_RESPONSES,
)
async def alchemy_pay_webhook(request: Request, service: WebhookServiceDep):
    raw = await request.body()
    return await service.handle_alchemy_pay(raw, request.headers.get(constant.ALCHEMY_PAY_SIGNATURE_HEADER))


@router.get(
    "/status",
    summary="Webhook Status",
    description="Recent webhook deliveries with processing totals per provider.",
    response_description="Statistics and recent events.",
    responses={403: {"description": "Insufficient permissions"}},
)
async def webhook_status(admin: AdminUser, service: WebhookServiceDep, limit: int = Query(default=100, ge=1, le=500)):
    return await service.status(limit)


@router.post(
    "/retry/{event_id}",
    summary="Retry Webhook",
    description="Re-apply a stored delivery that failed to process.",
    response_description="The updated webhook event.",
    responses={
        400: {"description": "Already processed or maximum retry attempts reached"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Webhook event not found"},
        500: {"description": "Processing failed again"},
    },
)
async def retry_webhook(event_id: str, admin: AdminUser, service: WebhookServiceDep):
    return await service.retry(event_id)
