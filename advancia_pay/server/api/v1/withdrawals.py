"""
Withdrawal API Endpoints.

Users request withdrawals and list their own; admins review the pending queue
and approve, reject or mark requests as processed. Creating a request accepts
an optional ``Idempotency-Key`` header so that client retries never hold funds
twice.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Header, Query, status

from advancia_pay.realtime import events
from advancia_pay.server.core import constant
from advancia_pay.server.core.idempotency import run_idempotent
from advancia_pay.server.schemas import (
    Page,
    WithdrawalApprove,
    WithdrawalCreate,
    WithdrawalProcess,
    WithdrawalReject,
)
from advancia_pay.server.services.deps import AdminUser, CurrentUser, IdempotencyStoreDep, WithdrawalServiceDep

router = APIRouter()


@router.post(
    "/request",
    status_code=status.HTTP_201_CREATED,
    summary="Request Withdrawal",
    description="Create a PENDING withdrawal and hold the amount from the matching balance.",
    response_description="The created withdrawal.",
    responses={
        400: {"description": "Invalid amount, insufficient balance or bad Idempotency-Key"},
        401: {"description": "Missing or invalid token"},
    },
)
async def request_withdrawal(
    body: WithdrawalCreate,
    user: CurrentUser,
    service: WithdrawalServiceDep,
    store: IdempotencyStoreDep,
    idempotency_key: Annotated[Optional[str], Header(alias=constant.IDEMPOTENCY_HEADER)] = None,
):
    """
    Request a withdrawal.

    A replayed ``Idempotency-Key`` returns the original response with the
    ``Idempotency-Replay: true`` header and does not create another request.
    """
    user_id = user.id

    async def handler():
        withdrawal = await service.request_withdrawal(
            user,
            amount=body.amount,
            currency=body.currency,
            wallet_address=body.wallet_address,
            notes=body.notes,
        )
        return {"success": True, "withdrawal": events.serialize(withdrawal)}

    return await run_idempotent(
        store,
        scope=f"withdrawals:request:{user_id}",
        key=idempotency_key,
        handler=handler,
        status_code=status.HTTP_201_CREATED,
    )


@router.get(
    "/my-requests",
    response_model=Page,
    summary="My Withdrawals",
    description="The caller's withdrawal requests, newest first.",
    response_description="A page of withdrawals.",
)
async def my_requests(
    user: CurrentUser,
    service: WithdrawalServiceDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
):
    rows, total = await service.list_for_user(user, page=page, limit=limit)
    return Page.build([events.serialize(w) for w in rows], page=page, limit=limit, total=total)


@router.get(
    "/admin/pending",
    response_model=Page,
    summary="Pending Withdrawals",
    description="Withdrawals waiting for review, oldest first, with requester details.",
    response_description="A page of pending withdrawals.",
    responses={403: {"description": "Insufficient permissions"}},
)
async def pending(
    admin: AdminUser,
    service: WithdrawalServiceDep,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
):
    items, total = await service.list_pending(page=page, limit=limit)
    return Page.build(items, page=page, limit=limit, total=total)


@router.post(
    "/{withdrawal_id}/approve",
    summary="Approve Withdrawal",
    description="Move a PENDING withdrawal to APPROVED.",
    response_description="The updated withdrawal.",
    responses={
        400: {"description": "Withdrawal is not pending"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Withdrawal request not found"},
    },
)
async def approve(
    withdrawal_id: str, admin: AdminUser, service: WithdrawalServiceDep, body: Optional[WithdrawalApprove] = None
):
    withdrawal = await service.approve(withdrawal_id, admin, notes=body.notes if body else None)
    return {"success": True, "withdrawal": events.serialize(withdrawal)}


@router.post(
    "/{withdrawal_id}/reject",
    summary="Reject Withdrawal",
    description="Reject a PENDING withdrawal and return the held funds to the user.",
    response_description="The updated withdrawal.",
    responses={
        400: {"description": "Missing reason or withdrawal is not pending"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Withdrawal request not found"},
    },
)
async def reject(withdrawal_id: str, body: WithdrawalReject, admin: AdminUser, service: WithdrawalServiceDep):
    withdrawal = await service.reject(withdrawal_id, admin, reason=body.reason)
    return {"success": True, "withdrawal": events.serialize(withdrawal)}


@router.post(
    "/{withdrawal_id}/process",
    summary="Process Withdrawal",
    description="Record the payout of an APPROVED withdrawal.",
    response_description="The updated withdrawal.",
    responses={
        400: {"description": "Withdrawal is not approved yet or already processed"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Withdrawal request not found"},
    },
)
async def process(
    withdrawal_id: str, admin: AdminUser, service: WithdrawalServiceDep, body: Optional[WithdrawalProcess] = None
):
    withdrawal = await service.process(
        withdrawal_id, admin, tx_hash=body.tx_hash if body else None, notes=body.notes if body else None
    )
    return {"success": True, "withdrawal": events.serialize(withdrawal)}
