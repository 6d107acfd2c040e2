"""
Ledger Endpoints.

Users read their own ledger. Admins credit, deduct or correct balances,
browse the ledger across users and freeze or unfreeze accounts. Balance
changes accept an optional ``Idempotency-Key`` header.
"""

from typing import Annotated, Optional

from fastapi import APIRouter, Header, Query

from advancia_pay.server.core import constant
from advancia_pay.server.core.idempotency import run_idempotent
from advancia_pay.server.schemas import AccountFreeze, LedgerAdjustment, LedgerCorrection, Page, UserPublic
from advancia_pay.server.services.deps import (
    AccountServiceDep,
    AdminUser,
    CurrentUser,
    IdempotencyStoreDep,
    LedgerAdminServiceDep,
)

router = APIRouter()


@router.get(
    "/me",
    summary="My Ledger",
    description="The caller's ledger entries, newest first, with the running total and funds on hold.",
    response_description="Ledger statement.",
)
async def my_ledger(
    user: CurrentUser,
    service: AccountServiceDep,
    currency: Optional[str] = Query(default=None, max_length=16),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    return await service.ledger_statement(user, currency=currency, limit=limit, offset=offset)


@router.post(
    "/admin/credit",
    summary="Credit Balance",
    description="Add funds to a user's balance and record an ADJUSTMENT ledger entry.",
    response_description="The ledger entry and transaction.",
    responses={
        400: {"description": "Invalid amount, frozen account or bad Idempotency-Key"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "User not found"},
    },
)
async def credit(
    body: LedgerAdjustment,
    admin: AdminUser,
    service: LedgerAdminServiceDep,
    store: IdempotencyStoreDep,
    idempotency_key: Annotated[Optional[str], Header(alias=constant.IDEMPOTENCY_HEADER)] = None,
):
    admin_id = admin.id

    async def handler():
        result = await service.credit(
            admin, body.user_id, amount=body.amount, currency=body.currency, reason=body.reason, tx_hash=body.tx_hash
        )
        return {"success": True, **result}

    return await run_idempotent(store, scope=f"ledger:credit:{admin_id}", key=idempotency_key, handler=handler)


@router.post(
    "/admin/deduction",
    summary="Deduct Balance",
    description="Remove funds from a user's balance and record a negative ADJUSTMENT ledger entry.",
    response_description="The ledger entry and transaction.",
    responses={
        400: {"description": "Invalid amount, short reason, insufficient balance or frozen account"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "User not found"},
    },
)
async def deduction(
    body: LedgerAdjustment,
    admin: AdminUser,
    service: LedgerAdminServiceDep,
    store: IdempotencyStoreDep,
    idempotency_key: Annotated[Optional[str], Header(alias=constant.IDEMPOTENCY_HEADER)] = None,
):
    admin_id = admin.id

    async def handler():
        result = await service.deduct(
            admin, body.user_id, amount=body.amount, currency=body.currency, reason=body.reason
        )
        return {"success": True, **result}

    return await run_idempotent(store, scope=f"ledger:deduction:{admin_id}", key=idempotency_key, handler=handler)


@router.post(
    "/admin/adjustment",
    summary="Correct Balance",
    description="Apply a signed correction to a user's balance; negative amounts must be covered.",
    response_description="The ledger entry and transaction.",
    responses={
        400: {"description": "Zero amount, short reason, insufficient balance or frozen account"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "User not found"},
    },
)
async def adjustment(
    body: LedgerCorrection,
    admin: AdminUser,
    service: LedgerAdminServiceDep,
    store: IdempotencyStoreDep,
    idempotency_key: Annotated[Optional[str], Header(alias=constant.IDEMPOTENCY_HEADER)] = None,
):
    admin_id = admin.id

    async def handler():
        result = await service.adjust(
            admin, body.user_id, amount=body.amount, currency=body.currency, reason=body.reason
        )
        return {"success": True, **result}

    return await run_idempotent(store, scope=f"ledger:adjustment:{admin_id}", key=idempotency_key, handler=handler)


@router.get(
    "/admin/history",
    response_model=Page,
    summary="Ledger History",
    description="Ledger entries across users, newest first, optionally filtered by user and entry type.",
    response_description="A page of ledger entries.",
    responses={403: {"description": "Insufficient permissions"}},
)
async def history(
    admin: AdminUser,
    service: LedgerAdminServiceDep,
    user_id: Optional[str] = Query(default=None, alias="userId", max_length=64),
    entry_type: Optional[str] = Query(default=None, alias="type", max_length=32),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
):
    items, total = await service.history(user_id=user_id, entry_type=entry_type, page=page, limit=limit)
    return Page.build(items, page=page, limit=limit, total=total)


@router.get(
    "/admin/users/{user_id}",
    summary="User Ledger",
    description="A user's balances and ledger entries, newest first, with the running total and funds on hold.",
    response_description="Ledger statement.",
    responses={403: {"description": "Insufficient permissions"}, 404: {"description": "User not found"}},
)
async def user_ledger(
    user_id: str,
    admin: AdminUser,
    service: LedgerAdminServiceDep,
    currency: Optional[str] = Query(default=None, max_length=16),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
):
    return await service.user_statement(user_id, currency=currency, limit=limit, offset=offset)


@router.post(
    "/admin/users/{user_id}/freeze",
    summary="Freeze Account",
    description="Deactivate an account so it can no longer authenticate or be adjusted.",
    responses={
        400: {"description": "Admins cannot freeze themselves"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "User not found"},
    },
)
async def freeze(
    user_id: str, admin: AdminUser, service: LedgerAdminServiceDep, body: Optional[AccountFreeze] = None
):
    user = await service.set_frozen(admin, user_id, frozen=True, reason=body.reason if body else None)
    return {"success": True, "user": UserPublic.model_validate(user)}


@router.post(
    "/admin/users/{user_id}/unfreeze",
    summary="Unfreeze Account",
    description="Reactivate a frozen account.",
    responses={403: {"description": "Insufficient permissions"}, 404: {"description": "User not found"}},
)
async def unfreeze(user_id: str, admin: AdminUser, service: LedgerAdminServiceDep):
    user = await service.set_frozen(admin, user_id, frozen=False)
    return {"success": True, "user": UserPublic.model_validate(user)}
