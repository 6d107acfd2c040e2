"""
Notification Endpoints.

The persisted side of the real-time channel: the same notifications pushed as
``new_notification`` can be listed and acknowledged here.
"""

from fastapi import APIRouter, Query

from advancia_pay.server.services.deps import AccountServiceDep, CurrentUser

router = APIRouter()


@router.get(
    "",
    summary="List Notifications",
    description="The caller's notifications, newest first.",
    response_description="A list of notifications.",
)
async def list_notifications(
    user: CurrentUser,
    service: AccountServiceDep,
    unread_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=200),
):
    return {"notifications": await service.list_notifications(user, unread_only=unread_only, limit=limit)}


@router.post(
    "/read-all",
    summary="Mark All Read",
    description="Mark every unread notification of the caller as read.",
    response_description="Number of notifications updated.",
)
async def read_all(user: CurrentUser, service: AccountServiceDep):
    return {"success": True, "updated": await service.mark_all_read(user)}


@router.post(
    "/{notification_id}/read",
    summary="Mark Read",
    description="Mark one of the caller's notifications as read.",
    response_description="The updated notification.",
    responses={404: {"description": "Notification not found"}},
)
async def read_one(notification_id: str, user: CurrentUser, service: AccountServiceDep):
    return {"success": True, "notification": await service.mark_read(user, notification_id)}
