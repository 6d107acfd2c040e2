"""
User Endpoints.
"""

from fastapi import APIRouter

from advancia_pay.server.schemas import UserPublic
from advancia_pay.server.services.deps import CurrentUser

router = APIRouter()


@router.get(
    "/me",
    response_model=UserPublic,
    summary="Current User",
    description="Profile of the authenticated user, including fiat and crypto balances.",
    response_description="User profile.",
    responses={401: {"description": "Missing or invalid token"}},
)
async def me(user: CurrentUser):
    return user
