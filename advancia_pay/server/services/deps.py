"""
API Dependencies.

Database session, realtime gateway, authenticated user and service providers
for the API endpoints.
"""

from functools import lru_cache
from typing import Annotated, Callable, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from advancia_pay.core.database import async_session_maker, get_session
from advancia_pay.core.database.entities import User
from advancia_pay.core.database.repositories import UserRepository
from advancia_pay.core.errors import AuthenticationError, PermissionDeniedError
from advancia_pay.core.models.domain import ROLE_HIERARCHY, UserRole
from advancia_pay.realtime import RealtimeGateway
from advancia_pay.server.core.config import settings
from advancia_pay.server.core.idempotency import IdempotencyStore, get_idempotency_store
from advancia_pay.server.core.security import decode_access_token, token_subject

from .account import AccountService
from .ai import AIService
from .auth import AuthService
from .bookings import BookingService
from .ledger import LedgerAdminService
from .payments import PaymentService
from .webhooks import WebhookService
from .withdrawals import WithdrawalService

SessionDep = Annotated[AsyncSession, Depends(get_session)]


@lru_cache
def get_realtime_gateway() -> RealtimeGateway:
    return RealtimeGateway(session_factory=async_session_maker, cors_allowed_origins=settings.cors.origins)


GatewayDep = Annotated[RealtimeGateway, Depends(get_realtime_gateway)]
IdempotencyStoreDep = Annotated[IdempotencyStore, Depends(get_idempotency_store)]

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    session: SessionDep,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(bearer_scheme)],
) -> User:
    """Resolve the bearer token to an active user."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access denied. No token provided.")
    payload = decode_access_token(credentials.credentials)
    user = await UserRepository(session).get_by_id(token_subject(payload))
    if user is None:
        raise AuthenticationError("Invalid token. User not found.")
    if not user.active:
        raise AuthenticationError("Account is inactive. Please contact support.")
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_role(min_role: UserRole) -> Callable:
    """Dependency factory allowing ``min_role`` and every role above it."""

    async def checker(user: CurrentUser) -> User:
        try:
            level = ROLE_HIERARCHY[UserRole(user.role)]
        except ValueError:
            level = -1
        if level < ROLE_HIERARCHY[min_role]:
            raise PermissionDeniedError(
                "Insufficient permissions", details={"required": min_role.value, "current": user.role}
            )
        return user

    return checker


AdminUser = Annotated[User, Depends(require_role(UserRole.admin))]


# Services


def get_auth_service(session: SessionDep, gateway: GatewayDep) -> AuthService:
    return AuthService(session, gateway)


def get_withdrawal_service(session: SessionDep, gateway: GatewayDep) -> WithdrawalService:
    return WithdrawalService(session, gateway)


def get_payment_service(session: SessionDep, gateway: GatewayDep) -> PaymentService:
    return PaymentService(session, gateway)


def get_webhook_service(session: SessionDep, gateway: GatewayDep) -> WebhookService:
    return WebhookService(session, gateway)


def get_booking_service(session: SessionDep, gateway: GatewayDep) -> BookingService:
    return BookingService(session, gateway)


def get_account_service(session: SessionDep, gateway: GatewayDep) -> AccountService:
    return AccountService(session, gateway)


def get_ledger_admin_service(session: SessionDep, gateway: GatewayDep) -> LedgerAdminService:
    return LedgerAdminService(session, gateway)


@lru_cache
def get_ai_service() -> AIService:
    return AIService()


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
WithdrawalServiceDep = Annotated[WithdrawalService, Depends(get_withdrawal_service)]
PaymentServiceDep = Annotated[PaymentService, Depends(get_payment_service)]
WebhookServiceDep = Annotated[WebhookService, Depends(get_webhook_service)]
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
AIServiceDep = Annotated[AIService, Depends(get_ai_service)]
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
LedgerAdminServiceDep = Annotated[LedgerAdminService, Depends(get_ledger_admin_service)]
