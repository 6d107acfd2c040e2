"""
Account registration and login.
"""

from __future__ import annotations

from typing import Any, Optional

from advancia_pay.core.database.entities import User
from advancia_pay.core.database.repositories import UserRepository
from advancia_pay.core.errors import AuthenticationError, ConflictError
from advancia_pay.core.logging_config import get_logger
from advancia_pay.core.models.domain import UserRole
from advancia_pay.server.core.security import create_access_token, hash_password, verify_password
from advancia_pay.server.schemas import UserPublic

from .base import TransactionalService

logger = get_logger(__name__)


def issue_token(user: User) -> str:
    return create_access_token(user_id=user.id, email=user.email, role=user.role)


class AuthService(TransactionalService):
    """Creates accounts and exchanges credentials for access tokens."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.users = UserRepository(self.session)

    async def register(
        self,
        *,
        email: str,
        password: str,
        username: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> dict[str, Any]:
        email = email.lower()
        async with self.unit_of_work():
            if await self.users.get_by_email(email) is not None:
                raise ConflictError("Email already registered")
            if await self.users.get_by_username(username) is not None:
                raise ConflictError("Username already taken")

            user = await self.users.create(
                User(
                    email=email,
                    username=username,
                    password_hash=hash_password(password),
                    role=UserRole.user.value,
                    first_name=first_name,
                    last_name=last_name,
                )
            )
        logger.info(f"Registered user {user.id}")
        return {"token": issue_token(user), "user": UserPublic.model_validate(user)}

    async def login(self, *, email: str, password: str) -> dict[str, Any]:
        async with self.unit_of_work():
            user = await self.users.get_by_email(email)
            if user is None or not verify_password(password, user.password_hash):
                logger.info("Rejected login with invalid credentials")
                raise AuthenticationError("Invalid email or password")
            if not user.active:
                raise AuthenticationError("Account is inactive. Please contact support.")
            user = await self.users.touch_last_login(user)
        return {"token": issue_token(user), "user": UserPublic.model_validate(user)}
