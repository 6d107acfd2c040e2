"""
Authentication Endpoints.

Account registration and login. Both return a bearer token for the
``Authorization`` header and the socket ``authenticate`` event.
"""

from fastapi import APIRouter, status

from advancia_pay.server.schemas import AuthResponse, LoginRequest, RegisterRequest
from advancia_pay.server.services.deps import AuthServiceDep

router = APIRouter()


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register",
    description="Create a USER account and return an access token.",
    response_description="Token and the new user's profile.",
    responses={
        400: {"description": "Validation failed"},
        409: {"description": "Email already registered or username already taken"},
    },
)
async def register(body: RegisterRequest, service: AuthServiceDep):
    return await service.register(
        email=body.email,
        password=body.password,
        username=body.username,
        first_name=body.first_name,
        last_name=body.last_name,
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login",
    description="Exchange email and password for an access token.",
    response_description="Token and the user's profile.",
    responses={401: {"description": "Invalid email or password, or inactive account"}},
)
async def login(body: LoginRequest, service: AuthServiceDep):
    """
    Log in.

    Updates the user's last login time on success.
    """
    return await service.login(email=body.email, password=body.password)
