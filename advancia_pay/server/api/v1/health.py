"""
Health Check Endpoints.

Basic status endpoints used for monitoring and deployment verification.
"""

from fastapi import APIRouter

from advancia_pay import __version__
from advancia_pay.server.services.deps import GatewayDep

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check(gateway: GatewayDep):
    """
    Health check endpoint.

    Returns a status indicator plus the number of users with an open socket.
    """
    return {"status": "ok", "connectedUsers": len(gateway.connected_users())}


@router.get(
    "/version",
    summary="Get Version",
    description="Retrieve version information for the API server.",
    response_description="Version object.",
)
async def version():
    return {"version": __version__}
