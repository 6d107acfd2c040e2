import pytest
from httpx import AsyncClient

from advancia_pay import __version__
from advancia_pay.server.core.security import create_access_token

# Mark all tests in this module as async
pytestmark = pytest.mark.asyncio


async def test_health_check(client: AsyncClient):
    response = await client.get("http://localhost/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "connectedUsers": 0}


async def test_health_counts_connected_users(client: AsyncClient, gateway):
    await gateway.authenticate("sid-1", create_access_token(user_id="u1", email="u1@example.com", role="USER"))

    response = await client.get("http://localhost/health")
    assert response.json()["connectedUsers"] == 1


async def test_version(client: AsyncClient):
    response = await client.get("http://localhost/version")
    assert response.status_code == 200
    assert response.json() == {"version": __version__}


async def test_process_time_header(client: AsyncClient):
    response = await client.get("http://localhost/health")
    assert "x-process-time" in response.headers
