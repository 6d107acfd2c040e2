from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient

from advancia_pay.ai.errors import AIErrorType, AIProviderError
from advancia_pay.server.main import app
from advancia_pay.server.services.ai import AIService
from advancia_pay.server.services.deps import get_ai_service

pytestmark = pytest.mark.asyncio


@pytest.fixture(autouse=True)
def ai_service() -> MagicMock:
    service = MagicMock(spec=AIService)
    service.chat = AsyncMock(return_value={"provider": "ollama", "reply": "All ledgers balance."})
    service.status = AsyncMock(
        return_value={
            "healthy": True,
            "providers": {"ollama": {"available": True}, "cohere": {"available": False}},
        }
    )
    app.dependency_overrides[get_ai_service] = lambda: service
    return service


@pytest_asyncio.fixture
async def admin_headers(make_user, auth_headers):
    return auth_headers(await make_user("admin@example.com", role="ADMIN"))


async def test_status(client: AsyncClient, admin_headers):
    response = await client.get("/api/ai/status", headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["providers"]["cohere"] == {"available": False}


async def test_chat_routes_prompt(client: AsyncClient, admin_headers, ai_service):
    response = await client.post(
        "/api/ai/chat", json={"message": "Summarize today's withdrawals", "system": "Be brief"}, headers=admin_headers
    )

    assert response.json() == {"provider": "ollama", "reply": "All ledgers balance."}
    ai_service.chat.assert_awaited_once_with(
        provider="ollama", message="Summarize today's withdrawals", system="Be brief"
    )


async def test_chat_rejects_unknown_provider(client: AsyncClient, admin_headers):
    response = await client.post("/api/ai/chat", json={"provider": "gpt", "message": "hi"}, headers=admin_headers)
    assert response.status_code == 400


async def test_provider_rate_limit(client: AsyncClient, admin_headers, ai_service):
    ai_service.chat.side_effect = AIProviderError("cohere", AIErrorType.rate_limit, "Cohere rate limit exceeded")

    response = await client.post("/api/ai/chat", json={"provider": "cohere", "message": "hi"}, headers=admin_headers)

    assert response.status_code == 429
    assert response.json() == {
        "detail": "Cohere rate limit exceeded",
        "provider": "cohere",
        "errorType": "RATE_LIMIT",
    }


async def test_admin_only(client: AsyncClient, make_user, auth_headers):
    response = await client.get("/api/ai/status", headers=auth_headers(await make_user()))
    assert response.status_code == 403
