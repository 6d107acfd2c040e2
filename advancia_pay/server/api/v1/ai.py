"""
AI Assistance Endpoints.

Admin-only access to the local Ollama model and to Cohere.
"""

from fastapi import APIRouter

from advancia_pay.server.schemas import AIChatRequest, AIChatResponse
from advancia_pay.server.services.deps import AdminUser, AIServiceDep

router = APIRouter()


@router.get(
    "/status",
    summary="AI Provider Status",
    description="Health of the Ollama and Cohere providers.",
    response_description="Provider health.",
    responses={403: {"description": "Insufficient permissions"}},
)
async def ai_status(admin: AdminUser, service: AIServiceDep):
    return await service.status()


@router.post(
    "/chat",
    response_model=AIChatResponse,
    summary="AI Chat",
    description="Send a prompt to the selected provider. Transient provider failures are retried.",
    response_description="The provider's reply.",
    responses={
        403: {"description": "Insufficient permissions"},
        429: {"description": "Provider rate limit"},
        502: {"description": "Provider failure"},
        503: {"description": "Provider is not configured"},
    },
)
async def ai_chat(body: AIChatRequest, admin: AdminUser, service: AIServiceDep):
    return await service.chat(provider=body.provider, message=body.message, system=body.system)
