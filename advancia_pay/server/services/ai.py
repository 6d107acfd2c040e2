"""
AI assistance for admins.

Routes a chat prompt to the local Ollama server or to Cohere and reports the
health of both providers.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from advancia_pay.ai import CohereClient, OllamaClient
from advancia_pay.core.logging_config import get_logger
from advancia_pay.server.core.config import Settings, settings as default_settings

logger = get_logger(__name__)


class AIService:
    def __init__(
        self,
        *,
        ollama: Optional[OllamaClient] = None,
        cohere: Optional[CohereClient] = None,
        config: Optional[Settings] = None,
    ) -> None:
        config = config or default_settings
        self.ollama = ollama or OllamaClient(config.ollama)
        self.cohere = cohere or CohereClient(config.cohere)

    async def status(self) -> dict[str, Any]:
        ollama, cohere = await asyncio.gather(self.ollama.health(), self.cohere.health())
        return {
            "healthy": bool(ollama["available"] or cohere["available"]),
            "providers": {"ollama": ollama, "cohere": cohere},
        }

    async def chat(self, *, provider: str, message: str, system: Optional[str] = None) -> dict[str, str]:
        logger.info(f"AI chat request routed to {provider}")
        if provider == "cohere":
            reply = await self.cohere.chat(message, preamble=system)
        else:
            reply = await self.ollama.chat([{"role": "user", "content": message}], system=system)
        return {"provider": provider, "reply": reply}
