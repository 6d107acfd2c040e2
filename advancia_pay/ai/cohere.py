"""
Cohere client.

Chat and embeddings against the Cohere v1 REST API.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from advancia_pay.core.errors import ServiceNotConfiguredError
from advancia_pay.server.core.config import CohereConfig

from .client import BaseAIClient
from .errors import AIProviderError
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy


class CohereClient(BaseAIClient):
    provider = "cohere"

    def __init__(
        self,
        config: CohereConfig,
        *,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        super().__init__(
            base_url=config.base_url,
            timeout=config.timeout,
            headers=headers,
            retry_policy=retry_policy,
            transport=transport,
        )
        self.config = config

    @property
    def is_configured(self) -> bool:
        return bool(self.config.api_key)

    def _require_key(self) -> None:
        if not self.is_configured:
            raise ServiceNotConfiguredError("Cohere is not configured")

    async def chat(self, message: str, *, preamble: Optional[str] = None, model: Optional[str] = None) -> str:
        self._require_key()
        body: dict[str, Any] = {"model": model or self.config.model, "message": message}
        if preamble:
            body["preamble"] = preamble
        data = await self._request("POST", "/chat", json=body)
        return data.get("text", "")

    async def embed(self, texts: list[str], *, input_type: str = "search_document") -> list[list[float]]:
        self._require_key()
        data = await self._request(
            "POST", "/embed", json={"model": self.config.embed_model, "texts": texts, "input_type": input_type}
        )
        return data.get("embeddings", [])

    async def health(self) -> dict[str, Any]:
        if not self.is_configured:
            return {"provider": self.provider, "available": False, "error": "Cohere is not configured"}
        try:
            data = await self._request_once("POST", "/check-api-key")
        except AIProviderError as e:
            return {"provider": self.provider, "available": False, "error": e.message}
        return {"provider": self.provider, "available": bool(data.get("valid", True)), "model": self.config.model}
