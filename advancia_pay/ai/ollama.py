"""
Ollama client.

Talks to a local Ollama server for admin assistance features that must not
leave the host.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from advancia_pay.server.core.config import OllamaConfig

from .client import BaseAIClient
from .errors import AIProviderError
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy


class OllamaClient(BaseAIClient):
    provider = "ollama"

    def __init__(
        self,
        config: OllamaConfig,
        *,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(
            base_url=config.base_url, timeout=config.timeout, retry_policy=retry_policy, transport=transport
        )
        self.model = config.model

    async def chat(
        self, messages: list[dict[str, str]], *, model: Optional[str] = None, system: Optional[str] = None
    ) -> str:
        """Send a chat conversation and return the assistant reply."""
        if system:
            messages = [{"role": "system", "content": system}, *messages]
        data = await self._request(
            "POST", "/api/chat", json={"model": model or self.model, "messages": messages, "stream": False}
        )
        return data.get("message", {}).get("content", "")

    async def generate(self, prompt: str, *, model: Optional[str] = None, system: Optional[str] = None) -> str:
        body: dict[str, Any] = {"model": model or self.model, "prompt": prompt, "stream": False}
        if system:
            body["system"] = system
        data = await self._request("POST", "/api/generate", json=body)
        return data.get("response", "")

    async def list_models(self) -> list[str]:
        data = await self._request("GET", "/api/tags")
        return [m.get("name") for m in data.get("models", []) if m.get("name")]

    async def health(self) -> dict[str, Any]:
        try:
            data = await self._request_once("GET", "/api/version")
        except AIProviderError as e:
            return {"provider": self.provider, "available": False, "error": e.message}
        return {"provider": self.provider, "available": True, "version": data.get("version"), "model": self.model}
