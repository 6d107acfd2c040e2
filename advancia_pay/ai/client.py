"""Shared HTTP plumbing for AI provider clients."""

from __future__ import annotations

from typing import Any, Optional

import httpx

from advancia_pay.core.logging_config import get_logger

from .errors import AIErrorType, AIProviderError, classify_exception, classify_status
from .retry import DEFAULT_RETRY_POLICY, RetryPolicy, call_with_retry

logger = get_logger(__name__)


class BaseAIClient:
    """JSON-over-HTTP client that turns transport and status failures into :class:`AIProviderError`."""

    provider: str = "ai"

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float,
        headers: Optional[dict[str, str]] = None,
        retry_policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = headers or {}
        self.retry_policy = retry_policy
        self._transport = transport

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        return await call_with_retry(self._request_once, method, path, policy=self.retry_policy, **kwargs)

    async def _request_once(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, headers=self.headers, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            error_type = classify_exception(e)
            logger.warning(f"{self.provider} {method} {path} failed: {error_type.value} {e}")
            raise AIProviderError(self.provider, error_type, f"{self.provider} request failed: {e}") from e

        if response.status_code >= 400:
            error_type = classify_status(response.status_code)
            raise AIProviderError(
                self.provider,
                error_type,
                f"{self.provider} returned {response.status_code}: {_error_text(response)}",
                provider_status=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise AIProviderError(self.provider, AIErrorType.unknown, f"{self.provider} returned invalid JSON") from e


def _error_text(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data)[:200]
    return str(data)[:200]
