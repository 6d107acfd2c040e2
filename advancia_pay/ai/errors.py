"""AI provider error taxonomy."""

from __future__ import annotations

from enum import Enum
from typing import Optional

import httpx

from advancia_pay.core.errors import AdvanciaError


class AIErrorType(str, Enum):
    """Classification of AI provider failures."""

    rate_limit = "RATE_LIMIT"
    authentication = "AUTHENTICATION"
    timeout = "TIMEOUT"
    invalid_request = "INVALID_REQUEST"
    server_error = "SERVER_ERROR"
    network_error = "NETWORK_ERROR"
    quota_exceeded = "QUOTA_EXCEEDED"
    unknown = "UNKNOWN"


RETRYABLE_ERROR_TYPES = frozenset(
    {AIErrorType.rate_limit, AIErrorType.timeout, AIErrorType.server_error, AIErrorType.network_error}
)


class AIProviderError(AdvanciaError):
    """A call to an AI provider failed."""

    status_code = 502

    def __init__(self, provider: str, error_type: AIErrorType, message: str, *, provider_status: Optional[int] = None):
        super().__init__(
            message,
            details={"provider": provider, "errorType": error_type.value},
            status_code=429 if error_type == AIErrorType.rate_limit else None,
        )
        self.provider = provider
        self.error_type = error_type
        self.provider_status = provider_status

    @property
    def retryable(self) -> bool:
        return self.error_type in RETRYABLE_ERROR_TYPES


def classify_status(status_code: int) -> AIErrorType:
    if status_code == 429:
        return AIErrorType.rate_limit
    if status_code in (401, 403):
        return AIErrorType.authentication
    if status_code == 402:
        return AIErrorType.quota_exceeded
    if status_code == 408:
        return AIErrorType.timeout
    if 400 <= status_code < 500:
        return AIErrorType.invalid_request
    if status_code >= 500:
        return AIErrorType.server_error
    return AIErrorType.unknown


def classify_exception(exc: BaseException) -> AIErrorType:
    if isinstance(exc, httpx.TimeoutException):
        return AIErrorType.timeout
    if isinstance(exc, httpx.TransportError):
        return AIErrorType.network_error
    if isinstance(exc, httpx.HTTPStatusError):
        return classify_status(exc.response.status_code)
    return AIErrorType.unknown
