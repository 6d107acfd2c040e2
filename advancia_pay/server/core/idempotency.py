"""
Idempotency-Key support.

Money-moving POST endpoints accept an optional ``Idempotency-Key`` header. The
first response for a key is cached for 24 hours (scoped to the calling user)
and returned verbatim, flagged with ``Idempotency-Replay: true``, when the same
key is sent again. Redis is used when ``REDIS__URL`` is configured; otherwise
responses are cached in process memory.
"""

from __future__ import annotations

import json
import time
from functools import lru_cache
from typing import Any, Awaitable, Callable, Optional, Protocol

import redis.asyncio as aioredis
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from advancia_pay.core.errors import ValidationFailedError
from advancia_pay.core.logging_config import get_logger
from advancia_pay.server.core import constant
from advancia_pay.server.core.config import settings

logger = get_logger(__name__)


class IdempotencyStore(Protocol):
    async def get(self, key: str) -> Optional[dict[str, Any]]: ...

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None: ...


class InMemoryIdempotencyStore:
    """Process-local store; expired entries are swept on write and the oldest evicted past ``max_entries``."""

    def __init__(self, max_entries: int = 10_000) -> None:
        self.max_entries = max_entries
        self._entries: dict[str, tuple[float, dict[str, Any]]] = {}

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        now = time.monotonic()
        for stale in [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]:
            del self._entries[stale]
        self._entries.pop(key, None)
        while len(self._entries) >= self.max_entries:
            del self._entries[next(iter(self._entries))]
        self._entries[key] = (now + ttl_seconds, value)

    def clear(self) -> None:
        self._entries.clear()


class RedisIdempotencyStore:
    def __init__(self, client: aioredis.Redis, prefix: str = "idempotency:") -> None:
        self.client = client
        self.prefix = prefix

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        raw = await self.client.get(self.prefix + key)
        return json.loads(raw) if raw else None

    async def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        await self.client.set(self.prefix + key, json.dumps(value), ex=ttl_seconds)


@lru_cache
def get_idempotency_store() -> IdempotencyStore:
    if settings.redis.url:
        logger.info("Using Redis idempotency store")
        return RedisIdempotencyStore(aioredis.from_url(settings.redis.url, decode_responses=True))
    logger.info("Using in-memory idempotency store")
    return InMemoryIdempotencyStore()


def validate_idempotency_key(key: str) -> str:
    key = key.strip()
    if not constant.IDEMPOTENCY_KEY_MIN_LENGTH <= len(key) <= constant.IDEMPOTENCY_KEY_MAX_LENGTH:
        raise ValidationFailedError(
            f"{constant.IDEMPOTENCY_HEADER} must be between {constant.IDEMPOTENCY_KEY_MIN_LENGTH} "
            f"and {constant.IDEMPOTENCY_KEY_MAX_LENGTH} characters"
        )
    return key


async def run_idempotent(
    store: IdempotencyStore,
    *,
    scope: str,
    key: Optional[str],
    handler: Callable[[], Awaitable[Any]],
    status_code: int = 200,
) -> JSONResponse:
    """
    Run ``handler`` at most once per ``(scope, key)``.

    Args:
        store: Where responses are cached
        scope: Namespace of the key, usually endpoint plus user id
        key: Client supplied key, or None to run without caching
        handler: Coroutine factory producing the response body
        status_code: Status of a fresh successful response

    Returns:
        The fresh or replayed JSON response. Failed handlers are not cached.
    """
    if not key:
        return JSONResponse(jsonable_encoder(await handler()), status_code=status_code)

    cache_key = f"{scope}:{validate_idempotency_key(key)}"
    cached = await store.get(cache_key)
    if cached is not None:
        logger.info(f"Replaying idempotent response for {scope}")
        return JSONResponse(
            cached["body"],
            status_code=cached["status"],
            headers={constant.IDEMPOTENCY_REPLAY_HEADER: "true"},
        )

    body = jsonable_encoder(await handler())
    await store.set(
        cache_key, {"status": status_code, "body": body}, ttl_seconds=settings.redis.idempotency_ttl_seconds
    )
    return JSONResponse(body, status_code=status_code)
