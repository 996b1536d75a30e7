"""Redis client creation and the key-value cache adapter used for session state."""

from typing import Optional

import redis.asyncio as redis
import structlog
from redis.exceptions import RedisError

from modification_service.configuration.redis_config import RedisSettings
from modification_service.errors import CacheBackendError

logger = structlog.get_logger(__name__)

_BACKEND_ERRORS = (RedisError, OSError, TimeoutError)


def create_redis_client(cfg: RedisSettings) -> redis.Redis:
    """Create an asyncio Redis client from settings."""
    client = redis.from_url(
        cfg.REDIS_URL,
        password=cfg.REDIS_PASSWORD,
        db=cfg.REDIS_DB,
        max_connections=cfg.REDIS_MAX_CONNECTIONS,
        socket_connect_timeout=cfg.REDIS_SOCKET_CONNECT_TIMEOUT,
        socket_timeout=cfg.REDIS_SOCKET_TIMEOUT,
        decode_responses=True,
    )
    logger.info("Redis client created", redis_url=cfg.REDIS_URL, redis_db=cfg.REDIS_DB)
    return client


class RedisKeyValueCache:
    """``KeyValueCache`` over redis.asyncio.

    Every backend failure surfaces as ``CacheBackendError`` so callers have one
    exception to degrade on.
    """

    def __init__(self, client: redis.Redis):
        self._client = client

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._client.get(key)
        except _BACKEND_ERRORS as e:
            raise CacheBackendError(f"GET {key} failed: {e}") from e

    async def set_with_ttl(self, key: str, value: str, ttl: int) -> None:
        try:
            await self._client.set(key, value, ex=ttl)
        except _BACKEND_ERRORS as e:
            raise CacheBackendError(f"SET {key} failed: {e}") from e

    async def exists(self, key: str) -> bool:
        try:
            return bool(await self._client.exists(key))
        except _BACKEND_ERRORS as e:
            raise CacheBackendError(f"EXISTS {key} failed: {e}") from e

    async def delete(self, key: str) -> None:
        try:
            await self._client.delete(key)
        except _BACKEND_ERRORS as e:
            raise CacheBackendError(f"DEL {key} failed: {e}") from e

    async def ping(self) -> bool:
        try:
            return bool(await self._client.ping())
        except _BACKEND_ERRORS:
            return False

    async def close(self) -> None:
        await self._client.aclose()
