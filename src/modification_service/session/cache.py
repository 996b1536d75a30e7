"""Key-value cache contract consumed by the session state store."""

from typing import Optional, Protocol


class KeyValueCache(Protocol):
    """TTL key-value cache. Implementations raise ``CacheBackendError`` on backend failure."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set_with_ttl(self, key: str, value: str, ttl: int) -> None:
        ...

    async def exists(self, key: str) -> bool:
        ...

    async def delete(self, key: str) -> None:
        ...
