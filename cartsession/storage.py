"""
Persistent key-value storage for session and cart state.

Provides:
- StorageKeys: the string keys the cart/session layer persists under
- MemoryStore: process-local store (tests, offline development)
- RedisStore: Upstash async Redis client, survives process restarts
- get_store(): singleton picked from environment configuration
"""

from typing import Optional, Protocol

from upstash_redis.asyncio import Redis as AsyncRedis

from cartsession import config
from cartsession.errors import StorageError
from cartsession.logging import get_logger

logger = get_logger(__name__)


class StorageKeys:
    """Keys mirrored to persistent storage."""

    TOKEN = "token"
    CART_ITEMS = "cartItems"
    RESTAURANT = "restaurant"


class KeyValueStore(Protocol):
    """Async string-keyed, string-valued storage."""

    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryStore:
    """Dict-backed store. Contents live as long as the instance."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, str]:
        """Copy of the stored values, for inspection."""
        return dict(self._data)


class RedisStore:
    """
    Store backed by Upstash Redis (REST).

    Keys are prefixed with the namespace when one is given, so several
    installations can share a database: ``<namespace>:cartItems``.
    Client errors are re-raised as StorageError.
    """

    def __init__(self, redis: AsyncRedis, namespace: str = ""):
        self.redis = redis
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}" if self.namespace else key

    async def get(self, key: str) -> Optional[str]:
        try:
            value = await self.redis.get(self._key(key))
        except Exception as e:
            raise StorageError("get", key, e) from e
        return value if value is None else str(value)

    async def set(self, key: str, value: str) -> None:
        try:
            await self.redis.set(self._key(key), value)
        except Exception as e:
            raise StorageError("set", key, e) from e

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self._key(key))
        except Exception as e:
            raise StorageError("delete", key, e) from e


_store: Optional[KeyValueStore] = None


def get_store() -> KeyValueStore:
    """
    Get the configured store (singleton).

    Uses Upstash Redis when UPSTASH_REDIS_REST_URL and
    UPSTASH_REDIS_REST_TOKEN are set, otherwise an in-memory store
    (state is then lost on restart).
    """
    global _store

    if _store is None:
        if config.redis_configured():
            redis = AsyncRedis(
                url=config.UPSTASH_REDIS_REST_URL,
                token=config.UPSTASH_REDIS_REST_TOKEN,
            )
            _store = RedisStore(redis, namespace=config.STORAGE_NAMESPACE)
        else:
            logger.warning("Upstash Redis not configured, cart state will not survive restarts")
            _store = MemoryStore()

    return _store


__all__ = [
    "StorageKeys",
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "get_store",
]
