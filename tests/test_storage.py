"""Tests for key-value stores"""
import pytest
from unittest.mock import AsyncMock, Mock, patch

from cartsession import storage
from cartsession.errors import StorageError
from cartsession.storage import MemoryStore, RedisStore, StorageKeys


@pytest.fixture
def mock_redis():
    redis = Mock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock(return_value=True)
    redis.delete = AsyncMock(return_value=1)
    return redis


@pytest.mark.asyncio
async def test_memory_store_round_trip():
    store = MemoryStore()

    await store.set(StorageKeys.TOKEN, "abc")
    assert await store.get(StorageKeys.TOKEN) == "abc"

    await store.delete(StorageKeys.TOKEN)
    assert await store.get(StorageKeys.TOKEN) is None


@pytest.mark.asyncio
async def test_memory_store_delete_missing_key():
    store = MemoryStore()
    await store.delete("nothing")
    assert store.snapshot() == {}


@pytest.mark.asyncio
async def test_redis_store_namespaces_keys(mock_redis):
    store = RedisStore(mock_redis, namespace="device-1")

    await store.set(StorageKeys.CART_ITEMS, "[]")
    await store.get(StorageKeys.RESTAURANT)
    await store.delete(StorageKeys.TOKEN)

    mock_redis.set.assert_awaited_once_with("device-1:cartItems", "[]")
    mock_redis.get.assert_awaited_once_with("device-1:restaurant")
    mock_redis.delete.assert_awaited_once_with("device-1:token")


@pytest.mark.asyncio
async def test_redis_store_without_namespace(mock_redis):
    mock_redis.get = AsyncMock(return_value="R1")
    store = RedisStore(mock_redis)

    assert await store.get(StorageKeys.RESTAURANT) == "R1"
    mock_redis.get.assert_awaited_once_with("restaurant")


@pytest.mark.asyncio
async def test_redis_store_wraps_errors(mock_redis):
    mock_redis.set = AsyncMock(side_effect=ConnectionError("timeout"))
    store = RedisStore(mock_redis)

    with pytest.raises(StorageError) as exc:
        await store.set(StorageKeys.CART_ITEMS, "[]")

    assert exc.value.operation == "set"
    assert exc.value.key == StorageKeys.CART_ITEMS
    assert isinstance(exc.value.__cause__, ConnectionError)


def test_get_store_defaults_to_memory():
    with patch.object(storage, "_store", None), \
         patch.object(storage.config, "UPSTASH_REDIS_REST_URL", ""), \
         patch.object(storage.config, "UPSTASH_REDIS_REST_TOKEN", ""):
        store = storage.get_store()
        assert isinstance(store, MemoryStore)
        assert storage.get_store() is store


def test_get_store_uses_redis_when_configured():
    with patch.object(storage, "_store", None), \
         patch.object(storage.config, "UPSTASH_REDIS_REST_URL", "https://redis.test"), \
         patch.object(storage.config, "UPSTASH_REDIS_REST_TOKEN", "token"), \
         patch.object(storage.config, "STORAGE_NAMESPACE", "device-1"), \
         patch.object(storage, "AsyncRedis") as redis_cls:
        store = storage.get_store()

        assert isinstance(store, RedisStore)
        assert store.namespace == "device-1"
        redis_cls.assert_called_once_with(url="https://redis.test", token="token")
