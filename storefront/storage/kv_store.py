import json
from typing import Any, Dict, List, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from storefront.errors import StorageError
from storefront.config import config
from storefront.logger import logger


class KeyValueStore:
    """Base interface for key-value persistence. Values are JSON-serializable."""
    def __init__(self):
        self.is_available = False
    
    async def initialize(self):
        pass
    
    async def close(self):
        pass
    
    async def get(self, key: str, default: Any = None) -> Any:
        raise NotImplementedError
    
    async def set(self, key: str, value: Any):
        raise NotImplementedError
    
    async def delete(self, key: str):
        raise NotImplementedError
    
    async def keys(self, prefix: str = "") -> List[str]:
        raise NotImplementedError


class InMemoryStore(KeyValueStore):
    """Process-local store; stands in for browser local storage."""
    def __init__(self):
        super().__init__()
        self._data: Dict[str, str] = {}
        self.is_available = True
    
    async def get(self, key: str, default: Any = None) -> Any:
        raw = self._data.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Corrupt value under '{key}', ignoring")
            return default
    
    async def set(self, key: str, value: Any):
        try:
            self._data[key] = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON-serializable: {e}") from e
    
    async def delete(self, key: str):
        self._data.pop(key, None)
    
    async def keys(self, prefix: str = "") -> List[str]:
        return [k for k in self._data if k.startswith(prefix)]


class RedisStore(KeyValueStore):
    """Redis-backed store, shared between processes."""
    def __init__(self, url: Optional[str] = None, namespace: str = "storefront",
                 ttl: Optional[int] = None):
        super().__init__()
        self.url = url or config.REDIS_URL
        self.namespace = namespace
        self.ttl = ttl if ttl is not None else config.STORAGE_TTL
        self.redis = None
    
    async def initialize(self):
        try:
            self.redis = redis.from_url(self.url, decode_responses=True)
            await self.redis.ping()
            self.is_available = True
            logger.info("Redis storage initialized")
        except Exception as e:
            logger.warning(f"Redis storage init failed: {e}")
            self.is_available = False
    
    async def close(self):
        if self.redis:
            await self.redis.aclose()
    
    def _make_key(self, key: str) -> str:
        return f"{self.namespace}:{key}"
    
    def _ensure_available(self):
        if not self.is_available:
            raise StorageError("Redis storage is not available")
    
    async def get(self, key: str, default: Any = None) -> Any:
        self._ensure_available()
        try:
            data = await self.redis.get(self._make_key(key))
        except RedisError as e:
            raise StorageError(f"Failed to read '{key}': {e}") from e
        if data is None:
            return default
        try:
            return json.loads(data)
        except json.JSONDecodeError:
            logger.warning(f"Corrupt value under '{key}', ignoring")
            return default
    
    async def set(self, key: str, value: Any):
        self._ensure_available()
        try:
            payload = json.dumps(value)
            if self.ttl:
                await self.redis.setex(self._make_key(key), self.ttl, payload)
            else:
                await self.redis.set(self._make_key(key), payload)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for '{key}' is not JSON-serializable: {e}") from e
        except RedisError as e:
            raise StorageError(f"Failed to write '{key}': {e}") from e
    
    async def delete(self, key: str):
        self._ensure_available()
        try:
            await self.redis.delete(self._make_key(key))
        except RedisError as e:
            raise StorageError(f"Failed to delete '{key}': {e}") from e
    
    async def keys(self, prefix: str = "") -> List[str]:
        self._ensure_available()
        strip = len(self.namespace) + 1
        try:
            found = [k[strip:] async for k in self.redis.scan_iter(match=self._make_key(prefix) + "*")]
        except RedisError as e:
            raise StorageError(f"Failed to list keys: {e}") from e
        return found


async def create_store() -> KeyValueStore:
    """Redis when configured and reachable, otherwise in-memory."""
    if config.has_redis:
        store = RedisStore()
        await store.initialize()
        if store.is_available:
            return store
        logger.warning("Falling back to in-memory storage")
    return InMemoryStore()


class ScopedStore(KeyValueStore):
    """View of another store with every key prefixed, one per shopper session."""
    def __init__(self, inner: KeyValueStore, scope: str):
        super().__init__()
        self.inner = inner
        self.prefix = f"{scope}:"
        self.is_available = inner.is_available
    
    async def get(self, key: str, default: Any = None) -> Any:
        return await self.inner.get(self.prefix + key, default)
    
    async def set(self, key: str, value: Any):
        await self.inner.set(self.prefix + key, value)
    
    async def delete(self, key: str):
        await self.inner.delete(self.prefix + key)
    
    async def keys(self, prefix: str = "") -> List[str]:
        found = await self.inner.keys(self.prefix + prefix)
        return [k[len(self.prefix):] for k in found]
