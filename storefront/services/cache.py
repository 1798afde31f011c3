"""
Short-TTL client cache for API snapshots.
"""
import time
from typing import Any, Dict, Optional, Tuple

DEFAULT_TTL = 5 * 60


class CacheKeys:
    PRODUCTS = "products"
    PRODUCT_DETAIL = "product_detail"
    CATEGORIES = "categories"
    USER_PROFILE = "user_profile"
    CART = "cart"


class TTLCache:
    """Maps keys to (value, stored_at, ttl); expired entries are evicted on read."""
    
    def __init__(self, clock=time.monotonic):
        self._entries: Dict[str, Tuple[Any, float, float]] = {}
        self._clock = clock
    
    def set(self, key: str, value: Any, ttl: float = DEFAULT_TTL):
        self._entries[key] = (value, self._clock(), ttl)
    
    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        
        value, stored_at, ttl = entry
        if self._clock() - stored_at > ttl:
            del self._entries[key]
            return None
        return value
    
    def delete(self, key: str):
        self._entries.pop(key, None)
    
    def clear(self):
        self._entries.clear()
    
    def __len__(self) -> int:
        return len(self._entries)
