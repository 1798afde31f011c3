"""
Key-value persistence for client-side state (cart, wishlist, history).
"""
from storefront.storage.kv_store import KeyValueStore, InMemoryStore, RedisStore, ScopedStore, create_store

__all__ = [
    'KeyValueStore',
    'InMemoryStore',
    'RedisStore',
    'ScopedStore',
    'create_store'
]
