"""
Per-shopper state bundle.
Everything one browser tab would hold: cart, wishlist, search history, preferences.
"""
import asyncio
from collections import OrderedDict
from typing import Optional

from storefront.cart.session import CartSession
from storefront.config import config
from storefront.logger import logger
from storefront.services.api_service import ApiService
from storefront.services.catalog_service import CatalogService
from storefront.storage.client_state import Preferences, SearchHistory
from storefront.storage.kv_store import KeyValueStore, ScopedStore
from storefront.storage.wishlist import Wishlist


class Shopper:
    """Unified interface over one shopper's client-side state."""
    def __init__(self, session_id: str, storage: KeyValueStore, api: ApiService,
                 catalog: CatalogService):
        self.session_id = session_id
        self.storage = ScopedStore(storage, f"session:{session_id}")
        # Each shopper carries its own bearer token
        self.api = ApiService(base_url=api.base_url)
        self.api.session = api.session
        self.cart = CartSession(self.storage, self.api, catalog)
        self.search_history = SearchHistory(self.storage)
        self.preferences = Preferences(self.storage)
    
    @property
    def wishlist(self) -> Wishlist:
        return Wishlist(self.storage, self.cart.user_id)
    
    async def initialize(self):
        await self.cart.load()


class ShopperRegistry:
    """
    Shoppers by session id, created lazily.
    
    Holds at most `max_sessions` shoppers; the least recently used one is
    evicted. Its state stays in storage and is reloaded on its next request.
    """
    def __init__(self, storage: KeyValueStore, api: ApiService, catalog: CatalogService,
                 max_sessions: Optional[int] = None):
        self.storage = storage
        self.api = api
        self.catalog = catalog
        self.max_sessions = max(1, max_sessions or config.MAX_SHOPPER_SESSIONS)
        self._shoppers: "OrderedDict[str, Shopper]" = OrderedDict()
        self._lock = asyncio.Lock()
    
    async def get(self, session_id: str) -> Shopper:
        async with self._lock:
            shopper = self._shoppers.get(session_id)
            if shopper is None:
                shopper = Shopper(session_id, self.storage, self.api, self.catalog)
                await shopper.initialize()
                self._shoppers[session_id] = shopper
                logger.info(f"Created shopper session {session_id}")
                while len(self._shoppers) > self.max_sessions:
                    evicted, _ = self._shoppers.popitem(last=False)
                    logger.debug(f"Evicted idle shopper session {evicted}")
            else:
                self._shoppers.move_to_end(session_id)
            return shopper
    
    def forget(self, session_id: str) -> Optional[Shopper]:
        return self._shoppers.pop(session_id, None)
    
    def __len__(self) -> int:
        return len(self._shoppers)
