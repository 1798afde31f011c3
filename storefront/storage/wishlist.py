"""
Per-user wishlist kept in client storage, with restock handling.
"""
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from storefront.cart.store import CartStore, first_purchasable_variant, is_purchasable
from storefront.errors import NormalizationError
from storefront.logger import logger
from storefront.models.product import Product
from storefront.models.wishlist import WishlistItem
from storefront.storage.kv_store import KeyValueStore

ANONYMOUS_USER = "anonymous"


def wishlist_key(user_id: Optional[str]) -> str:
    return f"wishlist_{user_id or ANONYMOUS_USER}"


@dataclass
class RestockResult:
    restocked: List[WishlistItem] = field(default_factory=list)
    to_notify: List[WishlistItem] = field(default_factory=list)
    added_to_cart: List[WishlistItem] = field(default_factory=list)
    failed_to_add: List[WishlistItem] = field(default_factory=list)


class Wishlist:
    """Wishlist for one user (or the anonymous shopper)."""
    
    def __init__(self, storage: KeyValueStore, user_id: Optional[str] = None):
        self.storage = storage
        self.user_id = user_id
    
    @property
    def key(self) -> str:
        return wishlist_key(self.user_id)
    
    async def items(self) -> List[WishlistItem]:
        raw_items = await self.storage.get(self.key, [])
        if not isinstance(raw_items, list):
            return []
        
        items = []
        for raw in raw_items:
            try:
                items.append(WishlistItem.from_dict(raw))
            except (NormalizationError, ValueError, AttributeError) as e:
                logger.warning(f"Dropping unreadable wishlist item: {e}")
        return items
    
    async def _save(self, items: List[WishlistItem]):
        await self.storage.set(self.key, [item.to_dict() for item in items])
    
    async def contains(self, product_id: str) -> bool:
        return any(item.product.id == product_id for item in await self.items())
    
    async def add(self, product: Product, auto_add_to_cart: bool = False,
                  notify_on_restock: bool = True) -> WishlistItem:
        """Add a product; adding one already present returns the existing entry."""
        items = await self.items()
        for item in items:
            if item.product.id == product.id:
                return item
        
        item = WishlistItem(
            product=product,
            auto_add_to_cart=auto_add_to_cart,
            notify_on_restock=notify_on_restock,
            was_out_of_stock=not is_purchasable(product)
        )
        items.append(item)
        await self._save(items)
        return item
    
    async def remove(self, product_id: str) -> bool:
        items = await self.items()
        remaining = [item for item in items if item.product.id != product_id]
        if len(remaining) == len(items):
            return False
        await self._save(remaining)
        return True
    
    async def clear(self):
        await self.storage.delete(self.key)
    
    async def check_restocks(self, fresh_products: Iterable[Product],
                             cart: Optional[CartStore] = None) -> RestockResult:
        """
        Compare items captured while out of stock against fresh snapshots.
        
        Restocked items lose their out-of-stock flag; those asking for it are
        returned for notification, and auto-add items go into `cart` with
        quantity 1.
        """
        fresh = {p.id: p for p in fresh_products}
        items = await self.items()
        result = RestockResult()
        
        for item in items:
            if not item.was_out_of_stock:
                continue
            product = fresh.get(item.product.id)
            if product is None or not is_purchasable(product):
                continue
            
            item.product = product
            item.was_out_of_stock = False
            result.restocked.append(item)
            
            if item.notify_on_restock:
                result.to_notify.append(item)
            
            if item.auto_add_to_cart and cart is not None:
                variant = first_purchasable_variant(product) if product.has_variants else None
                if cart.get_max_quantity_can_add(product, variant) > 0:
                    cart.add_to_cart(product, 1, variant)
                    result.added_to_cart.append(item)
                else:
                    result.failed_to_add.append(item)
        
        if result.restocked:
            await self._save(items)
            logger.info(
                f"{len(result.restocked)} wishlist item(s) back in stock for {self.user_id or ANONYMOUS_USER}"
            )
        
        return result
