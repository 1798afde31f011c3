"""
Client-local wishlist entry.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any

from storefront.models.product import Product
from storefront.normalizers.product import ProductNormalizer


@dataclass
class WishlistItem:
    product: Product
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    added_at: datetime = field(default_factory=datetime.utcnow)
    auto_add_to_cart: bool = False
    notify_on_restock: bool = True
    was_out_of_stock: bool = False
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product": self.product.to_dict(),
            "addedAt": self.added_at.isoformat(),
            "autoAddToCart": self.auto_add_to_cart,
            "notifyOnRestock": self.notify_on_restock,
            "wasOutOfStock": self.was_out_of_stock
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WishlistItem":
        added_at = data.get("addedAt")
        return cls(
            id=str(data.get("id") or uuid.uuid4()),
            product=ProductNormalizer.normalize_product(data.get("product") or {}),
            added_at=datetime.fromisoformat(added_at) if added_at else datetime.utcnow(),
            auto_add_to_cart=bool(data.get("autoAddToCart", False)),
            notify_on_restock=bool(data.get("notifyOnRestock", True)),
            was_out_of_stock=bool(data.get("wasOutOfStock", False))
        )
