"""
Cart line contract.
One row in the cart, keyed by product id plus variant id.
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Dict, Any

from storefront.errors import NormalizationError
from storefront.models.product import Product, Variant
from storefront.normalizers.product import ProductNormalizer

DEFAULT_VARIANT_KEY = "default"


def line_key(product_id: str, variant: Optional[Variant] = None) -> Tuple[str, str]:
    """Identity of a cart line."""
    return (product_id, variant.id if variant else DEFAULT_VARIANT_KEY)


@dataclass
class CartLine:
    """Mutable cart row; the product and variant are read-only snapshots."""
    product: Product
    quantity: int
    variant: Optional[Variant] = None
    
    @property
    def key(self) -> Tuple[str, str]:
        return line_key(self.product.id, self.variant)
    
    @property
    def unit_price(self) -> float:
        if self.variant is not None:
            return self.variant.price
        return self.product.price
    
    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity
    
    def to_dict(self) -> Dict[str, Any]:
        """Shape persisted under the local cart keys."""
        return {
            "product": self.product.to_dict(),
            "quantity": self.quantity,
            "variant": self.variant.to_dict() if self.variant else None
        }
    
    def to_sync_item(self) -> Dict[str, Any]:
        """Shape expected by POST /cart/sync."""
        return {
            "productId": self.product.id,
            "quantity": self.quantity,
            "variant": self.variant.to_dict() if self.variant else None
        }
    
    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CartLine":
        """
        Restore a persisted line.
        
        Raises:
            NormalizationError: If the stored product cannot be read back
        """
        if not isinstance(data, dict):
            raise NormalizationError(f"Cart line must be an object, got {type(data).__name__}")
        product = ProductNormalizer.normalize_product(data.get("product") or {})
        raw_variant = data.get("variant")
        variant = ProductNormalizer.normalize_variant(raw_variant) if raw_variant else None
        return cls(
            product=product,
            quantity=ProductNormalizer.normalize_count(data.get("quantity")),
            variant=variant
        )
