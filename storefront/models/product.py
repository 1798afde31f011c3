"""
Canonical product snapshot.
The API is the source of truth; the client never mutates these.
"""
from dataclasses import dataclass, field
from typing import Optional, Tuple, Dict, Any


@dataclass(frozen=True)
class Variant:
    """Purchasable sub-option of a product (e.g. a flavor)."""
    id: str
    name: str
    price: float
    in_stock: bool = True
    stock_quantity: Optional[int] = None
    
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "inStock": self.in_stock,
            "stockQuantity": self.stock_quantity
        }


@dataclass(frozen=True)
class Product:
    """
    Catalog product as seen by the storefront.
    Used by the filter engine, recommendation presets, cart and wishlist.
    """
    # Required fields
    id: str
    name: str
    price: float
    
    # Descriptive fields
    description: str = ""
    category: str = ""
    brand: str = ""
    original_price: Optional[float] = None
    
    # Social proof
    rating: float = 0.0
    reviews: int = 0
    
    # Stock
    in_stock: bool = True
    stock_quantity: Optional[int] = None
    
    # Flags
    featured: bool = False
    best_seller: bool = False
    
    # Collections (tuples keep the snapshot hashable and immutable)
    tags: Tuple[str, ...] = field(default_factory=tuple)
    variants: Tuple[Variant, ...] = field(default_factory=tuple)
    images: Tuple[str, ...] = field(default_factory=tuple)
    
    @property
    def has_variants(self) -> bool:
        return len(self.variants) > 0
    
    @property
    def discount_percent(self) -> float:
        """
        Percentage off the original price.
        
        Missing or non-positive original price means no discount. An
        original price below the current price is clamped to 0%.
        """
        if not self.original_price or self.original_price <= 0:
            return 0.0
        discount = (self.original_price - self.price) / self.original_price * 100
        return max(0.0, discount)
    
    def get_variant(self, variant_id: Optional[str]) -> Optional[Variant]:
        """Find a variant by id."""
        if variant_id is None:
            return None
        for variant in self.variants:
            if variant.id == variant_id:
                return variant
        return None
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to the API's JSON shape."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": self.price,
            "originalPrice": self.original_price,
            "category": self.category,
            "brand": self.brand,
            "images": list(self.images),
            "rating": self.rating,
            "reviews": self.reviews,
            "inStock": self.in_stock,
            "stockQuantity": self.stock_quantity,
            "variants": [v.to_dict() for v in self.variants],
            "tags": list(self.tags),
            "featured": self.featured,
            "bestSeller": self.best_seller
        }
