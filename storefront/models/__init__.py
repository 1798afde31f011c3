from storefront.models.product import Product, Variant
from storefront.models.filters import FilterSpec, SortKey
from storefront.models.cart import CartLine, DEFAULT_VARIANT_KEY
from storefront.models.wishlist import WishlistItem

__all__ = [
    'Product',
    'Variant',
    'FilterSpec',
    'SortKey',
    'CartLine',
    'DEFAULT_VARIANT_KEY',
    'WishlistItem'
]
