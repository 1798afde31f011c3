"""
Cart & stock reconciliation.
"""
from storefront.cart.store import (
    CartStore,
    StockAdjustment,
    UNLIMITED_STOCK,
    get_available_stock
)
from storefront.cart.session import CartSession, ANONYMOUS_CART_KEY

__all__ = [
    'CartStore',
    'StockAdjustment',
    'UNLIMITED_STOCK',
    'get_available_stock',
    'CartSession',
    'ANONYMOUS_CART_KEY'
]
