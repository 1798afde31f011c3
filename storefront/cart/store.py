"""
Cart & stock reconciliation engine.

Owns the cart lines and keeps every line at or below the stock ceiling of
its product/variant. Stock violations are clamped, never raised; callers
check get_max_quantity_can_add first when they need to show a message.
"""
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple, Any

from storefront.errors import NormalizationError
from storefront.logger import logger
from storefront.models.cart import CartLine, line_key
from storefront.models.product import Product, Variant

# Ceiling used when only a boolean in-stock flag is known
UNLIMITED_STOCK = 999


@dataclass(frozen=True)
class StockAdjustment:
    """A line whose quantity changed during stock reconciliation."""
    key: Tuple[str, str]
    old_quantity: int
    new_quantity: int

    @property
    def removed(self) -> bool:
        return self.new_quantity == 0


def get_available_stock(product: Product, variant: Optional[Variant] = None) -> int:
    """
    Stock ceiling for a product, or for one of its variants.

    Variants govern their own stock: explicit quantity first, then the
    in-stock flag. Without a variant the product's quantity wins over its
    flag. Never negative.
    """
    if variant is not None:
        if variant.stock_quantity is not None:
            return max(0, int(variant.stock_quantity))
        return UNLIMITED_STOCK if variant.in_stock else 0

    if product.stock_quantity is not None:
        return max(0, int(product.stock_quantity))
    return UNLIMITED_STOCK if product.in_stock else 0


def first_purchasable_variant(product: Product) -> Optional[Variant]:
    for variant in product.variants:
        if get_available_stock(product, variant) > 0:
            return variant
    return None


def is_purchasable(product: Product) -> bool:
    """True when the product, or any of its variants, has stock."""
    if product.has_variants:
        return first_purchasable_variant(product) is not None
    return get_available_stock(product) > 0


class CartStore:
    """
    In-memory cart state.
    Inject one instance per shopper; persistence lives in CartSession.
    """

    def __init__(self, lines: Optional[Iterable[CartLine]] = None):
        self._lines: List[CartLine] = []
        if lines:
            self.merge(lines)

    @property
    def lines(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def _find(self, key: Tuple[str, str]) -> Optional[CartLine]:
        for line in self._lines:
            if line.key == key:
                return line
        return None

    def get_line(self, product_id: str, variant: Optional[Variant] = None) -> Optional[CartLine]:
        return self._find(line_key(product_id, variant))

    def quantity_in_cart(self, product_id: str, variant: Optional[Variant] = None) -> int:
        line = self.get_line(product_id, variant)
        return line.quantity if line else 0

    # Stock

    def get_available_stock(self, product: Product, variant: Optional[Variant] = None) -> int:
        return get_available_stock(product, variant)

    def get_max_quantity_can_add(self, product: Product, variant: Optional[Variant] = None) -> int:
        """How many more units the shopper may add right now."""
        available = get_available_stock(product, variant)
        return max(0, available - self.quantity_in_cart(product.id, variant))

    # Mutations

    def add_to_cart(self, product: Product, quantity: int = 1,
                    variant: Optional[Variant] = None) -> Optional[CartLine]:
        """
        Add units of a product/variant, clamped to stock.

        Returns:
            The affected line, or None when nothing could be added
        """
        if quantity <= 0:
            return self.get_line(product.id, variant)

        available = get_available_stock(product, variant)
        line = self.get_line(product.id, variant)

        if line is not None:
            # Fresh snapshot wins; its stock bounds the new quantity
            line.product = product
            line.variant = variant
            line.quantity = min(line.quantity + quantity, available)
            if line.quantity <= 0:
                self._lines.remove(line)
                logger.info(f"Removed {product.id} from cart: out of stock")
                return None
            return line

        if available <= 0:
            logger.info(f"Cannot add {product.id} to cart: out of stock")
            return None

        line = CartLine(product=product, quantity=min(max(quantity, 1), available), variant=variant)
        self._lines.append(line)
        if line.quantity < quantity:
            logger.info(f"Clamped {product.id} to available stock {available} (requested {quantity})")
        return line

    def update_quantity(self, product_id: str, quantity: int,
                        variant: Optional[Variant] = None) -> Optional[CartLine]:
        """Set a line's quantity; zero or below removes the line."""
        line = self.get_line(product_id, variant)
        if line is None:
            return None

        if quantity <= 0:
            self._lines.remove(line)
            return None

        available = get_available_stock(line.product, line.variant)
        if available <= 0:
            self._lines.remove(line)
            return None

        line.quantity = min(max(quantity, 1), available)
        return line

    def remove_from_cart(self, product_id: str, variant: Optional[Variant] = None) -> None:
        line = self.get_line(product_id, variant)
        if line is not None:
            self._lines.remove(line)

    def clear_cart(self) -> None:
        self._lines = []

    def merge(self, lines: Iterable[CartLine]) -> None:
        """Fold other lines in by summing quantities, clamped to stock."""
        for line in lines:
            self.add_to_cart(line.product, line.quantity, line.variant)

    def reconcile_stock(self, products: Iterable[Product]) -> List[StockAdjustment]:
        """
        Re-bound every line against fresh product snapshots.

        Lines whose product is not in `products` are left untouched.
        Lines that are now out of stock are dropped.
        """
        fresh = {p.id: p for p in products}
        adjustments = []

        for line in list(self._lines):
            product = fresh.get(line.product.id)
            if product is None:
                continue

            variant = line.variant
            if variant is not None:
                variant = product.get_variant(variant.id) or variant

            line.product = product
            line.variant = variant
            available = get_available_stock(product, variant)

            if line.quantity > available:
                adjustments.append(StockAdjustment(line.key, line.quantity, available))
                if available <= 0:
                    self._lines.remove(line)
                else:
                    line.quantity = available

        if adjustments:
            logger.info(f"Stock reconciliation adjusted {len(adjustments)} cart line(s)")
        return adjustments

    # Derived values

    def get_cart_total(self) -> float:
        return sum(line.subtotal for line in self._lines)

    def get_cart_count(self) -> int:
        """Sum of quantities, shown on the header badge."""
        return sum(line.quantity for line in self._lines)

    def is_in_cart(self, product_id: str) -> bool:
        return any(line.product.id == product_id for line in self._lines)

    def get_cart_stats(self) -> Dict[str, Any]:
        return {
            "item_count": len(self._lines),
            "total_items": self.get_cart_count(),
            "total_value": self.get_cart_total()
        }

    # Serialization

    def to_list(self) -> List[Dict[str, Any]]:
        return [line.to_dict() for line in self._lines]

    def restore(self, data: Iterable[Dict[str, Any]]) -> None:
        """
        Replace the cart with persisted lines.
        Unreadable lines are skipped; quantities are re-clamped.
        """
        restored = []
        for raw in data or []:
            try:
                restored.append(CartLine.from_dict(raw))
            except NormalizationError as e:
                logger.warning(f"Dropping unreadable cart line: {e}")

        self._lines = []
        self.merge(restored)
