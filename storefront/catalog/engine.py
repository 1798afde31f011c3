"""
Pure filtering and sorting over in-memory product snapshots.

Host pages (shop listing, autocomplete, recommendation widgets) all call
filter_and_sort with a FilterSpec instead of filtering by hand.
"""
import math
from typing import Any, Callable, Iterable, List, Optional

from storefront.models.filters import FilterSpec, SortKey
from storefront.models.product import Product

BEST_SELLER_BOOST = 1000


def parse_number(raw: Any, allow_negative: bool = False) -> Optional[float]:
    """Parse a user-supplied numeric filter; None means "filter absent"."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        value = float(raw)
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    if math.isnan(value) or math.isinf(value):
        return None
    if value < 0 and not allow_negative:
        return None
    return value


def _text(value: Any) -> str:
    """Spec values are usually strings; anything else is compared as its text."""
    return "" if value is None else str(value).strip()


def matches_query(product: Product, query: str) -> bool:
    """Case-insensitive substring match over name, description, category, brand and tags."""
    term = _text(query).lower()
    if not term:
        return True
    fields = (product.name, product.description, product.category, product.brand)
    if any(term in (value or "").lower() for value in fields):
        return True
    return any(term in tag.lower() for tag in product.tags)


def discount_percent(product: Product) -> float:
    return product.discount_percent


def popularity_score(product: Product) -> int:
    """
    Sales proxy: review count plus a flat best seller boost.
    
    The boost exceeds any realistic review count, so every best seller
    outranks every non best seller.
    """
    return (BEST_SELLER_BOOST if product.best_seller else 0) + product.reviews


def _sort_key(sort_by: str) -> Optional[Callable[[Product], Any]]:
    if sort_by == SortKey.DISCOUNT:
        return discount_percent
    if sort_by == SortKey.SALES:
        return popularity_score
    if sort_by == SortKey.PRICE:
        return lambda p: p.price
    if sort_by == SortKey.RATING:
        return lambda p: p.rating or 0.0
    if sort_by == SortKey.NAME:
        return lambda p: (p.name or "").lower()
    return None


def stable_sort(products: Iterable[Product], key: Callable[[Product], Any],
                descending: bool = True) -> List[Product]:
    """Sort with equal keys kept in input order, ascending or descending."""
    return sorted(products, key=key, reverse=descending)


def apply_filters(products: Iterable[Product], spec: FilterSpec) -> List[Product]:
    """Run the six filter stages conjunctively."""
    filtered = list(products)
    
    query = _text(spec.query)
    if query:
        filtered = [p for p in filtered if matches_query(p, query)]
    
    category = _text(spec.category).lower()
    if category:
        filtered = [p for p in filtered if (p.category or "").lower() == category]
    
    brand = _text(spec.brand).lower()
    if brand:
        filtered = [p for p in filtered if (p.brand or "").lower() == brand]
    
    # Bounds are checked independently; an invalid one is simply skipped
    min_price = parse_number(spec.min_price)
    if min_price is not None:
        filtered = [p for p in filtered if p.price >= min_price]
    max_price = parse_number(spec.max_price)
    if max_price is not None:
        filtered = [p for p in filtered if p.price <= max_price]
    
    if spec.in_stock_only:
        filtered = [p for p in filtered if p.in_stock is True]
    
    min_rating = parse_number(spec.min_rating, allow_negative=True)
    if min_rating is not None:
        filtered = [p for p in filtered if (p.rating or 0.0) >= min_rating]
    
    return filtered


def filter_and_sort(products: Iterable[Product], spec: Optional[FilterSpec] = None) -> List[Product]:
    """
    Derive the ordered product subset for a filter specification.
    
    Pure and deterministic; the input is never mutated and malformed
    spec values never raise.
    
    Args:
        products: Full in-memory product list
        spec: Filter specification (None means no constraints)
        
    Returns:
        New list of matching products, sorted when a sort key is given
    """
    spec = spec or FilterSpec()
    filtered = apply_filters(products, spec)
    
    key = _sort_key(_text(spec.sort_by).lower())
    if key is None:
        return filtered
    
    return stable_sort(filtered, key, descending=not spec.is_ascending)
