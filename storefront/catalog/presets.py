"""
Recommendation presets.
Fixed filter/score policies built on the engine primitives.
"""
import math
from typing import Dict, Iterable, List, Optional

from storefront.catalog.engine import stable_sort
from storefront.models.product import Product

MIN_RECOMMENDED_RATING = 4.0


def _same(a: str, b: str) -> bool:
    return bool(a) and (a or "").lower() == (b or "").lower()


def _take(products: List[Product], limit: Optional[int]) -> List[Product]:
    if limit is None:
        return products
    return products[:max(0, limit)]


def top_sellers(products: Iterable[Product], limit: int = 4) -> List[Product]:
    """Best sellers first, then rating, then review count."""
    candidates = [
        p for p in products
        if p.in_stock and (p.best_seller or p.rating >= MIN_RECOMMENDED_RATING)
    ]
    ranked = stable_sort(candidates, key=lambda p: (p.best_seller, p.rating, p.reviews))
    return _take(ranked, limit)


def trending_score(product: Product) -> float:
    """rating * ln(reviews + 1); the log damps very large review counts."""
    return product.rating * math.log(product.reviews + 1)


def trending(products: Iterable[Product], limit: int = 6) -> List[Product]:
    candidates = [p for p in products if p.in_stock and p.rating >= MIN_RECOMMENDED_RATING]
    return _take(stable_sort(candidates, key=trending_score), limit)


def related_score(product: Product, source: Product) -> float:
    return (
        (3 if _same(product.category, source.category) else 0)
        + (2 if _same(product.brand, source.brand) else 0)
        + product.rating / 5
    )


def related_to(products: Iterable[Product], source: Product, limit: int = 4) -> List[Product]:
    """Products sharing a category, brand or tag with `source`."""
    source_tags = {t.lower() for t in source.tags}
    
    def is_related(p: Product) -> bool:
        return (
            _same(p.category, source.category)
            or _same(p.brand, source.brand)
            or any(t.lower() in source_tags for t in p.tags)
        )
    
    candidates = [
        p for p in products
        if p.in_stock and p.id != source.id and is_related(p)
    ]
    ranked = stable_sort(candidates, key=lambda p: related_score(p, source))
    return _take(ranked, limit)


def featured(products: Iterable[Product], limit: int = 4) -> List[Product]:
    candidates = [p for p in products if p.featured and p.in_stock]
    return _take(stable_sort(candidates, key=lambda p: p.rating), limit)


def by_category(products: Iterable[Product], category: str,
                limit: Optional[int] = None) -> List[Product]:
    """In-stock products of one category, best rated first."""
    candidates = [p for p in products if p.in_stock and _same(p.category, category)]
    return _take(stable_sort(candidates, key=lambda p: p.rating), limit)


def category_counts(products: Iterable[Product], categories: Iterable[str]) -> Dict[str, int]:
    """Number of products per category name (case-insensitive)."""
    products = list(products)
    return {
        name: sum(1 for p in products if _same(p.category, name))
        for name in categories
    }


PRESETS = {
    "top-sellers": top_sellers,
    "trending": trending,
    "featured": featured
}
