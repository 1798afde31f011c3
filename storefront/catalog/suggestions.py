"""
Header autocomplete suggestions.
"""
from dataclasses import dataclass
from typing import Iterable, List, Optional, Dict, Any

from storefront.catalog.engine import matches_query
from storefront.models.product import Product

MIN_QUERY_LENGTH = 2
MAX_PRODUCT_SUGGESTIONS = 5
MAX_BRAND_SUGGESTIONS = 2
MAX_TRENDING_SUGGESTIONS = 3


@dataclass(frozen=True)
class Suggestion:
    id: str
    text: str
    type: str  # product | brand | trending
    product_id: Optional[str] = None
    count: Optional[int] = None
    
    def to_dict(self) -> Dict[str, Any]:
        data = {"id": self.id, "text": self.text, "type": self.type}
        if self.product_id is not None:
            data["productId"] = self.product_id
        if self.count is not None:
            data["count"] = self.count
        return data


def _product_matches(product: Product, term: str) -> bool:
    # Autocomplete does not search category or brand; brands get their own rows
    return (
        term in product.name.lower()
        or term in product.description.lower()
        or any(term in tag.lower() for tag in product.tags)
    )


def build_suggestions(products: Iterable[Product], query: str,
                      trending_searches: Iterable[str] = ()) -> List[Suggestion]:
    """Product, brand and trending-term suggestions for a partial query."""
    term = (query or "").strip().lower()
    if len(term) < MIN_QUERY_LENGTH:
        return []
    
    products = list(products)
    
    product_suggestions = [
        Suggestion(id=f"product-{p.id}", text=p.name, type="product", product_id=p.id)
        for p in products if _product_matches(p, term)
    ][:MAX_PRODUCT_SUGGESTIONS]
    
    brands: List[str] = []
    for p in products:
        if p.brand and p.brand not in brands:
            brands.append(p.brand)
    brand_suggestions = [
        Suggestion(
            id=f"brand-{brand}",
            text=f"{brand} products",
            type="brand",
            count=sum(1 for p in products if p.brand == brand)
        )
        for brand in brands if term in brand.lower()
    ][:MAX_BRAND_SUGGESTIONS]
    
    trending_suggestions = [
        Suggestion(id=f"trending-{trend}", text=trend, type="trending")
        for trend in trending_searches if term in trend.lower()
    ][:MAX_TRENDING_SUGGESTIONS]
    
    return product_suggestions + brand_suggestions + trending_suggestions


def quick_results(products: Iterable[Product], query: str, limit: int = 6) -> List[Product]:
    """Top matches shown under the search bar."""
    if len((query or "").strip()) < MIN_QUERY_LENGTH:
        return []
    return [p for p in products if matches_query(p, query)][:limit]
