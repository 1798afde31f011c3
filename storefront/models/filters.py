"""
Filter specification value object.
Built from URL query parameters or UI controls on every filter pass.
"""
from dataclasses import dataclass
from typing import Mapping, Dict, Any


class SortKey:
    """Supported sort keys."""
    RELEVANCE = "relevance"
    DISCOUNT = "discount"
    SALES = "sales"
    PRICE = "price"
    RATING = "rating"
    NAME = "name"
    
    ALL = (RELEVANCE, DISCOUNT, SALES, PRICE, RATING, NAME)


_TRUTHY = ("true", "1", "yes", "on")


@dataclass(frozen=True)
class FilterSpec:
    """
    User-chosen catalog constraints.
    
    Numeric bounds stay as raw strings; the engine parses them and treats
    anything unparseable as "filter absent".
    """
    query: str = ""
    category: str = ""
    brand: str = ""
    min_price: str = ""
    max_price: str = ""
    in_stock_only: bool = False
    min_rating: str = ""
    sort_by: str = ""
    sort_order: str = "desc"
    
    @property
    def is_ascending(self) -> bool:
        return str(self.sort_order or "").strip().lower() == "asc"
    
    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> "FilterSpec":
        """Build a spec from shop page URL parameters."""
        def text(name: str) -> str:
            value = params.get(name)
            return "" if value is None else str(value).strip()
        
        return cls(
            query=text("q"),
            category=text("category"),
            brand=text("brand"),
            min_price=text("minPrice"),
            max_price=text("maxPrice"),
            in_stock_only=text("inStock").lower() in _TRUTHY,
            min_rating=text("rating"),
            sort_by=text("sortBy").lower(),
            sort_order=text("sortOrder").lower() or "desc"
        )
    
    def to_api_params(self) -> Dict[str, str]:
        """Server-side equivalent of this spec for GET /products."""
        params = {
            "search": self.query,
            "category": self.category,
            "brand": self.brand,
            "minPrice": self.min_price,
            "maxPrice": self.max_price,
            "inStock": "true" if self.in_stock_only else "",
            "rating": self.min_rating,
            "sortBy": self.sort_by,
            "sortOrder": self.sort_order if self.sort_by else ""
        }
        return {k: v for k, v in params.items() if v}
