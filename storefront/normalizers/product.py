"""
Explicit normalization layer.
Converts untrusted REST API product JSON into the internal model.
"""
import re
from typing import List, Dict, Any, Optional

from storefront.errors import NormalizationError
from storefront.logger import logger
from storefront.models.product import Product, Variant


class ProductNormalizer:
    """
    Normalizes raw API products (and locally persisted copies of them).
    Accepts both `id` and Mongo-style `_id`.
    """
    
    @staticmethod
    def normalize_product(raw_product: Dict[str, Any]) -> Product:
        """
        Convert an API product to the internal model.
        
        Returns:
            Normalized Product
            
        Raises:
            NormalizationError: If data cannot be normalized
        """
        try:
            product_id = raw_product.get("id") or raw_product.get("_id")
            if not product_id:
                raise ValueError("missing product id")
            
            name = str(raw_product.get("name") or "").strip()
            if not name:
                raise ValueError("missing product name")
            
            price = ProductNormalizer.normalize_price(raw_product.get("price"))
            
            variants = tuple(
                ProductNormalizer.normalize_variant(v)
                for v in raw_product.get("variants") or []
            )
            
            return Product(
                id=str(product_id),
                name=name,
                price=price if price is not None else 0.0,
                description=str(raw_product.get("description") or "").strip(),
                category=str(raw_product.get("category") or "").strip(),
                brand=str(raw_product.get("brand") or "").strip(),
                original_price=ProductNormalizer.normalize_price(raw_product.get("originalPrice")),
                rating=ProductNormalizer._extract_rating(raw_product.get("rating")),
                reviews=ProductNormalizer.normalize_count(
                    raw_product.get("reviews")
                    or raw_product.get("reviewCount")
                    or raw_product.get("numReviews")
                ),
                in_stock=ProductNormalizer._normalize_flag(raw_product.get("inStock"), default=True),
                stock_quantity=ProductNormalizer._normalize_stock(raw_product.get("stockQuantity")),
                featured=ProductNormalizer._normalize_flag(raw_product.get("featured")),
                best_seller=ProductNormalizer._normalize_flag(raw_product.get("bestSeller")),
                tags=tuple(str(t).strip() for t in raw_product.get("tags") or [] if str(t).strip()),
                variants=variants,
                images=tuple(str(i) for i in raw_product.get("images") or [] if i)
            )
            
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            keys = list(raw_product.keys()) if isinstance(raw_product, dict) else []
            raise NormalizationError(
                f"Failed to normalize product: {str(e)}. "
                f"Data keys: {keys}"
            ) from e
    
    @staticmethod
    def normalize_variant(raw_variant: Dict[str, Any]) -> Variant:
        """Convert an API variant to the internal model."""
        if not isinstance(raw_variant, dict):
            raise NormalizationError(f"Variant must be an object, got {type(raw_variant).__name__}")
        
        variant_id = raw_variant.get("id") or raw_variant.get("_id")
        if not variant_id:
            raise NormalizationError(f"Failed to normalize variant: missing id. Data keys: {list(raw_variant.keys())}")
        
        price = ProductNormalizer.normalize_price(raw_variant.get("price"))
        return Variant(
            id=str(variant_id),
            name=str(raw_variant.get("name") or "").strip(),
            price=price if price is not None else 0.0,
            in_stock=ProductNormalizer._normalize_flag(raw_variant.get("inStock"), default=True),
            stock_quantity=ProductNormalizer._normalize_stock(raw_variant.get("stockQuantity"))
        )
    
    @staticmethod
    def normalize_price(raw_price: Any) -> Optional[float]:
        """Normalize price to float."""
        if raw_price is None or raw_price == "" or isinstance(raw_price, bool):
            return None
        
        try:
            if isinstance(raw_price, str):
                # Remove currency symbols, commas, spaces
                clean_price = re.sub(r'[^\d.]', '', raw_price)
                if clean_price and clean_price != ".":
                    return float(clean_price)
            elif isinstance(raw_price, (int, float)):
                return float(raw_price)
        except (ValueError, TypeError):
            pass
        
        return None
    
    @staticmethod
    def _extract_rating(raw_rating: Any) -> float:
        """Extract numeric rating, clamped to 0-5."""
        if not raw_rating:
            return 0.0
        
        try:
            if isinstance(raw_rating, (int, float)):
                return max(0.0, min(5.0, float(raw_rating)))
            
            match = re.search(r'(\d+\.?\d*)', str(raw_rating))
            if match:
                return max(0.0, min(5.0, float(match.group(1))))
        except (ValueError, TypeError):
            pass
        
        return 0.0
    
    @staticmethod
    def normalize_count(raw_count: Any) -> int:
        """Normalize a non-negative count (reviews, quantities)."""
        if not raw_count:
            return 0
        
        try:
            if isinstance(raw_count, str):
                # Drop thousands separators, then take the first number
                match = re.search(r'-?\d+(?:\.\d+)?', raw_count.replace(",", ""))
                if match:
                    return max(0, int(float(match.group(0))))
            else:
                return max(0, int(float(raw_count)))
        except (ValueError, TypeError, OverflowError):
            pass
        
        return 0
    
    @staticmethod
    def _normalize_stock(raw_stock: Any) -> Optional[int]:
        """Stock quantity; None when the API did not send one."""
        if raw_stock is None or raw_stock == "":
            return None
        return ProductNormalizer.normalize_count(raw_stock)
    
    @staticmethod
    def _normalize_flag(raw_flag: Any, default: bool = False) -> bool:
        if raw_flag is None:
            return default
        if isinstance(raw_flag, str):
            return raw_flag.strip().lower() in ("true", "1", "yes")
        return bool(raw_flag)
    
    @staticmethod
    def normalize_batch(raw_products: List[Dict[str, Any]]) -> List[Product]:
        """
        Normalize a batch of products.
        
        Returns:
            List of normalized products (skipping failures)
        """
        normalized = []
        
        for raw in raw_products:
            try:
                normalized.append(ProductNormalizer.normalize_product(raw))
            except NormalizationError as e:
                logger.warning(f"Skipping product that failed normalization: {e}")
                continue
        
        return normalized
