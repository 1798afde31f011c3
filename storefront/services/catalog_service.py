"""
Catalog access for host pages.
Fetches one page of products, caches it briefly, and runs the engine locally.
"""
import asyncio
from typing import Iterable, List, Optional

from storefront.catalog import presets
from storefront.catalog.engine import filter_and_sort
from storefront.catalog.suggestions import Suggestion, build_suggestions
from storefront.config import config
from storefront.errors import ApiError, ExternalServiceError, NetworkError, NormalizationError
from storefront.logger import logger
from storefront.models.filters import FilterSpec
from storefront.models.product import Product
from storefront.normalizers.product import ProductNormalizer
from storefront.services.api_service import ApiService
from storefront.services.cache import TTLCache, CacheKeys


class CatalogService:
    """
    Product snapshots plus the filter engine and recommendation presets.

    Upstream failures in the recommendation helpers are logged and yield
    an empty list; `get_all_products` itself raises so pages can show an
    error state.
    """

    def __init__(self, api: ApiService, cache: Optional[TTLCache] = None):
        self.api = api
        self.cache = cache or TTLCache()
        self.normalizer = ProductNormalizer()

    async def get_all_products(self, cancel_event: Optional[asyncio.Event] = None,
                               force_refresh: bool = False) -> List[Product]:
        """
        One page of up to PRODUCT_FETCH_LIMIT products, cached for PRODUCT_CACHE_TTL.

        A cancelled fetch returns [] and caches nothing.

        Raises:
            ExternalServiceError: If the API fails
            NetworkError: If the API cannot be reached
        """
        if not force_refresh:
            cached = self.cache.get(CacheKeys.PRODUCTS)
            if cached is not None:
                return cached

        response = await self.api.get_products(
            {"limit": config.PRODUCT_FETCH_LIMIT},
            cancel_event=cancel_event
        )
        if response.cancelled:
            return []
        if not response.success:
            raise ExternalServiceError(response.message or "Product listing failed")

        raw_products = response.data if isinstance(response.data, list) else []
        products = self.normalizer.normalize_batch(raw_products)
        self.cache.set(CacheKeys.PRODUCTS, products, ttl=config.PRODUCT_CACHE_TTL)
        logger.info(f"Loaded {len(products)} products into catalog cache")
        return products

    async def get_product(self, product_id: str, fresh: bool = False) -> Optional[Product]:
        """Single product, from the cache unless `fresh` is set."""
        detail_key = f"{CacheKeys.PRODUCT_DETAIL}:{product_id}"
        if not fresh:
            for product in self.cache.get(CacheKeys.PRODUCTS) or []:
                if product.id == product_id:
                    return product
            product = self.cache.get(detail_key)
            if product is not None:
                return product

        try:
            response = await self.api.get_product(product_id)
        except ApiError as e:
            if e.status == 404:
                return None
            raise
        if not response.success or not isinstance(response.data, dict):
            return None
        try:
            product = self.normalizer.normalize_product(response.data)
        except NormalizationError as e:
            logger.warning(f"Product {product_id} could not be normalized: {e}")
            return None

        self.cache.set(detail_key, product, ttl=config.PRODUCT_CACHE_TTL)
        return product

    async def get_products_by_ids(self, product_ids: Iterable[str], fresh: bool = True) -> List[Product]:
        """Snapshots for the given ids, skipping any that are gone."""
        products = []
        for product_id in dict.fromkeys(product_ids):
            product = await self.get_product(product_id, fresh=fresh)
            if product is not None:
                products.append(product)
        return products

    def invalidate(self):
        self.cache.clear()

    async def _safe_products(self) -> List[Product]:
        try:
            return await self.get_all_products()
        except (ExternalServiceError, NetworkError) as e:
            logger.error(f"Error fetching products: {e}")
            return []

    async def search(self, spec: FilterSpec,
                     cancel_event: Optional[asyncio.Event] = None) -> List[Product]:
        """Shop listing: fetch (or reuse) the page, then filter and sort locally."""
        products = await self.get_all_products(cancel_event=cancel_event)
        return filter_and_sort(products, spec)

    async def top_sellers(self, limit: int = 4) -> List[Product]:
        return presets.top_sellers(await self._safe_products(), limit)

    async def trending(self, limit: int = 6) -> List[Product]:
        return presets.trending(await self._safe_products(), limit)

    async def featured(self, limit: int = 4) -> List[Product]:
        return presets.featured(await self._safe_products(), limit)

    async def by_category(self, category: str, limit: Optional[int] = None) -> List[Product]:
        return presets.by_category(await self._safe_products(), category, limit)

    async def related_to(self, product_id: str, limit: int = 4) -> List[Product]:
        products = await self._safe_products()
        source = next((p for p in products if p.id == product_id), None)
        if source is None:
            try:
                source = await self.get_product(product_id)
            except (ExternalServiceError, NetworkError) as e:
                logger.error(f"Error fetching product {product_id}: {e}")
                return []
        if source is None:
            return []
        return presets.related_to(products, source, limit)

    async def suggestions(self, query: str, trending_searches: Iterable[str] = ()) -> List[Suggestion]:
        if len((query or "").strip()) < 2:
            return []
        return build_suggestions(await self._safe_products(), query, trending_searches)
