"""
Services package initialization.
Centralizes service imports.
"""

from storefront.services.api_service import ApiService, ApiResponse
from storefront.services.cache import TTLCache, CacheKeys
from storefront.services.catalog_service import CatalogService

__all__ = [
    'ApiService',
    'ApiResponse',
    'TTLCache',
    'CacheKeys',
    'CatalogService'
]
