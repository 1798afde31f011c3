"""
BBN Storefront core - catalog filtering, recommendations and stock-aware carts.
"""

__version__ = "1.0.0"
__author__ = "Engineering Team"

# Export main components for easy import
from storefront.config import config
from storefront.logger import logger
from storefront.errors import (
    ConfigError,
    NetworkError,
    ExternalServiceError,
    ApiError,
    NormalizationError,
    StorageError,
    RetryExhaustedError
)

__all__ = [
    'config',
    'logger',
    'ConfigError',
    'NetworkError',
    'ExternalServiceError',
    'ApiError',
    'NormalizationError',
    'StorageError',
    'RetryExhaustedError'
]
