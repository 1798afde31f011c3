"""
Custom domain exceptions for the storefront core.
Filter validation and stock ceilings never raise; everything here does.
"""
from typing import Any, List, Optional


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


class NetworkError(Exception):
    """Raised on timeouts and connection failures talking to the API."""
    pass


class ExternalServiceError(Exception):
    """Raised when the upstream REST API fails."""
    pass


class ApiError(ExternalServiceError):
    """Raised when the API answers with a non-2xx status."""
    
    def __init__(self, status: int, message: str, errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.errors = errors or []
    
    def __str__(self) -> str:
        return f"[{self.status}] {self.message}"


class NormalizationError(Exception):
    """Raised when raw API data cannot be normalized."""
    pass


class StorageError(Exception):
    """Raised when key-value persistence fails."""
    pass


class RetryExhaustedError(ExternalServiceError):
    """Raised when all retry attempts for an API call are exhausted."""
    pass
