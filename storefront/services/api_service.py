"""
Wrapper for the storefront REST API.
Includes timeout, retry, response validation, error translation.
All network logic is isolated here.
"""
import aiohttp
import asyncio
import json
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

from storefront.errors import ApiError, NetworkError
from storefront.utils.retry import async_retry
from storefront.config import config
from storefront.logger import logger


@dataclass
class ApiResponse:
    """Envelope returned by every API endpoint."""
    success: bool
    data: Any = None
    message: Optional[str] = None
    errors: List[Any] = field(default_factory=list)
    pagination: Optional[Dict[str, Any]] = None
    cancelled: bool = False
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any) -> "ApiResponse":
        if not isinstance(payload, dict):
            return cls(success=True, data=payload)
        return cls(
            success=bool(payload.get("success", True)),
            data=payload.get("data"),
            message=payload.get("message"),
            errors=payload.get("errors") or [],
            pagination=payload.get("pagination"),
            raw=payload
        )

    @classmethod
    def cancelled_response(cls) -> "ApiResponse":
        return cls(success=False, message="Request cancelled", cancelled=True)


def _query_params(params: Optional[Dict[str, Any]]) -> Dict[str, str]:
    """Drop empty values and stringify the rest the way URLSearchParams does."""
    query = {}
    for key, value in (params or {}).items():
        if value is None or value == "":
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        query[key] = str(value)
    return query


class ApiService:
    """
    Wrapper for REST API calls.
    Engines and pages never call the API directly.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.token = token
        self.timeout = config.REQUEST_TIMEOUT
        self.session: Optional[aiohttp.ClientSession] = None

    async def initialize(self):
        """Initialize HTTP session (called after startup)."""
        if self.session is None:
            self.session = aiohttp.ClientSession(
                headers={"Content-Type": "application/json"},
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            logger.info(f"API service initialized for {self.base_url}")

    async def close(self):
        """Close HTTP session."""
        if self.session:
            await self.session.close()
            self.session = None

    def set_token(self, token: Optional[str]):
        self.token = token or None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _send(self, method: str, endpoint: str,
                    params: Optional[Dict[str, Any]] = None,
                    body: Optional[Dict[str, Any]] = None) -> ApiResponse:
        url = f"{self.base_url}{endpoint}"

        try:
            response = await self.session.request(
                method,
                url,
                headers=self._headers(),
                params=_query_params(params) or None,
                json=body,
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )

            try:
                payload = await response.json(content_type=None)
            except (json.JSONDecodeError, aiohttp.ContentTypeError, ValueError):
                payload = {}

            if not 200 <= response.status < 300:
                message = payload.get("message") if isinstance(payload, dict) else None
                errors = payload.get("errors") if isinstance(payload, dict) else None
                logger.error(f"API error {response.status} on {method} {endpoint}: {message}")
                raise ApiError(response.status, message or "Something went wrong", errors)

            return ApiResponse.from_payload(payload)

        except aiohttp.ClientError as e:
            logger.error(f"Network error calling {method} {endpoint}: {str(e)}")
            raise NetworkError(f"Network error calling {endpoint}: {str(e)}") from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timeout calling {method} {endpoint} after {self.timeout}s")
            raise NetworkError(f"Timeout calling {endpoint}") from e

    async def request(self, method: str, endpoint: str,
                      params: Optional[Dict[str, Any]] = None,
                      body: Optional[Dict[str, Any]] = None,
                      cancel_event: Optional[asyncio.Event] = None) -> ApiResponse:
        """
        Perform one API call.

        Args:
            method: HTTP method
            endpoint: Path below the base URL, e.g. "/products"
            params: Query parameters (empty values dropped)
            body: JSON body
            cancel_event: Set it to abandon the call

        Returns:
            ApiResponse; a cancelled call returns a non-successful response
            with `cancelled=True` instead of raising

        Raises:
            ApiError: Non-2xx response
            NetworkError: Timeout or connection failure
        """
        await self.initialize()

        if cancel_event is None:
            return await self._send(method, endpoint, params, body)

        if cancel_event.is_set():
            return ApiResponse.cancelled_response()

        call = asyncio.ensure_future(self._send(method, endpoint, params, body))
        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

        if call in done:
            return call.result()

        call.cancel()
        logger.debug(f"{method} {endpoint} cancelled by caller")
        return ApiResponse.cancelled_response()

    @async_retry(exceptions=(NetworkError,))
    async def _get(self, endpoint: str, params: Optional[Dict[str, Any]] = None,
                   cancel_event: Optional[asyncio.Event] = None) -> ApiResponse:
        return await self.request("GET", endpoint, params=params, cancel_event=cancel_event)

    # Product endpoints

    async def get_products(self, params: Optional[Dict[str, Any]] = None,
                           cancel_event: Optional[asyncio.Event] = None) -> ApiResponse:
        """
        GET /products.

        Accepted params: page, limit, category, brand, minPrice, maxPrice,
        rating, search, sortBy, sortOrder, featured, inStock.
        """
        return await self._get("/products", params=params, cancel_event=cancel_event)

    async def get_product(self, product_id: str,
                          cancel_event: Optional[asyncio.Event] = None) -> ApiResponse:
        return await self._get(f"/products/{product_id}", cancel_event=cancel_event)

    async def get_product_reviews(self, product_id: str) -> ApiResponse:
        return await self._get(f"/products/{product_id}/reviews")

    async def add_product_review(self, product_id: str, rating: int,
                                 comment: Optional[str] = None) -> ApiResponse:
        body = {"rating": rating}
        if comment:
            body["comment"] = comment
        return await self.request("POST", f"/products/{product_id}/reviews", body=body)

    # Cart endpoints (authenticated)

    async def get_cart(self) -> ApiResponse:
        return await self._get("/cart")

    async def cart_add(self, product_id: str, quantity: int,
                       variant: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return await self.request("POST", "/cart/add", body={
            "productId": product_id,
            "quantity": quantity,
            "variant": variant
        })

    async def cart_update(self, product_id: str, quantity: int,
                          variant: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return await self.request("PUT", "/cart/update", body={
            "productId": product_id,
            "quantity": quantity,
            "variant": variant
        })

    async def cart_remove(self, product_id: str,
                          variant: Optional[Dict[str, Any]] = None) -> ApiResponse:
        return await self.request("DELETE", "/cart/remove", body={
            "productId": product_id,
            "variant": variant
        })

    async def cart_clear(self) -> ApiResponse:
        return await self.request("DELETE", "/cart/clear")

    async def cart_sync(self, items: List[Dict[str, Any]]) -> ApiResponse:
        """Replace the server cart with `items`; per-item failures come back in syncResults."""
        return await self.request("POST", "/cart/sync", body={"items": items})

    async def cart_stats(self) -> ApiResponse:
        return await self._get("/cart/stats")

    # Health check

    async def health_check(self) -> bool:
        try:
            response = await self.request("GET", "/health")
            return response.success
        except (ApiError, NetworkError) as e:
            logger.warning(f"API health check failed: {e}")
            return False
