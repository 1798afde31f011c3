"""
Cart persistence across the sign-in boundary.

Signed out, the cart round-trips to the global anonymous key. Signed in, the
server cart is the sync target and a per-user local mirror keeps the UI
optimistic. The server stays the final authority at checkout.
"""
from typing import Any, Dict, List, Optional

from storefront.cart.store import CartStore, StockAdjustment
from storefront.errors import ExternalServiceError, NetworkError, NormalizationError, StorageError
from storefront.logger import logger
from storefront.models.cart import CartLine
from storefront.models.product import Product, Variant
from storefront.normalizers.product import ProductNormalizer
from storefront.sentry import capture_sync_failure
from storefront.services.api_service import ApiService
from storefront.services.catalog_service import CatalogService
from storefront.storage.client_state import Preferences
from storefront.storage.kv_store import KeyValueStore

ANONYMOUS_CART_KEY = "cart_anonymous"
USER_KEY = "user"


def user_cart_key(user_id: str) -> str:
    return f"cart_{user_id}"


class CartSession:
    """
    A shopper's cart plus where it is persisted.
    Mutations hit the in-memory store first, then storage, then the server.
    """

    def __init__(self, storage: KeyValueStore, api: ApiService, catalog: CatalogService,
                 store: Optional[CartStore] = None):
        self.storage = storage
        self.api = api
        self.catalog = catalog
        self.store = store or CartStore()
        self.preferences = Preferences(storage)
        self.user_id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def storage_key(self) -> str:
        if self.user_id is None:
            return ANONYMOUS_CART_KEY
        return user_cart_key(self.user_id)

    async def load(self) -> CartStore:
        """Restore the signed-in identity, if any, and its cart from storage."""
        user_id = await self.storage.get(USER_KEY)
        token = await self.preferences.get_token()
        if user_id and token:
            self.user_id = str(user_id)
            self.api.set_token(token)

        data = await self.storage.get(self.storage_key, [])
        self.store.restore(data if isinstance(data, list) else [])
        logger.debug(f"Restored {len(self.store)} cart line(s) from {self.storage_key}")
        return self.store

    async def _save_local(self):
        try:
            await self.storage.set(self.storage_key, self.store.to_list())
        except StorageError as e:
            logger.error(f"Could not persist cart under {self.storage_key}: {e}")

    async def _push(self) -> Optional[Dict[str, Any]]:
        """Send the whole cart to POST /cart/sync. Failures keep the local mirror."""
        items = [line.to_sync_item() for line in self.store.lines]
        try:
            response = await self.api.cart_sync(items)
        except (ExternalServiceError, NetworkError) as e:
            logger.warning(f"Cart sync failed for user {self.user_id}, keeping local mirror: {e}")
            capture_sync_failure(self.user_id, len(items), str(e))
            return None

        results = response.raw.get("syncResults") or {}
        failed = results.get("failed") or []
        if failed:
            logger.warning(
                f"Server rejected {len(failed)} cart item(s) during sync",
                extra={"extra": {"failed": [f.get("productId") for f in failed]}}
            )
        return results

    async def save(self):
        """Write the cart locally, then push it when signed in."""
        await self._save_local()
        if self.is_authenticated:
            await self._push()

    # Mutations

    async def add_to_cart(self, product: Product, quantity: int = 1,
                          variant: Optional[Variant] = None) -> Optional[CartLine]:
        line = self.store.add_to_cart(product, quantity, variant)
        await self.save()
        return line

    async def update_quantity(self, product_id: str, quantity: int,
                              variant: Optional[Variant] = None) -> Optional[CartLine]:
        line = self.store.update_quantity(product_id, quantity, variant)
        await self.save()
        return line

    async def remove_from_cart(self, product_id: str, variant: Optional[Variant] = None):
        self.store.remove_from_cart(product_id, variant)
        await self.save()

    async def clear_cart(self):
        self.store.clear_cart()
        await self.save()

    async def refresh_stock(self) -> List[StockAdjustment]:
        """Re-bound the cart against freshly fetched product stock."""
        product_ids = [line.product.id for line in self.store.lines]
        if not product_ids:
            return []

        try:
            products = await self.catalog.get_products_by_ids(product_ids)
        except (ExternalServiceError, NetworkError) as e:
            logger.warning(f"Stock refresh skipped: {e}")
            return []

        adjustments = self.store.reconcile_stock(products)
        if adjustments:
            await self.save()
        return adjustments

    # Identity transitions

    async def _server_lines(self) -> Optional[List[CartLine]]:
        """The signed-in user's server cart, or None if it could not be fetched."""
        try:
            response = await self.api.get_cart()
        except (ExternalServiceError, NetworkError) as e:
            logger.warning(f"Could not fetch server cart for user {self.user_id}: {e}")
            return None

        cart = response.raw.get("cart") or response.data or {}
        items = cart.get("items") if isinstance(cart, dict) else None

        lines = []
        for item in items or []:
            product_id = item.get("productId")
            if not product_id:
                continue
            try:
                product = await self.catalog.get_product(str(product_id), fresh=True)
            except (ExternalServiceError, NetworkError) as e:
                logger.warning(f"Skipping server cart item {product_id}: {e}")
                continue
            if product is None:
                continue

            variant = None
            raw_variant = item.get("variant")
            if isinstance(raw_variant, dict) and raw_variant:
                variant = product.get_variant(str(raw_variant.get("id")))
                if variant is None:
                    try:
                        variant = ProductNormalizer.normalize_variant(raw_variant)
                    except NormalizationError as e:
                        logger.warning(f"Skipping server cart item {product_id}: {e}")
                        continue

            quantity = ProductNormalizer.normalize_count(item.get("quantity"))
            if quantity > 0:
                lines.append(CartLine(product=product, quantity=quantity, variant=variant))
        return lines

    async def sign_in(self, user_id: str, token: str) -> CartStore:
        """
        Switch to a signed-in user and reconcile carts.

        The anonymous cart is merged into the user's server cart by summing
        quantities per line, clamped to stock. If the server cart cannot be
        fetched, the user's local mirror is used instead. Signing in over
        another user signs that user out first; their cart is not carried.
        """
        if self.user_id is not None:
            logger.info(f"Switching user {self.user_id} -> {user_id}, signing out first")
            await self.sign_out()

        anonymous_lines = list(self.store.lines)

        self.user_id = str(user_id)
        self.api.set_token(token)
        await self.preferences.set_token(token)
        await self.storage.set(USER_KEY, self.user_id)

        base_lines = await self._server_lines()
        if base_lines is None:
            mirror = CartStore()
            mirror.restore(await self.storage.get(self.storage_key, []) or [])
            base_lines = list(mirror.lines)

        # Server snapshots are merged last so their stock bounds each shared line
        merged = CartStore(anonymous_lines)
        merged.merge(base_lines)

        self.store.clear_cart()
        self.store.merge(merged.lines)

        await self.storage.delete(ANONYMOUS_CART_KEY)
        await self.save()

        logger.info(
            f"Signed in user {self.user_id}: merged {len(anonymous_lines)} anonymous "
            f"line(s) into {len(base_lines)} server line(s)"
        )
        return self.store

    async def sign_out(self):
        """Forget the user's token and mirror; the shopper starts a fresh anonymous cart."""
        if self.user_id is not None:
            await self.storage.delete(user_cart_key(self.user_id))
        await self.storage.delete(USER_KEY)
        await self.preferences.clear_token()
        self.api.set_token(None)
        self.user_id = None
        self.store.clear_cart()
        logger.info("Signed out, cart reset to anonymous")
