"""
Main application entry point.
Thin HTTP host over the catalog and cart engines.
"""
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from storefront.catalog.presets import PRESETS
from storefront.errors import ExternalServiceError, NetworkError
from storefront.health import router as health_router
from storefront.logger import logger
from storefront.models.cart import CartLine
from storefront.models.filters import FilterSpec
from storefront.models.product import Product
from storefront.readiness import readiness_manager
from storefront.sentry import initialize_sentry
from storefront.services.api_service import ApiService
from storefront.services.catalog_service import CatalogService
from storefront.shopper import Shopper, ShopperRegistry
from storefront.storage.kv_store import create_store


class AddItemRequest(BaseModel):
    product_id: str = Field(alias="productId")
    quantity: int = 1
    variant_id: Optional[str] = Field(default=None, alias="variantId")


class UpdateItemRequest(BaseModel):
    quantity: int
    variant_id: Optional[str] = Field(default=None, alias="variantId")


class SignInRequest(BaseModel):
    user_id: str = Field(alias="userId")
    token: str


class SearchRequest(BaseModel):
    term: str


class WishlistRequest(BaseModel):
    product_id: str = Field(alias="productId")
    auto_add_to_cart: bool = Field(default=False, alias="autoAddToCart")
    notify_on_restock: bool = Field(default=True, alias="notifyOnRestock")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle."""
    logger.info("Starting storefront service")
    initialize_sentry()

    api = ApiService()
    await api.initialize()
    storage = await create_store()
    catalog = CatalogService(api)

    app.state.api = api
    app.state.storage = storage
    app.state.catalog = catalog
    app.state.shoppers = ShopperRegistry(storage, api, catalog)

    await readiness_manager.check_services(api, storage)

    yield

    logger.info("Shutting down storefront service")
    await api.close()
    await storage.close()


app = FastAPI(
    title="BBN Storefront API",
    description="Catalog filtering, recommendations and stock-aware carts",
    version="1.0.0",
    lifespan=lifespan
)
app.include_router(health_router)


def _catalog(request: Request) -> CatalogService:
    return request.app.state.catalog


async def _shopper(request: Request, session_id: str) -> Shopper:
    return await request.app.state.shoppers.get(session_id)


def _serialize_line(shopper: Shopper, line: CartLine) -> Dict[str, Any]:
    data = line.to_dict()
    data.update({
        "unitPrice": line.unit_price,
        "subtotal": line.subtotal,
        "maxQuantityCanAdd": shopper.cart.store.get_max_quantity_can_add(line.product, line.variant)
    })
    return data


def _serialize_cart(shopper: Shopper) -> Dict[str, Any]:
    store = shopper.cart.store
    return {
        "sessionId": shopper.session_id,
        "userId": shopper.cart.user_id,
        "items": [_serialize_line(shopper, line) for line in store.lines],
        "count": store.get_cart_count(),
        "total": store.get_cart_total(),
        "stats": store.get_cart_stats()
    }


async def _require_product(request: Request, product_id: str) -> Product:
    try:
        product = await _catalog(request).get_product(product_id, fresh=True)
    except (ExternalServiceError, NetworkError) as e:
        logger.error(f"Product lookup failed for {product_id}: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


def _find_cart_variant(shopper: Shopper, product_id: str, variant_id: Optional[str]):
    if variant_id is None:
        return None
    for line in shopper.cart.store.lines:
        if line.product.id == product_id and line.variant and line.variant.id == variant_id:
            return line.variant
    raise HTTPException(status_code=404, detail="Cart item not found")


@app.get("/")
async def root():
    return {
        "service": "BBN Storefront",
        "version": "1.0.0",
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat()
    }


# Catalog

@app.get("/api/v1/shop")
async def shop(request: Request):
    """Shop listing driven by q, category, brand, minPrice, maxPrice, inStock, rating, sortBy, sortOrder."""
    spec = FilterSpec.from_query_params(dict(request.query_params))
    try:
        products = await _catalog(request).search(spec)
    except (ExternalServiceError, NetworkError) as e:
        logger.error(f"Shop listing failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")

    return {
        "success": True,
        "query": spec.query,
        "count": len(products),
        "products": [p.to_dict() for p in products]
    }


@app.get("/api/v1/search/suggestions")
async def search_suggestions(request: Request, q: str = ""):
    suggestions = await _catalog(request).suggestions(q)
    return {"query": q, "suggestions": [s.to_dict() for s in suggestions]}


@app.get("/api/v1/recommendations/{preset}")
async def recommendations(request: Request, preset: str, limit: Optional[int] = None):
    if preset not in PRESETS:
        raise HTTPException(status_code=404, detail=f"Unknown preset: {preset}")

    catalog = _catalog(request)
    method = {
        "top-sellers": catalog.top_sellers,
        "trending": catalog.trending,
        "featured": catalog.featured
    }[preset]
    products = await method(limit) if limit is not None else await method()
    return {"preset": preset, "products": [p.to_dict() for p in products]}


@app.get("/api/v1/categories/{category}/products")
async def category_products(request: Request, category: str, limit: Optional[int] = None):
    products = await _catalog(request).by_category(category, limit)
    return {"category": category, "products": [p.to_dict() for p in products]}


@app.get("/api/v1/products/{product_id}/related")
async def related_products(request: Request, product_id: str, limit: int = 4):
    products = await _catalog(request).related_to(product_id, limit)
    return {"productId": product_id, "products": [p.to_dict() for p in products]}


# Cart

@app.get("/api/v1/cart/{session_id}")
async def get_cart(request: Request, session_id: str):
    shopper = await _shopper(request, session_id)
    return _serialize_cart(shopper)


@app.post("/api/v1/cart/{session_id}/items")
async def add_cart_item(request: Request, session_id: str, payload: AddItemRequest):
    shopper = await _shopper(request, session_id)
    product = await _require_product(request, payload.product_id)

    variant = None
    if payload.variant_id is not None:
        variant = product.get_variant(payload.variant_id)
        if variant is None:
            raise HTTPException(status_code=404, detail="Variant not found")

    can_add = shopper.cart.store.get_max_quantity_can_add(product, variant)
    await shopper.cart.add_to_cart(product, payload.quantity, variant)

    response = _serialize_cart(shopper)
    if can_add < payload.quantity:
        response["message"] = f"Only {can_add} more available"
    return response


@app.put("/api/v1/cart/{session_id}/items/{product_id}")
async def update_cart_item(request: Request, session_id: str, product_id: str,
                           payload: UpdateItemRequest):
    shopper = await _shopper(request, session_id)
    variant = _find_cart_variant(shopper, product_id, payload.variant_id)
    await shopper.cart.update_quantity(product_id, payload.quantity, variant)
    return _serialize_cart(shopper)


@app.delete("/api/v1/cart/{session_id}/items/{product_id}")
async def remove_cart_item(request: Request, session_id: str, product_id: str,
                           variant_id: Optional[str] = None):
    shopper = await _shopper(request, session_id)
    variant = _find_cart_variant(shopper, product_id, variant_id)
    await shopper.cart.remove_from_cart(product_id, variant)
    return _serialize_cart(shopper)


@app.delete("/api/v1/cart/{session_id}")
async def clear_cart(request: Request, session_id: str):
    shopper = await _shopper(request, session_id)
    await shopper.cart.clear_cart()
    return _serialize_cart(shopper)


@app.post("/api/v1/cart/{session_id}/refresh-stock")
async def refresh_cart_stock(request: Request, session_id: str):
    shopper = await _shopper(request, session_id)
    adjustments = await shopper.cart.refresh_stock()
    response = _serialize_cart(shopper)
    response["adjustments"] = [
        {"productId": a.key[0], "variant": a.key[1], "from": a.old_quantity, "to": a.new_quantity}
        for a in adjustments
    ]
    return response


# Identity

@app.post("/api/v1/session/{session_id}/sign-in")
async def sign_in(request: Request, session_id: str, payload: SignInRequest):
    shopper = await _shopper(request, session_id)
    await shopper.cart.sign_in(payload.user_id, payload.token)
    return _serialize_cart(shopper)


@app.post("/api/v1/session/{session_id}/sign-out")
async def sign_out(request: Request, session_id: str):
    shopper = await _shopper(request, session_id)
    await shopper.cart.sign_out()
    return _serialize_cart(shopper)


# Search history

@app.get("/api/v1/search/{session_id}/history")
async def get_search_history(request: Request, session_id: str):
    shopper = await _shopper(request, session_id)
    return {
        "history": await shopper.search_history.history(),
        "recent": await shopper.search_history.recent()
    }


@app.post("/api/v1/search/{session_id}/history")
async def record_search(request: Request, session_id: str, payload: SearchRequest):
    shopper = await _shopper(request, session_id)
    await shopper.search_history.record(payload.term)
    return {
        "history": await shopper.search_history.history(),
        "recent": await shopper.search_history.recent()
    }


@app.delete("/api/v1/search/{session_id}/history")
async def clear_search_history(request: Request, session_id: str):
    shopper = await _shopper(request, session_id)
    await shopper.search_history.clear()
    return {"history": [], "recent": []}


# Wishlist

@app.get("/api/v1/wishlist/{session_id}")
async def get_wishlist(request: Request, session_id: str):
    shopper = await _shopper(request, session_id)
    items = await shopper.wishlist.items()
    return {"items": [item.to_dict() for item in items]}


@app.post("/api/v1/wishlist/{session_id}")
async def add_to_wishlist(request: Request, session_id: str, payload: WishlistRequest):
    shopper = await _shopper(request, session_id)
    product = await _require_product(request, payload.product_id)
    item = await shopper.wishlist.add(
        product,
        auto_add_to_cart=payload.auto_add_to_cart,
        notify_on_restock=payload.notify_on_restock
    )
    return {"item": item.to_dict()}


@app.delete("/api/v1/wishlist/{session_id}/{product_id}")
async def remove_from_wishlist(request: Request, session_id: str, product_id: str):
    shopper = await _shopper(request, session_id)
    if not await shopper.wishlist.remove(product_id):
        raise HTTPException(status_code=404, detail="Not in wishlist")
    return {"removed": product_id}


@app.post("/api/v1/wishlist/{session_id}/restock-check")
async def wishlist_restock_check(request: Request, session_id: str):
    shopper = await _shopper(request, session_id)
    wishlist = shopper.wishlist
    items = await wishlist.items()
    try:
        fresh = await _catalog(request).get_products_by_ids([i.product.id for i in items])
    except (ExternalServiceError, NetworkError) as e:
        logger.error(f"Restock check failed: {e}")
        raise HTTPException(status_code=503, detail="Service unavailable")

    result = await wishlist.check_restocks(fresh, shopper.cart.store)
    if result.added_to_cart:
        await shopper.cart.save()
    return {
        "restocked": [i.product.id for i in result.restocked],
        "notify": [i.product.id for i in result.to_notify],
        "addedToCart": [i.product.id for i in result.added_to_cart],
        "failedToAdd": [i.product.id for i in result.failed_to_add],
        "cart": _serialize_cart(shopper)
    }


if __name__ == "__main__":
    import os
    import uvicorn
    port = int(os.environ.get("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
