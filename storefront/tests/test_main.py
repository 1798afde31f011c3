"""
HTTP surface tests with the upstream API mocked out.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient

from storefront.errors import NetworkError
from storefront.main import app
from storefront.models.filters import FilterSpec
from storefront.services.api_service import ApiService
from storefront.shopper import ShopperRegistry
from storefront.storage.kv_store import InMemoryStore


@pytest.fixture
def catalog():
    return MagicMock()


@pytest.fixture
def client(catalog):
    storage = InMemoryStore()
    api = ApiService(base_url="http://api.test/api")
    app.state.api = api
    app.state.storage = storage
    app.state.catalog = catalog
    app.state.shoppers = ShopperRegistry(storage, api, catalog)
    return TestClient(app)


def test_root(client):
    response = client.get("/")
    
    assert response.status_code == 200
    assert response.json()["status"] == "operational"


def test_health_reports_degraded_without_api(client):
    response = client.get("/health")
    
    assert response.status_code == 200
    assert response.json()["status"] in ("healthy", "degraded")


def test_shop_listing(client, catalog, make_product):
    catalog.search = AsyncMock(return_value=[make_product("whey", name="Whey")])
    
    response = client.get("/api/v1/shop", params={"q": "whey", "sortBy": "price", "sortOrder": "asc"})
    
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 1
    assert body["products"][0]["id"] == "whey"
    catalog.search.assert_awaited_once_with(FilterSpec(query="whey", sort_by="price", sort_order="asc"))


def test_shop_listing_upstream_failure(client, catalog):
    catalog.search = AsyncMock(side_effect=NetworkError("timeout"))
    
    response = client.get("/api/v1/shop")
    
    assert response.status_code == 503


def test_recommendations(client, catalog, make_product):
    catalog.top_sellers = AsyncMock(return_value=[make_product("a"), make_product("b")])
    
    response = client.get("/api/v1/recommendations/top-sellers", params={"limit": 2})
    
    assert response.status_code == 200
    assert [p["id"] for p in response.json()["products"]] == ["a", "b"]
    catalog.top_sellers.assert_awaited_once_with(2)
    
    assert client.get("/api/v1/recommendations/clearance").status_code == 404


def test_cart_add_is_clamped_to_stock(client, catalog, make_product):
    catalog.get_product = AsyncMock(return_value=make_product(stock_quantity=3))
    
    response = client.post("/api/v1/cart/s1/items", json={"productId": "p1", "quantity": 5})
    
    assert response.status_code == 200
    body = response.json()
    assert body["count"] == 3
    assert body["items"][0]["maxQuantityCanAdd"] == 0
    assert body["message"] == "Only 3 more available"


def test_cart_add_unknown_product(client, catalog):
    catalog.get_product = AsyncMock(return_value=None)
    
    response = client.post("/api/v1/cart/s1/items", json={"productId": "nope"})
    
    assert response.status_code == 404


def test_cart_update_remove_and_clear(client, catalog, make_product):
    catalog.get_product = AsyncMock(return_value=make_product(price=50.0))
    client.post("/api/v1/cart/s1/items", json={"productId": "p1", "quantity": 1})
    
    body = client.put("/api/v1/cart/s1/items/p1", json={"quantity": 4}).json()
    assert body["total"] == 200.0
    
    body = client.delete("/api/v1/cart/s1/items/p1").json()
    assert body["items"] == []
    
    client.post("/api/v1/cart/s1/items", json={"productId": "p1", "quantity": 1})
    body = client.delete("/api/v1/cart/s1").json()
    assert body["count"] == 0


def test_carts_are_per_session(client, catalog, make_product):
    catalog.get_product = AsyncMock(return_value=make_product())
    client.post("/api/v1/cart/s1/items", json={"productId": "p1", "quantity": 2})
    
    assert client.get("/api/v1/cart/s1").json()["count"] == 2
    assert client.get("/api/v1/cart/s2").json()["count"] == 0


def test_search_history(client):
    client.post("/api/v1/search/s1/history", json={"term": "whey"})
    body = client.post("/api/v1/search/s1/history", json={"term": "creatine"}).json()
    
    assert body["history"] == ["creatine", "whey"]
    assert client.delete("/api/v1/search/s1/history").json() == {"history": [], "recent": []}


def test_wishlist_restock_check(client, catalog, make_product):
    catalog.get_product = AsyncMock(return_value=make_product(in_stock=False))
    client.post("/api/v1/wishlist/s1", json={"productId": "p1", "autoAddToCart": True})
    
    catalog.get_products_by_ids = AsyncMock(return_value=[make_product(stock_quantity=4)])
    body = client.post("/api/v1/wishlist/s1/restock-check").json()
    
    assert body["restocked"] == ["p1"]
    assert body["addedToCart"] == ["p1"]
    assert body["cart"]["count"] == 1
    
    assert client.delete("/api/v1/wishlist/s1/p1").status_code == 200
    assert client.delete("/api/v1/wishlist/s1/p1").status_code == 404
