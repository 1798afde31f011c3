"""
Shared fixtures for storefront tests.
"""
import pytest
from dotenv import load_dotenv

# Load test environment
load_dotenv('.env.test')

from storefront.models.product import Product, Variant


def build_product(product_id="p1", **overrides) -> Product:
    """Product snapshot with sensible defaults for tests."""
    fields = {
        "id": product_id,
        "name": f"Product {product_id}",
        "price": 100.0,
        "category": "Protein",
        "brand": "BBN"
    }
    fields.update(overrides)
    return Product(**fields)


@pytest.fixture
def make_product():
    return build_product


@pytest.fixture
def flavored_product():
    """Product whose stock is governed by its variants."""
    return build_product(
        "whey",
        name="BBN Whey Protein Isolate",
        price=2999.0,
        stock_quantity=50,
        variants=(
            Variant(id="choc", name="Chocolate", price=2999.0, stock_quantity=2),
            Variant(id="van", name="Vanilla", price=3099.0, in_stock=False),
        )
    )
