"""
Test the cart and stock reconciliation engine.
"""
import pytest

from storefront.cart.store import (
    CartStore,
    UNLIMITED_STOCK,
    first_purchasable_variant,
    get_available_stock,
    is_purchasable
)
from storefront.models.product import Variant


def test_stock_clamp_example(make_product):
    """Adding 5 of a product with 3 in stock leaves one line of 3."""
    cart = CartStore()
    product = make_product(stock_quantity=3)
    
    line = cart.add_to_cart(product, 5)
    
    assert len(cart) == 1
    assert line.quantity == 3
    assert cart.get_max_quantity_can_add(product) == 0


def test_repeated_adds_sum_and_clamp(make_product):
    cart = CartStore()
    product = make_product(stock_quantity=4)
    
    cart.add_to_cart(product, 2)
    cart.add_to_cart(product, 1)
    assert cart.quantity_in_cart(product.id) == 3
    
    cart.add_to_cart(product, 10)
    assert cart.quantity_in_cart(product.id) == 4
    assert len(cart) == 1


def test_add_out_of_stock_adds_nothing(make_product):
    cart = CartStore()
    
    assert cart.add_to_cart(make_product(in_stock=False), 1) is None
    assert cart.add_to_cart(make_product("p2", stock_quantity=0), 1) is None
    assert len(cart) == 0


def test_add_non_positive_quantity_is_ignored(make_product):
    cart = CartStore()
    product = make_product()
    
    assert cart.add_to_cart(product, 0) is None
    cart.add_to_cart(product, 2)
    assert cart.add_to_cart(product, -1).quantity == 2


def test_add_refreshes_snapshot(make_product):
    cart = CartStore()
    cart.add_to_cart(make_product(price=100.0, stock_quantity=10), 4)
    
    cart.add_to_cart(make_product(price=80.0, stock_quantity=5), 3)
    
    line = cart.get_line("p1")
    assert line.product.price == 80.0
    assert line.quantity == 5


def test_removal_example(make_product):
    """update_quantity(id, 0) removes the line."""
    cart = CartStore()
    cart.add_to_cart(make_product(), 2)
    
    assert cart.update_quantity("p1", 0) is None
    assert cart.is_in_cart("p1") is False


def test_update_quantity_clamps(make_product):
    cart = CartStore()
    cart.add_to_cart(make_product(stock_quantity=6), 1)
    
    assert cart.update_quantity("p1", 9).quantity == 6
    assert cart.update_quantity("p1", 2).quantity == 2
    assert cart.update_quantity("missing", 2) is None


def test_remove_and_clear(make_product):
    cart = CartStore()
    cart.add_to_cart(make_product("a"), 1)
    cart.add_to_cart(make_product("b"), 1)
    
    cart.remove_from_cart("a")
    assert not cart.is_in_cart("a")
    
    cart.clear_cart()
    assert len(cart) == 0
    assert cart.get_cart_count() == 0
    assert cart.get_cart_total() == 0


def test_count_total_and_stats(make_product):
    cart = CartStore()
    cart.add_to_cart(make_product("a", price=250.0), 2)
    cart.add_to_cart(make_product("b", price=99.5), 3)
    
    assert cart.get_cart_count() == 5
    assert cart.get_cart_total() == pytest.approx(798.5)
    assert cart.get_cart_stats() == {
        "item_count": 2,
        "total_items": 5,
        "total_value": pytest.approx(798.5)
    }


def test_variants_are_separate_lines(flavored_product):
    cart = CartStore()
    chocolate = flavored_product.get_variant("choc")
    
    cart.add_to_cart(flavored_product, 1)
    cart.add_to_cart(flavored_product, 5, chocolate)
    
    assert len(cart) == 2
    # Variant stock governs, not the parent's 50
    assert cart.quantity_in_cart("whey", chocolate) == 2
    assert cart.quantity_in_cart("whey") == 1
    assert cart.add_to_cart(flavored_product, 1, flavored_product.get_variant("van")) is None


def test_variant_unit_price(flavored_product):
    cart = CartStore()
    vanilla = Variant(id="van", name="Vanilla", price=3099.0, stock_quantity=3)
    
    cart.add_to_cart(flavored_product, 2, vanilla)
    
    assert cart.get_cart_total() == 6198.0
    cart.remove_from_cart("whey", vanilla)
    assert len(cart) == 0


def test_available_stock_rules(make_product, flavored_product):
    assert get_available_stock(make_product()) == UNLIMITED_STOCK
    assert get_available_stock(make_product(in_stock=False)) == 0
    # An explicit quantity wins over the flag
    assert get_available_stock(make_product(in_stock=False, stock_quantity=4)) == 4
    assert get_available_stock(make_product(stock_quantity=-2)) == 0
    assert get_available_stock(flavored_product, flavored_product.get_variant("van")) == 0


def test_purchasable_helpers(make_product, flavored_product):
    assert first_purchasable_variant(flavored_product).id == "choc"
    assert is_purchasable(flavored_product)
    
    sold_out = make_product(
        "x",
        variants=(Variant(id="v", name="V", price=1.0, stock_quantity=0),)
    )
    assert not is_purchasable(sold_out)
    assert first_purchasable_variant(sold_out) is None


def test_reconcile_stock(make_product):
    cart = CartStore()
    cart.add_to_cart(make_product("a", stock_quantity=10), 6)
    cart.add_to_cart(make_product("b", stock_quantity=10), 2)
    cart.add_to_cart(make_product("c", stock_quantity=10), 3)
    
    adjustments = cart.reconcile_stock([
        make_product("a", stock_quantity=4),
        make_product("b", stock_quantity=0),
        make_product("c", stock_quantity=8)
    ])
    
    assert [(a.key, a.old_quantity, a.new_quantity) for a in adjustments] == [
        (("a", "default"), 6, 4),
        (("b", "default"), 2, 0)
    ]
    assert adjustments[1].removed
    assert cart.quantity_in_cart("a") == 4
    assert not cart.is_in_cart("b")
    assert cart.quantity_in_cart("c") == 3


def test_reconcile_uses_fresh_variant(flavored_product, make_product):
    cart = CartStore()
    cart.add_to_cart(flavored_product, 2, flavored_product.get_variant("choc"))
    
    fresh = make_product(
        "whey",
        variants=(Variant(id="choc", name="Chocolate", price=2999.0, stock_quantity=1),)
    )
    adjustments = cart.reconcile_stock([fresh])
    
    assert len(adjustments) == 1
    assert cart.lines[0].quantity == 1
    assert cart.lines[0].variant.stock_quantity == 1


def test_restore_skips_bad_lines_and_reclamps(make_product):
    good = {"product": make_product(stock_quantity=2).to_dict(), "quantity": 5, "variant": None}
    
    cart = CartStore()
    cart.restore([good, {"product": {"name": "no id"}, "quantity": 1}, "junk"])
    
    assert len(cart) == 1
    assert cart.quantity_in_cart("p1") == 2
