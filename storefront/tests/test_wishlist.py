"""
Test the wishlist and restock handling.
"""
import pytest

from storefront.cart.store import CartStore
from storefront.models.product import Variant
from storefront.storage.kv_store import InMemoryStore
from storefront.storage.wishlist import Wishlist, wishlist_key


@pytest.fixture
def wishlist():
    return Wishlist(InMemoryStore(), user_id="u1")


@pytest.mark.asyncio
async def test_add_and_remove(wishlist, make_product):
    item = await wishlist.add(make_product())
    again = await wishlist.add(make_product())
    
    assert again.id == item.id
    assert len(await wishlist.items()) == 1
    assert await wishlist.contains("p1")
    
    assert await wishlist.remove("p1") is True
    assert await wishlist.remove("p1") is False


def test_wishlist_keys():
    assert wishlist_key("u1") == "wishlist_u1"
    assert wishlist_key(None) == "wishlist_anonymous"


@pytest.mark.asyncio
async def test_add_records_out_of_stock(wishlist, make_product):
    sold_out = await wishlist.add(make_product("a", in_stock=False))
    available = await wishlist.add(make_product("b"))
    variants_sold_out = await wishlist.add(make_product(
        "c", variants=(Variant(id="v", name="V", price=1.0, in_stock=False),)
    ))
    
    assert sold_out.was_out_of_stock
    assert not available.was_out_of_stock
    assert variants_sold_out.was_out_of_stock


@pytest.mark.asyncio
async def test_check_restocks(wishlist, make_product):
    await wishlist.add(make_product("notify", in_stock=False))
    await wishlist.add(make_product("auto", in_stock=False), auto_add_to_cart=True, notify_on_restock=False)
    await wishlist.add(make_product("still-out", in_stock=False))
    cart = CartStore()
    
    result = await wishlist.check_restocks([
        make_product("notify", stock_quantity=5),
        make_product("auto", stock_quantity=5),
        make_product("still-out", in_stock=False)
    ], cart)
    
    assert [i.product.id for i in result.restocked] == ["notify", "auto"]
    assert [i.product.id for i in result.to_notify] == ["notify"]
    assert [i.product.id for i in result.added_to_cart] == ["auto"]
    assert cart.quantity_in_cart("auto") == 1
    
    # Flags are persisted, so a second check finds nothing new
    again = await wishlist.check_restocks([make_product("notify", stock_quantity=5)], cart)
    assert again.restocked == []


@pytest.mark.asyncio
async def test_restock_auto_add_picks_variant(wishlist, make_product):
    await wishlist.add(make_product(
        "whey", variants=(Variant(id="choc", name="Chocolate", price=1.0, in_stock=False),)
    ), auto_add_to_cart=True)
    cart = CartStore()
    
    fresh = make_product("whey", variants=(
        Variant(id="van", name="Vanilla", price=1.0, in_stock=False),
        Variant(id="choc", name="Chocolate", price=1.0, stock_quantity=3),
    ))
    result = await wishlist.check_restocks([fresh], cart)
    
    assert result.added_to_cart
    assert cart.lines[0].variant.id == "choc"


@pytest.mark.asyncio
async def test_restock_auto_add_fails_when_cart_is_full(wishlist, make_product):
    await wishlist.add(make_product(in_stock=False), auto_add_to_cart=True)
    fresh = make_product(stock_quantity=1)
    cart = CartStore()
    cart.add_to_cart(fresh, 1)
    
    result = await wishlist.check_restocks([fresh], cart)
    
    assert result.failed_to_add[0].product.id == "p1"
    assert cart.quantity_in_cart("p1") == 1
