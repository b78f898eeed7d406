from dataclasses import replace

import pytest

from core.cart import add_to_cart, cart_total, remove_from_cart, set_cart_quantity
from core.errors import OutOfStock, StockExceeded, ValidationError


def test_add_captures_name_and_price(soap):
    cart = add_to_cart([], soap)
    assert len(cart) == 1
    assert cart[0].product_id == "P1"
    assert cart[0].name == "Sabão"
    assert cart[0].price == 500.0
    assert cart[0].quantity == 1


def test_add_same_product_increments_line(soap):
    cart = add_to_cart(add_to_cart([], soap), soap)
    assert len(cart) == 1
    assert cart[0].quantity == 2


def test_price_edit_after_add_does_not_change_cart(soap):
    cart = add_to_cart([], soap)
    repriced = replace(soap, price=999.0)
    cart = add_to_cart(cart, repriced)
    assert cart[0].price == 500.0
    assert cart_total(cart) == 1000.0


def test_add_out_of_stock_is_rejected(soap):
    empty = replace(soap, stock=0)
    with pytest.raises(OutOfStock):
        add_to_cart([], empty)


def test_add_beyond_stock_is_rejected_and_cart_unchanged(water):
    cart = add_to_cart([], water, quantity=2)
    with pytest.raises(StockExceeded) as exc:
        add_to_cart(cart, water)
    assert exc.value.requested == 3
    assert exc.value.available == 2
    assert cart[0].quantity == 2


def test_unmanaged_product_is_unlimited(haircut):
    cart = add_to_cart([], haircut, quantity=50)
    assert cart[0].quantity == 50


def test_add_requires_positive_quantity(soap):
    with pytest.raises(ValidationError):
        add_to_cart([], soap, quantity=0)


def test_insertion_order_is_kept(soap, water, haircut):
    cart = add_to_cart(add_to_cart(add_to_cart([], water), haircut), soap)
    assert [i.product_id for i in cart] == ["P2", "S1", "P1"]


def test_remove_from_cart(soap, water):
    cart = add_to_cart(add_to_cart([], soap), water)
    cart = remove_from_cart(cart, "P1")
    assert [i.product_id for i in cart] == ["P2"]


def test_set_quantity(soap, water):
    cart = add_to_cart([], soap)
    cart = set_cart_quantity(cart, soap, 4)
    assert cart[0].quantity == 4
    with pytest.raises(StockExceeded):
        set_cart_quantity(cart, soap, 11)
    assert set_cart_quantity(cart, soap, 0) == []
    cart = set_cart_quantity(cart, water, 2)
    assert [(i.product_id, i.quantity) for i in cart] == [("P1", 4), ("P2", 2)]


def test_cart_total(soap, haircut):
    cart = add_to_cart(add_to_cart([], soap, 3), haircut)
    assert cart_total(cart) == 3500.0
    assert cart_total([]) == 0
