"""Cart building with add-time stock checks."""
from __future__ import annotations

from typing import List, Sequence

from core.errors import OutOfStock, StockExceeded, ValidationError
from core.models import Product, SaleItem


def _find_line(cart: Sequence[SaleItem], product_id: str):
    return next((item for item in cart if item.product_id == product_id), None)


def add_to_cart(cart: Sequence[SaleItem], product: Product, quantity: int = 1) -> List[SaleItem]:
    """Return a new cart with `quantity` more units of `product`.

    The product's current name and price are captured on the line the first
    time it is added; later catalog edits do not change what is charged.
    Raises OutOfStock / StockExceeded for managed-stock products, leaving the
    original cart untouched.
    """
    quantity = int(quantity)
    if quantity <= 0:
        raise ValidationError("Quantity must be at least 1")
    if product.manage_stock and product.stock <= 0:
        raise OutOfStock(f"{product.name} is out of stock")

    existing = _find_line(cart, product.id)
    in_cart = existing.quantity if existing else 0
    if product.manage_stock and in_cart + quantity > product.stock:
        raise StockExceeded(product.name, in_cart + quantity, product.stock)

    if existing is None:
        return [*cart, SaleItem(product_id=product.id, name=product.name, price=product.price, quantity=quantity)]
    return [
        SaleItem(item.product_id, item.name, item.price, item.quantity + quantity)
        if item.product_id == product.id
        else item
        for item in cart
    ]


def set_cart_quantity(cart: Sequence[SaleItem], product: Product, quantity: int) -> List[SaleItem]:
    """Set the quantity of a cart line; zero or less removes it."""
    quantity = int(quantity)
    if quantity <= 0:
        return remove_from_cart(cart, product.id)
    existing = _find_line(cart, product.id)
    if existing is None:
        return add_to_cart(cart, product, quantity)
    if product.manage_stock and quantity > product.stock:
        raise StockExceeded(product.name, quantity, product.stock)
    return [
        SaleItem(item.product_id, item.name, item.price, quantity)
        if item.product_id == product.id
        else item
        for item in cart
    ]


def remove_from_cart(cart: Sequence[SaleItem], product_id: str) -> List[SaleItem]:
    return [item for item in cart if item.product_id != product_id]


def cart_total(cart: Sequence[SaleItem]) -> float:
    return sum(item.subtotal for item in cart)
