"""Catalog, customer registry, expense and shop-config mutations.

Same contract as core.transactions: inputs are left alone and the new
collection is returned.
"""
from __future__ import annotations

import math
from dataclasses import replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from core.constants import DEFAULT_EXPENSE_CATEGORY, DEFAULT_PRODUCT_CATEGORY
from core.errors import ValidationError
from core.models import Customer, Expense, Product, ShopConfig, local_now, new_id


def _number(value: Any, label: str) -> float:
    try:
        number = float(value or 0)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number") from None
    if not math.isfinite(number):
        raise ValidationError(f"{label} must be a finite number")
    return number


def save_product(
    products: Sequence[Product], data: Dict[str, Any], product_id: Optional[str] = None
) -> List[Product]:
    """Create a product, or edit the one with `product_id`.

    data keys: name, price, cost, stock, manage_stock, category, image.
    """
    name = str(data.get("name") or "").strip()
    price = _number(data.get("price"), "Price")
    if not name or price <= 0:
        raise ValidationError("Name and price are required")
    cost = _number(data.get("cost"), "Cost")
    if cost < 0:
        raise ValidationError("Cost cannot be negative")
    manage_stock = bool(data.get("manage_stock", False))
    stock = int(_number(data.get("stock"), "Stock")) if manage_stock else 0
    if stock < 0:
        raise ValidationError("Stock cannot be negative")

    fields = dict(
        name=name,
        price=price,
        cost=cost,
        stock=stock,
        manage_stock=manage_stock,
        category=str(data.get("category") or "").strip() or DEFAULT_PRODUCT_CATEGORY,
        image=str(data.get("image") or "").strip() or None,
    )

    if product_id is None:
        return [*products, Product(id=new_id(p.id for p in products), **fields)]
    if not any(p.id == product_id for p in products):
        raise ValidationError(f"Product {product_id} not found")
    return [replace(p, **fields) if p.id == product_id else p for p in products]


def delete_product(products: Sequence[Product], product_id: str) -> List[Product]:
    # Sales keep their own copy of item name/price, nothing cascades.
    return [p for p in products if p.id != product_id]


def save_customer(
    customers: Sequence[Customer], name: str, phone: str = "", customer_id: Optional[str] = None
) -> List[Customer]:
    """Register a customer or edit name/phone of an existing one."""
    name = (name or "").strip()
    if not name:
        raise ValidationError("Customer name is required")
    phone = (phone or "").strip()

    if customer_id is None:
        created = Customer(id=new_id(c.id for c in customers), name=name, phone=phone)
        return [created, *customers]
    if not any(c.id == customer_id for c in customers):
        raise ValidationError(f"Customer {customer_id} not found")
    return [replace(c, name=name, phone=phone) if c.id == customer_id else c for c in customers]


def delete_customer(customers: Sequence[Customer], customer_id: str) -> List[Customer]:
    return [c for c in customers if c.id != customer_id]


def add_expense(
    expenses: Sequence[Expense],
    description: str,
    amount: Any,
    category: str = DEFAULT_EXPENSE_CATEGORY,
    now: Optional[datetime] = None,
) -> List[Expense]:
    description = (description or "").strip()
    value = _number(amount, "Amount")
    if not description or value <= 0:
        raise ValidationError("Description and a positive amount are required")
    now = now or local_now()
    expense = Expense(
        id=new_id(e.id for e in expenses),
        date=now.isoformat(),
        description=description,
        amount=value,
        category=(category or "").strip() or DEFAULT_EXPENSE_CATEGORY,
    )
    return [expense, *expenses]


def delete_expense(expenses: Sequence[Expense], expense_id: str) -> List[Expense]:
    return [e for e in expenses if e.id != expense_id]


def update_shop_config(config: ShopConfig, **changes: Any) -> ShopConfig:
    """Return a new config; keys that are not config fields are ignored."""
    known = set(ShopConfig().to_dict())
    cleaned = {k: str(v or "").strip() for k, v in changes.items() if k in known}
    return ShopConfig.from_dict({**config.to_dict(), **cleaned})


def filter_products(products: Sequence[Product], search: str = "", category: Optional[str] = None) -> List[Product]:
    """Case-insensitive name search, optionally limited to one category."""
    needle = (search or "").strip().casefold()
    return [
        p
        for p in products
        if needle in p.name.casefold() and (not category or p.category == category)
    ]


def filter_customers(customers: Sequence[Customer], search: str = "") -> List[Customer]:
    """Customers matching `search`, biggest spenders first."""
    needle = (search or "").strip().casefold()
    matches = [c for c in customers if needle in c.name.casefold()]
    return sorted(matches, key=lambda c: c.total_spent, reverse=True)
