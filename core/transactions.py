"""Checkout and refund: the state transitions behind every sale.

Functions here are pure. They take the current collections and return the
next ones; storage is the caller's job (see core.services). Nothing is
applied partially: every precondition is checked before any new state is
built, so an exception always leaves the caller's collections as they were.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Union

from core.constants import REFUND_REASON_PLACEHOLDER
from core.errors import AlreadyRefunded, StockExceeded, ValidationError
from core.models import (
    Customer,
    PaymentMethod,
    Product,
    Sale,
    SaleItem,
    SaleStatus,
    local_now,
    new_id,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Existing:
    """Customer resolution matched a stored record."""

    customer_id: str


@dataclass(frozen=True)
class Created:
    """Customer resolution registered a new record."""

    customer: Customer


CustomerResolution = Union[Existing, Created]


@dataclass(frozen=True)
class CheckoutResult:
    sale: Sale
    products: List[Product]
    customers: List[Customer]
    customer_resolution: CustomerResolution


@dataclass(frozen=True)
class RefundResult:
    sale: Sale
    products: List[Product]
    customers: List[Customer]


def _sold_quantities(items: Sequence[SaleItem]) -> Dict[str, int]:
    sold: Dict[str, int] = {}
    for item in items:
        sold[item.product_id] = sold.get(item.product_id, 0) + item.quantity
    return sold


def _coerce_payment_method(value) -> PaymentMethod:
    try:
        return PaymentMethod(value)
    except ValueError:
        raise ValidationError(f"Unknown payment method: {value}") from None


def resolve_or_create_customer(
    customer_name: str,
    customer_id: Optional[str],
    customers: Sequence[Customer],
    now: Optional[datetime] = None,
) -> CustomerResolution:
    """Find the customer a sale belongs to, or build a new record.

    An explicitly selected id wins; otherwise the name is matched
    case-insensitively. A new record starts with no spending; checkout
    credits the sale total to whichever customer is returned.
    """
    if customer_id:
        if any(c.id == customer_id for c in customers):
            return Existing(customer_id)
        logger.warning("Selected customer %s no longer exists, matching by name", customer_id)

    name = customer_name.strip()
    wanted = name.casefold()
    match = next((c for c in customers if c.name.strip().casefold() == wanted), None)
    if match is not None:
        return Existing(match.id)

    now = now or local_now()
    return Created(
        Customer(
            id=new_id(c.id for c in customers),
            name=name,
            phone="",
            total_spent=0.0,
            last_visit=now.isoformat(),
        )
    )


def checkout(
    items: Sequence[SaleItem],
    customer_name: str,
    customer_id: Optional[str],
    payment_method,
    products: Sequence[Product],
    customers: Sequence[Customer],
    existing_sale_ids: Sequence[str] = (),
    now: Optional[datetime] = None,
) -> CheckoutResult:
    """Turn a cart into a completed sale plus updated products/customers."""
    if not items:
        raise ValidationError("Add at least one item to the cart")
    if not customer_name or not customer_name.strip():
        raise ValidationError("Customer name is required")
    method = _coerce_payment_method(payment_method)

    sold = _sold_quantities(items)
    by_id = {p.id: p for p in products}
    for product_id, quantity in sold.items():
        product = by_id.get(product_id)
        if product is not None and product.manage_stock and quantity > product.stock:
            raise StockExceeded(product.name, quantity, product.stock)

    now = now or local_now()
    stamp = now.isoformat()
    total = sum(item.price * item.quantity for item in items)

    next_products = [
        replace(p, stock=p.stock - sold[p.id]) if p.manage_stock and p.id in sold else p
        for p in products
    ]

    resolution = resolve_or_create_customer(customer_name, customer_id, customers, now)
    if isinstance(resolution, Created):
        buyer = replace(resolution.customer, total_spent=total, last_visit=stamp)
        next_customers = [buyer, *customers]
    else:
        buyer = None
        next_customers = []
        for c in customers:
            if c.id == resolution.customer_id:
                c = replace(c, total_spent=c.total_spent + total, last_visit=stamp)
                buyer = c
            next_customers.append(c)

    sale = Sale(
        id=new_id(existing_sale_ids),
        date=stamp,
        items=tuple(items),
        total=total,
        payment_method=method,
        status=SaleStatus.COMPLETED,
        customer_id=buyer.id,
        customer_name=customer_name.strip(),
    )
    logger.info("Sale %s completed: %d line(s), total %.2f", sale.id, len(sale.items), total)
    return CheckoutResult(sale, next_products, next_customers, resolution)


def refund(
    sale: Sale,
    reason: str,
    products: Sequence[Product],
    customers: Sequence[Customer],
    now: Optional[datetime] = None,
) -> RefundResult:
    """Reverse a sale's stock and customer effects and mark it refunded."""
    if sale.is_refunded:
        raise AlreadyRefunded(f"Sale {sale.id} was already refunded")

    now = now or local_now()
    refunded = replace(
        sale,
        status=SaleStatus.REFUNDED,
        refunded_at=now.isoformat(),
        refund_reason=(reason or "").strip() or REFUND_REASON_PLACEHOLDER,
    )

    returned = _sold_quantities(sale.items)
    next_products = [
        replace(p, stock=p.stock + returned[p.id]) if p.manage_stock and p.id in returned else p
        for p in products
    ]

    next_customers = [
        replace(c, total_spent=max(0.0, c.total_spent - sale.total))
        if sale.customer_id and c.id == sale.customer_id
        else c
        for c in customers
    ]
    logger.info("Sale %s refunded: %s", sale.id, refunded.refund_reason)
    return RefundResult(refunded, next_products, next_customers)


def replace_sale(sales: Sequence[Sale], sale: Sale) -> List[Sale]:
    return [sale if s.id == sale.id else s for s in sales]
