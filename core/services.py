"""Application controller: apply a change to the state, then persist it.

Pages call these functions instead of touching collections directly. Every
function runs the pure engine (core.transactions / core.catalog), swaps the
affected collections on the AppState, and saves a snapshot. Domain errors
propagate to the caller; storage errors are logged and the in-memory state
stays authoritative for the session.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Union

from core import catalog, store, transactions
from core.errors import StoragePersistFailure, ValidationError
from core.models import AppState, Sale, SaleItem, ShopConfig
from core.store import DBConnection

logger = logging.getLogger(__name__)


def persist(conn: DBConnection, state: AppState) -> bool:
    """Best-effort save. Returns False when the store could not be written."""
    try:
        store.save_state(conn, state)
        return True
    except StoragePersistFailure:
        logger.exception("Failed to persist state; keeping in-memory copy")
        return False


def checkout_cart(
    conn: DBConnection,
    state: AppState,
    cart: Sequence[SaleItem],
    customer_name: str,
    customer_id: Optional[str],
    payment_method,
) -> transactions.CheckoutResult:
    """Complete a sale and record it. The caller clears the cart on success."""
    result = transactions.checkout(
        cart,
        customer_name,
        customer_id,
        payment_method,
        state.products,
        state.customers,
        existing_sale_ids=[s.id for s in state.sales],
    )
    state.sales = [result.sale, *state.sales]
    state.products = result.products
    state.customers = result.customers
    persist(conn, state)
    return result


def refund_sale(conn: DBConnection, state: AppState, sale_id: str, reason: str = "") -> Sale:
    sale = state.find_sale(sale_id)
    if sale is None:
        raise ValidationError(f"Sale {sale_id} not found")
    result = transactions.refund(sale, reason, state.products, state.customers)
    state.sales = transactions.replace_sale(state.sales, result.sale)
    state.products = result.products
    state.customers = result.customers
    persist(conn, state)
    return result.sale


def save_product(
    conn: DBConnection, state: AppState, data: Dict[str, Any], product_id: Optional[str] = None
) -> None:
    state.products = catalog.save_product(state.products, data, product_id)
    persist(conn, state)


def remove_product(conn: DBConnection, state: AppState, product_id: str) -> None:
    state.products = catalog.delete_product(state.products, product_id)
    persist(conn, state)


def save_customer(
    conn: DBConnection, state: AppState, name: str, phone: str = "", customer_id: Optional[str] = None
) -> None:
    state.customers = catalog.save_customer(state.customers, name, phone, customer_id)
    persist(conn, state)


def remove_customer(conn: DBConnection, state: AppState, customer_id: str) -> None:
    state.customers = catalog.delete_customer(state.customers, customer_id)
    persist(conn, state)


def record_expense(conn: DBConnection, state: AppState, description: str, amount: Any, category: str) -> None:
    state.expenses = catalog.add_expense(state.expenses, description, amount, category)
    persist(conn, state)


def remove_expense(conn: DBConnection, state: AppState, expense_id: str) -> None:
    state.expenses = catalog.delete_expense(state.expenses, expense_id)
    persist(conn, state)


def update_shop_config(conn: DBConnection, state: AppState, **changes: Any) -> ShopConfig:
    state.shop_config = catalog.update_shop_config(state.shop_config, **changes)
    persist(conn, state)
    return state.shop_config


def restore_backup(conn: DBConnection, state: AppState, raw: Union[str, bytes]) -> AppState:
    """Import a backup document and return the freshly reloaded state.

    Raises ImportParseError (nothing changed) or StoragePersistFailure.
    """
    return store.import_backup(conn, raw, current=state)


def reset_all_data(conn: DBConnection) -> AppState:
    store.clear_all(conn)
    logger.warning("All stored data erased")
    return AppState()
