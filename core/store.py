"""Key/value snapshot store for the application state.

Each collection lives in one named slot of the `kv_store` table as a JSON
document. Slots are always rewritten whole; there are no deltas and no
cross-slot transaction guarantees beyond what a single commit gives.
"""
from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Callable, Dict, Optional, TypeVar, Union

import psycopg2
import psycopg2.extensions

from core.constants import (
    DATA_SLOTS,
    SLOT_CUSTOMERS,
    SLOT_EXPENSES,
    SLOT_PRODUCTS,
    SLOT_SALES,
    SLOT_SESSION,
    SLOT_SHOP_CONFIG,
)
from core.errors import ImportParseError, StoragePersistFailure
from core.models import (
    AppState,
    Customer,
    Expense,
    Product,
    Sale,
    Session,
    ShopConfig,
    collection_from_list,
    local_now,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Type alias for database connections
DBConnection = Union[sqlite3.Connection, psycopg2.extensions.connection]
DB_ERRORS = (sqlite3.Error, psycopg2.Error)

# Backup document keys -> store slots
BACKUP_SECTIONS: Dict[str, str] = {
    "products": SLOT_PRODUCTS,
    "customers": SLOT_CUSTOMERS,
    "sales": SLOT_SALES,
    "expenses": SLOT_EXPENSES,
    "config": SLOT_SHOP_CONFIG,
}


def is_postgres(conn: DBConnection) -> bool:
    """Check if connection is PostgreSQL."""
    return isinstance(conn, psycopg2.extensions.connection)


def _placeholder(conn: DBConnection) -> str:
    return "%s" if is_postgres(conn) else "?"


def init_store(conn: DBConnection) -> None:
    """Create the slot table (safe to run on an existing database)."""
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            updated_at TEXT
        )
        """
    )
    conn.commit()


def _snapshot(state: AppState) -> Dict[str, Any]:
    return {
        SLOT_PRODUCTS: [p.to_dict() for p in state.products],
        SLOT_CUSTOMERS: [c.to_dict() for c in state.customers],
        SLOT_SALES: [s.to_dict() for s in state.sales],
        SLOT_EXPENSES: [e.to_dict() for e in state.expenses],
        SLOT_SHOP_CONFIG: state.shop_config.to_dict(),
    }


def write_slots(conn: DBConnection, slots: Dict[str, Any]) -> None:
    """Replace the given slots with JSON snapshots of their values."""
    ph = _placeholder(conn)
    stamp = local_now().isoformat()
    cur = conn.cursor()
    try:
        for key, value in slots.items():
            cur.execute(
                f"""
                INSERT INTO kv_store (key, value, updated_at) VALUES ({ph}, {ph}, {ph})
                ON CONFLICT (key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, json.dumps(value, ensure_ascii=False), stamp),
            )
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        raise StoragePersistFailure(f"Could not save data: {e}") from e


def read_slots(conn: DBConnection) -> Dict[str, Optional[str]]:
    """Raw JSON text of every stored slot. A failed read counts as empty."""
    cur = conn.cursor()
    try:
        cur.execute("SELECT key, value FROM kv_store")
        return {row[0]: row[1] for row in cur.fetchall()}
    except DB_ERRORS:
        logger.exception("Failed to read store, starting from defaults")
        conn.rollback()
        return {}


def _parse(raw: Optional[str], key: str) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Slot %s holds malformed JSON, using default", key)
        return None


def _single(raw: Any, factory: Callable[[Any], T], default: T, key: str) -> T:
    if raw is None:
        return default
    try:
        return factory(raw)
    except (TypeError, ValueError, OverflowError) as e:
        logger.warning("Slot %s does not match the expected shape (%s), using default", key, e)
        return default


def load_state(conn: DBConnection) -> AppState:
    """Load every slot, substituting defaults for missing or malformed data."""
    raw = read_slots(conn)
    data = {key: _parse(raw.get(key), key) for key in [*DATA_SLOTS, SLOT_SESSION]}
    return AppState(
        products=collection_from_list(data[SLOT_PRODUCTS], Product.from_dict, "product"),
        customers=collection_from_list(data[SLOT_CUSTOMERS], Customer.from_dict, "customer"),
        sales=collection_from_list(data[SLOT_SALES], Sale.from_dict, "sale"),
        expenses=collection_from_list(data[SLOT_EXPENSES], Expense.from_dict, "expense"),
        shop_config=_single(data[SLOT_SHOP_CONFIG], ShopConfig.from_dict, ShopConfig(), SLOT_SHOP_CONFIG),
        session=_single(data[SLOT_SESSION], Session.from_dict, None, SLOT_SESSION),
    )


def save_state(conn: DBConnection, state: AppState) -> None:
    """Rewrite all five data slots. Raises StoragePersistFailure."""
    write_slots(conn, _snapshot(state))


def save_session(conn: DBConnection, session: Session) -> None:
    write_slots(conn, {SLOT_SESSION: session.to_dict()})


def load_session(conn: DBConnection) -> Optional[Session]:
    raw = read_slots(conn).get(SLOT_SESSION)
    return _single(_parse(raw, SLOT_SESSION), Session.from_dict, None, SLOT_SESSION)


def clear_session(conn: DBConnection) -> None:
    _delete_slots(conn, [SLOT_SESSION])


def _delete_slots(conn: DBConnection, keys) -> None:
    ph = _placeholder(conn)
    cur = conn.cursor()
    try:
        for key in keys:
            cur.execute(f"DELETE FROM kv_store WHERE key = {ph}", (key,))
        conn.commit()
    except DB_ERRORS as e:
        conn.rollback()
        raise StoragePersistFailure(f"Could not clear data: {e}") from e


def clear_all(conn: DBConnection) -> None:
    """Erase every slot, session included."""
    _delete_slots(conn, [*DATA_SLOTS, SLOT_SESSION])


# ============================================================================
# Backup / restore
# ============================================================================

def export_backup(state: AppState) -> str:
    """Bundle the five data slots into one JSON document."""
    snapshot = _snapshot(state)
    document = {section: snapshot[slot] for section, slot in BACKUP_SECTIONS.items()}
    document["exportedAt"] = local_now().isoformat()
    return json.dumps(document, ensure_ascii=False, indent=2)


def _strict_list(raw: Any, factory: Callable[[Any], T], section: str) -> list:
    if not isinstance(raw, list):
        raise ImportParseError(f"Backup section '{section}' must be a list")
    try:
        return [factory(entry) for entry in raw]
    except (TypeError, ValueError, OverflowError) as e:
        raise ImportParseError(f"Backup section '{section}' has an invalid record: {e}") from e


def parse_backup(raw: Union[str, bytes], base: Optional[AppState] = None) -> AppState:
    """Parse a backup document into a state.

    Sections present in the document replace the matching collection of
    `base` whole; absent sections keep the `base` value. Any malformed
    section rejects the entire document.
    """
    try:
        document = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ImportParseError(f"Backup is not valid JSON: {e}") from e
    if not isinstance(document, dict) or not any(k in document for k in BACKUP_SECTIONS):
        raise ImportParseError("File is not a Gestor Ágil backup")

    base = base or AppState()
    state = AppState(
        products=list(base.products),
        customers=list(base.customers),
        sales=list(base.sales),
        expenses=list(base.expenses),
        shop_config=base.shop_config,
        session=base.session,
    )
    if document.get("products") is not None:
        state.products = _strict_list(document["products"], Product.from_dict, "products")
    if document.get("customers") is not None:
        state.customers = _strict_list(document["customers"], Customer.from_dict, "customers")
    if document.get("sales") is not None:
        state.sales = _strict_list(document["sales"], Sale.from_dict, "sales")
    if document.get("expenses") is not None:
        state.expenses = _strict_list(document["expenses"], Expense.from_dict, "expenses")
    if document.get("config") is not None:
        try:
            state.shop_config = ShopConfig.from_dict(document["config"])
        except (TypeError, ValueError, OverflowError) as e:
            raise ImportParseError(f"Backup section 'config' is invalid: {e}") from e
    return state


def import_backup(conn: DBConnection, raw: Union[str, bytes], current: Optional[AppState] = None) -> AppState:
    """Replace stored slots from a backup, then reload everything from the store.

    The store is untouched when the document does not parse.
    """
    restored = parse_backup(raw, base=current or load_state(conn))
    save_state(conn, restored)
    logger.info(
        "Backup restored: %d products, %d customers, %d sales, %d expenses",
        len(restored.products),
        len(restored.customers),
        len(restored.sales),
        len(restored.expenses),
    )
    return load_state(conn)
