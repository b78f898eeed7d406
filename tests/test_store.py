import json
from dataclasses import replace

import pytest

from core.cart import add_to_cart
from core.constants import SLOT_PRODUCTS, SLOT_SALES, SLOT_SHOP_CONFIG
from core.db_init import connect_sqlite
from core.errors import ImportParseError, StoragePersistFailure
from core.models import AppState, Customer, Product, SaleStatus, Session, ShopConfig
from core.store import (
    clear_all,
    clear_session,
    export_backup,
    import_backup,
    init_store,
    load_session,
    load_state,
    parse_backup,
    read_slots,
    save_session,
    save_state,
    write_slots,
)
from core.transactions import checkout


@pytest.fixture
def sold_state(state, soap, now):
    result = checkout(add_to_cart([], soap, 3), "Ana", None, "TPA", state.products, state.customers, now=now)
    state.products = result.products
    state.customers = result.customers
    state.sales = [result.sale]
    state.shop_config = ShopConfig(name="Loja Teste", phone="923000000")
    return state


def test_empty_store_loads_defaults(conn):
    state = load_state(conn)
    assert state == AppState()


def test_save_and_load_round_trip(conn, sold_state):
    save_state(conn, sold_state)
    loaded = load_state(conn)
    assert loaded.products == sold_state.products
    assert loaded.customers == sold_state.customers
    assert loaded.sales == sold_state.sales
    assert loaded.expenses == sold_state.expenses
    assert loaded.shop_config == sold_state.shop_config
    assert loaded.session is None


def test_round_trip_keeps_optional_fields(conn, sold_state, later):
    sale = sold_state.sales[0]
    refunded = replace(
        sale, id="R1", status=SaleStatus.REFUNDED, refunded_at=later.isoformat(), refund_reason="cliente desistiu"
    )
    pending = replace(sale, id="Q1", status=SaleStatus.PENDING, customer_id=None, customer_name=None)
    sold_state.sales = [pending, refunded, sale]
    sold_state.products = [*sold_state.products, Product(id="P7", name="Bolo", price=900.0, image="https://example.com/bolo.png")]
    sold_state.customers = [*sold_state.customers, Customer(id="C7", name="Sem visita")]

    save_state(conn, sold_state)
    loaded = load_state(conn)
    assert loaded.sales == sold_state.sales
    assert loaded.sales[1].refund_reason == "cliente desistiu"
    assert loaded.sales[0].customer_id is None
    assert loaded.find_product("P7").image == "https://example.com/bolo.png"
    assert loaded.find_customer("C7").last_visit is None
    assert loaded.products == sold_state.products
    assert loaded.customers == sold_state.customers


def test_slots_use_camel_case_keys(conn, sold_state):
    save_state(conn, sold_state)
    raw = read_slots(conn)
    product = json.loads(raw[SLOT_PRODUCTS])[0]
    assert product["manageStock"] is True
    sale = json.loads(raw[SLOT_SALES])[0]
    assert sale["paymentMethod"] == "TPA"
    assert sale["items"][0]["productId"] == "P1"


def test_save_overwrites_previous_snapshot(conn, sold_state):
    save_state(conn, sold_state)
    sold_state.products = sold_state.products[:1]
    save_state(conn, sold_state)
    assert [p.id for p in load_state(conn).products] == ["P1"]


def test_malformed_slot_falls_back_to_default(conn, sold_state):
    save_state(conn, sold_state)
    conn.execute("UPDATE kv_store SET value = ? WHERE key = ?", ("{not json", SLOT_PRODUCTS))
    conn.execute("UPDATE kv_store SET value = ? WHERE key = ?", ("[1, 2]", SLOT_SHOP_CONFIG))
    conn.commit()
    loaded = load_state(conn)
    assert loaded.products == []
    assert loaded.shop_config == ShopConfig()
    assert loaded.sales == sold_state.sales


def test_malformed_records_are_skipped(conn):
    products = [
        {"id": "P1", "name": "Sabão", "price": 500},
        {"name": "no id"},
        "junk",
        {"id": "P9", "name": "Huge", "stock": float("inf"), "manageStock": True},
    ]
    write_slots(conn, {SLOT_PRODUCTS: products})
    loaded = load_state(conn)
    assert [p.id for p in loaded.products] == ["P1"]


def test_write_failure_raises_persist_failure(conn, state):
    conn.execute("DROP TABLE kv_store")
    conn.commit()
    with pytest.raises(StoragePersistFailure):
        save_state(conn, state)


def test_read_failure_counts_as_empty(conn):
    conn.execute("DROP TABLE kv_store")
    conn.commit()
    assert read_slots(conn) == {}
    assert load_state(conn) == AppState()


def test_session_slot(conn, now):
    assert load_session(conn) is None
    session = Session(company_name="Loja", last_login=now.isoformat(), token="abc")
    save_session(conn, session)
    assert load_session(conn) == session
    assert load_state(conn).session == session
    clear_session(conn)
    assert load_session(conn) is None


def test_clear_all(conn, sold_state, now):
    save_state(conn, sold_state)
    save_session(conn, Session("Loja", now.isoformat(), "abc"))
    clear_all(conn)
    assert read_slots(conn) == {}


def test_export_backup_document(sold_state):
    document = json.loads(export_backup(sold_state))
    assert set(document) == {"products", "customers", "sales", "expenses", "config", "exportedAt"}
    assert document["config"]["name"] == "Loja Teste"
    assert len(document["sales"]) == 1


def test_backup_round_trip_through_store(conn, sold_state):
    document = export_backup(sold_state)
    restored = import_backup(conn, document, current=AppState())
    assert restored.products == sold_state.products
    assert restored.sales == sold_state.sales
    assert restored.shop_config == sold_state.shop_config
    assert load_state(conn).customers == sold_state.customers


def test_partial_backup_keeps_absent_sections(sold_state):
    document = json.dumps({"expenses": []})
    parsed = parse_backup(document, base=sold_state)
    assert parsed.expenses == []
    assert parsed.products == sold_state.products
    assert parsed.sales == sold_state.sales
    assert sold_state.expenses != []


def test_backup_accepts_bytes(sold_state):
    parsed = parse_backup(export_backup(sold_state).encode("utf-8"))
    assert parsed.customers == sold_state.customers


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        "[]",
        json.dumps({"unrelated": 1}),
        json.dumps({"products": {"id": "P1"}}),
        json.dumps({"products": [{"name": "missing id"}]}),
        json.dumps({"sales": [{"id": "S1", "date": "2026-10-19", "paymentMethod": "Cheque"}]}),
        json.dumps({"config": "Loja"}),
        '{"sales": [{"id": "S1", "date": "2026-10-19", "items": [{"productId": "P1", "quantity": 1e400}]}]}',
        '{"products": [{"id": "P1", "name": "Sab\u00e3o", "stock": Infinity}]}',
    ],
)
def test_invalid_backup_changes_nothing(conn, sold_state, raw):
    save_state(conn, sold_state)
    with pytest.raises(ImportParseError):
        import_backup(conn, raw, current=sold_state)
    assert load_state(conn).products == sold_state.products
    assert load_state(conn).sales == sold_state.sales


def test_sqlite_file_store_survives_reconnect(tmp_path, sold_state):
    path = tmp_path / "nested" / "gestor.db"
    first = connect_sqlite(str(path))
    init_store(first)
    save_state(first, sold_state)
    first.close()

    second = connect_sqlite(str(path))
    init_store(second)
    assert load_state(second).sales == sold_state.sales
    second.close()
