import pytest

from core import services, store
from core.cart import add_to_cart
from core.errors import AlreadyRefunded, ImportParseError, StoragePersistFailure, ValidationError
from core.models import AppState, SaleStatus
from core.store import export_backup, load_state, save_state


def _fail(*args, **kwargs):
    raise StoragePersistFailure("disk full")


def test_checkout_cart_updates_and_persists(conn, state, soap):
    result = services.checkout_cart(conn, state, add_to_cart([], soap, 2), "Ana", None, "Dinheiro")
    assert state.sales == [result.sale]
    assert state.find_product("P1").stock == 8
    assert state.customers[0].name == "Ana"

    stored = load_state(conn)
    assert stored.sales == state.sales
    assert stored.products == state.products


def test_new_sales_are_listed_first(conn, state, soap, water):
    first = services.checkout_cart(conn, state, add_to_cart([], soap), "Ana", None, "Dinheiro").sale
    second = services.checkout_cart(conn, state, add_to_cart([], water), "Rui", None, "TPA").sale
    assert [s.id for s in state.sales] == [second.id, first.id]


def test_failed_checkout_leaves_state_untouched(conn, state, water):
    before = (list(state.products), list(state.customers), list(state.sales))
    with pytest.raises(ValidationError):
        services.checkout_cart(conn, state, add_to_cart([], water), " ", None, "Dinheiro")
    assert (state.products, state.customers, state.sales) == before
    assert load_state(conn) == AppState()


def test_refund_sale(conn, state, soap):
    sale = services.checkout_cart(conn, state, add_to_cart([], soap, 3), "Bruno", None, "Dinheiro").sale
    assert state.find_customer("C1").total_spent == 2500.0

    refunded = services.refund_sale(conn, state, sale.id, "troca")
    assert refunded.status == SaleStatus.REFUNDED
    assert state.find_sale(sale.id).status == SaleStatus.REFUNDED
    assert state.find_product("P1").stock == 10
    assert state.find_customer("C1").total_spent == 1000.0
    assert load_state(conn).sales[0].refund_reason == "troca"

    with pytest.raises(AlreadyRefunded):
        services.refund_sale(conn, state, sale.id)


def test_refund_unknown_sale(conn, state):
    with pytest.raises(ValidationError):
        services.refund_sale(conn, state, "NOPE")


def test_persist_failure_keeps_memory_state(conn, state, soap, monkeypatch, caplog):
    monkeypatch.setattr(store, "save_state", _fail)
    result = services.checkout_cart(conn, state, add_to_cart([], soap), "Ana", None, "Dinheiro")
    assert state.sales == [result.sale]
    assert services.persist(conn, state) is False
    assert "Failed to persist state" in caplog.text


def test_catalog_operations_persist(conn, state):
    services.save_product(conn, state, {"name": "Arroz", "price": 700, "manage_stock": True, "stock": 5})
    services.remove_product(conn, state, "P2")
    services.save_customer(conn, state, "Carla", "923")
    services.remove_customer(conn, state, "C1")
    services.record_expense(conn, state, "Luz", 1200, "Serviços")
    services.remove_expense(conn, state, "E1")
    config = services.update_shop_config(conn, state, name="Loja Nova")

    stored = load_state(conn)
    assert [p.name for p in stored.products] == ["Sabão", "Corte de cabelo", "Arroz"]
    assert [c.name for c in stored.customers] == ["Carla"]
    assert [e.description for e in stored.expenses] == ["Luz"]
    assert stored.shop_config == config
    assert config.name == "Loja Nova"


def test_restore_backup_replaces_state(conn, state):
    save_state(conn, state)
    backup = export_backup(state)
    services.remove_product(conn, state, "P1")

    restored = services.restore_backup(conn, state, backup)
    assert restored.find_product("P1") is not None
    assert load_state(conn).products == restored.products


def test_restore_bad_backup_raises(conn, state):
    with pytest.raises(ImportParseError):
        services.restore_backup(conn, state, "{}")


def test_reset_all_data(conn, state):
    save_state(conn, state)
    fresh = services.reset_all_data(conn)
    assert fresh == AppState()
    assert load_state(conn) == AppState()
