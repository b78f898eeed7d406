import pytest

from core.constants import DEFAULT_CURRENCY, DEFAULT_PRODUCT_CATEGORY, DEFAULT_SHOP_NAME
from core.models import (
    AppState,
    Customer,
    PaymentMethod,
    Product,
    Sale,
    SaleStatus,
    ShopConfig,
    collection_from_list,
    new_id,
)


def test_new_id_avoids_existing(monkeypatch):
    ids = iter(["aaaaaa0000", "bbbbbb0000"])

    class FakeUUID:
        def __init__(self, value):
            self.hex = value

    monkeypatch.setattr("core.models.uuid.uuid4", lambda: FakeUUID(next(ids)))
    assert new_id(["AAAAAA"]) == "BBBBBB"


def test_product_from_browser_record():
    product = Product.from_dict({"id": "1", "name": "Pão", "price": "50", "stock": "12", "manageStock": "true"})
    assert product.price == 50.0
    assert product.stock == 12
    assert product.manage_stock is True
    assert product.category == DEFAULT_PRODUCT_CATEGORY
    assert "image" not in product.to_dict()


def test_customer_total_never_negative():
    assert Customer.from_dict({"id": "C", "name": "X", "totalSpent": -50}).total_spent == 0.0


def test_sale_from_dict_defaults():
    sale = Sale.from_dict({"id": "S", "date": "2026-10-19T10:00:00+01:00", "items": [{"productId": "P", "price": 2, "quantity": 3}]})
    assert sale.payment_method == PaymentMethod.CASH
    assert sale.status == SaleStatus.COMPLETED
    assert sale.items[0].subtotal == 6.0
    assert not sale.is_refunded
    assert "customerId" not in sale.to_dict()


def test_sale_rejects_unknown_status():
    with pytest.raises(ValueError):
        Sale.from_dict({"id": "S", "date": "d", "status": "lost"})


def test_shop_config_defaults():
    config = ShopConfig.from_dict({"name": "", "currency": None})
    assert config.name == DEFAULT_SHOP_NAME
    assert config.currency == DEFAULT_CURRENCY


def test_collection_from_list_skips_bad_entries(caplog):
    raw = [{"id": "1", "name": "A"}, {"id": "2"}, None]
    assert [p.id for p in collection_from_list(raw, Product.from_dict, "product")] == ["1"]
    assert "Skipping malformed product" in caplog.text
    assert collection_from_list({"id": "1"}, Product.from_dict, "product") == []
    assert collection_from_list(None, Product.from_dict, "product") == []


def test_app_state_lookups(state):
    assert state.find_product("P2").name == "Água 1L"
    assert state.find_product("nope") is None
    assert state.find_customer("C1").name == "Bruno"
    assert state.find_customer(None) is None
    assert state.find_sale("S1") is None
    assert AppState().shop_config == ShopConfig()
