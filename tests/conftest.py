"""Shared fixtures for the POS core tests."""
import sqlite3
from datetime import datetime

import pytest

from core.constants import LOCAL_TZ
from core.models import AppState, Customer, Expense, Product
from core.store import init_store


@pytest.fixture
def now():
    return datetime(2026, 10, 19, 10, 30, tzinfo=LOCAL_TZ)


@pytest.fixture
def later():
    return datetime(2026, 10, 20, 9, 0, tzinfo=LOCAL_TZ)


@pytest.fixture
def soap():
    return Product(id="P1", name="Sabão", price=500.0, cost=300.0, stock=10, manage_stock=True, category="Geral")


@pytest.fixture
def water():
    return Product(id="P2", name="Água 1L", price=150.0, cost=90.0, stock=2, manage_stock=True, category="Bebidas")


@pytest.fixture
def haircut():
    return Product(id="S1", name="Corte de cabelo", price=2000.0, cost=0.0, stock=0, manage_stock=False, category="Serviços")


@pytest.fixture
def products(soap, water, haircut):
    return [soap, water, haircut]


@pytest.fixture
def bruno():
    return Customer(id="C1", name="Bruno", phone="+244 923 000 111", total_spent=1000.0)


@pytest.fixture
def customers(bruno):
    return [bruno]


@pytest.fixture
def state(products, customers):
    return AppState(
        products=list(products),
        customers=list(customers),
        expenses=[Expense(id="E1", date="2026-10-18T08:00:00+01:00", description="Renda", amount=800.0, category="Aluguer")],
    )


@pytest.fixture
def conn():
    connection = sqlite3.connect(":memory:")
    init_store(connection)
    yield connection
    connection.close()
