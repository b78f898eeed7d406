from dataclasses import replace
from urllib.parse import unquote

import pytest

from core.cart import add_to_cart
from core.constants import WALK_IN_CUSTOMER
from core.models import ShopConfig
from core.receipt import (
    contact_link,
    customer_label,
    format_currency,
    format_date,
    phone_digits,
    receipt_lines,
    receipt_pdf,
    share_text,
    whatsapp_link,
)
from core.transactions import checkout, refund


@pytest.fixture
def config():
    return ShopConfig(name="Loja <Central> & Filhos", phone="923 000 000", address="Rua 1, Luanda", nif="5000123")


@pytest.fixture
def sale(soap, haircut, now):
    cart = add_to_cart(add_to_cart([], soap, 3), haircut)
    return checkout(cart, "Ana", None, "Transferência", [soap, haircut], [], now=now).sale


@pytest.mark.parametrize(
    "value,currency,expected",
    [
        (1500, "Kz", "1 500,00 Kz"),
        (0, "Kz", "0,00 Kz"),
        (1234567.5, "AOA", "1 234 567,50 AOA"),
        (99.999, "", "100,00 Kz"),
    ],
)
def test_format_currency(value, currency, expected):
    assert format_currency(value, currency) == expected


def test_format_date():
    assert format_date("2026-10-19T10:30:00+01:00") == "19/10/2026"
    assert format_date("2026-10-19T10:30:00+01:00", with_time=True) == "19/10/2026 10:30"
    assert format_date("garbage") == "garbage"
    assert format_date(None) == ""


def test_customer_label_prefers_live_record(sale, bruno):
    assert customer_label(sale, bruno) == "Bruno"
    assert customer_label(sale, None) == "Ana"


def test_customer_label_walk_in(sale):
    anonymous = replace(sale, customer_name=None)
    assert customer_label(anonymous, None) == WALK_IN_CUSTOMER


def test_phone_links():
    assert phone_digits("+244 923-000-111") == "244923000111"
    assert contact_link("+244 923 000 111") == "https://wa.me/244923000111"
    assert contact_link("n/a") is None
    assert contact_link(None) is None


def test_share_text_and_whatsapp_link(sale, bruno, config):
    text = share_text(sale, None, config)
    assert f"#{sale.id}" in text
    assert "Ana" in text
    assert "3 500,00 Kz" in text
    assert "Transferência" in text

    link = whatsapp_link(bruno.phone, text)
    assert link.startswith("https://wa.me/244923000111?text=")
    assert unquote(link.split("text=", 1)[1]) == text


def test_share_text_mentions_refund(sale, config, later):
    refunded = refund(sale, "erro", [], [], now=later).sale
    assert "Estornada em 20/10/2026" in share_text(refunded, None, config)


def test_receipt_lines(sale, config):
    lines = receipt_lines(sale, None, config)
    assert lines[0] == config.name
    assert "NIF: 5000123" in lines
    assert "3 x Sabão" in lines
    assert "1 x Corte de cabelo" in lines
    assert "TOTAL: 3 500,00 Kz" in lines
    assert "Payment: Transferência" in lines


def test_receipt_lines_refunded(sale, config, later):
    refunded = refund(sale, "cliente desistiu", [], [], now=later).sale
    assert receipt_lines(refunded, None, config)[-1] == "REFUNDED 20/10/2026 09:00: cliente desistiu"


def test_receipt_pdf(sale, config, later):
    pdf = receipt_pdf(sale, None, config)
    assert pdf.startswith(b"%PDF")
    refunded = refund(sale, "<sem> motivo & outro", [], [], now=later).sale
    assert receipt_pdf(refunded, None, config).startswith(b"%PDF")
