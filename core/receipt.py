"""Receipt rendering: plain text, share links and PDF. Read-only."""
from __future__ import annotations

import logging
import re
from io import BytesIO
from typing import List, Optional
from urllib.parse import quote
from xml.sax.saxutils import escape

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A6
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from core.constants import WALK_IN_CUSTOMER
from core.models import Customer, Sale, ShopConfig

logger = logging.getLogger(__name__)


def format_currency(value: float, currency: str = "Kz") -> str:
    """`1500` -> `1 500,00 Kz` (pt-AO grouping)."""
    formatted = f"{float(value):,.2f}".replace(",", " ").replace(".", ",")
    return f"{formatted} {currency or 'Kz'}"


def format_date(value: Optional[str], with_time: bool = False) -> str:
    dt = pd.to_datetime(value, errors="coerce")
    if pd.isna(dt):
        return "" if value is None else str(value)
    return dt.strftime("%d/%m/%Y %H:%M" if with_time else "%d/%m/%Y")


def customer_label(sale: Sale, customer: Optional[Customer]) -> str:
    if customer is not None:
        return customer.name
    return sale.customer_name or WALK_IN_CUSTOMER


def phone_digits(phone: Optional[str]) -> str:
    return re.sub(r"\D", "", phone or "")


def contact_link(phone: Optional[str]) -> Optional[str]:
    """WhatsApp chat link for a customer, None when the phone has no digits."""
    digits = phone_digits(phone)
    if not digits:
        return None
    return f"https://wa.me/{digits}"


def share_text(sale: Sale, customer: Optional[Customer], config: ShopConfig) -> str:
    lines = [
        f"🎉 *{config.name} - Comprovativo*",
        "",
        f"✅ Venda: #{sale.id}",
        f"📅 Data: {format_date(sale.date)}",
        f"👤 Cliente: {customer_label(sale, customer)}",
        f"💰 Total: *{format_currency(sale.total, config.currency)}*",
        f"💳 Pagamento: {sale.payment_method.value}",
    ]
    if sale.is_refunded:
        lines.append(f"↩️ Estornada em {format_date(sale.refunded_at)}")
    lines += ["", "Obrigado pela preferência! Volte sempre."]
    return "\n".join(lines)


def whatsapp_link(phone: Optional[str], text: str) -> str:
    """wa.me link carrying `text`; without a phone WhatsApp asks for a contact."""
    return f"https://wa.me/{phone_digits(phone)}?text={quote(text)}"


def receipt_lines(sale: Sale, customer: Optional[Customer], config: ShopConfig) -> List[str]:
    """Receipt as printable text lines."""
    currency = config.currency
    lines = [config.name]
    lines += [detail for detail in (config.address, config.phone) if detail]
    if config.nif:
        lines.append(f"NIF: {config.nif}")
    lines += [
        "-" * 32,
        f"Sale #{sale.id}",
        f"Date: {format_date(sale.date, with_time=True)}",
        f"Customer: {customer_label(sale, customer)}",
        "-" * 32,
    ]
    for item in sale.items:
        lines.append(f"{item.quantity} x {item.name}")
        lines.append(f"    {format_currency(item.price, currency)} = {format_currency(item.subtotal, currency)}")
    lines += [
        "-" * 32,
        f"TOTAL: {format_currency(sale.total, currency)}",
        f"Payment: {sale.payment_method.value}",
    ]
    if sale.is_refunded:
        lines.append(f"REFUNDED {format_date(sale.refunded_at, with_time=True)}: {sale.refund_reason}")
    return lines


def receipt_pdf(sale: Sale, customer: Optional[Customer], config: ShopConfig) -> bytes:
    """Receipt as a small PDF document."""
    styles = getSampleStyleSheet()
    currency = config.currency
    story = [Paragraph(escape(config.name), styles["Heading2"])]
    for detail in (config.address, config.phone, f"NIF: {config.nif}" if config.nif else ""):
        if detail:
            story.append(Paragraph(escape(detail), styles["Normal"]))
    story += [
        Spacer(1, 8),
        Paragraph(f"Sale #{sale.id} - {format_date(sale.date, with_time=True)}", styles["Normal"]),
        Paragraph(f"Customer: {escape(customer_label(sale, customer))}", styles["Normal"]),
        Spacer(1, 8),
    ]

    data = [["Qty", "Item", "Total"]]
    data += [[str(i.quantity), i.name, format_currency(i.subtotal, currency)] for i in sale.items]
    data.append(["", "TOTAL", format_currency(sale.total, currency)])
    table = Table(data, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("GRID", (0, 0), (-1, -2), 0.25, colors.grey),
                ("FONTSIZE", (0, 0), (-1, -1), 8),
                ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
                ("ALIGN", (2, 0), (2, -1), "RIGHT"),
            ]
        )
    )
    story += [table, Spacer(1, 8), Paragraph(f"Payment: {sale.payment_method.value}", styles["Normal"])]
    if sale.is_refunded:
        story.append(Paragraph(f"REFUNDED: {escape(sale.refund_reason or '')}", styles["Normal"]))

    buf = BytesIO()
    doc = SimpleDocTemplate(buf, pagesize=A6, leftMargin=12, rightMargin=12, topMargin=12, bottomMargin=12)
    doc.build(story)
    logger.debug("Rendered PDF receipt for sale %s", sale.id)
    return buf.getvalue()
