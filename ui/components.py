"""Reusable UI components."""
import base64
from io import BytesIO
from pathlib import Path

import pandas as pd
import streamlit as st

from core.receipt import format_currency, receipt_lines, receipt_pdf, share_text, whatsapp_link


def money(value, state) -> str:
    return format_currency(value, state.shop_config.currency)


def image_to_base64(image_path):
    """Convert local image file to base64 data URI."""
    if not image_path or image_path.startswith(("http://", "https://", "data:")):
        return image_path
    file_path = Path(image_path)
    if not file_path.exists():
        return image_path
    mime_types = {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
        ".gif": "image/gif",
        ".webp": "image/webp",
    }
    mime = mime_types.get(file_path.suffix.lower(), "image/png")
    b64 = base64.b64encode(file_path.read_bytes()).decode()
    return f"data:{mime};base64,{b64}"


def render_products_table(products, state):
    """Render products as a table with image thumbnails."""
    if not products:
        st.info("No products to show")
        return

    display_df = pd.DataFrame(
        [
            {
                "Image": image_to_base64(p.image),
                "Name": p.name,
                "Category": p.category,
                "Type": "Item" if p.manage_stock else "Service",
                "Stock": p.stock if p.manage_stock else None,
                "Price": money(p.price, state),
                "Cost": money(p.cost, state),
            }
            for p in products
        ]
    )
    column_config = {
        "Image": st.column_config.ImageColumn(
            "Image", help="Product image thumbnail", width="small"
        ),
        "Stock": st.column_config.NumberColumn("Stock", help="Empty = unlimited"),
    }
    st.dataframe(
        display_df,
        width="stretch",
        hide_index=True,
        column_config=column_config,
    )


def excel_download(df, sheet_name, file_name, label):
    """Offer a DataFrame as an .xlsx download."""
    buf = BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, index=False, sheet_name=sheet_name)
        ws = writer.sheets[sheet_name]
        from openpyxl.utils import get_column_letter
        for idx, col_name in enumerate(df.columns, start=1):
            ws.column_dimensions[get_column_letter(idx)].width = max(12, len(str(col_name)) + 2)
    st.download_button(
        label,
        data=buf.getvalue(),
        file_name=file_name,
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


def render_receipt(sale, customer, state, key_prefix="receipt"):
    """Show a receipt with PDF download and WhatsApp share."""
    config = state.shop_config
    st.markdown('<div class="receipt-box">', unsafe_allow_html=True)
    st.code("\n".join(receipt_lines(sale, customer, config)), language=None)
    st.markdown("</div>", unsafe_allow_html=True)

    col1, col2 = st.columns(2)
    with col1:
        st.download_button(
            "\U0001F4C4 Download PDF",
            data=receipt_pdf(sale, customer, config),
            file_name=f"recibo-{sale.id}.pdf",
            mime="application/pdf",
            key=f"{key_prefix}_pdf_{sale.id}",
        )
    with col2:
        phone = customer.phone if customer else ""
        st.link_button(
            "\U0001F4AC Share on WhatsApp",
            whatsapp_link(phone, share_text(sale, customer, config)),
        )
