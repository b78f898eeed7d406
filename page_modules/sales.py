"""Sales page: cart building, checkout, receipts and refunds."""
import streamlit as st
from streamlit_free_text_select import st_free_text_select

from core.cart import add_to_cart, cart_total, remove_from_cart, set_cart_quantity
from core.catalog import filter_products
from core.errors import PosError
from core.models import PaymentMethod
from core.receipt import format_date
from core.services import checkout_cart, refund_sale
from ui.components import money, render_receipt


def _flash(message, icon):
    """Queue a toast to show on the next run."""
    st.session_state["sales_flash"] = (message, icon)


def _show_receipt(state, sale_id):
    sale = state.find_sale(sale_id)
    if sale is None:
        st.session_state.pop("receipt_sale_id", None)
        return False
    if st.button("⬅️ Back to sales"):
        st.session_state.pop("receipt_sale_id", None)
        st.rerun()
    render_receipt(sale, state.find_customer(sale.customer_id), state)
    return True


def _render_new_sale(conn, state):
    cart = st.session_state.cart
    left, right = st.columns([3, 2])

    with left:
        search = st.text_input("Search product or service", key="sale_search")
        for product in filter_products(state.products, search):
            col1, col2 = st.columns([4, 1])
            with col1:
                kind = f"Qty: {product.stock}" if product.manage_stock else "Unlimited"
                st.write(f"**{product.name}** · {money(product.price, state)}")
                st.caption(f"{'Item' if product.manage_stock else 'Service'} · {kind}")
            with col2:
                if st.button("➕", key=f"add_{product.id}"):
                    try:
                        st.session_state.cart = add_to_cart(cart, product)
                    except PosError as e:
                        _flash(f"❌ {e}", "⚠️")
                    st.rerun()

    with right:
        st.subheader("\U0001F6D2 Cart")
        customer_names = sorted({c.name for c in state.customers}, key=str.casefold)
        customer_name = st_free_text_select(
            "Customer name",
            customer_names,
            key="sale_customer",
            placeholder="Type or pick a customer",
        )

        if not cart:
            st.info("Cart is empty")
        for item in cart:
            product = state.find_product(item.product_id)
            col1, col2, col3 = st.columns([3, 2, 1])
            col1.write(f"{item.name}\n\n{money(item.subtotal, state)}")
            if product is not None:
                qty_key = f"qty_{item.product_id}_{item.quantity}_{st.session_state.get('qty_rejections', 0)}"
                qty = col2.number_input(
                    "Qty",
                    min_value=0,
                    value=item.quantity,
                    step=1,
                    key=qty_key,
                    label_visibility="collapsed",
                )
                if qty != item.quantity:
                    try:
                        st.session_state.cart = set_cart_quantity(cart, product, int(qty))
                    except PosError as e:
                        # New widget key so the rejected value is not kept
                        st.session_state.qty_rejections = st.session_state.get("qty_rejections", 0) + 1
                        _flash(f"❌ {e}", "⚠️")
                    st.rerun()
            if col3.button("\U0001F5D1️", key=f"remove_{item.product_id}"):
                st.session_state.cart = remove_from_cart(cart, item.product_id)
                st.rerun()

        st.metric("Total", money(cart_total(cart), state))
        method = st.radio(
            "Payment method",
            [m.value for m in PaymentMethod],
            horizontal=True,
            key="sale_payment",
        )

        ready = bool(cart) and bool((customer_name or "").strip())
        if st.button("✅ Complete sale", type="primary", disabled=not ready):
            try:
                result = checkout_cart(conn, state, cart, customer_name or "", None, method)
            except PosError as e:
                st.error(f"❌ {e}")
            else:
                st.session_state.cart = []
                st.session_state.sale_creating = False
                st.session_state.receipt_sale_id = result.sale.id
                _flash(f"Sale #{result.sale.id} recorded", "✅")
                st.rerun()


def _render_history(conn, state):
    if not state.sales:
        st.info("No sales recorded yet")
        return
    for sale in state.sales:
        with st.container():
            col1, col2, col3 = st.columns([4, 2, 2])
            with col1:
                status = " · ↩️ refunded" if sale.is_refunded else ""
                st.write(f"**#{sale.id}** · {sale.customer_name or ''}{status}")
                st.caption(f"{format_date(sale.date, with_time=True)} · {sale.payment_method.value}")
            col2.write(money(sale.total, state))
            with col3:
                if st.button("\U0001F9FE Receipt", key=f"view_{sale.id}"):
                    st.session_state.receipt_sale_id = sale.id
                    st.rerun()
            if not sale.is_refunded:
                with st.expander("↩️ Refund"):
                    reason = st.text_input("Reason", key=f"refund_reason_{sale.id}")
                    if st.button("Confirm refund", key=f"refund_{sale.id}"):
                        try:
                            refund_sale(conn, state, sale.id, reason)
                        except PosError as e:
                            _flash(f"❌ {e}", "⚠️")
                        else:
                            _flash(f"Sale #{sale.id} refunded", "↩️")
                        st.rerun()
            elif sale.refund_reason:
                st.caption(f"Refunded {format_date(sale.refunded_at)}: {sale.refund_reason}")
            st.divider()


def render(conn, state):
    """Render the sales page."""
    flash = st.session_state.pop("sales_flash", None)
    if flash:
        message, icon = flash
        st.toast(message, icon=icon)

    receipt_id = st.session_state.get("receipt_sale_id")
    if receipt_id and _show_receipt(state, receipt_id):
        return

    st.header("\U0001F6D2 Sales")
    creating = st.session_state.get("sale_creating", False)
    if st.button("⬅️ Cancel" if creating else "➕ New sale"):
        st.session_state.sale_creating = not creating
        if creating:
            # Abandoning the cart leaves nothing behind
            st.session_state.cart = []
        st.rerun()

    if creating:
        _render_new_sale(conn, state)
    else:
        _render_history(conn, state)
