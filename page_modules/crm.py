"""Customers page (CRM): registry, contact links and purchase history."""
import streamlit as st

from core.catalog import filter_customers
from core.errors import PosError
from core.receipt import contact_link, format_date
from core.services import remove_customer, save_customer
from ui.components import money


def render(conn, state):
    """Render the customers page."""
    st.header("\U0001F465 Customers")

    editing_id = st.session_state.get("editing_customer")
    editing = state.find_customer(editing_id)
    with st.expander("✏️ Edit customer" if editing else "➕ Add customer", expanded=editing is not None):
        form_key = f"customer_form_{editing.id}" if editing else "customer_form_new"
        with st.form(form_key, clear_on_submit=editing is None):
            name = st.text_input("Name", value=editing.name if editing else "")
            phone = st.text_input("Phone", value=editing.phone if editing else "")
            submitted = st.form_submit_button("\U0001F4BE Save")
            if submitted:
                try:
                    save_customer(conn, state, name, phone, editing.id if editing else None)
                except PosError as e:
                    st.error(f"❌ {e}")
                else:
                    st.session_state.pop("editing_customer", None)
                    st.rerun()

    search = st.text_input("Search customers")
    customers = filter_customers(state.customers, search)
    if not customers:
        st.info("No customers found")
        return

    sales_count = {}
    for sale in state.sales:
        if sale.customer_id and not sale.is_refunded:
            sales_count[sale.customer_id] = sales_count.get(sale.customer_id, 0) + 1

    for rank, customer in enumerate(customers, start=1):
        with st.container():
            col1, col2, col3, col4, col5 = st.columns([4, 3, 2, 1, 1])
            with col1:
                st.write(f"**{rank}. {customer.name}**")
                st.caption(customer.phone or "No phone")
            with col2:
                st.write(money(customer.total_spent, state))
                visits = sales_count.get(customer.id, 0)
                last = format_date(customer.last_visit) if customer.last_visit else "never"
                st.caption(f"{visits} purchase(s) · last visit {last}")
            with col3:
                link = contact_link(customer.phone)
                if link:
                    st.link_button("\U0001F4AC WhatsApp", link)
            if col4.button("✏️", key=f"edit_cust_{customer.id}"):
                st.session_state.editing_customer = customer.id
                st.rerun()
            if col5.button("\U0001F5D1️", key=f"del_cust_{customer.id}"):
                st.session_state.confirm_delete_customer = customer.id
            if st.session_state.get("confirm_delete_customer") == customer.id:
                st.warning("Delete this customer? Sales statistics are not affected.")
                yes, no = st.columns(2)
                if yes.button("Yes, delete", key=f"del_cust_yes_{customer.id}"):
                    remove_customer(conn, state, customer.id)
                    st.session_state.pop("confirm_delete_customer", None)
                    st.rerun()
                if no.button("Keep", key=f"del_cust_no_{customer.id}"):
                    st.session_state.pop("confirm_delete_customer", None)
                    st.rerun()
            st.divider()
