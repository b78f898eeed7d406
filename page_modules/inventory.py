"""Inventory page: product catalog management."""
import pandas as pd
import streamlit as st

from core.catalog import filter_products
from core.constants import DEFAULT_PRODUCT_CATEGORY, PRODUCT_CATEGORIES
from core.errors import PosError
from core.services import remove_product, save_product
from ui.components import excel_download, money, render_products_table

ALL_CATEGORIES = "All"


def _product_form(conn, state, product=None):
    """Add form, or edit form when `product` is given."""
    form_key = f"product_form_{product.id}" if product else "product_form_new"
    categories = list(PRODUCT_CATEGORIES)
    if product and product.category not in categories:
        categories.append(product.category)
    current_category = product.category if product else DEFAULT_PRODUCT_CATEGORY

    with st.form(form_key, clear_on_submit=product is None):
        name = st.text_input("Name", value=product.name if product else "")
        category = st.selectbox("Category", categories, index=categories.index(current_category))
        col1, col2 = st.columns(2)
        price = col1.number_input("Sale price", min_value=0.0, value=float(product.price) if product else 0.0)
        cost = col2.number_input("Cost", min_value=0.0, value=float(product.cost) if product else 0.0)
        manage_stock = st.checkbox(
            "Track stock (uncheck for services)",
            value=product.manage_stock if product else False,
        )
        stock = st.number_input(
            "Stock",
            min_value=0,
            step=1,
            value=int(product.stock) if product else 0,
            help="Ignored for services",
        )
        image = st.text_input("Image URL or path (optional)", value=(product.image or "") if product else "")
        submitted = st.form_submit_button("\U0001F4BE Save" if product else "➕ Add product")

    if submitted:
        data = {
            "name": name,
            "category": category,
            "price": price,
            "cost": cost,
            "manage_stock": manage_stock,
            "stock": stock,
            "image": image,
        }
        try:
            save_product(conn, state, data, product.id if product else None)
        except PosError as e:
            st.error(f"❌ {e}")
        else:
            st.session_state.pop("editing_product", None)
            st.session_state["product_saved_msg"] = f"{name.strip()} saved"
            st.rerun()


def render(conn, state):
    """Render the inventory page."""
    st.header("\U0001F4E6 Inventory")
    if st.session_state.get("product_saved_msg"):
        st.toast(st.session_state.pop("product_saved_msg"), icon="\U0001F4E6")

    editing_id = st.session_state.get("editing_product")
    editing = state.find_product(editing_id) if editing_id else None
    with st.expander("✏️ Edit product" if editing else "➕ Add product", expanded=editing is not None):
        _product_form(conn, state, editing)
        if editing and st.button("Cancel edit"):
            st.session_state.pop("editing_product", None)
            st.rerun()

    col1, col2 = st.columns([3, 2])
    search = col1.text_input("Search by name")
    category = col2.selectbox("Category", [ALL_CATEGORIES] + PRODUCT_CATEGORIES)
    products = filter_products(
        state.products, search, None if category == ALL_CATEGORIES else category
    )
    products = sorted(products, key=lambda p: p.name.casefold())
    render_products_table(products, state)

    if products:
        st.divider()
        st.caption("Edit or delete a product")
        for product in products:
            col1, col2, col3 = st.columns([8, 1, 1])
            col1.text(f"{product.name} - {money(product.price, state)}")
            if col2.button("✏️", key=f"edit_{product.id}"):
                st.session_state.editing_product = product.id
                st.rerun()
            if col3.button("\U0001F5D1️", key=f"del_{product.id}"):
                st.session_state.confirm_delete_product = product.id
            if st.session_state.get("confirm_delete_product") == product.id:
                st.warning(f"Delete {product.name} permanently? Past sales keep their receipts.")
                yes, no = st.columns(2)
                if yes.button("Yes, delete", key=f"del_yes_{product.id}"):
                    remove_product(conn, state, product.id)
                    st.session_state.pop("confirm_delete_product", None)
                    st.rerun()
                if no.button("Keep", key=f"del_no_{product.id}"):
                    st.session_state.pop("confirm_delete_product", None)
                    st.rerun()

        export_df = pd.DataFrame([p.to_dict() for p in products]).rename(
            columns={
                "id": "ID",
                "name": "Name",
                "price": "Price",
                "cost": "Cost",
                "stock": "Stock",
                "manageStock": "Track Stock",
                "category": "Category",
                "image": "Image",
            }
        )
        excel_download(export_df, "products", "inventory_export.xlsx", "Export to Excel")
