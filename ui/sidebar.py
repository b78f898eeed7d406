"""Sidebar navigation, session logout and backup download."""
import streamlit as st

from core.constants import MENU_ITEMS, MENU_SALES
from core.models import local_now
from core.simple_auth import get_current_user, logout
from core.store import export_backup


def render_sidebar_menu(conn, state):
    """Render the sidebar navigation menu with the shop name and logout."""
    st.sidebar.title(state.shop_config.name)
    user = get_current_user(state)
    if user["company_name"]:
        st.sidebar.caption(f"Signed in as {user['company_name']}")

    if (
        "menu_selection" not in st.session_state
        or st.session_state.menu_selection not in MENU_ITEMS
    ):
        st.session_state.menu_selection = MENU_ITEMS[0]
    # Shortcut buttons on other pages set this before the radio is drawn
    jump = st.session_state.pop("menu_jump", None)
    if jump in MENU_ITEMS:
        st.session_state.menu_selection = jump
    selected = st.sidebar.radio("Menu", MENU_ITEMS, key="menu_selection")

    if selected != MENU_SALES and st.sidebar.button("➕ New sale", key="sidebar_new_sale"):
        st.session_state.menu_jump = MENU_SALES
        st.session_state.sale_creating = True
        st.rerun()

    st.sidebar.markdown("---")
    if st.sidebar.button("\U0001F6AA Logout", key="sidebar_logout"):
        logout(conn, state)
        st.session_state.cart = []
        st.session_state["logout_msg"] = "Logged out."
        st.rerun()

    return selected


def render_backup(state):
    """Render the backup download button in the sidebar."""
    st.sidebar.markdown("---")
    st.sidebar.download_button(
        "\U0001F4BE Download backup",
        data=export_backup(state),
        file_name=f"backup-gestor-agil-{local_now().date().isoformat()}.json",
        mime="application/json",
        key="sidebar_backup",
    )
