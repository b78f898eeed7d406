"""Gestor Ágil POS - Main Application Entry Point."""
import logging

import streamlit as st

from core.constants import (
    APP_NAME,
    LOG_LEVEL,
    MENU_CUSTOMERS,
    MENU_DASHBOARD,
    MENU_FINANCES,
    MENU_INVENTORY,
    MENU_SALES,
    MENU_SETTINGS,
)
from core.db_init import init_db
from core.mobile_styles import apply_mobile_styles
from core.simple_auth import login_form, require_auth
from core.store import load_state
from ui.sidebar import render_backup, render_sidebar_menu

# Import page render functions
from page_modules import crm, dashboard, finances, inventory, sales, settings

logging.basicConfig(level=LOG_LEVEL, format="[%(levelname)s] %(name)s: %(message)s")

st.set_page_config(
    page_title=APP_NAME,
    page_icon="\U0001F6D2",
    layout="wide",
)

apply_mobile_styles()


# Database connection is cached to avoid reconnecting on every interaction
@st.cache_resource
def get_db_connection():
    return init_db()


conn = get_db_connection()

# Collections are loaded once per browser session and owned by this holder
if "app_state" not in st.session_state:
    st.session_state.app_state = load_state(conn)
if "cart" not in st.session_state:
    st.session_state.cart = []
state = st.session_state.app_state

if not require_auth(state):
    login_form(conn, state)
    st.stop()

menu = render_sidebar_menu(conn, state)
render_backup(state)

pages = {
    MENU_DASHBOARD: lambda: dashboard.render(conn, state),
    MENU_SALES: lambda: sales.render(conn, state),
    MENU_INVENTORY: lambda: inventory.render(conn, state),
    MENU_CUSTOMERS: lambda: crm.render(conn, state),
    MENU_FINANCES: lambda: finances.render(conn, state),
    MENU_SETTINGS: lambda: settings.render(conn, state),
}

if menu not in pages:
    menu = MENU_DASHBOARD
pages[menu]()
