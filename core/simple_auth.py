"""Local session gate. Not a security boundary: any non-blank password is accepted."""
import logging
import uuid
from datetime import datetime
from typing import Optional

import streamlit as st

from core import services, store
from core.errors import StoragePersistFailure, ValidationError
from core.models import AppState, Session, local_now

logger = logging.getLogger(__name__)


def login(company_name: str, password: str, now: Optional[datetime] = None) -> Session:
    """Open a session for `company_name`."""
    company_name = (company_name or "").strip()
    if not company_name or not password:
        raise ValidationError("Please fill in every field")
    now = now or local_now()
    return Session(company_name=company_name, last_login=now.isoformat(), token=uuid.uuid4().hex)


def start_session(conn, state: AppState, company_name: str, password: str, registering: bool = False) -> Session:
    """Log in, remember the session in the store, and name the shop on registration."""
    session = login(company_name, password)
    if registering:
        services.update_shop_config(conn, state, name=session.company_name)
    state.session = session
    try:
        store.save_session(conn, session)
    except StoragePersistFailure:
        logger.exception("Failed to remember session")
    return session


def login_form(conn, state: AppState):
    """Display the login / registration form."""
    if "show_register" not in st.session_state:
        st.session_state.show_register = False
    registering = st.session_state.show_register
    if st.session_state.get("logout_msg"):
        st.toast(st.session_state.pop("logout_msg"), icon="\U0001F512")

    st.markdown("### \U0001F510 " + ("Create your shop" if registering else "Login"))
    with st.form("login_form", clear_on_submit=False):
        company = st.text_input("Company name")
        password = st.text_input("Password", type="password")
        submit = st.form_submit_button("Register" if registering else "Login", width="stretch")

        if submit:
            try:
                start_session(conn, state, company, password, registering=registering)
            except ValidationError as e:
                st.warning(f"⚠️ {e}")
            else:
                st.rerun()

    label = "\U0001F510 Already registered? Login here" if registering else "\U0001F4DD New shop? Register here"
    if st.button(label):
        st.session_state.show_register = not registering
        st.rerun()


def logout(conn, state: AppState):
    """Forget the current session."""
    state.session = None
    try:
        store.clear_session(conn)
    except StoragePersistFailure:
        logger.exception("Failed to clear stored session")


def require_auth(state: AppState) -> bool:
    """True when a session exists (restored from the store or just created)."""
    return state.session is not None


def get_current_user(state: AppState) -> dict:
    session = state.session
    return {
        "company_name": session.company_name if session else None,
        "last_login": session.last_login if session else None,
    }
