"""Settings page: shop details, backup restore and data reset."""
import streamlit as st

from core.errors import ImportParseError, StoragePersistFailure
from core.services import reset_all_data, restore_backup, update_shop_config


def render(conn, state):
    """Render the settings page."""
    st.header("⚙️ Settings")
    if st.session_state.get("settings_msg"):
        st.success(st.session_state.pop("settings_msg"))

    config = state.shop_config
    with st.form("shop_config_form"):
        name = st.text_input("Shop name", value=config.name)
        phone = st.text_input("Phone", value=config.phone)
        address = st.text_input("Address", value=config.address)
        nif = st.text_input("NIF (tax id)", value=config.nif)
        currency = st.text_input("Currency", value=config.currency)
        if st.form_submit_button("\U0001F4BE Save"):
            update_shop_config(conn, state, name=name, phone=phone, address=address, nif=nif, currency=currency)
            st.session_state["settings_msg"] = "Settings saved"
            st.rerun()

    st.divider()
    st.subheader("Restore backup")
    upload = st.file_uploader("Backup file (.json)", type=["json"])
    if upload is not None:
        confirmed = st.checkbox("This replaces all current data. I want to continue.")
        if st.button("Restore", disabled=not confirmed):
            try:
                st.session_state.app_state = restore_backup(conn, state, upload.getvalue())
            except ImportParseError as e:
                st.error(f"❌ Import failed, nothing was changed: {e}")
            except StoragePersistFailure as e:
                st.error(f"❌ {e}")
            else:
                st.session_state.cart = []
                st.session_state["settings_msg"] = "Data restored"
                st.rerun()

    st.divider()
    st.subheader("Danger zone")
    confirm = st.text_input("Type ERASE to delete all data permanently")
    if st.button("\U0001F5D1️ Erase all data", disabled=confirm != "ERASE"):
        try:
            st.session_state.app_state = reset_all_data(conn)
        except StoragePersistFailure as e:
            st.error(f"❌ {e}")
        else:
            st.session_state.cart = []
            st.rerun()
