"""Create and return a database connection (PostgreSQL or SQLite).
Table creation is delegated to `store.init_store(conn)`.
"""
import logging
import os
import sqlite3

import psycopg2
import streamlit as st

from core.constants import DB_PATH
from core.store import init_store

logger = logging.getLogger(__name__)


def init_db():
    """Initialize database connection.
    Uses PostgreSQL when Streamlit secrets provide credentials, SQLite otherwise.
    The connection is cached by app.py.
    """
    try:
        has_postgres = hasattr(st, "secrets") and "postgres" in st.secrets
    except Exception:
        # st.secrets raises when no secrets.toml exists
        logger.info("No Streamlit secrets found, using SQLite")
        has_postgres = False

    if has_postgres:
        try:
            conn = psycopg2.connect(
                host=st.secrets["postgres"]["host"],
                port=int(st.secrets["postgres"]["port"]),
                database=st.secrets["postgres"]["database"],
                user=st.secrets["postgres"]["user"],
                password=st.secrets["postgres"]["password"],
                sslmode="require",
                connect_timeout=10,
            )
            conn.autocommit = False
        except psycopg2.Error as e:
            logger.exception("PostgreSQL connection failed")
            st.error(f"⚠️ PostgreSQL connection failed: {str(e)}")
            # Do not fall back to SQLite when PostgreSQL secrets are provided.
            st.stop()
    else:
        conn = connect_sqlite(DB_PATH)

    init_store(conn)
    return conn


def connect_sqlite(path: str = DB_PATH) -> sqlite3.Connection:
    """Create local SQLite connection (ensures the data dir exists)."""
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)
    return sqlite3.connect(path, check_same_thread=False)
