"""Project-wide constants and configuration helpers."""
import os
from pathlib import Path
from typing import List
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Local development settings live in a .env file next to app.py
env_path = Path(__file__).resolve().parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path)

APP_NAME = "Gestor Ágil"

DB_PATH: str = os.getenv("GESTOR_DB_PATH", "data/gestor_agil.db")
LOG_LEVEL: str = os.getenv("GESTOR_LOG_LEVEL", "INFO").upper()
LOCAL_TZ = ZoneInfo(os.getenv("GESTOR_TIMEZONE", "Africa/Luanda"))

# Store slot keys (kept identical to the browser build so backups interoperate)
SLOT_PRODUCTS = "ga_products"
SLOT_CUSTOMERS = "ga_customers"
SLOT_SALES = "ga_sales"
SLOT_EXPENSES = "ga_expenses"
SLOT_SHOP_CONFIG = "ga_shop_config"
SLOT_SESSION = "ga_session"
DATA_SLOTS: List[str] = [
    SLOT_PRODUCTS,
    SLOT_CUSTOMERS,
    SLOT_SALES,
    SLOT_EXPENSES,
    SLOT_SHOP_CONFIG,
]

PRODUCT_CATEGORIES: List[str] = [
    "Alimentos",
    "Bebidas",
    "Roupas",
    "Serviços",
    "Eletrônicos",
    "Geral",
]
DEFAULT_PRODUCT_CATEGORY = "Geral"

EXPENSE_CATEGORIES: List[str] = [
    "Aluguer",
    "Stock",
    "Marketing",
    "Energia/Água",
    "Salários",
    "Transporte",
    "Outros",
]
DEFAULT_EXPENSE_CATEGORY = "Outros"

DEFAULT_SHOP_NAME = "Minha Loja"
DEFAULT_CURRENCY = "Kz"

LOW_STOCK_THRESHOLD: int = 10
TOP_PRODUCTS_LIMIT: int = 3
REVENUE_CHART_DAYS: int = 7

REFUND_REASON_PLACEHOLDER = "Sem motivo informado"
WALK_IN_CUSTOMER = "Consumidor"

# Sidebar menu labels (keep in sync across app and sidebar)
MENU_DASHBOARD = "\U0001F4CA Dashboard"
MENU_SALES = "\U0001F6D2 Sales"
MENU_INVENTORY = "\U0001F4E6 Inventory"
MENU_CUSTOMERS = "\U0001F465 Customers"
MENU_FINANCES = "\U0001F4B8 Finances"
MENU_SETTINGS = "⚙️ Settings"
MENU_ITEMS: List[str] = [
    MENU_DASHBOARD,
    MENU_SALES,
    MENU_INVENTORY,
    MENU_CUSTOMERS,
    MENU_FINANCES,
    MENU_SETTINGS,
]
