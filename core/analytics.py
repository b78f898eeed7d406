"""Dashboard and finance figures derived from the current collections.

Nothing here is cached: each view recomputes from the latest state.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from core.constants import LOW_STOCK_THRESHOLD, REVENUE_CHART_DAYS, TOP_PRODUCTS_LIMIT
from core.models import Customer, Expense, Product, Sale, SaleStatus, local_now

SALE_COLUMNS = ["id", "date", "total", "status", "customer_id", "payment_method"]
ITEM_COLUMNS = ["sale_id", "product_id", "name", "price", "quantity"]


@dataclass(frozen=True)
class FinancialSummary:
    income: float
    expenses: float
    net: float


@dataclass(frozen=True)
class StockAlerts:
    low_stock: List[Product]
    out_of_stock: List[Product]


@dataclass(frozen=True)
class TopProduct:
    product_id: str
    name: str
    quantity: int


@dataclass(frozen=True)
class DashboardStats:
    today_revenue: float
    total_revenue: float
    total_expenses: float
    profit: float
    average_ticket: float
    sales_count: int
    customer_count: int
    low_stock_count: int
    out_of_stock_count: int
    top_products: List[TopProduct]


def _iso_day(day: Optional[date]) -> str:
    return (day or local_now().date()).isoformat()


def sales_frame(sales: Sequence[Sale]) -> pd.DataFrame:
    rows = [
        {
            "id": s.id,
            "date": s.date,
            "total": float(s.total),
            "status": s.status.value,
            "customer_id": s.customer_id,
            "payment_method": s.payment_method.value,
        }
        for s in sales
    ]
    return pd.DataFrame(rows, columns=SALE_COLUMNS)


def items_frame(sales: Sequence[Sale]) -> pd.DataFrame:
    rows = [
        {
            "sale_id": s.id,
            "product_id": item.product_id,
            "name": item.name,
            "price": float(item.price),
            "quantity": int(item.quantity),
        }
        for s in sales
        for item in s.items
    ]
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def expenses_frame(expenses: Sequence[Expense]) -> pd.DataFrame:
    rows = [e.to_dict() for e in expenses]
    return pd.DataFrame(rows, columns=["id", "date", "description", "amount", "category"])


def daily_revenue(sales: Sequence[Sale], today: Optional[date] = None) -> float:
    """Sum of sale totals dated today. Refunded sales are counted too."""
    df = sales_frame(sales)
    if df.empty:
        return 0.0
    todays = df[df["date"].str.startswith(_iso_day(today))]
    return float(todays["total"].sum())


def total_revenue(sales: Sequence[Sale]) -> float:
    df = sales_frame(sales)
    return float(df["total"].sum()) if not df.empty else 0.0


def financial_summary(sales: Sequence[Sale], expenses: Sequence[Expense]) -> FinancialSummary:
    """Income from non-refunded sales, minus every recorded expense."""
    df = sales_frame(sales)
    active = df[df["status"] != SaleStatus.REFUNDED.value]
    income = float(active["total"].sum()) if not active.empty else 0.0
    exp_df = expenses_frame(expenses)
    spent = float(exp_df["amount"].sum()) if not exp_df.empty else 0.0
    return FinancialSummary(income=income, expenses=spent, net=income - spent)


def stock_alerts(products: Sequence[Product], threshold: int = LOW_STOCK_THRESHOLD) -> StockAlerts:
    managed = [p for p in products if p.manage_stock]
    return StockAlerts(
        low_stock=[p for p in managed if 0 < p.stock < threshold],
        out_of_stock=[p for p in managed if p.stock == 0],
    )


def top_products(sales: Sequence[Sale], limit: int = TOP_PRODUCTS_LIMIT) -> List[TopProduct]:
    """Units sold per product across every sale, refunded ones included."""
    df = items_frame(sales)
    if df.empty:
        return []
    tally = (
        df.groupby("product_id", sort=False)
        .agg(name=("name", "first"), quantity=("quantity", "sum"))
        .reset_index()
        .sort_values("quantity", ascending=False, kind="stable")
        .head(limit)
    )
    return [
        TopProduct(product_id=str(row.product_id), name=str(row.name), quantity=int(row.quantity))
        for row in tally.itertuples(index=False)
    ]


def average_ticket(sales: Sequence[Sale]) -> float:
    if not sales:
        return 0.0
    return total_revenue(sales) / len(sales)


def revenue_by_day(
    sales: Sequence[Sale], today: Optional[date] = None, days: int = REVENUE_CHART_DAYS
) -> List[Tuple[str, float]]:
    """(ISO day, revenue) for the last `days` days, oldest first."""
    end = today or local_now().date()
    window = [(end - timedelta(days=offset)).isoformat() for offset in reversed(range(days))]
    df = sales_frame(sales)
    if df.empty:
        return [(day, 0.0) for day in window]
    per_day = df.assign(day=df["date"].str[:10]).groupby("day")["total"].sum()
    return [(day, float(per_day.get(day, 0.0))) for day in window]


def dashboard_stats(
    sales: Sequence[Sale],
    expenses: Sequence[Expense],
    products: Sequence[Product],
    customers: Sequence[Customer],
    today: Optional[date] = None,
) -> DashboardStats:
    revenue = total_revenue(sales)
    exp_df = expenses_frame(expenses)
    spent = float(exp_df["amount"].sum()) if not exp_df.empty else 0.0
    alerts = stock_alerts(products)
    return DashboardStats(
        today_revenue=daily_revenue(sales, today),
        total_revenue=revenue,
        total_expenses=spent,
        profit=revenue - spent,
        average_ticket=average_ticket(sales),
        sales_count=len(sales),
        customer_count=len(customers),
        low_stock_count=len(alerts.low_stock),
        out_of_stock_count=len(alerts.out_of_stock),
        top_products=top_products(sales),
    )
