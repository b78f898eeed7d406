"""Finances page: income/expense summary and expense log."""
import streamlit as st

from core.analytics import expenses_frame, financial_summary, sales_frame
from core.constants import DEFAULT_EXPENSE_CATEGORY, EXPENSE_CATEGORIES
from core.errors import PosError
from core.receipt import format_date
from core.services import record_expense, remove_expense
from ui.components import excel_download, money


def render(conn, state):
    """Render the finances page."""
    st.header("\U0001F4B8 Finances")
    summary = financial_summary(state.sales, state.expenses)
    col1, col2, col3 = st.columns(3)
    col1.metric("Income", money(summary.income, state), help="Refunded sales are excluded")
    col2.metric("Expenses", money(summary.expenses, state))
    col3.metric("Net", money(summary.net, state))

    with st.expander("➕ Record expense"):
        with st.form("expense_form", clear_on_submit=True):
            description = st.text_input("Description")
            category = st.selectbox(
                "Category",
                EXPENSE_CATEGORIES,
                index=EXPENSE_CATEGORIES.index(DEFAULT_EXPENSE_CATEGORY),
            )
            amount = st.number_input("Amount", min_value=0.0)
            submitted = st.form_submit_button("\U0001F4BE Save expense")
            if submitted:
                try:
                    record_expense(conn, state, description, amount, category)
                except PosError as e:
                    st.error(f"❌ {e}")
                else:
                    st.rerun()

    st.subheader("Expenses")
    if not state.expenses:
        st.info("No expenses recorded")
    for expense in state.expenses:
        col1, col2, col3 = st.columns([6, 3, 1])
        col1.write(f"**{expense.description}**")
        col1.caption(f"{expense.category} · {format_date(expense.date)}")
        col2.write(f"- {money(expense.amount, state)}")
        if col3.button("\U0001F5D1️", key=f"del_exp_{expense.id}"):
            remove_expense(conn, state, expense.id)
            st.rerun()

    st.divider()
    st.subheader("Export")
    col1, col2 = st.columns(2)
    with col1:
        sales_df = sales_frame(state.sales).rename(
            columns={
                "id": "Sale",
                "date": "Date",
                "total": "Total",
                "status": "Status",
                "customer_id": "Customer ID",
                "payment_method": "Payment",
            }
        )
        excel_download(sales_df, "sales", "sales_export.xlsx", "Export sales")
    with col2:
        exp_df = expenses_frame(state.expenses).rename(columns=str.title)
        excel_download(exp_df, "expenses", "expenses_export.xlsx", "Export expenses")
