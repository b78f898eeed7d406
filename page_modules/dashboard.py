"""Dashboard page with sales overview and stock alerts."""
import pandas as pd
import plotly.express as px
import streamlit as st

from core.analytics import dashboard_stats, revenue_by_day, stock_alerts
from core.constants import MENU_INVENTORY, MENU_SALES
from ui.components import money


def render(conn, state):
    """Render the dashboard page."""
    st.header(f"\U0001F4CA {state.shop_config.name}")
    stats = dashboard_stats(state.sales, state.expenses, state.products, state.customers)

    if st.button("\U0001F6D2 New sale", type="primary"):
        st.session_state.menu_jump = MENU_SALES
        st.session_state.sale_creating = True
        st.rerun()

    # Row 1: Money
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Sales today", money(stats.today_revenue, state))
    col2.metric("Total revenue", money(stats.total_revenue, state))
    col3.metric("Expenses", money(stats.total_expenses, state))
    col4.metric("Profit", money(stats.profit, state))

    # Row 2: Activity
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Average ticket", money(stats.average_ticket, state))
    col2.metric("Sales", stats.sales_count)
    col3.metric("Customers", stats.customer_count)
    col4.metric(
        "Stock alerts",
        stats.low_stock_count + stats.out_of_stock_count,
        f"{stats.out_of_stock_count} out of stock",
        delta_color="off",
    )

    st.markdown("---")

    # Revenue over the last 7 days (Bar chart)
    st.subheader("\U0001F4C8 Last 7 days")
    chart_df = pd.DataFrame(revenue_by_day(state.sales), columns=["day", "revenue"])
    chart_df["label"] = pd.to_datetime(chart_df["day"]).dt.strftime("%a %d/%m")
    fig = px.bar(
        chart_df,
        x="label",
        y="revenue",
        labels={"label": "Day", "revenue": f"Revenue ({state.shop_config.currency})"},
        color_discrete_sequence=["#2563EB"],
    )
    st.plotly_chart(fig, width="stretch")

    col_left, col_right = st.columns(2)
    with col_left:
        st.subheader("\U0001F3C6 Top products")
        if stats.top_products:
            for rank, product in enumerate(stats.top_products, start=1):
                st.write(f"**{rank}. {product.name}** · {product.quantity} sold")
        else:
            st.info("No sales yet")

    with col_right:
        st.subheader("\U0001F6A8 Stock alerts")
        alerts = stock_alerts(state.products)
        rows = [
            {"Name": p.name, "Category": p.category, "Stock": p.stock, "Status": "Out of stock"}
            for p in alerts.out_of_stock
        ] + [
            {"Name": p.name, "Category": p.category, "Stock": p.stock, "Status": "Low"}
            for p in sorted(alerts.low_stock, key=lambda p: p.stock)
        ]
        if rows:
            st.dataframe(pd.DataFrame(rows), width="stretch", hide_index=True)
            if st.button("Open inventory"):
                st.session_state.menu_jump = MENU_INVENTORY
                st.rerun()
        else:
            st.info("Stock levels are fine")

    # Recent activity (last 5 sales)
    st.subheader("\U0001F501 Recent sales")
    recent = state.sales[:5]
    if recent:
        recent_df = pd.DataFrame(
            [
                {
                    "Sale": f"#{s.id}",
                    "Customer": s.customer_name or "",
                    "Total": money(s.total, state),
                    "Payment": s.payment_method.value,
                    "Status": s.status.value,
                }
                for s in recent
            ]
        )
        st.dataframe(recent_df, width="stretch", hide_index=True)
    else:
        st.info("No recent activity")
