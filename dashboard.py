# dashboard.py: plotly figures and the KPI row used by the streamlit app

from typing import Sequence

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from analysis import transactions_frame
from formatting import format_brl, format_percent
from investments import growth_table
from schemas import BudgetRecord, FinancialSummary, TransactionRecord, TrendPoint

INCOME_COLOR = "#4CAF50"
EXPENSE_COLOR = "#FF5252"
SAVINGS_COLOR = "#2196F3"
SAVINGS_TARGET = 20


def kpis(summary: FinancialSummary):
    """
    Top-level metrics for the current month.
    """
    col1, col2, col3, col4 = st.columns(4)

    col1.metric("💰 Receitas", format_brl(summary.total_income))
    col2.metric("💸 Despesas", format_brl(summary.total_expenses), delta=f"-{format_brl(summary.total_expenses)}", delta_color="inverse")
    col3.metric("📊 Saldo", format_brl(summary.balance))
    col4.metric(
        "📉 Taxa de Poupança",
        format_percent(summary.savings_rate),
        delta=f"Meta: {SAVINGS_TARGET}%",
        help="Economia do mês dividida pela receita do mês.",
    )

    # Share of income already spent
    st.caption("Renda comprometida no mês")
    progress = min(1.0, summary.total_expenses / summary.total_income) if summary.total_income > 0 else 0
    st.progress(progress)


def trend_chart(points: Sequence[TrendPoint]):
    """
    Grouped bars of income vs expenses with the savings line, one group per month.
    """
    periods = [p.period for p in points]

    fig = go.Figure()
    fig.add_trace(go.Bar(x=periods, y=[p.income for p in points], name="Receitas", marker_color=INCOME_COLOR))
    fig.add_trace(go.Bar(x=periods, y=[p.expenses for p in points], name="Despesas", marker_color=EXPENSE_COLOR))
    fig.add_trace(
        go.Scatter(x=periods, y=[p.savings for p in points], name="Economia", mode="lines+markers", line=dict(color=SAVINGS_COLOR))
    )

    fig.update_layout(barmode="group", title="Receitas vs Despesas (6 meses)", height=400)
    return fig


def category_donut(transactions: Sequence[TransactionRecord]):
    """
    Donut chart of expenses by category.
    """
    df = transactions_frame(transactions)
    spend_df = df[df["Type"] == "expense"]
    by_cat = spend_df.groupby("Category", sort=False)["Amount"].sum().reset_index()

    fig = px.pie(by_cat, values="Amount", names="Category", hole=0.4, title="Despesas por Categoria")
    fig.update_traces(textposition="inside", textinfo="percent+label")
    return fig


def budget_frame(budgets: Sequence[BudgetRecord]) -> pd.DataFrame:
    rows = [
        {
            "Categoria": b.category,
            "Limite": b.limit,
            "Gasto": b.spent,
            "Uso (%)": (b.spent / b.limit) * 100 if b.limit > 0 else 0.0,
        }
        for b in budgets
    ]
    return pd.DataFrame(rows, columns=["Categoria", "Limite", "Gasto", "Uso (%)"])


def budget_progress(budgets: Sequence[BudgetRecord]):
    """
    Horizontal bars of spent vs limit per budget; overruns in red.
    """
    df = budget_frame(budgets)
    colors = [EXPENSE_COLOR if pct > 100 else ("#FFC107" if pct > 80 else INCOME_COLOR) for pct in df["Uso (%)"]]

    fig = go.Figure()
    fig.add_trace(go.Bar(y=df["Categoria"], x=df["Limite"], name="Limite", orientation="h", marker_color="#E0E0E0"))
    fig.add_trace(go.Bar(y=df["Categoria"], x=df["Gasto"], name="Gasto", orientation="h", marker_color=colors))

    fig.update_layout(barmode="overlay", title="Orçamentos", height=max(250, 60 * len(df) + 120))
    return fig


def investment_growth(initial: float, monthly: float, annual_rate: float, years: int):
    """
    Area chart of the invested amount vs projected value, year by year.
    """
    table = growth_table(initial, monthly, annual_rate, years)

    fig = go.Figure()
    fig.add_trace(go.Scatter(x=table["Year"], y=table["Value"], name="Valor Projetado", fill="tozeroy", line=dict(color=INCOME_COLOR)))
    fig.add_trace(go.Scatter(x=table["Year"], y=table["Invested"], name="Total Investido", fill="tozeroy", line=dict(color=SAVINGS_COLOR)))

    fig.update_layout(title="Projeção do Investimento", xaxis_title="Anos", yaxis_title="R$", height=350)
    return fig
