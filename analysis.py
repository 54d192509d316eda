"""Aggregations over a user's transactions: category patterns, monthly trends, summaries.

Every function here is pure: it reads the records it is given plus an explicit
reference day ``now`` (today when omitted) and never touches the store.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

import pandas as pd

from formatting import month_label
from schemas import (
    BudgetRecord,
    FinancialSummary,
    ScheduledExpenseRecord,
    SpendingPattern,
    TransactionRecord,
    TrendPoint,
)

logger = logging.getLogger(__name__)

TREND_WINDOW_MONTHS = 3
TREND_UP = 1.1
TREND_DOWN = 0.9
TRAILING_MONTHS = 6
UPCOMING_WINDOW_DAYS = 7

FRAME_COLUMNS = ["ID", "Date", "Type", "Category", "Amount", "Description"]


def _today(now: Optional[date] = None) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    return now


def add_months(day: date, months: int) -> date:
    """Shift a first-of-month date by whole calendar months."""
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def month_bounds(day: date) -> tuple[date, date]:
    start = day.replace(day=1)
    end = add_months(start, 1) - timedelta(days=1)
    return start, end


def transactions_frame(transactions: Iterable[TransactionRecord]) -> pd.DataFrame:
    """
    Canonical DataFrame used by every aggregation.

    One row per transaction in input order, ``Amount`` always positive and
    ``Type`` telling income from expense.
    """
    rows = [
        {
            "ID": t.id,
            "Date": t.date,
            "Type": t.type,
            "Category": t.category,
            "Amount": float(t.amount),
            "Description": t.description or "",
        }
        for t in transactions
    ]
    if not rows:
        df = pd.DataFrame({col: pd.Series(dtype="object") for col in FRAME_COLUMNS})
        df["Date"] = pd.Series(dtype="datetime64[ns]")
        df["Amount"] = pd.Series(dtype="float64")
        df["Month"] = pd.Series(dtype="object")
        return df

    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    df["Date"] = pd.to_datetime(df["Date"])
    df["Month"] = df["Date"].dt.to_period("M").astype(str)
    df["Amount"] = pd.to_numeric(df["Amount"], errors="coerce").fillna(0.0)
    return df


def _between(df: pd.DataFrame, start: date, end: date) -> pd.DataFrame:
    mask = (df["Date"] >= pd.Timestamp(start)) & (df["Date"] <= pd.Timestamp(end))
    return df.loc[mask]


def _classify_trend(recent_monthly: float, older_monthly: float) -> str:
    if recent_monthly > older_monthly * TREND_UP:
        return "increasing"
    if recent_monthly < older_monthly * TREND_DOWN:
        return "decreasing"
    return "stable"


def analyze_spending_patterns(
    transactions: Sequence[TransactionRecord],
    total_income: float,
    now: Optional[date] = None,
) -> List[SpendingPattern]:
    """
    Group expenses by exact category and classify each category's trend.

    The trend compares the monthly average of the last three calendar months
    (from the first day of the month three months back) with the monthly
    average of everything older.
    """
    today = _today(now)
    df = transactions_frame(transactions)
    expenses = df[df["Type"] == "expense"]
    if expenses.empty:
        return []

    boundary = add_months(today.replace(day=1), -TREND_WINDOW_MONTHS)
    boundary_ts = pd.Timestamp(boundary)
    older_months = max(1, (today - boundary).days // 30)

    recent_totals = expenses[expenses["Date"] >= boundary_ts].groupby("Category", sort=False)["Amount"].sum()
    older_totals = expenses[expenses["Date"] < boundary_ts].groupby("Category", sort=False)["Amount"].sum()
    by_category = expenses.groupby("Category", sort=False)["Amount"].agg(["sum", "count"])

    patterns = []
    for category, row in by_category.iterrows():
        total = float(row["sum"])
        count = int(row["count"])
        recent_monthly = float(recent_totals.get(category, 0.0)) / TREND_WINDOW_MONTHS
        older_monthly = float(older_totals.get(category, 0.0)) / older_months
        patterns.append(
            SpendingPattern(
                category=str(category),
                total=total,
                average=total / count if count else 0.0,
                count=count,
                trend=_classify_trend(recent_monthly, older_monthly),
                percentage_of_income=(total / total_income) * 100 if total_income > 0 else 0.0,
            )
        )

    logger.debug("Computed %d spending patterns (boundary %s)", len(patterns), boundary)
    return sorted(patterns, key=lambda p: p.total, reverse=True)


def analyze_trends(transactions: Sequence[TransactionRecord], now: Optional[date] = None) -> List[TrendPoint]:
    """Income, expenses and savings rate for each of the trailing six calendar months, oldest first."""
    today = _today(now)
    df = transactions_frame(transactions)
    current_start = today.replace(day=1)

    points = []
    for offset in range(TRAILING_MONTHS - 1, -1, -1):
        start, end = month_bounds(add_months(current_start, -offset))
        month_df = _between(df, start, end)
        income = float(month_df.loc[month_df["Type"] == "income", "Amount"].sum())
        expenses = float(month_df.loc[month_df["Type"] == "expense", "Amount"].sum())
        savings = income - expenses
        points.append(
            TrendPoint(
                period=month_label(start),
                income=income,
                expenses=expenses,
                savings=savings,
                savings_rate=(savings / income) * 100 if income > 0 else 0.0,
            )
        )
    return points


def financial_summary(transactions: Sequence[TransactionRecord], now: Optional[date] = None) -> FinancialSummary:
    """Totals for the current calendar month."""
    start, end = month_bounds(_today(now))
    month_df = _between(transactions_frame(transactions), start, end)

    total_income = float(month_df.loc[month_df["Type"] == "income", "Amount"].sum())
    total_expenses = float(month_df.loc[month_df["Type"] == "expense", "Amount"].sum())
    balance = total_income - total_expenses
    savings = max(0.0, balance)

    return FinancialSummary(
        total_income=total_income,
        total_expenses=total_expenses,
        balance=balance,
        savings=savings,
        savings_rate=(savings / total_income) * 100 if total_income > 0 else 0.0,
    )


def month_expenses_by_category(transactions: Sequence[TransactionRecord], now: Optional[date] = None) -> pd.Series:
    """Expense totals per category for the current calendar month."""
    start, end = month_bounds(_today(now))
    month_df = _between(transactions_frame(transactions), start, end)
    return month_df[month_df["Type"] == "expense"].groupby("Category", sort=False)["Amount"].sum()


def budget_spent(budget: BudgetRecord, transactions: Sequence[TransactionRecord], now: Optional[date] = None) -> float:
    """Spent amount of a budget over its current period (calendar month or ISO week)."""
    today = _today(now)
    if budget.period == "weekly":
        start = today - timedelta(days=today.weekday())
        end = start + timedelta(days=6)
    else:
        start, end = month_bounds(today)

    period_df = _between(transactions_frame(transactions), start, end)
    spent = period_df.loc[(period_df["Type"] == "expense") & (period_df["Category"] == budget.category), "Amount"].sum()
    return float(spent)


def with_spent(budgets: Sequence[BudgetRecord], transactions: Sequence[TransactionRecord], now: Optional[date] = None) -> List[BudgetRecord]:
    return [b.model_copy(update={"spent": budget_spent(b, transactions, now)}) for b in budgets]


def income_variation(amounts: Sequence[float]) -> float:
    """Coefficient of variation (population standard deviation over mean)."""
    if len(amounts) == 0:
        return 0.0
    values = pd.Series(list(amounts), dtype="float64")
    mean = float(values.mean())
    if mean <= 0:
        return 0.0
    return float(values.std(ddof=0)) / mean


def days_until(day: date, now: Optional[date] = None) -> int:
    """Whole days from ``now`` to ``day``; negative when overdue."""
    return (day - _today(now)).days


def upcoming_scheduled(
    expenses: Sequence[ScheduledExpenseRecord],
    now: Optional[date] = None,
    window_days: int = UPCOMING_WINDOW_DAYS,
) -> List[ScheduledExpenseRecord]:
    """Open scheduled expenses due between today and ``window_days`` ahead, soonest first."""
    today = _today(now)
    due = [e for e in expenses if not e.is_completed and 0 <= days_until(e.scheduled_date, today) <= window_days]
    return sorted(due, key=lambda e: e.scheduled_date)


def overdue_scheduled(expenses: Sequence[ScheduledExpenseRecord], now: Optional[date] = None) -> List[ScheduledExpenseRecord]:
    today = _today(now)
    return sorted((e for e in expenses if not e.is_completed and e.scheduled_date < today), key=lambda e: e.scheduled_date)
