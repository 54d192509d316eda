"""Compound-growth projections for the investment simulator."""

from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from schemas import InvestmentProjection

DEFAULT_HORIZONS = (1, 5, 10, 20, 30)


def _future_value(initial: float, monthly: float, monthly_rate: float, months: int) -> float:
    # FV = PMT * (((1 + r)^n - 1) / r) + PV * (1 + r)^n
    if monthly_rate == 0:
        annuity = monthly * months
    else:
        annuity = monthly * (((1 + monthly_rate) ** months - 1) / monthly_rate) if monthly > 0 else 0.0
    principal = initial * (1 + monthly_rate) ** months if initial > 0 else 0.0
    return annuity + principal


def calculate_investment_projection(
    initial: float,
    monthly: float,
    annual_rate: float,
    years: Iterable[int] = DEFAULT_HORIZONS,
) -> List[InvestmentProjection]:
    """
    Compound growth of an initial amount plus fixed monthly contributions.
    ``annual_rate`` is a fraction (0.12 for 12% a.a.), compounded monthly.
    """
    monthly_rate = annual_rate / 12
    projections = []
    for year in years:
        months = year * 12
        total_value = _future_value(initial, monthly, monthly_rate, months)
        total_invested = initial + monthly * months
        earnings = total_value - total_invested
        projections.append(
            InvestmentProjection(
                year=year,
                months=months,
                total_invested=total_invested,
                total_value=total_value,
                earnings=earnings,
                return_rate=(earnings / total_invested) * 100 if total_invested > 0 else 0.0,
            )
        )
    return projections


def growth_table(initial: float, monthly: float, annual_rate: float, max_years: int) -> pd.DataFrame:
    """Year-by-year invested vs. value, year 0 included. Feeds the growth chart."""
    if max_years < 0:
        return pd.DataFrame(columns=["Year", "Invested", "Value", "Earnings"])

    rows = [
        {
            "Year": p.year,
            "Invested": p.total_invested,
            "Value": p.total_value,
            "Earnings": p.earnings,
        }
        for p in calculate_investment_projection(initial, monthly, annual_rate, range(max_years + 1))
    ]
    return pd.DataFrame(rows)
