"""pt-BR number and date formatting used by the assistant texts and exports."""

from __future__ import annotations

from datetime import date

MONTH_ABBREVIATIONS = ["jan.", "fev.", "mar.", "abr.", "mai.", "jun.", "jul.", "ago.", "set.", "out.", "nov.", "dez."]


def format_number(value: float, decimals: int = 2) -> str:
    """``1234.5`` -> ``"1.234,50"``."""
    text = f"{value:,.{decimals}f}"
    return text.replace(",", "_").replace(".", ",").replace("_", ".")


def format_brl(value: float) -> str:
    """``1234.5`` -> ``"R$ 1.234,50"`` (negative values keep the sign in front)."""
    if value < 0:
        return f"-R$ {format_number(abs(value))}"
    return f"R$ {format_number(value)}"


def format_percent(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%"


def month_label(day: date) -> str:
    return f"{MONTH_ABBREVIATIONS[day.month - 1]} de {day.year}"


def format_date(day: date) -> str:
    return day.strftime("%d/%m/%Y")
