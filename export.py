"""CSV and plain-text exports of a user's transactions and budgets."""

from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

import pandas as pd

from formatting import format_brl, format_date
from schemas import BudgetRecord, FinancialSummary, TransactionRecord

TRANSACTION_COLUMNS = ["Data", "Tipo", "Categoria", "Descrição", "Valor (R$)", "Data de Criação"]
BUDGET_COLUMNS = ["Categoria", "Limite", "Gasto", "Período"]

TYPE_LABELS = {"income": "Receita", "expense": "Despesa"}
PERIOD_LABELS = {"monthly": "Mensal", "weekly": "Semanal"}

RULE = "═" * 55
THIN_RULE = "─" * 55


def transactions_export_frame(transactions: Sequence[TransactionRecord]) -> pd.DataFrame:
    rows = [
        {
            "Data": format_date(t.date),
            "Tipo": TYPE_LABELS[t.type],
            "Categoria": t.category,
            "Descrição": t.description or "",
            "Valor (R$)": round(t.amount, 2),
            "Data de Criação": t.created_at.strftime("%d/%m/%Y %H:%M:%S"),
        }
        for t in transactions
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


def budgets_export_frame(budgets: Sequence[BudgetRecord]) -> pd.DataFrame:
    rows = [
        {
            "Categoria": b.category,
            "Limite": b.limit,
            "Gasto": b.spent,
            "Período": PERIOD_LABELS[b.period],
        }
        for b in budgets
    ]
    return pd.DataFrame(rows, columns=BUDGET_COLUMNS)


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    """UTF-8 with BOM so spreadsheet apps pick up the accents."""
    return df.to_csv(index=False, float_format="%.2f").encode("utf-8-sig")


def export_filename(prefix: str, day: Optional[date] = None, extension: str = "csv") -> str:
    return f"{prefix}_{(day or date.today()).isoformat()}.{extension}"


def _budget_status(pct: float) -> str:
    if pct > 100:
        return "🔴 Ultrapassado"
    if pct > 80:
        return "🟡 Atenção"
    return "🟢 OK"


def monthly_report(
    transactions: Sequence[TransactionRecord],
    budgets: Sequence[BudgetRecord],
    summary: FinancialSummary,
    day: Optional[date] = None,
) -> str:
    """Plain-text monthly report: summary, budget status and the transaction list."""
    lines = [
        RULE,
        "           RELATÓRIO FINANCEIRO MENSAL",
        RULE,
        f"Data: {format_date(day or date.today())}",
        "",
        "📊 RESUMO FINANCEIRO",
        THIN_RULE,
        f"Receitas Totais:     {format_brl(summary.total_income)}",
        f"Despesas Totais:     {format_brl(summary.total_expenses)}",
        f"Saldo:               {format_brl(summary.balance)}",
        f"Taxa de Poupança:    {summary.savings_rate:.1f}%",
        "",
    ]

    if budgets:
        lines += ["🎯 ORÇAMENTOS", THIN_RULE]
        for b in budgets:
            pct = b.spent / b.limit * 100
            lines.append(f"{b.category}: {_budget_status(pct)}")
            lines.append(f"  Limite: {format_brl(b.limit)} | Gasto: {format_brl(b.spent)} ({pct:.1f}%)")
        lines.append("")

    lines += ["💰 TRANSAÇÕES", THIN_RULE]
    for kind, heading in (("income", "RECEITAS:"), ("expense", "DESPESAS:")):
        selected = [t for t in transactions if t.type == kind]
        if selected:
            lines.append(heading)
            lines += [f"  {format_date(t.date)} | {t.category} | {format_brl(t.amount)}" for t in selected]
            lines.append("")

    lines += [RULE, "Gerado por Gasto Pessoal - Gestão Financeira", RULE]
    return "\n".join(lines)
