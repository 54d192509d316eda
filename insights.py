"""
Rule-based insight generation on top of the analysis aggregates.

Insights are derived on demand and never persisted. Each rule below appends a
:class:`FinancialInsight` with a severity, an estimated monthly impact in BRL
and a fixed confidence score; :func:`generate_intelligent_recommendations`
merges and ranks them.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Sequence

from analysis import (
    analyze_spending_patterns,
    financial_summary,
    income_variation,
    month_expenses_by_category,
    transactions_frame,
)
from formatting import format_brl
from schemas import (
    BudgetRecord,
    FinancialInsight,
    FinancialSummary,
    InvestmentSuggestion,
    Recommendation,
    TransactionRecord,
)

logger = logging.getLogger(__name__)

SEVERITY_RANK = {"critical": 4, "high": 3, "medium": 2, "low": 1}

LOW_SAVINGS_RATE = 10
UNSTABLE_INCOME_CV = 0.3
HEAVY_CATEGORY_PCT = 30
SMALL_EXPENSE_AMOUNT = 50
SMALL_EXPENSE_MIN_COUNT = 10
SMALL_EXPENSE_INCOME_SHARE = 0.05


def analyze_financial_health(
    transactions: Sequence[TransactionRecord],
    total_income: float,
    total_expenses: float,
    savings_rate: float,
) -> List[FinancialInsight]:
    insights = []
    balance = total_income - total_expenses

    if savings_rate < LOW_SAVINGS_RATE:
        insights.append(
            FinancialInsight(
                type="risk_alert",
                title="Taxa de poupança muito baixa",
                description=(
                    f"Sua taxa de poupança atual é {savings_rate:.1f}%, muito abaixo do recomendado (20%). "
                    "Isso pode comprometer sua segurança financeira futura."
                ),
                severity="critical",
                impact=total_income * 0.1,
                confidence=90,
                recommendations=[
                    "Estabeleça uma meta de poupar pelo menos 20% da renda",
                    "Crie um fundo de emergência equivalente a 6 meses de despesas",
                    "Automatize transferências para poupança",
                    "Revise e corte despesas não essenciais",
                ],
                data={"savings_rate": savings_rate, "recommended": 20},
            )
        )

    if balance < 0:
        insights.append(
            FinancialInsight(
                type="risk_alert",
                title="Gastos superando receitas",
                description=(
                    "Você está gastando mais do que ganha. Isso é insustentável a longo prazo "
                    "e pode levar a dívidas."
                ),
                severity="critical",
                impact=abs(balance),
                confidence=100,
                recommendations=[
                    "Reduza despesas imediatamente",
                    "Identifique e corte gastos não essenciais",
                    "Considere aumentar sua renda",
                    "Crie um plano de recuperação financeira",
                ],
                data={"balance": balance, "deficit": abs(balance)},
            )
        )

    variation = income_variation([t.amount for t in transactions if t.type == "income"])
    if variation > UNSTABLE_INCOME_CV:
        insights.append(
            FinancialInsight(
                type="risk_alert",
                title="Renda instável detectada",
                description=(
                    f"Sua renda apresenta alta variação ({variation * 100:.1f}%). "
                    "Considere criar uma reserva maior para períodos de menor renda."
                ),
                severity="medium",
                impact=total_income * 0.2,
                confidence=70,
                recommendations=[
                    "Aumente seu fundo de emergência para 9-12 meses",
                    "Diversifique fontes de renda",
                    "Planeje gastos baseado na renda média, não máxima",
                    "Mantenha um orçamento conservador",
                ],
                data={"variation": variation},
            )
        )

    return insights


def identify_savings_opportunities(
    transactions: Sequence[TransactionRecord],
    budgets: Sequence[BudgetRecord],
    total_income: float,
    now: Optional[date] = None,
) -> List[FinancialInsight]:
    insights = []

    # Heavy categories that keep growing
    for pattern in analyze_spending_patterns(transactions, total_income, now):
        if pattern.percentage_of_income >= HEAVY_CATEGORY_PCT and pattern.trend == "increasing":
            potential = pattern.total * 0.15
            insights.append(
                FinancialInsight(
                    type="savings_opportunity",
                    title=f"Oportunidade de economia em {pattern.category}",
                    description=(
                        f"Você está gastando {pattern.percentage_of_income:.1f}% da sua renda em {pattern.category}, "
                        "e essa categoria está aumentando. Uma redução de 15% economizaria aproximadamente "
                        f"{format_brl(potential)} por mês."
                    ),
                    severity="high",
                    impact=potential,
                    confidence=75,
                    recommendations=[
                        f"Negocie melhores preços em {pattern.category}",
                        "Compare fornecedores e procure promoções",
                        "Considere alternativas mais econômicas",
                        "Estabeleça um limite mensal para esta categoria",
                    ],
                    data=pattern.model_dump(),
                )
            )

    # Small recurring expenses
    df = transactions_frame(transactions)
    small = df[(df["Type"] == "expense") & (df["Amount"] < SMALL_EXPENSE_AMOUNT)]
    if not small.empty:
        grouped = small.groupby("Category", sort=False)["Amount"].agg(["count", "sum"])
        for category, row in grouped.iterrows():
            count = int(row["count"])
            total = float(row["sum"])
            if count >= SMALL_EXPENSE_MIN_COUNT and total > total_income * SMALL_EXPENSE_INCOME_SHARE:
                insights.append(
                    FinancialInsight(
                        type="savings_opportunity",
                        title=f"Gastos pequenos recorrentes em {category}",
                        description=(
                            f"Você tem {count} transações pequenas em {category} somando {format_brl(total)}. "
                            "Pequenos gastos frequentes podem impactar significativamente seu orçamento."
                        ),
                        severity="medium",
                        impact=total * 0.2,
                        confidence=80,
                        recommendations=[
                            "Consolide pequenos gastos quando possível",
                            "Use um limite diário para gastos pequenos",
                            "Acompanhe esses gastos com mais atenção",
                            "Considere alternativas gratuitas ou mais baratas",
                        ],
                        data={"category": category, "count": count, "total": total},
                    )
                )

    # Budget overruns in the current calendar month
    month_spent = month_expenses_by_category(transactions, now)
    for budget in budgets:
        spent = float(month_spent.get(budget.category, 0.0))
        if spent > budget.limit:
            excess = spent - budget.limit
            insights.append(
                FinancialInsight(
                    type="risk_alert",
                    title=f"Orçamento ultrapassado: {budget.category}",
                    description=(
                        f"Você ultrapassou o orçamento de {budget.category} em {format_brl(excess)} "
                        f"({excess / budget.limit * 100:.1f}% acima do limite)."
                    ),
                    severity="high",
                    impact=excess,
                    confidence=100,
                    recommendations=[
                        "Revise gastos nesta categoria imediatamente",
                        "Ajuste o orçamento se necessário",
                        "Identifique gastos não essenciais para cortar",
                        "Compense em outras categorias",
                    ],
                    data={"budget_id": budget.id, "category": budget.category, "limit": budget.limit, "spent": spent, "excess": excess},
                )
            )

    return insights


def rank_insights(insights: Sequence[FinancialInsight]) -> List[FinancialInsight]:
    """Severity first, then impact, both descending; ties keep their order."""
    return sorted(insights, key=lambda i: (-SEVERITY_RANK[i.severity], -i.impact))


def generate_intelligent_recommendations(
    transactions: Sequence[TransactionRecord],
    budgets: Sequence[BudgetRecord],
    total_income: float,
    total_expenses: float,
    savings_rate: float,
    now: Optional[date] = None,
) -> List[FinancialInsight]:
    insights = analyze_financial_health(transactions, total_income, total_expenses, savings_rate)
    insights.extend(identify_savings_opportunities(transactions, budgets, total_income, now))
    logger.debug("Generated %d insights", len(insights))
    return rank_insights(insights)


def insights_for(
    transactions: Sequence[TransactionRecord],
    budgets: Sequence[BudgetRecord],
    now: Optional[date] = None,
) -> List[FinancialInsight]:
    """Insights using the current month's summary as income/expense baseline."""
    summary = financial_summary(transactions, now)
    return generate_intelligent_recommendations(
        transactions,
        budgets,
        summary.total_income,
        summary.total_expenses,
        summary.savings_rate,
        now,
    )


# --- Dashboard cards ---

def basic_recommendations(transactions: Sequence[TransactionRecord], summary: FinancialSummary) -> List[Recommendation]:
    """The three simple cards shown on the dashboard."""
    recommendations = []

    if summary.savings_rate < 20:
        recommendations.append(
            Recommendation(
                id="1",
                type="savings",
                title="Aumente sua taxa de poupança",
                description=(
                    f"Você está poupando apenas {summary.savings_rate:.1f}% da sua renda. "
                    "Recomendamos economizar pelo menos 20%."
                ),
                priority="high",
                action_items=[
                    "Revise despesas não essenciais",
                    "Estabeleça uma meta de poupança mensal",
                    "Automatize transferências para poupança",
                ],
            )
        )

    df = transactions_frame(transactions)
    by_category = df[df["Type"] == "expense"].groupby("Category", sort=False)["Amount"].sum()
    if not by_category.empty:
        top_category = by_category.idxmax()
        top_total = float(by_category.max())
        if top_total > summary.total_income * 0.3:
            share = top_total / summary.total_income * 100 if summary.total_income > 0 else 0.0
            recommendations.append(
                Recommendation(
                    id="2",
                    type="expense_reduction",
                    title=f"Reduza gastos em {top_category}",
                    description=(
                        f"Você está gastando {share:.1f}% da sua renda em {top_category}. Considere reduzir."
                    ),
                    priority="medium",
                    action_items=[
                        f"Revise gastos em {top_category}",
                        "Procure alternativas mais econômicas",
                        "Estabeleça um limite mensal para esta categoria",
                    ],
                )
            )

    if summary.savings > 1000:
        recommendations.append(
            Recommendation(
                id="3",
                type="investment",
                title="Considere investir suas economias",
                description=(
                    f"Você tem {format_brl(summary.savings)} disponíveis. "
                    "Considere investir para fazer seu dinheiro trabalhar para você."
                ),
                priority="medium",
                action_items=[
                    "Pesquise opções de investimento adequadas ao seu perfil",
                    "Considere investimentos de baixo risco para começar",
                    "Diversifique seus investimentos",
                ],
            )
        )

    return recommendations


INVESTMENT_CATALOGUE = [
    InvestmentSuggestion(
        id="1",
        type="conservative",
        name="Tesouro Selic",
        description="Investimento de baixo risco, ideal para reserva de emergência",
        expected_return=0.12,
        risk_level="low",
        min_amount=100,
    ),
    InvestmentSuggestion(
        id="2",
        type="moderate",
        name="CDB",
        description="Certificado de Depósito Bancário com boa rentabilidade",
        expected_return=0.14,
        risk_level="medium",
        min_amount=1000,
    ),
    InvestmentSuggestion(
        id="3",
        type="moderate",
        name="Fundos de Renda Fixa",
        description="Diversificação com gestão profissional",
        expected_return=0.13,
        risk_level="medium",
        min_amount=500,
    ),
    InvestmentSuggestion(
        id="4",
        type="aggressive",
        name="Ações e ETFs",
        description="Maior potencial de retorno, maior risco",
        expected_return=0.18,
        risk_level="high",
        min_amount=100,
    ),
]


def investment_suggestions(summary: FinancialSummary) -> List[InvestmentSuggestion]:
    return [s for s in INVESTMENT_CATALOGUE if summary.savings >= s.min_amount]
