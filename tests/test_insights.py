from datetime import date

import pytest

from insights import (
    analyze_financial_health,
    basic_recommendations,
    generate_intelligent_recommendations,
    identify_savings_opportunities,
    insights_for,
    investment_suggestions,
    rank_insights,
    SEVERITY_RANK,
)
from schemas import FinancialInsight, FinancialSummary

NOW = date(2024, 7, 15)


def test_low_savings_rate_is_critical() -> None:
    insights = analyze_financial_health([], 1000.0, 950.0, 5.0)
    assert len(insights) == 1
    low = insights[0]
    assert low.severity == "critical"
    assert low.type == "risk_alert"
    assert low.confidence == 90
    assert low.impact == pytest.approx(100.0)


def test_deficit_outranks_low_savings() -> None:
    ranked = rank_insights(analyze_financial_health([], 1000.0, 1500.0, 0.0))
    assert [i.title for i in ranked] == ["Gastos superando receitas", "Taxa de poupança muito baixa"]
    assert ranked[0].impact == pytest.approx(500.0)
    assert ranked[0].confidence == 100


def test_unstable_income_detected(make_txn) -> None:
    txns = [
        make_txn("income", "Freelance", 50.0, date(2024, 6, 1)),
        make_txn("income", "Freelance", 150.0, date(2024, 7, 1)),
    ]
    insights = analyze_financial_health(txns, 150.0, 0.0, 100.0)
    assert [i.severity for i in insights] == ["medium"]
    assert insights[0].confidence == 70
    assert insights[0].data["variation"] == pytest.approx(0.5)


def test_heavy_growing_category(make_txn) -> None:
    txns = [
        make_txn("expense", "Moradia", 300.0, date(2024, 1, 10)),
        make_txn("expense", "Moradia", 600.0, date(2024, 5, 10)),
    ]
    insights = identify_savings_opportunities(txns, [], 1000.0, NOW)
    assert len(insights) == 1
    assert insights[0].severity == "high"
    assert insights[0].impact == pytest.approx(135.0)
    assert "Moradia" in insights[0].title


def test_category_at_thirty_percent_counts_as_heavy(make_txn) -> None:
    txns = [
        make_txn("expense", "Alimentação", 1000.0, date(2024, 1, 10)),
        make_txn("expense", "Alimentação", 2000.0, date(2024, 6, 10)),
    ]
    insights = identify_savings_opportunities(txns, [], 10000.0, NOW)
    assert [i.impact for i in insights] == [pytest.approx(450.0)]


def test_low_savings_scenario(make_txn) -> None:
    txns = [
        make_txn("income", "Salário", 5000.0, date(2024, 7, 1)),
        make_txn("expense", "Moradia", 4800.0, date(2024, 7, 2)),
    ]
    insights = insights_for(txns, [], NOW)
    assert insights[0].title == "Taxa de poupança muito baixa"
    assert insights[0].impact == pytest.approx(500.0)


@pytest.mark.parametrize("count, expected", [(10, 1), (9, 0)])
def test_small_recurring_expenses_need_ten(make_txn, count, expected) -> None:
    txns = [make_txn("expense", "Café", 20.0, date(2024, 7, 1 + i)) for i in range(count)]
    insights = identify_savings_opportunities(txns, [], 1000.0, NOW)
    assert len(insights) == expected
    if expected:
        assert insights[0].severity == "medium"
        assert insights[0].confidence == 80
        assert insights[0].impact == pytest.approx(40.0)


def test_budget_overrun_in_current_month(make_txn, make_budget) -> None:
    txns = [
        make_txn("expense", "Lazer", 150.0, date(2024, 7, 3)),
        make_txn("expense", "Lazer", 500.0, date(2024, 6, 3)),
    ]
    insights = identify_savings_opportunities(txns, [make_budget("Lazer", 100.0)], 0.0, NOW)
    overrun = [i for i in insights if i.type == "risk_alert"]
    assert len(overrun) == 1
    assert overrun[0].severity == "high"
    assert overrun[0].impact == pytest.approx(50.0)
    assert overrun[0].data["spent"] == pytest.approx(150.0)


def test_combined_insights_are_ranked(make_txn, make_budget) -> None:
    txns = [make_txn("income", "Salário", 1000.0, date(2024, 7, 1)), make_txn("expense", "Lazer", 150.0, date(2024, 7, 2))]
    txns += [make_txn("expense", "Café", 20.0, date(2024, 7, 1 + i)) for i in range(10)]

    insights = insights_for(txns, [make_budget("Lazer", 100.0)], NOW)

    assert [i.severity for i in insights] == ["high", "medium"]
    assert insights[0].title == "Orçamento ultrapassado: Lazer"


def test_ranking_order_is_severity_then_impact(make_txn) -> None:
    txns = [make_txn("income", "Freelance", amount, date(2024, 7, 1)) for amount in (100.0, 900.0)]
    insights = generate_intelligent_recommendations(txns, [], 1000.0, 1200.0, 0.0, NOW)

    keys = [(SEVERITY_RANK[i.severity], i.impact) for i in insights]
    assert keys == sorted(keys, key=lambda k: (-k[0], -k[1]))


def test_healthy_finances_produce_no_insights(make_txn) -> None:
    txns = [make_txn("income", "Salário", 5000.0, date(2024, 7, 1)), make_txn("expense", "Moradia", 1000.0, date(2024, 7, 2))]
    assert insights_for(txns, [], NOW) == []


def test_basic_recommendations(make_txn) -> None:
    summary = FinancialSummary(total_income=10000.0, total_expenses=8500.0, balance=1500.0, savings=1500.0, savings_rate=15.0)
    txns = [make_txn("expense", "Moradia", 4000.0, date(2024, 7, 1))]

    cards = basic_recommendations(txns, summary)

    assert [c.id for c in cards] == ["1", "2", "3"]
    assert cards[1].title == "Reduza gastos em Moradia"


def test_investment_suggestions_respect_minimum() -> None:
    summary = FinancialSummary(total_income=2000.0, total_expenses=1400.0, balance=600.0, savings=600.0, savings_rate=30.0)
    names = [s.name for s in investment_suggestions(summary)]
    assert names == ["Tesouro Selic", "Fundos de Renda Fixa", "Ações e ETFs"]


def _insight(title: str, severity: str, impact: float) -> FinancialInsight:
    return FinancialInsight(
        type="risk_alert",
        title=title,
        description="",
        severity=severity,
        impact=impact,
        confidence=100,
        recommendations=[],
    )


def test_ranking_ties_keep_insertion_order() -> None:
    insights = [
        _insight("primeiro", "high", 50.0),
        _insight("menor", "high", 10.0),
        _insight("segundo", "high", 50.0),
        _insight("critico", "critical", 1.0),
        _insight("terceiro", "high", 50.0),
    ]
    assert [i.title for i in rank_insights(insights)] == ["critico", "primeiro", "segundo", "terceiro", "menor"]


def test_equal_budget_overruns_keep_budget_order(make_txn, make_budget) -> None:
    txns = [
        make_txn("expense", "Lazer", 150.0, date(2024, 7, 3)),
        make_txn("expense", "Compras", 250.0, date(2024, 7, 4)),
    ]
    budgets = [make_budget("Compras", 200.0), make_budget("Lazer", 100.0)]

    ranked = rank_insights(identify_savings_opportunities(txns, budgets, 0.0, NOW))

    assert [i.title for i in ranked] == ["Orçamento ultrapassado: Compras", "Orçamento ultrapassado: Lazer"]
