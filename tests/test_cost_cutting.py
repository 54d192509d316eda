import pytest

from cost_cutting import (
    EMERGENCY_DEFICIT,
    EMERGENCY_TIGHT,
    analyze_high_expenses,
    create_cost_cutting_plan,
    create_financial_reorganization_plan,
    generate_expert_cost_cutting_response,
    strategies_for_category,
)
from schemas import SpendingPattern


def _pattern(category: str, total: float, income: float, trend: str = "stable", count: int = 4) -> SpendingPattern:
    return SpendingPattern(
        category=category,
        total=total,
        average=total / count,
        count=count,
        trend=trend,
        percentage_of_income=total / income * 100,
    )


@pytest.mark.parametrize(
    "expenses, severity, critical",
    [(9500.0, "critical", True), (11000.0, "critical", True), (8500.0, "high", True), (7500.0, "medium", False), (5000.0, None, False)],
)
def test_expense_ratio_severity(expenses, severity, critical) -> None:
    analysis = analyze_high_expenses(10000.0, expenses, [], [])
    assert analysis.severity == severity
    assert analysis.is_critical is critical
    assert analysis.expense_ratio == pytest.approx(expenses / 100)


def test_heavy_categories_listed_in_analysis() -> None:
    patterns = [_pattern("Moradia", 4000.0, 10000.0, trend="increasing")]
    analysis = analyze_high_expenses(10000.0, 9500.0, patterns, [])
    assert "Moradia: 40.0% da renda (📈 Aumentando)" in analysis.analysis


def test_plan_targets_fifteen_percent_cut() -> None:
    patterns = [
        _pattern("Lazer", 500.0, 10000.0),
        _pattern("Alimentação", 5000.0, 10000.0, trend="increasing"),
    ]
    plans = create_cost_cutting_plan(10000.0, 9500.0, patterns)

    assert [p.category for p in plans] == ["Alimentação", "Lazer"]
    food = plans[0]
    assert food.priority == "critical"
    assert food.target_spending == pytest.approx(4250.0)
    assert food.potential_savings == pytest.approx(750.0)
    assert food.difficulty == "medium"
    assert food.impact == "high"
    assert food.strategies[0].title == "Negociação e Comparação de Preços"
    assert food.strategies[0].savings == pytest.approx(500.0)
    assert len(food.strategies) == 3

    leisure = plans[1]
    assert leisure.priority == "medium"
    assert leisure.difficulty == "easy"
    assert len(leisure.strategies) == 2


def test_plan_limits_minor_categories_to_five() -> None:
    patterns = [_pattern(f"Cat {i}", 100.0 * i, 10000.0) for i in range(1, 8)]
    plans = create_cost_cutting_plan(10000.0, 2800.0, patterns)
    assert [p.category for p in plans] == ["Cat 7", "Cat 6", "Cat 5", "Cat 4", "Cat 3"]


def test_plan_keeps_heavy_categories_beyond_five() -> None:
    patterns = [_pattern(f"Cat {i}", 2500.0 - i, 10000.0) for i in range(7)]
    plans = create_cost_cutting_plan(10000.0, 17000.0, patterns)
    assert len(plans) == 7


def test_consolidation_for_many_small_purchases() -> None:
    titles = [s.title for s in strategies_for_category("Café", 300.0, 12)]
    assert titles[0] == "Negociação e Comparação de Preços"
    assert titles[-1] == "Consolidação de Pequenos Gastos"
    assert "Consolidação de Pequenos Gastos" not in [s.title for s in strategies_for_category("Café", 300.0, 10)]


def test_category_matching_ignores_case_and_accents() -> None:
    assert len(strategies_for_category("ALIMENTACAO", 1000.0, 3)) == 3
    assert len(strategies_for_category("Saúde", 1000.0, 3)) == 2


@pytest.mark.parametrize("expenses, emergency", [(12000.0, EMERGENCY_DEFICIT), (9500.0, EMERGENCY_TIGHT), (5000.0, [])])
def test_reorganization_emergency_actions(expenses, emergency) -> None:
    plan = create_financial_reorganization_plan(10000.0, expenses, [], [])
    assert plan.emergency_actions == list(emergency)
    assert plan.total_potential_savings == 0.0


def test_reorganization_sums_plan_savings() -> None:
    patterns = [
        _pattern("Moradia", 4500.0, 10000.0),
        _pattern("Transporte", 3500.0, 10000.0),
        _pattern("Lazer", 1000.0, 10000.0),
    ]
    plans = create_cost_cutting_plan(10000.0, 9000.0, patterns)
    reorganization = create_financial_reorganization_plan(10000.0, 9000.0, patterns, plans)

    assert reorganization.short_term_plan.expected_savings == pytest.approx(675.0 + 525.0)
    assert reorganization.medium_term_plan.expected_savings == pytest.approx(150.0)
    assert reorganization.total_potential_savings == pytest.approx(sum(p.potential_savings for p in plans))
    assert reorganization.short_term_plan.actions[0].startswith("Reduzir Moradia")


def test_expert_response_sections() -> None:
    patterns = [_pattern("Alimentação", 5000.0, 10000.0, trend="increasing")]
    text = generate_expert_cost_cutting_response(10000.0, 10500.0, patterns, [], [])

    assert text.startswith("🎯 **ESPECIALISTA EM CORTE DE GASTOS ATIVADO**")
    assert "🚨 **AÇÕES DE EMERGÊNCIA (AGORA):**" in text
    assert "🔴 **Alimentação**" in text
    assert "Economia Total Potencial: R$ 750,00/mês" in text
