from knowledge import FINANCIAL_KNOWLEDGE, generate_contextual_response, numbered, tips
from schemas import FinancialSummary, SpendingPattern


def _summary(income: float, expenses: float) -> FinancialSummary:
    balance = income - expenses
    savings = max(0.0, balance)
    return FinancialSummary(
        total_income=income,
        total_expenses=expenses,
        balance=balance,
        savings=savings,
        savings_rate=savings / income * 100 if income else 0.0,
    )


def test_every_topic_has_tips_and_practices() -> None:
    assert set(FINANCIAL_KNOWLEDGE) == {"economia", "investimentos", "orçamento", "dívidas", "aposentadoria"}
    for topic in FINANCIAL_KNOWLEDGE.values():
        assert topic["tips"]
        assert topic["best_practices"]


def test_numbered_tips() -> None:
    assert numbered(["a", "b"]) == "1. a\n2. b"
    assert len(tips("economia", 3)) == 3


def test_low_savings_answer_mentions_top_category() -> None:
    pattern = SpendingPattern(category="Moradia", total=3000.0, average=3000.0, count=1, trend="stable", percentage_of_income=60.0)
    text = generate_contextual_response("Como economizar?", _summary(5000.0, 4800.0), [pattern])

    assert "Sua taxa de poupança está abaixo do ideal" in text
    assert "R$ 1.000,00" in text
    assert "Moradia representa 60.0% da sua renda" in text


def test_healthy_savings_answer() -> None:
    text = generate_contextual_response("quero poupar", _summary(5000.0, 2000.0))
    assert "Parabéns" in text


def test_investment_answer_depends_on_balance() -> None:
    assert "Recomendação Conservadora" in generate_contextual_response("onde investir?", _summary(5000.0, 4500.0))
    assert "Estratégia Moderada" in generate_contextual_response("onde investir?", _summary(10000.0, 5000.0))
    assert "Estratégia Diversificada" in generate_contextual_response("onde investir?", _summary(30000.0, 5000.0))
    assert "Antes de investir" in generate_contextual_response("onde investir?", _summary(1000.0, 3000.0))


def test_budget_answer_uses_fifty_thirty_twenty() -> None:
    text = generate_contextual_response("Me ajude com o orçamento", _summary(4000.0, 3000.0))
    assert "- 50% (R$ 2.000,00) → Necessidades" in text


def test_fallback_lists_capabilities() -> None:
    assert "Posso ajudar você com:" in generate_contextual_response("oi", _summary(0.0, 0.0))
