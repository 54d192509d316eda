"""
Cost-cutting planner: severity of the expense ratio, per-category reduction
plans with static strategy templates, and a phased reorganization plan.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from formatting import format_brl, format_number
from schemas import (
    BudgetRecord,
    CostCuttingPlan,
    HighExpenseAnalysis,
    PhasePlan,
    ReorganizationPlan,
    SpendingPattern,
    Strategy,
    TransactionRecord,
)

logger = logging.getLogger(__name__)

REDUCTION_TARGET = 0.85
MAX_PLANNED_CATEGORIES = 5
SMALL_EXPENSE_AMOUNT = 50
SHORT_TERM = "1-2 semanas"
MEDIUM_TERM = "1-3 meses"
LONG_TERM = "3-6 meses"


# --- Strategy templates ---
# Each template carries a savings rate applied to the category's current spending.

NEGOTIATION_TEMPLATE = {
    "title": "Negociação e Comparação de Preços",
    "description": "Compare preços e negocie melhores condições",
    "rate": 0.10,
    "steps": [
        "Pesquise pelo menos 3 fornecedores diferentes",
        "Use sites de comparação de preços",
        "Negocie desconto por pagamento à vista",
        "Peça desconto para clientes antigos",
        "Considere comprar em maior quantidade (se fizer sentido)",
    ],
    "tips": [
        "Muitas empresas oferecem desconto se você mencionar concorrentes",
        "Pagamento à vista pode gerar 5-15% de desconto",
        "Negocie anualmente contratos de serviços",
    ],
}

CATEGORY_TEMPLATES = [
    (
        ("alimentação", "alimentacao"),
        [
            {
                "title": "Otimização de Compras de Alimentação",
                "description": "Estratégias específicas para reduzir gastos com comida",
                "rate": 0.20,
                "steps": [
                    "Planeje refeições semanais antes de comprar",
                    "Faça lista de compras e siga rigorosamente",
                    "Compre produtos da estação (mais baratos)",
                    "Use cupons e aproveite promoções",
                    "Prefira marcas próprias de supermercados",
                    "Evite compras quando estiver com fome",
                    "Congele alimentos para evitar desperdício",
                    "Cozinhe mais em casa e reduza delivery",
                ],
                "tips": [
                    "Delivery pode custar 2-3x mais que cozinhar",
                    "Compras planejadas reduzem desperdício em até 30%",
                    "Marca própria tem qualidade similar e custa 20-40% menos",
                ],
            },
            {
                "title": "Redução de Delivery e Restaurantes",
                "description": "Limite refeições fora de casa",
                "rate": 0.30,
                "steps": [
                    "Estabeleça um limite mensal em delivery",
                    "Cozinhe em maior quantidade e congele",
                    "Prepare lanches para o trabalho",
                    "Use aplicativos de cashback quando pedir",
                    "Prefira restaurantes self-service (mais barato)",
                ],
                "tips": [
                    "Um delivery de R$ 50 custa o mesmo que 3-4 refeições caseiras",
                    "Cozinhar em casa pode economizar até 70%",
                ],
            },
        ],
    ),
    (
        ("transporte",),
        [
            {
                "title": "Otimização de Transporte",
                "description": "Reduza custos de locomoção",
                "rate": 0.25,
                "steps": [
                    "Use transporte público quando possível",
                    "Compartilhe carona para trabalho",
                    "Planeje rotas para evitar trânsito",
                    "Mantenha o carro em bom estado (economiza combustível)",
                    "Use aplicativos de carona compartilhada",
                    "Considere bicicleta para trajetos curtos",
                    "Negocie plano de transporte público anual",
                ],
                "tips": [
                    "Carona compartilhada pode reduzir custos em 50%",
                    "Transporte público é até 80% mais barato que carro próprio",
                    "Manutenção preventiva economiza combustível",
                ],
            }
        ],
    ),
    (
        ("moradia",),
        [
            {
                "title": "Redução de Custos de Moradia",
                "description": "Otimize gastos com casa",
                "rate": 0.15,
                "steps": [
                    "Negocie aluguel anualmente",
                    "Reduza consumo de energia (lâmpadas LED, desligue aparelhos)",
                    "Reduza consumo de água (chuveiros, torneiras)",
                    "Negocie condomínio",
                    "Considere mudança para área mais barata (se viável)",
                    "Use energia solar se possível",
                    "Isolamento térmico reduz ar condicionado/aquecedor",
                ],
                "tips": [
                    "Lâmpadas LED consomem 80% menos energia",
                    "Negociação pode reduzir aluguel em 5-10%",
                    "Pequenas mudanças podem reduzir conta de luz em 20-30%",
                ],
            }
        ],
    ),
    (
        ("saúde", "saude"),
        [
            {
                "title": "Otimização de Gastos com Saúde",
                "description": "Reduza custos mantendo qualidade",
                "rate": 0.20,
                "steps": [
                    "Use plano de saúde quando disponível",
                    "Compare preços de medicamentos em diferentes farmácias",
                    "Use genéricos quando possível",
                    "Negocie descontos em consultas particulares",
                    "Prevenção é mais barata que tratamento",
                    "Use programas de desconto de farmácias",
                ],
                "tips": [
                    "Genéricos custam 30-70% menos que originais",
                    "Plano de saúde pode ser mais barato que particular",
                    "Prevenção reduz custos futuros drasticamente",
                ],
            }
        ],
    ),
    (
        ("lazer", "compras"),
        [
            {
                "title": "Controle de Gastos com Lazer e Compras",
                "description": "Mantenha diversão sem comprometer orçamento",
                "rate": 0.40,
                "steps": [
                    "Estabeleça orçamento mensal específico",
                    "Use regra dos 30 dias para compras não essenciais",
                    "Procure atividades gratuitas ou baratas",
                    "Aproveite promoções e liquidações",
                    "Evite compras por impulso",
                    "Use lista de desejos antes de comprar",
                    "Compare preços online antes de comprar",
                ],
                "tips": [
                    "Esperar 30 dias reduz compras por impulso em 60%",
                    "Atividades gratuitas podem ser tão divertidas quanto pagas",
                    "Promoções podem economizar até 50%",
                ],
            }
        ],
    ),
]

CONSOLIDATION_TEMPLATE = {
    "title": "Consolidação de Pequenos Gastos",
    "description": "Reduza frequência de pequenas compras",
    "rate": 0.25,
    "steps": [
        "Identifique padrões de pequenos gastos",
        "Consolide compras quando possível",
        "Estabeleça limite diário para pequenos gastos",
        'Use a regra: "se custa pouco, pense duas vezes"',
        "Acompanhe esses gastos separadamente",
    ],
    "tips": [
        "Pequenos gastos somam muito ao final do mês",
        "Consolidação pode reduzir custos em 20-30%",
    ],
}

EMERGENCY_DEFICIT = [
    "🚨 PARAR TODAS AS COMPRAS NÃO ESSENCIAIS IMEDIATAMENTE",
    "🚨 Cancelar assinaturas não essenciais (streaming, revistas, etc)",
    "🚨 Reduzir delivery/restaurantes a zero temporariamente",
    "🚨 Usar apenas transporte público ou carona",
    "🚨 Negociar todas as contas recorrentes (internet, telefone, etc)",
    "🚨 Vender itens não utilizados",
    "🚨 Considerar trabalho extra ou freelance",
]

EMERGENCY_TIGHT = [
    "⚠️ Reduzir gastos não essenciais em 50%",
    "⚠️ Cancelar pelo menos 2 assinaturas",
    "⚠️ Limitar delivery a 1x por semana",
    "⚠️ Negociar todas as contas",
]

PRIORITY_ICONS = {"critical": "🔴", "high": "🟠"}


def _strategy(template: Dict, current_spending: float) -> Strategy:
    return Strategy(
        title=template["title"],
        description=template["description"],
        savings=current_spending * template["rate"],
        steps=list(template["steps"]),
        tips=list(template["tips"]),
        warnings=list(template["warnings"]) if template.get("warnings") else None,
    )


def strategies_for_category(category: str, current_spending: float, transaction_count: int) -> List[Strategy]:
    """Universal negotiation strategy plus whatever templates match the category name."""
    name = category.lower()
    strategies = [_strategy(NEGOTIATION_TEMPLATE, current_spending)]

    for keywords, templates in CATEGORY_TEMPLATES:
        if any(k in name for k in keywords):
            strategies.extend(_strategy(t, current_spending) for t in templates)

    if transaction_count > 10 and current_spending / transaction_count < SMALL_EXPENSE_AMOUNT:
        strategies.append(_strategy(CONSOLIDATION_TEMPLATE, current_spending))

    return strategies


def expense_ratio(total_income: float, total_expenses: float) -> float:
    return (total_expenses / total_income) * 100 if total_income > 0 else 0.0


def analyze_high_expenses(
    total_income: float,
    total_expenses: float,
    patterns: Sequence[SpendingPattern],
    transactions: Sequence[TransactionRecord],
) -> HighExpenseAnalysis:
    """Classify how much of the income is consumed by expenses and explain why."""
    ratio = expense_ratio(total_income, total_expenses)
    balance = total_income - total_expenses
    severity: Optional[str] = None
    lines = []

    if ratio > 100:
        severity = "critical"
        lines.append(f"🚨 SITUAÇÃO CRÍTICA: Você está gastando {ratio:.1f}% da sua renda!")
        lines.append(f"Déficit mensal: {format_brl(abs(balance))}")
    elif ratio > 90:
        severity = "critical"
        lines.append(f"⚠️ ALERTA CRÍTICO: Gastos representam {ratio:.1f}% da renda")
        lines.append(f"Margem muito pequena: apenas {format_brl(balance)} sobram")
    elif ratio > 80:
        severity = "high"
        lines.append(f"⚠️ ATENÇÃO: Gastos em {ratio:.1f}% da renda")
        lines.append(f"Sobra apenas {format_brl(balance)}/mês")
    elif ratio > 70:
        severity = "medium"
        lines.append(f"📊 Gastos em {ratio:.1f}% da renda - Acima do ideal")

    heavy = [p for p in patterns if p.percentage_of_income > 30]
    if heavy:
        lines.append("\n🔴 Categorias Críticas:")
        for p in heavy:
            suffix = " (📈 Aumentando)" if p.trend == "increasing" else ""
            lines.append(f"- {p.category}: {p.percentage_of_income:.1f}% da renda{suffix}")

    small_total = sum(t.amount for t in transactions if t.type == "expense" and t.amount < SMALL_EXPENSE_AMOUNT)
    if total_income > 0 and small_total > total_income * 0.1:
        lines.append(f"\n💸 Gastos Pequenos Recorrentes: {format_brl(small_total)}")
        lines.append(f"Esses pequenos gastos somam {small_total / total_income * 100:.1f}% da sua renda!")

    return HighExpenseAnalysis(
        is_critical=severity in ("critical", "high"),
        severity=severity,
        expense_ratio=ratio,
        analysis="\n".join(lines),
    )


def _plan_score(pattern: SpendingPattern, total_income: float) -> float:
    score = pattern.percentage_of_income
    if pattern.trend == "increasing":
        score *= 1.3
    if total_income > 0:
        score += pattern.total / total_income
    return score


def create_cost_cutting_plan(
    total_income: float,
    total_expenses: float,
    patterns: Sequence[SpendingPattern],
    transactions: Sequence[TransactionRecord] = (),
    budgets: Sequence[BudgetRecord] = (),
) -> List[CostCuttingPlan]:
    """
    One reduction plan per category worth acting on.

    Categories are ranked by share of income (boosted when growing); the top
    five are always planned and any other category above 20% of income too.
    """
    ranked = sorted(patterns, key=lambda p: _plan_score(p, total_income), reverse=True)

    plans = []
    for index, pattern in enumerate(ranked):
        pct = pattern.percentage_of_income
        if index >= MAX_PLANNED_CATEGORIES and pct <= 20:
            continue

        current = pattern.total
        target = current * REDUCTION_TARGET
        potential = current - target

        if pct > 40:
            priority = "critical"
        elif pct > 30:
            priority = "high"
        else:
            priority = "medium"

        plans.append(
            CostCuttingPlan(
                priority=priority,
                category=pattern.category,
                current_spending=current,
                target_spending=target,
                potential_savings=potential,
                strategies=strategies_for_category(pattern.category, current, pattern.count),
                difficulty="medium" if pct > 35 else "easy",
                time_to_implement=SHORT_TERM,
                impact="high" if potential > total_income * 0.05 else "medium",
            )
        )

    logger.debug("Built %d cost cutting plans from %d patterns", len(plans), len(patterns))
    return plans


def create_financial_reorganization_plan(
    total_income: float,
    total_expenses: float,
    patterns: Sequence[SpendingPattern],
    plans: Sequence[CostCuttingPlan],
) -> ReorganizationPlan:
    if total_expenses > total_income:
        emergency = list(EMERGENCY_DEFICIT)
    elif total_expenses > total_income * 0.9:
        emergency = list(EMERGENCY_TIGHT)
    else:
        emergency = []

    urgent = [p for p in plans if p.priority in ("critical", "high")]
    medium = [p for p in plans if p.priority == "medium"]
    low = [p for p in plans if p.priority == "low"]

    short_actions = []
    for plan in urgent[:3]:
        short_actions.append(f"Reduzir {plan.category}: Meta de {format_brl(plan.target_spending)}/mês")
        if plan.strategies:
            short_actions.append(f"  → {plan.strategies[0].title}")
    short_actions += [
        "Negociar todas as contas recorrentes",
        "Cancelar assinaturas não essenciais",
        "Estabelecer limites diários de gastos",
    ]

    medium_actions = [
        f"Otimizar {plan.category}: Economizar {format_brl(plan.potential_savings)}/mês" for plan in medium[:3]
    ]
    medium_actions += [
        "Implementar sistema de orçamento rigoroso",
        "Revisar e renegociar contratos",
        "Criar fundo de emergência",
    ]

    long_actions = [
        "Manter disciplina financeira",
        "Automatizar poupança",
        "Diversificar fontes de renda",
        "Investir em educação financeira",
        "Revisar e ajustar plano trimestralmente",
    ]

    short_savings = sum(p.potential_savings for p in urgent)
    medium_savings = sum(p.potential_savings for p in medium)
    long_savings = sum(p.potential_savings for p in low)

    return ReorganizationPlan(
        emergency_actions=emergency,
        short_term_plan=PhasePlan(timeframe=SHORT_TERM, actions=short_actions, expected_savings=short_savings),
        medium_term_plan=PhasePlan(timeframe=MEDIUM_TERM, actions=medium_actions, expected_savings=medium_savings),
        long_term_plan=PhasePlan(timeframe=LONG_TERM, actions=long_actions, expected_savings=long_savings),
        total_potential_savings=short_savings + medium_savings + long_savings,
    )


def generate_expert_cost_cutting_response(
    total_income: float,
    total_expenses: float,
    patterns: Sequence[SpendingPattern],
    transactions: Sequence[TransactionRecord],
    budgets: Sequence[BudgetRecord],
) -> str:
    """Full markdown report: diagnosis, emergency actions, phased plan and per-category strategies."""
    analysis = analyze_high_expenses(total_income, total_expenses, patterns, transactions)
    plans = create_cost_cutting_plan(total_income, total_expenses, patterns, transactions, budgets)
    reorganization = create_financial_reorganization_plan(total_income, total_expenses, patterns, plans)

    lines = ["🎯 **ESPECIALISTA EM CORTE DE GASTOS ATIVADO**\n", analysis.analysis]
    lines.append("\n📋 **PLANO DE AÇÃO COMPLETO**\n")

    if reorganization.emergency_actions:
        lines.append("🚨 **AÇÕES DE EMERGÊNCIA (AGORA):**")
        lines += [f"- {action}" for action in reorganization.emergency_actions]
        lines.append("")

    short = reorganization.short_term_plan
    lines.append(f"⚡ **CURTO PRAZO ({short.timeframe}):**")
    lines.append(f"Economia esperada: {format_brl(short.expected_savings)}/mês")
    lines += [f"- {action}" for action in short.actions]
    lines.append("")

    lines.append("📊 **PLANOS POR CATEGORIA (Prioridade):**\n")
    for plan in plans[:MAX_PLANNED_CATEGORIES]:
        lines.append(f"{PRIORITY_ICONS.get(plan.priority, '🟡')} **{plan.category}**")
        lines.append(f"   - Atual: {format_brl(plan.current_spending)}/mês")
        lines.append(f"   - Meta: {format_brl(plan.target_spending)}/mês")
        lines.append(f"   - Economia: {format_brl(plan.potential_savings)}/mês")
        if plan.strategies:
            lines.append("   **Estratégias:**")
            for strategy in plan.strategies[:2]:
                lines.append(f"   → {strategy.title}: Economia de {format_brl(strategy.savings)}")
                if strategy.steps:
                    lines.append(f"     Passos: {', '.join(strategy.steps[:2])}")
        lines.append("")

    medium = reorganization.medium_term_plan
    lines.append(f"📅 **MÉDIO PRAZO ({medium.timeframe}):**")
    lines.append(f"Economia adicional: {format_brl(medium.expected_savings)}/mês")
    lines += [f"- {action}" for action in medium.actions]
    lines.append("")

    total_savings = reorganization.total_potential_savings
    new_ratio = expense_ratio(total_income, total_expenses - total_savings)
    lines.append("💰 **IMPACTO TOTAL ESPERADO:**")
    lines.append(f"- Economia Total Potencial: {format_brl(total_savings)}/mês")
    lines.append(f"- Nova Taxa de Despesas: {format_number(new_ratio, 1)}%")
    lines.append(f"- Nova Sobra Mensal: {format_brl(total_income - total_expenses + total_savings)}")

    lines.append("\n💡 **DICAS DO ESPECIALISTA:**")
    lines += [
        "1. Comece pelas ações de emergência se situação crítica",
        "2. Implemente uma estratégia por vez para não se sobrecarregar",
        "3. Acompanhe resultados semanalmente",
        "4. Celebre pequenas vitórias para manter motivação",
        "5. Revise e ajuste o plano mensalmente",
    ]

    return "\n".join(lines)
