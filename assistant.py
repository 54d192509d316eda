"""
Conversational assistant: keyword intent classifier plus templated responses.

:func:`analyze_intent` scores a free-text message against a fixed table of
intents. :func:`generate_advanced_response` turns the classified intent and
the user's aggregates into a markdown reply; each section is built as a list
of lines and the sections are joined once at the end.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

from analysis import analyze_spending_patterns, analyze_trends, financial_summary, month_expenses_by_category
from cost_cutting import analyze_high_expenses, generate_expert_cost_cutting_response
from formatting import format_brl
from insights import generate_intelligent_recommendations
from schemas import (
    BudgetRecord,
    ChatMessage,
    ChatResponse,
    ConversationContext,
    FinancialInsight,
    FinancialSummary,
    IntentAnalysis,
    SpendingPattern,
    TransactionRecord,
    TrendPoint,
    UserProfile,
)

logger = logging.getLogger(__name__)

DEFAULT_INTENT = "geral"
DEFAULT_CONFIDENCE = 0.3
COST_CUTTING_RATIO = 0.85

# Declaration order breaks score ties.
INTENT_PATTERNS: Dict[str, Dict] = {
    "economia": {
        "keywords": ["economizar", "poupar", "poupança", "economia", "guardar", "reservar"],
        "synonyms": ["reduzir gastos", "cortar custos", "diminuir despesas", "aumentar sobra"],
        "weight": 1.0,
    },
    "investimentos": {
        "keywords": ["investir", "investimento", "aplicar", "aplicação", "rendimento", "rentabilidade"],
        "synonyms": ["onde investir", "melhor investimento", "onde aplicar", "fazer dinheiro render"],
        "weight": 1.0,
    },
    "gastos": {
        "keywords": ["gastar", "gasto", "despesa", "despesas", "onde gasto", "gastos"],
        "synonyms": ["reduzir gastos", "controlar gastos", "analisar gastos", "cortar gastos"],
        "weight": 0.9,
    },
    "orçamento": {
        "keywords": ["orçamento", "planejamento", "planejar", "organizar", "controlar"],
        "synonyms": ["criar orçamento", "fazer orçamento", "planejamento financeiro", "organizar finanças"],
        "weight": 0.9,
    },
    "dívidas": {
        "keywords": ["dívida", "dívidas", "dever", "emprestimo", "financiamento", "parcela"],
        "synonyms": ["pagar dívidas", "quitar dívidas", "eliminar dívidas", "reduzir dívidas"],
        "weight": 0.8,
    },
    "aposentadoria": {
        "keywords": ["aposentadoria", "aposentar", "futuro", "longo prazo", "aposentado"],
        "synonyms": ["planejar aposentadoria", "preparar futuro", "investir para futuro"],
        "weight": 0.8,
    },
    "análise": {
        "keywords": ["analisar", "análise", "avaliar", "situação", "como estou", "diagnóstico"],
        "synonyms": ["minha situação", "como está", "avaliar situação", "diagnóstico financeiro"],
        "weight": 0.9,
    },
    "metas": {
        "keywords": ["meta", "metas", "objetivo", "objetivos", "alcançar", "conseguir"],
        "synonyms": ["definir metas", "estabelecer objetivos", "alcançar meta", "planejar objetivo"],
        "weight": 0.8,
    },
    "emergência": {
        "keywords": ["emergência", "reserva", "fundo", "imprevisto", "segurança"],
        "synonyms": ["fundo de emergência", "reserva de emergência", "segurança financeira"],
        "weight": 0.9,
    },
    "comparação": {
        "keywords": ["comparar", "comparação", "diferença", "versus", "vs", "melhor"],
        "synonyms": ["qual melhor", "comparar opções", "diferença entre"],
        "weight": 0.7,
    },
}

KNOWN_CATEGORIES = ["alimentação", "transporte", "moradia", "saúde", "educação", "lazer", "compras"]

TIME_PERIODS = {
    "mês": "month",
    "meses": "months",
    "ano": "year",
    "anos": "years",
    "semana": "week",
    "semanas": "weeks",
}

CONTEXT_TAGS = [
    ("urgent", ("urgente", "rápido")),
    ("detailed", ("detalhado", "completo")),
    ("simple", ("simples", "básico")),
    ("examples", ("exemplo", "exemplos")),
]

MONEY_RE = re.compile(
    r"(?:r\$|reais?|rs\.?)\s*(\d{1,3}(?:\.\d{3})+(?:,\d+)?|\d+(?:[.,]\d+)?)",
    re.IGNORECASE,
)
THOUSANDS_RE = re.compile(r"^\d{1,3}(?:\.\d{3})+(?:,\d+)?$")

TREND_ICONS = {"increasing": "📈", "decreasing": "📉", "stable": "➡️"}
TREND_LABELS = {"increasing": "📈 Aumentando", "decreasing": "📉 Diminuindo", "stable": "➡️ Estável"}


# --- Intent classification ---

def parse_money(raw: str) -> float:
    """``"1.500,00"`` -> 1500.0, ``"10.000"`` -> 10000.0, ``"49,90"`` -> 49.9."""
    if THOUSANDS_RE.match(raw):
        return float(raw.replace(".", "").replace(",", "."))
    return float(raw.replace(",", "."))


def extract_entities(message: str) -> Dict:
    lower = message.lower()
    entities: Dict = {}

    amounts = [parse_money(m) for m in MONEY_RE.findall(message)]
    if amounts:
        entities["money"] = amounts

    for category in KNOWN_CATEGORIES:
        if category in lower:
            entities["category"] = category

    for word, period in TIME_PERIODS.items():
        if word in lower:
            entities["time_period"] = period

    return entities


def _intent_score(lower: str, words: Sequence[str], pattern: Dict) -> float:
    weight = pattern["weight"]
    score = 0.0
    for keyword in pattern["keywords"]:
        if keyword in lower:
            score += weight
    for synonym in pattern["synonyms"]:
        if synonym in lower:
            score += weight * 1.2
    for word in words:
        if any(kw in word or word in kw for kw in pattern["keywords"]):
            score += weight * 0.5
    return score


def analyze_intent(message: str) -> IntentAnalysis:
    lower = message.lower()
    words = lower.split()

    scores = []
    for intent, pattern in INTENT_PATTERNS.items():
        score = _intent_score(lower, words, pattern)
        if score > 0:
            scores.append((intent, score))
    scores.sort(key=lambda item: item[1], reverse=True)

    context = [tag for tag, triggers in CONTEXT_TAGS if any(t in lower for t in triggers)]

    if scores:
        intent, top = scores[0]
        confidence = min(top / 3, 1.0)
    else:
        intent, confidence = DEFAULT_INTENT, DEFAULT_CONFIDENCE

    return IntentAnalysis(intent=intent, confidence=confidence, entities=extract_entities(message), context=context)


# --- Conversation context ---

def risk_tolerance(savings_rate: float) -> str:
    if savings_rate < 10:
        return "conservative"
    if savings_rate > 30:
        return "aggressive"
    return "moderate"


def build_conversation_context(
    summary: FinancialSummary,
    history: Sequence[ChatMessage] = (),
    goals: Sequence[str] = (),
) -> ConversationContext:
    """Profile is rebuilt from the current summary on every turn."""
    profile = UserProfile(
        savings_rate=summary.savings_rate,
        total_income=summary.total_income,
        total_expenses=summary.total_expenses,
        balance=summary.balance,
        risk_tolerance=risk_tolerance(summary.savings_rate),
        financial_goals=list(goals),
    )
    return ConversationContext(user_profile=profile, conversation_history=list(history))


@dataclass
class AnalysisSnapshot:
    """Aggregates the responder reads; computed once per message."""

    transactions: List[TransactionRecord]
    budgets: List[BudgetRecord]
    summary: FinancialSummary
    patterns: List[SpendingPattern]
    trends: List[TrendPoint]
    insights: List[FinancialInsight]
    now: Optional[date] = None

    @classmethod
    def build(cls, transactions: Sequence[TransactionRecord], budgets: Sequence[BudgetRecord], now: Optional[date] = None) -> "AnalysisSnapshot":
        summary = financial_summary(transactions, now)
        return cls(
            transactions=list(transactions),
            budgets=list(budgets),
            summary=summary,
            patterns=analyze_spending_patterns(transactions, summary.total_income, now),
            trends=analyze_trends(transactions, now),
            insights=generate_intelligent_recommendations(
                transactions,
                budgets,
                summary.total_income,
                summary.total_expenses,
                summary.savings_rate,
                now,
            ),
            now=now,
        )


# --- Section builders ---

def greeting_section() -> List[str]:
    return [
        "Olá! Sou seu consultor financeiro especializado.",
        "Analisei seus dados financeiros e estou pronto para ajudar com análises profundas e recomendações personalizadas.",
    ]


def analysis_section(context: ConversationContext, snapshot: AnalysisSnapshot) -> List[str]:
    profile = context.user_profile
    patterns = snapshot.patterns
    lines = [
        "📊 **ANÁLISE FINANCEIRA COMPLETA**\n",
        "**1. SITUAÇÃO FINANCEIRA ATUAL**",
        f"- Receitas Mensais: {format_brl(profile.total_income)}",
        f"- Despesas Mensais: {format_brl(profile.total_expenses)}",
        f"- Saldo: {format_brl(profile.balance)}",
        f"- Taxa de Poupança: {profile.savings_rate:.1f}%",
    ]

    score = 100
    issues = []
    if profile.savings_rate < 10:
        score -= 30
        issues.append("Taxa de poupança muito baixa")
    elif profile.savings_rate < 20:
        score -= 15
        issues.append("Taxa de poupança abaixo do ideal")
    if profile.balance < 0:
        score -= 40
        issues.append("Gastos superando receitas")
    if any(p.percentage_of_income > 40 for p in patterns):
        score -= 20
        issues.append("Concentração excessiva de gastos em uma categoria")

    lines.append(f"\n**2. SCORE DE SAÚDE FINANCEIRA: {score}/100**")
    if issues:
        lines.append("Pontos de atenção:")
        lines += [f"- {issue}" for issue in issues]

    lines.append("\n**3. ANÁLISE DE PADRÕES DE GASTOS**")
    for i, p in enumerate(patterns[:3], start=1):
        lines.append(f"{i}. {p.category}: {TREND_ICONS[p.trend]} {p.percentage_of_income:.1f}% da renda")
        if p.trend == "increasing" and p.percentage_of_income > 25:
            lines.append("   ⚠️ Atenção: Esta categoria está aumentando e já representa uma parcela significativa")

    trends = snapshot.trends
    if len(trends) >= 3:
        lines.append(f"\n**4. TENDÊNCIAS TEMPORAIS (Últimos {len(trends)} meses)**")
        first_rate = trends[-3].savings_rate
        last_rate = trends[-1].savings_rate
        if last_rate > first_rate * 1.1:
            lines.append("✅ Tendência positiva: Taxa de poupança aumentando")
        elif last_rate < first_rate * 0.9:
            lines.append("⚠️ Tendência negativa: Taxa de poupança diminuindo")
        else:
            lines.append("➡️ Estabilidade: Taxa de poupança estável")

    critical = [i for i in snapshot.insights if i.severity in ("critical", "high")]
    if critical:
        lines.append("\n**5. INSIGHTS CRÍTICOS**")
        for n, insight in enumerate(critical[:3], start=1):
            lines.append(f"{n}. **{insight.title}**")
            lines.append(f"   {insight.description}")
            lines.append(f"   Impacto estimado: {format_brl(insight.impact)}/mês")

    lines.append("\n**6. RECOMENDAÇÕES PRIORITÁRIAS**")
    if profile.savings_rate < 20:
        lines.append("1. 🎯 Aumentar taxa de poupança para pelo menos 20%")
        lines.append(f"   Meta: Economizar {format_brl(profile.total_income * 0.2)}/mês")
    if profile.balance < 0:
        lines.append("2. 🚨 Reduzir despesas imediatamente")
        lines.append(f"   Necessário cortar: {format_brl(abs(profile.balance))}/mês")
    heavy = next((p for p in patterns if p.percentage_of_income > 30), None)
    if heavy is not None:
        lines.append(f"3. 📉 Reduzir gastos em {heavy.category}")
        lines.append(f"   Atualmente: {heavy.percentage_of_income:.1f}% da renda")

    return lines


def savings_section(context: ConversationContext, snapshot: AnalysisSnapshot) -> List[str]:
    profile = context.user_profile
    patterns = snapshot.patterns
    target = profile.total_income * 0.2
    current = profile.balance
    gap = target - current

    lines = [
        "💰 **ESTRATÉGIA DE ECONOMIA PERSONALIZADA**\n",
        "**Situação Atual:**",
        f"- Você está poupando {profile.savings_rate:.1f}% da sua renda",
        f"- Valor atual: {format_brl(current)}/mês",
        f"- Meta recomendada: {format_brl(target)}/mês (20%)",
    ]

    if gap <= 0:
        lines.append("\n✅ **Parabéns!** Você já está acima da meta recomendada.")
        lines.append("Considere aumentar para 25-30% para acelerar seus objetivos financeiros.")
        return lines

    lines.append(f"- Gap para meta: {format_brl(gap)}/mês\n")
    lines.append("**PLANO DE AÇÃO EM 3 ETAPAS:**\n")

    if patterns and patterns[0].percentage_of_income > 20:
        top = patterns[0]
        lines += [
            f"**ETAPA 1: Reduzir {top.category}**",
            f"- Atualmente: {format_brl(top.total)} ({top.percentage_of_income:.1f}% da renda)",
            f"- Meta: Reduzir 15% = {format_brl(top.total * 0.15)}/mês",
            "- Como: Negociar preços, comparar fornecedores, eliminar gastos desnecessários\n",
        ]

    others = patterns[1:3]
    other_savings = sum(p.total * 0.1 for p in others)
    if other_savings > 0:
        lines += [
            "**ETAPA 2: Otimizar outras categorias**",
            f"- Potencial: {format_brl(other_savings)}/mês",
            f"- Foco: {', '.join(p.category for p in others)}\n",
        ]

    lines += [
        "**ETAPA 3: Automatizar poupança**",
        "- Configure transferência automática no dia do pagamento",
        f"- Valor sugerido: {format_brl(gap * 0.5)}",
        '- Use a regra: "Pague-se primeiro"\n',
        "**RESULTADO ESPERADO:**",
        f"- Economia adicional: {format_brl(gap * 0.8)}/mês",
    ]
    if profile.total_income > 0:
        lines.append(f"- Nova taxa de poupança: {(current + gap * 0.8) / profile.total_income * 100:.1f}%")
    return lines


ALLOCATIONS = {
    "conservative": [
        ("40% - Reserva de Emergência", 0.4, ["Tesouro Selic ou CDB com liquidez diária"], "Objetivo: Segurança e liquidez"),
        ("50% - Renda Fixa", 0.5, ["CDB, LCI, LCA, Debêntures"], "Rentabilidade esperada: 12-14% ao ano"),
        ("10% - Diversificação", 0.1, ["Fundos de Renda Fixa ou ETFs"], None),
    ],
    "moderate": [
        ("30% - Reserva de Emergência", 0.3, ["Tesouro Selic"], None),
        ("40% - Renda Fixa", 0.4, ["CDB, Fundos de Renda Fixa"], None),
        ("30% - Renda Variável", 0.3, ["Ações, ETFs, Fundos Imobiliários"], "Rentabilidade esperada: 15-18% ao ano"),
    ],
    "aggressive": [
        ("20% - Reserva de Emergência", 0.2, [], None),
        ("30% - Renda Fixa", 0.3, [], None),
        ("50% - Renda Variável", 0.5, ["Ações individuais, ETFs, FIIs, Criptomoedas"], "Rentabilidade esperada: 18-25% ao ano (com maior risco)"),
    ],
}

PROFILE_LABELS = {"conservative": "Conservador", "moderate": "Moderado", "aggressive": "Agressivo"}


def investment_section(context: ConversationContext, snapshot: AnalysisSnapshot) -> List[str]:
    profile = context.user_profile
    available = max(0.0, profile.balance)
    income = profile.total_income

    tier = "moderate"
    if profile.savings_rate < 10:
        tier = "conservative"
    if profile.savings_rate > 30 and available > income * 3:
        tier = "aggressive"

    lines = [
        "📈 **ESTRATÉGIA DE INVESTIMENTOS PERSONALIZADA**\n",
        f"**SEU PERFIL:** {PROFILE_LABELS[tier]}",
        f"- Capital disponível: {format_brl(available)}",
        f"- Renda mensal: {format_brl(income)}\n",
        f"**ALOCAÇÃO RECOMENDADA ({PROFILE_LABELS[tier]}):**",
    ]
    for n, (label, share, products, note) in enumerate(ALLOCATIONS[tier], start=1):
        lines.append(f"{n}. **{label}**")
        lines += [f"   - {p}" for p in products]
        lines.append(f"   - Valor: {format_brl(available * share)}")
        if note:
            lines.append(f"   - {note}")

    lines += [
        "\n**PRINCÍPIOS FUNDAMENTAIS:**",
        "✓ Diversificação é essencial",
        "✓ Invista regularmente, todo mês",
        "✓ Foque no longo prazo",
        "✓ Revise sua carteira anualmente",
        "✓ Não invista dinheiro que precisa em curto prazo",
    ]
    return lines


def spending_section(context: ConversationContext, snapshot: AnalysisSnapshot, entities: Dict) -> List[str]:
    patterns = snapshot.patterns
    category = entities.get("category")
    lines = ["📉 **ANÁLISE DETALHADA DE GASTOS**\n"]

    match = next((p for p in patterns if category and p.category.lower() == category), None)
    if match is not None:
        lines += [
            f"**ANÁLISE: {match.category.upper()}**\n",
            f"- Total gasto: {format_brl(match.total)}",
            f"- % da renda: {match.percentage_of_income:.1f}%",
            f"- Média por transação: {format_brl(match.average)}",
            f"- Número de transações: {match.count}",
            f"- Tendência: {TREND_LABELS[match.trend]}\n",
        ]
        if match.percentage_of_income > 30:
            lines += [
                "⚠️ **ATENÇÃO:** Esta categoria representa mais de 30% da sua renda!\n",
                "**ESTRATÉGIAS DE REDUÇÃO:**",
                "1. Negocie melhores preços",
                "2. Compare pelo menos 3 fornecedores",
                "3. Procure promoções e descontos",
                "4. Considere alternativas mais econômicas",
                f"5. Estabeleça um limite mensal de {format_brl(context.user_profile.total_income * 0.25)}",
            ]
        return lines

    lines.append("**VISÃO GERAL DOS GASTOS:**\n")
    for i, p in enumerate(patterns[:5], start=1):
        lines.append(f"{i}. **{p.category}**")
        lines.append(f"   - {format_brl(p.total)} ({p.percentage_of_income:.1f}% da renda) {TREND_ICONS[p.trend]}")
        if p.percentage_of_income > 30:
            lines.append("   ⚠️ Acima do recomendado (30%)")
        lines.append("")
    lines += [
        "**RECOMENDAÇÕES GERAIS:**",
        "- Foque em reduzir as 3 principais categorias",
        "- Use a regra 50/30/20 como referência",
        "- Revise gastos pequenos recorrentes",
    ]
    return lines


def budget_section(context: ConversationContext, snapshot: AnalysisSnapshot) -> List[str]:
    profile = context.user_profile
    income = profile.total_income
    budgets = snapshot.budgets
    lines = [
        "📋 **GUIA COMPLETO DE ORÇAMENTO**\n",
        "**SITUAÇÃO ATUAL:**",
        f"- Receitas: {format_brl(income)}/mês",
        f"- Despesas: {format_brl(profile.total_expenses)}/mês",
        f"- Orçamentos criados: {len(budgets)}\n",
        "**REGRA 50/30/20 RECOMENDADA:**",
        f"- 50% ({format_brl(income * 0.5)}) → Necessidades",
        f"- 30% ({format_brl(income * 0.3)}) → Desejos",
        f"- 20% ({format_brl(income * 0.2)}) → Poupança/Investimentos\n",
    ]

    if not budgets:
        lines += [
            "**PASSO A PASSO PARA CRIAR SEU ORÇAMENTO:**",
            "1. Liste todas as receitas mensais",
            "2. Categorize suas despesas (use as categorias do sistema)",
            "3. Estabeleça limites baseados na regra 50/30/20",
            "4. Revise gastos dos últimos 3 meses para valores realistas",
            "5. Crie orçamentos no sistema para acompanhar",
            "6. Revise e ajuste mensalmente",
        ]
        return lines

    spent_by_category = month_expenses_by_category(snapshot.transactions, snapshot.now)
    lines.append("**SEUS ORÇAMENTOS:**")
    for budget in budgets:
        spent = float(spent_by_category.get(budget.category, 0.0))
        pct = spent / budget.limit * 100
        if pct > 100:
            status = "🔴 Ultrapassado"
        elif pct > 80:
            status = "🟡 Atenção"
        else:
            status = "🟢 OK"
        lines += [
            f"- {budget.category}: {status}",
            f"  Limite: {format_brl(budget.limit)}",
            f"  Gasto: {format_brl(spent)} ({pct:.1f}%)",
            "",
        ]
    return lines


def debt_section(context: ConversationContext) -> List[str]:
    balance = context.user_profile.balance
    lines = ["💳 **ESTRATÉGIA DE GESTÃO DE DÍVIDAS**\n"]
    if balance >= 0:
        lines.append("✅ **Situação estável** - Você não está criando novas dívidas.")
        lines.append("Mantenha o controle e evite usar crédito rotativo.")
        return lines

    deficit = abs(balance)
    lines += [
        "⚠️ **SITUAÇÃO CRÍTICA DETECTADA**",
        f"Você está gastando {format_brl(deficit)} a mais do que ganha por mês.\n",
        "**PLANO DE RECUPERAÇÃO EM 4 ETAPAS:**\n",
        "**ETAPA 1: Pare de criar novas dívidas**",
        "- Use apenas dinheiro ou débito",
        "- Cancele cartões de crédito se necessário",
        "- Evite novos empréstimos\n",
        "**ETAPA 2: Reduza despesas imediatamente**",
        "- Corte gastos não essenciais",
        "- Negocie contas e serviços",
        f"- Meta: Reduzir {format_brl(deficit * 0.6)}/mês\n",
        "**ETAPA 3: Aumente receitas (se possível)**",
        "- Considere trabalho extra ou freelance",
        "- Venda itens não utilizados",
        f"- Meta: Aumentar {format_brl(deficit * 0.4)}/mês\n",
        "**ETAPA 4: Negocie dívidas existentes**",
        "- Contate credores para renegociação",
        "- Considere consolidar dívidas",
        "- Priorize dívidas com maior taxa de juros",
    ]
    return lines


ASSUMED_AGE = 35
RETIREMENT_AGE = 65
RETIREMENT_ANNUAL_RETURN = 0.12
SAFE_WITHDRAWAL_RATE = 0.04


def annuity_future_value(monthly: float, annual_rate: float, months: int) -> float:
    rate = annual_rate / 12
    if rate == 0:
        return monthly * months
    return monthly * (((1 + rate) ** months - 1) / rate)


def retirement_section(context: ConversationContext) -> List[str]:
    years = RETIREMENT_AGE - ASSUMED_AGE
    monthly = context.user_profile.balance
    future_value = annuity_future_value(monthly, RETIREMENT_ANNUAL_RETURN, years * 12)
    return [
        "🏖️ **PLANEJAMENTO PARA APOSENTADORIA**\n",
        "**CENÁRIO ATUAL:**",
        f"- Tempo até aposentadoria: ~{years} anos",
        f"- Poupança mensal atual: {format_brl(monthly)}",
        "\n**PROJEÇÃO (assumindo 12% ao ano):**",
        f"- Valor acumulado: {format_brl(future_value)}",
        f"- Retirada mensal (regra dos 4%): {format_brl(future_value * SAFE_WITHDRAWAL_RATE / 12)}",
        "\n**RECOMENDAÇÕES:**",
        f"1. Aumente contribuição mensal para {format_brl(monthly * 1.5)}",
        "2. Invista em previdência privada (PGBL/VGBL)",
        "3. Diversifique entre renda fixa e variável",
        "4. Revise objetivos anualmente",
    ]


def emergency_section(context: ConversationContext) -> List[str]:
    monthly_expenses = context.user_profile.total_expenses
    recommended = monthly_expenses * 6
    # Rough yearly estimate from this month's balance.
    current = max(0.0, context.user_profile.balance * 12)
    lines = [
        "🛡️ **FUNDO DE EMERGÊNCIA**\n",
        "**RECOMENDAÇÃO:**",
        f"- Despesas mensais: {format_brl(monthly_expenses)}",
        f"- Fundo recomendado (6 meses): {format_brl(recommended)}",
        f"- Fundo atual estimado: {format_brl(current)}",
    ]
    gap = recommended - current
    if gap > 0:
        monthly_goal = gap / 12
        lines += [
            f"- Gap: {format_brl(gap)}\n",
            "**PLANO PARA ALCANÇAR:**",
            f"- Economize {format_brl(monthly_goal)}/mês",
            f"- Ou {format_brl(monthly_goal / 4)}/semana",
            "- Onde investir: Tesouro Selic ou CDB com liquidez diária",
        ]
    else:
        lines.append("\n✅ Você já tem fundo de emergência adequado!")
    return lines


def goals_section(context: ConversationContext, entities: Dict) -> List[str]:
    lines = ["🎯 **PLANEJAMENTO DE METAS FINANCEIRAS**\n"]
    amounts = entities.get("money") or []
    if not amounts:
        lines += [
            "**COMO DEFINIR METAS:**",
            '1. Seja específico (ex: "R$ 50.000 para casa")',
            "2. Defina prazo realista",
            "3. Calcule quanto precisa economizar por mês",
            "4. Acompanhe progresso mensalmente",
            "5. Ajuste conforme necessário",
        ]
        return lines

    target = amounts[0]
    monthly = context.user_profile.balance
    months_needed = target / monthly if monthly > 0 else math.inf
    lines.append(f"**META:** {format_brl(target)}")
    lines.append(f"**POUPANÇA ATUAL:** {format_brl(monthly)}/mês")

    if months_needed < 120:
        faster = months_needed * 0.7
        lines += [
            f"**TEMPO ESTIMADO:** {math.ceil(months_needed)} meses ({months_needed / 12:.1f} anos)\n",
            "**PARA ACELERAR:**",
        ]
        if faster > 0:
            lines.append(f"- Aumente poupança para {format_brl(target / faster)}/mês")
        lines.append(f"- Tempo reduzido para: {math.ceil(faster)} meses")
    else:
        lines += [
            "\n⚠️ Poupança atual insuficiente. Considere:",
            "- Aumentar renda",
            "- Reduzir despesas",
            "- Ajustar meta ou prazo",
        ]
    return lines


def comparison_section() -> List[str]:
    return [
        "📊 **COMPARAÇÃO DE OPÇÕES**\n",
        "Para uma comparação detalhada, preciso saber quais opções você quer comparar.\n",
        "Exemplos:",
        '- "Comparar Tesouro Selic vs CDB"',
        '- "Qual melhor: ações ou fundos?"',
        '- "Investir em imóveis ou ações?"',
    ]


def general_section() -> List[str]:
    return [
        "Olá! Sou seu consultor financeiro especializado.",
        "Tenho acesso a análises profundas dos seus dados financeiros.\n",
        "**POSSO AJUDAR COM:**",
        "💰 Estratégias avançadas de economia",
        "📈 Planejamento de investimentos personalizado",
        "📉 Análise detalhada de gastos",
        "📋 Criação e otimização de orçamentos",
        "💳 Gestão de dívidas",
        "🏖️ Planejamento para aposentadoria",
        "🎯 Definição e alcance de metas",
        "🛡️ Fundo de emergência",
        "📊 Análise financeira completa\n",
        "**EXEMPLOS DE PERGUNTAS:**",
        '- "Analise minha situação financeira completa"',
        '- "Como posso economizar R$ 500 por mês?"',
        '- "Onde investir R$ 10.000?"',
        '- "Meus gastos estão altos?"',
        '- "Crie um plano de orçamento para mim"',
        '- "Quanto preciso para me aposentar?"',
    ]


def insight_alerts_section(insights: Sequence[FinancialInsight]) -> List[str]:
    relevant = [i for i in insights if i.severity in ("critical", "high")][:2]
    if not relevant:
        return []
    lines = ["⚠️ **Alerta Importante:**"]
    for insight in relevant:
        lines.append(f"\n**{insight.title}**\n{insight.description}")
    return lines


FOLLOW_UPS = {
    "economia": [
        "Quer que eu detalhe estratégias específicas para suas principais categorias de gastos?",
        "Posso criar um plano mensal de economia personalizado?",
    ],
    "investimentos": [
        "Quer uma análise mais detalhada sobre diversificação de carteira?",
        "Posso calcular projeções de retorno para diferentes estratégias?",
    ],
    "análise": [
        "Quer que eu detalhe alguma área específica da análise?",
        "Posso criar um plano de ação prioritário?",
    ],
}

DEFAULT_FOLLOW_UPS = [
    "Quer uma análise completa da sua situação financeira?",
    "Posso ajudar com algum objetivo financeiro específico?",
]


def follow_up_section(intent: IntentAnalysis) -> List[str]:
    questions = FOLLOW_UPS.get(intent.intent, DEFAULT_FOLLOW_UPS)
    return ["💡 **Perguntas para aprofundar:**"] + [f"{i}. {q}" for i, q in enumerate(questions, start=1)]


SectionBuilder = Callable[[ConversationContext, AnalysisSnapshot, IntentAnalysis], List[str]]

SECTION_BUILDERS: Dict[str, SectionBuilder] = {
    "análise": lambda ctx, snap, intent: analysis_section(ctx, snap),
    "economia": lambda ctx, snap, intent: savings_section(ctx, snap),
    "investimentos": lambda ctx, snap, intent: investment_section(ctx, snap),
    "gastos": lambda ctx, snap, intent: spending_section(ctx, snap, intent.entities),
    "orçamento": lambda ctx, snap, intent: budget_section(ctx, snap),
    "dívidas": lambda ctx, snap, intent: debt_section(ctx),
    "aposentadoria": lambda ctx, snap, intent: retirement_section(ctx),
    "emergência": lambda ctx, snap, intent: emergency_section(ctx),
    "metas": lambda ctx, snap, intent: goals_section(ctx, intent.entities),
    "comparação": lambda ctx, snap, intent: comparison_section(),
}


# --- Response assembly ---

def needs_cost_cutting(context: ConversationContext, snapshot: AnalysisSnapshot) -> bool:
    profile = context.user_profile
    analysis = analyze_high_expenses(profile.total_income, profile.total_expenses, snapshot.patterns, snapshot.transactions)
    return analysis.is_critical or profile.total_expenses > profile.total_income * COST_CUTTING_RATIO


def generate_advanced_response(
    message: str,
    intent: IntentAnalysis,
    context: ConversationContext,
    transactions: Sequence[TransactionRecord],
    budgets: Sequence[BudgetRecord],
    patterns: Sequence[SpendingPattern],
    trends: Sequence[TrendPoint],
    insights: Sequence[FinancialInsight],
    now: Optional[date] = None,
) -> str:
    snapshot = AnalysisSnapshot(
        transactions=list(transactions),
        budgets=list(budgets),
        summary=FinancialSummary(
            total_income=context.user_profile.total_income,
            total_expenses=context.user_profile.total_expenses,
            balance=context.user_profile.balance,
            savings=max(0.0, context.user_profile.balance),
            savings_rate=context.user_profile.savings_rate,
        ),
        patterns=list(patterns),
        trends=list(trends),
        insights=list(insights),
        now=now,
    )

    if needs_cost_cutting(context, snapshot):
        logger.info("Expense ratio over threshold, answering with the cost cutting plan (intent=%s)", intent.intent)
        profile = context.user_profile
        return generate_expert_cost_cutting_response(
            profile.total_income,
            profile.total_expenses,
            snapshot.patterns,
            snapshot.transactions,
            snapshot.budgets,
        )

    sections: List[List[str]] = []
    if not context.conversation_history:
        sections.append(greeting_section())

    builder = SECTION_BUILDERS.get(intent.intent)
    sections.append(builder(context, snapshot, intent) if builder else general_section())

    if intent.intent != "análise":
        sections.append(insight_alerts_section(snapshot.insights))

    sections.append(follow_up_section(intent))
    return "\n\n".join("\n".join(lines) for lines in sections if lines)


def answer(
    message: str,
    transactions: Sequence[TransactionRecord],
    budgets: Sequence[BudgetRecord],
    history: Sequence[ChatMessage] = (),
    now: Optional[date] = None,
) -> ChatResponse:
    """Classify and answer one message against freshly computed aggregates."""
    snapshot = AnalysisSnapshot.build(transactions, budgets, now)
    context = build_conversation_context(snapshot.summary, history)
    intent = analyze_intent(message)
    logger.debug("Intent %s (confidence %.2f)", intent.intent, intent.confidence)

    reply = generate_advanced_response(
        message,
        intent,
        context,
        snapshot.transactions,
        snapshot.budgets,
        snapshot.patterns,
        snapshot.trends,
        snapshot.insights,
        now,
    )
    return ChatResponse(intent=intent, response=reply)


@dataclass
class AssistantSession:
    """Keeps the visible chat history between messages for one user."""

    transactions: List[TransactionRecord]
    budgets: List[BudgetRecord]
    now: Optional[date] = None
    history: List[ChatMessage] = field(default_factory=list)

    def ask(self, message: str) -> ChatResponse:
        result = answer(message, self.transactions, self.budgets, self.history, self.now)
        self.history.append(ChatMessage(role="user", content=message))
        self.history.append(ChatMessage(role="ai", content=result.response))
        return result

    def reset(self) -> None:
        self.history.clear()
