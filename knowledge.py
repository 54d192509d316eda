"""Static personal-finance knowledge base and short keyword-driven answers."""

from __future__ import annotations

from typing import Dict, List, Sequence

from formatting import format_brl
from schemas import FinancialSummary, SpendingPattern

FINANCIAL_KNOWLEDGE: Dict[str, Dict[str, List[str] | str]] = {
    "economia": {
        "category": "Economia e Poupança",
        "tips": [
            "A regra 50/30/20: 50% para necessidades, 30% para desejos, 20% para poupança",
            "Crie um fundo de emergência equivalente a 6 meses de despesas",
            "Automatize transferências para poupança no início do mês",
            'Use a técnica do "envelope": separe dinheiro físico por categoria',
            "Revise assinaturas e serviços mensais regularmente",
            "Aplique a regra dos 30 dias: espere 30 dias antes de compras não essenciais",
            "Negocie contas recorrentes (internet, telefone, seguro) anualmente",
        ],
        "best_practices": [
            "Pague-se primeiro: transfira para poupança antes de gastar",
            "Acompanhe cada centavo gasto por pelo menos um mês",
            "Estabeleça metas de economia específicas e mensuráveis",
            "Celebre pequenas vitórias financeiras",
        ],
    },
    "investimentos": {
        "category": "Investimentos",
        "tips": [
            "Comece com investimentos de baixo risco antes de diversificar",
            "Diversifique entre diferentes tipos de ativos",
            "Invista regularmente, todos os meses, independente do mercado",
            "Não invista dinheiro que você pode precisar em curto prazo",
            "Considere investimentos passivos como ETFs para reduzir custos",
            "Reinvista dividendos e juros para aproveitar juros compostos",
            "Revise e rebalanceie sua carteira anualmente",
            "Entenda a relação risco/retorno antes de investir",
        ],
        "best_practices": [
            "Siga a regra 100 - idade: % em ações = 100 - sua idade",
            "Mantenha uma reserva de emergência antes de investir",
            "Não tente cronometrar o mercado",
            "Foque no longo prazo e ignore volatilidade de curto prazo",
        ],
    },
    "orçamento": {
        "category": "Orçamento e Planejamento",
        "tips": [
            "Use o método base zero: cada real deve ter um destino",
            "Revise seu orçamento mensalmente",
            "Ajuste o orçamento conforme sua situação muda",
            "Crie categorias específicas, não genéricas",
            'Inclua uma categoria para "imprevistos"',
            "Use aplicativos ou planilhas para acompanhar",
            "Estabeleça limites realistas, não ideais",
        ],
        "best_practices": [
            "Planeje baseado em valores reais, não estimativas",
            "Revise gastos passados para criar orçamentos futuros",
            "Inclua todas as receitas e despesas, mesmo pequenas",
            "Ajuste gradualmente, não mude tudo de uma vez",
        ],
    },
    "dívidas": {
        "category": "Gestão de Dívidas",
        "tips": [
            "Priorize dívidas com maior taxa de juros",
            "Considere consolidar dívidas com taxas altas",
            "Negocie prazos e taxas com credores",
            "Evite fazer novas dívidas enquanto paga as existentes",
            "Use o método avalanche: pague a dívida com maior taxa primeiro",
            "Use o método bola de neve: pague a menor dívida primeiro para motivação",
            "Considere transferir dívidas para cartões com menor taxa",
        ],
        "best_practices": [
            "Nunca use crédito para pagar crédito",
            "Pague mais que o mínimo sempre que possível",
            "Mantenha um histórico de pagamentos positivo",
            "Evite usar crédito rotativo",
        ],
    },
    "aposentadoria": {
        "category": "Planejamento para Aposentadoria",
        "tips": [
            "Comece a investir para aposentadoria o mais cedo possível",
            "Aproveite juros compostos investindo cedo",
            "Considere contribuir para previdência privada",
            "Diversifique investimentos para aposentadoria",
            "Revise seus objetivos de aposentadoria anualmente",
            "Calcule quanto você precisa para se aposentar confortavelmente",
            "Considere múltiplas fontes de renda na aposentadoria",
        ],
        "best_practices": [
            "Use a regra dos 4%: retire 4% do patrimônio anualmente",
            "Planeje para viver até 90+ anos",
            "Considere inflação nos cálculos",
            "Não dependa apenas da previdência social",
        ],
    },
}


def tips(topic: str, limit: int | None = None) -> List[str]:
    items = list(FINANCIAL_KNOWLEDGE[topic]["tips"])
    return items[:limit] if limit is not None else items


def numbered(items: Sequence[str]) -> str:
    return "\n".join(f"{i}. {item}" for i, item in enumerate(items, start=1))


def _any_in(text: str, words: Sequence[str]) -> bool:
    return any(w in text for w in words)


def generate_contextual_response(
    question: str,
    summary: FinancialSummary,
    patterns: Sequence[SpendingPattern] = (),
) -> str:
    """Quick answer for the dashboard's question box; falls back to a capabilities list."""
    text = question.lower()
    top = list(patterns)

    if _any_in(text, ("economizar", "poupar", "poupança")):
        lines = [
            "Com base na sua situação atual:\n",
            f"📊 **Sua situação:** Você está poupando {summary.savings_rate:.1f}% da sua renda.\n",
        ]
        if summary.savings_rate < 20:
            lines.append("⚠️ **Recomendação:** Sua taxa de poupança está abaixo do ideal (20%). Aqui estão estratégias específicas:\n")
            lines.append(
                f"1. **Automatize a poupança:** Configure transferência automática de "
                f"{format_brl(summary.total_income * 0.2)} no início de cada mês"
            )
            lines.append(
                f"2. **Reduza despesas:** Você gasta {format_brl(summary.total_expenses)} por mês. "
                f"Uma redução de 10% economizaria {format_brl(summary.total_expenses * 0.1)}"
            )
            if top:
                lines.append(
                    f"3. **Foque em:** {top[0].category} representa {top[0].percentage_of_income:.1f}% da sua renda"
                )
            lines.append("\n💡 **Dica Pro:** Use a regra 50/30/20 - 50% necessidades, 30% desejos, 20% poupança/investimentos.")
        else:
            lines.append("✅ **Parabéns!** Você está no caminho certo. Para otimizar ainda mais:\n")
            lines.append("1. Considere aumentar para 25-30% se possível")
            lines.append("2. Automatize investimentos regulares")
            lines.append("3. Revise despesas trimestralmente para encontrar mais oportunidades")
        lines.append("\n" + numbered(tips("economia", 3)))
        return "\n".join(lines)

    if _any_in(text, ("investir", "investimento", "aplicar")):
        lines = ["💼 **Estratégia de Investimentos Personalizada:**\n"]
        if summary.balance > 0:
            lines.append(f"💰 Você tem {format_brl(summary.balance)} disponível para investir.\n")
            if summary.balance < 1000:
                lines += [
                    "**Recomendação Conservadora:**",
                    "- Tesouro Selic: Ideal para começar, liquidez diária",
                    "- CDB: Boa rentabilidade com baixo risco",
                    "- Foque em construir reserva de emergência primeiro\n",
                ]
            elif summary.balance < 10000:
                lines += [
                    "**Estratégia Moderada:**",
                    "- 40% Tesouro Selic (reserva de emergência)",
                    "- 40% CDB ou Fundos de Renda Fixa",
                    "- 20% Ações/ETFs (diversificação)\n",
                ]
            else:
                lines += [
                    "**Estratégia Diversificada:**",
                    "- 30% Renda Fixa (segurança)",
                    "- 40% Ações/ETFs (crescimento)",
                    "- 20% Fundos Imobiliários (diversificação)",
                    "- 10% Reserva de emergência\n",
                ]
        else:
            lines += [
                "⚠️ Antes de investir, é importante:",
                "1. Criar um fundo de emergência",
                "2. Eliminar dívidas com juros altos",
                "3. Ter controle sobre suas despesas\n",
            ]
        lines.append("📚 **Princípios Fundamentais:**")
        lines.append(numbered(tips("investimentos", 4)))
        return "\n".join(lines)

    if _any_in(text, ("gastar", "despesa", "gasto")):
        lines = ["📉 **Análise dos Seus Gastos:**\n"]
        if top:
            lines.append("**Principais Categorias:**")
            for i, p in enumerate(top[:3], start=1):
                lines.append(f"{i}. {p.category}: {format_brl(p.total)} ({p.percentage_of_income:.1f}% da renda)")
            lines.append("")
            if top[0].percentage_of_income > 30:
                lines += [
                    f"⚠️ **Atenção:** {top[0].category} representa {top[0].percentage_of_income:.1f}% da sua renda, "
                    "acima do recomendado (30%).\n",
                    "**Ações Recomendadas:**",
                    "1. Revise todos os gastos nesta categoria",
                    "2. Negocie melhores preços",
                    "3. Procure alternativas mais econômicas",
                    "4. Estabeleça um limite mensal\n",
                ]
        lines += [
            "💡 **Dicas para Reduzir Gastos:**",
            "1. Use a regra dos 30 dias para compras não essenciais",
            "2. Compare preços antes de comprar",
            "3. Revise assinaturas e serviços mensais",
            "4. Negocie contas anualmente",
        ]
        return "\n".join(lines)

    if _any_in(text, ("orçamento", "planejamento", "planejar")):
        income = summary.total_income
        lines = [
            "📋 **Guia de Planejamento Orçamentário:**\n",
            "**Sua Situação Atual:**",
            f"- Receitas: {format_brl(income)}",
            f"- Despesas: {format_brl(summary.total_expenses)}",
            f"- Saldo: {format_brl(summary.balance)}\n",
            "**Regra 50/30/20 Recomendada:**",
            f"- 50% ({format_brl(income * 0.5)}) → Necessidades",
            f"- 30% ({format_brl(income * 0.3)}) → Desejos",
            f"- 20% ({format_brl(income * 0.2)}) → Poupança/Investimentos\n",
            "**Passos para Criar um Orçamento Eficaz:**",
            numbered(tips("orçamento", 5)),
        ]
        return "\n".join(lines)

    return "\n".join(
        [
            "Olá! Sou seu assistente financeiro com conhecimento em gestão financeira pessoal.\n",
            "**Posso ajudar você com:**",
            "💰 Estratégias de economia e poupança",
            "📈 Planejamento de investimentos",
            "📉 Análise e redução de gastos",
            "📋 Criação e otimização de orçamentos",
            "🎯 Metas financeiras e planejamento",
            "💡 Dicas personalizadas baseadas nos seus dados\n",
            "**Faça perguntas como:**",
            '- "Como posso economizar mais?"',
            '- "Onde devo investir meu dinheiro?"',
            '- "Como reduzir meus gastos?"',
            '- "Me ajude a criar um orçamento"',
            '- "Analise minha situação financeira"\n',
            "💬 Digite sua pergunta e receba recomendações personalizadas!",
        ]
    )
