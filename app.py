import time
from datetime import date, datetime

import pandas as pd
import streamlit as st

from analysis import (
    analyze_spending_patterns,
    analyze_trends,
    days_until,
    financial_summary,
    overdue_scheduled,
    upcoming_scheduled,
    with_spent,
)
from assistant import AssistantSession
from auth import check_password, hash_password
from categories import EXPENSE_CATEGORIES, INCOME_CATEGORIES, category_choices, category_labels
from config import configure_logging, get_settings
from dashboard import budget_frame, budget_progress, category_donut, investment_growth, kpis, trend_chart
from export import (
    budgets_export_frame,
    export_filename,
    monthly_report,
    to_csv_bytes,
    transactions_export_frame,
)
from formatting import format_brl, format_date, format_percent
from insights import basic_recommendations, insights_for, investment_suggestions
from knowledge import generate_contextual_response
from repository import DuplicateError, InvalidReferenceError, StoreClient
from schemas import BudgetCreate, CategoryCreate, GoalCreate, GoalUpdate, ScheduledExpenseCreate, TransactionCreate
from storage import save_file

# --- Configuration ---
st.set_page_config(page_title="Gasto Pessoal", layout="wide", page_icon="💰")
settings = get_settings()
configure_logging(settings.log_level)

GOAL_CATEGORIES = {"savings": "Poupança", "debt": "Dívida", "investment": "Investimento", "purchase": "Compra", "other": "Outro"}
FREQUENCIES = {"once": "Única", "weekly": "Semanal", "monthly": "Mensal", "yearly": "Anual"}
SEVERITY_BOXES = {"critical": st.error, "high": st.warning, "medium": st.info, "low": st.info}


@st.cache_resource
def get_store() -> StoreClient:
    return StoreClient(settings.database_url)


store = get_store()


# --- Authentication ---
def check_login():
    """Login / register forms; True once a user is in the session."""
    if "user_id" not in st.session_state:
        st.session_state["user_id"] = None
        st.session_state["user_name"] = None

    if st.session_state["user_id"]:
        return True

    st.title("💰 Gasto Pessoal")
    login_tab, register_tab = st.tabs(["Entrar", "Criar conta"])

    with login_tab:
        with st.form("login"):
            email = st.text_input("Email")
            password = st.text_input("Senha", type="password")
            if st.form_submit_button("Entrar", use_container_width=True):
                with store.session() as repos:
                    row = repos.users.find_by_email(email)
                    ok = row is not None and check_password(password, row.password_hash)
                if ok:
                    st.session_state["user_id"] = row.id
                    st.session_state["user_name"] = row.name
                    st.success("✅ Login realizado com sucesso")
                    time.sleep(0.5)
                    st.rerun()
                else:
                    st.error("❌ Email ou senha incorretos")

    with register_tab:
        with st.form("register"):
            name = st.text_input("Nome")
            email = st.text_input("Email", key="register_email")
            password = st.text_input("Senha", type="password", key="register_password")
            user_type = st.radio("Tipo de conta", ["single", "couple"], format_func=lambda t: "Individual" if t == "single" else "Casal")
            if st.form_submit_button("Criar conta", use_container_width=True):
                if not name or not email or len(password) < 6:
                    st.error("Preencha nome, email e uma senha com pelo menos 6 caracteres.")
                else:
                    try:
                        with store.session() as repos:
                            user = repos.users.insert(name, email, hash_password(password), user_type)
                        st.session_state["user_id"] = user.id
                        st.session_state["user_name"] = user.name
                        st.success("Usuário criado com sucesso")
                        st.rerun()
                    except DuplicateError:
                        st.error("Email já está em uso")

    return False


if not check_login():
    st.stop()

user_id = st.session_state["user_id"]


def load_data():
    with store.session() as repos:
        transactions = repos.transactions.list_by_user(user_id)
        budgets = repos.budgets.list_by_user(user_id)
        goals = repos.goals.list_by_user(user_id)
        scheduled = repos.scheduled_expenses.list_by_user(user_id)
        custom_categories = repos.categories.list_by_user(user_id)
    return transactions, with_spent(budgets, transactions), goals, scheduled, custom_categories


transactions, budgets, goals, scheduled, custom_categories = load_data()
expense_choices = category_choices(EXPENSE_CATEGORIES, custom_categories)
all_choices = category_choices(EXPENSE_CATEGORIES + INCOME_CATEGORIES, custom_categories)
summary = financial_summary(transactions)
patterns = analyze_spending_patterns(transactions, summary.total_income)

# Sidebar
with st.sidebar:
    st.header(f"Olá, {st.session_state['user_name']} 👋")
    st.caption(f"Hoje: {format_date(date.today())}")
    st.metric("Saldo do mês", format_brl(summary.balance))

    st.divider()
    if st.button("🚪 Sair", use_container_width=True):
        st.session_state["user_id"] = None
        st.session_state["user_name"] = None
        st.session_state.pop("assistant", None)
        st.rerun()

tab1, tab2, tab3, tab4, tab_sched, tab_cat, tab5, tab6 = st.tabs(
    ["📊 Dashboard", "💳 Transações", "🎯 Orçamentos", "🏁 Metas", "📅 Agendadas", "🏷️ Categorias", "🤖 Assistente", "📤 Exportar"]
)

with tab1:
    kpis(summary)

    upcoming = upcoming_scheduled(scheduled)
    if upcoming:
        st.warning(
            f"Você tem {len(upcoming)} despesa(s) agendada(s) nos próximos 7 dias, "
            f"totalizando {format_brl(sum(e.amount for e in upcoming))}."
        )

    if not transactions:
        st.info("Nenhuma transação cadastrada ainda.")
    else:
        col_a, col_b = st.columns(2)
        col_a.plotly_chart(trend_chart(analyze_trends(transactions)), use_container_width=True)
        col_b.plotly_chart(category_donut(transactions), use_container_width=True)

    st.subheader("💡 Recomendações")
    for rec in basic_recommendations(transactions, summary):
        with st.expander(rec.title):
            st.write(rec.description)
            for item in rec.action_items:
                st.markdown(f"- {item}")

    st.subheader("🧠 Insights")
    found = insights_for(transactions, budgets)
    if not found:
        st.success("Nenhum alerta no momento.")
    for insight in found:
        SEVERITY_BOXES[insight.severity](f"**{insight.title}**\n\n{insight.description}")

    st.subheader("📈 Sugestões de Investimento")
    suggestions = investment_suggestions(summary)
    if suggestions:
        st.dataframe(
            pd.DataFrame(
                [
                    {"Produto": s.name, "Retorno esperado": format_percent(s.expected_return * 100), "Risco": s.risk_level, "Mínimo": format_brl(s.min_amount)}
                    for s in suggestions
                ]
            ),
            use_container_width=True,
        )
    else:
        st.caption("Comece a poupar para receber sugestões de investimento.")

    with st.expander("🧮 Simulador de Investimentos"):
        c1, c2, c3, c4 = st.columns(4)
        initial = c1.number_input("Valor inicial (R$)", min_value=0.0, value=1000.0, step=100.0)
        monthly = c2.number_input("Aporte mensal (R$)", min_value=0.0, value=max(0.0, round(summary.savings, 2)), step=50.0)
        rate = c3.number_input("Taxa anual (%)", min_value=0.0, value=10.0, step=0.5)
        years = c4.slider("Anos", min_value=1, max_value=30, value=10)
        st.plotly_chart(investment_growth(initial, monthly, rate / 100, years), use_container_width=True)

    with st.form("quick_question"):
        question = st.text_input("Pergunta rápida", placeholder="Ex.: Como economizar mais?")
        if st.form_submit_button("Perguntar") and question:
            st.markdown(generate_contextual_response(question, summary, patterns))

with tab2:
    st.header("💳 Transações")
    with st.expander("➕ Nova transação"):
        with st.form("add_transaction"):
            kind = st.radio("Tipo", ["expense", "income"], format_func=lambda t: "Despesa" if t == "expense" else "Receita", horizontal=True)
            category = st.selectbox("Categoria", all_choices)
            amount = st.number_input("Valor (R$)", min_value=0.0, step=10.0)
            description = st.text_input("Descrição")
            when = st.date_input("Data", value=date.today(), format="DD/MM/YYYY")
            if st.form_submit_button("Salvar"):
                with store.session() as repos:
                    repos.transactions.insert(
                        user_id,
                        TransactionCreate(type=kind, category=category, amount=amount, description=description, date=when),
                    )
                st.success("Transação salva.")
                st.rerun()

    if transactions:
        st.dataframe(transactions_export_frame(transactions), use_container_width=True)
        labels = {t.id: f"{format_date(t.date)} | {t.category} | {format_brl(t.amount)}" for t in transactions}
        to_delete = st.selectbox("Selecionar para excluir", list(labels), format_func=labels.get)
        if st.button("Excluir selecionada"):
            with store.session() as repos:
                repos.transactions.delete(user_id, to_delete)
            st.rerun()
    else:
        st.info("Nenhuma transação cadastrada ainda.")

with tab3:
    st.header("🎯 Orçamentos")
    with st.expander("➕ Novo orçamento"):
        with st.form("add_budget"):
            category = st.selectbox("Categoria", expense_choices)
            limit = st.number_input("Limite (R$)", min_value=1.0, step=50.0)
            period = st.radio("Período", ["monthly", "weekly"], format_func=lambda p: "Mensal" if p == "monthly" else "Semanal", horizontal=True)
            if st.form_submit_button("Salvar orçamento"):
                with store.session() as repos:
                    repos.budgets.insert(user_id, BudgetCreate(category=category, limit=limit, period=period))
                st.success(f"Orçamento salvo para {category}.")
                st.rerun()

    if budgets:
        st.plotly_chart(budget_progress(budgets), use_container_width=True)
        st.dataframe(budget_frame(budgets), use_container_width=True)
        labels = {b.id: f"{b.category} ({format_brl(b.limit)})" for b in budgets}
        to_delete = st.selectbox("Selecionar para excluir", list(labels), format_func=labels.get, key="budget_delete")
        if st.button("Excluir orçamento"):
            with store.session() as repos:
                repos.budgets.delete(user_id, to_delete)
            st.rerun()
    else:
        st.info("Nenhum orçamento configurado ainda.")

with tab4:
    st.header("🏁 Metas Financeiras")
    with st.expander("➕ Nova meta"):
        with st.form("add_goal"):
            title = st.text_input("Título")
            description = st.text_input("Descrição")
            target = st.number_input("Valor alvo (R$)", min_value=1.0, step=100.0)
            deadline = st.date_input("Prazo", format="DD/MM/YYYY")
            category = st.selectbox("Categoria", list(GOAL_CATEGORIES), format_func=GOAL_CATEGORIES.get)
            if st.form_submit_button("Criar meta") and title:
                with store.session() as repos:
                    repos.goals.insert(
                        user_id,
                        GoalCreate(title=title, description=description, target_amount=target, deadline=deadline, category=category),
                    )
                st.rerun()

    for goal in goals:
        progress = min(1.0, goal.current_amount / goal.target_amount)
        st.markdown(f"**{goal.title}** · {format_brl(goal.current_amount)} de {format_brl(goal.target_amount)} · prazo {format_date(goal.deadline)}")
        st.progress(progress)
        col_a, col_b = st.columns([3, 1])
        deposit = col_a.number_input("Adicionar valor", min_value=0.0, step=50.0, key=f"deposit_{goal.id}")
        if col_b.button("Atualizar", key=f"update_{goal.id}") and deposit > 0:
            new_amount = goal.current_amount + deposit
            completed = new_amount >= goal.target_amount
            with store.session() as repos:
                repos.goals.update(
                    user_id,
                    goal.id,
                    GoalUpdate(
                        **goal.model_dump(include={"title", "description", "target_amount", "deadline", "category"}),
                        current_amount=new_amount,
                        is_completed=completed,
                        completed_at=goal.completed_at or (datetime.now() if completed else None),
                    ),
                )
            st.rerun()
    if not goals:
        st.info("Nenhuma meta criada ainda.")

with tab_sched:
    st.header("📅 Despesas Agendadas")
    with st.expander("➕ Nova despesa agendada"):
        with st.form("add_scheduled"):
            description = st.text_input("Descrição")
            amount = st.number_input("Valor (R$)", min_value=0.01, step=10.0)
            category = st.selectbox("Categoria", expense_choices)
            when = st.date_input("Data agendada", value=date.today(), format="DD/MM/YYYY")
            frequency = st.selectbox("Frequência", list(FREQUENCIES), format_func=FREQUENCIES.get)
            if st.form_submit_button("Agendar") and description:
                with store.session() as repos:
                    repos.scheduled_expenses.insert(
                        user_id,
                        ScheduledExpenseCreate(
                            description=description, amount=amount, category=category, scheduled_date=when, frequency=frequency
                        ),
                    )
                st.success("Despesa agendada criada!")
                st.rerun()

    overdue = overdue_scheduled(scheduled)
    if overdue:
        st.error(f"{len(overdue)} despesa(s) vencida(s) aguardando pagamento.")

    pending = [e for e in scheduled if not e.is_completed]
    for expense in pending:
        remaining = days_until(expense.scheduled_date)
        if remaining < 0:
            when_text = f"Vencida há {abs(remaining)} dias"
        elif remaining == 0:
            when_text = "Hoje"
        else:
            when_text = f"Em {remaining} dia(s)"
        col_a, col_b, col_c = st.columns([4, 1, 1])
        col_a.markdown(
            f"**{expense.description}** · {expense.category} · {format_brl(expense.amount)} · "
            f"{format_date(expense.scheduled_date)} ({when_text}) · {FREQUENCIES[expense.frequency]}"
        )
        if col_b.button("✔️ Concluir", key=f"complete_{expense.id}"):
            with store.session() as repos:
                repos.scheduled_expenses.complete(user_id, expense.id)
            st.rerun()
        if col_c.button("🗑️ Excluir", key=f"delete_sched_{expense.id}"):
            with store.session() as repos:
                repos.scheduled_expenses.delete(user_id, expense.id)
            st.rerun()
    if not pending:
        st.info("Nenhuma despesa agendada pendente.")

    done = [e for e in scheduled if e.is_completed]
    if done:
        with st.expander(f"Concluídas ({len(done)})"):
            for expense in done:
                st.markdown(f"- ~~{expense.description}~~ · {format_brl(expense.amount)} · {format_date(expense.scheduled_date)}")

with tab_cat:
    st.header("🏷️ Categorias Personalizadas")
    labels = category_labels(custom_categories)
    with st.expander("➕ Nova categoria"):
        with st.form("add_category"):
            name = st.text_input("Nome")
            icon = st.text_input("Ícone", value="💰", max_chars=2)
            color = st.color_picker("Cor", value="#6366f1")
            parent = st.selectbox("Categoria pai", [None] + list(labels), format_func=lambda c: "Nenhuma" if c is None else labels[c])
            if st.form_submit_button("Criar categoria") and name:
                try:
                    with store.session() as repos:
                        repos.categories.insert(
                            user_id, CategoryCreate(name=name, icon=icon or "💰", color=color, parent_category_id=parent)
                        )
                except InvalidReferenceError as e:
                    st.error(str(e))
                else:
                    st.rerun()

    if custom_categories:
        for category in custom_categories:
            col_a, col_b = st.columns([5, 1])
            col_a.markdown(f"{labels[category.id]} · <span style='color:{category.color}'>{category.color}</span>", unsafe_allow_html=True)
            if col_b.button("🗑️", key=f"delete_cat_{category.id}"):
                with store.session() as repos:
                    repos.categories.delete(user_id, category.id)
                st.rerun()
    else:
        st.info("Nenhuma categoria personalizada ainda.")

with tab5:
    st.header("🤖 Assistente Financeiro")
    if "assistant" not in st.session_state:
        st.session_state["assistant"] = AssistantSession(transactions, budgets)
    session = st.session_state["assistant"]
    # Keep the assistant on the latest data
    session.transactions = transactions
    session.budgets = budgets

    for message in session.history:
        with st.chat_message("user" if message.role == "user" else "assistant"):
            st.markdown(message.content)

    prompt = st.chat_input("Pergunte sobre suas finanças...")
    if prompt:
        with st.chat_message("user"):
            st.markdown(prompt)
        with st.chat_message("assistant"):
            with st.spinner("Analisando..."):
                time.sleep(settings.assistant_delay)
                result = session.ask(prompt)
            st.markdown(result.response)

    if session.history and st.button("🧹 Limpar conversa"):
        session.reset()
        st.rerun()

with tab6:
    st.header("📤 Exportar")
    today = date.today()
    col_a, col_b, col_c = st.columns(3)
    col_a.download_button(
        "Transações (CSV)",
        to_csv_bytes(transactions_export_frame(transactions)),
        file_name=export_filename("transacoes", today),
        mime="text/csv",
    )
    col_b.download_button(
        "Orçamentos (CSV)",
        to_csv_bytes(budgets_export_frame(budgets)),
        file_name=export_filename("orcamentos", today),
        mime="text/csv",
    )
    report = monthly_report(transactions, budgets, summary, today)
    col_c.download_button("Relatório mensal (TXT)", report, file_name=export_filename("relatorio", today, "txt"))

    if st.button("☁️ Salvar relatório no armazenamento"):
        if save_file(export_filename(f"relatorio_{user_id}", today, "txt"), report, settings=settings):
            st.success("Relatório salvo.")
        else:
            st.error("Falha ao salvar o relatório.")
    with st.expander("Pré-visualizar relatório"):
        st.text(report)
