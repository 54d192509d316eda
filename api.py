"""HTTP API over the store and the analysis core, served with FastAPI."""

import logging
from datetime import date
from typing import Iterator, List, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.exceptions import HTTPException as StarletteHTTPException

from analysis import analyze_spending_patterns, analyze_trends, financial_summary, upcoming_scheduled, with_spent
from assistant import answer
from auth import AuthError, check_password, hash_password, issue_token, resolve_token, revoke_token
from config import Settings, configure_logging, get_settings
from cost_cutting import analyze_high_expenses, create_cost_cutting_plan, create_financial_reorganization_plan
from export import export_filename, monthly_report, to_csv_bytes, transactions_export_frame
from insights import basic_recommendations, insights_for, investment_suggestions
from investments import DEFAULT_HORIZONS, calculate_investment_projection
from repository import DuplicateError, InvalidReferenceError, NotFoundError, Repositories, StoreClient
from schemas import (
    AuthResponse,
    BudgetCreate,
    BudgetRecord,
    CategoryCreate,
    CategoryRecord,
    ChatRequest,
    ChatResponse,
    CostCuttingReport,
    FinancialInsight,
    FinancialSummary,
    GoalCreate,
    GoalRecord,
    GoalUpdate,
    InvestmentProjection,
    InvestmentSuggestion,
    LoginRequest,
    Recommendation,
    RegisterRequest,
    ScheduledExpenseCreate,
    ScheduledExpenseRecord,
    ScheduledExpenseUpdate,
    SpendingPattern,
    TransactionCreate,
    TransactionRecord,
    TrendPoint,
)
from storage import save_file

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGES = {
    "transactions": "Transação não encontrada",
    "budgets": "Orçamento não encontrado",
    "financial_goals": "Meta não encontrada",
    "scheduled_expenses": "Despesa agendada não encontrada",
    "custom_categories": "Categoria não encontrada",
    "users": "Usuário não encontrado",
}

bearer = HTTPBearer(auto_error=False)


# --- Dependencies ---

def get_store(request: Request) -> StoreClient:
    return request.app.state.store


def get_settings_dep(request: Request) -> Settings:
    return request.app.state.settings


def get_repos(store: StoreClient = Depends(get_store)) -> Iterator[Repositories]:
    with store.session() as repos:
        yield repos


def current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
    repos: Repositories = Depends(get_repos),
) -> str:
    return resolve_token(repos.session, credentials.credentials if credentials else None)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())[1:])
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Requisição inválida"


def create_app(store: Optional[StoreClient] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="Gasto Pessoal API", version="0.1.0")
    app.state.settings = settings
    app.state.store = store or StoreClient(settings.database_url)

    # --- Error mapping ---

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return _error(404, NOT_FOUND_MESSAGES.get(exc.table, "Registro não encontrado"))

    @app.exception_handler(AuthError)
    async def auth_handler(request: Request, exc: AuthError):
        return _error(401, str(exc))

    @app.exception_handler(DuplicateError)
    async def duplicate_handler(request: Request, exc: DuplicateError):
        return _error(400, "Email já está em uso")

    @app.exception_handler(InvalidReferenceError)
    async def invalid_reference_handler(request: Request, exc: InvalidReferenceError):
        return _error(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        return _error(400, _validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error(500, "Erro interno do servidor")

    # --- Auth ---

    @app.post("/auth/register", response_model=AuthResponse, status_code=201)
    def register(req: RegisterRequest, repos: Repositories = Depends(get_repos), cfg: Settings = Depends(get_settings_dep)):
        user = repos.users.insert(req.name, req.email, hash_password(req.password), req.type, req.partner_id)
        token = issue_token(repos.session, user.id, cfg.token_ttl_hours)
        return AuthResponse(message="Usuário criado com sucesso", token=token, user=user)

    @app.post("/auth/login", response_model=AuthResponse)
    def login(req: LoginRequest, repos: Repositories = Depends(get_repos), cfg: Settings = Depends(get_settings_dep)):
        row = repos.users.find_by_email(req.email)
        if row is None or not check_password(req.password, row.password_hash):
            raise AuthError("Email ou senha incorretos")
        token = issue_token(repos.session, row.id, cfg.token_ttl_hours)
        return AuthResponse(message="Login realizado com sucesso", token=token, user=repos.users.get(row.id))

    @app.get("/auth/verify")
    def verify(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
        repos: Repositories = Depends(get_repos),
    ):
        try:
            user_id = resolve_token(repos.session, credentials.credentials if credentials else None)
        except AuthError as e:
            return JSONResponse(status_code=401, content={"valid": False, "error": str(e)})
        return {"valid": True, "user": repos.users.get(user_id).model_dump()}

    @app.post("/auth/logout")
    def logout(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer),
        user_id: str = Depends(current_user_id),
        repos: Repositories = Depends(get_repos),
    ):
        revoke_token(repos.session, credentials.credentials)
        return {"message": "Logout realizado com sucesso"}

    # --- Transactions ---

    @app.get("/transactions", response_model=List[TransactionRecord])
    def list_transactions(user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.transactions.list_by_user(user_id)

    @app.post("/transactions", response_model=TransactionRecord, status_code=201)
    def create_transaction(data: TransactionCreate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.transactions.insert(user_id, data)

    @app.put("/transactions/{record_id}", response_model=TransactionRecord)
    def update_transaction(record_id: str, data: TransactionCreate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.transactions.update(user_id, record_id, data)

    @app.delete("/transactions/{record_id}")
    def delete_transaction(record_id: str, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        repos.transactions.delete(user_id, record_id)
        return {"message": "Transação deletada com sucesso"}

    # --- Budgets ---

    @app.get("/budgets", response_model=List[BudgetRecord])
    def list_budgets(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return with_spent(repos.budgets.list_by_user(user_id), repos.transactions.list_by_user(user_id), as_of)

    @app.post("/budgets", response_model=BudgetRecord, status_code=201)
    def create_budget(data: BudgetCreate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.budgets.insert(user_id, data)

    @app.put("/budgets/{record_id}", response_model=BudgetRecord)
    def update_budget(record_id: str, data: BudgetCreate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.budgets.update(user_id, record_id, data)

    @app.delete("/budgets/{record_id}")
    def delete_budget(record_id: str, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        repos.budgets.delete(user_id, record_id)
        return {"message": "Orçamento deletado com sucesso"}

    # --- Goals ---

    @app.get("/goals", response_model=List[GoalRecord])
    def list_goals(user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.goals.list_by_user(user_id)

    @app.post("/goals", response_model=GoalRecord, status_code=201)
    def create_goal(data: GoalCreate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.goals.insert(user_id, data)

    @app.put("/goals/{record_id}", response_model=GoalRecord)
    def update_goal(record_id: str, data: GoalUpdate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.goals.update(user_id, record_id, data)

    @app.delete("/goals/{record_id}")
    def delete_goal(record_id: str, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        repos.goals.delete(user_id, record_id)
        return {"message": "Meta deletada com sucesso"}

    # --- Scheduled expenses ---

    @app.get("/scheduled-expenses", response_model=List[ScheduledExpenseRecord])
    def list_scheduled(user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.scheduled_expenses.list_by_user(user_id)

    @app.get("/scheduled-expenses/upcoming", response_model=List[ScheduledExpenseRecord])
    def list_upcoming(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return upcoming_scheduled(repos.scheduled_expenses.list_by_user(user_id), as_of)

    @app.post("/scheduled-expenses", response_model=ScheduledExpenseRecord, status_code=201)
    def create_scheduled(data: ScheduledExpenseCreate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.scheduled_expenses.insert(user_id, data)

    @app.put("/scheduled-expenses/{record_id}", response_model=ScheduledExpenseRecord)
    def update_scheduled(record_id: str, data: ScheduledExpenseUpdate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.scheduled_expenses.update(user_id, record_id, data)

    @app.post("/scheduled-expenses/{record_id}/complete", response_model=ScheduledExpenseRecord)
    def complete_scheduled(record_id: str, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.scheduled_expenses.complete(user_id, record_id)

    @app.delete("/scheduled-expenses/{record_id}")
    def delete_scheduled(record_id: str, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        repos.scheduled_expenses.delete(user_id, record_id)
        return {"message": "Despesa agendada excluída com sucesso"}

    # --- Custom categories ---

    @app.get("/categories", response_model=List[CategoryRecord])
    def list_categories(user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.categories.list_by_user(user_id)

    @app.post("/categories", response_model=CategoryRecord, status_code=201)
    def create_category(data: CategoryCreate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.categories.insert(user_id, data)

    @app.put("/categories/{record_id}", response_model=CategoryRecord)
    def update_category(record_id: str, data: CategoryCreate, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return repos.categories.update(user_id, record_id, data)

    @app.delete("/categories/{record_id}")
    def delete_category(record_id: str, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        repos.categories.delete(user_id, record_id)
        return {"message": "Categoria excluída com sucesso"}

    # --- Analysis ---

    @app.get("/analysis/summary", response_model=FinancialSummary)
    def summary(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return financial_summary(repos.transactions.list_by_user(user_id), as_of)

    @app.get("/analysis/patterns", response_model=List[SpendingPattern])
    def patterns(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        transactions = repos.transactions.list_by_user(user_id)
        income = financial_summary(transactions, as_of).total_income
        return analyze_spending_patterns(transactions, income, as_of)

    @app.get("/analysis/trends", response_model=List[TrendPoint])
    def trends(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return analyze_trends(repos.transactions.list_by_user(user_id), as_of)

    @app.get("/analysis/insights", response_model=List[FinancialInsight])
    def insights(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return insights_for(repos.transactions.list_by_user(user_id), repos.budgets.list_by_user(user_id), as_of)

    @app.get("/analysis/recommendations", response_model=List[Recommendation])
    def recommendations(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        transactions = repos.transactions.list_by_user(user_id)
        return basic_recommendations(transactions, financial_summary(transactions, as_of))

    @app.get("/analysis/investments", response_model=List[InvestmentSuggestion])
    def investments(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return investment_suggestions(financial_summary(repos.transactions.list_by_user(user_id), as_of))

    @app.get("/analysis/cost-cutting", response_model=CostCuttingReport)
    def cost_cutting(as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        transactions = repos.transactions.list_by_user(user_id)
        budgets = repos.budgets.list_by_user(user_id)
        s = financial_summary(transactions, as_of)
        found = analyze_spending_patterns(transactions, s.total_income, as_of)
        plans = create_cost_cutting_plan(s.total_income, s.total_expenses, found, transactions, budgets)
        return CostCuttingReport(
            analysis=analyze_high_expenses(s.total_income, s.total_expenses, found, transactions),
            plans=plans,
            reorganization=create_financial_reorganization_plan(s.total_income, s.total_expenses, found, plans),
        )

    @app.get("/investments/projection", response_model=List[InvestmentProjection])
    def projection(initial: float = 0.0, monthly: float = 0.0, annual_rate: float = 0.12, years: int = 10):
        if years < 1 or annual_rate < 0 or initial < 0 or monthly < 0:
            raise StarletteHTTPException(status_code=400, detail="Parâmetros inválidos")
        horizons = sorted({h for h in DEFAULT_HORIZONS if h <= years} | {years})
        return calculate_investment_projection(initial, monthly, annual_rate, horizons)

    # --- Assistant ---

    @app.post("/assistant/chat", response_model=ChatResponse)
    def chat(req: ChatRequest, as_of: Optional[date] = None, user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        return answer(
            req.message,
            repos.transactions.list_by_user(user_id),
            repos.budgets.list_by_user(user_id),
            req.history,
            as_of,
        )

    # --- Export ---

    @app.get("/export/transactions.csv")
    def export_transactions(user_id: str = Depends(current_user_id), repos: Repositories = Depends(get_repos)):
        body = to_csv_bytes(transactions_export_frame(repos.transactions.list_by_user(user_id)))
        filename = export_filename("transacoes")
        return Response(
            content=body,
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @app.post("/export/report")
    def export_report(
        as_of: Optional[date] = None,
        user_id: str = Depends(current_user_id),
        repos: Repositories = Depends(get_repos),
        cfg: Settings = Depends(get_settings_dep),
    ):
        transactions = repos.transactions.list_by_user(user_id)
        budgets = with_spent(repos.budgets.list_by_user(user_id), transactions, as_of)
        report = monthly_report(transactions, budgets, financial_summary(transactions, as_of), as_of)
        filename = export_filename(f"relatorio_{user_id}", as_of, "txt")
        saved = save_file(filename, report, settings=cfg)
        return {"saved": saved, "file": filename}

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("api:create_app", factory=True, host="0.0.0.0", port=8001, reload=True)
