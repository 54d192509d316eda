"""Pydantic models for stored records, API payloads and derived analysis results."""

from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal["income", "expense"]
BudgetPeriod = Literal["monthly", "weekly"]
GoalCategory = Literal["savings", "debt", "investment", "purchase", "other"]
UserType = Literal["single", "couple"]
TrendDirection = Literal["increasing", "decreasing", "stable"]
Severity = Literal["critical", "high", "medium", "low"]
InsightType = Literal["spending_pattern", "savings_opportunity", "risk_alert", "optimization"]
RiskTolerance = Literal["conservative", "moderate", "aggressive"]
ScheduleFrequency = Literal["once", "weekly", "monthly", "yearly"]


# --- Stored records ---

class TransactionBase(BaseModel):
    type: TransactionType
    category: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    description: str = ""
    date: dt.date
    tags: List[str] = Field(default_factory=list)


class TransactionCreate(TransactionBase):
    pass


class TransactionRecord(TransactionBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: dt.datetime


class BudgetBase(BaseModel):
    category: str = Field(..., min_length=1)
    limit: float = Field(..., gt=0)
    period: BudgetPeriod = "monthly"


class BudgetCreate(BudgetBase):
    pass


class BudgetRecord(BudgetBase):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    spent: float = Field(0.0, ge=0)
    created_at: dt.datetime


class GoalBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    target_amount: float = Field(..., gt=0)
    deadline: dt.date
    category: GoalCategory = "savings"


class GoalCreate(GoalBase):
    pass


class GoalUpdate(GoalBase):
    current_amount: float = Field(0.0, ge=0)
    is_completed: bool = False
    completed_at: Optional[dt.datetime] = None


class GoalRecord(GoalUpdate):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: dt.datetime


class ScheduledExpenseBase(BaseModel):
    description: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    category: str = Field(..., min_length=1)
    scheduled_date: dt.date
    frequency: ScheduleFrequency = "once"


class ScheduledExpenseCreate(ScheduledExpenseBase):
    pass


class ScheduledExpenseUpdate(ScheduledExpenseBase):
    is_completed: bool = False


class ScheduledExpenseRecord(ScheduledExpenseUpdate):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: dt.datetime


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1)
    icon: str = "💰"
    color: str = Field("#6366f1", pattern=r"^#[0-9a-fA-F]{6}$")
    parent_category_id: Optional[str] = None


class CategoryRecord(CategoryCreate):
    model_config = ConfigDict(from_attributes=True)

    id: str
    user_id: str
    created_at: dt.datetime


class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    type: UserType
    partner_id: Optional[str] = None


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    type: UserType
    partner_id: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserPublic


# --- Derived analysis results (never persisted) ---

class FinancialSummary(BaseModel):
    total_income: float
    total_expenses: float
    balance: float
    savings: float
    savings_rate: float


class SpendingPattern(BaseModel):
    category: str
    total: float
    average: float
    count: int
    trend: TrendDirection
    percentage_of_income: float


class TrendPoint(BaseModel):
    period: str
    income: float
    expenses: float
    savings: float
    savings_rate: float


class FinancialInsight(BaseModel):
    type: InsightType
    title: str
    description: str
    severity: Severity
    impact: float
    confidence: int = Field(..., ge=0, le=100)
    recommendations: List[str]
    data: Dict[str, Any] = Field(default_factory=dict)


class Strategy(BaseModel):
    title: str
    description: str
    savings: float
    steps: List[str]
    tips: List[str]
    warnings: Optional[List[str]] = None


class CostCuttingPlan(BaseModel):
    priority: Severity
    category: str
    current_spending: float
    target_spending: float
    potential_savings: float
    strategies: List[Strategy]
    difficulty: Literal["easy", "medium", "hard"]
    time_to_implement: str
    impact: Literal["high", "medium", "low"]


class HighExpenseAnalysis(BaseModel):
    is_critical: bool
    severity: Optional[Literal["critical", "high", "medium"]]
    expense_ratio: float
    analysis: str


class PhasePlan(BaseModel):
    timeframe: str
    actions: List[str]
    expected_savings: float


class ReorganizationPlan(BaseModel):
    emergency_actions: List[str]
    short_term_plan: PhasePlan
    medium_term_plan: PhasePlan
    long_term_plan: PhasePlan
    total_potential_savings: float


class CostCuttingReport(BaseModel):
    analysis: HighExpenseAnalysis
    plans: List[CostCuttingPlan]
    reorganization: ReorganizationPlan


class Recommendation(BaseModel):
    id: str
    type: Literal["savings", "investment", "expense_reduction", "budget_optimization"]
    title: str
    description: str
    priority: Literal["high", "medium", "low"]
    action_items: List[str]


class InvestmentSuggestion(BaseModel):
    id: str
    type: RiskTolerance
    name: str
    description: str
    expected_return: float
    risk_level: Literal["low", "medium", "high"]
    min_amount: float


class InvestmentProjection(BaseModel):
    year: int
    months: int
    total_invested: float
    total_value: float
    earnings: float
    return_rate: float


# --- Assistant ---

class IntentAnalysis(BaseModel):
    intent: str
    confidence: float
    entities: Dict[str, Any] = Field(default_factory=dict)
    context: List[str] = Field(default_factory=list)


class UserProfile(BaseModel):
    savings_rate: float
    total_income: float
    total_expenses: float
    balance: float
    risk_tolerance: RiskTolerance
    financial_goals: List[str] = Field(default_factory=list)
    time_horizon: Literal["short", "medium", "long"] = "medium"


class ChatMessage(BaseModel):
    role: Literal["user", "ai"]
    content: str
    timestamp: dt.datetime = Field(default_factory=dt.datetime.now)


class ConversationContext(BaseModel):
    user_profile: UserProfile
    conversation_history: List[ChatMessage] = Field(default_factory=list)
    identified_needs: List[str] = Field(default_factory=list)
    previous_recommendations: List[str] = Field(default_factory=list)


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)
    history: List[ChatMessage] = Field(default_factory=list)


class ChatResponse(BaseModel):
    intent: IntentAnalysis
    response: str

