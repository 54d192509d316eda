import json
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, String, Text, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import get_settings

Base = declarative_base()


def new_id(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:16]}"


# --- Models ---

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=lambda: new_id("user"))
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)  # bcrypt hash, never plain text
    type = Column(String, default="single")  # 'single' or 'couple'
    partner_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True, default=lambda: new_id("trans"))
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    type = Column(String, nullable=False)  # 'income' or 'expense'
    category = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(String, default="")
    date = Column(Date, index=True, nullable=False)
    tags_json = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def tags(self):
        return json.loads(self.tags_json) if self.tags_json else []

    @tags.setter
    def tags(self, value):
        self.tags_json = json.dumps(list(value)) if value else None


class Budget(Base):
    __tablename__ = "budgets"

    id = Column(String, primary_key=True, default=lambda: new_id("budget"))
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    category = Column(String, nullable=False)
    limit = Column(Float, nullable=False)
    period = Column(String, default="monthly")  # 'monthly' or 'weekly'
    created_at = Column(DateTime, default=datetime.utcnow)


class FinancialGoal(Base):
    __tablename__ = "financial_goals"

    id = Column(String, primary_key=True, default=lambda: new_id("goal"))
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(String, default="")
    target_amount = Column(Float, nullable=False)
    current_amount = Column(Float, default=0.0)
    deadline = Column(Date, nullable=False)
    category = Column(String, default="savings")
    is_completed = Column(Boolean, default=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ScheduledExpense(Base):
    __tablename__ = "scheduled_expenses"

    id = Column(String, primary_key=True, default=lambda: new_id("sched"))
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    description = Column(String, nullable=False)
    amount = Column(Float, nullable=False)
    category = Column(String, nullable=False)
    scheduled_date = Column(Date, index=True, nullable=False)
    frequency = Column(String, default="once")  # once, weekly, monthly, yearly
    is_completed = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


class CustomCategory(Base):
    __tablename__ = "custom_categories"

    id = Column(String, primary_key=True, default=lambda: new_id("cat"))
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    name = Column(String, nullable=False)
    icon = Column(String, default="💰")
    color = Column(String, default="#6366f1")
    parent_category_id = Column(String, ForeignKey("custom_categories.id"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class AuthToken(Base):
    __tablename__ = "auth_tokens"

    token = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), index=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)


# --- Engine / sessions ---

def build_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            # Share the single in-memory database across sessions
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url)


def build_session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine=None):
    engine = engine or build_engine(get_settings().database_url)
    Base.metadata.create_all(bind=engine)
    return engine


def create_store(url: str):
    """Engine with tables created plus a session factory bound to it."""
    engine = init_db(build_engine(url))
    return engine, build_session_factory(engine)
