"""Typed repositories over the SQLAlchemy models.

A single :class:`StoreClient` is built at process start and handed to whoever
needs persistence (API dependencies, the streamlit app, the seed script).
Repositories only ever return pydantic records, never ORM rows.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional

from sqlalchemy.orm import Session

import database
from config import get_settings
from schemas import (
    BudgetCreate,
    BudgetRecord,
    CategoryCreate,
    CategoryRecord,
    GoalCreate,
    GoalRecord,
    GoalUpdate,
    ScheduledExpenseCreate,
    ScheduledExpenseRecord,
    ScheduledExpenseUpdate,
    TransactionCreate,
    TransactionRecord,
    UserPublic,
)

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """Record does not exist or belongs to another user."""

    def __init__(self, table: str, record_id: str):
        super().__init__(f"{table}:{record_id}")
        self.table = table
        self.record_id = record_id


class DuplicateError(ValueError):
    """Unique field already taken."""


class InvalidReferenceError(ValueError):
    """Record points at something it cannot reference."""


class _OwnedRepository:
    model = None
    record = None

    def __init__(self, session: Session):
        self.session = session

    def _owned(self, user_id: str, record_id: str):
        row = self.session.get(self.model, record_id)
        if row is None or row.user_id != user_id:
            raise NotFoundError(self.model.__tablename__, record_id)
        return row

    def get(self, user_id: str, record_id: str):
        return self.record.model_validate(self._owned(user_id, record_id))

    def delete(self, user_id: str, record_id: str) -> None:
        row = self._owned(user_id, record_id)
        self.session.delete(row)
        self.session.commit()
        logger.info("Deleted %s %s", self.model.__tablename__, record_id)


class TransactionRepository(_OwnedRepository):
    model = database.Transaction
    record = TransactionRecord

    def list_by_user(self, user_id: str) -> List[TransactionRecord]:
        rows = (
            self.session.query(database.Transaction)
            .filter(database.Transaction.user_id == user_id)
            .order_by(database.Transaction.date.desc(), database.Transaction.created_at.desc())
            .all()
        )
        return [TransactionRecord.model_validate(r) for r in rows]

    def insert(self, user_id: str, data: TransactionCreate) -> TransactionRecord:
        row = database.Transaction(
            user_id=user_id,
            type=data.type,
            category=data.category,
            amount=data.amount,
            description=data.description,
            date=data.date,
        )
        row.tags = data.tags
        self.session.add(row)
        self.session.commit()
        return TransactionRecord.model_validate(row)

    def update(self, user_id: str, record_id: str, data: TransactionCreate) -> TransactionRecord:
        row = self._owned(user_id, record_id)
        row.type = data.type
        row.category = data.category
        row.amount = data.amount
        row.description = data.description
        row.date = data.date
        row.tags = data.tags
        self.session.commit()
        return TransactionRecord.model_validate(row)


class BudgetRepository(_OwnedRepository):
    model = database.Budget
    record = BudgetRecord

    def list_by_user(self, user_id: str) -> List[BudgetRecord]:
        rows = (
            self.session.query(database.Budget)
            .filter(database.Budget.user_id == user_id)
            .order_by(database.Budget.created_at.desc())
            .all()
        )
        return [BudgetRecord.model_validate(r) for r in rows]

    def insert(self, user_id: str, data: BudgetCreate) -> BudgetRecord:
        row = database.Budget(user_id=user_id, category=data.category, limit=data.limit, period=data.period)
        self.session.add(row)
        self.session.commit()
        return BudgetRecord.model_validate(row)

    def update(self, user_id: str, record_id: str, data: BudgetCreate) -> BudgetRecord:
        row = self._owned(user_id, record_id)
        row.category = data.category
        row.limit = data.limit
        row.period = data.period
        self.session.commit()
        return BudgetRecord.model_validate(row)


class GoalRepository(_OwnedRepository):
    model = database.FinancialGoal
    record = GoalRecord

    def list_by_user(self, user_id: str) -> List[GoalRecord]:
        rows = (
            self.session.query(database.FinancialGoal)
            .filter(database.FinancialGoal.user_id == user_id)
            .order_by(database.FinancialGoal.created_at.desc())
            .all()
        )
        return [GoalRecord.model_validate(r) for r in rows]

    def insert(self, user_id: str, data: GoalCreate) -> GoalRecord:
        row = database.FinancialGoal(
            user_id=user_id,
            title=data.title,
            description=data.description,
            target_amount=data.target_amount,
            deadline=data.deadline,
            category=data.category,
        )
        self.session.add(row)
        self.session.commit()
        return GoalRecord.model_validate(row)

    def update(self, user_id: str, record_id: str, data: GoalUpdate) -> GoalRecord:
        row = self._owned(user_id, record_id)
        for field, value in data.model_dump().items():
            setattr(row, field, value)
        self.session.commit()
        return GoalRecord.model_validate(row)


class ScheduledExpenseRepository(_OwnedRepository):
    model = database.ScheduledExpense
    record = ScheduledExpenseRecord

    def list_by_user(self, user_id: str) -> List[ScheduledExpenseRecord]:
        rows = (
            self.session.query(database.ScheduledExpense)
            .filter(database.ScheduledExpense.user_id == user_id)
            .order_by(database.ScheduledExpense.scheduled_date, database.ScheduledExpense.created_at)
            .all()
        )
        return [ScheduledExpenseRecord.model_validate(r) for r in rows]

    def insert(self, user_id: str, data: ScheduledExpenseCreate) -> ScheduledExpenseRecord:
        row = database.ScheduledExpense(user_id=user_id, is_completed=False, **data.model_dump())
        self.session.add(row)
        self.session.commit()
        return ScheduledExpenseRecord.model_validate(row)

    def update(self, user_id: str, record_id: str, data: ScheduledExpenseUpdate) -> ScheduledExpenseRecord:
        row = self._owned(user_id, record_id)
        for field, value in data.model_dump().items():
            setattr(row, field, value)
        self.session.commit()
        return ScheduledExpenseRecord.model_validate(row)

    def complete(self, user_id: str, record_id: str) -> ScheduledExpenseRecord:
        row = self._owned(user_id, record_id)
        row.is_completed = True
        self.session.commit()
        logger.info("Completed scheduled expense %s", record_id)
        return ScheduledExpenseRecord.model_validate(row)


class CategoryRepository(_OwnedRepository):
    model = database.CustomCategory
    record = CategoryRecord

    def list_by_user(self, user_id: str) -> List[CategoryRecord]:
        rows = (
            self.session.query(database.CustomCategory)
            .filter(database.CustomCategory.user_id == user_id)
            .order_by(database.CustomCategory.name)
            .all()
        )
        return [CategoryRecord.model_validate(r) for r in rows]

    def _check_parent(self, user_id: str, data: CategoryCreate, record_id: Optional[str] = None) -> None:
        if data.parent_category_id is None:
            return
        if data.parent_category_id == record_id:
            raise InvalidReferenceError("Uma categoria não pode ser pai de si mesma")
        self._owned(user_id, data.parent_category_id)

    def insert(self, user_id: str, data: CategoryCreate) -> CategoryRecord:
        self._check_parent(user_id, data)
        row = database.CustomCategory(user_id=user_id, **data.model_dump())
        self.session.add(row)
        self.session.commit()
        return CategoryRecord.model_validate(row)

    def update(self, user_id: str, record_id: str, data: CategoryCreate) -> CategoryRecord:
        row = self._owned(user_id, record_id)
        self._check_parent(user_id, data, record_id)
        for field, value in data.model_dump().items():
            setattr(row, field, value)
        self.session.commit()
        return CategoryRecord.model_validate(row)

    def delete(self, user_id: str, record_id: str) -> None:
        row = self._owned(user_id, record_id)
        # Children become top-level
        self.session.query(database.CustomCategory).filter(
            database.CustomCategory.parent_category_id == record_id
        ).update({"parent_category_id": None})
        self.session.delete(row)
        self.session.commit()
        logger.info("Deleted custom_categories %s", record_id)


class UserRepository:
    def __init__(self, session: Session):
        self.session = session

    def get(self, user_id: str) -> UserPublic:
        row = self.session.get(database.User, user_id)
        if row is None:
            raise NotFoundError("users", user_id)
        return UserPublic.model_validate(row)

    def find_by_email(self, email: str) -> Optional[database.User]:
        return self.session.query(database.User).filter(database.User.email == email).first()

    def insert(self, name: str, email: str, password_hash: str, user_type: str, partner_id: Optional[str] = None) -> UserPublic:
        if self.find_by_email(email) is not None:
            raise DuplicateError(email)
        row = database.User(
            name=name,
            email=email,
            password_hash=password_hash,
            type=user_type,
            partner_id=partner_id,
        )
        self.session.add(row)
        self.session.commit()
        logger.info("Created user %s (%s)", row.id, user_type)
        return UserPublic.model_validate(row)


class Repositories:
    """Repositories bound to one session."""

    def __init__(self, session: Session):
        self.session = session
        self.users = UserRepository(session)
        self.transactions = TransactionRepository(session)
        self.budgets = BudgetRepository(session)
        self.goals = GoalRepository(session)
        self.scheduled_expenses = ScheduledExpenseRepository(session)
        self.categories = CategoryRepository(session)


class StoreClient:
    """Engine + session factory, built once and injected."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or get_settings().database_url
        self.engine, self.session_factory = database.create_store(self.url)
        logger.info("Store ready at %s", self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session(self) -> Iterator[Repositories]:
        db = self.session_factory()
        try:
            yield Repositories(db)
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
