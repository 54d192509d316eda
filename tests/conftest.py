import itertools
from datetime import date, datetime

import pytest

from config import Settings
from schemas import BudgetRecord, ScheduledExpenseRecord, TransactionRecord

_ids = itertools.count(1)


@pytest.fixture
def make_txn():
    """Factory for stored transaction records."""

    def _make(kind: str, category: str, amount: float, day: date, description: str = "") -> TransactionRecord:
        return TransactionRecord(
            id=f"txn_{next(_ids)}",
            user_id="user_1",
            type=kind,
            category=category,
            amount=amount,
            description=description,
            date=day,
            created_at=datetime(2024, 1, 1),
        )

    return _make


@pytest.fixture
def make_budget():
    def _make(category: str, limit: float, period: str = "monthly", spent: float = 0.0) -> BudgetRecord:
        return BudgetRecord(
            id=f"bud_{next(_ids)}",
            user_id="user_1",
            category=category,
            limit=limit,
            period=period,
            spent=spent,
            created_at=datetime(2024, 1, 1),
        )

    return _make


@pytest.fixture
def make_scheduled():
    def _make(description: str, amount: float, day: date, completed: bool = False, frequency: str = "once") -> ScheduledExpenseRecord:
        return ScheduledExpenseRecord(
            id=f"sched_{next(_ids)}",
            user_id="user_1",
            description=description,
            amount=amount,
            category="Moradia",
            scheduled_date=day,
            frequency=frequency,
            is_completed=completed,
            created_at=datetime(2024, 1, 1),
        )

    return _make


@pytest.fixture
def local_settings(tmp_path) -> Settings:
    return Settings(
        database_url="sqlite://",
        token_ttl_hours=24,
        assistant_delay=0.0,
        export_folder=str(tmp_path / "exports"),
        s3_bucket=None,
        aws_region="us-east-1",
        log_level="INFO",
    )
