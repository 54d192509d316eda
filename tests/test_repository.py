from datetime import date, datetime, timedelta

import pytest

from auth import AuthError, check_password, hash_password, issue_token, resolve_token, revoke_token
from database import AuthToken
from repository import DuplicateError, InvalidReferenceError, NotFoundError, StoreClient
from schemas import (
    BudgetCreate,
    CategoryCreate,
    GoalCreate,
    GoalUpdate,
    ScheduledExpenseCreate,
    ScheduledExpenseUpdate,
    TransactionCreate,
)


@pytest.fixture
def store():
    client = StoreClient("sqlite://")
    yield client
    client.dispose()


def _user(repos, email: str = "ana@example.com"):
    return repos.users.insert("Ana", email, hash_password("segredo1"), "single")


def test_transactions_are_scoped_to_owner(store) -> None:
    with store.session() as repos:
        ana = _user(repos)
        bia = _user(repos, "bia@example.com")
        older = repos.transactions.insert(
            ana.id, TransactionCreate(type="expense", category="Lazer", amount=50.0, date=date(2024, 7, 1), tags=["cinema"])
        )
        newer = repos.transactions.insert(ana.id, TransactionCreate(type="income", category="Salário", amount=5000.0, date=date(2024, 7, 5)))

        assert [t.id for t in repos.transactions.list_by_user(ana.id)] == [newer.id, older.id]
        assert repos.transactions.list_by_user(bia.id) == []
        assert repos.transactions.get(ana.id, older.id).tags == ["cinema"]

        with pytest.raises(NotFoundError) as err:
            repos.transactions.get(bia.id, older.id)
        assert err.value.table == "transactions"


def test_update_and_delete(store) -> None:
    with store.session() as repos:
        ana = _user(repos)
        budget = repos.budgets.insert(ana.id, BudgetCreate(category="Lazer", limit=300.0))
        updated = repos.budgets.update(ana.id, budget.id, BudgetCreate(category="Lazer", limit=450.0, period="weekly"))
        assert updated.limit == 450.0
        assert updated.period == "weekly"

        repos.budgets.delete(ana.id, budget.id)
        assert repos.budgets.list_by_user(ana.id) == []
        with pytest.raises(NotFoundError):
            repos.budgets.delete(ana.id, budget.id)


def test_goal_progress(store) -> None:
    with store.session() as repos:
        ana = _user(repos)
        goal = repos.goals.insert(ana.id, GoalCreate(title="Viagem", target_amount=3000.0, deadline=date(2025, 1, 1)))
        assert goal.current_amount == 0.0
        assert goal.is_completed is False

        done = repos.goals.update(
            ana.id,
            goal.id,
            GoalUpdate(title="Viagem", target_amount=3000.0, deadline=date(2025, 1, 1), current_amount=3000.0, is_completed=True),
        )
        assert done.is_completed is True
        assert done.current_amount == 3000.0


def test_duplicate_email_rejected(store) -> None:
    with store.session() as repos:
        _user(repos)
        with pytest.raises(DuplicateError):
            _user(repos)


def test_password_hashing() -> None:
    hashed = hash_password("segredo1")
    assert hashed != "segredo1"
    assert check_password("segredo1", hashed)
    assert not check_password("errada", hashed)
    assert not check_password("segredo1", "not-a-hash")


def test_token_lifecycle(store) -> None:
    with store.session() as repos:
        ana = _user(repos)
        token = issue_token(repos.session, ana.id, 24)
        assert resolve_token(repos.session, token) == ana.id

        revoke_token(repos.session, token)
        with pytest.raises(AuthError, match="Token inválido"):
            resolve_token(repos.session, token)
        with pytest.raises(AuthError, match="Token não fornecido"):
            resolve_token(repos.session, None)


def test_expired_token(store) -> None:
    with store.session() as repos:
        ana = _user(repos)
        repos.session.add(AuthToken(token="old", user_id=ana.id, expires_at=datetime.utcnow() - timedelta(hours=1)))
        repos.session.commit()

        with pytest.raises(AuthError, match="Token expirado"):
            resolve_token(repos.session, "old")
        assert repos.session.get(AuthToken, "old") is None


def test_issuing_a_token_purges_expired_ones(store) -> None:
    with store.session() as repos:
        ana = _user(repos)
        repos.session.add(AuthToken(token="stale", user_id=ana.id, expires_at=datetime.utcnow() - timedelta(days=2)))
        repos.session.commit()

        fresh = issue_token(repos.session, ana.id, 24)

        assert repos.session.get(AuthToken, "stale") is None
        assert resolve_token(repos.session, fresh) == ana.id


def test_scheduled_expense_lifecycle(store) -> None:
    with store.session() as repos:
        ana = _user(repos)
        bia = _user(repos, "bia@example.com")
        later = repos.scheduled_expenses.insert(
            ana.id,
            ScheduledExpenseCreate(description="IPVA", amount=800.0, category="Transporte", scheduled_date=date(2024, 8, 10)),
        )
        rent = repos.scheduled_expenses.insert(
            ana.id,
            ScheduledExpenseCreate(
                description="Aluguel", amount=1500.0, category="Moradia", scheduled_date=date(2024, 8, 5), frequency="monthly"
            ),
        )
        assert rent.is_completed is False
        assert [e.id for e in repos.scheduled_expenses.list_by_user(ana.id)] == [rent.id, later.id]
        assert repos.scheduled_expenses.list_by_user(bia.id) == []

        moved = repos.scheduled_expenses.update(
            ana.id,
            later.id,
            ScheduledExpenseUpdate(description="IPVA", amount=850.0, category="Transporte", scheduled_date=date(2024, 8, 12)),
        )
        assert moved.amount == 850.0
        assert repos.scheduled_expenses.complete(ana.id, rent.id).is_completed is True

        with pytest.raises(NotFoundError) as err:
            repos.scheduled_expenses.complete(bia.id, rent.id)
        assert err.value.table == "scheduled_expenses"

        repos.scheduled_expenses.delete(ana.id, later.id)
        assert [e.id for e in repos.scheduled_expenses.list_by_user(ana.id)] == [rent.id]


def test_custom_category_hierarchy(store) -> None:
    with store.session() as repos:
        ana = _user(repos)
        bia = _user(repos, "bia@example.com")
        pets = repos.categories.insert(ana.id, CategoryCreate(name="Pets", icon="🐶", color="#10b981"))
        vet = repos.categories.insert(ana.id, CategoryCreate(name="Veterinário", parent_category_id=pets.id))
        assert vet.parent_category_id == pets.id
        assert vet.color == "#6366f1"
        assert [c.name for c in repos.categories.list_by_user(ana.id)] == ["Pets", "Veterinário"]

        with pytest.raises(NotFoundError):
            repos.categories.insert(bia.id, CategoryCreate(name="Filho", parent_category_id=pets.id))
        with pytest.raises(InvalidReferenceError):
            repos.categories.update(ana.id, pets.id, CategoryCreate(name="Pets", parent_category_id=pets.id))

        renamed = repos.categories.update(ana.id, vet.id, CategoryCreate(name="Clínica", parent_category_id=pets.id))
        assert renamed.name == "Clínica"

        repos.categories.delete(ana.id, pets.id)
        assert repos.categories.get(ana.id, vet.id).parent_category_id is None
