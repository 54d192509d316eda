import logging
from datetime import date, timedelta

from analysis import add_months
from auth import hash_password
from config import configure_logging
from repository import StoreClient
from schemas import BudgetCreate, CategoryCreate, GoalCreate, ScheduledExpenseCreate, TransactionCreate

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("Ana Demo", "ana@demo.com", "demo123", "single"),
    ("Casal Demo", "casal@demo.com", "demo123", "couple"),
]

# (category, amount, description, day of month)
MONTHLY_EXPENSES = [
    ("Moradia", 1800.0, "Aluguel", 5),
    ("Alimentação", 950.0, "Supermercado", 8),
    ("Transporte", 420.0, "Combustível", 12),
    ("Saúde", 280.0, "Plano de saúde", 10),
    ("Lazer", 350.0, "Restaurantes e cinema", 20),
]
SMALL_EXPENSES = [("Alimentação", 18.5, "Café"), ("Transporte", 12.0, "Aplicativo de transporte")]


def demo_transactions(today: date, months: int = 6):
    """A few months of salary, fixed bills and small recurring spend, ending in ``today``'s month."""
    current = today.replace(day=1)
    for offset in range(months - 1, -1, -1):
        month_start = add_months(current, -offset)
        yield TransactionCreate(type="income", category="Salário", amount=6500.0, description="Salário", date=month_start)
        for category, amount, description, day in MONTHLY_EXPENSES:
            # Spend creeps up a little every month
            bump = 1 + 0.03 * (months - 1 - offset)
            yield TransactionCreate(
                type="expense", category=category, amount=round(amount * bump, 2), description=description, date=month_start.replace(day=day)
            )
        for i in range(12):
            category, amount, description = SMALL_EXPENSES[i % len(SMALL_EXPENSES)]
            when = month_start + timedelta(days=i * 2)
            if when <= today:
                yield TransactionCreate(type="expense", category=category, amount=amount, description=description, date=when)


def seed_users(store: StoreClient | None = None, today: date | None = None) -> int:
    store = store or StoreClient()
    today = today or date.today()
    created = 0

    with store.session() as repos:
        for name, email, password, user_type in DEMO_USERS:
            if repos.users.find_by_email(email) is not None:
                logger.info("User %s already exists. Skipping seed.", email)
                continue
            user = repos.users.insert(name, email, hash_password(password), user_type)
            for txn in demo_transactions(today):
                repos.transactions.insert(user.id, txn)
            repos.budgets.insert(user.id, BudgetCreate(category="Alimentação", limit=1000.0))
            repos.budgets.insert(user.id, BudgetCreate(category="Lazer", limit=300.0))
            repos.goals.insert(
                user.id,
                GoalCreate(title="Reserva de emergência", target_amount=20000.0, deadline=add_months(today.replace(day=1), 12)),
            )
            repos.scheduled_expenses.insert(
                user.id,
                ScheduledExpenseCreate(
                    description="Aluguel", amount=1800.0, category="Moradia", scheduled_date=today + timedelta(days=3), frequency="monthly"
                ),
            )
            repos.scheduled_expenses.insert(
                user.id,
                ScheduledExpenseCreate(description="IPVA", amount=950.0, category="Transporte", scheduled_date=today + timedelta(days=20)),
            )
            pets = repos.categories.insert(user.id, CategoryCreate(name="Pets", icon="🐶", color="#10b981"))
            repos.categories.insert(user.id, CategoryCreate(name="Veterinário", icon="🏥", parent_category_id=pets.id))
            created += 1

    logger.info("Seeded %d demo users.", created)
    return created


if __name__ == "__main__":
    configure_logging()
    seed_users()
