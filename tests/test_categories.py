from datetime import datetime

from categories import EXPENSE_CATEGORIES, INCOME_CATEGORIES, category_choices, category_labels
from schemas import CategoryRecord


def _category(record_id: str, name: str, parent: str = None, icon: str = "💰") -> CategoryRecord:
    return CategoryRecord(
        id=record_id,
        user_id="user_1",
        name=name,
        icon=icon,
        parent_category_id=parent,
        created_at=datetime(2024, 1, 1),
    )


def test_custom_categories_extend_builtin_list() -> None:
    custom = [_category("cat_2", "Pets"), _category("cat_1", "lazer"), _category("cat_3", "Academia")]

    choices = category_choices(EXPENSE_CATEGORIES, custom)

    assert choices[: len(EXPENSE_CATEGORIES)] == EXPENSE_CATEGORIES
    assert choices[len(EXPENSE_CATEGORIES):] == ["Academia", "Pets"]


def test_builtin_repeats_are_dropped() -> None:
    choices = category_choices(EXPENSE_CATEGORIES + INCOME_CATEGORIES, [])
    assert choices.count("Outros") == 1


def test_labels_nest_children_under_parent() -> None:
    custom = [_category("cat_1", "Pets", icon="🐶"), _category("cat_2", "Veterinário", parent="cat_1", icon="🏥")]
    assert category_labels(custom) == {"cat_1": "🐶 Pets", "cat_2": "🏥 Pets › Veterinário"}
