"""Built-in transaction categories merged with a user's custom ones."""

from typing import List, Sequence

from schemas import CategoryRecord

EXPENSE_CATEGORIES = ["Alimentação", "Transporte", "Moradia", "Saúde", "Educação", "Lazer", "Compras", "Outros"]
INCOME_CATEGORIES = ["Salário", "Freelance", "Investimentos", "Outros"]


def category_choices(base: Sequence[str], custom: Sequence[CategoryRecord]) -> List[str]:
    """Built-in names first, then custom names, dropping repeats (case-insensitive)."""
    names = list(base) + [c.name for c in sorted(custom, key=lambda c: c.name.casefold())]
    choices = []
    seen = set()
    for name in names:
        if name.casefold() not in seen:
            seen.add(name.casefold())
            choices.append(name)
    return choices


def category_labels(custom: Sequence[CategoryRecord]) -> dict:
    """Display label per custom category id, nested under its parent when it has one."""
    by_id = {c.id: c for c in custom}
    labels = {}
    for category in custom:
        parent = by_id.get(category.parent_category_id) if category.parent_category_id else None
        name = f"{parent.name} › {category.name}" if parent else category.name
        labels[category.id] = f"{category.icon} {name}"
    return labels
