"""Category list helpers.

Categories come from the backend (``getCategories``) as ``{name, type,
budget}`` rows. The entry forms and the budget page both need the names for a
single type, sorted for display.
"""

from __future__ import annotations

from collections.abc import Iterable

from .models import Category, TransactionType


def normalize_name(name: str) -> str:
    """Return a trimmed, single-spaced representation of ``name``."""

    return " ".join(name.strip().split())


def categories_for_type(
    categories: Iterable[Category], tx_type: TransactionType | str
) -> list[Category]:
    """Categories whose type matches ``tx_type`` case-insensitively, by name."""

    wanted = TransactionType.parse(tx_type)
    if wanted is None:
        return []
    matched = [c for c in categories if TransactionType.parse(c.type) == wanted]
    return sorted(matched, key=lambda c: normalize_name(c.name).casefold())


def group_categories(categories: Iterable[Category]) -> dict[TransactionType, list[Category]]:
    """Split categories into the four per-type lists; unknown types are skipped."""

    items = list(categories)
    return {t: categories_for_type(items, t) for t in TransactionType}


__all__ = ["categories_for_type", "group_categories", "normalize_name"]
