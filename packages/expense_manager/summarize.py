"""Category rollup: one entry per ``(category, type)`` with totals and members.

Expansion state is looked up, never stored here. Toggling a group's detail
rows changes only the caller's expansion set; the next render re-runs
:func:`summarize_by_category` against current data.
"""

from __future__ import annotations

from collections.abc import Collection, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from .aggregate import empty_reason, filter_records, newest_first
from .models import (
    ALL,
    CategorySummaryEntry,
    SummaryKey,
    SummaryView,
    TransactionRecord,
    TransactionType,
    TypeFilter,
)


@dataclass(slots=True)
class _Group:
    category: str
    type: TransactionType | None
    type_label: str
    total: Decimal = Decimal(0)
    members: list[TransactionRecord] = field(default_factory=list)


def summarize_by_category(
    records: Sequence[TransactionRecord],
    selected_type: TypeFilter = ALL,
    expanded: Collection[SummaryKey] = (),
) -> SummaryView:
    """Group filtered records by ``(category, type)``; largest total first.

    Groups with equal totals keep the order in which their first member was
    encountered in ``records``. Members within a group are newest-first, ties
    keeping input order.
    """

    filtered = filter_records(records, selected_type)
    reason = empty_reason(records, filtered)
    if reason is not None:
        return SummaryView(entries=(), empty=reason)

    groups: dict[SummaryKey, _Group] = {}
    for r in filtered:
        g = groups.get(r.summary_key)
        if g is None:
            g = groups[r.summary_key] = _Group(r.category, r.type, r.type_label)
        g.total += r.amount
        g.members.append(r)

    # sorted() is stable, so equal totals stay in first-encountered order.
    ordered = sorted(groups.items(), key=lambda kv: kv[1].total, reverse=True)
    entries = tuple(
        CategorySummaryEntry(
            category=g.category,
            type=g.type,
            type_label=g.type_label,
            total=g.total,
            count=len(g.members),
            transactions=tuple(newest_first(g.members)),
            expanded=key in expanded,
        )
        for key, g in ordered
    )
    return SummaryView(entries=entries)


__all__ = ["summarize_by_category"]
