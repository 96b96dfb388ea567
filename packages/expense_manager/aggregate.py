"""Per-type monthly totals and the chronological, date-grouped list.

Totals are always computed over the full month: the type filter narrows the
list (and the category summary) but never the summary cards.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from decimal import Decimal

from .models import (
    ALL,
    DateBucket,
    EmptyReason,
    MonthlyRawStore,
    TransactionListView,
    TransactionRecord,
    TransactionType,
    TypeFilter,
)
from .normalize import normalize_store


def matches_filter(record: TransactionRecord, selected_type: TypeFilter) -> bool:
    """``"all"`` passes everything; a variant passes only its own records."""

    if selected_type == ALL:
        return True
    return record.type is not None and record.type == selected_type


def filter_records(
    records: Iterable[TransactionRecord], selected_type: TypeFilter
) -> list[TransactionRecord]:
    return [r for r in records if matches_filter(r, selected_type)]


def empty_reason(
    records: Sequence[TransactionRecord], filtered: Sequence[TransactionRecord]
) -> EmptyReason | None:
    """Distinguish "nothing this month" from "nothing for this filter"."""

    if filtered:
        return None
    return EmptyReason.NO_DATA if not records else EmptyReason.NO_MATCH


def newest_first(records: Iterable[TransactionRecord]) -> list[TransactionRecord]:
    """Sort by calendar date descending; equal dates keep their input order."""

    return sorted(records, key=lambda r: r.date.toordinal(), reverse=True)


def compute_type_totals(
    records: Iterable[TransactionRecord],
) -> dict[TransactionType, Decimal]:
    """Sum amounts per variant over all ``records``.

    All four variants are always present. Records with an unrecognized type
    contribute to none of them.
    """

    totals = {t: Decimal(0) for t in TransactionType}
    for r in records:
        if r.type is not None:
            totals[r.type] += r.amount
    return totals


def build_transaction_list(
    records: Sequence[TransactionRecord], selected_type: TypeFilter = ALL
) -> TransactionListView:
    """Filter, sort newest-first, and bucket consecutive same-date records."""

    filtered = filter_records(records, selected_type)
    reason = empty_reason(records, filtered)
    if reason is not None:
        return TransactionListView(buckets=(), empty=reason)

    buckets: list[DateBucket] = []
    current: list[TransactionRecord] = []
    for r in newest_first(filtered):
        if current and current[0].date != r.date:
            buckets.append(DateBucket(date=current[0].date, transactions=tuple(current)))
            current = []
        current.append(r)
    buckets.append(DateBucket(date=current[0].date, transactions=tuple(current)))

    return TransactionListView(buckets=tuple(buckets))


def aggregate_month(
    store: MonthlyRawStore, selected_type: TypeFilter = ALL
) -> tuple[dict[TransactionType, Decimal], TransactionListView]:
    """Normalize ``store`` once and return ``(totals, list view)``."""

    records = normalize_store(store)
    return compute_type_totals(records), build_transaction_list(records, selected_type)


__all__ = [
    "aggregate_month",
    "build_transaction_list",
    "compute_type_totals",
    "empty_reason",
    "filter_records",
    "matches_filter",
    "newest_first",
]
