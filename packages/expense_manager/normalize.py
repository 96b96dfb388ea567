"""Raw backend entry → :class:`TransactionRecord` normalization.

The spreadsheet backend returns entries whose keys may be lowercase or
capitalized (``amount``/``Amount``). Every field is resolved once, here, with
a fixed precedence: lowercase key, then capitalized key, then the default
below. Nothing past this boundary inspects raw keys.

=========  ======================  ==========================
Field      Keys (in order)         Default
=========  ======================  ==========================
date       bucket key, date, Date  entry dropped
type       type, Type              ``Expense``
category   category, Category      ``"Uncategorized"``
amount     amount, Amount          ``0``
notes      notes, Notes            ``""``
=========  ======================  ==========================

Malformed amounts (unparseable, non-finite, negative) normalize to ``0`` and
are logged at DEBUG rather than raised.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from .logging_setup import get_logger
from .models import MonthlyRawStore, TransactionRecord, TransactionType

_logger = get_logger("expense_manager.normalize")

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_TYPE = TransactionType.EXPENSE

_CURRENCY_SYMBOLS = ("$", "₹", "€", "£")
_ZERO = Decimal(0)

# Amounts outside 1e-15 .. 1e16 are treated as malformed so sums, percentages
# and two-decimal display stay within the default 28-digit decimal context.
MAX_AMOUNT_EXPONENT = 15
MIN_AMOUNT_EXPONENT = -15


def _field(raw: Mapping[str, Any], name: str) -> Any:
    """Return the first non-blank value under ``name`` or ``Name``."""

    for key in (name, name.capitalize()):
        value = raw.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def parse_amount(value: Any) -> Decimal | None:
    """Parse ``value`` as a non-negative decimal; ``None`` when malformed.

    Malformed covers unparseable text, negatives, non-finite values and
    magnitudes outside ``1e-15 .. 1e16``.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, int | float):
        try:
            d = Decimal(str(value))
        except InvalidOperation:
            return None
    elif isinstance(value, str):
        s = value.strip()
        for sym in _CURRENCY_SYMBOLS:
            if s.startswith(sym):
                s = s[len(sym) :].lstrip()
                break
        s = s.replace(",", "")
        if not s:
            return None
        try:
            d = Decimal(s)
        except InvalidOperation:
            return None
    else:
        return None

    if not d.is_finite() or d < 0:
        return None
    if d == 0:
        return _ZERO
    if not MIN_AMOUNT_EXPONENT <= d.adjusted() <= MAX_AMOUNT_EXPONENT:
        return None
    return d


def parse_date(value: Any) -> date | None:
    """Parse ``YYYY-MM-DD`` (or an ISO datetime's date part)."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    s = value.strip()
    if not s:
        return None
    first = s.split()[0].split("T", 1)[0]
    try:
        return date.fromisoformat(first)
    except ValueError:
        return None


def normalize_entry(
    raw: Mapping[str, Any], *, bucket_date: str | date | None = None
) -> TransactionRecord | None:
    """Convert one raw backend entry into a :class:`TransactionRecord`.

    ``bucket_date`` is the store key the entry was found under and takes
    precedence over the entry's own ``date``/``Date`` field. Returns ``None``
    when no calendar date can be resolved.
    """

    resolved = parse_date(bucket_date) if bucket_date is not None else None
    if resolved is None:
        resolved = parse_date(_field(raw, "date"))
    if resolved is None:
        _logger.warning("Dropping entry without a usable date: %r", dict(raw))
        return None

    raw_type = _field(raw, "type")
    if raw_type is None:
        tx_type: TransactionType | None = DEFAULT_TYPE
        type_label = DEFAULT_TYPE.label
    else:
        tx_type = TransactionType.parse(raw_type)
        if tx_type is not None:
            type_label = tx_type.label
        else:
            type_label = str(raw_type).strip()
            _logger.debug("Unrecognized transaction type %r on %s", type_label, resolved)

    raw_amount = _field(raw, "amount")
    amount = parse_amount(raw_amount)
    if amount is None:
        if raw_amount is not None:
            _logger.debug("Malformed amount %r on %s; using 0", raw_amount, resolved)
        amount = _ZERO

    category = _field(raw, "category")
    notes = _field(raw, "notes")

    return TransactionRecord(
        date=resolved,
        type=tx_type,
        type_label=type_label,
        category=str(category).strip() if category is not None else DEFAULT_CATEGORY,
        amount=amount,
        notes=str(notes) if notes is not None else "",
    )


def normalize_store(store: MonthlyRawStore) -> list[TransactionRecord]:
    """Flatten a month's raw store into records, in bucket then per-date order."""

    records: list[TransactionRecord] = []
    for bucket_date, entries in store.items():
        if entries is None:
            continue
        if not isinstance(entries, list | tuple):
            _logger.warning("Skipping non-list bucket under %s: %r", bucket_date, entries)
            continue
        for raw in entries:
            if not isinstance(raw, Mapping):
                _logger.warning("Skipping non-object entry under %s: %r", bucket_date, raw)
                continue
            rec = normalize_entry(raw, bucket_date=bucket_date)
            if rec is not None:
                records.append(rec)
    return records


def group_flat_entries(entries: Iterable[Mapping[str, Any]]) -> dict[str, list[Mapping[str, Any]]]:
    """Group a flat ``expenses`` array by its ``date``/``Date`` field.

    Dates are canonicalized to ``YYYY-MM-DD``; entries with no parseable date
    are dropped. Per-date order follows the input.
    """

    grouped: dict[str, list[Mapping[str, Any]]] = {}
    for raw in entries:
        d = parse_date(_field(raw, "date"))
        if d is None:
            _logger.warning("Dropping flat entry without a usable date: %r", dict(raw))
            continue
        grouped.setdefault(d.isoformat(), []).append(raw)
    return grouped


__all__ = [
    "DEFAULT_CATEGORY",
    "DEFAULT_TYPE",
    "group_flat_entries",
    "normalize_entry",
    "normalize_store",
    "parse_amount",
    "parse_date",
]
