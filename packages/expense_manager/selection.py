"""Selection state, month navigation, and the view controller.

The controller owns one :class:`SelectionState` (injected, never global) and
the most recently loaded :class:`MonthData`. Every transition returns a fresh
:class:`MonthView` produced by re-running the pure pipeline:

    normalize → totals → budget hints → list view | category summary

Month navigation replaces the data wholesale but keeps the selection: the
type filter and the expanded groups survive a month change and are cleared
only by an explicit :meth:`ViewController.reset` or
:meth:`ViewController.collapse_all`.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, field
from datetime import date

from .aggregate import build_transaction_list, compute_type_totals
from .budget import compute_budget_hints
from .logging_setup import get_logger
from .models import (
    ALL,
    MonthData,
    MonthView,
    SummaryKey,
    TransactionRecord,
    TransactionType,
    TypeFilter,
    ViewMode,
)
from .normalize import normalize_store
from .summarize import summarize_by_category

_logger = get_logger("expense_manager.selection")


def parse_type_filter(value: str | TransactionType) -> TypeFilter:
    """Parse ``"all"`` or a variant name (any case); raise ``ValueError`` otherwise."""

    if isinstance(value, str) and value.strip().lower() == ALL:
        return ALL
    parsed = TransactionType.parse(value)
    if parsed is None:
        choices = ", ".join([ALL, *(t.value for t in TransactionType)])
        raise ValueError(f"unknown transaction type {value!r} (expected one of: {choices})")
    return parsed


def parse_summary_key(value: str) -> SummaryKey:
    """Parse ``"Category:type"`` into a summary key (type lowercased).

    The split happens on the last colon so category names may contain one.
    """

    category, sep, type_part = value.rpartition(":")
    if not sep or not category.strip() or not type_part.strip():
        raise ValueError(f"expected CATEGORY:TYPE, got {value!r}")
    parsed = TransactionType.parse(type_part)
    type_key = parsed.value if parsed is not None else type_part.strip().lower()
    return (category.strip(), type_key)


@dataclass(slots=True)
class SelectionState:
    """Session-scoped UI state shared by both views."""

    selected_type: TypeFilter = ALL
    view_mode: ViewMode = ViewMode.TRANSACTIONS
    expanded_categories: set[SummaryKey] = field(default_factory=set)


@dataclass(frozen=True, slots=True)
class MonthCursor:
    """A ``(year, month)`` pair with wrap-around navigation."""

    year: int
    month: int

    def __post_init__(self) -> None:
        if isinstance(self.month, bool) or not 1 <= self.month <= 12:
            raise ValueError(f"month must be within 1..12, got {self.month!r}")
        if isinstance(self.year, bool) or not 1 <= self.year <= 9999:
            raise ValueError(f"year must be within 1..9999, got {self.year!r}")

    @classmethod
    def today(cls) -> MonthCursor:
        now = date.today()
        return cls(now.year, now.month)

    @classmethod
    def parse(cls, value: str) -> MonthCursor:
        """Parse a month-picker value such as ``"2025-03"``."""

        year_s, sep, month_s = value.strip().partition("-")
        if not sep:
            raise ValueError(f"expected YYYY-MM, got {value!r}")
        try:
            return cls(int(year_s), int(month_s))
        except ValueError as exc:
            raise ValueError(f"expected YYYY-MM, got {value!r}") from exc

    def shift(self, months: int) -> MonthCursor:
        index = self.year * 12 + (self.month - 1) + months
        return MonthCursor(index // 12, index % 12 + 1)

    @property
    def picker_value(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    @property
    def label(self) -> str:
        return f"{calendar.month_name[self.month]} {self.year}"


class ViewController:
    """State machine over ``{transactions, summary} × {all, <type>}``.

    Usage
    -----
    ctl = ViewController()
    view = ctl.load_month(month_data)
    view = ctl.select_type("expense")
    view = ctl.set_view_mode("summary")
    view = ctl.toggle_expand(("Food", "expense"))
    """

    def __init__(
        self,
        selection: SelectionState | None = None,
        *,
        cursor: MonthCursor | None = None,
    ) -> None:
        self._selection = selection if selection is not None else SelectionState()
        start = cursor or MonthCursor.today()
        self._data = MonthData(year=start.year, month=start.month)
        self._records: list[TransactionRecord] = []

    @property
    def selection(self) -> SelectionState:
        return self._selection

    @property
    def data(self) -> MonthData:
        return self._data

    @property
    def cursor(self) -> MonthCursor:
        return MonthCursor(self._data.year, self._data.month)

    # ---- transitions -------------------------------------------------------

    def load_month(self, data: MonthData) -> MonthView:
        """Replace the month's data wholesale; the selection is kept."""

        self._data = data
        self._records = normalize_store(data.store)
        _logger.debug(
            "Loaded %04d-%02d: %d transactions%s",
            data.year,
            data.month,
            len(self._records),
            f" (error: {data.error})" if data.error else "",
        )
        return self.render()

    def select_type(self, value: str | TransactionType) -> MonthView:
        """Select a type; selecting the active type again returns to ``"all"``."""

        wanted = parse_type_filter(value)
        sel = self._selection
        sel.selected_type = ALL if wanted == sel.selected_type else wanted
        return self.render()

    def set_view_mode(self, mode: str | ViewMode) -> MonthView:
        self._selection.view_mode = ViewMode(mode)
        return self.render()

    def toggle_expand(self, key: SummaryKey) -> MonthView:
        """Flip one group's expansion; only meaningful in summary mode."""

        sel = self._selection
        if sel.view_mode != ViewMode.SUMMARY:
            _logger.info("Ignoring expand of %s outside summary view", key)
            return self.render()
        if key in sel.expanded_categories:
            sel.expanded_categories.discard(key)
        else:
            sel.expanded_categories.add(key)
        return self.render()

    def collapse_all(self) -> MonthView:
        self._selection.expanded_categories.clear()
        return self.render()

    def reset(self) -> MonthView:
        """Return to the initial selection (explicit user action only)."""

        sel = self._selection
        sel.selected_type = ALL
        sel.view_mode = ViewMode.TRANSACTIONS
        sel.expanded_categories.clear()
        return self.render()

    # ---- rendering ---------------------------------------------------------

    def render(self) -> MonthView:
        sel = self._selection
        totals = compute_type_totals(self._records)
        transactions = summary = None
        if sel.view_mode == ViewMode.SUMMARY:
            summary = summarize_by_category(
                self._records, sel.selected_type, frozenset(sel.expanded_categories)
            )
        else:
            transactions = build_transaction_list(self._records, sel.selected_type)
        return MonthView(
            year=self._data.year,
            month=self._data.month,
            selected_type=sel.selected_type,
            view_mode=sel.view_mode,
            totals=totals,
            hints=compute_budget_hints(totals, self._data.budget),
            transactions=transactions,
            summary=summary,
            error=self._data.error,
        )


__all__ = [
    "MonthCursor",
    "SelectionState",
    "ViewController",
    "parse_summary_key",
    "parse_type_filter",
]
