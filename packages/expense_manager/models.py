"""Data models and type aliases for ``expense_manager``.

Two families live here:

- Immutable records produced by the aggregation core (``TransactionRecord``,
  ``DateBucket``, ``CategorySummaryEntry`` and the view containers built from
  them). These are frozen ``dataclass`` instances; each render rebuilds them
  from the month's raw store.
- Pydantic DTOs validating the JSON exchanged with the RPC backend
  (``ExpensesByMonthResponse``, ``MonthlyBudgetResponse``, ...). Extras are
  allowed because the spreadsheet backend adds fields freely.
"""

from __future__ import annotations

import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import StrEnum
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TransactionType(StrEnum):
    """The four transaction variants driving totals and budget conventions.

    Values are the lowercase keys used internally and by the budget map;
    :attr:`label` is the canonical capitalization shown to users and sent to
    the backend.
    """

    EXPENSE = "expense"
    INCOME = "income"
    SAVINGS = "savings"
    PAYOFF = "payoff"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: object) -> TransactionType | None:
        """Return the variant matching ``value`` case-insensitively, else ``None``."""

        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


class ViewMode(StrEnum):
    TRANSACTIONS = "transactions"
    SUMMARY = "summary"


class EmptyReason(StrEnum):
    """Why a list or summary view has nothing to show.

    ``NO_DATA``: the month holds no transactions at all.
    ``NO_MATCH``: the month has transactions but none match the type filter.
    """

    NO_DATA = "no_data"
    NO_MATCH = "no_match"


ALL: Literal["all"] = "all"

TypeFilter: TypeAlias = TransactionType | Literal["all"]
"""The active type filter: ``"all"`` or one of the four variants."""

SummaryKey: TypeAlias = tuple[str, str]
"""Composite ``(category, type key)`` identifying a summary group."""

MonthlyRawStore: TypeAlias = Mapping[str, Sequence[Mapping[str, Any]]]
"""Raw backend entries for one month, keyed by ``YYYY-MM-DD`` date string."""

BudgetMap: TypeAlias = Mapping[str, Any]
"""Monthly budget per lowercase type key, as returned by ``getMonthlyBudget``."""


# ---------------------------------------------------------------------------
# Core records
# ---------------------------------------------------------------------------


def summary_type_key(tx_type: TransactionType | None, type_label: str) -> str:
    """Lowercase type key: the variant value, else the original label lowercased."""

    return tx_type.value if tx_type is not None else type_label.lower()



@dataclass(frozen=True, slots=True)
class TransactionRecord:
    """A normalized transaction, safe for aggregation.

    ``type`` is ``None`` only for a type label outside the four variants; such
    records keep their original ``type_label`` for display, appear in the
    unfiltered views, and never contribute to per-type totals.
    """

    date: date
    type: TransactionType | None
    type_label: str
    category: str
    amount: Decimal
    notes: str = ""

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    @property
    def type_key(self) -> str:
        return summary_type_key(self.type, self.type_label)

    @property
    def summary_key(self) -> SummaryKey:
        return (self.category, self.type_key)


@dataclass(frozen=True, slots=True)
class DateBucket:
    """Transactions sharing one calendar date, in original per-date order."""

    date: date
    transactions: tuple[TransactionRecord, ...]

    @property
    def date_key(self) -> str:
        return self.date.isoformat()

    @property
    def total(self) -> Decimal:
        return sum((t.amount for t in self.transactions), Decimal(0))


@dataclass(frozen=True, slots=True)
class TransactionListView:
    """Chronological (newest-first) list grouped into date buckets."""

    buckets: tuple[DateBucket, ...]
    empty: EmptyReason | None = None

    @property
    def transactions(self) -> list[TransactionRecord]:
        return [t for b in self.buckets for t in b.transactions]

    @property
    def is_empty(self) -> bool:
        return self.empty is not None


@dataclass(frozen=True, slots=True)
class CategorySummaryEntry:
    """Rollup of all transactions sharing a ``(category, type)`` key."""

    category: str
    type: TransactionType | None
    type_label: str
    total: Decimal
    count: int
    transactions: tuple[TransactionRecord, ...]
    expanded: bool = False

    @property
    def key(self) -> SummaryKey:
        return (self.category, summary_type_key(self.type, self.type_label))


@dataclass(frozen=True, slots=True)
class SummaryView:
    """Category rollup sorted by descending total."""

    entries: tuple[CategorySummaryEntry, ...]
    empty: EmptyReason | None = None

    @property
    def is_empty(self) -> bool:
        return self.empty is not None


@dataclass(frozen=True, slots=True)
class BudgetHint:
    """Percentage of the monthly budget used (or reached) for one type.

    ``bad`` follows the asymmetric rule: Expense and Payoff are bad above 100%;
    Income and Savings are bad below 100%.
    """

    type: TransactionType
    percentage: int
    bad: bool

    @property
    def status(self) -> str:
        return "bad" if self.bad else "good"


@dataclass(frozen=True, slots=True)
class MonthData:
    """Result of fetching one month: the raw store plus its budget.

    A failed fetch still yields a ``MonthData`` with an empty store and the
    failure in ``error``; the core renders it as a month with no data.
    """

    year: int
    month: int
    store: MonthlyRawStore = field(default_factory=dict)
    budget: BudgetMap = field(default_factory=dict)
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True, slots=True)
class MonthView:
    """Everything a renderer needs for one month under the current selection."""

    year: int
    month: int
    selected_type: TypeFilter
    view_mode: ViewMode
    totals: Mapping[TransactionType, Decimal]
    hints: Mapping[TransactionType, BudgetHint | None]
    transactions: TransactionListView | None = None
    summary: SummaryView | None = None
    error: str | None = None


# ---------------------------------------------------------------------------
# RPC DTOs
# ---------------------------------------------------------------------------


class RpcResponse(BaseModel):
    """Common envelope: every backend answer carries ``success``."""

    model_config = ConfigDict(extra="allow")

    success: bool = False
    error: str | None = None
    message: str | None = None


class ExpensesByMonthResponse(RpcResponse):
    """``getExpensesByMonth``: grouped by date, or a flat array to group."""

    expensesByDate: dict[str, list[dict[str, Any]]] | None = None
    expenses: list[dict[str, Any]] | None = None


class MonthlyBudgetResponse(RpcResponse):
    budget: dict[str, Any] | None = None


class Category(BaseModel):
    model_config = ConfigDict(extra="allow", str_strip_whitespace=True)

    name: str
    type: str
    budget: float | None = None

    @field_validator("budget", mode="before")
    @classmethod
    def _blank_budget(cls, v: Any) -> Any:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return v


class CategoriesResponse(RpcResponse):
    categories: list[Category] | None = None


class NewTransaction(BaseModel):
    """A row about to be saved with ``saveExpenses``.

    Mirrors the entry-form rule: a category must be chosen and the amount must
    be a finite number ``>= 0``.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType = TransactionType.EXPENSE
    category: str
    amount: Decimal
    notes: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _parse_type(cls, v: Any) -> Any:
        parsed = TransactionType.parse(v)
        return parsed if parsed is not None else v

    @field_validator("category")
    @classmethod
    def _category_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("category must be non-empty")
        return v

    @field_validator("amount")
    @classmethod
    def _amount_non_negative(cls, v: Decimal) -> Decimal:
        if not v.is_finite() or v < 0:
            raise ValueError("amount must be a finite number >= 0")
        return v

    @field_serializer("type")
    def _type_label(self, v: TransactionType) -> str:
        return v.label

    @field_serializer("amount")
    def _amount_number(self, v: Decimal) -> float:
        return float(v)


class BudgetRow(BaseModel):
    """One ``saveBudget`` row; yearly is always twelve months of monthly."""

    category: str
    type: str
    monthlyBudget: float
    yearlyBudget: float

    @field_validator("monthlyBudget", "yearlyBudget")
    @classmethod
    def _positive(cls, v: float) -> float:
        if math.isnan(v) or v <= 0:
            raise ValueError("budget amounts must be positive")
        return v


__all__ = [
    "ALL",
    "BudgetHint",
    "BudgetMap",
    "BudgetRow",
    "CategoriesResponse",
    "Category",
    "CategorySummaryEntry",
    "DateBucket",
    "EmptyReason",
    "ExpensesByMonthResponse",
    "MonthData",
    "MonthView",
    "MonthlyBudgetResponse",
    "MonthlyRawStore",
    "NewTransaction",
    "RpcResponse",
    "SummaryKey",
    "SummaryView",
    "TransactionListView",
    "TransactionRecord",
    "TransactionType",
    "TypeFilter",
    "ViewMode",
    "summary_type_key",
]
