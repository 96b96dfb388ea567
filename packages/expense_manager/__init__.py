"""Public interface for the ``expense_manager`` package.

This module exposes the aggregation API and the public models as the stable
import surface. There is no runtime logic here, only symbol re-exports.
"""

from .aggregate import aggregate_month, build_transaction_list, compute_type_totals
from .budget import compute_budget_hints
from .errors import (
    ConfigurationError,
    ExpenseManagerError,
    NotSignedInError,
    RpcError,
    RpcTransportError,
    UnauthorizedError,
)
from .loader import MonthLoader, fetch_month
from .models import (
    ALL,
    BudgetHint,
    CategorySummaryEntry,
    DateBucket,
    EmptyReason,
    MonthData,
    MonthView,
    SummaryView,
    TransactionListView,
    TransactionRecord,
    TransactionType,
    ViewMode,
)
from .normalize import group_flat_entries, normalize_entry, normalize_store
from .rpc import ExpenseManagerClient
from .selection import MonthCursor, SelectionState, ViewController
from .summarize import summarize_by_category

__all__ = [
    # API
    "aggregate_month",
    "build_transaction_list",
    "compute_budget_hints",
    "compute_type_totals",
    "fetch_month",
    "group_flat_entries",
    "normalize_entry",
    "normalize_store",
    "summarize_by_category",
    "ExpenseManagerClient",
    "MonthCursor",
    "MonthLoader",
    "SelectionState",
    "ViewController",
    # Models / types
    "ALL",
    "BudgetHint",
    "CategorySummaryEntry",
    "DateBucket",
    "EmptyReason",
    "MonthData",
    "MonthView",
    "SummaryView",
    "TransactionListView",
    "TransactionRecord",
    "TransactionType",
    "ViewMode",
    # Errors
    "ConfigurationError",
    "ExpenseManagerError",
    "NotSignedInError",
    "RpcError",
    "RpcTransportError",
    "UnauthorizedError",
]
