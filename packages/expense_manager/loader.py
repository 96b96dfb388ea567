"""Async month fetch returning a :class:`MonthData` result.

Failures never escape :func:`fetch_month`: an unauthorized token, a backend
``success: false`` or a transport error all produce an empty store with the
message in ``MonthData.error``, which the controller renders as "no data".
A failed budget fetch keeps the month's transactions and only drops the hints.

:class:`MonthLoader` discards results superseded by a newer request, so a slow
response for a month the user already navigated away from is never rendered.
"""

from __future__ import annotations

import json
from os import PathLike
from pathlib import Path
from typing import Protocol

from .errors import ExpenseManagerError, UnauthorizedError
from .logging_setup import get_logger
from .models import BudgetMap, MonthData, MonthlyRawStore
from .normalize import group_flat_entries

_logger = get_logger("expense_manager.loader")


class MonthSource(Protocol):
    async def get_expenses_by_month(self, year: int, month: int) -> MonthlyRawStore: ...

    async def get_monthly_budget(self, year: int, month: int) -> BudgetMap: ...


async def fetch_month(source: MonthSource, year: int, month: int) -> MonthData:
    """Fetch transactions then the budget for ``(year, month)``."""

    _logger.info("Fetching expenses for %04d-%02d", year, month)
    try:
        store = await source.get_expenses_by_month(year, month)
    except ExpenseManagerError as e:
        _logger.error("Error fetching expenses for %04d-%02d: %s", year, month, e)
        return MonthData(year=year, month=month, error=str(e))

    try:
        budget = await source.get_monthly_budget(year, month)
    except UnauthorizedError as e:
        _logger.error("Unauthorized while fetching budget: %s", e)
        return MonthData(year=year, month=month, error=str(e))
    except ExpenseManagerError as e:
        _logger.warning("Budget unavailable for %04d-%02d: %s", year, month, e)
        budget = {}

    return MonthData(year=year, month=month, store=store, budget=budget)


def read_month_file(path: str | PathLike[str], year: int, month: int) -> MonthData:
    """Load a month from a JSON export instead of the backend.

    Accepted shapes: a saved ``getExpensesByMonth`` response (``expensesByDate``
    or flat ``expenses``, optionally with a ``budget`` object alongside), or a
    bare ``{date: [entries]}`` mapping.
    """

    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise ExpenseManagerError(f"{p}: cannot read file ({e})") from e
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise ExpenseManagerError(f"{p}: not valid JSON ({e})") from e
    if not isinstance(doc, dict):
        raise ExpenseManagerError(f"{p}: expected a JSON object at the top level")

    budget = doc.get("budget") if isinstance(doc.get("budget"), dict) else {}
    if isinstance(doc.get("expensesByDate"), dict):
        store = doc["expensesByDate"]
    elif isinstance(doc.get("expenses"), list):
        store = group_flat_entries(e for e in doc["expenses"] if isinstance(e, dict))
    else:
        store = {k: v for k, v in doc.items() if isinstance(v, list)}
    return MonthData(year=year, month=month, store=store, budget=budget)


class MonthLoader:
    """Last-request-wins wrapper around :func:`fetch_month`."""

    def __init__(self, source: MonthSource) -> None:
        self._source = source
        self._generation = 0

    async def load(self, year: int, month: int) -> MonthData | None:
        """Return the month's data, or ``None`` when a newer load was started."""

        self._generation += 1
        generation = self._generation
        data = await fetch_month(self._source, year, month)
        if generation != self._generation:
            _logger.debug("Discarding stale result for %04d-%02d", year, month)
            return None
        return data


__all__ = ["MonthLoader", "MonthSource", "fetch_month", "read_month_file"]
