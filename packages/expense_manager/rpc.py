"""Thin client for the expense backend's single RPC endpoint.

Every call is a non-streaming POST of ``{"action": ..., "idToken": ...,
**params}`` to the configured URL. The body is sent as ``text/plain`` (the
spreadsheet web-app endpoint rejects CORS preflight for JSON content types),
and the response is a JSON object carrying ``success``.

The blocking HTTP call runs on a worker thread so callers can ``await`` each
action; responses are validated with the pydantic DTOs in
:mod:`expense_manager.models`.
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.request
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from .config import Settings
from .errors import RpcError, RpcTransportError, UnauthorizedError
from .logging_setup import get_logger
from .models import (
    BudgetRow,
    CategoriesResponse,
    Category,
    ExpensesByMonthResponse,
    MonthlyBudgetResponse,
    NewTransaction,
    RpcResponse,
    TransactionType,
)
from .normalize import group_flat_entries

_logger = get_logger("expense_manager.rpc")

UNAUTHORIZED = "UNAUTHORIZED"


def check_authorization(action: str, result: Mapping[str, Any]) -> None:
    """Raise :class:`UnauthorizedError` for ``{success: false, error: UNAUTHORIZED}``."""

    if result.get("success") is False and result.get("error") == UNAUTHORIZED:
        _logger.error("Unauthorized response from backend for %s", action)
        raise UnauthorizedError(action)


class ExpenseManagerClient:
    """Authenticated caller for the backend's ``action`` endpoint."""

    def __init__(self, backend_url: str, id_token: str, *, timeout: float = 30.0) -> None:
        self._url = backend_url
        self._id_token = id_token
        self._timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> ExpenseManagerClient:
        url, token = settings.require_remote()
        return cls(url, token, timeout=settings.timeout)

    # ---- transport -----------------------------------------------------------

    def call(self, action: str, **params: Any) -> dict[str, Any]:
        """Execute one action synchronously and return the parsed JSON body.

        Raises :class:`UnauthorizedError` when the token is rejected and
        :class:`RpcTransportError` when no JSON object comes back. A plain
        ``success: false`` is returned as-is for the typed wrappers to judge.
        """

        payload = {"action": action, **params, "idToken": self._id_token}
        data = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(self._url, data=data, method="POST")
        req.add_header("Content-Type", "text/plain")

        _logger.debug("POST %s action=%s", self._url, action)
        try:
            with urllib.request.urlopen(req, timeout=self._timeout) as resp:
                body = resp.read()
        except urllib.error.HTTPError as e:
            try:
                err_body = e.read().decode("utf-8", errors="replace")
            except Exception:  # noqa: BLE001
                err_body = ""
            raise RpcTransportError(f"{action}: HTTP {e.code} {e.reason}: {err_body}") from e
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise RpcTransportError(f"{action}: request failed: {e}") from e

        try:
            result = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RpcTransportError(f"{action}: response is not valid JSON") from e
        if not isinstance(result, dict):
            kind = type(result).__name__
            raise RpcTransportError(f"{action}: expected a JSON object, got {kind}")

        check_authorization(action, result)
        return result

    async def acall(self, action: str, **params: Any) -> dict[str, Any]:
        return await asyncio.to_thread(self.call, action, **params)

    async def _typed(self, model: type[RpcResponse], action: str, **params: Any):
        raw = await self.acall(action, **params)
        try:
            parsed = model.model_validate(raw)
        except ValidationError as e:
            raise RpcTransportError(f"{action}: unexpected response shape: {e}") from e
        if not parsed.success:
            raise RpcError(action, parsed.message or parsed.error)
        return parsed

    # ---- reads ---------------------------------------------------------------

    async def get_expenses_by_month(
        self, year: int, month: int
    ) -> dict[str, list[Mapping[str, Any]]]:
        """Return the month's raw store, grouping a flat ``expenses`` array by date."""

        resp: ExpensesByMonthResponse = await self._typed(
            ExpensesByMonthResponse, "getExpensesByMonth", year=year, month=month
        )
        if resp.expensesByDate is not None:
            return dict(resp.expensesByDate)
        if resp.expenses is not None:
            return group_flat_entries(resp.expenses)
        return {}

    async def get_monthly_budget(self, year: int, month: int) -> dict[str, Any]:
        resp: MonthlyBudgetResponse = await self._typed(
            MonthlyBudgetResponse, "getMonthlyBudget", year=year, month=month
        )
        return dict(resp.budget or {})

    async def get_categories(self) -> list[Category]:
        resp: CategoriesResponse = await self._typed(CategoriesResponse, "getCategories")
        return list(resp.categories or [])

    # ---- writes --------------------------------------------------------------

    async def save_expenses(self, date: str, transactions: Sequence[NewTransaction]) -> RpcResponse:
        """Save validated rows under one ``YYYY-MM-DD`` date."""

        if not transactions:
            raise ValueError("at least one valid transaction is required")
        rows = [t.model_dump(mode="json") for t in transactions]
        resp = await self._typed(RpcResponse, "saveExpenses", date=date, expenses=rows)
        _logger.info("Saved %d transaction(s) on %s", len(rows), date)
        return resp

    async def save_monthly(
        self,
        year: int,
        month: int,
        tx_type: TransactionType,
        transactions: Iterable[NewTransaction],
    ) -> RpcResponse:
        """Save recurring monthly rows (income/savings/payoff) on the 1st."""

        rows = [t.model_copy(update={"type": tx_type}) for t in transactions]
        return await self.save_expenses(f"{year:04d}-{month:02d}-01", rows)

    async def save_budget(self, budgets: Sequence[BudgetRow]) -> RpcResponse:
        rows = [b.model_dump() for b in budgets]
        resp = await self._typed(RpcResponse, "saveBudget", budgets=rows)
        _logger.info("Saved %d budget row(s)", len(rows))
        return resp


__all__ = ["ExpenseManagerClient", "UNAUTHORIZED", "check_authorization"]
