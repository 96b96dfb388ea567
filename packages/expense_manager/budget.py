"""Budget utilization hints and budget-page helpers.

Hints compare the month's per-type totals with the monthly budget:

- ``percentage = round(actual / budget * 100)`` (half-up) when ``budget > 0``;
  no hint at all otherwise (hidden, not ``0%``).
- Expense and Payoff overspend when above 100%; Income and Savings fall short
  when below 100%. Both cases are flagged ``bad``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import ROUND_HALF_UP, Decimal, localcontext

from .logging_setup import get_logger
from .models import BudgetHint, BudgetMap, BudgetRow, Category, TransactionType
from .normalize import parse_amount

_logger = get_logger("expense_manager.budget")

MONTHS_PER_YEAR = 12

# Variants where exceeding the budget is the failure mode.
_CEILING_TYPES = frozenset({TransactionType.EXPENSE, TransactionType.PAYOFF})


def budget_amount(budget: BudgetMap, tx_type: TransactionType) -> Decimal:
    """Return the monthly budget for ``tx_type``; ``0`` when absent or invalid."""

    raw = budget.get(tx_type.value)
    if raw is None:
        raw = budget.get(tx_type.label)
    amount = parse_amount(raw)
    if amount is None:
        if raw is not None:
            _logger.debug("Ignoring invalid %s budget %r", tx_type.value, raw)
        return Decimal(0)
    return amount


def percentage_of(actual: Decimal, budget: Decimal) -> int:
    with localcontext() as ctx:
        ctx.prec = 60
        ratio = actual / budget * 100
        # quantize needs every integer digit of the ratio in the context
        ctx.prec = max(ctx.prec, ratio.adjusted() + 2)
        return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def is_bad(tx_type: TransactionType, percentage: int) -> bool:
    if tx_type in _CEILING_TYPES:
        return percentage > 100
    return percentage < 100


def compute_budget_hint(
    tx_type: TransactionType, actual: Decimal, budget: Decimal
) -> BudgetHint | None:
    if budget <= 0:
        return None
    pct = percentage_of(actual, budget)
    return BudgetHint(type=tx_type, percentage=pct, bad=is_bad(tx_type, pct))


def compute_budget_hints(
    totals: Mapping[TransactionType, Decimal], budget: BudgetMap
) -> dict[TransactionType, BudgetHint | None]:
    """Return a hint (or ``None`` when hidden) for each of the four variants."""

    return {
        t: compute_budget_hint(t, totals.get(t, Decimal(0)), budget_amount(budget, t))
        for t in TransactionType
    }


# ---------------------------------------------------------------------------
# Budget page
# ---------------------------------------------------------------------------


def yearly_amount(monthly: Decimal) -> Decimal:
    return monthly * MONTHS_PER_YEAR


def budget_totals_by_type(categories: Iterable[Category]) -> dict[TransactionType, Decimal]:
    """Sum per-category monthly budgets into the four per-type header totals."""

    totals = {t: Decimal(0) for t in TransactionType}
    for cat in categories:
        tx_type = TransactionType.parse(cat.type)
        amount = parse_amount(cat.budget)
        if tx_type is None or amount is None:
            continue
        totals[tx_type] += amount
    return totals


def build_budget_rows(
    monthly_budgets: Iterable[tuple[str, str, Decimal | float | str | None]],
) -> list[BudgetRow]:
    """Build ``saveBudget`` rows from ``(category, type, monthly)`` triples.

    Only positive monthly budgets are sent; blank or invalid inputs count as
    ``0`` and are skipped.
    """

    rows: list[BudgetRow] = []
    for category, type_label, monthly in monthly_budgets:
        amount = parse_amount(monthly)
        if amount is None or amount <= 0:
            continue
        rows.append(
            BudgetRow(
                category=category,
                type=type_label,
                monthlyBudget=float(amount),
                yearlyBudget=float(yearly_amount(amount)),
            )
        )
    return rows


__all__ = [
    "MONTHS_PER_YEAR",
    "budget_amount",
    "budget_totals_by_type",
    "build_budget_rows",
    "compute_budget_hint",
    "compute_budget_hints",
    "is_bad",
    "percentage_of",
    "yearly_amount",
]
