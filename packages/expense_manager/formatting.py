"""Plain-text rendering of a :class:`MonthView`.

The browser app drew summary cards, a chronological list and a category
rollup; this module produces the same three blocks as text for the CLI and
the interactive browser. Nothing here computes: it only formats what the
view already holds.
"""

from __future__ import annotations

import calendar
from collections.abc import Mapping
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext

from .models import (
    ALL,
    BudgetHint,
    CategorySummaryEntry,
    EmptyReason,
    MonthView,
    TransactionListView,
    TransactionRecord,
    TransactionType,
    TypeFilter,
    ViewMode,
)

_CARD_TITLES = {
    TransactionType.EXPENSE: "Expenses",
    TransactionType.INCOME: "Income",
    TransactionType.SAVINGS: "Savings",
    TransactionType.PAYOFF: "Payoffs",
}


def format_amount(amount: Decimal, currency: str = "₹") -> str:
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 4)
        q = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{currency}{q:.2f}"


def format_display_date(d: date) -> str:
    """``Tuesday, Dec 30, 2025`` style."""

    return f"{d:%A}, {calendar.month_abbr[d.month]} {d.day}, {d.year}"


def format_hint(hint: BudgetHint | None) -> str:
    if hint is None:
        return ""
    return f"{hint.percentage}% of budget ({hint.status})"


def empty_message(reason: EmptyReason, selected_type: TypeFilter) -> str:
    if reason == EmptyReason.NO_MATCH and selected_type != ALL:
        return f"No {TransactionType(selected_type).value} transactions for this month"
    return "No transactions for this month"


def render_cards(view: MonthView, currency: str = "₹") -> list[str]:
    lines: list[str] = []
    for t in TransactionType:
        marker = "*" if view.selected_type == t else " "
        line = f"{marker} {_CARD_TITLES[t]:<9} {format_amount(view.totals[t], currency):>14}"
        hint = format_hint(view.hints.get(t))
        if hint:
            line += f"  {hint}"
        lines.append(line)
    return lines


def _transaction_line(tx: TransactionRecord, currency: str) -> str:
    line = f"    {tx.category:<24} {tx.type_label:<8} {format_amount(tx.amount, currency):>14}"
    if tx.notes:
        line += f"  {tx.notes}"
    return line


def render_transactions(
    listing: TransactionListView, selected_type: TypeFilter, currency: str = "₹"
) -> list[str]:
    if listing.empty is not None:
        return [empty_message(listing.empty, selected_type)]
    lines: list[str] = []
    for bucket in listing.buckets:
        lines.append(format_display_date(bucket.date))
        lines.extend(_transaction_line(tx, currency) for tx in bucket.transactions)
    return lines


def _summary_header(entry: CategorySummaryEntry, currency: str) -> str:
    caret = "v" if entry.expanded else ">"
    noun = "transaction" if entry.count == 1 else "transactions"
    return (
        f"{caret} {entry.category:<24} {entry.type_label:<8} "
        f"{format_amount(entry.total, currency):>14}  ({entry.count} {noun})"
    )


def render_summary(view: MonthView, currency: str = "₹") -> list[str]:
    summary = view.summary
    if summary is None:
        return []
    if summary.empty is not None:
        return [empty_message(summary.empty, view.selected_type)]
    lines: list[str] = []
    for entry in summary.entries:
        lines.append(_summary_header(entry, currency))
        if entry.expanded:
            for tx in entry.transactions:
                detail = f"    {tx.date_key}  {format_amount(tx.amount, currency):>14}"
                if tx.notes:
                    detail += f"  {tx.notes}"
                lines.append(detail)
    return lines


def render_budget(
    totals: Mapping[TransactionType, Decimal],
    budgets: Mapping[TransactionType, Decimal],
    hints: Mapping[TransactionType, BudgetHint | None],
    currency: str = "₹",
) -> list[str]:
    """One line per variant: actual against budget, with the hint when shown."""

    lines: list[str] = []
    for t in TransactionType:
        line = f"  {_CARD_TITLES[t]:<9} {format_amount(totals[t], currency):>14}"
        if budgets[t] > 0:
            line += f" of {format_amount(budgets[t], currency)}  {format_hint(hints.get(t))}"
        else:
            line += "  (no budget)"
        lines.append(line)
    return lines


def render_month_view(view: MonthView, currency: str = "₹") -> str:
    """Render cards plus the active view as one block of text."""

    title = f"{calendar.month_name[view.month]} {view.year}"
    filt = "all types" if view.selected_type == ALL else TransactionType(view.selected_type).label
    lines = [f"{title}  [{view.view_mode.value} | {filt}]"]
    if view.error:
        lines.append(f"! {view.error}")
    lines.append("")
    lines.extend(render_cards(view, currency))
    lines.append("")
    if view.view_mode == ViewMode.SUMMARY:
        lines.extend(render_summary(view, currency))
    elif view.transactions is not None:
        lines.extend(render_transactions(view.transactions, view.selected_type, currency))
    return "\n".join(lines)


__all__ = [
    "empty_message",
    "format_amount",
    "format_display_date",
    "format_hint",
    "render_budget",
    "render_cards",
    "render_month_view",
    "render_summary",
    "render_transactions",
]
