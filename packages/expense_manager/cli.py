"""CLI for the ``expense_manager`` package.

This module exposes callable command handlers (``cmd_month``,
``cmd_categories``, ``cmd_budget``, ``cmd_add``, ``cmd_browse``) and a
Typer-based console interface.
Settings (backend URL, id token, currency) are read from the environment after
loading a local ``.env`` with ``python-dotenv``; command-line options override
them. Business logic lives in the aggregation modules and the view controller.

Handlers write the rendered view to stdout, errors to stderr, and return a
process exit code.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .config import Settings
from .errors import ExpenseManagerError
from .logging_setup import configure_logging
from .models import MonthData, ViewMode


def _resolve_settings(
    *, backend_url: str | None, id_token: str | None, currency: str | None
) -> Settings:
    return Settings.from_env().with_overrides(
        backend_url=backend_url, id_token=id_token, currency=currency
    )


def _load_month(settings: Settings, year: int, month: int, input_path: Path | None) -> MonthData:
    from .loader import fetch_month, read_month_file

    if input_path is not None:
        return read_month_file(input_path, year, month)

    from .rpc import ExpenseManagerClient

    client = ExpenseManagerClient.from_settings(settings)
    return asyncio.run(fetch_month(client, year, month))


def cmd_month(
    year: int,
    month: int,
    *,
    selected_type: str = "all",
    view_mode: ViewMode = ViewMode.TRANSACTIONS,
    expand: list[str] | None = None,
    input_path: Path | None = None,
    settings: Settings | None = None,
) -> int:
    """Render one month's cards and the chosen view to stdout.

    Behavior
    --------
    - Loads the month from ``input_path`` (a saved JSON response) when given,
      otherwise from the backend via ``getExpensesByMonth`` and
      ``getMonthlyBudget``.
    - Applies ``selected_type`` and ``view_mode`` through the view controller;
      each ``expand`` value (``Category:type``) opens that summary group.
    - A failed fetch still renders (as an empty month) but exits non-zero.
    """

    from .formatting import render_month_view
    from .selection import (
        MonthCursor,
        SelectionState,
        ViewController,
        parse_summary_key,
        parse_type_filter,
    )

    settings = settings or Settings.from_env()

    try:
        cursor = MonthCursor(year, month)
        selection = SelectionState(
            selected_type=parse_type_filter(selected_type),
            view_mode=view_mode,
            expanded_categories={parse_summary_key(e) for e in expand or ()},
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        data = _load_month(settings, cursor.year, cursor.month, input_path)
    except FileNotFoundError:
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1
    except ExpenseManagerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    view = ViewController(selection, cursor=cursor).load_month(data)
    print(render_month_view(view, settings.currency))

    if data.error:
        print(f"Error: {data.error}", file=sys.stderr)
        return 1
    return 0


def cmd_categories(*, selected_type: str | None = None, settings: Settings | None = None) -> int:
    """List categories (optionally for one type) with their monthly budgets."""

    from .budget import budget_totals_by_type
    from .categories import categories_for_type, group_categories
    from .formatting import format_amount
    from .models import TransactionType
    from .normalize import parse_amount
    from .rpc import ExpenseManagerClient
    from .selection import parse_type_filter

    settings = settings or Settings.from_env()

    try:
        wanted = parse_type_filter(selected_type) if selected_type else "all"
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        client = ExpenseManagerClient.from_settings(settings)
        categories = asyncio.run(client.get_categories())
    except ExpenseManagerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    grouped = group_categories(categories)
    if wanted != "all":
        grouped = {TransactionType(wanted): categories_for_type(categories, wanted)}
    totals = budget_totals_by_type(categories)

    for tx_type, items in grouped.items():
        print(f"{tx_type.label} (budget {format_amount(totals[tx_type], settings.currency)})")
        if not items:
            print("  (none)")
        for cat in items:
            amount = parse_amount(cat.budget)
            budget = f"  {format_amount(amount, settings.currency)}" if amount else ""
            print(f"  {cat.name}{budget}")
    return 0


def _parse_budget_assignment(value: str) -> tuple[str, str, str]:
    """``"Food:expense=250"`` → ``("Food", "Expense", "250")``."""

    from .models import TransactionType
    from .selection import parse_summary_key

    key, sep, amount = value.rpartition("=")
    if not sep:
        raise ValueError(f"expected CATEGORY:TYPE=AMOUNT, got {value!r}")
    category, type_key = parse_summary_key(key)
    tx_type = TransactionType.parse(type_key)
    if tx_type is None:
        raise ValueError(f"unknown transaction type {type_key!r} in {value!r}")
    return category, tx_type.label, amount.strip()


def cmd_budget(
    year: int,
    month: int,
    *,
    set_values: list[str] | None = None,
    input_path: Path | None = None,
    settings: Settings | None = None,
) -> int:
    """Show the month's actuals against budget, or save category budgets.

    With ``set_values`` (``Category:type=amount``) the positive amounts are
    sent with ``saveBudget`` (yearly = monthly x 12) and nothing is rendered.
    """

    from .aggregate import compute_type_totals
    from .budget import budget_amount, build_budget_rows, compute_budget_hints
    from .formatting import render_budget
    from .models import TransactionType
    from .normalize import normalize_store
    from .rpc import ExpenseManagerClient
    from .selection import MonthCursor

    settings = settings or Settings.from_env()

    try:
        cursor = MonthCursor(year, month)
        rows = build_budget_rows(_parse_budget_assignment(v) for v in set_values or ())
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if set_values:
        if not rows:
            print("Error: no positive budget amounts to save", file=sys.stderr)
            return 2
        try:
            client = ExpenseManagerClient.from_settings(settings)
            asyncio.run(client.save_budget(rows))
        except ExpenseManagerError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Saved {len(rows)} budget row(s)")
        return 0

    try:
        data = _load_month(settings, cursor.year, cursor.month, input_path)
    except FileNotFoundError:
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1
    except ExpenseManagerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    totals = compute_type_totals(normalize_store(data.store))
    budgets = {t: budget_amount(data.budget, t) for t in TransactionType}
    hints = compute_budget_hints(totals, data.budget)

    print(f"Budget for {cursor.label}")
    for line in render_budget(totals, budgets, hints, settings.currency):
        print(line)

    if data.error:
        print(f"Error: {data.error}", file=sys.stderr)
        return 1
    return 0


def cmd_add(
    on: str,
    *,
    category: str,
    amount: str,
    tx_type: str = "expense",
    notes: str = "",
    monthly: bool = False,
    settings: Settings | None = None,
) -> int:
    """Save one transaction with ``saveExpenses``.

    ``monthly`` rows (recurring income, savings, payoffs) are dated the first
    of ``on``'s month.
    """

    from .models import NewTransaction
    from .normalize import parse_date
    from .rpc import ExpenseManagerClient

    settings = settings or Settings.from_env()

    day = parse_date(on)
    if day is None:
        print(f"Error: expected a YYYY-MM-DD date, got {on!r}", file=sys.stderr)
        return 2
    try:
        tx = NewTransaction(type=tx_type, category=category, amount=amount, notes=notes)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        client = ExpenseManagerClient.from_settings(settings)
        if monthly:
            asyncio.run(client.save_monthly(day.year, day.month, tx.type, [tx]))
            day = day.replace(day=1)
        else:
            asyncio.run(client.save_expenses(day.isoformat(), [tx]))
    except ExpenseManagerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"Saved {tx.type.label} {tx.category} on {day.isoformat()}")
    return 0


def cmd_browse(
    year: int,
    month: int,
    *,
    input_path: Path | None = None,
    settings: Settings | None = None,
) -> int:
    """Start the interactive browser on ``(year, month)``.

    With ``input_path`` the file is served for the starting month and every
    other month is empty; otherwise each navigation fetches from the backend
    and stale responses are discarded.
    """

    from .loader import MonthLoader, read_month_file
    from .selection import MonthCursor, ViewController
    from .term_ui import MonthBrowser

    settings = settings or Settings.from_env()

    try:
        cursor = MonthCursor(year, month)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        if input_path is not None:
            fixed = read_month_file(input_path, cursor.year, cursor.month)

            def fetch(y: int, m: int) -> MonthData | None:
                if (y, m) == (fixed.year, fixed.month):
                    return fixed
                return MonthData(year=y, month=m)

        else:
            from .rpc import ExpenseManagerClient

            loader = MonthLoader(ExpenseManagerClient.from_settings(settings))

            def fetch(y: int, m: int) -> MonthData | None:
                return asyncio.run(loader.load(y, m))

    except FileNotFoundError:
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1
    except ExpenseManagerError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    browser = MonthBrowser(ViewController(cursor=cursor), fetch, currency=settings.currency)
    return browser.run()


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Monthly transaction summaries from the expense backend. "
        "Loads EXPENSE_MANAGER_* settings from a local .env before running."
    ),
)

# Module-level option objects shared by the commands below.
INPUT_OPTION = typer.Option(
    "--input",
    help="Read the month from a saved getExpensesByMonth JSON response instead of the backend.",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)
BACKEND_URL_OPTION = typer.Option(help="Override EXPENSE_MANAGER_BACKEND_URL.")
ID_TOKEN_OPTION = typer.Option(help="Override EXPENSE_MANAGER_ID_TOKEN.")
CURRENCY_OPTION = typer.Option(help="Currency symbol for amounts (default ₹).")


def _default_cursor(year: int | None, month: int | None) -> tuple[int, int]:
    from datetime import date

    today = date.today()
    return (year or today.year, month or today.month)


@app.command("month")
def month_cmd(
    year: Annotated[int | None, typer.Option(help="Year (default: current).")] = None,
    month: Annotated[int | None, typer.Option(help="Month 1-12 (default: current).")] = None,
    type_: Annotated[
        str, typer.Option("--type", help="all, expense, income, savings or payoff.")
    ] = "all",
    view: Annotated[
        ViewMode, typer.Option(help="transactions or summary.")
    ] = ViewMode.TRANSACTIONS,
    expand: Annotated[
        list[str] | None,
        typer.Option(help="Expand a summary group, as Category:type. Repeatable."),
    ] = None,
    input_path: Annotated[Path | None, INPUT_OPTION] = None,
    backend_url: Annotated[str | None, BACKEND_URL_OPTION] = None,
    id_token: Annotated[str | None, ID_TOKEN_OPTION] = None,
    currency: Annotated[str | None, CURRENCY_OPTION] = None,
) -> None:
    """Show a month's totals, budget hints, and transactions or category summary."""

    y, m = _default_cursor(year, month)
    try:
        settings = _resolve_settings(backend_url=backend_url, id_token=id_token, currency=currency)
    except ExpenseManagerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    code = cmd_month(
        y,
        m,
        selected_type=type_,
        view_mode=view,
        expand=expand,
        input_path=input_path,
        settings=settings,
    )
    raise typer.Exit(code)


@app.command("categories")
def categories_cmd(
    type_: Annotated[
        str | None, typer.Option("--type", help="Only list categories of this type.")
    ] = None,
    backend_url: Annotated[str | None, BACKEND_URL_OPTION] = None,
    id_token: Annotated[str | None, ID_TOKEN_OPTION] = None,
    currency: Annotated[str | None, CURRENCY_OPTION] = None,
) -> None:
    """List categories grouped by type with their monthly budgets."""

    try:
        settings = _resolve_settings(backend_url=backend_url, id_token=id_token, currency=currency)
    except ExpenseManagerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    raise typer.Exit(cmd_categories(selected_type=type_, settings=settings))


@app.command("budget")
def budget_cmd(
    year: Annotated[int | None, typer.Option(help="Year (default: current).")] = None,
    month: Annotated[int | None, typer.Option(help="Month 1-12 (default: current).")] = None,
    set_values: Annotated[
        list[str] | None,
        typer.Option("--set", help="Save a monthly budget, as Category:type=amount. Repeatable."),
    ] = None,
    input_path: Annotated[Path | None, INPUT_OPTION] = None,
    backend_url: Annotated[str | None, BACKEND_URL_OPTION] = None,
    id_token: Annotated[str | None, ID_TOKEN_OPTION] = None,
    currency: Annotated[str | None, CURRENCY_OPTION] = None,
) -> None:
    """Show budget utilization per type, or save category budgets with --set."""

    y, m = _default_cursor(year, month)
    try:
        settings = _resolve_settings(backend_url=backend_url, id_token=id_token, currency=currency)
    except ExpenseManagerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    raise typer.Exit(
        cmd_budget(y, m, set_values=set_values, input_path=input_path, settings=settings)
    )


@app.command("add")
def add_cmd(
    category: Annotated[str, typer.Option(help="Category name.")],
    amount: Annotated[str, typer.Option(help="Amount (>= 0).")],
    on: Annotated[
        str | None, typer.Option("--date", help="YYYY-MM-DD (default: today).")
    ] = None,
    type_: Annotated[
        str, typer.Option("--type", help="expense, income, savings or payoff.")
    ] = "expense",
    notes: Annotated[str, typer.Option(help="Free-form notes.")] = "",
    monthly: Annotated[
        bool, typer.Option(help="Record as a monthly entry dated the 1st.")
    ] = False,
    backend_url: Annotated[str | None, BACKEND_URL_OPTION] = None,
    id_token: Annotated[str | None, ID_TOKEN_OPTION] = None,
) -> None:
    """Save one transaction to the backend."""

    from datetime import date

    try:
        settings = _resolve_settings(backend_url=backend_url, id_token=id_token, currency=None)
    except ExpenseManagerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    code = cmd_add(
        on or date.today().isoformat(),
        category=category,
        amount=amount,
        tx_type=type_,
        notes=notes,
        monthly=monthly,
        settings=settings,
    )
    raise typer.Exit(code)


@app.command("browse")
def browse_cmd(
    year: Annotated[int | None, typer.Option(help="Starting year (default: current).")] = None,
    month: Annotated[int | None, typer.Option(help="Starting month (default: current).")] = None,
    input_path: Annotated[Path | None, INPUT_OPTION] = None,
    backend_url: Annotated[str | None, BACKEND_URL_OPTION] = None,
    id_token: Annotated[str | None, ID_TOKEN_OPTION] = None,
    currency: Annotated[str | None, CURRENCY_OPTION] = None,
) -> None:
    """Browse months interactively (type filter, views, expandable groups)."""

    y, m = _default_cursor(year, month)
    try:
        settings = _resolve_settings(backend_url=backend_url, id_token=id_token, currency=currency)
    except ExpenseManagerError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e
    raise typer.Exit(cmd_browse(y, m, input_path=input_path, settings=settings))


@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    log_level: Annotated[
        str | None, typer.Option(help="Log level (falls back to EXPENSE_MANAGER_LOG_LEVEL).")
    ] = None,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging once.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - exercised via the console script
    main()
