"""Interactive month browser (prompt_toolkit-based).

A small command loop driving a :class:`ViewController`. Each command maps to
one controller transition and the resulting view is printed in full:

    type <all|expense|income|savings|payoff>   toggle the type filter
    view <transactions|summary>                switch views
    expand <Category>:<type>                   toggle a summary group
    collapse                                   collapse every summary group
    next | prev | goto YYYY-MM                 change month (selection kept)
    refresh                                    re-fetch the current month
    reset                                      back to the initial selection
    help | quit

Month data comes from an injected ``fetch`` callable so the loop stays
decoupled from the RPC client and is easy to drive from tests with a pipe
input.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TypeAlias

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

from .formatting import render_month_view
from .logging_setup import get_logger
from .models import MonthData, MonthView, TransactionType, ViewMode
from .selection import MonthCursor, ViewController, parse_summary_key

_logger = get_logger("expense_manager.term_ui")

MonthFetcher: TypeAlias = Callable[[int, int], MonthData | None]

COMMANDS = (
    "type",
    "view",
    "expand",
    "collapse",
    "next",
    "prev",
    "goto",
    "refresh",
    "reset",
    "help",
    "quit",
)

HELP_TEXT = """\
Commands:
  type <all|expense|income|savings|payoff>  toggle the type filter
  view <transactions|summary>               switch views
  expand <Category>:<type>                  toggle a summary group
  collapse                                  collapse all summary groups
  next | prev | goto YYYY-MM                change month
  refresh                                   reload the current month
  reset                                     restore the initial selection
  quit                                      leave the browser"""


class MonthBrowser:
    """Command loop over a controller and a month fetcher."""

    def __init__(
        self,
        controller: ViewController,
        fetch: MonthFetcher,
        *,
        session: PromptSession | None = None,
        echo: Callable[[str], None] = print,
        currency: str = "₹",
    ) -> None:
        self._ctl = controller
        self._fetch = fetch
        self._session = session
        self._echo = echo
        self._currency = currency

    def _show(self, view: MonthView) -> None:
        self._echo(render_month_view(view, self._currency))

    def _goto(self, cursor: MonthCursor) -> MonthView | None:
        data = self._fetch(cursor.year, cursor.month)
        if data is None:
            return None
        return self._ctl.load_month(data)

    def handle(self, line: str) -> bool:
        """Run one command; return ``False`` when the user asked to quit."""

        cmd, _, arg = line.strip().partition(" ")
        cmd = cmd.lower()
        arg = arg.strip()
        if not cmd:
            return True
        if cmd in {"quit", "exit", "q"}:
            return False
        if cmd == "help":
            self._echo(HELP_TEXT)
            return True

        try:
            view = self._dispatch(cmd, arg)
        except ValueError as e:
            self._echo(f"Error: {e}")
            return True
        if view is not None:
            self._show(view)
        return True

    def _dispatch(self, cmd: str, arg: str) -> MonthView | None:
        ctl = self._ctl
        match cmd:
            case "type":
                return ctl.select_type(arg or "all")
            case "view":
                return ctl.set_view_mode(arg or ViewMode.TRANSACTIONS)
            case "expand":
                return ctl.toggle_expand(parse_summary_key(arg))
            case "collapse":
                return ctl.collapse_all()
            case "reset":
                return ctl.reset()
            case "next":
                return self._goto(ctl.cursor.shift(1))
            case "prev":
                return self._goto(ctl.cursor.shift(-1))
            case "goto":
                return self._goto(MonthCursor.parse(arg))
            case "refresh":
                return self._goto(ctl.cursor)
        raise ValueError(f"unknown command {cmd!r} (type 'help' for a list)")

    def run(self) -> int:
        """Load the controller's month, then prompt until quit or EOF."""

        session = self._session or PromptSession()
        completer = WordCompleter(
            [*COMMANDS, "all", *(t.value for t in TransactionType), *(m.value for m in ViewMode)],
            ignore_case=True,
        )

        view = self._goto(self._ctl.cursor)
        self._show(view if view is not None else self._ctl.render())

        while True:
            try:
                line = session.prompt(
                    f"{self._ctl.cursor.picker_value}> ", completer=completer
                )
            except (EOFError, KeyboardInterrupt):
                break
            if not self.handle(line):
                break
        _logger.debug("Browser closed")
        return 0


__all__ = ["COMMANDS", "HELP_TEXT", "MonthBrowser", "MonthFetcher"]
