import copy
from decimal import Decimal

import pytest

from expense_manager.formatting import render_month_view
from expense_manager.models import ALL, EmptyReason, MonthData, TransactionType, ViewMode
from expense_manager.selection import (
    MonthCursor,
    SelectionState,
    ViewController,
    parse_summary_key,
    parse_type_filter,
)
from tests.helpers.months import MARCH_2025, MARCH_2025_BUDGET, MIXED


def _march() -> MonthData:
    return MonthData(year=2025, month=3, store=MARCH_2025, budget=MARCH_2025_BUDGET)


def _controller() -> ViewController:
    return ViewController(cursor=MonthCursor(2025, 3))


def test_parse_type_filter():
    assert parse_type_filter("ALL") == ALL
    assert parse_type_filter("Savings") is TransactionType.SAVINGS
    with pytest.raises(ValueError, match="unknown transaction type"):
        parse_type_filter("refund")


def test_parse_summary_key_splits_on_last_colon():
    assert parse_summary_key("Food:Expense") == ("Food", "expense")
    assert parse_summary_key("Travel: Tokyo:income") == ("Travel: Tokyo", "income")
    assert parse_summary_key("Store:Refund") == ("Store", "refund")
    with pytest.raises(ValueError):
        parse_summary_key("Food")
    with pytest.raises(ValueError):
        parse_summary_key(":expense")


def test_month_cursor_wraps_across_years():
    assert MonthCursor(2025, 1).shift(-1) == MonthCursor(2024, 12)
    assert MonthCursor(2024, 12).shift(1) == MonthCursor(2025, 1)
    assert MonthCursor(2025, 3).shift(-15) == MonthCursor(2023, 12)
    assert MonthCursor(2025, 3).picker_value == "2025-03"
    assert MonthCursor(2025, 3).label == "March 2025"


def test_month_cursor_parse_and_validation():
    assert MonthCursor.parse(" 2024-11 ") == MonthCursor(2024, 11)
    for bad in ("2024", "2024-13", "abcd-01", "2024-00"):
        with pytest.raises(ValueError):
            MonthCursor.parse(bad)


def test_loading_march_renders_cards_hints_and_list():
    view = _controller().load_month(_march())

    assert view.totals[TransactionType.EXPENSE] == Decimal("300")
    assert view.totals[TransactionType.INCOME] == Decimal("1000")
    assert view.hints[TransactionType.EXPENSE].percentage == 120
    assert view.hints[TransactionType.EXPENSE].bad
    assert view.hints[TransactionType.INCOME].bad is False
    assert view.hints[TransactionType.SAVINGS] is None
    assert view.view_mode is ViewMode.TRANSACTIONS
    assert view.summary is None
    assert [b.date_key for b in view.transactions.buckets] == ["2025-03-05", "2025-03-01"]


def test_selecting_the_active_type_again_returns_to_all():
    ctl = _controller()
    ctl.load_month(_march())

    view = ctl.select_type("expense")
    assert view.selected_type is TransactionType.EXPENSE
    assert {t.type for t in view.transactions.transactions} == {TransactionType.EXPENSE}

    view = ctl.select_type("Expense")
    assert view.selected_type == ALL
    assert len(view.transactions.transactions) == 3


def test_selecting_a_different_type_switches_directly():
    ctl = _controller()
    ctl.load_month(_march())
    ctl.select_type("expense")
    assert ctl.select_type("income").selected_type is TransactionType.INCOME


def test_filter_never_changes_the_cards():
    ctl = _controller()
    base = ctl.load_month(_march())
    for t in TransactionType:
        ctl.selection.selected_type = ALL
        assert ctl.select_type(t).totals == base.totals
        assert ctl.render().hints == base.hints


def test_summary_view_and_expansion_toggle():
    ctl = _controller()
    ctl.load_month(_march())

    view = ctl.set_view_mode("summary")
    assert view.transactions is None
    assert [e.category for e in view.summary.entries] == ["Salary", "Food"]

    view = ctl.toggle_expand(("Food", "expense"))
    assert [e.expanded for e in view.summary.entries] == [False, True]

    view = ctl.toggle_expand(("Food", "expense"))
    assert [e.expanded for e in view.summary.entries] == [False, False]


def test_expand_is_ignored_in_transactions_view():
    ctl = _controller()
    ctl.load_month(_march())
    ctl.toggle_expand(("Food", "expense"))
    assert ctl.selection.expanded_categories == set()


def test_month_change_keeps_filter_and_expansion():
    ctl = _controller()
    ctl.load_month(_march())
    ctl.set_view_mode(ViewMode.SUMMARY)
    ctl.select_type("expense")
    ctl.toggle_expand(("Food", "expense"))

    view = ctl.load_month(MonthData(year=2025, month=4, store=MIXED))
    assert (view.year, view.month) == (2025, 4)
    assert ctl.cursor == MonthCursor(2025, 4)
    assert view.selected_type is TransactionType.EXPENSE
    assert view.view_mode is ViewMode.SUMMARY
    food = [e for e in view.summary.entries if e.key == ("Food", "expense")]
    assert food and food[0].expanded
    assert all(h is None for h in view.hints.values())


def test_filter_with_no_matches_is_distinguished_from_empty_month():
    ctl = _controller()
    ctl.load_month(_march())
    assert ctl.select_type("payoff").transactions.empty is EmptyReason.NO_MATCH

    view = ctl.load_month(MonthData(year=2025, month=5))
    assert view.transactions.empty is EmptyReason.NO_DATA


def test_failed_month_renders_as_no_data_with_error():
    ctl = _controller()
    view = ctl.load_month(MonthData(year=2025, month=3, error="getExpensesByMonth failed"))
    assert view.error == "getExpensesByMonth failed"
    assert view.transactions.empty is EmptyReason.NO_DATA
    assert all(v == 0 for v in view.totals.values())


def test_collapse_all_and_reset():
    selection = SelectionState(
        selected_type=TransactionType.EXPENSE,
        view_mode=ViewMode.SUMMARY,
        expanded_categories={("Food", "expense")},
    )
    ctl = ViewController(selection, cursor=MonthCursor(2025, 3))
    ctl.load_month(_march())

    view = ctl.collapse_all()
    assert selection.expanded_categories == set()
    assert view.selected_type is TransactionType.EXPENSE

    selection.expanded_categories.add(("Food", "expense"))
    view = ctl.reset()
    assert view.selected_type == ALL
    assert view.view_mode is ViewMode.TRANSACTIONS
    assert selection.expanded_categories == set()


def test_render_is_repeatable():
    ctl = _controller()
    ctl.load_month(_march())
    ctl.set_view_mode("summary")
    assert ctl.render() == ctl.render()


def test_out_of_range_amounts_render_as_zero_without_raising():
    store = {
        "2025-03-05": [
            {"category": "Typo", "amount": "1e1000000"},
            {"category": "Food", "amount": "9999999999999999"},
            {"category": "Food", "amount": "9999999999999999"},
        ]
    }
    ctl = _controller()
    view = ctl.load_month(MonthData(2025, 3, store=store, budget={"expense": "0.000000000000001"}))

    assert view.totals[TransactionType.EXPENSE] == Decimal("19999999999999998")
    assert view.hints[TransactionType.EXPENSE].percentage == 19999999999999998 * 10**17
    ctl.set_view_mode("summary")
    assert "Typo" in render_month_view(ctl.render())


def test_loading_a_month_does_not_mutate_its_store():
    store = copy.deepcopy(MIXED)
    ctl = _controller()
    ctl.load_month(MonthData(2025, 4, store=store))
    ctl.set_view_mode("summary")
    ctl.select_type("expense")
    assert store == MIXED
