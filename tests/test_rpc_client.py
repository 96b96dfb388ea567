import asyncio
import io
import urllib.error
import urllib.request
from decimal import Decimal

import pytest

from expense_manager.config import Settings
from expense_manager.errors import (
    ConfigurationError,
    NotSignedInError,
    RpcError,
    RpcTransportError,
    UnauthorizedError,
)
from expense_manager.models import BudgetRow, NewTransaction, TransactionType
from expense_manager.rpc import ExpenseManagerClient, check_authorization
from tests.helpers.months import MARCH_2025
from tests.helpers.rpc_stub import UrlopenStub

URL = "https://backend.example/exec"


@pytest.fixture
def install(monkeypatch: pytest.MonkeyPatch):
    def _install(replies) -> UrlopenStub:
        stub = UrlopenStub(replies)
        monkeypatch.setattr(urllib.request, "urlopen", stub)
        return stub

    return _install


def _client(timeout: float = 30.0) -> ExpenseManagerClient:
    return ExpenseManagerClient(URL, "tok-123", timeout=timeout)


def test_request_shape(install):
    stub = install({"getMonthlyBudget": {"success": True, "budget": {"expense": 250}}})

    budget = asyncio.run(_client(timeout=5).get_monthly_budget(2025, 3))

    assert budget == {"expense": 250}
    (req,) = stub.requests
    assert req["url"] == URL
    assert req["method"] == "POST"
    assert req["content_type"] == "text/plain"
    assert req["timeout"] == 5
    assert req["payload"] == {
        "action": "getMonthlyBudget",
        "year": 2025,
        "month": 3,
        "idToken": "tok-123",
    }


def test_get_expenses_by_month_returns_grouped_store(install):
    install({"getExpensesByMonth": {"success": True, "expensesByDate": MARCH_2025}})
    store = asyncio.run(_client().get_expenses_by_month(2025, 3))
    assert store == MARCH_2025


def test_get_expenses_by_month_groups_a_flat_array(install):
    install(
        {
            "getExpensesByMonth": {
                "success": True,
                "expenses": [
                    {"date": "2025-03-05T00:00:00.000Z", "category": "Food", "amount": 200},
                    {"Date": "2025-03-01", "category": "Salary", "amount": 1000},
                    {"date": "2025-03-05", "category": "Food", "amount": 100},
                ],
            }
        }
    )
    store = asyncio.run(_client().get_expenses_by_month(2025, 3))
    assert sorted(store) == ["2025-03-01", "2025-03-05"]
    assert [e["amount"] for e in store["2025-03-05"]] == [200, 100]


def test_missing_payload_means_empty_month(install):
    install({"getExpensesByMonth": {"success": True}, "getMonthlyBudget": {"success": True}})
    assert asyncio.run(_client().get_expenses_by_month(2025, 3)) == {}
    assert asyncio.run(_client().get_monthly_budget(2025, 3)) == {}


def test_unauthorized_response_raises(install):
    install({"getExpensesByMonth": {"success": False, "error": "UNAUTHORIZED"}})
    with pytest.raises(UnauthorizedError) as info:
        asyncio.run(_client().get_expenses_by_month(2025, 3))
    assert info.value.action == "getExpensesByMonth"
    assert "sign in again" in str(info.value)


def test_unsuccessful_response_raises_rpc_error_with_message(install):
    install({"getCategories": {"success": False, "message": "Sheet missing"}})
    with pytest.raises(RpcError, match="getCategories failed: Sheet missing") as info:
        asyncio.run(_client().get_categories())
    assert not isinstance(info.value, UnauthorizedError)


def test_check_authorization_ignores_other_failures():
    check_authorization("x", {"success": False, "error": "BOOM"})
    check_authorization("x", {"success": True, "error": "UNAUTHORIZED"})
    with pytest.raises(UnauthorizedError):
        check_authorization("x", {"success": False, "error": "UNAUTHORIZED"})


@pytest.mark.parametrize(
    "reply",
    [
        b"<html>not json</html>",
        b"[1, 2]",
        urllib.error.URLError("connection refused"),
        urllib.error.HTTPError(URL, 500, "Server Error", {}, io.BytesIO(b"oops")),
        TimeoutError("timed out"),
    ],
)
def test_transport_failures_raise_transport_error(install, reply):
    install({"getMonthlyBudget": reply})
    with pytest.raises(RpcTransportError):
        asyncio.run(_client().get_monthly_budget(2025, 3))


def test_get_categories_parses_rows(install):
    install(
        {
            "getCategories": {
                "success": True,
                "categories": [
                    {"name": "Food", "type": "Expense", "budget": 200},
                    {"name": " Salary ", "type": "Income", "budget": ""},
                ],
            }
        }
    )
    cats = asyncio.run(_client().get_categories())
    assert [(c.name, c.type, c.budget) for c in cats] == [
        ("Food", "Expense", 200.0),
        ("Salary", "Income", None),
    ]


def test_save_expenses_serializes_rows(install):
    stub = install({"saveExpenses": {"success": True, "message": "saved"}})
    rows = [
        NewTransaction(category="Food", amount=Decimal("12.5"), notes="lunch"),
        NewTransaction(type="income", category="Salary", amount="1000"),
    ]
    resp = asyncio.run(_client().save_expenses("2025-03-05", rows))

    assert resp.success
    payload = stub.requests[0]["payload"]
    assert payload["date"] == "2025-03-05"
    assert payload["expenses"] == [
        {"type": "Expense", "category": "Food", "amount": 12.5, "notes": "lunch"},
        {"type": "Income", "category": "Salary", "amount": 1000.0, "notes": ""},
    ]


def test_save_expenses_requires_rows():
    with pytest.raises(ValueError):
        asyncio.run(_client().save_expenses("2025-03-05", []))


def test_save_monthly_dates_rows_on_the_first(install):
    stub = install({"saveExpenses": {"success": True}})
    rows = [NewTransaction(category="Index Fund", amount=300)]
    asyncio.run(_client().save_monthly(2025, 4, TransactionType.SAVINGS, rows))

    payload = stub.requests[0]["payload"]
    assert payload["date"] == "2025-04-01"
    assert payload["expenses"][0]["type"] == "Savings"


def test_save_budget_sends_rows(install):
    stub = install({"saveBudget": {"success": True}})
    rows = [BudgetRow(category="Food", type="Expense", monthlyBudget=200, yearlyBudget=2400)]
    asyncio.run(_client().save_budget(rows))
    assert stub.requests[0]["payload"]["budgets"] == [
        {"category": "Food", "type": "Expense", "monthlyBudget": 200.0, "yearlyBudget": 2400.0}
    ]


@pytest.mark.parametrize("amount", [-1, "nan", "abc"])
def test_new_transaction_rejects_bad_amounts(amount):
    with pytest.raises(ValueError):
        NewTransaction(category="Food", amount=amount)


def test_new_transaction_requires_category():
    with pytest.raises(ValueError):
        NewTransaction(category="  ", amount=1)


def test_from_settings_requires_url_and_token():
    with pytest.raises(ConfigurationError):
        ExpenseManagerClient.from_settings(Settings(id_token="t"))
    with pytest.raises(NotSignedInError):
        ExpenseManagerClient.from_settings(Settings(backend_url=URL))
    assert isinstance(
        ExpenseManagerClient.from_settings(Settings(backend_url=URL, id_token="t")),
        ExpenseManagerClient,
    )


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("EXPENSE_MANAGER_BACKEND_URL", f" {URL} ")
    monkeypatch.setenv("EXPENSE_MANAGER_TIMEOUT", "12.5")
    monkeypatch.setenv("EXPENSE_MANAGER_CURRENCY", "$")

    settings = Settings.from_env()
    assert settings == Settings(backend_url=URL, id_token=None, timeout=12.5, currency="$")
    assert settings.with_overrides(id_token="abc", currency=" ").id_token == "abc"
    assert settings.with_overrides(currency=" ").currency == "$"


@pytest.mark.parametrize("value", ["soon", "0", "-3"])
def test_settings_reject_bad_timeout(monkeypatch: pytest.MonkeyPatch, value):
    monkeypatch.setenv("EXPENSE_MANAGER_TIMEOUT", value)
    with pytest.raises(ConfigurationError):
        Settings.from_env()
