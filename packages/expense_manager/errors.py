"""Exception types raised at the edges of ``expense_manager``.

The aggregation core never raises over normalized input; these exceptions
belong to the configuration and RPC boundaries and are turned into exit codes
by the CLI.
"""

from __future__ import annotations


class ExpenseManagerError(Exception):
    """Base class for errors surfaced to the command line."""


class ConfigurationError(ExpenseManagerError):
    """A required setting (backend URL, timeout) is missing or invalid."""


class NotSignedInError(ExpenseManagerError):
    """No id token is available for an authenticated RPC call."""


class RpcError(ExpenseManagerError):
    """The backend answered with ``success: false``."""

    def __init__(self, action: str, message: str | None = None) -> None:
        self.action = action
        self.message = message
        detail = f": {message}" if message else ""
        super().__init__(f"{action} failed{detail}")


class UnauthorizedError(RpcError):
    """The backend rejected the id token (``error: "UNAUTHORIZED"``)."""

    def __init__(self, action: str) -> None:
        super().__init__(action, "Access denied. Please sign in again.")


class RpcTransportError(ExpenseManagerError):
    """The request never produced a decodable JSON response."""


__all__ = [
    "ExpenseManagerError",
    "ConfigurationError",
    "NotSignedInError",
    "RpcError",
    "UnauthorizedError",
    "RpcTransportError",
]
