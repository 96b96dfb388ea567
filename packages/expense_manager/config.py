"""Runtime settings read from the environment.

The CLI loads a local ``.env`` (``python-dotenv``, ``override=False``) before
calling :meth:`Settings.from_env`, so values may come from either source.
Command-line options take precedence via :meth:`Settings.with_overrides`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from .errors import ConfigurationError, NotSignedInError

ENV_BACKEND_URL = "EXPENSE_MANAGER_BACKEND_URL"
ENV_ID_TOKEN = "EXPENSE_MANAGER_ID_TOKEN"
ENV_TIMEOUT = "EXPENSE_MANAGER_TIMEOUT"
ENV_CURRENCY = "EXPENSE_MANAGER_CURRENCY"

DEFAULT_TIMEOUT = 30.0
DEFAULT_CURRENCY = "₹"


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True, slots=True)
class Settings:
    backend_url: str | None = None
    id_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    currency: str = DEFAULT_CURRENCY

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``EXPENSE_MANAGER_*`` environment variables."""

        raw_timeout = _clean(os.getenv(ENV_TIMEOUT))
        timeout = DEFAULT_TIMEOUT
        if raw_timeout is not None:
            try:
                timeout = float(raw_timeout)
            except ValueError as exc:
                raise ConfigurationError(
                    f"{ENV_TIMEOUT} must be a number of seconds, got {raw_timeout!r}"
                ) from exc
            if timeout <= 0:
                raise ConfigurationError(f"{ENV_TIMEOUT} must be positive")

        return cls(
            backend_url=_clean(os.getenv(ENV_BACKEND_URL)),
            id_token=_clean(os.getenv(ENV_ID_TOKEN)),
            timeout=timeout,
            currency=_clean(os.getenv(ENV_CURRENCY)) or DEFAULT_CURRENCY,
        )

    def with_overrides(
        self,
        *,
        backend_url: str | None = None,
        id_token: str | None = None,
        currency: str | None = None,
    ) -> Settings:
        changes = {
            k: v
            for k, v in {
                "backend_url": _clean(backend_url),
                "id_token": _clean(id_token),
                "currency": _clean(currency),
            }.items()
            if v is not None
        }
        return replace(self, **changes) if changes else self

    def require_remote(self) -> tuple[str, str]:
        """Return ``(backend_url, id_token)`` or raise when either is missing."""

        if not self.backend_url:
            raise ConfigurationError(
                f"{ENV_BACKEND_URL} is not set (pass --backend-url or add it to .env)"
            )
        if not self.id_token:
            raise NotSignedInError("Please sign in to continue (no id token available)")
        return self.backend_url, self.id_token


__all__ = ["Settings"]
