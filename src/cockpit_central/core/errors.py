# src/cockpit_central/core/errors.py

"""
Error taxonomy.

Everything raised on purpose by this package derives from CockpitError so the
console (or any other front-end) can catch one base class and still tell the
categories apart.
"""

from __future__ import annotations


class CockpitError(Exception):
    """Base class for all application errors."""


class ConfigurationError(CockpitError):
    """Required settings are missing or still hold placeholder values."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        names = ", ".join(self.missing) or "(unknown)"
        super().__init__(f"Configuration incomplete: missing {names}")


class AuthError(CockpitError):
    """Access token could not be acquired."""


class GraphHTTPError(CockpitError):
    """
    Non-2xx answer from the list API.

    The raw body is kept as-is: the unknown-field classifier and diagnostics
    both need the exact server wording.
    """

    def __init__(self, status_code: int, reason: str, body: str) -> None:
        self.status_code = int(status_code)
        self.reason = reason or ""
        self.body = body or ""
        super().__init__(f"{self.status_code} {self.reason}: {self.body}")


class GraphTransportError(CockpitError):
    """The list API could not be reached (DNS, connect, timeout, reset)."""


def friendly_error_message(err: BaseException) -> str:
    """Short user-facing text for an error raised by the task store."""
    if isinstance(err, ConfigurationError):
        return (
            "Cockpit is not configured (missing: "
            + ", ".join(err.missing)
            + "). Set the COCKPIT_* variables in .env (see config.example.py)."
        )
    if isinstance(err, AuthError):
        return f"Not signed in: {err}. Set COCKPIT_ACCESS_TOKEN or sign in again."
    if isinstance(err, GraphHTTPError):
        if err.status_code in (401, 403):
            return f"Access denied by the list API ({err.status_code}). Check token scopes."
        if err.status_code == 404:
            return "List or item not found (404). Check COCKPIT_SITE_ID / COCKPIT_LIST_ID."
        return f"List API error {err.status_code}: {err.reason}"
    if isinstance(err, GraphTransportError):
        return f"List API unreachable ({err}). Check the network and try again."
    msg = str(err).strip()
    return msg or err.__class__.__name__
