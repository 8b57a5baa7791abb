# src/cockpit_central/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The task store depends on Protocols instead of concrete implementations.
This keeps the HTTP transport, the credential source and the way warnings
reach the user swappable, and makes testing easier.
"""

from typing import Any, Protocol

RawFields = dict[str, Any]
# Field map of a list item as sent to / received from the list API.


class AccessToken(Protocol):
    token: str
    expires_at: float | None  # epoch seconds, None if the provider does not know


class TokenSource(Protocol):
    """Acquires a fresh bearer token (delegated-auth flow lives behind this)."""

    async def acquire(self) -> AccessToken: ...


class TokenProvider(Protocol):
    """Returns a bearer token that is valid right now (cached or fresh)."""

    async def get_token(self) -> str: ...


class ListApi(Protocol):
    """
    Authenticated JSON calls to the list API.

    Raises GraphHTTPError on non-2xx, returns None on 204.
    """

    async def request_json(
            self,
            method: str,
            url: str,
            *,
            json_body: Any | None = None,
    ) -> Any: ...


class Notifier(Protocol):
    """
    Non-blocking, toast-like user feedback.

    level is one of "info", "warn", "error".
    """

    def notify(self, message: str, level: str = "info") -> None: ...
