# src/cockpit_central/graph/auth.py

"""
Bearer token handling.

The interactive delegated sign-in is not part of this package: it hands us a
TokenSource. What lives here is the in-memory cache in front of it, so that
every list API call does not cost a token round-trip.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from ..core.errors import AuthError
from ..core.ports import TokenSource

logger = logging.getLogger(__name__)

# Renew when fewer than this many seconds of validity remain.
EXPIRY_MARGIN_SECONDS = 30.0
# Assumed lifetime when the source does not report an expiry.
DEFAULT_LIFETIME_SECONDS = 45 * 60.0


@dataclass(slots=True, frozen=True)
class AccessTokenValue:
    token: str
    expires_at: float | None = None


class StaticTokenSource:
    """
    Token pasted into the environment (COCKPIT_ACCESS_TOKEN).

    Handy for scripts and for tokens obtained by an external sign-in helper.
    """

    def __init__(self, token: str | None, *, expires_at: float | None = None) -> None:
        self._token = (token or "").strip()
        self._expires_at = expires_at

    async def acquire(self) -> AccessTokenValue:
        if not self._token:
            raise AuthError("no access token available (COCKPIT_ACCESS_TOKEN is empty)")
        return AccessTokenValue(token=self._token, expires_at=self._expires_at)


class CachedTokenProvider:
    """
    Caches the last token until it is about to expire.

    Nothing detects revocation: a revoked token stays cached until it expires
    or clear() is called.
    """

    def __init__(
        self,
        source: TokenSource,
        *,
        margin_seconds: float = EXPIRY_MARGIN_SECONDS,
        default_lifetime_seconds: float = DEFAULT_LIFETIME_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._margin = float(margin_seconds)
        self._default_lifetime = float(default_lifetime_seconds)
        self._clock = clock
        self._token: str | None = None
        self._expires_at = 0.0

    def clear(self) -> None:
        self._token = None
        self._expires_at = 0.0

    async def get_token(self) -> str:
        now = self._clock()
        if self._token and now < self._expires_at - self._margin:
            return self._token

        try:
            acquired = await self._source.acquire()
        except AuthError:
            raise
        except Exception as e:
            raise AuthError(f"token acquisition failed: {e}") from e

        token = (getattr(acquired, "token", "") or "").strip()
        if not token:
            raise AuthError("token source returned an empty token")

        expires_at = getattr(acquired, "expires_at", None)
        self._token = token
        self._expires_at = float(expires_at) if expires_at else now + self._default_lifetime
        logger.debug("Access token refreshed (valid for %.0fs)", self._expires_at - now)
        return token
