"""Client-side session guard.

The guard is the only authority on whether the user is logged in. It keeps
no cached flag: every question is answered by re-validating the persisted
session fields, so editing one of them by hand cannot bypass it.
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
import string
from enum import Enum
from typing import Callable

from .db import KeyValueStore
from .errors import SessionInvalidError
from .timestamps import now_ms

logger = logging.getLogger(__name__)

AUTH_KEY = "isLoggedIn"
AUTH_TOKEN_KEY = "authToken"
AUTH_TIMESTAMP_KEY = "authTimestamp"
SESSION_KEYS = (AUTH_KEY, AUTH_TOKEN_KEY, AUTH_TIMESTAMP_KEY)

SESSION_TIMEOUT_MS = 24 * 60 * 60 * 1000
TOKEN_SEPARATOR = "-"

_BASE36 = string.digits + string.ascii_lowercase


class SessionState(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"  # also: first validation still pending
    AUTHENTICATED = "authenticated"
    RENEWING = "renewing"
    EXPIRED = "expired"


def _base36(n: int) -> str:
    if n == 0:
        return "0"
    digits = []
    while n:
        n, r = divmod(n, 36)
        digits.append(_BASE36[r])
    return "".join(reversed(digits))


def generate_session_token(now: int) -> str:
    """Opaque token: base64 of ``"<ms>-<random base36>"``."""
    raw = f"{now}{TOKEN_SEPARATOR}{_base36(secrets.randbits(64))}"
    return base64.b64encode(raw.encode("ascii")).decode("ascii")


class SessionGuard:
    """Validates, renews and clears the persisted session."""

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Callable[[], int] = now_ms,
        timeout_ms: int = SESSION_TIMEOUT_MS,
    ) -> None:
        self._store = store
        self._clock = clock
        self._timeout_ms = timeout_ms
        self._state = SessionState.AUTHENTICATING
        self._logout_listeners: list[Callable[[str], None]] = []
        self.last_failure: str = ""

    @property
    def state(self) -> SessionState:
        """Last observed state. Informational only; use :attr:`is_authenticated`."""
        return self._state

    @property
    def is_authenticated(self) -> bool:
        return self.validate_auth()

    def on_logout(self, callback: Callable[[str], None]) -> None:
        """Call ``callback(reason)`` when a periodic check forces a logout."""
        self._logout_listeners.append(callback)

    def set_auth(self) -> str:
        """Start a new session and return its token."""
        self._state = SessionState.AUTHENTICATING
        now = self._clock()
        token = generate_session_token(now)
        self._store.set(AUTH_KEY, "true")
        self._store.set(AUTH_TOKEN_KEY, token)
        self._store.set(AUTH_TIMESTAMP_KEY, str(now))
        self._state = SessionState.AUTHENTICATED
        self.last_failure = ""
        logger.info("Session started")
        return token

    def clear_auth(self) -> None:
        self._store.delete(*SESSION_KEYS)
        self._state = SessionState.ANONYMOUS

    def validate_auth(self) -> bool:
        """Return True only if every session invariant holds.

        Any violation, including a parse error, clears the session.
        """
        try:
            reason = self._check_fields()
        except Exception:
            logger.exception("Session validation failed")
            reason = "validation error"

        if reason:
            self._invalidate(reason)
            return False
        if self._state is not SessionState.RENEWING:
            self._state = SessionState.AUTHENTICATED
        return True

    def renew_session(self) -> bool:
        """Slide the expiry window forward; the token is not reissued."""
        if not self.validate_auth():
            return False
        self._state = SessionState.RENEWING
        self._store.set(AUTH_TIMESTAMP_KEY, str(self._clock()))
        self._state = SessionState.AUTHENTICATED
        return True

    def check(self) -> bool:
        """Periodic step: renew a valid session or force a logout."""
        was_authenticated = self._state in (
            SessionState.AUTHENTICATED,
            SessionState.RENEWING,
        )
        if self.renew_session():
            return True
        if was_authenticated:
            logger.warning("Session ended: %s", self.last_failure)
            for callback in list(self._logout_listeners):
                try:
                    callback(self.last_failure)
                except Exception:
                    logger.exception("Logout listener %r failed", callback)
        return False

    def require(self) -> None:
        """Raise SessionInvalidError unless the session is valid."""
        if not self.validate_auth():
            raise SessionInvalidError(self.last_failure or "not logged in")

    def _check_fields(self) -> str:
        flag = self._store.get(AUTH_KEY)
        token = self._store.get(AUTH_TOKEN_KEY)
        timestamp = self._store.get(AUTH_TIMESTAMP_KEY)

        if not flag or not token or not timestamp:
            return "not logged in"
        if flag != "true":
            return "invalid login flag"

        try:
            auth_time = int(timestamp)
        except ValueError:
            return "invalid session timestamp"
        now = self._clock()
        if auth_time > now:
            return "session timestamp is in the future"
        if now - auth_time > self._timeout_ms:
            return "session expired"

        try:
            decoded = base64.b64decode(token, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError):
            return "malformed session token"
        if TOKEN_SEPARATOR not in decoded:
            return "malformed session token"
        return ""

    def _invalidate(self, reason: str) -> None:
        if self._state is not SessionState.ANONYMOUS:
            logger.info("Session invalid (%s); clearing it", reason)
        self.last_failure = reason
        self._state = SessionState.EXPIRED
        self.clear_auth()
