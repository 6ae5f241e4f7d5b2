from __future__ import annotations

import logging
import time
from typing import Callable

import jwt

_LOG = logging.getLogger(__name__)


def is_token_expired(token: str | None, now: float | None = None) -> bool:
    """
    Read `exp` from the JWT payload and compare it with the clock.

    The signature is not checked here (the backend does that); a token that
    cannot be decoded, or that carries no `exp`, counts as expired.
    """
    if not token:
        return True
    try:
        payload = jwt.decode(
            token,
            options={"verify_signature": False, "verify_exp": False},
        )
        exp = float(payload["exp"])
    except (jwt.PyJWTError, KeyError, TypeError, ValueError) as exc:
        _LOG.debug("unreadable token: %s", exc)
        return True
    current = int(time.time()) if now is None else now
    return exp < current


class AuthContext:
    """
    Operator credentials for one console session.

    The cookie token wins over the locally stored one. Created when the
    session starts and invalidated on logout, expiry or a 401.
    """

    def __init__(
        self,
        stored_token: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cookie_token: str | None = None
        self._stored_token = stored_token
        self._clock = clock

    # ─────────────────────────── token sources ───────────────────────
    def use_cookie(self, token: str | None) -> None:
        self._cookie_token = token or None

    def store(self, token: str) -> None:
        self._stored_token = token

    @property
    def token(self) -> str | None:
        return self._cookie_token or self._stored_token

    # ─────────────────────────── checks ──────────────────────────────
    def is_authenticated(self) -> bool:
        return not is_token_expired(self.token, now=int(self._clock()))

    def authorization_header(self) -> dict[str, str]:
        tok = self.token
        return {"Authorization": f"Bearer {tok}"} if tok else {}

    def invalidate(self) -> None:
        if self.token:
            _LOG.info("clearing stored credentials")
        self._cookie_token = None
        self._stored_token = None
