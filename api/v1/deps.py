# api/v1/deps.py
from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from config import settings
from services.auth import is_token_expired
from services.session import ConsoleRegistry, ConsoleSession

API_PREFIX = "/api/v1"
LOGIN_URL = f"{API_PREFIX}/login"


def get_consoles(request: Request) -> ConsoleRegistry:
    return request.app.state.consoles


def access_token(request: Request) -> str | None:
    return request.cookies.get(settings.token_cookie_name) or None


def login_redirect() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
        detail="Login required",
        headers={"Location": LOGIN_URL},
    )


async def require_login(
    request: Request,
    consoles: ConsoleRegistry = Depends(get_consoles),
) -> ConsoleSession:
    """
    Gate for protected pages: a missing or expired token sends the operator
    to the login page before the page fetches anything. Only the request's
    own cookie counts; sessions are never shared between tokens.
    """
    token = access_token(request)
    if token is None:
        raise login_redirect()
    if is_token_expired(token):
        await consoles.discard(token)
        raise login_redirect()
    return await consoles.for_token(token)


def still_logged_in(console: ConsoleSession) -> None:
    """A 401 during the request wipes the token; follow it to the login page."""
    if console.auth.token is None:
        raise login_redirect()
