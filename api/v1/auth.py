# api/v1/auth.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response, status

from config import settings
from services.admin import login as backend_login
from services.session import ConsoleRegistry
from api.v1.deps import API_PREFIX, LOGIN_URL, access_token, get_consoles
from api.v1.schemas.auth import LoginIn, LoginOut, LoginPage
from api.v1.schemas.common import notifications_out

router = APIRouter()


@router.get("/login", response_model=LoginPage)
async def login_page() -> LoginPage:
    return LoginPage()


@router.post("/login", response_model=LoginOut)
async def login(
    body: LoginIn,
    response: Response,
    consoles: ConsoleRegistry = Depends(get_consoles),
) -> LoginOut:
    console = consoles.anonymous()
    token = await backend_login(
        console.client, console.notifier, body.email_or_phone, body.password
    )
    notifications = notifications_out(console.notifier.drain())
    if token is None:
        await console.aclose()
        response.status_code = status.HTTP_401_UNAUTHORIZED
        return LoginOut(ok=False, notifications=notifications)

    consoles.adopt(token, console)
    response.set_cookie(settings.token_cookie_name, token, httponly=True, samesite="lax")
    return LoginOut(
        ok=True,
        navigate_to=f"{API_PREFIX}/dashboard",
        notifications=notifications,
    )


@router.post("/logout", response_model=LoginOut)
async def logout(
    request: Request,
    response: Response,
    consoles: ConsoleRegistry = Depends(get_consoles),
) -> LoginOut:
    await consoles.discard(access_token(request))
    response.delete_cookie(settings.token_cookie_name)
    response.delete_cookie("refreshToken")
    return LoginOut(ok=True, navigate_to=LOGIN_URL)
