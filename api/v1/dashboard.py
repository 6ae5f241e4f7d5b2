# api/v1/dashboard.py
from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from config import settings
from core.dashboard import summarize
from services.admin import fetch_dashboard
from services.backend import AuthenticationError
from services.session import ConsoleSession
from api.v1.deps import login_redirect, require_login
from api.v1.schemas.common import notifications_out
from api.v1.schemas.dashboard import DashboardOut

router = APIRouter()


@router.get("", response_model=DashboardOut, summary="Usage and revenue overview")
async def dashboard(
    page: int = Query(1, ge=1),
    console: ConsoleSession = Depends(require_login),
) -> DashboardOut:
    try:
        data = await fetch_dashboard(console.client, console.notifier)
    except AuthenticationError:
        raise login_redirect()

    summary = summarize(data, page=page, page_size=settings.page_size)
    return DashboardOut(
        **summary.model_dump(),
        notifications=notifications_out(console.notifier.drain()),
    )
