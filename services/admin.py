from __future__ import annotations

import logging

from pydantic import ValidationError

from core.dashboard import DashboardData
from services.backend import AuthenticationError, BackendClient, BackendError
from services.notify import Notifier

_LOG = logging.getLogger(__name__)

LOGIN_PATH = "/api/users/login/"
DASHBOARD_PATH = "/api/admin/admin/dashboard"


async def login(
    client: BackendClient, notifier: Notifier, email_or_phone: str, password: str
) -> str | None:
    """Exchange credentials for a token and store it; None when refused."""
    try:
        data = await client.request(
            "POST",
            LOGIN_PATH,
            json={"email_or_phone": email_or_phone, "password": password},
            authenticated=False,
        )
    except BackendError as exc:
        detail = "Invalid credentials"
        if isinstance(exc.payload, dict) and exc.payload.get("email_or_phone"):
            detail = str(exc.payload["email_or_phone"][0])
        elif exc.status_code is None:
            detail = "Could not reach the server"
        _LOG.warning("login failed: %s", exc)
        notifier.error(detail)
        return None

    token = data.get("token") if isinstance(data, dict) else None
    if not token:
        notifier.error("Invalid credentials")
        return None
    client.auth.store(token)
    return token


async def fetch_dashboard(client: BackendClient, notifier: Notifier) -> DashboardData:
    """
    Load the dashboard sections. Auth failures propagate so the caller can
    send the operator to the login page; anything else degrades to empty.
    """
    try:
        raw = await client.get(DASHBOARD_PATH)
        return DashboardData.model_validate(raw or {})
    except AuthenticationError:
        raise
    except BackendError as exc:
        _LOG.warning("dashboard fetch failed: %s", exc)
        notifier.error("Failed to fetch dashboard data")
    except ValidationError as exc:
        _LOG.warning("dashboard payload rejected: %s", exc)
        notifier.error("Something went wrong")
    return DashboardData()
