from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from .common import NotificationOut


class LoginIn(BaseModel):
    email_or_phone: str = Field(..., examples=["admin@example.com", "+998901234567"])
    password: str


class LoginOut(BaseModel):
    ok: bool
    navigate_to: str | None = None
    notifications: List[NotificationOut] = []


class LoginPage(BaseModel):
    view: str = "login"
    notifications: List[NotificationOut] = []
