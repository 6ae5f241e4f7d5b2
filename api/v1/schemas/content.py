from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel

from core.models.content import ContentKind
from .common import NotificationOut

Tab = Literal["all", "exercise", "meal"]


class ContentItemOut(BaseModel):
    kind: ContentKind
    id: str | None
    name: str
    description: str
    image_url: str | None = None
    steps: List[Dict[str, Any]] = []


class ContentListOut(BaseModel):
    tab: Tab
    items: List[ContentItemOut]
    page: int
    total_pages: int
    notifications: List[NotificationOut] = []


class DeleteOut(BaseModel):
    removed: bool
    persisted: bool
    notifications: List[NotificationOut] = []
