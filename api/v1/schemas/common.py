from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel

from services.notify import Notification


class NotificationOut(BaseModel):
    level: Literal["success", "error"]
    message: str


def notifications_out(items: List[Notification]) -> List[NotificationOut]:
    return [NotificationOut(level=n.level, message=n.message) for n in items]
