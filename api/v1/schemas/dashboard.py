from __future__ import annotations

from typing import List

from core.dashboard import DashboardPage
from .common import NotificationOut


class DashboardOut(DashboardPage):
    notifications: List[NotificationOut] = []
