"""
User-facing notifications (the console's toasts).

Every store/editor failure is reported here instead of being raised; the API
layer drains the queue into each response.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Literal

_LOG = logging.getLogger(__name__)

Level = Literal["success", "error"]


@dataclass(frozen=True)
class Notification:
    level: Level
    message: str


class Notifier:
    def __init__(self) -> None:
        self._queue: List[Notification] = []

    def success(self, message: str) -> None:
        _LOG.info(message)
        self._queue.append(Notification("success", message))

    def error(self, message: str) -> None:
        _LOG.warning(message)
        self._queue.append(Notification("error", message))

    @property
    def pending(self) -> List[Notification]:
        return list(self._queue)

    def drain(self) -> List[Notification]:
        out, self._queue = self._queue, []
        return out
