from __future__ import annotations

from dataclasses import dataclass

from core.models.content import ContentEntity


@dataclass(frozen=True)
class OpResult:
    """
    Outcome of a mutating store call.

    `applied_to_cache` – the collection cache now reflects the change.
    `persisted`        – the backend confirmed it.

    A demo-mode fabrication is the only way to get applied-but-not-persisted
    for create/update; deletes are always applied.
    """
    applied_to_cache: bool
    persisted: bool
    entity: ContentEntity | None = None

    @property
    def ok(self) -> bool:
        return self.persisted


FAILED = OpResult(applied_to_cache=False, persisted=False)
