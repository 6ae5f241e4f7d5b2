"""
core/cache.py
────────────────────────────────────────────────────────────────────────
In-memory collections for one console session: exercise blocks and meals,
each kept in insertion order.

Contents mean "what we believe the server holds plus unsynced local edits";
nothing here is authoritative. Entities are copied on the way in and out so
callers can't mutate cached state behind the cache's back.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Tuple

from core.models.content import ContentEntity, ContentKind

_LOG = logging.getLogger(__name__)


class CollectionCache:
    def __init__(self) -> None:
        self._items: Dict[ContentKind, List[ContentEntity]] = {
            kind: [] for kind in ContentKind
        }

    # ───────────────────────────── reads ─────────────────────────────
    def items(self, kind: ContentKind) -> List[ContentEntity]:
        return [e.model_copy(deep=True) for e in self._items[kind]]

    def get(self, kind: ContentKind, entity_id: str) -> ContentEntity | None:
        idx = self._index(kind, entity_id)
        return None if idx is None else self._items[kind][idx].model_copy(deep=True)

    def locate(self, entity_id: str) -> Tuple[ContentKind, ContentEntity] | None:
        """Find an id in either collection (exercise blocks first)."""
        for kind in ContentKind:
            found = self.get(kind, entity_id)
            if found is not None:
                return kind, found
        return None

    def __len__(self) -> int:
        return sum(len(v) for v in self._items.values())

    # ─────────────────────────── mutations ───────────────────────────
    def replace_all(self, kind: ContentKind, entities: List[ContentEntity]) -> None:
        self._items[kind] = [e.model_copy(deep=True) for e in entities]

    def append(self, kind: ContentKind, entity: ContentEntity) -> None:
        self._items[kind].append(entity.model_copy(deep=True))

    def upsert(self, kind: ContentKind, entity: ContentEntity) -> None:
        if entity.id is None or not self.replace(kind, entity.id, entity):
            self.append(kind, entity)

    def replace(self, kind: ContentKind, entity_id: str, entity: ContentEntity) -> bool:
        idx = self._index(kind, entity_id)
        if idx is None:
            return False
        self._items[kind][idx] = entity.model_copy(deep=True)
        return True

    def remove(self, kind: ContentKind, entity_id: str) -> bool:
        idx = self._index(kind, entity_id)
        if idx is None:
            return False
        del self._items[kind][idx]
        return True

    def patch(self, kind: ContentKind, entity_id: str, **fields: Any) -> ContentEntity | None:
        idx = self._index(kind, entity_id)
        if idx is None:
            _LOG.debug("patch: %s %s not cached", kind.value, entity_id)
            return None
        current = self._items[kind][idx]
        patched = current.model_validate({**current.model_dump(), **_dump(fields)})
        self._items[kind][idx] = patched
        return patched.model_copy(deep=True)

    def patch_step(
        self, kind: ContentKind, entity_id: str, step_id: str, **fields: Any
    ) -> ContentEntity | None:
        idx = self._index(kind, entity_id)
        if idx is None:
            return None
        current = self._items[kind][idx]
        steps = [
            s.model_validate({**s.model_dump(), **fields}) if s.id == step_id else s
            for s in current.steps
        ]
        patched = current.model_copy(update={"steps": steps})
        self._items[kind][idx] = patched
        return patched.model_copy(deep=True)

    # ─────────────────────────── helpers ─────────────────────────────
    def _index(self, kind: ContentKind, entity_id: str) -> int | None:
        for i, e in enumerate(self._items[kind]):
            if e.id == entity_id:
                return i
        return None


def _dump(fields: Dict[str, Any]) -> Dict[str, Any]:
    # nested step models → plain dicts so model_validate rebuilds them
    out = {}
    for key, value in fields.items():
        if isinstance(value, list):
            value = [v.model_dump() if hasattr(v, "model_dump") else v for v in value]
        out[key] = value
    return out
