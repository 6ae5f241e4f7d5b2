"""
services/content_store.py
────────────────────────────────────────────────────────────────────────
Remote store adapters, one per content kind.

Each adapter owns its REST paths and its UI ⇄ wire mapping, and keeps the
session's `CollectionCache` in step with what it did. No method raises a
backend failure to its caller: failures become a notification plus a safe
default (`None`, `False`, a stale/sample list, or an `OpResult` that says so).

Cache policy
------------
* list    → cache replaced by server data; on failure stale data (or the
            sample collection) is kept.
* create  → appended only after the server assigns an id.
* update  → applied optimistically, reverted when the server refuses.
* delete  → removed from the cache whatever the server says.
* demo    → with `DEMO_FALLBACK=1` failed creates/updates stay in the cache
            (`applied_to_cache=True, persisted=False`).
"""
from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from config import settings
from core.cache import CollectionCache
from core.mapping import from_wire, partial_to_wire, step_to_wire, to_wire, wire_image_url
from core.models.content import (
    ContentEntity,
    ContentKind,
    ExerciseBlock,
    ExerciseStep,
    ImageFile,
    Meal,
    MealStep,
    Step,
)
from core.models.result import FAILED, OpResult
from services.backend import BackendClient, BackendError
from services.notify import Notifier

_LOG = logging.getLogger(__name__)


# ───────────────────── sample collections (list fallback) ─────────────
SAMPLE_EXERCISE_BLOCKS: List[ExerciseBlock] = [
    ExerciseBlock(
        id="1",
        name="Yurish mashqlari",
        calories=150,
        water_intake=500,
        duration=30,
        description="Yengil yurish yoki joggingni oqrgani uchun mashqlar",
        steps=[
            ExerciseStep(
                id="1",
                name="Isitish",
                duration="5 - 10 daqiqa",
                description="Yengil yurish yoki joggingni oqrgani uchun mashqlar",
            ),
            ExerciseStep(
                id="2",
                name="Asosiy Mashq",
                duration="5 - 10 daqiqa",
                description="Qorin va belda yugurmasliq va orqa adela ishlatish",
            ),
        ],
    )
]

SAMPLE_MEALS: List[Meal] = [
    Meal(
        id="1",
        name="Avokado va tuxumli buterbrod",
        calories="1800",
        water_intake="300",
        preparation_time=20,
        description="Bu yengil taomif tavsifi",
        steps=[
            MealStep(id="1", title="Tuxum", step_number=1,
                     description="Tuxumlarni suvda qaynatring yoki pishiring qiling"),
            MealStep(id="2", title="Ziravor", step_number=2,
                     description="Tuz va murch bilan aralashtiring"),
        ],
    )
]


class ContentStore:
    kind: ContentKind
    label: str
    base_path: str
    image_endpoint: str
    step_segment: str
    step_base_path: str
    step_image_endpoint: str | None = None
    sample: List[ContentEntity] = []

    def __init__(
        self,
        client: BackendClient,
        cache: CollectionCache,
        notifier: Notifier,
        demo_fallback: bool | None = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._notify = notifier
        self._demo = settings.demo_fallback if demo_fallback is None else demo_fallback

    @property
    def supports_step_images(self) -> bool:
        return self.step_image_endpoint is not None

    # ───────────────────────────── read ──────────────────────────────
    async def list(self) -> List[ContentEntity]:
        try:
            data = await self._client.get(f"{self.base_path}/")
        except BackendError as exc:
            _LOG.warning("list %s failed: %s", self.kind.value, exc)
            self._notify.error(f"Failed to load {self.label.lower()}s")
            fallback = self._cache.items(self.kind) or [
                e.model_copy(deep=True) for e in self.sample
            ]
            self._cache.replace_all(self.kind, fallback)
            return fallback

        rows = data.get("results", []) if isinstance(data, dict) else (data or [])
        entities = [from_wire(self.kind, row) for row in rows]
        self._cache.replace_all(self.kind, entities)
        _LOG.debug("loaded %d %s", len(entities), self.kind.value)
        return entities

    async def get_by_id(self, entity_id: str) -> ContentEntity | None:
        try:
            raw = await self._client.get(f"{self.base_path}/{entity_id}/")
        except BackendError as exc:
            _LOG.warning("get %s %s failed: %s", self.kind.value, entity_id, exc)
            self._notify.error(f"{self.label} not found")
            return None
        if not raw:
            return None
        entity = from_wire(self.kind, raw)
        self._cache.upsert(self.kind, entity)
        return entity

    # ───────────────────────────── write ─────────────────────────────
    async def create(self, draft: ContentEntity) -> OpResult:
        try:
            raw = await self._client.post(f"{self.base_path}/", json=to_wire(self.kind, draft))
            entity = from_wire(self.kind, raw if isinstance(raw, dict) else {})
            if entity.id is None:
                raise BackendError("create response carried no id")
        except BackendError as exc:
            _LOG.warning("create %s failed: %s", self.kind.value, exc)
            if self._demo:
                fabricated = draft.model_copy(update={"id": f"demo-{int(time.time() * 1000)}"})
                self._cache.append(self.kind, fabricated)
                self._notify.error(f"{self.label} kept locally only (demo mode)")
                return OpResult(applied_to_cache=True, persisted=False, entity=fabricated)
            self._notify.error(f"Failed to add {self.label.lower()}")
            return FAILED

        self._cache.append(self.kind, entity)
        self._notify.success(f"{self.label} added")
        return OpResult(applied_to_cache=True, persisted=True, entity=entity)

    async def update(self, entity_id: str, changes: Dict[str, Any]) -> OpResult:
        before = self._cache.get(self.kind, entity_id)
        optimistic = self._cache.patch(self.kind, entity_id, **changes)
        payload = (
            to_wire(self.kind, optimistic)
            if optimistic is not None
            else partial_to_wire(self.kind, changes)
        )
        try:
            raw = await self._client.put(f"{self.base_path}/{entity_id}/", json=payload)
        except BackendError as exc:
            _LOG.warning("update %s %s failed: %s", self.kind.value, entity_id, exc)
            if self._demo and optimistic is not None:
                self._notify.error(f"{self.label} kept locally only (demo mode)")
                return OpResult(applied_to_cache=True, persisted=False, entity=optimistic)
            if before is not None:
                self._cache.replace(self.kind, entity_id, before)
            self._notify.error(f"Failed to update {self.label.lower()}")
            return FAILED

        entity = optimistic
        if isinstance(raw, dict) and raw.get("id") is not None:
            entity = from_wire(self.kind, raw)
            self._cache.upsert(self.kind, entity)
        self._notify.success(f"{self.label} updated")
        return OpResult(applied_to_cache=entity is not None, persisted=True, entity=entity)

    async def delete(self, entity_id: str) -> OpResult:
        persisted = True
        try:
            await self._client.delete(f"{self.base_path}/{entity_id}/")
        except BackendError as exc:
            _LOG.warning("delete %s %s failed: %s", self.kind.value, entity_id, exc)
            self._notify.error(f"Failed to delete {self.label.lower()}")
            persisted = False
        # best effort: the listing never waits on the server to drop a row
        self._cache.remove(self.kind, entity_id)
        if persisted:
            self._notify.success(f"{self.label} deleted")
        return OpResult(applied_to_cache=True, persisted=persisted)

    async def upload_image(self, entity_id: str, file: ImageFile) -> OpResult:
        if not file.size:
            entity = self._cache.patch(self.kind, entity_id, image_url=None)
            return OpResult(applied_to_cache=entity is not None, persisted=False, entity=entity)
        try:
            raw = await self._client.upload(
                f"{self.base_path}/{entity_id}/{self.image_endpoint}/", "image", file.as_upload()
            )
        except BackendError as exc:
            _LOG.warning("image upload for %s %s failed: %s", self.kind.value, entity_id, exc)
            self._notify.error("Failed to upload image")
            return FAILED

        url = wire_image_url(self.kind, raw) if isinstance(raw, dict) else None
        entity = self._cache.patch(self.kind, entity_id, image_url=url) if url else None
        self._notify.success("Image uploaded")
        return OpResult(applied_to_cache=entity is not None, persisted=True, entity=entity)

    # ───────────────────────────── steps ─────────────────────────────
    async def create_step(self, parent_id: str, step: Step) -> str | None:
        """Create one step under a persisted parent; returns the server id."""
        payload = step_to_wire(self.kind, step)
        payload.pop("id", None)
        try:
            raw = await self._client.post(
                f"{self.base_path}/{parent_id}/{self.step_segment}/", json=payload
            )
        except BackendError as exc:
            _LOG.warning("create step under %s failed: %s", parent_id, exc)
            self._notify.error("Failed to add step")
            return None
        step_id = raw.get("id") if isinstance(raw, dict) else None
        if step_id is None:
            self._notify.error("Failed to add step")
            return None
        return str(step_id)

    async def update_step(self, step_id: str, step: Step) -> bool:
        payload = step_to_wire(self.kind, step)
        payload.pop("id", None)
        try:
            await self._client.put(f"{self.step_base_path}/{step_id}/", json=payload)
        except BackendError as exc:
            _LOG.warning("update step %s failed: %s", step_id, exc)
            return False
        return True

    async def upload_step_image(self, parent_id: str, step_id: str, file: ImageFile) -> str | None:
        """Returns the stored image url ("" when the backend echoes none)."""
        if self.step_image_endpoint is None:
            raise ValueError(f"{self.kind.value} steps do not carry images")
        try:
            raw = await self._client.upload(
                f"{self.base_path}/{parent_id}/{self.step_image_endpoint}/{step_id}/",
                "image",
                file.as_upload(),
            )
        except BackendError as exc:
            _LOG.warning("step image upload %s/%s failed: %s", parent_id, step_id, exc)
            self._notify.error("Failed to upload step image")
            return None
        url = ""
        if isinstance(raw, dict):
            url = raw.get("image") or raw.get("image_url") or ""
        if url:
            self._cache.patch_step(self.kind, parent_id, step_id, image_url=url)
        self._notify.success("Step image uploaded")
        return url


class ExerciseBlockStore(ContentStore):
    kind = ContentKind.exercise
    label = "Exercise block"
    base_path = "/api/exercise/api/exerciseblocks"
    image_endpoint = "upload-block-image"
    step_segment = "exercises"
    step_base_path = "/api/exercise/api/exercises"
    step_image_endpoint = "upload-exercise-image"
    sample = SAMPLE_EXERCISE_BLOCKS


class MealStore(ContentStore):
    kind = ContentKind.meal
    label = "Meal"
    base_path = "/api/food/api/meals"
    image_endpoint = "upload-photo"
    step_segment = "steps"
    step_base_path = "/api/food/api/meal-steps"
    sample = SAMPLE_MEALS


STORE_TYPES = {
    ContentKind.exercise: ExerciseBlockStore,
    ContentKind.meal: MealStore,
}
