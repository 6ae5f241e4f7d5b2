"""
core/editor.py
────────────────────────────────────────────────────────────────────────
Content editor: one instance per "add content" / "edit content" page.

State machine
-------------
    uninitialized ─ open_create ─▶ empty
                  └ open_edit ───▶ loading ─▶ populated
    empty | populated ─ any mutation ─▶ editing
    editing ─ submit ─▶ submitting ─▶ success     (navigate to listing)
                                  └─▶ editing     (error surfaced)

Edit-mode saves run four independent stages (parent update, step batch,
pending step images, retried step creates) with no rollback between them,
the same way the backend treats them.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List

from core.forms import default_form, validate_form
from core.models.content import (
    ContentEntity,
    ContentKind,
    ENTITY_TYPES,
    ImageFile,
    MealStep,
    Step,
)
from core.step_reconciler import StepReconciler

_LOG = logging.getLogger(__name__)

LISTING_ROUTE = "/content"


class EditorMode(str, Enum):
    create = "create"
    edit = "edit"


class EditorState(str, Enum):
    uninitialized = "uninitialized"
    empty = "empty"
    loading = "loading"
    populated = "populated"
    editing = "editing"
    submitting = "submitting"
    success = "success"


class EditorError(RuntimeError):
    """Operation not allowed in the editor's current mode/state."""


@dataclass
class SubmitOutcome:
    ok: bool
    navigate_to: str | None = None
    field_errors: Dict[str, str] = field(default_factory=dict)
    failed_stages: List[str] = field(default_factory=list)
    busy: bool = False
    entity: ContentEntity | None = None


class ContentEditor:
    def __init__(
        self,
        stores: Dict[ContentKind, Any],
        cache,
        notifier,
    ) -> None:
        self._stores = stores
        self._cache = cache
        self._notify = notifier

        self.mode: EditorMode | None = None
        self.state = EditorState.uninitialized
        self.kind = ContentKind.exercise
        self.entity_id: str | None = None
        self.form: Dict[str, Any] = {}
        self.steps: List[Step] = []
        self.main_image: str | None = None
        self.pending_main_image: ImageFile | None = None
        self.step_images: Dict[str, str] = {}
        self.submitting = False
        self.reconciler: StepReconciler | None = None

    @property
    def store(self):
        return self._stores[self.kind]

    # ─────────────────────────── entry ───────────────────────────────
    def open_create(self, kind: ContentKind = ContentKind.exercise) -> None:
        self.mode = EditorMode.create
        self.entity_id = None
        self._reset(kind)
        self.state = EditorState.empty

    async def open_edit(self, kind: ContentKind, entity_id: str) -> bool:
        """Load from the cache, falling back to the backend. False if missing."""
        self.mode = EditorMode.edit
        self.kind = kind
        self.entity_id = entity_id
        self.state = EditorState.loading

        entity = self._cache.get(kind, entity_id)
        if entity is None:
            entity = await self.store.get_by_id(entity_id)
        if entity is None:
            self.state = EditorState.uninitialized
            return False
        self._populate(entity)
        return True

    def select_kind(self, kind: ContentKind) -> None:
        self._require_idle()
        if self.mode is not EditorMode.create:
            raise EditorError("content kind is fixed while editing")
        if kind != self.kind:
            self._reset(kind)
            self.state = EditorState.empty

    # ─────────────────────────── form / images ───────────────────────
    def set_fields(self, **values: Any) -> None:
        self._require_open()
        self._require_idle()
        self.form.update(values)
        self._touch()

    async def attach_main_image(self, file: ImageFile) -> None:
        self._require_open()
        self._require_idle()
        self._touch()
        if self.mode is EditorMode.create:
            self.pending_main_image = file if file.size else None
            self.main_image = file.filename if file.size else None
            return
        result = await self.store.upload_image(self.entity_id, file)
        if not file.size:
            self.main_image = None
        elif result.entity is not None and result.entity.image_url:
            self.main_image = result.entity.image_url

    async def attach_step_image(self, step_id: str, file: ImageFile) -> None:
        self._require_open()
        self._require_idle()
        self._require_step(step_id)
        self._touch()
        url = await self.reconciler.attach_image(step_id, file)
        if not file.size:
            self.step_images.pop(step_id, None)
            self._set_step(step_id, image_url=None)
        elif url:
            self.step_images[step_id] = url
            self._set_step(step_id, image_url=url)
        elif step_id in self.reconciler.pending_images:
            self.step_images[step_id] = file.filename

    # ─────────────────────────── steps ───────────────────────────────
    async def add_step(self) -> Step:
        self._require_open()
        self._require_idle()
        self._touch()
        step = await self.reconciler.add_step(len(self.steps))
        self.steps.append(step)
        return step

    def update_step(self, step_id: str, **data: Any) -> Step:
        self._require_open()
        self._require_idle()
        self._require_step(step_id)
        self._touch()
        data.pop("id", None)
        step = self._set_step(step_id, **data)
        self.reconciler.note_edit(step_id)
        return step

    def remove_step(self, step_id: str) -> None:
        self._require_open()
        self._require_idle()
        self._touch()
        self.steps = [s for s in self.steps if s.id != step_id]
        self.step_images.pop(step_id, None)
        self.reconciler.forget(step_id)
        self._renumber()

    # ─────────────────────────── submit ──────────────────────────────
    async def submit(self) -> SubmitOutcome:
        self._require_open()
        if self.submitting:
            return SubmitOutcome(ok=False, busy=True)

        values, errors = validate_form(self.kind, self.form)
        if errors:
            # inline field messages only, nothing goes over the wire
            return SubmitOutcome(ok=False, field_errors=errors)

        self.submitting = True
        self.state = EditorState.submitting
        try:
            if self.mode is EditorMode.create:
                outcome = await self._submit_create(values)
            else:
                outcome = await self._submit_edit(values)
        finally:
            self.submitting = False

        if outcome.ok:
            self.state = EditorState.success
            outcome.navigate_to = LISTING_ROUTE
        else:
            self.state = EditorState.editing
        return outcome

    async def _submit_create(self, values: Dict[str, Any]) -> SubmitOutcome:
        draft = self._entity(values)
        result = await self.store.create(draft)
        if not result.persisted:
            # demo mode keeps a local-only record; the page still leaves
            return SubmitOutcome(
                ok=result.applied_to_cache, failed_stages=["create"], entity=result.entity
            )

        saved = result.entity
        self.entity_id = saved.id
        self.mode = EditorMode.edit
        self.reconciler.adopt(saved.id, self.steps, saved.steps)
        if saved.steps:
            self.steps = list(saved.steps)

        failed: List[str] = []
        if self.pending_main_image is not None:
            uploaded = await self.store.upload_image(saved.id, self.pending_main_image)
            if uploaded.persisted:
                self.pending_main_image = None
            else:
                failed.append("main_image")
        if await self.reconciler.flush_images():
            failed.append("step_images")
        # the entity exists either way; image failures are reported, not fatal
        return SubmitOutcome(ok=True, failed_stages=failed, entity=saved)

    async def _submit_edit(self, values: Dict[str, Any]) -> SubmitOutcome:
        failed: List[str] = []

        self.steps = await self.reconciler.create_missing(self.steps)

        changes = {**values, "steps": self.steps, "image_url": self.main_image}
        result = await self.store.update(self.entity_id, changes)
        if not result.persisted:
            failed.append("update")

        if await self.reconciler.sync_modified(self.steps):
            failed.append("steps")
        if await self.reconciler.flush_images():
            failed.append("step_images")

        return SubmitOutcome(ok=not failed, failed_stages=failed, entity=result.entity)

    # ─────────────────────────── helpers ─────────────────────────────
    def _reset(self, kind: ContentKind) -> None:
        self.kind = kind
        self.form = default_form(kind)
        self.steps = []
        self.main_image = None
        self.pending_main_image = None
        self.step_images = {}
        self.reconciler = StepReconciler(self.store, self._notify, parent_id=None)

    def _populate(self, entity: ContentEntity) -> None:
        self.form = default_form(self.kind)
        for key in self.form:
            if hasattr(entity, key):
                self.form[key] = getattr(entity, key)
        if "calories" in self.form and self.kind is ContentKind.meal:
            self.form["calories"] = str(entity.calories or "0")
            self.form["water_intake"] = str(entity.water_intake or "0")
        self.steps = list(entity.steps)
        self.main_image = entity.image_url
        self.pending_main_image = None
        self.step_images = {
            s.id: s.image_url for s in self.steps if getattr(s, "image_url", None)
        }
        self.reconciler = StepReconciler(self.store, self._notify, parent_id=entity.id)
        self.reconciler.mark_loaded(self.steps)
        self.state = EditorState.populated

    def _entity(self, values: Dict[str, Any]) -> ContentEntity:
        entity_type = ENTITY_TYPES[self.kind]
        fields = {k: v for k, v in values.items() if k in entity_type.model_fields}
        return entity_type(
            id=self.entity_id,
            steps=self.steps,
            image_url=None if self.pending_main_image else self.main_image,
            **fields,
        )

    def _set_step(self, step_id: str, **data: Any) -> Step:
        for i, s in enumerate(self.steps):
            if s.id == step_id:
                updated = s.model_validate({**s.model_dump(), **data})
                self.steps[i] = updated
                return updated
        raise KeyError(step_id)

    def _renumber(self) -> None:
        """Meal steps are served in list order; keep step_number 1..n."""
        for i, s in enumerate(self.steps):
            if isinstance(s, MealStep) and s.step_number != i + 1:
                self.steps[i] = s.model_copy(update={"step_number": i + 1})
                self.reconciler.note_edit(s.id)

    def _require_open(self) -> None:
        if self.mode is None or self.state in (EditorState.uninitialized, EditorState.loading):
            raise EditorError("editor is not open")

    def _require_idle(self) -> None:
        if self.submitting:
            raise EditorError("a save is in progress")

    def _require_step(self, step_id: str) -> None:
        if not any(s.id == step_id for s in self.steps):
            raise KeyError(step_id)

    def _touch(self) -> None:
        if self.state in (EditorState.empty, EditorState.populated, EditorState.success):
            self.state = EditorState.editing

