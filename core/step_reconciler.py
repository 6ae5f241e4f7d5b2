"""
core/step_reconciler.py
────────────────────────────────────────────────────────────────────────
Keeps the step list of the entity being edited converging with the server.

Bookkeeping (per editor, never persisted)
-----------------------------------------
* `server_steps`   – ids the backend issued and knows about
* `modified_steps` – server-known ids edited since the last successful sync
* `pending_images` – step images waiting for their step (or parent) to exist

Rules
-----
1. edit mode, add   → create on the server now; a failed create leaves the
                      step with a local id, retried at the next save.
2. create mode, add → local id only; the parent create carries the list.
3. field edit       → local; server-known ids are queued in `modified_steps`
                      and pushed as one concurrent batch on save. Ids whose
                      update failed stay queued.
4. remove           → local; the next parent update resubmits the survivors.
5. step image       → uploaded at once for server-known steps, otherwise held
                      until the step exists.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Set

from core.models.content import ContentKind, ImageFile, MealStep, STEP_TYPES, Step, is_local_id

_LOG = logging.getLogger(__name__)


class StepReconciler:
    def __init__(self, store, notifier, parent_id: str | None = None) -> None:
        self._store = store
        self._notify = notifier
        self.parent_id = parent_id
        self.server_steps: Set[str] = set()
        self.modified_steps: Set[str] = set()
        self.pending_images: Dict[str, ImageFile] = {}

    @property
    def kind(self) -> ContentKind:
        return self._store.kind

    @property
    def edit_mode(self) -> bool:
        return self.parent_id is not None

    def is_server_known(self, step_id: str) -> bool:
        return step_id in self.server_steps

    # ─────────────────────────── lifecycle ───────────────────────────
    def mark_loaded(self, steps: List[Step]) -> None:
        """Every step that came back from the server is server-known."""
        self.server_steps = {s.id for s in steps if not is_local_id(s.id)}
        self.modified_steps.clear()
        self.pending_images.clear()

    def reset(self) -> None:
        self.server_steps.clear()
        self.modified_steps.clear()
        self.pending_images.clear()

    def adopt(self, parent_id: str, local: List[Step], saved: List[Step]) -> None:
        """
        The parent was just created with `local` embedded and the server
        answered with `saved`. Steps pair up by position.
        """
        self.parent_id = parent_id
        self.server_steps = {s.id for s in saved if not is_local_id(s.id)}
        remapped: Dict[str, ImageFile] = {}
        for old, new in zip(local, saved):
            if old.id in self.pending_images:
                remapped[new.id] = self.pending_images.pop(old.id)
        if self.pending_images:
            _LOG.warning("%d pending step image(s) lost their step", len(self.pending_images))
        self.pending_images = remapped

    # ─────────────────────────── add / edit / remove ─────────────────
    def blank_step(self, position: int) -> Step:
        """Default values for a new step at list index `position`."""
        step_type = STEP_TYPES[self.kind]
        if step_type is MealStep:
            return MealStep(step_number=position + 1)
        return step_type()

    async def add_step(self, position: int) -> Step:
        step = self.blank_step(position)
        if not self.edit_mode:
            return step

        server_id = await self._store.create_step(self.parent_id, step)
        if server_id is None:
            _LOG.info("step kept locally as %s until the next save", step.id)
            return step
        self.server_steps.add(server_id)
        return step.model_copy(update={"id": server_id})

    def note_edit(self, step_id: str) -> None:
        if step_id in self.server_steps:
            self.modified_steps.add(step_id)

    def forget(self, step_id: str) -> None:
        self.modified_steps.discard(step_id)
        self.server_steps.discard(step_id)
        self.pending_images.pop(step_id, None)

    # ─────────────────────────── images ──────────────────────────────
    async def attach_image(self, step_id: str, file: ImageFile) -> str | None:
        """
        Returns the uploaded url, or None when the image was queued (or
        cleared, for an empty file).
        """
        if not self._store.supports_step_images:
            raise ValueError(f"{self.kind.value} steps do not carry images")
        if not file.size:
            self.pending_images.pop(step_id, None)
            return None
        if self.edit_mode and step_id in self.server_steps:
            return await self._store.upload_step_image(self.parent_id, step_id, file)
        self.pending_images[step_id] = file
        return None

    async def flush_images(self) -> List[str]:
        """Upload every queued image whose step now exists; returns failures."""
        if not self.edit_mode:
            return []
        ready = [sid for sid in self.pending_images if sid in self.server_steps]
        if not ready:
            return []
        results = await asyncio.gather(
            *(self._store.upload_step_image(self.parent_id, sid, self.pending_images[sid])
              for sid in ready)
        )
        failed = []
        for sid, url in zip(ready, results):
            if url is None:
                failed.append(sid)
            else:
                del self.pending_images[sid]
        return failed

    # ─────────────────────────── save-time sync ──────────────────────
    async def create_missing(self, steps: List[Step]) -> List[Step]:
        """
        Retry server creation for steps still carrying a local id (their
        first create failed). Returns the list with server ids swapped in.
        """
        if not self.edit_mode:
            return steps
        missing = [s for s in steps if is_local_id(s.id)]
        if not missing:
            return steps

        ids = await asyncio.gather(
            *(self._store.create_step(self.parent_id, s) for s in missing)
        )
        swapped: Dict[str, str] = {}
        for step, server_id in zip(missing, ids):
            if server_id is not None:
                swapped[step.id] = server_id
                self.server_steps.add(server_id)
                if step.id in self.pending_images:
                    self.pending_images[server_id] = self.pending_images.pop(step.id)
        return [
            s.model_copy(update={"id": swapped[s.id]}) if s.id in swapped else s
            for s in steps
        ]

    async def sync_modified(self, steps: List[Step]) -> List[str]:
        """
        Push every modified server-known step in one concurrent batch.
        Successful ids leave `modified_steps`; failures stay for a retry.
        """
        by_id = {s.id: s for s in steps}
        # ids removed from the list since they were edited go with it
        self.modified_steps &= set(by_id)
        batch = sorted(self.modified_steps)
        if not self.edit_mode or not batch:
            return []

        results = await asyncio.gather(
            *(self._store.update_step(sid, by_id[sid]) for sid in batch)
        )
        failed = [sid for sid, ok in zip(batch, results) if not ok]
        # ids noted while the batch was in flight stay queued
        self.modified_steps -= {sid for sid, ok in zip(batch, results) if ok}
        if failed:
            self._notify.error(
                f"Failed to update {len(failed)} step(s): {', '.join(failed)}"
            )
        else:
            _LOG.debug("synced %d step(s)", len(batch))
        return failed
