from __future__ import annotations

from typing import Any, Dict, List

from pydantic import BaseModel

from core.editor import ContentEditor, EditorMode, EditorState
from core.models.content import ContentKind
from .common import NotificationOut


class KindIn(BaseModel):
    kind: ContentKind


class EditorOut(BaseModel):
    editor_id: str
    mode: EditorMode | None
    state: EditorState
    kind: ContentKind
    entity_id: str | None
    form: Dict[str, Any]
    steps: List[Dict[str, Any]]
    main_image: str | None
    step_images: Dict[str, str]
    server_steps: List[str]
    modified_steps: List[str]
    pending_step_images: List[str]
    submitting: bool
    notifications: List[NotificationOut] = []

    @classmethod
    def of(
        cls,
        editor_id: str,
        editor: ContentEditor,
        notifications: List[NotificationOut] | None = None,
    ) -> "EditorOut":
        rec = editor.reconciler
        return cls(
            editor_id=editor_id,
            mode=editor.mode,
            state=editor.state,
            kind=editor.kind,
            entity_id=editor.entity_id,
            form=editor.form,
            steps=[s.model_dump() for s in editor.steps],
            main_image=editor.main_image,
            step_images=dict(editor.step_images),
            server_steps=sorted(rec.server_steps) if rec else [],
            modified_steps=sorted(rec.modified_steps) if rec else [],
            pending_step_images=sorted(rec.pending_images) if rec else [],
            submitting=editor.submitting,
            notifications=notifications or [],
        )


class SubmitOut(BaseModel):
    ok: bool
    navigate_to: str | None = None
    field_errors: Dict[str, str] = {}
    failed_stages: List[str] = []
    entity_id: str | None = None
    notifications: List[NotificationOut] = []
