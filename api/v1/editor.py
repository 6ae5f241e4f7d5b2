# api/v1/editor.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, File, HTTPException, Query, Response, UploadFile, status
from pydantic import ValidationError

from core.editor import ContentEditor, EditorError
from core.models.content import ContentKind, ImageFile
from services.session import ConsoleSession
from api.v1.deps import API_PREFIX, require_login, still_logged_in
from api.v1.schemas.common import notifications_out
from api.v1.schemas.editor import EditorOut, KindIn, SubmitOut

router = APIRouter()


# ───────────────────────── helpers ──────────────────────────
def _editor(console: ConsoleSession, editor_id: str) -> ContentEditor:
    editor = console.editors.get(editor_id)
    if editor is None:
        raise HTTPException(status_code=404, detail="Editor not found")
    return editor


def _out(console: ConsoleSession, editor_id: str, editor: ContentEditor) -> EditorOut:
    still_logged_in(console)
    return EditorOut.of(editor_id, editor, notifications_out(console.notifier.drain()))


async def _image(upload: UploadFile) -> ImageFile:
    content = await upload.read()
    return ImageFile(
        filename=upload.filename or "image",
        content=content,
        content_type=upload.content_type or "application/octet-stream",
    )


async def _open_edit(console: ConsoleSession, kind: ContentKind, entity_id: str) -> EditorOut:
    editor_id, editor = console.new_editor()
    if not await editor.open_edit(kind, entity_id):
        console.close_editor(editor_id)
        still_logged_in(console)
        raise HTTPException(status_code=404, detail=f"{kind.value} {entity_id} not found")
    return _out(console, editor_id, editor)


# ───────────────────────── entry points ─────────────────────
@router.get("/add-content", response_model=EditorOut, summary="Open a create-mode editor")
async def add_content(
    kind: ContentKind = Query(ContentKind.exercise, alias="type"),
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    editor_id, editor = console.new_editor()
    editor.open_create(kind)
    return _out(console, editor_id, editor)


@router.get("/edit-exercise/{entity_id}", response_model=EditorOut)
async def edit_exercise(
    entity_id: str,
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    return await _open_edit(console, ContentKind.exercise, entity_id)


@router.get("/edit-meal/{entity_id}", response_model=EditorOut)
async def edit_meal(
    entity_id: str,
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    return await _open_edit(console, ContentKind.meal, entity_id)


# ───────────────────────── editor state ─────────────────────
@router.get("/editors/{editor_id}", response_model=EditorOut)
async def get_editor(
    editor_id: str,
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    return _out(console, editor_id, _editor(console, editor_id))


@router.delete("/editors/{editor_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_editor(
    editor_id: str,
    console: ConsoleSession = Depends(require_login),
) -> Response:
    console.close_editor(editor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/editors/{editor_id}/kind", response_model=EditorOut)
async def select_kind(
    editor_id: str,
    body: KindIn,
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    editor = _editor(console, editor_id)
    try:
        editor.select_kind(body.kind)
    except EditorError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _out(console, editor_id, editor)


@router.patch("/editors/{editor_id}/form", response_model=EditorOut)
async def set_fields(
    editor_id: str,
    values: Dict[str, Any] = Body(...),
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    editor = _editor(console, editor_id)
    try:
        editor.set_fields(**values)
    except EditorError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _out(console, editor_id, editor)


@router.post("/editors/{editor_id}/image", response_model=EditorOut)
async def upload_main_image(
    editor_id: str,
    image: UploadFile = File(...),
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    editor = _editor(console, editor_id)
    try:
        await editor.attach_main_image(await _image(image))
    except EditorError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _out(console, editor_id, editor)


# ───────────────────────── steps ────────────────────────────
@router.post("/editors/{editor_id}/steps", response_model=EditorOut, status_code=status.HTTP_201_CREATED)
async def add_step(
    editor_id: str,
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    editor = _editor(console, editor_id)
    try:
        await editor.add_step()
    except EditorError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _out(console, editor_id, editor)


@router.patch("/editors/{editor_id}/steps/{step_id}", response_model=EditorOut)
async def update_step(
    editor_id: str,
    step_id: str,
    values: Dict[str, Any] = Body(...),
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    editor = _editor(console, editor_id)
    try:
        editor.update_step(step_id, **values)
    except KeyError:
        raise HTTPException(status_code=404, detail="Step not found")
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False))
    except EditorError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _out(console, editor_id, editor)


@router.delete("/editors/{editor_id}/steps/{step_id}", response_model=EditorOut)
async def remove_step(
    editor_id: str,
    step_id: str,
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    editor = _editor(console, editor_id)
    try:
        editor.remove_step(step_id)
    except EditorError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _out(console, editor_id, editor)


@router.post("/editors/{editor_id}/steps/{step_id}/image", response_model=EditorOut)
async def upload_step_image(
    editor_id: str,
    step_id: str,
    image: UploadFile = File(...),
    console: ConsoleSession = Depends(require_login),
) -> EditorOut:
    editor = _editor(console, editor_id)
    try:
        await editor.attach_step_image(step_id, await _image(image))
    except KeyError:
        raise HTTPException(status_code=404, detail="Step not found")
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except EditorError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _out(console, editor_id, editor)


# ───────────────────────── submit ───────────────────────────
@router.post("/editors/{editor_id}/submit", response_model=SubmitOut)
async def submit(
    editor_id: str,
    response: Response,
    console: ConsoleSession = Depends(require_login),
) -> SubmitOut:
    editor = _editor(console, editor_id)
    try:
        outcome = await editor.submit()
    except EditorError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    still_logged_in(console)

    if outcome.busy:
        response.status_code = status.HTTP_409_CONFLICT
    elif outcome.field_errors:
        response.status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif not outcome.ok:
        response.status_code = status.HTTP_502_BAD_GATEWAY
    else:
        # the page is left behind on success
        console.close_editor(editor_id)

    return SubmitOut(
        ok=outcome.ok,
        navigate_to=f"{API_PREFIX}{outcome.navigate_to}" if outcome.navigate_to else None,
        field_errors=outcome.field_errors,
        failed_stages=outcome.failed_stages,
        entity_id=editor.entity_id,
        notifications=notifications_out(console.notifier.drain()),
    )
