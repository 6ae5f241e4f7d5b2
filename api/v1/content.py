# api/v1/content.py
from __future__ import annotations

import math
from typing import List

from fastapi import APIRouter, Depends, Query

from config import settings
from core.models.content import ContentKind
from services.session import ConsoleSession
from api.v1.deps import require_login, still_logged_in
from api.v1.schemas.common import notifications_out
from api.v1.schemas.content import ContentItemOut, ContentListOut, DeleteOut, Tab

router = APIRouter()


@router.get(
    "",
    response_model=ContentListOut,
    summary="Exercise blocks and meals, one page at a time",
)
async def list_content(
    tab: Tab = Query("all"),
    page: int = Query(1, ge=1),
    console: ConsoleSession = Depends(require_login),
) -> ContentListOut:
    # both collections are refreshed, the tab only filters what is shown
    items: List[ContentItemOut] = []
    for kind in ContentKind:
        entities = await console.stores[kind].list()
        if tab in ("all", kind.value):
            items.extend(
                ContentItemOut(
                    kind=kind,
                    id=e.id,
                    name=e.name,
                    description=e.description,
                    image_url=e.image_url,
                    steps=[s.model_dump() for s in e.steps],
                )
                for e in entities
            )
    still_logged_in(console)

    size = settings.page_size
    total_pages = max(1, math.ceil(len(items) / size))
    page = min(page, total_pages)
    return ContentListOut(
        tab=tab,
        items=items[(page - 1) * size: page * size],
        page=page,
        total_pages=total_pages,
        notifications=notifications_out(console.notifier.drain()),
    )


@router.delete(
    "/{kind}/{entity_id}",
    response_model=DeleteOut,
    summary="Delete an exercise block or meal",
)
async def delete_content(
    kind: ContentKind,
    entity_id: str,
    console: ConsoleSession = Depends(require_login),
) -> DeleteOut:
    result = await console.stores[kind].delete(entity_id)
    still_logged_in(console)
    return DeleteOut(
        removed=result.applied_to_cache,
        persisted=result.persisted,
        notifications=notifications_out(console.notifier.drain()),
    )
