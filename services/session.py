"""
services/session.py
────────────────────────────────────────────────────────────────────────
Everything one operator's console needs:

    AuthContext ─▶ BackendClient ─▶ ExerciseBlockStore / MealStore
                                      │
                   CollectionCache ◀──┘         Notifier

`ConsoleRegistry` keeps one `ConsoleSession` per access token, so operators
never share credentials, cached collections or editors. A request without a
token has no session.

One editor is open per session (the page being shown); opening another page
drops the previous editor's bookkeeping.
"""
from __future__ import annotations

import logging
import uuid
from typing import Dict

import httpx

from core.cache import CollectionCache
from core.editor import ContentEditor
from core.models.content import ContentKind
from services.auth import AuthContext
from services.backend import BackendClient
from services.content_store import STORE_TYPES, ContentStore
from services.notify import Notifier

_LOG = logging.getLogger(__name__)


class ConsoleSession:
    def __init__(
        self,
        auth: AuthContext | None = None,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        demo_fallback: bool | None = None,
    ) -> None:
        self.auth = auth or AuthContext()
        self.client = BackendClient(self.auth, base_url=base_url, transport=transport)
        self.cache = CollectionCache()
        self.notifier = Notifier()
        self.stores: Dict[ContentKind, ContentStore] = {
            kind: store_type(self.client, self.cache, self.notifier, demo_fallback)
            for kind, store_type in STORE_TYPES.items()
        }
        self.editors: Dict[str, ContentEditor] = {}

    # ─────────────────────────── editors ─────────────────────────────
    def new_editor(self) -> tuple[str, ContentEditor]:
        """Open the editor for a new page visit, closing any earlier one."""
        if self.editors:
            _LOG.debug("dropping %d abandoned editor(s)", len(self.editors))
            self.editors.clear()
        editor_id = uuid.uuid4().hex
        editor = ContentEditor(self.stores, self.cache, self.notifier)
        self.editors[editor_id] = editor
        return editor_id, editor

    def close_editor(self, editor_id: str) -> None:
        self.editors.pop(editor_id, None)

    # ─────────────────────────── lifecycle ───────────────────────────
    def logout(self) -> None:
        self.auth.invalidate()
        self.editors.clear()

    async def aclose(self) -> None:
        await self.client.aclose()


class ConsoleRegistry:
    """Console sessions keyed by the operator's access token."""

    def __init__(
        self,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        demo_fallback: bool | None = None,
    ) -> None:
        self._base_url = base_url
        self._transport = transport
        self._demo = demo_fallback
        self._sessions: Dict[str, ConsoleSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def anonymous(self) -> ConsoleSession:
        """A throwaway session for the login exchange."""
        return ConsoleSession(
            base_url=self._base_url, transport=self._transport, demo_fallback=self._demo
        )

    def get(self, token: str) -> ConsoleSession | None:
        return self._sessions.get(token)

    def adopt(self, token: str, session: ConsoleSession) -> None:
        self._sessions[token] = session

    async def for_token(self, token: str) -> ConsoleSession:
        session = self._sessions.get(token)
        if session is not None and session.auth.token is None:
            # credentials were wiped (401); start over
            await self.discard(token)
            session = None
        if session is None:
            session = self.anonymous()
            self._sessions[token] = session
        session.auth.use_cookie(token)
        return session

    async def discard(self, token: str | None) -> None:
        session = self._sessions.pop(token, None) if token else None
        if session is not None:
            session.logout()
            await session.aclose()

    async def aclose(self) -> None:
        for session in self._sessions.values():
            await session.aclose()
        self._sessions.clear()
