# tests/conftest.py
from __future__ import annotations

import json
import time
from typing import Any, Callable, Dict, List, Tuple

import httpx
import jwt
import pytest

from services.auth import AuthContext
from services.session import ConsoleSession

BASE_URL = "https://backend.test"


def make_token(ttl: float = 3600, user_id: int = 1) -> str:
    return jwt.encode(
        {"exp": int(time.time() + ttl), "user_id": user_id},
        "tests-signing-key-0123456789abcdef0123",
        algorithm="HS256",
    )


class FakeBackend:
    """Records every request; answers from a (method, path) routing table."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Any] = {}
        self.calls: List[httpx.Request] = []

    def on(self, method: str, path: str, status: int = 200, body: Any = None) -> None:
        self.routes[(method, path)] = (status, body)

    def on_call(self, method: str, path: str, fn: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = fn

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"detail": "Not found."})
        if callable(route):
            return route(request)
        status, body = route
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def called(self, method: str, path_prefix: str = "") -> List[httpx.Request]:
        return [
            r for r in self.calls
            if r.method == method and r.url.path.startswith(path_prefix)
        ]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content)


@pytest.fixture
def token() -> str:
    return make_token()


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def session(backend: FakeBackend, token: str) -> ConsoleSession:
    return ConsoleSession(
        auth=AuthContext(stored_token=token),
        base_url=BASE_URL,
        transport=backend.transport,
        demo_fallback=False,
    )


@pytest.fixture
def demo_session(backend: FakeBackend, token: str) -> ConsoleSession:
    return ConsoleSession(
        auth=AuthContext(stored_token=token),
        base_url=BASE_URL,
        transport=backend.transport,
        demo_fallback=True,
    )
