"""
services/backend.py
────────────────────────────────────────────────────────────────────────
Thin async client for the fitness platform REST backend.

* bearer token taken from the injected `AuthContext`
* missing / expired token  → refuse to dispatch, clear credentials
* HTTP 401                 → clear credentials
* any other failure        → `BackendError`
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Tuple

import httpx

from config import settings
from services.auth import AuthContext

_LOG = logging.getLogger(__name__)

UploadFile = Tuple[str, bytes, str]      # (filename, content, content_type)


class BackendError(RuntimeError):
    def __init__(
        self, message: str, status_code: int | None = None, payload: Any = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class AuthenticationError(BackendError):
    """Token missing, expired, or rejected by the backend."""


class BackendClient:
    def __init__(
        self,
        auth: AuthContext,
        base_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self.auth = auth
        self._http = httpx.AsyncClient(
            base_url=base_url or settings.backend_url,
            timeout=timeout or settings.request_timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    # ───────────────────────── core request ──────────────────────────
    async def request(
        self,
        method: str,
        path: str,
        json: Dict[str, Any] | None = None,
        files: Dict[str, UploadFile] | None = None,
        authenticated: bool = True,
    ) -> Any:
        headers: Dict[str, str] = {}
        if authenticated:
            if not self.auth.is_authenticated():
                self.auth.invalidate()
                raise AuthenticationError("Token expired")
            headers.update(self.auth.authorization_header())

        _LOG.debug("%s %s", method, path)
        try:
            resp = await self._http.request(
                method, path, json=json, files=files, headers=headers
            )
        except httpx.HTTPError as exc:
            raise BackendError(f"{method} {path} failed: {exc}") from exc

        if resp.status_code == 401:
            self.auth.invalidate()
            raise AuthenticationError("Unauthorized", status_code=401)
        if resp.is_error:
            raise BackendError(
                f"{method} {path} → {resp.status_code}",
                status_code=resp.status_code,
                payload=_json_or_none(resp),
            )
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as exc:
            raise BackendError(f"{method} {path} returned non-JSON body") from exc

    # ───────────────────────── verbs ─────────────────────────────────
    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, json: Dict[str, Any] | None = None, **kw: Any) -> Any:
        return await self.request("POST", path, json=json, **kw)

    async def put(self, path: str, json: Dict[str, Any]) -> Any:
        return await self.request("PUT", path, json=json)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def upload(self, path: str, field: str, file: UploadFile) -> Any:
        return await self.request("POST", path, files={field: file})


def _json_or_none(resp: httpx.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return None
