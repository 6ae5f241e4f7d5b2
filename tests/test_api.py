# tests/test_api.py
"""
HTTP surface through FastAPI's TestClient; the fitness backend is mocked.
"""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import BASE_URL, FakeBackend, make_token
from main import app
from services.session import ConsoleRegistry

BLOCKS = "/api/exercise/api/exerciseblocks/"
MEALS = "/api/food/api/meals/"


@pytest.fixture
def consoles(backend: FakeBackend) -> ConsoleRegistry:
    consoles = ConsoleRegistry(base_url=BASE_URL, transport=backend.transport, demo_fallback=False)
    app.state.consoles = consoles
    return consoles


def _client(token: str | None = None) -> TestClient:
    cookies = {"accessToken": token} if token else None
    return TestClient(app, cookies=cookies, follow_redirects=False)


# ── auth gate ────────────────────────────────────────────────────────
@pytest.mark.parametrize("path", ["/api/v1/dashboard", "/api/v1/content", "/api/v1/add-content"])
def test_expired_token_redirects_to_login_without_fetching(consoles, backend, path):
    resp = _client(make_token(ttl=-60)).get(path)

    assert resp.status_code == 307
    assert resp.headers["location"] == "/api/v1/login"
    assert backend.calls == []


def test_missing_token_redirects(consoles, backend):
    resp = _client().get("/api/v1/content")
    assert resp.status_code == 307
    assert backend.calls == []


def test_login_sets_cookie(consoles, backend):
    tok = make_token()
    backend.on("POST", "/api/users/login/", body={"token": tok})

    resp = _client().post("/api/v1/login", json={"email_or_phone": "admin@owntrainer.uz", "password": "pw"})

    assert resp.status_code == 200
    assert resp.json()["navigate_to"] == "/api/v1/dashboard"
    assert resp.cookies.get("accessToken") == tok
    assert "Authorization" not in backend.calls[0].headers


def test_login_failure_shows_backend_message(consoles, backend):
    backend.on("POST", "/api/users/login/", status=400, body={"email_or_phone": ["User not found"]})

    resp = _client().post("/api/v1/login", json={"email_or_phone": "nobody", "password": "pw"})

    assert resp.status_code == 401
    assert resp.json()["notifications"] == [{"level": "error", "message": "User not found"}]


def test_backend_401_sends_operator_to_login(consoles, backend):
    backend.on("GET", "/api/admin/admin/dashboard", status=401)

    tok = make_token()
    resp = _client(tok).get("/api/v1/dashboard")

    assert resp.status_code == 307
    assert consoles.get(tok).auth.token is None


# ── pages ────────────────────────────────────────────────────────────
def test_dashboard_page(consoles, backend):
    backend.on("GET", "/api/admin/admin/dashboard", body={
        "top_section": {"total_users": 3},
        "bottom_section": [{"country": "Uzbekistan", "total_users": 3, "income": 10}],
    })

    resp = _client(make_token()).get("/api/v1/dashboard")

    assert resp.status_code == 200
    body = resp.json()
    assert body["top_section"]["total_users"] == 3
    assert body["totals"]["income"] == 10
    assert body["countries"][0]["country"] == "Uzbekistan"


def test_content_tabs(consoles, backend):
    backend.on("GET", BLOCKS, body=[{"id": 1, "block_name": "Yurish"}])
    backend.on("GET", MEALS, body=[{"id": 2, "food_name": "Osh"}])
    client = _client(make_token())

    everything = client.get("/api/v1/content").json()
    meals = client.get("/api/v1/content", params={"tab": "meal"}).json()

    assert [(i["kind"], i["name"]) for i in everything["items"]] == [("exercise", "Yurish"), ("meal", "Osh")]
    assert [i["name"] for i in meals["items"]] == ["Osh"]


def test_delete_content(consoles, backend):
    backend.on("DELETE", MEALS + "2/", status=204)

    resp = _client(make_token()).delete("/api/v1/content/meal/2")

    assert resp.status_code == 200
    assert resp.json()["persisted"] is True


# ── editor ───────────────────────────────────────────────────────────
def test_add_meal_through_the_editor(consoles, backend):
    backend.on("POST", MEALS, status=201, body={"id": 6, "food_name": "Test Meal", "steps": []})
    tok = make_token()
    client = _client(tok)

    opened = client.get("/api/v1/add-content", params={"type": "meal"}).json()
    editor_id = opened["editor_id"]
    assert opened["mode"] == "create" and opened["state"] == "empty"

    client.patch(f"/api/v1/editors/{editor_id}/form",
                 json={"name": "Test Meal", "description": "A quick meal for testing"})
    step = client.post(f"/api/v1/editors/{editor_id}/steps").json()["steps"][0]
    client.patch(f"/api/v1/editors/{editor_id}/steps/{step['id']}", json={"title": "Boil"})

    resp = client.post(f"/api/v1/editors/{editor_id}/submit")

    assert resp.status_code == 200
    assert resp.json()["navigate_to"] == "/api/v1/content"
    assert resp.json()["entity_id"] == "6"
    assert editor_id not in consoles.get(tok).editors
    sent = FakeBackend.body(backend.called("POST", MEALS)[0])
    assert sent["steps"][0]["title"] == "Boil"


def test_invalid_submit_returns_field_errors(consoles, backend):
    client = _client(make_token())
    editor_id = client.get("/api/v1/add-content").json()["editor_id"]

    resp = client.post(f"/api/v1/editors/{editor_id}/submit")

    assert resp.status_code == 422
    assert "name" in resp.json()["field_errors"]
    assert backend.calls == []


def test_edit_unknown_meal_is_404(consoles, backend):
    tok = make_token()
    resp = _client(tok).get("/api/v1/edit-meal/999")

    assert resp.status_code == 404
    assert consoles.get(tok).editors == {}


def test_meal_step_image_is_rejected(consoles, backend):
    backend.on("GET", MEALS + "2/", body={"id": 2, "food_name": "Osh", "steps": [{"id": 5, "title": "t"}]})
    client = _client(make_token())
    editor_id = client.get("/api/v1/edit-meal/2").json()["editor_id"]

    resp = client.post(
        f"/api/v1/editors/{editor_id}/steps/5/image",
        files={"image": ("s.png", b"\x89PNG", "image/png")},
    )

    assert resp.status_code == 422


# ── one console per operator ─────────────────────────────────────────
def test_client_without_cookie_cannot_ride_another_login(consoles, backend):
    backend.on("POST", "/api/users/login/", body={"token": make_token()})
    operator = _client()
    assert operator.post("/api/v1/login", json={"email_or_phone": "admin", "password": "pw"}).status_code == 200
    assert operator.get("/api/v1/add-content").status_code == 200

    stranger = TestClient(app, follow_redirects=False)
    resp = stranger.get("/api/v1/content")

    assert resp.status_code == 307
    assert resp.headers["location"] == "/api/v1/login"
    assert backend.called("GET") == []


def test_operators_do_not_share_editors(consoles, backend):
    first, second = _client(make_token(user_id=1)), _client(make_token(user_id=2))
    editor_id = first.get("/api/v1/add-content").json()["editor_id"]

    assert second.get(f"/api/v1/editors/{editor_id}").status_code == 404
    assert first.get(f"/api/v1/editors/{editor_id}").status_code == 200
    assert len(consoles) == 2


def test_logout_drops_the_session(consoles, backend):
    tok = make_token()
    client = _client(tok)
    client.get("/api/v1/add-content")

    resp = client.post("/api/v1/logout")

    assert resp.json()["navigate_to"] == "/api/v1/login"
    assert consoles.get(tok) is None


def test_opening_another_editor_page_closes_the_previous(consoles, backend):
    tok = make_token()
    client = _client(tok)

    first = client.get("/api/v1/add-content").json()["editor_id"]
    second = client.get("/api/v1/add-content", params={"type": "meal"}).json()["editor_id"]

    assert list(consoles.get(tok).editors) == [second]
    assert client.get(f"/api/v1/editors/{first}").status_code == 404


def test_content_page_past_the_end_is_clamped(consoles, backend):
    backend.on("GET", BLOCKS, body=[{"id": 1, "block_name": "Yurish"}])
    backend.on("GET", MEALS, body=[{"id": 2, "food_name": "Osh"}])

    body = _client(make_token()).get("/api/v1/content", params={"page": 5}).json()

    assert body["page"] == 1 and body["total_pages"] == 1
    assert [i["name"] for i in body["items"]] == ["Yurish", "Osh"]
