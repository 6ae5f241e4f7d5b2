# tests/test_content_store.py
from __future__ import annotations

import asyncio

import pytest

from conftest import FakeBackend
from core.models.content import ContentKind, ExerciseBlock, ExerciseStep, ImageFile, Meal, MealStep
from services.content_store import SAMPLE_EXERCISE_BLOCKS, SAMPLE_MEALS

BLOCKS = "/api/exercise/api/exerciseblocks/"
MEALS = "/api/food/api/meals/"

BLOCK_WIRE = {
    "id": 1, "block_name": "Yurish", "block_description": "Yengil yurish",
    "total_duration": 30, "calories": 150, "water_intake": 500,
    "exercises": [{"id": 11, "exercise_name": "Isitish", "duration": "5 daqiqa", "description": ""}],
}


def test_list_replaces_cache_with_server_data(session, backend: FakeBackend):
    backend.on("GET", BLOCKS, body={"results": [BLOCK_WIRE]})
    store = session.stores[ContentKind.exercise]

    blocks = asyncio.run(store.list())

    assert [b.name for b in blocks] == ["Yurish"]
    assert session.cache.items(ContentKind.exercise) == blocks


def test_list_accepts_bare_arrays(session, backend):
    backend.on("GET", MEALS, body=[{"id": 3, "food_name": "Osh"}])
    meals = asyncio.run(session.stores[ContentKind.meal].list())
    assert meals[0].id == "3" and meals[0].name == "Osh"


def test_list_failure_falls_back_to_sample(session, backend):
    backend.on("GET", MEALS, status=500, body={"detail": "boom"})

    meals = asyncio.run(session.stores[ContentKind.meal].list())

    assert [m.name for m in meals] == [m.name for m in SAMPLE_MEALS]
    assert session.notifier.drain()[0].level == "error"


def test_list_failure_keeps_stale_data(session, backend):
    stale = ExerciseBlock(id="77", name="Stale")
    session.cache.append(ContentKind.exercise, stale)
    backend.on("GET", BLOCKS, status=503)

    blocks = asyncio.run(session.stores[ContentKind.exercise].list())

    assert [b.id for b in blocks] == ["77"]
    assert SAMPLE_EXERCISE_BLOCKS[0].id not in [b.id for b in blocks]


def test_created_entity_is_listed_exactly_once(session, backend):
    backend.on("POST", BLOCKS, status=201, body=BLOCK_WIRE)
    store = session.stores[ContentKind.exercise]

    async def run():
        result = await store.create(ExerciseBlock(name="Yurish", description="Yengil yurish"))
        return result, [b.id for b in session.cache.items(ContentKind.exercise)]

    result, ids = asyncio.run(run())

    assert result.applied_to_cache and result.persisted
    assert result.entity.id == "1"
    assert ids == ["1"]


def test_failed_create_leaves_cache_untouched(session, backend):
    backend.on("POST", MEALS, status=400, body={"food_name": ["required"]})

    result = asyncio.run(session.stores[ContentKind.meal].create(Meal(name="Osh")))

    assert not result.applied_to_cache and not result.persisted
    assert session.cache.items(ContentKind.meal) == []
    assert [n.message for n in session.notifier.drain()] == ["Failed to add meal"]


def test_demo_mode_fabricates_on_create(demo_session, backend):
    backend.on("POST", MEALS, status=500)

    result = asyncio.run(demo_session.stores[ContentKind.meal].create(Meal(name="Osh")))

    assert result.applied_to_cache and not result.persisted
    assert result.entity.id.startswith("demo-")
    assert demo_session.cache.get(ContentKind.meal, result.entity.id).name == "Osh"


def test_update_is_reverted_when_the_server_refuses(session, backend):
    session.cache.append(ContentKind.meal, Meal(id="5", name="Osh", description="old"))
    backend.on("PUT", MEALS + "5/", status=400)

    result = asyncio.run(session.stores[ContentKind.meal].update("5", {"description": "new"}))

    assert result.persisted is False and result.applied_to_cache is False
    assert session.cache.get(ContentKind.meal, "5").description == "old"


def test_update_kept_in_demo_mode(demo_session, backend):
    demo_session.cache.append(ContentKind.meal, Meal(id="5", name="Osh", description="old"))
    backend.on("PUT", MEALS + "5/", status=500)

    result = asyncio.run(demo_session.stores[ContentKind.meal].update("5", {"description": "new"}))

    assert result.applied_to_cache and not result.persisted
    assert demo_session.cache.get(ContentKind.meal, "5").description == "new"


def test_update_sends_the_whole_entity_in_wire_shape(session, backend):
    session.cache.append(
        ContentKind.meal,
        Meal(id="5", name="Osh", steps=[MealStep(id="1", title="Guruch", step_number=1)]),
    )
    backend.on("PUT", MEALS + "5/", body={"id": 5, "food_name": "Osh", "water_ml": "250"})

    result = asyncio.run(session.stores[ContentKind.meal].update("5", {"water_intake": 250}))

    sent = FakeBackend.body(backend.calls[0])
    assert sent["water_ml"] == "250"
    assert sent["steps"][0]["id"] == "1"
    assert result.persisted
    assert session.cache.get(ContentKind.meal, "5").water_intake == "250"


def test_delete_removes_from_cache_even_on_failure(session, backend):
    session.cache.append(ContentKind.exercise, ExerciseBlock(id="8", name="Cho'zilish"))
    backend.on("DELETE", BLOCKS + "8/", status=500)

    result = asyncio.run(session.stores[ContentKind.exercise].delete("8"))

    assert result.applied_to_cache and not result.persisted
    assert session.cache.get(ContentKind.exercise, "8") is None


def test_empty_image_clears_locally_without_a_call(session, backend):
    session.cache.append(ContentKind.meal, Meal(id="5", name="Osh", image_url="https://img/old"))

    result = asyncio.run(
        session.stores[ContentKind.meal].upload_image("5", ImageFile("empty.png", b""))
    )

    assert backend.calls == []
    assert result.applied_to_cache and not result.persisted
    assert session.cache.get(ContentKind.meal, "5").image_url is None


def test_image_upload_patches_cached_url(session, backend):
    session.cache.append(ContentKind.exercise, ExerciseBlock(id="2", name="Yurish"))
    backend.on("POST", BLOCKS + "2/upload-block-image/", body={"block_image": "https://img/2.png"})

    result = asyncio.run(
        session.stores[ContentKind.exercise].upload_image("2", ImageFile("2.png", b"\x89PNG", "image/png"))
    )

    assert result.persisted
    assert session.cache.get(ContentKind.exercise, "2").image_url == "https://img/2.png"


def test_step_create_returns_server_id_and_strips_local_id(session, backend):
    backend.on("POST", BLOCKS + "2/exercises/", status=201, body={"id": 99})

    step_id = asyncio.run(session.stores[ContentKind.exercise].create_step("2", ExerciseStep(name="Plank")))

    assert step_id == "99"
    assert "id" not in FakeBackend.body(backend.calls[0])


def test_meal_steps_have_no_image_endpoint(session):
    store = session.stores[ContentKind.meal]
    assert store.supports_step_images is False
    with pytest.raises(ValueError):
        asyncio.run(store.upload_step_image("1", "1", ImageFile("a.png", b"x")))
