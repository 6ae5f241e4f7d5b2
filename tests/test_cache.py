# tests/test_cache.py
from core.cache import CollectionCache
from core.models.content import ContentKind, ExerciseBlock, ExerciseStep, Meal, MealStep

EX = ContentKind.exercise
MEAL = ContentKind.meal


def _block(id_="1", **kw):
    return ExerciseBlock(id=id_, name=f"Block {id_}", **kw)


def test_entities_are_copied_in_and_out():
    cache = CollectionCache()
    block = _block()
    cache.append(EX, block)

    block.name = "mutated outside"
    out = cache.get(EX, "1")
    out.name = "mutated again"

    assert cache.get(EX, "1").name == "Block 1"


def test_collections_are_kept_apart():
    cache = CollectionCache()
    cache.append(EX, _block("5"))
    cache.append(MEAL, Meal(id="5", name="Osh"))

    assert len(cache) == 2
    assert cache.get(MEAL, "5").name == "Osh"
    kind, found = cache.locate("5")
    assert kind is EX and found.name == "Block 5"
    assert cache.locate("missing") is None


def test_upsert_replaces_by_id_and_keeps_order():
    cache = CollectionCache()
    cache.replace_all(EX, [_block("1"), _block("2")])
    cache.upsert(EX, _block("1", duration=10))
    cache.upsert(EX, _block("3"))

    assert [b.id for b in cache.items(EX)] == ["1", "2", "3"]
    assert cache.get(EX, "1").duration == 10


def test_patch_rebuilds_nested_steps():
    cache = CollectionCache()
    cache.append(MEAL, Meal(id="9", name="Salat"))

    patched = cache.patch(MEAL, "9", name="Achichuk", steps=[MealStep(id="1", title="Kesish")])

    assert patched.name == "Achichuk"
    assert isinstance(cache.get(MEAL, "9").steps[0], MealStep)
    assert cache.patch(MEAL, "nope", name="x") is None


def test_patch_step_touches_only_that_step():
    cache = CollectionCache()
    cache.append(EX, _block("1", steps=[ExerciseStep(id="a"), ExerciseStep(id="b")]))

    cache.patch_step(EX, "1", "b", image_url="https://img/b")

    steps = cache.get(EX, "1").steps
    assert steps[0].image_url is None
    assert steps[1].image_url == "https://img/b"


def test_remove():
    cache = CollectionCache()
    cache.append(EX, _block("1"))
    assert cache.remove(EX, "1") is True
    assert cache.remove(EX, "1") is False
    assert cache.items(EX) == []
