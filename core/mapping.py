"""
core/mapping.py
────────────────────────────────────────────────────────────────────────
UI model  ⇄  backend wire model, one pair of pure functions per kind.

The field tables below are the compatibility boundary with the backend:

  exercise block   name → block_name, description → block_description,
                   image_url → block_image, duration → total_duration,
                   steps → exercises
  exercise step    name → exercise_name, image_url → image
  meal             name → food_name, image_url → food_photo,
                   calories → calories_kcal (str), water_intake → water_ml (str)
  meal step        description → text

Local placeholder step ids never leave the process.
"""

from __future__ import annotations

from typing import Any, Dict

from core.models.content import (
    ContentEntity,
    ContentKind,
    ExerciseBlock,
    ExerciseStep,
    Meal,
    MealStep,
    MealType,
    is_local_id,
)

Wire = Dict[str, Any]

# UI field → wire field
EXERCISE_BLOCK_FIELDS = {
    "name": "block_name",
    "description": "block_description",
    "video_url": "video_url",
    "image_url": "block_image",
    "duration": "total_duration",
    "calories": "calories",
    "water_intake": "water_intake",
}
EXERCISE_STEP_FIELDS = {
    "name": "exercise_name",
    "duration": "duration",
    "description": "description",
    "image_url": "image",
}
MEAL_FIELDS = {
    "name": "food_name",
    "description": "description",
    "video_url": "video_url",
    "image_url": "food_photo",
    "calories": "calories_kcal",
    "water_intake": "water_ml",
    "preparation_time": "preparation_time",
    "meal_type": "meal_type",
}
MEAL_STEP_FIELDS = {
    "title": "title",
    "description": "text",
    "step_time": "step_time",
    "step_number": "step_number",
}


# ───────────────────────── helpers ──────────────────────────
def _text(value: Any) -> str:
    """Numbers travel as text on the meal wire: 150.0 → "150"."""
    if value is None or value == "":
        return "0"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _number(value: Any, default: float = 0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return default


def _id(raw: Wire) -> str | None:
    value = raw.get("id")
    return None if value is None else str(value)


def _with_id(wire: Wire, step_id: str | None) -> Wire:
    if not is_local_id(step_id):
        wire["id"] = step_id
    return wire


# ───────────────────────── exercise ─────────────────────────
def exercise_step_to_wire(step: ExerciseStep) -> Wire:
    wire = {
        "exercise_name": step.name,
        "duration": step.duration,
        "description": step.description,
    }
    if step.image_url:
        wire["image"] = step.image_url
    return _with_id(wire, step.id)


def exercise_step_from_wire(raw: Wire) -> ExerciseStep:
    fields = {
        "name": raw.get("exercise_name") or "",
        "duration": raw.get("duration") or ExerciseStep.model_fields["duration"].default,
        "description": raw.get("description") or "",
        "image_url": raw.get("image") or None,
    }
    step_id = _id(raw)
    return ExerciseStep(**fields) if step_id is None else ExerciseStep(id=step_id, **fields)


def exercise_to_wire(block: ExerciseBlock) -> Wire:
    return {
        "block_name": block.name,
        "block_description": block.description,
        "video_url": block.video_url or "",
        "block_image": block.image_url,
        "total_duration": int(block.duration),
        "calories": int(_number(block.calories)),
        "water_intake": int(_number(block.water_intake)),
        "exercises": [exercise_step_to_wire(s) for s in block.steps],
    }


def exercise_from_wire(raw: Wire) -> ExerciseBlock:
    return ExerciseBlock(
        id=_id(raw),
        name=raw.get("block_name") or "",
        description=raw.get("block_description") or "",
        video_url=raw.get("video_url") or None,
        image_url=raw.get("block_image") or None,
        duration=_int(raw.get("total_duration"), 40),
        calories=_number(raw.get("calories")),
        water_intake=_number(raw.get("water_intake")),
        steps=[exercise_step_from_wire(s) for s in raw.get("exercises") or []],
    )


# ───────────────────────── meal ─────────────────────────────
def meal_step_to_wire(step: MealStep) -> Wire:
    wire = {
        # the backend rejects a missing title
        "title": step.title or "",
        "text": step.description,
        "step_time": _text(step.step_time),
        "step_number": int(step.step_number),
    }
    return _with_id(wire, step.id)


def meal_step_from_wire(raw: Wire) -> MealStep:
    fields = {
        "title": raw.get("title") or "",
        "description": raw.get("text") or "",
        "step_time": _text(raw.get("step_time") or "5"),
        "step_number": _int(raw.get("step_number"), 1),
    }
    step_id = _id(raw)
    return MealStep(**fields) if step_id is None else MealStep(id=step_id, **fields)


def meal_to_wire(meal: Meal) -> Wire:
    steps = sorted(meal.steps, key=lambda s: s.step_number)
    return {
        "food_name": meal.name,
        "description": meal.description,
        "video_url": meal.video_url or "",
        "food_photo": meal.image_url,
        "calories_kcal": _text(meal.calories),
        "water_ml": _text(meal.water_intake),
        "preparation_time": int(meal.preparation_time),
        "meal_type": MealType(meal.meal_type).value,
        "steps": [meal_step_to_wire(s) for s in steps],
    }


def meal_from_wire(raw: Wire) -> Meal:
    try:
        meal_type = MealType(raw.get("meal_type") or "breakfast")
    except ValueError:
        meal_type = MealType.breakfast
    steps = [meal_step_from_wire(s) for s in raw.get("steps") or []]
    return Meal(
        id=_id(raw),
        name=raw.get("food_name") or "",
        description=raw.get("description") or "",
        video_url=raw.get("video_url") or None,
        image_url=raw.get("food_photo") or None,
        calories=_text(raw.get("calories_kcal")),
        water_intake=_text(raw.get("water_ml")),
        preparation_time=_int(raw.get("preparation_time"), 20),
        meal_type=meal_type,
        steps=sorted(steps, key=lambda s: s.step_number),
    )


# ───────────────────────── dispatch ─────────────────────────
def to_wire(kind: ContentKind, entity: ContentEntity) -> Wire:
    if kind is ContentKind.exercise:
        return exercise_to_wire(entity)  # type: ignore[arg-type]
    return meal_to_wire(entity)  # type: ignore[arg-type]


def from_wire(kind: ContentKind, raw: Wire) -> ContentEntity:
    if kind is ContentKind.exercise:
        return exercise_from_wire(raw)
    return meal_from_wire(raw)


def step_to_wire(kind: ContentKind, step) -> Wire:
    if kind is ContentKind.exercise:
        return exercise_step_to_wire(step)
    return meal_step_to_wire(step)


def step_from_wire(kind: ContentKind, raw: Wire):
    if kind is ContentKind.exercise:
        return exercise_step_from_wire(raw)
    return meal_step_from_wire(raw)


def partial_to_wire(kind: ContentKind, fields: Dict[str, Any]) -> Wire:
    """Rename a partial UI update; unknown keys are dropped."""
    table = EXERCISE_BLOCK_FIELDS if kind is ContentKind.exercise else MEAL_FIELDS
    out: Wire = {}
    for key, value in fields.items():
        if key == "steps":
            out["exercises" if kind is ContentKind.exercise else "steps"] = [
                step_to_wire(kind, s) for s in value
            ]
        elif key in table:
            if kind is ContentKind.meal and key in ("calories", "water_intake"):
                value = _text(value)
            elif isinstance(value, MealType):
                value = value.value
            out[table[key]] = value
    return out


def wire_image_url(kind: ContentKind, raw: Wire) -> str | None:
    """Pull the image url out of an upload response."""
    key = EXERCISE_BLOCK_FIELDS["image_url"] if kind is ContentKind.exercise else MEAL_FIELDS["image_url"]
    return raw.get(key) or raw.get("image_url") or raw.get("image")

