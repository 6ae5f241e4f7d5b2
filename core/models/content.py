from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Tuple, Union

from pydantic import BaseModel, Field

LOCAL_ID_PREFIX = "local-"


class ContentKind(str, Enum):
    exercise = "exercise"
    meal = "meal"


class MealType(str, Enum):
    breakfast = "breakfast"
    lunch = "lunch"
    snack = "snack"
    dinner = "dinner"


def new_local_id() -> str:
    """Placeholder id for a step that only lives in memory."""
    return f"{LOCAL_ID_PREFIX}{uuid.uuid4().hex}"


def is_local_id(step_id: str | None) -> bool:
    return not step_id or step_id.startswith(LOCAL_ID_PREFIX)


# ───────────────────────── steps ────────────────────────────
class ExerciseStep(BaseModel):
    id: str = Field(default_factory=new_local_id)
    name: str = ""
    duration: str = "5 - 10 daqiqa"     # free-form label, not minutes
    description: str = ""
    image_url: str | None = None


class MealStep(BaseModel):
    id: str = Field(default_factory=new_local_id)
    title: str = ""
    description: str = ""
    step_time: str = "5"
    step_number: int = 1


Step = Union[ExerciseStep, MealStep]


# ───────────────────────── entities ─────────────────────────
class ExerciseBlock(BaseModel):
    id: str | None = None
    name: str = ""
    description: str = ""
    video_url: str | None = None
    image_url: str | None = None
    duration: int = 40
    calories: float = 0
    water_intake: float = 0
    steps: List[ExerciseStep] = []


class Meal(BaseModel):
    id: str | None = None
    name: str = ""
    description: str = ""
    video_url: str | None = None
    image_url: str | None = None
    # the meal form edits these as text, the backend stores them as text too
    calories: Union[float, str] = "0"
    water_intake: Union[float, str] = "0"
    preparation_time: int = 20
    meal_type: MealType = MealType.breakfast
    steps: List[MealStep] = []


ContentEntity = Union[ExerciseBlock, Meal]


@dataclass(frozen=True)
class ImageFile:
    """An image picked by the operator. Zero bytes means "clear the image"."""
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    def as_upload(self) -> Tuple[str, bytes, str]:
        return (self.filename, self.content, self.content_type)

ENTITY_TYPES: dict[ContentKind, type[BaseModel]] = {
    ContentKind.exercise: ExerciseBlock,
    ContentKind.meal: Meal,
}

STEP_TYPES: dict[ContentKind, type[BaseModel]] = {
    ContentKind.exercise: ExerciseStep,
    ContentKind.meal: MealStep,
}
