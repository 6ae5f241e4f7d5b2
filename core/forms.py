"""
Form schemas for the two editors.

`validate_form()` never raises: it returns the cleaned values or a map of
field → message the page shows inline.
"""
from __future__ import annotations

from typing import Any, Dict, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.models.content import ContentKind, MealType


class ExerciseForm(BaseModel):
    model_config = ConfigDict(validate_default=True)

    name: str = Field("", min_length=3)
    description: str = Field("", min_length=10)
    video_url: str | None = ""
    duration: int = Field(40, ge=0)


class MealForm(BaseModel):
    model_config = ConfigDict(validate_default=True)

    name: str = Field("", min_length=3)
    calories: str = "0"
    water_intake: str = "0"
    preparation_time: int = Field(20, ge=1)
    description: str = Field("", min_length=10)
    video_url: str | None = ""
    meal_type: MealType = MealType.breakfast

    @field_validator("name", "description", mode="before")
    @classmethod
    def _strip(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("calories", "water_intake", mode="before")
    @classmethod
    def _as_text(cls, v: Any) -> Any:
        return "0" if v is None else str(v)


FORMS: Dict[ContentKind, type[BaseModel]] = {
    ContentKind.exercise: ExerciseForm,
    ContentKind.meal: MealForm,
}


def default_form(kind: ContentKind) -> Dict[str, Any]:
    return FORMS[kind].model_construct().model_dump()


def validate_form(
    kind: ContentKind, values: Dict[str, Any]
) -> Tuple[Dict[str, Any] | None, Dict[str, str]]:
    try:
        form = FORMS[kind].model_validate(values)
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for err in exc.errors():
            field = str(err["loc"][0]) if err["loc"] else "__root__"
            errors.setdefault(field, err["msg"])
        return None, errors
    return form.model_dump(), {}
