"""Pydantic models describing Event and Booking documents.

Documents are stored with camelCase keys (``createdAt``, ``eventId``) while the
Python attributes stay snake_case; ``populate_by_name`` accepts either form.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional, Type, TypeVar

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from .errors import ValidationError
from .normalize import is_valid_email

ModelT = TypeVar("ModelT", bound=BaseModel)


def _stringify_object_id(value: Any) -> Any:
    return str(value) if isinstance(value, ObjectId) else value


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class EventFields(_Document):
    """Writable fields of an event; unknown keys are rejected."""

    title: str
    slug: Optional[str] = None
    description: str
    overview: str
    image: str
    venue: str
    location: str
    date: str
    time: str
    mode: str
    audience: str
    agenda: List[str]
    organizer: str
    tags: List[str]

    @field_validator("agenda", "tags")
    @classmethod
    def require_non_empty_items(cls, value: List[str], info: ValidationInfo) -> List[str]:
        if not value or any(not item.strip() for item in value):
            raise ValueError(f"{info.field_name.capitalize()} must contain at least one non-empty item.")
        return value


class EventUpdate(_Document):
    """Partial update payload for an event."""

    title: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    overview: Optional[str] = None
    image: Optional[str] = None
    venue: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    mode: Optional[str] = None
    audience: Optional[str] = None
    agenda: Optional[List[str]] = None
    organizer: Optional[str] = None
    tags: Optional[List[str]] = None


class Event(EventFields):
    """Representation of an event stored in MongoDB."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    slug: str
    created_at: datetime
    updated_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Any:
        return _stringify_object_id(value)


class BookingFields(_Document):
    """Writable fields of a booking."""

    event_id: str
    email: str

    @field_validator("event_id", mode="before")
    @classmethod
    def check_event_id(cls, value: Any) -> Any:
        value = _stringify_object_id(value)
        if not isinstance(value, str) or not ObjectId.is_valid(value):
            raise ValueError("eventId must be a valid event identifier.")
        return value

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if not is_valid_email(value):
            raise ValueError("Email must be a valid email address.")
        return value


class Booking(BookingFields):
    """Representation of a booking stored in MongoDB."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    id: str = Field(alias="_id")
    created_at: datetime
    updated_at: datetime

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value: Any) -> Any:
        return _stringify_object_id(value)


def bind(model: Type[ModelT], payload: Any) -> ModelT:
    """Validate ``payload`` against ``model``, raising the repository's ValidationError."""

    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"]) or None
        raise ValidationError(error["msg"], field=field) from exc
