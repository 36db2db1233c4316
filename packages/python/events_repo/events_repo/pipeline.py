"""Validation and normalization applied to a document right before it is written.

The repository calls these functions explicitly ahead of every insert or
update. Each one works on a copy of the document and either returns the
normalized copy or raises :class:`~events_repo.errors.ValidationError`; the
caller's document is never partially modified.
"""

from __future__ import annotations

from typing import Optional

from db_core.typing import MongoDocument, MutableDocument
from motor.motor_asyncio import AsyncIOMotorCollection

from .errors import ValidationError
from .normalize import is_valid_email, normalize_date, normalize_time, slugify

REQUIRED_EVENT_FIELDS = (
    "title",
    "description",
    "overview",
    "image",
    "venue",
    "location",
    "date",
    "time",
    "mode",
    "audience",
    "organizer",
)


def run_event_pipeline(document: MongoDocument, previous_title: Optional[str] = None) -> MutableDocument:
    """Trim required strings, derive the slug and normalize ``date``/``time``.

    ``previous_title`` is the stored title for an update and ``None`` for a new
    event; the slug is only recomputed when the title differs from it or no
    slug is present.
    """

    doc = dict(document)

    for field in REQUIRED_EVENT_FIELDS:
        value = doc.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f'Field "{field}" is required and cannot be empty.', field=field)
        doc[field] = value.strip()

    slug = doc.get("slug")
    slug = slug.strip() if isinstance(slug, str) else None
    if doc["title"] != previous_title or not slug:
        # May be empty for an all-punctuation title.
        slug = slugify(doc["title"])
    doc["slug"] = slug

    try:
        doc["date"] = normalize_date(doc["date"])
    except ValueError as exc:
        raise ValidationError(
            "Invalid date format for event. Expected a valid date string.", field="date"
        ) from exc

    try:
        doc["time"] = normalize_time(doc["time"])
    except ValueError as exc:
        raise ValidationError(
            "Invalid time format for event. Expected a valid time string.", field="time"
        ) from exc

    return doc


async def run_booking_pipeline(document: MongoDocument, events: AsyncIOMotorCollection) -> MutableDocument:
    """Re-check the email and make sure the referenced event exists.

    The lookup and the following insert are not atomic: an event deleted in
    between still ends up with the booking.
    """

    doc = dict(document)

    email = doc.get("email")
    if not isinstance(email, str) or not is_valid_email(email):
        raise ValidationError("Email must be a valid email address.", field="email")

    existing = await events.find_one({"_id": doc.get("eventId")}, projection={"_id": 1})
    if existing is None:
        raise ValidationError(
            "Cannot create booking: referenced event does not exist.", field="eventId"
        )

    return doc
