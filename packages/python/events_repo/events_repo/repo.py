"""Async persistence layer for events and bookings.

Every write goes through the same steps: bind the payload to its schema, run
the document pipeline, stamp timestamps and only then talk to MongoDB.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from bson import ObjectId
from db_core import get_db
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from .errors import ConflictError, EventNotFoundError
from .models import Booking, BookingFields, Event, EventFields, EventUpdate, bind
from .pipeline import run_booking_pipeline, run_event_pipeline

EVENTS_COLLECTION = "events"
BOOKINGS_COLLECTION = "bookings"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_object_id(value: Any) -> Optional[ObjectId]:
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def _conflict(exc: DuplicateKeyError, doc: Mapping[str, Any]) -> ConflictError:
    key_pattern = (exc.details or {}).get("keyPattern") or {}
    field = next(iter(key_pattern), "slug")
    logger.warning(
        "Rejected event write: duplicate {field}={value!r}",
        field=field,
        value=doc.get(field),
    )
    return ConflictError(f"An event with this {field} already exists.", field=field)


class EventsRepository:
    """Reads and writes Event and Booking documents on one database handle."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def _events(self) -> AsyncIOMotorCollection:
        return self._db[EVENTS_COLLECTION]

    @property
    def _bookings(self) -> AsyncIOMotorCollection:
        return self._db[BOOKINGS_COLLECTION]

    async def ensure_indexes(self) -> None:
        """Create the unique slug index and the booking lookup index."""

        await self._events.create_index("slug", unique=True)
        await self._bookings.create_index("eventId")

    # ---------------------------------------------------------
    # Events
    # ---------------------------------------------------------
    async def create_event(self, payload: Mapping[str, Any]) -> Event:
        """Validate, normalize and insert a new event.

        Raises:
            ValidationError: If a field is missing, empty or malformed.
            ConflictError: If another event already has the derived slug.
        """

        fields = bind(EventFields, payload)
        doc = run_event_pipeline(fields.model_dump(by_alias=True))
        now = _now()
        doc.update(createdAt=now, updatedAt=now)

        try:
            result = await self._events.insert_one(doc)
        except DuplicateKeyError as exc:
            raise _conflict(exc, doc) from exc

        doc["_id"] = result.inserted_id
        logger.debug("Created event {id} with slug {slug}", id=doc["_id"], slug=doc["slug"])
        return Event.model_validate(doc)

    async def update_event(self, event_id: str, changes: Mapping[str, Any]) -> Event:
        """Apply ``changes`` to a stored event and re-run the pipeline on the result.

        The slug is recomputed only when the title actually changes.

        Raises:
            EventNotFoundError: If no event has ``event_id``.
            ValidationError: If the merged document is invalid.
            ConflictError: If a new slug collides with another event.
        """

        oid = _parse_object_id(event_id)
        raw = await self._events.find_one({"_id": oid}) if oid is not None else None
        if raw is None:
            raise EventNotFoundError(f"Event {event_id} not found")

        current = Event.model_validate(raw)
        update = bind(EventUpdate, changes).model_dump(by_alias=True, exclude_unset=True)
        merged = {
            **current.model_dump(by_alias=True, exclude={"id", "created_at", "updated_at"}),
            **update,
        }
        fields = bind(EventFields, merged)
        doc = run_event_pipeline(fields.model_dump(by_alias=True), previous_title=current.title)
        doc["updatedAt"] = _now()

        try:
            await self._events.update_one({"_id": oid}, {"$set": doc})
        except DuplicateKeyError as exc:
            raise _conflict(exc, doc) from exc

        logger.debug("Updated event {id}", id=oid)
        return Event.model_validate({**doc, "_id": oid, "createdAt": current.created_at})

    async def get_event(self, event_id: str) -> Optional[Event]:
        oid = _parse_object_id(event_id)
        if oid is None:
            return None
        raw = await self._events.find_one({"_id": oid})
        return Event.model_validate(raw) if raw else None

    async def get_event_by_slug(self, slug: str) -> Optional[Event]:
        raw = await self._events.find_one({"slug": slug})
        return Event.model_validate(raw) if raw else None

    # ---------------------------------------------------------
    # Bookings
    # ---------------------------------------------------------
    async def create_booking(self, payload: Mapping[str, Any]) -> Booking:
        """Insert a booking for an existing event.

        Raises:
            ValidationError: If the email is malformed or the event does not exist.
        """

        fields = bind(BookingFields, payload)
        doc = fields.model_dump(by_alias=True)
        doc["eventId"] = ObjectId(doc["eventId"])
        doc = await run_booking_pipeline(doc, self._events)
        now = _now()
        doc.update(createdAt=now, updatedAt=now)

        result = await self._bookings.insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.debug("Created booking {id} for event {event}", id=doc["_id"], event=doc["eventId"])
        return Booking.model_validate(doc)

    async def list_bookings_for_event(self, event_id: str) -> List[Booking]:
        """Return bookings for an event, oldest first."""

        oid = _parse_object_id(event_id)
        if oid is None:
            return []
        cursor = self._bookings.find({"eventId": oid}).sort("createdAt", 1)
        return [Booking.model_validate(doc) async for doc in cursor]


async def get_repository() -> EventsRepository:
    """Return a repository bound to the process-wide database handle."""

    return EventsRepository(await get_db())
