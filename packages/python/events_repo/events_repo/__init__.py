"""Events repository: Event and Booking documents with write-time validation."""

from .errors import ConflictError, EventNotFoundError, EventsRepoError, ValidationError
from .models import Booking, BookingFields, Event, EventFields, EventUpdate
from .normalize import normalize_date, normalize_time, slugify
from .pipeline import run_booking_pipeline, run_event_pipeline
from .repo import EventsRepository, get_repository

__all__ = [
    "ConflictError",
    "EventNotFoundError",
    "EventsRepoError",
    "ValidationError",
    "Booking",
    "BookingFields",
    "Event",
    "EventFields",
    "EventUpdate",
    "normalize_date",
    "normalize_time",
    "slugify",
    "run_booking_pipeline",
    "run_event_pipeline",
    "EventsRepository",
    "get_repository",
]
