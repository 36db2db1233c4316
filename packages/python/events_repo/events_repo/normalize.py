"""String helpers used when events and bookings are normalized before a write."""

from __future__ import annotations

import re
from datetime import datetime, timezone

from dateutil import parser as date_parser

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

_SLUG_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RUN = re.compile(r"\s+")
_DASH_RUN = re.compile(r"-+")

_DATE_ONLY = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_COMPACT_TIME = re.compile(r"^(\d{2})(\d{2})$")
_EPOCH = datetime(1970, 1, 1)
_CLOCK_CHECK = _EPOCH.replace(hour=1, minute=1)


def slugify(value: str) -> str:
    """Build a URL-friendly identifier from a title.

    ``"Tech Talk: AI & You!"`` becomes ``"tech-talk-ai-you"``. A title made only
    of punctuation yields an empty string.
    """

    slug = value.lower().strip()
    slug = _SLUG_DISALLOWED.sub("", slug)
    slug = _WHITESPACE_RUN.sub("-", slug)
    return _DASH_RUN.sub("-", slug)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def normalize_date(value: str) -> str:
    """Return ``value`` as a UTC ISO-8601 timestamp with millisecond precision.

    A bare ``YYYY-MM-DD`` is read as midnight UTC; any other input without an
    offset is read in the local timezone.

    Raises:
        ValueError: If ``value`` cannot be parsed as a date.
    """

    text = value.strip()
    try:
        if _DATE_ONLY.match(text):
            parsed = datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        else:
            parsed = date_parser.parse(text)
        # Naive datetimes are treated as local time by astimezone().
        parsed = parsed.astimezone(timezone.utc)
    except (OverflowError, OSError) as exc:
        raise ValueError(f"{value!r} is out of the supported date range") from exc
    return parsed.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def normalize_time(value: str) -> str:
    """Return ``value`` as a zero-padded 24-hour ``HH:MM`` string.

    Accepts ``HH:MM``, ``H:MM``, ``HH:MM:SS`` and ``HHMM``, with an optional
    AM/PM marker or UTC offset. Times carrying an offset are converted to the
    local timezone.

    Raises:
        ValueError: If ``value`` is not a time of day.
    """

    text = value.strip()
    compact = _COMPACT_TIME.match(text)
    if compact:
        text = f"{compact.group(1)}:{compact.group(2)}"

    try:
        parsed = date_parser.parse(text, default=_EPOCH)
        # Same input on a different default clock; differing hour or minute
        # means those fields came from the default, not from the input.
        check = date_parser.parse(text, default=_CLOCK_CHECK)
    except OverflowError as exc:
        raise ValueError(f"{value!r} is not a time of day") from exc

    # Anything that moved the date off the epoch was a date, not a time.
    if parsed.date() != _EPOCH.date():
        raise ValueError(f"{value!r} is not a time of day")
    if (parsed.hour, parsed.minute) != (check.hour, check.minute):
        raise ValueError(f"{value!r} does not contain an hour and minute")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone()
    return f"{parsed.hour:02d}:{parsed.minute:02d}"
