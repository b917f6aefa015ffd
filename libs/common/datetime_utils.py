"""Datetime utilities for timezone-aware UTC timestamps.

Usage:
    from libs.common.datetime_utils import ensure_datetime, utc_now

    call_time = ensure_datetime(event["callTime"])
    if utc_now() >= call_time:
        ...

Event and check-in timestamps reach the service in several shapes: native
datetimes (possibly naive when read back from SQLite), ISO-8601 strings from
JSON documents, and document-store timestamp structs such as
``{"seconds": 1718000000, "nanoseconds": 0}``. ``ensure_datetime`` folds all
of them into one aware UTC instant and never raises; anything it cannot read
becomes ``EPOCH``.
"""

from collections.abc import Mapping
from datetime import date, datetime, timezone
from numbers import Real
from typing import Any

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Return timezone-aware UTC datetime.

    This replaces the deprecated datetime.utcnow() which returns naive datetimes.
    Always use this for timestamps in the database.
    """
    return datetime.now(timezone.utc)


def _from_datetime(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _from_date(value: date) -> datetime:
    return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)


def _from_iso_string(value: str) -> datetime:
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = f"{text[:-1]}+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return EPOCH
    return _from_datetime(parsed)


def _seconds_field(value: Any) -> Any:
    if isinstance(value, Mapping):
        return value.get("seconds")
    return getattr(value, "seconds", None)


def _from_seconds(seconds: Real) -> datetime:
    try:
        return datetime.fromtimestamp(float(seconds), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return EPOCH


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def ensure_datetime(value: Any) -> datetime:
    """Normalize a date-like value into an aware datetime.

    - aware ``datetime``: returned unchanged
    - naive ``datetime``: read as UTC
    - ``date``: midnight UTC
    - ISO-8601 ``str``: parsed, ``EPOCH`` when unparseable
    - mapping/object with a numeric ``seconds`` field: seconds since the epoch
    - anything else, ``None`` included: ``EPOCH``
    """
    if isinstance(value, datetime):
        return _from_datetime(value)
    if isinstance(value, date):
        return _from_date(value)
    if isinstance(value, str):
        return _from_iso_string(value)
    if value is None or _is_number(value):
        return EPOCH

    seconds = _seconds_field(value)
    if _is_number(seconds):
        return _from_seconds(seconds)
    return EPOCH


def is_epoch(value: datetime) -> bool:
    """True when ``value`` is the fallback instant for unreadable input."""
    return ensure_datetime(value) == EPOCH


def to_utc(value: Any) -> datetime:
    """Normalize and convert to UTC, for storage columns."""
    return ensure_datetime(value).astimezone(timezone.utc)
