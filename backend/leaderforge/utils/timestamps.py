"""
Timestamp normalisation.

Stored timestamps show up in several shapes depending on who wrote them:
native datetimes, ISO-8601 strings, epoch-second mappings exported from the
document store ({"seconds": ..., "nanoseconds": ...}), bare epoch numbers and
provider timestamp objects. Everything that reads timestamps out of storage
goes through `to_instant` so downstream code only ever sees aware UTC
datetimes.
"""

from __future__ import annotations

from datetime import date, datetime, time, timezone
from typing import Any, Mapping, Optional


def _from_epoch(seconds: float, nanos: float = 0) -> datetime:
    return datetime.fromtimestamp(float(seconds) + float(nanos) / 1e9, tz=timezone.utc)


def _ensure_utc(value: datetime) -> datetime:
    # Naive values are stored as UTC (SQLite drops tzinfo on the way back).
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_mapping(value: Mapping[str, Any]) -> Optional[datetime]:
    for seconds_key, nanos_key in (("seconds", "nanoseconds"), ("_seconds", "_nanoseconds")):
        if seconds_key in value:
            return _from_epoch(value[seconds_key], value.get(nanos_key) or 0)
    return None


def to_instant(value: Any) -> Optional[datetime]:
    """
    Convert a stored timestamp of any known shape into an aware UTC datetime.

    Returns None for empty values (None, "", {}). Raises ValueError when the
    value is present but cannot be interpreted.
    """
    if value is None or value == "" or value == {}:
        return None

    if isinstance(value, datetime):
        return _ensure_utc(value)

    if isinstance(value, date):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)

    if isinstance(value, bool):
        raise ValueError(f"Cannot interpret {value!r} as a timestamp")

    if isinstance(value, (int, float)):
        return _from_epoch(value)

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return _ensure_utc(datetime.fromisoformat(text))
        except ValueError:
            raise ValueError(f"Cannot interpret {value!r} as a timestamp") from None

    if isinstance(value, Mapping):
        converted = _from_mapping(value)
        if converted is not None:
            return converted
        raise ValueError(f"Cannot interpret mapping {dict(value)!r} as a timestamp")

    # Provider timestamp objects (google.protobuf Timestamp, Firestore, JS-style exports)
    for method_name in ("to_datetime", "ToDatetime", "toDate"):
        method = getattr(value, method_name, None)
        if callable(method):
            return _ensure_utc(method())

    seconds = getattr(value, "seconds", None)
    if isinstance(seconds, (int, float)):
        return _from_epoch(seconds, getattr(value, "nanoseconds", 0) or getattr(value, "nanos", 0) or 0)

    raise ValueError(f"Cannot interpret {type(value).__name__} as a timestamp")


def to_storage(value: datetime) -> str:
    """ISO-8601 UTC form used when writing timestamps into JSON columns."""
    return _ensure_utc(value).isoformat()
