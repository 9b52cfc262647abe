"""Helpers for the current time and for coercing stored timestamps."""

from datetime import datetime, timezone
from typing import Any

from studyflow.domain.exceptions import SchedulingContractError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with aware ones."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def resolve_now(now: datetime | None) -> datetime:
    return utc_now() if now is None else ensure_aware(now)


def to_datetime(value: Any) -> datetime | None:
    """
    Coerce a stored review timestamp into an aware datetime.

    Accepts datetimes, ISO-8601 strings (date-only and a trailing "Z"
    included) or None. Empty strings count as missing.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return ensure_aware(datetime.fromisoformat(text))
        except ValueError:
            raise SchedulingContractError(f"Invalid timestamp {value!r}") from None
    raise SchedulingContractError(f"Unsupported timestamp type {type(value).__name__}")
