"""Time and duration conversion shared by the platform adapters.

Every adapter funnels its native representation through these helpers so the
resulting ``Contest`` always carries a UTC ``datetime`` and a duration in whole
seconds.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any

from dateutil import parser as date_parser
from dateutil import tz


class NormalizationError(ValueError):
    """Raised when a present upstream value cannot be converted."""


_MAX_EPOCH_SECONDS = 253402300799  # 9999-12-31T23:59:59Z

# Two fill-ins that differ in year, month and day; a string that only parses
# identically against both spells out its whole calendar date.
_FILL_DEFAULTS = (datetime(2000, 1, 1), datetime(2004, 2, 2))


def parse_int(value: Any) -> int | None:
    """Return ``value`` as an int, accepting numeric strings; ``None`` when absent."""

    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise NormalizationError(f"expected a number, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value != value or not value.is_integer():  # NaN or fractional
            raise NormalizationError(f"expected a whole number, got {value!r}")
        return int(value)
    if isinstance(value, str):
        candidate = value.strip()
        try:
            return int(candidate)
        except ValueError:
            pass
        try:
            as_float = float(candidate)
        except ValueError as exc:
            raise NormalizationError(f"expected a number, got {value!r}") from exc
        return parse_int(as_float)
    raise NormalizationError(f"expected a number, got {type(value).__name__}")


def from_epoch_seconds(value: Any) -> datetime | None:
    """Convert epoch seconds to a UTC datetime."""

    seconds = parse_int(value)
    if seconds is None:
        return None
    if not 0 <= seconds <= _MAX_EPOCH_SECONDS:
        raise NormalizationError(f"epoch seconds out of range: {seconds}")
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def parse_datetime(value: Any, *, default_tz: tzinfo | None = None) -> datetime | None:
    """Parse an ISO-8601 or human calendar string into a UTC datetime.

    Naive values are interpreted in ``default_tz`` (UTC when not given).
    """

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = " ".join(value.split())
        try:
            parsed = date_parser.isoparse(text)
        except ValueError:
            parsed = _parse_calendar_string(text)
    else:
        raise NormalizationError(f"expected a date string, got {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz or timezone.utc)
    return parsed.astimezone(timezone.utc)


def _parse_calendar_string(text: str) -> datetime:
    """Parse a display string such as ``15 Nov 2023 20:00:00``.

    dateutil fills missing components from its default (today's date when
    none is given), so a string lacking its year, month or day is rejected.
    """

    try:
        candidates = [date_parser.parse(text, default=fill) for fill in _FILL_DEFAULTS]
    except (ValueError, OverflowError) as exc:
        raise NormalizationError(f"unparseable date {text!r}") from exc
    if candidates[0] != candidates[1]:
        raise NormalizationError(f"incomplete date {text!r}")
    return candidates[0]


def duration_seconds(value: Any, *, unit: str = "seconds") -> int | None:
    """Normalize a duration expressed in ``unit`` to whole seconds."""

    amount = parse_int(value)
    if amount is None:
        return None
    multiplier = _UNIT_SECONDS.get(unit)
    if multiplier is None:
        raise NormalizationError(f"unknown duration unit {unit!r}")
    seconds = amount * multiplier
    if seconds < 0:
        raise NormalizationError(f"negative duration {value!r}")
    return seconds


def duration_between(start: datetime, end: datetime | None) -> int | None:
    if end is None:
        return None
    delta = end - start
    if delta < timedelta(0):
        raise NormalizationError(f"end {end.isoformat()} precedes start {start.isoformat()}")
    return int(delta.total_seconds())


def zone(name: str) -> tzinfo:
    resolved = tz.gettz(name)
    if resolved is None:
        raise NormalizationError(f"unknown time zone {name!r}")
    return resolved


_UNIT_SECONDS = {
    "seconds": 1,
    "minutes": 60,
    "hours": 3600,
}
