"""Time utilities for Stream date filters and record timestamps."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Union

STREAM_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def parse_date_literal(value: Union[str, date, datetime]) -> datetime:
    """
    Parse a date filter value into a naive UTC datetime.

    Stream stores ``created`` in GMT without an offset, so aware values are
    converted to UTC and stripped of tzinfo before comparison.

    Args:
        value: ``2015-01-01``, ``2015-01-01T12:00:00``, ``2015-01-01 12:00:00``,
            an ISO string with ``Z``/offset suffix, or a date/datetime object

    Returns:
        Naive datetime in UTC

    Raises:
        ValueError: If the string is not a recognised date literal
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if not text:
            raise ValueError("Empty date literal")
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValueError(f"Invalid date literal: {value!r}") from e

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def day_bounds(value: Union[str, date, datetime]) -> tuple[datetime, datetime]:
    """Return the half-open range [midnight, next midnight) of the day a date literal falls on."""
    start = datetime.combine(parse_date_literal(value).date(), time.min)
    return start, start + timedelta(days=1)


def format_stream_datetime(value) -> str | None:
    """Render a stored timestamp the way Stream returns it (``Y-m-d H:i:s``)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.strftime(STREAM_DATETIME_FORMAT)
    return str(value)
