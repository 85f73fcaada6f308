"""Time helpers for consistent UTC timestamps across the service."""

import re
from datetime import datetime, timedelta, timezone

_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")
_ONE_MS = timedelta(milliseconds=1)


def utc_now() -> datetime:
    """Return current UTC datetime with timezone attached."""

    return datetime.now(timezone.utc)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z`` or an explicit offset and any number of fractional
    digits; digits beyond microseconds are truncated. Naive values are taken as UTC.
    """

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        text = _EXCESS_FRACTION.sub(r"\1", text)
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"unsupported timestamp value: {value!r}")

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Render a datetime as UTC ISO-8601 with millisecond precision and a Z suffix."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    rendered = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return rendered.replace("+00:00", "Z")


def milliseconds_between(a: datetime, b: datetime) -> int:
    """Return the absolute distance between two datetimes in whole milliseconds."""

    return abs(a - b) // _ONE_MS
