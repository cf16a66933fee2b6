"""Scalar value helpers shared by dataset ingestion and the statistics engine."""

import math
from datetime import UTC, date, datetime
from typing import Any

# Tried in order after ISO-8601 parsing fails.
_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%Y/%m/%d",
    "%d %b %Y",
    "%b %d, %Y",
    "%B %d, %Y",
)


def is_missing(value: Any) -> bool:
    """Missing means null or empty string."""
    return value is None or (isinstance(value, str) and value == "")


def is_number(value: Any) -> bool:
    """True for ints and finite floats. Booleans are not numbers here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


def to_number(value: Any) -> float | None:
    """The value as a finite float, or None.

    Ints too large for a float are treated as non-numeric.
    """
    if not is_number(value):
        return None
    try:
        return float(value)
    except OverflowError:
        return None


def parses_as_number(text: str) -> bool:
    """True if the whole string is a finite number literal."""
    try:
        return math.isfinite(float(text.strip()))
    except ValueError:
        return False


def js_string(value: Any) -> str:
    """Stringify a scalar the way a JSON/JavaScript consumer would print it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def comparable_key(value: Any) -> tuple[str, Any]:
    """Distinct-value key: numbers and booleans keep identity, the rest is stringified.

    Keys are tagged so ``True`` and ``1`` never collapse into one bucket.
    """
    if isinstance(value, bool):
        return ("boolean", value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return ("number", "NaN")
        return ("number", value)
    return ("string", js_string(value))


def parse_timestamp(value: Any) -> datetime | None:
    """
    Parse a row value into an aware UTC datetime.

    Accepts datetime/date objects, ISO-8601 strings (a trailing ``Z`` is fine),
    a few common US-style formats, and numbers as epoch milliseconds.
    Naive values are taken as UTC.

    Returns:
        Datetime object or None
    """
    if value is None or isinstance(value, bool):
        return None

    parsed: datetime | None = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        millis = to_number(value)
        if not millis:
            return None
        try:
            parsed = datetime.fromtimestamp(millis / 1000, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text[-1] in "zZ":
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            for fmt in _DATE_FORMATS:
                try:
                    parsed = datetime.strptime(text, fmt)
                    break
                except ValueError:
                    continue
    if parsed is None:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def to_iso_utc(moment: datetime) -> str:
    """Millisecond ISO-8601 timestamp with a ``Z`` suffix."""
    moment = moment.astimezone(UTC)
    return f"{moment.strftime('%Y-%m-%dT%H:%M:%S')}.{moment.microsecond // 1000:03d}Z"


def numeric_values(values: list[Any]) -> list[float]:
    """Keep only the numeric entries of ``values``, in order."""
    numbers = (to_number(v) for v in values)
    return [n for n in numbers if n is not None]
