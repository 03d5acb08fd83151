from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Final

UTC: Final = timezone.utc

# RFC 3339: date 'T' time, optional fraction, mandatory offset.
_RFC3339 = re.compile(
    r"^(?P<date>\d{4}-\d{2}-\d{2})[Tt ](?P<time>\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d{1,9}))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})\Z"
)


def isoformat_z(dt: datetime, *, microsecond_precision: bool = True) -> str:
    """Convert tz-aware datetime to ISO-8601 string with trailing 'Z'.

    Naive datetimes are rejected to prevent silent timezone bugs.

    Args:
        dt: timezone-aware datetime.
        microsecond_precision: if False, strip microseconds.

    Returns:
        ISO-8601 string ending in 'Z'.

    Raises:
        ValueError: if dt is naive (tzinfo is None).
    """
    if dt.tzinfo is None:
        raise ValueError("isoformat_z requires a timezone-aware datetime (tzinfo != None)")

    dt_utc = dt.astimezone(UTC)
    if not microsecond_precision:
        dt_utc = dt_utc.replace(microsecond=0)

    s = dt_utc.isoformat()
    if s.endswith("+00:00"):
        return s[:-6] + "Z"
    return s


def parse_timestamp(text: str) -> datetime:
    """Parse an RFC 3339 timestamp into a tz-aware datetime.

    Fractions finer than microseconds (up to nanoseconds) are truncated.

    Raises:
        ValueError: if text is not RFC 3339 or lacks an offset.
    """
    m = _RFC3339.match(text)
    if m is None:
        raise ValueError(f"not an RFC 3339 timestamp: {text!r}")

    frac = m.group("frac")
    offset = m.group("offset")
    normalized = f"{m.group('date')}T{m.group('time')}"
    if frac:
        normalized += "." + frac[:6].ljust(6, "0")
    normalized += "+00:00" if offset in ("Z", "z") else offset

    return datetime.fromisoformat(normalized)
