"""Shared helpers for model timestamps and identifiers."""

from datetime import datetime, timezone
from typing import Optional, Union
import re
import uuid

# Postgres trims trailing zeros from fractional seconds and may emit "+00"
# offsets; fromisoformat before 3.11 only accepts 3 or 6 digits and "+HH:MM".
_FRACTION_RE = re.compile(r"\.(\d+)")
_SHORT_OFFSET_RE = re.compile(r"(:\d{2}(?:\.\d+)?[+-]\d{2})$")


def utcnow() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


def _normalize_iso(text: str) -> str:
    text = text.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
    return _SHORT_OFFSET_RE.sub(r"\1:00", text)


def parse_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (as returned by Postgres/JSON) into an aware datetime.

    Fractional seconds of any precision are accepted. Naive values are
    assumed to be UTC. Unparseable values return None.
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(_normalize_iso(str(value)))
        except ValueError:
            return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_datetime(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime to ISO format (None passes through)."""
    if value is None:
        return None
    return value.isoformat()
