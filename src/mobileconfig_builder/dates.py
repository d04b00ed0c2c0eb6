"""
Best-effort parsing of date/time strings for Date payload keys.

Handles ISO 8601 timestamps, bare dates, a handful of common written forms,
RFC 2822 dates, and simple relative expressions ("tomorrow", "3 days ago",
"in 2 weeks"). Vague phrases such as "last year" are refused rather than
guessed at.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Optional

# Formats tried after ISO 8601, in order
_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%d %B %Y",
    "%d %b %Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%B %d %Y",
    "%b %d %Y",
    "%B %d, %Y %H:%M",
    "%b %d, %Y %H:%M",
]

_UNITS = {
    "second": timedelta(seconds=1),
    "minute": timedelta(minutes=1),
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(weeks=1),
}

_AGO = re.compile(r"^(\d+)\s+(second|minute|hour|day|week)s?\s+ago$")
_AHEAD = re.compile(r"^(?:in\s+(\d+)\s+(second|minute|hour|day|week)s?|(\d+)\s+(second|minute|hour|day|week)s?\s+from\s+now)$")


def now() -> datetime:
    """Current time in UTC; relative expressions are anchored here."""
    return datetime.now(timezone.utc)


def _midnight(day: date) -> datetime:
    return datetime.combine(day, time(0, 0), tzinfo=timezone.utc)


def _relative(text: str) -> Optional[datetime]:
    current = now()
    if text == "now":
        return current
    if text == "today":
        return _midnight(current.date())
    if text == "tomorrow":
        return _midnight(current.date() + timedelta(days=1))
    if text == "yesterday":
        return _midnight(current.date() - timedelta(days=1))

    match = _AGO.match(text)
    if match:
        return current - int(match.group(1)) * _UNITS[match.group(2)]

    match = _AHEAD.match(text)
    if match:
        count = match.group(1) or match.group(3)
        unit = match.group(2) or match.group(4)
        return current + int(count) * _UNITS[unit]

    return None


def _iso(text: str) -> Optional[datetime]:
    candidate = text
    if candidate.endswith(("Z", "z")):
        candidate = candidate[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(candidate)
    except ValueError:
        return None


def parse_datetime(text: str) -> datetime:
    """
    Parse a date/time string.

    Naive results are taken to be UTC.

    Raises:
        ValueError: If the string can not be understood.
    """
    cleaned = " ".join(text.strip().split())
    if not cleaned:
        raise ValueError("empty date string")

    parsed = _relative(cleaned.lower()) or _iso(cleaned)

    if parsed is None:
        for fmt in _FORMATS:
            try:
                parsed = datetime.strptime(cleaned, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        try:
            parsed = parsedate_to_datetime(cleaned)
        except (TypeError, ValueError, IndexError):
            parsed = None

    if parsed is None:
        raise ValueError(f"unparseable date {text!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
