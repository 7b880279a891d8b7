"""Date normalization for obituary listings.

Handles the formats seen across sources ("January 15, 2026", "Jan 15th, 2026",
"15 January 2026", "2026-01-15", numeric slashes and dashes). A bare year is
never a date.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime

MONTH_NAMES = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

# Tried in order; month-first numeric forms win over day-first.
_FORMATS = (
    "%B %d, %Y",
    "%B %d %Y",
    "%b %d, %Y",
    "%b %d %Y",
    "%d %B %Y",
    "%d %b %Y",
    "%d %B, %Y",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d/%m/%Y",
    "%d-%m-%Y",
    "%m-%d-%Y",
    "%Y-%m-%d",
    "%d-%b-%Y",
)

# Placeholder values some CMSes print instead of a real date.
PLACEHOLDER_DATES = frozenset({date(1970, 1, 1), date(1900, 1, 1), date(1, 1, 1)})

RANGE_SEPARATORS = (" - ", " – ", " — ", " to ", "~")

MONTH_PATTERN = (
    r"(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|"
    r"Aug(?:ust)?|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?"
)

# "January 15, 2026", "Jan. 15th 2026", "15 January 2026", "2026-01-15"
DATE_PATTERN = (
    rf"(?:{MONTH_PATTERN}\s+\d{{1,2}}(?:st|nd|rd|th)?,?\s+\d{{4}}"
    rf"|\d{{1,2}}(?:st|nd|rd|th)?\s+{MONTH_PATTERN},?\s+\d{{4}}"
    r"|\d{4}-\d{2}-\d{2})"
)

_ORDINAL_RE = re.compile(r"(\d+)(st|nd|rd|th)\b", re.IGNORECASE)
_WEEKDAY_RE = re.compile(
    r"^(?:mon|tues|wednes|thurs|fri|satur|sun)day,?\s+", re.IGNORECASE
)
_YEAR_RANGE_RE = re.compile(r"^(\d{4})\s*[-–—~]\s*(\d{4})$")


@dataclass
class DateRange:
    birth: date | None = None
    death: date | None = None


def normalize_date(text: str | None) -> date | None:
    """Parse a single date string; ``None`` if it is not a full date."""
    if not text:
        return None

    cleaned = " ".join(text.split()).strip(" ,.")
    if not cleaned or re.fullmatch(r"\d{4}", cleaned):
        return None

    cleaned = _ORDINAL_RE.sub(r"\1", cleaned)
    cleaned = _WEEKDAY_RE.sub("", cleaned)
    cleaned = re.sub(r"\b([A-Za-z]{3,4})\.", r"\1", cleaned)
    cleaned = cleaned.replace("Sept ", "Sep ")

    for fmt in _FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue

    # ISO timestamp from a datetime attribute
    m = re.match(r"^(\d{4}-\d{2}-\d{2})T", cleaned)
    if m:
        return normalize_date(m.group(1))
    return None


def parse_date_range(text: str | None) -> DateRange:
    """Split "birth - death" text; a lone date is treated as the death date."""
    if not text:
        return DateRange()
    for sep in RANGE_SEPARATORS:
        if sep in text:
            left, right = text.split(sep, 1)
            return DateRange(birth=normalize_date(left), death=normalize_date(right))
    return DateRange(death=normalize_date(text))


def year_range(text: str | None) -> tuple[int | None, int | None] | None:
    """Recognize years-only date text ("1926 - 2026" or "1926").

    Returns ``(birth_year, death_year)`` or ``None`` when the text is not
    years-only. A single year is taken as a birth year.
    """
    if not text:
        return None
    stripped = text.strip()
    m = _YEAR_RANGE_RE.match(stripped)
    if m:
        return int(m.group(1)), int(m.group(2))
    if re.fullmatch(r"\d{4}", stripped):
        return int(stripped), None
    return None


def find_date_range_in_text(text: str) -> str:
    """Find "Month D, YYYY - Month D, YYYY" inside free text; ``""`` if absent."""
    m = re.search(rf"({DATE_PATTERN})\s*[-–—~]\s*({DATE_PATTERN})", text or "")
    if not m:
        return ""
    return f"{m.group(1)} - {m.group(2)}"


def is_placeholder_date(value: date | None) -> bool:
    return value is not None and value in PLACEHOLDER_DATES
