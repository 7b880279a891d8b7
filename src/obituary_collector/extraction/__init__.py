"""Heuristic fact extraction shared by every adapter."""

from obituary_collector.extraction.age import AgeResult, extract_age
from obituary_collector.extraction.dates import (
    DateRange,
    is_placeholder_date,
    normalize_date,
    parse_date_range,
    year_range,
)
from obituary_collector.extraction.death_date import DeathDateMatch, extract_death_date
from obituary_collector.extraction.images import (
    PortraitCheck,
    check_portrait,
    is_placeholder_image_url,
)
from obituary_collector.extraction.location import extract_location_from_text, normalize_city
from obituary_collector.extraction.names import (
    names_match,
    normalize_name_for_match,
    provenance_hash,
)

__all__ = [
    "AgeResult",
    "DateRange",
    "DeathDateMatch",
    "PortraitCheck",
    "check_portrait",
    "extract_age",
    "extract_death_date",
    "extract_location_from_text",
    "is_placeholder_date",
    "is_placeholder_image_url",
    "names_match",
    "normalize_city",
    "normalize_date",
    "normalize_name_for_match",
    "parse_date_range",
    "provenance_hash",
    "year_range",
]
