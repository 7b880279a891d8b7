"""Pre-persistence validation gate for normalized candidates."""
from __future__ import annotations

from datetime import date
from enum import Enum

from .extraction.dates import is_placeholder_date
from .extraction.names import normalize_name_for_match
from .models.records import NormalizedRecord

EARLIEST_DEATH_YEAR = 2000


class RejectionReason(str, Enum):
    MISSING_NAME = "missing_name"
    MISSING_DATE_OF_DEATH = "missing_date_of_death"
    PLACEHOLDER_DATE_OF_DEATH = "placeholder_date_of_death"
    DEATH_BEFORE_EARLIEST_YEAR = "death_before_earliest_year"
    DEATH_NOT_AFTER_BIRTH = "death_not_after_birth"
    DEATH_IN_FUTURE = "death_in_future"


def validate_record(
    record: NormalizedRecord,
    earliest_year: int = EARLIEST_DEATH_YEAR,
    today: date | None = None,
) -> RejectionReason | None:
    """Return why ``record`` must not be persisted, or ``None`` if it may be."""
    if not record.name.strip() or not normalize_name_for_match(record.name):
        return RejectionReason.MISSING_NAME

    death = record.date_of_death
    if death is None:
        return RejectionReason.MISSING_DATE_OF_DEATH
    if is_placeholder_date(death):
        return RejectionReason.PLACEHOLDER_DATE_OF_DEATH
    if death.year < earliest_year:
        return RejectionReason.DEATH_BEFORE_EARLIEST_YEAR
    if record.date_of_birth is not None and death <= record.date_of_birth:
        return RejectionReason.DEATH_NOT_AFTER_BIRTH
    if death > (today or date.today()):
        return RejectionReason.DEATH_IN_FUTURE
    return None
