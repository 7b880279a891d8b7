"""Tests for the pre-persistence validation gate."""
from __future__ import annotations

from datetime import date

from obituary_collector.models.records import NormalizedRecord
from obituary_collector.validation import RejectionReason, validate_record

TODAY = date(2026, 2, 1)


def _record(**kwargs) -> NormalizedRecord:
    values = {"name": "Jane Smith", "date_of_death": date(2026, 1, 10)}
    values.update(kwargs)
    return NormalizedRecord(**values)


class TestValidateRecord:
    def test_valid_record_passes(self):
        assert validate_record(_record(), today=TODAY) is None

    def test_missing_name(self):
        assert validate_record(_record(name="  "), today=TODAY) == RejectionReason.MISSING_NAME

    def test_name_without_letters(self):
        assert validate_record(_record(name="12345"), today=TODAY) == RejectionReason.MISSING_NAME

    def test_missing_death_date(self):
        result = validate_record(_record(date_of_death=None), today=TODAY)
        assert result == RejectionReason.MISSING_DATE_OF_DEATH

    def test_placeholder_death_date(self):
        result = validate_record(_record(date_of_death=date(1970, 1, 1)), today=TODAY)
        assert result == RejectionReason.PLACEHOLDER_DATE_OF_DEATH

    def test_pre_2000_death_rejected(self):
        record = _record(name="John Doe", date_of_death=date(1999, 5, 1))
        assert validate_record(record, today=TODAY) == RejectionReason.DEATH_BEFORE_EARLIEST_YEAR

    def test_earliest_year_is_configurable(self):
        record = _record(date_of_death=date(2010, 5, 1))
        assert validate_record(record, earliest_year=2015, today=TODAY) == RejectionReason.DEATH_BEFORE_EARLIEST_YEAR

    def test_death_must_follow_birth(self):
        record = _record(date_of_birth=date(2026, 1, 10))
        assert validate_record(record, today=TODAY) == RejectionReason.DEATH_NOT_AFTER_BIRTH

    def test_future_death_rejected(self):
        record = _record(date_of_death=date(2026, 3, 1))
        assert validate_record(record, today=TODAY) == RejectionReason.DEATH_IN_FUTURE
