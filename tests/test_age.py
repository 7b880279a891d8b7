"""Tests for the layered age extractor."""
from __future__ import annotations

from datetime import date

from obituary_collector.extraction.age import (
    UNKNOWN_AGE,
    age_from_birthday,
    age_from_ordinal_year,
    compute_age,
    extract_age,
)


class TestOrdinalYear:
    def test_nth_year_means_n_minus_one(self):
        result = extract_age("She passed away peacefully in her 93rd year.")
        assert result.age == 92
        assert result.method == "ordinal_year"
        assert not result.approximate

    def test_ordinal_year_beats_explicit_age(self):
        assert extract_age("Died in his 81st year, at the age of 85.").age == 80

    def test_implausible_ordinal(self):
        assert age_from_ordinal_year("He died in his 150th year.") == 0

    def test_school_year_is_not_age(self):
        assert extract_age("In her 2nd year at McMaster she met Bob.") == UNKNOWN_AGE

    def test_ordinal_gate_is_per_sentence(self):
        text = "She passed away on January 3, 2026. In her 2nd year at McMaster she met Bob."
        assert age_from_ordinal_year(text) == 0


class TestBirthday:
    def test_on_birthday(self):
        result = extract_age("He died on his 80th birthday surrounded by family.")
        assert result.age == 80
        assert result.method == "ordinal_birthday"

    def test_days_before_birthday(self):
        assert extract_age("She passed away two days before her 80th birthday.").age == 79

    def test_birthday_outside_death_sentence_ignored(self):
        assert age_from_birthday("They celebrated her 80th birthday in Muskoka.") == 0


class TestExplicitAge:
    def test_at_the_age_of(self):
        result = extract_age("He passed away at the age of 85.")
        assert result.age == 85
        assert result.method == "explicit"

    def test_aged(self):
        assert extract_age("She died peacefully, aged 79.").age == 79

    def test_non_death_sentence_is_not_age_at_death(self):
        assert extract_age("She was admitted to college at the age of 16.") == UNKNOWN_AGE

    def test_gate_is_per_sentence(self):
        text = "She passed away peacefully on January 3, 2026. She graduated at the age of 16."
        assert extract_age(text).age == 0

    def test_implausible_explicit_age_dropped(self):
        assert not extract_age("He passed away at the age of 150.").known


class TestFromDates:
    def test_computed_from_full_dates(self):
        result = extract_age("", date(1941, 3, 3), date(2026, 1, 10))
        assert result.age == 84
        assert result.method == "computed"
        assert not result.approximate

    def test_approximate_from_years(self):
        result = extract_age("", birth_year=1926, death_year=2026)
        assert result.age == 100
        assert result.method == "approximate"
        assert result.approximate

    def test_compute_age_birthday_not_reached(self):
        assert compute_age(date(1950, 12, 31), date(2026, 1, 1)) == 75

    def test_nothing_known(self):
        assert extract_age("Loving mother and grandmother.") == UNKNOWN_AGE
