"""Tests for city normalization and free-text location fallback."""
from __future__ import annotations

import pytest

from obituary_collector.extraction.location import (
    extract_location_from_text,
    looks_like_place_name,
    normalize_city,
)


class TestNormalizeCity:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Newmarket, ON", "Newmarket"),
            ("Newmarket, Ontario", "Newmarket"),
            ("Newmarket, ON L3Y 1A1", "Newmarket"),
            ("richmond hill", "Richmond Hill"),
            ("Newmarket, York Region", "Newmarket"),
            ("12 Main St, Newmarket, Ontario", "Newmarket"),
        ],
    )
    def test_province_postal_and_case(self, raw, expected):
        assert normalize_city(raw) == expected

    @pytest.mark.parametrize("raw", ["North York", "Scarborough", "etobicoke"])
    def test_toronto_areas_merge(self, raw):
        assert normalize_city(raw) == "Toronto"

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Mississauag", "Mississauga"),
            ("st catharines", "St. Catharines"),
            ("niagara on the lake", "Niagara-on-the-Lake"),
            ("Vaughn", "Vaughan"),
        ],
    )
    def test_canonical_table(self, raw, expected):
        assert normalize_city(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [
            "123 Main Street",
            "passed away with his loving wife",
            "Aurora &amp; District",
            "",
            None,
        ],
    )
    def test_rejects_non_places(self, raw):
        assert normalize_city(raw) == ""

    def test_looks_like_place_name(self):
        assert looks_like_place_name("Bradford")
        assert not looks_like_place_name("Unit 4")
        assert not looks_like_place_name("a" * 80)


class TestLocationFromText:
    def test_city_province_phrase(self):
        assert extract_location_from_text("Jane Smith of Newmarket, Ontario passed away.") == "Newmarket"

    def test_short_province(self):
        assert extract_location_from_text("He lived in Barrie, ON for forty years.") == "Barrie"

    def test_facility_mention(self):
        text = "She passed away at Southlake Regional Health Centre, Newmarket on January 3."
        assert extract_location_from_text(text) == "Newmarket"

    def test_nothing_found(self):
        assert extract_location_from_text("Loving mother of three.") == ""
        assert extract_location_from_text(None) == ""
