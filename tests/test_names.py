from __future__ import annotations

from obituary_collector.extraction.names import (
    names_match,
    normalize_name_for_match,
    provenance_hash,
)


def test_normalize_strips_titles_nicknames_and_suffixes():
    assert normalize_name_for_match("Dr. Margaret (Peggy) O'Neil-Smith Jr.") == "margaret oneil smith"


def test_normalize_quoted_nickname_and_accents():
    assert normalize_name_for_match('Robert "Bob" Lévesque') == "robert levesque"


def test_normalize_empty():
    assert normalize_name_for_match("") == ""
    assert normalize_name_for_match(None) == ""


def test_names_match_exact_after_normalization():
    assert names_match("Jane Smith", "JANE  SMITH")
    assert names_match("Mrs. Jane Smith", "Jane Smith")


def test_names_match_containment_on_token_boundary():
    assert names_match("Margaret Smith", "Margaret Smith-Jones")


def test_short_names_never_match_by_containment():
    assert not names_match("Ann Lee", "Joann Leeson")
    assert not names_match("Ann Lee", "Ann Lee Brown", min_length=8)


def test_names_match_rejects_empty():
    assert not names_match("", "Jane Smith")


def test_provenance_hash_ignores_titles_case_and_spacing():
    a = provenance_hash("Dr. John Smith", "2026-01-10", "Smith & Co.", "Newmarket")
    b = provenance_hash("john  smith", "2026-01-10", "SMITH & CO.", "newmarket")
    assert a == b
    assert len(a) == 40


def test_provenance_hash_changes_with_death_date():
    a = provenance_hash("John Smith", "2026-01-10", "", "Newmarket")
    b = provenance_hash("John Smith", "2026-01-11", "", "Newmarket")
    assert a != b
