"""Age extraction.

Layers, first hit wins:

1. ``ordinal_year``: "in her 93rd year" means 92 completed years; only in a
   sentence that talks about the death.
2. ``ordinal_birthday``: "on his 80th birthday" (80) or "days before her
   80th birthday" (79); only in a sentence that talks about the death.
3. ``explicit``: "at the age of 85", "aged 85", "age 85"; only in a sentence
   that talks about the death.
4. ``computed`` from full birth and death dates, or ``approximate`` when only
   the years are known.

Anything outside 1..120 is dropped. 0 means unknown.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date

from .death_date import DEATH_KEYWORDS, split_sentences

MAX_PLAUSIBLE_AGE = 120

_ORDINAL_YEAR_RE = re.compile(
    r"\bin\s+(?:his|her|their)\s+(\d{1,3})(?:st|nd|rd|th)\s+year\b", re.IGNORECASE
)
_ON_BIRTHDAY_RE = re.compile(
    r"\bon\s+(?:his|her|their)\s+(\d{1,3})(?:st|nd|rd|th)\s+birthday\b", re.IGNORECASE
)
_BEFORE_BIRTHDAY_RE = re.compile(
    r"\b(?:before|shy\s+of|short\s+of|prior\s+to)\s+(?:his|her|their)\s+(\d{1,3})(?:st|nd|rd|th)\s+birthday\b",
    re.IGNORECASE,
)
_EXPLICIT_RES = (
    re.compile(r"\bat\s+the\s+(?:age|young\s+age|ripe\s+old\s+age)\s+of\s+(\d{1,3})\b", re.IGNORECASE),
    re.compile(r"\baged\s+(\d{1,3})\b", re.IGNORECASE),
    re.compile(r"\bage\s+(\d{1,3})\b", re.IGNORECASE),
)


@dataclass(frozen=True)
class AgeResult:
    age: int = 0
    method: str = ""
    approximate: bool = False

    @property
    def known(self) -> bool:
        return self.age > 0


UNKNOWN_AGE = AgeResult()


def _plausible(age: int) -> bool:
    return 0 < age <= MAX_PLAUSIBLE_AGE


def age_from_ordinal_year(text: str) -> int:
    for sentence in split_sentences(text):
        if not DEATH_KEYWORDS.search(sentence):
            continue
        m = _ORDINAL_YEAR_RE.search(sentence)
        if m:
            age = int(m.group(1)) - 1
            return age if _plausible(age) else 0
    return 0


def age_from_birthday(text: str) -> int:
    for sentence in split_sentences(text):
        if not DEATH_KEYWORDS.search(sentence):
            continue
        m = _BEFORE_BIRTHDAY_RE.search(sentence)
        if m:
            age = int(m.group(1)) - 1
            return age if _plausible(age) else 0
        m = _ON_BIRTHDAY_RE.search(sentence)
        if m:
            age = int(m.group(1))
            return age if _plausible(age) else 0
    return 0


def age_from_explicit_phrase(text: str) -> int:
    for sentence in split_sentences(text):
        if not DEATH_KEYWORDS.search(sentence):
            continue
        for pattern in _EXPLICIT_RES:
            m = pattern.search(sentence)
            if m:
                age = int(m.group(1))
                return age if _plausible(age) else 0
    return 0


def compute_age(birth: date, death: date) -> int:
    """Completed years between two full dates."""
    years = death.year - birth.year
    if (death.month, death.day) < (birth.month, birth.day):
        years -= 1
    return years


def extract_age(
    text: str,
    birth: date | None = None,
    death: date | None = None,
    *,
    birth_year: int | None = None,
    death_year: int | None = None,
) -> AgeResult:
    """Run the layers in order and report which one produced the age."""
    text = text or ""

    age = age_from_ordinal_year(text)
    if age:
        return AgeResult(age, "ordinal_year")

    age = age_from_birthday(text)
    if age:
        return AgeResult(age, "ordinal_birthday")

    age = age_from_explicit_phrase(text)
    if age:
        return AgeResult(age, "explicit")

    if birth and death:
        age = compute_age(birth, death)
        if _plausible(age):
            return AgeResult(age, "computed")
        return UNKNOWN_AGE

    by = birth.year if birth else birth_year
    dy = death.year if death else death_year
    if by and dy:
        age = dy - by
        if _plausible(age):
            return AgeResult(age, "approximate", approximate=True)

    return UNKNOWN_AGE
