"""Keyword-gated death-date extraction from free text.

Each rule is tried in priority order against every sentence; the first rule
that matches anywhere wins. A rule only fires when its sentence also carries a
death-indicating phrase, and a match is dropped when a life event ("born",
"married", ...) sits between the date and the death phrase, so biographical
dates never become death dates. Published dates are not considered here at all.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date

from .dates import DATE_PATTERN, normalize_date

logger = logging.getLogger(__name__)

DEATH_KEYWORDS = re.compile(
    r"\b(?:passed\s+away|passed\s+on|passed\s+peacefully|died|dies|"
    r"entered\s+(?:into\s+)?(?:eternal\s+)?rest|went\s+to\s+be\s+with|called\s+home|"
    r"suddenly|peacefully|death|passing|lost\s+(?:his|her|their)\s+(?:battle|fight))\b",
    re.IGNORECASE,
)

_WEEKDAY = r"(?:(?:Mon|Tues|Wednes|Thurs|Fri|Satur|Sun)day,?\s+)?"

# Life events whose dates must not be read as the death date.
_BIOGRAPHICAL = re.compile(
    r"\b(?:born|birth|married|marriage|wedding|graduated|moved|retired)\b", re.IGNORECASE
)

# Abbreviations that end in a period without ending a sentence.
_ABBREVIATIONS = re.compile(
    r"\b(?:Dr|Mr|Mrs|Ms|St|Ste|Mt|Jr|Sr|Rev|Hon|Jan|Feb|Mar|Apr|Aug|Sep|Sept|Oct|Nov|Dec|[A-Z])\.$"
)


@dataclass(frozen=True)
class DeathDateRule:
    name: str
    pattern: re.Pattern[str]
    gated: bool = True
    # Characters before the match also checked for life-event words.
    lookbehind: int = 0

    def apply(self, sentence: str) -> date | None:
        if self.gated and not DEATH_KEYWORDS.search(sentence):
            return None
        for m in self.pattern.finditer(sentence):
            context = sentence[max(0, m.start() - self.lookbehind) : m.end()]
            if self.gated and _BIOGRAPHICAL.search(context):
                continue
            return normalize_date(m.group("date"))
        return None


@dataclass(frozen=True)
class DeathDateMatch:
    date: date
    rule: str
    sentence: str


RULES: tuple[DeathDateRule, ...] = (
    # "(March 3, 1941 - January 10, 2026)": a bracketed lifespan is its own signal
    DeathDateRule(
        "parenthetical_range",
        re.compile(
            rf"\(\s*{DATE_PATTERN}\s*[-–—~]\s*(?P<date>{DATE_PATTERN})\s*\)",
            re.IGNORECASE,
        ),
        gated=False,
    ),
    DeathDateRule(
        "passed_away_on",
        re.compile(
            rf"\bpassed\s+(?:away\b.*?\bon|on\b(?:.*?\bon)??)\s+{_WEEKDAY}(?P<date>{DATE_PATTERN})",
            re.IGNORECASE,
        ),
    ),
    DeathDateRule(
        "entered_into_rest_on",
        re.compile(
            rf"\bentered\s+(?:into\s+)?(?:eternal\s+)?rest\b.*?\bon\s+{_WEEKDAY}(?P<date>{DATE_PATTERN})",
            re.IGNORECASE,
        ),
    ),
    DeathDateRule(
        "died_on",
        re.compile(
            rf"\bdied\b.*?\bon\s+{_WEEKDAY}(?P<date>{DATE_PATTERN})",
            re.IGNORECASE,
        ),
    ),
    # "On January 8, 2026, Walter Brown passed away": the gap may not span a clause
    DeathDateRule(
        "on_date_passed_away",
        re.compile(
            rf"\bon\s+{_WEEKDAY}(?P<date>{DATE_PATTERN}),?\s+[^,;]{{0,60}}?"
            r"\b(?:passed\s+away|passed\s+on|died|entered\s+(?:into\s+)?(?:eternal\s+)?rest)\b",
            re.IGNORECASE,
        ),
        lookbehind=25,
    ),
    DeathDateRule(
        "suddenly_on",
        re.compile(
            rf"\b(?:suddenly|peacefully)\b.*?\bon\s+{_WEEKDAY}(?P<date>{DATE_PATTERN})",
            re.IGNORECASE,
        ),
    ),
)


def split_sentences(text: str) -> list[str]:
    """Split prose into sentences without breaking on "Dr." or "Jan."."""
    text = " ".join((text or "").split())
    if not text:
        return []
    pieces = re.split(r"(?<=[.!?])\s+(?=[A-Z\"(])", text)
    sentences: list[str] = []
    for piece in pieces:
        if sentences and _ABBREVIATIONS.search(sentences[-1]):
            sentences[-1] = f"{sentences[-1]} {piece}"
        else:
            sentences.append(piece)
    return sentences


def extract_death_date(text: str, rules: tuple[DeathDateRule, ...] = RULES) -> DeathDateMatch | None:
    """Return the highest-priority keyword-gated death date in ``text``."""
    sentences = split_sentences(text)
    for rule in rules:
        for sentence in sentences:
            found = rule.apply(sentence)
            if found is not None:
                logger.debug("death date %s via %s", found, rule.name)
                return DeathDateMatch(date=found, rule=rule.name, sentence=sentence)
    return None
