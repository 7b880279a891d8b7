"""City normalization and free-text location fallback for Ontario sources."""
from __future__ import annotations

import re

# Neighbourhoods and former municipalities folded into Toronto.
TORONTO_AREAS = frozenset({
    "north york", "scarborough", "etobicoke", "east york", "york",
    "willowdale", "don mills", "agincourt", "thornhill",
})

# Known truncations, misspellings and spelling variants seen on listings.
CITY_CANONICAL = {
    "mississauag": "Mississauga",
    "missisauga": "Mississauga",
    "mississuaga": "Mississauga",
    "misissauga": "Mississauga",
    "richmond hil": "Richmond Hill",
    "richmondhill": "Richmond Hill",
    "st catharines": "St. Catharines",
    "st. catherines": "St. Catharines",
    "st catherines": "St. Catharines",
    "saint catharines": "St. Catharines",
    "st thomas": "St. Thomas",
    "saint thomas": "St. Thomas",
    "sault ste marie": "Sault Ste. Marie",
    "sault saint marie": "Sault Ste. Marie",
    "niagara on the lake": "Niagara-on-the-Lake",
    "niagara-on-the-lake": "Niagara-on-the-Lake",
    "whitchurch stouffville": "Whitchurch-Stouffville",
    "whitchurch-stouffville": "Whitchurch-Stouffville",
    "kitchner": "Kitchener",
    "kitchener-waterloo": "Kitchener",
    "hamiliton": "Hamilton",
    "hamilon": "Hamilton",
    "oakvile": "Oakville",
    "barie": "Barrie",
    "vaughn": "Vaughan",
    "brampon": "Brampton",
    "peterboro": "Peterborough",
    "newmarkt": "Newmarket",
    "bradford": "Bradford West Gwillimbury",
    "markam": "Markham",
    "pickering village": "Pickering",
    "tor": "Toronto",
    "toronot": "Toronto",
}

_PROVINCE_SUFFIX_RE = re.compile(r",?\s*\b(?:ON|Ont\.?|Ontario|Canada)\s*$", re.IGNORECASE)
_POSTAL_RE = re.compile(r",?\s*[A-Z]\d[A-Z]\s*\d[A-Z]\d\s*$", re.IGNORECASE)
_STREET_RE = re.compile(
    r"^\d+[A-Za-z]?\s+\w+|\b(?:street|st|avenue|ave|road|rd|drive|dr|boulevard|blvd|"
    r"crescent|cres|court|ct|lane|ln|way|parkway|pkwy|highway|hwy|unit|suite|concession)\b\.?\s*$|"
    r"\b(?:suite|unit|p\.?o\.? box|rr\s*\d)\b",
    re.IGNORECASE,
)
_GARBAGE_RE = re.compile(r"&#?\w+;|%[0-9A-Fa-f]{2}|\ufffd|Ã|â€|[<>{}\[\]|@=_\\]")
_SENTENCE_WORDS = frozenset({
    "the", "was", "is", "and", "his", "her", "their", "he", "she", "born",
    "passed", "away", "loving", "beloved", "survived", "wife", "husband",
    "of", "with", "at", "on", "for", "who", "will",
})
_LOWER_JOINERS = frozenset({"on", "the", "de", "la", "du"})
MAX_CITY_WORDS = 4

_CITY_TOKEN = r"[A-Z][A-Za-z.'\-]+"
_CITY_NAME = rf"{_CITY_TOKEN}(?:\s+{_CITY_TOKEN}){{0,3}}"

# "of Newmarket, Ontario", "in Barrie, ON", "from Aurora, Ont."
_CITY_PROVINCE_RE = re.compile(
    rf"(?i:\b(?:of|in|from|at|resident\s+of)\s+)(?P<city>{_CITY_NAME}),\s*(?:Ontario|ON|Ont)\b"
)
# "at Southlake Regional Health Centre, Newmarket" / "at Mackenzie Hospital in Richmond Hill"
_FACILITY_RE = re.compile(
    r"(?i:\b(?:hospital|health\s+cent(?:re|er)|hospice|care\s+cent(?:re|er)|"
    r"long[- ]term\s+care|nursing\s+home|manor|lodge|residence)\b)"
    rf"[^.;]{{0,60}}?(?:,\s*|\s+(?i:in)\s+)(?P<city>{_CITY_NAME})"
)


def _title_case(value: str) -> str:
    words = []
    for i, word in enumerate(value.split()):
        parts = []
        for j, part in enumerate(word.split("-")):
            low = part.lower()
            if (i or j) and low in _LOWER_JOINERS:
                parts.append(low)
            else:
                parts.append(low[:1].upper() + low[1:])
        words.append("-".join(parts))
    return " ".join(words)


def looks_like_place_name(value: str) -> bool:
    """Reject street addresses, encoded junk and biographical sentences."""
    if not value or len(value) > 60:
        return False
    if _GARBAGE_RE.search(value) or _STREET_RE.search(value):
        return False
    if any(ch.isdigit() for ch in value):
        return False
    words = value.replace(",", " ").split()
    if not words or len(words) > MAX_CITY_WORDS:
        return False
    lowered = {w.lower().strip(".") for w in words}
    if lowered & _SENTENCE_WORDS:
        return False
    return bool(re.search(r"[A-Za-z]{2}", value))


def normalize_city(raw: str | None) -> str:
    """Canonical city name, or ``""`` when the value is not a usable place."""
    if not raw:
        return ""
    city = " ".join(raw.split()).strip(" ,")
    city = _POSTAL_RE.sub("", city).strip(" ,")
    city = _PROVINCE_SUFFIX_RE.sub("", city).strip(" ,")
    city = _PROVINCE_SUFFIX_RE.sub("", city).strip(" ,")
    if "," in city:
        # "12 Main St, Newmarket" keeps the tail, "Newmarket, York Region" the head
        parts = [p.strip() for p in city.split(",") if p.strip()]
        city = parts[-1] if _STREET_RE.search(parts[0]) else parts[0]

    lower = city.lower()
    if lower in TORONTO_AREAS:
        return "Toronto"
    if lower in CITY_CANONICAL:
        return CITY_CANONICAL[lower]
    if not looks_like_place_name(city):
        return ""
    return _title_case(city)


def extract_location_from_text(text: str | None) -> str:
    """City from a "City, Ontario" phrase or a hospital/facility mention."""
    if not text:
        return ""
    for pattern in (_CITY_PROVINCE_RE, _FACILITY_RE):
        for m in pattern.finditer(text):
            city = normalize_city(m.group("city"))
            if city:
                return city
    return ""
