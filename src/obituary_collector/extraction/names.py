"""Name normalization for cross-source matching and provenance hashing."""
from __future__ import annotations

import hashlib
import re
import unicodedata

# Honorifics stripped from the front of a name
NAME_PREFIXES = {
    "mr", "mrs", "ms", "miss", "dr", "prof", "rev", "hon",
    "sir", "lady", "capt", "captain", "col", "colonel",
    "maj", "major", "lt", "sgt", "father", "sister", "pastor",
}

# Generational and professional suffixes stripped from the end
NAME_SUFFIXES = {
    "jr", "sr", "ii", "iii", "iv", "v",
    "esq", "phd", "md", "dds", "cd", "qc", "kc", "peng",
}

_PAREN_RE = re.compile(r"\([^)]*\)|\[[^\]]*\]")
_QUOTED_RE = re.compile(r"\"[^\"]*\"|“[^”]*”|‘[^’]*’|(?<!\w)'[^']+'(?!\w)")
_HASH_AFFIX_RE = re.compile(r"\b(?:jr|sr|ii|iii|iv|v|dr|mr|mrs|ms|miss|prof)\b\.?", re.IGNORECASE)


def _fold_accents(value: str) -> str:
    return "".join(
        ch for ch in unicodedata.normalize("NFKD", value) if not unicodedata.combining(ch)
    )


def normalize_name_for_match(name: str | None) -> str:
    """Collapse a display name to lowercase alphabetic tokens.

    "Dr. Margaret (Peggy) O'Neil-Smith Jr." -> "margaret oneil smith"
    """
    if not name:
        return ""
    result = _PAREN_RE.sub(" ", name)
    result = _QUOTED_RE.sub(" ", result)
    result = _fold_accents(result).lower()
    result = re.sub(r"['’`]", "", result)
    result = re.sub(r"[^a-z]+", " ", result)
    parts = result.split()

    while parts and parts[0] in NAME_PREFIXES:
        parts.pop(0)
    while len(parts) > 1 and parts[-1] in NAME_SUFFIXES:
        parts.pop()

    return " ".join(parts)


def names_match(a: str, b: str, min_length: int = 8) -> bool:
    """Same person by name: equal keys, or one contained in the other.

    Containment is checked on token boundaries and only when both keys are
    at least ``min_length`` characters, so "Ann Lee" never absorbs
    "Joann Leeson".
    """
    key_a = normalize_name_for_match(a)
    key_b = normalize_name_for_match(b)
    if not key_a or not key_b:
        return False
    if key_a == key_b:
        return True
    if len(key_a) < min_length or len(key_b) < min_length:
        return False
    padded_a, padded_b = f" {key_a} ", f" {key_b} "
    return padded_a in padded_b or padded_b in padded_a


def _normalize_name_for_hash(name: str) -> str:
    value = " ".join(name.lower().split())
    value = _HASH_AFFIX_RE.sub("", value)
    return " ".join(value.split())


def _normalize_for_hash(value: str) -> str:
    return " ".join(value.lower().split())


def provenance_hash(name: str, date_of_death: str, funeral_home: str, city: str) -> str:
    """sha1 of the identity-bearing fields, joined with ``|``."""
    parts = [
        _normalize_name_for_hash(name or ""),
        date_of_death or "",
        _normalize_for_hash(funeral_home or ""),
        _normalize_for_hash(city or ""),
    ]
    return hashlib.sha1("|".join(parts).encode()).hexdigest()
