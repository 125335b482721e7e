"""Person and horse name handling.

Two concerns live here: cleaning the raw jockey/trainer/horse text that
comes off a field page, and normalising names so that a rider listed as
"Ms Jamie Melham" matches the premiership entry "Jamie Melham".
"""

import re
from typing import Optional

_HONORIFIC_PREFIX = re.compile(r"^(?:Mr|Ms|Mrs|Miss|Dr|Prof)\.?\s+", re.IGNORECASE)
_SUFFIX = re.compile(r"\s+(?:jnr|snr|jr|sr|j\.|s\.)\.?$", re.IGNORECASE)
_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
_APPRENTICE_CLAIM = re.compile(r"\(\s*a\s*\d*(?:\.\d+)?\s*(?:kg)?\s*\)", re.IGNORECASE)
_WEIGHT_PAREN = re.compile(r"\(\s*\d+(?:\.\d+)?\s*kg\s*\)", re.IGNORECASE)
_NUMERIC_PAREN = re.compile(r"\(\s*\d+(?:\.\d+)?\s*\)")

# Country-of-breeding suffixes and gear notes on horse names
_HORSE_SUFFIX = re.compile(r"\s*\((?:NZ|GB|IRE|FR|USA|JPN|GER|AUS|ARG|CHI|SAF|BRZ|ITY)\)\s*$", re.IGNORECASE)
_HORSE_PLACEHOLDER = re.compile(r"^(?:horse|runner|tba|tbc|unknown|n/?a|-+)\s*\d*$", re.IGNORECASE)

# Horse names that keep turning up where a rider's name is expected
KNOWN_HORSE_NAMES = frozenset({
    "winx",
    "black caviar",
    "makybe diva",
    "phar lap",
    "nature strip",
})

_NAME_TOKEN = re.compile(r"^(?:[A-Z][a-z]*|[A-Z]\.?|[A-Z][a-z]*['-][A-Z][a-z]*|Mc[A-Z][a-z]*|O'[A-Z][a-z]*)$")


def normalize_name(name: Optional[str]) -> str:
    """Strip honorifics, suffixes and parentheticals for comparison."""
    if not name:
        return ""
    normalized = _HONORIFIC_PREFIX.sub("", name.strip())
    normalized = _SUFFIX.sub("", normalized)
    normalized = _PARENTHETICAL.sub("", normalized)
    normalized = re.sub(r"\s+", " ", normalized)
    return normalized.strip().lower()


def names_match(a: Optional[str], b: Optional[str]) -> bool:
    na, nb = normalize_name(a), normalize_name(b)
    return bool(na) and na == nb


def clean_person_name(raw: Optional[str]) -> Optional[str]:
    """Clean jockey/trainer text from a field row.

    Removes apprentice claims like "(a2)" or "(a1.5kg)", weight and bare
    numeric parentheticals, and honorific/suffix tokens. Returns None when
    nothing usable is left.
    """
    if not raw:
        return None
    text = _APPRENTICE_CLAIM.sub(" ", raw)
    text = _WEIGHT_PAREN.sub(" ", text)
    text = _NUMERIC_PAREN.sub(" ", text)
    text = " ".join(text.split())
    text = _HONORIFIC_PREFIX.sub("", text)
    text = _SUFFIX.sub("", text)
    text = text.strip(" ,;:-")
    if not text or not re.search(r"[A-Za-z]{2,}", text):
        return None
    return text


def clean_horse_name(raw: Optional[str]) -> Optional[str]:
    """Clean a horse name; None for empty or placeholder names."""
    if not raw:
        return None
    name = " ".join(raw.split())
    name = _HORSE_SUFFIX.sub("", name)
    name = re.sub(r"^\d+\.?\s+", "", name)     # leading saddlecloth
    name = name.strip(" -")
    if not name or _HORSE_PLACEHOLDER.match(name):
        return None
    return name


def looks_like_person_name(candidate: Optional[str]) -> bool:
    """Structural check for a jockey/trainer name found in free text.

    Two or three title-case tokens, no stray punctuation, and not one of the
    horse names that show up in the same text.
    """
    if not candidate:
        return False
    text = candidate.strip()
    if re.search(r"[^A-Za-z .'\-]", text):
        return False
    tokens = text.split()
    if not 2 <= len(tokens) <= 3:
        return False
    if text.lower() in KNOWN_HORSE_NAMES:
        return False
    return all(_NAME_TOKEN.match(token) for token in tokens)
