"""Form-string grammar.

A form string lists finishing positions oldest to newest, with ``x``/``X``
marking a spell between campaigns, e.g. ``214X3361X652``. Reading it right
to left gives the most recent run first.
"""

from steamer.models import ScoringCategory

SPELL_MARKERS = frozenset("xX")


def is_spell_marker(char: str) -> bool:
    return char in SPELL_MARKERS


def current_campaign(form: str) -> str:
    """Substring after the last spell marker (the whole string if none)."""
    form = (form or "").strip()
    last = max(form.rfind("x"), form.rfind("X"))
    return form[last + 1:] if last >= 0 else form


def recent_positions(form: str, limit: int = 5) -> list[int]:
    """Positions of the current campaign, most recent first.

    >>> recent_positions("214X3361X652")
    [2, 5, 6]
    """
    # "0" is the conventional mark for tenth or worse
    positions = [int(ch) or 10 for ch in reversed(current_campaign(form)) if ch.isdigit()]
    return positions[:limit]


def classify_form(form: str) -> ScoringCategory:
    """Career state from the trailing characters of the form string."""
    reversed_form = (form or "").strip()[::-1]
    if not reversed_form:
        return ScoringCategory.UNKNOWN
    first = reversed_form[0]
    if is_spell_marker(first):
        return ScoringCategory.FIRST_UP
    if first.isdigit():
        if len(reversed_form) >= 2 and is_spell_marker(reversed_form[1]):
            return ScoringCategory.SECOND_UP
        return ScoringCategory.NORMAL
    return ScoringCategory.UNKNOWN
