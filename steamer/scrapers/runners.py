"""Runner row extraction for a single race container.

Every runner must yield a name, saddlecloth, jockey, trainer, weight,
barrier and horse code. A row missing any of them is dropped; nothing is
filled in with a default.
"""

import logging
import re
from typing import Optional

from bs4 import Tag

from steamer.models import Horse
from steamer.names import clean_horse_name, clean_person_name
from steamer.scrapers.base import clean_text, parse_odds, parse_weight
from steamer.scrapers.strategies import first_non_empty

logger = logging.getLogger(__name__)

HORSE_LINK_RE = re.compile(r"HorseFullForm", re.IGNORECASE)

_HEADER_WORDS = ("No", "Horse", "Trainer", "Jockey", "Barrier", "Weight")
_SCRATCH_RE = re.compile(r"\b(?:late scratching|scratched|withdrawn|scr)\b", re.IGNORECASE)
_SHAPE_WORD_RE = re.compile(r"[A-Za-z]{3,}")
_CAREER_RE = re.compile(r"\b(\d{1,3})\s*:\s*(\d{1,3})-(\d{1,3})-(\d{1,3})\b")
_LEADING_INT_RE = re.compile(r"\d+")
MAX_RUNNER_NUMBER = 20

# Sub-element lookups per field: class fragments, header labels, link targets
_ROLE_CLASSES = {
    "name": ("horse-name", "horseName", "HorseName", "horse_name", "runner-name", "runnerName"),
    "number": ("horse-number", "horseNumber", "saddle", "runner-no", "runnerNo", "number"),
    "jockey": ("jockey", "Jockey"),
    "trainer": ("trainer", "Trainer"),
    "weight": ("weight", "Weight"),
    "barrier": ("barrier", "Barrier", "gate"),
    "odds": ("odds", "price"),
    "form": ("last10", "last-10", "lastTen", "form-string", "form"),
}
_ROLE_HEADERS = {
    "name": ("horse",),
    "number": ("no", "no.", "#"),
    "jockey": ("jockey",),
    "trainer": ("trainer",),
    "weight": ("weight", "wgt"),
    "barrier": ("barrier", "bar", "gate"),
    "odds": ("odds", "price"),
    "form": ("last 10", "last10", "form"),
}
_ROLE_LINKS = {
    "name": HORSE_LINK_RE,
    "jockey": re.compile(r"jockey", re.IGNORECASE),
    "trainer": re.compile(r"trainer", re.IGNORECASE),
}


def extract_horses(container: Tag, race_number: int, track_key: str) -> list[Horse]:
    """Extract runners from one race container."""
    candidates = first_non_empty(
        (_class_rows, _table_rows, _linked_blocks),
        container,
    )
    horses: list[Horse] = []
    seen_numbers: set[int] = set()

    for row in candidates:
        text = clean_text(row.get_text(" ")) or ""
        if is_header_row(text):
            continue
        if is_scratched(row, text):
            logger.debug(f"Skipping scratched row: {text[:60]}")
            continue

        horse = _parse_row(row, text, race_number, track_key)
        if horse is None:
            continue
        if horse.number in seen_numbers:
            logger.debug(f"Duplicate saddlecloth {horse.number} in race {race_number}, dropping {horse.name}")
            continue
        seen_numbers.add(horse.number)
        horses.append(horse)

    logger.debug(f"Race {race_number}: {len(horses)} runners from {len(candidates)} candidates")
    return horses


def is_header_row(text: str) -> bool:
    """A header row names every column; any one word on its own is not enough."""
    return all(re.search(rf"\b{word}\b", text, re.IGNORECASE) for word in _HEADER_WORDS)


def is_scratched(row: Tag, text: str) -> bool:
    if _SCRATCH_RE.search(text):
        return True
    classes = " ".join(row.get("class", []))
    if "scratch" in classes.lower():
        return True
    if "line-through" in (row.get("style") or ""):
        return True
    return row.find(["s", "strike", "del"]) is not None


# ──────────────────────────────────────────────
# Candidate strategies
# ──────────────────────────────────────────────

def _has_row_shape(text: str) -> bool:
    return bool(_SHAPE_WORD_RE.search(text)) and bool(re.search(r"\d", text))


def _class_rows(container: Tag) -> list[Tag]:
    return container.select(
        "tr.horse-row, tr.runner, tr.Runner, tr[class*='horse'], tr[class*='runner'], "
        "div.runner, div.horse-row, div[class*='runner-row']"
    )


def _table_rows(container: Tag) -> list[Tag]:
    rows = container.find_all("tr") if container.name != "tr" else [container]
    return [
        tr for tr in rows
        if len(tr.find_all("td")) >= 3 and _has_row_shape(tr.get_text(" "))
    ]


def _linked_blocks(container: Tag) -> list[Tag]:
    return [
        el for el in container.find_all(["div", "li"])
        if el.find("a", href=HORSE_LINK_RE) and _has_row_shape(el.get_text(" "))
        and not el.find(["div", "li"], recursive=True)
    ]


# ──────────────────────────────────────────────
# Field lookups
# ──────────────────────────────────────────────

def _column_map(row: Tag) -> dict[str, int]:
    """Header label positions for the table the row sits in."""
    table = row.find_parent("table")
    if table is None:
        return {}
    for tr in table.find_all("tr"):
        cells = tr.find_all(["th", "td"])
        labels = [c.get_text(" ", strip=True).lower() for c in cells]
        if tr.find("th") or is_header_row(" ".join(labels)):
            columns: dict[str, int] = {}
            for idx, label in enumerate(labels):
                for role, names in _ROLE_HEADERS.items():
                    if role not in columns and label in names:
                        columns[role] = idx
            return columns
    return {}


def _labelled(row: Tag, role: str, columns: dict[str, int]) -> Optional[str]:
    """Text of the sub-element that carries a field."""
    for fragment in _ROLE_CLASSES[role]:
        el = row.select_one(f"[class*='{fragment}']")
        if el is not None and el is not row:
            text = clean_text(el.get_text(" "))
            if text:
                return text
    idx = columns.get(role)
    if idx is not None:
        cells = row.find_all("td")
        if idx < len(cells):
            text = clean_text(cells[idx].get_text(" "))
            if text:
                return text
    pattern = _ROLE_LINKS.get(role)
    if pattern is not None:
        link = row.find("a", href=pattern)
        if link is not None:
            return clean_text(link.get_text(" ")) or None
    return None


def cell_number(text: Optional[str]) -> Optional[int]:
    """First integer in a saddlecloth or barrier cell, e.g. "6 (7)" -> 6; None outside 1..20."""
    match = _LEADING_INT_RE.search(text or "")
    if not match:
        return None
    value = int(match.group(0))
    return value if 1 <= value <= MAX_RUNNER_NUMBER else None


def number_from_text(text: str) -> Optional[int]:
    """First 1..20 number near the front of the text or after a runner keyword.

    Positional guess; it assumes the saddlecloth is printed early in the row.
    """
    for match in re.finditer(r"\b\d{1,2}\b", text):
        value = int(match.group(0))
        if not 1 <= value <= 20:
            continue
        before = text[max(0, match.start() - 15):match.start()]
        if match.start() <= len(text) / 3 or re.search(r"(?:horse|runner|no\.?|#)\s*$", before, re.IGNORECASE):
            return value
    return None


def barrier_from_text(text: str) -> Optional[int]:
    """Barrier from "barrier N"/"gate N", else the second number in the row."""
    match = re.search(r"\b(?:barrier|gate)\s*:?\s*(\d{1,2})\b", text, re.IGNORECASE)
    if match:
        value = int(match.group(1))
        return value if value > 0 else None
    numbers = re.findall(r"\d+(?:\.\d+)?", text)
    if len(numbers) >= 2 and numbers[1].isdigit() and 1 <= int(numbers[1]) <= 20:
        return int(numbers[1])
    return None


def form_from_row(row: Tag, text: str, columns: dict[str, int]) -> str:
    """Form string via the labelled cell, the row text, then single cells."""
    labelled = _labelled(row, "form", columns)
    if labelled:
        compact = re.sub(r"\s+", "", labelled)
        if re.fullmatch(r"[0-9xX]+", compact):
            return compact

    spans = [
        s for s in re.findall(r"[0-9xX]+", text)
        if len(s) >= 3 and re.search(r"\d", s) and re.search(r"[xX]", s)
    ]
    if spans:
        return max(spans, key=len)

    for cell in row.find_all("td"):
        cell_text = cell.get_text(strip=True)
        if re.fullmatch(r"[0-9xX]{3,20}", cell_text):
            return cell_text
    return ""


def identity_from_row(row: Tag) -> tuple[Optional[str], Optional[str]]:
    """(horsecode, raceentry) from the row's horse-history link."""
    link = row.find("a", href=HORSE_LINK_RE)
    if link is None:
        return None, None
    href = link["href"]
    code = re.search(r"[?&]horsecode=([^&#]+)", href, re.IGNORECASE)
    entry = re.search(r"[?&]raceentry=([^&#]+)", href, re.IGNORECASE)
    return (code.group(1) if code else None), (entry.group(1) if entry else None)


def _parse_row(row: Tag, text: str, race_number: int, track_key: str) -> Optional[Horse]:
    columns = _column_map(row)

    name = clean_horse_name(_labelled(row, "name", columns))
    if not name:
        logger.debug(f"Rejecting row without a horse name: {text[:60]}")
        return None

    number = cell_number(_labelled(row, "number", columns))
    if not number:
        number = number_from_text(text)
    if not number or number <= 0:
        logger.debug(f"Rejecting {name}: no saddlecloth")
        return None

    jockey = clean_person_name(_labelled(row, "jockey", columns))
    trainer = clean_person_name(_labelled(row, "trainer", columns))
    if not jockey or not trainer:
        logger.debug(f"Rejecting {name}: jockey={jockey!r} trainer={trainer!r}")
        return None

    weight = parse_weight(_labelled(row, "weight", columns))
    if weight is None:
        match = re.search(r"(\d{2}(?:\.\d)?)\s*kg", text, re.IGNORECASE)
        weight = float(match.group(1)) if match else None
    if weight is None or weight <= 0:
        logger.debug(f"Rejecting {name}: no weight")
        return None

    barrier = cell_number(_labelled(row, "barrier", columns))
    if not barrier:
        barrier = barrier_from_text(text)
    if not barrier or barrier <= 0:
        logger.debug(f"Rejecting {name}: no barrier")
        return None

    horse_code, race_entry = identity_from_row(row)
    if not horse_code:
        logger.debug(f"Rejecting {name}: no horse code link")
        return None

    career_wins = career_places = 0
    career = _CAREER_RE.search(text)
    if career:
        career_wins = int(career.group(2))
        career_places = int(career.group(3)) + int(career.group(4))

    return Horse(
        id=f"{track_key}_race{race_number}_{number}",
        number=number,
        name=name,
        jockey=jockey,
        trainer=trainer,
        weight=weight,
        barrier=barrier,
        horse_code=horse_code,
        race_entry=race_entry,
        odds=parse_odds(_labelled(row, "odds", columns)),
        form=form_from_row(row, text, columns),
        career_wins=career_wins,
        career_places=career_places,
    )
