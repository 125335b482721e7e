"""Racing Australia horse full-form parser.

Turns one horse's history document into a ``HorseForm``: the recent
results (reconciled against the field's form string), first/second-up
records, track/distance/condition tallies and barrier-trial sectionals.

URL pattern:
  https://www.racingaustralia.horse/InteractiveForm/HorseFullForm.aspx
    ?horsecode={code}&stage=FinalFields&Key={venue key}&src=horseform&raceentry={entry}
"""

import logging
import re
from datetime import date
from typing import Optional, Sequence

from bs4 import BeautifulSoup, Tag

from steamer.config import get_settings
from steamer.form_string import recent_positions
from steamer.models import (
    Horse,
    HorseForm,
    PerformanceStats,
    RaceResultDetail,
    StatsRecord,
    TrackDistanceStats,
    UpResults,
)
from steamer.names import looks_like_person_name
from steamer.scrapers.base import Fetcher, ScraperError, clean_text, parse_html
from steamer.scrapers.urls import VenueKey, horse_form_url

logger = logging.getLogger(__name__)

HISTORY_TABLE_CLASS = "horse-form-table"
MAX_RESULTS = 5
MAX_TRIALS = 5
DISTANCE_TOLERANCE = 50

_MONTHS = {m: i for i, m in enumerate(
    ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"), start=1
)}

_STATS = r"(\d+)\s*:\s*(\d+)\s*-\s*(\d+)\s*-\s*(\d+)"

# ──────────────────────────────────────────────
# Row grammar
# ──────────────────────────────────────────────

POSITION_PATTERNS = (
    re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\s+of\s+\d{1,2}\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})\s*/\s*\d{1,2}\b"),
    re.compile(r"\b(\d{1,2})\s+of\s+\d{1,2}\b", re.IGNORECASE),
    re.compile(r"\b(\d{1,2})(?:st|nd|rd|th)\b", re.IGNORECASE),
    re.compile(r"^\s*(\d{1,2})\b"),
)
_TRACK_PATTERNS = (
    re.compile(r"\[\s*([A-Z]{2,6})\s+\d{1,2}[A-Z][a-z]{2}\d{2}\s*\]"),
    re.compile(r"\b([A-Z]{3,6})\s+\d{1,2}[A-Z][a-z]{2}\d{2}\b"),
    re.compile(r"Track\s*:\s*([A-Z][A-Za-z]+)"),
)
_DATE_PATTERNS = (
    re.compile(r"\b(\d{1,2})([A-Z][a-z]{2})(\d{2})\b"),
    re.compile(r"\b(\d{1,2})\s+([A-Z][a-z]{2})\s+(\d{4}|\d{2})\b"),
    re.compile(r"\b(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})\b"),
)
_NUMERIC_DATE = _DATE_PATTERNS[2]
_DISTANCE_PATTERNS = (
    re.compile(r"\b(\d{3,4})m\b(?!\s*:?\s*\d{2}\.\d)"),
    re.compile(r"\b(\d{3,4})\s*metres?\b", re.IGNORECASE),
)
_CONDITION_PATTERNS = (
    re.compile(r"\b(Firm|Good|Soft|Heavy|Synthetic)\s?(\d{1,2})?(?!\d)"),
    re.compile(r"\b(Fm|Gd|Sft|Hvy|Syn)\s?(\d{1,2})?(?!\d)"),
)
_CONDITION_ABBREVS = {"Fm": "Firm", "Gd": "Good", "Sft": "Soft", "Hvy": "Heavy", "Syn": "Synthetic"}
_CLASS_PATTERNS = (
    re.compile(r"\b(MDN(?:-[A-Z]+)?|BM\s?\d{2,3}|CL\s?\d|RST\s?\d+|G[123]|LR|HCP|SW|WFA|QLTY|OPEN)\b"),
    re.compile(r"\b(Maiden|Class\s?\d|Benchmark\s?\d+|Group\s?\d|Listed)\b", re.IGNORECASE),
)
_MARGIN_PATTERNS = (
    re.compile(r"\b(\d+(?:\.\d+)?)\s*L\b"),
    re.compile(r"Margin\s*:?\s*(\d+(?:\.\d+)?|NK|HD|SHD|SNK|NOSE|LNG|DST)\b", re.IGNORECASE),
)
_MARGIN_ABBREVS = {
    "NK": 0.05, "NOSE": 0.05,
    "HD": 0.1, "SHD": 0.1,
    "SNK": 0.2,
    "LNG": 15.0, "DST": 25.0,
}
_SECTIONAL_PATTERNS = (
    re.compile(r"\b600m\s*:?\s*(\d{2}\.\d{1,2})\b", re.IGNORECASE),
    re.compile(r"\bL600\s*:?\s*(\d{2}\.\d{1,2})\b", re.IGNORECASE),
    re.compile(r"\blast\s+600\s*:?\s*(\d{2}\.\d{1,2})\b", re.IGNORECASE),
)
# Label words that follow a name in the same row are never part of it
_NAME_WORD = r"(?!(?:Jockey|Trainer|Barrier|Weight|Margin|Track|Dist)\b|T:)[A-Z][A-Za-z.'\-]*"
_NAME = rf"({_NAME_WORD}(?:\s+{_NAME_WORD}){{1,2}})"
_JOCKEY_PATTERNS = (
    re.compile(rf"Jockey\s*:\s*{_NAME}"),
    re.compile(rf"\(\$[\d,]+\)\s+{_NAME}"),
    re.compile(rf"{_NAME}\s+\d{{2}}(?:\.\d)?kg"),
)
_TRAINER_PATTERNS = (
    re.compile(rf"Trainer\s*:\s*{_NAME}"),
    re.compile(rf"\bT:\s*{_NAME}"),
)
_TRIAL_RE = re.compile(r"\btrial\b|\bjump\s*-?\s*out\b|\bjumpout\b", re.IGNORECASE)
_TRIAL_TOKEN_RE = re.compile(r"^[TJ]\d")


def _first_match(patterns: Sequence[re.Pattern], text: str) -> Optional[re.Match]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def parse_position(text: str) -> Optional[int]:
    """Finishing position; leading bare numbers only count in 1..20."""
    # dd/mm/yy dates would otherwise read as "8/09" (8th of 9)
    text = _NUMERIC_DATE.sub(" ", text)
    for idx, pattern in enumerate(POSITION_PATTERNS):
        match = pattern.search(text)
        if not match:
            continue
        value = int(match.group(1))
        if idx == len(POSITION_PATTERNS) - 1 and not 1 <= value <= 20:
            continue
        if value > 0:
            return value
    return None


def parse_form_date(text: str) -> Optional[date]:
    """Race date from '08Sep24', '8 Sep 2024' or '08/09/24'."""
    for idx, pattern in enumerate(_DATE_PATTERNS):
        for match in pattern.finditer(text):
            day, month, year = match.groups()
            month_num = int(month) if idx == 2 else _MONTHS.get(month.lower()[:3])
            if not month_num:
                continue
            year_num = int(year) + 2000 if len(year) == 2 else int(year)
            try:
                return date(year_num, month_num, int(day))
            except ValueError:
                continue
    return None


def parse_margin(text: str) -> Optional[float]:
    match = _first_match(_MARGIN_PATTERNS, text)
    if not match:
        return None
    raw = match.group(1).upper()
    if raw in _MARGIN_ABBREVS:
        return _MARGIN_ABBREVS[raw]
    return float(raw)


def _parse_person(patterns: Sequence[re.Pattern], text: str) -> Optional[str]:
    for pattern in patterns:
        for match in pattern.finditer(text):
            candidate = match.group(1).strip()
            if looks_like_person_name(candidate):
                return candidate
    return None


def is_trial_row(text: str) -> bool:
    first_token = text.split(maxsplit=1)[0] if text.split() else ""
    return bool(_TRIAL_RE.search(text) or _TRIAL_TOKEN_RE.match(first_token))


def parse_sectional(text: str) -> Optional[float]:
    match = _first_match(_SECTIONAL_PATTERNS, text)
    return float(match.group(1)) if match else None


def parse_result_row(text: str) -> Optional[RaceResultDetail]:
    """One history row, or None when no position or date can be read."""
    position = parse_position(text)
    if position is None:
        return None
    race_date = parse_form_date(text)
    if race_date is None:
        # Same-day acceptances show up without a date; they are not history.
        return None

    track = _first_match(_TRACK_PATTERNS, text)
    distance = _first_match(_DISTANCE_PATTERNS, text)
    condition = _first_match(_CONDITION_PATTERNS, text)
    race_class = _first_match(_CLASS_PATTERNS, text)

    condition_text = None
    if condition:
        word = _CONDITION_ABBREVS.get(condition.group(1), condition.group(1))
        condition_text = f"{word}{condition.group(2) or ''}"

    return RaceResultDetail(
        position=position,
        margin=parse_margin(text),
        track=track.group(1) if track else "",
        race_date=race_date,
        distance=int(distance.group(1)) if distance else None,
        condition=condition_text,
        race_class=" ".join(race_class.group(1).split()) if race_class else None,
        sectional_time=parse_sectional(text),
        jockey=_parse_person(_JOCKEY_PATTERNS, text),
        trainer=_parse_person(_TRAINER_PATTERNS, text),
    )


# ──────────────────────────────────────────────
# Reconciliation
# ──────────────────────────────────────────────

def reconcile(form: Optional[str], rows: Sequence[RaceResultDetail]) -> list[RaceResultDetail]:
    """Merge page rows into the positions given by the form string.

    The form string decides which positions make up the recent run and in
    what order; each position borrows metadata from the first page row with
    the same position. Without a form string the page rows stand as parsed.
    """
    if not form or not form.strip():
        return sorted(rows, key=lambda r: r.race_date or date.min, reverse=True)[:MAX_RESULTS]

    reconciled = []
    for position in recent_positions(form, MAX_RESULTS):
        match = next((row for row in rows if row.position == position), None)
        reconciled.append(match if match is not None else RaceResultDetail(position=position))
    return reconciled


# ──────────────────────────────────────────────
# Stats labels
# ──────────────────────────────────────────────

def _stats(match: Optional[re.Match]) -> Optional[StatsRecord]:
    if not match:
        return None
    starts, wins, seconds, thirds = (int(g) for g in match.groups()[-4:])
    return StatsRecord(starts=starts, wins=wins, seconds=seconds, thirds=thirds)


def parse_up_results(text: str) -> UpResults:
    """'1st Up: 2:1-1-0' and '2nd Up: ...'; a missing label stays None."""
    return UpResults(
        first_up=_stats(re.search(rf"1st\s*Up\s*:\s*{_STATS}", text, re.IGNORECASE)),
        second_up=_stats(re.search(rf"2nd\s*Up\s*:\s*{_STATS}", text, re.IGNORECASE)),
    )


def _label_stats(text: str) -> dict[str, Optional[StatsRecord]]:
    return {
        "combined": _stats(re.search(rf"Track\s*/\s*Dist(?:ance)?\s*:\s*{_STATS}", text, re.IGNORECASE)),
        "track": _stats(re.search(rf"(?<![/\w])Track\s*:\s*{_STATS}", text, re.IGNORECASE)),
        "distance": _stats(re.search(rf"(?<![/\w])Dist(?:ance)?\s*:\s*{_STATS}", text, re.IGNORECASE)),
    }


def parse_condition_stats(text: str) -> tuple[Optional[str], Optional[StatsRecord]]:
    """The going label with the most runs, e.g. ('Soft', 5:1-2-0)."""
    best_label, best = None, None
    for match in re.finditer(rf"(?<!\w)(Good|Soft|Heavy|Firm|Synthetic)\s*:\s*{_STATS}", text, re.IGNORECASE):
        record = _stats(match)
        if best is None or record.starts > best.starts:
            best_label, best = match.group(1).title(), record
    return best_label, best


def _stats_scopes(soup: BeautifulSoup) -> list[str]:
    scopes: list[str] = []
    for el in soup.select(".horse-stats, .form-stats, .stats, [id*='Stats'], [id*='stats']"):
        scopes.append(" ".join(el.get_text(" ").split()))
    scopes.append(" ".join(soup.get_text(" ").split()))
    return scopes


def _distance_fallback(history: Sequence[RaceResultDetail], race_distance: Optional[int]) -> PerformanceStats:
    """Distance tally from the reconciled runs themselves."""
    if not race_distance:
        return PerformanceStats()
    runs = [
        r for r in history
        if r.distance is not None and abs(r.distance - race_distance) <= DISTANCE_TOLERANCE
    ]
    return PerformanceStats(
        starts=len(runs),
        wins=sum(1 for r in runs if r.position == 1),
        seconds=sum(1 for r in runs if r.position == 2),
        thirds=sum(1 for r in runs if r.position == 3),
    )


def parse_track_distance_stats(
    soup: BeautifulSoup,
    history: Sequence[RaceResultDetail],
    race_distance: Optional[int] = None,
) -> TrackDistanceStats:
    scopes = _stats_scopes(soup)
    labelled: dict[str, Optional[StatsRecord]] = {}
    for scope in scopes:
        labelled = _label_stats(scope)
        if any(labelled.values()):
            break

    condition_label, condition = None, None
    for scope in scopes:
        condition_label, condition = parse_condition_stats(scope)
        if condition is not None:
            break

    if any(labelled.values()):
        return TrackDistanceStats(
            track=labelled["track"] or PerformanceStats(),
            distance=labelled["distance"] or PerformanceStats(),
            combined=labelled["combined"] or PerformanceStats(),
            condition=condition,
            condition_label=condition_label,
        )

    # No labels: only the distance can be inferred; track success is never assumed.
    logger.debug("No Track/Dist labels, using distance-only fallback")
    return TrackDistanceStats(
        distance=_distance_fallback(history, race_distance),
        condition=condition,
        condition_label=condition_label,
    )


# ──────────────────────────────────────────────
# Document
# ──────────────────────────────────────────────

def _row_text(row: Tag) -> str:
    return clean_text(row.get_text(" ")) or ""


def parse_horse_form(
    html: str,
    horse_code: str,
    form: Optional[str] = None,
    race_distance: Optional[int] = None,
) -> Optional[HorseForm]:
    """Parse a horse history document; None when the results table is missing."""
    soup = parse_html(html)
    table = soup.find("table", class_=HISTORY_TABLE_CLASS)
    if table is None:
        logger.warning(f"No form table for horse {horse_code}")
        return None

    results: list[RaceResultDetail] = []
    trials: list[float] = []
    for row in table.find_all("tr")[1:]:
        text = _row_text(row)
        if not text:
            continue
        if is_trial_row(text):
            sectional = parse_sectional(text)
            if sectional is not None and len(trials) < MAX_TRIALS:
                trials.append(sectional)
            continue
        if len(results) >= MAX_RESULTS:
            continue
        result = parse_result_row(text)
        if result is None:
            logger.debug(f"Unparsed history row for {horse_code}: {text[:80]}")
            continue
        results.append(result)

    history = reconcile(form, results)
    page_text = " ".join(soup.get_text(" ").split())
    career = _stats(re.search(rf"Career\s*:?\s*{_STATS}", page_text, re.IGNORECASE))

    return HorseForm(
        horse_code=horse_code,
        last5=tuple(history),
        up_results=parse_up_results(page_text),
        trial_sectionals=tuple(trials),
        stats=parse_track_distance_stats(soup, history, race_distance),
        career=career,
    )


async def fetch_horse_form(
    fetcher: Fetcher,
    horse: Horse,
    key: VenueKey,
    race_distance: Optional[int] = None,
    base_url: Optional[str] = None,
) -> Optional[HorseForm]:
    """Fetch and parse one horse's history; None if it cannot be had."""
    url = horse_form_url(horse.horse_code, key, horse.race_entry, base_url or get_settings().base_url)
    try:
        html = await fetcher.fetch(url)
    except ScraperError as e:
        logger.warning(f"No form for {horse.name}: {e}")
        return None
    return parse_horse_form(html, horse.horse_code, horse.form, race_distance)
