"""Racing Australia Free Fields scraper.

Parses the pre-race field document for one meeting into races and runners.

URL pattern:
  https://www.racingaustralia.horse/FreeFields/Form.aspx
    ?Key={YYYYMmmDD}%2C{STATE}%2C{Venue Name}&recentForm=Y

Markup differs between meetings, so race containers are located by an
ordered set of strategies (see ``RACE_STRATEGIES``); the first one that finds
anything wins and at most ``MAX_RACES`` containers are used.
"""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from bs4 import BeautifulSoup, Tag

from steamer.models import Race, Track
from steamer.scrapers.base import Fetcher, clean_text, parse_html
from steamer.scrapers.runners import extract_horses
from steamer.scrapers.strategies import first_non_empty

logger = logging.getLogger(__name__)

MAX_RACES = 10
DEFAULT_CONDITION = "Good"

RACE_HEADER_RE = re.compile(
    r"Race\s+(\d+)\s*-\s*(\d{1,2}:\d{2})\s*([AP]M)\s+(.+?)\s*\(\s*(\d{3,5})\s*METRES?\s*\)",
    re.IGNORECASE,
)
_CONDITION_LABEL_RE = re.compile(r"Track\s+Condition\s*:", re.IGNORECASE)
_CONDITION_VALUE_RE = re.compile(r"Track\s+Condition\s*:\s*([A-Za-z]+(?:\s*\d{1,2}\b)?)", re.IGNORECASE)
_CLASS_RE = re.compile(
    r"(Class\s*\d|Maiden|BM\s*\d+|Benchmark\s*\d+|Group\s*\d|"
    r"Listed|Open\s*Handicap|Handicap|Set\s*Weights?|Restricted|Quality)",
    re.IGNORECASE,
)
_HEADER_SELECTOR = "th, h1, h2, h3, h4, caption, .race-title, .raceTitle, span.raceNum"


@dataclass
class RaceContainer:
    """Where a race's header lives and where its runners live."""

    header: Tag
    body: Tag


@dataclass(frozen=True)
class RaceHeader:
    number: int
    time: str
    name: str
    distance: int


def parse_race_header(text: str) -> Optional[RaceHeader]:
    """Parse 'Race 1 - 12:30PM MAIDEN PLATE (1200 METRES)'."""
    match = RACE_HEADER_RE.search(" ".join(text.split()))
    if not match:
        return None
    number, clock, meridiem, name, distance = match.groups()
    name = re.sub(r"\s*Times\s+displayed.*$", "", name, flags=re.IGNORECASE).strip()
    return RaceHeader(
        number=int(number),
        time=f"{clock} {meridiem.upper()}",
        name=name,
        distance=int(distance),
    )


def parse_track_condition(soup: BeautifulSoup) -> str:
    """Meeting-wide condition from the 'Track Condition:' label.

    Defaults to Good only when the page has no such label at all.
    """
    text = " ".join(soup.get_text(" ").split())
    if not _CONDITION_LABEL_RE.search(text):
        return DEFAULT_CONDITION
    match = _CONDITION_VALUE_RE.search(text)
    if not match:
        logger.warning("Track Condition label present but unreadable")
        return "Unknown"
    return " ".join(match.group(1).split())


# ──────────────────────────────────────────────
# Container strategies
# ──────────────────────────────────────────────

def _next_block(tag: Tag) -> Optional[Tag]:
    """The first table/div after ``tag`` that is not nested inside it."""
    for candidate in tag.find_all_next(["table", "div"]):
        if not any(parent is tag for parent in candidate.parents):
            return candidate
    return None


def _is_fields_block(tag: Tag) -> bool:
    classes = " ".join(tag.get("class", [])).lower()
    if "field" in classes:
        return True
    first_row = tag.find("tr")
    if first_row is None:
        return False
    first_cell = first_row.find(["th", "td"])
    return first_cell is not None and first_cell.get_text(strip=True) == "No"


def _title_then_fields(soup: BeautifulSoup) -> list[RaceContainer]:
    titles: list[Tag] = list(soup.select(".race-title"))
    for span in soup.select("span.raceNum"):
        table = span.find_parent("table")
        if table is not None and not any(t is table for t in titles):
            titles.append(table)
    containers = []
    for title in titles:
        body = _next_block(title)
        if body is not None and _is_fields_block(body):
            containers.append(RaceContainer(header=title, body=body))
    return containers


def _class_tables(soup: BeautifulSoup) -> list[RaceContainer]:
    tables = soup.select("table.race-fields, table.raceFields, table.race-table, table.raceTable, table.race")
    return [RaceContainer(t, t) for t in tables]


def _class_divs(soup: BeautifulSoup) -> list[RaceContainer]:
    divs = soup.select("div.race-container, div.raceContainer, div.race-fields, div.race")
    return [RaceContainer(d, d) for d in divs]


def _race_like_tables(soup: BeautifulSoup) -> list[RaceContainer]:
    return [
        RaceContainer(t, t) for t in soup.find_all("table")
        if re.search(r"\b(?:Race|Field|Horse|Runner)\b", t.get_text(" "), re.IGNORECASE)
    ]


def _text_shaped_divs(soup: BeautifulSoup) -> list[RaceContainer]:
    found = []
    for div in soup.find_all("div"):
        lines = [line.strip() for line in div.get_text("\n").splitlines() if line.strip()]
        if len(lines) >= 3 and all(
            re.search(r"\d", line) and re.search(r"[A-Za-z]{3,}", line) for line in lines
        ):
            found.append(RaceContainer(div, div))
    return found


RACE_STRATEGIES = (
    _title_then_fields,
    _class_tables,
    _class_divs,
    _race_like_tables,
    _text_shaped_divs,
)


def _find_header(container: RaceContainer) -> Optional[RaceHeader]:
    candidates: list[Tag] = []
    if container.header.name in ("th", "h1", "h2", "h3", "h4", "caption"):
        candidates.append(container.header)
    candidates.extend(container.header.select(_HEADER_SELECTOR))
    for el in candidates:
        source = el.parent if el.name == "span" and el.parent is not None else el
        header = parse_race_header(source.get_text(" "))
        if header is not None:
            return header
    return None


def _surface(name: str, condition: str) -> str:
    if re.search(r"synthetic|poly", f"{name} {condition}", re.IGNORECASE):
        return "Synthetic"
    return "Turf"


def parse_track_races(html: str, track: Track, race_date: date) -> list[Race]:
    """Extract races with their runners from a field document."""
    soup = parse_html(html)
    condition = parse_track_condition(soup)
    containers = first_non_empty(RACE_STRATEGIES, soup, limit=MAX_RACES)

    races: list[Race] = []
    seen: set[int] = set()
    for container in containers:
        header = _find_header(container)
        if header is None:
            logger.debug("Discarding container without a race header")
            continue
        if not 1 <= header.number <= MAX_RACES or header.number in seen:
            logger.debug(f"Discarding race number {header.number}")
            continue

        horses = extract_horses(container.body, header.number, track.key)
        if not horses:
            logger.info(f"{track.name} R{header.number}: no runners extracted, skipping")
            continue
        seen.add(header.number)

        class_match = _CLASS_RE.search(header.name)
        races.append(Race(
            id=f"{track.key}_race{header.number}",
            number=header.number,
            name=clean_text(header.name) or header.name,
            distance=header.distance,
            time=header.time,
            venue=track.name,
            race_date=race_date,
            track_key=track.key,
            surface=_surface(header.name, condition),
            track_condition=condition,
            race_class=class_match.group(1).strip() if class_match else "",
            horses=tuple(horses),
        ))

    logger.info(f"RA fields: {len(races)} races for {track.name} ({condition})")
    return races


async def scrape_track_races(fetcher: Fetcher, track: Track, race_date: date) -> list[Race]:
    """Fetch a track's field document and extract its races."""
    html = await fetcher.fetch(track.url)
    return parse_track_races(html, track, race_date)
