"""Scraper for Racing Australia jockey/trainer premierships."""

import asyncio
import logging
import re
from typing import Optional

from bs4 import BeautifulSoup, Tag

from steamer.config import get_settings
from steamer.models import JockeyPremiership, PremiershipEntry, TrainerPremiership
from steamer.scrapers.base import Fetcher, parse_html, parse_int
from steamer.scrapers.urls import premiership_url

logger = logging.getLogger(__name__)

MIN_CELLS = 8

_ENTRY_TYPES: dict[str, type[PremiershipEntry]] = {
    "Jockey": JockeyPremiership,
    "Trainer": TrainerPremiership,
}


def _find_table(soup: BeautifulSoup, table_name: str) -> Optional[Tag]:
    table = soup.find("table", class_="premiership-table")
    if not table:
        # Try alternate table finding
        table = soup.find("table", id=lambda x: x and table_name in str(x))
    if not table:
        # Find any table with premiership headings
        for t in soup.find_all("table"):
            if t.find("th", string=re.compile(rf"{table_name}|Strike Rate", re.I)):
                table = t
                break
    return table


def parse_premiership_table(html: str, table_name: str = "Jockey", limit: int = 20) -> list[PremiershipEntry]:
    """Parse a premiership table into ranked entries.

    Column order: Name, 1st, 2nd, 3rd, 4th, 5th, Prize$, SR%, Starts.
    Rank is the data row's position in the table.
    """
    entry_type = _ENTRY_TYPES[table_name]
    soup = parse_html(html)
    table = _find_table(soup, table_name)
    if not table:
        logger.warning(f"Could not find {table_name.lower()} premiership table")
        return []

    entries: list[PremiershipEntry] = []
    for row in table.find_all("tr")[1:]:
        if len(entries) >= limit:
            break
        cells = row.find_all(["td", "th"])
        if len(cells) < MIN_CELLS:
            continue

        # Extract name (first cell, may have link)
        name_link = cells[0].find("a")
        name = (name_link or cells[0]).get_text(" ", strip=True)
        if not name or name.lower() in ("jockey", "trainer", "name"):
            continue

        entries.append(entry_type(
            name=" ".join(name.split()),
            rank=len(entries) + 1,
            wins=parse_int(cells[1].get_text(strip=True)) or 0,
            seconds=parse_int(cells[2].get_text(strip=True)) or 0,
            thirds=parse_int(cells[3].get_text(strip=True)) or 0,
            total_starts=(parse_int(cells[8].get_text(strip=True)) or 0) if len(cells) > 8 else 0,
        ))

    logger.info(f"Parsed {len(entries)} {table_name.lower()}s from premiership table")
    return entries


async def scrape_premiership(
    fetcher: Fetcher,
    table_name: str,
    state: Optional[str] = None,
    season: Optional[str] = None,
    base_url: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[PremiershipEntry]:
    settings = get_settings()
    url = premiership_url(
        table_name,
        state or settings.premiership_state,
        season or settings.premiership_season,
        base_url or settings.base_url,
    )
    logger.info(f"Scraping {table_name.lower()} premiership: {url}")
    html = await fetcher.fetch(url)
    return parse_premiership_table(html, table_name, limit or settings.premiership_limit)


async def scrape_premierships(
    fetcher: Fetcher,
    state: Optional[str] = None,
    season: Optional[str] = None,
    base_url: Optional[str] = None,
    limit: Optional[int] = None,
) -> tuple[list[PremiershipEntry], list[PremiershipEntry]]:
    """Jockey and trainer tables, fetched together."""
    jockeys, trainers = await asyncio.gather(
        scrape_premiership(fetcher, "Jockey", state, season, base_url, limit),
        scrape_premiership(fetcher, "Trainer", state, season, base_url, limit),
    )
    return jockeys, trainers
