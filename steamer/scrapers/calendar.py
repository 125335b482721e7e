"""Calendar scraper: discovers the meetings racing on a date.

Scans the Racing Australia calendar for links carrying a venue key,
keeps the ones whose date token matches the requested day and builds the
pre-race field link for each.
"""

import logging
import re
from datetime import date
from typing import Optional

from bs4 import Tag

from steamer.config import get_settings, melb_today
from steamer.models import Track
from steamer.scrapers.base import Fetcher, parse_html
from steamer.scrapers.urls import (
    calendar_url,
    date_tokens_match,
    decode_key,
    extract_key_param,
    track_form_url,
)

logger = logging.getLogger(__name__)

_MAX_RACES = 12


def parse_calendar(html: str, race_date: date, base_url: Optional[str] = None) -> list[Track]:
    """Extract tracks racing on ``race_date`` from a calendar document.

    Results links and field links both carry the key; either way the track
    is given the pre-race field URL. No match is an empty list.
    """
    base_url = base_url or get_settings().base_url
    soup = parse_html(html)
    tracks: list[Track] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        escaped = extract_key_param(anchor["href"])
        if not escaped:
            continue
        key = decode_key(escaped)
        if key is None:
            logger.debug(f"Undecodable venue key: {escaped}")
            continue
        if not date_tokens_match(key.date_token, race_date):
            continue
        if key.raw in seen:
            continue
        seen.add(key.raw)

        tracks.append(Track(
            key=key.raw,
            name=key.venue,
            state=key.state,
            date_token=key.date_token,
            race_count=_count_races(anchor),
            url=track_form_url(key, base_url),
        ))

    logger.info(f"Calendar: {len(tracks)} tracks for {race_date}")
    return tracks


def _count_races(anchor: Tag) -> int:
    """Race count from the numeric cells that share the anchor's table row."""
    row = anchor.find_parent("tr")
    if row is None:
        return 0
    for cell in row.find_all("td"):
        if any(parent is cell for parent in anchor.parents):
            continue
        text = cell.get_text(strip=True)
        if re.fullmatch(r"\d{1,2}", text) and 1 <= int(text) <= _MAX_RACES:
            return int(text)
    return 0


async def scrape_calendar(
    fetcher: Fetcher,
    race_date: Optional[date] = None,
    base_url: Optional[str] = None,
) -> list[Track]:
    """Fetch the calendar and return the tracks racing on a date."""
    race_date = race_date or melb_today()
    base_url = base_url or get_settings().base_url
    html = await fetcher.fetch(calendar_url(base_url))
    return parse_calendar(html, race_date, base_url)
