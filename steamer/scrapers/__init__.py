"""Racing Australia document extractors."""

from steamer.scrapers.base import BaseScraper, Fetcher, ScraperError
from steamer.scrapers.calendar import parse_calendar, scrape_calendar
from steamer.scrapers.horse_form import fetch_horse_form, parse_horse_form
from steamer.scrapers.ra_fields import parse_track_races, scrape_track_races
from steamer.scrapers.racing_australia import parse_premiership_table, scrape_premierships

__all__ = [
    "BaseScraper",
    "Fetcher",
    "ScraperError",
    "parse_calendar",
    "scrape_calendar",
    "fetch_horse_form",
    "parse_horse_form",
    "parse_track_races",
    "scrape_track_races",
    "parse_premiership_table",
    "scrape_premierships",
]
