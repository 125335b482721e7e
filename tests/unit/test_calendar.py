"""Tests for track discovery from the RA calendar."""

from datetime import date

import pytest

from steamer.scrapers.base import ScraperError
from steamer.scrapers.calendar import parse_calendar, scrape_calendar

BASE = "https://www.racingaustralia.horse"

CALENDAR_HTML = """
<html><body>
<table class="race-calendar">
  <tr><th>Venue</th><th>Races</th></tr>
  <tr>
    <td><a href="/FreeFields/Form.aspx?Key=2025Aug27%2CVIC%2CSandown%20Hillside">Sandown Hillside</a></td>
    <td>8</td>
  </tr>
  <tr>
    <td><a href="/FreeFields/Results.aspx?Key=2025Aug27%2CNSW%2CWarwick%20Farm">Warwick Farm</a></td>
    <td>Results</td><td>7</td>
  </tr>
  <tr>
    <td><a href="/FreeFields/Form.aspx?Key=2025Aug28%2CQLD%2CDoomben">Doomben</a></td>
    <td>9</td>
  </tr>
  <tr>
    <td><a href="/FreeFields/Form.aspx?Key=2025Aug27%2CVIC%2CSandown%20Hillside&recentForm=Y">again</a></td>
    <td>8</td>
  </tr>
  <tr><td><a href="/FreeFields/Form.aspx?Key=2025Aug27%2CVIC">broken</a></td></tr>
  <tr><td><a href="/home.aspx">Home</a></td></tr>
</table>
</body></html>
"""


class TestParseCalendar:
    def test_only_matching_date(self):
        tracks = parse_calendar(CALENDAR_HTML, date(2025, 8, 27), BASE)
        assert [t.name for t in tracks] == ["Sandown Hillside", "Warwick Farm"]

    def test_other_dates_never_included(self):
        tracks = parse_calendar(CALENDAR_HTML, date(2025, 8, 28), BASE)
        assert [t.name for t in tracks] == ["Doomben"]

    def test_track_fields(self):
        sandown = parse_calendar(CALENDAR_HTML, date(2025, 8, 27), BASE)[0]
        assert sandown.key == "2025Aug27,VIC,Sandown Hillside"
        assert sandown.state == "VIC"
        assert sandown.date_token == "2025Aug27"
        assert sandown.race_count == 8

    def test_results_link_rewritten_to_fields(self):
        warwick = parse_calendar(CALENDAR_HTML, date(2025, 8, 27), BASE)[1]
        assert warwick.url == (
            f"{BASE}/FreeFields/Form.aspx?Key=2025Aug27%2CNSW%2CWarwick%20Farm&recentForm=Y"
        )
        assert warwick.race_count == 7

    def test_no_matches(self):
        assert parse_calendar(CALENDAR_HTML, date(2025, 9, 1), BASE) == []

    def test_empty_document(self):
        assert parse_calendar("<html></html>", date(2025, 8, 27), BASE) == []


class TestScrapeCalendar:
    @pytest.mark.asyncio
    async def test_fetches_home_page(self, fake_fetcher):
        fake_fetcher.pages[f"{BASE}/home.aspx"] = CALENDAR_HTML
        tracks = await scrape_calendar(fake_fetcher, date(2025, 8, 27))
        assert len(tracks) == 2
        assert fake_fetcher.requested == [f"{BASE}/home.aspx"]

    @pytest.mark.asyncio
    async def test_fetch_error_propagates(self, fake_fetcher):
        with pytest.raises(ScraperError):
            await scrape_calendar(fake_fetcher, date(2025, 8, 27))
