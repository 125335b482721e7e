"""Shared test fixtures for steamer."""

from datetime import date

import pytest

from steamer.config import get_settings
from steamer.models import Track
from steamer.scrapers.base import ScraperError


class FakeFetcher:
    """Serves canned documents by URL; unknown URLs fail like a 404."""

    def __init__(self, pages: dict[str, str] | None = None):
        self.pages = dict(pages or {})
        self.requested: list[str] = []

    async def fetch(self, url: str) -> str:
        self.requested.append(url)
        if url not in self.pages:
            raise ScraperError(f"HTTP 404: {url}")
        return self.pages[url]


@pytest.fixture
def fake_fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    """Settings are cached per process; tests that patch env need a fresh copy."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def race_date() -> date:
    return date(2025, 8, 27)


@pytest.fixture
def sample_track() -> Track:
    return Track(
        key="2025Aug27,VIC,Sandown Hillside",
        name="Sandown Hillside",
        state="VIC",
        date_token="2025Aug27",
        race_count=8,
        url=(
            "https://www.racingaustralia.horse/FreeFields/Form.aspx"
            "?Key=2025Aug27%2CVIC%2CSandown%20Hillside&recentForm=Y"
        ),
    )
