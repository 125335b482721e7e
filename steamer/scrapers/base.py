"""Fetch boundary and text helpers shared by the Racing Australia extractors."""

import asyncio
import logging
import re
from typing import Optional, Protocol

import httpx
from bs4 import BeautifulSoup

logger = logging.getLogger(__name__)


class ScraperError(Exception):
    """A document could not be fetched or came back empty."""


class Fetcher(Protocol):
    """Anything that can turn a URL into a document body."""

    async def fetch(self, url: str) -> str: ...


class BaseScraper:
    """HTTP document fetcher shared by all Racing Australia extractors."""

    # Default headers to mimic a browser
    DEFAULT_HEADERS = {
        "User-Agent": (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        ),
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-AU,en;q=0.9",
    }

    def __init__(self, timeout: float = 30.0, max_concurrent: int = 8):
        """Client is created lazily on first fetch."""
        self.timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.DEFAULT_HEADERS,
                timeout=self.timeout,
                follow_redirects=True,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "BaseScraper":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def fetch(self, url: str) -> str:
        """GET a document body, bounded by the concurrency limit."""
        async with self._semaphore:
            try:
                logger.info(f"Fetching: {url}")
                response = await self.client.get(url)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                logger.error(f"HTTP error fetching {url}: {e}")
                raise ScraperError(f"HTTP {e.response.status_code}: {url}")
            except httpx.RequestError as e:
                logger.error(f"Request error fetching {url}: {e}")
                raise ScraperError(f"Request failed: {url}")
        if not response.text.strip():
            raise ScraperError(f"Empty document: {url}")
        return response.text


def parse_html(html: str) -> BeautifulSoup:
    """Parse HTML into BeautifulSoup object."""
    return BeautifulSoup(html, "lxml")


def clean_text(text: Optional[str]) -> Optional[str]:
    """Clean and normalize text."""
    if text is None:
        return None
    return " ".join(text.strip().split())


def parse_odds(odds_str: Optional[str]) -> Optional[float]:
    """Best-effort decimal odds; None for missing or zero prices."""
    if not odds_str:
        return None
    match = re.search(r"\d+(?:\.\d+)?", odds_str.replace(",", ""))
    if not match:
        return None
    value = float(match.group(0))
    return value if value > 0 else None


def parse_weight(weight_str: Optional[str]) -> Optional[float]:
    """Carried weight in kg from text such as '57.5kg'."""
    if not weight_str:
        return None
    try:
        cleaned = weight_str.lower().replace("kg", "").strip()
        return float(cleaned)
    except ValueError:
        return None


def parse_int(value: Optional[str]) -> Optional[int]:
    """Parse integer from string, ignoring thousands separators and symbols."""
    if not value:
        return None
    cleaned = re.sub(r"[^\d]", "", value)
    return int(cleaned) if cleaned else None
