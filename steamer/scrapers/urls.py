"""Racing Australia URL construction and composite venue keys.

Meeting pages are keyed by ``<DateToken>,<State>,<VenueName>`` where the
date token is ``yyyy`` + English month abbreviation + ``dd`` (``2025Aug27``).
In links the key is percent-escaped: space as ``%20``, comma as ``%2C``.
"""

import re
from datetime import date
from typing import NamedTuple, Optional
from urllib.parse import unquote

DEFAULT_BASE_URL = "https://www.racingaustralia.horse"

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_DATE_TOKEN_RE = re.compile(r"^(\d{4})([A-Za-z]{3,4})(\d{1,2})$")


class VenueKey(NamedTuple):
    date_token: str
    state: str
    venue: str

    @property
    def raw(self) -> str:
        return f"{self.date_token},{self.state},{self.venue}"


def format_date_token(race_date: date) -> str:
    """Format a date as an RA key token (e.g. 2025Aug27)."""
    return f"{race_date.year}{_MONTHS[race_date.month - 1]}{race_date.day:02d}"


def normalize_date_token(token: str) -> Optional[tuple[int, str, int]]:
    """Comparable (year, month, day) for a date token.

    Month names are cut to three letters so "Sept" and "Sep" compare equal.
    """
    match = _DATE_TOKEN_RE.match(token.strip())
    if not match:
        return None
    year, month, day = match.groups()
    return int(year), month[:3].lower(), int(day)


def date_tokens_match(token: str, race_date: date) -> bool:
    normalized = normalize_date_token(token)
    return normalized is not None and normalized == normalize_date_token(format_date_token(race_date))


def encode_key(key: VenueKey) -> str:
    return key.raw.replace(",", "%2C").replace(" ", "%20")


def decode_key(escaped: str) -> Optional[VenueKey]:
    """Split an escaped composite key; None unless all three parts are present."""
    parts = unquote(escaped.replace("+", " ")).split(",", 2)
    if len(parts) != 3:
        return None
    date_token, state, venue = (p.strip() for p in parts)
    if not (date_token and state and venue):
        return None
    return VenueKey(date_token, state, venue)


def extract_key_param(href: str) -> Optional[str]:
    """Raw (still escaped) value of the Key query parameter in a link."""
    match = re.search(r"[?&]key=([^&#]+)", href, re.IGNORECASE)
    return match.group(1) if match else None


def calendar_url(base_url: str = DEFAULT_BASE_URL) -> str:
    return f"{base_url}/home.aspx"


def track_form_url(key: VenueKey, base_url: str = DEFAULT_BASE_URL) -> str:
    """Pre-race field document for a meeting (never the results page)."""
    return f"{base_url}/FreeFields/Form.aspx?Key={encode_key(key)}&recentForm=Y"


def horse_form_url(
    horse_code: str,
    key: VenueKey,
    race_entry: Optional[str] = None,
    base_url: str = DEFAULT_BASE_URL,
) -> str:
    """Full form history document for one horse."""
    url = (
        f"{base_url}/InteractiveForm/HorseFullForm.aspx"
        f"?horsecode={horse_code}&stage=FinalFields&Key={encode_key(key)}&src=horseform"
    )
    if race_entry:
        url += f"&raceentry={race_entry}"
    return url


def premiership_url(
    table: str,
    state: str,
    season: str,
    base_url: str = DEFAULT_BASE_URL,
) -> str:
    """Jockey or Trainer premiership table for a state and season."""
    return f"{base_url}/FreeServices/Premierships.aspx?State={state}&Season={season}&Table={table}"
