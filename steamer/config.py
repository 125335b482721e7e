"""Application configuration using Pydantic settings."""

from datetime import date, datetime
from functools import lru_cache
from typing import Annotated
from zoneinfo import ZoneInfo

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

MELB_TZ = ZoneInfo("Australia/Melbourne")

DEFAULT_CHAMPION_JOCKEYS = frozenset({"Craig Williams", "C Williams", "C.Williams"})


def melb_now() -> datetime:
    """Current time in Melbourne (AEDT/AEST automatically)."""
    return datetime.now(MELB_TZ)


def melb_today() -> date:
    """Today's date in Melbourne timezone."""
    return melb_now().date()


def current_season() -> str:
    """Premiership season label (calendar year in Melbourne)."""
    return str(melb_today().year)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="STEAMER_",
        extra="ignore",
    )

    # App
    log_level: str = "INFO"

    # Racing Australia
    base_url: str = "https://www.racingaustralia.horse"
    request_timeout: float = 30.0
    max_concurrent_fetches: int = 8

    # Premierships
    premiership_state: str = "VIC"
    premiership_season: str = ""
    premiership_limit: int = 20

    # Scoring
    champion_jockeys: Annotated[frozenset[str], NoDecode] = DEFAULT_CHAMPION_JOCKEYS
    top_selections: int = 5

    @field_validator("champion_jockeys", mode="before")
    @classmethod
    def _split_jockeys(cls, value):
        """Accept a comma-separated list from the environment."""
        if isinstance(value, str):
            return frozenset(name.strip() for name in value.split(",") if name.strip())
        return value

    def model_post_init(self, __context) -> None:
        """Default the premiership season to the current one."""
        if not self.premiership_season:
            object.__setattr__(self, "premiership_season", current_season())


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
