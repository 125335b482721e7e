"""Analysis orchestrator: tracks -> races -> horse forms -> ranked selections.

Premiership rankings are loaded once per run and shared read-only through
a ``ScoringContext``. Tracks and races run concurrently; within a race the
horse-history fetches fan out one per runner. A failure is contained at the
smallest scope it affects (horse, race, track); only a failure to load the
run's shared inputs fails the whole analysis.
"""

import asyncio
import logging
import time
from datetime import date
from typing import Optional, Sequence

from steamer.config import Settings, get_settings
from steamer.models import (
    AnalysisResult,
    HorseForm,
    JockeyTrainerCombination,
    Race,
    RaceResult,
    Track,
    TrackResult,
)
from steamer.scoring.engine import ScoringContext, rank_race
from steamer.scrapers.base import Fetcher, ScraperError
from steamer.scrapers.calendar import scrape_calendar
from steamer.scrapers.horse_form import fetch_horse_form
from steamer.scrapers.ra_fields import scrape_track_races
from steamer.scrapers.racing_australia import scrape_premierships
from steamer.scrapers.urls import VenueKey, decode_key

logger = logging.getLogger(__name__)

NO_FORM_ERROR = "No horses with real form data"
NO_HORSES_ERROR = "No horses found"
NO_RACES_ERROR = "No races found for this track"


def venue_key(track: Track) -> VenueKey:
    return decode_key(track.key) or VenueKey(track.date_token, track.state, track.name)


async def load_context(
    fetcher: Fetcher,
    settings: Settings,
    combinations: Optional[Sequence[JockeyTrainerCombination]] = None,
) -> ScoringContext:
    """Premierships and the other shared inputs for one run."""
    jockeys, trainers = await scrape_premierships(
        fetcher,
        settings.premiership_state,
        settings.premiership_season,
        settings.base_url,
        settings.premiership_limit,
    )
    logger.info(f"Loaded {len(jockeys)} jockeys, {len(trainers)} trainers")
    return ScoringContext(
        jockeys=tuple(jockeys),
        trainers=tuple(trainers),
        champion_jockeys=frozenset(settings.champion_jockeys),
        combinations=tuple(combinations or ()),
    )


async def fetch_race_forms(
    fetcher: Fetcher,
    track: Track,
    race: Race,
    base_url: Optional[str] = None,
) -> dict[str, Optional[HorseForm]]:
    """Fetch every runner's history at once; a failed runner maps to None."""
    key = venue_key(track)
    results = await asyncio.gather(
        *(fetch_horse_form(fetcher, horse, key, race.distance, base_url) for horse in race.horses),
        return_exceptions=True,
    )

    forms: dict[str, Optional[HorseForm]] = {}
    for horse, result in zip(race.horses, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, Exception):
            logger.error(f"Form for {horse.name} failed: {result}")
            forms[horse.id] = None
        else:
            forms[horse.id] = result
    return forms


async def analyse_race(
    fetcher: Fetcher,
    track: Track,
    race: Race,
    context: ScoringContext,
    top_n: int = 5,
    base_url: Optional[str] = None,
) -> RaceResult:
    start = time.perf_counter()
    if not race.horses:
        return RaceResult(race=race, error=NO_HORSES_ERROR, processing_time=time.perf_counter() - start)

    try:
        forms = await fetch_race_forms(fetcher, track, race, base_url)
        ranked = rank_race(race, forms, context)
    except Exception as e:
        logger.error(f"{track.name} R{race.number} failed: {e}")
        return RaceResult(race=race, error=str(e) or type(e).__name__, processing_time=time.perf_counter() - start)
    elapsed = time.perf_counter() - start

    if not ranked:
        logger.warning(f"{track.name} R{race.number}: {NO_FORM_ERROR.lower()}")
        return RaceResult(race=race, error=NO_FORM_ERROR, processing_time=elapsed)

    return RaceResult(
        race=race,
        top_selections=ranked[:top_n],
        all_horses=ranked,
        processing_time=elapsed,
    )


async def analyse_track(
    fetcher: Fetcher,
    track: Track,
    race_date: date,
    context: ScoringContext,
    top_n: int = 5,
    base_url: Optional[str] = None,
) -> TrackResult:
    """All races at one track, evaluated concurrently."""
    try:
        races = await scrape_track_races(fetcher, track, race_date)
    except ScraperError as e:
        logger.error(f"Could not load fields for {track.name}: {e}")
        return TrackResult(track=track, error=str(e))
    except Exception as e:
        logger.error(f"Could not parse fields for {track.name}: {e}")
        return TrackResult(track=track, error=str(e) or type(e).__name__)

    if not races:
        return TrackResult(track=track, error=NO_RACES_ERROR)

    results = await asyncio.gather(
        *(analyse_race(fetcher, track, race, context, top_n, base_url) for race in races)
    )
    logger.info(f"{track.name}: analysed {len(results)} races")
    return TrackResult(track=track, races=list(results))


async def analyse(
    fetcher: Fetcher,
    tracks: Sequence[Track],
    race_date: date,
    combinations: Optional[Sequence[JockeyTrainerCombination]] = None,
    settings: Optional[Settings] = None,
) -> AnalysisResult:
    """Analyse the given tracks for a race date.

    An error loading the shared inputs gives an unsuccessful result with
    no track results; per-track problems are reported on each TrackResult.
    """
    settings = settings or get_settings()
    start = time.perf_counter()
    try:
        context = await load_context(fetcher, settings, combinations)
        results = await asyncio.gather(
            *(
                analyse_track(fetcher, track, race_date, context, settings.top_selections, settings.base_url)
                for track in tracks
            )
        )
    except Exception as e:
        logger.error(f"Analysis failed: {e}")
        return AnalysisResult(
            success=False,
            error=str(e) or type(e).__name__,
            processing_time=time.perf_counter() - start,
        )

    total = sum(len(race.all_horses) for track in results for race in track.races)
    elapsed = time.perf_counter() - start
    logger.info(f"Analysed {len(results)} tracks, {total} horses in {elapsed:.2f}s")
    return AnalysisResult(
        results=list(results),
        processing_time=elapsed,
        total_horses_analyzed=total,
    )


async def analyse_date(
    fetcher: Fetcher,
    race_date: date,
    venue_filter: Optional[Sequence[str]] = None,
    combinations: Optional[Sequence[JockeyTrainerCombination]] = None,
    settings: Optional[Settings] = None,
) -> AnalysisResult:
    """Discover the day's tracks from the calendar, then analyse them.

    ``venue_filter`` keeps only tracks whose name contains one of the given
    substrings (case-insensitive).
    """
    settings = settings or get_settings()
    start = time.perf_counter()
    try:
        tracks = await scrape_calendar(fetcher, race_date, settings.base_url)
    except ScraperError as e:
        logger.error(f"Calendar unavailable: {e}")
        return AnalysisResult(success=False, error=str(e), processing_time=time.perf_counter() - start)

    if venue_filter:
        wanted = [v.lower() for v in venue_filter]
        tracks = [t for t in tracks if any(w in t.name.lower() for w in wanted)]
    return await analyse(fetcher, tracks, race_date, combinations, settings)
