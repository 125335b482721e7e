#!/usr/bin/env python3
"""Dry run: analyse one day's meetings and print ranked selections.

Usage:
    python scripts/analyse_meeting.py                         # today (Melbourne)
    python scripts/analyse_meeting.py --date 2025-08-27
    python scripts/analyse_meeting.py --track Sandown --top 3
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from steamer.analysis import analyse_date
from steamer.config import get_settings, melb_today
from steamer.models import AnalysisResult, ScoredHorse
from steamer.scrapers.base import BaseScraper


def _format_horse(sh: ScoredHorse) -> str:
    h = sh.horse
    flags = " *standout*" if sh.is_standout else ""
    line = (
        f"  {sh.rank:>2}. ({h.number:>2}) {h.name:<24} {sh.score:6.1f}  "
        f"b{h.barrier:<2} {h.weight:>4.1f}kg  {h.jockey} / {h.trainer}{flags}"
    )
    parts = [f"{name}={value:.1f}" for name, value in sh.breakdown.components().items() if value]
    return f"{line}\n      [{sh.breakdown.category.value}] {', '.join(parts) or 'no points'}"


def print_result(result: AnalysisResult) -> None:
    if not result.success:
        print(f"Analysis failed: {result.error} ({result.processing_time:.2f}s)")
        return

    for track_result in result.results:
        track = track_result.track
        print(f"\n{'=' * 70}\n{track.name} ({track.state})")
        if track_result.error:
            print(f"  {track_result.error}")
            continue
        for race_result in track_result.races:
            race = race_result.race
            print(f"\nR{race.number} {race.time} {race.name} {race.distance}m [{race.track_condition}]")
            if race_result.error:
                print(f"  {race_result.error}")
                continue
            for sh in race_result.top_selections:
                print(_format_horse(sh))
            bet = race_result.recommendation
            if bet is not None and bet.confidence:
                print(f"  -> {bet.tier.value} (gap {bet.gap:.1f}): {bet.confidence}")

    print(f"\n{result.total_horses_analyzed} horses analysed in {result.processing_time:.2f}s")


async def run(race_date: date, tracks: list[str], top: int | None) -> AnalysisResult:
    settings = get_settings()
    if top is not None:
        settings = settings.model_copy(update={"top_selections": top})
    async with BaseScraper(settings.request_timeout, settings.max_concurrent_fetches) as scraper:
        return await analyse_date(scraper, race_date, tracks or None, settings=settings)


def main():
    parser = argparse.ArgumentParser(description="Analyse a day's race meetings")
    parser.add_argument("--date", type=date.fromisoformat, default=None,
                        help="Race date YYYY-MM-DD (default: today in Melbourne)")
    parser.add_argument("--track", action="append", default=[],
                        help="Only venues whose name contains this (repeatable)")
    parser.add_argument("--top", type=int, default=None, help="Selections shown per race")
    args = parser.parse_args()

    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    result = asyncio.run(run(args.date or melb_today(), args.track, args.top))
    print_result(result)
    sys.exit(0 if result.success else 1)


if __name__ == "__main__":
    main()
