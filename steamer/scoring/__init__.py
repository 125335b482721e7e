"""Horse scoring: individual laws and the race ranking engine."""

from steamer.scoring.engine import (
    ScoringContext,
    classify_bets,
    determine_category,
    rank_race,
    resolve_ties,
    score_horse,
)

__all__ = [
    "ScoringContext",
    "classify_bets",
    "determine_category",
    "rank_race",
    "resolve_ties",
    "score_horse",
]
