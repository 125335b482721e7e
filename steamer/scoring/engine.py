"""Scoring engine: picks the laws for a horse's category and ranks a race.

All shared inputs (premierships, champion riders, combination records) come
in through a read-only ``ScoringContext`` built once per analysis run.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional, Sequence

from steamer.form_string import classify_form
from steamer.models import (
    BetTier,
    BettingRecommendation,
    Horse,
    HorseForm,
    JockeyTrainerCombination,
    PremiershipEntry,
    Race,
    ScoreBreakdown,
    ScoredHorse,
    ScoringCategory,
)
from steamer.names import names_match
from steamer.scoring import laws

logger = logging.getLogger(__name__)

FIRST_STARTER_TOTAL_CAP = 58.0

# (minimum gap, tier, confidence), checked in order
BET_THRESHOLDS = (
    (8.0, BetTier.SUPER_BET, "Highest confidence - significant advantage"),
    (5.0, BetTier.BEST_BET, "High confidence - clear advantage"),
    (3.0, BetTier.GOOD_BET, "Moderate confidence - some advantage"),
)


@dataclass(frozen=True)
class ScoringContext:
    """Read-only snapshot shared by every horse scored in one run."""

    jockeys: tuple[PremiershipEntry, ...] = ()
    trainers: tuple[PremiershipEntry, ...] = ()
    champion_jockeys: frozenset[str] = frozenset()
    combinations: tuple[JockeyTrainerCombination, ...] = field(default=())

    def find_combination(self, jockey: str, trainer: str) -> Optional[JockeyTrainerCombination]:
        for combo in self.combinations:
            if names_match(combo.jockey_name, jockey) and names_match(combo.trainer_name, trainer):
                return combo
        return None


def has_no_history(horse: Horse, form: HorseForm) -> bool:
    return not form.last5 and not any(ch.isdigit() for ch in horse.form)


def determine_category(horse: Horse, form: HorseForm) -> ScoringCategory:
    """Debutants with trial times override the form-string state."""
    if has_no_history(horse, form) and form.trial_sectionals:
        return ScoringCategory.FIRST_STARTER
    return classify_form(horse.form)


def _with_career(horse: Horse, form: HorseForm) -> Horse:
    if form.career is None:
        return horse
    return replace(
        horse,
        career_wins=form.career.wins,
        career_places=form.career.seconds + form.career.thirds,
    )


def score_horse(
    horse: Horse,
    race: Race,
    form: Optional[HorseForm],
    context: ScoringContext,
) -> Optional[ScoredHorse]:
    """Score one runner; None (excluded) when there is no form to score."""
    if form is None:
        logger.debug(f"{horse.name}: no form, excluded")
        return None

    category = determine_category(horse, form)
    history = laws.historical_runs(form.last5, race.race_date)

    # Laws that apply to every category
    points: dict[str, float] = {
        "barrier": laws.barrier_score(horse.barrier, race.distance),
        "jockey": laws.jockey_score(horse.jockey, context.jockeys, context.champion_jockeys),
        "trainer": laws.trainer_score(horse.trainer, context.trainers),
        "weight_advantage": laws.weight_score(horse, race.horses),
    }

    if category == ScoringCategory.NORMAL:
        points.update(
            recent_form=laws.recent_form_score(history),
            class_suitability=laws.class_score(race.race_class, history),
            track_distance=laws.track_distance_score(form, race.distance, history),
            sectional_time=laws.sectional_score(history[0] if history else None),
            combination=laws.jockey_horse_score(horse.jockey, history),
            track_condition=laws.track_condition_score(race.track_condition, history),
            freshness=laws.freshness_score(history, race.race_date),
        )
    elif category == ScoringCategory.FIRST_UP:
        points["first_up"] = laws.first_up_score(form.up_results.first_up)
    elif category == ScoringCategory.SECOND_UP:
        points.update(
            second_up=laws.second_up_score(form.up_results.second_up),
            recent_form=laws.second_up_form_score(history),
            class_suitability=laws.class_score(race.race_class, history),
            track_distance=laws.track_distance_score(form, race.distance, history),
            sectional_time=laws.sectional_score(laws.first_up_run(history)),
            combination=laws.jockey_horse_score(horse.jockey, history),
            track_condition=laws.track_condition_score(race.track_condition, history),
        )
    elif category == ScoringCategory.FIRST_STARTER:
        points.update(
            sectional_time=laws.trial_sectional_score(form.trial_sectionals),
            combination=min(
                laws.jockey_horse_score(horse.jockey, history) * 0.5,
                laws.FIRST_STARTER_COMBINATION_CAP,
            ),
        )

    total = sum(points.values())
    if category == ScoringCategory.FIRST_STARTER:
        total = min(total, FIRST_STARTER_TOTAL_CAP)

    breakdown = ScoreBreakdown(category=category, total=total, **points)
    return ScoredHorse(
        horse=_with_career(horse, form),
        score=total,
        breakdown=breakdown,
        combination=context.find_combination(horse.jockey, horse.trainer),
    )


def resolve_ties(scored: Sequence[ScoredHorse]) -> list[ScoredHorse]:
    """Mark the strongest career record in each group of equal scores.

    A 0/0 record is never a standout, and neither is a horse alone on
    its score.
    """
    groups: dict[float, list[ScoredHorse]] = {}
    for sh in scored:
        groups.setdefault(round(sh.score, 6), []).append(sh)

    standouts: set[str] = set()
    for group in groups.values():
        if len(group) < 2:
            continue
        records = {sh.horse.id: sh.horse.career_wins + sh.horse.career_places for sh in group}
        best = max(records.values())
        if best > 0:
            standouts.update(hid for hid, record in records.items() if record == best)

    return [replace(sh, is_standout=sh.horse.id in standouts) for sh in scored]


def bet_for_gap(gap: float) -> BettingRecommendation:
    for threshold, tier, confidence in BET_THRESHOLDS:
        if gap >= threshold:
            return BettingRecommendation(tier=tier, gap=gap, confidence=confidence)
    return BettingRecommendation(tier=BetTier.CONSIDER, gap=gap)


def classify_bets(ranked: Sequence[ScoredHorse]) -> list[ScoredHorse]:
    """Only the top horse can carry a tier, from its gap over second."""
    if not ranked:
        return []
    if len(ranked) == 1:
        return [replace(ranked[0], bet=BettingRecommendation())]

    gap = round(ranked[0].score - ranked[1].score, 2)
    top = replace(ranked[0], bet=bet_for_gap(gap))
    return [top] + [replace(sh, bet=BettingRecommendation()) for sh in ranked[1:]]


def rank_race(
    race: Race,
    forms: Mapping[str, Optional[HorseForm]],
    context: ScoringContext,
) -> list[ScoredHorse]:
    """Score every runner with form, then rank, break ties and classify bets.

    ``forms`` is keyed by horse id; runners missing from it are excluded.
    """
    scored = [
        sh for sh in (score_horse(h, race, forms.get(h.id), context) for h in race.horses)
        if sh is not None
    ]
    scored.sort(key=lambda sh: sh.score, reverse=True)
    ranked = [replace(sh, rank=idx) for idx, sh in enumerate(scored, start=1)]
    ranked = classify_bets(resolve_ties(ranked))

    if ranked:
        top = ranked[0]
        logger.info(
            f"R{race.number} {race.name}: {len(ranked)}/{len(race.horses)} scored, "
            f"top {top.horse.name} {top.score:.1f} ({top.bet.tier.value})"
        )
    return ranked
