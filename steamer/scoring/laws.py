"""Individual scoring laws.

Each law is a plain function returning points already limited to its cap.
History-based laws only look at runs dated strictly before the race.
"""

from datetime import date
from statistics import mean
from typing import Collection, Optional, Sequence

from steamer.models import (
    Horse,
    HorseForm,
    PremiershipEntry,
    RaceResultDetail,
    StatsRecord,
)
from steamer.names import names_match, normalize_name

FIRST_UP_CAP = 8.0
SECOND_UP_CAP = 8.0
RECENT_FORM_CAP = 25.0
SECOND_UP_FORM_CAP = 8.0
CLASS_CAP = 25.0
DISTANCE_CAP = 8.0
TRACK_CAP = 8.0
COMBINED_CAP = 4.0
TRACK_DISTANCE_BASE_CAP = 20.0
DISTANCE_PATTERN_BONUS = 5.0
TRACK_DISTANCE_CAP = TRACK_DISTANCE_BASE_CAP + DISTANCE_PATTERN_BONUS
SECTIONAL_CAP = 8.0
TRIAL_SECTIONAL_CAP = 10.0
BARRIER_CAP = 6.0
JOCKEY_CAP = 8.0
TRAINER_CAP = 8.0
COMBINATION_CAP = 8.0
FIRST_STARTER_COMBINATION_CAP = 4.0
CONDITION_CAP = 8.0
WEIGHT_CAP = 8.0
FRESHNESS_CAP = 3.0

LAST_START_MARGIN = 4.0


def historical_runs(runs: Sequence[RaceResultDetail], race_date: date) -> list[RaceResultDetail]:
    """Dated runs strictly before the race day, order preserved."""
    return [r for r in runs if r.race_date is not None and r.race_date < race_date]


def _by_recency(runs: Sequence[RaceResultDetail]) -> list[RaceResultDetail]:
    return sorted(runs, key=lambda r: r.race_date, reverse=True)


# ──────────────────────────────────────────────
# Spell laws
# ──────────────────────────────────────────────

def first_up_score(record: Optional[StatsRecord]) -> float:
    if record is None:
        return 0.0
    score = 0.0
    if record.wins > 0:
        score += 5.0
    if record.seconds > 0 or record.thirds > 0:
        score += 3.0
    return min(score, FIRST_UP_CAP)


def second_up_score(record: Optional[StatsRecord]) -> float:
    if record is None:
        return 0.0
    score = 0.0
    if record.wins > 0:
        score += 5.0
    if record.seconds > 0:
        score += 3.0
    if record.thirds > 0:
        score += 1.0
    return min(score, SECOND_UP_CAP)


def first_up_run(history: Sequence[RaceResultDetail]) -> Optional[RaceResultDetail]:
    """The run that opened the current campaign for a second-up horse."""
    ordered = _by_recency(history)
    if len(ordered) >= 2:
        return ordered[1]
    return ordered[0] if ordered else None


def second_up_form_score(history: Sequence[RaceResultDetail]) -> float:
    """Recent-form credit for a second-up horse, from its first-up run."""
    run = first_up_run(history)
    if run is None:
        return 0.0
    score = {1: 8.0, 2: 5.0, 3: 3.0, 4: 2.0}.get(run.position, 0.0)
    if run.margin is not None and run.margin <= LAST_START_MARGIN and run.position > 4:
        score += 1.0
    return min(score, SECOND_UP_FORM_CAP)


# ──────────────────────────────────────────────
# Form and class
# ──────────────────────────────────────────────

def _position_points(position: int) -> float:
    if position == 1:
        return 5.0
    if position in (2, 3):
        return 3.0
    if position in (4, 5):
        return 1.5
    if 6 <= position <= 8:
        return 1.0
    return 0.0


def recent_form_score(history: Sequence[RaceResultDetail]) -> float:
    """Recency-weighted placings over the last five, plus a close-finish bonus.

    ``history`` is most recent first. Horses with fewer than five runs have
    their points scaled up, by at most double.
    """
    runs = list(history[:5])
    if not runs:
        return 0.0
    if len(runs) == 1:
        single = {1: 8.0, 2: 4.0, 3: 4.0, 4: 2.0, 5: 2.0}.get(runs[0].position, 0.0)
        return min(single, RECENT_FORM_CAP)

    scaling = min(5.0 / len(runs), 2.0) if len(runs) < 5 else 1.0
    score = 0.0
    for idx, run in enumerate(runs):
        multiplier = (5.0 - idx) / 5.0
        score += _position_points(run.position) * multiplier * scaling

    last = runs[0]
    if last.margin is not None and last.margin <= LAST_START_MARGIN:
        score += 3.0
    return min(score, RECENT_FORM_CAP)


def parse_class_level(text: Optional[str]) -> int:
    """Numeric class level from a class code (BM64 -> 64); 1 when absent."""
    digits = "".join(ch for ch in (text or "") if ch.isdigit())
    return int(digits) if digits else 1


def _consecutive_class_drops(history: Sequence[RaceResultDetail]) -> int:
    drops = 0
    for newer, older in zip(history, history[1:]):
        if newer.race_class is None or older.race_class is None:
            break
        if parse_class_level(newer.race_class) < parse_class_level(older.race_class):
            drops += 1
        else:
            break
    return drops


def class_score(race_class: str, history: Sequence[RaceResultDetail]) -> float:
    """Current class against the average of the last three runs."""
    last3 = [parse_class_level(r.race_class) for r in history[:3] if r.race_class is not None]
    if not last3:
        return 0.0

    current = parse_class_level(race_class)
    average = mean(last3)
    score = 0.0
    if current < average:
        score += 15.0
        if _consecutive_class_drops(history) >= 3:
            score -= 5.0
        if history[0].position <= 3:
            score += 5.0
    elif current > average:
        lower_class_form = any(
            r.position <= 2 and r.race_class is not None and parse_class_level(r.race_class) < current
            for r in history
        )
        score += 10.0 if lower_class_form else -5.0
    else:
        similar_placings = sum(
            1 for r in history
            if r.position <= 3 and r.race_class is not None
            and abs(parse_class_level(r.race_class) - current) <= 1
        )
        score += similar_placings * 3.0
    return min(max(score, 0.0), CLASS_CAP)


# ──────────────────────────────────────────────
# Track and distance
# ──────────────────────────────────────────────

def _rate_score(stats: Optional[StatsRecord], weight: float, cap: float) -> float:
    if stats is None or stats.starts == 0:
        return 0.0
    return min(stats.win_rate * weight + stats.place_rate * weight, cap)


def distance_pattern_bonus(distance: int, history: Sequence[RaceResultDetail]) -> float:
    distances = [r.distance for r in history if r.distance is not None]
    if not distances:
        return 0.0
    near_average = abs(distance - mean(distances)) <= 200
    raced_nearby = any(abs(d - distance) <= 200 for d in distances)
    if near_average and raced_nearby:
        return 3.0
    won_at_trip = any(
        r.position == 1 and r.distance is not None and abs(r.distance - distance) <= 50
        for r in history
    )
    return DISTANCE_PATTERN_BONUS if won_at_trip else 0.0


def track_distance_score(form: HorseForm, distance: int, history: Sequence[RaceResultDetail]) -> float:
    """Distance, track and track+distance strike rates plus a trip bonus."""
    stats = form.stats
    base = 0.0
    if stats is not None:
        base += _rate_score(stats.distance, 4.0, DISTANCE_CAP)
        base += _rate_score(stats.track, 4.0, TRACK_CAP)
        base += _rate_score(stats.combined, 2.0, COMBINED_CAP)
    base = min(base, TRACK_DISTANCE_BASE_CAP)
    return min(base + distance_pattern_bonus(distance, history), TRACK_DISTANCE_CAP)


# ──────────────────────────────────────────────
# Sectionals
# ──────────────────────────────────────────────

def sectional_score(run: Optional[RaceResultDetail]) -> float:
    if run is None or run.sectional_time is None:
        return 0.0
    time = run.sectional_time
    if time <= 33.0:
        return 8.0
    if time <= 34.0:
        return 6.0
    if time <= 35.0:
        return 4.0
    if time <= 36.0:
        return 2.0
    return 0.0


def trial_sectional_score(times: Sequence[float]) -> float:
    if not times:
        return 0.0
    average = mean(times)
    if average <= 33.0:
        return 10.0
    if average <= 34.0:
        return 8.0
    if average <= 35.0:
        return 6.0
    if average <= 36.0:
        return 4.0
    return 2.0


# ──────────────────────────────────────────────
# Race-day factors
# ──────────────────────────────────────────────

def barrier_score(barrier: int, distance: int) -> float:
    """Inside draws matter more in sprints."""
    if distance <= 1200:
        if 1 <= barrier <= 4:
            return 6.0
        if 5 <= barrier <= 8:
            return 3.0
        return 0.0
    if 1 <= barrier <= 6:
        return 4.0
    if 7 <= barrier <= 12:
        return 2.0
    return 0.0


def premiership_rank(name: str, rankings: Sequence[PremiershipEntry]) -> Optional[int]:
    target = normalize_name(name)
    for entry in rankings:
        if normalize_name(entry.name) == target:
            return entry.rank
    return None


def _rank_points(rank: Optional[int], cap: float) -> float:
    if rank is None:
        return 0.0
    if 1 <= rank <= 5:
        return cap
    if 6 <= rank <= 10:
        return 5.0
    if 11 <= rank <= 20:
        return 2.0
    return 0.0


def is_champion_jockey(jockey: str, champions: Collection[str]) -> bool:
    rider = jockey.strip().lower()
    if not rider:
        return False
    for champion in champions:
        name = champion.strip().lower()
        if name and (rider == name or name in rider or rider in name):
            return True
    return False


def jockey_score(jockey: str, rankings: Sequence[PremiershipEntry], champions: Collection[str]) -> float:
    if is_champion_jockey(jockey, champions):
        return JOCKEY_CAP
    return _rank_points(premiership_rank(jockey, rankings), JOCKEY_CAP)


def trainer_score(trainer: str, rankings: Sequence[PremiershipEntry]) -> float:
    return _rank_points(premiership_rank(trainer, rankings), TRAINER_CAP)


def jockey_horse_score(jockey: str, history: Sequence[RaceResultDetail]) -> float:
    """Wins and placings the horse has had under today's rider."""
    together = [r for r in history if names_match(r.jockey, jockey)]
    wins = sum(1 for r in together if r.position == 1)
    places = sum(1 for r in together if r.position in (2, 3))
    if wins >= 2:
        return 4.0
    if wins == 1:
        return 2.0
    if places >= 2:
        return 1.0
    if places == 1:
        return 0.5
    return 0.0


def condition_category(condition: Optional[str]) -> Optional[str]:
    if not condition:
        return None
    text = condition.lower()
    if "firm" in text or "good" in text:
        return "Firm/Good"
    if "soft" in text:
        return "Soft"
    if "heavy" in text:
        return "Heavy"
    if "synthetic" in text:
        return "Synthetic"
    return None


def track_condition_score(condition: str, history: Sequence[RaceResultDetail]) -> float:
    """Best finish on the same going among the last five runs."""
    category = condition_category(condition)
    if category is None:
        return 0.0
    best = 0.0
    for run in history[:5]:
        if condition_category(run.condition) == category:
            best = max(best, {1: 8.0, 2: 5.0, 3: 3.0}.get(run.position, 0.0))
    return min(best, CONDITION_CAP)


def weight_score(horse: Horse, field: Sequence[Horse]) -> float:
    """Weight relief against the field average."""
    weights = [h.weight for h in field if h.weight > 0]
    if not weights or horse.weight <= 0:
        return 0.0
    relief = mean(weights) - horse.weight
    if relief >= 4.0:
        return 8.0
    if relief >= 2.0:
        return 5.0
    if relief >= 0.0:
        return 2.0
    return 0.0


def freshness_score(history: Sequence[RaceResultDetail], race_date: date) -> float:
    """Days since the last run: 2-4 weeks is ideal, 4-8 acceptable."""
    if not history:
        return 0.0
    last = _by_recency(history)[0]
    days = (race_date - last.race_date).days
    if 14 <= days <= 28:
        return 3.0
    if 29 <= days <= 56:
        return 1.0
    return 0.0
