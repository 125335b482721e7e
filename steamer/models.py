"""Domain records for tracks, races, runners, form and scoring output.

Everything here is built fresh for one analysis pass and treated as
read-only once constructed.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional


# ──────────────────────────────────────────────
# Meeting structure
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class Track:
    """A venue racing on a given date."""

    key: str           # decoded composite key "2025Aug27,VIC,Sandown Hillside"
    name: str
    state: str
    date_token: str    # "2025Aug27"
    race_count: int
    url: str           # pre-race field document


@dataclass(frozen=True)
class Horse:
    """A runner extracted from a race field."""

    id: str
    number: int        # saddlecloth
    name: str
    jockey: str
    trainer: str
    weight: float
    barrier: int
    horse_code: str
    race_entry: Optional[str] = None
    odds: Optional[float] = None
    form: str = ""
    career_wins: int = 0
    career_places: int = 0


@dataclass(frozen=True)
class Race:
    """One race at a track."""

    id: str            # "<trackKey>_race<n>"
    number: int
    name: str
    distance: int
    time: str
    venue: str
    race_date: date
    track_key: str = ""
    surface: str = "Turf"
    track_condition: str = "Good"
    race_class: str = ""
    horses: tuple[Horse, ...] = ()


# ──────────────────────────────────────────────
# Form records
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class RaceResultDetail:
    """One historical race outcome for a horse."""

    position: int
    margin: Optional[float] = None
    track: str = ""
    race_date: Optional[date] = None
    distance: Optional[int] = None
    condition: Optional[str] = None
    race_class: Optional[str] = None
    sectional_time: Optional[float] = None
    jockey: Optional[str] = None
    trainer: Optional[str] = None


@dataclass(frozen=True)
class StatsRecord:
    """Parsed racing stats (starts: wins-seconds-thirds)."""

    starts: int = 0
    wins: int = 0
    seconds: int = 0
    thirds: int = 0

    @property
    def places(self) -> int:
        return self.wins + self.seconds + self.thirds

    @property
    def win_rate(self) -> float:
        return self.wins / self.starts if self.starts > 0 else 0.0

    @property
    def place_rate(self) -> float:
        return self.places / self.starts if self.starts > 0 else 0.0


# Spell records and dimension tallies share the R:W-S-T shape.
SpellPerformance = StatsRecord
PerformanceStats = StatsRecord


@dataclass(frozen=True)
class UpResults:
    """First-up and second-up records; None when the label was absent."""

    first_up: Optional[SpellPerformance] = None
    second_up: Optional[SpellPerformance] = None


@dataclass(frozen=True)
class TrackDistanceStats:
    """Aggregates for the track, distance, both together and track condition."""

    track: PerformanceStats = field(default_factory=PerformanceStats)
    distance: PerformanceStats = field(default_factory=PerformanceStats)
    combined: PerformanceStats = field(default_factory=PerformanceStats)
    condition: Optional[PerformanceStats] = None
    condition_label: Optional[str] = None


@dataclass(frozen=True)
class HorseForm:
    """A horse's reconciled history, most recent race first."""

    horse_code: str
    last5: tuple[RaceResultDetail, ...] = ()
    up_results: UpResults = field(default_factory=UpResults)
    trial_sectionals: tuple[float, ...] = ()
    stats: Optional[TrackDistanceStats] = None
    career: Optional[StatsRecord] = None


# ──────────────────────────────────────────────
# Premierships
# ──────────────────────────────────────────────

@dataclass(frozen=True)
class PremiershipEntry:
    """One ranked row of a jockey or trainer premiership table."""

    name: str
    rank: int
    wins: int
    seconds: int
    thirds: int
    total_starts: int

    @property
    def places(self) -> int:
        return self.seconds + self.thirds

    @property
    def points(self) -> int:
        return 3 * self.wins + 2 * self.seconds + self.thirds

    @property
    def win_percentage(self) -> float:
        return self.wins / self.total_starts * 100 if self.total_starts > 0 else 0.0


class JockeyPremiership(PremiershipEntry):
    pass


class TrainerPremiership(PremiershipEntry):
    pass


@dataclass(frozen=True)
class JockeyTrainerCombination:
    """Record of a jockey and trainer working together."""

    jockey_name: str
    trainer_name: str
    runs: int = 0
    wins: int = 0
    places: int = 0

    @property
    def win_percentage(self) -> float:
        return self.wins / self.runs * 100 if self.runs > 0 else 0.0


# ──────────────────────────────────────────────
# Scoring output
# ──────────────────────────────────────────────

class ScoringCategory(str, Enum):
    NORMAL = "NORMAL"
    FIRST_UP = "FIRST_UP"
    SECOND_UP = "SECOND_UP"
    FIRST_STARTER = "FIRST_STARTER"
    UNKNOWN = "UNKNOWN"


class BetTier(str, Enum):
    SUPER_BET = "SUPER_BET"
    BEST_BET = "BEST_BET"
    GOOD_BET = "GOOD_BET"
    CONSIDER = "CONSIDER"


LAW_NAMES = (
    "first_up",
    "second_up",
    "recent_form",
    "class_suitability",
    "track_distance",
    "sectional_time",
    "barrier",
    "jockey",
    "trainer",
    "combination",
    "track_condition",
    "weight_advantage",
    "freshness",
)


@dataclass(frozen=True)
class ScoreBreakdown:
    """Per-law point contributions for one horse."""

    category: ScoringCategory
    first_up: float = 0.0
    second_up: float = 0.0
    recent_form: float = 0.0
    class_suitability: float = 0.0
    track_distance: float = 0.0
    sectional_time: float = 0.0
    barrier: float = 0.0
    jockey: float = 0.0
    trainer: float = 0.0
    combination: float = 0.0          # jockey-horse relationship
    track_condition: float = 0.0
    weight_advantage: float = 0.0
    freshness: float = 0.0
    total: float = 0.0

    def components(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in LAW_NAMES}


@dataclass(frozen=True)
class BettingRecommendation:
    tier: BetTier = BetTier.CONSIDER
    gap: float = 0.0
    confidence: str = ""


@dataclass(frozen=True)
class ScoredHorse:
    """A runner with its score; only produced when form was available."""

    horse: Horse
    score: float
    breakdown: ScoreBreakdown
    is_standout: bool = False
    rank: int = 0
    bet: BettingRecommendation = field(default_factory=BettingRecommendation)
    combination: Optional[JockeyTrainerCombination] = None


# ──────────────────────────────────────────────
# Analysis results
# ──────────────────────────────────────────────

@dataclass
class RaceResult:
    race: Race
    top_selections: list[ScoredHorse] = field(default_factory=list)
    all_horses: list[ScoredHorse] = field(default_factory=list)
    processing_time: float = 0.0     # seconds
    error: Optional[str] = None

    @property
    def recommendation(self) -> Optional[BettingRecommendation]:
        """Bet recommendation carried by the top-ranked horse."""
        return self.all_horses[0].bet if self.all_horses else None


@dataclass
class TrackResult:
    track: Track
    races: list[RaceResult] = field(default_factory=list)
    error: Optional[str] = None


@dataclass
class AnalysisResult:
    results: list[TrackResult] = field(default_factory=list)
    processing_time: float = 0.0
    total_horses_analyzed: int = 0
    success: bool = True
    error: Optional[str] = None
