"""Tests for the individual scoring laws."""

from datetime import date, timedelta

import pytest

from steamer.models import (
    Horse,
    HorseForm,
    PremiershipEntry,
    RaceResultDetail,
    StatsRecord,
    TrackDistanceStats,
)
from steamer.scoring import laws

RACE_DATE = date(2025, 8, 27)


def _make_run(position, days_ago=14, **kwargs):
    return RaceResultDetail(position=position, race_date=RACE_DATE - timedelta(days=days_ago), **kwargs)


def _make_horse(number=1, weight=57.0, jockey="Craig Williams", trainer="Ciaron Maher"):
    return Horse(
        id=f"k_race1_{number}", number=number, name=f"Horse {number}", jockey=jockey,
        trainer=trainer, weight=weight, barrier=number, horse_code=str(number),
    )


def _make_entry(name, rank):
    return PremiershipEntry(name=name, rank=rank, wins=0, seconds=0, thirds=0, total_starts=0)


class TestHistoricalRuns:
    def test_only_dated_runs_before_race_day(self):
        runs = [
            _make_run(1, days_ago=7),
            _make_run(2, days_ago=0),
            RaceResultDetail(position=3),
            _make_run(4, days_ago=-3),
        ]
        assert [r.position for r in laws.historical_runs(runs, RACE_DATE)] == [1]


class TestSpellLaws:
    def test_first_up(self):
        assert laws.first_up_score(StatsRecord(3, 1, 1, 0)) == 8.0
        assert laws.first_up_score(StatsRecord(3, 1, 0, 0)) == 5.0
        assert laws.first_up_score(StatsRecord(3, 0, 0, 1)) == 3.0
        assert laws.first_up_score(StatsRecord(3, 0, 0, 0)) == 0.0
        assert laws.first_up_score(None) == 0.0

    def test_second_up(self):
        assert laws.second_up_score(StatsRecord(4, 1, 1, 1)) == 8.0
        assert laws.second_up_score(StatsRecord(4, 0, 1, 1)) == 4.0
        assert laws.second_up_score(None) == 0.0

    def test_second_up_form_uses_first_up_run(self):
        history = [_make_run(7, days_ago=14), _make_run(2, days_ago=100)]
        assert laws.second_up_form_score(history) == 5.0

    def test_second_up_form_close_beaten(self):
        history = [_make_run(1, days_ago=14), _make_run(6, days_ago=100, margin=2.0)]
        assert laws.second_up_form_score(history) == 1.0

    def test_second_up_form_single_run(self):
        assert laws.second_up_form_score([_make_run(1)]) == 8.0
        assert laws.second_up_form_score([]) == 0.0


class TestRecentForm:
    def test_weighted_example(self):
        """[1,3,7,9,2] with a 2.5L last-start margin."""
        history = [_make_run(1, margin=2.5), _make_run(3), _make_run(7), _make_run(9), _make_run(2)]
        expected = 5 * 1.0 + 3 * 0.8 + 1.0 * 0.6 + 0 * 0.4 + 3 * 0.2 + 3.0
        assert laws.recent_form_score(history) == pytest.approx(expected)

    def test_single_run(self):
        assert laws.recent_form_score([_make_run(1)]) == 8.0
        assert laws.recent_form_score([_make_run(3)]) == 4.0
        assert laws.recent_form_score([_make_run(5)]) == 2.0
        assert laws.recent_form_score([_make_run(9)]) == 0.0

    def test_short_history_scaled(self):
        # two runs: scale min(5/2, 2) = 2
        history = [_make_run(1), _make_run(1)]
        assert laws.recent_form_score(history) == pytest.approx((5 * 1.0 + 5 * 0.8) * 2)

    def test_best_three_runs_stay_under_cap(self):
        # (5 + 4 + 3) scaled by 5/3, plus the margin bonus
        history = [_make_run(1, margin=0.5)] * 3
        assert laws.recent_form_score(history) == pytest.approx(23.0)

    def test_empty(self):
        assert laws.recent_form_score([]) == 0.0


class TestClassScore:
    def test_class_level(self):
        assert laws.parse_class_level("BM64") == 64
        assert laws.parse_class_level("Maiden") == 1
        assert laws.parse_class_level(None) == 1

    def test_dropping_after_placing(self):
        history = [_make_run(2, race_class="BM70"), _make_run(5, race_class="BM70"), _make_run(6, race_class="BM70")]
        assert laws.class_score("BM64", history) == 20.0

    def test_long_slide_penalised(self):
        history = [
            _make_run(6, race_class="BM66"),
            _make_run(6, race_class="BM70"),
            _make_run(6, race_class="BM74"),
            _make_run(6, race_class="BM78"),
        ]
        assert laws.class_score("BM58", history) == 10.0

    def test_similar_class_placings(self):
        history = [_make_run(1, race_class="BM64"), _make_run(3, race_class="BM65"), _make_run(5, race_class="BM63")]
        assert laws.class_score("BM64", history) == 6.0

    def test_rising_with_lower_class_wins(self):
        history = [_make_run(1, race_class="BM58"), _make_run(4, race_class="BM58")]
        assert laws.class_score("BM70", history) == 10.0

    def test_rising_without_form_clamped(self):
        history = [_make_run(8, race_class="BM58")]
        assert laws.class_score("BM70", history) == 0.0

    def test_no_class_history(self):
        assert laws.class_score("BM64", [_make_run(1)]) == 0.0


class TestTrackDistance:
    def _form(self, **stats):
        return HorseForm(horse_code="1", stats=TrackDistanceStats(**stats))

    def test_rates(self):
        form = self._form(
            track=StatsRecord(4, 2, 2, 0),        # win .5 place 1.0 -> 6
            distance=StatsRecord(2, 2, 0, 0),     # win 1 place 1 -> 8 (cap)
            combined=StatsRecord(2, 1, 0, 0),     # win .5 place .5 -> 2
        )
        assert laws.track_distance_score(form, 1200, []) == 16.0

    def test_comfort_zone_bonus(self):
        history = [_make_run(4, distance=1100), _make_run(5, distance=1300)]
        assert laws.distance_pattern_bonus(1200, history) == 3.0

    def test_exact_distance_win_bonus(self):
        history = [_make_run(1, distance=1620), _make_run(5, distance=2400), _make_run(5, distance=2400)]
        assert laws.distance_pattern_bonus(1600, history) == 5.0

    def test_no_distances(self):
        assert laws.distance_pattern_bonus(1200, [_make_run(1)]) == 0.0

    def test_law_cap(self):
        full = StatsRecord(5, 5, 0, 0)
        form = self._form(track=full, distance=full, combined=full)
        history = [_make_run(1, distance=1200)]
        assert laws.track_distance_score(form, 1200, history) == 23.0

    def test_no_stats(self):
        assert laws.track_distance_score(HorseForm(horse_code="1"), 1200, []) == 0.0


class TestSectionals:
    @pytest.mark.parametrize("time,points", [(32.9, 8.0), (33.5, 6.0), (35.0, 4.0), (35.9, 2.0), (36.5, 0.0)])
    def test_race_buckets(self, time, points):
        assert laws.sectional_score(_make_run(1, sectional_time=time)) == points

    def test_missing_time(self):
        assert laws.sectional_score(_make_run(1)) == 0.0
        assert laws.sectional_score(None) == 0.0

    @pytest.mark.parametrize("times,points", [((32.5, 33.0), 10.0), ((34.0,), 8.0), ((35.5,), 4.0), ((37.0,), 2.0)])
    def test_trial_buckets(self, times, points):
        assert laws.trial_sectional_score(times) == points

    def test_no_trials(self):
        assert laws.trial_sectional_score(()) == 0.0


class TestBarrier:
    @pytest.mark.parametrize("barrier,points", [(1, 6.0), (4, 6.0), (5, 3.0), (8, 3.0), (9, 0.0)])
    def test_sprint(self, barrier, points):
        assert laws.barrier_score(barrier, 1200) == points

    @pytest.mark.parametrize("barrier,points", [(6, 4.0), (7, 2.0), (12, 2.0), (13, 0.0)])
    def test_staying(self, barrier, points):
        assert laws.barrier_score(barrier, 1600) == points


class TestJockeyTrainer:
    RANKINGS = [_make_entry("Jamie Kah", 1), _make_entry("Ben Melham", 7), _make_entry("Luke Nolen", 15)]

    def test_rank_buckets(self):
        assert laws.jockey_score("Jamie Kah", self.RANKINGS, frozenset()) == 8.0
        assert laws.jockey_score("Ben Melham", self.RANKINGS, frozenset()) == 5.0
        assert laws.jockey_score("Luke Nolen", self.RANKINGS, frozenset()) == 2.0
        assert laws.jockey_score("Nobody Known", self.RANKINGS, frozenset()) == 0.0

    def test_names_normalised(self):
        assert laws.jockey_score("Ms Jamie Kah (a2)", self.RANKINGS, frozenset()) == 8.0

    def test_champion_always_capped(self):
        champions = frozenset({"Craig Williams"})
        assert laws.jockey_score("Craig Williams", [], champions) == 8.0
        assert laws.jockey_score("C Williams", [], frozenset({"C Williams"})) == 8.0

    def test_champion_set_is_injected(self):
        assert laws.jockey_score("Craig Williams", [], frozenset()) == 0.0

    def test_trainer(self):
        rankings = [_make_entry("Ciaron Maher", 3)]
        assert laws.trainer_score("Ciaron Maher", rankings) == 8.0
        assert laws.trainer_score("Someone Else", rankings) == 0.0


class TestJockeyHorse:
    def test_buckets(self):
        jockey = "Craig Williams"
        assert laws.jockey_horse_score(jockey, [_make_run(1, jockey=jockey)] * 2) == 4.0
        assert laws.jockey_horse_score(jockey, [_make_run(1, jockey=jockey)]) == 2.0
        assert laws.jockey_horse_score(jockey, [_make_run(2, jockey=jockey), _make_run(3, jockey=jockey)]) == 1.0
        assert laws.jockey_horse_score(jockey, [_make_run(3, jockey=jockey)]) == 0.5
        assert laws.jockey_horse_score(jockey, [_make_run(1, jockey="Jamie Kah")]) == 0.0


class TestTrackCondition:
    def test_categories(self):
        assert laws.condition_category("Good 4") == "Firm/Good"
        assert laws.condition_category("Firm1") == "Firm/Good"
        assert laws.condition_category("Soft 6") == "Soft"
        assert laws.condition_category("Heavy8") == "Heavy"
        assert laws.condition_category("Synthetic") == "Synthetic"
        assert laws.condition_category("Unknown") is None

    def test_best_in_category(self):
        history = [_make_run(3, condition="Soft5"), _make_run(1, condition="Good4"), _make_run(2, condition="Soft7")]
        assert laws.track_condition_score("Soft 6", history) == 5.0
        assert laws.track_condition_score("Good 3", history) == 8.0
        assert laws.track_condition_score("Heavy 9", history) == 0.0


class TestWeight:
    def test_example_four_kilos_under(self):
        """54.0kg against a field averaging 58.5kg."""
        field = [_make_horse(1, 54.0), _make_horse(2, 60.0), _make_horse(3, 60.0), _make_horse(4, 60.0)]
        assert laws.weight_score(field[0], field) == 8.0

    def test_buckets(self):
        field = [_make_horse(1, 55.0), _make_horse(2, 57.0), _make_horse(3, 59.0)]
        assert laws.weight_score(field[0], field) == 5.0    # 2.0 under
        assert laws.weight_score(field[1], field) == 2.0    # at average
        assert laws.weight_score(field[2], field) == 0.0


class TestFreshness:
    @pytest.mark.parametrize("days,points", [(10, 0.0), (14, 3.0), (28, 3.0), (29, 1.0), (56, 1.0), (57, 0.0)])
    def test_windows(self, days, points):
        assert laws.freshness_score([_make_run(1, days_ago=days)], RACE_DATE) == points

    def test_uses_most_recent(self):
        history = [_make_run(1, days_ago=90), _make_run(1, days_ago=21)]
        assert laws.freshness_score(history, RACE_DATE) == 3.0

    def test_no_history(self):
        assert laws.freshness_score([], RACE_DATE) == 0.0
