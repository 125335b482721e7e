"""Tests for the RA horse full-form parser."""

from datetime import date

import pytest

from steamer.form_string import recent_positions
from steamer.models import Horse, RaceResultDetail
from steamer.scrapers.horse_form import (
    fetch_horse_form,
    is_trial_row,
    parse_form_date,
    parse_horse_form,
    parse_margin,
    parse_position,
    parse_result_row,
    parse_up_results,
    reconcile,
)
from steamer.scrapers.urls import VenueKey, horse_form_url

BASE = "https://www.racingaustralia.horse"
KEY = VenueKey("2025Aug27", "VIC", "Sandown Hillside")

ROW_WIN = "1st of 10 SAND 20Aug25 1200m Good4 BM64 ($35,000) Craig Williams 58.5kg 2.5L Trainer: Ciaron Maher 600m 34.20"
ROW_SECOND = "2nd of 12 CRAN 06Aug25 1300m Soft6 BM58 ($30,000) Jamie Kah 57kg 1.2L 600m 35.10"
ROW_TRIAL = "T1 CRAN 01Aug25 Trial 1000m Good4 600m 33.80"

STATS_BLOCK = (
    '<div class="horse-stats">Career: 10:3-2-1 1st Up: 3:1-1-0 2nd Up: 2:0-1-1 '
    "Track: 4:1-1-0 Dist: 5:2-1-0 Track/Dist: 2:1-0-0 Good: 6:2-1-1 Soft: 3:0-1-0</div>"
)


def _make_page(*rows, stats=STATS_BLOCK, table_class="horse-form-table"):
    body = "".join(f"<tr><td>{row}</td></tr>" for row in rows)
    return (
        f"<html><body>{stats}<table class=\"{table_class}\">"
        f"<tr><th>Result</th></tr>{body}</table></body></html>"
    )


def _make_horse(**overrides):
    fields = dict(
        id="k_race1_1", number=1, name="Fast Lad", jockey="Craig Williams", trainer="Ciaron Maher",
        weight=58.5, barrier=4, horse_code="111", race_entry="RE1", form="x21",
    )
    fields.update(overrides)
    return Horse(**fields)


class TestRowGrammar:
    def test_full_row(self):
        result = parse_result_row(ROW_WIN)
        assert result.position == 1
        assert result.race_date == date(2025, 8, 20)
        assert result.track == "SAND"
        assert result.distance == 1200
        assert result.condition == "Good4"
        assert result.race_class == "BM64"
        assert result.margin == 2.5
        assert result.sectional_time == 34.2
        assert result.jockey == "Craig Williams"
        assert result.trainer == "Ciaron Maher"

    def test_labelled_names_stop_at_next_label(self):
        result = parse_result_row(
            "1 of 8 SAND 20Aug25 1200m Good4 BM64 Jockey: Craig Williams Trainer: Ciaron Maher 0.5L"
        )
        assert result.jockey == "Craig Williams"
        assert result.trainer == "Ciaron Maher"

    def test_prize_money_jockey_stops_at_barrier(self):
        result = parse_result_row("2nd of 9 SAND 20Aug25 1200m Good4 ($35,000) Craig Williams Barrier 4 T: Ciaron Maher")
        assert result.jockey == "Craig Williams"
        assert result.trainer == "Ciaron Maher"

    def test_numeric_date_not_read_as_position(self):
        result = parse_result_row("08/09/24 FLEM 1200m Good4 BM64 3 of 12 2.5L 600m 34.50")
        assert result.position == 3
        assert result.race_date == date(2024, 9, 8)

    def test_row_without_date_rejected(self):
        assert parse_result_row("3rd of 9 SAND 1200m Good4") is None

    def test_row_without_position_rejected(self):
        assert parse_result_row("Scratched SAND 20Aug25") is None

    def test_position_variants(self):
        assert parse_position("3/12 SAND") == 3
        assert parse_position("5th at Sandown") == 5
        assert parse_position("7 SAND") == 7
        assert parse_position("25 SAND") is None

    def test_date_variants(self):
        assert parse_form_date("8 Sep 2024") == date(2024, 9, 8)
        assert parse_form_date("08/09/24") == date(2024, 9, 8)
        assert parse_form_date("no date") is None

    def test_margin_abbreviations(self):
        assert parse_margin("Margin: SHD") == 0.1
        assert parse_margin("Margin: NK") == 0.05
        assert parse_margin("nothing") is None

    def test_trial_rows(self):
        assert is_trial_row(ROW_TRIAL)
        assert is_trial_row("J2 Jump Out 800m")
        assert not is_trial_row(ROW_WIN)


class TestReconcile:
    def test_form_positions_borrow_row_metadata(self):
        rows = [parse_result_row(ROW_WIN), parse_result_row(ROW_SECOND)]
        history = reconcile("x21", rows)
        assert [r.position for r in history] == [1, 2]
        assert history[0].race_date == date(2025, 8, 20)
        assert history[1].track == "CRAN"

    def test_unmatched_position_has_no_metadata(self):
        history = reconcile("x31", [parse_result_row(ROW_WIN)])
        assert history[1] == RaceResultDetail(position=3)

    def test_same_position_reuses_first_match(self):
        """Matching is by position only; the first equal row wins each time."""
        first = RaceResultDetail(position=1, race_date=date(2025, 8, 20))
        second = RaceResultDetail(position=1, race_date=date(2025, 7, 1))
        history = reconcile("11", [first, second])
        assert history == [first, first]

    def test_without_form_rows_sorted_by_date(self):
        rows = [parse_result_row(ROW_SECOND), parse_result_row(ROW_WIN)]
        assert [r.position for r in reconcile("", rows)] == [1, 2]

    @pytest.mark.parametrize("form", ["214X3361X652", "5421", "x1", "1230x"])
    def test_idempotent_with_no_rows(self, form):
        assert [r.position for r in reconcile(form, [])] == recent_positions(form)


class TestParseHorseForm:
    def test_full_document(self):
        form = parse_horse_form(_make_page(ROW_WIN, ROW_SECOND, ROW_TRIAL), "111", "x21")
        assert form.horse_code == "111"
        assert [r.position for r in form.last5] == [1, 2]
        assert form.trial_sectionals == (33.8,)
        assert form.up_results.first_up.starts == 3
        assert form.up_results.second_up.thirds == 1
        assert form.career.wins == 3
        assert form.stats.track.wins == 1
        assert form.stats.distance.starts == 5
        assert form.stats.combined.starts == 2
        assert form.stats.condition_label == "Good"
        assert form.stats.condition.starts == 6

    def test_missing_table(self):
        assert parse_horse_form(_make_page(ROW_WIN, table_class="other"), "111", "1") is None

    def test_missing_up_labels_stay_none(self):
        form = parse_horse_form(_make_page(ROW_WIN, stats=""), "111", "1")
        assert form.up_results.first_up is None
        assert form.up_results.second_up is None
        assert form.career is None

    def test_distance_fallback_without_labels(self):
        form = parse_horse_form(_make_page(ROW_WIN, ROW_SECOND, stats=""), "111", "21", race_distance=1250)
        assert form.stats.distance.starts == 2
        assert form.stats.distance.wins == 1
        assert form.stats.track.starts == 0

    def test_history_capped_at_five(self):
        rows = [ROW_WIN.replace("20Aug25", f"{d:02d}Jul25") for d in range(1, 9)]
        form = parse_horse_form(_make_page(*rows), "111", None)
        assert len(form.last5) == 5

    def test_up_results_labels(self):
        up = parse_up_results("1st Up: 2:1-1-0")
        assert up.first_up.wins == 1
        assert up.second_up is None


class TestFetchHorseForm:
    @pytest.mark.asyncio
    async def test_fetches_history_url(self, fake_fetcher):
        horse = _make_horse()
        url = horse_form_url("111", KEY, "RE1", BASE)
        fake_fetcher.pages[url] = _make_page(ROW_WIN, ROW_SECOND)
        form = await fetch_horse_form(fake_fetcher, horse, KEY, 1200, base_url=BASE)
        assert form is not None
        assert [r.position for r in form.last5] == [1, 2]
        assert fake_fetcher.requested == [url]

    @pytest.mark.asyncio
    async def test_fetch_failure_is_none(self, fake_fetcher):
        assert await fetch_horse_form(fake_fetcher, _make_horse(), KEY, base_url=BASE) is None
