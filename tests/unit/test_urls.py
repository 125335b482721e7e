"""Tests for RA date tokens, venue keys and URL builders."""

from datetime import date

from steamer.scrapers.urls import (
    VenueKey,
    date_tokens_match,
    decode_key,
    encode_key,
    extract_key_param,
    format_date_token,
    horse_form_url,
    normalize_date_token,
    premiership_url,
    track_form_url,
)

BASE = "https://www.racingaustralia.horse"
KEY = VenueKey("2025Aug27", "VIC", "Sandown Hillside")


class TestDateTokens:
    def test_format(self):
        assert format_date_token(date(2025, 8, 27)) == "2025Aug27"
        assert format_date_token(date(2026, 1, 3)) == "2026Jan03"

    def test_normalize_cuts_month(self):
        assert normalize_date_token("2025Sept05") == (2025, "sep", 5)

    def test_normalize_rejects_garbage(self):
        assert normalize_date_token("Aug27") is None

    def test_match(self):
        assert date_tokens_match("2025Aug27", date(2025, 8, 27))
        assert date_tokens_match("2025aug27", date(2025, 8, 27))

    def test_mismatch(self):
        assert not date_tokens_match("2025Aug28", date(2025, 8, 27))
        assert not date_tokens_match("2024Aug27", date(2025, 8, 27))


class TestVenueKey:
    def test_encode(self):
        assert encode_key(KEY) == "2025Aug27%2CVIC%2CSandown%20Hillside"

    def test_decode(self):
        assert decode_key("2025Aug27%2CVIC%2CSandown%20Hillside") == KEY

    def test_decode_raw(self):
        assert decode_key(KEY.raw) == KEY

    def test_decode_needs_three_parts(self):
        assert decode_key("2025Aug27%2CVIC") is None
        assert decode_key("2025Aug27%2C%2CSandown") is None

    def test_extract_key_param(self):
        href = "/FreeFields/Form.aspx?Key=2025Aug27%2CVIC%2CSandown%20Hillside&recentForm=Y"
        assert extract_key_param(href) == "2025Aug27%2CVIC%2CSandown%20Hillside"
        assert extract_key_param("/home.aspx") is None


class TestUrlBuilders:
    def test_track_form_url(self):
        assert track_form_url(KEY, BASE) == (
            f"{BASE}/FreeFields/Form.aspx?Key=2025Aug27%2CVIC%2CSandown%20Hillside&recentForm=Y"
        )

    def test_horse_form_url_with_entry(self):
        url = horse_form_url("123456", KEY, "R987", BASE)
        assert url.startswith(f"{BASE}/InteractiveForm/HorseFullForm.aspx?horsecode=123456")
        assert "&stage=FinalFields&Key=2025Aug27%2CVIC%2CSandown%20Hillside&src=horseform" in url
        assert url.endswith("&raceentry=R987")

    def test_horse_form_url_without_entry(self):
        assert "raceentry" not in horse_form_url("123456", KEY, None, BASE)

    def test_premiership_url(self):
        assert premiership_url("Jockey", "VIC", "2025", BASE) == (
            f"{BASE}/FreeServices/Premierships.aspx?State=VIC&Season=2025&Table=Jockey"
        )
