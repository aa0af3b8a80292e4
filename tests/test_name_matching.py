"""Name normalization and fuzzy matching tests."""

from __future__ import annotations

import pytest

from betbot.data.name_matching import best_match, find_team_mentions, name_similarity, normalize_name
from betbot.data.stats_catalog import lookup_team


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("Luka Dončić", "luka doncic"),
        ("Jaren Jackson Jr.", "jaren jackson"),
        ("Shai Gilgeous-Alexander", "shai gilgeous alexander"),
        ("  LeBron   James ", "lebron james"),
        ("Steph", "stephen curry"),
    ],
)
def test_normalize_name(raw: str, expected: str) -> None:
    assert normalize_name(raw) == expected


def test_similarity_layers() -> None:
    assert name_similarity("LeBron James", "lebron james") == 1.0
    assert name_similarity("James", "LeBron James") > 0.85
    assert name_similarity("James LeBron", "LeBron James") == 0.95
    assert name_similarity("Stephen Curry", "Kevin Durant") < 0.75
    assert name_similarity("", "Kevin Durant") == 0.0


def test_best_match_respects_threshold() -> None:
    candidates = ["Los Angeles Lakers", "Los Angeles Clippers", "Golden State Warriors"]
    assert best_match("Lakers", candidates)[0] == "Los Angeles Lakers"
    assert best_match("Steph", ["Stephen Curry", "Seth Curry"])[0] == "Stephen Curry"
    assert best_match("Zach Quillington", candidates) is None


def test_team_mentions_in_reading_order() -> None:
    mentions = find_team_mentions("Red Sox -1.5 vs Yankees")
    assert [m.full_name for m in mentions] == ["Boston Red Sox", "New York Yankees"]
    assert {m.sport for m in mentions} == {"mlb"}


def test_team_mentions_scoped_by_sport() -> None:
    assert [m.sport for m in find_team_mentions("Jets vs Bills", "nfl")] == ["nfl", "nfl"]
    assert [m.full_name for m in find_team_mentions("Jets vs Bruins", "nhl")] == [
        "Winnipeg Jets",
        "Boston Bruins",
    ]


def test_substring_layer_needs_whole_words() -> None:
    assert name_similarity("Nets", "Charlotte Hornets") < 0.75
    assert name_similarity("Nets", "Brooklyn Nets") > 0.85


def test_curated_team_lookup_stays_in_sport() -> None:
    assert lookup_team("Rangers", "nhl").name == "New York Rangers"
    assert lookup_team("Rangers", "mlb") is None
    assert lookup_team("Yankees", "nhl") is None
    assert lookup_team("Yankees", "mlb").sport == "mlb"
