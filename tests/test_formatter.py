"""Output formatting tests."""

from __future__ import annotations

import pytest
from fakes import synthesis_payload

from betbot.analysis.formatter import (
    clamp_probability,
    confidence_bucket,
    format_result,
    is_fully_derived,
    recommendation_bucket,
    to_analysis_result,
)
from betbot.data.schemas import ContextBundle, CreatorAlgorithm, ParsedBet, SynthesisResult
from betbot.resolvers.context import neutral_defaults
from betbot.resolvers.odds import sport_default_odds
from betbot.resolvers.stats import derive_stats


@pytest.mark.parametrize(("raw", "expected"), [(62.4, 62), (0.2, 1), (-5, 1), (99.6, 99), (150, 99)])
def test_clamp_probability(raw: float, expected: int) -> None:
    assert clamp_probability(raw) == expected


@pytest.mark.parametrize(("probability", "expected"), [(75, "high"), (70, "high"), (60, "medium"), (54, "low")])
def test_confidence_bucket(probability: int, expected: str) -> None:
    assert confidence_bucket(probability) == expected


@pytest.mark.parametrize(
    ("probability", "threshold", "expected"),
    [
        (72, None, "strong_play"),
        (60, None, "lean"),
        (50, None, "pass"),
        (40, None, "fade"),
        (60, 65, "pass"),
        (66, 65, "lean"),
        (72, 75, "pass"),
        (75, 75, "strong_play"),
    ],
)
def test_recommendation_relative_to_threshold(probability: int, threshold: int | None, expected: str) -> None:
    assert recommendation_bucket(probability, threshold) == expected


def test_format_result_builds_record() -> None:
    bet = ParsedBet(sport="nba", teams=("Lakers", "Warriors"), line=7.5, bet_on="spread", confidence=0.6)
    result = to_analysis_result(SynthesisResult.model_validate(synthesis_payload(win_probability=61.6)))
    context = ContextBundle(**neutral_defaults(), data_quality="fair")
    record = format_result(
        "Lakers -7.5 vs Warriors",
        bet,
        result,
        sport_default_odds("nba"),
        derive_stats(bet),
        context,
        CreatorAlgorithm(confidence_threshold=65),
    )
    assert record.status == "analyzed"
    assert record.bet_type == "straight"
    assert record.win_probability == 62
    assert record.confidence == "low"
    assert record.recommendation == "pass"
    assert record.quality_score == 100
    assert record.data_sources.odds == "Typical Lines (NBA)"
    assert record.data_sources.stats == "Derived/Enhanced Stats"
    assert record.data_sources.context_quality == "fair"
    assert record.data_sources.data_status == "Limited Data"
    assert not record.is_fallback


def test_format_result_without_context() -> None:
    bet = ParsedBet(sport="nba", kind="player", player="LeBron James", line=25.5, bet_on="over", confidence=0.6)
    result = to_analysis_result(SynthesisResult.model_validate(synthesis_payload()))
    record = format_result("LeBron James over 25.5 points", bet, result, sport_default_odds("nba"), derive_stats(bet))
    assert record.bet_type == "prop"
    assert record.data_sources.context_quality == "poor"
    assert record.recommendation == "lean"


def test_confidence_follows_probability_once_any_source_is_real() -> None:
    bet = ParsedBet(sport="nba", teams=("Lakers", "Warriors"), line=7.5, bet_on="spread", confidence=0.6)
    result = to_analysis_result(SynthesisResult.model_validate(synthesis_payload()))
    typical = sport_default_odds("nba")
    matched = typical.model_copy(update={"game_found": True})
    derived = derive_stats(bet)

    assert is_fully_derived(typical, derived)
    assert not is_fully_derived(matched, derived)
    assert format_result("Lakers -7.5 vs Warriors", bet, result, typical, derived).confidence == "low"
    assert format_result("Lakers -7.5 vs Warriors", bet, result, matched, derived).confidence == "medium"
