"""Turns analysis results into the externally visible record."""

from __future__ import annotations

from betbot.agents.bet_parser import detect_bet_type
from betbot.analysis.quality import HARD_BOUNDS, quality_score, summarize_data_quality
from betbot.config import get_settings
from betbot.data.schemas import (
    AnalysisResult,
    BetAnalysis,
    ContextBundle,
    CreatorAlgorithm,
    DataSources,
    OddsSnapshot,
    ParsedBet,
    StatsSnapshot,
    StatsTier,
    SynthesisResult,
)


def clamp_probability(value: float) -> int:
    return max(HARD_BOUNDS[0], min(HARD_BOUNDS[1], round(value)))


def confidence_bucket(probability: float) -> str:
    if probability >= 70:
        return "high"
    if probability >= 55:
        return "medium"
    return "low"


def recommendation_bucket(probability: float, threshold: int | None = None) -> str:
    """Map a probability to strong_play/lean/pass/fade relative to the caller threshold."""

    threshold = get_settings().default_confidence_threshold if threshold is None else threshold
    if probability >= max(70, threshold):
        return "strong_play"
    if probability >= threshold:
        return "lean"
    if probability >= 45:
        return "pass"
    return "fade"


def to_analysis_result(synthesis: SynthesisResult) -> AnalysisResult:
    return AnalysisResult(
        win_probability=clamp_probability(synthesis.win_probability),
        confidence=synthesis.confidence,
        key_factors=synthesis.key_factors,
        market_analysis=synthesis.market_analysis,
        risk_factors=synthesis.risk_factors,
        recommendation=synthesis.recommendation,
        reasoning=synthesis.reasoning,
        quality_score=quality_score(synthesis),
    )


def is_fully_derived(odds: OddsSnapshot, stats: StatsSnapshot) -> bool:
    """True when neither odds nor stats came from a live or curated source."""

    return not odds.game_found and stats.tier is StatsTier.DERIVED


def format_result(
    text: str,
    parsed: ParsedBet,
    result: AnalysisResult,
    odds: OddsSnapshot,
    stats: StatsSnapshot,
    context: ContextBundle | None = None,
    algorithm: CreatorAlgorithm | None = None,
    creator_response: str = "",
    notice: str | None = None,
) -> BetAnalysis:
    probability = clamp_probability(result.win_probability)
    threshold = algorithm.confidence_threshold if algorithm else None
    status, warnings = summarize_data_quality(odds, stats)
    return BetAnalysis(
        bet_description=text,
        bet_type=detect_bet_type(parsed),
        sport=parsed.sport,
        win_probability=probability,
        confidence="low" if is_fully_derived(odds, stats) else confidence_bucket(probability),
        recommendation=recommendation_bucket(probability, threshold),
        key_factors=list(result.key_factors),
        market_analysis=result.market_analysis,
        risk_factors=list(result.risk_factors),
        reasoning=result.reasoning,
        creator_response=creator_response,
        data_sources=DataSources(
            odds=odds.source,
            stats=stats.source,
            context_quality=context.data_quality if context else "poor",
            data_status=status,
            warnings=warnings,
        ),
        quality_score=result.quality_score,
        is_fallback=result.is_fallback,
        notice=notice,
    )
