"""Quality gates for parsed bets and synthesized analyses, plus the local fallback."""

from __future__ import annotations

import logging
import random
import re
from collections.abc import Iterable

from betbot.config import get_settings
from betbot.data.schemas import (
    AnalysisResult,
    OddsSnapshot,
    OddsSource,
    ParsedBet,
    StatsSnapshot,
    StatsTier,
    SynthesisResult,
)
from betbot.errors import ParseConfidenceError

logger = logging.getLogger(__name__)

SOFT_BOUNDS = (15, 85)
HARD_BOUNDS = (1, 99)
FAKE_NAME_MARKERS = ("test", "example", "sample", "fake")

# terms that only belong to other sports' narratives
FORBIDDEN_TERMS: dict[str, tuple[str, ...]] = {
    "mlb": ("points", "assists", "rebounds", "touchdown", "three-pointer", "puck", "power play"),
    "nba": ("home run", "RBI", "ERA", "strikeout", "innings", "touchdown", "puck"),
    "nfl": ("home run", "RBI", "ERA", "rebounds", "innings", "puck", "three-pointer"),
    "nhl": ("home run", "RBI", "ERA", "rebounds", "innings", "touchdown", "three-pointer"),
}

_PLACEHOLDER_RE = re.compile(r"\b(?:Team [AB12]|Player [XYZ]|Opponent X)\b")
_NUMBER_RE = re.compile(r"\d+\.?\d*")
_PLAYER_PROP_RE = re.compile(r"\b(?:over|under)\b", re.IGNORECASE)
_TEAM_BET_RE = re.compile(r"\bvs\b|\s@\s|(?<![\w.])[+-]\d+\.?\d*\b", re.IGNORECASE)


def _term_pattern(term: str) -> re.Pattern[str]:
    if term.isupper():
        return re.compile(rf"\b{term}s?\b")
    return re.compile(rf"\b{re.escape(term)}s?\b", re.IGNORECASE)


_FORBIDDEN_PATTERNS = {
    sport: [(term, _term_pattern(term)) for term in terms] for sport, terms in FORBIDDEN_TERMS.items()
}


def check_parsed_bet(parsed: ParsedBet, min_confidence: float | None = None) -> None:
    """Raise ParseConfidenceError when a bet is too uncertain to analyze."""

    threshold = get_settings().min_parse_confidence if min_confidence is None else min_confidence
    if parsed.sport is None:
        raise ParseConfidenceError("Could not identify the sport for this bet.")
    if parsed.confidence < threshold:
        raise ParseConfidenceError(
            f"Could not understand this bet (parse confidence {parsed.confidence:.2f})."
        )


def validate_parsed_bet_realism(parsed: ParsedBet, original_text: str) -> list[str]:
    """Sanity-check a parsed bet; an empty list means it looks realistic."""

    errors: list[str] = []
    line = parsed.line
    bet_type = (parsed.specific_bet_type or "").lower()
    if parsed.kind == "player" and line is not None:
        if parsed.sport == "nba" and bet_type == "points" and not 5 <= line <= 60:
            errors.append(f"NBA points line {line} is unrealistic")
        if parsed.sport == "nfl":
            if bet_type == "touchdown_passes" and line > 6:
                errors.append(f"NFL touchdown passes line {line} is unrealistic")
            if bet_type == "rushing_yards" and line > 300:
                errors.append(f"NFL rushing yards line {line} is unrealistic")
        if parsed.sport == "mlb" and bet_type == "home_runs" and line > 4:
            errors.append(f"MLB home runs line {line} is unrealistic")
    if parsed.player and any(marker in parsed.player.lower() for marker in FAKE_NAME_MARKERS):
        errors.append(f"Player name {parsed.player!r} looks like a placeholder")
    if line is not None:
        numbers = [float(n) for n in _NUMBER_RE.findall(original_text)]
        if numbers and abs(line) not in numbers:
            errors.append(f"Parsed line {line} does not appear in the bet text")
    return errors


def find_terminology_leaks(sport: str | None, texts: Iterable[str]) -> list[str]:
    patterns = _FORBIDDEN_PATTERNS.get(sport or "", [])
    blob = "\n".join(texts)
    return [term for term, pattern in patterns if pattern.search(blob)]


def validate_synthesis(
    result: SynthesisResult,
    parsed: ParsedBet,
    *,
    min_reasoning_chars: int | None = None,
    min_key_factors: int | None = None,
) -> list[str]:
    """Return a list of problems with a synthesis; empty means it passes."""

    settings = get_settings()
    min_chars = settings.min_reasoning_chars if min_reasoning_chars is None else min_reasoning_chars
    min_factors = settings.min_key_factors if min_key_factors is None else min_key_factors
    problems: list[str] = []

    prob = result.win_probability
    if not HARD_BOUNDS[0] <= prob <= HARD_BOUNDS[1]:
        problems.append(f"win probability {prob} outside hard bounds")
    elif not SOFT_BOUNDS[0] <= prob <= SOFT_BOUNDS[1]:
        problems.append(f"win probability {prob} outside realistic band")
    if len(result.key_factors) < min_factors:
        problems.append(f"only {len(result.key_factors)} key factors")
    if len(result.reasoning.strip()) < min_chars:
        problems.append(f"reasoning shorter than {min_chars} characters")

    narrative = [result.reasoning, result.market_analysis, *result.key_factors]
    leaks = find_terminology_leaks(parsed.sport, narrative)
    if leaks:
        problems.append(f"{parsed.sport} analysis mentions unrelated terms: {', '.join(leaks)}")
    if (parsed.teams or parsed.player) and any(_PLACEHOLDER_RE.search(t) for t in narrative):
        problems.append("analysis uses placeholder names instead of the real ones")
    return problems


def quality_score(result: SynthesisResult) -> int:
    score = 0
    if SOFT_BOUNDS[0] <= result.win_probability <= SOFT_BOUNDS[1]:
        score += 20
    if len(result.key_factors) >= 5:
        score += 20
    if len(result.reasoning) >= 300:
        score += 20
    if len(result.market_analysis) >= 50:
        score += 20
    if len(result.risk_factors) >= 3:
        score += 20
    return score


def summarize_data_quality(odds: OddsSnapshot, stats: StatsSnapshot) -> tuple[str, list[str]]:
    warnings: list[str] = []
    status = "Valid"
    if not odds.game_found:
        warnings.append("No live odds for this game; using reference or typical lines")
        status = "Limited Data"
    if stats.tier is StatsTier.DERIVED:
        warnings.append("Using derived statistics, not real player/team data")
        status = "Limited Data"
    if odds.source_kind in (OddsSource.PARSING_FAILED, OddsSource.NO_TEAMS) and stats.tier is StatsTier.DERIVED:
        warnings.append("Provider data unavailable; analysis relies on defaults")
        status = "Data Issues"
    return status, warnings


def manual_key_factors(parsed: ParsedBet, odds: OddsSnapshot | None, stats: StatsSnapshot | None) -> list[str]:
    """Build key factors straight from the data that was available."""

    factors: list[str] = []
    if odds and odds.books:
        book, numbers = next(iter(odds.books.items()))
        if numbers.spread is not None:
            factors.append(f"{book} spread {numbers.spread:+.1f} ({odds.source})")
        if numbers.total is not None:
            factors.append(f"{book} total {numbers.total:.1f}")
    if stats and stats.player:
        for field, value in list(stats.player.populated().items())[:2]:
            factors.append(f"{stats.player.name} {field.replace('_', ' ')}: {value}")
    if stats and stats.team1 and stats.team1.offense_rating is not None:
        factors.append(f"{stats.team1.name} offensive rating {stats.team1.offense_rating:.2f}")
    if parsed.line is not None and parsed.bet_on:
        factors.append(f"Line of {parsed.line:g} ({parsed.bet_on})")
    return factors


def heuristic_fallback(
    text: str,
    parsed: ParsedBet | None = None,
    odds: OddsSnapshot | None = None,
    stats: StatsSnapshot | None = None,
    rng: random.Random | None = None,
) -> AnalysisResult:
    """Cheap local estimate used when the full analysis cannot be trusted."""

    rng = rng or random.Random()
    is_player_prop = bool(_PLAYER_PROP_RE.search(text) and _NUMBER_RE.search(text))
    is_team_bet = bool(_TEAM_BET_RE.search(text))

    if is_player_prop:
        probability = rng.randint(45, 55)
        factors = [
            "Player prop detected; these carry higher variance",
            "Line analysis needs current game context",
            "Check the player's last five games before betting",
        ]
    elif is_team_bet:
        probability = rng.randint(48, 52)
        factors = [
            "Team matchup bet detected",
            "Spread and total analysis needs current odds",
            "Home advantage and recent form are the key factors",
        ]
    else:
        probability = 50
        factors = ["Bet structure could not be classified", "Treat as a coin flip until more data is available"]

    if parsed is not None:
        factors = manual_key_factors(parsed, odds, stats) + factors
    logger.info("Heuristic fallback produced %d%% for %r", probability, text)
    return AnalysisResult(
        win_probability=probability,
        confidence="low",
        key_factors=factors[:7],
        market_analysis="Live market analysis unavailable; estimate based on bet structure only.",
        risk_factors=[
            "Full multi-step analysis was not available",
            "Estimate is not backed by live odds or statistics",
            "Standard betting variance applies",
        ],
        recommendation="HOLD",
        reasoning=(
            "Full analysis temporarily unavailable. This estimate comes from a local heuristic "
            "that only considers whether the bet is a player prop or a team bet."
        ),
        quality_score=0,
        is_fallback=True,
    )
