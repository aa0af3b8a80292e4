"""Pydantic models shared by the parser, resolvers and analysis engine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Sport = Literal["nba", "nfl", "mlb", "nhl", "soccer", "tennis", "mma"]
SPORTS: tuple[str, ...] = ("nba", "nfl", "mlb", "nhl", "soccer", "tennis", "mma")
Confidence = Literal["low", "medium", "high"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- parsing -----------------------------------------------------------------


class ParsedBet(BaseModel):
    """Structured reading of a free-text bet."""

    model_config = ConfigDict(frozen=True)

    sport: Sport | None = None
    kind: Literal["team", "player"] = "team"
    teams: tuple[str, str] | None = None
    player: str | None = None
    line: float | None = None
    bet_on: str | None = None
    specific_bet_type: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    source: Literal["ai", "fallback"] = "fallback"


# --- odds --------------------------------------------------------------------


class Outcome(BaseModel):
    name: str
    price: float
    point: float | None = None


class Market(BaseModel):
    key: str
    outcomes: list[Outcome] = Field(default_factory=list)


class Bookmaker(BaseModel):
    key: str
    title: str = ""
    markets: list[Market] = Field(default_factory=list)


class Game(BaseModel):
    """A single event as returned by the odds aggregation provider."""

    id: str = ""
    sport_key: str = ""
    home_team: str
    away_team: str
    commence_time: datetime | None = None
    bookmakers: list[Bookmaker] = Field(default_factory=list)

    @property
    def label(self) -> str:
        return f"{self.home_team} vs {self.away_team}"


class BookOdds(BaseModel):
    spread: float | None = None
    home_spread_odds: float | None = None
    away_spread_odds: float | None = None
    total: float | None = None
    over_odds: float | None = None
    under_odds: float | None = None
    moneyline_home: float | None = None
    moneyline_away: float | None = None


class OddsSource(str, Enum):
    LIVE = "live"
    REFERENCE_GAME = "reference_game"
    SPORT_DEFAULT = "sport_default"
    PARSING_FAILED = "parsing_failed"
    NO_TEAMS = "no_teams"
    NO_GAMES = "no_games"


class OddsSnapshot(BaseModel):
    source: str
    source_kind: OddsSource
    game_found: bool = False
    books: dict[str, BookOdds] = Field(default_factory=dict)
    matched_game: str | None = None
    commence_time: datetime | None = None
    searched_teams: list[str] = Field(default_factory=list)
    games_available: int = 0
    message: str = ""


# --- stats -------------------------------------------------------------------


class StatsTier(IntEnum):
    PROFESSIONAL = 1
    CURATED = 2
    SEARCH = 3
    DERIVED = 4


class PlayerStats(BaseModel):
    name: str
    sport: str
    team: str | None = None
    season_average_points: float | None = None
    recent_form_points: float | None = None
    usage_rate: float | None = None
    minutes_played: float | None = None
    rebounds: float | None = None
    assists: float | None = None
    opponent_defense_rank: int | None = None
    passing_yards: float | None = None
    touchdown_passes: float | None = None
    rushing_yards: float | None = None
    receptions: float | None = None
    receiving_yards: float | None = None
    batting_average: float | None = None
    home_runs: float | None = None
    rbis: float | None = None
    era: float | None = None
    strikeouts: float | None = None
    goals: float | None = None
    points: float | None = None
    save_percentage: float | None = None

    def populated(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True, exclude={"name", "sport", "team"})


class TeamStats(BaseModel):
    name: str
    sport: str | None = None
    offense_rating: float | None = None
    defense_rating: float | None = None
    head_to_head_win_pct: float | None = None
    home_record: str | None = None
    wins: int | None = None
    losses: int | None = None
    injuries: list[str] = Field(default_factory=list)
    rest_days: int | None = None


class StatsSnapshot(BaseModel):
    source: str
    tier: StatsTier
    player: PlayerStats | None = None
    team1: TeamStats | None = None
    team2: TeamStats | None = None
    message: str = ""


# --- context -----------------------------------------------------------------


class ContextSignal(BaseModel):
    impact: str
    numeric_impact: int | None = Field(default=None, ge=1, le=10)
    details: dict[str, Any] = Field(default_factory=dict)
    available: bool = True


class ContextBundle(BaseModel):
    weather: ContextSignal
    injuries: ContextSignal
    line_movement: ContextSignal
    sentiment: ContextSignal
    recent_performance: ContextSignal
    coaching: ContextSignal
    venue: ContextSignal
    data_quality: Literal["excellent", "good", "fair", "poor"]
    gathered_at: datetime = Field(default_factory=_utcnow)


# --- analysis stages ---------------------------------------------------------


class StageModel(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class ScoredFactor(StageModel):
    score: int = Field(ge=1, le=10)
    reasoning: str


class SituationalResult(StageModel):
    game_importance: ScoredFactor
    schedule_impact: ScoredFactor
    seasonal_context: ScoredFactor
    weather_impact: ScoredFactor
    venue_factors: ScoredFactor
    motivation_levels: ScoredFactor
    coaching_factors: ScoredFactor
    overall_situational_score: int = Field(ge=1, le=10)
    key_insights: list[str]
    risk_factors: list[str]


class MarketResult(StageModel):
    line_value: ScoredFactor
    market_movement: ScoredFactor
    sharp_action: ScoredFactor
    public_bias: ScoredFactor
    market_efficiency: ScoredFactor
    optimal_timing: str
    implied_probability: float = Field(ge=0.0, le=100.0)
    true_probability: float = Field(ge=0.0, le=100.0)
    expected_value: float
    market_advice: str


class StatisticalResult(StageModel):
    historical_performance: ScoredFactor
    matchup_analysis: ScoredFactor
    regression_risk: ScoredFactor
    variance_factors: ScoredFactor
    recent_form: ScoredFactor
    opponent_impact: ScoredFactor
    statistical_probability: float = Field(ge=0.0, le=100.0)
    confidence_interval: tuple[float, float]
    key_statistics: list[str]
    data_quality: ScoredFactor


class SportSpecificResult(StageModel):
    probability_estimate: float = Field(ge=0.0, le=100.0)
    key_factors: list[str]
    confidence_level: int = Field(ge=1, le=10)
    sport_factors: dict[str, ScoredFactor] = Field(default_factory=dict)


class RiskResult(StageModel):
    overall_risk_level: Literal["low", "medium", "high", "extreme"]
    risk_score: int = Field(ge=1, le=100)
    variance_risk: ScoredFactor
    information_risk: ScoredFactor
    market_risk: ScoredFactor
    black_swan_events: list[str]
    risk_mitigation: list[str]


class SynthesisResult(StageModel):
    # probability bounds are enforced by the quality gate, not here
    win_probability: float
    confidence: Confidence
    key_factors: list[str]
    market_analysis: str
    risk_factors: list[str]
    recommendation: Literal["STRONG_BUY", "BUY", "HOLD", "SELL"]
    reasoning: str

    @field_validator("confidence", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("recommendation", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.upper().replace(" ", "_") if isinstance(value, str) else value


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    win_probability: int = Field(ge=1, le=99)
    confidence: Confidence
    key_factors: list[str]
    market_analysis: str
    risk_factors: list[str]
    recommendation: str
    reasoning: str
    quality_score: int = Field(default=0, ge=0, le=100)
    is_fallback: bool = False


# --- caller configuration ----------------------------------------------------


def _check_weight_sum(weights: BaseModel) -> None:
    total = sum(weights.model_dump().values())
    if abs(total - 1.0) > 0.01:
        raise ValueError(f"weights must sum to 1.0, got {total:.3f}")


class StraightBetWeights(BaseModel):
    team_offense: float = Field(default=0.25, ge=0.0, le=1.0)
    team_defense: float = Field(default=0.20, ge=0.0, le=1.0)
    head_to_head: float = Field(default=0.15, ge=0.0, le=1.0)
    home_away: float = Field(default=0.15, ge=0.0, le=1.0)
    injuries: float = Field(default=0.15, ge=0.0, le=1.0)
    rest_days: float = Field(default=0.10, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _sums_to_one(self) -> "StraightBetWeights":
        _check_weight_sum(self)
        return self


class PlayerPropWeights(BaseModel):
    season_average: float = Field(default=0.25, ge=0.0, le=1.0)
    recent_form: float = Field(default=0.25, ge=0.0, le=1.0)
    matchup_history: float = Field(default=0.15, ge=0.0, le=1.0)
    usage: float = Field(default=0.15, ge=0.0, le=1.0)
    minutes: float = Field(default=0.10, ge=0.0, le=1.0)
    opponent_defense: float = Field(default=0.10, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _sums_to_one(self) -> "PlayerPropWeights":
        _check_weight_sum(self)
        return self


class CreatorAlgorithm(BaseModel):
    """Caller-supplied weighting and voice configuration."""

    model_config = ConfigDict(frozen=True)

    name: str = "Default"
    straight_bet_weights: StraightBetWeights = Field(default_factory=StraightBetWeights)
    player_prop_weights: PlayerPropWeights = Field(default_factory=PlayerPropWeights)
    confidence_threshold: int = Field(default=55, ge=1, le=100)
    response_tone: Literal["professional", "casual", "hype"] = "professional"
    custom_response_style: str | None = None
    signature_phrase: str | None = None
    brand_color: str | None = None


# --- outputs -----------------------------------------------------------------


class DataSources(BaseModel):
    odds: str
    stats: str
    context_quality: str
    data_status: str = "Valid"
    warnings: list[str] = Field(default_factory=list)


class BetAnalysis(BaseModel):
    """Externally visible analysis record."""

    status: Literal["analyzed"] = "analyzed"
    bet_description: str
    bet_type: Literal["straight", "prop", "total", "moneyline"]
    sport: str | None = None
    win_probability: int = Field(ge=1, le=99)
    confidence: Confidence
    recommendation: Literal["strong_play", "lean", "pass", "fade"]
    key_factors: list[str]
    market_analysis: str
    risk_factors: list[str]
    reasoning: str
    creator_response: str = ""
    data_sources: DataSources
    quality_score: int = 0
    is_fallback: bool = False
    notice: str | None = None
    analyzed_at: datetime = Field(default_factory=_utcnow)


class UnableToAnalyze(BaseModel):
    status: Literal["unable_to_analyze"] = "unable_to_analyze"
    bet_description: str
    reason: str
    parsed_bet: ParsedBet | None = None
