"""Sport-specific analysis strategies and their registry."""

from __future__ import annotations

from betbot.agents.llm_client import TextGenerator, complete_json
from betbot.analysis.prompts import AnalysisContext, sport_specific_prompt
from betbot.config import get_settings
from betbot.data.schemas import MarketResult, SituationalResult, SportSpecificResult, StatisticalResult


class SportStrategy:
    """Base strategy: one model call scoring a sport's own factor list."""

    sport = "generic"
    expert = "a multi-sport analytics expert"
    max_tokens = 1500
    temperature = 0.2
    factors: dict[str, str] = {
        "matchup_quality": "Overall matchup quality between the sides",
        "form": "Recent form of the teams or player",
        "venue": "Venue and travel effects",
        "motivation": "Motivation and stakes",
    }

    def __init__(self, generator: TextGenerator, timeout: float | None = None) -> None:
        self.generator = generator
        self.timeout = timeout or get_settings().long_timeout_seconds

    def prompt(
        self,
        ctx: AnalysisContext,
        situational: SituationalResult,
        market: MarketResult,
        statistical: StatisticalResult,
    ) -> str:
        return sport_specific_prompt(ctx, self.expert, self.factors, situational, market, statistical)

    async def analyze(
        self,
        ctx: AnalysisContext,
        situational: SituationalResult,
        market: MarketResult,
        statistical: StatisticalResult,
    ) -> SportSpecificResult:
        return await complete_json(
            self.generator,
            self.prompt(ctx, situational, market, statistical),
            SportSpecificResult,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            timeout=self.timeout,
        )


class NBAStrategy(SportStrategy):
    sport = "nba"
    expert = "an NBA analytics expert"
    factors = {
        "usage": "Usage rate and role in the offense",
        "pace": "Pace of play and possessions",
        "rest": "Rest advantage, back-to-backs and days off",
        "home_court": "Home court advantage and altitude",
        "officiating": "Referee tendencies affecting fouls and totals",
        "injuries": "Injury report and load management",
        "rotations": "Coaching rotations and crunch-time minutes",
    }


class NFLStrategy(SportStrategy):
    sport = "nfl"
    expert = "an NFL analytics expert"
    factors = {
        "weather": "Wind, rain, snow and temperature",
        "game_script": "Expected game flow, close game or blowout",
        "red_zone": "Red zone efficiency, touchdowns vs field goals",
        "injuries": "Late-week injury report",
        "divisional": "Divisional familiarity and rivalry",
        "travel": "Travel distance and time zones",
        "play_calling": "Aggressive vs conservative play calling",
    }


class MLBStrategy(SportStrategy):
    sport = "mlb"
    expert = "an MLB analytics expert"
    factors = {
        "pitching_matchup": "Starting pitcher quality and bullpen depth",
        "ballpark": "Ballpark dimensions and park factors",
        "weather": "Wind direction, humidity and temperature",
        "platoon": "Lefty/righty platoon splits",
        "lineup": "Batting order position and plate appearances",
        "umpire": "Umpire strike zone tendencies",
        "bullpen_usage": "Recent bullpen workload",
    }


class NHLStrategy(SportStrategy):
    sport = "nhl"
    expert = "an NHL analytics expert"
    factors = {
        "goaltending": "Starting goalie form and save percentage",
        "special_teams": "Power play and penalty kill efficiency",
        "ice_time": "Ice time and line deployment",
        "back_to_back": "Back-to-back and travel fatigue",
        "home_ice": "Home ice and last change",
        "shot_volume": "Shot generation and suppression",
    }


class GenericStrategy(SportStrategy):
    max_tokens = 1000


STRATEGIES: dict[str, type[SportStrategy]] = {
    "nba": NBAStrategy,
    "nfl": NFLStrategy,
    "mlb": MLBStrategy,
    "nhl": NHLStrategy,
}


def get_sport_strategy(
    sport: str | None, generator: TextGenerator, timeout: float | None = None
) -> SportStrategy:
    return STRATEGIES.get((sport or "").lower(), GenericStrategy)(generator, timeout)
