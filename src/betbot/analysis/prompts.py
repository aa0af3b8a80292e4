"""Prompt templates for the six analysis stages."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel

from betbot.data.schemas import (
    ContextBundle,
    MarketResult,
    OddsSnapshot,
    ParsedBet,
    RiskResult,
    SituationalResult,
    SportSpecificResult,
    StatisticalResult,
    StatsSnapshot,
)


@dataclass(frozen=True)
class AnalysisContext:
    """Everything the stages see about one bet."""

    bet: ParsedBet
    raw_text: str
    odds: OddsSnapshot
    stats: StatsSnapshot
    context: ContextBundle

    @property
    def player_label(self) -> str:
        return self.bet.player or "Team bet"

    @property
    def teams_label(self) -> str:
        return " vs ".join(self.bet.teams) if self.bet.teams else "N/A"

    @property
    def line_label(self) -> str:
        return f"{self.bet.line:g}" if self.bet.line is not None else "N/A"

    @property
    def sport_label(self) -> str:
        return (self.bet.sport or "unknown").upper()


def dump(model: BaseModel) -> str:
    return model.model_dump_json(indent=2, exclude_none=True)


SCORED = '{"score": 1-10, "reasoning": "short explanation"}'

NAME_RULES = """CRITICAL REQUIREMENTS:
- Use EXACT player names from the bet: "{player}"
- Use EXACT team names: {teams}
- Do NOT invent statistics that are not in the data provided
- Only use {sport} terminology
- Return JSON only, no commentary"""


def _rules(ctx: AnalysisContext) -> str:
    return NAME_RULES.format(player=ctx.bet.player or "N/A", teams=ctx.teams_label, sport=ctx.sport_label)


def _header(ctx: AnalysisContext) -> str:
    return (
        f'BET: "{ctx.raw_text}"\n'
        f"SPORT: {ctx.sport_label}\n"
        f"PLAYER: {ctx.player_label}\n"
        f"TEAMS: {ctx.teams_label}\n"
        f"LINE: {ctx.line_label}\n"
        f"BET ON: {ctx.bet.bet_on or 'N/A'}"
    )


def situational_prompt(ctx: AnalysisContext) -> str:
    return f"""You are an elite sports analyst specializing in situational context. Analyze the situational factors for this bet:

{_header(ctx)}
DATE: {date.today():%a %b %d %Y}

REAL-TIME CONTEXT (data quality: {ctx.context.data_quality}):
{dump(ctx.context)}

SITUATIONAL FACTORS TO ANALYZE:
1. Game importance (playoff implications, rivalry, revenge game)
2. Schedule situation (rest days, travel, back-to-backs)
3. Seasonal context
4. Weather impact (outdoor sports only)
5. Venue factors (home advantage, altitude, crowd)
6. Motivation levels
7. Coaching factors

{_rules(ctx)}

Return JSON:
{{
  "game_importance": {SCORED},
  "schedule_impact": {SCORED},
  "seasonal_context": {SCORED},
  "weather_impact": {SCORED},
  "venue_factors": {SCORED},
  "motivation_levels": {SCORED},
  "coaching_factors": {SCORED},
  "overall_situational_score": 1-10,
  "key_insights": ["insight 1", "insight 2", "insight 3"],
  "risk_factors": ["risk 1", "risk 2"]
}}"""


def market_prompt(ctx: AnalysisContext, situational: SituationalResult) -> str:
    return f"""You are a sharp sports bettor analyzing market dynamics. Evaluate the betting market for this bet:

{_header(ctx)}

ODDS DATA (source: {ctx.odds.source}):
{dump(ctx.odds)}

SITUATIONAL CONTEXT:
Overall situational score: {situational.overall_situational_score}/10
Key insights: {", ".join(situational.key_insights)}

MARKET ANALYSIS FRAMEWORK:
1. Line value (is this line accurate given the true probability?)
2. Market movement
3. Sharp vs public money
4. Public bias
5. Market efficiency
6. Optimal timing for placing the bet

{_rules(ctx)}

Return JSON (probabilities are percentages 0-100):
{{
  "line_value": {SCORED},
  "market_movement": {SCORED},
  "sharp_action": {SCORED},
  "public_bias": {SCORED},
  "market_efficiency": {SCORED},
  "optimal_timing": "bet now/wait/avoid with a short reason",
  "implied_probability": 0-100,
  "true_probability": 0-100,
  "expected_value": number,
  "market_advice": "one or two sentences"
}}"""


def statistical_prompt(ctx: AnalysisContext, situational: SituationalResult, market: MarketResult) -> str:
    return f"""You are a data scientist specializing in sports analytics. Perform a deep statistical analysis:

{_header(ctx)}

AVAILABLE DATA (source: {ctx.stats.source}):
{dump(ctx.stats)}

SITUATIONAL CONTEXT:
{dump(situational)}

MARKET CONTEXT:
Line value: {market.line_value.score}/10 ({market.line_value.reasoning})
True probability estimate: {market.true_probability}

STATISTICAL ANALYSIS REQUIREMENTS:
1. Historical performance
2. Matchup-specific trends
3. Regression risk
4. Variance and sample size
5. Recent form vs long-term averages
6. Opponent impact

{_rules(ctx)}

Return JSON:
{{
  "historical_performance": {SCORED},
  "matchup_analysis": {SCORED},
  "regression_risk": {SCORED},
  "variance_factors": {SCORED},
  "recent_form": {SCORED},
  "opponent_impact": {SCORED},
  "statistical_probability": 0-100,
  "confidence_interval": [low, high],
  "key_statistics": ["stat 1", "stat 2", "stat 3"],
  "data_quality": {SCORED}
}}"""


def sport_specific_prompt(
    ctx: AnalysisContext,
    expert: str,
    factors: dict[str, str],
    situational: SituationalResult,
    market: MarketResult,
    statistical: StatisticalResult,
) -> str:
    listed = "\n".join(f"{i}. {desc}" for i, desc in enumerate(factors.values(), start=1))
    factor_json = ",\n    ".join(f'"{key}": {SCORED}' for key in factors)
    return f"""You are {expert}. Perform a specialized {ctx.sport_label} analysis:

{_header(ctx)}

PRIOR ANALYSIS:
Situational score: {situational.overall_situational_score}/10
Market true probability: {market.true_probability}
Statistical probability: {statistical.statistical_probability}
Key statistics: {", ".join(statistical.key_statistics)}

{ctx.sport_label}-SPECIFIC FACTORS TO ANALYZE:
{listed}

{_rules(ctx)}

Return JSON:
{{
  "sport_factors": {{
    {factor_json}
  }},
  "probability_estimate": 0-100,
  "key_factors": ["insight 1", "insight 2", "insight 3"],
  "confidence_level": 1-10
}}"""


def risk_prompt(
    ctx: AnalysisContext,
    situational: SituationalResult,
    market: MarketResult,
    statistical: StatisticalResult,
    sport_specific: SportSpecificResult,
) -> str:
    return f"""You are a risk management expert for sports betting. Assess all risk factors:

{_header(ctx)}

WIN PROBABILITY ESTIMATES:
- Market implied: {market.implied_probability}
- Statistical model: {statistical.statistical_probability}
- Sport-specific: {sport_specific.probability_estimate}

ANALYSIS SUMMARY:
Situational score: {situational.overall_situational_score}/10
Market efficiency: {market.market_efficiency.score}/10
Statistical confidence interval: {list(statistical.confidence_interval)}
Injury news: {ctx.context.injuries.impact}

RISK FRAMEWORK: variance, missing information, market movement, injuries,
weather, officiating, coaching decisions, motivation, luck, model limitations.

{_rules(ctx)}

Return JSON:
{{
  "overall_risk_level": "low|medium|high|extreme",
  "risk_score": 1-100,
  "variance_risk": {SCORED},
  "information_risk": {SCORED},
  "market_risk": {SCORED},
  "black_swan_events": ["event 1", "event 2"],
  "risk_mitigation": ["strategy 1", "strategy 2"]
}}"""


def synthesis_prompt(
    ctx: AnalysisContext,
    situational: SituationalResult,
    market: MarketResult,
    statistical: StatisticalResult,
    sport_specific: SportSpecificResult,
    risk: RiskResult,
) -> str:
    insights = {
        "situational": situational.key_insights,
        "market": market.market_advice,
        "statistical": statistical.key_statistics,
        "sport_specific": sport_specific.key_factors,
        "black_swans": risk.black_swan_events,
    }
    return f"""You are the head of a professional sports betting syndicate making the final decision. Synthesize all analysis into a final recommendation:

{_header(ctx)}

ANALYSIS SUMMARY:
Situational score: {situational.overall_situational_score}/10
Market line value: {market.line_value.score}/10
Statistical probability: {statistical.statistical_probability}
Sport-specific probability: {sport_specific.probability_estimate}
Risk level: {risk.overall_risk_level} ({risk.risk_score}/100)

KEY INSIGHTS:
{json.dumps(insights, indent=2)}

SYNTHESIS REQUIREMENTS:
1. Final win probability between 15 and 85, weighing every estimate above
2. Confidence level from the agreement between the models
3. 5-7 key factors, the most important insights across all analyses
4. A 2-3 sentence market analysis
5. The top 3 risk factors
6. A recommendation: STRONG_BUY, BUY, HOLD or SELL
7. Detailed reasoning of at least 300 characters

{_rules(ctx)}

Return JSON:
{{
  "win_probability": 15-85,
  "confidence": "low|medium|high",
  "key_factors": ["factor 1", "factor 2", "factor 3", "factor 4", "factor 5"],
  "market_analysis": "2-3 sentences",
  "risk_factors": ["risk 1", "risk 2", "risk 3"],
  "recommendation": "STRONG_BUY|BUY|HOLD|SELL",
  "reasoning": "detailed explanation"
}}"""
