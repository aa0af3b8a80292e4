"""Creator-voiced bullet summaries of a finished analysis."""

from __future__ import annotations

import logging

from betbot.agents.llm_client import TextGenerator
from betbot.config import get_settings
from betbot.data.schemas import BetAnalysis, CreatorAlgorithm, ParsedBet

logger = logging.getLogger(__name__)

DEFAULT_SIGNATURE = "Get that bag!"
MIN_RESPONSE_CHARS = 150
BULLET = "•"

NARRATIVE_SYSTEM_PROMPT = (
    "You write short betting takes for a sports creator's audience. Stay on the bet you are given, "
    "never promise outcomes and keep any numbers consistent with the analysis."
)

TONES = {
    "professional": "measured and data-driven",
    "casual": "relaxed and conversational",
    "hype": "high-energy and enthusiastic",
}


def _subject(parsed: ParsedBet | None) -> str:
    if parsed is None:
        return "This bet"
    if parsed.player:
        return parsed.player
    if parsed.teams:
        return " vs ".join(parsed.teams)
    return "This bet"


def basic_bullet_response(analysis: BetAnalysis, algorithm: CreatorAlgorithm, parsed: ParsedBet | None = None) -> str:
    """Template take used when the model is unavailable or its answer is unusable."""

    risk = analysis.risk_factors[0] if analysis.risk_factors else "standard betting variance"
    quick_take = [
        f"{_subject(parsed)} has a {analysis.win_probability}% win probability based on the full analysis",
        f"{analysis.confidence.upper()} confidence with {len(analysis.key_factors)} supporting factors",
        f"Market read: {analysis.market_analysis or 'standard conditions'}",
        f"Main risk: {risk}",
    ]
    lines = ["Quick Take:"]
    lines += [f"{BULLET} {point}" for point in quick_take]
    lines += ["", "Key Supporting Factors:"]
    lines += [f"{BULLET} {factor}" for factor in analysis.key_factors[:3]]
    lines += [
        "",
        f"Bottom Line: {analysis.recommendation.replace('_', ' ').upper()} at {analysis.win_probability}% "
        f"win probability.",
        "",
        algorithm.signature_phrase or DEFAULT_SIGNATURE,
    ]
    return "\n".join(lines)


def build_narrative_prompt(analysis: BetAnalysis, algorithm: CreatorAlgorithm, parsed: ParsedBet | None) -> str:
    if algorithm.custom_response_style:
        style = (
            "Replicate this creator's writing style exactly: tone, vocabulary, formatting and catchphrases.\n"
            f"STYLE EXAMPLES:\n{algorithm.custom_response_style}\n"
        )
    else:
        style = f"Write in a {TONES.get(algorithm.response_tone, 'measured')} voice.\n"
    player = parsed.player if parsed and parsed.player else "N/A"
    teams = " vs ".join(parsed.teams) if parsed and parsed.teams else "N/A"
    line = f"{parsed.line:g}" if parsed and parsed.line is not None else "N/A"
    signature = algorithm.signature_phrase or DEFAULT_SIGNATURE
    return (
        f"{style}\n"
        "Create a concise betting take of 200-350 words in bullet point format.\n\n"
        f"BET: {analysis.bet_description}\n"
        f"PLAYER: {player}\nTEAMS: {teams}\nLINE: {line}\n"
        f"WIN PROBABILITY: {analysis.win_probability}%\n"
        f"CONFIDENCE: {analysis.confidence.upper()}\n"
        f"RECOMMENDATION: {analysis.recommendation}\n\n"
        f"Key factors: {' | '.join(analysis.key_factors)}\n"
        f"Market analysis: {analysis.market_analysis}\n"
        f"Risk factors: {' | '.join(analysis.risk_factors)}\n\n"
        "FORMAT:\n"
        "Quick Take:\n"
        f"{BULLET} 3-5 bullets about this exact matchup, the line and the main opportunity or concern\n\n"
        "Key Supporting Factors:\n"
        f"{BULLET} the three most important factors\n\n"
        "Bottom Line: one or two sentences matching the probability and confidence above\n\n"
        f"End with this exact signature phrase: {signature}"
    )


class NarrativeWriter:
    """Writes the creator response; never changes the numbers it is given."""

    def __init__(self, generator: TextGenerator | None = None) -> None:
        self.generator = generator

    async def write(
        self,
        analysis: BetAnalysis,
        algorithm: CreatorAlgorithm | None = None,
        parsed: ParsedBet | None = None,
    ) -> str:
        algorithm = algorithm or CreatorAlgorithm()
        if self.generator is None:
            return basic_bullet_response(analysis, algorithm, parsed)

        try:
            content = await self.generator.generate(
                build_narrative_prompt(analysis, algorithm, parsed),
                max_tokens=1000,
                temperature=0.8,
                timeout=get_settings().long_timeout_seconds,
                system=NARRATIVE_SYSTEM_PROMPT,
            )
        except Exception as exc:
            logger.warning("Creator response generation failed: %s", exc)
            return basic_bullet_response(analysis, algorithm, parsed)

        content = content.strip()
        if len(content) < MIN_RESPONSE_CHARS:
            logger.warning("Creator response too short (%d chars), using template", len(content))
            return basic_bullet_response(analysis, algorithm, parsed)
        if "Quick Take" not in content or BULLET not in content:
            logger.info("Creator response missing bullets, reformatting")
            return basic_bullet_response(analysis, algorithm, parsed)
        signature = algorithm.signature_phrase or DEFAULT_SIGNATURE
        if signature not in content:
            content = f"{content}\n\n{signature}"
        return content
