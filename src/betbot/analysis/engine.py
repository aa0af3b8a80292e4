"""Six-stage reasoning pipeline run against the text generator."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Optional

from betbot.agents.llm_client import TextGenerator, complete_json
from betbot.analysis import prompts
from betbot.analysis.prompts import AnalysisContext
from betbot.analysis.sports import get_sport_strategy
from betbot.config import get_settings
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
    SynthesisResult,
)

logger = logging.getLogger(__name__)

StageCallback = Callable[[str], None]

STAGE_LABELS = (
    "Analyzing situational context...",
    "Conducting market intelligence analysis...",
    "Performing statistical deep dive...",
    "Running sport-specific analysis...",
    "Conducting risk assessment...",
    "Synthesizing final analysis...",
)


@dataclass
class StageBreakdown:
    situational: SituationalResult
    market: MarketResult
    statistical: StatisticalResult
    sport_specific: SportSpecificResult
    risk: RiskResult
    elapsed_seconds: float = 0.0
    stages_completed: int = 6


class MultiStepAnalysisEngine:
    """Runs situational, market, statistical, sport, risk and synthesis stages in order.

    Each stage sees the bet, the raw data and every earlier stage's output. A
    stage whose reply does not match its schema raises ``MalformedOutputError``
    and aborts the run.
    """

    def __init__(self, generator: TextGenerator, timeout: Optional[float] = None) -> None:
        self.generator = generator
        self.timeout = timeout or get_settings().long_timeout_seconds

    async def _stage(self, prompt: str, schema, max_tokens: int, temperature: float):
        return await complete_json(
            self.generator,
            prompt,
            schema,
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=self.timeout,
        )

    async def run(
        self,
        bet: ParsedBet,
        raw_text: str,
        odds: OddsSnapshot,
        stats: StatsSnapshot,
        context: ContextBundle,
        stage_callback: Optional[StageCallback] = None,
    ) -> tuple[SynthesisResult, StageBreakdown]:
        notify = stage_callback or (lambda label: None)
        ctx = AnalysisContext(bet=bet, raw_text=raw_text, odds=odds, stats=stats, context=context)
        started = time.monotonic()

        notify(STAGE_LABELS[0])
        situational = await self._stage(prompts.situational_prompt(ctx), SituationalResult, 1200, 0.2)

        notify(STAGE_LABELS[1])
        market = await self._stage(prompts.market_prompt(ctx, situational), MarketResult, 1000, 0.2)

        notify(STAGE_LABELS[2])
        statistical = await self._stage(
            prompts.statistical_prompt(ctx, situational, market), StatisticalResult, 1500, 0.1
        )

        notify(STAGE_LABELS[3])
        strategy = get_sport_strategy(bet.sport, self.generator, self.timeout)
        sport_specific = await strategy.analyze(ctx, situational, market, statistical)

        notify(STAGE_LABELS[4])
        risk = await self._stage(
            prompts.risk_prompt(ctx, situational, market, statistical, sport_specific), RiskResult, 1200, 0.2
        )

        notify(STAGE_LABELS[5])
        synthesis = await self._stage(
            prompts.synthesis_prompt(ctx, situational, market, statistical, sport_specific, risk),
            SynthesisResult,
            2000,
            0.1,
        )

        breakdown = StageBreakdown(
            situational=situational,
            market=market,
            statistical=statistical,
            sport_specific=sport_specific,
            risk=risk,
            elapsed_seconds=time.monotonic() - started,
        )
        logger.info(
            "Analysis for %r finished in %.1fs with %.1f%%",
            raw_text,
            breakdown.elapsed_seconds,
            synthesis.win_probability,
        )
        return synthesis, breakdown
