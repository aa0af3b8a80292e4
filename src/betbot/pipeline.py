"""End-to-end bet analysis: parse, resolve data, reason, validate and format."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from betbot.agents.bet_parser import BetParser
from betbot.agents.llm_client import OpenAITextGenerator, TextGenerator
from betbot.agents.narrative import NarrativeWriter
from betbot.analysis.engine import MultiStepAnalysisEngine, StageCallback
from betbot.analysis.formatter import format_result, is_fully_derived, to_analysis_result
from betbot.analysis.quality import check_parsed_bet, heuristic_fallback, validate_synthesis
from betbot.config import get_settings
from betbot.data.cache import CacheCategory, CacheStore, analysis_cache_key
from betbot.data.news_client import NewsClient
from betbot.data.odds_client import OddsAPIClient
from betbot.data.schemas import (
    AnalysisResult,
    BetAnalysis,
    ContextBundle,
    CreatorAlgorithm,
    OddsSnapshot,
    ParsedBet,
    StatsSnapshot,
    UnableToAnalyze,
)
from betbot.data.weather_client import WeatherClient
from betbot.errors import ParseConfidenceError, SynthesisValidationError, friendly_message
from betbot.resolvers.context import ContextEnhancer, GameInfo
from betbot.resolvers.odds import OddsResolver, sport_default_odds
from betbot.resolvers.stats import StatsResolver, derive_stats

logger = logging.getLogger(__name__)

FALLBACK_NOTICE = "Full analysis temporarily unavailable"
DERIVED_DATA_NOTICE = "Live odds and stats unavailable; estimate built from typical lines and derived stats"


@dataclass(frozen=True)
class CoreAnalysis:
    """Algorithm-independent part of an analysis, safe to share between callers."""

    result: AnalysisResult
    odds: OddsSnapshot
    stats: StatsSnapshot
    context: Optional[ContextBundle]
    notice: Optional[str] = None


class BetAnalysisPipeline:
    """Orchestrates one bet from free text to a formatted analysis record."""

    def __init__(
        self,
        parser: BetParser,
        odds: OddsResolver,
        stats: StatsResolver,
        context: ContextEnhancer,
        engine: Optional[MultiStepAnalysisEngine] = None,
        narrative: Optional[NarrativeWriter] = None,
        cache: Optional[CacheStore] = None,
    ) -> None:
        self.parser = parser
        self.odds = odds
        self.stats = stats
        self.context = context
        self.engine = engine
        self.narrative = narrative or NarrativeWriter()
        self.cache = cache
        self._closables: list[Any] = []

    @classmethod
    def from_settings(cls, generator: Optional[TextGenerator] = None) -> "BetAnalysisPipeline":
        """Wire every collaborator whose credentials are configured."""

        settings = get_settings()
        cache = CacheStore()
        if generator is None and settings.openai_api_key:
            generator = OpenAITextGenerator()
        odds_client = OddsAPIClient() if settings.odds_api_key else None
        weather = WeatherClient() if settings.openweather_api_key else None
        news = NewsClient() if settings.news_api_key else None
        pipeline = cls(
            parser=BetParser(generator, cache),
            odds=OddsResolver(odds_client, generator, cache),
            stats=StatsResolver(cache=cache),
            context=ContextEnhancer(weather, news, cache),
            engine=MultiStepAnalysisEngine(generator) if generator else None,
            narrative=NarrativeWriter(generator),
            cache=cache,
        )
        pipeline._closables = [c for c in (odds_client, weather, news) if c is not None]
        pipeline._closables += [p.client for p in pipeline.stats.providers if hasattr(p, "client")]
        logger.info(
            "Pipeline ready (ai=%s, odds=%s, weather=%s, news=%s)",
            generator is not None,
            odds_client is not None,
            weather is not None,
            news is not None,
        )
        return pipeline

    async def aclose(self) -> None:
        for client in self._closables:
            await client.aclose()

    async def parse(self, text: str) -> ParsedBet:
        return await self.parser.parse(text)

    async def analyze(
        self,
        text: str,
        algorithm: Optional[CreatorAlgorithm] = None,
        stage_callback: Optional[StageCallback] = None,
    ) -> BetAnalysis | UnableToAnalyze:
        """Analyze ``text``; never raises for provider or model failures."""

        algorithm = algorithm or CreatorAlgorithm()
        notify = stage_callback or (lambda label: None)

        notify("Parsing bet...")
        parsed = await self.parser.parse(text)
        try:
            check_parsed_bet(parsed)
        except ParseConfidenceError as exc:
            logger.info("Unable to analyze %r: %s", text, exc)
            return UnableToAnalyze(bet_description=text, reason=str(exc), parsed_bet=parsed)

        try:
            core = await self._core(text, parsed, notify)
        except Exception as exc:
            logger.exception("Analysis pipeline failed for %r", text)
            core = CoreAnalysis(
                result=heuristic_fallback(text, parsed),
                odds=sport_default_odds(parsed.sport, friendly_message(exc, "Odds lookup")),
                stats=derive_stats(parsed),
                context=None,
                notice=f"{FALLBACK_NOTICE}. {friendly_message(exc, 'Analysis')}",
            )

        formatted = format_result(
            text,
            parsed,
            core.result,
            core.odds,
            core.stats,
            core.context,
            algorithm,
            notice=core.notice,
        )
        notify("Writing creator response...")
        response = await self.narrative.write(formatted, algorithm, parsed)
        return formatted.model_copy(update={"creator_response": response})

    async def _core(self, text: str, parsed: ParsedBet, notify: StageCallback) -> CoreAnalysis:
        if self.cache is None:
            return await self._compute_core(text, parsed, notify)
        return await self.cache.get_or_fetch(
            analysis_cache_key(text, parsed.sport, parsed.player),
            CacheCategory.COMPREHENSIVE_ANALYSIS,
            lambda: self._compute_core(text, parsed, notify),
            should_store=lambda core: not core.result.is_fallback,
        )

    async def _compute_core(self, text: str, parsed: ParsedBet, notify: StageCallback) -> CoreAnalysis:
        notify("Gathering odds and statistics...")
        odds, stats = await asyncio.gather(self.odds.resolve(parsed, text), self.stats.resolve(parsed))
        notify("Gathering game context...")
        context = await self.context.gather(parsed, GameInfo.from_resolved(parsed, odds, stats))

        result = await self._reason(text, parsed, odds, stats, context, notify)
        if result.is_fallback:
            return CoreAnalysis(result, odds, stats, context, notice=FALLBACK_NOTICE)
        if is_fully_derived(odds, stats):
            return CoreAnalysis(result, odds, stats, context, notice=DERIVED_DATA_NOTICE)
        return CoreAnalysis(result, odds, stats, context)

    async def _reason(
        self,
        text: str,
        parsed: ParsedBet,
        odds: OddsSnapshot,
        stats: StatsSnapshot,
        context: ContextBundle,
        notify: StageCallback,
    ) -> AnalysisResult:
        if self.engine is None:
            logger.info("No text generator configured; using heuristic estimate")
            return heuristic_fallback(text, parsed, odds, stats)

        try:
            synthesis, _ = await self.engine.run(parsed, text, odds, stats, context, notify)
            problems = validate_synthesis(synthesis, parsed)
            if problems:
                raise SynthesisValidationError(problems)
        except Exception as exc:
            logger.warning("Multi-step analysis for %r fell back to heuristic: %s", text, exc)
            return heuristic_fallback(text, parsed, odds, stats)
        return to_analysis_result(synthesis)
