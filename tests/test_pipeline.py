"""End-to-end pipeline tests with scripted model replies and mocked providers."""

from __future__ import annotations

import asyncio

import pytest
from fakes import GAMES_NBA, NARRATIVE_TEXT, ScriptedGenerator, json_transport, stage_router, synthesis_payload

from betbot.agents.bet_parser import BetParser
from betbot.agents.narrative import DEFAULT_SIGNATURE, NarrativeWriter
from betbot.analysis.engine import STAGE_LABELS, MultiStepAnalysisEngine
from betbot.data.balldontlie_client import BallDontLieClient
from betbot.data.cache import CacheStore
from betbot.data.odds_client import OddsAPIClient
from betbot.data.schemas import BetAnalysis, CreatorAlgorithm, UnableToAnalyze
from betbot.data.sports_data_client import SportsDataClient
from betbot.errors import ProviderError
from betbot.pipeline import DERIVED_DATA_NOTICE, FALLBACK_NOTICE, BetAnalysisPipeline
from betbot.resolvers.context import ContextEnhancer
from betbot.resolvers.odds import OddsResolver
from betbot.resolvers.stats import (
    CuratedStatsProvider,
    ProfessionalStatsProvider,
    SearchStatsProvider,
    StatsResolver,
)

LAKERS_PARSE = {
    "sport": "nba",
    "type": "team",
    "teams": ["Lakers", "Warriors"],
    "player": None,
    "line": 7.5,
    "betOn": "spread",
    "specificBetType": None,
    "confidence": 0.9,
}

MLB_NARRATIVE = (
    "Quick Take:\n"
    "• Aaron Judge clearing 1.5 home runs needs a multi-homer night\n"
    "• The Orioles staff keeps the ball in the park more often than not\n"
    "• The price on the over is steep for a rare outcome\n\n"
    "Key Supporting Factors:\n"
    "• Elite power, but the bar is high\n\n"
    "Bottom Line: Respect the power, the number is still a reach."
)


def _odds_client(payload=GAMES_NBA, status_code: int = 200, seen: list | None = None) -> OddsAPIClient:
    def handler(request):
        if seen is not None:
            seen.append(request)
        return payload

    return OddsAPIClient(api_key="odds", transport=json_transport(handler, status_code))


def _pipeline(
    generator: ScriptedGenerator | None,
    odds_client: OddsAPIClient | None = None,
    stats: StatsResolver | None = None,
    cache: CacheStore | None = None,
) -> BetAnalysisPipeline:
    return BetAnalysisPipeline(
        parser=BetParser(generator, cache),
        odds=OddsResolver(odds_client, generator, cache),
        stats=stats or StatsResolver([CuratedStatsProvider()], cache),
        context=ContextEnhancer(cache=cache),
        engine=MultiStepAnalysisEngine(generator) if generator else None,
        narrative=NarrativeWriter(generator),
        cache=cache,
    )


def _syntheses(generator: ScriptedGenerator) -> int:
    return sum("betting syndicate" in call.prompt for call in generator.calls)


@pytest.mark.asyncio
async def test_team_spread_end_to_end() -> None:
    generator = ScriptedGenerator(router=stage_router(parse=LAKERS_PARSE))
    pipeline = _pipeline(generator, _odds_client())
    labels: list[str] = []

    parsed = await pipeline.parse("Lakers -7.5 vs Warriors tonight")
    assert (parsed.sport, parsed.kind, parsed.teams, parsed.bet_on, parsed.line) == (
        "nba", "team", ("Lakers", "Warriors"), "spread", 7.5
    )

    result = await pipeline.analyze("Lakers -7.5 vs Warriors tonight", stage_callback=labels.append)
    assert isinstance(result, BetAnalysis)
    assert 15 <= result.win_probability <= 85
    assert result.bet_type == "straight"
    assert result.recommendation == "lean"
    assert not result.is_fallback
    assert result.notice is None
    assert result.data_sources.odds == "The Odds API (Los Angeles Lakers vs Golden State Warriors)"
    assert result.data_sources.stats == "Curated Reference Data"
    assert result.creator_response == f"{NARRATIVE_TEXT}\n\n{DEFAULT_SIGNATURE}"
    assert labels == [
        "Parsing bet...",
        "Gathering odds and statistics...",
        "Gathering game context...",
        *STAGE_LABELS,
        "Writing creator response...",
    ]


@pytest.mark.asyncio
async def test_player_prop_end_to_end() -> None:
    generator = ScriptedGenerator(router=stage_router())
    result = await _pipeline(generator).analyze("LeBron James over 25.5 points")
    assert isinstance(result, BetAnalysis)
    assert result.bet_type == "prop"
    assert result.data_sources.stats == "Curated Reference Data"
    assert result.data_sources.odds == "Fallback (No Teams Identified)"


@pytest.mark.asyncio
async def test_baseball_prop_keeps_baseball_terms() -> None:
    synthesis = synthesis_payload(
        key_factors=[
            "Judge leads the club in home runs",
            "Orioles starter limits hard contact",
            "Two-homer games are rare",
            "Park plays neutral for power",
            "Line sits well above his per-game rate",
        ]
    )
    generator = ScriptedGenerator(router=stage_router(synthesis=synthesis, narrative=MLB_NARRATIVE))
    pipeline = _pipeline(generator)

    parsed = await pipeline.parse("Aaron Judge over 1.5 home runs vs Orioles")
    assert parsed.sport == "mlb"
    assert parsed.player == "Aaron Judge"
    assert "Orioles" in parsed.teams
    assert parsed.line == 1.5

    result = await pipeline.analyze("Aaron Judge over 1.5 home runs vs Orioles")
    assert not result.is_fallback
    assert "home run" in result.creator_response.lower()
    for text in [result.reasoning, *result.key_factors, result.creator_response]:
        assert "points" not in text.lower()
        assert "assists" not in text.lower()


@pytest.mark.asyncio
async def test_total_provider_outage_still_answers() -> None:
    generator = ScriptedGenerator(error=ProviderError("openai", "service unavailable", 503))
    stats = StatsResolver(
        [
            ProfessionalStatsProvider(SportsDataClient(api_key="rapid", transport=json_transport(lambda r: {}, 403))),
            SearchStatsProvider(BallDontLieClient(api_key="bdl", transport=json_transport(lambda r: {}, 404))),
        ]
    )
    pipeline = _pipeline(generator, _odds_client(payload={"message": "bad key"}, status_code=401), stats)

    result = await pipeline.analyze("Lakers -7.5 vs Warriors")
    assert isinstance(result, BetAnalysis)
    assert result.is_fallback
    assert result.confidence == "low"
    assert result.notice == FALLBACK_NOTICE
    assert result.data_sources.odds == "Typical Lines (NBA)"
    assert result.data_sources.stats == "Derived/Enhanced Stats"
    assert result.data_sources.data_status == "Limited Data"
    assert result.creator_response.startswith("Quick Take:")


@pytest.mark.asyncio
async def test_provider_outage_with_model_up_is_low_confidence() -> None:
    generator = ScriptedGenerator(router=stage_router(parse=LAKERS_PARSE))
    stats = StatsResolver(
        [
            ProfessionalStatsProvider(SportsDataClient(api_key="rapid", transport=json_transport(lambda r: {}, 403))),
            SearchStatsProvider(BallDontLieClient(api_key="bdl", transport=json_transport(lambda r: {}, 404))),
        ]
    )
    pipeline = _pipeline(generator, _odds_client(payload={"message": "bad key"}, status_code=401), stats)

    result = await pipeline.analyze("Lakers -7.5 vs Warriors")
    assert not result.is_fallback
    assert result.win_probability == 62
    assert result.confidence == "low"
    assert result.notice == DERIVED_DATA_NOTICE
    assert result.data_sources.odds == "Typical Lines (NBA)"
    assert result.data_sources.stats == "Derived/Enhanced Stats"


@pytest.mark.asyncio
async def test_empty_input_short_circuits_without_network() -> None:
    seen: list = []
    generator = ScriptedGenerator(router=stage_router())
    result = await _pipeline(generator, _odds_client(seen=seen)).analyze("")
    assert isinstance(result, UnableToAnalyze)
    assert result.parsed_bet.confidence == 0.0
    assert generator.calls == []
    assert seen == []


@pytest.mark.asyncio
async def test_gibberish_is_unable_to_analyze() -> None:
    result = await _pipeline(ScriptedGenerator(router=stage_router())).analyze("asdkjh qwe zxc")
    assert isinstance(result, UnableToAnalyze)
    assert "sport" in result.reason


@pytest.mark.asyncio
async def test_out_of_band_synthesis_falls_back_and_is_not_cached() -> None:
    generator = ScriptedGenerator(router=stage_router(synthesis=synthesis_payload(win_probability=95)))
    pipeline = _pipeline(generator, cache=CacheStore())
    first = await pipeline.analyze("Lakers -7.5 vs Warriors")
    assert first.is_fallback
    assert first.notice == FALLBACK_NOTICE
    assert 1 <= first.win_probability <= 99
    await pipeline.analyze("Lakers -7.5 vs Warriors")
    assert _syntheses(generator) == 2


@pytest.mark.asyncio
async def test_core_analysis_is_cached_across_algorithms() -> None:
    generator = ScriptedGenerator(router=stage_router())
    pipeline = _pipeline(generator, cache=CacheStore())
    lenient = await pipeline.analyze("Lakers -7.5 vs Warriors")
    strict = await pipeline.analyze(
        "Lakers -7.5 vs Warriors", CreatorAlgorithm(confidence_threshold=65, signature_phrase="Tail or fade.")
    )
    assert _syntheses(generator) == 1
    assert lenient.win_probability == strict.win_probability == 62
    assert (lenient.recommendation, strict.recommendation) == ("lean", "pass")
    assert strict.creator_response.endswith("Tail or fade.")


class BrokenStats:
    async def resolve(self, bet):
        raise RuntimeError("stats exploded")


@pytest.mark.asyncio
async def test_unexpected_failure_yields_labeled_heuristic() -> None:
    pipeline = _pipeline(ScriptedGenerator(router=stage_router()), stats=BrokenStats())
    result = await pipeline.analyze("Lakers -7.5 vs Warriors")
    assert result.is_fallback
    assert result.confidence == "low"
    assert result.notice.startswith(FALLBACK_NOTICE)
    assert result.data_sources.context_quality == "poor"


@pytest.mark.asyncio
async def test_without_model_uses_heuristic_estimate() -> None:
    result = await _pipeline(None).analyze("Lakers -7.5 vs Warriors")
    assert result.is_fallback
    assert 48 <= result.win_probability <= 52
    assert result.creator_response.endswith(DEFAULT_SIGNATURE)


class SlowGenerator(ScriptedGenerator):
    async def generate(self, prompt: str, **kwargs) -> str:
        await asyncio.sleep(0.01)
        return await super().generate(prompt, **kwargs)


@pytest.mark.asyncio
async def test_concurrent_identical_analyses_share_one_run() -> None:
    generator = SlowGenerator(router=stage_router())
    pipeline = _pipeline(generator, cache=CacheStore())
    first, second = await asyncio.gather(
        pipeline.analyze("Lakers -7.5 vs Warriors"), pipeline.analyze("Lakers -7.5 vs Warriors")
    )
    assert _syntheses(generator) == 1
    assert first.win_probability == second.win_probability == 62


@pytest.mark.asyncio
async def test_concurrent_fallbacks_are_shared_but_not_cached() -> None:
    generator = SlowGenerator(router=stage_router(synthesis=synthesis_payload(win_probability=95)))
    pipeline = _pipeline(generator, cache=CacheStore())
    results = await asyncio.gather(*(pipeline.analyze("Lakers -7.5 vs Warriors") for _ in range(2)))
    assert all(result.is_fallback for result in results)
    assert _syntheses(generator) == 1
    await pipeline.analyze("Lakers -7.5 vs Warriors")
    assert _syntheses(generator) == 2
