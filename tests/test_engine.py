"""Multi-stage analysis engine tests."""

from __future__ import annotations

import pytest
from fakes import ScriptedGenerator, stage_router

from betbot.analysis.engine import STAGE_LABELS, MultiStepAnalysisEngine
from betbot.analysis.sports import GenericStrategy, MLBStrategy, NHLStrategy, get_sport_strategy
from betbot.config import get_settings
from betbot.data.schemas import ContextBundle, ParsedBet
from betbot.errors import MalformedOutputError
from betbot.resolvers.context import neutral_defaults
from betbot.resolvers.odds import sport_default_odds
from betbot.resolvers.stats import derive_stats


def _inputs(sport: str = "nba"):
    bet = ParsedBet(sport=sport, teams=("Lakers", "Warriors"), line=7.5, bet_on="spread", confidence=0.6)
    context = ContextBundle(**neutral_defaults(), data_quality="poor")
    return bet, "Lakers -7.5 vs Warriors", sport_default_odds(sport), derive_stats(bet), context


@pytest.mark.asyncio
async def test_stages_run_in_order_with_labels() -> None:
    generator = ScriptedGenerator(router=stage_router())
    labels: list[str] = []
    synthesis, breakdown = await MultiStepAnalysisEngine(generator, timeout=5).run(
        *_inputs(), stage_callback=labels.append
    )

    assert labels == list(STAGE_LABELS)
    assert synthesis.win_probability == 62
    assert synthesis.confidence == "medium"
    assert synthesis.recommendation == "BUY"
    assert breakdown.sport_specific.probability_estimate == 58.0
    assert breakdown.statistical.confidence_interval == (51.0, 63.0)
    assert breakdown.stages_completed == 6
    assert [(c.max_tokens, c.temperature) for c in generator.calls] == [
        (1200, 0.2),
        (1000, 0.2),
        (1500, 0.1),
        (1500, 0.2),
        (1200, 0.2),
        (2000, 0.1),
    ]
    assert all(c.timeout == 5 for c in generator.calls)


@pytest.mark.asyncio
async def test_later_stages_see_earlier_results() -> None:
    generator = ScriptedGenerator(router=stage_router())
    await MultiStepAnalysisEngine(generator).run(*_inputs())
    synthesis_prompt = generator.calls[-1].prompt
    assert "Rest edge" in synthesis_prompt
    assert "Late scratch" in synthesis_prompt
    assert '"Lakers -7.5 vs Warriors"' in synthesis_prompt


@pytest.mark.asyncio
async def test_unknown_sport_uses_generic_strategy() -> None:
    generator = ScriptedGenerator(router=stage_router())
    await MultiStepAnalysisEngine(generator).run(*_inputs("soccer"))
    assert generator.calls[3].max_tokens == 1000
    assert "multi-sport analytics expert" in generator.calls[3].prompt


@pytest.mark.asyncio
async def test_malformed_stage_aborts_run() -> None:
    route = stage_router()

    def broken_market(prompt: str) -> str:
        return "the market looks fine" if "sharp sports bettor" in prompt else route(prompt)

    labels: list[str] = []
    generator = ScriptedGenerator(router=broken_market)
    with pytest.raises(MalformedOutputError):
        await MultiStepAnalysisEngine(generator).run(*_inputs(), stage_callback=labels.append)
    assert labels == list(STAGE_LABELS[:2])


@pytest.mark.asyncio
async def test_schema_mismatch_is_malformed() -> None:
    route = stage_router()

    def partial(prompt: str) -> str:
        return '{"game_importance": {"score": 4}}' if "situational context" in prompt else route(prompt)

    with pytest.raises(MalformedOutputError):
        await MultiStepAnalysisEngine(ScriptedGenerator(router=partial)).run(*_inputs())


def test_strategy_registry() -> None:
    generator = ScriptedGenerator()
    assert isinstance(get_sport_strategy("MLB", generator), MLBStrategy)
    assert isinstance(get_sport_strategy("nhl", generator), NHLStrategy)
    assert type(get_sport_strategy(None, generator)) is GenericStrategy
    assert "special_teams" in NHLStrategy(generator).factors
    assert get_sport_strategy("nba", generator, timeout=7).timeout == 7
    assert get_sport_strategy("nba", generator).timeout == get_settings().long_timeout_seconds
