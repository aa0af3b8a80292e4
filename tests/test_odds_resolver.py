"""Odds resolution tests against a mocked odds provider."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest
from fakes import GAMES_NBA, ScriptedGenerator, json_transport, odds_game

from betbot.data.cache import CacheStore
from betbot.data.odds_client import OddsAPIClient
from betbot.data.schemas import Game, OddsSource, ParsedBet
from betbot.resolvers.odds import OddsResolver, match_game, sport_default_odds, transform_odds

GAMES = GAMES_NBA


def _bet(**overrides) -> ParsedBet:
    fields = dict(sport="nba", teams=("Lakers", "Warriors"), line=7.5, bet_on="spread", confidence=0.6)
    fields.update(overrides)
    return ParsedBet(**fields)


def _client(payload=GAMES, status_code: int = 200, seen: list | None = None) -> OddsAPIClient:
    def handler(request: httpx.Request):
        if seen is not None:
            seen.append(request)
        return payload

    return OddsAPIClient(api_key="test-key", transport=json_transport(handler, status_code))


@pytest.mark.asyncio
async def test_low_confidence_skips_network() -> None:
    seen: list = []
    resolver = OddsResolver(_client(seen=seen))
    snapshot = await resolver.resolve(_bet(confidence=0.2), "Lakers -7.5 vs Warriors")
    assert snapshot.source_kind is OddsSource.PARSING_FAILED
    assert snapshot.source == "Fallback (Parsing Failed)"
    assert seen == []


@pytest.mark.asyncio
async def test_live_match_builds_per_book_odds() -> None:
    seen: list = []
    snapshot = await OddsResolver(_client(seen=seen)).resolve(_bet(), "Lakers -7.5 vs Warriors")
    assert snapshot.source_kind is OddsSource.LIVE
    assert snapshot.game_found
    assert snapshot.source == "The Odds API (Los Angeles Lakers vs Golden State Warriors)"
    assert snapshot.books["draftkings"].spread == -7.5
    assert snapshot.books["fanduel"].spread == -7.0
    assert snapshot.books["draftkings"].total == 228.5
    assert snapshot.books["draftkings"].moneyline_home == -300
    assert snapshot.commence_time == datetime(2026, 1, 15, 0, 10, tzinfo=timezone.utc)
    params = seen[0].url.params
    assert params["apiKey"] == "test-key"
    assert params["markets"] == "spreads,totals,h2h"
    assert seen[0].url.path.endswith("/sports/basketball_nba/odds")


@pytest.mark.asyncio
async def test_no_games_today() -> None:
    snapshot = await OddsResolver(_client(payload=[])).resolve(_bet(), "Lakers -7.5 vs Warriors")
    assert snapshot.source_kind is OddsSource.NO_GAMES
    assert not snapshot.game_found


@pytest.mark.asyncio
async def test_provider_error_degrades_to_typical_lines() -> None:
    snapshot = await OddsResolver(_client(payload={"message": "bad key"}, status_code=401)).resolve(
        _bet(), "Lakers -7.5 vs Warriors"
    )
    assert snapshot.source_kind is OddsSource.SPORT_DEFAULT
    assert snapshot.source == "Typical Lines (NBA)"
    assert set(snapshot.books) == {"draftkings", "fanduel", "betmgm"}
    assert snapshot.books["draftkings"].spread == -3.5


@pytest.mark.asyncio
async def test_unmatched_teams_use_reference_game() -> None:
    snapshot = await OddsResolver(_client()).resolve(_bet(teams=("Heat", "Magic")), "Heat vs Magic")
    assert snapshot.source_kind is OddsSource.REFERENCE_GAME
    assert not snapshot.game_found
    assert snapshot.source.startswith("The Odds API (Reference Game:")
    assert snapshot.games_available == 2


@pytest.mark.asyncio
async def test_player_without_teams_and_no_model() -> None:
    bet = _bet(kind="player", teams=None, player="Tyrese Haliburton", line=20.5, bet_on="over")
    snapshot = await OddsResolver(_client()).resolve(bet, "Tyrese Haliburton over 20.5 points")
    assert snapshot.source_kind is OddsSource.NO_TEAMS


@pytest.mark.asyncio
async def test_confident_team_inference_unlocks_live_odds() -> None:
    generator = ScriptedGenerator(
        [json.dumps({"teams": ["Warriors", "Lakers"], "confidence": 0.9, "reasoning": "Current roster"})]
    )
    bet = _bet(kind="player", teams=None, player="Stephen Curry", line=28.5, bet_on="over")
    snapshot = await OddsResolver(_client(), generator).resolve(bet, "Steph Curry over 28.5 points")
    assert snapshot.source_kind is OddsSource.LIVE
    assert generator.calls[0].max_tokens == 300


@pytest.mark.asyncio
async def test_weak_team_inference_is_ignored() -> None:
    generator = ScriptedGenerator([json.dumps({"teams": ["Warriors", "Lakers"], "confidence": 0.5})])
    bet = _bet(kind="player", teams=None, player="Stephen Curry", line=28.5, bet_on="over")
    snapshot = await OddsResolver(_client(), generator).resolve(bet, "Steph Curry over 28.5 points")
    assert snapshot.source_kind is OddsSource.NO_TEAMS


@pytest.mark.asyncio
async def test_results_are_cached_by_bet_text() -> None:
    seen: list = []
    resolver = OddsResolver(_client(seen=seen), cache=CacheStore())
    first = await resolver.resolve(_bet(), "Lakers -7.5 vs Warriors")
    second = await resolver.resolve(_bet(), "Lakers -7.5 vs Warriors")
    assert first == second
    assert len(seen) == 1


@pytest.mark.asyncio
async def test_ambiguous_match_escalates_to_model() -> None:
    games = [Game.model_validate(odds_game("Los Angeles Lakers", "Golden State Warriors")),
             Game.model_validate(odds_game("Sacramento Kings", "Phoenix Suns"))]
    generator = ScriptedGenerator(['"Sacramento Kings vs Phoenix Suns"'])
    game = await match_game(("Lakers", "Kings"), games, generator, "nba")
    assert game is games[1]
    assert generator.calls[0].temperature == 0.0

    no_match = await match_game(("Lakers", "Kings"), games, ScriptedGenerator(["NO_MATCH"]), "nba")
    assert no_match is None


def test_transform_odds_reads_away_point_when_home_missing() -> None:
    game = Game.model_validate(
        {
            "home_team": "Boston Celtics",
            "away_team": "New York Knicks",
            "bookmakers": [
                {
                    "key": "william_hill",
                    "markets": [{"key": "spreads", "outcomes": [{"name": "New York Knicks", "price": -110, "point": 4.5}]}],
                }
            ],
        }
    )
    books = transform_odds(game)
    assert books["williamhill"].spread == -4.5


def test_sport_default_odds_per_sport() -> None:
    assert sport_default_odds("nfl").books["draftkings"].total == 47.5
    assert sport_default_odds("mlb").books["draftkings"].spread == -1.5
    assert sport_default_odds("tennis").source == "Typical Lines (NBA)"
