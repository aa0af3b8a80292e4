"""Context enhancer tests: signal rules, concurrency, degraded lookups."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest
from fakes import odds_game

from betbot.data.cache import CacheStore
from betbot.data.schemas import BookOdds, Game, OddsSnapshot, OddsSource, ParsedBet, StatsSnapshot, StatsTier
from betbot.resolvers.context import (
    ContextEnhancer,
    GameInfo,
    analyze_injury_news,
    analyze_line_movement,
    analyze_weather,
    data_quality,
    recent_form,
    venue_city,
)
from betbot.resolvers.odds import transform_odds

SNOWY = {
    "list": [
        {
            "dt": 1_700_000_000,
            "main": {"temp": 28, "humidity": 50},
            "wind": {"speed": 22, "deg": 0},
            "weather": [{"description": "light snow"}],
        }
    ]
}


class FakeWeather:
    def __init__(self, payload=SNOWY, error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.cities: list[str] = []

    async def forecast(self, city: str):
        self.cities.append(city)
        if self.error is not None:
            raise self.error
        return self.payload


class FakeNews:
    def __init__(self, articles=None, delay: float = 0.0) -> None:
        self.articles = articles or []
        self.delay = delay

    async def injury_articles(self, subjects):
        await asyncio.sleep(self.delay)
        return self.articles


def _live_odds(matched: str) -> OddsSnapshot:
    return OddsSnapshot(
        source=f"The Odds API ({matched})",
        source_kind=OddsSource.LIVE,
        game_found=True,
        matched_game=matched,
        books={"draftkings": BookOdds(spread=-1.5, total=8.5, moneyline_home=-150, moneyline_away=130)},
    )


def _stats() -> StatsSnapshot:
    return StatsSnapshot(source="Derived/Enhanced Stats", tier=StatsTier.DERIVED)


@pytest.mark.parametrize(
    ("succeeded", "expected"),
    [(7, "excellent"), (6, "excellent"), (5, "good"), (3, "fair"), (2, "poor"), (0, "poor")],
)
def test_data_quality_grades(succeeded: int, expected: str) -> None:
    assert data_quality(succeeded, 7) == expected


def test_football_weather_rules() -> None:
    signal = analyze_weather({"temp": 28, "wind_speed": 22, "conditions": "light snow"}, "nfl")
    assert signal.impact == "major"
    assert signal.numeric_impact == 9
    rain = analyze_weather({"temp": 60, "wind_speed": 5, "conditions": "moderate rain"}, "nfl")
    assert rain.impact == "high"
    assert analyze_weather({"temp": 70, "wind_speed": 3, "conditions": "clear sky"}, "nfl").impact == "minimal"


def test_baseball_weather_tracks_batting_advantage() -> None:
    out = analyze_weather({"temp": 90, "wind_speed": 14, "wind_deg": 270, "humidity": 40}, "mlb")
    assert out.details["batting_advantage"] == 5
    blowing_in = analyze_weather({"temp": 70, "wind_speed": 14, "wind_deg": 90, "humidity": 85}, "mlb")
    assert blowing_in.details["batting_advantage"] == -4
    assert blowing_in.impact == "moderate"


def test_injury_news_scoring() -> None:
    articles = [
        {"title": "Chiefs receiver ruled out for Sunday", "description": ""},
        {"title": "Bills quarterback cleared and practicing", "description": ""},
        {"title": "Unrelated transfer rumor", "description": "Nothing about either side"},
    ]
    signal = analyze_injury_news(articles, ["Chiefs", "Bills"])
    assert signal.details["sentiment"] == "negative"
    assert signal.details["articles_found"] == 2
    assert signal.impact == "high"

    healthy = analyze_injury_news(articles[1:], ["Bills"])
    assert healthy.details["sentiment"] == "positive"
    assert healthy.impact == "low"


def test_line_movement_from_book_disagreement() -> None:
    books = transform_odds(Game.model_validate(odds_game("Los Angeles Lakers", "Golden State Warriors")))
    odds = OddsSnapshot(source="live", source_kind=OddsSource.LIVE, game_found=True, books=books)
    signal = analyze_line_movement(odds)
    assert signal.impact == "moving"
    assert signal.details["consensus_spread"] == pytest.approx(-7.2, abs=0.1)
    assert analyze_line_movement(odds.model_copy(update={"game_found": False})).available is False


@pytest.mark.parametrize(
    ("team", "sport", "city"),
    [("Los Angeles Lakers", "nba", "Los Angeles"), ("Yankees", "mlb", "New York"), ("Red Sox", "mlb", "Boston")],
)
def test_venue_city(team: str, sport: str, city: str) -> None:
    assert venue_city(team, sport) == city


def test_recent_form_is_repeatable() -> None:
    bet = ParsedBet(sport="nba", kind="player", player="LeBron James", line=25.5, confidence=0.6)
    assert recent_form(bet, None) == recent_form(bet, None)


@pytest.mark.asyncio
async def test_indoor_game_without_providers() -> None:
    bet = ParsedBet(sport="nba", teams=("Lakers", "Warriors"), line=7.5, bet_on="spread", confidence=0.6)
    bundle = await ContextEnhancer().gather(bet, GameInfo.from_resolved(bet, OddsSnapshot(
        source="none", source_kind=OddsSource.NO_GAMES), _stats()))
    assert bundle.weather.impact == "none"
    assert bundle.injuries.available is False
    assert bundle.line_movement.available is False
    assert bundle.data_quality == "good"


@pytest.mark.asyncio
async def test_full_outdoor_context() -> None:
    bet = ParsedBet(sport="nfl", teams=("Chiefs", "Bills"), line=3.5, bet_on="spread", confidence=0.6)
    weather = FakeWeather()
    news = FakeNews([{"title": "Chiefs receiver ruled out", "description": ""}])
    game = GameInfo.from_resolved(bet, _live_odds("Kansas City Chiefs vs Buffalo Bills"), _stats())
    bundle = await ContextEnhancer(weather, news).gather(bet, game)
    assert weather.cities == ["Kansas City"]
    assert bundle.weather.impact == "major"
    assert bundle.injuries.details["sentiment"] == "negative"
    assert bundle.venue.details["home_team"] == "Kansas City Chiefs"
    assert bundle.data_quality == "excellent"


@pytest.mark.asyncio
async def test_failed_and_slow_lookups_get_neutral_defaults() -> None:
    bet = ParsedBet(sport="mlb", teams=("Yankees", "Orioles"), line=1.5, bet_on="spread", confidence=0.6)
    game = GameInfo.from_resolved(bet, _live_odds("New York Yankees vs Baltimore Orioles"), _stats())
    enhancer = ContextEnhancer(FakeWeather(error=RuntimeError("provider down")), FakeNews(delay=1.0), timeout=0.05)
    bundle = await enhancer.gather(bet, game)
    assert bundle.weather.available is False
    assert bundle.weather.impact == "minimal"
    assert bundle.injuries.available is False
    assert bundle.line_movement.available is True
    assert bundle.data_quality == "good"


@pytest.mark.asyncio
async def test_weather_lookups_are_cached() -> None:
    bet = ParsedBet(sport="nfl", teams=("Chiefs", "Bills"), line=3.5, bet_on="spread", confidence=0.6)
    weather = FakeWeather()
    enhancer = ContextEnhancer(weather, cache=CacheStore())
    game = GameInfo.from_resolved(bet, _live_odds("Kansas City Chiefs vs Buffalo Bills"), _stats())
    await enhancer.gather(bet, game)
    await enhancer.gather(bet, game)
    assert len(weather.cities) == 1


@pytest.mark.asyncio
async def test_forecast_slot_follows_game_time() -> None:
    clear = {
        "dt": 1_700_000_000,
        "main": {"temp": 60, "humidity": 40},
        "wind": {"speed": 3},
        "weather": [{"description": "clear sky"}],
    }
    forecast = {"list": [clear, {**SNOWY["list"][0], "dt": 1_700_010_800}]}
    bet = ParsedBet(sport="nfl", teams=("Chiefs", "Bills"), line=3.5, bet_on="spread", confidence=0.6)
    odds = _live_odds("Kansas City Chiefs vs Buffalo Bills").model_copy(
        update={"commence_time": datetime.fromtimestamp(1_700_010_000, tz=timezone.utc)}
    )
    game = GameInfo.from_resolved(bet, odds, _stats())
    assert game.commence_time == odds.commence_time

    bundle = await ContextEnhancer(FakeWeather(forecast)).gather(bet, game)
    assert bundle.weather.impact == "major"

    untimed = GameInfo.from_resolved(bet, _live_odds("Kansas City Chiefs vs Buffalo Bills"), _stats())
    bundle = await ContextEnhancer(FakeWeather(forecast)).gather(bet, untimed)
    assert bundle.weather.impact == "minimal"
