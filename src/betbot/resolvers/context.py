"""Auxiliary game context gathered concurrently with per-lookup fallbacks."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import random
import statistics
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from betbot.config import get_settings
from betbot.data.cache import CacheCategory, CacheStore, cache_key
from betbot.data.name_matching import TEAMS, normalize_name
from betbot.data.news_client import NewsClient
from betbot.data.schemas import ContextBundle, ContextSignal, OddsSnapshot, ParsedBet, StatsSnapshot
from betbot.data.weather_client import WeatherClient, pick_forecast

logger = logging.getLogger(__name__)

OUTDOOR_SPORTS = ("nfl", "mlb")
HOME_ADVANTAGE = {"nfl": 3, "nba": 4, "mlb": 2, "nhl": 5}
INJURY_KEYWORDS = ("injury", "injured", "hurt", "questionable", "doubtful", "out for", "ruled out", "sidelined", "limited", "game-time decision")
POSITIVE_KEYWORDS = ("healthy", "cleared", "practicing", "full go", "expected to play", "probable", "returns")
COACHING_STYLES = {
    "nba": ("pace-and-space offense", "switch-heavy defense", "star isolation sets", "deep bench rotation"),
    "nfl": ("pass-heavy early downs", "run-first game script", "aggressive fourth-down calls", "conservative clock control"),
    "mlb": ("early bullpen hooks", "platoon-heavy lineups", "aggressive baserunning", "starter-first workloads"),
    "nhl": ("aggressive forecheck", "trap-style neutral zone", "heavy top-line minutes", "quick goalie pulls"),
}
# main per-game stat for the recent-form trend, with a league baseline
FORM_STAT = {"nba": ("points", 22.0), "nfl": ("yards", 220.0), "mlb": ("hits", 1.2), "nhl": ("points", 1.0)}


def neutral_defaults() -> dict[str, ContextSignal]:
    return {
        "weather": ContextSignal(impact="minimal", available=False),
        "injuries": ContextSignal(impact="unknown", available=False),
        "line_movement": ContextSignal(impact="stable", details={"movement": "stable"}, available=False),
        "sentiment": ContextSignal(impact="neutral", details={"sentiment": "neutral"}, available=False),
        "recent_performance": ContextSignal(impact="average", details={"trend": "average"}, available=False),
        "coaching": ContextSignal(impact="standard", available=False),
        "venue": ContextSignal(impact="neutral", details={"advantage": "neutral"}, available=False),
    }


def data_quality(succeeded: int, attempted: int) -> str:
    share = succeeded / attempted if attempted else 0.0
    if share >= 0.8:
        return "excellent"
    if share >= 0.6:
        return "good"
    if share >= 0.4:
        return "fair"
    return "poor"


def venue_city(team: str, sport: str | None) -> str | None:
    name = normalize_name(team, expand_nicknames=False)
    for league in ([sport] if sport in TEAMS else list(TEAMS)):
        for alias, full in TEAMS[league].items():
            if name in (alias, full.lower()):
                city = full[: -len(alias)].strip() if full.lower().endswith(alias) else full.rsplit(" ", 1)[0]
                return city or None
    return None


@dataclass
class GameInfo:
    home_team: str | None = None
    away_team: str | None = None
    venue: str | None = None
    commence_time: datetime | None = None
    odds: OddsSnapshot | None = None
    stats: StatsSnapshot | None = None

    @classmethod
    def from_resolved(cls, bet: ParsedBet, odds: OddsSnapshot, stats: StatsSnapshot) -> "GameInfo":
        home = away = None
        if odds.game_found and odds.matched_game and " vs " in odds.matched_game:
            home, away = odds.matched_game.split(" vs ", 1)
        elif bet.teams:
            home, away = bet.teams
        return cls(
            home_team=home,
            away_team=away,
            venue=venue_city(home, bet.sport) if home else None,
            commence_time=odds.commence_time if odds.game_found else None,
            odds=odds,
            stats=stats,
        )


def analyze_weather(weather: dict[str, Any], sport: str) -> ContextSignal:
    temp = weather.get("temp")
    wind = weather.get("wind_speed") or 0.0
    humidity = weather.get("humidity") or 0
    conditions = weather.get("conditions") or ""
    impact, score, factors = "minimal", 1, []

    if sport == "nfl":
        if temp is not None and temp < 32:
            impact, score = "significant", 8
            factors.append(f"Freezing temperature ({temp:.0f}F) favors the running game")
        elif temp is not None and temp < 45:
            impact, score = "moderate", 5
            factors.append(f"Cold temperature ({temp:.0f}F) affects passing accuracy")
        if wind > 20:
            impact, score = "major", max(score, 9)
            factors.append(f"Severe wind ({wind:.0f} mph) hurts passing and kicking")
        elif wind > 15:
            impact, score = "high", max(score, 7)
            factors.append(f"High wind ({wind:.0f} mph) affects field goals")
        if "rain" in conditions:
            impact, score = "high", max(score, 7)
            factors.append("Rain raises fumble risk")
        if "snow" in conditions:
            impact, score = "major", max(score, 8)
            factors.append("Snow suppresses scoring")
        return ContextSignal(impact=impact, numeric_impact=score, details={"factors": factors, **weather})

    advantage = 0
    if wind > 10:
        direction = weather.get("wind_deg") or 0
        if 225 <= direction <= 315:
            score, advantage = 6, advantage + 3
            factors.append(f"Wind blowing out ({wind:.0f} mph) helps hitters")
        else:
            score, advantage = 5, advantage - 3
            factors.append(f"Wind blowing in ({wind:.0f} mph) helps pitchers")
        impact = "moderate"
    if humidity > 80:
        impact, score, advantage = "moderate", max(score, 4), advantage - 1
        factors.append(f"High humidity ({humidity}%) shortens fly balls")
    if temp is not None and temp > 85:
        impact, score, advantage = "moderate", max(score, 6), advantage + 2
        factors.append(f"Hot temperature ({temp:.0f}F) carries the ball")
    details = {"factors": factors, "batting_advantage": max(-5, min(5, advantage)), **weather}
    return ContextSignal(impact=impact, numeric_impact=score, details=details)


def analyze_injury_news(articles: list[dict[str, Any]], subjects: list[str]) -> ContextSignal:
    terms = [s.lower() for s in subjects if s]
    sentiment, level, findings, relevant = "neutral", 1, [], 0
    for article in articles:
        text = f"{article.get('title') or ''} {article.get('description') or ''}".lower()
        if not any(term in text for term in terms):
            continue
        relevant += 1
        if any(keyword in text for keyword in INJURY_KEYWORDS):
            sentiment, level = "negative", max(level, 7)
            findings.append(f"Injury concern: {article.get('title')}")
        elif sentiment != "negative" and any(keyword in text for keyword in POSITIVE_KEYWORDS):
            sentiment, level = "positive", max(level, 3)
            findings.append(f"Positive health update: {article.get('title')}")
    impact = "high" if level > 5 else "moderate" if level > 3 else "low"
    return ContextSignal(
        impact=impact,
        numeric_impact=level,
        details={"sentiment": sentiment, "articles_found": relevant, "key_findings": findings[:3]},
    )


def analyze_line_movement(odds: OddsSnapshot | None) -> ContextSignal:
    if odds is None or not odds.game_found:
        return ContextSignal(impact="stable", details={"movement": "stable", "reason": "no live market"}, available=False)
    spreads = [b.spread for b in odds.books.values() if b.spread is not None]
    totals = [b.total for b in odds.books.values() if b.total is not None]
    spread_range = max(spreads) - min(spreads) if spreads else 0.0
    total_range = max(totals) - min(totals) if totals else 0.0
    if spread_range >= 1.0 or total_range >= 2.0:
        movement, score = "volatile", 6
    elif spread_range >= 0.5 or total_range >= 1.0:
        movement, score = "moving", 4
    else:
        movement, score = "stable", 2
    return ContextSignal(
        impact=movement,
        numeric_impact=score,
        details={
            "movement": movement,
            "consensus_spread": round(statistics.mean(spreads), 1) if spreads else None,
            "consensus_total": round(statistics.mean(totals), 1) if totals else None,
            "spread_range": spread_range,
            "books": len(odds.books),
        },
    )


def _rng_for(*parts: Any) -> random.Random:
    seed = hashlib.sha256("|".join(str(p) for p in parts).encode()).hexdigest()[:12]
    return random.Random(int(seed, 16))


def estimate_sentiment(bet: ParsedBet, odds: OddsSnapshot | None) -> ContextSignal:
    rng = _rng_for("sentiment", bet.player, bet.teams)
    favorite = None
    if odds and odds.books and bet.teams:
        book = next(iter(odds.books.values()))
        if book.moneyline_home is not None and book.moneyline_away is not None:
            favorite = bet.teams[0] if book.moneyline_home < book.moneyline_away else bet.teams[1]
    public_share = round(rng.uniform(0.5, 0.75), 2) if favorite else 0.5
    sentiment = "bullish" if public_share > 0.65 else "neutral"
    return ContextSignal(
        impact=sentiment,
        numeric_impact=max(1, round(public_share * 10) - 4),
        details={
            "sentiment": sentiment,
            "public_side": favorite or bet.player,
            "public_share": public_share,
            "mentions": rng.randint(500, 2500),
            "source": "heuristic",
        },
    )


def recent_form(bet: ParsedBet, stats: StatsSnapshot | None) -> ContextSignal:
    sport = bet.sport or "nba"
    label, baseline = FORM_STAT.get(sport, ("score", 1.0))
    if stats and stats.player and stats.player.season_average_points:
        baseline = stats.player.season_average_points
    rng = _rng_for("form", bet.player, bet.teams, sport)
    games = [round(max(0.0, rng.gauss(baseline, baseline * 0.2)), 1) for _ in range(5)]
    average = statistics.mean(games)
    variance = statistics.pvariance(games)
    momentum = statistics.mean(games[-2:]) - statistics.mean(games[:3])
    if momentum > baseline * 0.1:
        trend = "hot"
    elif momentum < -baseline * 0.1:
        trend = "cold"
    else:
        trend = "average"
    consistency = max(1, min(10, round(10 - (variance ** 0.5) / max(baseline, 0.1) * 10)))
    return ContextSignal(
        impact=trend,
        numeric_impact=consistency,
        details={
            "trend": trend,
            "stat": label,
            "last_five": games,
            "average": round(average, 2),
            "momentum": round(momentum, 2),
        },
    )


def coaching_tendency(bet: ParsedBet) -> ContextSignal:
    styles = COACHING_STYLES.get(bet.sport or "", ("balanced approach",))
    rng = _rng_for("coaching", bet.teams, bet.sport)
    style = rng.choice(styles)
    return ContextSignal(impact="standard", numeric_impact=3, details={"style": style})


def venue_factors(bet: ParsedBet, game: GameInfo) -> ContextSignal:
    base = HOME_ADVANTAGE.get(bet.sport or "", 3)
    if not game.home_team:
        return ContextSignal(impact="neutral", numeric_impact=1, details={"advantage": "neutral"})
    return ContextSignal(
        impact="home",
        numeric_impact=base,
        details={"advantage": "home", "home_team": game.home_team, "venue": game.venue},
    )


class ContextEnhancer:
    """Fans out the seven context lookups and joins them, tolerating failures."""

    def __init__(
        self,
        weather: WeatherClient | None = None,
        news: NewsClient | None = None,
        cache: CacheStore | None = None,
        timeout: float | None = None,
    ) -> None:
        self.weather = weather
        self.news = news
        self.cache = cache
        self.timeout = timeout or get_settings().short_timeout_seconds

    async def gather(self, bet: ParsedBet, game: GameInfo) -> ContextBundle:
        lookups: dict[str, Callable[[], Awaitable[ContextSignal]]] = {
            "weather": lambda: self.weather_impact(bet, game),
            "injuries": lambda: self.injury_news(bet),
            "line_movement": lambda: self._local(analyze_line_movement, game.odds),
            "sentiment": lambda: self._local(estimate_sentiment, bet, game.odds),
            "recent_performance": lambda: self._local(recent_form, bet, game.stats),
            "coaching": lambda: self.coaching(bet),
            "venue": lambda: self._local(venue_factors, bet, game),
        }
        results = await asyncio.gather(
            *(asyncio.wait_for(factory(), self.timeout) for factory in lookups.values()),
            return_exceptions=True,
        )

        defaults = neutral_defaults()
        signals: dict[str, ContextSignal] = {}
        succeeded = 0
        for name, result in zip(lookups, results):
            if isinstance(result, BaseException):
                logger.warning("Context lookup %s failed: %r", name, result)
                signals[name] = defaults[name]
                continue
            signals[name] = result
            succeeded += int(result.available)
        return ContextBundle(**signals, data_quality=data_quality(succeeded, len(lookups)))

    @staticmethod
    async def _local(fn: Callable[..., ContextSignal], *args: Any) -> ContextSignal:
        return fn(*args)

    async def weather_impact(self, bet: ParsedBet, game: GameInfo) -> ContextSignal:
        if bet.sport not in OUTDOOR_SPORTS:
            return ContextSignal(impact="none", numeric_impact=1, details={"reason": "indoor sport"})
        if self.weather is None or not game.venue:
            return ContextSignal(impact="unknown", details={"reason": "weather provider or venue unavailable"}, available=False)

        key = cache_key("weather", game.venue, game.commence_time)
        if self.cache is not None:
            forecast = await self.cache.get_or_fetch(
                key, CacheCategory.MARKET_CONTEXT, lambda: self.weather.forecast(game.venue)
            )
        else:
            forecast = await self.weather.forecast(game.venue)
        return analyze_weather(pick_forecast(forecast, game.commence_time), bet.sport)

    async def injury_news(self, bet: ParsedBet) -> ContextSignal:
        subjects = [s for s in [bet.player, *(bet.teams or ())] if s]
        if self.news is None or not subjects:
            return ContextSignal(impact="unknown", details={"reason": "news provider unavailable"}, available=False)

        key = cache_key("injuries", *subjects)
        if self.cache is not None:
            articles = await self.cache.get_or_fetch(
                key, CacheCategory.MARKET_CONTEXT, lambda: self.news.injury_articles(subjects)
            )
        else:
            articles = await self.news.injury_articles(subjects)
        return analyze_injury_news(articles, subjects)

    async def coaching(self, bet: ParsedBet) -> ContextSignal:
        if self.cache is None:
            return coaching_tendency(bet)
        key = cache_key("coaching", bet.sport, bet.teams)
        return await self.cache.get_or_fetch(
            key, CacheCategory.HISTORICAL_CONTEXT, lambda: self._local(coaching_tendency, bet)
        )
