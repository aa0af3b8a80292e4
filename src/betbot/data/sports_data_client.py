"""Async client for the RapidAPI sports-information provider."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from betbot.config import get_settings
from betbot.data.http import provider_retry
from betbot.data.name_matching import best_match
from betbot.data.schemas import PlayerStats, TeamStats

logger = logging.getLogger(__name__)

HOST = "sports-information.p.rapidapi.com"
BASE_URL = f"https://{HOST}"

PLAYER_STATS_PATHS = {
    "nba": "/nba/player-statistics",
    "nfl": "/nfl/player-statistic",
    "mlb": "/mlb/player-statistic",
    "nhl": "/nhl/player-statistic",
}
TEAM_STATS_PATHS = {
    "nba": "/nba/team-statistics",
    "nfl": "/nfl/team-statistic",
    "mlb": "/mlb/team-statistic",
    "nhl": "/nhl/team-statistic",
}

# league-average points (runs, goals) per game; 0.5 rating means average
LEAGUE_SCORING = {"nba": 114.0, "nfl": 22.0, "mlb": 4.5, "nhl": 3.1}

SPORT_ALIASES = {
    "nba": ("nba", "basketball"),
    "nfl": ("nfl", "football"),
    "mlb": ("mlb", "baseball"),
    "nhl": ("nhl", "hockey"),
}

PLAYER_NAME_FIELDS = ("name", "fullName", "displayName", "shortName")
TEAM_NAME_FIELDS = ("name", "fullName", "displayName", "shortName", "abbreviation", "market", "nickname")

# canonical field -> provider keys, per sport
PLAYER_FIELD_MAP: dict[str, dict[str, tuple[str, ...]]] = {
    "nba": {
        "season_average_points": ("points", "pts", "pointsPerGame"),
        "rebounds": ("rebounds", "reb"),
        "assists": ("assists", "ast"),
        "usage_rate": ("usageRate",),
        "minutes_played": ("minutes", "min"),
    },
    "nfl": {
        "passing_yards": ("passingYards",),
        "touchdown_passes": ("touchdownPasses", "passingTouchdowns"),
        "rushing_yards": ("rushingYards",),
        "receptions": ("receptions",),
        "receiving_yards": ("receivingYards",),
    },
    "mlb": {
        "batting_average": ("battingAverage", "avg"),
        "home_runs": ("homeRuns", "hr"),
        "rbis": ("rbis", "rbi"),
        "era": ("era",),
        "strikeouts": ("strikeouts", "so"),
    },
    "nhl": {
        "goals": ("goals", "g"),
        "assists": ("assists", "a"),
        "points": ("points", "pts"),
        "save_percentage": ("savePercentage", "svPct"),
    },
}


def _safe_number(stats: Dict[str, Any], keys: tuple[str, ...]) -> float | None:
    for key in keys:
        value = stats.get(key)
        try:
            number = float(value)
        except (TypeError, ValueError):
            continue
        if number:
            return number
    return None


def normalize_player_stats(raw: Dict[str, Any], sport: str, name: str) -> PlayerStats:
    stats = raw.get("statistics") or raw.get("stats") or raw
    fields = {
        field: _safe_number(stats, keys) for field, keys in PLAYER_FIELD_MAP.get(sport, {}).items()
    }
    if fields.get("usage_rate") and fields["usage_rate"] > 1:
        fields["usage_rate"] = fields["usage_rate"] / 100
    team = raw.get("team")
    return PlayerStats(
        name=name,
        sport=sport,
        team=team.get("name") if isinstance(team, dict) else raw.get("teamName"),
        **fields,
    )


def _rating(value: float, baseline: float) -> float:
    return round(min(max(0.5 * value / baseline, 0.0), 1.0), 3)


def normalize_team_stats(raw: Dict[str, Any], name: str, sport: str) -> TeamStats:
    stats = raw.get("statistics") or raw.get("stats") or raw
    wins, losses = stats.get("wins"), stats.get("losses")
    scored = _safe_number(stats, ("pointsPerGame", "pointsFor", "runsPerGame", "goalsPerGame"))
    allowed = _safe_number(stats, ("pointsAllowedPerGame", "pointsAgainst", "runsAllowedPerGame", "goalsAgainstPerGame"))
    baseline = LEAGUE_SCORING.get(sport, 1.0)
    offense = _rating(scored, baseline) if scored else None
    defense = _rating(baseline, allowed) if allowed else None
    return TeamStats(
        name=raw.get("name") or name,
        offense_rating=offense,
        defense_rating=defense,
        home_record=stats.get("homeRecord"),
        wins=int(wins) if isinstance(wins, (int, float)) else None,
        losses=int(losses) if isinstance(losses, (int, float)) else None,
    )


def _sport_matches(result_sport: str, sport: str) -> bool:
    result_sport = result_sport.lower()
    if not result_sport:
        return True
    return any(alias in result_sport or result_sport in alias for alias in SPORT_ALIASES.get(sport, (sport,)))


def find_in_search_results(
    payload: Dict[str, Any],
    query: str,
    sport: str,
    result_type: str,
) -> Optional[Dict[str, Any]]:
    """Best search hit of ``result_type`` for ``query`` within ``sport``."""

    fields = PLAYER_NAME_FIELDS if result_type == "player" else TEAM_NAME_FIELDS
    best: tuple[float, Dict[str, Any]] | None = None
    for result in payload.get("results") or []:
        if result.get("type") != result_type:
            continue
        if not _sport_matches(str(result.get("sport") or ""), sport):
            continue
        names = [str(result[f]) for f in fields if result.get(f)]
        if result.get("firstName") and result.get("lastName"):
            names.append(f"{result['firstName']} {result['lastName']}")
        match = best_match(query, names)
        if match and (best is None or match[1] > best[0]):
            best = (match[1], result)
    return best[1] if best else None


class SportsDataClient:
    """Search-then-fetch wrapper for the sports-information API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.rapidapi_key
        if not self.api_key:
            raise RuntimeError("RAPIDAPI_KEY is not configured.")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.short_timeout_seconds,
            headers={"X-RapidAPI-Key": self.api_key, "X-RapidAPI-Host": HOST, "Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @provider_retry
    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self._client.get(f"{self.base_url}{path}", params=params)
        response.raise_for_status()
        return response.json()

    async def search(self, query: str, limit: int = 5) -> Dict[str, Any]:
        return await self._request("/search", {"query": query, "limit": limit})

    async def get_player_stats(self, name: str, sport: str) -> PlayerStats | None:
        if sport not in PLAYER_STATS_PATHS:
            return None
        hit = find_in_search_results(await self.search(name), name, sport, "player")
        if not hit or not hit.get("id"):
            logger.info("Player %s not found in sports-information search", name)
            return None
        raw = await self._request(PLAYER_STATS_PATHS[sport], {"playerId": hit["id"]})
        stats = normalize_player_stats(raw, sport, hit.get("name") or name)
        return stats if stats.populated() else None

    async def get_team_stats(self, name: str, sport: str) -> TeamStats | None:
        if sport not in TEAM_STATS_PATHS:
            return None
        hit = find_in_search_results(await self.search(name, limit=10), name, sport, "team")
        if not hit or not hit.get("id"):
            logger.info("Team %s not found in sports-information search", name)
            return None
        raw = await self._request(TEAM_STATS_PATHS[sport], {"teamId": hit["id"]})
        return normalize_team_stats(raw, hit.get("name") or name, sport)
