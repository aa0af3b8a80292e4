"""Thin async client for the BALLDONTLIE multi-sport API."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

import httpx

from betbot.config import get_settings
from betbot.data.http import provider_retry
from betbot.data.name_matching import best_match
from betbot.data.schemas import PlayerStats, TeamStats

logger = logging.getLogger(__name__)

BASE_URL = "https://api.balldontlie.io"

SPORT_PREFIXES = {"nba": "/v1", "nfl": "/nfl/v1", "mlb": "/mlb/v1"}

# canonical field -> season stats key
SEASON_FIELDS = {
    "nba": {"season_average_points": "pts", "rebounds": "reb", "assists": "ast", "minutes_played": "min"},
    "nfl": {
        "passing_yards": "passing_yards_per_game",
        "touchdown_passes": "passing_touchdowns",
        "rushing_yards": "rushing_yards_per_game",
        "receptions": "receptions",
        "receiving_yards": "receiving_yards_per_game",
    },
    "mlb": {
        "batting_average": "batting_avg",
        "home_runs": "batting_hr",
        "rbis": "batting_rbi",
        "era": "pitching_era",
        "strikeouts": "pitching_k",
    },
}


def current_season(sport: str, today: date | None = None) -> int:
    """Season year as the provider labels it (NBA 2024-25 is ``2024``)."""

    today = today or date.today()
    start_month = {"nba": 10, "nfl": 9, "mlb": 3}.get(sport, 1)
    return today.year if today.month >= start_month else today.year - 1


def _minutes(value: Any) -> Optional[float]:
    if isinstance(value, str) and ":" in value:
        mins, secs = value.split(":", 1)
        return float(mins) + float(secs or 0) / 60
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class BallDontLieClient:
    """Convenient wrapper for the BALLDONTLIE API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.balldontlie_api_key
        if not self.api_key:
            raise RuntimeError("BALLDONTLIE_API_KEY is not configured.")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.short_timeout_seconds,
            headers={"Authorization": self.api_key},
            transport=transport,
        )

    async def __aenter__(self) -> "BallDontLieClient":  # pragma: no cover - context sugar
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @provider_retry
    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        response = await self._client.get(f"{self.base_url}{path}", params=params)
        response.raise_for_status()
        return response.json()

    async def search_players(self, name: str, sport: str = "nba") -> list[Dict[str, Any]]:
        """Return player records whose name matches ``name``."""

        payload = await self._request(f"{SPORT_PREFIXES[sport]}/players", {"search": name.split()[-1], "per_page": 25})
        return payload.get("data", [])

    async def get_season_stats(self, player_id: int, sport: str, season: int) -> Dict[str, Any]:
        if sport == "nba":
            payload = await self._request("/v1/season_averages", {"season": season, "player_id": player_id})
        else:
            payload = await self._request(
                f"{SPORT_PREFIXES[sport]}/season_stats",
                {"season": season, "player_ids[]": player_id},
            )
        data = payload.get("data", [])
        return data[0] if data else {}

    async def get_standings(self, sport: str, season: int) -> list[Dict[str, Any]]:
        payload = await self._request(f"{SPORT_PREFIXES[sport]}/standings", {"season": season})
        return payload.get("data", [])

    async def get_player_stats(self, name: str, sport: str) -> PlayerStats | None:
        if sport not in SPORT_PREFIXES:
            return None
        players = await self.search_players(name, sport)
        by_name = {f"{p.get('first_name', '')} {p.get('last_name', '')}".strip(): p for p in players}
        match = best_match(name, by_name)
        if not match:
            return None
        player = by_name[match[0]]
        raw = await self.get_season_stats(player["id"], sport, current_season(sport))
        if not raw:
            return None
        fields: Dict[str, Any] = {}
        for field, key in SEASON_FIELDS[sport].items():
            value = _minutes(raw.get(key))
            if value is not None:
                fields[field] = value
        team = player.get("team") or {}
        return PlayerStats(name=match[0], sport=sport, team=team.get("full_name"), **fields)

    async def get_team_record(self, name: str, sport: str) -> TeamStats | None:
        if sport not in SPORT_PREFIXES:
            return None
        standings = await self.get_standings(sport, current_season(sport))
        by_name = {(row.get("team") or {}).get("full_name", ""): row for row in standings}
        match = best_match(name, [n for n in by_name if n])
        if not match:
            return None
        row = by_name[match[0]]
        return TeamStats(
            name=match[0],
            wins=row.get("wins"),
            losses=row.get("losses"),
            home_record=row.get("home_record"),
        )
