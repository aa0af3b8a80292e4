"""Async client for The Odds API."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from betbot.config import get_settings
from betbot.data.http import provider_retry
from betbot.data.schemas import Game

logger = logging.getLogger(__name__)

BASE_URL = "https://api.the-odds-api.com/v4"

SPORT_KEYS = {
    "nfl": "americanfootball_nfl",
    "nba": "basketball_nba",
    "mlb": "baseball_mlb",
    "nhl": "icehockey_nhl",
    "soccer": "soccer_usa_mls",
    "tennis": "tennis_atp_aus_open",
    "mma": "mma_mixed_martial_arts",
}

DEFAULT_BOOKMAKERS = ("draftkings", "fanduel", "betmgm", "caesars")


class OddsAPIClient:
    """Fetches the day's games with spreads, totals and moneylines."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.odds_api_key
        if not self.api_key:
            raise RuntimeError("ODDS_API_KEY is not configured.")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            timeout=timeout or settings.short_timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> "OddsAPIClient":  # pragma: no cover - context sugar
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @provider_retry
    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        response = await self._client.get(url, params={"apiKey": self.api_key, **(params or {})})
        response.raise_for_status()
        remaining = response.headers.get("x-requests-remaining")
        if remaining is not None:
            logger.debug("Odds API requests remaining: %s", remaining)
        return response.json()

    async def get_odds(self, sport_key: str) -> list[Game]:
        """Return today's games for a provider sport key (e.g. ``basketball_nba``)."""

        payload = await self._request(
            f"/sports/{sport_key}/odds",
            {
                "regions": "us",
                "markets": "spreads,totals,h2h",
                "oddsFormat": "american",
                "bookmakers": ",".join(DEFAULT_BOOKMAKERS),
            },
        )
        return [Game.model_validate(item) for item in payload or []]
