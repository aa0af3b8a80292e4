"""NewsAPI client for recent injury headlines."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import httpx

from betbot.config import get_settings
from betbot.data.http import provider_retry

BASE_URL = "https://newsapi.org/v2"

INJURY_SEARCH_TERMS = ("injury", "questionable", "doubtful", "out", "sidelined", "limited")


class NewsClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.news_api_key
        if not self.api_key:
            raise RuntimeError("NEWS_API_KEY is not configured.")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout or settings.short_timeout_seconds, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    @provider_retry
    async def everything(self, query: str, hours: int = 24) -> list[Dict[str, Any]]:
        since = datetime.now(timezone.utc) - timedelta(hours=hours)
        response = await self._client.get(
            f"{self.base_url}/everything",
            params={
                "q": query,
                "language": "en",
                "sortBy": "publishedAt",
                "from": since.strftime("%Y-%m-%dT%H:%M:%S"),
                "apiKey": self.api_key,
            },
        )
        response.raise_for_status()
        return response.json().get("articles", [])

    async def injury_articles(self, subjects: list[str]) -> list[Dict[str, Any]]:
        names = " OR ".join(f'"{s}"' for s in subjects)
        terms = " OR ".join(INJURY_SEARCH_TERMS)
        return await self.everything(f"({names}) AND ({terms})")
