"""OpenWeather forecast client used for outdoor-game weather context."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import httpx

from betbot.config import get_settings
from betbot.data.http import provider_retry

BASE_URL = "https://api.openweathermap.org/data/2.5"


def pick_forecast(payload: Dict[str, Any], game_time: Optional[datetime] = None) -> Dict[str, Any]:
    """Flatten the forecast slot closest to ``game_time`` (or the first slot)."""

    slots = payload.get("list") or []
    if not slots:
        return {}
    slot = slots[0]
    if game_time is not None:
        target = game_time.timestamp()
        slot = min(slots, key=lambda s: abs(s.get("dt", 0) - target))
    main, wind = slot.get("main", {}), slot.get("wind", {})
    conditions = " ".join(w.get("description", "") for w in slot.get("weather", [])).lower()
    return {
        "temp": main.get("temp"),
        "humidity": main.get("humidity"),
        "wind_speed": wind.get("speed", 0.0),
        "wind_deg": wind.get("deg"),
        "conditions": conditions,
        "forecast_time": datetime.fromtimestamp(slot.get("dt", 0), tz=timezone.utc).isoformat(),
    }


class WeatherClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = BASE_URL,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or settings.openweather_api_key
        if not self.api_key:
            raise RuntimeError("OPENWEATHER_API_KEY is not configured.")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout or settings.short_timeout_seconds, transport=transport)

    async def aclose(self) -> None:
        await self._client.aclose()

    @provider_retry
    async def forecast(self, city: str) -> Dict[str, Any]:
        response = await self._client.get(
            f"{self.base_url}/forecast",
            params={"q": city, "appid": self.api_key, "units": "imperial"},
        )
        response.raise_for_status()
        return response.json()
