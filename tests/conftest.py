"""Keep tests independent of the developer's environment and .env file."""

from __future__ import annotations

import pytest

from betbot.config import get_settings

PROVIDER_VARS = (
    "OPENAI_API_KEY",
    "ODDS_API_KEY",
    "RAPIDAPI_KEY",
    "BALLDONTLIE_API_KEY",
    "OPENWEATHER_API_KEY",
    "NEWS_API_KEY",
    "BETBOT_API_KEY",
)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    for var in PROVIDER_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
