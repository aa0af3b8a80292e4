"""FastAPI backend exposing the BetBot analysis pipeline."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, Any

from fastapi import Depends, FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from betbot import __version__
from betbot.api.schemas import AnalyzeRequest, ParseRequest, VersionResponse
from betbot.config import get_api_access_key, get_settings
from betbot.data.schemas import BetAnalysis, ParsedBet, UnableToAnalyze
from betbot.pipeline import BetAnalysisPipeline

app = FastAPI(
    title="BetBot Analysis API",
    version=__version__,
    description="Free-text bet analysis: parsing, odds and stats resolution and multi-step reasoning.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_pipeline() -> BetAnalysisPipeline:
    return BetAnalysisPipeline.from_settings()


def require_api_key(x_api_key: str | None = Header(default=None, alias="X-API-Key")) -> None:
    expected = get_api_access_key()
    if not expected:
        return
    if not x_api_key or x_api_key != expected:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")


PipelineDep = Annotated[BetAnalysisPipeline, Depends(get_pipeline)]
APIKeyDep = Annotated[None, Depends(require_api_key)]


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/version", response_model=VersionResponse)
def version() -> dict[str, Any]:
    settings = get_settings()
    return {
        "name": "betbot-analysis",
        "version": __version__,
        "model": settings.openai_model,
        "providers": {
            "openai": bool(settings.openai_api_key),
            "odds": bool(settings.odds_api_key),
            "rapidapi": bool(settings.rapidapi_key),
            "balldontlie": bool(settings.balldontlie_api_key),
            "weather": bool(settings.openweather_api_key),
            "news": bool(settings.news_api_key),
        },
    }


@app.post("/analyze", response_model=BetAnalysis | UnableToAnalyze)
async def analyze(payload: AnalyzeRequest, _: APIKeyDep, pipeline: PipelineDep) -> BetAnalysis | UnableToAnalyze:
    text = payload.bet_description.strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail="Bet description is empty.")
    return await pipeline.analyze(text, payload.creator_algorithm)


@app.post("/parse", response_model=ParsedBet)
async def parse(payload: ParseRequest, _: APIKeyDep, pipeline: PipelineDep) -> ParsedBet:
    return await pipeline.parse(payload.bet_description)
