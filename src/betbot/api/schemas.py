"""Request and response schemas for the BetBot API."""

from __future__ import annotations

from pydantic import BaseModel, Field

from betbot.data.schemas import CreatorAlgorithm


class AnalyzeRequest(BaseModel):
    bet_description: str = Field(min_length=1, max_length=500)
    creator_algorithm: CreatorAlgorithm | None = None


class ParseRequest(BaseModel):
    bet_description: str = Field(min_length=1, max_length=500)


class VersionResponse(BaseModel):
    name: str
    version: str
    model: str
    providers: dict[str, bool]
