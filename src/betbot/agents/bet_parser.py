"""Model-assisted bet parsing with validation against the original text."""

from __future__ import annotations

import logging
import re

from pydantic import BaseModel, ConfigDict, Field

from betbot.agents.fallback_parser import fallback_parse, numbers_in
from betbot.agents.llm_client import TextGenerator, complete_json
from betbot.analysis.quality import validate_parsed_bet_realism
from betbot.config import get_settings
from betbot.data.cache import CacheCategory, CacheStore, cache_key
from betbot.data.schemas import SPORTS, ParsedBet

logger = logging.getLogger(__name__)

PARSE_MAX_TOKENS = 800
PARSE_TEMPERATURE = 0.05

PARSE_PROMPT = """Extract the exact structure of this sports bet. Use the names and numbers exactly as written; never substitute players or teams.

BET: "{text}"

Steps: identify the sport, the player (if any), the two teams (if any), the line number, and the bet side.
Check that the sport matches the player or teams and that the line number appears in the bet.

Examples:
"Aaron Judge over 1.5 home runs vs Orioles" -> {{"sport": "mlb", "type": "player", "teams": ["Yankees", "Orioles"], "player": "Aaron Judge", "line": 1.5, "betOn": "over", "specificBetType": "home_runs", "confidence": 0.9}}
"LeBron James over 25.5 points" -> {{"sport": "nba", "type": "player", "teams": null, "player": "LeBron James", "line": 25.5, "betOn": "over", "specificBetType": "points", "confidence": 0.95}}
"Lakers -7.5 vs Warriors" -> {{"sport": "nba", "type": "team", "teams": ["Lakers", "Warriors"], "player": null, "line": 7.5, "betOn": "spread", "specificBetType": null, "confidence": 0.9}}

Return ONLY JSON with keys: sport (nba|nfl|mlb|nhl|soccer|tennis|mma), type (team|player), teams (two names or null),
player (exact full name or null), line (number or null), betOn (over|under|spread|moneyline|total), specificBetType
(points|assists|rebounds|home_runs|hits|strikeouts|touchdown_passes|rushing_yards|passing_yards|goals|saves or null), confidence (0.1-1.0)."""

_NORMALIZE_RE = re.compile(r"[^a-z0-9\s]")


class AIParsePayload(BaseModel):
    """Untrusted parse reply from the model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    sport: str | None = None
    kind: str = Field(default="team", alias="type")
    teams: list[str] | None = None
    player: str | None = None
    line: float | None = None
    bet_on: str | None = Field(default=None, alias="betOn")
    specific_bet_type: str | None = Field(default=None, alias="specificBetType")
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)

    def to_parsed_bet(self, fallback: ParsedBet) -> ParsedBet:
        sport = (self.sport or "").lower() or None
        teams = [t.strip() for t in self.teams or [] if t and t.strip()]
        specific = self.specific_bet_type.lower().replace(" ", "_") if self.specific_bet_type else None
        if specific == "home_run":
            specific = "home_runs"
        return ParsedBet(
            sport=sport if sport in SPORTS else None,
            kind="player" if self.player else "team",
            teams=(teams[0], teams[1]) if len(teams) >= 2 else fallback.teams,
            player=self.player.strip() if self.player else None,
            line=abs(self.line) if self.line is not None else None,
            bet_on=self.bet_on.lower() if self.bet_on else None,
            specific_bet_type=specific,
            confidence=self.confidence,
            source="ai",
        )


def _normalize(text: str) -> str:
    return _NORMALIZE_RE.sub("", text.lower())


def _team_mentioned(team: str, original: str) -> bool:
    words = _normalize(team).split()
    return bool(words) and (words[0] in original or " ".join(words) in original or words[-1] in original)


def validate_ai_parse(parsed: ParsedBet, original_text: str) -> list[str]:
    """Cross-check model-extracted entities against the text the user typed."""

    problems: list[str] = []
    original = _normalize(original_text)
    if parsed.sport is None:
        problems.append("sport missing or unsupported")
    if parsed.player:
        last = _normalize(parsed.player).split()[-1:] or [""]
        if last[0] not in original:
            problems.append(f"player {parsed.player!r} not found in bet text")
    if parsed.teams and not any(_team_mentioned(team, original) for team in parsed.teams):
        problems.append(f"teams {parsed.teams} not found in bet text")
    if parsed.line is not None and parsed.line not in numbers_in(original_text):
        problems.append(f"line {parsed.line} not among numbers in bet text")
    return problems


def detect_bet_type(parsed: ParsedBet | None) -> str:
    if parsed is None:
        return "straight"
    if parsed.kind == "player":
        return "prop"
    bet_on = parsed.bet_on or ""
    if bet_on in ("over", "under", "total"):
        return "total"
    if "win" in bet_on or bet_on == "moneyline":
        return "moneyline"
    return "straight"


class BetParser:
    """Parses free text into a ParsedBet; the deterministic parse is always the floor."""

    def __init__(self, generator: TextGenerator | None = None, cache: CacheStore | None = None) -> None:
        self.generator = generator
        self.cache = cache
        self.settings = get_settings()

    async def parse(self, text: str) -> ParsedBet:
        fallback = fallback_parse(text)
        if self.generator is None or fallback.confidence == 0.0:
            return fallback

        key = cache_key("parsed_bet", text)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        try:
            payload = await complete_json(
                self.generator,
                PARSE_PROMPT.format(text=text.replace('"', "'")),
                AIParsePayload,
                max_tokens=PARSE_MAX_TOKENS,
                temperature=PARSE_TEMPERATURE,
                timeout=self.settings.short_timeout_seconds,
            )
            parsed = payload.to_parsed_bet(fallback)
        except Exception as exc:  # model or transport failure
            logger.warning("AI parsing failed, using fallback: %s", exc)
            return fallback

        problems = validate_ai_parse(parsed, text) + validate_parsed_bet_realism(parsed, text)
        if problems:
            logger.info("AI parse rejected (%s); using fallback", "; ".join(problems))
            return fallback

        if self.cache is not None:
            self.cache.set(key, parsed, CacheCategory.PARSED_BET)
        return parsed
