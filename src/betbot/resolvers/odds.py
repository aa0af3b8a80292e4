"""Odds resolution: team inference, game matching and per-book normalization."""

from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from betbot.agents.llm_client import TextGenerator, complete_json
from betbot.config import get_settings
from betbot.data.cache import CacheCategory, CacheStore, cache_key
from betbot.data.name_matching import TEAMS, normalize_name
from betbot.data.odds_client import SPORT_KEYS, OddsAPIClient
from betbot.data.schemas import BookOdds, Game, OddsSnapshot, OddsSource, ParsedBet
from betbot.errors import friendly_message

logger = logging.getLogger(__name__)

NO_MATCH = "NO_MATCH"

# spread, home moneyline, total
TYPICAL_LINES = {
    "nba": (-3.5, -150, 215.5),
    "nfl": (-2.5, -125, 47.5),
    "mlb": (-1.5, -130, 8.5),
    "nhl": (-1.5, -140, 6.5),
}
NEUTRAL_TOTAL = 220.0

MATCH_PROMPT = """Find the best matching game for: {home} vs {away}

Available games:
{games}

Return only the exact game string that matches, or "NO_MATCH" if none match."""

TEAM_INFERENCE_PROMPT = """A {sport} bet mentions the player "{player}" but no teams.
Bet text: "{text}"
Which two teams are most likely playing in this bet (the player's team first, then the likely opponent)?
Return ONLY JSON: {{"teams": ["Team 1", "Team 2"], "confidence": 0.0-1.0, "reasoning": "one sentence"}}"""


class TeamInference(BaseModel):
    teams: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""


def _neutral_books() -> dict[str, BookOdds]:
    return {
        "neutral": BookOdds(
            spread=0.0,
            home_spread_odds=-110,
            away_spread_odds=-110,
            total=NEUTRAL_TOTAL,
            over_odds=-110,
            under_odds=-110,
            moneyline_home=100,
            moneyline_away=100,
        )
    }


def neutral_snapshot(kind: OddsSource, source: str, message: str, teams: tuple[str, str] | None = None) -> OddsSnapshot:
    return OddsSnapshot(
        source=source,
        source_kind=kind,
        game_found=False,
        books=_neutral_books(),
        searched_teams=list(teams or []),
        message=message,
    )


def sport_default_odds(sport: str | None, message: str = "") -> OddsSnapshot:
    """Typical market lines for the sport, spread across three books."""

    league = sport if sport in TYPICAL_LINES else "nba"
    spread, moneyline, total = TYPICAL_LINES[league]
    away_moneyline = abs(moneyline) - 20
    base = BookOdds(
        spread=spread,
        home_spread_odds=-110,
        away_spread_odds=-110,
        total=total,
        over_odds=-110,
        under_odds=-110,
        moneyline_home=moneyline,
        moneyline_away=away_moneyline,
    )
    books = {
        "draftkings": base,
        "fanduel": base.model_copy(update={"spread": spread + 0.5}),
        "betmgm": base.model_copy(update={"total": total + 0.5}),
    }
    return OddsSnapshot(
        source=f"Typical Lines ({league.upper()})",
        source_kind=OddsSource.SPORT_DEFAULT,
        game_found=False,
        books=books,
        message=message or "Live odds unavailable; using sport-typical lines.",
    )


def transform_odds(game: Game) -> dict[str, BookOdds]:
    """Flatten provider bookmaker markets into one BookOdds per book."""

    books: dict[str, BookOdds] = {}
    for bookmaker in game.bookmakers:
        key = bookmaker.key.replace("_", "").replace("-", "")
        odds = BookOdds()
        for market in bookmaker.markets:
            by_name = {outcome.name: outcome for outcome in market.outcomes}
            home, away = by_name.get(game.home_team), by_name.get(game.away_team)
            if market.key == "spreads":
                if home and home.point is not None:
                    odds.spread = home.point
                elif away and away.point is not None:
                    odds.spread = -away.point
                odds.home_spread_odds = home.price if home else None
                odds.away_spread_odds = away.price if away else None
            elif market.key == "totals" and market.outcomes:
                odds.total = market.outcomes[0].point
                over, under = by_name.get("Over"), by_name.get("Under")
                odds.over_odds = over.price if over else None
                odds.under_odds = under.price if under else None
            elif market.key == "h2h":
                odds.moneyline_home = home.price if home else None
                odds.moneyline_away = away.price if away else None
        books[key] = odds
    return books


def _team_terms(team: str, sport: str | None) -> list[str]:
    name = normalize_name(team, expand_nicknames=False)
    terms = [name]
    full = TEAMS.get(sport or "", {}).get(name)
    if full:
        terms.append(full.lower())
    return terms


def substring_candidates(teams: tuple[str, str], games: list[Game], sport: str | None = None) -> list[Game]:
    """Games containing the most parsed team names, best matches only."""

    scored: list[tuple[int, Game]] = []
    for game in games:
        label = game.label.lower()
        hits = sum(1 for team in teams if any(term and term in label for term in _team_terms(team, sport)))
        if hits:
            scored.append((hits, game))
    if not scored:
        return []
    best = max(hits for hits, _ in scored)
    return [game for hits, game in scored if hits == best]


async def match_game(
    teams: tuple[str, str],
    games: list[Game],
    generator: TextGenerator | None = None,
    sport: str | None = None,
) -> Game | None:
    """Pick the scheduled game for a team pair; escalate ambiguity to the model."""

    candidates = substring_candidates(teams, games, sport)
    if len(candidates) == 1:
        return candidates[0]
    if generator is None:
        return candidates[0] if candidates else None

    prompt = MATCH_PROMPT.format(
        home=teams[0],
        away=teams[1],
        games="\n".join(game.label for game in games),
    )
    try:
        answer = await generator.generate(
            prompt,
            max_tokens=50,
            temperature=0.0,
            timeout=get_settings().short_timeout_seconds,
        )
    except Exception as exc:
        logger.warning("AI game matching failed: %s", exc)
        return candidates[0] if candidates else None

    answer = answer.strip().strip('"').strip()
    if not answer or NO_MATCH in answer.upper():
        return None
    for game in games:
        if game.label.lower() == answer.lower():
            return game
    for game in games:
        if game.label.lower() in answer.lower():
            return game
    return None


class OddsResolver:
    """Resolves a parsed bet to an OddsSnapshot, degrading step by step."""

    def __init__(
        self,
        client: OddsAPIClient | None = None,
        generator: TextGenerator | None = None,
        cache: CacheStore | None = None,
    ) -> None:
        self.client = client
        self.generator = generator
        self.cache = cache
        self.settings = get_settings()

    async def resolve(self, bet: ParsedBet, raw_text: str) -> OddsSnapshot:
        if bet.sport is None or bet.confidence < self.settings.min_parse_confidence:
            return neutral_snapshot(
                OddsSource.PARSING_FAILED,
                "Fallback (Parsing Failed)",
                "Bet could not be parsed confidently; odds lookup skipped.",
            )

        if self.cache is None:
            return await self._resolve_or_default(bet, raw_text)
        return await self.cache.get_or_fetch(
            cache_key("odds", raw_text, bet.sport),
            CacheCategory.ODDS,
            lambda: self._resolve_or_default(bet, raw_text),
        )

    async def _resolve_or_default(self, bet: ParsedBet, raw_text: str) -> OddsSnapshot:
        try:
            return await self._resolve_live(bet, raw_text)
        except Exception as exc:
            logger.warning("Odds lookup failed for %r: %s", raw_text, exc)
            return sport_default_odds(bet.sport, friendly_message(exc, "Odds lookup"))

    async def infer_teams(self, bet: ParsedBet, raw_text: str = "") -> tuple[str, str] | None:
        if self.generator is None or not bet.player:
            return None
        try:
            inference = await complete_json(
                self.generator,
                TEAM_INFERENCE_PROMPT.format(sport=(bet.sport or "").upper(), player=bet.player, text=raw_text),
                TeamInference,
                max_tokens=300,
                temperature=0.1,
                timeout=self.settings.short_timeout_seconds,
            )
        except Exception as exc:
            logger.warning("Team inference failed for %s: %s", bet.player, exc)
            return None
        if inference.confidence <= self.settings.team_inference_min_confidence or len(inference.teams) < 2:
            logger.info("Team inference for %s rejected (confidence %.2f)", bet.player, inference.confidence)
            return None
        return inference.teams[0], inference.teams[1]

    async def _resolve_live(self, bet: ParsedBet, raw_text: str) -> OddsSnapshot:
        teams = bet.teams
        if not teams and bet.player:
            teams = await self.infer_teams(bet, raw_text)
        if not teams:
            return neutral_snapshot(
                OddsSource.NO_TEAMS,
                "Fallback (No Teams Identified)",
                "No teams could be identified for this bet.",
            )
        if self.client is None:
            return sport_default_odds(bet.sport, "No odds provider configured.")

        games = await self.client.get_odds(SPORT_KEYS[bet.sport])
        if not games:
            return neutral_snapshot(
                OddsSource.NO_GAMES,
                "The Odds API (No Games Today)",
                f"No {bet.sport.upper()} games found today.",
                teams,
            )

        game = await match_game(teams, games, self.generator, bet.sport)
        if game is None:
            reference = games[0]
            logger.info("No game matched %s; using %s as reference", teams, reference.label)
            books = transform_odds(reference) or sport_default_odds(bet.sport).books
            return OddsSnapshot(
                source=f"The Odds API (Reference Game: {reference.label})",
                source_kind=OddsSource.REFERENCE_GAME,
                game_found=False,
                books=books,
                matched_game=reference.label,
                searched_teams=list(teams),
                games_available=len(games),
                message=f"No exact match for {teams[0]} vs {teams[1]}; showing a reference game.",
            )

        books = transform_odds(game)
        if not books:
            return sport_default_odds(bet.sport, f"{game.label} has no bookmaker lines yet.")
        return OddsSnapshot(
            source=f"The Odds API ({game.label})",
            source_kind=OddsSource.LIVE,
            game_found=True,
            books=books,
            matched_game=game.label,
            commence_time=game.commence_time,
            searched_teams=list(teams),
            games_available=len(games),
            message="Live odds found.",
        )
