"""Deterministic keyword/regex bet parser used when the model is unavailable."""

from __future__ import annotations

import logging
import re

from betbot.data.name_matching import NICKNAME_MAP, TEAMS, find_team_mentions
from betbot.data.schemas import ParsedBet

logger = logging.getLogger(__name__)

BASE_CONFIDENCE = 0.6
DEFAULTED_SPORT_CONFIDENCE = 0.4
UNRECOGNIZED_CONFIDENCE = 0.2

LEAGUE_TOKENS = {
    "nba": "nba", "basketball": "nba", "nfl": "nfl", "football": "nfl",
    "mlb": "mlb", "baseball": "mlb", "nhl": "nhl", "hockey": "nhl",
    "mls": "soccer", "soccer": "soccer", "premier league": "soccer",
    "atp": "tennis", "wta": "tennis", "tennis": "tennis", "ufc": "mma", "mma": "mma",
}

# checked in order; "assists" resolves to basketball before hockey
SPORT_KEYWORDS = {
    "nba": ("points", "assists", "rebounds", "threes", "three pointers", "triple double"),
    "nfl": ("touchdown", "rushing", "passing", "receiving", "interceptions", "field goal"),
    "mlb": ("home run", "homer", "hits", "strikeouts", "rbi", "innings"),
    "nhl": ("goals", "saves", "shots on goal", "puck line", "power play"),
}

# key -> (full name, sport, team nickname)
KNOWN_PLAYERS = {
    "lebron": ("LeBron James", "nba", "lakers"),
    "curry": ("Stephen Curry", "nba", "warriors"),
    "haliburton": ("Tyrese Haliburton", "nba", "pacers"),
    "jokic": ("Nikola Jokic", "nba", "nuggets"),
    "giannis": ("Giannis Antetokounmpo", "nba", "bucks"),
    "mahomes": ("Patrick Mahomes", "nfl", "chiefs"),
    "allen": ("Josh Allen", "nfl", "bills"),
    "burrow": ("Joe Burrow", "nfl", "bengals"),
    "judge": ("Aaron Judge", "mlb", "yankees"),
    "ohtani": ("Shohei Ohtani", "mlb", "dodgers"),
    "mcdavid": ("Connor McDavid", "nhl", "oilers"),
    "ovechkin": ("Alex Ovechkin", "nhl", "capitals"),
}

# (phrase, canonical bet type); longer phrases first
BET_TYPE_KEYWORDS = (
    ("touchdown pass", "touchdown_passes"),
    ("passing yards", "passing_yards"),
    ("rushing yards", "rushing_yards"),
    ("receiving yards", "receiving_yards"),
    ("home run", "home_runs"),
    ("homer", "home_runs"),
    ("strikeout", "strikeouts"),
    ("rbi", "rbis"),
    ("hits", "hits"),
    ("rebounds", "rebounds"),
    ("assists", "assists"),
    ("threes", "threes"),
    ("points", "points"),
    ("touchdown", "touchdowns"),
    ("goals", "goals"),
    ("saves", "saves"),
)

_NOT_NAME_WORDS = {
    "vs", "at", "and", "the", "over", "under", "total", "spread", "moneyline", "ml",
    "to", "win", "tonight", "today", "game", "bet", "take", "play", "pick", "first", "half",
}

_PLAYER_PATTERNS = (
    re.compile(r"([A-Za-z][\w'.]+\s+[A-Za-z][\w'.]+)\s+(?:over|under|o|u)\s*\d", re.IGNORECASE),
    re.compile(r"([A-Za-z][\w'.]+\s+[A-Za-z][\w'.]+)\s+(?:to\s+score|\d+\.?\d*\+?\s+(?:points|assists|rebounds))", re.IGNORECASE),
)
_TEAM_PATTERN = re.compile(
    r"([A-Za-z][\w.']*(?:\s+[A-Za-z][\w.']*)?)\s+(?:[+-]?\d+(?:\.\d+)?\s+)?(?:vs\.?|versus|@|at)\s+([A-Za-z][\w.']*(?:\s+[A-Za-z][\w.']*)?)",
    re.IGNORECASE,
)
_HYPHEN_TEAMS = re.compile(r"\b([A-Za-z]{3,})\s*-\s*([A-Za-z]{3,})\b")
_OVER_UNDER = re.compile(r"\b(over|under|o|u)\s*(\d+(?:\.\d+)?)", re.IGNORECASE)
_SIGNED_NUMBER = re.compile(r"(?<![\w.])([+-]\d+(?:\.\d+)?)(?!\s*(?:points?|pts))")
_TOTAL = re.compile(r"(\d+(?:\.\d+)?)\s+total|total\s+(?:of\s+)?(\d+(?:\.\d+)?)", re.IGNORECASE)
_NUMBER = re.compile(r"\d+\.?\d*")


def numbers_in(text: str) -> list[float]:
    return [float(n) for n in _NUMBER.findall(text)]


def _has_word(lower: str, phrase: str) -> bool:
    return re.search(rf"\b{re.escape(phrase)}", lower) is not None


def _detect_sport(lower: str, teams_sport: str | None, player_sport: str | None) -> str | None:
    for token, sport in LEAGUE_TOKENS.items():
        if _has_word(lower, token):
            return sport
    if teams_sport:
        return teams_sport
    if player_sport:
        return player_sport
    for sport, keywords in SPORT_KEYWORDS.items():
        if any(_has_word(lower, kw) for kw in keywords):
            return sport
    return None


def _names_someone_else(lower: str, key: str, full_name: str) -> bool:
    """True when a surname key is preceded by a different first name ("Seth Curry")."""

    if full_name.lower().split()[-1] != key:
        return False
    match = re.search(rf"([a-z][a-z'.]*)\s+{re.escape(key)}\b", lower)
    if match is None:
        return False
    first = match.group(1)
    if first in _NOT_NAME_WORDS or find_team_mentions(first):
        return False
    return NICKNAME_MAP.get(f"{first} {key}", f"{first} {key}") != full_name.lower()


def _detect_player(text: str, lower: str) -> tuple[str | None, str | None, str | None]:
    for key, (full_name, sport, team) in KNOWN_PLAYERS.items():
        if _has_word(lower, key) and not _names_someone_else(lower, key, full_name):
            return full_name, sport, team
    for pattern in _PLAYER_PATTERNS:
        match = pattern.search(text)
        if not match:
            continue
        candidate = match.group(1).strip()
        words = candidate.lower().split()
        if any(w in _NOT_NAME_WORDS for w in words) or find_team_mentions(candidate):
            continue
        return candidate, None, None
    return None, None, None


def _clean_team(raw: str) -> str:
    words = [w for w in raw.split() if w.lower() not in _NOT_NAME_WORDS and not w[0].isdigit()]
    return " ".join(words)


def _detect_teams(text: str, player_team: str | None, sport: str | None) -> tuple[tuple[str, str] | None, str | None]:
    mentions = find_team_mentions(text, sport)
    if len(mentions) >= 2:
        first, second = mentions[0], mentions[1]
        return (_display(text, first.alias), _display(text, second.alias)), first.sport
    if len(mentions) == 1:
        only = mentions[0]
        if player_team and player_team != only.alias and player_team in TEAMS.get(only.sport, {}):
            return (player_team.title(), _display(text, only.alias)), only.sport
    match = _TEAM_PATTERN.search(text) or _HYPHEN_TEAMS.search(text)
    if match:
        home, away = _clean_team(match.group(1)), _clean_team(match.group(2))
        if home and away and home.lower() != away.lower():
            return (home, away), mentions[0].sport if mentions else None
    return None, mentions[0].sport if mentions else None


def _display(text: str, alias: str) -> str:
    match = re.search(rf"\b{re.escape(alias)}\b", text, re.IGNORECASE)
    return match.group(0) if match else alias.title()


def _detect_line(text: str, lower: str, teams: tuple[str, str] | None) -> tuple[float | None, str | None]:
    over_under = _OVER_UNDER.search(text)
    if over_under:
        side = "over" if over_under.group(1).lower() in ("over", "o") else "under"
        return float(over_under.group(2)), side
    if "moneyline" in lower or re.search(r"\bml\b", lower) or "to win" in lower:
        return None, "moneyline"
    total = _TOTAL.search(text)
    if total:
        return float(total.group(1) or total.group(2)), "total"
    signed = _SIGNED_NUMBER.search(text)
    if signed and (teams or "spread" in lower):
        return abs(float(signed.group(1))), "spread"
    return None, None


def _detect_bet_type(lower: str) -> str | None:
    for phrase, canonical in BET_TYPE_KEYWORDS:
        if _has_word(lower, phrase):
            return canonical
    return None


def fallback_parse(text: str) -> ParsedBet:
    """Parse ``text`` with keyword and regex rules. Never raises."""

    if not text or not re.search(r"[A-Za-z0-9]", text):
        return ParsedBet(confidence=0.0, source="fallback")

    lower = text.lower()
    player, player_sport, player_team = _detect_player(text, lower)
    explicit = next((s for tok, s in LEAGUE_TOKENS.items() if _has_word(lower, tok)), None)
    teams, teams_sport = _detect_teams(text, player_team, explicit or player_sport)
    sport = _detect_sport(lower, teams_sport, player_sport)
    line, bet_on = _detect_line(text, lower, teams)
    specific = _detect_bet_type(lower) if player else None

    if sport is None and not (player or teams or line is not None):
        confidence = UNRECOGNIZED_CONFIDENCE
    elif sport is None:
        sport, confidence = "nba", DEFAULTED_SPORT_CONFIDENCE
    else:
        confidence = BASE_CONFIDENCE

    parsed = ParsedBet(
        sport=sport,
        kind="player" if player else "team",
        teams=teams,
        player=player,
        line=line,
        bet_on=bet_on,
        specific_bet_type=specific,
        confidence=confidence,
        source="fallback",
    )
    logger.debug("Fallback parse for %r: %s", text, parsed)
    return parsed
