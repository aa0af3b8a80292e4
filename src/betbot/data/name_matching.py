"""Player and team name normalization plus layered fuzzy matching."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass

from thefuzz import fuzz

SIMILARITY_THRESHOLD = 0.75

_SUFFIX_RE = re.compile(r"\s+(?:jr|sr|ii|iii|iv|v)\.?$")
_PUNCT_RE = re.compile(r"[^a-z0-9\s]")

NICKNAME_MAP = {
    "lebron": "lebron james",
    "lbj": "lebron james",
    "king james": "lebron james",
    "steph": "stephen curry",
    "steph curry": "stephen curry",
    "curry": "stephen curry",
    "kd": "kevin durant",
    "giannis": "giannis antetokounmpo",
    "greek freak": "giannis antetokounmpo",
    "luka": "luka doncic",
    "jokic": "nikola jokic",
    "joker": "nikola jokic",
    "embiid": "joel embiid",
    "sga": "shai gilgeous alexander",
    "wemby": "victor wembanyama",
    "ant": "anthony edwards",
    "haliburton": "tyrese haliburton",
    "mahomes": "patrick mahomes",
    "josh allen": "josh allen",
    "burrow": "joe burrow",
    "cmc": "christian mccaffrey",
    "judge": "aaron judge",
    "ohtani": "shohei ohtani",
    "shotime": "shohei ohtani",
    "mcdavid": "connor mcdavid",
    "ovi": "alex ovechkin",
    "ovechkin": "alex ovechkin",
}

# nickname -> full name, grouped by league
TEAMS: dict[str, dict[str, str]] = {
    "nba": {
        "hawks": "Atlanta Hawks", "celtics": "Boston Celtics", "nets": "Brooklyn Nets",
        "hornets": "Charlotte Hornets", "bulls": "Chicago Bulls", "cavaliers": "Cleveland Cavaliers",
        "cavs": "Cleveland Cavaliers", "mavericks": "Dallas Mavericks", "mavs": "Dallas Mavericks",
        "nuggets": "Denver Nuggets", "pistons": "Detroit Pistons", "warriors": "Golden State Warriors",
        "rockets": "Houston Rockets", "pacers": "Indiana Pacers", "clippers": "Los Angeles Clippers",
        "lakers": "Los Angeles Lakers", "grizzlies": "Memphis Grizzlies", "heat": "Miami Heat",
        "bucks": "Milwaukee Bucks", "timberwolves": "Minnesota Timberwolves", "wolves": "Minnesota Timberwolves",
        "pelicans": "New Orleans Pelicans", "knicks": "New York Knicks", "thunder": "Oklahoma City Thunder",
        "magic": "Orlando Magic", "76ers": "Philadelphia 76ers", "sixers": "Philadelphia 76ers",
        "suns": "Phoenix Suns", "trail blazers": "Portland Trail Blazers", "blazers": "Portland Trail Blazers",
        "kings": "Sacramento Kings", "spurs": "San Antonio Spurs", "raptors": "Toronto Raptors",
        "jazz": "Utah Jazz", "wizards": "Washington Wizards",
    },
    "nfl": {
        "cardinals": "Arizona Cardinals", "falcons": "Atlanta Falcons", "ravens": "Baltimore Ravens",
        "bills": "Buffalo Bills", "panthers": "Carolina Panthers", "bears": "Chicago Bears",
        "bengals": "Cincinnati Bengals", "browns": "Cleveland Browns", "cowboys": "Dallas Cowboys",
        "broncos": "Denver Broncos", "lions": "Detroit Lions", "packers": "Green Bay Packers",
        "texans": "Houston Texans", "colts": "Indianapolis Colts", "jaguars": "Jacksonville Jaguars",
        "chiefs": "Kansas City Chiefs", "raiders": "Las Vegas Raiders", "chargers": "Los Angeles Chargers",
        "rams": "Los Angeles Rams", "dolphins": "Miami Dolphins", "vikings": "Minnesota Vikings",
        "patriots": "New England Patriots", "saints": "New Orleans Saints", "giants": "New York Giants",
        "jets": "New York Jets", "eagles": "Philadelphia Eagles", "steelers": "Pittsburgh Steelers",
        "49ers": "San Francisco 49ers", "niners": "San Francisco 49ers", "seahawks": "Seattle Seahawks",
        "buccaneers": "Tampa Bay Buccaneers", "bucs": "Tampa Bay Buccaneers", "titans": "Tennessee Titans",
        "commanders": "Washington Commanders",
    },
    "mlb": {
        "diamondbacks": "Arizona Diamondbacks", "braves": "Atlanta Braves", "orioles": "Baltimore Orioles",
        "red sox": "Boston Red Sox", "cubs": "Chicago Cubs", "white sox": "Chicago White Sox",
        "reds": "Cincinnati Reds", "guardians": "Cleveland Guardians", "rockies": "Colorado Rockies",
        "tigers": "Detroit Tigers", "astros": "Houston Astros", "royals": "Kansas City Royals",
        "angels": "Los Angeles Angels", "dodgers": "Los Angeles Dodgers", "marlins": "Miami Marlins",
        "brewers": "Milwaukee Brewers", "twins": "Minnesota Twins", "mets": "New York Mets",
        "yankees": "New York Yankees", "athletics": "Oakland Athletics", "phillies": "Philadelphia Phillies",
        "pirates": "Pittsburgh Pirates", "padres": "San Diego Padres", "mariners": "Seattle Mariners",
        "rays": "Tampa Bay Rays", "rangers": "Texas Rangers", "blue jays": "Toronto Blue Jays",
        "nationals": "Washington Nationals",
    },
    "nhl": {
        "ducks": "Anaheim Ducks", "bruins": "Boston Bruins", "sabres": "Buffalo Sabres",
        "flames": "Calgary Flames", "hurricanes": "Carolina Hurricanes", "blackhawks": "Chicago Blackhawks",
        "avalanche": "Colorado Avalanche", "blue jackets": "Columbus Blue Jackets", "stars": "Dallas Stars",
        "red wings": "Detroit Red Wings", "oilers": "Edmonton Oilers", "kraken": "Seattle Kraken",
        "wild": "Minnesota Wild", "canadiens": "Montreal Canadiens", "habs": "Montreal Canadiens",
        "predators": "Nashville Predators", "devils": "New Jersey Devils", "islanders": "New York Islanders",
        "senators": "Ottawa Senators", "flyers": "Philadelphia Flyers", "penguins": "Pittsburgh Penguins",
        "sharks": "San Jose Sharks", "blues": "St. Louis Blues", "lightning": "Tampa Bay Lightning",
        "maple leafs": "Toronto Maple Leafs", "leafs": "Toronto Maple Leafs", "canucks": "Vancouver Canucks",
        "golden knights": "Vegas Golden Knights", "capitals": "Washington Capitals", "jets": "Winnipeg Jets",
    },
}


@dataclass(frozen=True)
class TeamMention:
    position: int
    alias: str
    sport: str
    full_name: str


def remove_accents(text: str) -> str:
    normalized = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in normalized if not unicodedata.combining(ch))


def normalize_name(raw: str, expand_nicknames: bool = True) -> str:
    """Lowercase, strip accents, punctuation and suffixes, expand nicknames."""

    name = remove_accents(raw).lower().replace("-", " ")
    name = _PUNCT_RE.sub("", name)
    name = " ".join(name.split())
    name = _SUFFIX_RE.sub("", name)
    if expand_nicknames:
        name = NICKNAME_MAP.get(name, name)
    return name


def find_team_mentions(text: str, sport: str | None = None) -> list[TeamMention]:
    """Return known team nicknames appearing in ``text`` in reading order."""

    lower = normalize_name(text, expand_nicknames=False)
    mentions: dict[int, TeamMention] = {}
    leagues = [sport] if sport in TEAMS else list(TEAMS)
    for league in leagues:
        for alias, full_name in TEAMS[league].items():
            for match in re.finditer(rf"\b{re.escape(alias)}\b", lower):
                current = mentions.get(match.start())
                # prefer the longer alias ("red sox" over "sox")
                if current is None or len(alias) > len(current.alias):
                    mentions[match.start()] = TeamMention(match.start(), alias, league, full_name)
    return [mentions[pos] for pos in sorted(mentions)]


def _word_overlap(a: str, b: str) -> float:
    words_a, words_b = set(a.split()), set(b.split())
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / len(words_a | words_b)


def name_similarity(query: str, candidate: str) -> float:
    """Score 0..1 using substring, then word overlap, then edit distance."""

    a, b = normalize_name(query), normalize_name(candidate)
    if not a or not b:
        return 0.0
    if a == b:
        return 1.0
    shorter, longer = sorted((a, b), key=len)
    if re.search(rf"\b{re.escape(shorter)}\b", longer):
        # a bare last name inside a full name is a strong but not exact hit
        return 0.85 + 0.15 * len(shorter) / len(longer)
    overlap = _word_overlap(a, b)
    if overlap == 1.0:
        return 0.95
    edit = fuzz.token_sort_ratio(a, b) / 100.0
    return max(overlap, edit)


def best_match(
    query: str,
    candidates: Iterable[str],
    threshold: float = SIMILARITY_THRESHOLD,
) -> tuple[str, float] | None:
    best: tuple[str, float] | None = None
    for candidate in candidates:
        score = name_similarity(query, candidate)
        if score >= threshold and (best is None or score > best[1]):
            best = (candidate, score)
    return best
