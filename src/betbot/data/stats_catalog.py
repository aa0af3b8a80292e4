"""Curated season statistics for well-known players and teams."""

from __future__ import annotations

from betbot.data.name_matching import TEAMS, best_match, normalize_name
from betbot.data.schemas import PlayerStats, TeamStats

CATALOG_SEASON = "2023-24"

PLAYERS: dict[str, PlayerStats] = {
    stats.name.lower(): stats
    for stats in (
        PlayerStats(name="LeBron James", sport="nba", team="Los Angeles Lakers", season_average_points=25.7,
                    recent_form_points=26.9, rebounds=7.3, assists=8.3, usage_rate=0.29, minutes_played=35.3),
        PlayerStats(name="Stephen Curry", sport="nba", team="Golden State Warriors", season_average_points=26.4,
                    recent_form_points=25.1, rebounds=4.5, assists=5.1, usage_rate=0.31, minutes_played=32.7),
        PlayerStats(name="Nikola Jokic", sport="nba", team="Denver Nuggets", season_average_points=26.4,
                    recent_form_points=27.8, rebounds=12.4, assists=9.0, usage_rate=0.30, minutes_played=34.6),
        PlayerStats(name="Giannis Antetokounmpo", sport="nba", team="Milwaukee Bucks", season_average_points=30.4,
                    recent_form_points=29.2, rebounds=11.5, assists=6.5, usage_rate=0.33, minutes_played=35.2),
        PlayerStats(name="Luka Doncic", sport="nba", team="Dallas Mavericks", season_average_points=33.9,
                    recent_form_points=32.4, rebounds=9.2, assists=9.8, usage_rate=0.36, minutes_played=37.5),
        PlayerStats(name="Tyrese Haliburton", sport="nba", team="Indiana Pacers", season_average_points=20.1,
                    recent_form_points=18.7, rebounds=3.9, assists=10.9, usage_rate=0.24, minutes_played=32.2),
        PlayerStats(name="Patrick Mahomes", sport="nfl", team="Kansas City Chiefs", passing_yards=246.1,
                    touchdown_passes=1.6, rushing_yards=23.0),
        PlayerStats(name="Josh Allen", sport="nfl", team="Buffalo Bills", passing_yards=253.3,
                    touchdown_passes=1.7, rushing_yards=30.9),
        PlayerStats(name="Joe Burrow", sport="nfl", team="Cincinnati Bengals", passing_yards=230.9,
                    touchdown_passes=1.5, rushing_yards=8.8),
        PlayerStats(name="Aaron Judge", sport="mlb", team="New York Yankees", batting_average=0.322,
                    home_runs=58, rbis=144, strikeouts=171),
        PlayerStats(name="Shohei Ohtani", sport="mlb", team="Los Angeles Dodgers", batting_average=0.310,
                    home_runs=54, rbis=130, strikeouts=162),
        PlayerStats(name="Connor McDavid", sport="nhl", team="Edmonton Oilers", goals=32, assists=100, points=132),
        PlayerStats(name="Alex Ovechkin", sport="nhl", team="Washington Capitals", goals=31, assists=34, points=65),
    )
}

TEAM_RECORDS: dict[str, TeamStats] = {
    stats.name.lower(): stats
    for stats in (
        TeamStats(name="Boston Celtics", sport="nba", offense_rating=0.78, defense_rating=0.76,
                  wins=64, losses=18, home_record="37-4"),
        TeamStats(name="Denver Nuggets", sport="nba", offense_rating=0.70, defense_rating=0.66,
                  wins=57, losses=25, home_record="33-8"),
        TeamStats(name="Los Angeles Lakers", sport="nba", offense_rating=0.62, defense_rating=0.58,
                  wins=47, losses=35, home_record="28-14"),
        TeamStats(name="Golden State Warriors", sport="nba", offense_rating=0.64, defense_rating=0.55,
                  wins=46, losses=36, home_record="21-20"),
        TeamStats(name="Kansas City Chiefs", sport="nfl", offense_rating=0.63, defense_rating=0.77,
                  wins=11, losses=6, home_record="5-3"),
        TeamStats(name="Buffalo Bills", sport="nfl", offense_rating=0.71, defense_rating=0.68,
                  wins=11, losses=6, home_record="7-2"),
        TeamStats(name="New York Yankees", sport="mlb", offense_rating=0.72, defense_rating=0.61,
                  wins=94, losses=68, home_record="44-37"),
        TeamStats(name="Baltimore Orioles", sport="mlb", offense_rating=0.69, defense_rating=0.60,
                  wins=91, losses=71, home_record="44-37"),
        TeamStats(name="Los Angeles Dodgers", sport="mlb", offense_rating=0.74, defense_rating=0.64,
                  wins=98, losses=64, home_record="52-29"),
        TeamStats(name="Edmonton Oilers", sport="nhl", offense_rating=0.73, defense_rating=0.62,
                  wins=49, losses=27, home_record="27-11"),
        TeamStats(name="New York Rangers", sport="nhl", offense_rating=0.68, defense_rating=0.67,
                  wins=55, losses=23, home_record="27-12"),
    )
}


def lookup_player(name: str, sport: str | None = None) -> PlayerStats | None:
    candidates = [key for key, stats in PLAYERS.items() if sport is None or stats.sport == sport]
    match = best_match(name, candidates)
    return PLAYERS[match[0]] if match else None


def lookup_team(name: str, sport: str | None = None) -> TeamStats | None:
    alias = normalize_name(name, expand_nicknames=False)
    leagues = [sport] if sport in TEAMS else list(TEAMS)
    for league in leagues:
        full = TEAMS[league].get(alias)
        if full and full.lower() in TEAM_RECORDS:
            return TEAM_RECORDS[full.lower()]
    candidates = [key for key, stats in TEAM_RECORDS.items() if sport is None or stats.sport == sport]
    match = best_match(name, candidates)
    return TEAM_RECORDS[match[0]] if match else None
