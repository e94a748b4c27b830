"""
Hall of Fame: the league's best.

Same aggregator shape as analysis.wall_of_shame:

    fn(teams, games, current_season) -> [entry]
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pandas as pd

from .constants import CLOSE_GAME_MARGIN, CLOSE_GAME_MIN_GAMES
from .frames import Entry, champion_rows, plural, ranked, streaks


def dynasty_king(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    champs = champion_rows(teams, current_season)
    if champs.empty:
        return []

    per_manager = champs.groupby("manager", as_index=False).agg(
        titles=("season", "count"),
        last=("season", "max"),
    )

    def build(row):
        n = int(row.titles)
        return n, f"{plural(n, 'championship')}\nlatest {row.last}"

    return ranked(per_manager, ["titles"], [False], build)


def point_titan(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    if teams.empty:
        return []

    per_manager = teams.groupby("manager", as_index=False).agg(
        points=("points_for", "sum"),
        seasons=("season", "nunique"),
    )

    def build(row):
        pts = int(round(float(row.points)))
        return pts, f"{pts:,} total points\nover {plural(int(row.seasons), 'season')}"

    return ranked(per_manager, ["points"], [False], build)


def the_consistent(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Career win percentage (ties count half)."""
    played = teams[teams["games"] > 0]
    if played.empty:
        return []

    per_manager = played.groupby("manager", as_index=False).agg(
        wins=("wins", "sum"),
        losses=("losses", "sum"),
        ties=("ties", "sum"),
        seasons=("season", "nunique"),
    )
    total = per_manager["wins"] + per_manager["losses"] + per_manager["ties"]
    per_manager["win_pct"] = (per_manager["wins"] + 0.5 * per_manager["ties"]) / total

    def build(row):
        pct = round(float(row.win_pct), 3)
        return pct, f"{pct * 100:.1f}% win rate\nover {plural(int(row.seasons), 'season')}"

    return ranked(per_manager, ["win_pct", "wins"], [False, False], build)


def playoff_warrior(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    wins = games[games["is_playoffs"] & ~games["is_consolation"] & games["won"]]
    if wins.empty:
        return []

    per_manager = wins.groupby("manager", as_index=False).size().rename(columns={"size": "wins"})

    def build(row):
        n = int(row.wins)
        return n, plural(n, "playoff win")

    return ranked(per_manager, ["wins"], [False], build)


def season_dominator(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Best single-season win percentage, then wins, then points for."""
    played = teams[teams["games"] > 0]

    def build(row):
        pct = round(float(row.win_pct), 3)
        record = f"{int(row.wins)}-{int(row.losses)}-{int(row.ties)}"
        return pct, f"{record} ({pct * 100:.0f}%)\n{int(round(float(row.points_for))):,} points\n{row.season}"

    return ranked(
        played,
        ["win_pct", "wins", "points_for"],
        [False, False, False],
        build,
        one_per_manager=True,
    )


def weekly_explosion(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    scored = games[games["points"].notna()]

    def build(row):
        pts = round(float(row.points), 1)
        return pts, f"{pts:.1f} points in Week {int(row.week)}\n{row.season}"

    return ranked(scored, ["points"], [False], build, one_per_manager=True)


def unstoppable(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    runs = streaks(games, "won")

    def build(row):
        n = int(row.streak)
        return n, f"{n} game win streak\n{row.season} (Weeks {row.start_week}-{row.end_week})"

    return ranked(runs, ["streak"], [False], build, one_per_manager=True)


def close_game_specialist(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    close = games[
        (games["won"] | games["lost"])
        & games["margin"].notna()
        & (games["margin"] < CLOSE_GAME_MARGIN)
    ]
    if close.empty:
        return []

    per_manager = close.groupby("manager", as_index=False).agg(
        wins=("won", "sum"),
        games=("won", "size"),
    )
    per_manager = per_manager[per_manager["games"] >= CLOSE_GAME_MIN_GAMES].copy()
    per_manager["win_pct"] = per_manager["wins"] / per_manager["games"]

    def build(row):
        pct = round(float(row.win_pct), 3)
        return pct, f"{int(row.wins)}-{int(row.games) - int(row.wins)} in close games\n({pct * 100:.0f}%)"

    return ranked(per_manager, ["win_pct", "games"], [False, False], build)


CATEGORY_FUNCTIONS: Dict[str, Callable[..., List[Entry]]] = {
    "dynasty-king": dynasty_king,
    "point-titan": point_titan,
    "the-consistent": the_consistent,
    "playoff-warrior": playoff_warrior,
    "season-dominator": season_dominator,
    "weekly-explosion": weekly_explosion,
    "unstoppable": unstoppable,
    "close-game-specialist": close_game_specialist,
}
