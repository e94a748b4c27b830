"""
Wall of Shame: the league's worst moments.

Every aggregator here has the same shape:

    fn(teams, games, current_season) -> [entry]

where `teams` / `games` come from analysis.frames (teams_frame / games_frame)
and `current_season` is the latest season present in the *unfiltered* data.
Entries are {rank, manager, value, description, season}.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional

import pandas as pd

from .constants import CLOSE_LOSS_MARGIN
from .frames import Entry, champion_rows, completed, plural, ranked, streaks


# ---------- all-time disappointments ----------


def close_but_no_cigar(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Most 2nd/3rd place finishes for managers who never won it all."""
    done = completed(teams, current_season)
    champions = set(done.loc[done["rank"] == 1, "manager"])

    near = done[done["rank"].isin([2, 3]) & ~done["manager"].isin(champions)]
    if near.empty:
        return []

    per_manager = (
        near.assign(
            second=(near["rank"] == 2).astype(int),
            third=(near["rank"] == 3).astype(int),
        )
        .groupby("manager", as_index=False)[["second", "third"]]
        .sum()
    )
    per_manager["total"] = per_manager["second"] + per_manager["third"]

    def build(row):
        parts = []
        if row.second:
            parts.append(plural(int(row.second), "second-place"))
        if row.third:
            parts.append(plural(int(row.third), "third-place"))
        return int(row.total), "\n".join(parts)

    return ranked(per_manager, ["total"], [False], build)


def eternal_last(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Worst (highest) average final rank over completed seasons."""
    done = completed(teams, current_season)
    done = done[done["rank"].notna()]
    if done.empty:
        return []

    per_manager = done.groupby("manager", as_index=False).agg(
        average_rank=("rank", "mean"),
        seasons=("season", "nunique"),
    )

    def build(row):
        avg = round(float(row.average_rank), 1)
        return avg, f"Average rank: {avg}\nover {plural(int(row.seasons), 'season')}"

    return ranked(per_manager, ["average_rank"], [False], build)


def playoff_choker(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Playoff losses, counted only for managers without a championship."""
    champions = set(champion_rows(teams, current_season)["manager"])
    losses = games[games["is_playoffs"] & games["lost"] & ~games["manager"].isin(champions)]
    if losses.empty:
        return []

    per_manager = losses.groupby("manager", as_index=False).size().rename(columns={"size": "losses"})

    def build(row):
        n = int(row.losses)
        return n, f"{plural(n, 'playoff loss', 'es')}\nnever won"

    return ranked(per_manager, ["losses"], [False], build)


def the_heartbreak(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Losses by less than CLOSE_LOSS_MARGIN points."""
    close = games[games["lost"] & games["margin"].notna() & (games["margin"] < CLOSE_LOSS_MARGIN)]
    if close.empty:
        return []

    per_manager = close.groupby("manager", as_index=False).size().rename(columns={"size": "losses"})

    def build(row):
        n = int(row.losses)
        return n, f"{plural(n, 'loss', 'es')} by <{CLOSE_LOSS_MARGIN:g} points"

    return ranked(per_manager, ["losses"], [False], build)


# ---------- single-season disasters ----------


def _record(row) -> str:
    return f"{int(row.wins)}-{int(row.losses)}-{int(row.ties)}"


def rock_bottom(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Fewest wins (then most losses) in a completed season."""
    done = completed(teams, current_season)

    def build(row):
        record = _record(row)
        return record, f"{record} record\n{row.season}"

    return ranked(done, ["wins", "losses"], [True, False], build, one_per_manager=True)


def worst_record(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Lowest win percentage in any season with at least one game played."""
    played = teams[teams["games"] > 0]

    def build(row):
        pct = round(float(row.win_pct), 3)
        return pct, f"{_record(row)} ({pct:.3f})\n{row.season}"

    return ranked(played, ["win_pct", "losses"], [True, False], build, one_per_manager=True)


def the_collapse(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Longest losing streak within one season."""
    runs = streaks(games, "lost")

    def build(row):
        n = int(row.streak)
        return n, f"{n} game losing streak\n{row.season} (Weeks {row.start_week}-{row.end_week})"

    return ranked(runs, ["streak"], [False], build, one_per_manager=True)


def brick_hands(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Most points against in one season."""

    def build(row):
        pa = int(round(float(row.points_against)))
        return pa, f"{pa:,} points against\n{row.season}"

    return ranked(teams, ["points_against"], [False], build, one_per_manager=True)


def glass_cannon(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Big point totals that still finished in the bottom half."""
    bottom_half = teams[
        teams["rank"].notna()
        & teams["num_teams"].notna()
        & (teams["rank"] > teams["num_teams"] / 2)
        & (teams["points_for"] > 0)
    ]

    def build(row):
        pf = int(round(float(row.points_for)))
        return pf, f"{pf:,} points\nfinished #{int(row.rank)}\n{row.season}"

    return ranked(bottom_half, ["points_for"], [False], build, one_per_manager=True)


def the_snooze(teams: pd.DataFrame, games: pd.DataFrame, current_season: Optional[str]) -> List[Entry]:
    """Lowest single-week score in a completed season."""
    scored = completed(games, current_season)
    scored = scored[scored["points"].notna()]

    def build(row):
        pts = round(float(row.points), 1)
        return pts, f"{pts:.1f} points in Week {int(row.week)}\n{row.season}"

    return ranked(scored, ["points"], [True], build, one_per_manager=True)


CATEGORY_FUNCTIONS: Dict[str, Callable[..., List[Entry]]] = {
    "close-but-no-cigar": close_but_no_cigar,
    "eternal-last": eternal_last,
    "playoff-choker": playoff_choker,
    "rock-bottom": rock_bottom,
    "worst-record": worst_record,
    "the-collapse": the_collapse,
    "brick-hands": brick_hands,
    "the-heartbreak": the_heartbreak,
    "glass-cannon": glass_cannon,
    "the-snooze": the_snooze,
}
