from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .constants import MAX_ENTRIES
from .managers import manager_display_name

TEAM_COLUMNS = [
    "team_key",
    "name",
    "manager",
    "season",
    "wins",
    "losses",
    "ties",
    "percentage",
    "points_for",
    "points_against",
    "rank",
    "number_of_moves",
    "number_of_trades",
    "num_teams",
    "is_finished",
]

MATCHUP_COLUMNS = [
    "season",
    "week",
    "winner_team_key",
    "is_playoffs",
    "is_consolation",
    "is_tied",
    "team1_key",
    "team2_key",
    "team1_manager",
    "team2_manager",
    "team1_points",
    "team2_points",
]

GAME_COLUMNS = [
    "season",
    "week",
    "team_key",
    "manager",
    "points",
    "opp_points",
    "is_playoffs",
    "is_consolation",
    "is_tied",
    "won",
    "lost",
    "margin",
]

Entry = Dict[str, Any]
EntryBuilder = Callable[[Any], Tuple[Any, str]]


def _seasons_as_str(df: pd.DataFrame) -> pd.DataFrame:
    df = df[df["season"].notna()].copy()
    df["season"] = df["season"].astype(str)
    return df


def teams_frame(rows: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """
    One row per team-season, managers already mapped to display names.
    `rank` / `num_teams` stay float so a missing value is NaN.
    """
    df = _seasons_as_str(pd.DataFrame(list(rows), columns=TEAM_COLUMNS))

    df["manager"] = df["manager"].map(manager_display_name)
    for col in ("wins", "losses", "ties", "number_of_moves", "number_of_trades"):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0).astype(int)
    for col in ("points_for", "points_against"):
        df[col] = pd.to_numeric(df[col], errors="coerce").fillna(0.0).astype(float)
    for col in ("rank", "num_teams"):
        df[col] = pd.to_numeric(df[col], errors="coerce")
    df["is_finished"] = df["is_finished"].astype(bool)

    games = df["wins"] + df["losses"] + df["ties"]
    df["games"] = games
    df["win_pct"] = np.where(games > 0, (df["wins"] + 0.5 * df["ties"]) / games.clip(lower=1), 0.0)
    return df.reset_index(drop=True)


def games_frame(rows: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """
    Matchups unrolled to one row per team per game ("long" format), sorted
    by season then week.

    won / lost are only True for decided games; ties and unplayed weeks
    have both False.
    """
    df = _seasons_as_str(pd.DataFrame(list(rows), columns=MATCHUP_COLUMNS))
    df["week"] = pd.to_numeric(df["week"], errors="coerce").fillna(0).astype(int)

    sides = []
    for me, opp in (("team1", "team2"), ("team2", "team1")):
        sides.append(
            pd.DataFrame(
                {
                    "season": df["season"],
                    "week": df["week"],
                    "team_key": df[f"{me}_key"],
                    "manager": df[f"{me}_manager"].map(manager_display_name),
                    "points": pd.to_numeric(df[f"{me}_points"], errors="coerce"),
                    "opp_points": pd.to_numeric(df[f"{opp}_points"], errors="coerce"),
                    "winner_team_key": df["winner_team_key"],
                    "is_playoffs": df["is_playoffs"].astype(bool),
                    "is_consolation": df["is_consolation"].astype(bool),
                    "is_tied": df["is_tied"].astype(bool),
                }
            )
        )
    games = pd.concat(sides, ignore_index=True)

    decided = games["winner_team_key"].notna()
    games["won"] = decided & (games["winner_team_key"] == games["team_key"])
    games["lost"] = decided & (games["winner_team_key"] != games["team_key"])
    games["margin"] = (games["points"] - games["opp_points"]).abs()

    games = games.sort_values(["season", "week"], kind="mergesort").reset_index(drop=True)
    return games[GAME_COLUMNS]


def matchups_frame(rows: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """
    One row per played matchup (both scores present), sorted by season then
    week. manager1 / manager2 are display names; margin is absolute.
    """
    df = _seasons_as_str(pd.DataFrame(list(rows), columns=MATCHUP_COLUMNS))
    out = pd.DataFrame(
        {
            "season": df["season"],
            "week": pd.to_numeric(df["week"], errors="coerce").fillna(0).astype(int),
            "manager1": df["team1_manager"].map(manager_display_name),
            "manager2": df["team2_manager"].map(manager_display_name),
            "points1": pd.to_numeric(df["team1_points"], errors="coerce"),
            "points2": pd.to_numeric(df["team2_points"], errors="coerce"),
            "is_playoffs": df["is_playoffs"].astype(bool),
        }
    )
    out = out[out["points1"].notna() & out["points2"].notna()].copy()
    out["margin"] = (out["points1"] - out["points2"]).abs()
    return out.sort_values(["season", "week"], kind="mergesort").reset_index(drop=True)


def latest_season(teams: pd.DataFrame, games: pd.DataFrame) -> Optional[str]:
    """The season still treated as "current" (in progress)."""
    seasons = set(teams["season"]) | set(games["season"])
    return max(seasons) if seasons else None


def completed(df: pd.DataFrame, current_season: Optional[str]) -> pd.DataFrame:
    if current_season is None:
        return df
    return df[df["season"] != current_season]


def finished_mask(teams: pd.DataFrame, current_season: Optional[str]) -> pd.Series:
    """Rows whose final rank is settled: any past season, or a finished current one."""
    return (teams["season"] != current_season) | teams["is_finished"]


def champion_rows(teams: pd.DataFrame, current_season: Optional[str]) -> pd.DataFrame:
    """First-place finishes; the current season only counts once it is finished."""
    return teams[(teams["rank"] == 1) & finished_mask(teams, current_season)]


def streaks(games: pd.DataFrame, flag: str, by: Sequence[str] = ("manager", "season")) -> pd.DataFrame:
    """
    Longest run of consecutive `flag` games (won / lost) per `by` group,
    walking games in (season, week) order. Any other played result (tie or
    the opposite outcome) ends a run.

    With by=("manager",) runs carry over from one season into the next.
    """
    by = list(by)
    columns = by + ["streak", "start_season", "start_week", "end_season", "end_week"]
    played = games[games["won"] | games["lost"] | games["is_tied"]]
    played = played.sort_values(["season", "week"], kind="mergesort")

    rows = []
    for keys, group in played.groupby(by, sort=True):
        keys = keys if isinstance(keys, tuple) else (keys,)
        best, best_start, best_end = 0, None, None
        run, start = 0, None
        for when, hit in zip(zip(group["season"], group["week"]), group[flag]):
            if hit:
                run += 1
                if run == 1:
                    start = when
                if run > best:
                    best, best_start, best_end = run, start, when
            else:
                run = 0
        if best:
            row = dict(zip(by, keys))
            row.update(
                {
                    "streak": best,
                    "start_season": str(best_start[0]),
                    "start_week": int(best_start[1]),
                    "end_season": str(best_end[0]),
                    "end_week": int(best_end[1]),
                }
            )
            rows.append(row)
    return pd.DataFrame(rows, columns=columns)


def ranked(
    df: pd.DataFrame,
    sort_by: Sequence[str],
    ascending: Sequence[bool],
    build: EntryBuilder,
    one_per_manager: bool = False,
    limit: int = MAX_ENTRIES,
) -> List[Entry]:
    """
    Order `df` by `sort_by`, break ties on manager name then season (both
    ascending) and turn the top `limit` rows into entries via `build(row)`,
    which returns (value, description).
    """
    if df.empty:
        return []

    has_season = "season" in df.columns
    keys = list(sort_by) + ["manager"] + (["season"] if has_season else [])
    order = list(ascending) + [True] * (len(keys) - len(sort_by))
    ordered = df.sort_values(keys, ascending=order, kind="mergesort")
    if one_per_manager:
        ordered = ordered.drop_duplicates(subset="manager", keep="first")

    entries: List[Entry] = []
    for i, row in enumerate(ordered.head(limit).itertuples(index=False), start=1):
        value, description = build(row)
        entries.append(
            {
                "rank": i,
                "manager": str(row.manager),
                "value": value,
                "description": description,
                "season": str(row.season) if has_season else None,
            }
        )
    return entries


def plural(n: int, word: str, suffix: str = "s") -> str:
    return f"{n} {word}{'' if n == 1 else suffix}"
