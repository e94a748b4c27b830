"""
Manager rankings: career totals, season-by-season lines and how
competitive the league is overall.

Everything takes a teams_frame() plus the current season.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .constants import PLAYOFF_TEAMS
from .frames import finished_mask


def _int_or_none(value: Any) -> Optional[int]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return int(value)


def _career_frame(teams: pd.DataFrame, current_season: Optional[str]) -> pd.DataFrame:
    if teams.empty:
        return pd.DataFrame()

    df = teams.copy()
    settled = finished_mask(df, current_season)
    df["title"] = (df["rank"] == 1) & settled
    df["runner_up"] = (df["rank"] == 2) & settled
    df["third"] = (df["rank"] == 3) & settled
    df["playoffs"] = (df["rank"] <= PLAYOFF_TEAMS) & settled
    df["current_rank"] = df["rank"].where(df["season"] == current_season)

    career = df.groupby("manager", as_index=False).agg(
        seasons=("season", "count"),
        wins=("wins", "sum"),
        losses=("losses", "sum"),
        ties=("ties", "sum"),
        points_for=("points_for", "sum"),
        points_against=("points_against", "sum"),
        championships=("title", "sum"),
        runner_ups=("runner_up", "sum"),
        third=("third", "sum"),
        playoffs=("playoffs", "sum"),
        best_finish=("rank", "min"),
        current_rank=("current_rank", "max"),
        moves=("number_of_moves", "sum"),
        trades=("number_of_trades", "sum"),
    )

    games = career["wins"] + career["losses"] + career["ties"]
    career["win_pct"] = np.where(games > 0, (career["wins"] + 0.5 * career["ties"]) / games.clip(lower=1), 0.0)
    return career.sort_values(["wins", "manager"], ascending=[False, True], kind="mergesort").reset_index(drop=True)


def career_stats(teams: pd.DataFrame, current_season: Optional[str]) -> List[Dict[str, Any]]:
    """
    One row per manager, most career wins first.

    Titles, podiums and playoff appearances only count seasons whose final
    rank is settled. bestFinish is 0 when a manager has never been ranked.
    """
    career = _career_frame(teams, current_season)
    out = []
    for row in career.itertuples(index=False):
        seasons = int(row.seasons)
        moves, trades = int(row.moves), int(row.trades)
        out.append(
            {
                "manager": row.manager,
                "seasonsPlayed": seasons,
                "totalWins": int(row.wins),
                "totalLosses": int(row.losses),
                "totalTies": int(row.ties),
                "winPercentage": round(float(row.win_pct), 3),
                "totalPointsFor": round(float(row.points_for), 2),
                "totalPointsAgainst": round(float(row.points_against), 2),
                "avgPointsPerSeason": round(float(row.points_for) / seasons, 2) if seasons else 0.0,
                "championships": int(row.championships),
                "runnerUps": int(row.runner_ups),
                "thirdPlace": int(row.third),
                "playoffAppearances": int(row.playoffs),
                "bestFinish": _int_or_none(row.best_finish) or 0,
                "currentSeasonRank": _int_or_none(row.current_rank),
                "totalMoves": moves,
                "totalTrades": trades,
                "totalTransactions": moves + trades,
            }
        )
    return out


def season_stats(teams: pd.DataFrame) -> List[Dict[str, Any]]:
    ordered = teams.sort_values(["season", "manager"], ascending=[False, True], kind="mergesort")
    return [
        {
            "manager": row.manager,
            "season": row.season,
            "wins": int(row.wins),
            "losses": int(row.losses),
            "ties": int(row.ties),
            "winPercentage": round(float(row.win_pct), 3),
            "pointsFor": round(float(row.points_for), 2),
            "pointsAgainst": round(float(row.points_against), 2),
            "rank": _int_or_none(row.rank),
        }
        for row in ordered.itertuples(index=False)
    ]


def win_pct_over_time(teams: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """{manager: {season: win %}} for the rankings chart."""
    out: Dict[str, Dict[str, float]] = {}
    for row in teams.sort_values(["manager", "season"], kind="mergesort").itertuples(index=False):
        out.setdefault(row.manager, {})[row.season] = round(float(row.win_pct), 3)
    return out


def league_summary(teams: pd.DataFrame, current_season: Optional[str]) -> Dict[str, Any]:
    """
    Spread of career win % across managers; a lower competitivenessScore
    (population std dev) means a tighter league.
    """
    career = _career_frame(teams, current_season)
    if career.empty:
        return {
            "totalManagers": 0,
            "totalSeasons": 0,
            "avgWinPercentage": 0.0,
            "competitivenessScore": 0.0,
            "mostAverageManager": "No data available",
        }

    avg = float(career["win_pct"].mean())
    spread = float(career["win_pct"].std(ddof=0))
    closest = (
        career.assign(diff=(career["win_pct"] - avg).abs())
        .sort_values(["diff", "manager"], kind="mergesort")
        .iloc[0]
    )
    return {
        "totalManagers": int(len(career)),
        "totalSeasons": int(teams["season"].nunique()),
        "avgWinPercentage": round(avg, 3),
        "competitivenessScore": round(spread, 3),
        "mostAverageManager": closest["manager"],
    }
