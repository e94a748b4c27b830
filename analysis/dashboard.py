"""
Everything the league dashboard shows, computed in one pass from the
shared team and matchup rows.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from .constants import PLAYOFF_TEAMS, RECENT_WEEKS
from .frames import finished_mask, games_frame, latest_season, matchups_frame, streaks, teams_frame
from .head_to_head import head_to_head_matrix, head_to_head_records, matchup_extremes, rivalry_insights
from .manager_stats import career_stats, league_summary, season_stats, win_pct_over_time

Rows = Iterable[Dict[str, Any]]


# ---------- streaks ----------


def _longest(runs: pd.DataFrame) -> Dict[str, Any]:
    if runs.empty:
        return {"manager": "", "streak": 0, "start": "", "end": ""}
    best = runs.sort_values(["streak", "manager"], ascending=[False, True], kind="mergesort").iloc[0]
    return {
        "manager": best["manager"],
        "streak": int(best["streak"]),
        "start": f"{best['start_season']} Week {best['start_week']}",
        "end": f"{best['end_season']} Week {best['end_week']}",
    }


def career_streaks(games: pd.DataFrame) -> Dict[str, Dict[str, Any]]:
    """Longest win and losing streaks in league history; runs span seasons."""
    return {
        "longestWinStreak": _longest(streaks(games, "won", by=("manager",))),
        "longestLoseStreak": _longest(streaks(games, "lost", by=("manager",))),
    }


# ---------- current form ----------


def recent_form(games: pd.DataFrame, season: Optional[str], weeks: int = RECENT_WEEKS) -> Dict[str, Any]:
    """
    Records over the last `weeks` played weeks of `season`: the hottest and
    coldest managers (by wins, then points) and the top scorer.
    """
    played = games[(games["season"] == season) & (games["won"] | games["lost"] | games["is_tied"])]
    recent_weeks = sorted(int(w) for w in played["week"].unique())[-weeks:]
    recent = played[played["week"].isin(recent_weeks)]

    form = recent.groupby("manager", as_index=False).agg(
        wins=("won", "sum"),
        losses=("lost", "sum"),
        points_for=("points", "sum"),
    )

    def pick(sort_by: List[str], ascending: List[bool]) -> Optional[Dict[str, Any]]:
        if form.empty:
            return None
        row = form.sort_values(sort_by + ["manager"], ascending=ascending + [True], kind="mergesort").iloc[0]
        return {
            "manager": row["manager"],
            "wins": int(row["wins"]),
            "losses": int(row["losses"]),
            "pointsFor": round(float(row["points_for"]), 2),
        }

    return {
        "season": season,
        "weeks": recent_weeks,
        "hottestManager": pick(["wins", "points_for"], [False, False]),
        "coldestManager": pick(["wins", "points_for"], [True, True]),
        "scoringLeader": pick(["points_for"], [False]),
    }


# ---------- season deep dive ----------


def _record(row: pd.Series) -> str:
    ties = int(row["ties"])
    return f"{int(row['wins'])}-{int(row['losses'])}" + (f"-{ties}" if ties else "")


def _rank(value: Any) -> Optional[int]:
    return None if pd.isna(value) else int(value)


def season_summaries(teams: pd.DataFrame, current_season: Optional[str]) -> List[Dict[str, Any]]:
    """
    Newest season first. Champion, runner-up and playoff teams are only
    filled in once a season's final ranks are settled.
    """
    out = []
    for season in sorted(teams["season"].unique(), reverse=True):
        st = teams[teams["season"] == season].sort_values(
            ["rank", "manager"], na_position="last", kind="mergesort"
        )
        finished = bool(finished_mask(st, current_season).all())
        champion = st[st["rank"] == 1].head(1) if finished else st.head(0)
        runner_up = st[st["rank"] == 2].head(1) if finished else st.head(0)
        playoff_teams = st[st["rank"] <= PLAYOFF_TEAMS] if finished else st.head(0)

        out.append(
            {
                "season": season,
                "name": f"Season {season}",
                "isFinished": finished,
                "champion": None
                if champion.empty
                else {
                    "name": champion.iloc[0]["name"] or "Unknown",
                    "manager": champion.iloc[0]["manager"],
                    "record": _record(champion.iloc[0]),
                    "pointsFor": round(float(champion.iloc[0]["points_for"]), 2),
                },
                "runnerUp": None
                if runner_up.empty
                else {"name": runner_up.iloc[0]["name"] or "Unknown", "manager": runner_up.iloc[0]["manager"]},
                "playoffTeams": [
                    {
                        "name": t["name"] or "Unknown",
                        "manager": t["manager"],
                        "rank": int(t["rank"]),
                        "hasBye": int(t["rank"]) <= 2,
                    }
                    for _, t in playoff_teams.iterrows()
                ],
                "standings": [
                    {
                        "rank": _rank(t["rank"]),
                        "name": t["name"] or "Unknown",
                        "manager": t["manager"],
                        "wins": int(t["wins"]),
                        "losses": int(t["losses"]),
                        "ties": int(t["ties"]),
                        "winPercentage": round(float(t["win_pct"]), 3),
                        "pointsFor": round(float(t["points_for"]), 2),
                        "pointsAgainst": round(float(t["points_against"]), 2),
                    }
                    for _, t in st.iterrows()
                ],
                # spread of win % inside the season; lower is tighter
                "competitiveness": round(float(st["win_pct"].std(ddof=0)), 3),
                "avgWinPercentage": round(float(st["win_pct"].mean()), 3),
                "numTeams": int(len(st)),
            }
        )
    return out


def weekly_scores(matchups: pd.DataFrame) -> Dict[str, List[Dict[str, Any]]]:
    """{season: [{week, scores}]} with weeks ascending, every team's score that week."""
    out: Dict[str, List[Dict[str, Any]]] = {}
    for (season, week), g in matchups.groupby(["season", "week"], sort=True):
        scores = pd.concat([g["points1"], g["points2"]])
        out.setdefault(season, []).append(
            {"week": int(week), "scores": [round(float(s), 2) for s in scores]}
        )
    return out


# ---------- assembly ----------


def build_dashboard(teams: Rows, matchups: Rows) -> Dict[str, Any]:
    team_rows = list(teams)
    matchup_rows = list(matchups)

    team_df = teams_frame(team_rows)
    game_df = games_frame(matchup_rows)
    match_df = matchups_frame(matchup_rows)
    current = latest_season(team_df, game_df)
    records = head_to_head_records(match_df)

    return {
        "managerRankings": {
            "careerStats": career_stats(team_df, current),
            "seasonStats": season_stats(team_df),
            "winPercentageOverTime": win_pct_over_time(team_df),
            "leagueStats": league_summary(team_df, current),
            "streaks": career_streaks(game_df),
        },
        "headToHead": {
            "records": records,
            "matrix": head_to_head_matrix(records),
            "insights": rivalry_insights(records),
            "extremes": matchup_extremes(match_df),
        },
        "seasons": {
            "allSeasons": season_summaries(team_df, current),
            "weeklyScoresBySeason": weekly_scores(match_df),
        },
        "currentSeason": recent_form(game_df, current),
    }
