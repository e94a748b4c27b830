"""
Head-to-head records between managers, built from matchups_frame().

A pair is always reported alphabetically (manager1 < manager2). A game's
winner is whoever scored more; equal scores are a tie.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from .constants import RIVALRY_MIN_GAMES

TIE = "Tie"


def _oriented(matchups: pd.DataFrame) -> pd.DataFrame:
    m = matchups[matchups["manager1"] != matchups["manager2"]]
    swap = (m["manager1"] > m["manager2"]).to_numpy()

    out = pd.DataFrame(
        {
            "season": m["season"],
            "week": m["week"],
            "manager1": np.where(swap, m["manager2"], m["manager1"]),
            "manager2": np.where(swap, m["manager1"], m["manager2"]),
            "points1": np.where(swap, m["points2"], m["points1"]),
            "points2": np.where(swap, m["points1"], m["points2"]),
            "margin": m["margin"],
        },
        index=m.index,
    )
    out["winner"] = np.select(
        [out["points1"] > out["points2"], out["points2"] > out["points1"]],
        [out["manager1"], out["manager2"]],
        default=TIE,
    )
    return out


def _game_ref(row: pd.Series) -> Dict[str, Any]:
    return {
        "margin": round(float(row["margin"]), 2),
        "week": int(row["week"]),
        "season": row["season"],
        "winner": row["winner"],
    }


def _avg(values: pd.Series) -> float:
    return round(float(values.mean()), 2) if len(values) else 0.0


def head_to_head_records(matchups: pd.DataFrame) -> List[Dict[str, Any]]:
    """
    Every pair that has met, most meetings first (then by names).

    manager1AvgMargin / manager2AvgMargin average the margin of that
    manager's wins only. closestGame / biggestBlowout pick the earliest game
    when several share the margin.
    """
    games = _oriented(matchups)
    if games.empty:
        return []

    records = []
    for (m1, m2), g in games.groupby(["manager1", "manager2"], sort=True):
        m1_wins = g[g["winner"] == m1]
        m2_wins = g[g["winner"] == m2]
        records.append(
            {
                "manager1": m1,
                "manager2": m2,
                "manager1Wins": int(len(m1_wins)),
                "manager2Wins": int(len(m2_wins)),
                "ties": int((g["winner"] == TIE).sum()),
                "totalGames": int(len(g)),
                "manager1AvgMargin": _avg(m1_wins["margin"]),
                "manager2AvgMargin": _avg(m2_wins["margin"]),
                "closestGame": _game_ref(g.loc[g["margin"].idxmin()]),
                "biggestBlowout": _game_ref(g.loc[g["margin"].idxmax()]),
            }
        )

    # stable: equal counts keep the alphabetical order from groupby
    records.sort(key=lambda r: -r["totalGames"])
    return records


def head_to_head_matrix(records: List[Dict[str, Any]]) -> Dict[str, Dict[str, str]]:
    """{manager: {opponent: "W-L" or "W-L-T"}}; "-" on the diagonal, "0-0" for pairs that never met."""
    managers = sorted({r["manager1"] for r in records} | {r["manager2"] for r in records})
    matrix = {m: {o: "-" if m == o else "0-0" for o in managers} for m in managers}

    for r in records:
        ties = f"-{r['ties']}" if r["ties"] else ""
        matrix[r["manager1"]][r["manager2"]] = f"{r['manager1Wins']}-{r['manager2Wins']}{ties}"
        matrix[r["manager2"]][r["manager1"]] = f"{r['manager2Wins']}-{r['manager1Wins']}{ties}"
    return matrix


def _distance_from_even(record: Dict[str, Any]) -> float:
    return abs(record["manager1Wins"] / record["totalGames"] - 0.5)


def rivalry_insights(records: List[Dict[str, Any]]) -> Dict[str, Any]:
    if not records:
        empty = {"manager1": "No data", "manager2": "No data", "totalGames": 0}
        return {"biggestRivalry": empty, "mostCompetitive": dict(empty), "mostLopsided": dict(empty)}

    established = [r for r in records if r["totalGames"] >= RIVALRY_MIN_GAMES]
    return {
        # records are already ordered by meetings
        "biggestRivalry": records[0],
        "mostCompetitive": min(records, key=_distance_from_even),
        "mostLopsided": max(established, key=_distance_from_even) if established else records[0],
    }


def _extreme(row: pd.Series) -> Dict[str, Any]:
    p1, p2 = float(row["points1"]), float(row["points2"])
    if p1 > p2:
        winner = row["manager1"]
    elif p2 > p1:
        winner = row["manager2"]
    else:
        winner = TIE
    return {
        "week": int(row["week"]),
        "season": row["season"],
        "manager1": row["manager1"],
        "manager2": row["manager2"],
        "manager1Score": round(p1, 2),
        "manager2Score": round(p2, 2),
        "winner": winner,
        "margin": round(float(row["margin"]), 2),
        "isPlayoffs": bool(row["is_playoffs"]),
    }


def matchup_extremes(matchups: pd.DataFrame) -> Dict[str, Optional[Dict[str, Any]]]:
    """
    League-wide single-game records. Ties never count as the closest game.
    Earliest game wins a tie on the measured value.
    """
    if matchups.empty:
        return {"highestScore": None, "lowestScore": None, "biggestBlowout": None, "closestGame": None}

    scores = matchups[["points1", "points2"]]
    decided = matchups[matchups["margin"] > 0]
    return {
        "highestScore": _extreme(matchups.loc[scores.max(axis=1).idxmax()]),
        "lowestScore": _extreme(matchups.loc[scores.min(axis=1).idxmin()]),
        "biggestBlowout": _extreme(matchups.loc[matchups["margin"].idxmax()]),
        "closestGame": _extreme(decided.loc[decided["margin"].idxmin()]) if not decided.empty else None,
    }
