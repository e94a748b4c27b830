from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

from . import hall_of_fame, wall_of_shame
from .constants import HALL_OF_FAME_CATEGORIES, OVERVIEW_ENTRIES, WALL_OF_SHAME_CATEGORIES
from .frames import Entry, champion_rows, games_frame, latest_season, teams_frame

logger = logging.getLogger(__name__)

Rows = Iterable[Dict[str, Any]]


@dataclass(frozen=True)
class Board:
    """A named set of categories plus the aggregator behind each one."""

    name: str
    categories: List[Dict[str, str]]
    functions: Dict[str, Callable[..., List[Entry]]]

    def category(self, category_id: str) -> Optional[Dict[str, str]]:
        for c in self.categories:
            if c["id"] == category_id:
                return c
        return None


WALL_OF_SHAME = Board("wall-of-shame", WALL_OF_SHAME_CATEGORIES, wall_of_shame.CATEGORY_FUNCTIONS)
HALL_OF_FAME = Board("hall-of-fame", HALL_OF_FAME_CATEGORIES, hall_of_fame.CATEGORY_FUNCTIONS)


def _frames(teams: Rows, matchups: Rows, season: Optional[str]):
    team_df = teams_frame(teams)
    game_df = games_frame(matchups)
    # "current" is decided before any season filter is applied
    current = latest_season(team_df, game_df)
    if season is not None:
        team_df = team_df[team_df["season"] == str(season)]
        game_df = game_df[game_df["season"] == str(season)]
    return team_df, game_df, current


def _tag_season(entries: List[Entry], season: Optional[str]) -> List[Entry]:
    # career entries have no season of their own
    if season is not None:
        for e in entries:
            if e["season"] is None:
                e["season"] = str(season)
    return entries


def compute_category(
    board: Board,
    category_id: str,
    teams: Rows,
    matchups: Rows,
    season: Optional[str] = None,
) -> List[Entry]:
    """
    Ranked entries for one category. With `season`, only that season's rows
    are considered; career-level entries are tagged with it.

    Raises KeyError for an unknown category id.
    """
    fn = board.functions[category_id]
    team_df, game_df, current = _frames(teams, matchups, season)
    return _tag_season(fn(team_df, game_df, current), season)


def board_overview(
    board: Board,
    teams: Rows,
    matchups: Rows,
    season: Optional[str] = None,
    top: int = OVERVIEW_ENTRIES,
) -> List[Dict[str, Any]]:
    """
    Every category of `board` in display order with its top `top` entries.
    One category failing leaves it empty; the rest are still computed.
    """
    team_df, game_df, current = _frames(teams, matchups, season)

    out = []
    for meta in board.categories:
        try:
            entries = board.functions[meta["id"]](team_df, game_df, current)
        except Exception:
            logger.exception(
                "Category computation failed",
                extra={"operation": f"{board.name}.overview", "category": meta["id"]},
            )
            entries = []
        out.append({**meta, "entries": _tag_season(entries, season)[:top]})
    return out


def championship_summary(teams: Rows) -> Dict[str, Any]:
    team_df = teams_frame(teams)
    current = max(team_df["season"]) if len(team_df) else None
    champs = champion_rows(team_df, current)
    managers = sorted(set(champs["manager"]))
    return {
        "totalChampionships": int(len(champs)),
        "uniqueChampions": len(managers),
        "champions": managers,
    }


def empty_championship_summary() -> Dict[str, Any]:
    return {"totalChampionships": 0, "uniqueChampions": 0, "champions": []}


def season_overview(teams: Rows, matchups: Rows) -> Dict[str, Any]:
    team_df = teams_frame(teams)
    game_df = games_frame(matchups)
    seasons = sorted(set(team_df["season"]) | set(game_df["season"]), reverse=True)

    per_season: Dict[str, Dict[str, int]] = {}
    for s in seasons:
        per_season[s] = {
            "teams": int((team_df["season"] == s).sum()),
            # games_frame has two rows per matchup
            "matchups": int((game_df["season"] == s).sum()) // 2,
            "maxWeek": int(game_df.loc[game_df["season"] == s, "week"].max()) if (game_df["season"] == s).any() else 0,
        }

    return {
        "seasons": seasons,
        "latestSeason": seasons[0] if seasons else None,
        "teamCount": int(len(team_df)),
        "matchupCount": int(len(game_df)) // 2,
        "perSeason": per_season,
    }
