# webapp/services/yahoo_sync.py
"""
Yahoo -> database sync pipeline.

Public entrypoint:

    YahooSyncService(client, store, shared_data).sync_all_leagues(options)

It:
- Resolves which leagues to sync from SyncOptions (full / test / single).
- Pulls league metadata, teams, standings and every week's scoreboard.
- Upserts League, Team and Matchup rows, one transaction per league.
- Clears the shared team/matchup cache once anything was written.

Each league is independent: a failure is logged, recorded in
SyncResult.errors and the next league is processed.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.orm import Session

from db import utcnow
from models_normalized import League, Matchup, Team
from webapp.errors import StoreError, ValidationError
from webapp.services.yahoo_client import LeagueKeyInfo, as_list, dig

logger = logging.getLogger(__name__)

SYNC_MODES = ("full", "test", "single")
TEST_SEASONS = ["2024", "2022"]


def seasons_to_sync(start_year: int, current_year: Optional[int] = None) -> List[str]:
    """Every season from next year (ongoing) down to the league's first."""
    current_year = current_year or datetime.now().year
    return [str(y) for y in range(current_year + 1, int(start_year) - 1, -1)]


@dataclass
class SyncOptions:
    mode: str = "full"
    league_key: Optional[str] = None
    season: Optional[str] = None
    seasons: Optional[List[str]] = None
    force_refresh: bool = False


@dataclass
class SyncResult:
    leagues_processed: int = 0
    teams_processed: int = 0
    matchups_processed: int = 0
    leagues_skipped: int = 0
    errors: List[str] = field(default_factory=list)

    def add(self, other: "SyncResult") -> None:
        self.leagues_processed += other.leagues_processed
        self.teams_processed += other.teams_processed
        self.matchups_processed += other.matchups_processed
        self.leagues_skipped += other.leagues_skipped
        self.errors.extend(other.errors)

    def to_json(self) -> Dict[str, Any]:
        return {
            "leaguesProcessed": self.leagues_processed,
            "teamsProcessed": self.teams_processed,
            "matchupsProcessed": self.matchups_processed,
            "leaguesSkipped": self.leagues_skipped,
            "errors": list(self.errors),
        }


# ---------- value parsing ----------


def _int(value: Any, default: Optional[int] = None) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _float(value: Any, default: Optional[float] = None) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _flag(value: Any) -> bool:
    return str(value).strip() == "1"


class YahooSyncService:
    def __init__(
        self,
        client,
        store,
        shared_data=None,
        keeper_start_year: int = 2015,
        sync_cache_hours: int = 168,
        league_delay_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        now: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.store = store
        self.shared_data = shared_data
        self.keeper_start_year = keeper_start_year
        self.sync_cache_hours = sync_cache_hours
        self.league_delay_seconds = league_delay_seconds
        self._sleep = sleep
        self._now = now

    # ---------- public ----------

    def resolve_league_keys(self, options: SyncOptions) -> List[LeagueKeyInfo]:
        if options.mode not in SYNC_MODES:
            raise ValidationError(f"Unknown sync mode: {options.mode}")

        if options.mode == "single":
            if not options.league_key:
                raise ValidationError("leagueKey is required for single mode")
            return [LeagueKeyInfo(league_key=options.league_key, season=options.season or "")]

        if options.seasons:
            seasons = list(options.seasons)
        elif options.season:
            seasons = [options.season]
        elif options.mode == "test":
            seasons = list(TEST_SEASONS)
        else:
            seasons = seasons_to_sync(self.keeper_start_year)

        if options.mode == "test":
            seasons = [s for s in seasons if s in TEST_SEASONS] or list(TEST_SEASONS)

        return self.client.get_all_league_keys(seasons)

    def sync_all_leagues(self, options: Optional[SyncOptions] = None) -> SyncResult:
        options = options or SyncOptions()
        if self.store is None:
            raise StoreError("Persistent store is not configured")

        league_keys = self.resolve_league_keys(options)
        logger.info(
            "Starting sync",
            extra={"operation": "sync_all_leagues", "mode": options.mode, "leagues": len(league_keys)},
        )

        result = SyncResult()
        for idx, info in enumerate(league_keys):
            if idx > 0 and self.league_delay_seconds:
                self._sleep(self.league_delay_seconds)
            try:
                result.add(self.sync_league(info, force_refresh=options.force_refresh))
            except Exception as e:
                logger.exception(
                    "League sync failed",
                    extra={"operation": "sync_league", "league_key": info.league_key, "season": info.season},
                )
                result.errors.append(f"League {info.league_key} ({info.season or 'unknown'}): {e}")

        if result.leagues_processed and self.shared_data is not None:
            self.shared_data.clear_cache()

        logger.info("Sync finished", extra={"operation": "sync_all_leagues", **result.to_json()})
        return result

    def sync_league(self, info: LeagueKeyInfo, force_refresh: bool = False) -> SyncResult:
        result = SyncResult()

        if not force_refresh and self._recently_synced(info.league_key):
            logger.info("League recently synced, skipping", extra={"league_key": info.league_key, "season": info.season})
            result.leagues_skipped = 1
            return result

        data = self.client.fetch_league_data(info.league_key)
        league_info = dig(data.get("metadata"), "fantasy_content", "league")
        if not isinstance(league_info, dict):
            result.errors.append(f"No metadata found for league {info.league_key}")
            return result

        season = str(league_info.get("season") or info.season)
        scoreboards = [
            self.client.fetch_scoreboard(info.league_key, week)
            for week in range(1, self._last_week(league_info) + 1)
        ]

        with self.store.session_scope() as session:
            league = self._upsert_league(session, info, league_info, season)
            session.flush()
            result.leagues_processed = 1

            for team_data in as_list(dig(data.get("teams"), "fantasy_content", "league", "teams", "team")):
                self._upsert_team(session, league, team_data, season)
                result.teams_processed += 1
            session.flush()

            standings = dig(data.get("standings"), "fantasy_content", "league", "standings", "teams", "team")
            self._apply_standings(session, as_list(standings))

            for board in scoreboards:
                matchups = dig(board, "fantasy_content", "league", "scoreboard", "matchups", "matchup")
                for matchup_data in as_list(matchups):
                    if self._upsert_matchup(session, league, matchup_data, season):
                        result.matchups_processed += 1

        logger.info(
            "League synced",
            extra={"league_key": info.league_key, "season": season, **result.to_json()},
        )
        return result

    # ---------- helpers ----------

    def _recently_synced(self, league_key: str) -> bool:
        session = self.store.SessionLocal()
        try:
            updated_at = (
                session.query(League.updated_at)
                .filter(League.league_key == league_key)
                .scalar()
            )
        finally:
            session.close()
        if updated_at is None:
            return False
        return self._now() - updated_at < timedelta(hours=self.sync_cache_hours)

    @staticmethod
    def _last_week(league_info: Dict[str, Any]) -> int:
        end_week = _int(league_info.get("end_week"), 0)
        current_week = _int(league_info.get("current_week"), 0)
        if _flag(league_info.get("is_finished")):
            return end_week or current_week
        if end_week:
            return min(current_week, end_week)
        return current_week

    def _upsert_league(self, session: Session, info: LeagueKeyInfo, league_info: Dict[str, Any], season: str) -> League:
        league = session.query(League).filter_by(league_key=info.league_key).one_or_none()
        if league is None:
            league = League(league_key=info.league_key, season=season)
            session.add(league)

        league.league_id = _int(league_info.get("league_id"))
        league.game_key = info.game_key or str(info.league_key).split(".")[0]
        league.season = season
        league.name = league_info.get("name")
        league.url = league_info.get("url")
        league.logo_url = league_info.get("logo_url") or None
        league.draft_status = league_info.get("draft_status")
        league.num_teams = _int(league_info.get("num_teams"))
        league.scoring_type = league_info.get("scoring_type")
        league.league_type = league_info.get("league_type")
        league.current_week = _int(league_info.get("current_week"))
        league.end_week = _int(league_info.get("end_week"))
        league.is_finished = _flag(league_info.get("is_finished"))
        # touch even when nothing changed so the skip window restarts
        league.updated_at = self._now()
        return league

    def _upsert_team(self, session: Session, league: League, team_data: Dict[str, Any], season: str) -> Team:
        team_key = team_data.get("team_key")
        team = session.query(Team).filter_by(team_key=team_key).one_or_none()
        if team is None:
            team = Team(team_key=team_key, league_id=league.id, season=season)
            session.add(team)

        managers = as_list(dig(team_data, "managers", "manager"))
        manager = managers[0] if managers and isinstance(managers[0], dict) else {}

        team.league_id = league.id
        team.season = season
        team.team_id = _int(team_data.get("team_id"))
        team.name = team_data.get("name")
        team.url = team_data.get("url")
        team.number_of_moves = _int(team_data.get("number_of_moves"), 0)
        team.number_of_trades = _int(team_data.get("number_of_trades"), 0)
        team.clinched_playoffs = _flag(team_data.get("clinched_playoffs"))
        team.manager_nickname = manager.get("nickname")
        team.manager_image_url = manager.get("image_url")
        team.manager_is_commissioner = _flag(manager.get("is_commissioner"))
        return team

    def _apply_standings(self, session: Session, standings: Sequence[Dict[str, Any]]) -> None:
        for standing in standings:
            team = session.query(Team).filter_by(team_key=standing.get("team_key")).one_or_none()
            if team is None:
                continue
            block = standing.get("team_standings") or standing
            outcome = block.get("outcome_totals") or {}

            team.rank = _int(block.get("rank"))
            team.wins = _int(outcome.get("wins"), 0)
            team.losses = _int(outcome.get("losses"), 0)
            team.ties = _int(outcome.get("ties"), 0)
            team.percentage = _float(outcome.get("percentage"))
            team.points_for = _float(block.get("points_for"), _float(dig(standing, "team_points", "total")))
            team.points_against = _float(block.get("points_against"))

    def _upsert_matchup(self, session: Session, league: League, matchup_data: Dict[str, Any], season: str) -> bool:
        teams = as_list(dig(matchup_data, "teams", "team"))
        if len(teams) != 2:
            return False
        home, away = teams
        week = _int(matchup_data.get("week"))
        if week is None:
            return False

        matchup = (
            session.query(Matchup)
            .filter_by(
                league_id=league.id,
                week=week,
                team1_key=home.get("team_key"),
                team2_key=away.get("team_key"),
            )
            .one_or_none()
        )
        if matchup is None:
            matchup = Matchup(
                league_id=league.id,
                week=week,
                team1_key=home.get("team_key"),
                team2_key=away.get("team_key"),
            )
            session.add(matchup)

        matchup.season = season
        matchup.status = matchup_data.get("status")
        matchup.is_playoffs = _flag(matchup_data.get("is_playoffs"))
        matchup.is_consolation = _flag(matchup_data.get("is_consolation"))
        matchup.is_tied = _flag(matchup_data.get("is_tied"))
        matchup.winner_team_key = matchup_data.get("winner_team_key") or None
        matchup.team1_points = _float(dig(home, "team_points", "total"))
        matchup.team2_points = _float(dig(away, "team_points", "total"))
        return True
