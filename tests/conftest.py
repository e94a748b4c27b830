from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy.pool import StaticPool

from db import open_store, utcnow
from models_normalized import League, Matchup, Team
from webapp import create_app
from webapp.errors import UpstreamError
from webapp.services.yahoo_client import LeagueKeyInfo

CRON_SECRET = "test-cron-secret"


class FakeClock:
    """Manually advanced epoch-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Fake Yahoo API (returns the same dict shapes xml_to_dict produces)
# ---------------------------------------------------------------------------


def yahoo_team(team_key: str, name: str, manager: str) -> Dict[str, Any]:
    return {
        "team_key": team_key,
        "team_id": team_key.rsplit(".", 1)[-1],
        "name": name,
        "number_of_moves": "3",
        "number_of_trades": "1",
        "managers": {"manager": {"nickname": manager, "is_commissioner": "0"}},
    }


def yahoo_standing(team_key: str, rank: int, wins: int, losses: int, pf: float, pa: float) -> Dict[str, Any]:
    games = wins + losses
    return {
        "team_key": team_key,
        "team_standings": {
            "rank": str(rank),
            "points_for": str(pf),
            "points_against": str(pa),
            "outcome_totals": {
                "wins": str(wins),
                "losses": str(losses),
                "ties": "0",
                "percentage": f"{wins / games:.3f}" if games else "0",
            },
        },
    }


def yahoo_matchup(week: int, home: str, away: str, home_pts: float, away_pts: float) -> Dict[str, Any]:
    winner = home if home_pts > away_pts else away
    return {
        "week": str(week),
        "status": "postevent",
        "is_playoffs": "0",
        "is_consolation": "0",
        "is_tied": "0",
        "winner_team_key": winner,
        "teams": {
            "team": [
                {"team_key": home, "team_points": {"total": str(home_pts)}},
                {"team_key": away, "team_points": {"total": str(away_pts)}},
            ]
        },
    }


class FakeYahooClient:
    """
    In-memory stand-in for YahooApiClient.

    leagues: league_key -> {"season", "name", "teams", "standings", "weeks"}
    where weeks maps week number -> [matchup dicts].
    """

    def __init__(self):
        self.leagues: Dict[str, Dict[str, Any]] = {}
        self.failing: set = set()
        self.fetched: List[str] = []
        self.credentials_valid = True
        self.token_refreshes = 0

    def refresh_credentials(self):
        self.token_refreshes += 1
        if not self.credentials_valid:
            raise UpstreamError("Failed to refresh Yahoo credentials: 401 Unauthorized")

    def add_league(
        self,
        league_key: str,
        season: str,
        teams: List[Dict[str, Any]],
        standings: List[Dict[str, Any]],
        weeks: Dict[int, List[Dict[str, Any]]],
        name: Optional[str] = None,
    ) -> None:
        self.leagues[league_key] = {
            "season": season,
            "name": name or f"Keeper League {season}",
            "teams": teams,
            "standings": standings,
            "weeks": weeks,
        }

    def get_all_league_keys(self, seasons, game_code="nhl"):
        wanted = {str(s) for s in seasons}
        return [
            LeagueKeyInfo(league_key=key, season=data["season"], game_key=key.split(".")[0])
            for key, data in self.leagues.items()
            if data["season"] in wanted
        ]

    def fetch_league_data(self, league_key):
        self.fetched.append(league_key)
        if league_key in self.failing:
            raise UpstreamError(f"Yahoo API request failed (500): league {league_key}")
        data = self.leagues[league_key]
        last_week = max(data["weeks"]) if data["weeks"] else 0
        league = {
            "league_key": league_key,
            "league_id": league_key.rsplit(".", 1)[-1],
            "name": data["name"],
            "season": data["season"],
            "num_teams": str(len(data["teams"])),
            "current_week": str(last_week),
            "end_week": str(last_week),
            "is_finished": "1",
            "scoring_type": "head",
        }
        return {
            "metadata": {"fantasy_content": {"league": league}},
            "settings": None,
            "standings": {
                "fantasy_content": {"league": {"standings": {"teams": {"team": list(data["standings"])}}}}
            },
            "teams": {"fantasy_content": {"league": {"teams": {"team": list(data["teams"])}}}},
        }

    def fetch_scoreboard(self, league_key, week):
        matchups = self.leagues[league_key]["weeks"].get(week, [])
        return {"fantasy_content": {"league": {"scoreboard": {"matchups": {"matchup": list(matchups)}}}}}


def two_team_league(prefix: str, season: str, managers=("Luke", "Geoff")) -> Dict[str, Any]:
    a, b = f"{prefix}.t.1", f"{prefix}.t.2"
    return {
        "league_key": prefix,
        "season": season,
        "teams": [yahoo_team(a, f"{managers[0]}'s Team", managers[0]), yahoo_team(b, f"{managers[1]}'s Team", managers[1])],
        "standings": [yahoo_standing(a, 1, 2, 0, 210.0, 180.0), yahoo_standing(b, 2, 0, 2, 180.0, 210.0)],
        "weeks": {
            1: [yahoo_matchup(1, a, b, 100.0, 90.0)],
            2: [yahoo_matchup(2, a, b, 110.0, 90.0)],
        },
    }


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def store():
    s = open_store(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    assert s is not None
    yield s
    s.dispose()


@pytest.fixture()
def fake_yahoo():
    return FakeYahooClient()


def _make_app(store, clock, fake_yahoo, **overrides):
    config = {
        "TESTING": True,
        "CRON_SECRET": CRON_SECRET,
        "SYNC_LEAGUE_DELAY_SECONDS": 0,
        "DRAFT_YEAR": "2025",
        "LOG_LEVEL": "WARNING",
    }
    config.update(overrides)
    return create_app(
        overrides=config,
        store=store,
        yahoo_client_factory=lambda cfg: fake_yahoo,
        clock=clock,
    )


@pytest.fixture()
def app(store, clock, fake_yahoo):
    return _make_app(store, clock, fake_yahoo)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def storeless_app(clock, fake_yahoo):
    return _make_app(None, clock, fake_yahoo)


@pytest.fixture()
def storeless_client(storeless_app):
    return storeless_app.test_client()


@pytest.fixture()
def seed(store):
    """
    seed(league_key, season, teams=[{...Team columns}], matchups=[{...Matchup columns}])

    Writes rows straight through the ORM, bypassing the sync pipeline.
    """

    def _seed(league_key, season, teams, matchups=(), is_finished=True, num_teams=None):
        with store.session_scope() as session:
            league = League(
                league_key=league_key,
                season=season,
                name=f"Keeper League {season}",
                num_teams=num_teams or len(teams),
                is_finished=is_finished,
                updated_at=utcnow(),
            )
            session.add(league)
            session.flush()
            for t in teams:
                session.add(Team(league_id=league.id, season=season, **t))
            for m in matchups:
                session.add(Matchup(league_id=league.id, season=season, **m))

    return _seed
