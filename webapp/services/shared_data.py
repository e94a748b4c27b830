# webapp/services/shared_data.py
"""
Shared read-through cache for the team and matchup rows every stats page needs.

One SharedTeamData lives per process (built in create_app). Each CacheKey maps
to at most one CacheEntry. An entry is valid while

    now - stored_at < ttl

Expired or missing entries are refreshed from the key's loader before a value
is returned. Concurrent misses on the same key share one loader call.

A failed refresh raises UpstreamError and leaves the previous entry in place;
callers that prefer stale data to an error pass allow_stale=True.

clear_cache() bumps a generation counter. A load that started before the
clear still answers the callers waiting on it but does not store its rows.
"""

from __future__ import annotations

import enum
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError

from webapp.errors import StoreError, UpstreamError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 60

Rows = List[Dict[str, Any]]
Loader = Callable[[], Rows]


class CacheKey(str, enum.Enum):
    TEAMS = "teams"
    MATCHUPS = "matchups"


@dataclass(frozen=True)
class CacheEntry:
    value: Rows
    stored_at: float  # epoch seconds


class SharedTeamData:
    def __init__(
        self,
        loaders: Mapping[CacheKey, Loader],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        missing = [k.value for k in CacheKey if k not in loaders]
        if missing:
            raise ValueError(f"SharedTeamData needs a loader for: {', '.join(missing)}")

        self.ttl_seconds = float(ttl_seconds)
        self._loaders: Dict[CacheKey, Loader] = dict(loaders)
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._inflight: Dict[CacheKey, Future] = {}
        self._generation = 0
        self._lock = threading.Lock()

    # ---------- reads ----------

    def get(self, key: CacheKey, allow_stale: bool = False) -> Rows:
        key = CacheKey(key)

        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and self._is_valid(entry, self._clock()):
                return entry.value

            future = self._inflight.get(key)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[key] = future
            generation = self._generation

        if leader:
            self._load(key, future, generation)
        else:
            logger.debug("Waiting on in-flight fetch", extra={"cache_key": key.value})

        try:
            return future.result()
        except UpstreamError:
            if allow_stale:
                with self._lock:
                    stale = self._entries.get(key)
                if stale is not None:
                    logger.warning("Serving stale data after failed refresh", extra={"cache_key": key.value})
                    return stale.value
            raise

    def get_all_teams(self, allow_stale: bool = False) -> Rows:
        return self.get(CacheKey.TEAMS, allow_stale=allow_stale)

    def get_all_matchups(self, allow_stale: bool = False) -> Rows:
        return self.get(CacheKey.MATCHUPS, allow_stale=allow_stale)

    def _load(self, key: CacheKey, future: Future, generation: int) -> None:
        try:
            value = list(self._loaders[key]())
        except Exception as e:
            logger.error(
                "Cache refresh failed",
                extra={"operation": "shared_data.load", "cache_key": key.value, "error": str(e)},
            )
            if isinstance(e, UpstreamError):
                err = e
            else:
                err = UpstreamError(f"Failed to load {key.value}: {e}")
                err.__cause__ = e
            # followers are parked on this future; it must resolve either way
            with self._lock:
                self._release(key, future)
            future.set_exception(err)
            return

        with self._lock:
            current = generation == self._generation
            if current:
                self._entries[key] = CacheEntry(value=value, stored_at=self._clock())
            self._release(key, future)
        if current:
            logger.info("Cache refreshed", extra={"cache_key": key.value, "rows": len(value)})
        else:
            logger.info("Discarding rows loaded before cache clear", extra={"cache_key": key.value})
        future.set_result(value)

    def _release(self, key: CacheKey, future: Future) -> None:
        # caller holds the lock
        if self._inflight.get(key) is future:
            del self._inflight[key]

    # ---------- maintenance / observability ----------

    def clear_cache(self) -> None:
        with self._lock:
            self._generation += 1
            self._entries.clear()
            # readers arriving from now on start a fresh load
            self._inflight.clear()
        logger.info("Shared cache cleared")

    def get_cache_stats(self) -> List[Dict[str, Any]]:
        now = self._clock()
        with self._lock:
            entries = dict(self._entries)
            inflight = set(self._inflight)

        ttl_ms = int(self.ttl_seconds * 1000)
        stats = []
        for key in CacheKey:
            entry = entries.get(key)
            age_ms = int((now - entry.stored_at) * 1000) if entry is not None else 0
            stats.append(
                {
                    "key": key.value,
                    "isCached": entry is not None and self._is_valid(entry, now),
                    "ageMs": age_ms,
                    "ttlMs": ttl_ms,
                    "size": len(entry.value) if entry is not None else 0,
                    "expired": entry is not None and not self._is_valid(entry, now),
                    "inFlight": key in inflight,
                }
            )
        return stats

    def _is_valid(self, entry: CacheEntry, now: float) -> bool:
        return (now - entry.stored_at) < self.ttl_seconds


# ---------------------------------------------------------------------------
# Store-backed loaders
# ---------------------------------------------------------------------------

def store_loaders(store) -> Dict[CacheKey, Loader]:
    """
    Loaders that read plain dict rows from the persistent store.
    With no store every load fails with StoreError.
    """
    return {
        CacheKey.TEAMS: lambda: load_team_rows(store),
        CacheKey.MATCHUPS: lambda: load_matchup_rows(store),
    }


def _require_store(store) -> None:
    if store is None:
        raise StoreError("Persistent store is not configured")


def load_team_rows(store) -> Rows:
    from models_normalized import League, Team

    _require_store(store)
    session = store.SessionLocal()
    try:
        rows = (
            session.query(Team, League.num_teams, League.is_finished)
            .join(League, Team.league_id == League.id)
            .order_by(Team.season.desc(), Team.team_key)
            .all()
        )
        return [
            {
                "team_key": t.team_key,
                "name": t.name,
                "manager": t.manager_nickname,
                "season": t.season,
                "wins": int(t.wins or 0),
                "losses": int(t.losses or 0),
                "ties": int(t.ties or 0),
                "percentage": t.percentage,
                "points_for": float(t.points_for or 0.0),
                "points_against": float(t.points_against or 0.0),
                "rank": t.rank,
                "number_of_moves": int(t.number_of_moves or 0),
                "number_of_trades": int(t.number_of_trades or 0),
                "num_teams": num_teams,
                "is_finished": bool(is_finished),
            }
            for t, num_teams, is_finished in rows
        ]
    except SQLAlchemyError as e:
        raise StoreError(f"Failed to read teams: {e}") from e
    finally:
        session.close()


def load_matchup_rows(store) -> Rows:
    from models_normalized import Matchup, Team

    _require_store(store)
    session = store.SessionLocal()
    try:
        managers = {
            key: manager
            for key, manager in session.query(Team.team_key, Team.manager_nickname).all()
        }
        matchups = (
            session.query(Matchup)
            .order_by(Matchup.season.desc(), Matchup.week, Matchup.id)
            .all()
        )
        return [
            {
                "season": m.season,
                "week": int(m.week),
                "winner_team_key": m.winner_team_key,
                "is_playoffs": bool(m.is_playoffs),
                "is_consolation": bool(m.is_consolation),
                "is_tied": bool(m.is_tied),
                "team1_key": m.team1_key,
                "team2_key": m.team2_key,
                "team1_manager": managers.get(m.team1_key),
                "team2_manager": managers.get(m.team2_key),
                "team1_points": m.team1_points,
                "team2_points": m.team2_points,
            }
            for m in matchups
        ]
    except SQLAlchemyError as e:
        raise StoreError(f"Failed to read matchups: {e}") from e
    finally:
        session.close()
