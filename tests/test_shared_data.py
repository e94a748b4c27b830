import threading

import pytest

from webapp.errors import StoreError, UpstreamError
from webapp.services.shared_data import CacheKey, SharedTeamData, store_loaders


class CountingLoader:
    def __init__(self, rows=None):
        self.calls = 0
        self.rows = rows if rows is not None else [{"team_key": "t1"}]
        self.fail_with = None

    def __call__(self):
        self.calls += 1
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.rows)


def _shared(clock, ttl=1800):
    teams = CountingLoader([{"team_key": "t1"}, {"team_key": "t2"}])
    matchups = CountingLoader([{"week": 1}])
    shared = SharedTeamData({CacheKey.TEAMS: teams, CacheKey.MATCHUPS: matchups}, ttl_seconds=ttl, clock=clock)
    return shared, teams, matchups


def _stats(shared, key):
    return next(s for s in shared.get_cache_stats() if s["key"] == key)


def test_requires_a_loader_per_key(clock):
    with pytest.raises(ValueError):
        SharedTeamData({CacheKey.TEAMS: CountingLoader()}, clock=clock)


def test_no_reload_within_ttl(clock):
    shared, teams, _ = _shared(clock)

    first = shared.get_all_teams()
    clock.advance(1799)
    second = shared.get_all_teams()

    assert teams.calls == 1
    assert first == second == [{"team_key": "t1"}, {"team_key": "t2"}]


def test_exactly_one_reload_after_ttl(clock):
    shared, teams, _ = _shared(clock)
    shared.get_all_teams()

    clock.advance(1800)
    shared.get_all_teams()
    shared.get_all_teams()

    assert teams.calls == 2


def test_keys_are_cached_independently(clock):
    shared, teams, matchups = _shared(clock)
    shared.get_all_teams()
    shared.get_all_matchups()
    shared.get_all_matchups()

    assert teams.calls == 1
    assert matchups.calls == 1


def test_clear_cache_forces_reload(clock):
    shared, teams, _ = _shared(clock)
    shared.get_all_teams()

    shared.clear_cache()
    assert _stats(shared, "teams")["isCached"] is False
    shared.clear_cache()  # idempotent

    shared.get_all_teams()
    assert teams.calls == 2


def test_cache_stats_shape(clock):
    shared, _, _ = _shared(clock, ttl=60)

    empty = _stats(shared, "teams")
    assert empty == {
        "key": "teams",
        "isCached": False,
        "ageMs": 0,
        "ttlMs": 60000,
        "size": 0,
        "expired": False,
        "inFlight": False,
    }

    shared.get_all_teams()
    clock.advance(2.5)
    stats = _stats(shared, "teams")
    assert stats["isCached"] is True
    assert stats["ageMs"] == 2500
    assert stats["size"] == 2

    clock.advance(60)
    stats = _stats(shared, "teams")
    assert stats["isCached"] is False
    assert stats["expired"] is True

    assert [s["key"] for s in shared.get_cache_stats()] == ["teams", "matchups"]


def test_failed_refresh_keeps_previous_entry(clock):
    shared, teams, _ = _shared(clock)
    shared.get_all_teams()

    clock.advance(1801)
    teams.fail_with = RuntimeError("db went away")

    with pytest.raises(UpstreamError) as exc:
        shared.get_all_teams()
    assert isinstance(exc.value.__cause__, RuntimeError)

    stale = shared.get_all_teams(allow_stale=True)
    assert stale == [{"team_key": "t1"}, {"team_key": "t2"}]
    assert _stats(shared, "teams")["size"] == 2

    teams.fail_with = None
    shared.get_all_teams()
    assert _stats(shared, "teams")["isCached"] is True


def test_failure_without_previous_entry_raises_even_when_stale_allowed(clock):
    shared, teams, _ = _shared(clock)
    teams.fail_with = RuntimeError("boom")

    with pytest.raises(UpstreamError):
        shared.get_all_teams(allow_stale=True)


def test_store_loaders_without_store_raise_store_error(clock):
    shared = SharedTeamData(store_loaders(None), clock=clock)

    with pytest.raises(UpstreamError) as exc:
        shared.get_all_teams()
    assert isinstance(exc.value.__cause__, StoreError)


def test_concurrent_misses_share_one_loader_call(clock):
    started = threading.Event()
    release = threading.Event()
    calls = []

    def slow_teams():
        calls.append(1)
        started.set()
        release.wait(5)
        return [{"team_key": "t1"}]

    shared = SharedTeamData(
        {CacheKey.TEAMS: slow_teams, CacheKey.MATCHUPS: CountingLoader()},
        clock=clock,
    )

    results = []
    errors = []

    def reader():
        try:
            results.append(shared.get_all_teams())
        except Exception as e:  # pragma: no cover - surfaced by the assert below
            errors.append(e)

    leader = threading.Thread(target=reader)
    leader.start()
    assert started.wait(5)
    assert _stats(shared, "teams")["inFlight"] is True

    followers = [threading.Thread(target=reader) for _ in range(8)]
    for t in followers:
        t.start()

    release.set()
    for t in [leader] + followers:
        t.join(5)

    assert errors == []
    assert len(calls) == 1
    assert len(results) == 9
    assert all(r == [{"team_key": "t1"}] for r in results)
    assert _stats(shared, "teams")["inFlight"] is False


def test_concurrent_followers_see_the_leaders_error(clock):
    started = threading.Event()
    release = threading.Event()

    def failing_teams():
        started.set()
        release.wait(5)
        raise RuntimeError("upstream down")

    shared = SharedTeamData(
        {CacheKey.TEAMS: failing_teams, CacheKey.MATCHUPS: CountingLoader()},
        clock=clock,
    )

    outcomes = []

    def reader():
        try:
            shared.get_all_teams()
            outcomes.append("ok")
        except UpstreamError:
            outcomes.append("upstream")

    leader = threading.Thread(target=reader)
    leader.start()
    assert started.wait(5)
    followers = [threading.Thread(target=reader) for _ in range(3)]
    for t in followers:
        t.start()

    release.set()
    for t in [leader] + followers:
        t.join(5)

    # a follower arriving after the failure starts its own (also failing) load
    assert outcomes.count("upstream") == 4


def test_clear_during_load_does_not_keep_old_rows(clock):
    started = threading.Event()
    release = threading.Event()
    rows = {"v": "old"}

    def slow_teams():
        snapshot = [dict(rows)]
        started.set()
        release.wait(5)
        return snapshot

    shared = SharedTeamData(
        {CacheKey.TEAMS: slow_teams, CacheKey.MATCHUPS: CountingLoader()},
        clock=clock,
    )

    results = []
    reader = threading.Thread(target=lambda: results.append(shared.get_all_teams()))
    reader.start()
    assert started.wait(5)

    # a sync commits new rows and clears the cache while the read is in flight
    rows["v"] = "new"
    shared.clear_cache()
    started.clear()
    release.set()
    reader.join(5)

    # the caller that started the load still gets its answer
    assert results == [[{"v": "old"}]]
    assert _stats(shared, "teams")["isCached"] is False
    assert shared.get_all_teams() == [{"v": "new"}]
