def test_health_lists_every_key(client):
    body = client.get("/api/cache/health").get_json()

    assert body["success"] is True
    assert [s["key"] for s in body["cache"]] == ["teams", "matchups"]
    assert all(s["isCached"] is False for s in body["cache"])
    assert "timestamp" in body


def test_clear_resets_cached_entries(client):
    client.get("/api/debug/cache")
    assert all(s["isCached"] for s in client.get("/api/cache/health").get_json()["cache"])

    res = client.post("/api/cache/clear")
    assert res.status_code == 200
    assert res.get_json()["success"] is True

    assert not any(s["isCached"] for s in client.get("/api/cache/health").get_json()["cache"])


def test_cache_expires_after_ttl(client, clock):
    client.get("/api/debug/cache")
    clock.advance(30 * 60)

    teams = next(s for s in client.get("/api/cache/health").get_json()["cache"] if s["key"] == "teams")
    assert teams["isCached"] is False
    assert teams["expired"] is True


def test_debug_cache_samples_rows(client, seed):
    seed(
        "453.l.1",
        "2024",
        [
            {"team_key": f"453.l.1.t.{i}", "manager_nickname": f"M{i}", "rank": i, "wins": 0, "losses": 0}
            for i in range(1, 4)
        ],
    )

    body = client.get("/api/debug/cache").get_json()

    assert body["data"]["teams"]["count"] == 3
    assert len(body["data"]["teams"]["sample"]) == 2
    assert body["data"]["matchups"] == {"count": 0, "sample": []}


def test_debug_cache_without_store_reports_error(storeless_client):
    res = storeless_client.get("/api/debug/cache")
    body = res.get_json()

    assert res.status_code == 503
    assert body["success"] is False
    assert [s["key"] for s in body["cache"]] == ["teams", "matchups"]


def test_unknown_api_path_is_json_404(client):
    res = client.get("/api/nope")
    assert res.status_code == 404
    assert res.get_json()["success"] is False
