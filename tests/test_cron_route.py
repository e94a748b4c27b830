from conftest import CRON_SECRET, _make_app


def test_cron_rejects_missing_header(client):
    res = client.get("/api/cron")
    assert res.status_code == 401
    assert res.get_json() == {"success": False, "error": "Unauthorized"}


def test_cron_rejects_wrong_secret(client):
    res = client.get("/api/cron", headers={"Authorization": "Bearer wrong"})
    assert res.status_code == 401


def test_cron_rejects_everything_when_secret_unset(store, clock, fake_yahoo):
    app = _make_app(store, clock, fake_yahoo, CRON_SECRET=None)
    client = app.test_client()

    for header in ("Bearer ", "Bearer None", ""):
        assert client.get("/api/cron", headers={"Authorization": header}).status_code == 401


def test_cron_runs_full_sync_for_current_season(client):
    res = client.get("/api/cron", headers={"Authorization": f"Bearer {CRON_SECRET}"})
    body = res.get_json()

    assert res.status_code == 200
    assert body["success"] is True
    assert body["mode"] == "full"
    assert body["season"].isdigit()
    assert body["timestamp"].endswith("Z")
    assert body["data"]["leaguesProcessed"] == 0
