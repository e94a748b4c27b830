import json
import warnings
from datetime import datetime, timedelta, timezone

from db import utcnow
from models_normalized import DraftPick, DraftSession, DraftSnapshot

PICKS = [
    {
        "pick": 1,
        "round": 1,
        "teamIndex": 0,
        "teamName": "Luke (1st)",
        "playerName": "Connor McDavid",
        "playerRank": 1,
        "playerTeam": "EDM",
        "playerPosition": "C",
        "averagePick": 1.2,
        "pickedAt": "2025-09-20T18:00:00",
    },
    {
        "pick": 2,
        "round": 1,
        "teamIndex": 1,
        "teamName": "Dinesh (2nd)",
        "playerName": "Nathan MacKinnon",
        "playerRank": 2,
        "playerTeam": "COL",
        "playerPosition": "C",
        "averagePick": 2.1,
        "pickedAt": "2025-09-20T18:01:00",
    },
    # on the clock, nobody picked yet
    {"pick": 3, "round": 1, "teamIndex": 2, "teamName": "Glis (3rd)"},
]


def _save(client, **extra):
    body = {"picks": PICKS, "selectedPlayers": ["Connor McDavid", "Nathan MacKinnon"]}
    body.update(extra)
    res = client.post("/api/draft/save", json=body)
    assert res.status_code == 200, res.get_json()
    return res.get_json()["sessionId"]


def test_save_creates_session_with_default_settings(client, store):
    session_id = _save(client)

    session = store.SessionLocal()
    try:
        drafts = session.query(DraftSession).all()
        assert len(drafts) == 1
        draft = drafts[0]
        assert draft.id == session_id
        assert draft.year == "2025"
        settings = json.loads(draft.settings)
        assert settings["teams"] == 10
        assert settings["numRounds"] == 25
        assert len(settings["owners"]) == 10

        assert session.query(DraftPick).filter_by(session_id=session_id).count() == 3
        assert session.query(DraftSnapshot).filter_by(session_id=session_id).count() == 1
    finally:
        session.close()


def test_saved_timestamps_are_naive_utc(client, store):
    before = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(seconds=1)
    session_id = _save(client)

    session = store.SessionLocal()
    try:
        draft = session.get(DraftSession, session_id)
        assert draft.updated_at.tzinfo is None
        assert before <= draft.updated_at <= before + timedelta(minutes=1)
    finally:
        session.close()

    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        assert utcnow().tzinfo is None


def test_save_again_replaces_picks(client, store):
    session_id = _save(client)
    _save(client, sessionId=session_id, picks=PICKS[:1])

    session = store.SessionLocal()
    try:
        assert session.query(DraftSession).count() == 1
        assert session.query(DraftPick).count() == 1
        assert session.query(DraftSnapshot).count() == 2
    finally:
        session.close()


def test_save_rejects_malformed_picks(client):
    res = client.post("/api/draft/save", json={"picks": [{"pick": "first"}]})
    body = res.get_json()

    assert res.status_code == 400
    assert body["success"] is False
    assert body["details"]


def test_load_by_session_and_by_year(client):
    session_id = _save(client)

    by_id = client.get(f"/api/draft/load?sessionId={session_id}").get_json()["data"]
    by_year = client.get("/api/draft/load?year=2025").get_json()["data"]

    assert by_id == by_year
    assert by_id["sessionId"] == session_id
    assert [p["pick"] for p in by_id["picks"]] == [1, 2, 3]
    assert by_id["selectedPlayers"] == ["Connor McDavid", "Nathan MacKinnon"]
    assert by_id["settings"]["numRounds"] == 25


def test_load_without_session_is_empty_state(client):
    body = client.get("/api/draft/load?year=1999").get_json()
    assert body == {"success": True, "data": {"picks": [], "selectedPlayers": [], "sessionId": None}}


def test_export_csv(client):
    session_id = _save(client)

    res = client.post("/api/draft/export", json={"sessionId": session_id, "format": "csv"})

    assert res.status_code == 200
    assert res.mimetype == "text/csv"
    assert res.headers["Content-Disposition"] == 'attachment; filename="draft-export-2025.csv"'

    lines = res.get_data(as_text=True).strip("\n").split("\n")
    assert len(lines) == 3
    assert lines[0] == '"Pick","Round","Team","Player","Rank","Team","Position","Avg Pick","Picked At"'
    assert lines[1] == '"1","1","Luke (1st)","Connor McDavid","1","EDM","C","1.2","2025-09-20T18:00:00"'
    for line in lines:
        assert all(field.startswith('"') and field.endswith('"') for field in line.split(","))


def test_export_json(client):
    session_id = _save(client)

    body = client.post("/api/draft/export", json={"sessionId": session_id}).get_json()

    assert body["success"] is True
    assert body["data"]["session"]["id"] == session_id
    assert [p["playerName"] for p in body["data"]["picks"]] == ["Connor McDavid", "Nathan MacKinnon"]
    assert "exportedAt" in body["data"]


def test_export_unknown_session_is_404(client):
    res = client.post("/api/draft/export", json={"sessionId": "nope", "format": "csv"})
    assert res.status_code == 404


def test_reset_clears_picks(client, store):
    session_id = _save(client)

    res = client.post("/api/draft/reset", json={"sessionId": session_id})
    assert res.get_json() == {"success": True, "message": "Draft reset successfully"}

    session = store.SessionLocal()
    try:
        assert session.query(DraftPick).count() == 0
        assert session.query(DraftSnapshot).count() == 0
        assert session.query(DraftSession).one().status == "active"
    finally:
        session.close()


def test_reset_requires_session_id(client):
    res = client.post("/api/draft/reset", json={})
    assert res.status_code == 400
    assert res.get_json()["error"] == "Session ID is required"


# ---------- no database ----------


def test_save_without_store_falls_back_to_local_storage(storeless_client):
    res = storeless_client.post("/api/draft/save", json={"picks": PICKS})
    assert res.get_json() == {"success": True, "message": "Draft state saved to localStorage only"}


def test_load_without_store_is_empty_state(storeless_client):
    body = storeless_client.get("/api/draft/load").get_json()
    assert body["data"] == {"picks": [], "selectedPlayers": [], "sessionId": None}


def test_reset_and_export_without_store_are_503(storeless_client):
    reset = storeless_client.post("/api/draft/reset", json={"sessionId": "abc"})
    export = storeless_client.post("/api/draft/export", json={"sessionId": "abc", "format": "csv"})

    assert reset.status_code == 503
    assert reset.get_json() == {"success": False, "error": "Database not available for reset"}
    assert export.status_code == 503
