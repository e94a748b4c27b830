# webapp/services/draft_store.py
"""
Draft session persistence (picks + snapshots) and export formatting.

All functions take a SQLAlchemy Session; callers own commit/rollback.
"""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from db import utcnow
from models_normalized import DraftPick, DraftSession, DraftSnapshot
from webapp.schemas import DraftSaveRequest

DEFAULT_DRAFT_SETTINGS: Dict[str, Any] = {
    "teams": 10,
    "numRounds": 25,
    "owners": [
        "Luke (1st)", "Dinesh (2nd)", "Glis (3rd)", "Toph (4th)",
        "Geoff (5th)", "Whidds (6th)", "Dooger (7th)", "Bendy (8th)",
        "Blake (9th)", "Deke (10th)",
    ],
}

CSV_HEADERS = ["Pick", "Round", "Team", "Player", "Rank", "Team", "Position", "Avg Pick", "Picked At"]


def _iso(dt: Optional[datetime]) -> Optional[str]:
    return dt.isoformat() if dt is not None else None


def pick_to_json(p: DraftPick) -> Dict[str, Any]:
    return {
        "pick": p.pick,
        "round": p.round,
        "teamIndex": p.team_index,
        "teamName": p.team_name,
        "playerName": p.player_name,
        "playerRank": p.player_rank,
        "playerTeam": p.player_team,
        "playerPosition": p.player_position,
        "averagePick": p.average_pick,
        "pickedAt": _iso(p.picked_at),
    }


def find_session(session: Session, session_id: Optional[str] = None, year: Optional[str] = None) -> Optional[DraftSession]:
    q = session.query(DraftSession)
    if session_id:
        return q.filter(DraftSession.id == session_id).one_or_none()
    return (
        q.filter(DraftSession.year == str(year))
        .order_by(DraftSession.updated_at.desc())
        .first()
    )


def save_draft(session: Session, req: DraftSaveRequest, year: str) -> DraftSession:
    """
    Replace the session's picks with `req.picks` (creating the session with
    default settings if needed) and record a snapshot.
    """
    draft = find_session(session, session_id=req.session_id) if req.session_id else None
    if draft is None:
        draft = DraftSession(
            year=str(year),
            status="active",
            settings=json.dumps(DEFAULT_DRAFT_SETTINGS),
        )
        session.add(draft)
        session.flush()

    session.query(DraftPick).filter(DraftPick.session_id == draft.id).delete(synchronize_session=False)

    now = utcnow()
    for p in req.picks:
        session.add(
            DraftPick(
                session_id=draft.id,
                pick=p.pick,
                round=p.round,
                team_index=p.team_index,
                team_name=p.team_name,
                player_name=p.player_name,
                player_rank=p.player_rank,
                player_team=p.player_team,
                player_position=p.player_position,
                average_pick=p.average_pick,
                picked_at=p.picked_at or now,
            )
        )

    session.add(
        DraftSnapshot(
            session_id=draft.id,
            snapshot_data=json.dumps(
                {
                    "picks": [p.model_dump(mode="json", by_alias=True) for p in req.picks],
                    "selectedPlayers": list(req.selected_players),
                }
            ),
            description="Auto-save snapshot",
        )
    )
    draft.updated_at = now
    return draft


def load_draft(session: Session, session_id: Optional[str], year: str) -> Optional[Dict[str, Any]]:
    draft = find_session(session, session_id=session_id, year=year)
    if draft is None:
        return None

    picks = [
        pick_to_json(p)
        for p in session.query(DraftPick)
        .filter(DraftPick.session_id == draft.id)
        .order_by(DraftPick.pick)
        .all()
    ]
    return {
        "picks": picks,
        "selectedPlayers": [p["playerName"] for p in picks if p["playerName"]],
        "sessionId": draft.id,
        "settings": json.loads(draft.settings),
    }


def reset_draft(session: Session, draft: DraftSession) -> None:
    session.query(DraftPick).filter(DraftPick.session_id == draft.id).delete(synchronize_session=False)
    session.query(DraftSnapshot).filter(DraftSnapshot.session_id == draft.id).delete(synchronize_session=False)
    draft.status = "active"
    draft.updated_at = utcnow()


def drafted_picks(session: Session, draft: DraftSession) -> List[DraftPick]:
    return (
        session.query(DraftPick)
        .filter(DraftPick.session_id == draft.id, DraftPick.player_name.isnot(None))
        .order_by(DraftPick.pick)
        .all()
    )


def export_csv(picks: List[DraftPick]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for p in picks:
        writer.writerow(
            [
                p.pick,
                p.round,
                p.team_name,
                p.player_name,
                p.player_rank,
                p.player_team,
                p.player_position,
                p.average_pick,
                _iso(p.picked_at),
            ]
        )
    return buf.getvalue()


def export_json(draft: DraftSession, picks: List[DraftPick]) -> Dict[str, Any]:
    return {
        "session": {
            "id": draft.id,
            "year": draft.year,
            "status": draft.status,
            "settings": json.loads(draft.settings),
        },
        "picks": [
            {k: v for k, v in pick_to_json(p).items() if k != "teamIndex"}
            for p in picks
        ],
        "exportedAt": utcnow().isoformat(),
    }
