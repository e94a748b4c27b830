# webapp/routes/draft.py

import logging
from contextlib import contextmanager

from flask import Blueprint, Response, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from webapp.errors import NotFound, StoreError
from webapp.extensions import get_store
from webapp.schemas import (
    DraftExportRequest,
    DraftLoadQuery,
    DraftResetRequest,
    DraftSaveRequest,
    parse_model,
)
from webapp.services import draft_store

logger = logging.getLogger(__name__)

draft_bp = Blueprint("draft", __name__, url_prefix="/api/draft")

EMPTY_DRAFT_STATE = {"picks": [], "selectedPlayers": [], "sessionId": None}


@contextmanager
def _draft_session(operation: str):
    """session_scope() on the app's store, SQLAlchemy failures as StoreError."""
    store = get_store()
    if store is None:
        raise StoreError(f"Database not available for {operation}")
    try:
        with store.session_scope() as session:
            yield session
    except SQLAlchemyError as e:
        logger.exception("Draft store failure", extra={"operation": f"draft.{operation}"})
        raise StoreError(f"Failed to {operation} draft") from e


def _draft_year() -> str:
    return str(current_app.config["DRAFT_YEAR"])


@draft_bp.route("/save", methods=["POST"])
def save_draft_api():
    req = parse_model(DraftSaveRequest, request.get_json(silent=True), "Invalid draft state")

    if get_store() is None:
        # the client keeps its own copy in localStorage
        return jsonify({"success": True, "message": "Draft state saved to localStorage only"})

    with _draft_session("save") as session:
        draft = draft_store.save_draft(session, req, year=_draft_year())
        session_id = draft.id

    logger.info("Draft saved", extra={"operation": "draft.save", "session_id": session_id, "picks": len(req.picks)})
    return jsonify({"success": True, "sessionId": session_id, "message": "Draft state saved successfully"})


@draft_bp.route("/load", methods=["GET"])
def load_draft_api():
    query = parse_model(DraftLoadQuery, request.args.to_dict(), "Invalid draft query")

    if get_store() is None:
        return jsonify({"success": True, "data": dict(EMPTY_DRAFT_STATE)})

    with _draft_session("load") as session:
        state = draft_store.load_draft(session, query.session_id, year=query.year or _draft_year())

    return jsonify({"success": True, "data": state or dict(EMPTY_DRAFT_STATE)})


@draft_bp.route("/reset", methods=["POST"])
def reset_draft_api():
    if get_store() is None:
        raise StoreError("Database not available for reset")

    req = parse_model(DraftResetRequest, request.get_json(silent=True), "Session ID is required")

    with _draft_session("reset") as session:
        draft = draft_store.find_session(session, session_id=req.session_id)
        if draft is None:
            raise NotFound("Draft session not found")
        draft_store.reset_draft(session, draft)

    logger.info("Draft reset", extra={"operation": "draft.reset", "session_id": req.session_id})
    return jsonify({"success": True, "message": "Draft reset successfully"})


@draft_bp.route("/export", methods=["POST"])
def export_draft_api():
    if get_store() is None:
        raise StoreError("Database not available for export")

    req = parse_model(DraftExportRequest, request.get_json(silent=True), "Session ID is required")

    with _draft_session("export") as session:
        draft = draft_store.find_session(session, session_id=req.session_id)
        if draft is None:
            raise NotFound("Draft session not found")
        picks = draft_store.drafted_picks(session, draft)

        if req.format == "csv":
            body = draft_store.export_csv(picks)
            filename = f"draft-export-{draft.year}.csv"
        else:
            payload = draft_store.export_json(draft, picks)

    if req.format == "csv":
        return Response(
            body,
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return jsonify({"success": True, "data": payload})
