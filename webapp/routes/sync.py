# webapp/routes/sync.py

import hmac
import logging
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from webapp.errors import AppError, Unauthorized
from webapp.extensions import build_sync_service, build_yahoo_client
from webapp.rate_limit import rate_limited
from webapp.routes import utc_timestamp
from webapp.schemas import SyncQuery, parse_model
from webapp.services.yahoo_sync import SyncOptions

logger = logging.getLogger(__name__)

sync_bp = Blueprint("sync", __name__, url_prefix="/api")


def _sync_message(data: dict) -> str:
    return (
        f"Sync completed: {data['leaguesProcessed']} leagues, "
        f"{data['teamsProcessed']} teams, {data['matchupsProcessed']} matchups processed"
        f" ({data['leaguesSkipped']} skipped, {len(data['errors'])} errors)"
    )


@sync_bp.route("/sync", methods=["GET", "POST"])
@rate_limited("sync")
def sync_leagues():
    """
    Pull leagues from Yahoo into the store.

    Query: mode=full|test|single, leagueKey, season, seasons=2024,2022,
    forceRefresh=true.
    """
    query = parse_model(SyncQuery, request.args.to_dict(), "Invalid sync parameters")
    options = SyncOptions(
        mode=query.mode,
        league_key=query.league_key,
        season=query.season,
        seasons=query.seasons,
        force_refresh=query.force_refresh,
    )

    logger.info("Sync requested", extra={"operation": "sync", "mode": options.mode, "league_key": options.league_key})
    data = build_sync_service().sync_all_leagues(options).to_json()

    return jsonify(
        {
            "success": True,
            "mode": options.mode,
            "data": data,
            "message": _sync_message(data),
        }
    )


def _require_cron_secret() -> None:
    secret = current_app.config.get("CRON_SECRET")
    header = request.headers.get("Authorization", "")
    # no secret configured -> nothing is authorized
    if not secret or not hmac.compare_digest(header.encode(), f"Bearer {secret}".encode()):
        logger.warning("Unauthorized cron request", extra={"operation": "cron"})
        raise Unauthorized("Unauthorized")


@sync_bp.route("/cron", methods=["GET"])
def cron_sync():
    """Scheduled full sync of the current season."""
    _require_cron_secret()

    season = str(datetime.now(timezone.utc).year)
    logger.info("Starting scheduled sync", extra={"operation": "cron", "season": season})
    result = build_sync_service().sync_all_leagues(SyncOptions(mode="full", season=season))

    return jsonify(
        {
            "success": True,
            "season": season,
            "mode": "full",
            "timestamp": utc_timestamp(),
            "data": result.to_json(),
        }
    )


@sync_bp.route("/yahoo/validate", methods=["GET"])
def validate_yahoo_credentials():
    """Exchange the refresh token for an access token; 401 if Yahoo says no."""
    logger.info("Validating Yahoo API credentials", extra={"operation": "yahoo.validate"})
    try:
        build_yahoo_client().refresh_credentials()
    except AppError as e:
        logger.error(
            "Yahoo API credentials validation failed",
            extra={"operation": "yahoo.validate", "error": e.message},
        )
        return (
            jsonify({"success": False, "valid": False, "error": e.message, "timestamp": utc_timestamp()}),
            401,
        )

    return jsonify(
        {
            "success": True,
            "valid": True,
            "message": "Yahoo API credentials are valid",
            "timestamp": utc_timestamp(),
        }
    )
