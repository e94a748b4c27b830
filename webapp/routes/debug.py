# webapp/routes/debug.py

import logging

from flask import Blueprint, jsonify

from webapp.errors import AppError
from webapp.extensions import get_shared_data
from webapp.routes import utc_timestamp

logger = logging.getLogger(__name__)

debug_bp = Blueprint("debug", __name__, url_prefix="/api/debug")


@debug_bp.route("/cache", methods=["GET"])
def debug_cache():
    shared = get_shared_data()

    try:
        teams = shared.get_all_teams()
        matchups = shared.get_all_matchups()
    except AppError as e:
        logger.warning("Debug cache read failed", extra={"operation": "debug.cache", "error": e.message})
        # still show the cache state that led to the failure
        return (
            jsonify(
                {
                    "success": False,
                    "error": e.message,
                    "cache": shared.get_cache_stats(),
                    "timestamp": utc_timestamp(),
                }
            ),
            e.status_code,
        )

    return jsonify(
        {
            "success": True,
            "cache": shared.get_cache_stats(),
            "data": {
                "teams": {"count": len(teams), "sample": teams[:2]},
                "matchups": {"count": len(matchups), "sample": matchups[:2]},
            },
            "timestamp": utc_timestamp(),
        }
    )
