# webapp/routes/dashboard.py

import logging

from flask import Blueprint, jsonify

from analysis import build_dashboard
from webapp.extensions import get_shared_data
from webapp.rate_limit import rate_limited

logger = logging.getLogger(__name__)

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.route("", methods=["GET"])
@rate_limited("dashboard")
def dashboard_api():
    """
    Manager rankings, head-to-head, season deep dive and current form in
    one payload, all derived from the shared cache.
    """
    shared = get_shared_data()
    teams = shared.get_all_teams(allow_stale=True)
    matchups = shared.get_all_matchups(allow_stale=True)

    logger.debug(
        "Building dashboard",
        extra={"operation": "dashboard", "teams": len(teams), "matchups": len(matchups)},
    )
    payload = build_dashboard(teams, matchups)
    payload["success"] = True
    return jsonify(payload)
