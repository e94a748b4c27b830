# webapp/routes/stats.py

import logging

from flask import Blueprint, jsonify, request

from analysis import (
    HALL_OF_FAME,
    WALL_OF_SHAME,
    Board,
    board_overview,
    championship_summary,
    compute_category,
    empty_championship_summary,
)
from webapp.errors import AppError, NotFound
from webapp.extensions import get_shared_data
from webapp.rate_limit import rate_limited
from webapp.schemas import StatsQuery, parse_model

logger = logging.getLogger(__name__)

stats_bp = Blueprint("stats", __name__, url_prefix="/api/stats")


def _board_response(board: Board):
    query = parse_model(StatsQuery, request.args.to_dict(), "Invalid stats parameters")

    if query.category is not None and board.category(query.category) is None:
        raise NotFound("Category not found")

    shared = get_shared_data()
    teams = shared.get_all_teams(allow_stale=True)
    matchups = shared.get_all_matchups(allow_stale=True)

    if query.category is not None:
        data = compute_category(board, query.category, teams, matchups, season=query.season)
        return jsonify(
            {
                "success": True,
                "categoryId": query.category,
                "season": query.season,
                "data": data,
            }
        )

    logger.debug(
        "Computing board",
        extra={"operation": board.name, "teams": len(teams), "matchups": len(matchups), "season": query.season},
    )
    return jsonify(
        {
            "success": True,
            "season": query.season,
            "categories": board_overview(board, teams, matchups, season=query.season),
        }
    )


@stats_bp.route("/wall-of-shame", methods=["GET"])
@rate_limited("stats")
def wall_of_shame_api():
    return _board_response(WALL_OF_SHAME)


@stats_bp.route("/hall-of-fame", methods=["GET"])
@rate_limited("stats")
def hall_of_fame_api():
    return _board_response(HALL_OF_FAME)


@stats_bp.route("/championships", methods=["GET"])
@rate_limited("stats")
def championships_api():
    # Degrades to an empty summary instead of failing the page
    try:
        teams = get_shared_data().get_all_teams(allow_stale=True)
    except AppError as e:
        logger.warning(
            "Championship data unavailable, returning empty summary",
            extra={"operation": "championships", "error": str(e)},
        )
        return jsonify({"success": True, "data": empty_championship_summary()})

    return jsonify({"success": True, "data": championship_summary(teams)})
