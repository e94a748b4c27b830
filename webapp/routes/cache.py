# webapp/routes/cache.py

from flask import Blueprint, jsonify

from webapp.extensions import get_shared_data
from webapp.routes import utc_timestamp

cache_bp = Blueprint("cache", __name__, url_prefix="/api/cache")


@cache_bp.route("/clear", methods=["POST"])
def clear_cache():
    get_shared_data().clear_cache()
    return jsonify(
        {
            "success": True,
            "message": "Shared team/matchup cache cleared",
            "timestamp": utc_timestamp(),
        }
    )


@cache_bp.route("/health", methods=["GET"])
def cache_health():
    return jsonify(
        {
            "success": True,
            "cache": get_shared_data().get_cache_stats(),
            "timestamp": utc_timestamp(),
        }
    )
