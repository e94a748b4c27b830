# webapp/routes/meta.py

from flask import Blueprint, jsonify

from analysis import season_overview
from webapp.extensions import get_shared_data, get_store

meta_bp = Blueprint("meta", __name__, url_prefix="/api/meta")


@meta_bp.route("", methods=["GET"])
def meta_api():
    """
    What data is loaded: seasons present (newest first), the latest one and
    row counts, all read through the shared cache.
    """
    shared = get_shared_data()
    payload = season_overview(
        shared.get_all_teams(allow_stale=True),
        shared.get_all_matchups(allow_stale=True),
    )
    payload["storeAvailable"] = get_store() is not None
    payload["success"] = True
    return jsonify(payload)
