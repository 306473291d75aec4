from flask import Blueprint, jsonify, g
from security import user_required
from quota import tracker_from_config

quota_bp = Blueprint("quota_bp", __name__)

@quota_bp.get("/api/status")
@user_required
def get_status():
    status = tracker_from_config().get_status(g.user_id)
    return jsonify(status.as_json())
