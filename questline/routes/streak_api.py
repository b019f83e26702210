from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from questline.services.streak_service import update_streak

bp_streak = Blueprint("streak", __name__)


@bp_streak.route("/api/streak/update", methods=["POST"])
@login_required
def api_update_streak():
    result = update_streak(current_user)
    message = "Streak updated" if result.updated else "Streak already updated today"
    payload = result.to_dict()
    payload["message"] = message
    return jsonify(payload)
