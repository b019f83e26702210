"""
project: Questline
module: progress_api.py
License: MIT

Progress endpoints: quest completion, profile progress bar, leaderboard.

All routes require authentication and return JSON.
"""

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required

from questline.leveling import InvalidArgument
from questline.models.models import Quest, QuestProgress
from questline.services import progress_service
from questline.services.errors import ProgressError, QuestNotFound

bp_progress = Blueprint("progress", __name__)


def int_arg(name: str, default: int, maximum: int) -> int:
    """Parse a positive integer query argument, capped at ``maximum``."""
    raw = request.args.get(name)
    if raw in (None, ""):
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidArgument(f"{name} must be an integer, got {raw!r}") from None
    if value < 1:
        raise InvalidArgument(f"{name} must be >= 1, got {value}")
    return min(value, maximum)


@bp_progress.errorhandler(ProgressError)
def _progress_error(e):
    return jsonify({"error": str(e)}), 400


@bp_progress.errorhandler(QuestNotFound)
def _quest_not_found(e):
    return jsonify({"error": str(e)}), 404


@bp_progress.route("/api/profile/progress")
@login_required
def api_profile_progress():
    """
    Return the current user's level and progress inside it.
    Response: { total_xp, level, progress: {current, required, percentage}, next_level_total }
    """
    return jsonify(progress_service.profile_progress(current_user))


@bp_progress.route("/api/quests")
@login_required
def api_quests():
    """List published quests with the caller's completion state."""
    quests = Quest.query.filter_by(status="published").order_by(Quest.id.asc()).all()
    done = {
        p.quest_id
        for p in QuestProgress.query.filter_by(user_id=current_user.id, completed=True).all()
    }
    out = []
    for q in quests:
        row = q.to_dict()
        row["completed"] = q.id in done
        out.append(row)
    return jsonify({"quests": out})


@bp_progress.route("/api/quests/<int:quest_id>/complete", methods=["POST"])
@login_required
def api_complete_quest(quest_id: int):
    quest = progress_service.get_quest(quest_id)
    result = progress_service.complete_quest(current_user, quest)
    return jsonify(result.to_dict())


@bp_progress.route("/api/quests/<int:quest_id>/incomplete", methods=["POST"])
@login_required
def api_uncomplete_quest(quest_id: int):
    quest = progress_service.get_quest(quest_id)
    result = progress_service.uncomplete_quest(current_user, quest)
    return jsonify(result.to_dict())


@bp_progress.route("/api/leaderboard")
@login_required
def api_leaderboard():
    """
    Return the top users by total XP.
    Query: limit (default 50, capped at 100)
    Response: { entries: [{rank, id, username, level, total_xp, streak_days}], your_rank }
    """
    limit = int_arg(
        "limit",
        current_app.config.get("LEADERBOARD_DEFAULT_LIMIT", 50),
        current_app.config.get("LEADERBOARD_MAX_LIMIT", 100),
    )
    return jsonify(progress_service.leaderboard(limit, current_user.id))
