from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from questline.routes.progress_api import int_arg
from questline.services import notification_service
from questline.services.errors import NotificationNotFound

bp_notifications = Blueprint("notifications", __name__)


@bp_notifications.errorhandler(NotificationNotFound)
def _not_found(e):
    return jsonify({"error": str(e)}), 404


@bp_notifications.route("/api/notifications", methods=["GET"])
@login_required
def api_notifications():
    limit = int_arg("limit", 20, 100)
    return jsonify(notification_service.list_notifications(current_user.id, limit))


@bp_notifications.route("/api/notifications/<int:notification_id>/read", methods=["POST"])
@login_required
def api_mark_read(notification_id: int):
    note = notification_service.mark_read(current_user.id, notification_id)
    return jsonify({"ok": True, "notification": note.to_dict()})
