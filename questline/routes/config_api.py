"""
project: Questline
module: config_api.py
License: MIT

Leveling configuration endpoint: the active curve constants and a threshold
table so clients can render level gates without reimplementing the curve.
"""

from flask import Blueprint, jsonify
from flask_login import login_required

from questline import get_leveling_engine
from questline.routes.progress_api import int_arg

bp_config = Blueprint("config", __name__)

DEFAULT_TABLE_LEVELS = 10
MAX_TABLE_LEVELS = 100


@bp_config.route("/api/config/leveling")
@login_required
def api_leveling():
    """
    Return the curve constants and thresholds for the first N levels.
    Query: levels (default 10, capped at 100)
    Response: { base_xp, xp_multiplier, levels: [{level, total_xp, xp_required}, ...] }
    """
    count = int_arg("levels", DEFAULT_TABLE_LEVELS, MAX_TABLE_LEVELS)
    engine = get_leveling_engine()
    payload = engine.config.to_dict()
    payload["levels"] = engine.thresholds(count)
    return jsonify(payload)
