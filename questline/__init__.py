"""
project: Questline
module: __init__.py
License: MIT

Flask application factory and core extensions setup.

This module wires together the Flask app, SQLAlchemy, Flask-Login and the
leveling engine. Configuration is sourced from environment variables with
reasonable defaults for development. A local `instance/` directory is used
for SQLite and other runtime data.
"""

import logging
import os
import uuid
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, current_app, jsonify, request
from flask_login import LoginManager
from flask_sqlalchemy import SQLAlchemy

from questline.leveling import InvalidArgument, LevelingConfig, LevelingEngine

# Load .env if present so `SECRET_KEY`, `DATABASE_URL`, `LEVELING_*` etc. can be
# supplied without exporting shell variables during development.
load_dotenv()

app = Flask(__name__, instance_relative_config=True)

# Ensure instance directory exists for SQLite and the log file
try:
    os.makedirs(app.instance_path, exist_ok=True)
except OSError:
    # In some constrained environments this might fail; ignore
    pass

secret_key = os.getenv("SECRET_KEY", "dev-secret-change-me")
database_url = os.getenv("DATABASE_URL")

# During pytest runs, isolate to a separate database file
if not database_url:
    is_pytest = bool(os.getenv("PYTEST_CURRENT_TEST"))
    db_filename = "questline_test.db" if is_pytest else "questline.db"
    db_path = Path(app.instance_path) / db_filename
    # Use POSIX path for SQLAlchemy URI compatibility across OS
    database_url = f"sqlite:///{db_path.as_posix()}"

app.config.update(
    SECRET_KEY=secret_key,
    SQLALCHEMY_DATABASE_URI=database_url,
    SQLALCHEMY_TRACK_MODIFICATIONS=False,
    # Leveling curve; read once below, not tunable while the app runs
    LEVELING_BASE_XP=os.getenv("LEVELING_BASE_XP"),
    LEVELING_XP_MULTIPLIER=os.getenv("LEVELING_XP_MULTIPLIER"),
    QUEST_DEFAULT_XP_REWARD=int(os.getenv("QUEST_DEFAULT_XP_REWARD", "100")),
    LEADERBOARD_DEFAULT_LIMIT=50,
    LEADERBOARD_MAX_LIMIT=100,
)

engine_opts = {}
if database_url.startswith("sqlite:///"):
    engine_opts["connect_args"] = {
        "timeout": 10,  # busy timeout (seconds) for sqlite
        "check_same_thread": False,
    }
db = SQLAlchemy(app, session_options={"expire_on_commit": False}, engine_options=engine_opts)
login_manager = LoginManager(app)


@login_manager.user_loader
def load_user(user_id):  # pragma: no cover - simple loader
    from questline.models.models import User

    try:
        return db.session.get(User, int(user_id))
    except (TypeError, ValueError):
        return None


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({"error": "authentication required"}), 401


# An invalid curve aborts startup here with InvalidArgument.
app.extensions["leveling"] = LevelingEngine(LevelingConfig.from_mapping(app.config))


def get_leveling_engine() -> LevelingEngine:
    """Return the leveling engine bound to the current app."""
    return current_app.extensions["leveling"]


# Register HTTP blueprints (import after app/db created)
from questline.routes import auth  # noqa: E402
from questline.routes.config_api import bp_config  # noqa: E402
from questline.routes.notifications_api import bp_notifications  # noqa: E402
from questline.routes.progress_api import bp_progress  # noqa: E402
from questline.routes.streak_api import bp_streak  # noqa: E402

app.register_blueprint(auth.bp)
app.register_blueprint(bp_config)
app.register_blueprint(bp_progress)
app.register_blueprint(bp_streak)
app.register_blueprint(bp_notifications)

# Level-up events become notification rows
from questline.services.notification_service import subscribe_level_up_notifications  # noqa: E402

subscribe_level_up_notifications()


def create_app():
    """Return the Flask app instance, ensuring the schema exists."""
    from questline.models import models as _models  # noqa: F401

    with app.app_context():
        db.create_all()
    return app


@app.errorhandler(InvalidArgument)
def invalid_argument(e):
    return jsonify({"error": str(e)}), 400


# Error handling: in non-debug mode, return a short error id and log details
@app.errorhandler(500)
def internal_error(e):
    error_id = uuid.uuid4().hex[:8]
    logging.exception("Unhandled exception (id=%s) path=%s", error_id, request.path)
    return jsonify({"error": "internal server error", "error_id": error_id}), 500
