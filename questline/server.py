"""
project: Questline
module: server.py
License: MIT

Server bootstrap utilities.

Exposes helpers to start the web server, configure logging and seed a few
starter quests for local development.
"""

import logging
import os
from logging.handlers import RotatingFileHandler

from questline import app, db
from questline.models.models import Quest

STARTER_QUESTS = [
    ("Python Basics", "Variables, types and control flow."),
    ("Functions & Modules", "Organising code into reusable pieces."),
    ("Working with Files", "Reading, writing and parsing text files."),
    ("Testing with pytest", "Fixtures, parametrize and assertions."),
]


def start_server(host="0.0.0.0", port=5000, debug: bool = False):  # pragma: no cover (runtime only)
    """Ensure DB tables exist, configure logging and run the Flask server."""
    with app.app_context():
        db.create_all()
        seed_quests()
    _configure_logging()
    logging.getLogger(__name__).info("Starting Questline on %s:%s", host, port)
    app.run(host=host, port=port, debug=debug)


def _configure_logging():
    """Configure logging to both console and a rotating file in instance/.

    The file path will be instance/app.log. Retains a few backups to avoid growth.
    """
    log_dir = app.instance_path
    try:
        os.makedirs(log_dir, exist_ok=True)
    except OSError:
        pass
    log_path = os.path.join(log_dir, "app.log")
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    root = logging.getLogger()
    root.setLevel(logging.INFO)

    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(formatter)

    # Avoid duplicate handlers if reconfigured
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    root.addHandler(file_handler)
    root.addHandler(console)


def seed_quests() -> int:
    """Insert the starter quests (published) if missing; return how many were added."""
    existing = {q.title for q in Quest.query.all()}
    reward = app.config.get("QUEST_DEFAULT_XP_REWARD", 100)
    added = 0
    for title, summary in STARTER_QUESTS:
        if title in existing:
            continue
        db.session.add(Quest(title=title, summary=summary, xp_reward=reward, status="published"))
        added += 1
    if added:
        db.session.commit()
    return added


def level_table(count: int = 20) -> str:
    """Render the active curve's thresholds as a plain-text table."""
    engine = app.extensions["leveling"]
    lines = [f"{'Level':>6}  {'Total XP':>12}  {'XP to next':>12}"]
    for row in engine.thresholds(count):
        lines.append(f"{row['level']:>6}  {row['total_xp']:>12,}  {row['xp_required']:>12,}")
    return "\n".join(lines)
