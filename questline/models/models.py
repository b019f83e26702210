"""
project: Questline
module: models.py
License: MIT

Database models used by the Questline application.

Notes:
- Passwords are stored as hashed values (Werkzeug generate_password_hash).
- `User.total_xp` and `User.level` are always written together; the level is
  derived from the total with the leveling engine, never edited on its own.
"""

import json
from datetime import datetime, timezone

from flask_login import UserMixin
from werkzeug.security import check_password_hash, generate_password_hash

from questline import db


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(UserMixin, db.Model):
    """Learner account plus its progression counters.

    Attributes:
        username: Unique handle for login and display.
        password: Hashed password string (never store plaintext).
        total_xp: Accumulated experience points.
        level: Level derived from total_xp (cached for listing/sorting).
        streak_days: Consecutive days with activity.
        last_streak_at: Naive UTC timestamp of the last streak update.
    """

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    total_xp = db.Column(db.Integer, nullable=False, default=0, index=True)
    level = db.Column(db.Integer, nullable=False, default=1)
    streak_days = db.Column(db.Integer, nullable=False, default=0)
    last_streak_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def set_password(self, raw_password: str):
        """Hash and store a new password value."""
        self.password = generate_password_hash(raw_password)

    def check_password(self, candidate: str) -> bool:
        return check_password_hash(self.password or "", candidate)

    def to_profile_dict(self) -> dict:
        return {
            "id": self.id,
            "username": self.username,
            "total_xp": self.total_xp,
            "level": self.level,
            "streak_days": self.streak_days,
        }


class Quest(db.Model):
    """A unit of learning content that awards XP once completed.

    status: 'draft' | 'published' | 'archived'. Only published quests can be completed.
    """

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    summary = db.Column(db.Text, nullable=True)
    xp_reward = db.Column(db.Integer, nullable=False, default=100)
    status = db.Column(db.String(20), nullable=False, default="draft")
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "summary": self.summary,
            "xp_reward": self.xp_reward,
            "status": self.status,
        }


class QuestProgress(db.Model):
    """Per-user completion record for a quest.

    xp_earned holds what was actually credited so a revert subtracts the same
    amount even if the quest reward changed since.
    """

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    quest_id = db.Column(db.Integer, db.ForeignKey("quest.id"), nullable=False, index=True)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    xp_earned = db.Column(db.Integer, nullable=False, default=0)
    __table_args__ = (db.UniqueConstraint("user_id", "quest_id", name="uq_progress_user_quest"),)

    def to_dict(self) -> dict:
        return {
            "quest_id": self.quest_id,
            "completed": bool(self.completed),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "xp_earned": self.xp_earned,
        }


class Notification(db.Model):
    """Per-user notification feed entry (e.g. kind='level_up')."""

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=False, index=True)
    kind = db.Column(db.String(40), nullable=False)
    message = db.Column(db.String(255), nullable=False)
    # JSON string with kind-specific data (e.g. {"level": 4})
    payload = db.Column(db.Text, nullable=True)
    read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=_utcnow, index=True)

    def to_dict(self) -> dict:
        try:
            payload = json.loads(self.payload) if self.payload else {}
        except ValueError:
            payload = {}
        return {
            "id": self.id,
            "kind": self.kind,
            "message": self.message,
            "payload": payload,
            "read": bool(self.read),
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
