"""User notifications, including the level-up subscriber."""

from __future__ import annotations

import json
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from questline import db
from questline.events import LevelUpEmitter, level_up_event
from questline.logging_utils import get_logger
from questline.models.models import Notification
from questline.services.errors import NotificationNotFound

log = get_logger("notifications")

LEVEL_UP = "level_up"

_unsubscribe: Optional[Callable[[], None]] = None


def record_level_up(user_id: int, level: int) -> Optional[Notification]:
    """Persist a level-up notification.

    Runs after the XP commit, so a failure here is logged and rolled back
    rather than surfaced to the completion request.
    """
    note = Notification(
        user_id=user_id,
        kind=LEVEL_UP,
        message=f"You reached level {level}!",
        payload=json.dumps({"level": level}),
    )
    db.session.add(note)
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        log.error(event="notification_failed", user_id=user_id, level=level, error=exc)
        return None
    return note


def subscribe_level_up_notifications(emitter: LevelUpEmitter = level_up_event):
    """Attach :func:`record_level_up` to ``emitter`` (once)."""
    global _unsubscribe
    if _unsubscribe is None:
        _unsubscribe = emitter.subscribe(record_level_up)
    return _unsubscribe


def list_notifications(user_id: int, limit: int = 20) -> dict:
    rows = (
        Notification.query.filter_by(user_id=user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )
    unread = Notification.query.filter_by(user_id=user_id, read=False).count()
    return {"notifications": [n.to_dict() for n in rows], "unread": unread}


def mark_read(user_id: int, notification_id: int) -> Notification:
    note = Notification.query.filter_by(id=notification_id, user_id=user_id).first()
    if note is None:
        raise NotificationNotFound(f"notification {notification_id} not found")
    if not note.read:
        note.read = True
        db.session.commit()
    return note
