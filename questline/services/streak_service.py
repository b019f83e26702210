"""Daily activity streak.

Days are compared as UTC calendar dates: a second update on the same date is
a no-op, an update on the next date extends the streak, anything later (or a
first ever update) starts over at 1.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError

from questline import db
from questline.logging_utils import get_logger
from questline.models.models import User

log = get_logger("streak")

STARTED = "started"
CONTINUED = "continued"
RESET = "reset"
UNCHANGED = "unchanged"


@dataclass(frozen=True)
class StreakResult:
    streak_days: int
    status: str

    @property
    def updated(self) -> bool:
        return self.status != UNCHANGED

    def to_dict(self) -> dict:
        data = asdict(self)
        data["updated"] = self.updated
        return data


def next_streak(current: int, last_at: Optional[datetime], now: datetime) -> Tuple[int, str]:
    """Return ``(streak_days, status)`` for an activity at ``now``."""
    current = max(0, current or 0)
    if last_at is None:
        return 1, STARTED
    gap = (now.date() - last_at.date()).days
    if gap <= 0:
        # Same day, or a last_at in the future after clock skew
        return current, UNCHANGED
    if gap == 1:
        return current + 1, CONTINUED
    return 1, RESET


def update_streak(user: User, now: Optional[datetime] = None) -> StreakResult:
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    days, status = next_streak(user.streak_days, user.last_streak_at, now)
    result = StreakResult(streak_days=days, status=status)
    if not result.updated:
        return result
    user.streak_days = days
    user.last_streak_at = now
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
    log.info(event="streak_updated", user_id=user.id, streak=days, status=status)
    return result
