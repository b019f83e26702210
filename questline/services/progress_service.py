"""Quest completion handler and XP bookkeeping.

Every XP change goes through :func:`_apply_total`, which recomputes the level
from the new total with the app's leveling engine and writes ``total_xp`` and
``level`` on the same row, committed in one transaction. The user row is
re-read with ``FOR UPDATE`` first so concurrent completions serialize on
databases that support row locks.

A level-up event is emitted only after the commit succeeds.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from questline import db, get_leveling_engine
from questline.events import level_up_event
from questline.leveling import InvalidArgument
from questline.logging_utils import get_logger
from questline.models.models import Quest, QuestProgress, User
from questline.services.errors import ProgressError, QuestNotFound

log = get_logger("progress")


@dataclass(frozen=True)
class XpChange:
    user_id: int
    previous_xp: int
    total_xp: int
    previous_level: int
    level: int

    @property
    def leveled_up(self) -> bool:
        return self.level > self.previous_level

    def to_dict(self) -> dict:
        data = asdict(self)
        data["xp_delta"] = self.total_xp - self.previous_xp
        data["leveled_up"] = self.leveled_up
        return data


@dataclass(frozen=True)
class CompletionResult:
    progress: QuestProgress
    xp: XpChange
    already_completed: bool = False

    def to_dict(self) -> dict:
        return {
            "progress": self.progress.to_dict(),
            "xp": self.xp.to_dict(),
            "already_completed": self.already_completed,
        }


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _stored_xp(user: User) -> int:
    # Storage is the caller's side of the engine contract: never hand it a negative or NULL total.
    return max(0, user.total_xp or 0)


def _stored_level(user: User) -> int:
    return max(1, user.level or 1)


def _locked_user(user: User) -> User:
    """Re-read the user row with a row lock, refreshing any stale attributes."""
    locked = db.session.get(User, user.id, with_for_update=True, populate_existing=True)
    if locked is None:
        raise ProgressError(f"user {user.id} no longer exists")
    return locked


def _apply_total(user: User, new_total: int) -> XpChange:
    engine = get_leveling_engine()
    change = XpChange(
        user_id=user.id,
        previous_xp=_stored_xp(user),
        total_xp=new_total,
        previous_level=_stored_level(user),
        level=engine.level_from_xp(new_total),
    )
    user.total_xp = change.total_xp
    user.level = change.level
    return change


def _commit():
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise


def _announce(change: XpChange):
    if not change.leveled_up:
        return
    log.info(event="level_up", user_id=change.user_id, level=change.level, previous_level=change.previous_level)
    level_up_event.emit(change.user_id, change.level)


def get_quest(quest_id: int) -> Quest:
    quest = db.session.get(Quest, quest_id)
    if quest is None:
        raise QuestNotFound(f"quest {quest_id} not found")
    return quest


def _credit(user: User, amount: int) -> XpChange:
    """Stage ``amount`` XP on an already locked ``user``; the caller commits."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
        raise InvalidArgument(f"amount must be a non-negative integer, got {amount!r}")
    return _apply_total(user, _stored_xp(user) + amount)


def award_xp(user: User, amount: int) -> XpChange:
    """Add ``amount`` XP to ``user``, recompute the level and commit both.

    Entry point for XP that does not come from a quest (manual grants, scripts).
    Quest completions credit through the same ``_credit`` step inside
    :func:`complete_quest` so the progress row lands in the same commit.
    """
    user = _locked_user(user)
    change = _credit(user, amount)
    _commit()
    log.info(event="xp_awarded", user_id=user.id, amount=amount, total_xp=change.total_xp)
    _announce(change)
    return change


def complete_quest(user: User, quest: Quest) -> CompletionResult:
    """Mark ``quest`` complete for ``user`` and credit its XP reward once.

    Completing an already-completed quest is a no-op that reports the current
    totals; only published quests can be completed.
    """
    if quest.status != "published":
        raise ProgressError(f"quest {quest.id} is not published")
    user = _locked_user(user)
    progress = QuestProgress.query.filter_by(user_id=user.id, quest_id=quest.id).first()
    if progress is not None and progress.completed:
        xp, level = _stored_xp(user), _stored_level(user)
        unchanged = XpChange(user_id=user.id, previous_xp=xp, total_xp=xp, previous_level=level, level=level)
        return CompletionResult(progress=progress, xp=unchanged, already_completed=True)
    if progress is None:
        progress = QuestProgress(user_id=user.id, quest_id=quest.id)
        db.session.add(progress)
    reward = max(0, quest.xp_reward or 0)
    progress.completed = True
    progress.completed_at = _utcnow()
    progress.xp_earned = reward
    change = _credit(user, reward)
    _commit()
    log.info(event="quest_completed", user_id=user.id, quest_id=quest.id, xp=reward, level=change.level)
    _announce(change)
    return CompletionResult(progress=progress, xp=change)


def uncomplete_quest(user: User, quest: Quest) -> CompletionResult:
    """Revert a completion: subtract the XP it credited (never below 0).

    Levels can go down here; no event is emitted for that.
    """
    user = _locked_user(user)
    progress: Optional[QuestProgress] = QuestProgress.query.filter_by(user_id=user.id, quest_id=quest.id).first()
    if progress is None or not progress.completed:
        raise ProgressError(f"quest {quest.id} is not completed")
    change = _apply_total(user, max(0, _stored_xp(user) - (progress.xp_earned or 0)))
    progress.completed = False
    progress.completed_at = None
    progress.xp_earned = 0
    _commit()
    log.info(event="quest_reverted", user_id=user.id, quest_id=quest.id, level=change.level)
    return CompletionResult(progress=progress, xp=change)


def profile_progress(user: User) -> dict:
    """Progress-bar payload for a user's stored ``{total_xp, level}``."""
    engine = get_leveling_engine()
    total_xp = _stored_xp(user)
    level = _stored_level(user)
    snapshot = engine.level_progress(total_xp, level)
    return {
        "user_id": user.id,
        "total_xp": total_xp,
        "level": level,
        "progress": snapshot.to_dict(),
        "next_level_total": engine.total_xp_for_level(level + 1),
    }


def leaderboard(limit: int, current_user_id: Optional[int] = None) -> dict:
    """Top users by total XP; ties broken by account age (lower id first)."""
    users = User.query.order_by(User.total_xp.desc(), User.id.asc()).limit(limit).all()
    entries = []
    your_rank = None
    for rank, u in enumerate(users, start=1):
        entry = u.to_profile_dict()
        entry["rank"] = rank
        entries.append(entry)
        if u.id == current_user_id:
            your_rank = rank
    return {"entries": entries, "your_rank": your_rank}
