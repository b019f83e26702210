"""Completion handler: XP credit, level recomputation, level-up events."""

import json

import pytest

from questline import db
from questline.events import level_up_event
from questline.leveling import InvalidArgument
from questline.models.models import Notification, QuestProgress
from questline.services import progress_service
from questline.services.errors import ProgressError, QuestNotFound
from tests.factories import create_quest, create_user


@pytest.fixture()
def level_ups():
    seen = []
    unsubscribe = level_up_event.subscribe(lambda uid, lvl: seen.append((uid, lvl)))
    yield seen
    unsubscribe()


def test_complete_credits_reward_and_persists_level(level_ups):
    user = create_user("alice")
    quest = create_quest(xp_reward=100)
    result = progress_service.complete_quest(user, quest)
    assert not result.already_completed
    assert result.xp.total_xp == 100
    assert result.xp.level == 1
    assert not result.xp.leveled_up
    assert level_ups == []
    row = QuestProgress.query.filter_by(user_id=user.id, quest_id=quest.id).one()
    assert row.completed and row.xp_earned == 100 and row.completed_at is not None
    assert (user.total_xp, user.level) == (100, 1)


def test_crossing_a_boundary_emits_and_records_notification(level_ups):
    user = create_user("bob", total_xp=250)
    quest = create_quest(xp_reward=100)
    result = progress_service.complete_quest(user, quest)
    assert result.xp.previous_level == 1
    assert result.xp.level == 2
    assert result.xp.to_dict()["leveled_up"] is True
    assert result.xp.to_dict()["xp_delta"] == 100
    assert level_ups == [(user.id, 2)]
    notes = Notification.query.filter_by(user_id=user.id, kind="level_up").all()
    assert len(notes) == 1
    assert json.loads(notes[0].payload) == {"level": 2}


def test_multi_level_jump_emits_once_with_final_level(level_ups):
    user = create_user("carol")
    quest = create_quest(xp_reward=1425)
    result = progress_service.complete_quest(user, quest)
    assert result.xp.level == 4
    assert level_ups == [(user.id, 4)]


def test_completing_twice_does_not_double_award(level_ups):
    user = create_user("dave")
    quest = create_quest(xp_reward=300)
    progress_service.complete_quest(user, quest)
    again = progress_service.complete_quest(user, quest)
    assert again.already_completed
    assert again.xp.total_xp == 300
    assert again.xp.to_dict()["xp_delta"] == 0
    assert user.total_xp == 300
    assert level_ups == [(user.id, 2)]


def test_completion_repairs_stale_cached_level(level_ups):
    user = create_user("erin", total_xp=0, level=5)
    result = progress_service.complete_quest(user, create_quest(xp_reward=50))
    assert result.xp.previous_level == 5
    assert result.xp.level == 1
    assert user.level == 1
    assert level_ups == []


def test_unpublished_quest_cannot_be_completed():
    user = create_user("frank")
    quest = create_quest(status="draft")
    with pytest.raises(ProgressError):
        progress_service.complete_quest(user, quest)
    assert user.total_xp == 0


def test_uncomplete_reverts_xp_and_level(level_ups):
    user = create_user("gina")
    quest = create_quest(xp_reward=800)
    progress_service.complete_quest(user, quest)
    assert user.level == 3
    result = progress_service.uncomplete_quest(user, quest)
    assert result.xp.total_xp == 0
    assert result.xp.level == 1
    assert (user.total_xp, user.level) == (0, 1)
    row = QuestProgress.query.filter_by(user_id=user.id, quest_id=quest.id).one()
    assert not row.completed and row.xp_earned == 0 and row.completed_at is None
    # Only the upward move produced an event
    assert level_ups == [(user.id, 3)]


def test_uncomplete_clamps_at_zero():
    user = create_user("hank")
    quest = create_quest(xp_reward=500)
    progress_service.complete_quest(user, quest)
    user.total_xp = 200
    db.session.commit()
    result = progress_service.uncomplete_quest(user, quest)
    assert result.xp.total_xp == 0


def test_uncomplete_requires_completion():
    user = create_user("iris")
    with pytest.raises(ProgressError):
        progress_service.uncomplete_quest(user, create_quest())


def test_award_xp(level_ups):
    user = create_user("jack", total_xp=700)
    change = progress_service.award_xp(user, 50)
    assert (change.previous_xp, change.total_xp) == (700, 750)
    assert change.level == 3
    assert level_ups == [(user.id, 3)]


@pytest.mark.parametrize("amount", [-1, 1.5, "10", True])
def test_award_xp_rejects_bad_amounts(amount):
    user = create_user("kate")
    with pytest.raises(InvalidArgument):
        progress_service.award_xp(user, amount)


def test_get_quest_missing():
    with pytest.raises(QuestNotFound):
        progress_service.get_quest(999)


def test_profile_progress_uses_stored_level():
    user = create_user("liam", total_xp=1000)
    data = progress_service.profile_progress(user)
    assert data["level"] == 3
    assert data["progress"]["current"] == 250
    assert data["progress"]["required"] == 675
    assert data["next_level_total"] == 1425


def test_profile_progress_clamps_corrupted_storage():
    user = create_user("mia", total_xp=0, level=1)
    user.total_xp = -40
    data = progress_service.profile_progress(user)
    assert data["total_xp"] == 0
    assert data["progress"]["percentage"] == 0.0


def test_leaderboard_orders_by_xp():
    a = create_user("low", total_xp=10)
    b = create_user("high", total_xp=5000)
    c = create_user("mid", total_xp=800)
    board = progress_service.leaderboard(2, current_user_id=c.id)
    assert [e["username"] for e in board["entries"]] == ["high", "mid"]
    assert board["entries"][0]["rank"] == 1
    assert board["your_rank"] == 2
    assert progress_service.leaderboard(2, current_user_id=a.id)["your_rank"] is None
    assert b.id in {e["id"] for e in board["entries"]}
