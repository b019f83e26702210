from datetime import datetime, timedelta

import pytest

from questline.services.streak_service import next_streak, update_streak
from tests.factories import create_user

NOW = datetime(2026, 3, 10, 0, 5)


@pytest.mark.parametrize(
    "current, last_at, expected",
    [
        (0, None, (1, "started")),
        (4, datetime(2026, 3, 10, 23, 0), (4, "unchanged")),  # later the same day
        (4, datetime(2026, 3, 10, 0, 1), (4, "unchanged")),
        (4, datetime(2026, 3, 9, 23, 59), (5, "continued")),  # minutes ago, but yesterday
        (4, datetime(2026, 3, 8, 0, 10), (1, "reset")),
        (4, datetime(2026, 3, 12, 9, 0), (4, "unchanged")),  # clock skew
        (None, datetime(2026, 3, 9, 12, 0), (1, "continued")),
    ],
)
def test_next_streak(current, last_at, expected):
    assert next_streak(current, last_at, NOW) == expected


def test_update_streak_persists():
    user = create_user("streaker")
    first = update_streak(user, NOW)
    assert first.to_dict() == {"streak_days": 1, "status": "started", "updated": True}
    assert user.last_streak_at == NOW
    same_day = update_streak(user, NOW + timedelta(hours=3))
    assert not same_day.updated
    assert user.last_streak_at == NOW
    next_day = update_streak(user, NOW + timedelta(days=1))
    assert next_day.streak_days == 2
    assert user.streak_days == 2


def test_streak_api(auth_client):
    r = auth_client.post("/api/streak/update")
    assert r.status_code == 200
    data = r.get_json()
    assert data["streak_days"] == 1
    assert data["message"] == "Streak updated"
    again = auth_client.post("/api/streak/update").get_json()
    assert again["updated"] is False
    assert again["message"] == "Streak already updated today"
