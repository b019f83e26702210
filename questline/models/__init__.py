# Model package init
from .models import Notification, Quest, QuestProgress, User  # noqa: F401 re-export

__all__ = [
    "Notification",
    "Quest",
    "QuestProgress",
    "User",
]
