"""In-process level-up event emitter.

The completion handler emits after a commit that moved a user across a level
boundary; subscribers (the notification recorder, tests) react to it.
Callbacks run synchronously in subscription order on the emitting thread.
A callback that raises is logged and skipped; the XP change it reacts to is
already committed, so the error never reaches the caller of ``emit``.
"""

from __future__ import annotations

import threading
from typing import Callable, List

from questline.logging_utils import get_logger

LevelUpCallback = Callable[[int, int], None]

log = get_logger("events")


class LevelUpEmitter:
    """Observer list for ``(user_id, new_level)`` notifications."""

    def __init__(self):
        self._listeners: List[LevelUpCallback] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: LevelUpCallback) -> Callable[[], None]:
        """Register ``callback``; return a function that removes exactly this registration."""
        with self._lock:
            self._listeners.append(callback)

        def unsubscribe():
            with self._lock:
                try:
                    self._listeners.remove(callback)
                except ValueError:
                    pass  # already removed

        return unsubscribe

    def emit(self, user_id: int, level: int) -> int:
        """Call every subscriber; return how many raised."""
        with self._lock:
            listeners = list(self._listeners)
        failures = 0
        for callback in listeners:
            try:
                callback(user_id, level)
            except Exception as e:
                failures += 1
                log.error(
                    event="level_up_subscriber_failed",
                    user_id=user_id,
                    level=level,
                    callback=getattr(callback, "__qualname__", repr(callback)),
                    error=f"{type(e).__name__}: {e}",
                )
        return failures

    def __len__(self):
        with self._lock:
            return len(self._listeners)


level_up_event = LevelUpEmitter()

__all__ = ["LevelUpEmitter", "LevelUpCallback", "level_up_event"]
