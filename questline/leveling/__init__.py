"""Public leveling package interface.

The module-level functions run on a default engine built from the default
curve (base 300 XP, multiplier 1.5). Build a :class:`LevelingEngine` with a
custom :class:`LevelingConfig` for anything else.
"""

from .config import DEFAULT_BASE_XP, DEFAULT_XP_MULTIPLIER, LevelingConfig
from .engine import LevelingEngine, LevelProgress
from .errors import InvalidArgument

DEFAULT_ENGINE = LevelingEngine()


def xp_required_for_level(level) -> int:
    return DEFAULT_ENGINE.xp_required_for_level(level)


def total_xp_for_level(target_level) -> int:
    return DEFAULT_ENGINE.total_xp_for_level(target_level)


def level_from_xp(total_xp) -> int:
    return DEFAULT_ENGINE.level_from_xp(total_xp)


def level_progress(total_xp, level) -> LevelProgress:
    return DEFAULT_ENGINE.level_progress(total_xp, level)


__all__ = [
    "DEFAULT_BASE_XP",
    "DEFAULT_ENGINE",
    "DEFAULT_XP_MULTIPLIER",
    "InvalidArgument",
    "LevelingConfig",
    "LevelingEngine",
    "LevelProgress",
    "level_from_xp",
    "level_progress",
    "total_xp_for_level",
    "xp_required_for_level",
]
