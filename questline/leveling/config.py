from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Mapping

from .errors import InvalidArgument

DEFAULT_BASE_XP = 300
DEFAULT_XP_MULTIPLIER = 1.5


def _coerce_number(name: str, raw: Any):
    """Turn a config/env value into an int or float, rejecting garbage."""
    if isinstance(raw, str):
        text = raw.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return float(text)
        except ValueError:
            raise InvalidArgument(f"{name} must be numeric, got {raw!r}") from None
    return raw


@dataclass(frozen=True)
class LevelingConfig:
    """Constants of the geometric XP curve.

    Level ``n`` costs ``base_xp * xp_multiplier ** (n - 1)`` XP (rounded once,
    half up). The curve is validated here so an engine can never be built on
    top of constants that break termination of the level search.
    """

    base_xp: float = DEFAULT_BASE_XP
    xp_multiplier: float = DEFAULT_XP_MULTIPLIER

    def __post_init__(self):
        for name in ("base_xp", "xp_multiplier"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Real):
                raise InvalidArgument(f"{name} must be a real number, got {value!r}")
            if not math.isfinite(value):
                raise InvalidArgument(f"{name} must be finite, got {value!r}")
        if self.base_xp <= 0:
            raise InvalidArgument(f"base_xp must be > 0, got {self.base_xp!r}")
        if self.xp_multiplier <= 1:
            raise InvalidArgument(f"xp_multiplier must be > 1, got {self.xp_multiplier!r}")
        # Consecutive unrounded costs must differ by at least 1 XP, otherwise
        # rounding can make two neighbouring levels cost the same.
        if self.base_xp * (self.xp_multiplier - 1) < 1:
            raise InvalidArgument(
                "base_xp * (xp_multiplier - 1) must be >= 1, got "
                f"base_xp={self.base_xp!r} xp_multiplier={self.xp_multiplier!r}"
            )

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any]) -> "LevelingConfig":
        """Build a config from ``LEVELING_BASE_XP`` / ``LEVELING_XP_MULTIPLIER`` keys.

        Works with ``os.environ`` and Flask's ``app.config`` alike; missing keys
        fall back to the defaults.
        """
        base = mapping.get("LEVELING_BASE_XP")
        multiplier = mapping.get("LEVELING_XP_MULTIPLIER")
        return cls(
            base_xp=DEFAULT_BASE_XP if base in (None, "") else _coerce_number("LEVELING_BASE_XP", base),
            xp_multiplier=(
                DEFAULT_XP_MULTIPLIER
                if multiplier in (None, "")
                else _coerce_number("LEVELING_XP_MULTIPLIER", multiplier)
            ),
        )

    def to_dict(self) -> dict:
        return {"base_xp": self.base_xp, "xp_multiplier": self.xp_multiplier}


__all__ = ["LevelingConfig", "DEFAULT_BASE_XP", "DEFAULT_XP_MULTIPLIER"]
