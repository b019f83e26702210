"""Experience point (XP) and leveling engine.

Converts accumulated XP into a level, computes per-level thresholds and
derives progress-bar statistics. Everything here is pure: no I/O, no logging,
no shared mutable state, so an engine instance can be used from any number of
request threads at once.

Cost curve:
    cost(level) = round_half_up(base_xp * xp_multiplier ** (level - 1))

The product is evaluated with exact rational arithmetic and rounded once, so
large levels neither overflow nor drift. Cumulative totals are always sums of
the already-rounded per-level costs.

Callers that persist ``total_xp`` and ``level`` must recompute the level with
:meth:`LevelingEngine.level_from_xp` whenever XP changes and store both fields
together.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import asdict, dataclass
from fractions import Fraction
from itertools import islice
from typing import Iterator, List, Optional

from .config import LevelingConfig
from .errors import InvalidArgument


def _require_int(value, name: str, minimum: int) -> int:
    """Validate an integer argument (integer-valued floats are accepted)."""
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if isinstance(value, numbers.Integral):
        value = int(value)
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    else:
        raise InvalidArgument(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise InvalidArgument(f"{name} must be >= {minimum}, got {value}")
    return value


def _as_fraction(value) -> Fraction:
    # Floats go through their shortest repr so 1.1 means 11/10, not the binary approximation.
    if isinstance(value, float):
        return Fraction(repr(value))
    return Fraction(value)


def _round_half_up(value: Fraction) -> int:
    return math.floor(value + Fraction(1, 2))


def _log(value: Fraction) -> float:
    # math.log accepts arbitrarily large ints; a Fraction would be squeezed through float first.
    return math.log(value.numerator) - math.log(value.denominator)


@dataclass(frozen=True)
class LevelProgress:
    """Where a total-XP value sits inside its current level."""

    current: int
    required: int
    percentage: float

    def to_dict(self) -> dict:
        return asdict(self)


class LevelingEngine:
    """Deterministic mapping between accumulated XP and level progression."""

    def __init__(self, config: Optional[LevelingConfig] = None):
        self.config = config or LevelingConfig()
        self._base = _as_fraction(self.config.base_xp)
        self._multiplier = _as_fraction(self.config.xp_multiplier)
        self._log_multiplier = _log(self._multiplier)

    def __repr__(self):
        return f"LevelingEngine(base_xp={self.config.base_xp!r}, xp_multiplier={self.config.xp_multiplier!r})"

    def _level_costs(self) -> Iterator[int]:
        """Yield the rounded cost of level 1, 2, 3, ... without end."""
        exact = self._base
        while True:
            yield _round_half_up(exact)
            exact *= self._multiplier

    def xp_required_for_level(self, level) -> int:
        """Return the XP needed to clear ``level`` and advance to ``level + 1``.

        Raises:
            InvalidArgument: ``level`` is not an integer or is < 1.
        """
        level = _require_int(level, "level", 1)
        return _round_half_up(self._base * self._multiplier ** (level - 1))

    def total_xp_for_level(self, target_level) -> int:
        """Return the cumulative XP at which ``target_level`` starts.

        Sum of the rounded costs of levels ``1 .. target_level - 1``;
        ``total_xp_for_level(1) == 0``.

        Raises:
            InvalidArgument: ``target_level`` is not an integer or is < 1.
        """
        target_level = _require_int(target_level, "target_level", 1)
        return sum(islice(self._level_costs(), target_level - 1))

    def level_from_xp_scan(self, total_xp) -> int:
        """Reference level search: walk up from level 1 until the next threshold exceeds ``total_xp``.

        O(level). Kept as the ground truth that :meth:`level_from_xp` is tested against.
        """
        total_xp = _require_int(total_xp, "total_xp", 0)
        level = 1
        reached = 0
        for cost in self._level_costs():
            if total_xp < reached + cost:
                return level
            reached += cost
            level += 1
        raise AssertionError("unreachable: level costs are unbounded")  # pragma: no cover

    def _estimate_level(self, total_xp: int) -> int:
        """Closed-form guess from the unrounded geometric series.

        Unrounded total to reach level L is base * (m**(L-1) - 1) / (m - 1);
        solving for L gives the estimate. Rounding can move the true answer
        by a level or so in either direction.
        """
        if total_xp <= 0:
            return 1
        ratio = Fraction(total_xp) * (self._multiplier - 1) / self._base + 1
        return 1 + int(_log(ratio) / self._log_multiplier)

    def level_from_xp(self, total_xp) -> int:
        """Return the level implied by ``total_xp``.

        The result is the unique level with
        ``total_xp_for_level(level) <= total_xp < total_xp_for_level(level + 1)``.
        Starts from a closed-form estimate and corrects it; both correction
        loops are bounded (level stays >= 1 going down, totals strictly
        increase going up).

        Raises:
            InvalidArgument: ``total_xp`` is not an integer or is negative.
        """
        total_xp = _require_int(total_xp, "total_xp", 0)
        level = self._estimate_level(total_xp)
        reached = self.total_xp_for_level(level)
        while level > 1 and reached > total_xp:
            level -= 1
            reached -= self.xp_required_for_level(level)
        cost = self.xp_required_for_level(level)
        while reached + cost <= total_xp:
            reached += cost
            level += 1
            cost = self.xp_required_for_level(level)
        return level

    def level_progress(self, total_xp, level) -> LevelProgress:
        """Progress breakdown of ``total_xp`` inside ``level``.

        ``level`` is trusted rather than derived from ``total_xp`` so a cached
        level can be rendered without recomputation. When the two disagree the
        result is still sane: ``current`` is clamped at 0 and ``percentage``
        to [0, 100].

        Raises:
            InvalidArgument: either argument is not an integer, ``total_xp < 0`` or ``level < 1``.
        """
        total_xp = _require_int(total_xp, "total_xp", 0)
        level = _require_int(level, "level", 1)
        earned = total_xp - self.total_xp_for_level(level)
        required = self.xp_required_for_level(level)
        # Clamp before dividing; a wildly stale level would otherwise overflow float division.
        if earned <= 0:
            percentage = 0.0
        elif earned >= required:
            percentage = 100.0
        else:
            percentage = earned / required * 100
        return LevelProgress(current=max(0, earned), required=required, percentage=percentage)

    def thresholds(self, count) -> List[dict]:
        """Threshold table for levels ``1 .. count`` (used by the config API and CLI)."""
        count = _require_int(count, "count", 1)
        rows = []
        reached = 0
        for level, cost in enumerate(islice(self._level_costs(), count), start=1):
            rows.append({"level": level, "total_xp": reached, "xp_required": cost})
            reached += cost
        return rows


__all__ = ["LevelingEngine", "LevelProgress"]
