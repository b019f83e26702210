"""Error types raised by the leveling engine."""


class InvalidArgument(ValueError):
    """A leveling operation (or curve configuration) received an out-of-domain value.

    Covers non-integer input where an integer is required, ``level < 1``,
    ``total_xp < 0`` and curve constants that would not produce strictly
    increasing level costs.
    """


__all__ = ["InvalidArgument"]
