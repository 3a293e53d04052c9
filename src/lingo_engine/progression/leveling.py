"""XP to level mapping.

Levels grow quadratically: reaching level L takes ``L**2 * 100`` XP, so
each level costs more than the previous one.
"""

import math

XP_PER_LEVEL_UNIT = 100


def _sanitize(value: float) -> float:
    """Treat negative, NaN, infinite or non-numeric input as 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number) or number < 0:
        return 0.0
    return number


def level_for_xp(total_xp: float) -> int:
    """Level reached with `total_xp`, never below 1."""
    xp = _sanitize(total_xp)
    return max(1, math.floor(math.sqrt(xp / XP_PER_LEVEL_UNIT)))


def xp_threshold_for_level(level: int) -> int:
    """XP at which `level` starts."""
    lvl = int(_sanitize(level))
    return lvl * lvl * XP_PER_LEVEL_UNIT


def xp_for_next_level(level: int) -> int:
    """XP span between `level` and the next one."""
    return xp_threshold_for_level(int(_sanitize(level)) + 1) - xp_threshold_for_level(level)


def level_progress_percent(total_xp: float, level: int) -> float:
    """Progress through `level` as a percentage clamped to [0, 100].

    Args:
        total_xp: Accumulated XP.
        level: Level the progress is measured within.

    Returns:
        0 at the level's threshold, approaching 100 just below the next one.
    """
    xp = _sanitize(total_xp)
    lvl = int(_sanitize(level))
    start = xp_threshold_for_level(lvl)
    span = xp_threshold_for_level(lvl + 1) - start
    if span <= 0:
        return 0.0
    return min(100.0, max(0.0, (xp - start) / span * 100))
