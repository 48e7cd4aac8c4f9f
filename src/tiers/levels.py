# ABOUTME: Classifies point totals into achievement tiers and numeric levels.
# ABOUTME: Pure functions; the tier table is always passed in by the caller.

from __future__ import annotations

import logging
import math
from typing import Optional, Sequence

from src.common.schemas import LevelInfo, LevelProgress, Tier
from src.common.stats import clamp

from .tiers import TierConfigError, validate_tiers

_LOGGER = logging.getLogger(__name__)

POINTS_PER_LEVEL_BASE = 20
LEVEL_SCALING_FACTOR = 1.1
MAX_LEVEL = 100


def classify_points(points: int, tiers: Sequence[Tier]) -> LevelInfo:
    """
    Resolve ``points`` to its tier and progress toward the next one.

    The current tier is the highest tier whose ``min_points`` does not exceed
    ``points``. Totals below the lowest tier resolve to the lowest tier with
    0% progress. The top tier is open-ended and always reports 100%.
    """
    validate_tiers(tiers)

    current_idx = 0
    for idx in range(len(tiers) - 1, -1, -1):
        if tiers[idx].min_points <= points:
            current_idx = idx
            break

    current = tiers[current_idx]
    next_tier: Optional[Tier] = tiers[current_idx + 1] if current_idx + 1 < len(tiers) else None

    if next_tier is None:
        return LevelInfo(
            current_tier=current,
            next_tier=None,
            progress_percentage=100.0,
            points_to_next=0,
            is_max_tier=True,
        )

    span = next_tier.min_points - current.min_points
    progress = (points - current.min_points) / span * 100
    return LevelInfo(
        current_tier=current,
        next_tier=next_tier,
        progress_percentage=clamp(progress, 0.0, 100.0),
        points_to_next=next_tier.min_points - points,
        is_max_tier=False,
    )


def points_for_next_level(level: int) -> int:
    """Points needed to advance from ``level`` to ``level + 1``."""
    return math.floor(POINTS_PER_LEVEL_BASE * LEVEL_SCALING_FACTOR ** (max(level, 1) - 1))


def total_points_for_level(level: int) -> int:
    """Cumulative points needed to reach ``level`` from level 1."""
    return sum(points_for_next_level(lvl) for lvl in range(1, level))


def calculate_level(total_points: int) -> int:
    level = 1
    remaining = total_points
    needed = points_for_next_level(level)
    while remaining >= needed and level < MAX_LEVEL:
        remaining -= needed
        level += 1
        needed = points_for_next_level(level)
    return level


def level_progress(total_points: int) -> LevelProgress:
    level = calculate_level(total_points)
    into_level = max(0, total_points - total_points_for_level(level))
    needed = points_for_next_level(level)
    if level >= MAX_LEVEL:
        progress = 1.0
    else:
        progress = into_level / needed
    _LOGGER.debug("points=%s level=%s progress=%.3f", total_points, level, progress)
    return LevelProgress(
        level=level,
        points_in_current_level=into_level,
        points_for_next_level=needed,
        level_progress=progress,
    )


def tier_for_level(level: int, tiers: Sequence[Tier]) -> Tier:
    """Tier whose ``level_range`` contains ``level``; the top tier otherwise."""
    validate_tiers(tiers)
    for tier in tiers:
        if tier.level_range is None:
            raise TierConfigError(f"Tier '{tier.name}' has no level_range.")
        low, high = tier.level_range
        if low <= level <= high:
            return tier
    return tiers[-1]
