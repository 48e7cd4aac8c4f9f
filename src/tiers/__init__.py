# ABOUTME: Exposes the tier engine entrypoints.
# ABOUTME: Groups the SMILE tier table, tier validation, and point/level classification.

from .tiers import SMILE_TIERS, TierConfigError, load_tiers, validate_tiers
from .levels import (
    calculate_level,
    classify_points,
    level_progress,
    points_for_next_level,
    tier_for_level,
    total_points_for_level,
)

__all__ = [
    "SMILE_TIERS",
    "TierConfigError",
    "load_tiers",
    "validate_tiers",
    "calculate_level",
    "classify_points",
    "level_progress",
    "points_for_next_level",
    "tier_for_level",
    "total_points_for_level",
]
