# ABOUTME: Declares the SMILE achievement tier table and validates tier configurations.
# ABOUTME: Builds Tier records from YAML mappings so deployments can supply their own bands.

from __future__ import annotations

from typing import Any, Iterable, Mapping, Sequence, Tuple

from src.common.schemas import Tier


class TierConfigError(ValueError):
    """Raised when a tier list cannot be used for classification."""


SMILE_TIERS: Tuple[Tier, ...] = (
    Tier("SMILE Starter", 0, 4999, "#8B5CF6", "✨", "Starting your SMILE journey", (1, 10)),
    Tier("SMILE Learner", 5000, 9999, "#3B82F6", "📚", "Building knowledge foundations", (11, 20)),
    Tier("SMILE Apprentice", 10000, 24999, "#10B981", "🌱", "Growing inquiry skills", (21, 35)),
    Tier("SMILE Maker", 25000, 49999, "#F59E0B", "🛠️", "Creating meaningful questions", (36, 55)),
    Tier("SMILE Trainer", 50000, 99999, "#EF4444", "👨‍🏫", "Teaching and mentoring others", (56, 80)),
    Tier("SMILE Master", 100000, None, "#FFD700", "🏆", "Mastery of inquiry learning", (81, 100)),
)


def validate_tiers(tiers: Sequence[Tier]) -> None:
    """Require a non-empty list sorted strictly ascending by ``min_points``."""
    if not tiers:
        raise TierConfigError("Tier list is empty; at least one tier is required.")
    for previous, current in zip(tiers, tiers[1:]):
        if current.min_points <= previous.min_points:
            raise TierConfigError(
                f"Tiers must be sorted by ascending min_points: "
                f"'{current.name}' ({current.min_points}) follows '{previous.name}' ({previous.min_points})."
            )


def load_tiers(entries: Iterable[Mapping[str, Any]]) -> Tuple[Tier, ...]:
    """Build and validate tiers from mappings shaped like the YAML ``tiers`` section."""
    tiers = []
    for idx, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            raise TierConfigError(f"Tier entry #{idx} must be a mapping, got {type(entry).__name__}.")
        try:
            level_range = entry.get("level_range")
            tiers.append(
                Tier(
                    name=str(entry["name"]),
                    min_points=int(entry["min_points"]),
                    max_points=None if entry.get("max_points") is None else int(entry["max_points"]),
                    color=str(entry.get("color", "#6B7280")),
                    icon=str(entry.get("icon", "")),
                    description=str(entry.get("description", "")),
                    level_range=tuple(int(v) for v in level_range) if level_range else None,
                )
            )
        except KeyError as exc:
            raise TierConfigError(f"Tier entry #{idx} is missing required field {exc}.") from exc
        except (TypeError, ValueError) as exc:
            raise TierConfigError(f"Tier entry #{idx} has an invalid value: {exc}") from exc

    result = tuple(tiers)
    validate_tiers(result)
    return result
