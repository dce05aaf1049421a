"""Score mapping: raw percentage -> scaled score within a tier band.

The same percentage earns a different scaled score depending on the tier it
was earned at: a perfect Easy quiz tops out below a perfect Hard one.
"""

from __future__ import annotations

import math
from typing import Any

from levelup.config.app_config import ScoringConfig, TierRange, load_app_config
from levelup.core.models import DifficultyTier, SubjectCategory, parse_category, parse_tier


def clamp_percentage(percentage: Any) -> float:
    """Clamp to [0, 100]. None, NaN and non-numeric values become 0."""
    if percentage is None or isinstance(percentage, bool):
        return 0.0
    try:
        value = float(percentage)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return max(0.0, min(100.0, value))


def round_half_up(value: float) -> int:
    """Round .5 upwards (2.5 -> 3), unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))


def resolve_range(
    tier: Any,
    category: Any,
    scoring: ScoringConfig | None = None,
) -> TierRange:
    """Band for a tier/category pair, applying the enum fallbacks."""
    scoring = scoring or load_app_config().scoring
    resolved_tier: DifficultyTier = parse_tier(tier)
    resolved_category: SubjectCategory = parse_category(category)
    return scoring.range_for(resolved_category.name, resolved_tier.name)


def map_score(
    percentage: Any,
    tier: Any,
    category: Any,
    scoring: ScoringConfig | None = None,
) -> int:
    """Map a percentage onto the scaled band of a tier and category.

    Args:
        percentage: Percentage correct; clamped to [0, 100]
        tier: DifficultyTier (or name); unknown values use MEDIUM's band
        category: SubjectCategory (or alias); unknown values use READING_WRITING
        scoring: Scoring config; defaults to the loaded app config

    Returns:
        Integer scaled score within the resolved [min, max] band
    """
    band = resolve_range(tier, category, scoring)
    ratio = clamp_percentage(percentage) / 100
    return round_half_up(band.min + ratio * (band.max - band.min))
