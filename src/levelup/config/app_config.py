"""Application configuration loader.

Loads scoring configuration from data/config/app_config_v1.yaml, merged over
built-in defaults. Missing keys fall back to the defaults, so a file only has
to name what it changes.

Usage:
    from levelup.config.app_config import load_app_config, get_tier_range

    config = load_app_config()
    rng = get_tier_range("MATH", "EASY")
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

from levelup.core.errors import ConfigurationError

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

CATEGORY_KEYS = ("MATH", "READING_WRITING")
TIER_KEYS = ("EASY", "MEDIUM", "HARD")


@dataclass(frozen=True)
class TierRange:
    """Inclusive scaled-score band for one (category, tier) pair."""

    min: int
    max: int

    def to_dict(self) -> dict[str, int]:
        """Convert to dictionary for JSON serialization."""
        return {"min": self.min, "max": self.max}


@dataclass
class ScoringConfig:
    """Scaled-score bands and thresholds."""

    pass_threshold: float = 40.0
    section_max: int = 800
    total_max: int = 1600
    ranges: dict[str, dict[str, TierRange]] = field(default_factory=dict)

    def range_for(self, category: str, tier: str) -> TierRange:
        """Look up the band for a category/tier pair by enum name."""
        return self.ranges[category][tier]


@dataclass
class BaselineDefaults:
    """Diagnostic values assumed when a student has not supplied them."""

    math_score: int = 400
    rw_score: int = 400
    target_score: int = 1500


@dataclass
class AppConfig:
    """Application-wide configuration."""

    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    baseline: BaselineDefaults = field(default_factory=BaselineDefaults)
    paths: dict[str, str] = field(default_factory=dict)


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "scoring": {
            "pass_threshold": 40,
            "section_max": 800,
            "total_max": 1600,
            "ranges": {
                "MATH": {
                    "EASY": {"min": 200, "max": 500},
                    "MEDIUM": {"min": 350, "max": 680},
                    "HARD": {"min": 550, "max": 800},
                },
                "READING_WRITING": {
                    "EASY": {"min": 200, "max": 520},
                    "MEDIUM": {"min": 350, "max": 700},
                    "HARD": {"min": 550, "max": 800},
                },
            },
        },
        "baseline": {
            "math_score": 400,
            "rw_score": 400,
            "target_score": 1500,
        },
        "paths": {
            "db_path": "db/levelup.db",
        },
    }


def _merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


def _parse_ranges(data: dict[str, Any]) -> dict[str, dict[str, TierRange]]:
    """Parse and validate the category -> tier -> band table."""
    ranges: dict[str, dict[str, TierRange]] = {}
    for category in CATEGORY_KEYS:
        tiers = data.get(category, {})
        ranges[category] = {}
        for tier in TIER_KEYS:
            band = tiers.get(tier)
            if not band:
                raise ConfigurationError(f"Missing score range for {category}/{tier}")
            try:
                low = int(band["min"])
                high = int(band["max"])
            except (KeyError, TypeError, ValueError) as e:
                raise ConfigurationError(
                    f"Invalid score range for {category}/{tier}: {band!r}"
                ) from e
            if low > high:
                raise ConfigurationError(
                    f"Score range for {category}/{tier} has min {low} > max {high}"
                )
            ranges[category][tier] = TierRange(min=low, max=high)
    return ranges


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    scoring_data = data.get("scoring", {})
    scoring = ScoringConfig(
        pass_threshold=float(scoring_data.get("pass_threshold", 40)),
        section_max=int(scoring_data.get("section_max", 800)),
        total_max=int(scoring_data.get("total_max", 1600)),
        ranges=_parse_ranges(scoring_data.get("ranges", {})),
    )

    baseline_data = data.get("baseline", {})
    baseline = BaselineDefaults(
        math_score=int(baseline_data.get("math_score", 400)),
        rw_score=int(baseline_data.get("rw_score", 400)),
        target_score=int(baseline_data.get("target_score", 1500)),
    )

    paths = data.get("paths", {})

    return AppConfig(scoring=scoring, baseline=baseline, paths=paths)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config, falling back to defaults.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.

    Raises:
        ConfigurationError: If the file defines an invalid score range.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data = _get_defaults()

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        file_data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
        data = _merge(data, file_data)
    else:
        logger.info("using_default_config")

    _cached_config = _parse_config(data)
    return _cached_config


def config_from_dict(overrides: dict[str, Any]) -> AppConfig:
    """Build a config from defaults plus in-memory overrides (no caching)."""
    return _parse_config(_merge(_get_defaults(), overrides))


def get_tier_range(category: str, tier: str) -> TierRange:
    """Get the configured band for a category/tier pair by enum name."""
    return load_app_config().scoring.range_for(category, tier)


def resolve_db_path(config: AppConfig | None = None) -> Path:
    """Database file for the configured paths.

    Relative to $LEVELUP_DATA_DIR when it is set, else to the working
    directory.
    """
    config = config or load_app_config()
    db_path = Path(config.paths.get("db_path", "db/levelup.db"))
    data_dir = os.environ.get("LEVELUP_DATA_DIR")
    if data_dir and not db_path.is_absolute():
        return Path(data_dir) / db_path
    return db_path


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
