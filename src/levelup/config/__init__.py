"""Configuration package for the progression engine."""

from levelup.config.app_config import (
    AppConfig,
    BaselineDefaults,
    ScoringConfig,
    TierRange,
    clear_config_cache,
    config_from_dict,
    get_tier_range,
    load_app_config,
    resolve_db_path,
)

__all__ = [
    "AppConfig",
    "BaselineDefaults",
    "ScoringConfig",
    "TierRange",
    "clear_config_cache",
    "config_from_dict",
    "get_tier_range",
    "load_app_config",
    "resolve_db_path",
]
