"""Shared engine instance for the Web API."""

from __future__ import annotations

from levelup.config.app_config import load_app_config, resolve_db_path
from levelup.core.engine import ProgressionEngine
from levelup.db.database import init_db

_engine: ProgressionEngine | None = None


def get_engine() -> ProgressionEngine:
    """Get the global engine instance, creating the database on first use."""
    global _engine
    if _engine is None:
        config = load_app_config()
        db_path = init_db(resolve_db_path(config))
        _engine = ProgressionEngine.from_db(db_path, config)
    return _engine


def reset_engine() -> None:
    """Reset the engine (for testing)."""
    global _engine
    _engine = None
