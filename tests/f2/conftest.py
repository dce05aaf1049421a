"""Fixtures for F2 tests - Best-score ledger, level gate and repositories."""

from pathlib import Path

import pytest

from levelup.config.app_config import config_from_dict
from levelup.core.ledger import BestScoreLedger, InMemoryProgressStore
from levelup.core.level_gate import LevelGate
from levelup.core.models import SubjectCategory
from levelup.db.database import init_db
from levelup.db.progress_repository import SqliteProgressStore


def course_categories(course_id: str) -> SubjectCategory:
    """Courses whose id starts with 'math' are Math; the rest Reading/Writing."""
    if course_id.startswith("math"):
        return SubjectCategory.MATH
    return SubjectCategory.READING_WRITING


@pytest.fixture
def category_of():
    return course_categories


@pytest.fixture
def scoring():
    return config_from_dict({}).scoring


@pytest.fixture
def db_path(tmp_path) -> Path:
    """Fresh SQLite database with the full schema."""
    return init_db(tmp_path / "db" / "levelup.db")


@pytest.fixture
def memory_ledger(scoring) -> BestScoreLedger:
    return BestScoreLedger(InMemoryProgressStore(), course_categories, scoring)


@pytest.fixture
def sqlite_ledger(db_path, scoring) -> BestScoreLedger:
    return BestScoreLedger(SqliteProgressStore(db_path), course_categories, scoring)


@pytest.fixture(params=["memory", "sqlite"])
def ledger(request, scoring, tmp_path) -> BestScoreLedger:
    """Ledger over each storage backend."""
    if request.param == "memory":
        store = InMemoryProgressStore()
    else:
        store = SqliteProgressStore(init_db(tmp_path / "db" / "levelup.db"))
    return BestScoreLedger(store, course_categories, scoring)


@pytest.fixture
def gate(ledger) -> LevelGate:
    return LevelGate(ledger)
