"""SQLite database connection and schema management.

Provides connection management and schema initialization for the progression
engine.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

import structlog

logger = structlog.get_logger(__name__)

# Default database location
DEFAULT_DB_PATH = Path("db/levelup.db")

# Seconds a writer waits on a locked database before failing
BUSY_TIMEOUT = 30.0

# Current database (module-level for simplicity in CLI context)
_db_path: Path | None = None


def init_db(db_path: Path | None = None) -> Path:
    """Initialize database with schema.

    Creates the database file and all required tables if they don't exist,
    and makes it the default for later get_db() calls.

    Args:
        db_path: Path to database file. Defaults to db/levelup.db

    Returns:
        Path of the initialized database
    """
    global _db_path
    _db_path = db_path or DEFAULT_DB_PATH

    with get_db() as conn:
        _create_schema(conn)

    logger.info("database.initialized", path=str(_db_path))
    return _db_path


def current_db_path() -> Path:
    """Database used when no explicit path is passed."""
    return _db_path or DEFAULT_DB_PATH


@contextmanager
def get_db(db_path: Path | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Get database connection as context manager.

    Commits on success, rolls back on any exception.

    Yields:
        SQLite connection with row factory set to sqlite3.Row

    Example:
        with get_db() as conn:
            rows = conn.execute("SELECT * FROM progress").fetchall()
    """
    path = db_path or current_db_path()

    # Ensure directory exists
    path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(path, timeout=BUSY_TIMEOUT)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")

    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _create_schema(conn: sqlite3.Connection) -> None:
    """Create database schema.

    Uses IF NOT EXISTS for idempotency.
    """
    conn.executescript(
        """
        -- Course metadata the engine needs (category for scoring)
        CREATE TABLE IF NOT EXISTS courses (
            course_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            tutor_type TEXT,
            category TEXT CHECK(category IS NULL OR category IN ('math', 'reading_writing'))
        );

        -- Question bank as served to quizzes (authored elsewhere)
        CREATE TABLE IF NOT EXISTS questions (
            question_id TEXT PRIMARY KEY,
            course_id TEXT NOT NULL,
            tier TEXT NOT NULL CHECK(tier IN ('easy', 'medium', 'hard')),
            position INTEGER NOT NULL DEFAULT 0,
            type TEXT NOT NULL DEFAULT 'multiple_choice',
            prompt TEXT NOT NULL,
            options TEXT,
            correct_answer TEXT NOT NULL,
            explanation TEXT,
            section TEXT
        );

        -- Best result per (student, course, tier); only ever ratchets up
        CREATE TABLE IF NOT EXISTS progress (
            student_id TEXT NOT NULL,
            course_id TEXT NOT NULL,
            tier TEXT NOT NULL CHECK(tier IN ('easy', 'medium', 'hard')),
            best_percentage REAL NOT NULL,
            best_scaled INTEGER NOT NULL,
            passed INTEGER NOT NULL DEFAULT 0,
            updated_at TEXT NOT NULL,
            PRIMARY KEY (student_id, course_id, tier)
        );

        -- Append-only audit trail of graded attempts
        CREATE TABLE IF NOT EXISTS submissions (
            submission_id TEXT PRIMARY KEY,
            student_id TEXT NOT NULL,
            course_id TEXT NOT NULL,
            tier TEXT NOT NULL,
            raw_score INTEGER NOT NULL,
            total_questions INTEGER NOT NULL,
            percentage REAL NOT NULL,
            scaled_score INTEGER NOT NULL,
            sections TEXT NOT NULL DEFAULT '{}',
            responses TEXT NOT NULL DEFAULT '[]',
            duration_seconds INTEGER,
            submitted_at TEXT NOT NULL,
            degraded INTEGER NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS diagnostic_baselines (
            student_id TEXT PRIMARY KEY,
            math_score INTEGER,
            rw_score INTEGER,
            target_score INTEGER,
            updated_at TEXT NOT NULL DEFAULT (datetime('now'))
        );

        -- Indices
        CREATE INDEX IF NOT EXISTS idx_questions_course_tier ON questions(course_id, tier, position);
        CREATE INDEX IF NOT EXISTS idx_progress_student ON progress(student_id);
        CREATE INDEX IF NOT EXISTS idx_submissions_student_course ON submissions(student_id, course_id, submitted_at);
        """
    )
