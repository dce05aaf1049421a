"""Database module for SQLite persistence.

Provides:
- Database connection management
- Schema initialization
- Repositories for progress (ledger), submissions, courses, questions
  and diagnostic baselines
"""

from levelup.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
