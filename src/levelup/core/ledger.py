"""Best-score ledger.

Keeps, per (student, course, tier), the highest percentage ever recorded and
the scaled score it maps to. Updates are a ratchet: a retake can raise the
stored best but never lower it, and ``passed`` follows whichever percentage
ends up stored.

The compare-and-write happens inside the store (``write_progress``), never
as a read here followed by a write, so two concurrent retakes cannot
overwrite a higher score with a lower one.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Protocol

import structlog

from levelup.config.app_config import ScoringConfig, load_app_config
from levelup.core.errors import LedgerUpdateError
from levelup.core.models import (
    ORDERED_TIERS,
    DifficultyTier,
    ProgressRecord,
    SubjectCategory,
    parse_tier,
)
from levelup.core.score_mapper import clamp_percentage, map_score

logger = structlog.get_logger(__name__)

CategoryResolver = Callable[[str], SubjectCategory]


class ProgressStore(Protocol):
    """Ledger storage.

    ``write_progress`` must be a conditional write: store the candidate only
    if its percentage is strictly higher than the stored one (or nothing is
    stored), atomically per key, and return whatever is stored afterwards.
    """

    def read_progress(
        self, student_id: str, course_id: str, tier: DifficultyTier
    ) -> ProgressRecord | None: ...

    def write_progress(self, record: ProgressRecord) -> ProgressRecord: ...

    def list_progress(
        self, student_id: str, course_id: str | None = None
    ) -> list[ProgressRecord]: ...


class InMemoryProgressStore:
    """Process-local ledger storage with one lock per key."""

    def __init__(self) -> None:
        self._records: dict[tuple[str, str, DifficultyTier], ProgressRecord] = {}
        self._locks: dict[tuple[str, str, DifficultyTier], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, key: tuple[str, str, DifficultyTier]) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def read_progress(
        self, student_id: str, course_id: str, tier: DifficultyTier
    ) -> ProgressRecord | None:
        return self._records.get((student_id, course_id, tier))

    def write_progress(self, record: ProgressRecord) -> ProgressRecord:
        with self._lock_for(record.key):
            stored = self._records.get(record.key)
            if stored is None or record.best_percentage > stored.best_percentage:
                self._records[record.key] = record
                return record
            return stored

    def list_progress(
        self, student_id: str, course_id: str | None = None
    ) -> list[ProgressRecord]:
        records = [
            r
            for r in list(self._records.values())
            if r.student_id == student_id and (course_id is None or r.course_id == course_id)
        ]
        records.sort(key=lambda r: (r.course_id, ORDERED_TIERS.index(r.tier)))
        return records


class BestScoreLedger:
    """Monotonic best-score bookkeeping on top of a ProgressStore."""

    def __init__(
        self,
        store: ProgressStore,
        category_of: CategoryResolver,
        scoring: ScoringConfig | None = None,
    ):
        self.store = store
        self.category_of = category_of
        self.scoring = scoring or load_app_config().scoring

    def update_if_better(
        self,
        student_id: str,
        course_id: str,
        tier: DifficultyTier | str,
        new_percentage: float,
    ) -> ProgressRecord:
        """Record a new result if it beats the stored best.

        Args:
            student_id: Student identifier
            course_id: Course identifier
            tier: Tier the result was earned at
            new_percentage: Percentage correct of the new attempt

        Returns:
            The stored record after the update (unchanged if not better)

        Raises:
            LedgerUpdateError: If the store cannot be written
        """
        resolved_tier = parse_tier(tier)
        percentage = clamp_percentage(new_percentage)

        try:
            category = self.category_of(course_id)
            candidate = ProgressRecord(
                student_id=student_id,
                course_id=course_id,
                tier=resolved_tier,
                best_percentage=percentage,
                best_scaled=map_score(percentage, resolved_tier, category, self.scoring),
                passed=percentage >= self.scoring.pass_threshold,
                updated_at=datetime.now(timezone.utc).isoformat(),
            )
            stored = self.store.write_progress(candidate)
        except Exception as e:
            logger.warning(
                "ledger_update_failed",
                student_id=student_id,
                course_id=course_id,
                tier=resolved_tier.value,
                error=str(e),
            )
            raise LedgerUpdateError(
                f"Could not update best score for {student_id}/{course_id}/{resolved_tier.value}: {e}"
            ) from e

        if stored == candidate:
            logger.info(
                "ledger_raised",
                student_id=student_id,
                course_id=course_id,
                tier=resolved_tier.value,
                best_percentage=stored.best_percentage,
                best_scaled=stored.best_scaled,
                passed=stored.passed,
            )
        else:
            logger.debug(
                "ledger_kept_previous_best",
                student_id=student_id,
                course_id=course_id,
                tier=resolved_tier.value,
                attempt_percentage=percentage,
                best_percentage=stored.best_percentage,
            )

        return stored

    def read(
        self, student_id: str, course_id: str, tier: DifficultyTier | str
    ) -> ProgressRecord | None:
        """Current best for one tier, or None if never attempted."""
        return self.store.read_progress(student_id, course_id, parse_tier(tier))

    def get_progress(self, student_id: str, course_id: str) -> list[ProgressRecord]:
        """All recorded tiers for a course, EASY to HARD."""
        return self.store.list_progress(student_id, course_id)

    def all_progress(self, student_id: str) -> list[ProgressRecord]:
        """Every ledger record of a student across all courses."""
        return self.store.list_progress(student_id, None)
