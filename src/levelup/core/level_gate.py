"""Tier unlocking derived from the best-score ledger.

EASY is always open; every other tier opens once the tier before it has a
passed ledger record. Nothing here is cached or stored: each call reads the
ledger, so a late higher score shows up in gating on the next read.
"""

from __future__ import annotations

from levelup.core.ledger import BestScoreLedger
from levelup.core.models import ORDERED_TIERS, DifficultyTier, LevelStatus, parse_tier


class LevelGate:
    """Answers unlock questions for one ledger."""

    def __init__(self, ledger: BestScoreLedger):
        self.ledger = ledger

    def is_unlocked(self, student_id: str, course_id: str, tier: DifficultyTier | str) -> bool:
        """Whether the student may attempt ``tier`` in the course."""
        prerequisite = parse_tier(tier).prerequisite
        if prerequisite is None:
            return True
        record = self.ledger.read(student_id, course_id, prerequisite)
        return record is not None and record.passed

    def level_states(self, student_id: str, course_id: str) -> list[LevelStatus]:
        """Unlock/pass state of every tier, from a single ledger read."""
        by_tier = {r.tier: r for r in self.ledger.get_progress(student_id, course_id)}

        states: list[LevelStatus] = []
        for tier in ORDERED_TIERS:
            prerequisite = tier.prerequisite
            if prerequisite is None:
                unlocked = True
            else:
                before = by_tier.get(prerequisite)
                unlocked = before is not None and before.passed

            record = by_tier.get(tier)
            states.append(
                LevelStatus(
                    tier=tier,
                    unlocked=unlocked,
                    passed=record.passed if record else False,
                    best_percentage=record.best_percentage if record else None,
                    best_scaled=record.best_scaled if record else None,
                )
            )
        return states

    def unlocked_tiers(self, student_id: str, course_id: str) -> list[DifficultyTier]:
        return [s.tier for s in self.level_states(student_id, course_id) if s.unlocked]

    def is_course_completed(self, student_id: str, course_id: str) -> bool:
        """True once every tier of the course has been passed."""
        return all(s.passed for s in self.level_states(student_id, course_id))
