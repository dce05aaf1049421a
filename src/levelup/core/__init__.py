"""Core scoring and progression logic.

Modules:
- models: enums and records (tiers, categories, progress, submissions)
- score_mapper: percentage -> scaled score within a tier band
- ledger: best-score ledger with atomic ratchet updates
- level_gate: tier unlock state derived from the ledger
- grading_pipeline: grades one submission end to end
- aggregator: section and total scores across a student's courses
- history: submission history, review and section analysis
"""

__all__ = [
    "models",
    "errors",
    "score_mapper",
    "ledger",
    "level_gate",
    "grading_pipeline",
    "aggregator",
    "history",
]
