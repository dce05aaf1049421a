"""Exception types for the progression engine.

Only InvalidSubmissionError and SubmissionPersistenceError ever reach the
caller of a submit. LedgerUpdateError is recovered inside the grading
pipeline and surfaces as a warning on the result.
"""


class LevelUpError(Exception):
    """Base class for engine errors."""

    pass


class ConfigurationError(LevelUpError):
    """Configuration file defines an unusable value."""

    pass


class InvalidSubmissionError(LevelUpError):
    """Submission shape is malformed; nothing was graded or persisted."""

    pass


class SubmissionPersistenceError(LevelUpError):
    """The submission record could not be saved. The whole submit failed."""

    pass


class LedgerUpdateError(LevelUpError):
    """The best-score ledger could not be read or written."""

    pass


class SubmissionNotFoundError(LevelUpError):
    """Raised when a submission id does not exist."""

    def __init__(self, submission_id: str):
        self.submission_id = submission_id
        super().__init__(f"Submission not found: {submission_id}")
