"""Error taxonomy for the stats service.

ValidationError subclasses are caller mistakes (HTTP 400, no state change).
CorruptStateError and PersistenceError are server-side failures (HTTP 500);
neither leaves a partially applied aggregate behind.
"""

from __future__ import annotations


class PurityError(Exception):
    """Base class for all stats service errors."""


class ValidationError(PurityError, ValueError):
    """Submission payload is malformed."""


class InvalidScoreError(ValidationError):
    """Score is absent, not a number, NaN or infinite."""

    def __init__(self, message: str = "Score must be a valid number.") -> None:
        super().__init__(message)


class InvalidQuestionListError(ValidationError):
    """checkedQuestions is not an array."""

    def __init__(self, message: str = "checkedQuestions must be an array.") -> None:
        super().__init__(message)


class CorruptStateError(PurityError):
    """Persisted state cannot be parsed into the expected shape."""


class PersistenceError(PurityError):
    """Writing state to the database failed."""
