"""Domain models for the stats service.

Pure Python dataclasses representing domain entities.
These models are independent of SQLAlchemy and used throughout
the application for clean separation from the database layer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

# Fixed domain of countable question slots (1-based, inclusive)
QUESTION_MIN = 1
QUESTION_MAX = 100
QUESTION_SLOTS: tuple[int, ...] = tuple(range(QUESTION_MIN, QUESTION_MAX + 1))

ANONYMOUS_USER_ID = "anonymous"


# ============================================================================
# Submission Domain
# ============================================================================


@dataclass(frozen=True)
class ValidSubmission:
    """A submission payload that passed validation but is not yet recorded."""

    user_id: str
    score: float
    checked_questions: tuple[Any, ...]


@dataclass(frozen=True)
class SubmissionEntity:
    """Domain model for a recorded submission.

    checked_questions keeps the values exactly as sent by the caller,
    including duplicates and out-of-range entries.
    """

    submission_id: str
    sequence: int
    user_id: str
    score: float
    checked_questions: tuple[Any, ...]
    created_at: datetime


# ============================================================================
# Aggregate Domain
# ============================================================================


@dataclass(frozen=True)
class AggregateSummary:
    """Running totals over every folded submission."""

    total_submissions: int = 0
    sum_of_scores: float = 0
    question_counts: dict[int, int] = field(
        default_factory=lambda: {slot: 0 for slot in QUESTION_SLOTS}
    )


@dataclass(frozen=True)
class StatsReport:
    """Percentage report derived from an aggregate.

    average_score is the integer 0 when there are no submissions, otherwise
    a two-decimal string.
    """

    total_submissions: int
    average_score: str | int
    question_stats: dict[str, str]


@dataclass
class StoreState:
    """Result of loading the store: the log (when requested) and the aggregate."""

    aggregate: AggregateSummary
    submissions: list[SubmissionEntity] = field(default_factory=list)
