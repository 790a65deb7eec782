"""Repository pattern for database operations.

Encapsulates all SQLAlchemy queries, keeping domain logic pure.
Returns domain models (not SQLAlchemy entities) to external callers.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

from purity.core.errors import CorruptStateError
from purity.core.snapshot import dump_question_counts, parse_question_counts
from purity.db.schema import GLOBAL_STATS_ID, AggregateStats, Submission
from purity.models.domain import AggregateSummary, SubmissionEntity

if TYPE_CHECKING:
    from sqlalchemy.orm import Session as DbSession
else:
    DbSession = Session

# Re-export for external use
__all__ = ["DbSession"]


# ============================================================================
# Converters: SQLAlchemy -> Domain
# ============================================================================


def _submission_to_entity(sub: Submission) -> SubmissionEntity:
    """Convert SQLAlchemy Submission to domain entity."""
    try:
        checked = json.loads(sub.checked_questions_json)
    except json.JSONDecodeError as e:
        raise CorruptStateError(
            f"Submission {sub.submission_id} has unreadable checked questions"
        ) from e
    if not isinstance(checked, list):
        raise CorruptStateError(f"Submission {sub.submission_id} checked questions not a list")

    return SubmissionEntity(
        submission_id=sub.submission_id,
        sequence=sub.sequence,
        user_id=sub.user_id,
        score=sub.score,
        checked_questions=tuple(checked),
        created_at=sub.created_at,
    )


def _stats_to_aggregate(row: AggregateStats) -> AggregateSummary:
    """Convert SQLAlchemy AggregateStats to domain aggregate.

    Raises:
        CorruptStateError: If the stored counters have the wrong shape.
    """
    try:
        raw_counts = json.loads(row.question_counts_json)
    except (TypeError, json.JSONDecodeError) as e:
        raise CorruptStateError("Aggregate question counts are not valid JSON") from e

    if row.total_submissions is None or row.total_submissions < 0:
        raise CorruptStateError("Aggregate total_submissions must be non-negative")
    if row.sum_of_scores is None:
        raise CorruptStateError("Aggregate sum_of_scores is missing")

    return AggregateSummary(
        total_submissions=row.total_submissions,
        sum_of_scores=row.sum_of_scores,
        question_counts=parse_question_counts(raw_counts),
    )


def _counts_json(aggregate: AggregateSummary) -> str:
    return json.dumps(dump_question_counts(aggregate.question_counts))


# ============================================================================
# Aggregate Repository
# ============================================================================


def get_aggregate(session: DbSession) -> AggregateSummary | None:
    """Get the global aggregate, or None if it was never initialized."""
    row = session.get(AggregateStats, GLOBAL_STATS_ID)
    return _stats_to_aggregate(row) if row else None


def create_aggregate(session: DbSession, aggregate: AggregateSummary) -> AggregateSummary:
    """Create the global aggregate row."""
    row = AggregateStats(
        stats_id=GLOBAL_STATS_ID,
        total_submissions=aggregate.total_submissions,
        sum_of_scores=float(aggregate.sum_of_scores),
        question_counts_json=_counts_json(aggregate),
    )
    session.add(row)
    return aggregate


def update_aggregate(session: DbSession, aggregate: AggregateSummary) -> None:
    """Replace the global aggregate with a new snapshot."""
    row = session.get(AggregateStats, GLOBAL_STATS_ID)
    if row is None:
        create_aggregate(session, aggregate)
        return
    row.total_submissions = aggregate.total_submissions
    row.sum_of_scores = float(aggregate.sum_of_scores)
    row.question_counts_json = _counts_json(aggregate)
    row.updated_at = datetime.now(timezone.utc)


# ============================================================================
# Submission Repository
# ============================================================================


def create_submission(session: DbSession, entity: SubmissionEntity) -> SubmissionEntity:
    """Append a submission to the log."""
    sub = Submission(
        submission_id=entity.submission_id,
        sequence=entity.sequence,
        user_id=entity.user_id,
        score=float(entity.score),
        checked_questions_json=json.dumps(list(entity.checked_questions)),
        created_at=entity.created_at,
    )
    session.add(sub)
    return entity


def get_submissions(session: DbSession) -> list[SubmissionEntity]:
    """Get the full submission log in the order it was written."""
    subs = session.query(Submission).order_by(Submission.sequence).all()
    return [_submission_to_entity(s) for s in subs]


def count_submissions(session: DbSession) -> int:
    """Count logged submissions."""
    return session.query(Submission).count()


# ============================================================================
# Batch Operations
# ============================================================================


def commit(session: DbSession) -> None:
    """Commit current transaction."""
    session.commit()


def rollback(session: DbSession) -> None:
    """Roll back current transaction."""
    session.rollback()
