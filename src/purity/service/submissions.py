"""Submission intake and stats queries.

Every operation that touches the aggregate runs under one process-wide
lock, so concurrent submissions are strictly ordered and readers never
see an aggregate that is mid-write.
"""

from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any

from purity.aggregation.aggregator import fold, report, validate_submission
from purity.core.errors import ValidationError
from purity.core.snapshot import dump_snapshot, load_snapshot
from purity.db import repo, store
from purity.db.repo import DbSession
from purity.models.domain import StatsReport, SubmissionEntity, ValidSubmission

logger = logging.getLogger(__name__)

_aggregate_lock = threading.Lock()


def _end_transaction(session: DbSession) -> None:
    # Engines share one SQLite connection across sessions, so no read
    # transaction may outlive the lock
    repo.rollback(session)


def _create_submission_entity(valid: ValidSubmission, sequence: int) -> SubmissionEntity:
    """Stamp a validated submission with its id, sequence and time."""
    return SubmissionEntity(
        submission_id=str(uuid.uuid4()),
        sequence=sequence,
        user_id=valid.user_id,
        score=valid.score,
        checked_questions=valid.checked_questions,
        created_at=datetime.now(timezone.utc),
    )


def submit_answers(session: DbSession, payload: Any) -> StatsReport:
    """Record one submission and return the refreshed report.

    Validation happens before any state is read, so a rejected payload
    never touches the store. The aggregate is re-read from the database
    on every call; if persisting fails, the folded copy is simply dropped.

    Args:
        session: Database session.
        payload: Decoded JSON request body.

    Returns:
        StatsReport including this submission.

    Raises:
        ValidationError: If the payload is malformed.
        CorruptStateError: If the stored aggregate is unreadable.
        PersistenceError: If the write fails.
    """
    try:
        valid = validate_submission(payload)
    except ValidationError as e:
        logger.info("Rejected submission: %s", e)
        raise

    with _aggregate_lock:
        try:
            state = store.load_or_init(session)
            updated = fold(state.aggregate, valid)
            # Report before persisting so nothing is committed that cannot be read back
            result = report(updated)
            submission = _create_submission_entity(valid, updated.total_submissions)
            store.append(session, submission, updated)
        finally:
            _end_transaction(session)

    logger.debug(
        "Recorded submission %s (#%d) from %s",
        submission.submission_id,
        submission.sequence,
        submission.user_id,
    )
    return result


def get_stats(session: DbSession) -> StatsReport:
    """Return the report for the current aggregate."""
    with _aggregate_lock:
        try:
            state = store.load_or_init(session)
        finally:
            _end_transaction(session)
    return report(state.aggregate)


def export_snapshot(session: DbSession) -> dict[str, Any]:
    """Return the full persisted state as a JSON-ready document."""
    with _aggregate_lock:
        try:
            state = store.load_or_init(session, include_log=True)
        finally:
            _end_transaction(session)
    return dump_snapshot(state.submissions, state.aggregate)


def import_snapshot(session: DbSession, document: Any) -> StatsReport:
    """Load a persisted-state document into an empty store.

    Args:
        session: Database session.
        document: Decoded JSON document in the scores.json layout.

    Returns:
        StatsReport for the imported aggregate.

    Raises:
        CorruptStateError: If the document is malformed.
        PersistenceError: If the store is not empty or the write fails.
    """
    submissions, aggregate = load_snapshot(document)
    with _aggregate_lock:
        try:
            store.load_or_init(session)
            store.restore(session, submissions, aggregate)
        finally:
            _end_transaction(session)
    return report(aggregate)
