"""Submission store: the only access path to persisted state.

Loads (or lazily creates) the global aggregate and writes each new
submission together with its replacement aggregate in one transaction.
Callers serialize the read-fold-persist sequence; see
purity.service.submissions.
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from purity.aggregation.aggregator import empty_aggregate
from purity.core.errors import CorruptStateError, PersistenceError
from purity.db import repo
from purity.db.repo import DbSession
from purity.models.domain import AggregateSummary, StoreState, SubmissionEntity

logger = logging.getLogger(__name__)


def load_or_init(session: DbSession, include_log: bool = False) -> StoreState:
    """Load the persisted aggregate, creating the default one on first access.

    The default aggregate is committed immediately so later reads are stable.
    Corrupt state is reported, never silently reinitialized.

    Args:
        session: Database session.
        include_log: Also read the full submission log.

    Returns:
        StoreState with the aggregate, plus the log when requested.

    Raises:
        CorruptStateError: If the stored aggregate is malformed, or the log
            exists without an aggregate.
        PersistenceError: If the default aggregate cannot be written.
    """
    try:
        aggregate = repo.get_aggregate(session)
    except CorruptStateError:
        logger.error("Stored aggregate is corrupt; refusing to reinitialize")
        raise

    if aggregate is None:
        logged = repo.count_submissions(session)
        if logged:
            raise CorruptStateError(
                f"{logged} submissions are logged but the aggregate is missing"
            )
        aggregate = empty_aggregate()
        try:
            repo.create_aggregate(session, aggregate)
            repo.commit(session)
        except SQLAlchemyError as e:
            repo.rollback(session)
            logger.exception("Failed to initialize aggregate")
            raise PersistenceError("Failed to initialize stats storage") from e
        logger.info("Initialized empty aggregate")

    submissions = repo.get_submissions(session) if include_log else []
    return StoreState(aggregate=aggregate, submissions=submissions)


def append(
    session: DbSession,
    submission: SubmissionEntity,
    updated_aggregate: AggregateSummary,
) -> None:
    """Durably write a new submission and the replacement aggregate.

    Both land in a single transaction. On failure the transaction is rolled
    back, leaving the previous aggregate in place.

    Args:
        session: Database session.
        submission: Submission to append to the log.
        updated_aggregate: Aggregate with the submission already folded in.

    Raises:
        ValueError: If the submission sequence does not match the aggregate.
        PersistenceError: If the write fails.
    """
    if submission.sequence != updated_aggregate.total_submissions:
        raise ValueError(
            f"Submission sequence {submission.sequence} does not match "
            f"aggregate total {updated_aggregate.total_submissions}"
        )

    try:
        repo.create_submission(session, submission)
        repo.update_aggregate(session, updated_aggregate)
        repo.commit(session)
    except SQLAlchemyError as e:
        repo.rollback(session)
        logger.exception("Failed to persist submission %s", submission.submission_id)
        raise PersistenceError("Failed to record submission") from e


def restore(
    session: DbSession,
    submissions: list[SubmissionEntity],
    aggregate: AggregateSummary,
) -> None:
    """Write a whole log and its aggregate into an empty store.

    Raises:
        PersistenceError: If the store already holds submissions or the
            write fails.
    """
    existing = repo.count_submissions(session)
    if existing:
        raise PersistenceError(f"Store already holds {existing} submissions")

    try:
        for submission in submissions:
            repo.create_submission(session, submission)
        repo.update_aggregate(session, aggregate)
        repo.commit(session)
    except SQLAlchemyError as e:
        repo.rollback(session)
        logger.exception("Failed to restore snapshot")
        raise PersistenceError("Failed to restore snapshot") from e

    logger.info("Restored %d submissions", len(submissions))
