"""Database schema for the stats service.

An append-only submissions log plus a single-row aggregate checkpoint,
with unique constraints that enforce correctness invariants.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from purity.models.domain import ANONYMOUS_USER_ID

# The aggregate has a single global scope
GLOBAL_STATS_ID = 1


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Submission(Base):
    """One recorded purity test submission.

    Invariant: UNIQUE(sequence)
    sequence equals total_submissions right after this submission was folded,
    so two writers folding from the same aggregate cannot both commit.
    """

    __tablename__ = "submissions"

    submission_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[str] = mapped_column(String(256), nullable=False, default=ANONYMOUS_USER_ID)
    score: Mapped[float] = mapped_column(Float, nullable=False)
    checked_questions_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (UniqueConstraint("sequence", name="uq_submission_sequence"),)


class AggregateStats(Base):
    """Running aggregate over all submissions.

    question_counts_json holds an object keyed by "1".."100".
    """

    __tablename__ = "aggregate_stats"

    stats_id: Mapped[int] = mapped_column(Integer, primary_key=True, default=GLOBAL_STATS_ID)
    total_submissions: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sum_of_scores: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    question_counts_json: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=lambda: datetime.now(timezone.utc)
    )
