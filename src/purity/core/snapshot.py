"""Snapshot codec for the persisted-state JSON document.

The document mirrors the legacy scores.json layout:

    {
      "submissions": [{"userId", "score", "checkedQuestions", "timestamp"}, ...],
      "stats": {
        "totalSubmissions": int,
        "sumOfScores": number,
        "questionCounts": {"1": int, ..., "100": int}
      }
    }

timestamp is milliseconds since the Unix epoch.
"""

from __future__ import annotations

import math
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from purity.core.errors import CorruptStateError
from purity.models.domain import (
    ANONYMOUS_USER_ID,
    QUESTION_SLOTS,
    AggregateSummary,
    SubmissionEntity,
)

_EXPECTED_KEYS = {str(slot) for slot in QUESTION_SLOTS}


def _plain_number(value: float) -> int | float:
    """Render integral floats as ints so scores read back as they were sent."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite_number(value: Any) -> bool:
    if not _is_number(value):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False


def datetime_to_millis(moment: datetime) -> int:
    """Convert a datetime (naive values are UTC) to epoch milliseconds."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return int(moment.timestamp() * 1000)


def millis_to_datetime(millis: int | float) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(millis / 1000, tz=timezone.utc)


def parse_question_counts(raw: Any) -> dict[int, int]:
    """Parse a questionCounts object keyed by "1".."100".

    Raises:
        CorruptStateError: If the key set is wrong or a count is not a
            non-negative integer.
    """
    if not isinstance(raw, Mapping):
        raise CorruptStateError("questionCounts must be an object")

    keys = {str(key) for key in raw}
    if keys != _EXPECTED_KEYS:
        raise CorruptStateError("questionCounts must have exactly the keys 1..100")

    counts: dict[int, int] = {}
    for key, value in raw.items():
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            raise CorruptStateError(f"questionCounts[{key}] must be a non-negative integer")
        counts[int(key)] = value
    return counts


def dump_question_counts(counts: Mapping[int, int]) -> dict[str, int]:
    """Serialize question counts with stringified keys in slot order."""
    return {str(slot): counts[slot] for slot in QUESTION_SLOTS}


def parse_aggregate(raw: Any) -> AggregateSummary:
    """Parse the "stats" object of a snapshot.

    Raises:
        CorruptStateError: If any field is missing or has the wrong shape.
    """
    if not isinstance(raw, Mapping):
        raise CorruptStateError("stats must be an object")

    total = raw.get("totalSubmissions")
    if not isinstance(total, int) or isinstance(total, bool) or total < 0:
        raise CorruptStateError("totalSubmissions must be a non-negative integer")

    sum_of_scores = raw.get("sumOfScores")
    if not _is_finite_number(sum_of_scores):
        raise CorruptStateError("sumOfScores must be a finite number")

    return AggregateSummary(
        total_submissions=total,
        sum_of_scores=sum_of_scores,
        question_counts=parse_question_counts(raw.get("questionCounts")),
    )


def dump_aggregate(aggregate: AggregateSummary) -> dict[str, Any]:
    """Serialize an aggregate as the "stats" object of a snapshot."""
    return {
        "totalSubmissions": aggregate.total_submissions,
        "sumOfScores": _plain_number(aggregate.sum_of_scores),
        "questionCounts": dump_question_counts(aggregate.question_counts),
    }


def dump_snapshot(
    submissions: list[SubmissionEntity],
    aggregate: AggregateSummary,
) -> dict[str, Any]:
    """Build the persisted-state document from the log and the aggregate."""
    return {
        "submissions": [
            {
                "userId": sub.user_id,
                "score": _plain_number(sub.score),
                "checkedQuestions": list(sub.checked_questions),
                "timestamp": datetime_to_millis(sub.created_at),
            }
            for sub in submissions
        ],
        "stats": dump_aggregate(aggregate),
    }


def _parse_submission(raw: Any, sequence: int) -> SubmissionEntity:
    if not isinstance(raw, Mapping):
        raise CorruptStateError(f"submission #{sequence} must be an object")

    score = raw.get("score")
    if not _is_finite_number(score):
        raise CorruptStateError(f"submission #{sequence} has an invalid score")

    checked = raw.get("checkedQuestions")
    if not isinstance(checked, list):
        raise CorruptStateError(f"submission #{sequence} has no checkedQuestions array")

    timestamp = raw.get("timestamp")
    if not _is_number(timestamp):
        raise CorruptStateError(f"submission #{sequence} has an invalid timestamp")

    return SubmissionEntity(
        submission_id=str(uuid.uuid4()),
        sequence=sequence,
        user_id=str(raw.get("userId") or ANONYMOUS_USER_ID),
        score=score,
        checked_questions=tuple(checked),
        created_at=millis_to_datetime(timestamp),
    )


def load_snapshot(document: Any) -> tuple[list[SubmissionEntity], AggregateSummary]:
    """Parse a persisted-state document.

    Submissions are numbered 1..N in document order. The aggregate is taken
    verbatim from "stats"; the only cross-check is that its total matches the
    number of logged submissions.

    Args:
        document: Decoded JSON document.

    Returns:
        Tuple of (submissions, aggregate).

    Raises:
        CorruptStateError: If the document does not have the expected shape.
    """
    if not isinstance(document, Mapping):
        raise CorruptStateError("snapshot must be a JSON object")

    raw_submissions = document.get("submissions")
    if not isinstance(raw_submissions, list):
        raise CorruptStateError("submissions must be an array")

    aggregate = parse_aggregate(document.get("stats"))
    submissions = [
        _parse_submission(raw, sequence)
        for sequence, raw in enumerate(raw_submissions, start=1)
    ]

    if aggregate.total_submissions != len(submissions):
        raise CorruptStateError(
            f"totalSubmissions is {aggregate.total_submissions} "
            f"but {len(submissions)} submissions are logged"
        )

    return submissions, aggregate
