"""Submission validation, folding and percentage reporting.

Pure functions - no database access. The store loads the current aggregate,
these functions compute the next one, and the store persists it.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Any

from purity.core.errors import (
    InvalidQuestionListError,
    InvalidScoreError,
    ValidationError,
)
from purity.models.domain import (
    ANONYMOUS_USER_ID,
    QUESTION_MAX,
    QUESTION_MIN,
    QUESTION_SLOTS,
    AggregateSummary,
    StatsReport,
    ValidSubmission,
)

_TWO_PLACES = Decimal("0.01")

# Enough digits for the exact value of any finite float plus two decimals
_FIXED_PRECISION = 400


def empty_aggregate() -> AggregateSummary:
    """Return an aggregate with zero submissions and all slots at zero."""
    return AggregateSummary(
        total_submissions=0,
        sum_of_scores=0,
        question_counts={slot: 0 for slot in QUESTION_SLOTS},
    )


def _is_number(value: Any) -> bool:
    # bool is an int subclass but JSON true/false are not scores
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_finite(value: int | float) -> bool:
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large to convert to float
        return False


def validate_submission(payload: Any) -> ValidSubmission:
    """Validate a raw submission payload.

    Lenient on identity, strict on numeric and structural shape: a missing
    or empty userId becomes "anonymous", while a bad score or question list
    is rejected.

    Args:
        payload: Decoded JSON request body.

    Returns:
        ValidSubmission ready to be folded.

    Raises:
        ValidationError: If the body is not an object.
        InvalidScoreError: If score is absent, non-numeric, NaN or infinite.
        InvalidQuestionListError: If checkedQuestions is not an array.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object.")

    score = payload.get("score")
    if not _is_number(score):
        raise InvalidScoreError()
    if not _is_finite(score):
        raise InvalidScoreError()

    checked = payload.get("checkedQuestions")
    if not isinstance(checked, (list, tuple)):
        raise InvalidQuestionListError()

    user_id = payload.get("userId")
    if not user_id:
        user_id = ANONYMOUS_USER_ID
    elif not isinstance(user_id, str):
        user_id = str(user_id)

    return ValidSubmission(
        user_id=user_id,
        score=score,
        checked_questions=tuple(checked),
    )


def question_slot(value: Any) -> int | None:
    """Map a checked-question value to its slot, or None if it is not countable.

    Only integral numbers in [1, 100] count; anything else is dropped.
    """
    if not _is_number(value):
        return None
    if isinstance(value, float):
        if not value.is_integer():
            return None
        value = int(value)
    if QUESTION_MIN <= value <= QUESTION_MAX:
        return value
    return None


def fold(aggregate: AggregateSummary, submission: ValidSubmission) -> AggregateSummary:
    """Merge one submission into the aggregate.

    Returns a new aggregate; the input is left untouched. Duplicate values in
    checked_questions increment the same slot once per occurrence.

    Args:
        aggregate: Current aggregate.
        submission: Validated submission.

    Returns:
        Updated aggregate.

    Raises:
        InvalidScoreError: If adding the score overflows the running sum.
    """
    sum_of_scores = aggregate.sum_of_scores + submission.score
    if not _is_finite(sum_of_scores):
        raise InvalidScoreError("Score would overflow the running total.")

    counts = dict(aggregate.question_counts)
    for value in submission.checked_questions:
        slot = question_slot(value)
        if slot is not None:
            counts[slot] += 1

    return AggregateSummary(
        total_submissions=aggregate.total_submissions + 1,
        sum_of_scores=sum_of_scores,
        question_counts=counts,
    )


def format_fixed(value: float) -> str:
    """Format a number with two decimals, rounding half away from zero."""
    with localcontext() as ctx:
        ctx.prec = _FIXED_PRECISION
        quantized = Decimal(value).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    if quantized == 0:
        # Avoid "-0.00" for tiny negative averages
        quantized = abs(quantized)
    return str(quantized)


def report(aggregate: AggregateSummary) -> StatsReport:
    """Compute the percentage report for an aggregate.

    Args:
        aggregate: Aggregate to report on.

    Returns:
        StatsReport with average score and per-slot percentages. With no
        submissions the average is 0 and every slot reads "0.00".
    """
    total = aggregate.total_submissions
    if total == 0:
        return StatsReport(
            total_submissions=0,
            average_score=0,
            question_stats={str(slot): "0.00" for slot in QUESTION_SLOTS},
        )

    question_stats = {
        str(slot): format_fixed(aggregate.question_counts[slot] / total * 100)
        for slot in QUESTION_SLOTS
    }
    return StatsReport(
        total_submissions=total,
        average_score=format_fixed(aggregate.sum_of_scores / total),
        question_stats=question_stats,
    )
