"""Submit API endpoint.

POST /submit - Record a purity test submission
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends

from purity.api.app import get_db_session
from purity.db.repo import DbSession
from purity.models.types import ErrorResponse, SubmitResponse
from purity.service.submissions import submit_answers

router = APIRouter()

SUCCESS_MESSAGE = "Score recorded successfully."


@router.post(
    "/submit",
    response_model=SubmitResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def submit(
    payload: Any = Body(default=None),
    session: DbSession = Depends(get_db_session),
) -> SubmitResponse:
    """Record a submission and return the refreshed stats.

    Args:
        payload: JSON body {userId?, score, checkedQuestions}.
        session: Database session (injected).

    Returns:
        SubmitResponse with totals and per-question percentages.
    """
    result = submit_answers(session, payload)

    return SubmitResponse(
        message=SUCCESS_MESSAGE,
        totalSubmissions=result.total_submissions,
        averageScore=str(result.average_score),
        questionStats=result.question_stats,
    )
