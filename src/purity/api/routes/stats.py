"""Stats API endpoint.

GET /stats - Get global aggregate stats
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from purity.api.app import get_db_session
from purity.db.repo import DbSession
from purity.models.types import ErrorResponse, StatsResponse
from purity.service.submissions import get_stats

router = APIRouter()


@router.get(
    "/stats",
    response_model=StatsResponse,
    responses={500: {"model": ErrorResponse}},
)
def read_stats(session: DbSession = Depends(get_db_session)) -> StatsResponse:
    """Get global stats.

    Before the first submission the response is
    {totalSubmissions: 0, averageScore: 0, questionStats: {}}, unlike
    POST /submit which always lists all 100 questions.
    """
    result = get_stats(session)

    if result.total_submissions == 0:
        return StatsResponse(totalSubmissions=0, averageScore=0, questionStats={})

    return StatsResponse(
        totalSubmissions=result.total_submissions,
        averageScore=result.average_score,
        questionStats=result.question_stats,
    )
