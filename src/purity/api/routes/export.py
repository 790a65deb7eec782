"""Export API endpoint.

GET /export - Export every submission and the aggregate as one JSON document
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from purity.api.app import get_db_session
from purity.db.repo import DbSession
from purity.service.submissions import export_snapshot

router = APIRouter()


@router.get("/export")
def export_state(session: DbSession = Depends(get_db_session)) -> JSONResponse:
    """Export the persisted state in the scores.json layout.

    Returns:
        JSONResponse with "submissions" and "stats".
    """
    return JSONResponse(content=export_snapshot(session))
