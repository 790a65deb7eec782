"""FastAPI application factory.

- Validates inputs, reads/writes DB through the submission service
- Returns JSON payloads for the front-end
- Forbidden: aggregate arithmetic, direct table access
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Generator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from purity.core.errors import PurityError, ValidationError
from purity.db.repo import DbSession
from purity.db.session import get_session

logger = logging.getLogger(__name__)

DEFAULT_STATIC_DIR = Path("public")


def get_db_session(request: Request) -> Generator[DbSession, None, None]:
    """Dependency to get database session.

    Yields:
        Database session that is automatically closed after request.
    """
    session = get_session(request.app.state.db_path)
    try:
        yield session
    finally:
        session.close()


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(db_path: Path | None = None, static_dir: Path | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        db_path: Optional path to database file. Defaults to PURITY_DB_PATH.
        static_dir: Optional front-end directory. Defaults to
            PURITY_STATIC_DIR, then "public". Mounted only if it exists.

    Returns:
        Configured FastAPI application.
    """
    app = FastAPI(
        title="Purity Stats API",
        description="Anonymous purity test submissions and aggregate stats",
        version="0.1.0",
    )
    app.state.db_path = db_path

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
        return _error_response(400, str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_bad_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(400, "Request body must be valid JSON.")

    @app.exception_handler(PurityError)
    async def handle_server_error(request: Request, exc: PurityError) -> JSONResponse:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return _error_response(500, str(exc))

    # Include routes
    from purity.api.routes import export, stats, submit

    app.include_router(submit.router)
    app.include_router(stats.router)
    app.include_router(export.router)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "ok"}

    # Front-end goes last so API routes take precedence over the catch-all mount
    if static_dir is None:
        static_dir = Path(os.environ.get("PURITY_STATIC_DIR", DEFAULT_STATIC_DIR))
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=str(static_dir), html=True), name="static")
    else:
        logger.info("Static directory %s not found; serving API only", static_dir)

    return app


# Default app instance
app = create_app()
