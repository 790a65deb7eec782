"""Run the stats API with uvicorn.

Usage:
    python -m purity

Honours HOST (default 127.0.0.1), PORT (default 3000) and
PURITY_LOG_LEVEL (default INFO).
"""

from __future__ import annotations

import logging
import os

import uvicorn

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000


def main() -> None:
    """Configure logging and serve the default app."""
    log_level = os.environ.get("PURITY_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    host = os.environ.get("HOST", DEFAULT_HOST)
    port = int(os.environ.get("PORT", DEFAULT_PORT))
    logging.getLogger(__name__).info("Server listening on %s:%d", host, port)

    uvicorn.run("purity.api.app:app", host=host, port=port, log_level=log_level.lower())


if __name__ == "__main__":
    main()
