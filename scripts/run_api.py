"""
Serve the HTTP API with uvicorn.

Usage: python -m scripts.run_api
"""

import logging

import uvicorn

from core.config import settings
from core.logging import setup_logging

logger = logging.getLogger(__name__)


def main():
    setup_logging()
    logger.info(f"Starting API on {settings.API_HOST}:{settings.API_PORT} ({settings.ENVIRONMENT})")

    uvicorn.run(
        "api.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.ENVIRONMENT == "development",
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
