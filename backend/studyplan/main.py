"""
Study Planner API

FastAPI application for flashcard review scheduling and exam preparation.

Run locally:
    uvicorn studyplan.main:app --reload
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyplan import __version__
from studyplan.config import settings, yaml_config
from studyplan.middleware import setup_error_handling, setup_rate_limiting
from studyplan.routers import (
    exams_router,
    flashcards_router,
    health_router,
    review_router,
)

logger = logging.getLogger(__name__)


def setup_logging(level: str = None) -> None:
    """Configure root logging from settings.LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    )


def create_app() -> FastAPI:
    """
    Build the FastAPI application.

    No database connection is opened here; sessions are created per request
    by studyplan.db.base.get_db.
    """
    app = FastAPI(
        title=yaml_config.get("app", {}).get("name", settings.APP_NAME),
        version=__version__,
        debug=settings.DEBUG,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    setup_error_handling(app, debug=settings.DEBUG)
    setup_rate_limiting(app, enabled=settings.RATE_LIMIT_ENABLED)

    app.include_router(health_router.router)
    app.include_router(flashcards_router.router)
    app.include_router(review_router.router)
    app.include_router(exams_router.router)

    logger.info(f"{settings.APP_NAME} {__version__} ready")

    return app


setup_logging()
app = create_app()
