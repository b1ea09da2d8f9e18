"""API Routers package."""

from studyplan.routers import exams as exams_router
from studyplan.routers import flashcards as flashcards_router
from studyplan.routers import health as health_router
from studyplan.routers import review as review_router

__all__ = ["exams_router", "flashcards_router", "health_router", "review_router"]
