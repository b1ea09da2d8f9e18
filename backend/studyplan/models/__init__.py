"""
Pydantic models for API requests and responses.

SQLAlchemy persistence models live in studyplan.db.
"""

from studyplan.models.base import StrictRequest, StrictResponse, SuccessResponse
from studyplan.models.flashcards import (
    DeckCreate,
    DeckResponse,
    DeckStats,
    DeckUpdate,
    DueCardsResponse,
    FlashcardCreate,
    FlashcardResponse,
    FlashcardUpdate,
    ReviewForecast,
    ReviewHistoryEntry,
    ReviewRequest,
    ReviewResponse,
)
from studyplan.models.planning import (
    ExamPreparationResponse,
    ExamPreparationScore,
    SessionCreate,
    SessionResponse,
    SessionStatusUpdate,
    SubjectCreate,
    SubjectResponse,
    SubjectUpdate,
)

__all__ = [
    # Base
    "StrictRequest",
    "StrictResponse",
    "SuccessResponse",
    # Flashcards
    "DeckCreate",
    "DeckResponse",
    "DeckStats",
    "DeckUpdate",
    "DueCardsResponse",
    "FlashcardCreate",
    "FlashcardResponse",
    "FlashcardUpdate",
    "ReviewForecast",
    "ReviewHistoryEntry",
    "ReviewRequest",
    "ReviewResponse",
    # Planning
    "ExamPreparationResponse",
    "ExamPreparationScore",
    "SessionCreate",
    "SessionResponse",
    "SessionStatusUpdate",
    "SubjectCreate",
    "SubjectResponse",
    "SubjectUpdate",
]
