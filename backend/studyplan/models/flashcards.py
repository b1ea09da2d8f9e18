"""
Flashcard API Models (Pydantic)

Request/response schemas for decks, flashcards and SM-2 reviews.

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation.
    There is a corresponding SQLAlchemy file: studyplan/db/models_flashcards.py

    Data flows: API Request → Pydantic → Service → SQLAlchemy → Database

API Contract:
    Request models use StrictRequest (extra="forbid") to reject unknown fields.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional, TYPE_CHECKING

from pydantic import Field

from studyplan.enums.learning import MasteryLevel, ReviewQuality
from studyplan.models.base import StrictRequest, StrictResponse
from studyplan.services.learning.sm2 import get_mastery_level, get_quality_label

if TYPE_CHECKING:
    from studyplan.db.models_flashcards import Flashcard, FlashcardDeck, FlashcardReview


# ===========================================
# Deck Models
# ===========================================


class DeckCreate(StrictRequest):
    """Request to create a deck, optionally attached to a subject."""

    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    subject_id: Optional[int] = Field(None, description="Subject this deck belongs to")


class DeckUpdate(StrictRequest):
    """
    Partial deck update.

    Only fields present in the request body are applied, so sending
    ``"subject_id": null`` detaches the deck from its subject.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    subject_id: Optional[int] = None


class DeckResponse(StrictResponse):
    """Deck with its current card count."""

    id: int
    name: str
    description: Optional[str] = None
    subject_id: Optional[int] = None
    card_count: int = 0
    last_studied_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_db_record(cls, record: FlashcardDeck, card_count: int = 0) -> DeckResponse:
        """Build a response from a FlashcardDeck row."""
        return cls(
            id=record.id,
            name=record.name,
            description=record.description,
            subject_id=record.subject_id,
            card_count=card_count,
            last_studied_at=record.last_studied_at,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class DeckStats(StrictResponse):
    """
    Aggregate statistics for a deck.

    mastered: easiness >= 2.5 and at least 3 consecutive successes.
    learning: fewer than 3 consecutive successes.
    """

    total_cards: int
    mastered_cards: int
    learning_cards: int
    due_cards: int
    average_easiness: float
    total_reviews: int
    correct_rate: float = Field(description="Percentage of reviews graded 3 or higher")
    mastery_percentage: int = Field(description="Share of mastered cards, 0-100")


# ===========================================
# Flashcard Models
# ===========================================


class FlashcardCreate(StrictRequest):
    """Request to add a card to a deck. Memory state starts at SM-2 defaults."""

    front: str = Field(..., min_length=1, description="Question side")
    back: str = Field(..., min_length=1, description="Answer side")


class FlashcardUpdate(StrictRequest):
    """Edit card text. Scheduling state is only changed by reviews."""

    front: Optional[str] = Field(None, min_length=1)
    back: Optional[str] = Field(None, min_length=1)


class FlashcardResponse(StrictResponse):
    """
    Card with its SM-2 memory state.

    ``version`` must be echoed back as ``expected_version`` when rating the
    card to detect concurrent reviews.
    """

    id: int
    deck_id: int
    front: str
    back: str

    # SM-2 state
    easiness_factor: float = 2.5
    repetition_count: int = 0
    interval_days: int = 0
    next_review_at: datetime
    last_reviewed_at: Optional[datetime] = None
    mastery_level: MasteryLevel = MasteryLevel.NEW

    # Stats
    total_reviews: int = 0
    correct_reviews: int = 0

    version: int = 1
    created_at: Optional[datetime] = None

    @classmethod
    def from_db_record(cls, record: Flashcard) -> FlashcardResponse:
        """
        Create a FlashcardResponse from a database Flashcard record.

        Args:
            record: SQLAlchemy Flashcard record from the database

        Returns:
            FlashcardResponse instance with data from the database record
        """
        return cls(
            id=record.id,
            deck_id=record.deck_id,
            front=record.front,
            back=record.back,
            easiness_factor=record.easiness_factor,
            repetition_count=record.repetition_count,
            interval_days=record.interval_days,
            next_review_at=record.next_review_at,
            last_reviewed_at=record.last_reviewed_at,
            mastery_level=get_mastery_level(
                record.easiness_factor, record.repetition_count
            ),
            total_reviews=record.total_reviews,
            correct_reviews=record.correct_reviews,
            version=record.version,
            created_at=record.created_at,
        )


# ===========================================
# Review Models
# ===========================================


class ReviewRequest(StrictRequest):
    """
    Request to submit an SM-2 review grade.

    Grades: 0 blackout, 1 incorrect, 2 almost, 3 correct with difficulty,
    4 correct with hesitation, 5 perfect.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    card_id: int = Field(..., description="Flashcard ID to review")
    quality: ReviewQuality = Field(..., description="Review grade (0-5)")
    expected_version: Optional[int] = Field(
        None,
        ge=1,
        description="Card version the client saw; a mismatch returns 409",
    )


class ReviewResponse(StrictResponse):
    """New scheduling state after a review."""

    card_id: int
    quality: ReviewQuality
    quality_label: str = Field(description="Display label for the grade, e.g. \"Good\"")
    was_correct: bool = Field(description="Whether the grade counts as a recall")
    easiness_factor: float
    repetition_count: int
    interval_days: int = Field(description="Days until next review")
    next_review_at: datetime
    version: int
    mastery_level: MasteryLevel


class ReviewHistoryEntry(StrictResponse):
    """One immutable review-history record."""

    id: int
    flashcard_id: int
    quality: int
    quality_label: str
    easiness_factor_before: float
    easiness_factor_after: float
    interval_before: int
    interval_after: int
    reviewed_at: datetime

    @classmethod
    def from_db_record(cls, record: FlashcardReview) -> ReviewHistoryEntry:
        return cls(
            id=record.id,
            flashcard_id=record.flashcard_id,
            quality=record.quality,
            quality_label=get_quality_label(record.quality),
            easiness_factor_before=record.easiness_factor_before,
            easiness_factor_after=record.easiness_factor_after,
            interval_before=record.interval_before,
            interval_after=record.interval_after,
            reviewed_at=record.reviewed_at,
        )


class ReviewForecast(StrictResponse):
    """
    Forecast of upcoming reviews.

    Buckets are mutually exclusive: overdue, today, tomorrow, days 3-7, later.
    """

    overdue: int = 0
    today: int = 0
    tomorrow: int = 0
    this_week: int = 0
    later: int = 0


class DueCardsResponse(StrictResponse):
    """Due cards (oldest due first) with the total count and a forecast."""

    cards: list[FlashcardResponse]
    total_due: int
    review_forecast: ReviewForecast
