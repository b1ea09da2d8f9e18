"""
SQLAlchemy Database Models for Flashcards

Tables:
- flashcard_decks: Named groups of flashcards, optionally tied to a subject
- flashcards: Cards with their SM-2 memory state
- flashcard_reviews: Append-only review history

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There is a corresponding Pydantic file: studyplan/models/flashcards.py

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database
"""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studyplan.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# ===========================================
# Decks
# ===========================================


class FlashcardDeck(Base):
    """
    A deck of flashcards.

    Attributes:
        id: Primary key.
        subject_id: Optional subject the deck belongs to.
        name: Deck name, max 200 characters.
        description: Optional free text.
        last_studied_at: Set whenever a card of the deck is reviewed.
        created_at / updated_at: Row timestamps.
        cards: Flashcards in this deck (deleted with the deck).
    """

    __tablename__ = "flashcard_decks"

    id: Mapped[int] = mapped_column(primary_key=True)
    subject_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("subjects.id", ondelete="SET NULL"), index=True
    )

    name: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text)

    last_studied_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    # Relationships
    subject: Mapped[Optional["Subject"]] = relationship(back_populates="decks")
    cards: Mapped[List["Flashcard"]] = relationship(
        back_populates="deck", cascade="all, delete-orphan", passive_deletes=True
    )


# ===========================================
# Flashcards (SM-2)
# ===========================================


class Flashcard(Base):
    """
    Flashcard with SM-2 scheduling state.

    Attributes:
        id: Primary key.
        deck_id: Owning deck.
        front: Question side.
        back: Answer side.

        SM-2 State:
        easiness_factor: Interval growth multiplier, never below 1.3.
        repetition_count: Consecutive successful recalls.
        interval_days: Days between the last review and the next one.
        next_review_at: When the card is next due.
        last_reviewed_at: Most recent review.

        Stats:
        total_reviews: All reviews.
        correct_reviews: Reviews graded 3 or higher.

        version: Incremented on every scheduling write; used for
            compare-and-swap so concurrent reviews cannot overwrite each other.
    """

    __tablename__ = "flashcards"

    id: Mapped[int] = mapped_column(primary_key=True)
    deck_id: Mapped[int] = mapped_column(
        ForeignKey("flashcard_decks.id", ondelete="CASCADE"), index=True
    )

    # Card content
    front: Mapped[str] = mapped_column(Text)
    back: Mapped[str] = mapped_column(Text)

    # SM-2 state
    easiness_factor: Mapped[float] = mapped_column(Float, default=2.5)
    repetition_count: Mapped[int] = mapped_column(Integer, default=0)
    interval_days: Mapped[int] = mapped_column(Integer, default=0)

    # Scheduling
    next_review_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, index=True
    )
    last_reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )

    # Stats
    total_reviews: Mapped[int] = mapped_column(Integer, default=0)
    correct_reviews: Mapped[int] = mapped_column(Integer, default=0)

    version: Mapped[int] = mapped_column(Integer, default=1)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, onupdate=_utc_now
    )

    # Relationships
    deck: Mapped["FlashcardDeck"] = relationship(back_populates="cards")
    reviews: Mapped[List["FlashcardReview"]] = relationship(
        back_populates="flashcard", cascade="all, delete-orphan", passive_deletes=True
    )


# ===========================================
# Review History
# ===========================================


class FlashcardReview(Base):
    """
    Historical record of one flashcard review.

    Rows are only ever inserted.

    Attributes:
        id: Primary key.
        flashcard_id: Reviewed card.
        quality: SM-2 grade 0-5.
        easiness_factor_before / easiness_factor_after: EF around the review.
        interval_before / interval_after: Interval in days around the review.
        reviewed_at: When the review happened.
    """

    __tablename__ = "flashcard_reviews"

    id: Mapped[int] = mapped_column(primary_key=True)
    flashcard_id: Mapped[int] = mapped_column(
        ForeignKey("flashcards.id", ondelete="CASCADE"), index=True
    )

    quality: Mapped[int] = mapped_column(Integer)
    easiness_factor_before: Mapped[float] = mapped_column(Float)
    easiness_factor_after: Mapped[float] = mapped_column(Float)
    interval_before: Mapped[int] = mapped_column(Integer)
    interval_after: Mapped[int] = mapped_column(Integer)
    reviewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, index=True
    )

    # Relationship
    flashcard: Mapped["Flashcard"] = relationship(back_populates="reviews")
