"""
SQLAlchemy Database Models for Study Planning

Tables:
- subjects: Subjects with an optional exam date and study-time target
- revision_sessions: Planned, done or skipped revision slots for a subject

ARCHITECTURE NOTE:
    There is a corresponding Pydantic file: studyplan/models/planning.py
"""

from datetime import date, datetime, time, timezone
from typing import List, Optional

from sqlalchemy import Date, DateTime, Float, ForeignKey, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship

from studyplan.db.base import Base


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


class Subject(Base):
    """
    A subject the student revises for.

    Attributes:
        id: Primary key.
        name: Display name.
        color: Hex color used by dashboards. Optional.
        exam_date: Date of the exam, if known.
        exam_type: Free-form exam type (written, oral, ...). Optional.
        target_hours: Study-time goal. Subjects without a positive target are
            left out of exam preparation scoring.
        difficulty_level: easy / medium / hard. Optional.
        notes: Free text.
    """

    __tablename__ = "subjects"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(200))
    color: Mapped[Optional[str]] = mapped_column(String(20))
    exam_date: Mapped[Optional[date]] = mapped_column(Date)
    exam_type: Mapped[Optional[str]] = mapped_column(String(50))
    target_hours: Mapped[Optional[float]] = mapped_column(Float)
    difficulty_level: Mapped[Optional[str]] = mapped_column(String(20))
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    # Relationships
    sessions: Mapped[List["RevisionSession"]] = relationship(
        back_populates="subject", cascade="all, delete-orphan", passive_deletes=True
    )
    decks: Mapped[List["FlashcardDeck"]] = relationship(back_populates="subject")


class RevisionSession(Base):
    """
    A revision slot on a given day.

    Attributes:
        id: Primary key.
        subject_id: Subject being revised.
        date: Calendar day of the session.
        start_time / end_time: Wall-clock bounds; duration is their difference.
        status: planned, done or skipped.
        notes: Free text.
    """

    __tablename__ = "revision_sessions"

    id: Mapped[int] = mapped_column(primary_key=True)
    subject_id: Mapped[int] = mapped_column(
        ForeignKey("subjects.id", ondelete="CASCADE"), index=True
    )

    date: Mapped[date] = mapped_column(Date, index=True)
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time] = mapped_column(Time)
    status: Mapped[str] = mapped_column(String(20), default="planned")
    notes: Mapped[Optional[str]] = mapped_column(Text)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now
    )

    # Relationship
    subject: Mapped["Subject"] = relationship(back_populates="sessions")
