"""
Planning API Models (Pydantic)

Request/response schemas for subjects, revision sessions and exam
preparation scores.

ARCHITECTURE NOTE:
    There is a corresponding SQLAlchemy file: studyplan/db/models_planning.py
"""

from datetime import date, datetime, time
from typing import Optional

from pydantic import Field, model_validator

from studyplan.enums.planning import DifficultyLevel, RiskLevel, SessionStatus
from studyplan.models.base import StrictRequest, StrictResponse

HEX_COLOR_PATTERN = r"^#[0-9A-Fa-f]{6}$"


# ===========================================
# Subjects
# ===========================================


class SubjectCreate(StrictRequest):
    """Request to create a subject."""

    name: str = Field(..., min_length=1, max_length=200)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    exam_date: Optional[date] = None
    exam_type: Optional[str] = Field(None, max_length=50)
    target_hours: Optional[float] = Field(
        None, ge=0, description="Study-time goal; 0 or empty excludes the subject from scoring"
    )
    difficulty_level: Optional[DifficultyLevel] = None
    notes: Optional[str] = None


class SubjectUpdate(StrictRequest):
    """Partial subject update. Only fields sent in the body are applied."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    color: Optional[str] = Field(None, pattern=HEX_COLOR_PATTERN)
    exam_date: Optional[date] = None
    exam_type: Optional[str] = Field(None, max_length=50)
    target_hours: Optional[float] = Field(None, ge=0)
    difficulty_level: Optional[DifficultyLevel] = None
    notes: Optional[str] = None


class SubjectResponse(StrictResponse):
    id: int
    name: str
    color: Optional[str] = None
    exam_date: Optional[date] = None
    exam_type: Optional[str] = None
    target_hours: Optional[float] = None
    difficulty_level: Optional[DifficultyLevel] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


# ===========================================
# Revision Sessions
# ===========================================


class SessionCreate(StrictRequest):
    """
    Request to plan a revision session.

    Sessions may be logged retroactively with status "done".
    """

    subject_id: int
    date: date
    start_time: time
    end_time: time
    status: SessionStatus = SessionStatus.PLANNED
    notes: Optional[str] = None

    @model_validator(mode="after")
    def check_time_range(self) -> "SessionCreate":
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class SessionStatusUpdate(StrictRequest):
    status: SessionStatus


class SessionResponse(StrictResponse):
    id: int
    subject_id: int
    date: date
    start_time: time
    end_time: time
    status: SessionStatus
    duration_minutes: int
    notes: Optional[str] = None


# ===========================================
# Exam Preparation
# ===========================================


class ExamPreparationScore(StrictResponse):
    """
    Preparation score of one subject.

    Derived on every request from the subject's target and sessions;
    never stored.
    """

    subject_id: int
    subject_name: str
    subject_color: str
    exam_date: Optional[date] = None
    days_until_exam: Optional[int] = Field(
        None, description="Calendar days until the exam; negative once it has passed"
    )
    difficulty_level: Optional[DifficultyLevel] = None

    target_minutes: int
    completed_minutes: int
    future_planned_minutes: int
    remaining_minutes: int = Field(description="Target minus completed and planned, floored at 0")

    progress_percentage: int = Field(description="Completed share of the target, capped at 120")
    risk_level: RiskLevel


class ExamPreparationResponse(StrictResponse):
    """Scores ordered high risk first, then by nearest exam."""

    as_of: date
    scores: list[ExamPreparationScore]
