"""
Exam Preparation Service

Manages subjects and revision sessions and turns them into exam
preparation scores.

Scores are derived on every call from:
- the subject's target hours
- minutes of sessions marked done up to today
- minutes of sessions still planned between tomorrow and the exam

Usage:
    from studyplan.services.planning.exam_prep_service import ExamPreparationService

    service = ExamPreparationService(db_session)
    response = await service.get_preparation_scores()
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from studyplan.config import settings
from studyplan.db.models import RevisionSession, Subject
from studyplan.enums.planning import DifficultyLevel, SessionStatus
from studyplan.middleware.error_handling import NotFoundError
from studyplan.models.planning import (
    ExamPreparationResponse,
    ExamPreparationScore,
    SessionCreate,
    SessionResponse,
    SubjectCreate,
    SubjectResponse,
    SubjectUpdate,
)
from studyplan.services.learning.sm2 import round_half_up
from studyplan.services.planning.exam_risk import (
    ExamRiskScorer,
    SubjectTarget,
    sort_by_risk,
)

logger = logging.getLogger(__name__)


def _enum_value(value: Any) -> Any:
    """Store enums as their plain string value."""
    return value.value if isinstance(value, Enum) else value


def session_duration_minutes(start_time, end_time) -> int:
    """
    Length of a session in whole minutes.

    Sessions never span midnight; an end before the start counts as 0.
    """
    delta = datetime.combine(date.min, end_time) - datetime.combine(date.min, start_time)
    return max(0, int(delta.total_seconds() // 60))


def build_subject_target(
    subject: Subject,
    sessions: Iterable[RevisionSession],
    today: date,
) -> SubjectTarget:
    """
    Sum a subject's sessions into the scorer input.

    completed: sessions on or before today with status done.
    future planned: sessions after today that are not skipped and, when an
    exam date is set, fall on or before it.
    """
    completed = 0
    future_planned = 0

    for session in sessions:
        minutes = session_duration_minutes(session.start_time, session.end_time)
        if session.date <= today:
            if session.status == SessionStatus.DONE.value:
                completed += minutes
        elif session.status != SessionStatus.SKIPPED.value:
            if subject.exam_date is None or session.date <= subject.exam_date:
                future_planned += minutes

    difficulty = (
        DifficultyLevel(subject.difficulty_level) if subject.difficulty_level else None
    )

    return SubjectTarget(
        target_minutes=int(round_half_up((subject.target_hours or 0) * 60)),
        completed_minutes=completed,
        future_planned_minutes=future_planned,
        exam_date=subject.exam_date,
        difficulty_level=difficulty,
    )


def session_to_response(session: RevisionSession) -> SessionResponse:
    return SessionResponse(
        id=session.id,
        subject_id=session.subject_id,
        date=session.date,
        start_time=session.start_time,
        end_time=session.end_time,
        status=SessionStatus(session.status),
        duration_minutes=session_duration_minutes(session.start_time, session.end_time),
        notes=session.notes,
    )


class ExamPreparationService:
    """
    Service for subjects, revision sessions and preparation scores.

    Provides:
    - Subject CRUD operations
    - Revision session planning and status tracking
    - Exam preparation scores, riskiest subject first
    """

    def __init__(self, db: AsyncSession, scorer: Optional[ExamRiskScorer] = None):
        """
        Initialize the service.

        Args:
            db: Async database session
            scorer: Risk scorer (defaults to one built from settings)
        """
        self.db = db
        self.scorer = scorer or ExamRiskScorer()

    # ===========================================
    # Subjects
    # ===========================================

    async def create_subject(self, data: SubjectCreate) -> SubjectResponse:
        subject = Subject(
            name=data.name,
            color=data.color,
            exam_date=data.exam_date,
            exam_type=data.exam_type,
            target_hours=data.target_hours,
            difficulty_level=_enum_value(data.difficulty_level),
            notes=data.notes,
        )
        self.db.add(subject)
        await self.db.commit()
        await self.db.refresh(subject)

        logger.info(f"Created subject {subject.id} '{subject.name}'")

        return SubjectResponse.model_validate(subject)

    async def list_subjects(self) -> list[SubjectResponse]:
        """List subjects by name."""
        result = await self.db.execute(
            select(Subject).order_by(Subject.name.asc(), Subject.id.asc())
        )
        return [SubjectResponse.model_validate(s) for s in result.scalars().all()]

    async def update_subject(
        self, subject_id: int, data: SubjectUpdate
    ) -> SubjectResponse:
        """Apply the fields sent in the request; a null exam_date clears it."""
        subject = await self._get_subject_record(subject_id)
        updates = data.model_dump(exclude_unset=True)

        for field, value in updates.items():
            if field == "name" and value is None:
                continue
            setattr(subject, field, _enum_value(value))

        await self.db.commit()
        await self.db.refresh(subject)

        logger.info(f"Updated subject {subject_id}: {sorted(updates)}")

        return SubjectResponse.model_validate(subject)

    # ===========================================
    # Revision Sessions
    # ===========================================

    async def create_session(self, data: SessionCreate) -> SessionResponse:
        """
        Plan a revision session.

        Raises:
            NotFoundError: If the subject does not exist
        """
        await self._get_subject_record(data.subject_id)

        session = RevisionSession(
            subject_id=data.subject_id,
            date=data.date,
            start_time=data.start_time,
            end_time=data.end_time,
            status=_enum_value(data.status),
            notes=data.notes,
        )
        self.db.add(session)
        await self.db.commit()
        await self.db.refresh(session)

        logger.info(
            f"Created session {session.id} for subject {data.subject_id} on {data.date}"
        )

        return session_to_response(session)

    async def list_sessions(
        self,
        subject_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[SessionResponse]:
        """
        List sessions in chronological order.

        Args:
            subject_id: Restrict to one subject
            start_date: Earliest session date (inclusive)
            end_date: Latest session date (inclusive)
        """
        query = select(RevisionSession)
        if subject_id is not None:
            query = query.where(RevisionSession.subject_id == subject_id)
        if start_date is not None:
            query = query.where(RevisionSession.date >= start_date)
        if end_date is not None:
            query = query.where(RevisionSession.date <= end_date)

        query = query.order_by(
            RevisionSession.date.asc(),
            RevisionSession.start_time.asc(),
            RevisionSession.id.asc(),
        )
        result = await self.db.execute(query)
        return [session_to_response(s) for s in result.scalars().all()]

    async def update_session_status(
        self, session_id: int, status: SessionStatus
    ) -> SessionResponse:
        """Mark a session planned, done or skipped."""
        result = await self.db.execute(
            select(RevisionSession).where(RevisionSession.id == session_id)
        )
        session = result.scalar_one_or_none()
        if session is None:
            raise NotFoundError(f"Revision session {session_id} not found")

        previous = session.status
        session.status = _enum_value(status)
        await self.db.commit()
        await self.db.refresh(session)

        logger.info(f"Session {session_id} status {previous} -> {session.status}")

        return session_to_response(session)

    # ===========================================
    # Preparation Scores
    # ===========================================

    async def get_preparation_scores(
        self, today: Optional[date] = None
    ) -> ExamPreparationResponse:
        """
        Score every subject that has a study-time target.

        Args:
            today: Reference date (default: the server's current date)

        Returns:
            Scores sorted high risk first, then nearest exam; subjects
            without an exam date come last within their tier.
        """
        today = today or date.today()

        result = await self.db.execute(
            select(Subject)
            .where(Subject.target_hours > 0)
            .options(selectinload(Subject.sessions))
            .order_by(Subject.id.asc())
        )
        subjects = result.scalars().all()

        scores = []
        for subject in subjects:
            target = build_subject_target(subject, subject.sessions, today)
            score = self.scorer.score(target, today)
            scores.append(
                ExamPreparationScore(
                    subject_id=subject.id,
                    subject_name=subject.name,
                    subject_color=subject.color or settings.SUBJECT_DEFAULT_COLOR,
                    exam_date=subject.exam_date,
                    days_until_exam=score.days_until_exam,
                    difficulty_level=target.difficulty_level,
                    target_minutes=target.target_minutes,
                    completed_minutes=target.completed_minutes,
                    future_planned_minutes=target.future_planned_minutes,
                    remaining_minutes=score.remaining_minutes,
                    progress_percentage=score.progress_percentage,
                    risk_level=score.risk_level,
                )
            )

        logger.debug(f"Scored {len(scores)} subjects as of {today}")

        return ExamPreparationResponse(as_of=today, scores=sort_by_risk(scores))

    async def _get_subject_record(self, subject_id: int) -> Subject:
        result = await self.db.execute(select(Subject).where(Subject.id == subject_id))
        subject = result.scalar_one_or_none()
        if subject is None:
            raise NotFoundError(f"Subject {subject_id} not found")
        return subject
