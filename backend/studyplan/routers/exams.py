"""
Exams API Router

Endpoints for subjects, revision sessions and exam preparation scores.

Endpoints:
- POST /api/exams/subjects - Create a subject
- GET /api/exams/subjects - List subjects
- PATCH /api/exams/subjects/{id} - Update a subject
- POST /api/exams/sessions - Plan a revision session
- GET /api/exams/sessions - List revision sessions
- PATCH /api/exams/sessions/{id}/status - Mark a session planned/done/skipped
- GET /api/exams/preparation - Preparation scores, riskiest first
"""

from datetime import date
from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyplan.db.base import get_db
from studyplan.middleware.error_handling import handle_endpoint_errors
from studyplan.models.planning import (
    ExamPreparationResponse,
    SessionCreate,
    SessionResponse,
    SessionStatusUpdate,
    SubjectCreate,
    SubjectResponse,
    SubjectUpdate,
)
from studyplan.services.planning.exam_prep_service import ExamPreparationService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/exams", tags=["exams"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_exam_service(
    db: AsyncSession = Depends(get_db),
) -> ExamPreparationService:
    """Get exam preparation service."""
    return ExamPreparationService(db)


# ===========================================
# Subject Endpoints
# ===========================================


@router.post("/subjects", response_model=SubjectResponse, status_code=201)
@handle_endpoint_errors("Create subject")
async def create_subject(
    subject_data: SubjectCreate,
    service: ExamPreparationService = Depends(get_exam_service),
) -> SubjectResponse:
    return await service.create_subject(subject_data)


@router.get("/subjects", response_model=list[SubjectResponse])
@handle_endpoint_errors("List subjects")
async def list_subjects(
    service: ExamPreparationService = Depends(get_exam_service),
) -> list[SubjectResponse]:
    return await service.list_subjects()


@router.patch("/subjects/{subject_id}", response_model=SubjectResponse)
@handle_endpoint_errors("Update subject")
async def update_subject(
    subject_id: int,
    subject_data: SubjectUpdate,
    service: ExamPreparationService = Depends(get_exam_service),
) -> SubjectResponse:
    """Update exam date, target hours, difficulty or display fields."""
    return await service.update_subject(subject_id, subject_data)


# ===========================================
# Session Endpoints
# ===========================================


@router.post("/sessions", response_model=SessionResponse, status_code=201)
@handle_endpoint_errors("Create session")
async def create_session(
    session_data: SessionCreate,
    service: ExamPreparationService = Depends(get_exam_service),
) -> SessionResponse:
    """Plan a revision session (or log one retroactively as done)."""
    return await service.create_session(session_data)


@router.get("/sessions", response_model=list[SessionResponse])
@handle_endpoint_errors("List sessions")
async def list_sessions(
    subject_id: Optional[int] = Query(None, description="Filter by subject"),
    start_date: Optional[date] = Query(None, description="Earliest date (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Latest date (YYYY-MM-DD)"),
    service: ExamPreparationService = Depends(get_exam_service),
) -> list[SessionResponse]:
    return await service.list_sessions(
        subject_id=subject_id, start_date=start_date, end_date=end_date
    )


@router.patch("/sessions/{session_id}/status", response_model=SessionResponse)
@handle_endpoint_errors("Update session status")
async def update_session_status(
    session_id: int,
    status_data: SessionStatusUpdate,
    service: ExamPreparationService = Depends(get_exam_service),
) -> SessionResponse:
    return await service.update_session_status(session_id, status_data.status)


# ===========================================
# Preparation Scores
# ===========================================


@router.get("/preparation", response_model=ExamPreparationResponse)
@handle_endpoint_errors("Get preparation scores")
async def get_preparation_scores(
    as_of: Optional[date] = Query(None, description="Reference date (defaults to today)"),
    service: ExamPreparationService = Depends(get_exam_service),
) -> ExamPreparationResponse:
    """
    Get exam preparation scores.

    Only subjects with a positive target are scored. Each record carries
    progress percentage (capped at 120), remaining minutes, days until the
    exam and a risk level. Ordered high risk first, then nearest exam.
    """
    return await service.get_preparation_scores(today=as_of)
