"""
Review API Router

Endpoints for the SM-2 review loop.

Endpoints:
- GET /api/review/due - Get cards due for review
- POST /api/review/rate - Submit a review grade
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from studyplan.db.base import get_db
from studyplan.middleware.error_handling import handle_endpoint_errors
from studyplan.models.flashcards import DueCardsResponse, ReviewRequest, ReviewResponse
from studyplan.services.learning.flashcard_service import FlashcardService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/review", tags=["review"])


async def get_flashcard_service(
    db: AsyncSession = Depends(get_db),
) -> FlashcardService:
    """Get flashcard service."""
    return FlashcardService(db)


@router.get("/due", response_model=DueCardsResponse)
@handle_endpoint_errors("Get due cards")
async def get_due_cards(
    deck_id: Optional[int] = Query(None, description="Restrict to one deck"),
    limit: Optional[int] = Query(None, ge=1, le=500, description="Maximum cards to return"),
    service: FlashcardService = Depends(get_flashcard_service),
) -> DueCardsResponse:
    """
    Get cards due for review.

    Returns cards whose next review time has passed, oldest first, plus
    the total due count and a forecast of upcoming reviews.
    """
    return await service.get_due_cards(deck_id=deck_id, limit=limit)


@router.post("/rate", response_model=ReviewResponse)
@handle_endpoint_errors("Rate card")
async def rate_card(
    request: ReviewRequest,
    service: FlashcardService = Depends(get_flashcard_service),
) -> ReviewResponse:
    """
    Submit a review grade for a card.

    Grades (0-5):
    - 0-2: Failed recall, the card restarts at a 1-day interval
    - 3: Correct with serious difficulty
    - 4: Correct after hesitation
    - 5: Perfect recall

    Send the card's ``version`` as ``expected_version`` to get a 409 instead
    of a silent overwrite when another review landed first.
    """
    return await service.review_card(
        request.card_id,
        request.quality,
        expected_version=request.expected_version,
    )
