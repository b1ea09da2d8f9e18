"""
Flashcards API Router

Endpoints for deck and card management.

Endpoints:
- POST /api/flashcards/decks - Create a deck
- GET /api/flashcards/decks - List decks with card counts
- GET /api/flashcards/decks/{id} - Get a deck
- PATCH /api/flashcards/decks/{id} - Update a deck
- DELETE /api/flashcards/decks/{id} - Delete a deck and its cards
- POST /api/flashcards/decks/{id}/cards - Add a card
- GET /api/flashcards/decks/{id}/cards - List the cards of a deck
- GET /api/flashcards/decks/{id}/stats - Deck statistics
- PATCH /api/flashcards/cards/{id} - Edit a card
- DELETE /api/flashcards/cards/{id} - Delete a card
- GET /api/flashcards/cards/{id}/history - Review history of a card
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from studyplan.db.base import get_db
from studyplan.middleware.error_handling import handle_endpoint_errors
from studyplan.models.base import SuccessResponse
from studyplan.models.flashcards import (
    DeckCreate,
    DeckResponse,
    DeckStats,
    DeckUpdate,
    FlashcardCreate,
    FlashcardResponse,
    FlashcardUpdate,
    ReviewHistoryEntry,
)
from studyplan.services.learning.flashcard_service import FlashcardService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/flashcards", tags=["flashcards"])


# ===========================================
# Dependency Injection
# ===========================================


async def get_flashcard_service(
    db: AsyncSession = Depends(get_db),
) -> FlashcardService:
    """Get flashcard service."""
    return FlashcardService(db)


# ===========================================
# Deck Endpoints
# ===========================================


@router.post("/decks", response_model=DeckResponse, status_code=201)
@handle_endpoint_errors("Create deck")
async def create_deck(
    deck_data: DeckCreate,
    service: FlashcardService = Depends(get_flashcard_service),
) -> DeckResponse:
    """Create a deck, optionally linked to a subject."""
    return await service.create_deck(deck_data)


@router.get("/decks", response_model=list[DeckResponse])
@handle_endpoint_errors("List decks")
async def list_decks(
    service: FlashcardService = Depends(get_flashcard_service),
) -> list[DeckResponse]:
    """List all decks, most recently updated first."""
    return await service.list_decks()


@router.get("/decks/{deck_id}", response_model=DeckResponse)
@handle_endpoint_errors("Get deck")
async def get_deck(
    deck_id: int,
    service: FlashcardService = Depends(get_flashcard_service),
) -> DeckResponse:
    return await service.get_deck(deck_id)


@router.patch("/decks/{deck_id}", response_model=DeckResponse)
@handle_endpoint_errors("Update deck")
async def update_deck(
    deck_id: int,
    deck_data: DeckUpdate,
    service: FlashcardService = Depends(get_flashcard_service),
) -> DeckResponse:
    """Update name, description or subject of a deck."""
    return await service.update_deck(deck_id, deck_data)


@router.delete("/decks/{deck_id}", response_model=SuccessResponse)
@handle_endpoint_errors("Delete deck")
async def delete_deck(
    deck_id: int,
    service: FlashcardService = Depends(get_flashcard_service),
) -> SuccessResponse:
    """Delete a deck. Its cards and their review history go with it."""
    await service.delete_deck(deck_id)
    return SuccessResponse(message=f"Deck {deck_id} deleted")


@router.get("/decks/{deck_id}/stats", response_model=DeckStats)
@handle_endpoint_errors("Get deck stats")
async def get_deck_stats(
    deck_id: int,
    service: FlashcardService = Depends(get_flashcard_service),
) -> DeckStats:
    """
    Get deck statistics.

    Returns:
    - Total, mastered, learning and due card counts
    - Average easiness factor
    - Correct rate and mastery percentage
    """
    return await service.get_deck_stats(deck_id)


# ===========================================
# Card Endpoints
# ===========================================


@router.post("/decks/{deck_id}/cards", response_model=FlashcardResponse, status_code=201)
@handle_endpoint_errors("Create card")
async def create_card(
    deck_id: int,
    card_data: FlashcardCreate,
    service: FlashcardService = Depends(get_flashcard_service),
) -> FlashcardResponse:
    """
    Add a card to a deck.

    The card is due immediately with the initial easiness factor.
    """
    return await service.create_card(deck_id, card_data)


@router.get("/decks/{deck_id}/cards", response_model=list[FlashcardResponse])
@handle_endpoint_errors("List cards")
async def list_cards(
    deck_id: int,
    service: FlashcardService = Depends(get_flashcard_service),
) -> list[FlashcardResponse]:
    return await service.list_cards(deck_id)


@router.patch("/cards/{card_id}", response_model=FlashcardResponse)
@handle_endpoint_errors("Update card")
async def update_card(
    card_id: int,
    card_data: FlashcardUpdate,
    service: FlashcardService = Depends(get_flashcard_service),
) -> FlashcardResponse:
    """Edit the front or back of a card."""
    return await service.update_card(card_id, card_data)


@router.delete("/cards/{card_id}", response_model=SuccessResponse)
@handle_endpoint_errors("Delete card")
async def delete_card(
    card_id: int,
    service: FlashcardService = Depends(get_flashcard_service),
) -> SuccessResponse:
    await service.delete_card(card_id)
    return SuccessResponse(message=f"Flashcard {card_id} deleted")


@router.get("/cards/{card_id}/history", response_model=list[ReviewHistoryEntry])
@handle_endpoint_errors("Get review history")
async def get_review_history(
    card_id: int,
    service: FlashcardService = Depends(get_flashcard_service),
) -> list[ReviewHistoryEntry]:
    """Review history of a card, newest first."""
    return await service.get_review_history(card_id)
