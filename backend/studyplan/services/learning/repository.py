"""
Memory State Repository

Loads and stores the SM-2 scheduling state of flashcards.

Writes are compare-and-swap on the ``version`` column: the UPDATE only
matches when the row still carries the version the caller read. Two
concurrent reviews of the same card therefore cannot both apply on top of
the same prior state; the loser gets a ConcurrentUpdateError (HTTP 409).

Usage:
    repo = SqlMemoryStateRepository(db)
    current = await repo.get(card_id)
    new_version = await repo.put(card_id, new_state, current.version)
"""

import logging
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from studyplan.db.models import Flashcard
from studyplan.middleware.error_handling import ConcurrentUpdateError, NotFoundError
from studyplan.services.learning.sm2 import MemoryState

logger = logging.getLogger(__name__)


@dataclass
class VersionedMemoryState:
    """A memory state together with the row version it was read at."""

    state: MemoryState
    version: int


class MemoryStateRepository(Protocol):
    """Storage interface for flashcard memory states."""

    async def get(self, flashcard_id: int) -> VersionedMemoryState: ...

    async def put(
        self, flashcard_id: int, state: MemoryState, expected_version: int
    ) -> int: ...


def memory_state_from_card(card: Flashcard) -> MemoryState:
    """Extract the SM-2 state from a Flashcard row."""
    return MemoryState(
        easiness_factor=card.easiness_factor,
        repetition_count=card.repetition_count,
        interval_days=card.interval_days,
        next_review_at=card.next_review_at,
        total_reviews=card.total_reviews,
        correct_reviews=card.correct_reviews,
        last_reviewed_at=card.last_reviewed_at,
    )


class SqlMemoryStateRepository:
    """SQLAlchemy implementation backed by the flashcards table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, flashcard_id: int) -> VersionedMemoryState:
        """
        Read a card's memory state.

        Raises:
            NotFoundError: If the card does not exist.
        """
        # Always read the stored row, not an object cached in the session
        result = await self.db.execute(
            select(Flashcard)
            .where(Flashcard.id == flashcard_id)
            .execution_options(populate_existing=True)
        )
        card = result.scalar_one_or_none()
        if card is None:
            raise NotFoundError(f"Flashcard {flashcard_id} not found")

        return VersionedMemoryState(
            state=memory_state_from_card(card), version=card.version
        )

    async def put(
        self, flashcard_id: int, state: MemoryState, expected_version: int
    ) -> int:
        """
        Write a memory state if the stored version still matches.

        Does not commit; the caller owns the transaction.

        Args:
            flashcard_id: Card to update.
            state: New memory state.
            expected_version: Version the state was computed from.

        Returns:
            The new version number.

        Raises:
            ConcurrentUpdateError: If another write landed first.
            NotFoundError: If the card no longer exists.
        """
        new_version = expected_version + 1
        result = await self.db.execute(
            update(Flashcard)
            .where(Flashcard.id == flashcard_id, Flashcard.version == expected_version)
            .values(
                easiness_factor=state.easiness_factor,
                repetition_count=state.repetition_count,
                interval_days=state.interval_days,
                next_review_at=state.next_review_at,
                last_reviewed_at=state.last_reviewed_at,
                total_reviews=state.total_reviews,
                correct_reviews=state.correct_reviews,
                version=new_version,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            exists = await self.db.execute(
                select(Flashcard.id).where(Flashcard.id == flashcard_id)
            )
            if exists.scalar_one_or_none() is None:
                raise NotFoundError(f"Flashcard {flashcard_id} not found")

            logger.warning(
                f"Version conflict on flashcard {flashcard_id} (expected v{expected_version})"
            )
            raise ConcurrentUpdateError(
                f"Flashcard {flashcard_id} was modified by another review",
                details={"flashcard_id": flashcard_id, "expected_version": expected_version},
            )

        return new_version
