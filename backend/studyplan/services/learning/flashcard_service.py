"""
Flashcard Service

Service layer that integrates SM-2 scheduling with the database.
Handles deck and card CRUD (Create, Read, Update, Delete) operations,
review processing, and statistics.

Usage:
    from studyplan.services.learning.flashcard_service import FlashcardService

    service = FlashcardService(db_session)

    # Get due cards
    due_response = await service.get_due_cards(limit=50)

    # Process a review
    result = await service.review_card(card_id=123, quality=ReviewQuality.HESITANT)
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional
import logging

from sqlalchemy import and_, select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from studyplan.config.settings import settings
from studyplan.db.models import Flashcard, FlashcardDeck, FlashcardReview, Subject
from studyplan.middleware.error_handling import ConcurrentUpdateError, NotFoundError
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
    ReviewResponse,
)
from studyplan.services.learning.repository import (
    MemoryStateRepository,
    SqlMemoryStateRepository,
    memory_state_from_card,
)
from studyplan.services.learning.sm2 import (
    MemoryState,
    ReviewScheduler,
    create_scheduler,
    get_mastery_level,
    get_quality_label,
    round_half_up,
    validate_quality,
)

logger = logging.getLogger(__name__)


def compute_deck_stats(
    states: Iterable[MemoryState], now: Optional[datetime] = None
) -> DeckStats:
    """
    Aggregate the memory states of a deck.

    Args:
        states: Memory states of every card in the deck
        now: Reference time for the due count (default: now)

    Returns:
        DeckStats; an empty deck reports the initial easiness as its average.
    """
    now = now or datetime.now(timezone.utc)
    states = list(states)
    total = len(states)

    mastered = sum(
        1
        for s in states
        if s.easiness_factor >= settings.FLASHCARD_MASTERED_MIN_EASINESS
        and s.repetition_count >= settings.FLASHCARD_MASTERED_MIN_REPETITIONS
    )
    learning = sum(
        1
        for s in states
        if s.repetition_count < settings.FLASHCARD_MASTERED_MIN_REPETITIONS
    )
    due = sum(1 for s in states if s.is_due(now))

    if total:
        average_easiness = sum(s.easiness_factor for s in states) / total
    else:
        average_easiness = settings.SM2_INITIAL_EASINESS

    total_reviews = sum(s.total_reviews for s in states)
    correct_reviews = sum(s.correct_reviews for s in states)
    correct_rate = correct_reviews / total_reviews * 100 if total_reviews else 0.0

    return DeckStats(
        total_cards=total,
        mastered_cards=mastered,
        learning_cards=learning,
        due_cards=due,
        average_easiness=round_half_up(average_easiness, 2),
        total_reviews=total_reviews,
        correct_rate=round_half_up(correct_rate, 1),
        mastery_percentage=int(round_half_up(mastered / total * 100)) if total else 0,
    )


class FlashcardService:
    """
    Service for managing flashcard decks with SM-2 scheduling.

    Provides:
    - Deck and card CRUD operations
    - Review processing with the SM-2 algorithm
    - Due card queries
    - Deck statistics and review history
    """

    def __init__(
        self,
        db: AsyncSession,
        scheduler: Optional[ReviewScheduler] = None,
        repository: Optional[MemoryStateRepository] = None,
    ):
        """
        Initialize the flashcard service.

        Args:
            db: Async database session
            scheduler: SM-2 scheduler (defaults to create_scheduler())
            repository: Memory state storage (defaults to the SQL repository
                on the same session)
        """
        self.db = db
        self.scheduler = scheduler or create_scheduler()
        self.repository = repository or SqlMemoryStateRepository(db)

    # ===========================================
    # Decks
    # ===========================================

    async def create_deck(self, data: DeckCreate) -> DeckResponse:
        """
        Create a new deck.

        Raises:
            NotFoundError: If subject_id refers to a missing subject
        """
        if data.subject_id is not None:
            await self._ensure_subject_exists(data.subject_id)

        deck = FlashcardDeck(
            name=data.name,
            description=data.description,
            subject_id=data.subject_id,
        )
        self.db.add(deck)
        await self.db.commit()
        await self.db.refresh(deck)

        logger.info(f"Created deck {deck.id} '{deck.name}'")

        return DeckResponse.from_db_record(deck, card_count=0)

    async def list_decks(self) -> list[DeckResponse]:
        """List all decks, most recently updated first, with card counts."""
        query = (
            select(FlashcardDeck, func.count(Flashcard.id))
            .outerjoin(Flashcard, Flashcard.deck_id == FlashcardDeck.id)
            .group_by(FlashcardDeck.id)
            .order_by(FlashcardDeck.updated_at.desc(), FlashcardDeck.id.desc())
        )
        result = await self.db.execute(query)

        return [
            DeckResponse.from_db_record(deck, card_count=count or 0)
            for deck, count in result.all()
        ]

    async def get_deck(self, deck_id: int) -> DeckResponse:
        """Get a deck by ID."""
        deck = await self._get_deck_record(deck_id)
        return DeckResponse.from_db_record(
            deck, card_count=await self._count_cards(deck_id)
        )

    async def update_deck(self, deck_id: int, data: DeckUpdate) -> DeckResponse:
        """
        Apply a partial update to a deck.

        Only fields explicitly sent are changed, so a null subject_id
        detaches the deck.
        """
        deck = await self._get_deck_record(deck_id)
        updates = data.model_dump(exclude_unset=True)

        if updates.get("subject_id") is not None:
            await self._ensure_subject_exists(updates["subject_id"])

        for field, value in updates.items():
            if field == "name" and value is None:
                continue
            setattr(deck, field, value)

        await self.db.commit()
        await self.db.refresh(deck)

        logger.info(f"Updated deck {deck_id}: {sorted(updates)}")

        return DeckResponse.from_db_record(
            deck, card_count=await self._count_cards(deck_id)
        )

    async def delete_deck(self, deck_id: int) -> None:
        """Delete a deck together with its cards and their review history."""
        deck = await self._get_deck_record(deck_id)
        await self.db.delete(deck)
        await self.db.commit()

        logger.info(f"Deleted deck {deck_id}")

    # ===========================================
    # Cards
    # ===========================================

    async def create_card(self, deck_id: int, data: FlashcardCreate) -> FlashcardResponse:
        """
        Add a card to a deck.

        The card starts with the initial SM-2 state and is due immediately.
        """
        await self._get_deck_record(deck_id)

        initial = MemoryState.initial()
        card = Flashcard(
            deck_id=deck_id,
            front=data.front,
            back=data.back,
            easiness_factor=initial.easiness_factor,
            repetition_count=initial.repetition_count,
            interval_days=initial.interval_days,
            next_review_at=initial.next_review_at,
            total_reviews=0,
            correct_reviews=0,
            version=1,
        )
        self.db.add(card)
        await self.db.commit()
        await self.db.refresh(card)

        logger.info(f"Created card {card.id} in deck {deck_id}")

        return FlashcardResponse.from_db_record(card)

    async def list_cards(self, deck_id: int) -> list[FlashcardResponse]:
        """List the cards of a deck in creation order."""
        await self._get_deck_record(deck_id)

        result = await self.db.execute(
            select(Flashcard)
            .where(Flashcard.deck_id == deck_id)
            .order_by(Flashcard.created_at.asc(), Flashcard.id.asc())
        )
        return [FlashcardResponse.from_db_record(c) for c in result.scalars().all()]

    async def update_card(self, card_id: int, data: FlashcardUpdate) -> FlashcardResponse:
        """Edit the text of a card. Scheduling state is left untouched."""
        card = await self._get_card_record(card_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(card, field, value)

        await self.db.commit()
        await self.db.refresh(card)

        return FlashcardResponse.from_db_record(card)

    async def delete_card(self, card_id: int) -> None:
        """Delete a card and its review history."""
        card = await self._get_card_record(card_id)
        await self.db.delete(card)
        await self.db.commit()

        logger.info(f"Deleted card {card_id}")

    # ===========================================
    # Reviews
    # ===========================================

    async def get_due_cards(
        self,
        deck_id: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> DueCardsResponse:
        """
        Get cards due for review, oldest due first.

        Args:
            deck_id: Restrict to one deck (default: all decks)
            limit: Maximum number of cards to return
                (defaults to settings.REVIEW_DEFAULT_LIMIT)

        Returns:
            Due cards response with the total due count and a forecast
        """
        if limit is None:
            limit = settings.REVIEW_DEFAULT_LIMIT

        now = datetime.now(timezone.utc)

        conditions = []
        if deck_id is not None:
            conditions.append(Flashcard.deck_id == deck_id)

        query = (
            select(Flashcard)
            .where(Flashcard.next_review_at <= now, *conditions)
            .order_by(Flashcard.next_review_at.asc(), Flashcard.id.asc())
            .limit(limit)
        )
        result = await self.db.execute(query)
        cards = result.scalars().all()

        count_query = select(func.count(Flashcard.id)).where(
            Flashcard.next_review_at <= now, *conditions
        )
        total_result = await self.db.execute(count_query)
        total_due = total_result.scalar() or 0

        return DueCardsResponse(
            cards=[FlashcardResponse.from_db_record(c) for c in cards],
            total_due=total_due,
            review_forecast=await self._get_review_forecast(now, conditions),
        )

    async def review_card(
        self,
        card_id: int,
        quality: int,
        expected_version: Optional[int] = None,
    ) -> ReviewResponse:
        """
        Process a card review with SM-2.

        The state write is a compare-and-swap on the card version, so a
        concurrent review of the same card fails instead of being lost.

        Args:
            card_id: Card being reviewed
            quality: Grade 0-5
            expected_version: Version the client last saw; when given, a
                mismatch is rejected before scheduling

        Returns:
            Review response with new scheduling info

        Raises:
            ValueError: If quality is outside 0-5
            NotFoundError: If the card does not exist
            ConcurrentUpdateError: If the card changed since it was read
        """
        quality = validate_quality(quality)
        current = await self.repository.get(card_id)

        if expected_version is not None and expected_version != current.version:
            raise ConcurrentUpdateError(
                f"Flashcard {card_id} is at version {current.version}, "
                f"not {expected_version}",
                details={"flashcard_id": card_id, "current_version": current.version},
            )

        now = datetime.now(timezone.utc)
        new_state, log = self.scheduler.review(quality, current.state, now)
        new_version = await self.repository.put(card_id, new_state, current.version)

        # Append review history record
        self.db.add(
            FlashcardReview(
                flashcard_id=card_id,
                quality=int(log.quality),
                easiness_factor_before=log.easiness_factor_before,
                easiness_factor_after=log.easiness_factor_after,
                interval_before=log.interval_before,
                interval_after=log.interval_after,
                reviewed_at=log.reviewed_at,
            )
        )

        # Stamp the owning deck
        deck_id = select(Flashcard.deck_id).where(Flashcard.id == card_id).scalar_subquery()
        await self.db.execute(
            update(FlashcardDeck)
            .where(FlashcardDeck.id == deck_id)
            .values(last_studied_at=now)
            .execution_options(synchronize_session=False)
        )

        await self.db.commit()

        logger.info(
            f"Reviewed card {card_id} q={int(quality)}: EF {log.easiness_factor_before} -> "
            f"{log.easiness_factor_after}, next due in {new_state.interval_days} days"
        )

        return ReviewResponse(
            card_id=card_id,
            quality=quality,
            quality_label=get_quality_label(quality),
            was_correct=log.was_correct,
            easiness_factor=new_state.easiness_factor,
            repetition_count=new_state.repetition_count,
            interval_days=new_state.interval_days,
            next_review_at=new_state.next_review_at,
            version=new_version,
            mastery_level=get_mastery_level(
                new_state.easiness_factor, new_state.repetition_count
            ),
        )

    async def get_review_history(self, card_id: int) -> list[ReviewHistoryEntry]:
        """Review history of a card, newest first."""
        await self._get_card_record(card_id)

        result = await self.db.execute(
            select(FlashcardReview)
            .where(FlashcardReview.flashcard_id == card_id)
            .order_by(FlashcardReview.reviewed_at.desc(), FlashcardReview.id.desc())
        )
        return [
            ReviewHistoryEntry.from_db_record(entry) for entry in result.scalars().all()
        ]

    # ===========================================
    # Statistics
    # ===========================================

    async def get_deck_stats(self, deck_id: int) -> DeckStats:
        """
        Get aggregate statistics for a deck.

        Statistics include:
        - Mastered cards (easiness >= 2.5 after 3+ consecutive successes)
        - Learning cards (fewer than 3 consecutive successes)
        - Due cards and average easiness
        - Correct rate over all reviews
        """
        await self._get_deck_record(deck_id)

        result = await self.db.execute(
            select(Flashcard).where(Flashcard.deck_id == deck_id)
        )
        cards = result.scalars().all()

        return compute_deck_stats(memory_state_from_card(c) for c in cards)

    # ===========================================
    # Helpers
    # ===========================================

    async def _get_deck_record(self, deck_id: int) -> FlashcardDeck:
        result = await self.db.execute(
            select(FlashcardDeck).where(FlashcardDeck.id == deck_id)
        )
        deck = result.scalar_one_or_none()
        if deck is None:
            raise NotFoundError(f"Deck {deck_id} not found")
        return deck

    async def _get_card_record(self, card_id: int) -> Flashcard:
        result = await self.db.execute(select(Flashcard).where(Flashcard.id == card_id))
        card = result.scalar_one_or_none()
        if card is None:
            raise NotFoundError(f"Flashcard {card_id} not found")
        return card

    async def _get_review_forecast(
        self, now: datetime, conditions: list
    ) -> ReviewForecast:
        """
        Count upcoming reviews per calendar-day bucket (UTC).

        Buckets are [start, end) ranges: before today, today, tomorrow,
        days 3-7 and anything later.
        """
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        tomorrow_start = today_start + timedelta(days=1)
        day_after_tomorrow = tomorrow_start + timedelta(days=1)
        week_end = today_start + timedelta(days=7)

        return ReviewForecast(
            overdue=await self._count_due_between(None, today_start, conditions),
            today=await self._count_due_between(today_start, tomorrow_start, conditions),
            tomorrow=await self._count_due_between(
                tomorrow_start, day_after_tomorrow, conditions
            ),
            this_week=await self._count_due_between(
                day_after_tomorrow, week_end, conditions
            ),
            later=await self._count_due_between(week_end, None, conditions),
        )

    async def _count_due_between(
        self,
        start: Optional[datetime],
        end: Optional[datetime],
        conditions: list,
    ) -> int:
        query = select(func.count(Flashcard.id))
        if start is not None and end is not None:
            query = query.where(
                and_(Flashcard.next_review_at >= start, Flashcard.next_review_at < end)
            )
        elif start is not None:
            query = query.where(Flashcard.next_review_at >= start)
        elif end is not None:
            query = query.where(Flashcard.next_review_at < end)

        if conditions:
            query = query.where(*conditions)

        result = await self.db.execute(query)
        return result.scalar() or 0

    async def _count_cards(self, deck_id: int) -> int:
        result = await self.db.execute(
            select(func.count(Flashcard.id)).where(Flashcard.deck_id == deck_id)
        )
        return result.scalar() or 0

    async def _ensure_subject_exists(self, subject_id: int) -> None:
        result = await self.db.execute(select(Subject.id).where(Subject.id == subject_id))
        if result.scalar_one_or_none() is None:
            raise NotFoundError(f"Subject {subject_id} not found")
