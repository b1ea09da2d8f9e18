"""
Unit tests for FlashcardService.

Tests the service layer for deck/card management, SM-2 review processing
and deck statistics.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from studyplan.db.models import Flashcard, FlashcardDeck, FlashcardReview
from studyplan.enums.learning import MasteryLevel, ReviewQuality
from studyplan.middleware.error_handling import ConcurrentUpdateError, NotFoundError
from studyplan.models.flashcards import (
    DeckCreate,
    DeckUpdate,
    FlashcardCreate,
    FlashcardUpdate,
)
from studyplan.services.learning.flashcard_service import (
    FlashcardService,
    compute_deck_stats,
)
from studyplan.services.learning.repository import VersionedMemoryState
from studyplan.services.learning.sm2 import MemoryState
from tests.helpers import scalar_result, scalars_result


@pytest.fixture
def make_deck(now_utc):
    """Factory for FlashcardDeck-like records."""

    def _make(**overrides) -> MagicMock:
        deck = MagicMock()
        values = {
            "id": 10,
            "subject_id": None,
            "name": "French vocabulary",
            "description": None,
            "last_studied_at": None,
            "created_at": now_utc - timedelta(days=2),
            "updated_at": now_utc - timedelta(days=1),
        }
        values.update(overrides)
        for key, value in values.items():
            setattr(deck, key, value)
        return deck

    return _make


def set_row_defaults(now: datetime):
    """Side effect for db.refresh that fills server-generated columns."""

    async def _refresh(record):
        record.id = 42
        record.created_at = now
        record.updated_at = now

    return _refresh


class TestFlashcardServiceInitialization:
    def test_default_scheduler(self, mock_db_session):
        service = FlashcardService(mock_db_session)
        assert service.scheduler.min_easiness == 1.3

    def test_default_repository_shares_session(self, mock_db_session):
        service = FlashcardService(mock_db_session)
        assert service.repository.db is mock_db_session


class TestDecks:
    """Tests for deck CRUD."""

    @pytest.mark.asyncio
    async def test_create_deck(self, mock_db_session, now_utc):
        mock_db_session.refresh = AsyncMock(side_effect=set_row_defaults(now_utc))
        service = FlashcardService(mock_db_session)

        result = await service.create_deck(DeckCreate(name="  Biology  "))

        added = mock_db_session.add.call_args.args[0]
        assert isinstance(added, FlashcardDeck)
        assert added.name == "Biology"
        assert result.id == 42
        assert result.card_count == 0
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_deck_unknown_subject(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)
        service = FlashcardService(mock_db_session)

        with pytest.raises(NotFoundError):
            await service.create_deck(DeckCreate(name="Biology", subject_id=7))

        mock_db_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_list_decks_with_counts(self, mock_db_session, make_deck):
        result = MagicMock()
        result.all.return_value = [(make_deck(id=1), 3), (make_deck(id=2), 0)]
        mock_db_session.execute.return_value = result
        service = FlashcardService(mock_db_session)

        decks = await service.list_decks()

        assert [d.id for d in decks] == [1, 2]
        assert [d.card_count for d in decks] == [3, 0]

    @pytest.mark.asyncio
    async def test_get_missing_deck(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)
        service = FlashcardService(mock_db_session)

        with pytest.raises(NotFoundError):
            await service.get_deck(404)

    @pytest.mark.asyncio
    async def test_update_deck_detaches_subject(self, mock_db_session, make_deck):
        deck = make_deck(subject_id=3)
        mock_db_session.execute.side_effect = [scalar_result(deck), scalar_result(5)]
        service = FlashcardService(mock_db_session)

        result = await service.update_deck(deck.id, DeckUpdate(subject_id=None))

        assert deck.subject_id is None
        assert deck.name == "French vocabulary"
        assert result.card_count == 5

    @pytest.mark.asyncio
    async def test_update_deck_ignores_null_name(self, mock_db_session, make_deck):
        deck = make_deck()
        mock_db_session.execute.side_effect = [scalar_result(deck), scalar_result(0)]
        service = FlashcardService(mock_db_session)

        await service.update_deck(deck.id, DeckUpdate(name=None, description="Verbs"))

        assert deck.name == "French vocabulary"
        assert deck.description == "Verbs"

    @pytest.mark.asyncio
    async def test_delete_deck(self, mock_db_session, make_deck):
        deck = make_deck()
        mock_db_session.execute.return_value = scalar_result(deck)
        service = FlashcardService(mock_db_session)

        await service.delete_deck(deck.id)

        mock_db_session.delete.assert_awaited_once_with(deck)
        mock_db_session.commit.assert_awaited_once()


class TestCards:
    """Tests for card CRUD."""

    @pytest.mark.asyncio
    async def test_create_card_has_initial_state(
        self, mock_db_session, make_deck, now_utc
    ):
        mock_db_session.execute.return_value = scalar_result(make_deck())
        mock_db_session.refresh = AsyncMock(side_effect=set_row_defaults(now_utc))
        service = FlashcardService(mock_db_session)

        result = await service.create_card(
            10, FlashcardCreate(front="Chien", back="Dog")
        )

        added = mock_db_session.add.call_args.args[0]
        assert isinstance(added, Flashcard)
        assert added.deck_id == 10
        assert result.easiness_factor == 2.5
        assert result.repetition_count == 0
        assert result.interval_days == 0
        assert result.version == 1
        assert result.mastery_level == MasteryLevel.NEW
        assert result.next_review_at <= datetime.now(timezone.utc)

    @pytest.mark.asyncio
    async def test_create_card_in_missing_deck(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)
        service = FlashcardService(mock_db_session)

        with pytest.raises(NotFoundError):
            await service.create_card(10, FlashcardCreate(front="a", back="b"))

    @pytest.mark.asyncio
    async def test_list_cards(self, mock_db_session, make_deck, make_card):
        cards = [make_card(id=1), make_card(id=2, repetition_count=3)]
        mock_db_session.execute.side_effect = [
            scalar_result(make_deck()),
            scalars_result(cards),
        ]
        service = FlashcardService(mock_db_session)

        result = await service.list_cards(10)

        assert [c.id for c in result] == [1, 2]
        assert result[1].mastery_level == MasteryLevel.MASTERED

    @pytest.mark.asyncio
    async def test_update_card_text_only(self, mock_db_session, make_card):
        card = make_card(easiness_factor=2.18, version=5)
        mock_db_session.execute.return_value = scalar_result(card)
        service = FlashcardService(mock_db_session)

        result = await service.update_card(card.id, FlashcardUpdate(back="Hound"))

        assert card.back == "Hound"
        assert card.front == "Capital of France?"
        assert result.easiness_factor == 2.18
        assert result.version == 5

    @pytest.mark.asyncio
    async def test_delete_missing_card(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)
        service = FlashcardService(mock_db_session)

        with pytest.raises(NotFoundError):
            await service.delete_card(1)

        mock_db_session.delete.assert_not_awaited()


def forecast_counts(*counts):
    """Results of the five bucket count queries, overdue through later."""
    return [scalar_result(count) for count in counts]


def datetime_params(statement) -> list[datetime]:
    params = statement.compile().params.values()
    return sorted(value for value in params if isinstance(value, datetime))


class TestGetDueCards:
    @pytest.mark.asyncio
    async def test_due_cards_with_forecast(self, mock_db_session, make_card, now_utc):
        due_card = make_card(next_review_at=now_utc - timedelta(days=2))
        mock_db_session.execute.side_effect = [
            scalars_result([due_card]),
            scalar_result(1),
            *forecast_counts(1, 0, 0, 0, 1),
        ]
        service = FlashcardService(mock_db_session)

        result = await service.get_due_cards(deck_id=10, limit=5)

        assert result.total_due == 1
        assert [c.id for c in result.cards] == [due_card.id]
        assert result.review_forecast.overdue == 1
        assert result.review_forecast.today == 0
        assert result.review_forecast.later == 1

    @pytest.mark.asyncio
    async def test_forecast_is_counted_in_sql(self, mock_db_session):
        mock_db_session.execute.side_effect = [
            scalars_result([]),
            scalar_result(0),
            *forecast_counts(3, 2, 1, 4, 9),
        ]
        service = FlashcardService(mock_db_session)

        await service.get_due_cards(deck_id=10, limit=5)

        statements = [call.args[0] for call in mock_db_session.execute.await_args_list]
        forecast_statements = statements[2:]
        assert len(forecast_statements) == 5
        for statement in forecast_statements:
            sql = str(statement)
            assert sql.startswith("SELECT count(flashcards.id)")
            assert "flashcards.deck_id" in sql

        # No statement loads bare due timestamps for counting in Python
        assert not any(
            str(s).startswith("SELECT flashcards.next_review_at") for s in statements
        )

    @pytest.mark.asyncio
    async def test_forecast_buckets_are_day_ranges(self, mock_db_session):
        mock_db_session.execute.side_effect = [
            scalars_result([]),
            scalar_result(0),
            *forecast_counts(0, 0, 0, 0, 0),
        ]
        service = FlashcardService(mock_db_session)

        await service.get_due_cards()

        statements = [call.args[0] for call in mock_db_session.execute.await_args_list]
        overdue, today, tomorrow, this_week, later = (
            datetime_params(s) for s in statements[2:]
        )
        today_start = overdue[0]

        assert today_start.hour == 0 and today_start.minute == 0
        assert today == [today_start, today_start + timedelta(days=1)]
        assert tomorrow == [today_start + timedelta(days=1), today_start + timedelta(days=2)]
        assert this_week == [today_start + timedelta(days=2), today_start + timedelta(days=7)]
        assert later == [today_start + timedelta(days=7)]

    @pytest.mark.asyncio
    async def test_empty(self, mock_db_session):
        mock_db_session.execute.side_effect = [
            scalars_result([]),
            scalar_result(0),
            *forecast_counts(0, 0, 0, 0, 0),
        ]
        service = FlashcardService(mock_db_session)

        result = await service.get_due_cards()

        assert result.cards == []
        assert result.total_due == 0
        assert result.review_forecast.model_dump() == {
            "overdue": 0,
            "today": 0,
            "tomorrow": 0,
            "this_week": 0,
            "later": 0,
        }

    @pytest.mark.asyncio
    async def test_default_limit_applied(self, mock_db_session):
        mock_db_session.execute.side_effect = [
            scalars_result([]),
            scalar_result(0),
            *forecast_counts(0, 0, 0, 0, 0),
        ]
        service = FlashcardService(mock_db_session)

        await service.get_due_cards()

        query = mock_db_session.execute.await_args_list[0].args[0]
        assert query._limit_clause.value == 50


class TestReviewCard:
    """Tests for review processing."""

    @pytest.fixture
    def prior_state(self):
        return MemoryState(
            easiness_factor=2.5,
            repetition_count=2,
            interval_days=6,
            total_reviews=2,
            correct_reviews=2,
        )

    @pytest.fixture
    def repository(self, prior_state):
        repo = MagicMock()
        repo.get = AsyncMock(return_value=VersionedMemoryState(prior_state, version=3))
        repo.put = AsyncMock(return_value=4)
        return repo

    @pytest.mark.asyncio
    async def test_review_good(self, mock_db_session, repository):
        service = FlashcardService(mock_db_session, repository=repository)

        result = await service.review_card(1, ReviewQuality.HESITANT)

        assert result.card_id == 1
        assert result.quality_label == "Good"
        assert result.was_correct is True
        assert result.repetition_count == 3
        assert result.interval_days == 15
        assert result.easiness_factor == 2.5
        assert result.version == 4
        assert result.mastery_level == MasteryLevel.MASTERED

        card_id, new_state, expected_version = repository.put.await_args.args
        assert card_id == 1
        assert expected_version == 3
        assert new_state.total_reviews == 3
        mock_db_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_review_failed(self, mock_db_session, repository):
        service = FlashcardService(mock_db_session, repository=repository)

        result = await service.review_card(1, 1)

        assert result.was_correct is False
        assert result.repetition_count == 0
        assert result.interval_days == 1
        assert result.easiness_factor == 1.96

    @pytest.mark.asyncio
    async def test_review_appends_history(self, mock_db_session, repository):
        service = FlashcardService(mock_db_session, repository=repository)

        await service.review_card(1, 5)

        history = mock_db_session.add.call_args.args[0]
        assert isinstance(history, FlashcardReview)
        assert history.flashcard_id == 1
        assert history.quality == 5
        assert history.easiness_factor_before == 2.5
        assert history.easiness_factor_after == 2.6
        assert history.interval_before == 6
        assert history.interval_after == 16  # 6 * 2.6 = 15.6

    @pytest.mark.asyncio
    async def test_review_stamps_deck(self, mock_db_session, repository):
        service = FlashcardService(mock_db_session, repository=repository)

        await service.review_card(1, 5)

        statement = mock_db_session.execute.await_args.args[0]
        assert "UPDATE flashcard_decks" in str(statement)
        assert "last_studied_at" in str(statement)

    @pytest.mark.asyncio
    async def test_expected_version_mismatch(self, mock_db_session, repository):
        service = FlashcardService(mock_db_session, repository=repository)

        with pytest.raises(ConcurrentUpdateError):
            await service.review_card(1, 4, expected_version=2)

        repository.put.assert_not_awaited()
        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expected_version_match(self, mock_db_session, repository):
        service = FlashcardService(mock_db_session, repository=repository)

        result = await service.review_card(1, 4, expected_version=3)

        assert result.version == 4

    @pytest.mark.asyncio
    async def test_concurrent_write_propagates(self, mock_db_session, repository):
        repository.put = AsyncMock(side_effect=ConcurrentUpdateError("conflict"))
        service = FlashcardService(mock_db_session, repository=repository)

        with pytest.raises(ConcurrentUpdateError):
            await service.review_card(1, 4)

        mock_db_session.add.assert_not_called()
        mock_db_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_nonexistent_card(self, mock_db_session, repository):
        repository.get = AsyncMock(side_effect=NotFoundError("Flashcard 9 not found"))
        service = FlashcardService(mock_db_session, repository=repository)

        with pytest.raises(NotFoundError):
            await service.review_card(9, 4)

    @pytest.mark.asyncio
    async def test_invalid_quality(self, mock_db_session, repository):
        service = FlashcardService(mock_db_session, repository=repository)

        with pytest.raises(ValueError):
            await service.review_card(1, 6)

        repository.get.assert_not_awaited()


class TestDeckStats:
    """Tests for deck statistics."""

    def test_compute_deck_stats(self, now_utc):
        past = now_utc - timedelta(hours=1)
        future = now_utc + timedelta(days=3)
        states = [
            MemoryState(2.6, 3, 17, future, total_reviews=5, correct_reviews=5),
            MemoryState(2.2, 4, 30, past, total_reviews=6, correct_reviews=4),
            MemoryState(2.5, 0, 0, past),
            MemoryState(2.3, 1, 1, future, total_reviews=2, correct_reviews=1),
        ]

        stats = compute_deck_stats(states, now_utc)

        assert stats.total_cards == 4
        assert stats.mastered_cards == 1
        assert stats.learning_cards == 2
        assert stats.due_cards == 2
        assert stats.average_easiness == 2.4
        assert stats.total_reviews == 13
        assert stats.correct_rate == 76.9
        assert stats.mastery_percentage == 25

    def test_empty_deck(self, now_utc):
        stats = compute_deck_stats([], now_utc)

        assert stats.total_cards == 0
        assert stats.average_easiness == 2.5
        assert stats.correct_rate == 0
        assert stats.mastery_percentage == 0

    @pytest.mark.asyncio
    async def test_get_deck_stats(self, mock_db_session, make_deck, make_card):
        mock_db_session.execute.side_effect = [
            scalar_result(make_deck()),
            scalars_result([make_card(), make_card(id=2)]),
        ]
        service = FlashcardService(mock_db_session)

        stats = await service.get_deck_stats(10)

        assert stats.total_cards == 2
        assert stats.due_cards == 2
        assert stats.learning_cards == 2


class TestReviewHistory:
    @pytest.mark.asyncio
    async def test_history_entries(self, mock_db_session, make_card, now_utc):
        entry = MagicMock()
        entry.id = 1
        entry.flashcard_id = 1
        entry.quality = 4
        entry.easiness_factor_before = 2.5
        entry.easiness_factor_after = 2.5
        entry.interval_before = 0
        entry.interval_after = 1
        entry.reviewed_at = now_utc

        mock_db_session.execute.side_effect = [
            scalar_result(make_card()),
            scalars_result([entry]),
        ]
        service = FlashcardService(mock_db_session)

        history = await service.get_review_history(1)

        assert len(history) == 1
        assert history[0].quality == 4
        assert history[0].quality_label == "Good"
        assert history[0].interval_after == 1

    @pytest.mark.asyncio
    async def test_history_of_missing_card(self, mock_db_session):
        mock_db_session.execute.return_value = scalar_result(None)
        service = FlashcardService(mock_db_session)

        with pytest.raises(NotFoundError):
            await service.get_review_history(1)
