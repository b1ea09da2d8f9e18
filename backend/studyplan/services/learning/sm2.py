"""
SM-2 (SuperMemo 2) Review Scheduler

Pure implementation of the SM-2 spaced repetition algorithm used to
schedule flashcard reviews.

Key Concepts:
- Easiness factor (EF): Multiplier controlling how fast intervals grow.
  Never drops below 1.3.
- Repetition count: Consecutive successful recalls since the last failure.
- Interval: Days until the card is next due.

Interval progression on successful recall:
    1st success → 1 day, 2nd → 6 days, then previous interval × EF

A failed recall (quality < 3) restarts the schedule at 1 day.

Usage:
    from studyplan.services.learning.sm2 import create_scheduler, MemoryState

    scheduler = create_scheduler()

    # Review a card
    new_state, log = scheduler.review(ReviewQuality.HESITANT, card_state)

    # Or only compute the next state
    new_state = scheduler.apply(ReviewQuality.PERFECT, card_state)
"""

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from typing import Optional

from studyplan.config import settings
from studyplan.enums.learning import MasteryLevel, ReviewQuality

logger = logging.getLogger(__name__)

MIN_QUALITY = 0
MAX_QUALITY = 5

_QUALITY_LABELS = {
    ReviewQuality.BLACKOUT: "No idea",
    ReviewQuality.INCORRECT: "Hard",
    ReviewQuality.ALMOST: "Almost",
    ReviewQuality.DIFFICULT: "Correct",
    ReviewQuality.HESITANT: "Good",
    ReviewQuality.PERFECT: "Perfect",
}


def _utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def round_half_up(value: float, decimals: int = 0) -> float:
    """
    Round halves away from zero for non-negative values.

    Python's round() uses banker's rounding (round(2.5) == 2); scheduling
    and display values are expected to round 2.5 up to 3.
    """
    factor = 10**decimals
    return math.floor(value * factor + 0.5) / factor


@dataclass
class MemoryState:
    """
    SM-2 memory state of a single flashcard.

    Maps to the scheduling columns of the flashcards table.
    All datetimes are timezone-aware UTC.
    """

    easiness_factor: float = 2.5
    repetition_count: int = 0
    interval_days: int = 0
    next_review_at: datetime = field(default_factory=_utc_now)
    total_reviews: int = 0
    correct_reviews: int = 0
    last_reviewed_at: Optional[datetime] = None

    @classmethod
    def initial(cls, now: Optional[datetime] = None) -> "MemoryState":
        """State of a freshly created card: due immediately."""
        return cls(
            easiness_factor=settings.SM2_INITIAL_EASINESS,
            next_review_at=now or _utc_now(),
        )

    def is_due(self, now: Optional[datetime] = None) -> bool:
        """Check if the card should be reviewed at ``now``."""
        return self.next_review_at <= (now or _utc_now())


@dataclass
class ReviewLog:
    """
    Append-only history entry for one review.

    Written by the caller alongside the new MemoryState; never updated.
    """

    quality: ReviewQuality
    easiness_factor_before: float
    easiness_factor_after: float
    interval_before: int
    interval_after: int
    reviewed_at: datetime = field(default_factory=_utc_now)

    @property
    def was_correct(self) -> bool:
        return self.quality.is_correct


class ReviewScheduler:
    """
    SM-2 review scheduler.

    Stateless apart from its policy constants; safe to share across
    requests and call concurrently.

    Attributes:
        min_easiness: Floor for the easiness factor (default 1.3)
        passing_quality: Lowest quality counted as a successful recall
        first_interval_days: Interval after the first successful recall
        second_interval_days: Interval after the second successful recall
        easiness_decimals: Decimal places kept on the easiness factor
    """

    def __init__(
        self,
        min_easiness: float = 1.3,
        passing_quality: int = 3,
        first_interval_days: int = 1,
        second_interval_days: int = 6,
        easiness_decimals: int = 2,
    ):
        self.min_easiness = min_easiness
        self.passing_quality = passing_quality
        self.first_interval_days = first_interval_days
        self.second_interval_days = second_interval_days
        self.easiness_decimals = easiness_decimals

    def next_easiness(self, easiness_factor: float, quality: int) -> float:
        """
        Compute the updated easiness factor.

        EF' = EF + (0.1 - (5 - q) * (0.08 + (5 - q) * 0.02)), clamped at the floor.
        """
        distance = MAX_QUALITY - quality
        updated = easiness_factor + (0.1 - distance * (0.08 + distance * 0.02))
        updated = max(updated, self.min_easiness)
        updated = round_half_up(updated, self.easiness_decimals)
        # Rounding must not push the value back under the floor
        return max(updated, self.min_easiness)

    def apply(
        self,
        quality: int,
        prior: MemoryState,
        now: Optional[datetime] = None,
    ) -> MemoryState:
        """
        Compute the memory state that follows a review.

        Pure function: the prior state is not modified.

        Args:
            quality: Review grade in [0, 5]. Anything outside that range is a
                programming error and raises ValueError.
            prior: Current memory state of the card.
            now: Review time. Defaults to current UTC time; pass an explicit
                time for batch processing or testing.

        Returns:
            New MemoryState. Its next_review_at is at least one day after ``now``.

        Raises:
            ValueError: If quality is not an integer in [0, 5].
        """
        quality = validate_quality(quality)
        now = now or _utc_now()

        easiness = self.next_easiness(prior.easiness_factor, quality)
        passed = quality >= self.passing_quality

        if not passed:
            repetition_count = 0
            interval_days = self.first_interval_days
        else:
            repetition_count = prior.repetition_count + 1
            if repetition_count == 1:
                interval_days = self.first_interval_days
            elif repetition_count == 2:
                interval_days = self.second_interval_days
            else:
                interval_days = int(round_half_up(prior.interval_days * easiness))
            interval_days = max(interval_days, 1)

        return replace(
            prior,
            easiness_factor=easiness,
            repetition_count=repetition_count,
            interval_days=interval_days,
            next_review_at=now + timedelta(days=interval_days),
            total_reviews=prior.total_reviews + 1,
            correct_reviews=prior.correct_reviews + (1 if passed else 0),
            last_reviewed_at=now,
        )

    def review(
        self,
        quality: int,
        prior: MemoryState,
        now: Optional[datetime] = None,
    ) -> tuple[MemoryState, ReviewLog]:
        """
        Process a review and produce the history record to append.

        Args:
            quality: Review grade in [0, 5].
            prior: Current memory state of the card.
            now: Review time. Defaults to current UTC time.

        Returns:
            Tuple of the new MemoryState and the ReviewLog describing the change.

        Example:
            >>> scheduler = ReviewScheduler()
            >>> state, log = scheduler.review(5, MemoryState())
            >>> state.interval_days
            1
        """
        now = now or _utc_now()
        new_state = self.apply(quality, prior, now)

        log = ReviewLog(
            quality=ReviewQuality(int(quality)),
            easiness_factor_before=prior.easiness_factor,
            easiness_factor_after=new_state.easiness_factor,
            interval_before=prior.interval_days,
            interval_after=new_state.interval_days,
            reviewed_at=now,
        )

        logger.debug(
            f"SM-2 review q={int(quality)}: EF {prior.easiness_factor} -> "
            f"{new_state.easiness_factor}, interval {prior.interval_days} -> "
            f"{new_state.interval_days}"
        )

        return new_state, log


def validate_quality(quality: int) -> ReviewQuality:
    """
    Check the review grade precondition.

    Raises:
        ValueError: If quality is not an integer in [0, 5].
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValueError(f"Review quality must be an integer, got {quality!r}")
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise ValueError(
            f"Review quality must be between {MIN_QUALITY} and {MAX_QUALITY}, got {quality}"
        )
    return ReviewQuality(int(quality))


def create_scheduler() -> ReviewScheduler:
    """
    Create a scheduler configured from settings.

    Returns:
        ReviewScheduler using the SM2_* policy constants
    """
    return ReviewScheduler(
        min_easiness=settings.SM2_MIN_EASINESS,
        passing_quality=settings.SM2_PASSING_QUALITY,
        first_interval_days=settings.SM2_FIRST_INTERVAL_DAYS,
        second_interval_days=settings.SM2_SECOND_INTERVAL_DAYS,
        easiness_decimals=settings.SM2_EASINESS_DECIMALS,
    )


def get_mastery_level(easiness_factor: float, repetition_count: int) -> MasteryLevel:
    """Classify a card by how well it is known."""
    if repetition_count == 0:
        return MasteryLevel.NEW
    if repetition_count < settings.FLASHCARD_MASTERED_MIN_REPETITIONS:
        return MasteryLevel.LEARNING
    if easiness_factor >= settings.FLASHCARD_MASTERED_MIN_EASINESS:
        return MasteryLevel.MASTERED
    return MasteryLevel.REVIEWING


def get_quality_label(quality: int) -> str:
    """Human-readable label for a review grade."""
    return _QUALITY_LABELS[validate_quality(quality)]

