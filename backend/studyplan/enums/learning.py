"""
Learning System Enums

Defines enums for the SM-2 flashcard review scheduler and mastery tracking.
"""

from enum import Enum


class ReviewQuality(int, Enum):
    """
    SM-2 review quality grades.

    User self-assessment after flipping a flashcard. Grades below 3 are
    failed recalls and restart the card's schedule.
    """

    BLACKOUT = 0  # Complete blackout, no recall
    INCORRECT = 1  # Incorrect, but remembered once the answer was shown
    ALMOST = 2  # Incorrect, but the answer seemed easy to recall
    DIFFICULT = 3  # Correct, with serious difficulty
    HESITANT = 4  # Correct, after some hesitation
    PERFECT = 5  # Correct, perfect response

    @property
    def is_correct(self) -> bool:
        """Whether this grade counts as a successful recall."""
        return self.value >= ReviewQuality.DIFFICULT.value


class MasteryLevel(str, Enum):
    """
    Mastery classification of a single flashcard.

    Derived from repetition count and easiness factor:
    - repetition_count == 0: NEW
    - repetition_count < 3: LEARNING
    - easiness_factor >= 2.5: MASTERED
    - else: REVIEWING
    """

    NEW = "new"
    LEARNING = "learning"
    REVIEWING = "reviewing"
    MASTERED = "mastered"
