"""
Learning System Services

Modules:
- sm2: SM-2 review scheduler (pure)
- repository: Versioned memory state storage
- flashcard_service: Deck/card management and review processing

Service classes are imported from their modules:
    from studyplan.services.learning.flashcard_service import FlashcardService
"""

from studyplan.services.learning.sm2 import (
    MemoryState,
    ReviewLog,
    ReviewScheduler,
    create_scheduler,
    get_mastery_level,
    round_half_up,
    validate_quality,
)

__all__ = [
    "MemoryState",
    "ReviewLog",
    "ReviewScheduler",
    "create_scheduler",
    "get_mastery_level",
    "round_half_up",
    "validate_quality",
]
