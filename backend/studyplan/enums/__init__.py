"""
Centralized enum definitions for the application.

All enums are organized by domain:
- learning.py: Review quality grades, flashcard mastery levels
- planning.py: Exam risk levels, revision session statuses, subject difficulty

Usage:
    from studyplan.enums import ReviewQuality, RiskLevel

    # Or import from specific module
    from studyplan.enums.planning import SessionStatus
"""

from studyplan.enums.learning import MasteryLevel, ReviewQuality
from studyplan.enums.planning import DifficultyLevel, RiskLevel, SessionStatus

__all__ = [
    # Learning
    "MasteryLevel",
    "ReviewQuality",
    # Planning
    "DifficultyLevel",
    "RiskLevel",
    "SessionStatus",
]
