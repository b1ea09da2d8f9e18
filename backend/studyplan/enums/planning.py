"""
Planning Enums

Enums for subjects, revision sessions and exam preparation scoring.
"""

from enum import Enum


class RiskLevel(str, Enum):
    """
    Exam preparation risk.

    Never persisted; always recomputed from the subject's target and sessions.
    """

    LOW = "low"  # On track
    MEDIUM = "medium"  # Needs watching
    HIGH = "high"  # Urgent

    @property
    def sort_rank(self) -> int:
        """Display order: high risk first."""
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.HIGH: 0, RiskLevel.MEDIUM: 1, RiskLevel.LOW: 2}


class SessionStatus(str, Enum):
    """Lifecycle of a planned revision session."""

    PLANNED = "planned"
    DONE = "done"
    SKIPPED = "skipped"


class DifficultyLevel(str, Enum):
    """Self-assessed difficulty of a subject."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
