"""Study Planner backend: flashcard review scheduling and exam preparation tracking."""

__version__ = "0.1.0"
