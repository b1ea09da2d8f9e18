"""
SQLAlchemy Database Models

Registers every table with Base.metadata.

Tables:
- subjects, revision_sessions: see models_planning.py
- flashcard_decks, flashcards, flashcard_reviews: see models_flashcards.py
"""

from studyplan.db.models_planning import RevisionSession, Subject
from studyplan.db.models_flashcards import Flashcard, FlashcardDeck, FlashcardReview

__all__ = [
    "Flashcard",
    "FlashcardDeck",
    "FlashcardReview",
    "RevisionSession",
    "Subject",
]
