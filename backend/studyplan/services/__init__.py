"""
Business logic services.

- learning: SM-2 flashcard scheduling, memory state storage, deck management
- planning: Exam preparation risk scoring, subjects and revision sessions
"""
