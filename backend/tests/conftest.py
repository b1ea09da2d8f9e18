"""
Shared Test Fixtures

- Test environment (applied before any studyplan import)
- A mocked AsyncSession for service tests
- Record factories for cards, subjects and revision sessions
"""

import os
import sys
from datetime import date, datetime, time, timedelta, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root BEFORE any fixtures run
# This ensures POSTGRES_TEST_* variables are available
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)


# ============================================================================
# Environment Configuration
# ============================================================================

# Settings are read once at import time, so the test environment has to be
# in place before any studyplan module is imported.
os.environ.update(
    {
        "POSTGRES_HOST": os.environ.get("POSTGRES_HOST", "localhost"),
        "POSTGRES_PORT": os.environ.get("POSTGRES_PORT", "5432"),
        "POSTGRES_USER": os.environ.get("POSTGRES_TEST_USER", "testuser"),
        "POSTGRES_PASSWORD": os.environ.get("POSTGRES_TEST_PASSWORD", "testpass"),
        "POSTGRES_DB": os.environ.get("POSTGRES_TEST_DB", "testdb"),
        "RATE_LIMIT_ENABLED": "false",
        "DEBUG": "true",
    }
)


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_db_session() -> MagicMock:
    """
    Create a mock database session for unit testing.
    """
    mock = MagicMock()
    mock.execute = AsyncMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.refresh = AsyncMock()
    mock.delete = AsyncMock()
    mock.close = AsyncMock()
    return mock


# ============================================================================
# Record Factories
# ============================================================================


@pytest.fixture
def now_utc() -> datetime:
    """Return current datetime in UTC for consistent test data."""
    return datetime.now(timezone.utc)


@pytest.fixture
def make_card(now_utc: datetime):
    """Factory for Flashcard-like records with SM-2 defaults."""

    def _make(**overrides) -> MagicMock:
        card = MagicMock()
        values = {
            "id": 1,
            "deck_id": 10,
            "front": "Capital of France?",
            "back": "Paris",
            "easiness_factor": 2.5,
            "repetition_count": 0,
            "interval_days": 0,
            "next_review_at": now_utc - timedelta(hours=1),
            "last_reviewed_at": None,
            "total_reviews": 0,
            "correct_reviews": 0,
            "version": 1,
            "created_at": now_utc - timedelta(days=1),
            "updated_at": now_utc - timedelta(days=1),
        }
        values.update(overrides)
        for key, value in values.items():
            setattr(card, key, value)
        return card

    return _make


@pytest.fixture
def make_subject():
    """Factory for Subject-like records."""

    def _make(**overrides) -> MagicMock:
        subject = MagicMock()
        values = {
            "id": 1,
            "name": "Linear Algebra",
            "color": "#2196F3",
            "exam_date": None,
            "exam_type": "written",
            "target_hours": 20.0,
            "difficulty_level": "medium",
            "notes": None,
            "created_at": datetime(2026, 9, 1, tzinfo=timezone.utc),
            "sessions": [],
        }
        values.update(overrides)
        for key, value in values.items():
            setattr(subject, key, value)
        return subject

    return _make


@pytest.fixture
def make_session():
    """Factory for RevisionSession-like records (60 minutes by default)."""

    def _make(
        session_date: date,
        status: str = "planned",
        start: time = time(9, 0),
        end: time = time(10, 0),
        **overrides,
    ) -> MagicMock:
        session = MagicMock()
        values = {
            "id": 1,
            "subject_id": 1,
            "date": session_date,
            "start_time": start,
            "end_time": end,
            "status": status,
            "notes": None,
        }
        values.update(overrides)
        for key, value in values.items():
            setattr(session, key, value)
        return session

    return _make
