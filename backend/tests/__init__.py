"""
Study Planner Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and record factories
    ├── helpers.py           # Mocked SQLAlchemy result builders
    ├── unit/                # Unit tests (isolated, no external dependencies)
    │   ├── test_sm2.py      # Review scheduler
    │   ├── test_exam_risk.py      # Risk scoring and ordering
    │   ├── test_repository.py     # Versioned memory state writes
    │   ├── test_flashcard_service.py
    │   ├── test_exam_prep_service.py
    │   └── test_api.py      # Routes with mocked services
    └── integration/         # Integration tests (require PostgreSQL)
        └── test_study_api.py

Running Tests:
    # Unit tests only (the default)
    pytest

    # Integration tests (requires a test database)
    pytest -m integration
"""
