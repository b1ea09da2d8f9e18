"""
Integration Fixtures (real PostgreSQL)

Tables are rebuilt from the ORM metadata once per run and truncated around
every test. Requests go through the real app with get_db pointed at the
test session, so nothing here can reach a non-test database.

Point the run at a database with POSTGRES_TEST_USER / POSTGRES_TEST_PASSWORD /
POSTGRES_TEST_DB (the parent conftest copies them into POSTGRES_*).
"""

import os
from typing import AsyncGenerator
from urllib.parse import quote_plus

import httpx
import pytest
import pytest_asyncio
from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

pytestmark = pytest.mark.integration

# Names that suggest a real deployment; the run refuses to truncate them
PRODUCTION_MARKERS = ("studyplan", "prod")

STUDY_TABLES = (
    "flashcard_reviews",
    "flashcards",
    "flashcard_decks",
    "revision_sessions",
    "subjects",
)


def database_url(driver: str = "asyncpg") -> str:
    password = quote_plus(os.environ.get("POSTGRES_PASSWORD", "testpass"))
    user = os.environ.get("POSTGRES_USER", "testuser")
    host = os.environ.get("POSTGRES_HOST", "localhost")
    port = os.environ.get("POSTGRES_PORT", "5432")
    name = os.environ.get("POSTGRES_DB", "testdb")
    return f"postgresql+{driver}://{user}:{password}@{host}:{port}/{name}"


@pytest.fixture(scope="session", autouse=True)
def refuse_production_database():
    """Fail the run before any TRUNCATE if the target looks like production."""
    if os.environ.get("ALLOW_PROD_DB_TESTS", "").lower() in ("1", "true", "yes"):
        return

    for variable in ("POSTGRES_DB", "POSTGRES_USER"):
        value = os.environ.get(variable, "").lower()
        assert not any(marker in value for marker in PRODUCTION_MARKERS), (
            f"{variable}={value!r} looks like a production database; "
            "set POSTGRES_TEST_* (or ALLOW_PROD_DB_TESTS=1 locally)."
        )


@pytest.fixture(scope="session", autouse=True)
def study_schema(refuse_production_database):
    """Drop and recreate the tables with a sync engine (no event loop needed)."""
    from studyplan.db.base import Base

    engine = create_engine(database_url("psycopg2"))
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    engine.dispose()


async def _truncate_study_tables(session: AsyncSession) -> None:
    await session.execute(
        text(f"TRUNCATE TABLE {', '.join(STUDY_TABLES)} RESTART IDENTITY CASCADE")
    )
    await session.commit()


@pytest_asyncio.fixture
async def clean_db() -> AsyncGenerator[AsyncSession, None]:
    """Session on empty study tables; emptied again afterwards."""
    engine = create_async_engine(database_url(), echo=False)
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_maker() as session:
        await _truncate_study_tables(session)
        yield session
        await session.rollback()
        await _truncate_study_tables(session)

    await engine.dispose()


@pytest_asyncio.fixture
async def async_test_client(clean_db: AsyncSession):
    """httpx client bound to the app, with every request using clean_db."""
    from studyplan.db.base import get_db
    from studyplan.main import app

    async def use_test_session():
        yield clean_db

    app.dependency_overrides[get_db] = use_test_session
    try:
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.pop(get_db, None)
