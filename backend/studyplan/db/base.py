"""
Database Engine and Sessions

One async engine per process, opened lazily by SQLAlchemy on first use.
Pool sizing comes from the ``database`` section of config/default.yaml.

Usage:
    from studyplan.db.base import get_db

    @router.get("/decks")
    async def list_decks(db: AsyncSession = Depends(get_db)):
        ...
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from studyplan.config import settings, yaml_config


def _pool_options(config: dict[str, Any]) -> dict[str, int]:
    db_config = config.get("database", {})
    return {
        "pool_size": db_config.get("pool_size", 5),
        "max_overflow": db_config.get("max_overflow", 10),
        "pool_timeout": db_config.get("pool_timeout", 30),
    }


engine = create_async_engine(
    settings.POSTGRES_URL,
    echo=settings.DEBUG,
    **_pool_options(yaml_config),
)

# Objects stay readable after commit; services build responses from them
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    """Declarative base shared by the study planner tables."""


# Registers every table on Base.metadata (Alembic autogenerate needs them all)
from studyplan.db import models  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Services commit their own writes; anything left pending when the route
    returns is committed here, and an exception rolls the request back.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
