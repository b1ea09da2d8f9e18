"""Helpers for building mocked SQLAlchemy results in unit tests."""

from typing import Any
from unittest.mock import MagicMock


def scalar_result(value: Any) -> MagicMock:
    """Mock of a Result whose scalar_one_or_none()/scalar() return ``value``."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    result.scalar.return_value = value
    return result


def scalars_result(values: list) -> MagicMock:
    """Mock of a Result whose scalars().all() returns ``values``."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = values
    return result


def rowcount_result(rowcount: int) -> MagicMock:
    """Mock of a CursorResult from an UPDATE."""
    result = MagicMock()
    result.rowcount = rowcount
    return result
