"""Connection pool contract and the bundled SQLite pool.

Any object with an ``async execute(text, params)`` returning a sequence of
row mappings and an ``async close()`` can be passed to
:func:`sqlchain.create`.  A ``dialect`` attribute, when present, selects the
placeholder style the builder renders for that pool.
"""
from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Mapping, Sequence
from contextlib import closing
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import structlog

from sqlchain.errors import ExecutionError

logger = structlog.get_logger()


@runtime_checkable
class Pool(Protocol):
    """The pool collaborator used by the executor."""

    async def execute(self, text: str, params: Sequence[Any]) -> Sequence[Mapping[str, Any]]:
        """Run one statement on a pooled connection and return its rows."""
        ...

    async def close(self) -> None:
        """Release every connection held by the pool."""
        ...


class SQLitePool:
    """Pool over the standard-library :mod:`sqlite3` module.

    Every statement runs on its own connection in a worker thread; the
    connection is committed and closed when the statement finishes, or
    rolled back and closed when it fails.

    Args:
        database: Path of the database file.
        **connect_kwargs: Extra arguments for :func:`sqlite3.connect`.
    """

    dialect = "sqlite"

    def __init__(self, database: str | Path, **connect_kwargs: Any) -> None:
        self._database = str(database)
        self._connect_kwargs = connect_kwargs
        self._closed = False

    async def execute(self, text: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        if self._closed:
            raise ExecutionError("SQLitePool is closed.")
        return await asyncio.to_thread(self._execute, text, tuple(params))

    def _execute(self, text: str, params: tuple[Any, ...]) -> list[dict[str, Any]]:
        with closing(sqlite3.connect(self._database, **self._connect_kwargs)) as conn:
            conn.row_factory = sqlite3.Row
            with conn:
                cursor = conn.execute(text, params)
                if cursor.description is None:
                    return []
                return [dict(row) for row in cursor.fetchall()]

    async def close(self) -> None:
        self._closed = True
        logger.debug("sqlite_pool_closed", database=self._database)
