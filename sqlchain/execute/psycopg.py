"""PostgreSQL pool built on ``psycopg_pool``.

Install the optional dependency before using this module::

    pip install "sqlchain[postgres]"

Example::

    from sqlchain import create
    from sqlchain.execute.psycopg import PsycopgPool

    sq = create(pool=PsycopgPool("postgresql://postgres@localhost/app"))
    rows = await sq.from_("person").where({"firstName": "Jo"})
    await sq.end()
"""
from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

logger = structlog.get_logger()


class PsycopgPool:
    """Async psycopg 3 connection pool returning dict rows.

    Builders bound to this pool render ``%s`` placeholders (the ``psycopg``
    dialect).  Each statement borrows one connection; leaving the
    ``connection()`` block commits on success, rolls back on error and always
    returns the connection to the pool.

    Args:
        conninfo: libpq connection string.
        min_size: Minimum number of pooled connections.
        max_size: Maximum number of pooled connections.
        **kwargs: Extra arguments for :class:`psycopg_pool.AsyncConnectionPool`.
    """

    dialect = "psycopg"

    def __init__(self, conninfo: str, *, min_size: int = 1, max_size: int = 10, **kwargs: Any) -> None:
        self._pool = AsyncConnectionPool(
            conninfo,
            min_size=min_size,
            max_size=max_size,
            kwargs={"row_factory": dict_row},
            open=False,
            **kwargs,
        )
        self._opened = False

    async def open(self) -> None:
        if not self._opened:
            await self._pool.open()
            self._opened = True
            logger.info("psycopg_pool_opened", max_size=self._pool.max_size)

    async def execute(self, text: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        await self.open()
        async with self._pool.connection() as conn:
            async with conn.cursor() as cursor:
                await cursor.execute(text, list(params))
                if cursor.description is None:
                    return []
                return await cursor.fetchall()

    async def close(self) -> None:
        await self._pool.close()
        self._opened = False
        logger.info("psycopg_pool_closed")
