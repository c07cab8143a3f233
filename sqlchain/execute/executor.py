"""Dispatch compiled queries to the configured pool and map result rows."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog

from sqlchain.compile.base import Query
from sqlchain.errors import ExecutionError, MultipleRowsError, NoRowsError
from sqlchain.schema.config import Config

logger = structlog.get_logger()


class Executor:
    """Runs queries against ``config.pool``.

    Each :meth:`run` performs exactly one pool round trip.  Errors raised by
    the pool or driver propagate unchanged; nothing is retried.

    Args:
        config: Configuration holding the pool and the output key mapper.
    """

    def __init__(self, config: Config) -> None:
        self._config = config

    async def run(self, query: Query) -> list[dict[str, Any]]:
        """Execute ``query`` and return its rows with mapped keys."""
        logger.debug(
            "query_dispatch",
            dialect=query.dialect,
            text=query.text,
            param_count=len(query.values),
        )
        try:
            rows = await self._config.pool.execute(query.text, list(query.values))
        except Exception as exc:
            logger.warning("query_failed", text=query.text, error=str(exc))
            raise
        mapped = self.map_rows(rows)
        logger.debug("query_complete", row_count=len(mapped))
        return mapped

    async def run_one(self, query: Query, strict: bool = False) -> dict[str, Any] | None:
        """Execute ``query`` and return its first row.

        Raises:
            NoRowsError: ``strict`` and the result is empty.
            MultipleRowsError: ``strict`` and the result has several rows.
        """
        rows = await self.run(query)
        if strict:
            if not rows:
                raise NoRowsError()
            if len(rows) > 1:
                raise MultipleRowsError(len(rows))
        return rows[0] if rows else None

    async def close(self) -> None:
        """Release every connection held by the pool."""
        await self._config.pool.close()
        logger.debug("pool_closed", pool=type(self._config.pool).__name__)

    def map_rows(self, rows: Any) -> list[dict[str, Any]]:
        """Map the column names of every row through the output key mapper.

        Raises:
            ExecutionError: If the pool returned something other than rows, or
                two columns of a row map to the same key.
        """
        if rows is None:
            return []
        map_key = self._config.map_output_keys
        mapped: list[dict[str, Any]] = []
        for row in rows:
            if not isinstance(row, Mapping):
                raise ExecutionError(
                    f"Pool returned a {type(row).__name__} row; expected a mapping."
                )
            out: dict[str, Any] = {}
            for column, value in row.items():
                key = map_key(column)
                if key in out:
                    raise ExecutionError(
                        f"Columns of one row map to the same key '{key}'; "
                        "alias them or use another output key mapper."
                    )
                out[key] = value
            mapped.append(out)
        return mapped
