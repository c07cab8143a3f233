"""Test fixtures: the sample ``person`` schema DDL and an in-memory pool."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Literal

_FIXTURES_DIR = Path(__file__).parent

#: Rows seeded by the integration tests, keyed the way callers write them.
PEOPLE = [
    {"firstName": "Jo", "lastName": "Schmo"},
    {"firstName": "Bo", "lastName": "Mo"},
]


def load_ddl(target: Literal["sqlite", "postgres"] = "sqlite") -> str:
    """Return the sample DDL SQL string for the given backend.

    Args:
        target: ``'sqlite'`` (default) or ``'postgres'``.

    Returns:
        DDL string ready to execute against the target backend.
    """
    filename = f"ddl_{target}.sql"
    return (_FIXTURES_DIR / filename).read_text()


class RecordingPool:
    """In-memory pool that records every statement and returns canned rows."""

    def __init__(
        self, rows: list[dict[str, Any]] | None = None, error: Exception | None = None
    ) -> None:
        self.rows = rows if rows is not None else []
        self.error = error
        self.calls: list[tuple[str, list[Any]]] = []
        self.closed = False

    async def execute(self, text: str, params: Sequence[Any]) -> list[dict[str, Any]]:
        self.calls.append((text, list(params)))
        if self.error is not None:
            raise self.error
        return [dict(row) for row in self.rows]

    async def close(self) -> None:
        self.closed = True
