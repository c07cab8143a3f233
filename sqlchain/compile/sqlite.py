"""SQLite dialect compiler."""
from __future__ import annotations

from sqlchain.compile.base import SQLCompiler


class SQLiteCompiler(SQLCompiler):
    """Numbered ``?n`` placeholders.

    Compatible with Python's built-in ``sqlite3`` positional execution
    (``cursor.execute(sql, sequence)``); numbered ``?`` parameters do not
    trigger the named-placeholder deprecation warning.
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def param_placeholder(self, index: int) -> str:
        return f"?{index}"
