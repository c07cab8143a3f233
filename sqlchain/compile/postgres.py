"""PostgreSQL dialect compilers."""

from __future__ import annotations

from sqlchain.compile.base import SQLCompiler


class PostgresCompiler(SQLCompiler):
    """Numbered ``$n`` placeholders, as used by the PostgreSQL wire protocol.

    This is the default dialect; drivers such as ``asyncpg`` accept the text
    as-is.
    """

    @property
    def dialect_name(self) -> str:
        return "postgres"

    def param_placeholder(self, index: int) -> str:
        return f"${index}"


class PsycopgCompiler(SQLCompiler):
    """Positional ``%s`` placeholders for ``psycopg`` (format paramstyle).

    Literal ``%`` characters must be doubled so the driver does not read them
    as placeholders (``like 'a%'`` is sent as ``like 'a%%'``).
    """

    @property
    def dialect_name(self) -> str:
        return "psycopg"

    def param_placeholder(self, index: int) -> str:
        return "%s"

    def escape_text(self, text: str) -> str:
        return text.replace("%", "%%")
