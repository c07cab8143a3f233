"""sqlchain – composable, immutable SQL query builder.

Chain clauses. Compile once. Run anywhere.

Public API
----------
``create``
    Validate options and return the root builder bound to a pool.

``raw``
    Mark trusted text (identifiers) for unescaped splicing.

Re-exported types
-----------------
``Builder``, ``ThenableBuilder``, ``Config``, ``Query``, ``Fragment``,
``Raw``, key mappers, pools and all error classes.

Example::

    import sqlchain
    from sqlchain.execute.pool import SQLitePool

    sq = sqlchain.create(pool=SQLitePool("app.db"))
    people = sq.from_("person")

    people.where({"firstName": "Jo"}).return_("last_name").query
    # Query(text='select last_name from person where (first_name = ?1)',
    #       values=['Jo'], dialect='sqlite')

    rows = await people.where({"firstName": "Jo"})    # [{"id": 1, "firstName": "Jo", ...}]
    await sq.end()

Extensibility
-------------
New placeholder dialects can be registered via::

    from sqlchain.compile.registry import CompilerFactory

    @CompilerFactory.register
    class OracleCompiler(SQLCompiler):
        dialect_name = "oracle"
        ...

After registration, ``create(..., dialect="oracle")`` picks it up.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError as PydanticValidationError

from sqlchain.builder import Builder, ThenableBuilder
from sqlchain.compile.base import Query, SQLCompiler
from sqlchain.compile.postgres import PostgresCompiler, PsycopgCompiler
from sqlchain.compile.registry import CompilerFactory
from sqlchain.compile.sqlite import SQLiteCompiler
from sqlchain.errors import (
    CompilationError,
    ConfigError,
    ConstructionError,
    ExecutionError,
    MultipleRowsError,
    NoRowsError,
    ResultShapeError,
    SqlChainError,
)
from sqlchain.execute.executor import Executor
from sqlchain.execute.pool import Pool, SQLitePool
from sqlchain.schema.clauses import Clause, ClauseKind
from sqlchain.schema.config import Config
from sqlchain.schema.fragment import Fragment, Raw
from sqlchain.schema.keys import KEY_MAPPERS, camel_case, identity, snake_case

# ---------------------------------------------------------------------------
# Register built-in compilers with CompilerFactory
# ---------------------------------------------------------------------------

for _compiler_cls in (PostgresCompiler, PsycopgCompiler, SQLiteCompiler):
    CompilerFactory.register(_compiler_cls)

__all__ = [
    # Entry points
    "create",
    "raw",
    # Builder
    "Builder",
    "ThenableBuilder",
    "Clause",
    "ClauseKind",
    "Config",
    # Fragments and compilation
    "Fragment",
    "Raw",
    "Query",
    "SQLCompiler",
    "CompilerFactory",
    "PostgresCompiler",
    "PsycopgCompiler",
    "SQLiteCompiler",
    # Key mapping
    "KEY_MAPPERS",
    "camel_case",
    "identity",
    "snake_case",
    # Execution
    "Executor",
    "Pool",
    "SQLitePool",
    # Errors
    "SqlChainError",
    "ConfigError",
    "ConstructionError",
    "CompilationError",
    "ExecutionError",
    "ResultShapeError",
    "NoRowsError",
    "MultipleRowsError",
]


def create(**options: Any) -> Builder:
    """Validate ``options`` and return an empty builder bound to them.

    This is the entry point of every query::

        sq = sqlchain.create(pool=pool, map_output_keys="identity")
        rows = await sq("person")({"firstName": "Jo"})("id, last_name")

    Args:
        **options: ``pool`` (required), ``thenable`` (default ``True``),
            ``map_input_keys`` (default ``snake_case``), ``map_output_keys``
            (default ``camel_case``) and ``dialect`` (default: the pool's
            ``dialect`` attribute, else ``"postgres"``).  Mappers may be
            callables or the names in ``KEY_MAPPERS``.

    Returns:
        A :class:`ThenableBuilder` when ``thenable`` is true, otherwise a plain
        :class:`Builder`; awaiting a plain builder returns the builder itself,
        so it must be run with ``all()`` / ``one()``.

    Raises:
        ConfigError: If an option is missing, unknown or invalid.
    """
    try:
        config = Config.model_validate(options)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        option = str(first["loc"][0]) if first.get("loc") else None
        raise ConfigError(f"Invalid sqlchain options: {exc}", option=option) from exc

    if not CompilerFactory.is_registered(config.effective_dialect):
        raise ConfigError(
            f"Unsupported dialect: '{config.effective_dialect}'. "
            f"Registered dialects: {CompilerFactory.dialects()}.",
            option="dialect",
        )

    builder_cls = ThenableBuilder if config.thenable else Builder
    return builder_cls(config)


def raw(text: str) -> Raw:
    """Mark ``text`` as trusted SQL to splice without parameterization.

    Only use it for identifiers the application controls::

        sq.l("create database {}", sqlchain.raw(db_name))

    Raises:
        ConstructionError: If ``text`` is not a string.
    """
    return Raw(text)
