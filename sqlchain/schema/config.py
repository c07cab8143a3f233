"""Pydantic model for builder configuration.

A :class:`Config` is created once by :func:`sqlchain.create` and shared by
reference between every builder derived from it.  Builders created from
different configurations (different pools, different key mappers) never
interfere with each other: there is no module-level pool or mapper state.

Example::

    from sqlchain import create
    from sqlchain.execute.pool import SQLitePool

    sq = create(
        pool=SQLitePool("app.db"),
        thenable=True,
        map_input_keys="snake_case",
        map_output_keys=lambda key: key,
    )
"""
from __future__ import annotations

from typing import Any, Callable

from pydantic import BaseModel, ConfigDict, field_validator

from sqlchain.schema.keys import KeyMapper, camel_case, resolve_key_mapper, snake_case

#: Dialect used when neither the config nor the pool names one.
DEFAULT_DIALECT = "postgres"


class Config(BaseModel):
    """Options recognized by :func:`sqlchain.create`.

    Attributes:
        pool: Connection pool exposing ``async execute(text, params)`` and
            ``async close()``.  Owned by the caller.
        thenable: When ``True`` builders can be awaited directly.
        map_input_keys: Mapper applied to object keys (or a built-in name).
        map_output_keys: Mapper applied to result columns (or a built-in name).
        dialect: Placeholder dialect; defaults to the pool's ``dialect``
            attribute, then ``"postgres"``.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    pool: Any
    thenable: bool = True
    map_input_keys: Callable[[str], str] = snake_case
    map_output_keys: Callable[[str], str] = camel_case
    dialect: str | None = None

    @field_validator("pool")
    @classmethod
    def _check_pool(cls, pool: Any) -> Any:
        if not callable(getattr(pool, "execute", None)):
            raise ValueError("pool must provide an async execute(text, params) method")
        return pool

    @field_validator("map_input_keys", "map_output_keys", mode="before")
    @classmethod
    def _resolve_mapper(cls, mapper: Any) -> KeyMapper:
        return resolve_key_mapper(mapper)

    @property
    def effective_dialect(self) -> str:
        """The dialect placeholders are rendered for."""
        return self.dialect or getattr(self.pool, "dialect", None) or DEFAULT_DIALECT
