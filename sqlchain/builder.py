"""The chainable, immutable query builder.

Every chain method returns a *new* builder; the receiver is never modified,
so any builder can be stored, shared between coroutines and extended in
several directions::

    people = sq.from_("person")
    jo = people.where({"firstName": "Jo"})
    bo = people.where({"firstName": "Bo"})   # `people` and `jo` are unchanged

Clauses are kept in a persistent singly linked list: each builder points at
the node of its newest clause, and each node points at its parent.  Extending
a builder allocates one node and shares every earlier one.

Express form
------------
Calling a builder directly is shorthand for the common three-clause query;
the first, second and third calls map to ``from_``, ``where`` and
``return_``::

    sq("person")({"firstName": "Jo"})("last_name")
    # == sq.from_("person").where({"firstName": "Jo"}).return_("last_name")

Python keywords are suffixed with an underscore: ``with_``, ``from_``,
``return_`` (``select`` is an alias of ``return_``).

Templates
---------
A chain call whose *first* argument is a string containing braces parses it
as a template and binds the remaining arguments to its fields.  Later string
arguments are always bare SQL, so literal braces only need doubling in the
first position::

    sq.from_("t").where("tags @> '{{a}}'")        # tags @> '{a}'
    sq.from_("t").return_("id", "'{a}'::text[]")  # passed through as-is
"""
from __future__ import annotations

from collections.abc import Generator
from typing import Any, NamedTuple

from sqlchain.compile.base import Query
from sqlchain.compile.builder import compile_query, compile_statement
from sqlchain.errors import ConstructionError
from sqlchain.execute.executor import Executor
from sqlchain.schema.clauses import (
    INCOMPATIBLE_KINDS,
    STATEMENT_KINDS,
    Clause,
    ClauseKind,
    Rows,
    normalize,
)
from sqlchain.schema.config import Config
from sqlchain.schema.fragment import Fragment, Fragmentable

_EXPRESS_KINDS = (ClauseKind.FROM, ClauseKind.WHERE, ClauseKind.RETURN)


class _Node(NamedTuple):
    clause: Clause
    parent: _Node | None
    kinds: frozenset[ClauseKind]


class Builder(Fragmentable):
    """Immutable accumulation of clauses bound to a :class:`Config`.

    Builders are created with :func:`sqlchain.create`, never directly.

    Args:
        config: Shared configuration (pool, key mappers, dialect).
        node: Newest clause node, or ``None`` for an empty builder.
        express: Number of express calls made so far.
    """

    __slots__ = ("_config", "_node", "_express")

    def __init__(self, config: Config, node: _Node | None = None, express: int = 0) -> None:
        self._config = config
        self._node = node
        self._express = express

    # ------------------------------------------------------------------
    # Chain surface
    # ------------------------------------------------------------------

    def with_(self, *args: Any, **kwargs: Any) -> Builder:
        """Add common table expressions: ``{name: subquery}`` or a template."""
        return self._add(ClauseKind.WITH, args, kwargs)

    def from_(self, *args: Any, **kwargs: Any) -> Builder:
        """Add tables: names, ``{alias: table | subquery | rows}`` or a template.

        A first string argument containing braces is a template; write literal
        braces as ``{{`` and ``}}`` there.
        """
        return self._add(ClauseKind.FROM, args, kwargs)

    def where(self, *args: Any, **kwargs: Any) -> Builder:
        """Add a condition group; arguments OR-combine, calls AND-combine.

        A first string argument containing braces is a template; write literal
        braces as ``{{`` and ``}}`` there (``"tags @> '{{a}}'"``).
        """
        return self._add(ClauseKind.WHERE, args, kwargs)

    def return_(self, *args: Any, **kwargs: Any) -> Builder:
        """Add output expressions: names, ``{alias: expression}`` or a template."""
        return self._add(ClauseKind.RETURN, args, kwargs)

    select = return_

    def insert(self, *args: Any, **kwargs: Any) -> Builder:
        """Insert rows (objects or a list of objects), a template or a subquery."""
        return self._add(ClauseKind.INSERT, args, kwargs)

    def update(self, *args: Any, **kwargs: Any) -> Builder:
        """Add assignments: ``{column: value}`` or a template."""
        return self._add(ClauseKind.UPDATE, args, kwargs)

    def delete(self, *args: Any, **kwargs: Any) -> Builder:
        """Turn the statement into a ``delete``; takes no arguments."""
        return self._add(ClauseKind.DELETE, args, kwargs)

    def group_by(self, *args: Any, **kwargs: Any) -> Builder:
        return self._add(ClauseKind.GROUP_BY, args, kwargs)

    def having(self, *args: Any, **kwargs: Any) -> Builder:
        return self._add(ClauseKind.HAVING, args, kwargs)

    def order_by(self, *args: Any, **kwargs: Any) -> Builder:
        """Add sort keys: expressions or ``{"by": ..., "sort": "desc"}``."""
        return self._add(ClauseKind.ORDER_BY, args, kwargs)

    def limit(self, *args: Any, **kwargs: Any) -> Builder:
        return self._add(ClauseKind.LIMIT, args, kwargs)

    def offset(self, *args: Any, **kwargs: Any) -> Builder:
        return self._add(ClauseKind.OFFSET, args, kwargs)

    def link(self, separator: str) -> Builder:
        """Set the text placed between top-level clauses (default ``" "``)."""
        return self._add(ClauseKind.LINK, (separator,), {})

    def l(self, fmt: str, *args: Any, **kwargs: Any) -> Builder:  # noqa: E743
        """Append raw SQL built from a template; see :mod:`sqlchain.schema.fragment`."""
        return self._add(ClauseKind.RAW, (fmt, *args), kwargs)

    def __call__(self, *args: Any, **kwargs: Any) -> Builder:
        if self._express >= len(_EXPRESS_KINDS):
            raise ConstructionError(
                "Express form takes at most three calls: table, conditions, returns."
            )
        kind = _EXPRESS_KINDS[self._express]
        return self._add(kind, args, kwargs, express=self._express + 1)

    # ------------------------------------------------------------------
    # Inspection and compilation
    # ------------------------------------------------------------------

    @property
    def config(self) -> Config:
        return self._config

    def clauses(self) -> tuple[Clause, ...]:
        """All clauses in call order."""
        collected: list[Clause] = []
        node = self._node
        while node is not None:
            collected.append(node.clause)
            node = node.parent
        collected.reverse()
        return tuple(collected)

    @property
    def is_raw(self) -> bool:
        """True if the builder was built only with :meth:`l` (and :meth:`link`)."""
        return self._node is not None and ClauseKind.RAW in self._node.kinds

    @property
    def query(self) -> Query:
        """Compile without executing."""
        return compile_query(self)

    def as_statement(self) -> Fragment:
        return compile_statement(self)

    def as_fragment(self) -> Fragment:
        statement = compile_statement(self)
        return statement if self.is_raw else statement.wrap()

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def all(self) -> list[dict[str, Any]]:
        """Execute and return every row, keys mapped for output."""
        return await Executor(self._config).run(self.query)

    async def one(self, strict: bool = False) -> dict[str, Any] | None:
        """Execute and return the first row.

        Args:
            strict: Require exactly one row.

        Returns:
            The first mapped row, or ``None`` when there are no rows.

        Raises:
            NoRowsError: ``strict`` and no rows were returned.
            MultipleRowsError: ``strict`` and more than one row was returned.
        """
        return await Executor(self._config).run_one(self.query, strict=strict)

    async def end(self) -> None:
        """Close the configured pool."""
        await Executor(self._config).close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _add(
        self,
        kind: ClauseKind,
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
        express: int | None = None,
    ) -> Builder:
        items = normalize(kind, args, kwargs)
        self._check_compatible(kind, items)
        present = self._node.kinds if self._node is not None else frozenset()
        node = _Node(Clause(kind, items), self._node, present | {kind})
        return type(self)(self._config, node, self._express if express is None else express)

    def _check_compatible(self, kind: ClauseKind, items: tuple[Any, ...]) -> None:
        present = self._node.kinds if self._node is not None else frozenset()
        clause = kind.value
        if kind is ClauseKind.RAW:
            if present - {ClauseKind.RAW, ClauseKind.LINK}:
                raise ConstructionError(
                    "l() builds a complete statement and cannot follow clause methods.",
                    clause=clause,
                )
        elif kind is not ClauseKind.LINK and ClauseKind.RAW in present:
            raise ConstructionError(
                f"{clause} cannot be added to a statement built with l().", clause=clause
            )

        if kind in STATEMENT_KINDS:
            others = (present & STATEMENT_KINDS) - {kind}
            if others:
                raise ConstructionError(
                    f"Cannot combine {clause} with {sorted(k.value for k in others)}.",
                    clause=clause,
                )
            conflicts = INCOMPATIBLE_KINDS[kind] & present
            if conflicts:
                raise ConstructionError(
                    f"{clause} cannot be combined with {sorted(k.value for k in conflicts)}.",
                    clause=clause,
                )
        for statement in present & STATEMENT_KINDS:
            if kind in INCOMPATIBLE_KINDS[statement]:
                raise ConstructionError(
                    f"{clause} cannot be added to an {statement.value} statement.",
                    clause=clause,
                )

        if kind is ClauseKind.INSERT and ClauseKind.INSERT in present:
            previous = [c for c in self.clauses() if c.kind is ClauseKind.INSERT]
            if not all(isinstance(c.items[0], Rows) for c in previous) or not isinstance(
                items[0], Rows
            ):
                raise ConstructionError(
                    "Only row-object insert() calls can be combined; "
                    "templates and subqueries must be the single insert() call.",
                    clause=clause,
                )

    def __await__(self) -> Generator[Any, None, Builder]:
        # Not thenable: awaiting resolves to the builder itself and runs nothing.
        yield from ()
        return self

    def __repr__(self) -> str:
        kinds = ", ".join(c.kind.value for c in self.clauses())
        return f"<{type(self).__name__} [{kinds}]>"


class ThenableBuilder(Builder):
    """A builder that executes when awaited: ``rows = await sq.from_("t")``."""

    __slots__ = ()

    def __await__(self) -> Generator[Any, None, list[dict[str, Any]]]:
        return self.all().__await__()
