"""Core clause model → SQL compilation logic.

``StatementBuilder`` is the top-level orchestrator.  It wires together the
clause-level sub-builders, then assembles the statement in a fixed precedence
order that does not depend on the order of the chain calls::

    with → statement keyword → from → where → group by → having
         → order by → limit → offset → returning

The statement keyword is ``insert into``, ``update … set`` or ``delete from``
when one of those clauses is present, and ``select`` otherwise.  Top-level
clauses are joined by the ``link`` separator (a single space by default).

Sub-builder hierarchy
---------------------
StatementBuilder
  ├── ValueBuilder            (expression_builder.py)
  ├── ConditionBuilder        (expression_builder.py)
  ├── WithClauseBuilder       (clause_builders.py)
  ├── FromClauseBuilder       (clause_builders.py)
  ├── ReturnClauseBuilder     (clause_builders.py)
  ├── ConditionClauseBuilder  (clause_builders.py)
  ├── InsertClauseBuilder     (clause_builders.py)
  ├── SetClauseBuilder        (clause_builders.py)
  ├── ListClauseBuilder       (clause_builders.py)
  └── OrderByClauseBuilder    (clause_builders.py)

Parameter numbering
-------------------
Builders compile to an unnumbered :class:`~sqlchain.schema.fragment.Fragment`.
Nested builders contribute their own fragments, and numbering happens once
when the outermost fragment is rendered for a dialect, so placeholders are
always contiguous across subqueries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlchain.compile.base import Query
from sqlchain.compile.clause_builders import (
    ConditionClauseBuilder,
    FromClauseBuilder,
    InsertClauseBuilder,
    ListClauseBuilder,
    OrderByClauseBuilder,
    ReturnClauseBuilder,
    SetClauseBuilder,
    WithClauseBuilder,
)
from sqlchain.compile.context import CompilationContext
from sqlchain.compile.expression_builder import ConditionBuilder, ValueBuilder
from sqlchain.compile.registry import CompilerFactory
from sqlchain.errors import ConstructionError
from sqlchain.schema.clauses import Clause, ClauseKind, ClauseModel
from sqlchain.schema.fragment import Fragment

if TYPE_CHECKING:
    from sqlchain.builder import Builder

#: Separator between top-level clauses when ``link`` is not called.
DEFAULT_LINK = " "


class StatementBuilder:
    """Compiles a sequence of clauses to a single unnumbered fragment.

    Args:
        ctx: Compilation context (key mapper) of the builder being compiled.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx
        value = ValueBuilder(ctx)
        self._value = value
        self._with = WithClauseBuilder(ctx, value)
        self._from = FromClauseBuilder(ctx, value)
        self._return = ReturnClauseBuilder(ctx, value)
        self._conditions = ConditionClauseBuilder(value, ConditionBuilder(ctx, value))
        self._insert = InsertClauseBuilder(value)
        self._set = SetClauseBuilder(ctx, value)
        self._list = ListClauseBuilder(value)
        self._order = OrderByClauseBuilder(value)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, clauses: tuple[Clause, ...]) -> Fragment:
        """Compile ``clauses`` (in call order) to a fragment.

        Raises:
            ConstructionError: If a data-modifying statement has no table.
        """
        model = ClauseModel(clauses)
        link = next(iter(model.items(ClauseKind.LINK)), DEFAULT_LINK)

        if ClauseKind.RAW in model:
            return Fragment.join(link, model.items(ClauseKind.RAW))

        parts: list[Fragment] = []
        if ClauseKind.WITH in model:
            parts.append("with " + self._with.build(model.items(ClauseKind.WITH)))

        if ClauseKind.INSERT in model:
            parts.extend(self._build_insert(model))
        elif ClauseKind.UPDATE in model:
            parts.extend(self._build_update(model))
        elif ClauseKind.DELETE in model:
            parts.extend(self._build_delete(model))
        else:
            parts.extend(self._build_select(model))

        return Fragment.join(link, parts)

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _build_select(self, model: ClauseModel) -> list[Fragment]:
        if ClauseKind.RETURN in model:
            parts = ["select " + self._return.build(model.items(ClauseKind.RETURN))]
        else:
            parts = [Fragment.text("select *")]
        tables = self._from.build(model.items(ClauseKind.FROM))
        if tables:
            parts.append("from " + Fragment.join(", ", tables))
        parts.extend(self._build_filters(model))
        if ClauseKind.GROUP_BY in model:
            parts.append("group by " + self._list.build(model.items(ClauseKind.GROUP_BY)))
        if ClauseKind.HAVING in model:
            parts.append("having " + self._conditions.build(model.calls(ClauseKind.HAVING)))
        parts.extend(self._build_paging(model))
        return parts

    def _build_insert(self, model: ClauseModel) -> list[Fragment]:
        tables = self._require_tables(model, "insert")
        body = self._insert.build(model.items(ClauseKind.INSERT))
        parts = ["insert into " + Fragment.join(", ", tables) + " " + body]
        parts.extend(self._build_returning(model))
        return parts

    def _build_update(self, model: ClauseModel) -> list[Fragment]:
        target, *rest = self._require_tables(model, "update")
        assignments = self._set.build(model.items(ClauseKind.UPDATE))
        parts = ["update " + target + " set " + assignments]
        if rest:
            parts.append("from " + Fragment.join(", ", rest))
        parts.extend(self._build_filters(model))
        parts.extend(self._build_paging(model))
        parts.extend(self._build_returning(model))
        return parts

    def _build_delete(self, model: ClauseModel) -> list[Fragment]:
        target, *rest = self._require_tables(model, "delete")
        parts = ["delete from " + target]
        if rest:
            parts.append("using " + Fragment.join(", ", rest))
        parts.extend(self._build_filters(model))
        parts.extend(self._build_paging(model))
        parts.extend(self._build_returning(model))
        return parts

    # ------------------------------------------------------------------
    # Shared clause groups
    # ------------------------------------------------------------------

    def _build_filters(self, model: ClauseModel) -> list[Fragment]:
        if ClauseKind.WHERE not in model:
            return []
        return ["where " + self._conditions.build(model.calls(ClauseKind.WHERE))]

    def _build_paging(self, model: ClauseModel) -> list[Fragment]:
        parts: list[Fragment] = []
        if ClauseKind.ORDER_BY in model:
            parts.append("order by " + self._order.build(model.items(ClauseKind.ORDER_BY)))
        for kind in (ClauseKind.LIMIT, ClauseKind.OFFSET):
            if kind in model:
                value = self._value.build(model.items(kind)[0])
                parts.append(f"{kind.value} " + value)
        return parts

    def _build_returning(self, model: ClauseModel) -> list[Fragment]:
        if ClauseKind.RETURN not in model:
            return []
        return ["returning " + self._return.build(model.items(ClauseKind.RETURN))]

    def _require_tables(self, model: ClauseModel, statement: str) -> list[Fragment]:
        tables = self._from.build(model.items(ClauseKind.FROM))
        if not tables:
            raise ConstructionError(
                f"{statement} needs a table: call from_() (or use the express form).",
                clause=statement,
            )
        return tables


# ---------------------------------------------------------------------------
# Entry points used by Builder
# ---------------------------------------------------------------------------


def compile_statement(builder: Builder) -> Fragment:
    """Compile ``builder`` to an unnumbered fragment (no parentheses)."""
    ctx = CompilationContext(map_key=builder.config.map_input_keys)
    return StatementBuilder(ctx).build(builder.clauses())


def compile_query(builder: Builder) -> Query:
    """Compile ``builder`` and number its placeholders for its dialect."""
    compiler = CompilerFactory.create(builder.config.effective_dialect)
    return compile_statement(builder).render(compiler)
