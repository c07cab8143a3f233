"""Clause-level SQL builders.

Each class handles exactly one clause kind and returns the clause *body*; the
statement builder adds keywords and decides where the body goes.  Builders
receive the items of every call of their kind, in call order, so template and
object calls interleave exactly as they were chained.

Classes
-------
WithClauseBuilder       — ``name as (statement), ...``
FromClauseBuilder       — ``table as alias``, ``(values ...) as alias(cols)``
ReturnClauseBuilder     — ``expression as alias, ...``
ConditionClauseBuilder  — ``where`` / ``having`` condition groups
InsertClauseBuilder     — ``(cols) values (...)`` / template / subquery
SetClauseBuilder        — ``column = value, ...``
ListClauseBuilder       — ``group by`` expressions
OrderByClauseBuilder    — ``expression [asc|desc] [nulls first|last]``
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlchain.compile.context import CompilationContext
from sqlchain.compile.expression_builder import ConditionBuilder, ValueBuilder
from sqlchain.errors import CompilationError
from sqlchain.schema.clauses import OrderItem, Rows
from sqlchain.schema.fragment import Fragment, Fragmentable


class WithClauseBuilder:
    """Builds the common table expressions of a ``with`` clause."""

    def __init__(self, ctx: CompilationContext, value_builder: ValueBuilder) -> None:
        self._ctx = ctx
        self._value = value_builder

    def build(self, items: list[Any]) -> Fragment:
        parts: list[Fragment] = []
        for item in items:
            if isinstance(item, Mapping):
                parts.extend(self._build_named(name, value) for name, value in item.items())
            else:
                parts.append(self._value.build(item))
        return Fragment.join(", ", parts)

    def _build_named(self, name: str, value: Any) -> Fragment:
        alias = self._ctx.map_key(name)
        if isinstance(value, Rows):
            values, columns = self._value.build_rows(value, missing="null")
            return values.wrap(f"{alias}({', '.join(columns)}) as (", ")")
        if isinstance(value, Fragmentable):
            return value.as_statement().wrap(f"{alias} as (", ")")
        if isinstance(value, Fragment):
            return value.wrap(f"{alias} as (", ")")
        raise CompilationError(f"Invalid with value for '{name}'.", clause="with")


class FromClauseBuilder:
    """Builds the list of table expressions named by ``from_`` calls.

    Returns one fragment per table expression so that ``update`` and
    ``delete`` can split the target table from the remaining ones.
    """

    def __init__(self, ctx: CompilationContext, value_builder: ValueBuilder) -> None:
        self._ctx = ctx
        self._value = value_builder

    def build(self, items: list[Any]) -> list[Fragment]:
        tables: list[Fragment] = []
        for item in items:
            if isinstance(item, Mapping):
                tables.extend(self._build_aliased(alias, value) for alias, value in item.items())
            else:
                tables.append(self._value.build(item))
        return tables

    def _build_aliased(self, key: str, value: Any) -> Fragment:
        alias = self._ctx.map_key(key)
        if isinstance(value, Rows):
            values, columns = self._value.build_rows(value, missing="null")
            return values.wrap("(", f") as {alias}({', '.join(columns)})")
        return self._value.build(value) + f" as {alias}"


class ReturnClauseBuilder:
    """Builds the output list of ``select`` / ``returning``."""

    def __init__(self, ctx: CompilationContext, value_builder: ValueBuilder) -> None:
        self._ctx = ctx
        self._value = value_builder

    def build(self, items: list[Any]) -> Fragment:
        outputs: list[Fragment] = []
        for item in items:
            if isinstance(item, Mapping):
                outputs.extend(
                    self._value.build(value) + f" as {self._ctx.map_key(alias)}"
                    for alias, value in item.items()
                )
            else:
                outputs.append(self._value.build(item))
        return Fragment.join(", ", outputs)


class ConditionClauseBuilder:
    """Builds ``where`` and ``having`` bodies.

    Arguments of one call OR-combine; calls AND-combine.  A call group is
    parenthesized whenever several groups are combined and the group is not
    already a single parenthesized object condition.
    """

    def __init__(self, value_builder: ValueBuilder, condition_builder: ConditionBuilder) -> None:
        self._value = value_builder
        self._condition = condition_builder

    def build(self, calls: list[tuple[Any, ...]]) -> Fragment:
        groups: list[Fragment] = []
        for items in calls:
            group = Fragment.join(" or ", [self._build_item(item) for item in items])
            self_wrapped = len(items) == 1 and isinstance(items[0], Mapping)
            if len(calls) > 1 and not self_wrapped:
                group = group.wrap()
            groups.append(group)
        return Fragment.join(" and ", groups)

    def _build_item(self, item: Any) -> Fragment:
        if isinstance(item, Mapping):
            return self._condition.build(item)
        return self._value.build(item)


class InsertClauseBuilder:
    """Builds everything after ``insert into <table>``.

    Row objects of all calls merge into one values list whose columns are the
    ordered union of every row's keys; absent columns render ``default``.
    """

    def __init__(self, value_builder: ValueBuilder) -> None:
        self._value = value_builder

    def build(self, items: list[Any]) -> Fragment:
        if all(isinstance(item, Rows) for item in items):
            merged = Rows(tuple(row for item in items for row in item.rows))
            values, columns = self._value.build_rows(merged, missing="default")
            return f"({', '.join(columns)}) " + values
        if len(items) != 1:
            raise CompilationError("Incompatible insert payloads.", clause="insert")
        item = items[0]
        if isinstance(item, Fragmentable):
            return item.as_statement()
        return self._value.build(item)


class SetClauseBuilder:
    """Builds the assignment list of an ``update``."""

    def __init__(self, ctx: CompilationContext, value_builder: ValueBuilder) -> None:
        self._ctx = ctx
        self._value = value_builder

    def build(self, items: list[Any]) -> Fragment:
        assignments: list[Fragment] = []
        for item in items:
            if isinstance(item, Mapping):
                assignments.extend(
                    f"{self._ctx.map_key(column)} = " + self._value.build(value)
                    for column, value in item.items()
                )
            else:
                assignments.append(self._value.build(item))
        return Fragment.join(", ", assignments)


class ListClauseBuilder:
    """Builds a comma-separated expression list (``group by``)."""

    def __init__(self, value_builder: ValueBuilder) -> None:
        self._value = value_builder

    def build(self, items: list[Any]) -> Fragment:
        return Fragment.join(", ", [self._value.build(item) for item in items])


class OrderByClauseBuilder:
    """Builds ``order by`` sort keys."""

    def __init__(self, value_builder: ValueBuilder) -> None:
        self._value = value_builder

    def build(self, items: list[Any]) -> Fragment:
        return Fragment.join(", ", [self._build_item(item) for item in items])

    def _build_item(self, item: Any) -> Fragment:
        if not isinstance(item, OrderItem):
            return self._value.build(item)
        fragment = self._value.build(item.by)
        if item.sort:
            fragment = fragment + f" {item.sort}"
        if item.nulls:
            fragment = fragment + f" nulls {item.nulls}"
        return fragment
