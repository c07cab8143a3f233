"""Value and condition SQL compilers.

``ValueBuilder`` turns normalized clause values (fragments, nested builders,
value lists) into fragments.  ``ConditionBuilder`` renders the object form of
``where`` / ``having``, which is built on top of value rendering.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sqlchain.compile.context import CompilationContext
from sqlchain.errors import CompilationError
from sqlchain.schema.clauses import Rows
from sqlchain.schema.fragment import Fragment, Fragmentable


class ValueBuilder:
    """Compiles a single normalized value to a fragment.

    Args:
        ctx: Compilation context of the builder being compiled.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, value: Any) -> Fragment:
        """Fragments render as-is; builders render in embedded form."""
        if isinstance(value, Fragment):
            return value
        if isinstance(value, Fragmentable):
            return value.as_fragment()
        raise CompilationError(f"Unexpected clause value of type {type(value).__name__}.")

    def build_rows(self, rows: Rows, missing: str) -> tuple[Fragment, list[str]]:
        """Compile a values list.

        Args:
            rows: Rows to render.
            missing: SQL text used where a row lacks one of the columns.

        Returns:
            ``(values (...), (...))`` fragment and the mapped column names.
        """
        columns = rows.columns
        tuples = [
            Fragment.join(
                ", ",
                [self.build(row[c]) if c in row else Fragment.text(missing) for c in columns],
            ).wrap()
            for row in rows.rows
        ]
        mapped = [self._ctx.map_key(c) for c in columns]
        return Fragment.join(", ", tuples).wrap("values ", ""), mapped


class ConditionBuilder:
    """Compiles ``{column: value}`` objects to a parenthesized conjunction.

    ``None`` compares with ``is null``, tuples become ``in (...)`` lists and
    nested objects qualify their columns with the outer key::

        {"person": {"firstName": "Jo"}, "deletedAt": None}
        # (person.first_name = $1 and deleted_at is null)
    """

    def __init__(self, ctx: CompilationContext, value_builder: ValueBuilder) -> None:
        self._ctx = ctx
        self._value = value_builder

    def build(self, obj: Mapping[str, Any]) -> Fragment:
        map_key = self._ctx.map_key
        conditions: list[Fragment] = []
        for key, value in obj.items():
            column = map_key(key)
            if isinstance(value, Mapping):
                conditions.extend(
                    self._compare(f"{column}.{map_key(k)}", v) for k, v in value.items()
                )
            else:
                conditions.append(self._compare(column, value))
        return Fragment.join(" and ", conditions).wrap()

    def _compare(self, column: str, value: Any) -> Fragment:
        if value is None:
            return Fragment.text(f"{column} is null")
        if isinstance(value, tuple):
            if not value:
                return Fragment.text("false")
            members = Fragment.join(", ", [self._value.build(v) for v in value])
            return members.wrap(f"{column} in (", ")")
        return f"{column} = " + self._value.build(value)
