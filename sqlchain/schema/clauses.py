"""Clause model: the payloads accumulated by a builder.

Every chain call is validated and frozen here, at the call, so malformed
payloads fail where they are written instead of when the query runs.  Object
keys are kept as the caller wrote them; key mapping happens at compile time
with the builder's configured mapper.

Normalized item shapes
----------------------
``Fragment``
    Templates, bare strings and :class:`~sqlchain.schema.fragment.Raw` values.
``Fragmentable``
    Nested builders (subqueries or raw statements).
``Mapping``
    Object payloads, frozen with :class:`types.MappingProxyType`.  Values are
    already converted to fragments, builders, :class:`Rows`, ``None`` (where)
    or tuples (where membership).
:class:`Rows`
    Value lists: ``insert`` rows, or array payloads inside ``from_``/``with_``.
:class:`OrderItem`
    Object form of ``order_by``.
"""
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from sqlchain.errors import ConstructionError
from sqlchain.schema.fragment import Fragment, Fragmentable, Raw, is_template, template


class ClauseKind(str, Enum):
    """The clause kinds a builder accumulates."""

    WITH = "with"
    FROM = "from"
    WHERE = "where"
    RETURN = "return"
    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"
    GROUP_BY = "group_by"
    HAVING = "having"
    ORDER_BY = "order_by"
    LIMIT = "limit"
    OFFSET = "offset"
    LINK = "link"
    RAW = "raw"


#: Kinds where only the last call counts.
SINGLETON_KINDS: frozenset[ClauseKind] = frozenset(
    {ClauseKind.LIMIT, ClauseKind.OFFSET, ClauseKind.LINK}
)

#: Kinds that turn the statement into a data-modifying one.
STATEMENT_KINDS: frozenset[ClauseKind] = frozenset(
    {ClauseKind.INSERT, ClauseKind.UPDATE, ClauseKind.DELETE}
)

#: Clauses a data-modifying statement cannot carry.
INCOMPATIBLE_KINDS: dict[ClauseKind, frozenset[ClauseKind]] = {
    ClauseKind.INSERT: frozenset(
        {
            ClauseKind.WHERE,
            ClauseKind.GROUP_BY,
            ClauseKind.HAVING,
            ClauseKind.ORDER_BY,
            ClauseKind.LIMIT,
            ClauseKind.OFFSET,
        }
    ),
    ClauseKind.UPDATE: frozenset({ClauseKind.GROUP_BY, ClauseKind.HAVING}),
    ClauseKind.DELETE: frozenset({ClauseKind.GROUP_BY, ClauseKind.HAVING}),
}

# Kinds accepting object payloads.
_OBJECT_KINDS = frozenset(
    {
        ClauseKind.WITH,
        ClauseKind.FROM,
        ClauseKind.WHERE,
        ClauseKind.HAVING,
        ClauseKind.RETURN,
        ClauseKind.UPDATE,
    }
)

_SORT_DIRECTIONS = frozenset({"asc", "desc"})
_NULLS_ORDER = frozenset({"first", "last"})


@dataclass(frozen=True)
class Clause:
    """One chain call: its kind and the validated items it carried."""

    kind: ClauseKind
    items: tuple[Any, ...]


@dataclass(frozen=True)
class Rows:
    """A values list; each row maps a column key to a fragment or builder."""

    rows: tuple[Mapping[str, Any], ...]

    @property
    def columns(self) -> list[str]:
        """Ordered union of the row keys, in order of first appearance."""
        seen: dict[str, None] = {}
        for row in self.rows:
            for key in row:
                seen.setdefault(key, None)
        return list(seen)


@dataclass(frozen=True)
class OrderItem:
    """``order_by({"by": ..., "sort": "desc", "nulls": "last"})``."""

    by: Any
    sort: str | None = None
    nulls: str | None = None


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------


def normalize(kind: ClauseKind, args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[Any, ...]:
    """Validate and freeze the arguments of one chain call.

    Raises:
        ConstructionError: If the payload does not fit ``kind``.
    """
    clause = kind.value
    if kind is ClauseKind.LINK:
        if kwargs or len(args) != 1 or not isinstance(args[0], str):
            raise ConstructionError("link() takes a single separator string.", clause=clause)
        return (args[0],)
    if kind is ClauseKind.DELETE:
        if args or kwargs:
            raise ConstructionError("delete() takes no arguments.", clause=clause)
        return ()
    if args and is_template(args[0]):
        return (template(args[0], args[1:], kwargs, clause=clause),)
    if kwargs:
        raise ConstructionError(
            "Keyword arguments are only accepted together with a template string.",
            clause=clause,
        )
    if not args:
        raise ConstructionError(f"{clause} requires at least one argument.", clause=clause)
    if kind is ClauseKind.RAW:
        if len(args) != 1 or not isinstance(args[0], str):
            raise ConstructionError("l() takes a template string.", clause=clause)
        return (Fragment.text(args[0]),)
    if kind is ClauseKind.INSERT:
        return (_normalize_insert(args),)
    if kind in (ClauseKind.LIMIT, ClauseKind.OFFSET) and len(args) != 1:
        raise ConstructionError(f"{clause} takes a single value.", clause=clause)
    return tuple(_normalize_item(kind, arg) for arg in args)


def _normalize_item(kind: ClauseKind, arg: Any) -> Any:
    clause = kind.value
    if isinstance(arg, str):
        return Fragment.text(arg)
    if isinstance(arg, Raw):
        return Fragment.text(arg.text)
    if isinstance(arg, Fragmentable):
        if kind is ClauseKind.WITH:
            raise ConstructionError(
                "with_() subqueries need a name: pass {name: subquery}.", clause=clause
            )
        return arg
    if isinstance(arg, Mapping):
        if kind is ClauseKind.ORDER_BY:
            return _normalize_order(arg)
        if kind not in _OBJECT_KINDS:
            raise ConstructionError(f"{clause} does not accept objects.", clause=clause)
        return _freeze_object(kind, arg)
    if kind in (ClauseKind.LIMIT, ClauseKind.OFFSET):
        if isinstance(arg, bool) or not isinstance(arg, int) or arg < 0:
            raise ConstructionError(
                f"{clause} expects a non-negative integer, got {arg!r}.", clause=clause
            )
        return Fragment.param(arg)
    raise ConstructionError(
        f"{clause} does not accept values of type {type(arg).__name__}.", clause=clause
    )


def _check_keys(obj: Mapping[Any, Any], clause: str) -> None:
    if not obj:
        raise ConstructionError(f"{clause} received an empty object.", clause=clause)
    for key in obj:
        if not isinstance(key, str):
            raise ConstructionError(
                f"Object keys must be strings, got {type(key).__name__}.", clause=clause
            )


def _freeze_object(kind: ClauseKind, obj: Mapping[Any, Any]) -> Mapping[str, Any]:
    _check_keys(obj, kind.value)
    if kind in (ClauseKind.FROM, ClauseKind.WITH):
        convert = _table_value
    elif kind in (ClauseKind.WHERE, ClauseKind.HAVING):
        convert = _condition_value
    elif kind is ClauseKind.UPDATE:
        convert = _assignment_value
    else:
        convert = _expression_value
    return MappingProxyType({key: convert(value, kind.value) for key, value in obj.items()})


def _expression_value(value: Any, clause: str) -> Any:
    """Return values: strings are SQL text, everything else is bound."""
    if isinstance(value, str):
        return Fragment.text(value)
    return _bound_value(value, clause)


def _bound_value(value: Any, clause: str) -> Any:
    if isinstance(value, Raw):
        return Fragment.text(value.text)
    if isinstance(value, Fragmentable):
        return value
    return Fragment.param(value)


def _assignment_value(value: Any, clause: str) -> Any:
    if isinstance(value, Mapping):
        raise ConstructionError("update() values cannot be objects.", clause=clause)
    return _bound_value(value, clause)


def _condition_value(value: Any, clause: str, nested: bool = False) -> Any:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return tuple(_bound_value(v, clause) for v in value)
    if isinstance(value, Mapping):
        if nested:
            raise ConstructionError(
                "Conditions nest at most one object level deep.", clause=clause
            )
        _check_keys(value, clause)
        return MappingProxyType(
            {k: _condition_value(v, clause, nested=True) for k, v in value.items()}
        )
    return _bound_value(value, clause)


def _table_value(value: Any, clause: str) -> Any:
    if isinstance(value, (str, Raw)):
        return Fragment.text(value if isinstance(value, str) else value.text)
    if isinstance(value, Fragmentable):
        return value
    if isinstance(value, (Mapping, list, tuple)):
        return _freeze_rows(value, clause)
    raise ConstructionError(
        f"from values must be table names, subqueries or rows, got {type(value).__name__}.",
        clause=clause,
    )


def _freeze_rows(value: Any, clause: str) -> Rows:
    rows = [value] if isinstance(value, Mapping) else list(value)
    if not rows:
        raise ConstructionError("A values list needs at least one row.", clause=clause)
    frozen = []
    for row in rows:
        if not isinstance(row, Mapping):
            raise ConstructionError(
                f"Rows must be objects, got {type(row).__name__}.", clause=clause
            )
        _check_keys(row, clause)
        frozen.append(
            MappingProxyType({k: _bound_value(v, clause) for k, v in row.items()})
        )
    return Rows(tuple(frozen))


def _normalize_insert(args: tuple[Any, ...]) -> Any:
    clause = ClauseKind.INSERT.value
    first = args[0]
    if len(args) == 1:
        if isinstance(first, str):
            return Fragment.text(first)
        if isinstance(first, Raw):
            return Fragment.text(first.text)
        if isinstance(first, Fragmentable):
            return first
        if isinstance(first, (list, tuple)):
            return _freeze_rows(first, clause)
    if all(isinstance(arg, Mapping) for arg in args):
        return _freeze_rows(args, clause)
    raise ConstructionError(
        "insert() takes row objects, a list of row objects, a template or a subquery.",
        clause=clause,
    )


def _normalize_order(obj: Mapping[Any, Any]) -> OrderItem:
    clause = ClauseKind.ORDER_BY.value
    unknown = set(obj) - {"by", "sort", "nulls"}
    if unknown or "by" not in obj:
        raise ConstructionError(
            "order_by objects take 'by' and optional 'sort' / 'nulls' keys.", clause=clause
        )
    by = obj["by"]
    if isinstance(by, str):
        by = Fragment.text(by)
    elif isinstance(by, Raw):
        by = Fragment.text(by.text)
    elif not isinstance(by, Fragmentable):
        raise ConstructionError(
            f"order_by 'by' must be an expression, got {type(by).__name__}.", clause=clause
        )
    sort = obj.get("sort")
    if sort is not None and (not isinstance(sort, str) or sort.lower() not in _SORT_DIRECTIONS):
        raise ConstructionError(f"Invalid sort direction {sort!r}.", clause=clause)
    nulls = obj.get("nulls")
    if nulls is not None and (not isinstance(nulls, str) or nulls.lower() not in _NULLS_ORDER):
        raise ConstructionError(f"Invalid nulls ordering {nulls!r}.", clause=clause)
    return OrderItem(
        by=by,
        sort=sort.lower() if sort else None,
        nulls=nulls.lower() if nulls else None,
    )


# ---------------------------------------------------------------------------
# Clause model
# ---------------------------------------------------------------------------


class ClauseModel:
    """Clauses grouped by kind, each kind keeping its calls in call order.

    Args:
        clauses: Clauses in call order, as returned by ``Builder.clauses()``.
    """

    def __init__(self, clauses: tuple[Clause, ...]) -> None:
        self._calls: dict[ClauseKind, list[tuple[Any, ...]]] = {}
        for clause in clauses:
            self._calls.setdefault(clause.kind, []).append(clause.items)

    def __contains__(self, kind: object) -> bool:
        return kind in self._calls

    def calls(self, kind: ClauseKind) -> list[tuple[Any, ...]]:
        """Items of every call of ``kind``; singleton kinds keep the last call."""
        calls = self._calls.get(kind, [])
        if kind in SINGLETON_KINDS:
            return calls[-1:]
        return list(calls)

    def items(self, kind: ClauseKind) -> list[Any]:
        """Items of every call of ``kind``, flattened."""
        return [item for call in self.calls(kind) for item in call]
