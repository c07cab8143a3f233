"""SQL fragments and template interpolation.

A :class:`Fragment` is an immutable sequence of parts.  Each part is either
literal SQL text or a :class:`Param` marker holding one bound value.
Placeholders are not numbered while fragments are being composed; numbering
happens once in :meth:`Fragment.render`, so any concatenation of fragments
renders a single contiguous ``1..n`` placeholder sequence that matches the
order of the values list.

Templates
---------
Python has no tagged template literals, so templates are ``str.format``-style
strings parsed with :class:`string.Formatter`::

    template("select * from person where id = {}", (7,))
    # parts: "select * from person where id = ", Param(7)

    template("create database {:raw}", ("app_test",))
    # parts: "create database ", "app_test"

``{}`` / ``{0}`` / ``{name}`` fields bind parameters.  ``{:raw}`` fields and
:class:`Raw` values are spliced as unescaped text and must only carry trusted
identifiers.  Fragments and builders are embedded with their own parameters.
"""
from __future__ import annotations

import string
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from sqlchain.errors import CompilationError, ConstructionError

if TYPE_CHECKING:
    from sqlchain.compile.base import Query, SQLCompiler

_FORMATTER = string.Formatter()


@dataclass(frozen=True)
class Param:
    """A bound value inside a fragment."""

    value: Any


@dataclass(frozen=True)
class Raw:
    """Trusted SQL text spliced without escaping or parameterization.

    Use :func:`sqlchain.raw` to create one.  Never wrap user input.
    """

    text: str

    def __post_init__(self) -> None:
        if not isinstance(self.text, str):
            raise ConstructionError(
                f"raw() expects a string, got {type(self.text).__name__}."
            )


Part = Union[str, Param]


class Fragmentable(ABC):
    """An object that can be embedded into a fragment (e.g. a builder)."""

    @abstractmethod
    def as_fragment(self) -> Fragment:
        """Return the fragment used when this object is embedded in another."""

    def as_statement(self) -> Fragment:
        """Return the bare statement, without embedding parentheses."""
        return self.as_fragment()


class Fragment:
    """Immutable SQL text with unnumbered parameter markers."""

    __slots__ = ("_parts",)

    def __init__(self, parts: Iterable[Part] = ()) -> None:
        merged: list[Part] = []
        for part in parts:
            if isinstance(part, str):
                if not part:
                    continue
                if merged and isinstance(merged[-1], str):
                    merged[-1] += part
                    continue
            elif not isinstance(part, Param):
                raise CompilationError(
                    f"Invalid fragment part of type {type(part).__name__}."
                )
            merged.append(part)
        self._parts: tuple[Part, ...] = tuple(merged)

    # ------------------------------------------------------------------
    # Constructors
    # ------------------------------------------------------------------

    @classmethod
    def text(cls, sql: str) -> Fragment:
        return cls((sql,))

    @classmethod
    def param(cls, value: Any) -> Fragment:
        return cls((Param(value),))

    @classmethod
    def join(cls, separator: str, fragments: Iterable[Fragment]) -> Fragment:
        """Concatenate ``fragments`` with ``separator`` text between them."""
        parts: list[Part] = []
        for i, fragment in enumerate(fragments):
            if i:
                parts.append(separator)
            parts.extend(fragment.parts)
        return cls(parts)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    @property
    def parts(self) -> tuple[Part, ...]:
        return self._parts

    @property
    def params(self) -> list[Any]:
        """Bound values in order of appearance."""
        return [p.value for p in self._parts if isinstance(p, Param)]

    def wrap(self, prefix: str = "(", suffix: str = ")") -> Fragment:
        return Fragment((prefix, *self._parts, suffix))

    def __add__(self, other: object) -> Fragment:
        if isinstance(other, Fragment):
            return Fragment((*self._parts, *other._parts))
        if isinstance(other, str):
            return Fragment((*self._parts, other))
        return NotImplemented

    def __radd__(self, other: object) -> Fragment:
        if isinstance(other, str):
            return Fragment((other, *self._parts))
        return NotImplemented

    def __bool__(self) -> bool:
        return bool(self._parts)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fragment):
            return NotImplemented
        return self._parts == other._parts

    def __repr__(self) -> str:
        return f"Fragment({list(self._parts)!r})"

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, compiler: SQLCompiler) -> Query:
        """Number the placeholders for ``compiler``'s dialect."""
        from sqlchain.compile.base import Query

        chunks: list[str] = []
        values: list[Any] = []
        for part in self._parts:
            if isinstance(part, Param):
                values.append(part.value)
                chunks.append(compiler.param_placeholder(len(values)))
            else:
                chunks.append(compiler.escape_text(part))
        return Query(text="".join(chunks), values=values, dialect=compiler.dialect_name)


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------


def interpolate(value: Any) -> Fragment:
    """Fragment for ``value`` interpolated through an ordinary ``{}`` field."""
    if isinstance(value, Raw):
        return Fragment.text(value.text)
    if isinstance(value, Fragment):
        return value
    if isinstance(value, Fragmentable):
        return value.as_fragment()
    return Fragment.param(value)


def splice(value: Any) -> Fragment:
    """Fragment for ``value`` interpolated through a ``{:raw}`` field."""
    if isinstance(value, Raw):
        return Fragment.text(value.text)
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise ConstructionError(
            f"Only str or int values can be spliced raw, got {type(value).__name__}."
        )
    return Fragment.text(str(value))


def is_template(candidate: Any) -> bool:
    """True if ``candidate`` is a string with replacement fields or escapes."""
    if not isinstance(candidate, str):
        return False
    try:
        for literal, field_name, _, _ in _FORMATTER.parse(candidate):
            if field_name is not None:
                return True
    except ValueError:
        # Unbalanced braces: surfaced by template() as a construction error.
        return True
    return "{{" in candidate or "}}" in candidate


def template(
    fmt: str,
    args: Sequence[Any] = (),
    kwargs: Mapping[str, Any] | None = None,
    clause: str | None = None,
) -> Fragment:
    """Parse ``fmt`` and interpolate ``args`` / ``kwargs`` into a fragment.

    Raises:
        ConstructionError: On malformed templates, missing or unused values,
            conversions, or unknown format specs.
    """
    kwargs = kwargs or {}
    if not isinstance(fmt, str):
        raise ConstructionError(
            f"Template must be a string, got {type(fmt).__name__}.", clause=clause
        )
    try:
        parsed = list(_FORMATTER.parse(fmt))
    except ValueError as exc:
        raise ConstructionError(f"Malformed template {fmt!r}: {exc}", clause=clause) from exc

    parts: list[Part] = []
    auto_index = 0
    used_positions: set[int] = set()
    used_names: set[str] = set()
    numbering: str | None = None

    for literal, field_name, spec, conversion in parsed:
        if literal:
            parts.append(literal)
        if field_name is None:
            continue
        if conversion:
            raise ConstructionError(
                f"Conversions are not supported in templates: '!{conversion}'.",
                clause=clause,
            )
        if field_name == "" or field_name.isdigit():
            mode = "auto" if field_name == "" else "manual"
            if numbering is not None and numbering != mode:
                raise ConstructionError(
                    "Cannot mix automatic '{}' and numbered '{0}' fields.", clause=clause
                )
            numbering = mode
            position = auto_index if mode == "auto" else int(field_name)
            if mode == "auto":
                auto_index += 1
            if position >= len(args):
                raise ConstructionError(
                    f"Template {fmt!r} needs value #{position} but got {len(args)}.",
                    clause=clause,
                )
            value = args[position]
            used_positions.add(position)
        elif field_name.isidentifier():
            if field_name not in kwargs:
                raise ConstructionError(
                    f"Template {fmt!r} needs keyword value '{field_name}' "
                    "(write literal braces as '{{' and '}}').",
                    clause=clause,
                )
            value = kwargs[field_name]
            used_names.add(field_name)
        else:
            raise ConstructionError(
                f"Unsupported template field '{{{field_name}}}'.", clause=clause
            )

        if spec == "raw":
            parts.extend(splice(value).parts)
        elif spec:
            raise ConstructionError(
                f"Unknown template format spec ':{spec}'; only ':raw' is supported.",
                clause=clause,
            )
        else:
            parts.extend(interpolate(value).parts)

    unused = len(args) - len(used_positions)
    if unused:
        raise ConstructionError(
            f"Template {fmt!r} received {unused} unused positional value(s).",
            clause=clause,
        )
    extra = sorted(set(kwargs) - used_names)
    if extra:
        raise ConstructionError(
            f"Template {fmt!r} received unused keyword value(s): {extra}.", clause=clause
        )
    return Fragment(parts)
