"""Placeholder-dialect registry.

A builder never names a compiler class.  Its configuration (or its pool)
names a *dialect*, and :class:`CompilerFactory` resolves that name to the
:class:`~sqlchain.compile.base.SQLCompiler` that spells placeholders for it.
Compilers hold no state, so each dialect is served by one shared instance.

Adding a dialect::

    from sqlchain.compile.base import SQLCompiler
    from sqlchain.compile.registry import CompilerFactory

    @CompilerFactory.register
    class OracleCompiler(SQLCompiler):
        dialect_name = "oracle"

        def param_placeholder(self, index: int) -> str:
            return f":{index}"

    sq = sqlchain.create(pool=pool, dialect="oracle")
"""

from __future__ import annotations

from typing import ClassVar, TypeVar

from sqlchain.compile.base import SQLCompiler
from sqlchain.errors import CompilationError

_C = TypeVar("_C", bound=type[SQLCompiler])


class CompilerFactory:
    """Dialect name → shared :class:`SQLCompiler` instance.

    Names are case-insensitive.  Registering a second compiler under an
    existing name replaces the first, which lets applications override a
    built-in dialect.
    """

    _compilers: ClassVar[dict[str, SQLCompiler]] = {}

    @classmethod
    def register(cls, compiler_cls: _C) -> _C:
        """Class decorator registering ``compiler_cls`` under its ``dialect_name``.

        Raises:
            CompilationError: If ``compiler_cls`` is not a :class:`SQLCompiler`
                subclass or has an empty dialect name.
        """
        if not (isinstance(compiler_cls, type) and issubclass(compiler_cls, SQLCompiler)):
            raise CompilationError(
                f"Only SQLCompiler subclasses can be registered, got {compiler_cls!r}."
            )
        compiler = compiler_cls()
        name = compiler.dialect_name
        if not name:
            raise CompilationError(f"{compiler_cls.__name__} has no dialect name.")
        cls._compilers[name.lower()] = compiler
        return compiler_cls

    @classmethod
    def create(cls, name: str) -> SQLCompiler:
        """Return the compiler for dialect ``name``.

        Raises:
            CompilationError: If no compiler is registered for ``name``.
        """
        try:
            return cls._compilers[name.lower()]
        except KeyError:
            raise CompilationError(
                f"Unsupported dialect: '{name}'. Registered dialects: {cls.dialects()}."
            ) from None

    @classmethod
    def is_registered(cls, name: str) -> bool:
        return name.lower() in cls._compilers

    @classmethod
    def dialects(cls) -> list[str]:
        """Sorted names of every registered dialect."""
        return sorted(cls._compilers)
