"""Compiler abstractions: Query and the SQLCompiler ABC.

The Strategy pattern is used: the statement compiler renders a dialect-neutral
:class:`~sqlchain.schema.fragment.Fragment`, and a ``SQLCompiler`` decides how
its placeholders are spelled and how literal text is escaped for the driver.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Query:
    """The output of a successful compilation.

    Attributes:
        text: Final SQL with positional placeholders numbered from 1.
        values: Bound values, one per placeholder, in placeholder order.
        dialect: Name of the dialect the placeholders were rendered for.
    """

    text: str
    values: list[Any]
    dialect: str = "postgres"

    @property
    def params(self) -> list[Any]:
        """Alias of :attr:`values`."""
        return self.values


class SQLCompiler(ABC):
    """Abstract base for dialect-specific placeholder rendering."""

    @abstractmethod
    def param_placeholder(self, index: int) -> str:
        """Return the placeholder for the ``index``-th value (1-based).

        Args:
            index: Position of the value in :attr:`Query.values`, from 1.

        Returns:
            Dialect-specific placeholder string.
        """

    def escape_text(self, text: str) -> str:
        """Escape literal SQL text for the driver's parameter syntax.

        Args:
            text: Literal (non-placeholder) SQL text.

        Returns:
            Text safe to send alongside this dialect's placeholders.
        """
        return text

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""
