"""Compilation context value object.

Packages the per-builder settings every clause-level sub-builder needs into a
single cohesive object.  Nested builders are compiled with their own context,
so a subquery created from a differently configured ``create()`` keeps its
own key mapper.
"""
from __future__ import annotations

from dataclasses import dataclass

from sqlchain.schema.keys import KeyMapper


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for compiling one builder.

    Attributes:
        map_key: Input key mapper applied to every object key.
    """

    map_key: KeyMapper
