"""Identifier case mapping between Python keys and SQL identifiers.

Object payloads are written with Python-side keys (``firstName``) while the
database uses its own convention (``first_name``).  Two mapper slots exist on
every builder configuration:

``map_input_keys``
    Applied to object keys when a clause is compiled.  Default
    :func:`snake_case`.

``map_output_keys``
    Applied to the column names of every returned row.  Default
    :func:`camel_case`.

The two defaults are not inverses of each other: ``camel_case(snake_case(k))``
differs from ``k`` for keys such as ``userID``.  Both are the identity for
single-segment lowercase keys.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from functools import lru_cache

#: Signature shared by every key mapper.
KeyMapper = Callable[[str], str]

# Words are runs of capitals followed by a capitalized word, capitalized or
# lowercase words, trailing capital runs, or digit runs.
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")
_PLAIN_KEY_RE = re.compile(r"[A-Za-z0-9_]*")


def _split(key: str) -> tuple[str, list[str]]:
    """Leading underscores (kept verbatim) and the words of the rest of ``key``."""
    body = key.lstrip("_")
    return key[: len(key) - len(body)], _WORD_RE.findall(body)


@lru_cache(maxsize=2048)
def snake_case(key: str) -> str:
    """Convert ``key`` to snake_case (``iJ3`` becomes ``i_j_3``).

    Leading underscores are kept: ``_rowId`` becomes ``_row_id``.

    Keys holding anything other than ASCII letters, digits and underscores
    (e.g. ``"cte(a, b)"``) are returned unchanged.
    """
    if not _PLAIN_KEY_RE.fullmatch(key):
        return key
    prefix, words = _split(key)
    if not words:
        return key
    return prefix + "_".join(word.lower() for word in words)


@lru_cache(maxsize=2048)
def camel_case(key: str) -> str:
    """Convert ``key`` to camelCase (``first_name`` becomes ``firstName``).

    Leading underscores are kept, so ``_id`` and ``id`` stay distinct.
    """
    if not _PLAIN_KEY_RE.fullmatch(key):
        return key
    prefix, words = _split(key)
    if not words:
        return key
    head, *tail = words
    return prefix + head.lower() + "".join(word.capitalize() for word in tail)


def identity(key: str) -> str:
    """Return ``key`` unchanged."""
    return key


#: Built-in strategies selectable by name in the configuration.
KEY_MAPPERS: dict[str, KeyMapper] = {
    "snake_case": snake_case,
    "camel_case": camel_case,
    "identity": identity,
}


def resolve_key_mapper(mapper: str | KeyMapper) -> KeyMapper:
    """Return the mapper named by ``mapper``, or ``mapper`` itself if callable.

    Raises:
        ValueError: If ``mapper`` is an unknown name or not callable.
    """
    if isinstance(mapper, str):
        try:
            return KEY_MAPPERS[mapper]
        except KeyError:
            raise ValueError(
                f"Unknown key mapper '{mapper}'. Known mappers: {sorted(KEY_MAPPERS)}."
            ) from None
    if not callable(mapper):
        raise ValueError(f"Key mapper must be callable, got {type(mapper).__name__}.")
    return mapper
