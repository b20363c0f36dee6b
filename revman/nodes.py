"""Helpers for working with generic decoded XML trees.

A decoded RevMan document is a tree made of three kinds of node: mappings
(``dict``), sequences (``list``) and scalar leaves (strings, numbers,
booleans, dates).  The decoder cannot tell a single child element from a list
with one entry, and some decoders hand back repeated elements as a mapping
keyed ``0, 1, 2 ...``.  The predicates in this module make those cases
explicit so the rest of the package never probes for a ``"0"`` key itself.
"""

from __future__ import annotations

import re
from typing import Any, List, Mapping

_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|[0-9]+")


def camel_case(name: Any) -> Any:
    """Return ``name`` converted to lowerCamel casing.

    ``EFFECT_MEASURE`` becomes ``effectMeasure``, ``TOTAL_1`` becomes
    ``total1`` and ``I2_Q`` becomes ``i2Q``.  Already camelCased names are
    returned unchanged.  Non-string keys and names without any word
    characters (such as the ``_`` text key) are passed through as-is.
    """

    if not isinstance(name, str):
        return name
    words = _WORD_PATTERN.findall(name)
    if not words:
        return name
    head, *tail = words
    return head.lower() + "".join(word[:1].upper() + word[1:].lower() for word in tail)


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_sequence(value: Any) -> bool:
    """Return ``True`` for genuine sequences (lists and tuples, not strings)."""

    return isinstance(value, (list, tuple))


def _index_key(key: Any) -> int | None:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return key
    if isinstance(key, str) and key.isascii() and key.isdecimal():
        return int(key)
    return None


def is_disguised_sequence(value: Any) -> bool:
    """Return ``True`` when ``value`` is a mapping standing in for a list.

    Only non-empty mappings whose keys are exactly the integers ``0..n-1``
    (either as ``int`` or as digit strings) qualify.
    """

    if not is_mapping(value) or not value:
        return False
    indices = [_index_key(key) for key in value]
    if any(index is None for index in indices):
        return False
    return sorted(indices) == list(range(len(indices)))


def as_sequence(value: Any) -> List[Any]:
    """Coerce ``value`` into a list without double-wrapping.

    Sequences are copied into a new list, disguised sequences are unpacked in
    index order and anything else becomes a single-element list.
    """

    if is_sequence(value):
        return list(value)
    if is_disguised_sequence(value):
        ordered = sorted(value.items(), key=lambda item: _index_key(item[0]))
        return [item for _, item in ordered]
    return [value]


def describe(value: Any) -> str:
    """Short type name used in warning messages."""

    if value is None:
        return "missing"
    if is_sequence(value):
        return "list"
    if is_mapping(value):
        return "dict"
    return type(value).__name__


__all__ = [
    "as_sequence",
    "camel_case",
    "describe",
    "is_disguised_sequence",
    "is_mapping",
    "is_sequence",
]
