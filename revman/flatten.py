"""Collapse nested markup fragments into plain text.

RevMan tables and paragraphs keep their formatting as nested elements
(``b``, ``i``, ``link``, ``sup`` ...).  After decoding these turn into small
trees of mappings and lists.  :func:`flatten` walks such a fragment depth
first, keeps every non-empty leaf and joins them with ``", "``.
"""

from __future__ import annotations

from typing import Any, Collection, Iterator, List

from .nodes import is_mapping, is_sequence


def _iter_leaves(value: Any, ignore_keys: Collection[str]) -> Iterator[Any]:
    if is_mapping(value):
        for key, child in value.items():
            if key in ignore_keys:
                continue
            yield from _iter_leaves(child, ignore_keys)
    elif is_sequence(value):
        for child in value:
            yield from _iter_leaves(child, ignore_keys)
    elif value:
        yield value


def flatten(node: Any, ignore_keys: Collection[str] = ()) -> str:
    """Return every leaf under ``node`` joined with ``", "``.

    Subtrees stored under a key in ``ignore_keys`` are skipped entirely.
    Falsy leaves (``""``, ``None``, ``0``, ``False``) are dropped and ``""``
    is returned when nothing survives.

    >>> flatten({"a": {"p": ["Risk", "Ratio"]}, "sup": "ignored"}, ["sup"])
    'Risk, Ratio'
    """

    leaves: List[str] = [str(leaf) for leaf in _iter_leaves(node, ignore_keys)]
    return ", ".join(leaves)


__all__ = ["flatten"]
