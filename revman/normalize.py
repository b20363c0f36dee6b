"""Utilities for standardizing decoded RevMan trees.

This module exposes a :func:`coerce` function which reshapes the loosely
typed tree produced by :mod:`revman.parse_xml` into a consistent schema.
Which fields become lists, dates, integers, floats or booleans is decided by
a :class:`~revman.rules.FieldRules` table; fields the table does not mention
are left alone.  Malformed numbers become ``nan`` and malformed dates become
``None`` instead of raising, so a single bad attribute never aborts a whole
document.
"""

from __future__ import annotations

import math
import re
from datetime import datetime
from typing import Any, Dict

from .nodes import as_sequence, camel_case, is_mapping, is_sequence
from .rules import CoercionKind, FieldRules

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:Infinity|\d+\.?\d*(?:[eE][+-]?\d+)?|\.\d+(?:[eE][+-]?\d+)?))"
)
_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S %z", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d")

NAN = float("nan")


def is_nan(value: Any) -> bool:
    return isinstance(value, float) and math.isnan(value)


def parse_int(value: Any) -> int | float:
    """Parse the leading integer of ``value``; ``nan`` when there is none.

    ``"12"`` and ``"12 patients"`` both give ``12``; floats are truncated.
    Values that are already integers are returned unchanged.
    """

    if isinstance(value, bool):
        return NAN
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return NAN
        return int(value)
    if isinstance(value, str):
        match = _INT_PREFIX.match(value)
        if match:
            try:
                return int(match.group(1))
            except ValueError:
                # Digit run longer than the interpreter's int conversion limit.
                return NAN
    return NAN


def parse_float(value: Any) -> float:
    """Parse the leading decimal number of ``value``; ``nan`` when there is none."""

    if isinstance(value, bool):
        return NAN
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        match = _FLOAT_PREFIX.match(value)
        if match:
            text = match.group(1)
            if text.endswith("Infinity"):
                return -math.inf if text.startswith("-") else math.inf
            return float(text)
    return NAN


def parse_date(value: Any) -> datetime | None:
    """Parse a RevMan timestamp such as ``2013-10-08 15:30:14 +1000``."""

    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_boolean(value: Any) -> bool:
    """RevMan flags are ``YES``/``NO``; anything but ``YES`` is false."""

    if isinstance(value, bool):
        return value
    return value == "YES"


_SCALAR_COERCIONS = {
    CoercionKind.DATE: parse_date,
    CoercionKind.NUMBER: parse_int,
    CoercionKind.FLOAT: parse_float,
    CoercionKind.BOOLEAN: parse_boolean,
}


def _coerce_node(key: Any, value: Any, rules: FieldRules) -> Any:
    kind = rules.kind_for(key)

    if kind is CoercionKind.ARRAY:
        return [
            _coerce_node(index, item, rules)
            for index, item in enumerate(as_sequence(value))
        ]

    if is_mapping(value):
        coerced: Dict[Any, Any] = {}
        for raw_key, child in value.items():
            child_key = camel_case(raw_key)
            coerced[child_key] = _coerce_node(child_key, child, rules)
        return coerced

    if is_sequence(value):
        return [_coerce_node(index, item, rules) for index, item in enumerate(value)]

    coercion = _SCALAR_COERCIONS.get(kind) if kind is not None else None
    if coercion is None:
        return value
    return coercion(value)


def coerce(tree: Any, rules: FieldRules) -> Any:
    """Return a coerced copy of ``tree``.

    Parameters
    ----------
    tree:
        Generic node (mapping, list or scalar) as produced by the decoder.
    rules:
        Field rule table deciding how each named field is coerced.

    Returns
    -------
    Any
        A new tree.  The input is never modified, and running :func:`coerce`
        again on the result gives an equal tree.
    """

    return _coerce_node(None, tree, rules)


__all__ = [
    "coerce",
    "is_nan",
    "parse_boolean",
    "parse_date",
    "parse_float",
    "parse_int",
]
