"""Decode RevMan XML into a generic tree of dicts, lists and strings.

The decoder deliberately knows nothing about RevMan semantics.  It produces
the loosely typed shape the rest of the package expects:

* attributes are merged into the element's own dictionary;
* tag and attribute names are camelCased (``DICH_OUTCOME`` -> ``dichOutcome``);
* a single child element is stored as a bare value while repeated children
  are collected into a list;
* text is trimmed and whitespace-normalized.  An element with nothing but
  text becomes a plain string, and text mixed with child elements is kept
  under the ``_`` key.

Deciding which fields are really lists or numbers is left to
:func:`revman.normalize.coerce`.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Set

from lxml import etree

from .nodes import camel_case

TEXT_KEY = "_"

_WHITESPACE = re.compile(r"\s+")


class RevManFormatError(ValueError):
    """Raised when the input is not a usable RevMan document."""


def _normalise_text(parts: List[str | None]) -> str:
    """Join text fragments, collapsing whitespace and trimming the result."""

    return _WHITESPACE.sub(" ", "".join(part for part in parts if part)).strip()


def _local_name(tag: str) -> str:
    # Strip "{namespace}" prefixes
    return tag.rsplit("}", 1)[-1]


def _add_child(node: Dict[str, Any], repeated: Set[str], key: str, value: Any) -> None:
    if key not in node:
        node[key] = value
    elif key in repeated:
        node[key].append(value)
    else:
        node[key] = [node[key], value]
        repeated.add(key)


def _element_to_node(element) -> Any:
    children = [child for child in element if isinstance(child.tag, str)]
    text_parts: List[str | None] = [element.text]
    text_parts.extend(child.tail for child in element)
    text = _normalise_text(text_parts)

    if not element.attrib and not children:
        return text

    node: Dict[str, Any] = {}
    repeated: Set[str] = set()
    if text:
        node[TEXT_KEY] = text
    for name, value in element.attrib.items():
        _add_child(node, repeated, camel_case(_local_name(name)), value)
    for child in children:
        _add_child(node, repeated, camel_case(_local_name(child.tag)), _element_to_node(child))
    return node


def decode(data: str | bytes) -> Dict[str, Any]:
    """Decode an XML document into ``{rootName: node}``.

    Parameters
    ----------
    data:
        The raw document.  Bytes are preferred because they let lxml honour
        the encoding declared in the XML prolog.

    Returns
    -------
    dict
        A single-entry dictionary keyed by the camelCased root tag.
    """

    if isinstance(data, str):
        data = data.encode("utf-8")
        parser = etree.XMLParser(
            remove_comments=True, remove_pis=True, resolve_entities=False,
            huge_tree=True, encoding="utf-8",
        )
    else:
        parser = etree.XMLParser(
            remove_comments=True, remove_pis=True, resolve_entities=False, huge_tree=True,
        )

    try:
        root = etree.fromstring(data, parser=parser)
    except etree.XMLSyntaxError as exc:
        raise RevManFormatError(f"Could not decode RevMan XML: {exc}") from exc

    return {camel_case(_local_name(root.tag)): _element_to_node(root)}


__all__ = ["RevManFormatError", "TEXT_KEY", "decode"]
