"""Flatten summary-of-findings tables into typed rows.

A RevMan ``sofTables`` section holds one or more HTML-like tables.  Header
and banner rows are skipped: a data row is one whose first cell has no
``colspan`` and contains at least one paragraph.  Every kept row is mapped
to a :class:`~revman.models.SummaryOfFindingsRow` by flattening the first
paragraph of each cell by position.
"""

from __future__ import annotations

from typing import Any, Collection, Dict, Iterator, List

from .flatten import flatten
from .models import SummaryOfFindingsRow
from .nodes import as_sequence, is_mapping, is_sequence
from .normalize import parse_float

# Cell position -> field name; numeric fields are parsed as floats.
CELL_FIELDS = (
    (0, "outcome", False),
    (1, "active", True),
    (2, "placebo", True),
    (3, "relative_effect", False),
    (4, "participants", False),
    (5, "quality_of_evidence", False),
    (6, "comments", False),
)


def _first(value: Any) -> Any:
    if is_sequence(value):
        return value[0] if value else None
    return value


def _cell(row: Dict[str, Any], position: int) -> Any:
    cells = row.get("td")
    if not is_sequence(cells) or position >= len(cells):
        return None
    return cells[position]


def _first_paragraph(cell: Any) -> Any:
    if not is_mapping(cell):
        return None
    return _first(cell.get("p"))


def is_data_row(row: Any) -> bool:
    """Return ``True`` for rows holding one value per column."""

    if not is_mapping(row):
        return False
    first = _cell(row, 0)
    if not is_mapping(first) or "colspan" in first:
        return False
    paragraphs = first.get("p")
    return is_sequence(paragraphs) and len(paragraphs) > 0


def _iter_tables(review: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    sof_tables = review.get("sofTables")
    if not is_mapping(sof_tables) or "sofTable" not in sof_tables:
        return
    for sof_table in as_sequence(sof_tables["sofTable"]):
        if is_mapping(sof_table) and is_mapping(sof_table.get("table")):
            yield sof_table["table"]


def row_to_record(row: Dict[str, Any], ignore_keys: Collection[str] = ()) -> SummaryOfFindingsRow:
    values: Dict[str, Any] = {}
    for position, name, numeric in CELL_FIELDS:
        text = flatten(_first_paragraph(_cell(row, position)), ignore_keys)
        values[name] = parse_float(text) if numeric else text
    return SummaryOfFindingsRow(**values)


def extract_summary_of_findings(
    review: Dict[str, Any], ignore_keys: Collection[str] = ()
) -> List[Dict[str, Any]] | None:
    """Return the flattened summary-of-findings rows of ``review``.

    ``None`` is returned when the review has no ``sofTables.sofTable.table``
    section at all, so callers can tell "no table" from "no data rows".
    """

    tables = list(_iter_tables(review))
    if not tables:
        return None

    rows: List[Dict[str, Any]] = []
    for table in tables:
        for row in as_sequence(table.get("tr", [])):
            if is_data_row(row):
                rows.append(row_to_record(row, ignore_keys).model_dump(by_alias=True))
    return rows


__all__ = ["CELL_FIELDS", "extract_summary_of_findings", "is_data_row", "row_to_record"]
