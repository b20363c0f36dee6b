"""Derived statistics for reconstructed comparisons.

Three independent passes enrich ``comparison[].outcome[]``:

* :func:`add_participants` sums arm totals into ``participants``;
* :func:`add_p_text` rounds ``pZ`` into ``p`` and renders ``pText``;
* :func:`add_effect_measure_text` expands ``effectMeasure`` codes.

Each pass writes a disjoint set of fields, so :func:`enrich_comparisons` can
run them side by side on a thread pool.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from functools import partial
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Sequence

from .nodes import is_mapping, is_sequence
from .normalize import is_nan, parse_float, parse_int

logger = logging.getLogger(__name__)

P_VALUE_BUCKETS = (
    (0.00001, "P < 0.00001"),
    (0.0001, "P < 0.0001"),
    (0.001, "P < 0.001"),
    (0.01, "P < 0.01"),
    (0.05, "P < 0.05"),
)


def _mappings(value: Any) -> Iterator[Dict[str, Any]]:
    if is_sequence(value):
        for item in value:
            if is_mapping(item):
                yield item


def _outcomes(comparison: Mapping[str, Any], field: str = "outcome") -> Iterator[Dict[str, Any]]:
    return _mappings(comparison.get(field))


def _sum_totals(record: Dict[str, Any]) -> int:
    """Return ``total1 + total2``, counting non-numeric totals as zero.

    The totals themselves are stored back in their coerced form so a
    malformed value stays visible as ``nan``.
    """

    participants = 0
    for field in ("total1", "total2"):
        if field not in record:
            continue
        value = parse_int(record[field])
        record[field] = value
        if not is_nan(value):
            participants += value
    return participants


def add_participants(comparisons: Sequence[Any]) -> None:
    for comparison in _mappings(comparisons):
        total = 0
        for outcome in _outcomes(comparison):
            outcome["participants"] = _sum_totals(outcome)
            total += outcome["participants"]
            # Subgroup totals come from the subgroup itself, not its studies.
            for subgroup in _mappings(outcome.get("subgroup")):
                subgroup["participants"] = _sum_totals(subgroup)
        comparison["participants"] = total


def round_half_away(value: float, precision: int) -> float:
    """Round ``value`` to ``precision`` decimals, halves away from zero."""

    if math.isnan(value) or math.isinf(value):
        return value
    quantum = Decimal(1).scaleb(-precision)
    try:
        return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # Too many digits for the decimal context; already coarser than quantum.
        return value


def format_p(p: float, precision: int) -> str:
    text = f"{p:.{precision}f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def p_text(p: float, precision: int = 6) -> str:
    """Render a rounded p-value the way RevMan forest plots label it.

    >>> p_text(0.05)
    'P < 0.05'
    >>> p_text(0.121699)
    'P = 0.121699'
    """

    for threshold, label in P_VALUE_BUCKETS:
        if p <= threshold:
            return label
    return f"P = {format_p(p, precision)}"


def add_p_text(comparisons: Sequence[Any], precision: int = 6) -> None:
    for comparison in _mappings(comparisons):
        for outcome in _outcomes(comparison):
            if "pZ" not in outcome:
                continue
            p_z = parse_float(outcome["pZ"])
            outcome["pZ"] = p_z
            p = round_half_away(p_z, precision)
            outcome["p"] = p
            if not math.isnan(p):
                outcome["pText"] = p_text(p, precision)


def add_effect_measure_text(
    comparisons: Sequence[Any],
    lookup: Mapping[str, str],
    variant_fields: Iterable[str] = (),
) -> None:
    """Set ``effectMeasureText`` on every outcome carrying ``effectMeasure``.

    Unknown codes are copied through unchanged.  Besides the unified
    ``outcome`` list, the raw variant lists (``dichOutcome`` ...) are visited
    too so the label is present even when outcome reconstruction is off.
    """

    fields = ("outcome", *variant_fields)
    for comparison in _mappings(comparisons):
        for field in fields:
            for outcome in _outcomes(comparison, field):
                if "effectMeasure" not in outcome:
                    continue
                code = outcome["effectMeasure"]
                label = lookup.get(code) if isinstance(code, str) else None
                outcome["effectMeasureText"] = code if label is None else label


def enrich_comparisons(
    comparisons: List[Any],
    *,
    precision: int = 6,
    effect_measure_lookup: Mapping[str, str],
    variant_fields: Iterable[str] = (),
    parallel: bool = True,
) -> List[Any]:
    """Run all derived-metric passes over ``comparisons`` in place."""

    passes: List[Callable[[], None]] = [
        partial(add_participants, comparisons),
        partial(add_p_text, comparisons, precision),
        partial(add_effect_measure_text, comparisons, effect_measure_lookup, tuple(variant_fields)),
    ]

    if parallel:
        logger.debug("Running %d metric passes on a thread pool", len(passes))
        with ThreadPoolExecutor(max_workers=len(passes)) as pool:
            futures = [pool.submit(metric_pass) for metric_pass in passes]
            for future in futures:
                future.result()
    else:
        for metric_pass in passes:
            metric_pass()

    return comparisons


__all__ = [
    "P_VALUE_BUCKETS",
    "add_effect_measure_text",
    "add_p_text",
    "add_participants",
    "enrich_comparisons",
    "format_p",
    "p_text",
    "round_half_away",
]
