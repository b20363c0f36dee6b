"""Rebuild a unified ``outcome`` list for every comparison.

RevMan stores outcomes under a different key per data type
(``dichOutcome``, ``contOutcome``, ``ivOutcome``, ``otherOutcome``) and
their studies and subgroups under matching variant keys.  The functions here
gather them into ``comparison["outcome"]`` tagged with ``outcomeType`` and
expose the studies under ``study`` or ``subgroup[].study``.

Nothing in this module raises on malformed input.  Every anomaly becomes a
warning string and the affected element is skipped or left unset.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from .nodes import describe, is_mapping, is_sequence
from .normalize import is_nan
from .rules import OutcomeKey

_OUTCOME_KEY_PATTERN = re.compile(r"Outcome$")


def _link_studies(
    outcome: Dict[str, Any], keys: OutcomeKey, path: str, warnings: List[str]
) -> None:
    if keys.subgroup in outcome:
        subgroups = outcome[keys.subgroup]
        if not is_sequence(subgroups):
            warnings.append(
                f"expected array at {path}.{keys.subgroup} but got {describe(subgroups)}"
            )
            return
        outcome["subgroup"] = subgroups
        for subgroup in subgroups:
            if is_mapping(subgroup):
                subgroup["study"] = subgroup.get(keys.study)
        return

    if keys.study in outcome:
        studies = outcome[keys.study]
        if not is_sequence(studies):
            warnings.append(
                f"expected array at {path}.{keys.study} but got {describe(studies)}"
            )
            return
        outcome["study"] = studies
        return

    warnings.append(f"outcome at {path} contains no subgroups or studies")


def _sort_key(outcome: Dict[str, Any]) -> Tuple[int, float]:
    number = outcome.get("no")
    if isinstance(number, bool) or not isinstance(number, (int, float)) or is_nan(number):
        return (1, 0)
    return (0, number)


def _has_data(outcome: Dict[str, Any]) -> bool:
    return "subgroup" in outcome or "study" in outcome


def reconstruct_comparison(
    comparison: Dict[str, Any],
    index: int,
    outcome_keys: Sequence[OutcomeKey],
    *,
    remove_empty_outcomes: bool = True,
    debug_outcomes: bool = False,
) -> List[str]:
    """Populate ``comparison["outcome"]`` in place and return any warnings."""

    warnings: List[str] = []
    outcomes: List[Dict[str, Any]] = []

    for keys in outcome_keys:
        if keys.outcome not in comparison:
            continue
        candidates = comparison[keys.outcome]
        base_path = f"comparison[{index}].{keys.outcome}"
        if not is_sequence(candidates):
            warnings.append(
                f"expected array at {base_path} but got {describe(candidates)}"
            )
            continue

        for position, outcome in enumerate(candidates):
            path = f"{base_path}[{position}]"
            if not is_mapping(outcome):
                warnings.append(f"expected mapping at {path} but got {describe(outcome)}")
                continue
            outcome["outcomeType"] = keys.variant
            _link_studies(outcome, keys, path, warnings)
            outcomes.append(outcome)

    outcomes.sort(key=_sort_key)

    if remove_empty_outcomes:
        outcomes = [outcome for outcome in outcomes if _has_data(outcome)]

    if debug_outcomes:
        known = {keys.outcome for keys in outcome_keys}
        for key in comparison:
            if isinstance(key, str) and _OUTCOME_KEY_PATTERN.search(key) and key not in known:
                warnings.append(f'unrecognised outcome key "{key}" at comparison[{index}]')

    comparison["outcome"] = outcomes
    return warnings


def reconstruct_outcomes(
    comparisons: List[Any],
    outcome_keys: Iterable[OutcomeKey],
    *,
    remove_empty_outcomes: bool = True,
    debug_outcomes: bool = False,
) -> Tuple[List[Any], List[str]]:
    """Rebuild ``outcome`` for each comparison.

    Parameters
    ----------
    comparisons:
        The coerced ``analysesAndData.comparison`` list.  Comparisons are
        updated in place.
    outcome_keys:
        Ordered outcome variant table, see :data:`revman.rules.REVMAN5_OUTCOME_KEYS`.
    remove_empty_outcomes:
        Drop outcomes that ended up with neither ``study`` nor ``subgroup``.
    debug_outcomes:
        Warn about ``*Outcome`` keys that are not in ``outcome_keys``.

    Returns
    -------
    tuple
        ``(comparisons, warnings)``.
    """

    keys = tuple(outcome_keys)
    warnings: List[str] = []
    for index, comparison in enumerate(comparisons):
        if not is_mapping(comparison):
            warnings.append(
                f"expected mapping at comparison[{index}] but got {describe(comparison)}"
            )
            continue
        warnings.extend(
            reconstruct_comparison(
                comparison,
                index,
                keys,
                remove_empty_outcomes=remove_empty_outcomes,
                debug_outcomes=debug_outcomes,
            )
        )
    return comparisons, warnings


__all__ = ["reconstruct_comparison", "reconstruct_outcomes"]
