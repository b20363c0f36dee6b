from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

from .metrics import enrich_comparisons
from .models import ParseResult
from .nodes import camel_case, describe, is_mapping, is_sequence
from .normalize import coerce
from .outcomes import reconstruct_outcomes
from .parse_xml import RevManFormatError, decode
from .rules import select_profile
from .settings import Settings, get_settings
from .sof import extract_summary_of_findings

logger = logging.getLogger(__name__)

ROOT_KEY = "cochraneReview"


def _resolve_settings(settings: Settings | None, overrides: Mapping[str, Any]) -> Settings:
    resolved = settings if settings is not None else get_settings()
    if overrides:
        unknown = sorted(set(overrides) - set(Settings.model_fields))
        if unknown:
            raise TypeError(f"unknown parse option(s): {', '.join(unknown)}")
        resolved = Settings.model_validate({**resolved.model_dump(), **overrides})
    return resolved


def _unwrap_review(tree: Any) -> Dict[str, Any]:
    if is_mapping(tree):
        for key, value in tree.items():
            if camel_case(key) == ROOT_KEY:
                return dict(value) if is_mapping(value) else {}
    raise RevManFormatError("This does not look like a valid RevMan file")


def _declared_version(review: Mapping[str, Any]) -> Any:
    for key, value in review.items():
        if camel_case(key) == "revmanVersion":
            return value
    return None


def transform(tree: Any, settings: Settings | None = None, **overrides: Any) -> ParseResult:
    """Normalize a decoded RevMan tree and compute derived fields."""

    settings = _resolve_settings(settings, overrides)
    warnings: List[str] = []

    review = _unwrap_review(tree)
    profile, version_warning = select_profile(
        settings.schema_version or _declared_version(review)
    )
    if version_warning:
        warnings.append(version_warning)

    logger.debug("Coercing review with RevMan %s field tables", profile.version)
    review = coerce(review, profile.rules)

    analyses = review.get("analysesAndData")
    if not is_mapping(analyses):
        analyses = review["analysesAndData"] = {}

    comparisons = analyses.get("comparison")
    if is_sequence(comparisons):
        if settings.reconstruct_outcomes:
            _, outcome_warnings = reconstruct_outcomes(
                comparisons,
                profile.outcome_keys,
                remove_empty_outcomes=settings.remove_empty_outcomes,
                debug_outcomes=settings.debug_outcomes,
            )
            warnings.extend(outcome_warnings)
        enrich_comparisons(
            comparisons,
            precision=settings.p_rounding,
            effect_measure_lookup=settings.effect_measure_lookup,
            variant_fields=profile.outcome_fields,
            parallel=settings.parallel_metrics,
        )
    else:
        warnings.append(
            f"expected array at analysesAndData.comparison but got {describe(comparisons)}"
        )

    if settings.format_sof_tables:
        rows = extract_summary_of_findings(review, profile.rules.ignore_fields)
        if rows is not None:
            review["summaryOfFindings"] = rows

    logger.info(
        "Parsed RevMan review (tables v%s, %d comparisons, %d warnings)",
        profile.version,
        len(comparisons) if is_sequence(comparisons) else 0,
        len(warnings),
    )
    return ParseResult(review, warnings)


def parse(data: str | bytes, settings: Settings | None = None, **overrides: Any) -> ParseResult:
    """Decode a RevMan XML document and return ``(review, warnings)``.

    Raises
    ------
    RevManFormatError
        If the markup cannot be decoded or has no ``COCHRANE_REVIEW`` root.
    """

    return transform(decode(data), settings, **overrides)


def parse_file(path: Path | str, settings: Settings | None = None, **overrides: Any) -> ParseResult:
    """Read a ``.rm5`` file from disk and :func:`parse` it."""

    return parse(Path(path).read_bytes(), settings, **overrides)


__all__ = ["ROOT_KEY", "parse", "parse_file", "transform"]
