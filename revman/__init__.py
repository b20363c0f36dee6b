"""Normalize RevMan systematic-review exports into typed, enriched trees."""

from .flatten import flatten
from .metrics import enrich_comparisons
from .models import ParseResult, SummaryOfFindingsRow
from .normalize import coerce
from .outcomes import reconstruct_outcomes
from .parse_xml import RevManFormatError, decode
from .pipeline import parse, parse_file, transform
from .settings import Settings, get_settings
from .sof import extract_summary_of_findings

__all__ = [
    "ParseResult",
    "RevManFormatError",
    "Settings",
    "SummaryOfFindingsRow",
    "coerce",
    "decode",
    "enrich_comparisons",
    "extract_summary_of_findings",
    "flatten",
    "get_settings",
    "parse",
    "parse_file",
    "reconstruct_outcomes",
    "transform",
]
