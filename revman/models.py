from typing import Any, Dict, List, NamedTuple

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class SummaryOfFindingsRow(BaseModel):
    """One data row of a summary-of-findings table."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    outcome: str
    active: float
    placebo: float
    relative_effect: str
    participants: str
    quality_of_evidence: str
    comments: str = ""


class ParseResult(NamedTuple):
    """Normalized review tree plus the warnings collected while building it."""

    review: Dict[str, Any]
    warnings: List[str]
