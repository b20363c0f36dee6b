"""Field rule tables describing how each RevMan field is coerced.

The tables are grouped into a :class:`SchemaProfile` per RevMan major
version.  Profiles are immutable once built, so a single instance can be
shared between threads and between concurrent parses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Tuple

logger = logging.getLogger(__name__)


class CoercionKind(str, Enum):
    """Closed set of coercions the tree engine knows how to apply."""

    ARRAY = "toArray"
    DATE = "toDate"
    NUMBER = "toNumber"
    FLOAT = "toFloat"
    BOOLEAN = "toBoolean"


@dataclass(frozen=True)
class FieldRules:
    """Lookup from a (camelCased) field name to its :class:`CoercionKind`."""

    kinds: Mapping[str, CoercionKind]
    ignore_fields: frozenset[str] = frozenset()

    @classmethod
    def from_tables(
        cls,
        *,
        array_fields: Iterable[str] = (),
        date_fields: Iterable[str] = (),
        number_fields: Iterable[str] = (),
        float_fields: Iterable[str] = (),
        boolean_fields: Iterable[str] = (),
        ignore_fields: Iterable[str] = (),
    ) -> "FieldRules":
        """Build rules from per-category field lists.

        A field may only appear in one scalar category; listing it twice is a
        configuration error.  A field listed both as an array field and in a
        scalar category is treated as an array field.
        """

        kinds: dict[str, CoercionKind] = {}
        scalar_tables = (
            (CoercionKind.DATE, date_fields),
            (CoercionKind.NUMBER, number_fields),
            (CoercionKind.FLOAT, float_fields),
            (CoercionKind.BOOLEAN, boolean_fields),
        )
        for kind, fields in scalar_tables:
            for name in fields:
                existing = kinds.get(name)
                if existing is not None and existing is not kind:
                    raise ValueError(
                        f"Field '{name}' is listed as both {existing.value} and {kind.value}"
                    )
                kinds[name] = kind

        for name in array_fields:
            existing = kinds.get(name)
            if existing is not None and existing is not CoercionKind.ARRAY:
                logger.warning(
                    "Field '%s' is listed as both %s and toArray; using toArray",
                    name,
                    existing.value,
                )
            kinds[name] = CoercionKind.ARRAY

        return cls(kinds=MappingProxyType(kinds), ignore_fields=frozenset(ignore_fields))

    def kind_for(self, key: Any) -> CoercionKind | None:
        if not isinstance(key, str):
            return None
        return self.kinds.get(key)

    def fields_of(self, kind: CoercionKind) -> frozenset[str]:
        return frozenset(name for name, value in self.kinds.items() if value is kind)


@dataclass(frozen=True)
class OutcomeKey:
    """Field names used by one outcome variant (dichotomous, continuous ...)."""

    variant: str
    outcome: str
    study: str
    subgroup: str


@dataclass(frozen=True)
class SchemaProfile:
    version: str
    rules: FieldRules
    outcome_keys: Tuple[OutcomeKey, ...] = field(default_factory=tuple)

    @property
    def outcome_fields(self) -> Tuple[str, ...]:
        return tuple(key.outcome for key in self.outcome_keys)


REVMAN5_OUTCOME_KEYS: Tuple[OutcomeKey, ...] = (
    OutcomeKey("dich", "dichOutcome", "dichData", "dichSubgroup"),
    OutcomeKey("cont", "contOutcome", "contData", "contSubgroup"),
    OutcomeKey("iv", "ivOutcome", "ivData", "ivSubgroup"),
    OutcomeKey("other", "otherOutcome", "otherData", "otherSubgroup"),
)

REVMAN5_RULES = FieldRules.from_tables(
    date_fields=["modified"],
    float_fields=[
        "ciEnd", "ciStart", "effectSize", "logCiEnd", "logCiStart",
        "logEffectSize", "se", "var", "weight", "i2", "i2Q", "q", "scale",
        "chi2", "pChi2", "pQ", "pZ", "tau2", "z", "oE",
    ],
    number_fields=[
        "events1", "events2", "order", "no", "studies", "total1", "total2",
        "ciStudy", "ciTotal", "df",
    ],
    boolean_fields=[
        "estimable", "random", "subgroups", "subgroupTest", "swapEvents", "totals",
    ],
    array_fields=[
        # Outcome variants
        "contOutcome", "contData", "contSubgroup",
        "dichOutcome", "dichData", "dichSubgroup",
        "ivOutcome", "ivData", "ivSubgroup",
        "otherOutcome", "otherData", "otherSubgroup",
        # Review content
        "person", "whatsNewEntry", "source", "qualityItem",
        "qualityItemDataEntry", "comparison", "feedbackItem", "figure",
        "subsection", "study", "reference", "includedChar", "excludedChar",
        "appendix",
        # Pseudo HTML decorators
        "p", "a", "i", "b", "link", "ol", "li", "br", "sup", "tr", "td", "th",
        "additionalTable", "extension", "flowchartbox",
    ],
    ignore_fields=["sup"],
)

DEFAULT_VERSION = "5"

PROFILES: Mapping[str, SchemaProfile] = MappingProxyType(
    {"5": SchemaProfile(version="5", rules=REVMAN5_RULES, outcome_keys=REVMAN5_OUTCOME_KEYS)}
)

DEFAULT_EFFECT_MEASURES: Mapping[str, str] = MappingProxyType(
    {
        "RR": "Risk Ratio",
        "ARR": "Absolute Risk Reduction",
        "CGR": "Control Group Risk",
        "CCT": "Controlled Clinical Trial",
        "IV": "Inverse Variance",
        "M-H": "Mantel-Haenszel",
        "MD": "Mean Difference",
        "OR": "Odds Ratio",
        "RD": "Risk Difference",
        "SD": "Standard Deviation",
        "SE": "Standard Error",
        "SMD": "Standardized Mean Difference",
    }
)


def select_profile(declared: Any) -> tuple[SchemaProfile, str | None]:
    """Return the profile for a declared RevMan version and an optional warning.

    ``"5"`` and ``"5.2.5"`` both select the version 5 tables.  Documents that
    do not declare a version use the default profile silently; unknown
    versions also fall back to it but produce a warning.
    """

    default = PROFILES[DEFAULT_VERSION]
    if declared is None or declared == "":
        return default, None

    major = str(declared).strip().split(".", 1)[0]
    profile = PROFILES.get(major)
    if profile is not None:
        return profile, None
    return default, (
        f'unrecognised RevMan version "{declared}", '
        f"using version {DEFAULT_VERSION} field tables"
    )


__all__ = [
    "CoercionKind",
    "DEFAULT_EFFECT_MEASURES",
    "DEFAULT_VERSION",
    "FieldRules",
    "OutcomeKey",
    "PROFILES",
    "REVMAN5_OUTCOME_KEYS",
    "REVMAN5_RULES",
    "SchemaProfile",
    "select_profile",
]
