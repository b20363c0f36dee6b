import logging

import pytest

from revman.rules import (
    PROFILES,
    REVMAN5_RULES,
    CoercionKind,
    FieldRules,
    select_profile,
)


def test_from_tables_assigns_one_kind_per_field():
    rules = FieldRules.from_tables(
        array_fields=["person"], number_fields=["no"], boolean_fields=["random"]
    )

    assert rules.kind_for("person") is CoercionKind.ARRAY
    assert rules.kind_for("no") is CoercionKind.NUMBER
    assert rules.kind_for("random") is CoercionKind.BOOLEAN
    assert rules.kind_for("name") is None
    assert rules.kind_for(0) is None


def test_conflicting_scalar_kinds_are_rejected():
    with pytest.raises(ValueError, match="total1"):
        FieldRules.from_tables(number_fields=["total1"], float_fields=["total1"])


def test_array_kind_wins_over_scalar_kind(caplog):
    with caplog.at_level(logging.WARNING):
        rules = FieldRules.from_tables(array_fields=["no"], number_fields=["no"])

    assert rules.kind_for("no") is CoercionKind.ARRAY
    assert any("using toArray" in record.message for record in caplog.records)


def test_rules_are_read_only():
    with pytest.raises(TypeError):
        REVMAN5_RULES.kinds["newField"] = CoercionKind.NUMBER


def test_revman5_tables():
    assert REVMAN5_RULES.kind_for("pZ") is CoercionKind.FLOAT
    assert REVMAN5_RULES.kind_for("total1") is CoercionKind.NUMBER
    assert REVMAN5_RULES.kind_for("swapEvents") is CoercionKind.BOOLEAN
    assert REVMAN5_RULES.kind_for("modified") is CoercionKind.DATE
    assert REVMAN5_RULES.kind_for("otherData") is CoercionKind.ARRAY
    assert "dichOutcome" in REVMAN5_RULES.fields_of(CoercionKind.ARRAY)


@pytest.mark.parametrize("declared", [None, "", "5", "5.2.5", 5])
def test_select_profile_known_versions(declared):
    profile, warning = select_profile(declared)
    assert profile is PROFILES["5"]
    assert warning is None


def test_select_profile_unknown_version_falls_back_with_warning():
    profile, warning = select_profile("4.1")
    assert profile is PROFILES["5"]
    assert warning == 'unrecognised RevMan version "4.1", using version 5 field tables'
