from revman.outcomes import reconstruct_outcomes
from revman.rules import REVMAN5_OUTCOME_KEYS


def _dich(no, **extra):
    outcome = {"no": no, "effectMeasure": "RR"}
    outcome.update(extra)
    return outcome


def test_outcomes_are_unified_tagged_and_sorted():
    comparisons = [
        {
            "dichOutcome": [_dich(1, dichData=[{"se": 0.1}]), _dich(3, dichData=[{"se": 0.2}])],
            "contOutcome": [{"no": 2, "contData": [{"se": 0.3}]}],
        }
    ]

    result, warnings = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)

    assert warnings == []
    outcomes = result[0]["outcome"]
    assert [o["no"] for o in outcomes] == [1, 2, 3]
    assert [o["outcomeType"] for o in outcomes] == ["dich", "cont", "dich"]
    assert outcomes[1]["study"] == [{"se": 0.3}]


def test_outcome_records_are_shared_with_variant_lists():
    comparisons = [{"dichOutcome": [_dich(1, dichData=[{"se": 0.1}])]}]

    reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)

    assert comparisons[0]["outcome"][0] is comparisons[0]["dichOutcome"][0]


def test_subgroups_expose_their_studies():
    comparisons = [
        {
            "dichOutcome": [
                _dich(
                    1,
                    dichSubgroup=[
                        {"no": 1, "dichData": [{"se": 0.1}]},
                        {"no": 2},
                    ],
                )
            ]
        }
    ]

    result, warnings = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)

    outcome = result[0]["outcome"][0]
    assert warnings == []
    assert "study" not in outcome
    assert outcome["subgroup"][0]["study"] == [{"se": 0.1}]
    assert outcome["subgroup"][1]["study"] is None


def test_exactly_one_of_study_or_subgroup():
    comparisons = [
        {
            "dichOutcome": [
                _dich(1, dichData=[{"se": 0.1}]),
                _dich(2, dichSubgroup=[{"dichData": [{"se": 0.1}]}], dichData=[{"se": 0.2}]),
            ]
        }
    ]

    result, _ = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)

    for outcome in result[0]["outcome"]:
        assert ("study" in outcome) != ("subgroup" in outcome)


def test_non_array_outcome_field_is_skipped_with_warning():
    comparisons = [
        {
            "dichOutcome": {"no": 1},
            "contOutcome": [{"no": 2, "contData": [{"se": 0.3}]}],
        }
    ]

    result, warnings = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)

    assert warnings == ["expected array at comparison[0].dichOutcome but got dict"]
    assert [o["outcomeType"] for o in result[0]["outcome"]] == ["cont"]


def test_structural_mismatches_are_warnings():
    comparisons = [
        {
            "dichOutcome": [
                _dich(1, dichSubgroup="broken"),
                _dich(2, dichData={"se": 0.1}),
                _dich(3),
            ]
        }
    ]

    result, warnings = reconstruct_outcomes(
        comparisons, REVMAN5_OUTCOME_KEYS, remove_empty_outcomes=False
    )

    assert warnings == [
        "expected array at comparison[0].dichOutcome[0].dichSubgroup but got str",
        "expected array at comparison[0].dichOutcome[1].dichData but got dict",
        "outcome at comparison[0].dichOutcome[2] contains no subgroups or studies",
    ]
    assert [o["no"] for o in result[0]["outcome"]] == [1, 2, 3]


def test_empty_outcomes_are_removed_by_default():
    comparisons = [{"dichOutcome": [_dich(1), _dich(2, dichData=[{"se": 0.1}])]}]

    result, warnings = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)

    assert [o["no"] for o in result[0]["outcome"]] == [2]
    assert warnings == ["outcome at comparison[0].dichOutcome[0] contains no subgroups or studies"]


def test_outcomes_without_ordinal_sort_last():
    comparisons = [
        {
            "dichOutcome": [
                {"name": "a", "dichData": []},
                _dich(2, dichData=[]),
                {"no": float("nan"), "name": "b", "dichData": []},
                _dich(1, dichData=[]),
            ]
        }
    ]

    result, _ = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)

    outcomes = result[0]["outcome"]
    assert [o.get("no") for o in outcomes[:2]] == [1, 2]
    assert [o["name"] for o in outcomes[2:]] == ["a", "b"]


def test_debug_outcomes_reports_unknown_keys():
    comparisons = [{"dichOutcome": [_dich(1, dichData=[])], "petoOutcome": {"no": 2}}]

    _, quiet = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)
    _, loud = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS, debug_outcomes=True)

    assert quiet == []
    assert loud == ['unrecognised outcome key "petoOutcome" at comparison[0]']


def test_malformed_comparisons_and_outcomes_do_not_abort():
    comparisons = [
        "not a comparison",
        {"dichOutcome": ["not an outcome", _dich(1, dichData=[])]},
    ]

    result, warnings = reconstruct_outcomes(comparisons, REVMAN5_OUTCOME_KEYS)

    assert warnings == [
        "expected mapping at comparison[0] but got str",
        "expected mapping at comparison[1].dichOutcome[0] but got str",
    ]
    assert len(result[1]["outcome"]) == 1


def test_comparison_without_outcomes_gets_empty_list():
    result, warnings = reconstruct_outcomes([{"name": "empty"}], REVMAN5_OUTCOME_KEYS)

    assert result[0]["outcome"] == []
    assert warnings == []
