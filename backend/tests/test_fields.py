from __future__ import annotations

import pytest

from engine.fields import FIELD_ALIASES, resolve, resolved_path


def test_newer_alias_wins_over_legacy():
    payload = {"preview_data": {"risk_assessment": {"verdict": "PROCEED"}, "verdict": "LEGACY"}}
    assert resolve(payload, "verdict") == "PROCEED"
    assert resolved_path(payload, "verdict") == "preview_data.risk_assessment.verdict"


def test_empty_values_fall_through_to_next_alias():
    payload = {"preview_data": {"risk_assessment": {"verdict": ""}, "verdict": "LEGACY"}}
    assert resolve(payload, "verdict") == "LEGACY"


def test_zero_and_false_count_as_present():
    assert resolve({"preview_data": {"precedent_count": 0}}, "precedent_count") == 0
    assert resolve({"preview_data": {"show_tax_savings": False}}, "show_tax_savings") is False


def test_missing_and_malformed_paths_return_default():
    assert resolve({}, "verdict") is None
    assert resolve({"preview_data": "oops"}, "verdict", "CONDITIONAL") == "CONDITIONAL"
    assert resolve(None, "intake_id", "") == ""
    assert resolved_path({}, "verdict") is None


def test_entity_level_names_resolve_against_nested_objects():
    assert resolve({"cgt": 20}, "tax.capital_gains") == 20
    assert resolve({"gate_number": 3}, "gate.day") == 3
    assert resolve({"risk": "Forced heirship"}, "succession.text") == "Forced heirship"


def test_unknown_name_is_a_programming_error():
    with pytest.raises(KeyError):
        resolve({}, "no_such_field")


def test_every_alias_is_a_dotted_path():
    for name, paths in FIELD_ALIASES.items():
        assert paths, name
        assert all(isinstance(p, str) and p and not p.startswith(".") for p in paths), name
