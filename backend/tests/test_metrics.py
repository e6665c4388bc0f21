from __future__ import annotations

import pytest

from engine.metrics import (
    confidence_bars,
    cumulative_tax_differential,
    due_diligence_timeline,
    has_any_rate,
    normalize_percent,
    round_half_up,
    risk_item_exposure,
    scenario_triple,
    severity_counts,
    succession_improvement,
    succession_urgency,
    total_exposure,
    value_creation,
)


@pytest.mark.parametrize(
    "raw,expected",
    [(0.4, 40), (60, 60), (1, 100), (0.125, 13), ("0.25", 25), (150, 100), (-3, 0)],
)
def test_normalize_percent_treats_values_up_to_one_as_fractions(raw, expected):
    assert normalize_percent(raw) == expected


def test_normalize_percent_default_when_absent():
    assert normalize_percent(None, 70) == 70
    assert normalize_percent("n/a", None) is None


def test_total_exposure_sums_risk_items_without_formatted_total():
    items = [{"cost": "$500,000"}, {"cost_numeric": 250000}]
    assert total_exposure(None, items) == 750_000


def test_total_exposure_prefers_formatted_total():
    assert total_exposure("$1.35M", [{"cost": "$500,000"}]) == pytest.approx(1_350_000)


def test_total_exposure_skips_unusable_items():
    assert total_exposure("n/a", [{"title": "No cost"}, "junk", {"cost": "TBD"}]) == 0


def test_risk_item_exposure_ignores_small_numeric_costs():
    assert risk_item_exposure({"cost_numeric": 900}) == 0
    assert risk_item_exposure({"cost_numeric": 5000}) == 5000
    assert risk_item_exposure({"cost": "$1.2M", "cost_numeric": 5000}) == pytest.approx(1_200_000)


def test_cumulative_tax_differential_across_categories():
    source = {"income_tax": 45, "cgt": 20, "estate_tax": 40}
    destination = {"income_tax": 22, "capital_gains": 0}
    assert cumulative_tax_differential(source, destination) == 83
    assert has_any_rate(source)
    assert not has_any_rate({"vat": 20})


def test_succession_improvement_and_urgency():
    assert succession_improvement(None, None) == 63
    assert succession_improvement(0.7, 0.07) == 63
    assert succession_improvement(80, 10) == 70
    assert succession_urgency(30) == "URGENT"
    assert succession_urgency(45) == "URGENT"
    assert succession_urgency(60) == "MODERATE"
    assert succession_urgency(61) == "STANDARD"
    assert succession_urgency(None) == "STANDARD"


def test_scenario_triple_defaults():
    assert scenario_triple(None) == {"base": (55, 0.0), "stress": (25, 0.0), "opportunity": (20, 0.0)}


def test_scenario_triple_reads_list_and_dict_shapes():
    listed = [{"name": "BASE_CASE", "probability": 0.6, "ten_year_outcome": {"final_value": 16_000_000}}]
    assert scenario_triple(listed)["base"] == (60, 16_000_000.0)
    keyed = {"stress": {"probability": 30, "year_10_value": 9_000_000}}
    assert scenario_triple(keyed)["stress"] == (30, 9_000_000.0)


def test_value_creation_fallback_chain():
    assert value_creation(None) == (1_500_000.0, None)
    amount, display = value_creation("$2.4M")
    assert amount == pytest.approx(2_400_000)
    assert display == "$2.4M"
    assert value_creation(900_000) == (900_000.0, None)
    assert value_creation({"annual_tax_savings": {"amount": 100_000}}) == (100_000.0, None)
    summed = {"capital_gains_savings": {"amount": 50_000}, "estate_tax_savings": {"amount": 25_000}}
    assert value_creation(summed) == (75_000.0, None)


def test_confidence_and_severity_helpers():
    assert confidence_bars("Strong") == 5
    assert confidence_bars("Good") == 4
    assert confidence_bars("Unknown") == 2
    assert severity_counts(["high", "high", "low", "bogus"]) == {"critical": 0, "high": 2, "medium": 0, "low": 1}
    assert due_diligence_timeline("CRITICAL") == "14 days"
    assert due_diligence_timeline("high") == "30 days"
    assert due_diligence_timeline("") == "60 days"


def test_round_half_up_is_total_on_overflow():
    assert round_half_up(2.5) == 3
    assert round_half_up(float("inf")) == 0
    assert round_half_up(float("nan")) == 0
    assert normalize_percent(-1e308) == 0
    assert normalize_percent("9" * 400, 40) == 40
