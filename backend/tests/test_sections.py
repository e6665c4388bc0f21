from __future__ import annotations

from engine.sections import (
    StructureVerdict,
    VerdictVariant,
    include_crisis,
    include_heir_management,
    include_real_asset_audit,
    include_scenario_tree,
    include_wealth_projection,
    included_sections,
    shows_tax_savings,
    verdict_variant,
    via_negativa_state,
)
from models import (
    CrisisResilience,
    CrisisScenario,
    DecisionGate,
    HeirManagement,
    JurisdictionAssetAudit,
    PatternAudit,
    ProjectionScenario,
    RealAssetAudit,
    ScenarioTree,
    WealthProjection,
)


def _veto_payload(**via_negativa) -> dict:
    preview = {"structure_optimization": {"verdict": "DO_NOT_PROCEED"}}
    if via_negativa:
        preview["via_negativa"] = via_negativa
    return {"preview_data": preview}


def _projection(starting_value: float = 0.0, base_year_10: float = 0.0) -> WealthProjection:
    return WealthProjection(
        starting_value=starting_value,
        base=ProjectionScenario(name="base", year_10_value=base_year_10),
        stress=ProjectionScenario(name="stress"),
        opportunity=ProjectionScenario(name="opportunity"),
    )


def test_structure_verdict_from_raw():
    assert StructureVerdict.from_raw(" DO_NOT_PROCEED ").is_veto
    assert StructureVerdict.from_raw("PROCEED_NOW") is StructureVerdict.PROCEED_NOW
    assert StructureVerdict.from_raw("maybe") is StructureVerdict.UNSPECIFIED
    assert StructureVerdict.from_raw(None) is StructureVerdict.UNSPECIFIED


def test_no_veto_without_sentinel():
    assert via_negativa_state({"preview_data": {"structure_optimization": {"verdict": "PROCEED_NOW"}}}, "UK") is None
    assert via_negativa_state({}, "UK") is None


def test_veto_gate_fallbacks():
    state = via_negativa_state(_veto_payload(), "United Kingdom")
    assert state is not None
    assert state.day_one_loss_pct == 0.0
    assert state.liquidity_passed is True
    assert state.tax_efficiency_passed is False
    assert state.structure_passed is False
    assert state.stamp_text == "Allocation Not Recommended"
    assert "0.0% Day-One" in state.cta_body


def test_veto_liquidity_fails_at_ten_percent_day_one_loss():
    assert via_negativa_state(_veto_payload(day_one_loss_pct=10), "UK").liquidity_passed is False
    assert via_negativa_state(_veto_payload(day_one_loss_pct=9.9), "UK").liquidity_passed is True


def test_veto_reads_acquisition_audit_when_backend_block_missing():
    payload = _veto_payload()
    payload["preview_data"]["wealth_projection_data"] = {
        "starting_position": {
            "cross_border_audit_summary": {
                "total_tax_savings_pct": 12,
                "acquisition_audit": {
                    "property_value": 5_000_000,
                    "total_acquisition_cost": 5_900_000,
                    "day_one_loss_pct": 18.0,
                },
            }
        }
    }
    state = via_negativa_state(payload, "Singapore")
    assert state.day_one_loss_amount == 900_000
    assert state.day_one_loss_pct == 18.0
    assert state.tax_efficiency_passed is True
    assert state.liquidity_passed is False


def test_veto_copy_overrides_and_cta_template():
    state = via_negativa_state(
        _veto_payload(
            day_one_loss_pct=18.44,
            verdict_section={"stamp_text": "Do Not Allocate"},
            cta={"body_template": "Loss {dayOneLoss}% on day one."},
        ),
        "UK",
    )
    assert state.stamp_text == "Do Not Allocate"
    assert state.verdict_header == "Structural Review"
    assert state.day_one_loss_pct == 18.44
    assert state.cta_body == "Loss 18.4% on day one."


def test_us_persons_never_see_tax_savings():
    assert shows_tax_savings({}, "United States") is False
    assert shows_tax_savings({}, "united_states") is False
    assert shows_tax_savings({}, "USA") is False
    assert shows_tax_savings({}, "Russia") is True
    assert shows_tax_savings({}, "Singapore") is True
    assert shows_tax_savings({"preview_data": {"show_tax_savings": False}}, "Singapore") is False


def test_verdict_variant():
    assert verdict_variant(PatternAudit()) is VerdictVariant.STANDARD


def test_wealth_projection_predicate():
    assert include_wealth_projection(PatternAudit()) is False
    assert include_wealth_projection(PatternAudit(wealth_projection=_projection())) is False
    assert include_wealth_projection(PatternAudit(wealth_projection=_projection(starting_value=1))) is True
    assert include_wealth_projection(PatternAudit(wealth_projection=_projection(base_year_10=5))) is True


def test_real_asset_predicate_requires_content():
    empty = RealAssetAudit(jurisdictions=[JurisdictionAssetAudit(jurisdiction="Spain")])
    assert include_real_asset_audit(PatternAudit(real_asset_audit=empty)) is False
    filled = RealAssetAudit(jurisdictions=[JurisdictionAssetAudit(jurisdiction="Switzerland", freeports=["Geneva"])])
    assert include_real_asset_audit(PatternAudit(real_asset_audit=filled)) is True


def test_crisis_scenario_tree_and_heir_predicates():
    assert include_crisis(PatternAudit(crisis=CrisisResilience())) is False
    crisis = CrisisResilience(scenarios=[CrisisScenario(name="Rates shock")])
    assert include_crisis(PatternAudit(crisis=crisis)) is True

    assert include_scenario_tree(PatternAudit(scenario_tree=ScenarioTree())) is False
    gated = ScenarioTree(gates=[DecisionGate(day=30, check="KYC")])
    assert include_scenario_tree(PatternAudit(scenario_tree=gated)) is True

    assert include_heir_management(PatternAudit(heir_management=HeirManagement())) is False
    legacy = HeirManagement(legacy_summary_present=True)
    assert include_heir_management(PatternAudit(heir_management=legacy)) is True


def test_inclusion_is_idempotent():
    audit = PatternAudit(wealth_projection=_projection(starting_value=1))
    first = included_sections(audit)
    assert first == included_sections(audit)
    assert first["wealth_projection"] is True
    assert first["crisis_resilience"] is False
