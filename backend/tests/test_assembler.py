from __future__ import annotations

import json
import logging

from reporting.assembler import PAGE_ORDER, assemble, build_audit_pages
from services.audit_normalizer import normalize_payload


def _full_payload() -> dict:
    return {
        "intake_id": "fo_audit_a1b2c3d4e5f6g7h8",
        "generated_at": "2026-02-19T10:30:00Z",
        "preview_data": {
            "source_jurisdiction": "United_Kingdom",
            "destination_jurisdiction": "Portugal",
            "risk_factors": [{"cost": "$500,000"}, {"cost_numeric": 250000}],
            "all_opportunities": [{"title": "Lisbon residential"}],
            "execution_sequence": [{"title": "Open account"}],
            "transparency_data": {"triggered": ["CRS"]},
            "wealth_projection_data": {"starting_position": {"transaction_value": 5_000_000}},
            "real_asset_audit": {"portugal": {"stamp_duty": {"found": True}}, "spain": {}},
            "destination_drivers": {"visa_programs": [{"name": "Golden Visa"}]},
            "hnwi_trends": ["Inflows to Lisbon"],
            "regime_intelligence": {"has_special_regime": True, "regime_scenario": {"regime_name": "NHR"}},
            "crisis_data": {"scenarios": [{"name": "Rates shock"}]},
            "scenario_tree_data": {"decision_gates": [{"day": 30, "check": "KYC"}]},
            "heir_management_data": {"heir_allocations": [{"allocation_pct": 0.4}, {"allocation_pct": 60}]},
        },
    }


def _kinds(pages) -> list[str]:
    return [p.kind for p in pages]


def test_minimal_payload_has_only_fixed_pages():
    _, pages = build_audit_pages({})
    assert _kinds(pages) == [
        "cover",
        "pattern_intelligence",
        "verdict",
        "tax_analysis",
        "peer_intelligence",
        "summary",
        "closing",
    ]


def test_full_payload_follows_fixed_order():
    _, pages = build_audit_pages(_full_payload())
    kinds = _kinds(pages)
    assert kinds == list(PAGE_ORDER)


def test_missing_wealth_projection_is_omitted_everywhere():
    payload = _full_payload()
    del payload["preview_data"]["wealth_projection_data"]
    _, pages = build_audit_pages(payload)
    assert "wealth_projection" not in _kinds(pages)
    dumped = json.dumps([p.to_dict() for p in pages])
    assert "starting_value" not in dumped
    assert "base_value_creation" not in dumped


def test_real_asset_page_keeps_only_jurisdictions_with_content():
    _, pages = build_audit_pages(_full_payload())
    page = next(p for p in pages if p.kind == "real_asset_audit")
    assert [j.jurisdiction for j in page.model.jurisdictions] == ["Portugal"]


def test_end_to_end_exposure_and_heir_allocations():
    _, pages = build_audit_pages(_full_payload())
    verdict = next(p for p in pages if p.kind == "verdict").to_dict()["model"]["verdict"]
    assert verdict["total_exposure"] == 750_000
    heirs = next(p for p in pages if p.kind == "heir_management").to_dict()["model"]
    assert [h["allocation_pct"] for h in heirs["allocations"]] == [40, 60]


def test_veto_replaces_verdict_page_and_standard_copy():
    payload = _full_payload()
    payload["preview_data"]["structure_optimization"] = {"verdict": "DO_NOT_PROCEED"}
    payload["preview_data"]["via_negativa"] = {"day_one_loss_pct": 18.4}
    audit, pages = build_audit_pages(payload)
    kinds = _kinds(pages)
    assert "verdict_veto" in kinds
    assert "verdict" not in kinds
    assert kinds.index("verdict_veto") == 2

    dumped = json.dumps([p.to_dict() for p in pages])
    assert "Investment Committee Decision" not in dumped
    assert "Proceed with structured monitoring" not in dumped

    assert pages[0].model.veto_badge == "ELEVATED RISK"
    assert "18.4%" in pages[-1].model.veto_cta


def test_standard_verdict_page_headers():
    _, pages = build_audit_pages({})
    verdict = pages[2]
    assert verdict.model.headline == "Investment Committee Decision"
    assert verdict.section_label == "Executive Summary"
    assert pages[-1].model.veto_cta is None


def test_assembly_is_deterministic():
    audit = normalize_payload(_full_payload())
    first = [p.to_dict() for p in assemble(audit)]
    second = [p.to_dict() for p in assemble(audit)]
    assert first == second


def test_assembly_logs_summary(caplog):
    with caplog.at_level(logging.INFO, logger="reporting.assembler"):
        build_audit_pages(_full_payload())
    assert "[audit] assembled intake=1B2C3D4E5F6G" in caplog.text
