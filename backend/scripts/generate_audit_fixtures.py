"""
Generate sample Pattern Audit fixtures:
1) standard audit with every optional section populated
2) vetoed audit (structure verdict DO_NOT_PROCEED)

Writes HTML always and PDF when Playwright is installed.

Usage:
  cd backend
  python3 scripts/generate_audit_fixtures.py
"""
from __future__ import annotations

from pathlib import Path
import sys

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from reporting.deck_builder import build_audit_html, render_audit_pdf


OUT_DIR = Path(__file__).resolve().parents[1] / "audits" / "fixtures"


def _standard_payload() -> dict:
    return {
        "success": True,
        "intake_id": "fo_audit_a1b2c3d4e5f6g7h8",
        "generated_at": "2026-02-19T10:30:00Z",
        "preview_data": {
            "source_jurisdiction": "United_Kingdom",
            "destination_jurisdiction": "Singapore",
            "exposure_class": "Family Office",
            "precedent_count": 34,
            "total_savings": "$2.4M",
            "data_quality": "Good",
            "risk_assessment": {
                "verdict": "PROCEED WITH CONDITIONS",
                "risk_level": "MODERATE",
                "total_exposure_formatted": "$1.35M",
            },
            "all_mistakes": [
                {"title": "ABSD on entry", "cost": "ABSD: $900,000", "urgency": "HIGH", "fix": "Acquire through trust"},
                {"title": "Exit tax timing", "cost_numeric": 450000, "urgency": "CRITICAL"},
            ],
            "due_diligence": [{"task": "Confirm residency test", "priority": "critical"}],
            "source_tax_rates": {"income_tax": 45, "cgt": 20, "estate_tax": 40, "wealth_tax": 0},
            "destination_tax_rates": {"income_tax": 22, "capital_gains": 0, "estate_tax": 0, "wealth_tax": 0},
            "peer_cohort_stats": {"total_peers": 42, "last_6_months": 11, "avg_deal_value_m": 12.5},
            "all_opportunities": [
                {"title": "Core CBD office", "category": "Real Estate", "potential_value": "$3.2M"},
            ],
            "execution_sequence": [{"title": "Open onshore account", "timeline": "Week 1"}],
            "wealth_projection_data": {
                "starting_position": {"transaction_value": 10_000_000},
                "scenarios": [
                    {"name": "BASE_CASE", "probability": 0.6, "ten_year_outcome": {"final_value": 16_000_000}},
                    {"name": "STRESS_CASE", "probability": 0.25, "ten_year_outcome": {"final_value": 9_000_000}},
                ],
            },
            "destination_drivers": {"visa_programs": [{"program_name": "Global Investor Programme"}]},
            "hnwi_trends": ["Family offices expanding in Singapore", "Shift toward VCC structures"],
            "hnwi_trends_confidence": 0.8,
            "scenario_tree_data": {
                "recommended_branch": "PROCEED_MODIFIED",
                "branches": [
                    {"name": "PROCEED_NOW", "probability": 30, "expected_value": 1_200_000},
                    {"name": "PROCEED_MODIFIED", "recommendation_strength": 0.55, "expected_value": 1_900_000},
                ],
                "decision_gates": [{"day": 30, "check": "Residency confirmed"}],
            },
            "heir_management_data": {
                "heir_allocations": [
                    {"name": "Eldest", "allocation_pct": 0.5},
                    {"name": "Youngest", "allocation_pct": 50},
                ],
            },
        },
        "memo_data": {"kgv3_intelligence_used": {"failure_modes": 4, "sequencing_rules": 3}},
    }


def _veto_payload() -> dict:
    payload = _standard_payload()
    payload["intake_id"] = "fo_audit_z9y8x7w6v5u4t3s2"
    payload["preview_data"]["structure_optimization"] = {"verdict": "DO_NOT_PROCEED"}
    payload["preview_data"]["via_negativa"] = {"day_one_loss_pct": 18.4, "day_one_loss_amount": 1_840_000}
    return payload


def main() -> None:
    OUT_DIR.mkdir(parents=True, exist_ok=True)
    fixtures = {
        "audit_standard": _standard_payload(),
        "audit_veto": _veto_payload(),
    }
    for name, payload in fixtures.items():
        html_path = OUT_DIR / f"{name}.html"
        html_path.write_text(build_audit_html(payload), encoding="utf-8")
        print(f"Wrote {html_path}")
        try:
            pdf_bytes = render_audit_pdf(payload)
        except ImportError:
            print("Playwright not installed; skipping PDF output")
            continue
        pdf_path = OUT_DIR / f"{name}.pdf"
        pdf_path.write_bytes(pdf_bytes)
        print(f"Wrote {pdf_path}")


if __name__ == "__main__":
    main()
