from __future__ import annotations

from reporting.deck_builder import DEFAULT_PRIMARY, PAGE_RENDERERS, build_audit_html, resolve_theme
from reporting.assembler import PAGE_ORDER
from services.audit_normalizer import normalize_payload


def _payload(**preview) -> dict:
    return {"intake_id": "fo_audit_a1b2c3d4e5f6g7h8", "generated_at": "2026-02-19", "preview_data": preview}


def test_every_page_kind_has_a_renderer():
    for kind in PAGE_ORDER:
        assert kind in PAGE_RENDERERS
    assert "verdict_veto" in PAGE_RENDERERS


def test_build_audit_html_frames_pages():
    html = build_audit_html(_payload(risk_factors=[{"cost": "$500,000"}, {"cost_numeric": 250000}]))
    assert html.startswith("<!doctype html>")
    assert 'data-kind="cover"' in html
    assert 'data-kind="closing"' in html
    assert "Page 7 of 7" in html
    assert "Ref 1B2C3D4E5F6G" in html
    assert "February 19, 2026" in html
    assert "Investment Committee Decision" in html
    assert "$750K" in html


def test_veto_html_shows_only_veto_verdict():
    html = build_audit_html(_payload(structure_optimization={"verdict": "DO_NOT_PROCEED"}))
    assert 'data-kind="verdict_veto"' in html
    assert "Allocation Not Recommended" in html
    assert "ELEVATED RISK" in html
    assert "Investment Committee Decision" not in html
    assert "Proceed with structured monitoring" not in html


def test_upstream_text_is_escaped():
    html = build_audit_html(_payload(exposure_class="<script>alert(1)</script>"))
    assert "<script>" not in html
    assert "&lt;script&gt;" in html


def test_no_raw_objects_reach_html():
    html = build_audit_html(
        _payload(
            risk_assessment={"verdict": {"nested": {"deep": True}}},
            all_opportunities=[{"title": {"a": [1, 2]}, "potential_value": {"amount": 2_000_000}}],
        )
    )
    assert "{'" not in html
    assert "[1, 2]" not in html
    assert "$2.00M" in html


def test_resolve_theme_branding():
    audit = normalize_payload(_payload())
    theme = resolve_theme(audit, {"brandName": "Harbour Partners", "primaryColor": "not-a-color"})
    assert theme.brand_name == "Harbour Partners"
    assert theme.primary_color == DEFAULT_PRIMARY
    assert theme.reference == "1B2C3D4E5F6G"
    assert resolve_theme(audit, {"primary_color": "#0a3d62"}).primary_color == "#0a3d62"
