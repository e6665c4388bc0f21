from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import main
from cache import disk_cache


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setenv("AUDIT_STORE_DIR", str(tmp_path / "audits"))
    monkeypatch.setattr(disk_cache, "AUDIT_PDF_CACHE_DIR", tmp_path / "audit_pdfs")
    monkeypatch.delenv("AUDIT_PDF_CACHE", raising=False)
    return TestClient(main.app)


def _payload(**preview) -> dict:
    return {"success": True, "intake_id": "fo_audit_a1b2c3d4e5f6g7h8", "preview_data": preview, "memo_data": {}}


def test_health(client):
    res = client.get("/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"
    assert res.headers.get("X-Request-Id")


def test_normalize_returns_canonical_model(client):
    res = client.post("/audit/normalize", json=_payload(risk_factors=[{"cost": "$500,000"}, {"cost_numeric": 250000}]))
    assert res.status_code == 200
    body = res.json()
    assert body["verdict"]["total_exposure"] == 750_000
    assert body["header"]["reference"] == "1B2C3D4E5F6G"


def test_pages_for_empty_payload(client):
    res = client.post("/audit/pages", json={})
    assert res.status_code == 200
    body = res.json()
    assert body["veto"] is False
    assert body["reference"] == ""
    assert [p["kind"] for p in body["pages"]][:3] == ["cover", "pattern_intelligence", "verdict"]


def test_pages_flags_veto(client):
    res = client.post("/audit/pages", json=_payload(structure_optimization={"verdict": "DO_NOT_PROCEED"}))
    body = res.json()
    assert body["veto"] is True
    assert "verdict_veto" in [p["kind"] for p in body["pages"]]


def test_non_object_body_is_rejected(client):
    assert client.post("/audit/pages", json=[1, 2]).status_code == 422


def test_unknown_top_level_keys_are_accepted(client):
    res = client.post("/audit/pages", json={"extra_field": {"x": 1}, "intake_id": "fo_audit_a1b2c3d4e5f6g7h8"})
    assert res.status_code == 200


def test_preview_returns_html(client):
    res = client.post("/audit/preview", json=_payload())
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/html")
    assert "pdf-page" in res.text


def test_pdf_is_rendered_once_then_cached(client, monkeypatch):
    calls: list[str] = []

    def fake_render(html_str: str) -> bytes:
        calls.append(html_str)
        return b"%PDF-1.7 fake"

    monkeypatch.setattr(main, "render_html_to_pdf", fake_render)
    first = client.post("/audit/pdf", json=_payload())
    second = client.post("/audit/pdf", json=_payload())
    assert first.status_code == 200 and second.status_code == 200
    assert first.headers["content-type"] == "application/pdf"
    assert second.content == b"%PDF-1.7 fake"
    assert len(calls) == 1
    assert "pattern-audit-1b2c3d4e5f6g.pdf" in first.headers["content-disposition"]


def test_pdf_without_runtime_is_503(client, monkeypatch):
    def missing(html_str: str) -> bytes:
        raise ImportError("No module named 'playwright'")

    monkeypatch.setattr(main, "render_html_to_pdf", missing)
    res = client.post("/audit/pdf", json=_payload())
    assert res.status_code == 503
    assert "/audit/preview" in res.json()["detail"]


def test_stored_audit_routes(client):
    created = client.post("/audits", json=_payload(verdict="PROCEED"))
    assert created.status_code == 200
    audit_id = created.json()["audit_id"]

    stored = client.get(f"/audits/{audit_id}")
    assert stored.status_code == 200
    assert stored.json()["preview_data"]["verdict"] == "PROCEED"

    pages = client.get(f"/audits/{audit_id}/pages")
    assert pages.status_code == 200
    assert pages.json()["reference"] == "1B2C3D4E5F6G"

    preview = client.get(f"/audits/{audit_id}/preview")
    assert preview.status_code == 200
    assert "pdf-page" in preview.text


def test_unknown_audit_is_404(client):
    assert client.get("/audits/00000000-0000-4000-8000-000000000000").status_code == 404
    assert client.get("/audits/not-an-id/pages").status_code == 404


def test_pdf_cache_hit_skips_page_assembly(client, monkeypatch):
    monkeypatch.setattr(main, "render_html_to_pdf", lambda html_str: b"%PDF-1.7 fake")
    assert client.post("/audit/pdf", json=_payload()).status_code == 200

    built: list[dict] = []
    real_build = main.build_audit_pages

    def counting_build(payload):
        built.append(payload)
        return real_build(payload)

    monkeypatch.setattr(main, "build_audit_pages", counting_build)
    res = client.post("/audit/pdf", json=_payload())
    assert res.status_code == 200
    assert res.content == b"%PDF-1.7 fake"
    assert built == []
    assert "pattern-audit-1b2c3d4e5f6g.pdf" in res.headers["content-disposition"]


def test_hostile_field_values_do_not_500(client):
    body = _payload(precedent_count="1" * 400, transparency_regime_impact='{"a": ' + "[" * 50_000 + "]" * 50_000 + "}")
    res = client.post("/audit/pages", json=body)
    assert res.status_code == 200
