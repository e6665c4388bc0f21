from __future__ import annotations

import logging
import os
import time
import uuid
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Load backend/.env so ALLOWED_ORIGINS and cache settings are available at import time
load_dotenv(Path(__file__).resolve().parent / ".env")

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from cache.disk_cache import cache_enabled, get_cached_audit_pdf, set_cached_audit_pdf
from models import (
    AssembledAuditResponse,
    AuditPayload,
    PageDescriptorOut,
    PatternAudit,
    StoreAuditResponse,
)
from reporting.assembler import build_audit_pages
from reporting.deck_builder import build_audit_html, render_html_to_pdf, render_pages_html
from reports_store import load_audit, save_audit
from services.audit_normalizer import normalize_payload, payload_reference

VERSION = (os.environ.get("GIT_COMMIT") or "").strip() or "0.1.0"

_LOG = logging.getLogger("uvicorn.error")

app = FastAPI(title="Pattern Audit Backend", version="0.1.0")

# ALLOWED_ORIGINS is comma-separated; the defaults cover the local frontend
_origins_env = os.environ.get("ALLOWED_ORIGINS", "").strip()
if _origins_env:
    ALLOWED_ORIGINS = [o.strip() for o in _origins_env.split(",") if o.strip()]
else:
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        logging.getLogger("uvicorn.error").info(
            "request_id=%s method=%s path=%s status=%s duration_ms=%.0f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers["X-Request-Id"] = request_id
        return response


app.add_middleware(RequestLogMiddleware)


@app.on_event("startup")
def startup_log() -> None:
    port = os.environ.get("PORT", "8010")
    host = os.environ.get("HOST", "127.0.0.1")
    _LOG.info(
        "Audit backend starting on http://%s:%s (pdf cache enabled: %s) version=%s",
        host, port, cache_enabled(), VERSION,
    )


@app.get("/health")
def health():
    return {"status": "ok", "version": VERSION}


@app.get("/health/pdf")
def health_pdf():
    """
    Probe the audit PDF runtime: 200 once headless Chromium opens a page, 503 otherwise.
    """
    try:
        from playwright.sync_api import sync_playwright
    except ImportError:
        raise HTTPException(status_code=503, detail="Playwright is not installed.")

    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(args=["--no-sandbox"])
            page = browser.new_page()
            page.set_content("<html><body>ok</body></html>")
            browser.close()
    except Exception as e:
        msg = str(e)[:500]
        raise HTTPException(status_code=503, detail=f"Playwright runtime unavailable: {msg}") from e

    return {"status": "ok", "pdf_runtime": "ready"}


def _assembled_response(payload: dict[str, Any]) -> AssembledAuditResponse:
    audit, pages = build_audit_pages(payload)
    return AssembledAuditResponse(
        reference=audit.header.reference,
        veto=audit.via_negativa is not None,
        pages=[PageDescriptorOut(**page.to_dict()) for page in pages],
    )


@app.post("/audit/normalize", response_model=PatternAudit)
def normalize_audit(req: AuditPayload) -> PatternAudit:
    """Canonical report model for one raw payload."""
    return normalize_payload(req.raw())


@app.post("/audit/pages", response_model=AssembledAuditResponse)
def audit_pages(req: AuditPayload) -> AssembledAuditResponse:
    """Ordered page descriptors; omitted sections have no page."""
    return _assembled_response(req.raw())


@app.post("/audit/preview", response_class=HTMLResponse)
def audit_preview(req: AuditPayload):
    """
    Print-friendly HTML of the assembled audit; the browser can print it
    when /audit/pdf answers 503.
    """
    return HTMLResponse(build_audit_html(req.raw()))


@app.post("/audit/pdf")
def audit_pdf(req: AuditPayload):
    payload = req.raw()
    reference = payload_reference(payload)

    pdf_bytes = get_cached_audit_pdf(payload)
    if pdf_bytes is None:
        audit, pages = build_audit_pages(payload)
        try:
            pdf_bytes = render_html_to_pdf(render_pages_html(audit, pages))
        except ImportError:
            raise HTTPException(
                status_code=503,
                detail="PDF runtime not installed. Use /audit/preview to download HTML and print to PDF.",
            )
        except Exception as e:
            _LOG.exception("[audit] pdf render failed intake=%s", reference or "-")
            raise HTTPException(
                status_code=503,
                detail="Audit PDF generation failed. Use /audit/preview to download HTML and print to PDF.",
            ) from e
        set_cached_audit_pdf(payload, pdf_bytes)

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'inline; filename="pattern-audit-{(reference or "audit").lower()}.pdf"'},
    )


@app.post("/audits", response_model=StoreAuditResponse)
def create_audit(req: AuditPayload) -> StoreAuditResponse:
    """
    Store a raw payload and return its audit id.
    """
    return StoreAuditResponse(audit_id=save_audit(req.raw()))


def _stored_or_404(audit_id: str) -> dict[str, Any]:
    data = load_audit(audit_id)
    if data is None:
        raise HTTPException(status_code=404, detail="Audit not found")
    return data


@app.get("/audits/{audit_id}")
def get_audit(audit_id: str):
    """
    Return the stored raw payload.
    """
    return _stored_or_404(audit_id)


@app.get("/audits/{audit_id}/pages", response_model=AssembledAuditResponse)
def get_audit_pages(audit_id: str) -> AssembledAuditResponse:
    return _assembled_response(_stored_or_404(audit_id))


@app.get("/audits/{audit_id}/preview", response_class=HTMLResponse)
def get_audit_preview(audit_id: str):
    return HTMLResponse(build_audit_html(_stored_or_404(audit_id)))


def get_app() -> FastAPI:
    """
    ASGI entry for servers that take a factory.
    """
    return app


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=os.environ.get("HOST", "127.0.0.1"),
        port=int(os.environ.get("PORT", "8010")),
        reload=True,
    )
