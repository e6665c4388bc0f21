"""
File-hash disk cache for rendered audit PDFs.
Key = sha256(canonical payload JSON + branding JSON) -> PDF bytes.
Set AUDIT_PDF_CACHE=0 to bypass reads and writes.
"""
from __future__ import annotations

import hashlib
import json
import logging
import os
from pathlib import Path
from typing import Any

# Cache directory under backend/cache
_CACHE_DIR = Path(__file__).resolve().parent
AUDIT_PDF_CACHE_DIR = _CACHE_DIR / "audit_pdfs"

_LOG = logging.getLogger(__name__)


def _ensure_dir(d: Path) -> None:
    d.mkdir(parents=True, exist_ok=True)


def cache_enabled() -> bool:
    return os.environ.get("AUDIT_PDF_CACHE", "1").strip() != "0"


def audit_cache_key(payload: dict[str, Any], branding: dict[str, Any] | None = None) -> str:
    blob = json.dumps({"payload": payload, "branding": branding or {}}, sort_keys=True, default=str)
    return hashlib.sha256(blob.encode()).hexdigest()


def get_cached_audit_pdf(payload: dict[str, Any], branding: dict[str, Any] | None = None) -> bytes | None:
    """Return cached PDF bytes, or None."""
    if not cache_enabled():
        return None
    path = AUDIT_PDF_CACHE_DIR / f"{audit_cache_key(payload, branding)}.pdf"
    if not path.exists():
        return None
    try:
        return path.read_bytes()
    except OSError as e:
        _LOG.warning("[audit] cache read failed path=%s err=%s", path.name, e)
        return None


def set_cached_audit_pdf(payload: dict[str, Any], pdf_bytes: bytes, branding: dict[str, Any] | None = None) -> None:
    """Store PDF bytes keyed by payload + branding."""
    if not cache_enabled():
        return
    _ensure_dir(AUDIT_PDF_CACHE_DIR)
    path = AUDIT_PDF_CACHE_DIR / f"{audit_cache_key(payload, branding)}.pdf"
    path.write_bytes(pdf_bytes)
