"""
Store and retrieve raw audit payloads as JSON files on disk.
AUDIT_STORE_DIR overrides the default backend/audits directory.
"""
from __future__ import annotations

import json
import os
import re
import uuid
from pathlib import Path

DEFAULT_AUDITS_DIR = Path(__file__).resolve().parent / "audits"

_AUDIT_ID = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")


def audits_dir() -> Path:
    override = os.environ.get("AUDIT_STORE_DIR", "").strip()
    return Path(override) if override else DEFAULT_AUDITS_DIR


def ensure_audits_dir() -> Path:
    d = audits_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d


def save_audit(data: dict) -> str:
    audit_id = str(uuid.uuid4())
    path = ensure_audits_dir() / f"{audit_id}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)
    return audit_id


def load_audit(audit_id: str) -> dict | None:
    # Ids are uuid4 strings; anything else cannot name a stored file.
    if not _AUDIT_ID.match(audit_id or ""):
        return None
    path = audits_dir() / f"{audit_id}.json"
    if not path.is_file():
        return None
    with open(path, encoding="utf-8") as f:
        return json.load(f)
