"""Backend services."""

from services.audit_normalizer import (
    document_reference,
    normalize_payload,
    payload_reference,
)

__all__ = [
    "document_reference",
    "normalize_payload",
    "payload_reference",
]
