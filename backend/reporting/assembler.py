"""
Page assembly for the Pattern Audit document.

`assemble` walks the fixed page order once and keeps a page only when its
section predicate holds; the output carries raw numbers only, formatting is
left to the render layer.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from engine.sections import (
    VerdictVariant,
    include_crisis,
    include_execution_sequence,
    include_golden_visa,
    include_heir_management,
    include_hnwi_trends,
    include_opportunities,
    include_real_asset_audit,
    include_regime_intelligence,
    include_scenario_tree,
    include_transparency,
    include_wealth_projection,
    verdict_variant,
)
from models import (
    ClosingPageModel,
    CoverPageModel,
    PatternAudit,
    PeerPageModel,
    RealAssetAudit,
    SummaryPageModel,
    TaxPageModel,
    VerdictPageModel,
    VetoVerdictPageModel,
)
from services.audit_normalizer import normalize_payload

_LOG = logging.getLogger(__name__)

PAGE_ORDER: tuple[str, ...] = (
    "cover",
    "pattern_intelligence",
    "verdict",
    "tax_analysis",
    "wealth_projection",
    "peer_intelligence",
    "opportunities",
    "execution_sequence",
    "transparency",
    "real_asset_audit",
    "golden_visa",
    "hnwi_trends",
    "regime_intelligence",
    "crisis_resilience",
    "scenario_tree",
    "heir_management",
    "summary",
    "closing",
)


@dataclass
class AuditPage:
    kind: str
    section_label: str
    model: BaseModel

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "section_label": self.section_label,
            "model": self.model.model_dump(mode="json"),
        }


def _verdict_page(audit: PatternAudit) -> AuditPage:
    if verdict_variant(audit) is VerdictVariant.VETO and audit.via_negativa is not None:
        vn = audit.via_negativa
        return AuditPage(
            kind="verdict_veto",
            section_label=vn.verdict_badge_label,
            model=VetoVerdictPageModel(verdict=audit.verdict, via_negativa=vn),
        )
    page = VerdictPageModel(verdict=audit.verdict)
    return AuditPage(kind="verdict", section_label=page.badge_label, model=page)


def assemble(audit: PatternAudit) -> list[AuditPage]:
    """Ordered page list for one canonical audit. Deterministic, single pass."""
    header = audit.header
    intel = audit.intelligence
    veto = audit.via_negativa

    pages: list[AuditPage] = [
        AuditPage(
            kind="cover",
            section_label="Pattern Audit",
            model=CoverPageModel(
                header=header,
                intelligence=intel,
                veto_badge=veto.badge_label if veto is not None else None,
            ),
        ),
        AuditPage(kind="pattern_intelligence", section_label="Pattern Intelligence", model=intel),
        _verdict_page(audit),
        AuditPage(
            kind="tax_analysis",
            section_label="Tax Analysis",
            model=TaxPageModel(tax=audit.tax, total_tax_benefit_pct=intel.total_tax_benefit_pct),
        ),
    ]

    if include_wealth_projection(audit) and audit.wealth_projection is not None:
        pages.append(AuditPage("wealth_projection", "Wealth Projection", audit.wealth_projection))

    pages.append(
        AuditPage(
            kind="peer_intelligence",
            section_label="Peer Intelligence",
            model=PeerPageModel(
                source_jurisdiction=audit.verdict.source_jurisdiction,
                destination_jurisdiction=audit.verdict.destination_jurisdiction,
                peers=audit.peers,
            ),
        )
    )
    if include_opportunities(audit):
        pages.append(AuditPage("opportunities", "Market Opportunities", audit.opportunities))
    if include_execution_sequence(audit):
        pages.append(AuditPage("execution_sequence", "Execution Sequence", audit.execution))
    if include_transparency(audit) and audit.transparency is not None:
        pages.append(AuditPage("transparency", "Transparency Regime Impact", audit.transparency))

    if include_real_asset_audit(audit):
        with_content = [j for j in audit.real_asset_audit.jurisdictions if j.has_content]
        pages.append(
            AuditPage("real_asset_audit", "Real Asset Audit", RealAssetAudit(jurisdictions=with_content))
        )
    if include_golden_visa(audit):
        pages.append(AuditPage("golden_visa", "Investment Migration", audit.golden_visa))
    if include_hnwi_trends(audit) and audit.hnwi_trends is not None:
        pages.append(AuditPage("hnwi_trends", "HNWI Trend Intelligence", audit.hnwi_trends))
    if include_regime_intelligence(audit) and audit.regime_intelligence is not None:
        pages.append(AuditPage("regime_intelligence", "Tax Regime Intelligence", audit.regime_intelligence))
    if include_crisis(audit) and audit.crisis is not None:
        pages.append(AuditPage("crisis_resilience", "Crisis Resilience", audit.crisis))
    if include_scenario_tree(audit) and audit.scenario_tree is not None:
        pages.append(AuditPage("scenario_tree", "Decision Scenario Tree", audit.scenario_tree))
    if include_heir_management(audit) and audit.heir_management is not None:
        pages.append(AuditPage("heir_management", "Heir Management", audit.heir_management))

    pages.append(
        AuditPage(
            kind="summary",
            section_label="Summary",
            model=SummaryPageModel(
                reference=header.reference,
                precedent_count=intel.precedent_count,
                failure_modes=intel.failure_modes,
                sequencing_rules=intel.sequencing_rules,
            ),
        )
    )
    pages.append(
        AuditPage(
            kind="closing",
            section_label="Confidential",
            model=ClosingPageModel(
                intake_id=header.intake_id,
                reference=header.reference,
                generated_at=header.generated_at,
                precedent_count=intel.precedent_count,
                veto_cta=veto.cta_body if veto is not None else None,
            ),
        )
    )

    _LOG.info(
        "[audit] assembled intake=%s pages=%d veto=%s",
        header.reference or "-",
        len(pages),
        veto is not None,
    )
    return pages


def build_audit_pages(payload: Any) -> tuple[PatternAudit, list[AuditPage]]:
    """Raw payload in, canonical audit plus its ordered pages out."""
    audit = normalize_payload(payload)
    return audit, assemble(audit)
