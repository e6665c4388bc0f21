"""
Section inclusion: one predicate per optional audit section.

Predicates read only the canonical PatternAudit, never the raw payload, and
are independent of one another. The via-negativa veto is decided first
(`verdict_variant`) and selects which verdict page the document carries.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Callable

from engine.coerce import coerce, coerce_dict, coerce_number
from engine.fields import resolve
from models import PatternAudit, ViaNegativaState


class StructureVerdict(str, Enum):
    """Upstream structure_optimization.verdict; DO_NOT_PROCEED is the veto sentinel."""
    PROCEED_NOW = "PROCEED_NOW"
    PROCEED_MODIFIED = "PROCEED_MODIFIED"
    DO_NOT_PROCEED = "DO_NOT_PROCEED"
    UNSPECIFIED = "UNSPECIFIED"

    @classmethod
    def from_raw(cls, value: Any) -> "StructureVerdict":
        if isinstance(value, str):
            try:
                return cls(value.strip())
            except ValueError:
                return cls.UNSPECIFIED
        return cls.UNSPECIFIED

    @property
    def is_veto(self) -> bool:
        return self is StructureVerdict.DO_NOT_PROCEED


class VerdictVariant(str, Enum):
    STANDARD = "standard"
    VETO = "veto"


def verdict_variant(audit: PatternAudit) -> VerdictVariant:
    return VerdictVariant.VETO if audit.via_negativa is not None else VerdictVariant.STANDARD


def include_wealth_projection(audit: PatternAudit) -> bool:
    wp = audit.wealth_projection
    return wp is not None and (wp.starting_value > 0 or wp.base.year_10_value > 0)


def include_opportunities(audit: PatternAudit) -> bool:
    return bool(audit.opportunities.items)


def include_execution_sequence(audit: PatternAudit) -> bool:
    return bool(audit.execution.steps)


def include_transparency(audit: PatternAudit) -> bool:
    return audit.transparency is not None


def include_real_asset_audit(audit: PatternAudit) -> bool:
    return any(j.has_content for j in audit.real_asset_audit.jurisdictions)


def include_golden_visa(audit: PatternAudit) -> bool:
    return bool(audit.golden_visa.programs)


def include_hnwi_trends(audit: PatternAudit) -> bool:
    return audit.hnwi_trends is not None and bool(audit.hnwi_trends.insights)


def include_regime_intelligence(audit: PatternAudit) -> bool:
    return audit.regime_intelligence is not None


def include_crisis(audit: PatternAudit) -> bool:
    crisis = audit.crisis
    return crisis is not None and (crisis.overall is not None or bool(crisis.scenarios))


def include_scenario_tree(audit: PatternAudit) -> bool:
    tree = audit.scenario_tree
    return tree is not None and (bool(tree.branches) or bool(tree.gates))


def include_heir_management(audit: PatternAudit) -> bool:
    heirs = audit.heir_management
    return heirs is not None and (bool(heirs.allocations) or heirs.legacy_summary_present)


SECTION_PREDICATES: dict[str, Callable[[PatternAudit], bool]] = {
    "wealth_projection": include_wealth_projection,
    "opportunities": include_opportunities,
    "execution_sequence": include_execution_sequence,
    "transparency": include_transparency,
    "real_asset_audit": include_real_asset_audit,
    "golden_visa": include_golden_visa,
    "hnwi_trends": include_hnwi_trends,
    "regime_intelligence": include_regime_intelligence,
    "crisis_resilience": include_crisis,
    "scenario_tree": include_scenario_tree,
    "heir_management": include_heir_management,
}


def included_sections(audit: PatternAudit) -> dict[str, bool]:
    return {name: predicate(audit) for name, predicate in SECTION_PREDICATES.items()}


# --- via negativa ---
DEFAULT_CTA_TEMPLATE = (
    "This Pattern Audit identified {dayOneLoss}% Day-One capital exposure. "
    "The same engine analyzes any cross-border acquisition across 50+ jurisdictions."
)
LIQUIDITY_LOSS_THRESHOLD_PCT = 10.0

_US_NAMES = {"us", "usa", "united states", "united states of america"}


def _has_worldwide_us_tax(source_jurisdiction: str) -> bool:
    words = source_jurisdiction.lower().replace("_", " ").replace("-", " ").strip()
    tokens = set(words.split())
    return words in _US_NAMES or words.startswith("united states") or bool(tokens & {"us", "usa"})


def shows_tax_savings(payload: dict[str, Any], source_jurisdiction: str) -> bool:
    """Savings narrative is hidden when upstream says so or the client stays taxed worldwide as a US person."""
    return resolve(payload, "show_tax_savings") is not False and not _has_worldwide_us_tax(source_jurisdiction)


def _first_defined(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def via_negativa_state(payload: dict[str, Any], source_jurisdiction: str) -> ViaNegativaState | None:
    """None unless the structure verdict is the veto sentinel."""
    if not StructureVerdict.from_raw(resolve(payload, "structure_verdict")).is_veto:
        return None

    backend = coerce_dict(resolve(payload, "via_negativa"))
    cross_border = coerce_dict(resolve(payload, "cross_border_audit"))
    acquisition = coerce_dict(cross_border.get("acquisition_audit"))
    property_value = coerce_number(acquisition.get("property_value"), 0.0) or 0.0
    acquisition_cost = coerce_number(acquisition.get("total_acquisition_cost"), 0.0) or 0.0

    day_one_loss = coerce_number(
        _first_defined(backend.get("day_one_loss_pct"), acquisition.get("day_one_loss_pct")), 0.0
    ) or 0.0
    day_one_amount = coerce_number(backend.get("day_one_loss_amount"), None)
    if day_one_amount is None:
        day_one_amount = acquisition_cost - property_value

    tax_efficiency = backend.get("tax_efficiency_passed")
    if not isinstance(tax_efficiency, bool):
        savings_pct = coerce_number(cross_border.get("total_tax_savings_pct"), 0.0) or 0.0
        tax_efficiency = shows_tax_savings(payload, source_jurisdiction) and savings_pct > 0
    liquidity = backend.get("liquidity_passed")
    if not isinstance(liquidity, bool):
        liquidity = day_one_loss < LIQUIDITY_LOSS_THRESHOLD_PCT
    structure = backend.get("structure_passed")
    if not isinstance(structure, bool):
        structure = False

    header = coerce_dict(backend.get("header"))
    section = coerce_dict(backend.get("verdict_section"))
    cta = coerce_dict(backend.get("cta"))
    defaults = ViaNegativaState()
    template = coerce(cta.get("body_template")) or DEFAULT_CTA_TEMPLATE

    return ViaNegativaState(
        badge_label=coerce(header.get("badge_label")) or defaults.badge_label,
        day_one_loss_pct=day_one_loss,
        day_one_loss_amount=day_one_amount,
        tax_efficiency_passed=tax_efficiency,
        liquidity_passed=liquidity,
        structure_passed=structure,
        verdict_header=coerce(section.get("header")) or defaults.verdict_header,
        verdict_badge_label=coerce(section.get("badge_label")) or defaults.verdict_badge_label,
        stamp_text=coerce(section.get("stamp_text")) or defaults.stamp_text,
        stamp_subtext=coerce(section.get("stamp_subtext")) or defaults.stamp_subtext,
        cta_body=template.replace("{dayOneLoss}", f"{day_one_loss:.1f}", 1),
    )
