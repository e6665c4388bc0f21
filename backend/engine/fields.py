"""
Declarative alias table for audit payload fields.

Each canonical name maps to an ordered tuple of dotted access paths. Paths are
probed in order and the first one holding a value (not None, not "") wins, so
newer field names are listed before the legacy names they replaced.

Root-level names ("verdict", "heir_management") take the whole payload
({"intake_id", "preview_data", "memo_data", ...}). Entity-level names
("heir.allocation_pct", "peers.total") take one nested object from that payload.
"""
from __future__ import annotations

from typing import Any

FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    # --- header ---
    "intake_id": ("intake_id", "preview_data.intake_id"),
    "generated_at": ("generated_at", "memo_data.generated_at"),
    "source_jurisdiction": ("preview_data.source_jurisdiction",),
    "destination_jurisdiction": ("preview_data.destination_jurisdiction",),
    "exposure_class": ("preview_data.exposure_class",),
    # --- verdict ---
    "verdict": (
        "preview_data.risk_assessment.verdict",
        "risk_assessment.verdict",
        "preview_data.verdict",
    ),
    "verdict_rationale": ("preview_data.verdict_rationale",),
    "risk_level": (
        "preview_data.risk_assessment.risk_level",
        "risk_assessment.risk_level",
        "preview_data.risk_level",
    ),
    "total_exposure_formatted": (
        "preview_data.risk_assessment.total_exposure_formatted",
        "risk_assessment.total_exposure_formatted",
    ),
    "mitigation_timeline": ("mitigationTimeline", "risk_assessment.mitigation_timeline"),
    "data_quality": ("preview_data.data_quality",),
    "all_mistakes": ("preview_data.all_mistakes", "all_mistakes"),
    "risk_factors": ("preview_data.risk_factors",),
    "due_diligence": ("preview_data.due_diligence",),
    # --- pattern intelligence ---
    "value_creation": ("preview_data.total_savings", "preview_data.value_creation"),
    "precedent_count": (
        "preview_data.precedent_count",
        "memo_data.kgv3_intelligence_used.precedents",
        "memo_data.kgv3_intelligence_used.precedents_reviewed",
    ),
    "failure_modes": ("memo_data.kgv3_intelligence_used.failure_modes",),
    "sequencing_rules": ("memo_data.kgv3_intelligence_used.sequencing_rules",),
    # --- tax ---
    "cumulative_tax_differential": ("preview_data.tax_differential.cumulative_tax_differential_pct",),
    "total_tax_benefit": ("preview_data.total_tax_benefit",),
    "source_tax_rates": ("preview_data.source_tax_rates", "preview_data.tax_differential.source"),
    "destination_tax_rates": (
        "preview_data.destination_tax_rates",
        "preview_data.tax_differential.destination",
    ),
    "show_tax_savings": ("preview_data.show_tax_savings",),
    # --- peer / market ---
    "peer_cohort_stats": ("preview_data.peer_cohort_stats",),
    "capital_flow": ("preview_data.capital_flow_data",),
    "opportunities": ("preview_data.all_opportunities",),
    "execution_sequence": ("preview_data.execution_sequence",),
    # --- expert sections ---
    "transparency": ("preview_data.transparency_data", "memo_data.transparency_data"),
    "transparency_text": (
        "preview_data.transparency_regime_impact",
        "memo_data.transparency_regime_impact",
    ),
    "crisis": ("preview_data.crisis_data", "memo_data.crisis_data"),
    "crisis_text": (
        "preview_data.crisis_resilience_stress_test",
        "memo_data.crisis_resilience_stress_test",
    ),
    "wealth_projection": ("preview_data.wealth_projection_data", "memo_data.wealth_projection_data"),
    "scenario_tree": ("preview_data.scenario_tree_data", "memo_data.scenario_tree_data"),
    "heir_management": ("preview_data.heir_management_data", "memo_data.heir_management_data"),
    "real_asset_audit": ("preview_data.real_asset_audit",),
    "visa_programs": ("preview_data.destination_drivers.visa_programs",),
    "hnwi_trends_analysis": ("preview_data.hnwi_trends_analysis",),
    "hnwi_trends": ("preview_data.hnwi_trends",),
    "hnwi_trends_confidence": ("preview_data.hnwi_trends_confidence",),
    "regime_intelligence": (
        "preview_data.peer_cohort_stats.regime_intelligence",
        "preview_data.regime_intelligence",
    ),
    # --- via negativa ---
    "structure_verdict": ("preview_data.structure_optimization.verdict",),
    "via_negativa": ("preview_data.via_negativa",),
    "cross_border_audit": (
        "preview_data.wealth_projection_data.starting_position.cross_border_audit_summary",
    ),
    # --- entity: risk item (all_mistakes / risk_factors entry) ---
    "risk.title": ("title", "name"),
    "risk.cost": ("cost", "cost_display"),
    "risk.exposure_numeric": ("cost_numeric", "exposure_amount"),
    "risk.urgency": ("urgency", "severity"),
    "risk.mitigation": ("fix", "mitigation"),
    # --- entity: due diligence item ---
    "diligence.task": ("task", "item", "title"),
    # --- entity: tax rate table ---
    "tax.income_tax": ("income_tax",),
    "tax.capital_gains": ("capital_gains", "cgt"),
    "tax.estate_tax": ("estate_tax",),
    "tax.wealth_tax": ("wealth_tax",),
    # --- entity: wealth projection ---
    "wealth.starting_value": (
        "starting_position.transaction_value",
        "starting_position.transaction_amount",
        "starting_position.current_net_worth",
        "starting_value",
        "transaction_value",
    ),
    "scenario.year_10_value": (
        "ten_year_outcome.final_value",
        "ten_year_outcome.final_total_value",
        "year_10_value",
    ),
    "scenario.value_creation": ("ten_year_outcome.total_value_creation",),
    # --- entity: peer cohort stats ---
    "peers.total": ("total_peers", "total_hnwis"),
    "peers.recent": ("last_6_months", "recent_movements"),
    # --- entity: opportunity / execution step ---
    "opportunity.title": ("title", "name"),
    "opportunity.category": ("category", "type"),
    "opportunity.value": ("potential_value", "value"),
    "step.title": ("title", "action", "step"),
    "step.description": ("description", "detail"),
    # --- entity: transparency payload ---
    "transparency.regime": ("framework", "regime"),
    "transparency.exposure": ("your_exposure", "exposure"),
    "transparency.total_exposure": (
        "bottom_line.total_exposure_if_noncompliant",
        "bottom_line.total_exposure",
    ),
    "transparency.compliance_cost": (
        "bottom_line.estimated_compliance_cost",
        "bottom_line.compliance_cost",
    ),
    "transparency.immediate_actions": ("bottom_line.immediate_actions", "immediate_actions"),
    # --- entity: crisis payload ---
    "crisis.worst_case_loss": ("overall_resilience.worst_case_loss", "key_metrics.worst_case_loss"),
    "crisis.recovery_time": ("overall_resilience.recovery_time", "key_metrics.recovery_time"),
    "crisis.buffer_required": ("overall_resilience.buffer_required", "key_metrics.required_buffer"),
    "crisis.summary": ("overall_resilience.summary", "overall_resilience.description"),
    "crisis_scenario.severity": ("severity", "risk_level"),
    # --- entity: golden visa program ---
    "visa.name": ("program_name", "name"),
    "visa.minimum_investment": ("minimum_investment", "investment_min"),
    "visa.benefits": ("key_benefits", "benefits"),
    # --- entity: scenario tree ---
    "gate.day": ("day", "gate_number"),
    "gate.check": ("check", "gate"),
    # --- entity: heir management ---
    "heirs.current_risk": (
        "third_generation_problem.loss_without_structure_pct",
        "third_generation_risk.current_probability_of_loss",
        "third_generation_risk.current",
    ),
    "heirs.with_structure_risk": (
        "third_generation_problem.loss_with_structure_pct",
        "third_generation_risk.with_structure_probability",
        "third_generation_risk.with_structure",
    ),
    "heirs.preservation": (
        "third_generation_problem.preservation_with_structure_pct",
        "with_structure.preservation_percentage",
    ),
    "heirs.recommended_structure": ("with_structure.recommended_structure", "recommended_structure"),
    "heirs.top_risk": ("top_succession_trigger", "top_succession_risk"),
    "heirs.g3_loss_rate": ("hughes_framework.third_generation_problem.loss_rate_without_structure",),
    "heir.allocation_pct": ("allocation_pct", "allocation_percent"),
    "heir.allocation_value": ("allocation_value", "allocation_amount"),
    "heir.structure": ("recommended_structure", "structure"),
    "succession.text": ("trigger", "risk"),
    "succession.amount": ("dollars_at_risk", "at_risk_amount"),
    # --- entity: real asset audit jurisdiction ---
    "trust.name": ("name", "jurisdiction"),
    "trusts.recommended": ("recommended", "best_for_perpetuity"),
    "vehicle.type": ("vehicle_type", "type"),
    "vehicle.benefits": ("tax_benefits", "benefits"),
}


def _walk(payload: Any, path: str) -> Any:
    node = payload
    for part in path.split("."):
        if not isinstance(node, dict):
            return None
        node = node.get(part)
    return node


def _is_present(value: Any) -> bool:
    return value is not None and value != ""


def resolve(payload: Any, canonical_name: str, default: Any = None) -> Any:
    """
    First present value among the aliases registered for canonical_name.
    No type coercion; callers run the value through engine.coerce.
    """
    paths = FIELD_ALIASES.get(canonical_name)
    if paths is None:
        raise KeyError(f"No aliases registered for {canonical_name!r}")
    for path in paths:
        value = _walk(payload, path)
        if _is_present(value):
            return value
    return default


def resolved_path(payload: Any, canonical_name: str) -> str | None:
    """Which alias path supplied the value; None when nothing matched."""
    for path in FIELD_ALIASES.get(canonical_name, ()):
        if _is_present(_walk(payload, path)):
            return path
    return None
