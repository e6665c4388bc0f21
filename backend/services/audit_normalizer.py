"""
Audit normalization: raw analytics payload to canonical PatternAudit.

Accepts the payload exactly as the analytics service returns it
({success, intake_id, generated_at, preview_data, memo_data}); every field is
optional and several concepts live under more than one historical name.
Field names are looked up through engine.fields, values go through
engine.coerce, and aggregates come from engine.metrics. Nothing here raises on
payload content: absent or malformed pieces fall back to documented defaults.
The input dict is never mutated.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any, Dict, List, Optional

from engine.amounts import parse_amount
from engine.coerce import (
    coerce,
    coerce_dict,
    coerce_int,
    coerce_list,
    coerce_number,
    coerce_text_list,
)
from engine.fields import resolve, resolved_path
from engine.metrics import (
    TAX_CATEGORIES,
    category_differential,
    confidence_bars,
    cumulative_tax_differential,
    due_diligence_timeline,
    find_scenario,
    has_any_rate,
    normalize_percent,
    risk_item_exposure,
    round_half_up,
    scenario_triple,
    severity_counts,
    succession_improvement,
    succession_urgency,
    tax_rate,
    total_exposure,
    value_creation,
)
from engine.sections import shows_tax_savings, via_negativa_state
from models import (
    AuditHeader,
    ComplianceRisk,
    CrisisRecommendation,
    CrisisResilience,
    CrisisScenario,
    DecisionGate,
    DueDiligenceItem,
    EstateTaxByHeirType,
    ExecutionSection,
    ExecutionStep,
    GoldenVisaSection,
    HeirAllocation,
    HeirManagement,
    HnwiTrends,
    JurisdictionAssetAudit,
    LoopholeStrategy,
    Opportunity,
    OpportunitySection,
    OverallResilience,
    PatternAudit,
    PatternIntelligence,
    PeerIntelligence,
    ProjectionScenario,
    RealAssetAudit,
    RegimeIntelligence,
    RegimeTrigger,
    RegimeWarning,
    RiskFactor,
    ScenarioBranch,
    ScenarioTree,
    Severity,
    SuccessionRisk,
    SuccessionVehicle,
    TaxCategoryRow,
    TaxComparison,
    TaxRates,
    TransparencyImpact,
    TrendInsight,
    TriggerShape,
    Verdict,
    ViaNegativaState,
    VisaProgram,
    WealthProjection,
)
from reporting.format_utils import clean_jurisdiction

_LOG = logging.getLogger(__name__)

MAX_OPPORTUNITIES = 8
MAX_EXECUTION_STEPS = 6
MAX_NOT_TRIGGERED = 3
MAX_COMPLIANCE_RISKS = 3
MAX_IMMEDIATE_ACTIONS = 3
MAX_DYNASTY_TRUSTS = 4

BRANCH_DISPLAY_NAMES = {
    "PROCEED_NOW": "Proceed Now",
    "PROCEED_MODIFIED": "Proceed Modified",
    "DO_NOT_PROCEED": "Do Not Proceed",
}
# (legacy dict key, branch name, default probability pct)
LEGACY_BRANCHES = (
    ("proceed_now", "PROCEED_NOW", 35),
    ("proceed_modified", "PROCEED_MODIFIED", 42),
    ("do_not_proceed", "DO_NOT_PROCEED", 23),
)

_EMBEDDED_JSON = re.compile(r"\{[\s\S]*\}")


def document_reference(intake_id: str) -> str:
    return intake_id[10:22].upper()


def _embedded_json(text: Any) -> Optional[Dict[str, Any]]:
    """First {...} block inside a free-text expert section, when it parses to an object."""
    if not isinstance(text, str) or not text:
        return None
    match = _EMBEDDED_JSON.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(0))
    except (ValueError, RecursionError):
        _LOG.debug("[audit] embedded section JSON did not parse (len=%d)", len(text))
        return None
    return parsed if isinstance(parsed, dict) else None


def _dicts(value: Any) -> List[Dict[str, Any]]:
    return [item for item in coerce_list(value) if isinstance(item, dict)]


def _amount_and_display(raw: Any) -> tuple[float, Optional[str]]:
    if isinstance(raw, str):
        return parse_amount(raw), raw
    return coerce_number(raw, 0.0) or 0.0, None


# --- header / pattern intelligence ---
def payload_reference(payload: Any) -> str:
    """Document reference straight from a raw payload, without normalizing it."""
    data = payload if isinstance(payload, dict) else {}
    return document_reference(coerce(resolve(data, "intake_id")))


def _header(payload: Dict[str, Any]) -> AuditHeader:
    intake_id = coerce(resolve(payload, "intake_id"))
    return AuditHeader(
        intake_id=intake_id,
        reference=document_reference(intake_id),
        generated_at=coerce(resolve(payload, "generated_at")),
        source_jurisdiction=coerce(resolve(payload, "source_jurisdiction"), "Unknown"),
        destination_jurisdiction=coerce(resolve(payload, "destination_jurisdiction"), "Unknown"),
    )


def _intelligence(payload: Dict[str, Any], total_tax_benefit_pct: int) -> PatternIntelligence:
    amount, display = value_creation(resolve(payload, "value_creation"))
    return PatternIntelligence(
        value_creation=amount,
        value_creation_display=display,
        exposure_class=coerce(resolve(payload, "exposure_class"), "Strategic Investor"),
        precedent_count=coerce_int(resolve(payload, "precedent_count"), 21),
        failure_modes=coerce_int(resolve(payload, "failure_modes"), 2) or 2,
        sequencing_rules=coerce_int(resolve(payload, "sequencing_rules"), 2) or 2,
        total_tax_benefit_pct=total_tax_benefit_pct,
    )


# --- verdict ---
def _severity(item: Dict[str, Any]) -> Severity:
    urgency = coerce(resolve(item, "risk.urgency")).upper()
    for severity in Severity:
        if severity.value.upper() in urgency:
            return severity
    return Severity.MEDIUM


def _risk_factor(item: Dict[str, Any]) -> RiskFactor:
    cost = resolve(item, "risk.cost")
    days = item.get("mitigation_timeline_days")
    return RiskFactor(
        title=coerce(resolve(item, "risk.title"), "Unspecified Risk"),
        severity=_severity(item),
        exposure_amount=risk_item_exposure(item),
        cost_display=coerce(cost) or None,
        mitigation=coerce(resolve(item, "risk.mitigation")) or None,
        mitigation_timeline_days=coerce_int(days) if days is not None else None,
        mitigation_action_type=coerce(item.get("mitigation_action_type")) or None,
        timeline_source=coerce(item.get("timeline_source")) or None,
    )


def _due_diligence(payload: Dict[str, Any]) -> List[DueDiligenceItem]:
    out: List[DueDiligenceItem] = []
    for item in _dicts(resolve(payload, "due_diligence")):
        priority = coerce(item.get("priority"), "medium").lower() or "medium"
        out.append(
            DueDiligenceItem(
                task=coerce(resolve(item, "diligence.task"), "Review item"),
                category=coerce(item.get("category")),
                priority=priority,
                timeline=coerce(item.get("timeline")) or due_diligence_timeline(priority),
                responsible=coerce(item.get("responsible")),
            )
        )
    return out


def _verdict(
    payload: Dict[str, Any],
    header: AuditHeader,
    precedent_count: int,
    opportunity_count: int,
    veto: Optional[ViaNegativaState],
) -> Verdict:
    raw_mistakes = coerce_list(resolve(payload, "all_mistakes"))
    raw_risk_factors = coerce_list(resolve(payload, "risk_factors"))
    items = _dicts(raw_mistakes) if raw_mistakes else _dicts(raw_risk_factors)
    risk_factors = [_risk_factor(item) for item in items]

    formatted_total = resolve(payload, "total_exposure_formatted")
    risk_level = coerce(resolve(payload, "risk_level"), "MODERATE")
    data_quality = coerce(resolve(payload, "data_quality"), "Strong")

    rationale = coerce(resolve(payload, "verdict_rationale"))
    if not rationale:
        rationale = (
            veto.stamp_subtext
            if veto is not None
            else (
                f"Risk level assessed as {risk_level}. Proceed with structured monitoring and "
                "targeted due diligence as outlined in this assessment."
            )
        )

    return Verdict(
        label=coerce(resolve(payload, "verdict"), "CONDITIONAL"),
        rationale=rationale,
        risk_level=risk_level,
        opportunity_count=opportunity_count,
        risk_factor_count=len(raw_mistakes) if raw_mistakes else len(raw_risk_factors),
        data_quality=data_quality,
        confidence_bars=confidence_bars(data_quality),
        precedent_count=precedent_count,
        total_exposure=total_exposure(formatted_total, items),
        total_exposure_display=coerce(formatted_total) or None,
        severity_counts=severity_counts(r.severity.value for r in risk_factors),
        risk_factors=risk_factors,
        due_diligence=_due_diligence(payload),
        mitigation_timeline=coerce(resolve(payload, "mitigation_timeline")),
        source_jurisdiction=clean_jurisdiction(header.source_jurisdiction),
        destination_jurisdiction=clean_jurisdiction(header.destination_jurisdiction),
    )


# --- tax ---
def _tax(payload: Dict[str, Any], header: AuditHeader) -> TaxComparison:
    source_raw = resolve(payload, "source_tax_rates")
    destination_raw = resolve(payload, "destination_tax_rates")
    rows: List[TaxCategoryRow] = []
    for key, label in TAX_CATEGORIES:
        s, d = tax_rate(source_raw, key), tax_rate(destination_raw, key)
        rows.append(
            TaxCategoryRow(
                category=key,
                label=label,
                source_rate=s,
                destination_rate=d,
                differential=category_differential(s, d),
            )
        )

    cumulative = coerce_number(resolve(payload, "cumulative_tax_differential"), None)
    if cumulative is None and (has_any_rate(source_raw) or has_any_rate(destination_raw)):
        cumulative = cumulative_tax_differential(source_raw, destination_raw)
    if cumulative is None:
        cumulative = coerce_number(resolve(payload, "total_tax_benefit"), 0.0) or 0.0

    return TaxComparison(
        source_jurisdiction=header.source_jurisdiction,
        destination_jurisdiction=header.destination_jurisdiction,
        source=TaxRates(**{key: tax_rate(source_raw, key) for key, _ in TAX_CATEGORIES}),
        destination=TaxRates(**{key: tax_rate(destination_raw, key) for key, _ in TAX_CATEGORIES}),
        rows=rows,
        cumulative_differential_pct=round_half_up(cumulative),
        show_tax_savings=shows_tax_savings(payload, header.source_jurisdiction),
    )


# --- wealth projection ---
def _wealth_projection(payload: Dict[str, Any]) -> Optional[WealthProjection]:
    raw = coerce_dict(resolve(payload, "wealth_projection"))
    if not raw:
        return None
    scenarios = raw.get("scenarios")
    triple = scenario_triple(scenarios)
    starting_value = coerce_number(resolve(raw, "wealth.starting_value"), 0.0) or 0.0

    built: Dict[str, ProjectionScenario] = {}
    for key, (probability_pct, year_10_value) in triple.items():
        entry = find_scenario(scenarios, key)
        built[key] = ProjectionScenario(
            name=key,
            present=entry is not None,
            probability_pct=probability_pct,
            year_10_value=year_10_value,
            growth_rate=coerce((entry or {}).get("growth_rate")),
            verdict=coerce((entry or {}).get("verdict")),
        )

    base_entry = find_scenario(scenarios, "base") or {}
    base_value_creation = coerce_number(resolve(base_entry, "scenario.value_creation"), 0.0) or (
        built["base"].year_10_value - starting_value
    )

    cost_of_inaction: Dict[int, float] = {}
    inaction = coerce_dict(raw.get("cost_of_inaction"))
    for year in (1, 5, 10):
        amount = coerce_number(inaction.get(f"year_{year}"), None)
        if amount is not None:
            cost_of_inaction[year] = amount

    return WealthProjection(
        starting_value=starting_value,
        base=built["base"],
        stress=built["stress"],
        opportunity=built["opportunity"],
        base_value_creation=base_value_creation,
        cost_of_inaction=cost_of_inaction,
    )


# --- peer / market ---
def _peers(payload: Dict[str, Any]) -> PeerIntelligence:
    stats = coerce_dict(resolve(payload, "peer_cohort_stats"))
    flow = coerce_dict(resolve(payload, "capital_flow"))

    average_value_m = coerce_number(stats.get("avg_deal_value_m"), None)
    average_raw = stats.get("average_value")
    display: Optional[str] = None
    if average_value_m is not None and math.isfinite(average_value_m * 1_000_000):
        average_value = average_value_m * 1_000_000
    elif isinstance(average_raw, (int, float)) and not isinstance(average_raw, bool):
        average_value = coerce_number(average_raw, 17_500_000.0) or 0.0
    elif average_raw:
        display = coerce(average_raw) or None
        average_value = parse_amount(display) if display else 17_500_000.0
    else:
        average_value = 17_500_000.0

    total_peers = coerce_int(resolve(stats, "peers.total"), 21)
    return PeerIntelligence(
        stats_present=bool(stats),
        total_peers=total_peers,
        recent_movements=coerce_int(resolve(stats, "peers.recent"), 8),
        average_deal_value=average_value,
        average_deal_value_display=display,
        movement_velocity_pct=coerce_int(stats.get("movement_velocity"), 80),
        capital_flow_present=bool(flow),
        flow_intensity=coerce(flow.get("velocity"), coerce(stats.get("flow_intensity"), "0.72")),
        peers_in_corridor=coerce_int(flow.get("peers_in_corridor"), coerce_int(stats.get("total_hnwis"), 21)),
    )


def _opportunities(raw_items: List[Any]) -> OpportunitySection:
    items: List[Opportunity] = []
    for idx, entry in enumerate(raw_items[:MAX_OPPORTUNITIES]):
        item = entry if isinstance(entry, dict) else {"title": entry}
        value, display = _amount_and_display(resolve(item, "opportunity.value"))
        items.append(
            Opportunity(
                title=coerce(resolve(item, "opportunity.title"), f"Opportunity {idx + 1}"),
                category=coerce(resolve(item, "opportunity.category"), "Strategic"),
                rating=coerce(item.get("rating"), "Moderate"),
                potential_value=value,
                potential_value_display=display,
                description=coerce(item.get("description")),
                timeline=coerce(item.get("timeline")),
            )
        )
    return OpportunitySection(items=items)


def _execution(payload: Dict[str, Any]) -> ExecutionSection:
    steps: List[ExecutionStep] = []
    for idx, entry in enumerate(coerce_list(resolve(payload, "execution_sequence"))[:MAX_EXECUTION_STEPS]):
        item = entry if isinstance(entry, dict) else {"title": entry}
        steps.append(
            ExecutionStep(
                step=idx + 1,
                title=coerce(resolve(item, "step.title"), f"Step {idx + 1}"),
                description=coerce(resolve(item, "step.description")),
                timeline=coerce(item.get("timeline")),
            )
        )
    return ExecutionSection(steps=steps)


# --- transparency ---
def _regime_trigger(entry: Any) -> RegimeTrigger:
    if not isinstance(entry, dict):
        return RegimeTrigger(framework=coerce(entry, "Reporting regime"))
    return RegimeTrigger(
        framework=coerce(resolve(entry, "transparency.regime"), "Reporting regime"),
        threshold=coerce(entry.get("threshold")),
        exposure=coerce(resolve(entry, "transparency.exposure")),
        deadline=coerce(entry.get("deadline")),
        penalty=coerce(entry.get("penalty")),
    )


def _transparency(payload: Dict[str, Any]) -> Optional[TransparencyImpact]:
    raw = resolve(payload, "transparency")
    if not isinstance(raw, dict) or not raw:
        raw = _embedded_json(resolve(payload, "transparency_text"))
    if not raw:
        return None

    reporting = _dicts(raw.get("reporting_triggers"))
    triggered = [t for t in reporting if t.get("status") == "TRIGGERED"] or coerce_list(raw.get("triggered"))
    not_triggered = [
        t for t in reporting if t.get("status") in ("NOT_TRIGGERED", "NOT TRIGGERED")
    ] or coerce_list(raw.get("not_triggered"))

    risks = [
        ComplianceRisk(
            regime=coerce(resolve(r, "transparency.regime"), "Compliance risk"),
            consequence=coerce(r.get("consequence")),
            exposure=coerce(r.get("exposure")),
            fix=coerce(r.get("fix")),
        )
        for r in _dicts(raw.get("compliance_risks"))[:MAX_COMPLIANCE_RISKS]
    ]

    exposure_display = coerce(resolve(raw, "transparency.total_exposure"), "$0")
    return TransparencyImpact(
        payload_shape=TriggerShape.REPORTING_TRIGGERS if reporting else TriggerShape.LEGACY,
        triggered=[_regime_trigger(t) for t in triggered],
        not_triggered=[_regime_trigger(t) for t in not_triggered[:MAX_NOT_TRIGGERED]],
        compliance_risks=risks,
        bottom_line_present=isinstance(raw.get("bottom_line"), dict),
        exposure_if_noncompliant=parse_amount(exposure_display),
        exposure_display=exposure_display,
        compliance_cost_display=coerce(resolve(raw, "transparency.compliance_cost"), "$10,000-25,000"),
        immediate_actions=coerce_text_list(
            resolve(raw, "transparency.immediate_actions"), MAX_IMMEDIATE_ACTIONS
        ),
        risk_level=coerce(raw.get("risk_level")),
    )


# --- crisis ---
def _crisis(payload: Dict[str, Any]) -> Optional[CrisisResilience]:
    raw = resolve(payload, "crisis")
    if not isinstance(raw, dict) or not raw:
        parsed = _embedded_json(resolve(payload, "crisis_text"))
        if parsed and (parsed.get("scenarios") or parsed.get("overall_resilience") or parsed.get("recommendations")):
            raw = parsed
        else:
            return None

    overall: Optional[OverallResilience] = None
    overall_raw = raw.get("overall_resilience")
    if overall_raw:
        overall_dict = coerce_dict(overall_raw)
        overall = OverallResilience(
            score=coerce_number(overall_dict.get("score"), None),
            rating=coerce(overall_dict.get("rating")),
            summary=coerce(resolve(raw, "crisis.summary")) or (overall_raw if isinstance(overall_raw, str) else ""),
            worst_case_loss=parse_amount(resolve(raw, "crisis.worst_case_loss")),
            recovery_time=coerce(resolve(raw, "crisis.recovery_time")),
            buffer_required=parse_amount(resolve(raw, "crisis.buffer_required")),
        )

    scenarios: List[CrisisScenario] = []
    for idx, s in enumerate(_dicts(raw.get("scenarios"))):
        impact, impact_display = _amount_and_display(s.get("impact"))
        scenarios.append(
            CrisisScenario(
                name=coerce(s.get("name"), f"Scenario {idx + 1}"),
                severity=coerce(resolve(s, "crisis_scenario.severity")).lower(),
                stress_factor=coerce(s.get("stress_factor")),
                impact=impact,
                impact_display=impact_display,
                recovery=coerce(s.get("recovery")),
                verdict=coerce(s.get("verdict")),
            )
        )

    recommendations: List[CrisisRecommendation] = []
    for r in coerce_list(raw.get("recommendations")):
        entry = r if isinstance(r, dict) else {"action": r}
        action = coerce(entry.get("action"))
        if action:
            recommendations.append(
                CrisisRecommendation(
                    priority=coerce(entry.get("priority")),
                    action=action,
                    rationale=coerce(entry.get("rationale")),
                )
            )

    return CrisisResilience(overall=overall, scenarios=scenarios, recommendations=recommendations)


# --- real asset audit ---
def _jurisdiction_audit(key: str, data: Dict[str, Any]) -> JurisdictionAssetAudit:
    stamp = coerce_dict(data.get("stamp_duty"))
    trusts = coerce_dict(data.get("dynasty_trusts"))
    freeport = coerce_dict(data.get("freeport_options"))

    trust_names: List[str] = []
    if trusts.get("found"):
        for t in coerce_list(trusts.get("jurisdictions"))[:MAX_DYNASTY_TRUSTS]:
            name = coerce(resolve(t, "trust.name")) if isinstance(t, dict) else coerce(t)
            if name:
                trust_names.append(name)

    freeports: List[str] = []
    if freeport.get("found"):
        freeports = [coerce(f.get("name")) if isinstance(f, dict) else coerce(f) for f in coerce_list(freeport.get("freeports"))]
        freeports = [f for f in freeports if f]

    return JurisdictionAssetAudit(
        jurisdiction=clean_jurisdiction(key),
        stamp_duty_found=bool(stamp.get("found")),
        foreign_buyer_surcharge_pct=coerce_number(
            coerce_dict(stamp.get("foreign_buyer_surcharge")).get("rate_pct"), None
        ),
        statute_citation=coerce(stamp.get("statute_citation")),
        loophole_strategies=[
            LoopholeStrategy(
                name=coerce(s.get("name"), "Strategy"),
                description=coerce(s.get("description")),
                tax_savings_potential=coerce(s.get("tax_savings_potential")),
                risk_level=coerce(s.get("risk_level")),
            )
            for s in _dicts(data.get("loophole_strategies"))
        ],
        dynasty_trusts=trust_names,
        recommended_trust=coerce(resolve(trusts, "trusts.recommended")),
        succession_vehicles=[
            SuccessionVehicle(
                name=coerce(v.get("name"), "Vehicle"),
                vehicle_type=coerce(resolve(v, "vehicle.type"), "Vehicle"),
                benefits=coerce_text_list(resolve(v, "vehicle.benefits"), 2),
            )
            for v in _dicts(data.get("succession_vehicles"))
        ],
        freeports=freeports,
    )


def _real_asset_audit(payload: Dict[str, Any]) -> RealAssetAudit:
    raw = coerce_dict(resolve(payload, "real_asset_audit"))
    return RealAssetAudit(
        jurisdictions=[
            _jurisdiction_audit(key, data)
            for key, data in raw.items()
            if not str(key).startswith("_") and isinstance(data, dict)
        ]
    )


# --- golden visa / trends / regimes ---
def _golden_visa(payload: Dict[str, Any], header: AuditHeader) -> GoldenVisaSection:
    programs = [
        VisaProgram(
            name=coerce(resolve(p, "visa.name"), "Investment Migration Program"),
            minimum_investment=coerce(resolve(p, "visa.minimum_investment")),
            duration=coerce(p.get("duration")),
            processing_time=coerce(p.get("processing_time")),
            benefits=coerce_text_list(resolve(p, "visa.benefits")),
            path_to_citizenship=p.get("path_to_citizenship") if isinstance(p.get("path_to_citizenship"), bool) else None,
            status=coerce(p.get("status")),
        )
        for p in _dicts(resolve(payload, "visa_programs"))
    ]
    return GoldenVisaSection(
        destination_jurisdiction=clean_jurisdiction(header.destination_jurisdiction),
        programs=programs,
    )


def _hnwi_trends(payload: Dict[str, Any]) -> Optional[HnwiTrends]:
    analysis = resolve(payload, "hnwi_trends_analysis")
    if analysis is None:
        trends = resolve(payload, "hnwi_trends")
        if isinstance(trends, list):
            analysis = {
                "insights": [{"content": t} for t in trends],
                "confidence": resolve(payload, "hnwi_trends_confidence"),
            }
        else:
            analysis = trends
    if not isinstance(analysis, dict):
        return None

    insights: List[TrendInsight] = []
    for entry in coerce_list(analysis.get("insights")):
        item = entry if isinstance(entry, dict) else {"content": entry}
        content = coerce(item.get("content"))
        if content:
            insights.append(TrendInsight(content=content, type=coerce(item.get("type"))))
    return HnwiTrends(insights=insights, confidence_pct=normalize_percent(analysis.get("confidence"), None))


def _regime_intelligence(payload: Dict[str, Any]) -> Optional[RegimeIntelligence]:
    raw = coerce_dict(resolve(payload, "regime_intelligence"))
    scenario = raw.get("regime_scenario")
    if not raw.get("has_special_regime") or not isinstance(scenario, dict):
        return None
    status = coerce(scenario.get("status")).lower()
    if status == "active":
        status_label = "ACTIVE"
    elif status == "ended":
        status_label = "ENDED"
    else:
        status_label = "ENDING SOON"
    return RegimeIntelligence(
        regime_name=coerce(scenario.get("regime_name"), "Special Tax Regime"),
        status_label=status_label,
        end_date=coerce(scenario.get("end_date")),
        successor_regime=coerce(scenario.get("successor_regime")),
        action_required=coerce(scenario.get("action_required")),
        key_benefits=coerce_text_list(scenario.get("key_benefits")),
        with_regime_differential=coerce_number(coerce_dict(scenario.get("with_regime")).get("tax_differential"), None),
        without_regime_differential=coerce_number(
            coerce_dict(scenario.get("without_regime")).get("tax_differential"), None
        ),
        warnings=[
            RegimeWarning(
                regime=coerce(w.get("regime"), "Regime"),
                status=coerce(w.get("status")),
                warning=coerce(w.get("warning")),
            )
            for w in _dicts(raw.get("regime_warnings"))
        ],
    )


# --- scenario tree ---
def _scenario_tree(payload: Dict[str, Any]) -> Optional[ScenarioTree]:
    raw = coerce_dict(resolve(payload, "scenario_tree"))
    if not raw:
        return None
    recommended = coerce(raw.get("recommended_branch") or raw.get("recommended")).upper()
    branches_raw = raw.get("branches")
    branches: List[ScenarioBranch] = []

    if isinstance(branches_raw, list):
        for idx, b in enumerate(_dicts(branches_raw)):
            name = coerce(b.get("name"))
            strength = coerce_number(b.get("recommendation_strength"), None)
            probability = round_half_up(strength * 100) if strength else coerce_int(b.get("probability"), 0)
            branches.append(
                ScenarioBranch(
                    key=name,
                    display_name=BRANCH_DISPLAY_NAMES.get(name, name or f"Pathway {idx + 1}"),
                    probability_pct=probability,
                    expected_value=coerce_number(b.get("expected_value"), 0.0) or 0.0,
                    risk_level=coerce(b.get("risk_level")),
                    recommended=bool(name) and (name == recommended or name == "PROCEED_MODIFIED"),
                )
            )
    elif isinstance(branches_raw, dict):
        for key, name, default_probability in LEGACY_BRANCHES:
            b = branches_raw.get(key)
            if not isinstance(b, dict) or not b:
                continue
            branches.append(
                ScenarioBranch(
                    key=name,
                    display_name=BRANCH_DISPLAY_NAMES[name],
                    probability_pct=coerce_int(b.get("probability"), 0) or default_probability,
                    expected_value=coerce_number(b.get("expected_value"), 0.0) or 0.0,
                    risk_level=coerce(b.get("risk_level")),
                    recommended=recommended in (name, key.upper()),
                )
            )

    gates: List[DecisionGate] = []
    for idx, g in enumerate(_dicts(raw.get("decision_gates"))):
        gates.append(
            DecisionGate(
                day=coerce_int(resolve(g, "gate.day"), 0) or idx + 1,
                check=coerce(resolve(g, "gate.check"), f"Gate {idx + 1}"),
                if_pass=coerce(g.get("if_pass")) or "Continue",
                if_fail=coerce(g.get("if_fail")) or "Review",
            )
        )

    return ScenarioTree(recommended_branch=recommended, branches=branches, gates=gates)


# --- heir management ---
def _estate_tax(raw: Dict[str, Any]) -> Optional[EstateTaxByHeirType]:
    et = coerce_dict(raw.get("estate_tax_by_heir_type"))
    if not et:
        return None
    flat = "spouse_rate" in et or "children_rate" in et
    values: Dict[str, Any] = {"headline": coerce(et.get("headline"))}
    for heir_type in ("spouse", "children", "non_lineal"):
        if flat:
            rate, summary = et.get(f"{heir_type}_rate"), et.get(f"{heir_type}_summary")
        else:
            nested = coerce_dict(et.get(heir_type))
            rate, summary = nested.get("rate"), nested.get("exemption")
        values[f"{heir_type}_rate"] = coerce_number(rate, None)
        values[f"{heir_type}_summary"] = coerce(summary)
    return EstateTaxByHeirType(**values)


def _succession_risk(raw: Dict[str, Any]) -> Optional[SuccessionRisk]:
    risk = coerce_dict(resolve(raw, "heirs.top_risk"))
    if not risk:
        return None
    days_raw = risk.get("mitigation_timeline_days")
    days = coerce_int(days_raw) if days_raw is not None else None
    return SuccessionRisk(
        text=coerce(resolve(risk, "succession.text"), "Succession risk identified"),
        amount_at_risk=coerce_number(resolve(risk, "succession.amount"), 0.0) or 0.0,
        mitigation=coerce(risk.get("mitigation")),
        mitigation_timeline=coerce(risk.get("mitigation_timeline")),
        mitigation_days=days,
        urgency=succession_urgency(days),
    )


def _heir_allocation(idx: int, heir: Dict[str, Any]) -> HeirAllocation:
    age = coerce_number(heir.get("age"), None)
    return HeirAllocation(
        name=coerce(heir.get("name"), f"Heir {idx + 1}"),
        relationship=coerce(heir.get("relationship"), "Beneficiary"),
        generation=coerce(heir.get("generation"), "G2"),
        age=int(age) if age is not None else None,
        allocation_pct=normalize_percent(resolve(heir, "heir.allocation_pct"), 0),
        allocation_value=coerce_number(resolve(heir, "heir.allocation_value"), 0.0) or 0.0,
        recommended_structure=coerce(resolve(heir, "heir.structure")),
        structure_rationale=coerce(heir.get("structure_rationale")),
        timing=coerce(heir.get("timing")),
        special_considerations=coerce_text_list(heir.get("special_considerations") or heir.get("notes")),
    )


def _heir_management(payload: Dict[str, Any]) -> Optional[HeirManagement]:
    raw = coerce_dict(resolve(payload, "heir_management"))
    if not raw:
        return None
    current_raw = resolve(raw, "heirs.current_risk")
    structured_raw = resolve(raw, "heirs.with_structure_risk")
    hughes = coerce_dict(coerce_dict(raw.get("hughes_framework")).get("third_generation_problem"))
    return HeirManagement(
        current_risk_pct=normalize_percent(current_raw, 70),
        with_structure_risk_pct=normalize_percent(structured_raw, 7),
        improvement_pts=succession_improvement(current_raw, structured_raw),
        preservation_pct=normalize_percent(resolve(raw, "heirs.preservation"), 93),
        recommended_structure=coerce(resolve(raw, "heirs.recommended_structure")),
        allocations=[_heir_allocation(i, h) for i, h in enumerate(_dicts(raw.get("heir_allocations")))],
        legacy_summary_present=any(
            raw.get(key) for key in ("third_generation_risk", "with_structure", "g1_position")
        ),
        estate_tax=_estate_tax(raw),
        top_succession_risk=_succession_risk(raw),
        hughes_headline=coerce(hughes.get("headline"), "Third-Generation Wealth Protection"),
        g3_loss_rate_pct=normalize_percent(resolve(raw, "heirs.g3_loss_rate"), 70),
        hughes_causes=coerce_text_list(hughes.get("causes"), 5),
        next_action=coerce(raw.get("next_action")),
    )


def normalize_payload(payload: Any) -> PatternAudit:
    """Build the canonical PatternAudit for one report request."""
    data: Dict[str, Any] = payload if isinstance(payload, dict) else {}

    header = _header(data)
    _LOG.debug(
        "[audit] fields intake=%s verdict=%s structure=%s",
        resolved_path(data, "intake_id") or "-",
        resolved_path(data, "verdict") or "-",
        resolved_path(data, "structure_verdict") or "-",
    )
    veto = via_negativa_state(data, header.source_jurisdiction)
    tax = _tax(data, header)
    intelligence = _intelligence(data, tax.cumulative_differential_pct)
    raw_opportunities = coerce_list(resolve(data, "opportunities"))

    audit = PatternAudit(
        header=header,
        intelligence=intelligence,
        verdict=_verdict(data, header, intelligence.precedent_count, len(raw_opportunities), veto),
        tax=tax,
        wealth_projection=_wealth_projection(data),
        peers=_peers(data),
        opportunities=_opportunities(raw_opportunities),
        execution=_execution(data),
        transparency=_transparency(data),
        real_asset_audit=_real_asset_audit(data),
        golden_visa=_golden_visa(data, header),
        hnwi_trends=_hnwi_trends(data),
        regime_intelligence=_regime_intelligence(data),
        crisis=_crisis(data),
        scenario_tree=_scenario_tree(data),
        heir_management=_heir_management(data),
        via_negativa=veto,
    )
    _LOG.info(
        "[audit] normalized intake=%s risks=%d exposure=%.0f veto=%s",
        header.reference or "-",
        audit.verdict.risk_factor_count,
        audit.verdict.total_exposure,
        veto is not None,
    )
    return audit
