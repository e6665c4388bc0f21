from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class TriggerShape(str, Enum):
    """Which historical transparency payload shape was supplied."""
    REPORTING_TRIGGERS = "reporting_triggers"
    LEGACY = "legacy"


class _Canonical(BaseModel):
    """Normalized audit data is read-only once built."""
    model_config = ConfigDict(frozen=True)


# --- header / pattern intelligence ---
class AuditHeader(_Canonical):
    intake_id: str = ""
    reference: str = Field(default="", description="intake_id[10:22] upper-cased; used in footers")
    generated_at: str = ""
    source_jurisdiction: str = "Unknown"
    destination_jurisdiction: str = "Unknown"


class PatternIntelligence(_Canonical):
    value_creation: float = 1_500_000.0
    value_creation_display: Optional[str] = None
    exposure_class: str = "Strategic Investor"
    precedent_count: int = 21
    failure_modes: int = 2
    sequencing_rules: int = 2
    total_tax_benefit_pct: int = 0


# --- verdict ---
class RiskFactor(_Canonical):
    title: str = "Unspecified Risk"
    severity: Severity = Severity.MEDIUM
    exposure_amount: float = 0.0
    cost_display: Optional[str] = None
    mitigation: Optional[str] = None
    mitigation_timeline_days: Optional[int] = None
    mitigation_action_type: Optional[str] = None
    timeline_source: Optional[str] = None


class DueDiligenceItem(_Canonical):
    task: str
    category: str = ""
    priority: str = "medium"
    timeline: str = "60 days"
    responsible: str = ""


class Verdict(_Canonical):
    label: str = "CONDITIONAL"
    rationale: str = ""
    risk_level: str = "MODERATE"
    opportunity_count: int = 0
    risk_factor_count: int = 0
    data_quality: str = "Strong"
    confidence_bars: int = Field(default=5, ge=1, le=5)
    precedent_count: int = 21
    total_exposure: float = 0.0
    total_exposure_display: Optional[str] = None
    severity_counts: Dict[str, int] = Field(default_factory=dict)
    risk_factors: List[RiskFactor] = Field(default_factory=list)
    due_diligence: List[DueDiligenceItem] = Field(default_factory=list)
    mitigation_timeline: str = ""
    source_jurisdiction: str = ""
    destination_jurisdiction: str = ""


class ViaNegativaState(_Canonical):
    """Veto overlay; exists only when the structural-viability gate fails."""
    badge_label: str = "ELEVATED RISK"
    # one decimal kept: the gate compares against 10.0 and the CTA prints "18.4%"
    day_one_loss_pct: float = 0.0
    day_one_loss_amount: float = 0.0
    tax_efficiency_passed: bool = False
    liquidity_passed: bool = False
    structure_passed: bool = False
    verdict_header: str = "Structural Review"
    verdict_badge_label: str = "Capital Allocation Review"
    stamp_text: str = "Allocation Not Recommended"
    stamp_subtext: str = (
        "Key viability thresholds not met in this structure — review alternative corridors and strategies below"
    )
    cta_body: str = ""


# --- tax ---
class TaxRates(_Canonical):
    """
    Rates in percentage points as supplied (45 means 45%, 22.5 stays 22.5).
    Not rounded: the integer cumulative differential is derived from them.
    """
    income_tax: Optional[float] = None
    capital_gains: Optional[float] = None
    estate_tax: Optional[float] = None
    wealth_tax: Optional[float] = None


class TaxCategoryRow(_Canonical):
    category: str
    label: str
    source_rate: Optional[float] = None
    destination_rate: Optional[float] = None
    differential: float = 0.0


class TaxComparison(_Canonical):
    source_jurisdiction: str = "Unknown"
    destination_jurisdiction: str = "Unknown"
    source: TaxRates = Field(default_factory=TaxRates)
    destination: TaxRates = Field(default_factory=TaxRates)
    rows: List[TaxCategoryRow] = Field(default_factory=list)
    cumulative_differential_pct: int = 0
    show_tax_savings: bool = True


# --- wealth projection ---
class ProjectionScenario(_Canonical):
    name: str
    present: bool = False
    probability_pct: int = 0
    year_10_value: float = 0.0
    growth_rate: str = ""
    verdict: str = ""


class WealthProjection(_Canonical):
    starting_value: float = 0.0
    base: ProjectionScenario
    stress: ProjectionScenario
    opportunity: ProjectionScenario
    base_value_creation: float = 0.0
    cost_of_inaction: Dict[int, float] = Field(default_factory=dict)


# --- peer / market ---
class PeerIntelligence(_Canonical):
    stats_present: bool = False
    total_peers: int = 21
    recent_movements: int = 8
    average_deal_value: float = 17_500_000.0
    average_deal_value_display: Optional[str] = None
    movement_velocity_pct: int = 80
    capital_flow_present: bool = False
    flow_intensity: str = "0.72"
    peers_in_corridor: int = 21


class Opportunity(_Canonical):
    title: str
    category: str = "Strategic"
    rating: str = "Moderate"
    potential_value: float = 0.0
    potential_value_display: Optional[str] = None
    description: str = ""
    timeline: str = ""


class OpportunitySection(_Canonical):
    items: List[Opportunity] = Field(default_factory=list)


class ExecutionStep(_Canonical):
    step: int
    title: str
    description: str = ""
    timeline: str = ""


class ExecutionSection(_Canonical):
    steps: List[ExecutionStep] = Field(default_factory=list)


# --- transparency ---
class RegimeTrigger(_Canonical):
    framework: str
    threshold: str = ""
    exposure: str = ""
    deadline: str = ""
    penalty: str = ""


class ComplianceRisk(_Canonical):
    regime: str
    consequence: str = ""
    exposure: str = ""
    fix: str = ""


class TransparencyImpact(_Canonical):
    payload_shape: TriggerShape = TriggerShape.LEGACY
    triggered: List[RegimeTrigger] = Field(default_factory=list)
    not_triggered: List[RegimeTrigger] = Field(default_factory=list)
    compliance_risks: List[ComplianceRisk] = Field(default_factory=list)
    bottom_line_present: bool = False
    exposure_if_noncompliant: float = 0.0
    exposure_display: str = "$0"
    compliance_cost_display: str = "$10,000-25,000"
    immediate_actions: List[str] = Field(default_factory=list)
    risk_level: str = ""


# --- crisis ---
class OverallResilience(_Canonical):
    score: Optional[float] = None
    rating: str = ""
    summary: str = ""
    worst_case_loss: float = 0.0
    recovery_time: str = ""
    buffer_required: float = 0.0


class CrisisScenario(_Canonical):
    name: str
    severity: str = ""
    stress_factor: str = ""
    impact: float = 0.0
    impact_display: Optional[str] = None
    recovery: str = ""
    verdict: str = ""


class CrisisRecommendation(_Canonical):
    priority: str = ""
    action: str
    rationale: str = ""


class CrisisResilience(_Canonical):
    overall: Optional[OverallResilience] = None
    scenarios: List[CrisisScenario] = Field(default_factory=list)
    recommendations: List[CrisisRecommendation] = Field(default_factory=list)


# --- real asset audit ---
class LoopholeStrategy(_Canonical):
    name: str
    description: str = ""
    tax_savings_potential: str = ""
    risk_level: str = ""


class SuccessionVehicle(_Canonical):
    name: str
    vehicle_type: str = "Vehicle"
    benefits: List[str] = Field(default_factory=list)


class JurisdictionAssetAudit(_Canonical):
    jurisdiction: str
    stamp_duty_found: bool = False
    # statutory rate as published, fractional points allowed (e.g. 17.5)
    foreign_buyer_surcharge_pct: Optional[float] = None
    statute_citation: str = ""
    loophole_strategies: List[LoopholeStrategy] = Field(default_factory=list)
    dynasty_trusts: List[str] = Field(default_factory=list)
    recommended_trust: str = ""
    succession_vehicles: List[SuccessionVehicle] = Field(default_factory=list)
    freeports: List[str] = Field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(
            self.stamp_duty_found
            or self.loophole_strategies
            or self.dynasty_trusts
            or self.succession_vehicles
            or self.freeports
        )


class RealAssetAudit(_Canonical):
    jurisdictions: List[JurisdictionAssetAudit] = Field(default_factory=list)


# --- golden visa / trends / regimes ---
class VisaProgram(_Canonical):
    name: str
    minimum_investment: str = ""
    duration: str = ""
    processing_time: str = ""
    benefits: List[str] = Field(default_factory=list)
    path_to_citizenship: Optional[bool] = None
    status: str = ""


class GoldenVisaSection(_Canonical):
    destination_jurisdiction: str = ""
    programs: List[VisaProgram] = Field(default_factory=list)


class TrendInsight(_Canonical):
    content: str
    type: str = ""


class HnwiTrends(_Canonical):
    insights: List[TrendInsight] = Field(default_factory=list)
    confidence_pct: Optional[int] = None


class RegimeWarning(_Canonical):
    regime: str
    status: str = ""
    warning: str = ""


class RegimeIntelligence(_Canonical):
    regime_name: str
    status_label: str = "ENDING SOON"
    end_date: str = ""
    successor_regime: str = ""
    action_required: str = ""
    key_benefits: List[str] = Field(default_factory=list)
    with_regime_differential: Optional[float] = None
    without_regime_differential: Optional[float] = None
    warnings: List[RegimeWarning] = Field(default_factory=list)


# --- scenario tree ---
class ScenarioBranch(_Canonical):
    key: str
    display_name: str
    probability_pct: int = 0
    expected_value: float = 0.0
    risk_level: str = ""
    recommended: bool = False


class DecisionGate(_Canonical):
    day: int
    check: str
    if_pass: str = "Continue"
    if_fail: str = "Review"


class ScenarioTree(_Canonical):
    recommended_branch: str = ""
    branches: List[ScenarioBranch] = Field(default_factory=list)
    gates: List[DecisionGate] = Field(default_factory=list)


# --- heir management ---
class HeirAllocation(_Canonical):
    name: str
    relationship: str = "Beneficiary"
    generation: str = "G2"
    age: Optional[int] = None
    allocation_pct: int = Field(default=0, ge=0, le=100)
    allocation_value: float = 0.0
    recommended_structure: str = ""
    structure_rationale: str = ""
    timing: str = ""
    special_considerations: List[str] = Field(default_factory=list)


class EstateTaxByHeirType(_Canonical):
    headline: str = ""
    spouse_rate: Optional[float] = None
    spouse_summary: str = ""
    children_rate: Optional[float] = None
    children_summary: str = ""
    non_lineal_rate: Optional[float] = None
    non_lineal_summary: str = ""


class SuccessionRisk(_Canonical):
    text: str = "Succession risk identified"
    amount_at_risk: float = 0.0
    mitigation: str = ""
    mitigation_timeline: str = ""
    mitigation_days: Optional[int] = None
    urgency: str = "STANDARD"


class HeirManagement(_Canonical):
    current_risk_pct: int = 70
    with_structure_risk_pct: int = 7
    improvement_pts: int = 63
    preservation_pct: int = 93
    recommended_structure: str = ""
    allocations: List[HeirAllocation] = Field(default_factory=list)
    legacy_summary_present: bool = False
    estate_tax: Optional[EstateTaxByHeirType] = None
    top_succession_risk: Optional[SuccessionRisk] = None
    hughes_headline: str = "Third-Generation Wealth Protection"
    g3_loss_rate_pct: int = 70
    hughes_causes: List[str] = Field(default_factory=list)
    next_action: str = ""


# --- whole audit ---
class PatternAudit(_Canonical):
    """Canonical report model: built once per request from one raw payload."""
    header: AuditHeader = Field(default_factory=AuditHeader)
    intelligence: PatternIntelligence = Field(default_factory=PatternIntelligence)
    verdict: Verdict = Field(default_factory=Verdict)
    tax: TaxComparison = Field(default_factory=TaxComparison)
    wealth_projection: Optional[WealthProjection] = None
    peers: PeerIntelligence = Field(default_factory=PeerIntelligence)
    opportunities: OpportunitySection = Field(default_factory=OpportunitySection)
    execution: ExecutionSection = Field(default_factory=ExecutionSection)
    transparency: Optional[TransparencyImpact] = None
    real_asset_audit: RealAssetAudit = Field(default_factory=RealAssetAudit)
    golden_visa: GoldenVisaSection = Field(default_factory=GoldenVisaSection)
    hnwi_trends: Optional[HnwiTrends] = None
    regime_intelligence: Optional[RegimeIntelligence] = None
    crisis: Optional[CrisisResilience] = None
    scenario_tree: Optional[ScenarioTree] = None
    heir_management: Optional[HeirManagement] = None
    via_negativa: Optional[ViaNegativaState] = None


# --- page-level models for composite pages ---
class CoverPageModel(_Canonical):
    header: AuditHeader
    intelligence: PatternIntelligence
    veto_badge: Optional[str] = None


class VerdictPageModel(_Canonical):
    headline: str = "Investment Committee Decision"
    badge_label: str = "Executive Summary"
    verdict: Verdict


class VetoVerdictPageModel(_Canonical):
    verdict: Verdict
    via_negativa: ViaNegativaState


class TaxPageModel(_Canonical):
    tax: TaxComparison
    total_tax_benefit_pct: int = 0


class PeerPageModel(_Canonical):
    source_jurisdiction: str = ""
    destination_jurisdiction: str = ""
    peers: PeerIntelligence


class SummaryPageModel(_Canonical):
    reference: str = ""
    precedent_count: int = 21
    failure_modes: int = 2
    sequencing_rules: int = 2


class ClosingPageModel(_Canonical):
    intake_id: str = ""
    reference: str = ""
    generated_at: str = ""
    precedent_count: int = 21
    veto_cta: Optional[str] = None


# --- HTTP request / response ---
class AuditPayload(BaseModel):
    """Raw Report Payload as posted by the analytics service. Every field optional."""
    model_config = ConfigDict(extra="allow")

    success: Any = None
    intake_id: Any = None
    generated_at: Any = None
    preview_data: Any = None
    memo_data: Any = None

    def raw(self) -> Dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if v is not None}


class PageDescriptorOut(BaseModel):
    kind: str
    section_label: str
    model: Dict[str, Any]


class AssembledAuditResponse(BaseModel):
    reference: str
    veto: bool
    pages: List[PageDescriptorOut]


class StoreAuditResponse(BaseModel):
    audit_id: str
