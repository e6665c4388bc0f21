"""
Deterministic Pattern Audit deck builder.

Renders the assembled page list to print-safe HTML (one framed A4 section per
page) and converts it to PDF via Playwright. Self-contained: no frontend
runtime JS, all numbers go through format_utils.
"""
from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from models import (
    ClosingPageModel,
    CoverPageModel,
    CrisisResilience,
    ExecutionSection,
    GoldenVisaSection,
    HeirManagement,
    HnwiTrends,
    OpportunitySection,
    PatternAudit,
    PatternIntelligence,
    PeerPageModel,
    RealAssetAudit,
    RegimeIntelligence,
    ScenarioTree,
    SummaryPageModel,
    TaxPageModel,
    TransparencyImpact,
    VerdictPageModel,
    VetoVerdictPageModel,
    WealthProjection,
)
from reporting.assembler import AuditPage, build_audit_pages
from reporting.format_utils import (
    EMPTY,
    clean_jurisdiction,
    format_currency,
    format_date,
    format_differential,
    format_number,
    format_percent,
    format_signed_currency,
)

_LOG = logging.getLogger(__name__)

DEFAULT_PRIMARY = "#111111"
DEFAULT_REPORT_TITLE = "Pattern Audit"
DEFAULT_BRAND = "Private Wealth Intelligence"
DEFAULT_CONFIDENTIALITY = "Strictly Confidential"
PAGE_MARGIN_MM = 8.0


@dataclass(frozen=True)
class DeckTheme:
    brand_name: str
    primary_color: str
    report_title: str
    confidentiality_line: str
    report_date: str
    reference: str


@dataclass
class DeckPage:
    body_html: str
    section_label: str
    include_frame: bool
    kind: str


def _esc(value: Any) -> str:
    return html.escape(str(value if value is not None else ""), quote=True)


def _pick(branding: dict[str, Any], *keys: str, default: str = "") -> str:
    for key in keys:
        if key in branding and branding.get(key) not in (None, ""):
            return str(branding.get(key)).strip()
    return default


def _hex_color_or_default(color: str, default: str = DEFAULT_PRIMARY) -> str:
    raw = (color or "").strip()
    if re.fullmatch(r"#[0-9a-fA-F]{3,8}", raw):
        return raw
    return default


def resolve_theme(audit: PatternAudit, branding: dict[str, Any] | None = None) -> DeckTheme:
    branding = branding or {}
    return DeckTheme(
        brand_name=_pick(branding, "brand_name", "brandName", default=DEFAULT_BRAND),
        primary_color=_hex_color_or_default(_pick(branding, "primary_color", "primaryColor")),
        report_title=_pick(branding, "report_title", "reportTitle", default=DEFAULT_REPORT_TITLE),
        confidentiality_line=_pick(
            branding, "confidentiality_line", "confidentialityLine", default=DEFAULT_CONFIDENTIALITY
        ),
        report_date=format_date(audit.header.generated_at),
        reference=audit.header.reference,
    )


def _build_page_shell(
    *,
    body_html: str,
    theme: DeckTheme,
    page_no: int,
    total_pages: int,
    section_label: str,
    include_frame: bool = True,
    kind: str = "general",
) -> str:
    header = (
        ""
        if not include_frame
        else f"""
            <header class="page-header">
              <div class="brand-wordmark">{_esc(theme.brand_name)}</div>
              <div class="header-right">
                <div class="header-report-title">{_esc(theme.report_title)}</div>
                <div class="header-sub">{_esc(section_label)}</div>
              </div>
            </header>
            """
    )
    reference = f"Ref {theme.reference} · " if theme.reference else ""
    footer = (
        ""
        if not include_frame
        else f"""
            <footer class="page-footer">
              <span>{_esc(theme.report_date)} · {_esc(theme.confidentiality_line)}</span>
              <span>{_esc(reference)}{_esc(theme.brand_name)}</span>
              <span>Page {page_no} of {total_pages}</span>
            </footer>
            """
    )
    return f"""
    <section class="pdf-page" data-kind="{_esc(kind)}">
      {header}
      <div class="page-content"><div class="page-content-inner">{body_html}</div></div>
      {footer}
    </section>
    """.strip()


def SectionTitle(kicker: str, title: str, subtitle: str = "") -> str:
    return f"""
    <div class="section-title-wrap">
      <p class="kicker">{_esc(kicker)}</p>
      <h2 class="section-title">{_esc(title)}</h2>
      {f'<p class="section-subtitle">{_esc(subtitle)}</p>' if subtitle else ""}
    </div>
    """


def KpiTilesRow(items: list[tuple[str, str]]) -> str:
    tiles = "".join(
        f"""
        <div class="kpi-tile">
          <div class="kpi-label">{_esc(label)}</div>
          <div class="kpi-value">{_esc(value)}</div>
        </div>
        """
        for label, value in items
    )
    return f'<div class="kpi-grid">{tiles}</div>'


def _table(headers: list[str], rows: list[list[str]], numeric_from: int = 1) -> str:
    head = "".join(f"<th>{_esc(h)}</th>" for h in headers)
    body = "".join(
        "<tr>"
        + "".join(
            f'<td class="{"num" if i >= numeric_from else ""}">{_esc(cell)}</td>' for i, cell in enumerate(row)
        )
        + "</tr>"
        for row in rows
    )
    return f'<table class="data-table"><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table>'


def _bullets(items: list[str], empty: str = "") -> str:
    if not items:
        return f'<p class="muted">{_esc(empty)}</p>' if empty else ""
    return '<ul class="bullet-list">' + "".join(f"<li>{_esc(i)}</li>" for i in items) + "</ul>"


def _money(value: float, display: str | None = None) -> str:
    return display or format_currency(value)


def _rate(value: float | None) -> str:
    return EMPTY if value is None else format_percent(value, precision=0 if float(value).is_integer() else 1, signed=False)


# --- page bodies ---
def CoverPage(model: CoverPageModel) -> str:
    h = model.header
    veto = f'<div class="veto-badge">{_esc(model.veto_badge)}</div>' if model.veto_badge else ""
    return f"""
    <div class="cover-wrap">
      <p class="kicker">Private Client Intelligence</p>
      <h1>Pattern Audit</h1>
      <p class="cover-subtitle">
        {_esc(clean_jurisdiction(h.source_jurisdiction))} → {_esc(clean_jurisdiction(h.destination_jurisdiction))}
      </p>
      {veto}
      <div class="cover-meta-grid">
        <div><span>Reference</span><strong>{_esc(h.reference or EMPTY)}</strong></div>
        <div><span>Report date</span><strong>{_esc(format_date(h.generated_at))}</strong></div>
        <div><span>Exposure class</span><strong>{_esc(model.intelligence.exposure_class)}</strong></div>
      </div>
    </div>
    """


def _pattern_intelligence_page(model: PatternIntelligence) -> str:
    return f"""
    {SectionTitle("Pattern intelligence", "What the precedents say", "Derived from cross-border structuring outcomes.")}
    {KpiTilesRow([
        ("Value creation", _money(model.value_creation, model.value_creation_display)),
        ("Precedents reviewed", format_number(model.precedent_count)),
        ("Failure modes", str(model.failure_modes)),
        ("Sequencing rules", str(model.sequencing_rules)),
        ("Tax benefit", format_percent(model.total_tax_benefit_pct)),
        ("Exposure class", model.exposure_class),
    ])}
    """


def _risk_rows(page_verdict: Any) -> str:
    rows = [
        [r.title, r.severity.value.upper(), _money(r.exposure_amount, r.cost_display), r.mitigation or EMPTY]
        for r in page_verdict.risk_factors
    ]
    return _table(["Risk", "Severity", "Exposure", "Mitigation"], rows, numeric_from=2) if rows else ""


def _verdict_page(model: VerdictPageModel) -> str:
    v = model.verdict
    diligence = [f"{d.task} ({d.timeline})" for d in v.due_diligence]
    return f"""
    {SectionTitle(model.badge_label, model.headline, f"{v.source_jurisdiction} → {v.destination_jurisdiction}")}
    <div class="verdict-stamp">{_esc(v.label)}</div>
    <p class="rationale">{_esc(v.rationale)}</p>
    {KpiTilesRow([
        ("Risk level", v.risk_level),
        ("Total exposure", _money(v.total_exposure, v.total_exposure_display)),
        ("Risk factors", str(v.risk_factor_count)),
        ("Opportunities", str(v.opportunity_count)),
        ("Data quality", f"{v.data_quality} ({v.confidence_bars}/5)"),
        ("Precedents", str(v.precedent_count)),
    ])}
    {_risk_rows(v)}
    <article class="panel"><h3>Due diligence</h3>{_bullets(diligence, "No outstanding items.")}</article>
    """


def _veto_verdict_page(model: VetoVerdictPageModel) -> str:
    vn = model.via_negativa

    def gate(label: str, passed: bool) -> tuple[str, str]:
        return label, "PASS" if passed else "FAIL"

    return f"""
    {SectionTitle(vn.verdict_badge_label, vn.verdict_header)}
    <div class="veto-stamp">{_esc(vn.stamp_text)}</div>
    <p class="rationale">{_esc(vn.stamp_subtext)}</p>
    {KpiTilesRow([
        ("Day-one loss", f"{vn.day_one_loss_pct:.1f}%"),
        ("Day-one capital", format_currency(vn.day_one_loss_amount)),
        gate("Tax efficiency", vn.tax_efficiency_passed),
        gate("Liquidity", vn.liquidity_passed),
        gate("Structure", vn.structure_passed),
        ("Total exposure", _money(model.verdict.total_exposure, model.verdict.total_exposure_display)),
    ])}
    {_risk_rows(model.verdict)}
    """


def _tax_page(model: TaxPageModel) -> str:
    t = model.tax
    rows = [
        [r.label, _rate(r.source_rate), _rate(r.destination_rate), format_differential(r.differential)]
        for r in t.rows
    ]
    note = (
        f"Cumulative differential {format_percent(t.cumulative_differential_pct)} across categories."
        if t.show_tax_savings
        else "Worldwide taxation continues to apply; no tax saving is presented."
    )
    return f"""
    {SectionTitle("Tax analysis", "Jurisdictional Tax Comparison", note)}
    {_table(["Category", clean_jurisdiction(t.source_jurisdiction), clean_jurisdiction(t.destination_jurisdiction), "Differential"], rows)}
    """


def _wealth_page(model: WealthProjection) -> str:
    rows = [
        [s.name.title(), format_percent(s.probability_pct, signed=False), format_currency(s.year_10_value), s.verdict or EMPTY]
        for s in (model.base, model.stress, model.opportunity)
    ]
    inaction = [(f"Inaction year {y}", format_currency(v)) for y, v in sorted(model.cost_of_inaction.items())]
    return f"""
    {SectionTitle("Wealth projection", "Ten-Year Scenarios")}
    {KpiTilesRow([("Starting value", format_currency(model.starting_value)), ("Base value creation", format_signed_currency(model.base_value_creation))] + inaction)}
    {_table(["Scenario", "Probability", "Year 10", "Verdict"], rows)}
    """


def _peer_page(model: PeerPageModel) -> str:
    p = model.peers
    return f"""
    {SectionTitle("Peer intelligence", "Corridor Activity", f"{model.source_jurisdiction} → {model.destination_jurisdiction}")}
    {KpiTilesRow([
        ("Peers", format_number(p.total_peers)),
        ("Recent movements", format_number(p.recent_movements)),
        ("Average deal", _money(p.average_deal_value, p.average_deal_value_display)),
        ("Velocity", format_percent(p.movement_velocity_pct, signed=False)),
        ("Flow intensity", p.flow_intensity),
        ("Peers in corridor", str(p.peers_in_corridor)),
    ])}
    """


def _opportunities_page(model: OpportunitySection) -> str:
    rows = [
        [o.title, o.category, o.rating, _money(o.potential_value, o.potential_value_display)]
        for o in model.items
    ]
    return f"""
    {SectionTitle("Market opportunities", "Where peers are allocating")}
    {_table(["Opportunity", "Category", "Rating", "Potential value"], rows, numeric_from=3)}
    """


def _execution_page(model: ExecutionSection) -> str:
    rows = [[str(s.step), s.title, s.description or EMPTY, s.timeline or EMPTY] for s in model.steps]
    return f"""
    {SectionTitle("Execution", "Implementation Sequence")}
    {_table(["#", "Step", "Detail", "Timeline"], rows, numeric_from=99)}
    """


def _transparency_page(model: TransparencyImpact) -> str:
    triggered = [[t.framework, t.exposure or EMPTY, t.deadline or EMPTY, t.penalty or EMPTY] for t in model.triggered]
    risks = [f"{r.regime}: {r.consequence}" + (f" (fix: {r.fix})" if r.fix else "") for r in model.compliance_risks]
    return f"""
    {SectionTitle("Transparency", "Reporting Regime Impact")}
    {_table(["Regime", "Exposure", "Deadline", "Penalty"], triggered, numeric_from=99) if triggered else ""}
    <article class="panel"><h3>Not triggered</h3>{_bullets([t.framework for t in model.not_triggered], "None listed.")}</article>
    <article class="panel"><h3>Compliance risks</h3>{_bullets(risks, "None identified.")}</article>
    {KpiTilesRow([("Exposure if non-compliant", model.exposure_display), ("Compliance cost", model.compliance_cost_display)])}
    {_bullets(model.immediate_actions)}
    """


def _real_asset_page(model: RealAssetAudit) -> str:
    blocks = []
    for j in model.jurisdictions:
        lines = []
        if j.stamp_duty_found:
            surcharge = _rate(j.foreign_buyer_surcharge_pct)
            lines.append(f"Foreign buyer surcharge: {surcharge}")
        lines.extend(f"{s.name}: {s.description}" for s in j.loophole_strategies)
        if j.dynasty_trusts:
            lines.append("Dynasty trusts: " + ", ".join(j.dynasty_trusts))
        lines.extend(f"{v.name} ({v.vehicle_type})" for v in j.succession_vehicles)
        if j.freeports:
            lines.append("Freeports: " + ", ".join(j.freeports))
        blocks.append(f'<article class="panel"><h3>{_esc(j.jurisdiction)}</h3>{_bullets(lines)}</article>')
    return SectionTitle("Real asset audit", "Property, Trusts and Succession Vehicles") + "".join(blocks)


def _golden_visa_page(model: GoldenVisaSection) -> str:
    rows = [[p.name, p.minimum_investment or EMPTY, p.processing_time or EMPTY, ", ".join(p.benefits[:3]) or EMPTY] for p in model.programs]
    return f"""
    {SectionTitle("Investment migration", f"Programs in {model.destination_jurisdiction}")}
    {_table(["Program", "Minimum", "Processing", "Benefits"], rows, numeric_from=99)}
    """


def _hnwi_page(model: HnwiTrends) -> str:
    subtitle = f"Confidence {model.confidence_pct}%" if model.confidence_pct is not None else ""
    return f"""
    {SectionTitle("HNWI trends", "Trend Intelligence", subtitle)}
    {_bullets([i.content for i in model.insights])}
    """


def _regime_page(model: RegimeIntelligence) -> str:
    tiles = [("Status", model.status_label)]
    if model.with_regime_differential is not None:
        tiles.append(("With regime", format_percent(model.with_regime_differential)))
    if model.without_regime_differential is not None:
        tiles.append(("Without regime", format_percent(model.without_regime_differential)))
    warnings = [f"{w.regime}: {w.warning}" for w in model.warnings]
    return f"""
    {SectionTitle("Tax regime intelligence", model.regime_name, model.action_required)}
    {KpiTilesRow(tiles)}
    {_bullets(model.key_benefits)}
    {_bullets(warnings)}
    """


def _crisis_page(model: CrisisResilience) -> str:
    tiles: list[tuple[str, str]] = []
    if model.overall is not None:
        o = model.overall
        tiles = [
            ("Rating", o.rating or EMPTY),
            ("Worst case", format_currency(o.worst_case_loss)),
            ("Recovery", o.recovery_time or EMPTY),
            ("Buffer required", format_currency(o.buffer_required)),
        ]
    rows = [[s.name, s.severity.upper() or EMPTY, _money(s.impact, s.impact_display), s.recovery or EMPTY] for s in model.scenarios]
    return f"""
    {SectionTitle("Crisis resilience", "Stress Test", model.overall.summary if model.overall else "")}
    {KpiTilesRow(tiles) if tiles else ""}
    {_table(["Scenario", "Severity", "Impact", "Recovery"], rows, numeric_from=2) if rows else ""}
    {_bullets([r.action for r in model.recommendations])}
    """


def _scenario_tree_page(model: ScenarioTree) -> str:
    rows = [
        [b.display_name + (" ★" if b.recommended else ""), format_percent(b.probability_pct, signed=False), format_currency(b.expected_value), b.risk_level or EMPTY]
        for b in model.branches
    ]
    gates = [[f"Day {g.day}", g.check, g.if_pass, g.if_fail] for g in model.gates]
    return f"""
    {SectionTitle("Decision tree", "Scenario Pathways")}
    {_table(["Pathway", "Probability", "Expected value", "Risk"], rows) if rows else ""}
    {_table(["Gate", "Check", "If pass", "If fail"], gates, numeric_from=99) if gates else ""}
    """


def _heir_page(model: HeirManagement) -> str:
    rows = [
        [h.name, h.relationship, format_percent(h.allocation_pct, signed=False), format_currency(h.allocation_value), h.recommended_structure or EMPTY]
        for h in model.allocations
    ]
    risk = model.top_succession_risk
    risk_html = (
        f'<article class="panel"><h3>{_esc(risk.urgency)}: {_esc(risk.text)}</h3>'
        f"<p>{_esc(format_currency(risk.amount_at_risk))} at risk. {_esc(risk.mitigation)}</p></article>"
        if risk is not None
        else ""
    )
    return f"""
    {SectionTitle("Heir management", model.hughes_headline, model.recommended_structure)}
    {KpiTilesRow([
        ("Loss risk today", format_percent(model.current_risk_pct, signed=False)),
        ("With structure", format_percent(model.with_structure_risk_pct, signed=False)),
        ("Improvement", f"{model.improvement_pts} pts"),
        ("Preservation", format_percent(model.preservation_pct, signed=False)),
        ("G3 loss rate", format_percent(model.g3_loss_rate_pct, signed=False)),
    ])}
    {_table(["Heir", "Relationship", "Allocation", "Value", "Structure"], rows, numeric_from=2) if rows else ""}
    {risk_html}
    {_bullets(model.hughes_causes)}
    """


def _summary_page(model: SummaryPageModel) -> str:
    return f"""
    {SectionTitle("Summary", "Audit Basis")}
    <p>
      This audit drew on {model.precedent_count} precedents, {model.failure_modes} failure modes and
      {model.sequencing_rules} sequencing rules.
    </p>
    """


def _closing_page(model: ClosingPageModel) -> str:
    cta = f'<article class="panel veto-cta"><p>{_esc(model.veto_cta)}</p></article>' if model.veto_cta else ""
    return f"""
    {SectionTitle("Confidential", "Important Limitations")}
    {cta}
    <article class="panel">
      <p>
        This document is prepared for the named client only. It is not legal, tax or investment advice.
        Verify all figures with qualified advisors before acting.
      </p>
      <p>Intake {_esc(model.intake_id or EMPTY)} · Generated {_esc(format_date(model.generated_at))}</p>
    </article>
    """


PAGE_RENDERERS: dict[str, Callable[[Any], str]] = {
    "cover": CoverPage,
    "pattern_intelligence": _pattern_intelligence_page,
    "verdict": _verdict_page,
    "verdict_veto": _veto_verdict_page,
    "tax_analysis": _tax_page,
    "wealth_projection": _wealth_page,
    "peer_intelligence": _peer_page,
    "opportunities": _opportunities_page,
    "execution_sequence": _execution_page,
    "transparency": _transparency_page,
    "real_asset_audit": _real_asset_page,
    "golden_visa": _golden_visa_page,
    "hnwi_trends": _hnwi_page,
    "regime_intelligence": _regime_page,
    "crisis_resilience": _crisis_page,
    "scenario_tree": _scenario_tree_page,
    "heir_management": _heir_page,
    "summary": _summary_page,
    "closing": _closing_page,
}


def _deck_css(primary_color: str) -> str:
    return f"""
    @page {{
      size: A4 portrait;
      margin: {PAGE_MARGIN_MM:.1f}mm;
    }}
    * {{ box-sizing: border-box; }}
    html, body {{
      margin: 0;
      padding: 0;
      font-family: "Inter", "Helvetica Neue", Arial, sans-serif;
      color: #111;
      background: #fff;
      -webkit-print-color-adjust: exact;
      print-color-adjust: exact;
    }}
    .pdf-page {{
      break-after: page;
      page-break-after: always;
      display: flex;
      flex-direction: column;
      height: 281mm;
      border: 1px solid {primary_color};
      overflow: hidden;
    }}
    .page-header {{
      height: 18mm;
      border-bottom: 1px solid {primary_color};
      padding: 4mm 6mm;
      display: flex;
      align-items: center;
      justify-content: space-between;
    }}
    .brand-wordmark {{ font-size: 13px; font-weight: 700; letter-spacing: 0.04em; text-transform: uppercase; }}
    .header-right {{ text-align: right; }}
    .header-report-title {{ font-size: 10px; font-weight: 700; letter-spacing: 0.12em; text-transform: uppercase; }}
    .header-sub {{ font-size: 9px; color: #444; }}
    .page-content {{ padding: 6mm; flex: 1; min-height: 0; }}
    .page-footer {{
      height: 12mm;
      border-top: 1px solid {primary_color};
      padding: 3mm 6mm;
      display: flex;
      align-items: center;
      justify-content: space-between;
      font-size: 9px;
      color: #444;
    }}
    .kicker {{ margin: 0 0 2mm 0; font-size: 9px; letter-spacing: 0.16em; text-transform: uppercase; color: #444; }}
    .section-title-wrap {{ margin-bottom: 4mm; }}
    .section-title {{ margin: 0; font-size: 24px; line-height: 1.08; }}
    .section-subtitle {{ margin: 2mm 0 0 0; font-size: 11px; color: #333; }}
    .panel {{ border: 1px solid #111; padding: 4mm; margin: 0 0 4mm 0; break-inside: avoid; }}
    .panel h3 {{ margin: 0 0 2mm 0; font-size: 14px; }}
    .bullet-list {{ margin: 0; padding-left: 5mm; font-size: 10px; line-height: 1.45; }}
    .muted {{ color: #666; font-size: 10px; }}
    .kpi-grid {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 2mm; margin: 0 0 4mm 0; }}
    .kpi-tile {{ border: 1px solid #111; padding: 2.5mm; min-height: 18mm; }}
    .kpi-label {{ margin: 0 0 1.5mm 0; font-size: 8px; letter-spacing: 0.12em; text-transform: uppercase; color: #555; }}
    .kpi-value {{ font-size: 12px; font-weight: 700; }}
    .data-table {{ width: 100%; border-collapse: collapse; font-size: 9px; margin: 0 0 4mm 0; }}
    .data-table th {{ background: #f2f2f2; border: 1px solid #111; padding: 2mm; text-align: left; text-transform: uppercase; font-size: 8px; }}
    .data-table td {{ border: 1px solid #bcbcbc; padding: 1.6mm; vertical-align: top; }}
    .data-table td.num {{ text-align: right; white-space: nowrap; }}
    .verdict-stamp, .veto-stamp {{
      display: inline-block;
      margin: 0 0 3mm 0;
      padding: 2mm 4mm;
      border: 2px solid {primary_color};
      font-weight: 700;
      letter-spacing: 0.1em;
      text-transform: uppercase;
    }}
    .veto-stamp, .veto-badge {{ border-color: #9b1c1c; color: #9b1c1c; }}
    .veto-badge {{ display: inline-block; border: 1px solid; padding: 1mm 3mm; font-size: 10px; font-weight: 700; }}
    .rationale {{ font-size: 11px; line-height: 1.5; }}
    .cover-wrap {{ padding: 40mm 14mm; }}
    .cover-wrap h1 {{ font-size: 44px; margin: 0 0 4mm 0; }}
    .cover-subtitle {{ font-size: 14px; color: #333; }}
    .cover-meta-grid {{ display: grid; grid-template-columns: repeat(3, 1fr); gap: 3mm; margin-top: 20mm; }}
    .cover-meta-grid span {{ display: block; font-size: 8px; text-transform: uppercase; letter-spacing: 0.12em; color: #555; }}
    """


def build_audit_html(payload: Any, branding: dict[str, Any] | None = None) -> str:
    audit, pages = build_audit_pages(payload)
    return render_pages_html(audit, pages, branding)


def render_pages_html(audit: PatternAudit, pages: list[AuditPage], branding: dict[str, Any] | None = None) -> str:
    theme = resolve_theme(audit, branding)
    deck_pages = [
        DeckPage(
            body_html=PAGE_RENDERERS[page.kind](page.model),
            section_label=page.section_label,
            include_frame=page.kind != "cover",
            kind=page.kind,
        )
        for page in pages
    ]

    total_pages = len(deck_pages)
    page_html = [
        _build_page_shell(
            body_html=p.body_html,
            theme=theme,
            page_no=i,
            total_pages=total_pages,
            section_label=p.section_label,
            include_frame=p.include_frame,
            kind=p.kind,
        )
        for i, p in enumerate(deck_pages, start=1)
    ]

    return f"""
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>{_esc(theme.report_title)} {_esc(theme.reference)}</title>
  <style>{_deck_css(theme.primary_color)}</style>
</head>
<body>
  {''.join(page_html)}
</body>
</html>
    """.strip()


def render_html_to_pdf(html_str: str) -> bytes:
    from playwright.sync_api import sync_playwright

    with sync_playwright() as p:
        browser = p.chromium.launch()
        page = browser.new_page()
        page.set_content(html_str, wait_until="networkidle")
        page.emulate_media(media="print")
        pdf_bytes = page.pdf(
            format="A4",
            print_background=True,
            prefer_css_page_size=True,
            margin={"top": "0in", "bottom": "0in", "left": "0in", "right": "0in"},
        )
        browser.close()
    _LOG.info("[audit] rendered pdf bytes=%d", len(pdf_bytes))
    return pdf_bytes


def render_audit_pdf(payload: Any, branding: dict[str, Any] | None = None) -> bytes:
    return render_html_to_pdf(build_audit_html(payload, branding))
