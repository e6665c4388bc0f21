"""
Derived audit figures that the payload does not carry verbatim.

Everything here is a pure function of already-resolved inputs: total risk
exposure, the cumulative tax differential, succession-risk improvement and
the probability/terminal-value triple of the wealth projection.
"""
from __future__ import annotations

import math
import re
from typing import Any, Iterable

from engine.amounts import parse_amount
from engine.coerce import coerce_dict, coerce_number
from engine.fields import resolve

TAX_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("income_tax", "Income Tax"),
    ("capital_gains", "Capital Gains"),
    ("estate_tax", "Estate Tax"),
    ("wealth_tax", "Wealth Tax"),
)

DEFAULT_SCENARIO_PROBABILITIES = {"base": 0.55, "stress": 0.25, "opportunity": 0.20}

DATA_QUALITY_BARS = {"Strong": 5, "Good": 4, "Moderate": 3}

DEFAULT_VALUE_CREATION = 1_500_000.0

_SAVINGS_KEYS = ("annual_tax_savings", "annual_savings", "tax_savings", "savings")
_SUMMED_SAVINGS_KEYS = ("annual_tax_savings", "capital_gains_savings", "estate_tax_savings", "wealth_tax_savings")
_DOLLAR_PREFIX = re.compile(r"^\$[\d,]+")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def round_half_up(value: float) -> int:
    """Nearest integer, halves up; 0 for inf or NaN (products of huge inputs overflow)."""
    if not math.isfinite(value):
        return 0
    return int(math.floor(value + 0.5))


def normalize_percent(value: Any, default: int | None = 0) -> int | None:
    """
    0-100 integer from either a 0-1 fraction or percentage points.
    A raw value <= 1 is a fraction, so exactly 1 means 100%.
    """
    n = coerce_number(value, None)
    if n is None:
        return default
    pct = round_half_up(n * 100) if n <= 1 else round_half_up(n)
    return max(0, min(100, pct))


# --- risk exposure ---
def risk_item_exposure(item: dict[str, Any]) -> float:
    """Exposure of one risk entry: parsed cost text, else a numeric cost above $1,000."""
    cost = resolve(item, "risk.cost")
    amount = parse_amount(cost) if isinstance(cost, str) else 0.0
    if amount == 0:
        numeric = coerce_number(resolve(item, "risk.exposure_numeric"), 0.0) or 0.0
        if numeric > 1000:
            amount = numeric
    return amount


def _summed_exposure(item: Any) -> float:
    if not isinstance(item, dict):
        return 0.0
    numeric = resolve(item, "risk.exposure_numeric")
    if _is_number(numeric) and numeric != 0:
        return float(numeric)
    cost = resolve(item, "risk.cost")
    parsed = parse_amount(cost) if isinstance(cost, str) else 0.0
    return parsed if parsed > 0 else 0.0


def total_exposure(formatted_total: Any, risk_items: Iterable[Any]) -> float:
    """
    Pre-formatted total when it parses to something, else the sum over the risk list.
    Entries with neither a numeric nor a parseable cost contribute nothing.
    """
    if formatted_total:
        parsed = parse_amount(formatted_total)
        if parsed != 0:
            return parsed
    return sum(_summed_exposure(item) for item in risk_items)


# --- tax ---
def tax_rate(rates: Any, category: str) -> float | None:
    return coerce_number(resolve(coerce_dict(rates), f"tax.{category}"), None)


def category_differential(source_rate: float | None, destination_rate: float | None) -> float:
    diff = (source_rate or 0.0) - (destination_rate or 0.0)
    return diff if math.isfinite(diff) else 0.0


def cumulative_tax_differential(source_rates: Any, destination_rates: Any) -> float:
    """Sum of source minus destination rate across the fixed categories; positive is a saving."""
    return sum(
        category_differential(tax_rate(source_rates, key), tax_rate(destination_rates, key))
        for key, _ in TAX_CATEGORIES
    )


def has_any_rate(rates: Any) -> bool:
    return any(tax_rate(rates, key) is not None for key, _ in TAX_CATEGORIES)


# --- succession ---
def succession_improvement(current_risk: Any, with_structure_risk: Any) -> int:
    current = normalize_percent(current_risk, 70)
    structured = normalize_percent(with_structure_risk, 7)
    return current - structured


def succession_urgency(days: int | None) -> str:
    if days is None:
        return "STANDARD"
    if days <= 45:
        return "URGENT"
    if days <= 60:
        return "MODERATE"
    return "STANDARD"


# --- wealth projection ---
def find_scenario(scenarios: Any, key: str) -> dict[str, Any] | None:
    """Scenario by key from either a list of {name: BASE_CASE, ...} or a {base, stress, opportunity} map."""
    if isinstance(scenarios, list):
        wanted = f"{key.upper()}_CASE"
        for entry in scenarios:
            if isinstance(entry, dict) and entry.get("name") == wanted:
                return entry
        return None
    if isinstance(scenarios, dict):
        entry = scenarios.get(key)
        return entry if isinstance(entry, dict) else None
    return None


def scenario_triple(scenarios: Any) -> dict[str, tuple[int, float]]:
    """
    {"base": (probability_pct, year_10_value), "stress": ..., "opportunity": ...}
    Not summed: the render layer tabulates the three rows.
    """
    out: dict[str, tuple[int, float]] = {}
    for key, default_probability in DEFAULT_SCENARIO_PROBABILITIES.items():
        entry = find_scenario(scenarios, key) or {}
        raw_probability = entry.get("probability") or default_probability
        probability = normalize_percent(raw_probability, normalize_percent(default_probability))
        year_10 = coerce_number(resolve(entry, "scenario.year_10_value"), 0.0) or 0.0
        out[key] = (probability, year_10)
    return out


# --- pattern intelligence ---
def value_creation(raw: Any) -> tuple[float, str | None]:
    """
    (amount, display) for the headline value-creation figure.
    display carries upstream text verbatim when the figure arrived as a string.
    """
    if not raw:
        return DEFAULT_VALUE_CREATION, None
    if isinstance(raw, str):
        return parse_amount(raw), raw
    if _is_number(raw):
        return float(raw), None
    if not isinstance(raw, dict):
        return DEFAULT_VALUE_CREATION, None

    for key in ("display", "formatted", "value", "total"):
        text = raw.get(key)
        if text and isinstance(text, str):
            return parse_amount(text), text
    for key in ("total", "value", "amount"):
        if _is_number(raw.get(key)):
            return float(raw[key]), None
    for key in _SAVINGS_KEYS:
        nested = coerce_dict(raw.get(key))
        if nested.get("amount") and _is_number(nested["amount"]):
            return float(nested["amount"]), None
    for key in ("annual", "five_year", "ten_year"):
        candidate = raw.get(key)
        if _is_number(candidate):
            return float(candidate), None
        if isinstance(candidate, str):
            return parse_amount(candidate), candidate

    summed = 0.0
    for key in _SUMMED_SAVINGS_KEYS:
        amount = coerce_dict(raw.get(key)).get("amount")
        if amount and _is_number(amount):
            summed += amount
    if summed > 0:
        return summed, None

    for candidate in raw.values():
        if _is_number(candidate) and candidate > 0:
            return float(candidate), None
        if isinstance(candidate, str) and _DOLLAR_PREFIX.match(candidate):
            return parse_amount(candidate), candidate
    return DEFAULT_VALUE_CREATION, None


def confidence_bars(data_quality: str) -> int:
    return DATA_QUALITY_BARS.get(data_quality, 2)


def severity_counts(severities: Iterable[str]) -> dict[str, int]:
    counts = {"critical": 0, "high": 0, "medium": 0, "low": 0}
    for severity in severities:
        if severity in counts:
            counts[severity] += 1
    return counts


def due_diligence_timeline(priority: str) -> str:
    p = (priority or "").lower()
    if p == "critical":
        return "14 days"
    if p == "high":
        return "30 days"
    return "60 days"
