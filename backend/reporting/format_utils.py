"""Consistent formatting for audit numbers and dates. Never render raw floats."""
from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Any

EMPTY = "—"

_LEADING_NUMBER = re.compile(r"-?(?:\d+\.?\d*|\.\d+)")


def _finite_or_none(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    parsed = float(value)
    if math.isnan(parsed) or math.isinf(parsed):
        return None
    return parsed


def _currency_amount(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, dict):
        for key in ("value", "amount", "total"):
            parsed = _finite_or_none(value.get(key))
            if parsed is not None:
                return parsed
        return 0.0
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.\-]", "", value)
        match = _LEADING_NUMBER.match(cleaned)
        if not match:
            return 0.0
        try:
            return float(match.group(0))
        except ValueError:
            return 0.0
    parsed = _finite_or_none(value)
    return parsed if parsed is not None else 0.0


def format_currency(value: Any) -> str:
    """
    Compact dollar display: $1.35B, $2.70M, $968K, $4.5K, $950.
    Strings are stripped to their digits first; objects use value/amount/total.
    """
    amount = _currency_amount(value)
    sign = "-" if amount < 0 else ""
    n = abs(amount)
    if n >= 1_000_000_000:
        body = f"{n / 1_000_000_000:.2f}B"
    elif n >= 1_000_000:
        body = f"{n / 1_000_000:.2f}M"
    elif n >= 10_000:
        body = f"{n / 1_000:.0f}K"
    elif n >= 1_000:
        body = f"{n / 1_000:.1f}K"
    else:
        body = f"{n:,.0f}"
    return f"{sign}${body}"


def format_signed_currency(value: Any) -> str:
    amount = _currency_amount(value)
    return f"+{format_currency(amount)}" if amount >= 0 else format_currency(amount)


def format_number(value: float, precision: int = 0) -> str:
    """Grouped thousands; counts stay whole, sub-unit floats keep two places."""
    if precision <= 0:
        if isinstance(value, int) or abs(value) >= 1:
            return f"{value:,.0f}"
        return f"{value:,.2f}"
    return f"{value:,.{precision}f}"


def format_percent(value: Any, precision: int = 0, signed: bool = True) -> str:
    """Percentage points (already 0-100). Positive values carry a leading + unless signed=False."""
    if value is None:
        return "0%"
    n = _finite_or_none(value)
    if n is None and isinstance(value, str):
        match = _LEADING_NUMBER.match(value.strip().lstrip("+"))
        n = float(match.group(0)) if match else None
    if n is None:
        return "0%"
    sign = "+" if signed and n > 0 else ""
    return f"{sign}{n:.{precision}f}%"


def format_differential(value: Any) -> str:
    """Per-category tax differential; zero renders as an em dash."""
    n = _finite_or_none(value)
    if n is None or n == 0:
        return EMPTY
    return format_percent(n, precision=0 if float(n).is_integer() else 1)


def clean_jurisdiction(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, dict):
        for key in ("name", "country"):
            if isinstance(value.get(key), str):
                return clean_jurisdiction(value[key])
        return ""
    if not isinstance(value, str):
        return str(value)
    words = value.replace("_", " ").split(" ")
    return " ".join(w[:1].upper() + w[1:].lower() for w in words)


def format_date(d: Any) -> str:
    """Institutional long form, e.g. 'January 15, 2026'. Unparseable input renders today's date."""
    if isinstance(d, dict):
        d = d.get("date") or d.get("timestamp")
    parsed: date | None = None
    if isinstance(d, datetime):
        parsed = d.date()
    elif isinstance(d, date):
        parsed = d
    elif d:
        text = str(d).strip()
        for fmt in ("%Y-%m-%d", "%m.%d.%Y", "%m/%d/%Y", "%d.%m.%Y", "%Y/%m/%d"):
            try:
                parsed = datetime.strptime(text[:10], fmt).date()
                break
            except ValueError:
                continue
    if parsed is None:
        parsed = date.today()
    return f"{parsed:%B} {parsed.day}, {parsed.year}"
