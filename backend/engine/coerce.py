"""
Value coercion for loosely-typed audit payloads.

Upstream fields arrive as strings, numbers, booleans or small wrapper objects
({"display": "$1.2M"}, {"amount": 1200000}). `coerce` turns any of them into a
display string and `coerce_number` into a float. Neither ever surfaces a
stringified dict or list: unknown shapes fall through to the fallback.
"""
from __future__ import annotations

import math
import re
from typing import Any

from reporting.format_utils import format_currency

_DISPLAY_KEYS = ("display", "formatted", "value", "label", "name", "text", "title", "description")
_CURRENCY_KEYS = ("amount", "total", "value")
_NUMERIC_KEYS = ("value", "amount", "total", "display", "formatted")
_SHORT_TEXT_LIMIT = 100

# "$1,234.56", "8%", "+80%", "45/SF"
_NUMBER_IN_TEXT = re.compile(r"-?\d+(?:,\d{3})*(?:\.\d+)?|-?\.\d+")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _number_text(value: int | float) -> str:
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if value.is_integer():
            return str(int(value))
    return str(value)


def _scalar_text(value: Any) -> str | None:
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, str):
        return value
    if _is_number(value):
        return _number_text(value)
    return None


def coerce(value: Any, fallback: str = "") -> str:
    if value is None:
        return fallback
    scalar = _scalar_text(value)
    if scalar is not None:
        return scalar
    if isinstance(value, dict):
        for key in _DISPLAY_KEYS:
            candidate = value.get(key)
            if candidate and not isinstance(candidate, (dict, list, tuple)):
                text = _scalar_text(candidate)
                if text is not None:
                    return text
        for key in _CURRENCY_KEYS:
            if _is_number(value.get(key)):
                return format_currency(value[key])
        return _first_short_scalar(value.values(), fallback)
    if isinstance(value, (list, tuple)):
        return _first_short_scalar(value, fallback)
    return fallback


def _first_short_scalar(values: Any, fallback: str) -> str:
    for v in values:
        if isinstance(v, str) and 0 < len(v) < _SHORT_TEXT_LIMIT:
            return v
        if _is_number(v):
            return _number_text(v)
    return fallback


def _number_from_text(text: str) -> float | None:
    match = _NUMBER_IN_TEXT.search(text.strip())
    if not match:
        return None
    try:
        parsed = float(match.group(0).replace(",", ""))
    except ValueError:
        return None
    # a long enough digit run overflows to inf
    return parsed if math.isfinite(parsed) else None


def coerce_number(value: Any, fallback: float | None = 0.0) -> float | None:
    if value is None or isinstance(value, bool):
        return fallback
    if _is_number(value):
        parsed = float(value)
        if math.isnan(parsed) or math.isinf(parsed):
            return fallback
        return parsed
    if isinstance(value, str):
        parsed = _number_from_text(value)
        return fallback if parsed is None else parsed
    if isinstance(value, dict):
        for key in _NUMERIC_KEYS:
            candidate = value.get(key)
            if isinstance(candidate, (dict, list, tuple)):
                continue
            parsed = coerce_number(candidate, None)
            if parsed is not None:
                return parsed
    return fallback


def coerce_int(value: Any, fallback: int = 0) -> int:
    parsed = coerce_number(value, None)
    if parsed is None:
        return fallback
    return int(math.floor(parsed + 0.5))


def coerce_list(value: Any) -> list[Any]:
    return list(value) if isinstance(value, (list, tuple)) else []


def coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def coerce_text_list(value: Any, limit: int | None = None) -> list[str]:
    out: list[str] = []
    for item in coerce_list(value):
        text = coerce(item).strip()
        if text:
            out.append(text)
    return out if limit is None else out[:limit]
