"""
Dollar amounts from free-form cost text.

Handles the phrasings the analytics service actually emits:
  "60% of property value = $2,700,000" -> 2_700_000
  "$1.35M"                             -> 1_350_000
  "ABSD: $500,000"                     -> 500_000
  "10M penalty"                        -> 10_000_000
Always returns a float; anything unparseable is 0.0.
"""
from __future__ import annotations

import math
import re
from typing import Any

from engine.coerce import coerce, coerce_number

_MULTIPLIERS = {"M": 1_000_000.0, "K": 1_000.0}

_DOLLAR_SUFFIX = re.compile(r"\$([\d.]+)([MK])", re.IGNORECASE)
_DOLLAR_MILLIONS = re.compile(r"\$([\d.]+)M", re.IGNORECASE)
_DOLLAR_THOUSANDS = re.compile(r"\$([\d.]+)K", re.IGNORECASE)
_DOLLAR_GROUPED = re.compile(r"\$([\d,]+)")
_BARE_MILLIONS = re.compile(r"\b([\d.]+)M\b", re.IGNORECASE)
_BARE_THOUSANDS = re.compile(r"\b([\d.]+)K\b", re.IGNORECASE)
_SUFFIX_WORD_END = re.compile(r"[MK]\b", re.IGNORECASE)
_BARE_NUMBER = re.compile(r"\$?([\d.]+)")
_LEADING_FLOAT = re.compile(r"\d+\.?\d*|\.\d+")


def _leading_float(text: str) -> float | None:
    """First decimal number at the start of text ("1.2.3" -> 1.2); None if there is none."""
    match = _LEADING_FLOAT.match(text.replace(",", ""))
    if not match:
        return None
    value = float(match.group(0))
    return None if math.isinf(value) else value


def _suffix_amount(text: str) -> float | None:
    match = _DOLLAR_SUFFIX.search(text)
    if not match:
        return None
    value = _leading_float(match.group(1))
    if value is None:
        return None
    return value * _MULTIPLIERS[match.group(2).upper()]


def _grouped_amount(text: str) -> float | None:
    match = _DOLLAR_GROUPED.search(text)
    if not match:
        return None
    return _leading_float(match.group(1))


def _scaled(pattern: re.Pattern[str], text: str, multiplier: float) -> float | None:
    match = pattern.search(text)
    if not match:
        return None
    value = _leading_float(match.group(1))
    return None if value is None else value * multiplier


def _parse_text(text: str) -> float:
    working = text.rsplit("=", 1)[-1].strip() if "=" in text else text.strip()
    if working:
        # Suffix first: "$50K" must not be read as "$50".
        for parse in (_suffix_amount, _grouped_amount):
            found = parse(working)
            if found is not None:
                return found

    for found in (
        _scaled(_DOLLAR_MILLIONS, text, _MULTIPLIERS["M"]),
        _scaled(_DOLLAR_THOUSANDS, text, _MULTIPLIERS["K"]),
        _grouped_amount(text),
        _scaled(_BARE_MILLIONS, text, _MULTIPLIERS["M"]),
        _scaled(_BARE_THOUSANDS, text, _MULTIPLIERS["K"]),
    ):
        if found is not None:
            return found

    if "%" not in text and not _SUFFIX_WORD_END.search(text):
        found = _scaled(_BARE_NUMBER, text, 1.0)
        if found is not None:
            return found
    return 0.0


def parse_amount(text: Any) -> float:
    if text is None or isinstance(text, bool):
        return 0.0
    if isinstance(text, (int, float)):
        return coerce_number(text, 0.0) or 0.0
    if not isinstance(text, str):
        text = coerce(text)
    if not text:
        return 0.0
    amount = _parse_text(text)
    return amount if math.isfinite(amount) else 0.0
