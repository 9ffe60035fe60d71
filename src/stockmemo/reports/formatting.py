"""Formatting helpers for memo values. Every helper maps unusable input to "N/A"."""
from __future__ import annotations

import math
from typing import Any, NamedTuple, Optional

import pandas as pd

from stockmemo.domain.models.memo import NOT_AVAILABLE, NOT_DISCLOSED

CURRENCY_SYMBOL = "$"

_SCALES = ((1e12, "T"), (1e9, "B"), (1e6, "M"))


class ChangeStyle(NamedTuple):
    css_class: str
    glyph: str


POSITIVE = ChangeStyle("positive", "↑")
NEGATIVE = ChangeStyle("negative", "↓")


def parse_number(value: Any) -> Optional[float]:
    """Parse a decimal from numbers or numeric strings; sentinels and junk give None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text or text in (NOT_DISCLOSED, NOT_AVAILABLE):
            return None
        value = text.rstrip("%").strip()
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return None
    return parsed if math.isfinite(parsed) else None


def format_ratio(value: Any) -> str:
    number = parse_number(value)
    if number is None:
        return NOT_AVAILABLE
    return f"{number:.2f}"


def format_percent(value: Any) -> str:
    number = parse_number(value)
    if number is None:
        return NOT_AVAILABLE
    return f"{number:.2f}%"


def format_price(value: Any, symbol: str = CURRENCY_SYMBOL) -> str:
    number = parse_number(value)
    if number is None:
        return NOT_AVAILABLE
    return f"{symbol}{number:.2f}"


def format_large_number(value: Any, symbol: str = CURRENCY_SYMBOL) -> str:
    """Scale to T/B/M by absolute value, always two decimals: 1.5e9 -> "$1.50B"."""
    number = parse_number(value)
    if number is None:
        return NOT_AVAILABLE
    for threshold, suffix in _SCALES:
        if abs(number) >= threshold:
            return f"{symbol}{number / threshold:.2f}{suffix}"
    return f"{symbol}{number:.2f}"


def classify_change(value: Any) -> ChangeStyle:
    """Non-negative changes are positive; negative or unparseable ones are negative."""
    number = parse_number(value)
    if number is not None and number >= 0:
        return POSITIVE
    return NEGATIVE


def year_label(date_value: Any, index: int) -> str:
    """Calendar year of an ISO date string, or a positional label when unparseable."""
    parsed = pd.to_datetime(date_value, errors="coerce") if date_value else pd.NaT
    if pd.isna(parsed):
        return f"Year {index + 1}"
    return str(parsed.year)
