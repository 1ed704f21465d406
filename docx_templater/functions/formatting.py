"""Number formatting with English digit grouping."""
from __future__ import annotations

from typing import Any

from docx_templater.functions.math_functions import to_number


def _grouped(value: float, decimals: int) -> str:
    decimals = max(0, int(decimals))
    text = f"{abs(value):,.{decimals}f}"
    if value < 0 and text.strip("0.,"):
        return "-" + text
    return text


def format_number(value: Any, decimals: int = 2) -> str:
    """``formatNumber 1234.567 2`` -> ``1,234.57``."""
    return _grouped(float(to_number(value)), decimals)


def format_money(value: Any, symbol: Any = "$", decimals: int = 2) -> str:
    """``formatMoney -1234.5 "$"`` -> ``-$1,234.50``."""
    text = _grouped(float(to_number(value)), decimals)
    sign = ""
    if text.startswith("-"):
        sign, text = "-", text[1:]
    return f"{sign}{'' if symbol is None else symbol}{text}"


def format_percent(value: Any, decimals: int = 0) -> str:
    """``formatPercent 0.156 1`` -> ``15.6%``."""
    return _grouped(float(to_number(value)) * 100, decimals) + "%"


FUNCTIONS = {
    "formatNumber": format_number,
    "formatMoney": format_money,
    "formatPercent": format_percent,
}
