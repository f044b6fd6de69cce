from __future__ import annotations

from typing import Optional


def format_price(value: Optional[float]) -> str:
    """Display form of a price: thousands separators, at most 4 decimals, no trailing zeros."""
    if value is None:
        return ""
    v = float(value)
    if v == 0:
        return "0"
    if abs(v) >= 1000:
        text = f"{v:,.2f}"
    else:
        text = f"{v:,.4f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_usd(value: float) -> str:
    return f"{float(value):,.2f}"

