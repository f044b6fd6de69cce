from __future__ import annotations

from decimal import Decimal
from typing import Optional

from bot import config
from sales.types import CurrencyDescriptor, MarketDescriptor, SalePayload


def scale_price(raw: int, decimals: int) -> float:
    """Raw integer amount -> display units (raw / 10**decimals)."""
    return float(Decimal(int(raw)) / (Decimal(10) ** int(decimals)))


def unscale_price(value: float, decimals: int) -> int:
    return int((Decimal(str(value)) * (Decimal(10) ** int(decimals))).to_integral_value())


def price_field(market: MarketDescriptor) -> str:
    if market.name == getattr(config, "X2Y2_MARKET_NAME", "X2Y2 ⭕️"):
        return "amount"
    return "price"


def decode_sale_price(market: MarketDescriptor, payload: SalePayload, currency: CurrencyDescriptor) -> Optional[float]:
    """None when the decoded event has no field this market is priced by."""
    raw = payload.values.get(price_field(market))
    if raw is None:
        return None
    return scale_price(int(raw), currency.decimals)
