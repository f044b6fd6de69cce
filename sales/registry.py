from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional

from bot import config
from sales.decoders.schemas import SCHEMAS
from sales.decoders.utils import normalize_address
from sales.types import CurrencyDescriptor, MarketDescriptor


@dataclass(frozen=True)
class Registries:
    markets: Mapping[str, MarketDescriptor]
    currencies: Mapping[str, CurrencyDescriptor]
    sale_topics: FrozenSet[str]
    default_currency: CurrencyDescriptor

    def market(self, address: str) -> Optional[MarketDescriptor]:
        return self.markets.get(normalize_address(address))

    def currency(self, address: str) -> Optional[CurrencyDescriptor]:
        return self.currencies.get(normalize_address(address))


def _market_descriptor(raw: Any) -> MarketDescriptor:
    if isinstance(raw, MarketDescriptor):
        return raw
    decoder = raw.get("log_decoder")
    if decoder is not None and decoder not in SCHEMAS:
        raise ValueError(f"unknown log decoder: {decoder}")
    return MarketDescriptor(
        name=str(raw.get("name", "")),
        log_decoder=decoder,
        is_swap=bool(raw.get("is_swap", False)),
        is_aggregator=bool(raw.get("is_aggregator", False)),
    )


def _currency_descriptor(raw: Any) -> CurrencyDescriptor:
    if isinstance(raw, CurrencyDescriptor):
        return raw
    return CurrencyDescriptor(symbol=str(raw["symbol"]), decimals=int(raw["decimals"]))


def build_registries(
    markets: Mapping[str, Any],
    currencies: Mapping[str, Any],
    *,
    default_currency: Any = None,
) -> Registries:
    """Build immutable lookups from raw config mappings (address -> dict)."""
    market_map: Dict[str, MarketDescriptor] = {
        normalize_address(addr): _market_descriptor(raw) for addr, raw in markets.items()
    }
    currency_map: Dict[str, CurrencyDescriptor] = {
        normalize_address(addr): _currency_descriptor(raw) for addr, raw in currencies.items()
    }
    sale_topics = frozenset(topic for schema in SCHEMAS.values() for topic in schema.topics)
    return Registries(
        markets=MappingProxyType(market_map),
        currencies=MappingProxyType(currency_map),
        sale_topics=sale_topics,
        default_currency=_currency_descriptor(default_currency or config.DEFAULT_CURRENCY),
    )


@lru_cache(maxsize=1)
def load_registries() -> Registries:
    return build_registries(config.MARKETS, config.CURRENCIES, default_currency=config.DEFAULT_CURRENCY)
