from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple, Union

from sales.formatting import format_price


@dataclass(frozen=True)
class LogEntry:
    address: str
    topics: Tuple[str, ...]
    data: str
    log_index: int = 0


@dataclass(frozen=True)
class Receipt:
    tx_hash: str
    to_addr: str
    from_addr: str
    logs: Tuple[LogEntry, ...]


@dataclass(frozen=True)
class MarketDescriptor:
    name: str
    log_decoder: Optional[str] = None
    is_swap: bool = False
    is_aggregator: bool = False


@dataclass(frozen=True)
class CurrencyDescriptor:
    symbol: str
    decimals: int


@dataclass(frozen=True)
class CurrencyState:
    """Currency of a transaction: tracking log addresses, or frozen.

    The only transition is tracking -> frozen.
    """

    currency: CurrencyDescriptor
    frozen: bool = False

    def track(self, currency: CurrencyDescriptor) -> "CurrencyState":
        if self.frozen:
            return self
        return CurrencyState(currency=currency, frozen=False)

    def freeze(self) -> "CurrencyState":
        if self.frozen:
            return self
        return CurrencyState(currency=self.currency, frozen=True)


# Decoded sale-log payloads. The schema that decoded the log decides which
# of the three shapes is produced.


@dataclass(frozen=True)
class OfferItem:
    item_type: int
    token: str
    identifier: int
    amount: int


@dataclass(frozen=True)
class ConsiderationItem:
    item_type: int
    token: str
    identifier: int
    amount: int
    recipient: str


@dataclass(frozen=True)
class ListingPayload:
    order_hash: str
    offerer: str
    recipient: str
    offer: Tuple[OfferItem, ...]
    consideration: Tuple[ConsiderationItem, ...]


@dataclass(frozen=True)
class SwapPayload:
    swap_id: int
    creator: str
    counterpart: str
    status: int


@dataclass(frozen=True)
class SalePayload:
    values: Dict[str, Any]


Payload = Union[ListingPayload, SwapPayload, SalePayload]


@dataclass(frozen=True)
class SwapTransfer:
    from_addr: str
    to_addr: str
    token_id: int
    amount: int


@dataclass
class SwapState:
    monitor_token_id: Optional[int] = None
    side: Optional[str] = None
    swap_id: Optional[int] = None
    maker: Optional[str] = None
    taker: Optional[str] = None
    transfers: List[SwapTransfer] = field(default_factory=list)


@dataclass(frozen=True)
class StepResult:
    status: str
    reason: Optional[str] = None

    @property
    def aborted(self) -> bool:
        return self.status == "abort"


STEP_OK = StepResult("ok")


def skip(reason: str) -> StepResult:
    return StepResult("skip", reason)


def abort(reason: str) -> StepResult:
    return StepResult("abort", reason)


@dataclass
class TransactionSummary:
    market: MarketDescriptor
    recipient: str
    contract_address: str
    currency_state: CurrencyState
    symbol: str = ""
    is_swap: bool = False
    is_sweep: bool = False

    # filled during the scan
    tokens: List[int] = field(default_factory=list)
    token_type: Optional[str] = None
    token_id: Optional[int] = None
    from_addr: Optional[str] = None
    to_addr: Optional[str] = None
    market_list: List[MarketDescriptor] = field(default_factory=list)
    prices: List[float] = field(default_factory=list)
    total_price: float = 0.0
    swap: SwapState = field(default_factory=SwapState)

    # filled after the scan
    quantity: int = 0
    to: str = ""
    from_name: str = ""
    token_data: Dict[str, Any] = field(default_factory=dict)
    token_name: str = ""
    sweeper_addr: str = ""
    sweeper: str = ""
    usd_price: Optional[str] = None
    eth_usd_value: str = ""
    transaction_hash: str = ""

    @classmethod
    def start(
        cls,
        market: MarketDescriptor,
        recipient: str,
        contract_address: str,
        default_currency: CurrencyDescriptor,
        *,
        symbol: str = "",
    ) -> "TransactionSummary":
        state = CurrencyState(default_currency)
        if market.is_aggregator:
            state = state.freeze()
        return cls(
            market=market,
            recipient=recipient,
            contract_address=contract_address,
            currency_state=state,
            symbol=symbol,
            is_swap=market.is_swap,
            is_sweep=market.is_aggregator,
        )

    @property
    def currency(self) -> CurrencyDescriptor:
        return self.currency_state.currency

    @property
    def has_pending_token(self) -> bool:
        return len(self.market_list) + 1 == len(self.tokens)

    def credit(self, market: MarketDescriptor, price: float) -> None:
        self.total_price += price
        self.market_list.append(market)
        self.prices.append(price)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "transaction_hash": self.transaction_hash,
            "market": self.market.name,
            "markets": [m.name for m in self.market_list],
            "contract_address": self.contract_address,
            "token_type": self.token_type,
            "token_id": self.token_id,
            "token_name": self.token_name,
            "token_data": self.token_data,
            "quantity": self.quantity,
            "currency": self.currency.symbol,
            "prices": [format_price(p) for p in self.prices],
            "total_price": format_price(self.total_price),
            "usd_price": self.usd_price,
            "eth_usd_value": self.eth_usd_value,
            "from": self.from_name,
            "from_addr": self.from_addr,
            "to": self.to,
            "to_addr": self.to_addr,
            "is_swap": self.is_swap,
            "is_sweep": self.is_sweep,
            "sweeper": self.sweeper,
            "sweeper_addr": self.sweeper_addr,
            "swap": {
                "swap_id": self.swap.swap_id,
                "monitor_token_id": self.swap.monitor_token_id,
                "side": self.swap.side,
                "maker": self.swap.maker,
                "taker": self.swap.taker,
            }
            if self.is_swap
            else None,
        }
