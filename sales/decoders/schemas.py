from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Sequence, Tuple

from eth_abi import decode

from sales.decoders.utils import event_topic, hex_to_bytes, normalize_address
from sales.types import (
    ConsiderationItem,
    ListingPayload,
    OfferItem,
    Payload,
    SalePayload,
    SwapPayload,
)


KIND_LISTING = "listing"
KIND_SWAP = "swap"
KIND_SALE = "sale"


@dataclass(frozen=True)
class EventInput:
    name: str
    type: str
    indexed: bool = False


@dataclass(frozen=True)
class LogSchema:
    """ABI of a sale event. `events` share one input layout."""

    name: str
    kind: str
    events: Tuple[str, ...]
    inputs: Tuple[EventInput, ...]

    @property
    def signatures(self) -> Tuple[str, ...]:
        types = ",".join(i.type for i in self.inputs)
        return tuple(f"{event}({types})" for event in self.events)

    @property
    def topics(self) -> Tuple[str, ...]:
        return tuple(event_topic(sig) for sig in self.signatures)


SPENT_ITEM = "(uint8,address,uint256,uint256)"
RECEIVED_ITEM = "(uint8,address,uint256,uint256,address)"

SEAPORT = LogSchema(
    name="seaport",
    kind=KIND_LISTING,
    events=("OrderFulfilled",),
    inputs=(
        EventInput("orderHash", "bytes32"),
        EventInput("offerer", "address", indexed=True),
        EventInput("zone", "address", indexed=True),
        EventInput("recipient", "address"),
        EventInput("offer", f"{SPENT_ITEM}[]"),
        EventInput("consideration", f"{RECEIVED_ITEM}[]"),
    ),
)

NFT_TRADER = LogSchema(
    name="nft_trader",
    kind=KIND_SWAP,
    events=("swapEvent",),
    inputs=(
        EventInput("_creator", "address", indexed=True),
        EventInput("_time", "uint256", indexed=True),
        EventInput("_status", "uint8", indexed=True),
        EventInput("_swapId", "uint256"),
        EventInput("_counterpart", "address"),
        EventInput("_referral", "address"),
    ),
)

X2Y2 = LogSchema(
    name="x2y2",
    kind=KIND_SALE,
    events=("EvProfit",),
    inputs=(
        EventInput("itemHash", "bytes32"),
        EventInput("currency", "address"),
        EventInput("to", "address"),
        EventInput("amount", "uint256"),
    ),
)

LOOKSRARE = LogSchema(
    name="looksrare",
    kind=KIND_SALE,
    events=("TakerAsk", "TakerBid"),
    inputs=(
        EventInput("orderHash", "bytes32"),
        EventInput("orderNonce", "uint256"),
        EventInput("taker", "address", indexed=True),
        EventInput("maker", "address", indexed=True),
        EventInput("strategy", "address", indexed=True),
        EventInput("currency", "address"),
        EventInput("collection", "address"),
        EventInput("tokenId", "uint256"),
        EventInput("amount", "uint256"),
        EventInput("price", "uint256"),
    ),
)

SCHEMAS: Dict[str, LogSchema] = {s.name: s for s in (SEAPORT, NFT_TRADER, X2Y2, LOOKSRARE)}


def _plain(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, str) and value.startswith("0x") and len(value) == 42:
        return value.lower()
    if isinstance(value, (list, tuple)):
        return tuple(_plain(v) for v in value)
    return value


def _listing(values: Dict[str, Any]) -> ListingPayload:
    offer = tuple(
        OfferItem(item_type=int(t), token=normalize_address(tok), identifier=int(ident), amount=int(amt))
        for t, tok, ident, amt in values.get("offer") or ()
    )
    consideration = tuple(
        ConsiderationItem(
            item_type=int(t),
            token=normalize_address(tok),
            identifier=int(ident),
            amount=int(amt),
            recipient=normalize_address(rcpt),
        )
        for t, tok, ident, amt, rcpt in values.get("consideration") or ()
    )
    return ListingPayload(
        order_hash=str(values.get("orderHash") or ""),
        offerer=str(values.get("offerer") or ""),
        recipient=str(values.get("recipient") or ""),
        offer=offer,
        consideration=consideration,
    )


def _swap(values: Dict[str, Any]) -> SwapPayload:
    return SwapPayload(
        swap_id=int(values["_swapId"]),
        creator=str(values.get("_creator") or ""),
        counterpart=str(values.get("_counterpart") or ""),
        status=int(values.get("_status", -1)),
    )


def _sale(values: Dict[str, Any]) -> SalePayload:
    return SalePayload(values=dict(values))


_BUILDERS: Dict[str, Callable[[Dict[str, Any]], Payload]] = {
    KIND_LISTING: _listing,
    KIND_SWAP: _swap,
    KIND_SALE: _sale,
}


def decode_log(schema: LogSchema, data: str, topics: Sequence[str] = ()) -> Payload:
    """Decode a sale log into the payload shape of its schema.

    Non-indexed inputs come from `data`, indexed ones from `topics[1:]` when
    present. Raises when `data` does not match the schema's layout.
    """
    body = [i for i in schema.inputs if not i.indexed]
    decoded = decode([i.type for i in body], hex_to_bytes(data))
    values: Dict[str, Any] = {i.name: _plain(v) for i, v in zip(body, decoded)}

    indexed = [i for i in schema.inputs if i.indexed]
    for inp, topic in zip(indexed, list(topics)[1:]):
        values[inp.name] = _plain(decode([inp.type], hex_to_bytes(topic))[0])

    return _BUILDERS[schema.kind](values)
