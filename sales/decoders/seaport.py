from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional

from bot import config
from sales.decoders.sale import scale_price
from sales.types import CurrencyDescriptor, ListingPayload, TransactionSummary

if TYPE_CHECKING:
    from sales.registry import Registries


ITEM_NATIVE = 0
ITEM_ERC20 = 1
ITEM_ERC721 = 2
ITEM_ERC1155 = 3
ITEM_ERC721_WITH_CRITERIA = 4
ITEM_ERC1155_WITH_CRITERIA = 5

NFT_ITEM_TYPES = (ITEM_ERC721, ITEM_ERC1155, ITEM_ERC721_WITH_CRITERIA, ITEM_ERC1155_WITH_CRITERIA)
PAYMENT_ITEM_TYPES = (ITEM_NATIVE, ITEM_ERC20)


@dataclass(frozen=True)
class ListingPrice:
    price: float
    currency: CurrencyDescriptor


def _has_collection_item(items: Iterable, contract_address: str) -> bool:
    return any(i.item_type in NFT_ITEM_TYPES and i.token == contract_address for i in items)


def _payment_currency(tx: TransactionSummary, token: str, registries: Registries) -> CurrencyDescriptor:
    if token == getattr(config, "ZERO_ADDRESS", "0x" + "00" * 20):
        return registries.default_currency
    return registries.currency(token) or tx.currency


def decode_listing_price(
    tx: TransactionSummary,
    payload: ListingPayload,
    registries: Registries,
) -> Optional[ListingPrice]:
    """Settlement price of an OrderFulfilled log for the monitored collection.

    A listing fill carries the NFT in `offer` and the payment in
    `consideration`; an accepted offer is the reverse. Returns None when the
    order moved nothing from the collection, paid nothing, or has no
    recorded transfer left to attribute a price to.
    """
    if _has_collection_item(payload.offer, tx.contract_address):
        payments = [i for i in payload.consideration if i.item_type in PAYMENT_ITEM_TYPES]
    elif _has_collection_item(payload.consideration, tx.contract_address):
        payments = [i for i in payload.offer if i.item_type in PAYMENT_ITEM_TYPES]
    else:
        return None

    if not payments:
        return None
    if len(tx.market_list) >= len(tx.tokens):
        return None

    currency = _payment_currency(tx, payments[0].token, registries)
    raw = sum(i.amount for i in payments if i.token == payments[0].token)
    if raw <= 0:
        return None
    return ListingPrice(price=scale_price(raw, currency.decimals), currency=currency)
