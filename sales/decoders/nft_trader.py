from __future__ import annotations

import logging
from typing import Optional

from sales.decoders.utils import normalize_address
from sales.types import LogEntry, SwapPayload, SwapTransfer, TransactionSummary


logger = logging.getLogger(__name__)

# SwapStatus enum of the NFT Trader contract.
STATUS_OPENED = 0
STATUS_CLOSED = 1
STATUS_CANCELLED = 2


def _is_zero(addr: str) -> bool:
    try:
        return int(addr or "0x0", 16) == 0
    except ValueError:
        return True


def _monitored_transfer(tx: TransactionSummary, maker: str, taker: str) -> Optional[SwapTransfer]:
    for transfer in tx.swap.transfers:
        if transfer.from_addr in (maker, taker):
            return transfer
    return None


async def resolve_swap(tx: TransactionSummary, log: LogEntry, payload: SwapPayload, lookups=None) -> bool:
    """Attribute the monitored token of a closed swap to one side.

    The maker is the event creator, the taker the counterpart. Open swaps
    (no fixed counterpart) need one swap-intent lookup to learn the taker.
    Returns False when the swap is not closed, an open swap cannot be looked
    up, or no transfer of the monitored collection can be attributed to
    either party.
    """
    if payload.status != STATUS_CLOSED:
        logger.debug("swap %s status=%s, not a completed trade", payload.swap_id, payload.status)
        return False

    maker = normalize_address(payload.creator)
    taker = normalize_address(payload.counterpart)
    if _is_zero(taker) or not maker:
        if lookups is None:
            return False
        intent = await lookups.fetch_swap_intent(log.address, payload.swap_id)
        if not intent:
            return False
        maker = maker or normalize_address(intent.get("maker"))
        taker = normalize_address(intent.get("taker"))
        if _is_zero(taker):
            return False

    transfer = _monitored_transfer(tx, maker, taker)
    if transfer is None:
        return False

    tx.swap.swap_id = payload.swap_id
    tx.swap.maker = maker
    tx.swap.taker = taker
    tx.swap.monitor_token_id = transfer.token_id
    tx.swap.side = "maker" if transfer.from_addr == maker else "taker"
    return True
