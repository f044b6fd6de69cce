from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, Optional

from bot import config
from sales.lookups import ChainLookups
from sales.tokens import ERC721
from sales.types import Receipt, TransactionSummary


logger = logging.getLogger(__name__)


async def _const(value: Any) -> Any:
    return value


def compute_quantity(tx: TransactionSummary) -> int:
    if tx.token_type == ERC721:
        return len(tx.tokens)
    return int(sum(tx.tokens))


def is_complete(tx: TransactionSummary) -> bool:
    if tx.is_swap:
        return tx.swap.monitor_token_id is not None
    return tx.quantity > 0


async def finalize_summary(
    tx: TransactionSummary,
    receipt: Receipt,
    lookups: ChainLookups,
    *,
    transaction_hash: Optional[str] = None,
) -> Optional[TransactionSummary]:
    """Quantity, completeness check and enrichment of a scanned summary.

    Name resolution, token metadata and the fiat value are independent and
    run concurrently; all of them complete before the summary is returned.
    """
    tx.quantity = compute_quantity(tx)
    if not is_complete(tx):
        logger.error("No tokens found. Please check the contract address is correct.")
        return None

    token_id = tx.swap.monitor_token_id if tx.swap.monitor_token_id is not None else tx.token_id
    token_type = tx.token_type or "UNKNOWN"
    tx.sweeper_addr = receipt.from_addr
    wants_fiat = not tx.is_swap and tx.currency.symbol in getattr(config, "FIAT_CURRENCIES", ["ETH", "WETH"])

    lookups_due: Dict[str, Awaitable[Any]] = {
        "to": lookups.resolve_name(tx.to_addr or "") if not tx.is_swap else _const(""),
        "from": lookups.resolve_name(tx.from_addr or "") if not tx.is_swap else _const(""),
        "token_data": lookups.fetch_token_metadata(tx.contract_address, token_type, token_id),
        "sweeper": lookups.resolve_name(tx.sweeper_addr) if tx.is_sweep else _const(""),
        "usd_price": lookups.fetch_fiat_rate(tx.total_price) if wants_fiat else _const(None),
    }
    results = dict(zip(lookups_due.keys(), await asyncio.gather(*lookups_due.values())))

    tx.to = results["to"] or ""
    tx.from_name = results["from"] or ""
    tx.token_data = results["token_data"] or {"name": ""}
    tx.token_name = tx.token_data.get("name") or f"{tx.symbol} #{token_id}"
    tx.sweeper = results["sweeper"] or ""
    tx.usd_price = results["usd_price"]
    tx.eth_usd_value = f"($ {tx.usd_price})" if tx.usd_price else ""
    tx.transaction_hash = transaction_hash or receipt.tx_hash
    return tx
