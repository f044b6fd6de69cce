"""Log classification and routing for one transaction receipt.

The scan is a fold over the receipt's logs in order: every step returns a
StepResult and the first "abort" ends the parse with no summary. Log order
matters, a generic sale price is only attributed to the single token
recorded since the last credited market.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from infra.metrics import METRICS
from sales.decoders import SCHEMAS, decode_listing_price, decode_log, decode_sale_price, resolve_swap
from sales.decoders.utils import normalize_address, normalize_topic
from sales.finalize import finalize_summary
from sales.lookups import ChainLookups
from sales.registry import Registries, load_registries
from sales.tokens import extract_sale_tokens, extract_swap_tokens
from sales.types import (
    STEP_OK,
    ListingPayload,
    LogEntry,
    Receipt,
    SalePayload,
    StepResult,
    SwapPayload,
    TransactionSummary,
    abort,
    skip,
)


logger = logging.getLogger(__name__)


def _normalized(log: LogEntry) -> LogEntry:
    """Lower-case address and topics; node clients may return checksummed forms."""
    return replace(
        log,
        address=normalize_address(log.address),
        topics=tuple(normalize_topic(t) for t in log.topics),
    )


async def process_log(
    tx: TransactionSummary,
    log: LogEntry,
    *,
    registries: Registries,
    lookups: Optional[ChainLookups] = None,
) -> StepResult:
    log = _normalized(log)
    log_address = log.address
    log_market = registries.market(log_address)

    currency = registries.currency(log_address)
    if currency is not None:
        tx.currency_state = tx.currency_state.track(currency)

    if tx.is_swap:
        extract_swap_tokens(tx, log)
    else:
        extract_sale_tokens(tx, log)

    topic0 = log.topics[0] if log.topics else None
    is_sale_topic = topic0 in registries.sale_topics
    is_sale = log_address == tx.recipient and is_sale_topic
    is_aggregator_sale = log_market is not None and is_sale_topic
    if not (is_sale or is_aggregator_sale):
        return STEP_OK

    if is_sale:
        schema_name = tx.market.log_decoder
    else:
        schema_name = log_market.log_decoder
    schema = SCHEMAS.get(schema_name) if schema_name else None
    if schema is None:
        return abort("missing_log_decoder")

    try:
        payload = decode_log(schema, log.data, log.topics)
    except Exception as e:
        logger.info("log %s of %s does not match %s: %s", log.log_index, log_address, schema.name, e)
        return abort("decode_failed")

    credited = log_market or tx.market

    if isinstance(payload, ListingPayload):
        listing = decode_listing_price(tx, payload, registries)
        if listing is None:
            return skip("no_listing_price")
        tx.currency_state = tx.currency_state.track(listing.currency)
        tx.credit(credited, listing.price)
        return STEP_OK

    if isinstance(payload, SwapPayload):
        if not await resolve_swap(tx, log, payload, lookups):
            return abort("swap_unresolved")
        return STEP_OK

    if isinstance(payload, SalePayload) and tx.has_pending_token:
        price = decode_sale_price(credited, payload, tx.currency)
        if price is None:
            return skip("no_sale_price")
        tx.credit(credited, price)
        return STEP_OK

    return skip("no_pending_token")


async def scan_logs(
    tx: TransactionSummary,
    logs: Iterable[LogEntry],
    *,
    registries: Registries,
    lookups: Optional[ChainLookups] = None,
) -> StepResult:
    for log in logs:
        step = await process_log(tx, log, registries=registries, lookups=lookups)
        if step.aborted:
            return step
        if step.status == "skip":
            METRICS.inc_reason("log_skip_by_reason", str(step.reason))
            logger.debug("skipped log %s: %s", log.log_index, step.reason)
    return STEP_OK


def _aborted(tx_hash: str, reason: str) -> None:
    METRICS.inc_reason("parse_abort_by_reason", reason)
    logger.info("tx %s not applicable: %s", tx_hash, reason)


async def parse_receipt(
    receipt: Receipt,
    contract_address: str,
    *,
    lookups: Optional[ChainLookups] = None,
    registries: Optional[Registries] = None,
    symbol: str = "",
) -> Optional[TransactionSummary]:
    """Scan a receipt into a summary (not finalized), or None on abort."""
    registries = registries or load_registries()
    METRICS.inc("tx_scanned_total")

    recipient = normalize_address(receipt.to_addr)
    market = registries.market(recipient)
    if market is None:
        _aborted(receipt.tx_hash, "unknown_market")
        return None

    tx = TransactionSummary.start(
        market,
        recipient,
        normalize_address(contract_address),
        registries.default_currency,
        symbol=symbol,
    )
    step = await scan_logs(tx, receipt.logs, registries=registries, lookups=lookups)
    if step.aborted:
        _aborted(receipt.tx_hash, str(step.reason))
        return None
    return tx


async def parse_transaction(
    lookups: ChainLookups,
    transaction_hash: str,
    contract_address: str,
    *,
    registries: Optional[Registries] = None,
    symbol: str = "",
) -> Optional[TransactionSummary]:
    """Fetch, scan and finalize one transaction. None: not a tracked sale/swap."""
    receipt = await lookups.fetch_receipt(transaction_hash)
    tx = await parse_receipt(receipt, contract_address, lookups=lookups, registries=registries, symbol=symbol)
    if tx is None:
        return None
    summary = await finalize_summary(tx, receipt, lookups, transaction_hash=transaction_hash)
    if summary is None:
        _aborted(transaction_hash, "no_tokens")
        return None
    METRICS.inc("tx_parsed_total")
    return summary
