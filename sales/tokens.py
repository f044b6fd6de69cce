"""Token-movement extraction for the monitored collection.

Only logs emitted by the monitored contract matter; anything else is a no-op.
ERC721 transfers record token ids (quantity = count), ERC1155 transfers
record amounts (quantity = sum).
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from eth_abi import decode

from sales.decoders.utils import event_topic, hex_to_bytes, normalize_address, topic_to_address, topic_to_int
from sales.types import LogEntry, SwapTransfer, TransactionSummary


TRANSFER_TOPIC = event_topic("Transfer(address,address,uint256)")
TRANSFER_SINGLE_TOPIC = event_topic("TransferSingle(address,address,address,uint256,uint256)")
TRANSFER_BATCH_TOPIC = event_topic("TransferBatch(address,address,address,uint256[],uint256[])")

ERC721 = "ERC721"
ERC1155 = "ERC1155"

# (token_type, from, to, [(token_id, amount), ...])
Movement = Tuple[str, str, str, List[Tuple[int, int]]]


def read_movement(log: LogEntry) -> Optional[Movement]:
    """Parse an NFT transfer log, or None when the log is not one."""
    topics = log.topics
    if not topics:
        return None
    topic0 = topics[0]

    # ERC20 Transfer has the same signature but only 3 topics.
    if topic0 == TRANSFER_TOPIC and len(topics) == 4:
        token_id = topic_to_int(topics[3])
        return ERC721, topic_to_address(topics[1]), topic_to_address(topics[2]), [(token_id, 1)]

    if topic0 == TRANSFER_SINGLE_TOPIC and len(topics) == 4:
        try:
            token_id, amount = decode(["uint256", "uint256"], hex_to_bytes(log.data))
        except Exception:
            return None
        return ERC1155, topic_to_address(topics[2]), topic_to_address(topics[3]), [(int(token_id), int(amount))]

    if topic0 == TRANSFER_BATCH_TOPIC and len(topics) == 4:
        try:
            ids, amounts = decode(["uint256[]", "uint256[]"], hex_to_bytes(log.data))
        except Exception:
            return None
        pairs = [(int(i), int(a)) for i, a in zip(ids, amounts)]
        return ERC1155, topic_to_address(topics[2]), topic_to_address(topics[3]), pairs

    return None


def extract_sale_tokens(tx: TransactionSummary, log: LogEntry) -> None:
    if normalize_address(log.address) != tx.contract_address:
        return
    movement = read_movement(log)
    if movement is None:
        return
    token_type, from_addr, to_addr, items = movement
    tx.token_type = token_type
    for token_id, amount in items:
        if tx.token_id is None:
            tx.token_id = token_id
        tx.tokens.append(token_id if token_type == ERC721 else amount)
    tx.from_addr = from_addr
    tx.to_addr = to_addr


def extract_swap_tokens(tx: TransactionSummary, log: LogEntry) -> None:
    if normalize_address(log.address) != tx.contract_address:
        return
    movement = read_movement(log)
    if movement is None:
        return
    token_type, from_addr, to_addr, items = movement
    tx.token_type = token_type
    for token_id, amount in items:
        tx.swap.transfers.append(
            SwapTransfer(from_addr=from_addr, to_addr=to_addr, token_id=token_id, amount=amount)
        )
