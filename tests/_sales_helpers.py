from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from eth_abi import encode

from sales.decoders.schemas import LOOKSRARE, NFT_TRADER, SEAPORT, X2Y2
from sales.tokens import TRANSFER_BATCH_TOPIC, TRANSFER_SINGLE_TOPIC, TRANSFER_TOPIC
from sales.types import LogEntry, Receipt


SEAPORT_ADDR = "0x00000000006c3852cbef3e08e8df289169ede581"
X2Y2_ADDR = "0x74312363e45dcaba76c59ec49a7aa8a65a67eed3"
LOOKSRARE_ADDR = "0x59728544b08ab483533076417fbbb2fd0b17ce3a"
NFT_TRADER_ADDR = "0xc310e760778ecbca4c65b6c559874757a4c4ece0"
GEM_ADDR = "0x83c8f28c26bf6aaca652df1dbbe0e1b56f8baba2"
WETH_ADDR = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"
USDC_ADDR = "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48"
ZERO = "0x" + "00" * 20

ONE_ETH = 10**18


def addr(ch: str) -> str:
    return "0x" + (ch * 40)


COLLECTION = addr("c")
OTHER_COLLECTION = addr("d")
SELLER = addr("1")
BUYER = addr("2")
SWEEPER = addr("3")
TX_HASH = "0x" + "ab" * 32


def topic_addr(a: str) -> str:
    return "0x" + "0" * 24 + a[2:].lower()


def topic_int(n: int) -> str:
    return "0x" + f"{int(n):064x}"


def _data(types: Sequence[str], values: Sequence[Any]) -> str:
    return "0x" + encode(list(types), list(values)).hex()


def erc721_transfer(token_id: int, *, from_addr: str = SELLER, to_addr: str = BUYER, contract: str = COLLECTION) -> LogEntry:
    return LogEntry(
        address=contract,
        topics=(TRANSFER_TOPIC, topic_addr(from_addr), topic_addr(to_addr), topic_int(token_id)),
        data="0x",
    )


def erc20_transfer(amount: int, *, contract: str = WETH_ADDR, from_addr: str = BUYER, to_addr: str = SELLER) -> LogEntry:
    return LogEntry(
        address=contract,
        topics=(TRANSFER_TOPIC, topic_addr(from_addr), topic_addr(to_addr)),
        data=_data(["uint256"], [amount]),
    )


def erc1155_single(token_id: int, amount: int, *, from_addr: str = SELLER, to_addr: str = BUYER, contract: str = COLLECTION) -> LogEntry:
    return LogEntry(
        address=contract,
        topics=(TRANSFER_SINGLE_TOPIC, topic_addr(BUYER), topic_addr(from_addr), topic_addr(to_addr)),
        data=_data(["uint256", "uint256"], [token_id, amount]),
    )


def erc1155_batch(ids: List[int], amounts: List[int], *, contract: str = COLLECTION) -> LogEntry:
    return LogEntry(
        address=contract,
        topics=(TRANSFER_BATCH_TOPIC, topic_addr(BUYER), topic_addr(SELLER), topic_addr(BUYER)),
        data=_data(["uint256[]", "uint256[]"], [ids, amounts]),
    )


def x2y2_profit(amount: int, *, market: str = X2Y2_ADDR, currency: str = ZERO) -> LogEntry:
    return LogEntry(
        address=market,
        topics=(X2Y2.topics[0],),
        data=_data(["bytes32", "address", "address", "uint256"], [b"\x01" * 32, currency, SELLER, amount]),
    )


def looksrare_taker_bid(price: int, *, token_id: int = 1, market: str = LOOKSRARE_ADDR, currency: str = WETH_ADDR) -> LogEntry:
    return LogEntry(
        address=market,
        topics=(LOOKSRARE.topics[1], topic_addr(BUYER), topic_addr(SELLER), topic_addr(addr("5"))),
        data=_data(
            ["bytes32", "uint256", "address", "address", "uint256", "uint256", "uint256"],
            [b"\x02" * 32, 7, currency, COLLECTION, token_id, 1, price],
        ),
    )


def spent(item_type: int, token: str, identifier: int, amount: int) -> Tuple[int, str, int, int]:
    return (item_type, token, identifier, amount)


def received(item_type: int, token: str, identifier: int, amount: int, recipient: str) -> Tuple[int, str, int, int, str]:
    return (item_type, token, identifier, amount, recipient)


def seaport_fulfilled(offer: list, consideration: list, *, market: str = SEAPORT_ADDR, offerer: str = SELLER) -> LogEntry:
    return LogEntry(
        address=market,
        topics=(SEAPORT.topics[0], topic_addr(offerer), topic_addr(ZERO)),
        data=_data(
            [
                "bytes32",
                "address",
                "(uint8,address,uint256,uint256)[]",
                "(uint8,address,uint256,uint256,address)[]",
            ],
            [b"\x03" * 32, BUYER, offer, consideration],
        ),
    )


def swap_event(swap_id: int, *, creator: str = SELLER, counterpart: str = BUYER, status: int = 1) -> LogEntry:
    return LogEntry(
        address=NFT_TRADER_ADDR,
        topics=(NFT_TRADER.topics[0], topic_addr(creator), topic_int(1_650_000_000), topic_int(status)),
        data=_data(["uint256", "address", "address"], [swap_id, counterpart, ZERO]),
    )


def make_receipt(to_addr: str, logs: Sequence[LogEntry], *, from_addr: str = BUYER, tx_hash: str = TX_HASH) -> Receipt:
    indexed = tuple(
        LogEntry(address=log.address, topics=log.topics, data=log.data, log_index=i) for i, log in enumerate(logs)
    )
    return Receipt(tx_hash=tx_hash, to_addr=to_addr, from_addr=from_addr, logs=indexed)


class FakeLookups:
    def __init__(
        self,
        *,
        receipt: Optional[Receipt] = None,
        names: Optional[Dict[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        usd: Optional[str] = "1,500.00",
        swap_intent: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.receipt = receipt
        self.names = names or {}
        self.metadata = metadata if metadata is not None else {"name": ""}
        self.usd = usd
        self.swap_intent = swap_intent
        self.calls: List[Tuple[str, Any]] = []

    async def fetch_receipt(self, tx_hash: str) -> Receipt:
        self.calls.append(("fetch_receipt", tx_hash))
        if self.receipt is None:
            raise RuntimeError("receipt_not_found")
        return self.receipt

    async def resolve_name(self, address: str) -> str:
        self.calls.append(("resolve_name", address))
        return self.names.get(address, address)

    async def fetch_token_metadata(self, contract_address: str, token_type: str, token_id: Any) -> Dict[str, Any]:
        self.calls.append(("fetch_token_metadata", (contract_address, token_type, token_id)))
        return dict(self.metadata)

    async def fetch_fiat_rate(self, amount: float) -> Optional[str]:
        self.calls.append(("fetch_fiat_rate", amount))
        return self.usd

    async def fetch_swap_intent(self, market_address: str, swap_id: int) -> Optional[Dict[str, Any]]:
        self.calls.append(("fetch_swap_intent", (market_address, swap_id)))
        return self.swap_intent

    def called(self, name: str) -> List[Any]:
        return [args for call, args in self.calls if call == name]
