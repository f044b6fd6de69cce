import asyncio
import base64
import json

import pytest
from eth_abi import encode

from bot import config
from sales.decoders.utils import selector
from sales.lookups import (
    SWAP_INTENT_TYPE,
    ChainClient,
    decode_data_uri,
    ens_namehash,
    receipt_from_rpc,
    resolve_metadata_uri,
)

from _sales_helpers import BUYER, COLLECTION, NFT_TRADER_ADDR, SELLER, TX_HASH, addr


class FakeRPC:
    def __init__(self, calls=None, receipt=None):
        self._calls = calls or {}
        self._receipt = receipt
        self.closed = False

    async def eth_call(self, to, data, block="latest", *, timeout_s=None):
        key = (to.lower(), data[:10])
        if key not in self._calls:
            raise RuntimeError(f"missing response for {key}")
        return self._calls[key]

    async def get_transaction_receipt(self, tx_hash, *, timeout_s=None):
        return self._receipt

    async def close(self):
        self.closed = True


def _ret(types, values) -> str:
    return "0x" + encode(types, values).hex()


def test_ens_namehash_known_vectors() -> None:
    assert ens_namehash("").hex() == "00" * 32
    assert ens_namehash("eth").hex() == "93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae"


def test_receipt_from_rpc_normalizes_logs() -> None:
    raw = {
        "transactionHash": TX_HASH,
        "to": "0x74312363E45DCaBA76c59ec49a7Aa8A65a67EeD3",
        "from": BUYER.upper().replace("0X", "0x"),
        "logs": [
            {"address": COLLECTION.upper().replace("0X", "0x"), "topics": ["0xDDF2"], "data": "0x", "logIndex": "0x5"},
        ],
    }
    receipt = receipt_from_rpc(raw)
    assert receipt.to_addr == "0x74312363e45dcaba76c59ec49a7aa8a65a67eed3"
    assert receipt.from_addr == BUYER
    assert receipt.logs[0].address == COLLECTION
    assert receipt.logs[0].topics == ("0xddf2",)
    assert receipt.logs[0].log_index == 5


def test_missing_receipt_raises() -> None:
    client = ChainClient(FakeRPC(receipt=None))
    with pytest.raises(RuntimeError):
        asyncio.run(client.fetch_receipt(TX_HASH))


def test_resolve_name_reads_reverse_record() -> None:
    resolver = addr("e")
    rpc = FakeRPC(
        {
            (config.ENS_REGISTRY.lower(), "0x" + selector("resolver(bytes32)")): _ret(["address"], [resolver]),
            (resolver, "0x" + selector("name(bytes32)")): _ret(["string"], ["seller.eth"]),
        }
    )
    assert asyncio.run(ChainClient(rpc).resolve_name(SELLER)) == "seller.eth"


def test_resolve_name_without_resolver_returns_address() -> None:
    rpc = FakeRPC({(config.ENS_REGISTRY.lower(), "0x" + selector("resolver(bytes32)")): _ret(["address"], ["0x" + "00" * 20])})
    assert asyncio.run(ChainClient(rpc).resolve_name(SELLER)) == SELLER


def test_resolve_name_degrades_on_rpc_error() -> None:
    assert asyncio.run(ChainClient(FakeRPC()).resolve_name(SELLER)) == SELLER


def test_token_metadata_from_data_uri() -> None:
    doc = base64.b64encode(json.dumps({"name": "Thing #7", "image": "x"}).encode()).decode()
    rpc = FakeRPC(
        {(COLLECTION, "0x" + selector("tokenURI(uint256)")): _ret(["string"], [f"data:application/json;base64,{doc}"])}
    )
    meta = asyncio.run(ChainClient(rpc).fetch_token_metadata(COLLECTION, "ERC721", 7))
    assert meta["name"] == "Thing #7"
    assert meta["image"] == "x"


def test_token_metadata_degrades_to_empty_name() -> None:
    meta = asyncio.run(ChainClient(FakeRPC()).fetch_token_metadata(COLLECTION, "ERC1155", 7))
    assert meta == {"name": ""}
    assert asyncio.run(ChainClient(FakeRPC()).fetch_token_metadata(COLLECTION, "ERC721", None)) == {"name": ""}


def test_metadata_uri_rewrites() -> None:
    assert resolve_metadata_uri("ipfs://Qm123/1.json", 1) == config.IPFS_GATEWAY + "Qm123/1.json"
    assert resolve_metadata_uri("ipfs://ipfs/Qm123", 1) == config.IPFS_GATEWAY + "Qm123"
    assert resolve_metadata_uri("https://x.io/{id}.json", 255) == "https://x.io/" + "0" * 62 + "ff.json"


def test_decode_plain_data_uri() -> None:
    assert decode_data_uri('data:application/json,{"name":"a%20b"}') == {"name": "a b"}
    assert decode_data_uri("https://x.io/1.json") is None


def test_swap_intent_decodes_parties() -> None:
    intent = (9, SELLER, False, 0, 0, BUYER, False, 10**17, 0, 0, 0, False, False, 1, 0, 0)
    rpc = FakeRPC({(NFT_TRADER_ADDR, "0x" + selector("getSwapIntentById(uint256)")): _ret([SWAP_INTENT_TYPE], [intent])})
    out = asyncio.run(ChainClient(rpc).fetch_swap_intent(NFT_TRADER_ADDR, 9))
    assert out == {"maker": SELLER, "taker": BUYER, "value_maker": 0, "value_taker": 10**17, "status": 1}


def test_swap_intent_failure_is_none() -> None:
    assert asyncio.run(ChainClient(FakeRPC()).fetch_swap_intent(NFT_TRADER_ADDR, 9)) is None


def test_close_releases_rpc() -> None:
    rpc = FakeRPC()

    async def _run():
        async with ChainClient(rpc):
            pass

    asyncio.run(_run())
    assert rpc.closed
