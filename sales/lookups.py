from __future__ import annotations

import asyncio
import base64
import json
import logging
from typing import Any, Dict, Optional, Protocol
from urllib.parse import unquote

import aiohttp
from eth_abi import decode, encode
from eth_utils import keccak

from bot import config
from infra.rpc import AsyncRPC
from sales.decoders.utils import hex_to_bytes, normalize_address, normalize_topic, selector
from sales.formatting import format_usd
from sales.types import LogEntry, Receipt


logger = logging.getLogger(__name__)

SIG_ENS_RESOLVER = "resolver(bytes32)"
SIG_ENS_NAME = "name(bytes32)"
SIG_TOKEN_URI = "tokenURI(uint256)"
SIG_URI = "uri(uint256)"
SIG_SWAP_INTENT = "getSwapIntentById(uint256)"

# swapIntent(id, addressMaker, discountMaker, valueMaker, flatFeeMaker,
#            addressTaker, discountTaker, valueTaker, flatFeeTaker,
#            swapStart, swapEnd, flagFlatFee, flagRoyalties, status,
#            royaltiesMaker, royaltiesTaker)
SWAP_INTENT_TYPE = (
    "(uint256,address,bool,uint256,uint256,address,bool,uint256,uint256,"
    "uint256,uint256,bool,bool,uint8,uint256,uint256)"
)


class ChainLookups(Protocol):
    async def fetch_receipt(self, tx_hash: str) -> Receipt:
        ...

    async def resolve_name(self, address: str) -> str:
        ...

    async def fetch_token_metadata(self, contract_address: str, token_type: str, token_id: Any) -> Dict[str, Any]:
        ...

    async def fetch_fiat_rate(self, amount: float) -> Optional[str]:
        ...

    async def fetch_swap_intent(self, market_address: str, swap_id: int) -> Optional[Dict[str, Any]]:
        ...


def ens_namehash(name: str) -> bytes:
    node = b"\x00" * 32
    labels = [label for label in name.strip().lower().strip(".").split(".") if label]
    for label in reversed(labels):
        node = keccak(node + keccak(label.encode("utf-8")))
    return node


def _hex_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    if isinstance(value, int):
        return value
    try:
        return int(str(value), 16)
    except ValueError:
        return default


def receipt_from_rpc(raw: Dict[str, Any]) -> Receipt:
    """JSON-RPC receipt -> Receipt (lower-cased addresses and topics)."""
    logs = tuple(
        LogEntry(
            address=normalize_address(entry.get("address")),
            topics=tuple(normalize_topic(t) for t in entry.get("topics") or []),
            data=str(entry.get("data") or "0x"),
            log_index=_hex_int(entry.get("logIndex"), default=i),
        )
        for i, entry in enumerate(raw.get("logs") or [])
    )
    return Receipt(
        tx_hash=str(raw.get("transactionHash") or ""),
        to_addr=normalize_address(raw.get("to")),
        from_addr=normalize_address(raw.get("from")),
        logs=logs,
    )


def _call_data(signature: str, types: list, values: list) -> str:
    return "0x" + selector(signature) + encode(types, values).hex()


def resolve_metadata_uri(uri: str, token_id: int) -> str:
    u = str(uri or "").strip()
    if "{id}" in u:
        # ERC1155 clients substitute the lower-case, 64-char hex id.
        u = u.replace("{id}", f"{int(token_id):064x}")
    if u.startswith("ipfs://"):
        path = u[len("ipfs://"):]
        if path.startswith("ipfs/"):
            path = path[len("ipfs/"):]
        u = str(getattr(config, "IPFS_GATEWAY", "https://ipfs.io/ipfs/")) + path
    return u


def decode_data_uri(uri: str) -> Optional[Dict[str, Any]]:
    """Inline `data:application/json` token URIs; None for other schemes."""
    if not uri.startswith("data:"):
        return None
    header, _, body = uri.partition(",")
    if ";base64" in header:
        text = base64.b64decode(body).decode("utf-8")
    else:
        text = unquote(body)
    out = json.loads(text)
    return out if isinstance(out, dict) else None


class ChainClient:
    """RPC + HTTP backed implementation of ChainLookups."""

    def __init__(self, rpc: AsyncRPC, *, http_timeout_s: Optional[float] = None) -> None:
        self.rpc = rpc
        if http_timeout_s is None:
            http_timeout_s = float(getattr(config, "HTTP_TIMEOUT_S", 6.0))
        self.http_timeout_s = float(http_timeout_s)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "ChainClient":
        return self

    async def __aexit__(self, *_exc: Any) -> None:
        await self.close()

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session and not self._session.closed:
            return self._session
        self._session = aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.http_timeout_s))
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        await self.rpc.close()

    async def _get_json(self, url: str) -> Any:
        session = await self._get_session()
        async with session.get(url) as resp:
            resp.raise_for_status()
            return await resp.json(content_type=None)

    async def fetch_receipt(self, tx_hash: str) -> Receipt:
        raw = await self.rpc.get_transaction_receipt(tx_hash)
        if not raw:
            raise RuntimeError("receipt_not_found")
        return receipt_from_rpc(raw)

    async def resolve_name(self, address: str) -> str:
        addr = normalize_address(address)
        if not addr:
            return ""
        node = ens_namehash(f"{addr[2:]}.addr.reverse")
        try:
            resolver_raw = await self.rpc.eth_call(
                config.ENS_REGISTRY, "0x" + selector(SIG_ENS_RESOLVER) + node.hex()
            )
            resolver = "0x" + str(resolver_raw)[-40:]
            if int(resolver, 16) == 0:
                return addr
            name_raw = await self.rpc.eth_call(resolver, "0x" + selector(SIG_ENS_NAME) + node.hex())
            name = decode(["string"], hex_to_bytes(name_raw))[0]
        except Exception as e:
            logger.debug("ens reverse lookup failed for %s: %s", addr, e)
            return addr
        return name or addr

    async def fetch_token_metadata(self, contract_address: str, token_type: str, token_id: Any) -> Dict[str, Any]:
        try:
            tid = int(token_id)
        except (TypeError, ValueError):
            return {"name": ""}
        signature = SIG_URI if token_type == "ERC1155" else SIG_TOKEN_URI
        try:
            raw = await self.rpc.eth_call(contract_address, _call_data(signature, ["uint256"], [tid]))
            uri = resolve_metadata_uri(decode(["string"], hex_to_bytes(raw))[0], tid)
            data = decode_data_uri(uri)
            if data is None and uri.startswith(("http://", "https://")):
                data = await self._get_json(uri)
        except Exception as e:
            logger.debug("token metadata unavailable for %s #%s: %s", contract_address, tid, e)
            return {"name": ""}
        if not isinstance(data, dict):
            return {"name": ""}
        data["name"] = str(data.get("name") or "")
        return data

    async def fetch_fiat_rate(self, amount: float) -> Optional[str]:
        try:
            data = await self._get_json(str(config.ETH_USD_PRICE_URL))
            usd = float(data["ethereum"]["usd"])
        except (aiohttp.ClientError, asyncio.TimeoutError, KeyError, TypeError, ValueError) as e:
            logger.debug("eth/usd price unavailable: %s", e)
            return None
        return format_usd(float(amount) * usd)

    async def fetch_swap_intent(self, market_address: str, swap_id: int) -> Optional[Dict[str, Any]]:
        try:
            raw = await self.rpc.eth_call(market_address, _call_data(SIG_SWAP_INTENT, ["uint256"], [int(swap_id)]))
            intent = decode([SWAP_INTENT_TYPE], hex_to_bytes(raw))[0]
        except Exception as e:
            logger.debug("swap intent %s unavailable: %s", swap_id, e)
            return None
        return {
            "maker": normalize_address(intent[1]),
            "taker": normalize_address(intent[5]),
            "value_maker": int(intent[3]),
            "value_taker": int(intent[7]),
            "status": int(intent[13]),
        }
