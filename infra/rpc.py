# infra/rpc.py

from __future__ import annotations

import asyncio
import logging
import os
import random
import time
from typing import Any, Optional

import aiohttp

from bot import config
from infra.metrics import METRICS


logger = logging.getLogger(__name__)


def _normalize_url(url: str) -> str:
    u = str(url).strip()
    if not u:
        return u
    if "://" not in u:
        u = "https://" + u
    return u


def _url_host(url: str) -> str:
    u = _normalize_url(url).lower()
    if "://" in u:
        u = u.split("://", 1)[1]
    return u.split("/", 1)[0]


def get_rpc_url(override: Optional[str] = None) -> str:
    """Return the RPC endpoint to use.

    Order:
      1) explicit override (CLI flag)
      2) env RPC_URL
      3) bot.config.RPC_URL
    """
    if override and str(override).strip():
        return _normalize_url(override)
    env = os.getenv("RPC_URL")
    if env and env.strip():
        return _normalize_url(env)
    return _normalize_url(config.RPC_URL)


def _normalize_rpc_error(msg: Optional[str]) -> str:
    text = str(msg or "").lower()
    if "timeout" in text:
        return "timeout"
    if "http_429" in text or "rate limit" in text:
        return "rate_limited"
    if "http_5" in text:
        return "http_5xx"
    if "rpc" in text or "http_" in text:
        return "rpc_error"
    return "internal_error"


class AsyncRPC:
    """Async JSON-RPC client with:
    - persistent aiohttp session
    - per-call timeouts clamped to config bounds
    - retries + exponential backoff for timeouts, 429 and 5xx responses
    """

    def __init__(
        self,
        url: str,
        *,
        default_timeout_s: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_base_s: Optional[float] = None,
    ):
        self.url = _normalize_url(url)
        if default_timeout_s is None:
            default_timeout_s = float(getattr(config, "RPC_DEFAULT_TIMEOUT_S", 4.0))
        if max_retries is None:
            max_retries = int(getattr(config, "RPC_RETRY_COUNT", 1))
        if backoff_base_s is None:
            backoff_base_s = float(getattr(config, "RPC_BACKOFF_BASE_S", 0.35))
        self.default_timeout_s = float(default_timeout_s)
        self.max_retries = int(max_retries)
        self.backoff_base_s = float(backoff_base_s)
        self._id = 0
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session and not self._session.closed:
            return self._session
        self._session = aiohttp.ClientSession(connector=aiohttp.TCPConnector(limit=20, ttl_dns_cache=300))
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _clamp_timeout(self, timeout_s: Optional[float]) -> float:
        to_s = float(timeout_s) if timeout_s is not None else self.default_timeout_s
        min_t = float(getattr(config, "RPC_TIMEOUT_MIN_S", 2.0))
        max_t = float(getattr(config, "RPC_TIMEOUT_MAX_S", 8.0))
        if max_t < min_t:
            max_t = min_t
        return max(min_t, min(max_t, to_s))

    async def call(self, method: str, params: list, *, timeout_s: Optional[float] = None) -> Any:
        """Perform a JSON-RPC call and return its `result`."""

        self._id += 1
        payload = {"jsonrpc": "2.0", "id": self._id, "method": method, "params": params}

        session = await self._get_session()
        to_s = self._clamp_timeout(timeout_s)
        host = _url_host(self.url)
        last_err: Optional[str] = None

        for attempt in range(self.max_retries + 1):
            t0 = time.perf_counter()
            METRICS.inc("rpc_requests_total", 1)
            METRICS.inc_reason("rpc_requests_by_method", method, 1)
            try:
                async def _do():
                    async with session.post(self.url, json=payload) as resp:
                        if resp.status >= 400:
                            text = await resp.text()
                            raise aiohttp.ClientResponseError(
                                request_info=resp.request_info,
                                history=resp.history,
                                status=resp.status,
                                message=text,
                                headers=resp.headers,
                            )
                        return await resp.json()

                data = await asyncio.wait_for(_do(), timeout=to_s)
                METRICS.observe(f"rpc_latency_ms:{host}", (time.perf_counter() - t0) * 1000.0)

                if isinstance(data, dict) and "error" in data:
                    # JSON-RPC level errors are deterministic, no retry.
                    last_err = f"rpc_error:{data['error']}"
                    break
                return data["result"]

            except asyncio.TimeoutError:
                last_err = f"timeout({to_s}s)"
            except aiohttp.ClientResponseError as e:
                last_err = f"http_{e.status}"
                if e.status not in (429, 500, 502, 503, 504):
                    break
            except (aiohttp.ClientError, ValueError, KeyError) as e:
                last_err = f"{type(e).__name__}: {e}"
            METRICS.observe(f"rpc_latency_ms:{host}", (time.perf_counter() - t0) * 1000.0)

            if attempt < self.max_retries:
                sleep_s = (self.backoff_base_s * (2 ** attempt)) + random.random() * 0.25
                if last_err and "http_429" in last_err:
                    sleep_s += float(getattr(config, "RPC_RATE_LIMIT_BACKOFF_S", 0.35))
                await asyncio.sleep(sleep_s)

        METRICS.inc_reason("rpc_fail_by_reason", _normalize_rpc_error(last_err), 1)
        logger.warning("rpc %s to %s failed: %s", method, host, last_err)
        if last_err and last_err.startswith("rpc_error:"):
            raise RuntimeError(last_err)
        raise Exception(f"RPC call failed after retries: {last_err}")

    async def eth_call(self, to: str, data: str, block: str = "latest", *, timeout_s: Optional[float] = None) -> str:
        return await self.call("eth_call", [{"to": to, "data": data}, block], timeout_s=timeout_s)

    async def get_transaction_receipt(self, tx_hash: str, *, timeout_s: Optional[float] = None) -> Optional[dict]:
        return await self.call("eth_getTransactionReceipt", [tx_hash], timeout_s=timeout_s)
