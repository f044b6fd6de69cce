from __future__ import annotations

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Optional


PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from bot.artifacts import append_jsonl, configure_logging, init_run_dir, write_metrics  # noqa: E402
from infra.metrics import METRICS  # noqa: E402
from infra.rpc import AsyncRPC, get_rpc_url  # noqa: E402
from sales.lookups import ChainClient  # noqa: E402
from sales.parser import parse_transaction  # noqa: E402


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Summarize an NFT marketplace sale or swap transaction.")
    p.add_argument("tx_hash", help="transaction hash (0x...)")
    p.add_argument("--contract", required=True, help="monitored NFT collection address")
    p.add_argument("--symbol", default="", help="collection symbol used when metadata has no name")
    p.add_argument("--rpc-url", default=None, help="JSON-RPC endpoint (default: env RPC_URL / bot.config)")
    p.add_argument("--out-dir", default=str(PROJECT_ROOT / "runs"), help="base directory for run output")
    return p


async def _run(args: argparse.Namespace, run_dir: Path) -> Optional[dict]:
    async with ChainClient(AsyncRPC(get_rpc_url(args.rpc_url))) as client:
        summary = await parse_transaction(client, args.tx_hash, args.contract, symbol=args.symbol)
    if summary is None:
        return None
    out = summary.as_dict()
    append_jsonl(run_dir, "sales.jsonl", out)
    return out


def main(argv: Optional[list] = None) -> int:
    args = _build_parser().parse_args(argv)
    run_dir = init_run_dir(Path(args.out_dir))
    logger = configure_logging(run_dir)
    logger.info("parsing %s (collection %s)", args.tx_hash, args.contract)
    try:
        out = asyncio.run(_run(args, run_dir))
    finally:
        write_metrics(run_dir, METRICS.snapshot())
    if out is None:
        logger.info("transaction %s is not a tracked sale or swap", args.tx_hash)
        return 1
    print(json.dumps(out, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
