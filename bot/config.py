# bot/config.py
# Static configuration for the sales parser. Registries below are loaded once
# into immutable lookups by sales.registry.load_registries().

import os

# Primary RPC (env RPC_URL takes precedence).
RPC_URL = os.getenv("RPC_URL", "https://ethereum-rpc.publicnode.com")

# RPC timeouts (seconds). All RPC calls are clamped to this range.
RPC_TIMEOUT_MIN_S = 2.0
RPC_TIMEOUT_MAX_S = 8.0
RPC_DEFAULT_TIMEOUT_S = 4.0

# Retries + exponential backoff for transient errors / rate limits.
RPC_RETRY_COUNT = 2
RPC_BACKOFF_BASE_S = 0.35
RPC_RATE_LIMIT_BACKOFF_S = 0.35

# Plain HTTP requests (token metadata, fiat price).
HTTP_TIMEOUT_S = 6.0
IPFS_GATEWAY = os.getenv("IPFS_GATEWAY", "https://ipfs.io/ipfs/")
ETH_USD_PRICE_URL = os.getenv(
    "ETH_USD_PRICE_URL",
    "https://api.coingecko.com/api/v3/simple/price?ids=ethereum&vs_currencies=usd",
)

# ENS registry (mainnet)
ENS_REGISTRY = "0x00000000000C2E074eC69A0dFb2997BA6C7d2e1e"

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# X2Y2 emits its settlement value as `amount` instead of `price`.
X2Y2_MARKET_NAME = "X2Y2 ⭕️"

# Market registry: contract address -> descriptor.
#   log_decoder: schema name in sales.decoders.schemas.SCHEMAS (None: no sale log)
#   is_swap: peer-to-peer swap market (tracks a monitored token instead of prices)
#   is_aggregator: sweep aggregator (buys from several markets, freezes currency)
MARKETS = {
    "0x00000000006c3852cbef3e08e8df289169ede581": {
        "name": "OpenSea 🌊",
        "log_decoder": "seaport",
    },
    "0x00000000000001ad428e4906ae43d8f9852d0dd6": {
        "name": "OpenSea 🌊",
        "log_decoder": "seaport",
    },
    "0x00000000000000adc04c56bf30ac9d3c0aaf14dc": {
        "name": "OpenSea 🌊",
        "log_decoder": "seaport",
    },
    "0x74312363e45dcaba76c59ec49a7aa8a65a67eed3": {
        "name": X2Y2_MARKET_NAME,
        "log_decoder": "x2y2",
    },
    "0x59728544b08ab483533076417fbbb2fd0b17ce3a": {
        "name": "LooksRare 👀",
        "log_decoder": "looksrare",
    },
    "0xc310e760778ecbca4c65b6c559874757a4c4ece0": {
        "name": "NFT Trader 🔄",
        "log_decoder": "nft_trader",
        "is_swap": True,
    },
    "0x83c8f28c26bf6aaca652df1dbbe0e1b56f8baba2": {
        "name": "Gem 💎",
        "is_aggregator": True,
    },
    "0x0a267cf51ef038fc00e71801f5a524aec06e4f07": {
        "name": "Genie 🧞",
        "is_aggregator": True,
    },
    "0x39da41747a83aee658334415666f3ef92dd0d541": {
        "name": "Blur Swap 🟠",
        "is_aggregator": True,
    },
}

# Payment currencies seen in sale logs: contract address -> descriptor.
CURRENCIES = {
    "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2": {"symbol": "WETH", "decimals": 18},
    "0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48": {"symbol": "USDC", "decimals": 6},
    "0x6b175474e89094c44da98b954eedeac495271d0f": {"symbol": "DAI", "decimals": 18},
    "0x4d224452801aced8b2f0aebe155379bb5d594381": {"symbol": "APE", "decimals": 18},
}

# Native currency; also the starting currency of every transaction.
DEFAULT_CURRENCY = {"symbol": "ETH", "decimals": 18}

# Currencies that get a fiat (USD) value attached.
FIAT_CURRENCIES = ["ETH", "WETH"]

