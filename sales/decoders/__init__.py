from sales.decoders.nft_trader import resolve_swap
from sales.decoders.sale import decode_sale_price, scale_price, unscale_price
from sales.decoders.schemas import SCHEMAS, LogSchema, decode_log
from sales.decoders.seaport import ListingPrice, decode_listing_price

__all__ = [
    "SCHEMAS",
    "ListingPrice",
    "LogSchema",
    "decode_listing_price",
    "decode_log",
    "decode_sale_price",
    "resolve_swap",
    "scale_price",
    "unscale_price",
]
