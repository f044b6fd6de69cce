from __future__ import annotations

from eth_utils import keccak


def selector(signature: str) -> str:
    return keccak(text=signature).hex()[:8]


def event_topic(signature: str) -> str:
    return "0x" + keccak(text=signature).hex()


def to_hex_prefixed(value: bytes) -> str:
    return "0x" + value.hex()


def strip_hex(value: str) -> str:
    s = str(value or "")
    return s[2:] if s.startswith("0x") else s


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(strip_hex(value))


def normalize_address(value) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        if value.startswith("0x"):
            return value.lower()
        return "0x" + value.lower()
    if isinstance(value, (bytes, bytearray)):
        return to_hex_prefixed(bytes(value)).lower()
    if isinstance(value, int):
        return "0x" + value.to_bytes(20, "big").hex()
    return str(value).lower()


def normalize_topic(value) -> str:
    if isinstance(value, (bytes, bytearray)):
        return to_hex_prefixed(bytes(value)).lower()
    s = str(value or "").lower()
    return s if s.startswith("0x") else "0x" + s


def topic_to_address(topic: str) -> str:
    """Last 20 bytes of a 32-byte topic word."""
    hx = strip_hex(topic)
    return "0x" + hx[-40:].lower()


def topic_to_int(topic: str) -> int:
    hx = strip_hex(topic)
    return int(hx, 16) if hx else 0
