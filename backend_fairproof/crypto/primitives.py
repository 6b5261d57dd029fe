"""
Primitive crypto helpers shared by every reproducer.

All functions are pure and fail loudly: malformed hex or base58 raises
DecodeError instead of producing a silently wrong digest.
"""

from __future__ import annotations

import hashlib
import hmac
import re

import base58

from backend_fairproof.core.exceptions import DecodeError

_HEX_RE = re.compile(r"[0-9a-fA-F]*")


def hex_to_bytes(value: str) -> bytes:
    """Decode a hex string (optional 0x prefix, even length) to bytes."""
    if not isinstance(value, str):
        raise DecodeError(f"Expected hex string, got {type(value).__name__}")
    clean = value[2:] if value[:2].lower() == "0x" else value
    if len(clean) % 2 != 0:
        raise DecodeError("Bad hex length")
    if not _HEX_RE.fullmatch(clean):
        raise DecodeError("Invalid hex character")
    return bytes.fromhex(clean)


def bytes_to_hex(data: bytes) -> str:
    """Lower-case hex, two digits per byte."""
    return bytes(data).hex()


def utf8(value: str) -> bytes:
    return value.encode("utf-8")


def hmac_sha256(key: bytes, message: bytes | str) -> bytes:
    """Standard HMAC-SHA256; str messages are UTF-8 encoded."""
    if isinstance(message, str):
        message = utf8(message)
    return hmac.new(bytes(key), bytes(message), hashlib.sha256).digest()


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(bytes(data)).digest()


def sha256_hex(data: bytes) -> str:
    return bytes_to_hex(sha256(data))


def base58_decode(value: str) -> bytes:
    """
    Bitcoin-alphabet base58 decode (Solana pubkeys).

    Each leading '1' maps to a leading 0x00 byte.
    """
    if not isinstance(value, str):
        raise DecodeError(f"Expected base58 string, got {type(value).__name__}")
    try:
        return base58.b58decode(value)
    except ValueError as e:
        raise DecodeError(f"Invalid base58 char: {e}") from e


def u32_be(data: bytes, offset: int = 0) -> int:
    """Unsigned 32-bit big-endian integer at offset."""
    chunk = data[offset:offset + 4]
    if len(chunk) != 4:
        raise DecodeError("Need 4 bytes for u32")
    return int.from_bytes(chunk, "big")


def u64_be(data: bytes, offset: int = 0) -> int:
    """Unsigned 64-bit big-endian integer at offset."""
    chunk = data[offset:offset + 8]
    if len(chunk) != 8:
        raise DecodeError("Need 8 bytes for u64")
    return int.from_bytes(chunk, "big")
