"""
Crypto layer: byte/hex/base58 codecs, HMAC-SHA256, SHA-256 commitments
and the HMAC counter-mode RNG used by multi-draw games.
"""

from backend_fairproof.crypto.primitives import (
    base58_decode,
    bytes_to_hex,
    hex_to_bytes,
    hmac_sha256,
    sha256,
    sha256_hex,
    u32_be,
    u64_be,
    utf8,
)
from backend_fairproof.crypto.rng import HmacRng

__all__ = [
    "HmacRng",
    "base58_decode",
    "bytes_to_hex",
    "hex_to_bytes",
    "hmac_sha256",
    "sha256",
    "sha256_hex",
    "u32_be",
    "u64_be",
    "utf8",
]
