"""
HMAC counter-mode RNG.

Turns a (server_seed, client_seed, nonce) triple into an unbounded stream of
uint32 words. Block i is HMAC-SHA256(server_seed, client_seed || nonce || i_le32);
words are read big-endian, 4 bytes at a time, in order. The stream is the
same one the game server consumed, so draws must be made in the server's
exact order.

Each instance owns its state; build a fresh one per verification.
"""

from __future__ import annotations

from typing import Sequence, TypeVar

from backend_fairproof.crypto.primitives import hex_to_bytes, hmac_sha256, utf8

T = TypeVar("T")

_U32_SPAN = 2**32


class HmacRng:
    """Deterministic uint32 stream over HMAC-SHA256 blocks."""

    def __init__(self, server_seed_hex: str, client_seed: str, nonce: int | str) -> None:
        self._key = hex_to_bytes(server_seed_hex)
        self._prefix = utf8(client_seed or "") + utf8(str(nonce))
        self._counter = 0
        self._pool = bytearray()
        self._pos = 0

    @property
    def blocks_used(self) -> int:
        """Number of HMAC blocks generated so far."""
        return self._counter

    def _refill(self) -> None:
        message = self._prefix + (self._counter & 0xFFFFFFFF).to_bytes(4, "little")
        self._counter += 1
        # drop consumed bytes so the pool never grows unbounded
        del self._pool[:self._pos]
        self._pos = 0
        self._pool.extend(hmac_sha256(self._key, message))

    def next_u32(self) -> int:
        if len(self._pool) - self._pos < 4:
            self._refill()
        value = int.from_bytes(self._pool[self._pos:self._pos + 4], "big")
        self._pos += 4
        return value

    def next_float(self) -> float:
        """Uniform float in [0, 1)."""
        return self.next_u32() / _U32_SPAN

    def next_int(self, low: int, high: int) -> int:
        """Uniform int in [low, high], inclusive."""
        if high < low:
            raise ValueError(f"Empty range [{low}, {high}]")
        return low + int(self.next_float() * (high - low + 1))

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot pick from an empty sequence")
        return items[self.next_int(0, len(items) - 1)]
