"""
Shared pieces of the per-game reproducers.

A reproducer re-derives a round from its revealed server seed and returns a
Reproduction: every comparison it made (Check) plus the computed values worth
showing in a dispute. Verdict classification happens in the orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from backend_fairproof.core.exceptions import DecodeError
from backend_fairproof.crypto.primitives import hex_to_bytes, sha256_hex
from backend_fairproof.rounds.models import GameKind, ResolvedRound

SERVER_SEED_BYTES = 32


@dataclass(frozen=True)
class Check:
    """One compared field. message is the human-readable failure text."""

    name: str
    ok: bool
    message: str


@dataclass
class Reproduction:
    first_hmac_hex: str
    checks: list[Check] = field(default_factory=list)
    computed: dict[str, Any] = field(default_factory=dict)

    @property
    def failures(self) -> list[str]:
        return [c.message for c in self.checks if not c.ok]

    @property
    def ok(self) -> bool:
        return all(c.ok for c in self.checks)


@dataclass(frozen=True)
class Reproducer:
    """
    Per-game capability: compute_first_hmac and compute_outcome work on a
    record's literal inputs, reproduce runs every check for the record.
    """

    kind: GameKind
    compute_first_hmac: Callable[[Any], str]
    compute_outcome: Callable[[Any], Any]
    reproduce: Callable[[Any], Reproduction]


def server_seed_key(server_seed_hex: str) -> bytes:
    """Decode a revealed server seed; it must be exactly 32 bytes."""
    key = hex_to_bytes((server_seed_hex or "").strip())
    if len(key) != SERVER_SEED_BYTES:
        raise DecodeError(
            f"Server seed must be {SERVER_SEED_BYTES} bytes ({SERVER_SEED_BYTES * 2} hex chars), got {len(key)}"
        )
    return key


def hmac_check(computed_hex: str, stored_hex: str | None) -> Check:
    """Rows without a stored first HMAC (legacy) pass."""
    ok = not stored_hex or computed_hex.lower() == stored_hex.strip().lower()
    return Check("hmac", ok, "HMAC mismatch")


def commitment_check(record: ResolvedRound) -> Check:
    """sha256(server_seed) must equal the pre-published server_seed_hash, when stored."""
    stored = record.server_seed_hash
    if not stored:
        return Check("commitment", True, "Commitment hash mismatch")
    computed = sha256_hex(server_seed_key(record.server_seed_hex or ""))
    return Check("commitment", computed == stored.strip().lower(), "Commitment hash mismatch")


def require_revealed(record: ResolvedRound) -> str:
    seed = (record.server_seed_hex or "").strip()
    if not seed:
        raise DecodeError("Server seed not revealed")
    return seed
