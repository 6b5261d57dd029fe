"""
Crash reproducer.

hmac = HMAC(server_seed, client_seed + nonce). The first 8 bytes, big-endian,
give n64; r = (n64 >> 11) / 2^53 is a uniform double in [0, 1). The crash point
is max(1.01, 0.99 / (1 - min(0.999999999999, r))), capped at 10000.

Floats are compared with a 1e-9 absolute-or-relative tolerance.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_fairproof.crypto.primitives import bytes_to_hex, hmac_sha256, u64_be
from backend_fairproof.games.base import (
    Check,
    Reproducer,
    Reproduction,
    commitment_check,
    hmac_check,
    require_revealed,
    server_seed_key,
)
from backend_fairproof.rounds.models import CrashRound, GameKind

HOUSE_EDGE = 0.99
MIN_MULTIPLIER = 1.01
MAX_MULTIPLIER = 10000.0
UNIFORM_CLAMP = 0.999999999999
TOLERANCE = 1e-9


@dataclass(frozen=True)
class CrashOutcome:
    crash_at_mul: float
    r: float
    n64: int
    hmac_hex: str


def crash_hmac(server_seed_hex: str, client_seed: str, nonce: int | str) -> bytes:
    return hmac_sha256(server_seed_key(server_seed_hex), f"{client_seed or ''}{nonce}")


def uniform_from_hmac(digest: bytes) -> float:
    """Top 53 bits of the first 8 bytes as a double in [0, 1)."""
    return (u64_be(digest, 0) >> 11) / 2**53


def multiplier_from_uniform(r: float) -> float:
    m = max(MIN_MULTIPLIER, HOUSE_EDGE / (1 - min(UNIFORM_CLAMP, r)))
    return min(m, MAX_MULTIPLIER)


def multipliers_match(computed: float, stored: float) -> bool:
    diff = abs(computed - stored)
    return diff <= TOLERANCE or diff / max(1.0, stored) < TOLERANCE


def verify_crash(server_seed_hex: str, client_seed: str, nonce: int | str) -> CrashOutcome:
    digest = crash_hmac(server_seed_hex, client_seed, nonce)
    r = uniform_from_hmac(digest)
    return CrashOutcome(
        crash_at_mul=multiplier_from_uniform(r),
        r=r,
        n64=u64_be(digest, 0),
        hmac_hex=bytes_to_hex(digest),
    )


def _outcome(record: CrashRound) -> CrashOutcome:
    return verify_crash(require_revealed(record), record.client_seed, record.nonce)


def _first_hmac(record: CrashRound) -> str:
    return _outcome(record).hmac_hex


def reproduce_crash(record: CrashRound) -> Reproduction:
    out = _outcome(record)
    rep = Reproduction(first_hmac_hex=out.hmac_hex)
    rep.checks.append(
        Check(
            "crash_at_mul",
            multipliers_match(out.crash_at_mul, record.crash_at_mul),
            f"Crash multiplier mismatch (computed {out.crash_at_mul:.6f} != stored {record.crash_at_mul:.6f})",
        )
    )
    rep.checks.append(hmac_check(out.hmac_hex, record.first_hmac_hex))
    rep.checks.append(commitment_check(record))
    rep.computed = {"crash_at_mul": out.crash_at_mul, "r": out.r, "hmac_hex": out.hmac_hex}
    return rep


CRASH = Reproducer(
    kind=GameKind.CRASH,
    compute_first_hmac=_first_hmac,
    compute_outcome=_outcome,
    reproduce=reproduce_crash,
)
