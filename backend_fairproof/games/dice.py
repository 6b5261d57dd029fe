"""
Dice reproducer.

hmac = HMAC(server_seed, client_seed + nonce); roll = (u32be(hmac[0:4]) % 100) + 1.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_fairproof.crypto.primitives import bytes_to_hex, hmac_sha256, u32_be
from backend_fairproof.games.base import (
    Check,
    Reproducer,
    Reproduction,
    commitment_check,
    hmac_check,
    require_revealed,
    server_seed_key,
)
from backend_fairproof.rounds.models import DiceRound, GameKind

BET_UNDER = 0
BET_OVER = 1


@dataclass(frozen=True)
class DiceOutcome:
    roll: int
    hmac_hex: str


def dice_hmac(server_seed_hex: str, client_seed: str, nonce: int | str) -> bytes:
    return hmac_sha256(server_seed_key(server_seed_hex), f"{client_seed or ''}{nonce}")


def roll_from_hmac(digest: bytes) -> int:
    """Map a digest to a roll in [1, 100]."""
    return (u32_be(digest, 0) % 100) + 1


def verify_dice(server_seed_hex: str, client_seed: str, nonce: int | str) -> DiceOutcome:
    digest = dice_hmac(server_seed_hex, client_seed, nonce)
    return DiceOutcome(roll=roll_from_hmac(digest), hmac_hex=bytes_to_hex(digest))


def is_win(roll: int, bet_type: int, target: int) -> bool:
    """under wins when roll < target; over wins when roll > target."""
    if bet_type == BET_OVER:
        return roll > target
    return roll < target


def _first_hmac(record: DiceRound) -> str:
    return bytes_to_hex(dice_hmac(require_revealed(record), record.client_seed, record.nonce))


def _outcome(record: DiceRound) -> DiceOutcome:
    return verify_dice(require_revealed(record), record.client_seed, record.nonce)


def reproduce_dice(record: DiceRound) -> Reproduction:
    out = _outcome(record)
    rep = Reproduction(first_hmac_hex=out.hmac_hex)
    rep.checks.append(
        Check("roll", out.roll == record.roll, f"Roll mismatch (computed {out.roll} != stored {record.roll})")
    )
    rep.checks.append(hmac_check(out.hmac_hex, record.first_hmac_hex))
    rep.checks.append(commitment_check(record))
    rep.computed = {
        "roll": out.roll,
        "hmac_hex": out.hmac_hex,
        "win": is_win(out.roll, record.bet_type, record.target),
    }
    return rep


DICE = Reproducer(
    kind=GameKind.DICE,
    compute_first_hmac=_first_hmac,
    compute_outcome=_outcome,
    reproduce=reproduce_dice,
)
