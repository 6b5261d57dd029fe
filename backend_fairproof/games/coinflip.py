"""
PvP coinflip reproducer.

hmac = HMAC(server_seed, client_seed_a + "|" + client_seed_b + "|" + nonce);
outcome = hmac[0] & 1 (0 = heads, 1 = tails).
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_fairproof.crypto.primitives import bytes_to_hex, hmac_sha256
from backend_fairproof.games.base import (
    Check,
    Reproducer,
    Reproduction,
    commitment_check,
    hmac_check,
    require_revealed,
    server_seed_key,
)
from backend_fairproof.rounds.models import CoinflipRound, GameKind

HEADS = 0
TAILS = 1


def side_name(side: int) -> str:
    return "heads" if side == HEADS else "tails"


@dataclass(frozen=True)
class CoinflipOutcome:
    bit: int
    hmac_hex: str

    @property
    def outcome(self) -> str:
        return side_name(self.bit)


def coinflip_hmac(server_seed_hex: str, client_seed_a: str, client_seed_b: str, nonce: int | str) -> bytes:
    message = f"{client_seed_a or ''}|{client_seed_b or ''}|{nonce}"
    return hmac_sha256(server_seed_key(server_seed_hex), message)


def verify_coinflip(server_seed_hex: str, client_seed_a: str, client_seed_b: str, nonce: int | str) -> CoinflipOutcome:
    digest = coinflip_hmac(server_seed_hex, client_seed_a, client_seed_b, nonce)
    return CoinflipOutcome(bit=digest[0] & 1, hmac_hex=bytes_to_hex(digest))


def _outcome(record: CoinflipRound) -> CoinflipOutcome:
    return verify_coinflip(require_revealed(record), record.client_seed_a, record.client_seed_b, record.nonce)


def _first_hmac(record: CoinflipRound) -> str:
    return _outcome(record).hmac_hex


def reproduce_coinflip(record: CoinflipRound) -> Reproduction:
    out = _outcome(record)
    rep = Reproduction(first_hmac_hex=out.hmac_hex)
    rep.checks.append(
        Check(
            "outcome",
            out.bit == record.outcome,
            f"Outcome mismatch (computed {out.bit} != stored {record.outcome})",
        )
    )
    rep.checks.append(hmac_check(out.hmac_hex, record.first_hmac_hex))
    rep.checks.append(commitment_check(record))
    rep.computed = {"outcome": out.bit, "side": out.outcome, "hmac_hex": out.hmac_hex}
    return rep


COINFLIP = Reproducer(
    kind=GameKind.COINFLIP,
    compute_first_hmac=_first_hmac,
    compute_outcome=_outcome,
    reproduce=reproduce_coinflip,
)
