"""
Manual verification: re-derive one round from literal inputs.

Used for ad-hoc dispute checks outside the automatic history flow. Inputs are
what a player copies from a reveal (server seed, client seed(s), nonce,
expected HMAC, and for mines the board and wallet). Invalid input raises
ValueError (DecodeError for malformed hex/base58).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from backend_fairproof.crypto.primitives import hex_to_bytes, sha256_hex
from backend_fairproof.games.base import server_seed_key
from backend_fairproof.games.coinflip import verify_coinflip
from backend_fairproof.games.crash import verify_crash
from backend_fairproof.games.dice import verify_dice
from backend_fairproof.games.mines import verify_mines
from backend_fairproof.games.plinko import verify_plinko
from backend_fairproof.games.slots import verify_slots
from backend_fairproof.rounds.models import GameKind
from backend_fairproof.rounds.normalizer import parse_game


@dataclass
class ManualResult:
    game: GameKind
    first_hmac_hex: str
    match_expected: bool | None = None
    commitment_match: bool | None = None
    outcome: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "game": self.game.value,
            "first_hmac_hex": self.first_hmac_hex,
            "match_expected": self.match_expected,
            "commitment_match": self.commitment_match,
            "outcome": dict(self.outcome),
        }


def _match(expected: str | None, computed: str) -> bool | None:
    expected = (expected or "").strip().lower()
    if not expected:
        return None
    return expected == computed.lower()


def manual_verify(
    game: str | GameKind,
    server_seed_hex: str,
    *,
    nonce: int | str,
    client_seed: str = "",
    client_seed_a: str = "",
    client_seed_b: str = "",
    expected_hmac: str | None = None,
    server_seed_hash: str | None = None,
    player: str = "",
    rows: int = 5,
    cols: int = 5,
    mines: int = 3,
    first_safe_index: int | None = None,
) -> ManualResult:
    kind = parse_game(game)
    seed = (server_seed_hex or "").strip()
    if not seed:
        raise ValueError("server_seed_hex is required")
    if nonce is None or str(nonce).strip() == "":
        raise ValueError("nonce is required")
    nonce = str(nonce).strip()
    server_seed_key(seed)

    commitment_match = None
    if server_seed_hash and server_seed_hash.strip():
        commitment_match = sha256_hex(hex_to_bytes(seed)) == server_seed_hash.strip().lower()

    if kind == GameKind.DICE:
        dice = verify_dice(seed, client_seed, nonce)
        return ManualResult(kind, dice.hmac_hex, _match(expected_hmac, dice.hmac_hex), commitment_match,
                            {"roll": dice.roll})

    if kind == GameKind.CRASH:
        crash = verify_crash(seed, client_seed, nonce)
        return ManualResult(kind, crash.hmac_hex, _match(expected_hmac, crash.hmac_hex), commitment_match,
                            {"crash_at_mul": crash.crash_at_mul, "r": crash.r, "n64": str(crash.n64)})

    if kind == GameKind.COINFLIP:
        if not client_seed_a and not client_seed_b:
            raise ValueError("coinflip needs at least one client seed")
        flip = verify_coinflip(seed, client_seed_a, client_seed_b, nonce)
        return ManualResult(kind, flip.hmac_hex, _match(expected_hmac, flip.hmac_hex), commitment_match,
                            {"outcome": flip.outcome, "bit": flip.bit})

    if kind == GameKind.MINES:
        if not player:
            raise ValueError("mines needs the player's wallet (base58)")
        if rows <= 0 or cols <= 0 or mines <= 0:
            raise ValueError("mines needs rows, cols and mines > 0")
        board = verify_mines(seed, client_seed, nonce, player, rows, cols, mines, first_safe_index)
        return ManualResult(kind, board.seed_key_hex, _match(expected_hmac, board.seed_key_hex), commitment_match,
                            {"bomb_indices": list(board.bomb_indices), "first_safe_index": first_safe_index})

    if kind == GameKind.SLOTS:
        spin = verify_slots(seed, client_seed, nonce)
        return ManualResult(kind, spin.hmac_hex, _match(expected_hmac, spin.hmac_hex), commitment_match,
                            {"outcome": spin.row.key, "payout_mul": spin.row.payout_mul, "grid": list(spin.grid)})

    drop = verify_plinko(seed, client_seed, nonce, expected_hmac)
    has_expected = bool((expected_hmac or "").strip())
    return ManualResult(
        kind,
        drop.hmac_hex,
        (drop.matched_scheme is not None) if has_expected else None,
        commitment_match,
        {"hmac_v2": drop.v2_hex, "hmac_v1": drop.v1_hex, "scheme": drop.matched_scheme if has_expected else None},
    )
