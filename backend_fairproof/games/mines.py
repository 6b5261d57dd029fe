"""
Mines reproducer.

seed_key = HMAC(server_seed, base58decode(player) || nonce || client_seed) is a
derived key, and also the round's first HMAC. Bombs are drawn with
HMAC(seed_key, str(i)) for i = 0, 1, 2, ...: idx = u32be(h[0:4]) % total_tiles.
A draw equal to the first safe index is discarded and the counter still
advances; duplicates are ignored; drawing stops at `mines` distinct bombs.

Payout: product over i < k of (total - i) / (total - mines - i), scaled by
rtp_bps / 10000 and floored at 1x, then truncated to basis points.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from backend_fairproof.crypto.primitives import base58_decode, bytes_to_hex, hmac_sha256, u32_be, utf8
from backend_fairproof.games.base import (
    Check,
    Reproducer,
    Reproduction,
    commitment_check,
    hmac_check,
    require_revealed,
    server_seed_key,
)
from backend_fairproof.rounds.models import GameKind, MinesRound

BPS = 10_000


@dataclass(frozen=True)
class MinesOutcome:
    bomb_indices: tuple[int, ...]
    seed_key_hex: str
    first_safe_index: int | None


def derive_seed_key(server_seed_hex: str, player: str, nonce: int | str, client_seed: str) -> bytes:
    message = base58_decode(player) + utf8(str(nonce)) + utf8(client_seed or "")
    return hmac_sha256(server_seed_key(server_seed_hex), message)


def place_bombs(seed_key: bytes, total_tiles: int, mines: int, first_safe_index: int | None = None) -> tuple[int, ...]:
    """Sorted bomb indices. first_safe_index (if any) is never a bomb."""
    if total_tiles <= 0:
        raise ValueError(f"Board must have at least one tile, got {total_tiles}")
    if mines < 0 or mines >= total_tiles:
        raise ValueError(f"Mine count must be in [0, {total_tiles - 1}], got {mines}")
    bombs: set[int] = set()
    i = 0
    while len(bombs) < mines:
        digest = hmac_sha256(seed_key, utf8(str(i)))
        i += 1
        idx = u32_be(digest, 0) % total_tiles
        if first_safe_index is not None and idx == first_safe_index:
            continue
        bombs.add(idx)
    return tuple(sorted(bombs))


def verify_mines(
    server_seed_hex: str,
    client_seed: str,
    nonce: int | str,
    player: str,
    rows: int,
    cols: int,
    mines: int,
    first_safe_index: int | None = None,
) -> MinesOutcome:
    seed_key = derive_seed_key(server_seed_hex, player, nonce, client_seed)
    bombs = place_bombs(seed_key, rows * cols, mines, first_safe_index)
    return MinesOutcome(bomb_indices=bombs, seed_key_hex=bytes_to_hex(seed_key), first_safe_index=first_safe_index)


def mines_multiplier(safe_opened: int, total_tiles: int, mines: int, rtp_bps: int = BPS) -> float:
    if safe_opened <= 0:
        return 1.0
    m = 1.0
    for i in range(safe_opened):
        m *= (total_tiles - i) / (total_tiles - mines - i)
    m *= rtp_bps / BPS
    return max(1.0, m)


def mines_payout(bet_lamports: int, multiplier: float) -> int:
    """Payout in lamports with the multiplier truncated to basis points."""
    return bet_lamports * math.floor(multiplier * BPS) // BPS


def _outcome(record: MinesRound) -> MinesOutcome:
    return verify_mines(
        require_revealed(record),
        record.client_seed,
        record.nonce,
        record.player,
        record.rows,
        record.cols,
        record.mines,
        record.effective_first_safe_index,
    )


def _first_hmac(record: MinesRound) -> str:
    return bytes_to_hex(derive_seed_key(require_revealed(record), record.player, record.nonce, record.client_seed))


def reproduce_mines(record: MinesRound) -> Reproduction:
    out = _outcome(record)
    bombs = set(out.bomb_indices)
    rep = Reproduction(first_hmac_hex=out.seed_key_hex)
    rep.checks.append(hmac_check(out.seed_key_hex, record.first_hmac_hex))
    rep.checks.append(commitment_check(record))

    bombs_ok = True
    if record.bomb_indices is not None:
        bombs_ok = set(record.bomb_indices) == bombs
    rep.checks.append(Check("bombs", bombs_ok, "Bomb layout mismatch"))

    safe_count = sum(1 for idx in record.opened if idx not in bombs)
    rep.checks.append(Check("opened", safe_count == len(record.opened), "Opened contains a bomb"))

    multiplier = mines_multiplier(safe_count, record.total_tiles, record.mines, record.rtp_bps)
    payout_calc = mines_payout(record.bet_lamports, multiplier)
    # a stored 0 is a bust
    payout_ok = payout_calc == record.payout_lamports or record.payout_lamports == 0
    rep.checks.append(
        Check(
            "payout",
            payout_ok,
            f"Payout mismatch (calc {payout_calc} != stored {record.payout_lamports})",
        )
    )
    rep.computed = {
        "bomb_indices": list(out.bomb_indices),
        "bombs_match": bombs_ok,
        "first_safe_index": out.first_safe_index,
        "payout_calc": str(payout_calc),
        "hmac_hex": out.seed_key_hex,
    }
    return rep


MINES = Reproducer(
    kind=GameKind.MINES,
    compute_first_hmac=_first_hmac,
    compute_outcome=_outcome,
    reproduce=reproduce_mines,
)
