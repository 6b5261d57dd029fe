"""
Slots reproducer.

The first HMAC (client_seed + nonce) is only an integrity cross-check. The
outcome comes from HmacRng(server_seed, client_seed, nonce), consumed in the
server's order:

1. one float selects a paytable row by walking the cumulative frequencies;
2. nine cells are drawn from the symbol alphabet, unconditionally;
3. the middle row (cells 3..5) is overwritten for the selected row type.

Payout is fixed-point (scale 1e6): floor(bet * mul) - floor(bet * fee), clamped at 0.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from itertools import accumulate

from backend_fairproof.crypto.primitives import bytes_to_hex, hmac_sha256
from backend_fairproof.crypto.rng import HmacRng
from backend_fairproof.games.base import (
    Check,
    Reproducer,
    Reproduction,
    commitment_check,
    hmac_check,
    require_revealed,
    server_seed_key,
)
from backend_fairproof.rounds.models import GameKind, SlotsRound

SLOT_SYMBOLS: tuple[str, ...] = ("floki", "wif", "brett", "shiba", "bonk", "doge", "pepe", "sol", "zoggy")
SLOTS_CELLS = 9
MIDDLE_ROW_START = 3
FIXED_POINT_SCALE = 1_000_000

TYPE_NEAR = "near"
TYPE_TRIPLE = "triple"
TYPE_LOSS = "loss"


@dataclass(frozen=True)
class PayRow:
    key: str
    type: str
    payout_mul: float
    freq: float
    symbol: str | None = None


# Order is part of the protocol: the cumulative walk depends on it.
PAYTABLE: tuple[PayRow, ...] = (
    PayRow("near_miss", TYPE_NEAR, 0.8, 0.24999992500002252),
    PayRow("triple_floki", TYPE_TRIPLE, 1.5, 0.04999998500000451, "floki"),
    PayRow("triple_wif", TYPE_TRIPLE, 1.5, 0.04999998500000451, "wif"),
    PayRow("triple_brett", TYPE_TRIPLE, 1.5, 0.04999998500000451, "brett"),
    PayRow("triple_shiba", TYPE_TRIPLE, 3, 0.023609992917002123, "shiba"),
    PayRow("triple_bonk", TYPE_TRIPLE, 6, 0.011804996458501062, "bonk"),
    PayRow("triple_doge", TYPE_TRIPLE, 10, 0.007082997875100638, "doge"),
    PayRow("triple_pepe", TYPE_TRIPLE, 20, 0.003541998937400319, "pepe"),
    PayRow("triple_sol", TYPE_TRIPLE, 50, 0.001416999574900128, "sol"),
    PayRow("triple_zoggy", TYPE_TRIPLE, 100, 0.000708299787510064, "zoggy"),
    PayRow("jackpot", TYPE_TRIPLE, 1000, 0, "zoggy"),
    PayRow("loss", TYPE_LOSS, 0, 0.5518348344495496),
)

LOSS_ROW = next(p for p in PAYTABLE if p.key == "loss")

# jackpot is excluded from the walk, so it is never selected
_WALK_ROWS = tuple(p for p in PAYTABLE if p.key != "jackpot")
CUMULATIVE: tuple[tuple[PayRow, float], ...] = tuple(
    zip(_WALK_ROWS, accumulate(p.freq for p in _WALK_ROWS))
)


@dataclass(frozen=True)
class SlotsOutcome:
    row: PayRow
    grid: tuple[str, ...]
    hmac_hex: str


def pick_outcome(rng: HmacRng) -> PayRow:
    r = rng.next_float()
    for row, cum in CUMULATIVE:
        if r < cum:
            return row
    return LOSS_ROW


def _pick_not(rng: HmacRng, exclude: str) -> str:
    while True:
        s = rng.pick(SLOT_SYMBOLS)
        if s != exclude:
            return s


def build_grid(rng: HmacRng, outcome: PayRow) -> tuple[str, ...]:
    grid = [rng.pick(SLOT_SYMBOLS) for _ in range(SLOTS_CELLS)]
    mid = grid[MIDDLE_ROW_START:MIDDLE_ROW_START + 3]

    if outcome.type == TYPE_TRIPLE:
        mid = [outcome.symbol] * 3
    elif outcome.type == TYPE_NEAR:
        s = rng.pick(SLOT_SYMBOLS)
        odd = rng.next_int(0, 2)
        t = _pick_not(rng, s)
        mid = [t if i == odd else s for i in range(3)]
    else:
        first = rng.pick(SLOT_SYMBOLS)
        second = _pick_not(rng, first)
        while True:
            third = rng.pick(SLOT_SYMBOLS)
            if third != first and third != second:
                break
        mid = [first, second, third]

    grid[MIDDLE_ROW_START:MIDDLE_ROW_START + 3] = mid
    return tuple(grid)


def _to_fixed(value: float) -> int:
    """Round half up to the fixed-point scale."""
    return math.floor(value * FIXED_POINT_SCALE + 0.5)


def slots_payout(bet_lamports: int, payout_mul: float, fee_pct: float) -> int:
    gross = bet_lamports * _to_fixed(payout_mul) // FIXED_POINT_SCALE
    fee = bet_lamports * _to_fixed(fee_pct) // FIXED_POINT_SCALE
    return gross - fee if gross > fee else 0


def slots_first_hmac(server_seed_hex: str, client_seed: str, nonce: int | str) -> bytes:
    return hmac_sha256(server_seed_key(server_seed_hex), f"{client_seed or ''}{nonce}")


def verify_slots(server_seed_hex: str, client_seed: str, nonce: int | str) -> SlotsOutcome:
    first = slots_first_hmac(server_seed_hex, client_seed, nonce)
    rng = HmacRng(server_seed_hex, client_seed or "", nonce)
    row = pick_outcome(rng)
    grid = build_grid(rng, row)
    return SlotsOutcome(row=row, grid=grid, hmac_hex=bytes_to_hex(first))


def _outcome(record: SlotsRound) -> SlotsOutcome:
    return verify_slots(require_revealed(record), record.client_seed, record.nonce)


def _first_hmac(record: SlotsRound) -> str:
    return bytes_to_hex(slots_first_hmac(require_revealed(record), record.client_seed, record.nonce))


def reproduce_slots(record: SlotsRound) -> Reproduction:
    out = _outcome(record)
    payout_calc = slots_payout(record.bet_lamports, out.row.payout_mul, record.fee_pct)
    grid_ok = record.grid is None or tuple(record.grid) == out.grid

    rep = Reproduction(first_hmac_hex=out.hmac_hex)
    rep.checks.append(hmac_check(out.hmac_hex, record.first_hmac_hex))
    rep.checks.append(commitment_check(record))
    rep.checks.append(
        Check(
            "payout",
            payout_calc == record.payout_lamports,
            f"Payout mismatch (calc {payout_calc} != stored {record.payout_lamports})",
        )
    )
    rep.checks.append(Check("grid", grid_ok, "Grid mismatch"))
    rep.computed = {
        "outcome": out.row.key,
        "grid": list(out.grid),
        "grid_match": grid_ok,
        "payout_calc": str(payout_calc),
        "hmac_hex": out.hmac_hex,
    }
    return rep


SLOTS = Reproducer(
    kind=GameKind.SLOTS,
    compute_first_hmac=_first_hmac,
    compute_outcome=_outcome,
    reproduce=reproduce_slots,
)
