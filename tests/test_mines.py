"""
Mines: seed key derivation, bomb placement (skip rule) and payout.
"""

from __future__ import annotations

import hashlib
import hmac

import pytest

from backend_fairproof.core.exceptions import DecodeError
from backend_fairproof.games.mines import (
    derive_seed_key,
    mines_multiplier,
    mines_payout,
    place_bombs,
    reproduce_mines,
    verify_mines,
)
from backend_fairproof.rounds import parse_round

from conftest import SERVER_SEED_HEX, VALID_WALLET


def _draws(seed_key: bytes, n: int, total: int) -> list[int]:
    return [
        int.from_bytes(hmac.new(seed_key, str(i).encode(), hashlib.sha256).digest()[:4], "big") % total
        for i in range(n)
    ]


@pytest.mark.parametrize("mines", [1, 3, 10, 24])
def test_bomb_count_and_range(mines):
    key = bytes(range(32))
    bombs = place_bombs(key, 25, mines)
    assert len(bombs) == mines
    assert len(set(bombs)) == mines
    assert all(0 <= b < 25 for b in bombs)
    assert list(bombs) == sorted(bombs)


@pytest.mark.parametrize("first_safe", [0, 7, 24])
def test_first_safe_index_is_never_a_bomb(first_safe):
    key = bytes(range(32))
    bombs = place_bombs(key, 25, 24, first_safe)
    assert first_safe not in bombs
    assert len(bombs) == 24


def test_skip_still_advances_counter():
    key = bytes(range(32))
    first_draw = _draws(key, 1, 25)[0]
    with_skip = place_bombs(key, 25, 1, first_safe_index=first_draw)
    without = place_bombs(key, 25, 1)
    assert without == (first_draw,)
    # the skipped draw is consumed, so the bomb comes from a later counter value
    later = [d for d in _draws(key, 50, 25)[1:] if d != first_draw]
    assert with_skip == (later[0],)


def test_invalid_board():
    key = bytes(32)
    with pytest.raises(ValueError):
        place_bombs(key, 25, 25)
    with pytest.raises(ValueError):
        place_bombs(key, 0, 0)
    with pytest.raises(ValueError):
        place_bombs(key, 25, -1)


def test_seed_key_message_layout():
    import base58

    msg = base58.b58decode(VALID_WALLET) + b"12" + b"cs"
    expected = hmac.new(bytes.fromhex(SERVER_SEED_HEX), msg, hashlib.sha256).digest()
    assert derive_seed_key(SERVER_SEED_HEX, VALID_WALLET, 12, "cs") == expected


def test_bad_player_is_decode_error():
    with pytest.raises(DecodeError):
        derive_seed_key(SERVER_SEED_HEX, "not-base58-0OIl", 1, "cs")


def test_multiplier_and_payout():
    assert mines_multiplier(0, 25, 3) == 1.0
    assert mines_multiplier(1, 25, 3) == pytest.approx(25 / 22)
    assert mines_multiplier(2, 25, 3, 9800) == pytest.approx(25 / 22 * 24 / 21 * 0.98)
    # floored at 1x
    assert mines_multiplier(1, 25, 1, 9000) == 1.0
    assert mines_payout(1_000_000, 1.23456789) == 1_234_500
    assert mines_payout(3, 1.5) == 4


def test_verify_mines_reports_seed_key():
    out = verify_mines(SERVER_SEED_HEX, "cs", 1, VALID_WALLET, 5, 5, 3, 0)
    assert out.seed_key_hex == derive_seed_key(SERVER_SEED_HEX, VALID_WALLET, 1, "cs").hex()
    assert len(out.bomb_indices) == 3
    assert 0 not in out.bomb_indices


@pytest.mark.parametrize("safe_opened", [0, 1, 4])
def test_honest_round_reproduces(honest, safe_opened):
    rep = reproduce_mines(parse_round("mines", honest.mines(nonce=4, safe_opened=safe_opened)))
    assert rep.failures == []


def test_bust_payout_is_accepted(honest):
    row = honest.mines(nonce=4, safe_opened=3, payout_lamports="0")
    assert reproduce_mines(parse_round("mines", row)).ok


def test_wrong_payout_is_reported(honest):
    row = honest.mines(nonce=4, safe_opened=3)
    row["payout_lamports"] = str(int(row["payout_lamports"]) + 1)
    rep = reproduce_mines(parse_round("mines", row))
    assert any(f.startswith("Payout mismatch") for f in rep.failures)


def test_opened_bomb_and_layout_are_reported(honest):
    row = honest.mines(nonce=4, safe_opened=2)
    bomb = row["bomb_indices"][0]
    row["opened_json"] = f"[0, {bomb}]"
    row["bomb_indices"] = [b for b in range(25) if b not in row["bomb_indices"] and b != 0][:3]
    failures = reproduce_mines(parse_round("mines", row)).failures
    assert "Opened contains a bomb" in failures
    assert "Bomb layout mismatch" in failures


def test_stored_first_safe_index_wins_over_opened(honest):
    row = honest.mines(nonce=4, safe_opened=2, first_safe_index=0)
    assert parse_round("mines", row).effective_first_safe_index == 0
    assert reproduce_mines(parse_round("mines", row)).ok
