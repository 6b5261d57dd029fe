"""
Dice: roll mapping, win rule and reproduction against an honest server.
"""

from __future__ import annotations

import hashlib
import hmac

from backend_fairproof.games.dice import BET_OVER, BET_UNDER, is_win, reproduce_dice, roll_from_hmac, verify_dice
from backend_fairproof.rounds import parse_round

from conftest import SERVER_SEED_HEX


def test_roll_mapping_uses_first_four_bytes():
    assert roll_from_hmac(bytes(32)) == 1
    assert roll_from_hmac(b"\x00\x00\x00\x63" + bytes(28)) == 100
    assert roll_from_hmac(b"\x00\x00\x00\x64" + bytes(28)) == 1
    assert roll_from_hmac(b"\xff\xff\xff\xff" + bytes(28)) == 0xFFFFFFFF % 100 + 1


def test_verify_dice_matches_stdlib_derivation():
    h = hmac.new(bytes.fromhex(SERVER_SEED_HEX), b"abc42", hashlib.sha256).digest()
    out = verify_dice(SERVER_SEED_HEX, "abc", 42)
    assert out.hmac_hex == h.hex()
    assert out.roll == int.from_bytes(h[:4], "big") % 100 + 1
    assert 1 <= out.roll <= 100


def test_is_win_under_and_over():
    assert is_win(10, BET_UNDER, 50)
    assert not is_win(50, BET_UNDER, 50)
    assert is_win(51, BET_OVER, 50)
    assert not is_win(50, BET_OVER, 50)


def test_honest_round_reproduces(honest):
    rep = reproduce_dice(parse_round("dice", honest.dice(nonce=3)))
    assert rep.ok
    assert rep.failures == []
    assert rep.computed["roll"] == parse_round("dice", honest.dice(nonce=3)).roll


def test_tampered_roll_is_reported(honest):
    row = honest.dice(nonce=3)
    row["roll"] = row["roll"] % 100 + 1
    rep = reproduce_dice(parse_round("dice", row))
    assert not rep.ok
    assert any(f.startswith("Roll mismatch") for f in rep.failures)


def test_known_answer_fixture():
    """Seed 00..1f, client seed "abc", nonce 1."""
    out = verify_dice(SERVER_SEED_HEX, "abc", 1)
    assert out.hmac_hex == "be3e53ba08a33746a107f2f5d886a12e5af8c484d7c858a0bcc0174e8e3d90d4"
    assert out.roll == 7
