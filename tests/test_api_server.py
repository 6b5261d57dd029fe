"""
FastAPI endpoints: /health, /history, /verify/manual, /verify/round/{game}.

Upstream is mocked via conftest (FakeUpstream + dependency overrides).
"""

from __future__ import annotations

import json

import pytest

from conftest import SERVER_SEED_HEX, VALID_WALLET


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_history_all_games(client, upstream, honest):
    upstream.set_page("dice", [honest.dice(nonce=1, minute=1), honest.dice(nonce=2, minute=50)], next_cursor=2)
    upstream.set_page("mines", [honest.mines(nonce=3, minute=30)], next_cursor=None)
    upstream.set_page("slots", [honest.slots(nonce=4, minute=40, server_seed_hex=None)], next_cursor=None)

    r = client.get("/history", params={"wallet": VALID_WALLET})
    assert r.status_code == 200
    data = r.json()
    assert data["game"] == "all"
    assert data["total"] == 4
    assert data["total_pages"] == 1
    assert data["has_more"] is True
    assert data["cursors"]["dice"] == 2
    assert [(i["game_type"], i["nonce"]) for i in data["items"]] == [
        ("dice", 2),
        ("slots", 4),
        ("mines", 3),
        ("dice", 1),
    ]
    assert data["items"][1]["verify"]["kind"] == "pending"
    assert data["items"][0]["verify"]["kind"] == "verified"


def test_history_page_beyond_batch_is_empty(client, upstream, honest):
    upstream.set_page("crash", [honest.crash(nonce=n, minute=n) for n in range(1, 7)], next_cursor=4)
    r = client.get("/history", params={"wallet": VALID_WALLET, "game": "crash", "page": 2})
    assert r.status_code == 200
    data = r.json()
    # page_size is 4, so only the first four rows are fetched
    assert data["total"] == 4
    assert data["total_pages"] == 1
    assert data["items"] == []
    assert data["has_more"] is True
    assert upstream.requests[0].url.params["limit"] == "4"


def test_history_next_batch_from_cursors(client, upstream, honest):
    upstream.set_page("crash", [honest.crash(nonce=n, minute=n) for n in range(1, 5)], next_cursor=4)
    upstream.set_page("crash", [honest.crash(nonce=n, minute=n) for n in (5, 6)], next_cursor=None, cursor=4)

    first = client.get("/history", params={"wallet": VALID_WALLET, "game": "crash"}).json()
    assert first["cursors"] == {"crash": 4}
    assert [i["nonce"] for i in first["items"]] == [1, 2, 3, 4]

    r = client.get(
        "/history",
        params={"wallet": VALID_WALLET, "game": "crash", "cursors": json.dumps(first["cursors"])},
    )
    assert r.status_code == 200
    data = r.json()
    assert [i["nonce"] for i in data["items"]] == [5, 6]
    assert all(i["verify"]["kind"] == "verified" for i in data["items"])
    assert data["has_more"] is False
    assert data["cursors"] == {"crash": None}
    assert len(upstream.requests) == 2
    assert upstream.requests[1].url.params["cursor"] == "4"


def test_history_all_games_next_batch(client, upstream, honest):
    upstream.set_page("dice", [honest.dice(nonce=1, minute=10)], next_cursor="d1")
    upstream.set_page("dice", [honest.dice(nonce=2, minute=5)], next_cursor=None, cursor="d1")

    first = client.get("/history", params={"wallet": VALID_WALLET}).json()
    assert first["has_more"] is True

    data = client.get(
        "/history", params={"wallet": VALID_WALLET, "cursors": json.dumps(first["cursors"])}
    ).json()
    assert [(i["game_type"], i["nonce"]) for i in data["items"]] == [("dice", 2)]
    assert data["has_more"] is False
    # exhausted games are not asked again
    assert len(upstream.requests) == 7


@pytest.mark.parametrize("cursors", ["{not json", "[4]", '{"keno": 1}', '{"crash": {"a": 1}}', '{"crash": true}'])
def test_history_bad_cursors(client, cursors):
    r = client.get("/history", params={"wallet": VALID_WALLET, "game": "crash", "cursors": cursors})
    assert r.status_code == 400


def test_history_invalid_wallet(client):
    r = client.get("/history", params={"wallet": "not-a-valid-pubkey"})
    assert r.status_code == 400
    assert "Invalid Solana wallet" in r.json()["detail"]


def test_history_unknown_game(client):
    r = client.get("/history", params={"wallet": VALID_WALLET, "game": "roulette"})
    assert r.status_code == 400


def test_history_upstream_failure_is_502(client, upstream):
    upstream.fail_status["plinko"] = 503
    r = client.get("/history", params={"wallet": VALID_WALLET})
    assert r.status_code == 502


def test_verify_manual(client, honest):
    row = honest.dice(nonce=7, client_seed="cs")
    r = client.post(
        "/verify/manual",
        json={
            "game": "dice",
            "server_seed_hex": SERVER_SEED_HEX,
            "client_seed": "cs",
            "nonce": 7,
            "expected_hmac": row["first_hmac_hex"],
            "server_seed_hash": honest.commitment,
        },
    )
    assert r.status_code == 200
    data = r.json()
    assert data["match_expected"] is True
    assert data["commitment_match"] is True
    assert data["outcome"]["roll"] == row["roll"]


def test_verify_manual_bad_input(client):
    r = client.post("/verify/manual", json={"game": "dice", "server_seed_hex": "abc", "nonce": 1})
    assert r.status_code == 400
    r = client.post("/verify/manual", json={"game": "keno", "server_seed_hex": SERVER_SEED_HEX, "nonce": 1})
    assert r.status_code == 400
    r = client.post("/verify/manual", json={"game": "dice", "server_seed_hex": SERVER_SEED_HEX})
    assert r.status_code == 422


def test_verify_round(client, honest):
    r = client.post("/verify/round/mines", json=honest.mines(nonce=5))
    assert r.status_code == 200
    assert r.json()["verify"] == {"kind": "verified", "reason": None, "details": None, "computed": None}

    tampered = honest.mines(nonce=5)
    tampered["server_seed_hash"] = "00" * 32
    r = client.post("/verify/round/mines", json=tampered)
    body = r.json()
    assert body["verify"]["kind"] == "mismatch"
    assert "Commitment hash mismatch" in body["verify"]["details"]
    assert body["verify"]["computed"]["bombs_match"] is True


def test_verify_round_unknown_game(client, honest):
    r = client.post("/verify/round/keno", json=honest.dice(nonce=1))
    assert r.status_code == 400
