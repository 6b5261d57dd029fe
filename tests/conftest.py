"""
Pytest fixtures for Fairproof tests.

HonestServer re-derives rounds the way the game backend does, using only
stdlib hmac/hashlib, so verifier tests check against an independent source.
FakeUpstream serves GET /{game}/resolved through httpx.MockTransport.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import math
from typing import Any

import base58
import httpx
import pytest

# Valid Solana pubkey (base58, 32 bytes)
VALID_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
SERVER_SEED_HEX = bytes(range(32)).hex()
OTHER_SEED_HEX = bytes(range(100, 132)).hex()
UPSTREAM = "http://upstream.test"


def iso(minute: int) -> str:
    return f"2026-03-01T12:{minute:02d}:00Z"


class _Stream:
    """HMAC counter-mode uint32 stream (block i = HMAC(seed, prefix || i_le32))."""

    def __init__(self, key: bytes, prefix: bytes) -> None:
        self.key, self.prefix, self.i, self.buf = key, prefix, 0, b""

    def u32(self) -> int:
        if len(self.buf) < 4:
            self.buf += hmac.new(self.key, self.prefix + self.i.to_bytes(4, "little"), hashlib.sha256).digest()
            self.i += 1
        v, self.buf = int.from_bytes(self.buf[:4], "big"), self.buf[4:]
        return v

    def float(self) -> float:
        return self.u32() / 2**32

    def pick(self, items):
        return items[int(self.float() * len(items))]

    def randint(self, lo: int, hi: int) -> int:
        return lo + int(self.float() * (hi - lo + 1))


class HonestServer:
    """Builds upstream-shaped rows for a known server seed."""

    def __init__(self, seed_hex: str = SERVER_SEED_HEX) -> None:
        self.seed_hex = seed_hex
        self.key = bytes.fromhex(seed_hex)
        self.commitment = hashlib.sha256(self.key).hexdigest()

    def hmac(self, message: bytes | str) -> bytes:
        if isinstance(message, str):
            message = message.encode()
        return hmac.new(self.key, message, hashlib.sha256).digest()

    def _common(self, nonce: int, first_hmac: bytes | str | None, minute: int | None = None) -> dict[str, Any]:
        when = iso(nonce % 60 if minute is None else minute)
        if isinstance(first_hmac, bytes):
            first_hmac = first_hmac.hex()
        return {
            "id": nonce,
            "nonce": nonce,
            "server_seed_hash": self.commitment,
            "server_seed_hex": self.seed_hex,
            "first_hmac_hex": first_hmac,
            "status": "resolved",
            "created_at": when,
            "resolved_at": when,
        }

    def dice(self, nonce: int = 1, client_seed: str = "player-seed", **overrides: Any) -> dict[str, Any]:
        h = self.hmac(f"{client_seed}{nonce}")
        roll = int.from_bytes(h[:4], "big") % 100 + 1
        row = {
            **self._common(nonce, h, overrides.pop("minute", None)),
            "player": VALID_WALLET,
            "client_seed": client_seed,
            "bet_amount_lamports": "1000000",
            "bet_type": 0,
            "target": 50,
            "roll": roll,
            "payout_lamports": "1960000" if roll < 50 else "0",
            "win": roll < 50,
        }
        row.update(overrides)
        return row

    def coinflip(self, nonce: int = 1, seed_a: str = "alice", seed_b: str = "bob", **overrides: Any) -> dict[str, Any]:
        h = self.hmac(f"{seed_a}|{seed_b}|{nonce}")
        row = {
            **self._common(nonce, h, overrides.pop("minute", None)),
            "player_a": VALID_WALLET,
            "player_b": VALID_WALLET,
            "client_seed_a": seed_a,
            "client_seed_b": seed_b,
            "side_a": 0,
            "side_b": 1,
            "bet_lamports": "500000",
            "outcome": h[0] & 1,
            "payout_lamports": "980000",
        }
        row.update(overrides)
        return row

    def crash(self, nonce: int = 1, client_seed: str = "player-seed", **overrides: Any) -> dict[str, Any]:
        h = self.hmac(f"{client_seed}{nonce}")
        r = (int.from_bytes(h[:8], "big") >> 11) / 2**53
        mul = min(max(1.01, 0.99 / (1 - min(0.999999999999, r))), 10000.0)
        row = {
            **self._common(nonce, h, overrides.pop("minute", None)),
            "player": VALID_WALLET,
            "client_seed": client_seed,
            "bet_lamports": "1000000",
            "crash_at_mul": mul,
            "payout_lamports": "0",
            "cashout_multiplier_bps": None,
        }
        row.update(overrides)
        return row

    def mines_layout(self, nonce: int, client_seed: str, total: int, mines: int, first_safe: int) -> tuple[bytes, list[int]]:
        seed_key = self.hmac(base58.b58decode(VALID_WALLET) + str(nonce).encode() + client_seed.encode())
        bombs: set[int] = set()
        i = 0
        while len(bombs) < mines:
            h = hmac.new(seed_key, str(i).encode(), hashlib.sha256).digest()
            i += 1
            idx = int.from_bytes(h[:4], "big") % total
            if idx != first_safe:
                bombs.add(idx)
        return seed_key, sorted(bombs)

    def mines(
        self,
        nonce: int = 1,
        client_seed: str = "player-seed",
        rows: int = 5,
        cols: int = 5,
        mines: int = 3,
        safe_opened: int = 2,
        **overrides: Any,
    ) -> dict[str, Any]:
        total = rows * cols
        seed_key, bombs = self.mines_layout(nonce, client_seed, total, mines, 0)
        opened = [0] + [t for t in range(1, total) if t not in bombs][: safe_opened - 1] if safe_opened else []
        bet = 1_000_000
        mult = 1.0
        if opened:
            for i in range(len(opened)):
                mult *= (total - i) / (total - mines - i)
            mult = max(1.0, mult * (9800 / 10000))
        row = {
            **self._common(nonce, seed_key, overrides.pop("minute", None)),
            "player": VALID_WALLET,
            "client_seed": client_seed,
            "bet_lamports": str(bet),
            "rows": rows,
            "cols": cols,
            "mines": mines,
            "rtp_bps": 9800,
            "opened_json": json.dumps(opened),
            "bomb_indices": bombs,
            "payout_lamports": str(bet * math.floor(mult * 10000) // 10000),
        }
        row.update(overrides)
        return row

    def slots(self, nonce: int = 1, client_seed: str = "player-seed", **overrides: Any) -> dict[str, Any]:
        from backend_fairproof.games.slots import PAYTABLE, SLOT_SYMBOLS

        first = self.hmac(f"{client_seed}{nonce}")
        rng = _Stream(self.key, f"{client_seed}{nonce}".encode())
        r = rng.float()
        acc, chosen = 0.0, None
        for p in PAYTABLE:
            if p.key == "jackpot":
                continue
            acc += p.freq
            if r < acc:
                chosen = p
                break
        if chosen is None:
            chosen = next(p for p in PAYTABLE if p.key == "loss")
        grid = [rng.pick(SLOT_SYMBOLS) for _ in range(9)]
        if chosen.type == "triple":
            grid[3:6] = [chosen.symbol] * 3
        elif chosen.type == "near":
            s = rng.pick(SLOT_SYMBOLS)
            odd = rng.randint(0, 2)
            t = rng.pick(SLOT_SYMBOLS)
            while t == s:
                t = rng.pick(SLOT_SYMBOLS)
            grid[3:6] = [t if i == odd else s for i in range(3)]
        else:
            a = rng.pick(SLOT_SYMBOLS)
            b = rng.pick(SLOT_SYMBOLS)
            while b == a:
                b = rng.pick(SLOT_SYMBOLS)
            c = rng.pick(SLOT_SYMBOLS)
            while c in (a, b):
                c = rng.pick(SLOT_SYMBOLS)
            grid[3:6] = [a, b, c]
        bet = 1_000_000
        gross = bet * math.floor(chosen.payout_mul * 1_000_000 + 0.5) // 1_000_000
        fee = bet * math.floor(0.05 * 1_000_000 + 0.5) // 1_000_000
        row = {
            **self._common(nonce, first, overrides.pop("minute", None)),
            "player": VALID_WALLET,
            "client_seed": client_seed,
            "bet_amount": str(bet),
            "payout": str(max(0, gross - fee)),
            "grid_json": json.dumps(grid),
            "outcome_key": chosen.key,
        }
        row.update(overrides)
        return row

    def plinko(self, nonce: int = 1, client_seed: str = "player-seed", scheme: str = "v2", **overrides: Any) -> dict[str, Any]:
        base = f"{client_seed}{nonce}".encode()
        h = self.hmac(base + b"\x00\x00\x00\x00" if scheme == "v2" else base)
        row = {
            **self._common(nonce, h, overrides.pop("minute", None)),
            "player": VALID_WALLET,
            "client_seed": client_seed,
            "unit_lamports": "100000",
            "balls": 10,
            "rows": 12,
            "diff": 1,
            "payout": "1250000",
            "results_json": json.dumps({"results": [5, 6, 7, 6, 5, 4, 6, 7, 8, 6]}),
        }
        row.update(overrides)
        return row

    def row(self, game: str, nonce: int = 1, **overrides: Any) -> dict[str, Any]:
        return getattr(self, game)(nonce=nonce, **overrides)


class FakeUpstream:
    """
    In-memory GET /{game}/resolved.

    pages[(game, cursor)] = (items, next_cursor); cursor None is the first page.
    fail_status[game] = HTTP status returned for every request to that game.
    """

    def __init__(self) -> None:
        self.pages: dict[tuple[str, str | None], tuple[list[dict[str, Any]], Any]] = {}
        self.fail_status: dict[str, int] = {}
        self.requests: list[httpx.Request] = []

    def set_page(self, game: str, items: list[dict[str, Any]], next_cursor: Any = None, cursor: Any = None) -> None:
        self.pages[(game, None if cursor is None else str(cursor))] = (items, next_cursor)

    def calls_for(self, game: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == f"/{game}/resolved"]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        game = request.url.path.strip("/").split("/")[0]
        if game in self.fail_status:
            return httpx.Response(self.fail_status[game], json={"error": "boom"})
        items, next_cursor = self.pages.get((game, request.url.params.get("cursor")), ([], None))
        limit = int(request.url.params.get("limit", "50"))
        return httpx.Response(200, json={"items": items[:limit], "nextCursor": next_cursor})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def honest() -> HonestServer:
    return HonestServer()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def make_client(upstream):
    """Factory for a ResolvedRoundsClient on the fake upstream with no retry delay."""
    from backend_fairproof.history.client import ResolvedRoundsClient

    def make(max_retries: int = 2) -> ResolvedRoundsClient:
        return ResolvedRoundsClient(
            UPSTREAM,
            max_retries=max_retries,
            min_retry_delay_sec=0.0,
            max_retry_delay_sec=0.0,
            transport=upstream.transport(),
        )

    return make


@pytest.fixture
def test_settings():
    from backend_fairproof.config.settings import Settings

    return Settings(
        api_base=UPSTREAM,
        max_retries=2,
        min_retry_delay_sec=0.0,
        max_retry_delay_sec=0.0,
        page_size=4,
        verify_workers=2,
    )


@pytest.fixture
def client(make_client, test_settings):
    """FastAPI TestClient with the upstream client and settings overridden."""
    from fastapi.testclient import TestClient

    from backend_fairproof.api_server.server import app, get_app_settings, get_rounds_client

    async def _rounds_client():
        async with make_client() as c:
            yield c

    app.dependency_overrides[get_rounds_client] = _rounds_client
    app.dependency_overrides[get_app_settings] = lambda: test_settings
    yield TestClient(app)
    app.dependency_overrides.clear()
