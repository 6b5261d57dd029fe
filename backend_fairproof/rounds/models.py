"""
Data models for resolved rounds returned by GET /{game}/resolved.

One frozen dataclass per game. Records are read-only: the verifier never
mutates them, it only re-derives what the server claims and compares.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar

from backend_fairproof.core.exceptions import DecodeError
from backend_fairproof.rounds.fields import (
    first_present,
    int_list,
    json_object,
    opt_float,
    opt_int,
    opt_str,
    str_list,
    to_float,
    to_int,
)


class GameKind(str, Enum):
    DICE = "dice"
    COINFLIP = "coinflip"
    CRASH = "crash"
    MINES = "mines"
    SLOTS = "slots"
    PLINKO = "plinko"


def _common(item: dict[str, Any]) -> dict[str, Any]:
    """Fields every game row carries."""
    return {
        "id": to_int(item.get("id"), "id", default=0),
        "nonce": to_int(item.get("nonce"), "nonce"),
        "server_seed_hash": opt_str(item.get("server_seed_hash")),
        "server_seed_hex": opt_str(item.get("server_seed_hex")),
        "first_hmac_hex": opt_str(item.get("first_hmac_hex")),
        "status": opt_str(item.get("status")),
        "created_at": opt_str(item.get("created_at")),
        "resolved_at": opt_str(item.get("resolved_at")),
    }


@dataclass(frozen=True)
class ResolvedRound:
    """
    Fields shared by all resolved rounds.

    server_seed_hash is published before the bet; server_seed_hex only after
    resolution (None until revealed). first_hmac_hex is the first digest the
    server computed while resolving, used as an outcome-independent cross-check.
    """

    game: ClassVar[GameKind]

    id: int
    nonce: int
    server_seed_hash: str | None
    server_seed_hex: str | None
    first_hmac_hex: str | None
    status: str | None
    created_at: str | None
    resolved_at: str | None

    @property
    def time_iso(self) -> str | None:
        """Resolution time, falling back to creation time."""
        return self.resolved_at or self.created_at


@dataclass(frozen=True)
class DiceRound(ResolvedRound):
    game: ClassVar[GameKind] = GameKind.DICE

    player: str
    client_seed: str
    bet_amount_lamports: int
    bet_type: int  # 0=under, 1=over
    target: int
    roll: int
    payout_lamports: int
    win: bool | None = None
    rtp_bps: int | None = None
    fee_bps: int | None = None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "DiceRound":
        win = item.get("win")
        return cls(
            **_common(item),
            player=str(item.get("player") or ""),
            client_seed=str(item.get("client_seed") or ""),
            bet_amount_lamports=to_int(item.get("bet_amount_lamports"), "bet_amount_lamports", default=0),
            bet_type=to_int(item.get("bet_type"), "bet_type", default=0),
            target=to_int(item.get("target"), "target"),
            roll=to_int(item.get("roll"), "roll"),
            payout_lamports=to_int(item.get("payout_lamports"), "payout_lamports", default=0),
            win=win if isinstance(win, bool) else None,
            rtp_bps=opt_int(item.get("rtp_bps"), "rtp_bps"),
            fee_bps=opt_int(item.get("fee_bps"), "fee_bps"),
        )


def _side(value: Any, field: str) -> int:
    """Coin side: 0/1 or 'heads'/'tails'."""
    if isinstance(value, str) and value.strip().lower() in ("heads", "tails"):
        return 0 if value.strip().lower() == "heads" else 1
    side = to_int(value, field)
    if side not in (0, 1):
        raise DecodeError(f"{field} must be 0 (heads) or 1 (tails), got {side}")
    return side


@dataclass(frozen=True)
class CoinflipRound(ResolvedRound):
    """PvP coinflip: two players, two client seeds, one server seed."""

    game: ClassVar[GameKind] = GameKind.COINFLIP

    player_a: str
    player_b: str
    client_seed_a: str
    client_seed_b: str
    side_a: int
    side_b: int
    bet_lamports: int
    outcome: int  # 0=heads, 1=tails
    payout_lamports: int
    winner: str | None = None
    fee_bps: int | None = None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "CoinflipRound":
        return cls(
            **_common(item),
            player_a=str(item.get("player_a") or ""),
            player_b=str(item.get("player_b") or ""),
            client_seed_a=str(item.get("client_seed_a") or ""),
            client_seed_b=str(item.get("client_seed_b") or ""),
            side_a=_side(item.get("side_a", 0), "side_a"),
            side_b=_side(item.get("side_b", 1), "side_b"),
            bet_lamports=to_int(item.get("bet_lamports"), "bet_lamports", default=0),
            outcome=_side(item.get("outcome"), "outcome"),
            payout_lamports=to_int(item.get("payout_lamports"), "payout_lamports", default=0),
            winner=opt_str(item.get("winner")),
            fee_bps=opt_int(item.get("fee_bps"), "fee_bps"),
        )


@dataclass(frozen=True)
class CrashRound(ResolvedRound):
    game: ClassVar[GameKind] = GameKind.CRASH

    player: str
    client_seed: str
    bet_lamports: int
    crash_at_mul: float
    payout_lamports: int
    cashout_multiplier_bps: int | None = None  # None if crashed before cashout
    fee_bps: int | None = None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "CrashRound":
        return cls(
            **_common(item),
            player=str(item.get("player") or ""),
            client_seed=str(item.get("client_seed") or ""),
            bet_lamports=to_int(item.get("bet_lamports"), "bet_lamports", default=0),
            crash_at_mul=to_float(item.get("crash_at_mul"), "crash_at_mul"),
            payout_lamports=to_int(item.get("payout_lamports"), "payout_lamports", default=0),
            cashout_multiplier_bps=opt_int(item.get("cashout_multiplier_bps"), "cashout_multiplier_bps"),
            fee_bps=opt_int(item.get("fee_bps"), "fee_bps"),
        )


DEFAULT_MINES_RTP_BPS = 9800


@dataclass(frozen=True)
class MinesRound(ResolvedRound):
    """
    Mines board of rows x cols tiles. opened holds the safe tiles the player
    revealed, in order; bomb_indices is only present if the backend persisted it.
    """

    game: ClassVar[GameKind] = GameKind.MINES

    player: str
    client_seed: str
    bet_lamports: int
    rows: int
    cols: int
    mines: int
    payout_lamports: int
    rtp_bps: int = DEFAULT_MINES_RTP_BPS
    first_safe_index: int | None = None
    opened: tuple[int, ...] = ()
    bomb_indices: tuple[int, ...] | None = None

    @property
    def total_tiles(self) -> int:
        return self.rows * self.cols

    @property
    def effective_first_safe_index(self) -> int:
        """Stored first safe index, else the first opened tile, else 0."""
        if self.first_safe_index is not None:
            return self.first_safe_index
        return self.opened[0] if self.opened else 0

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "MinesRound":
        rtp = opt_int(item.get("rtp_bps"), "rtp_bps")
        return cls(
            **_common(item),
            player=str(item.get("player") or ""),
            client_seed=str(item.get("client_seed") or ""),
            bet_lamports=to_int(item.get("bet_lamports"), "bet_lamports", default=0),
            rows=to_int(item.get("rows"), "rows"),
            cols=to_int(item.get("cols"), "cols"),
            mines=to_int(item.get("mines"), "mines"),
            payout_lamports=to_int(item.get("payout_lamports"), "payout_lamports", default=0),
            rtp_bps=DEFAULT_MINES_RTP_BPS if rtp is None else rtp,
            first_safe_index=opt_int(item.get("first_safe_index"), "first_safe_index"),
            opened=int_list(item.get("opened_json"), "opened_json") or (),
            bomb_indices=int_list(item.get("bomb_indices"), "bomb_indices"),
        )


DEFAULT_SLOTS_FEE_PCT = 0.05


@dataclass(frozen=True)
class SlotsRound(ResolvedRound):
    game: ClassVar[GameKind] = GameKind.SLOTS

    player: str
    client_seed: str
    bet_lamports: int
    payout_lamports: int
    fee_pct: float = DEFAULT_SLOTS_FEE_PCT
    grid: tuple[str, ...] | None = None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "SlotsRound":
        # stake/payout column names differ between backend versions
        bet = first_present(item, "bet_lamports", "bet_amount", "bet_amount_lamports")
        payout = first_present(item, "payout_lamports", "payout")
        fee_pct = opt_float(item.get("fee_pct"), "fee_pct")
        return cls(
            **_common(item),
            player=str(item.get("player") or ""),
            client_seed=str(item.get("client_seed") or ""),
            bet_lamports=to_int(bet, "bet_lamports", default=0),
            payout_lamports=to_int(payout, "payout_lamports", default=0),
            fee_pct=DEFAULT_SLOTS_FEE_PCT if fee_pct is None else fee_pct,
            grid=str_list(item.get("grid_json"), "grid_json"),
        )


@dataclass(frozen=True)
class PlinkoRound(ResolvedRound):
    """Plinko batch: `balls` balls of unit_lamports each dropped through `rows` pin rows."""

    game: ClassVar[GameKind] = GameKind.PLINKO

    player: str
    client_seed: str
    unit_lamports: int
    balls: int
    rows: int
    diff: int
    payout_lamports: int
    results: tuple[int, ...] | None = None

    @classmethod
    def from_api_item(cls, item: dict[str, Any]) -> "PlinkoRound":
        payload = json_object(item.get("results_json"), "results_json")
        results = None
        if payload is not None and payload.get("results") is not None:
            results = int_list(payload.get("results"), "results_json.results")
        return cls(
            **_common(item),
            player=str(item.get("player") or ""),
            client_seed=str(item.get("client_seed") or ""),
            unit_lamports=to_int(item.get("unit_lamports"), "unit_lamports", default=0),
            balls=to_int(item.get("balls"), "balls", default=0),
            rows=to_int(item.get("rows"), "rows", default=0),
            diff=to_int(item.get("diff"), "diff", default=0),
            payout_lamports=to_int(first_present(item, "payout", "payout_lamports"), "payout", default=0),
            results=results,
        )


ROUND_TYPES: dict[GameKind, Any] = {
    GameKind.DICE: DiceRound,
    GameKind.COINFLIP: CoinflipRound,
    GameKind.CRASH: CrashRound,
    GameKind.MINES: MinesRound,
    GameKind.SLOTS: SlotsRound,
    GameKind.PLINKO: PlinkoRound,
}
