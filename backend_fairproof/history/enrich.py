"""
Row enrichment: raw upstream item -> normalized record + display fields + verdict.

A row that fails normalization still yields an EnrichedRow with an `error`
verdict so the rest of the page renders.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Iterable, Sequence

from backend_fairproof.core.exceptions import DecodeError
from backend_fairproof.fairproof_logging import get_logger
from backend_fairproof.games.coinflip import side_name
from backend_fairproof.rounds.models import (
    CoinflipRound,
    CrashRound,
    DiceRound,
    GameKind,
    MinesRound,
    PlinkoRound,
    ResolvedRound,
    SlotsRound,
)
from backend_fairproof.rounds.normalizer import parse_game, parse_round
from backend_fairproof.verification.orchestrator import verify_round, verify_rounds
from backend_fairproof.verification.status import VerifyStatus

logger = get_logger(__name__)

NOT_AVAILABLE = "-"


@dataclass(frozen=True)
class DisplayRow:
    game_type: str
    result: str
    server_seed: str
    client_seed: str
    nonce: int | None
    hmac: str
    time: str | None
    time_ts: int | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "game_type": self.game_type,
            "result": self.result,
            "server_seed": self.server_seed,
            "client_seed": self.client_seed,
            "nonce": self.nonce,
            "hmac": self.hmac,
            "time": self.time,
            "time_ts": self.time_ts,
        }


@dataclass(frozen=True)
class EnrichedRow:
    raw: dict[str, Any]
    record: ResolvedRound | None
    display: DisplayRow
    verify: VerifyStatus

    @property
    def sort_key(self) -> int:
        """Resolution time in ms; rows without a timestamp sort last."""
        return self.display.time_ts or 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.record.id if self.record is not None else self.raw.get("id"),
            **self.display.to_dict(),
            "verify": self.verify.to_dict(),
        }


def parse_time(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_time(value: str | None) -> str | None:
    dt = parse_time(value)
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def timestamp_ms(value: str | None) -> int | None:
    dt = parse_time(value)
    if dt is None:
        return None
    return int(dt.timestamp() * 1000)


def _mul(numerator: int, denominator: int) -> str:
    return f"{numerator / denominator:.2f}"


def result_text(record: ResolvedRound) -> str:
    """Short human-readable outcome per game."""
    if isinstance(record, DiceRound):
        return str(record.roll)
    if isinstance(record, CoinflipRound):
        return side_name(record.outcome)
    if isinstance(record, CrashRound):
        bps = record.cashout_multiplier_bps
        if bps and bps > 0:
            return f"cashout @ {bps / 10_000:.2f}x"
        return f"crashed @ {record.crash_at_mul:.2f}x"
    if isinstance(record, MinesRound):
        if record.payout_lamports > 0 and record.bet_lamports > 0:
            return f"cashout @ {_mul(record.payout_lamports, record.bet_lamports)}x"
        return "boom"
    if isinstance(record, SlotsRound):
        if record.payout_lamports > 0 and record.bet_lamports > 0:
            return f"win @ {_mul(record.payout_lamports, record.bet_lamports)}x"
        return "loss"
    if isinstance(record, PlinkoRound):
        mul = _mul(record.payout_lamports, record.unit_lamports) if record.unit_lamports > 0 else NOT_AVAILABLE
        return f"{record.balls} balls -> {mul}x"
    return NOT_AVAILABLE


def client_seed_text(record: ResolvedRound) -> str:
    if isinstance(record, CoinflipRound):
        a, b = record.client_seed_a, record.client_seed_b
        return f"{a} | {b}" if (a or b) else ""
    return getattr(record, "client_seed", "") or ""


def build_display(record: ResolvedRound) -> DisplayRow:
    when = record.time_iso
    return DisplayRow(
        game_type=record.game.value,
        result=result_text(record),
        server_seed=record.server_seed_hex or "",
        client_seed=client_seed_text(record),
        nonce=record.nonce,
        hmac=record.first_hmac_hex or "",
        time=format_time(when),
        time_ts=timestamp_ms(when),
    )


def _fallback_display(kind: GameKind, item: dict[str, Any]) -> DisplayRow:
    """Best-effort display for a row that could not be normalized."""
    nonce = item.get("nonce")
    when = item.get("resolved_at") or item.get("created_at")
    when = when if isinstance(when, str) else None
    return DisplayRow(
        game_type=kind.value,
        result=NOT_AVAILABLE,
        server_seed=str(item.get("server_seed_hex") or ""),
        client_seed=str(item.get("client_seed") or ""),
        nonce=nonce if isinstance(nonce, int) and not isinstance(nonce, bool) else None,
        hmac=str(item.get("first_hmac_hex") or ""),
        time=format_time(when),
        time_ts=timestamp_ms(when),
    )


def _normalize(kind: GameKind, item: Any) -> tuple[dict[str, Any], ResolvedRound | None, str | None]:
    raw = item if isinstance(item, dict) else {}
    try:
        return raw, parse_round(kind, item), None
    except DecodeError as e:
        logger.warning(
            "history_row_decode_error",
            game=kind.value,
            round_id=raw.get("id"),
            error=str(e),
        )
        return raw, None, str(e)


def _assemble(
    kind: GameKind,
    raw: dict[str, Any],
    record: ResolvedRound | None,
    error: str | None,
    verify: VerifyStatus | None,
) -> EnrichedRow:
    if record is None:
        return EnrichedRow(
            raw=raw,
            record=None,
            display=_fallback_display(kind, raw),
            verify=VerifyStatus.error(error or "Malformed record"),
        )
    return EnrichedRow(raw=raw, record=record, display=build_display(record), verify=verify or verify_round(record))


def enrich_item(game: str | GameKind, item: Any) -> EnrichedRow:
    """Normalize, display and verify one upstream item. Raises only for an unknown game."""
    kind = parse_game(game)
    raw, record, error = _normalize(kind, item)
    return _assemble(kind, raw, record, error, None)


def enrich_items(
    pairs: Iterable[tuple[str | GameKind, Any]],
    max_workers: int | None = None,
) -> list[EnrichedRow]:
    """
    Enrich a batch of (game, item) pairs, verifying all normalized records
    concurrently. Output order matches input order.
    """
    normalized: Sequence[tuple[GameKind, dict[str, Any], ResolvedRound | None, str | None]] = [
        (kind, *_normalize(kind, item)) for kind, item in ((parse_game(g), i) for g, i in pairs)
    ]
    records = [rec for _, _, rec, _ in normalized if rec is not None]
    verdicts = iter(verify_rounds(records, max_workers=max_workers))
    return [
        _assemble(kind, raw, rec, err, next(verdicts) if rec is not None else None)
        for kind, raw, rec, err in normalized
    ]
