"""
Round normalizer: raw upstream JSON to typed round records.

The game backend stores some columns as JSON text and returns others already
parsed (opened_json, bomb_indices, grid_json, results_json), uses alias
column names for slots stakes, and sends lamports as strings or numbers.
Everything is resolved here so the reproducers only see typed values.
"""

from __future__ import annotations

from typing import Any

from backend_fairproof.core.exceptions import DecodeError, UnknownGameError
from backend_fairproof.rounds.models import ROUND_TYPES, GameKind, ResolvedRound


def parse_game(game: str | GameKind) -> GameKind:
    """Return the GameKind for a game key; raise UnknownGameError otherwise."""
    if isinstance(game, GameKind):
        return game
    try:
        return GameKind((game or "").strip().lower())
    except ValueError as e:
        raise UnknownGameError(str(game)) from e


def parse_round(game: str | GameKind, item: dict[str, Any]) -> ResolvedRound:
    """Build the typed record for one upstream row. Raises DecodeError on malformed fields."""
    kind = parse_game(game)
    if not isinstance(item, dict):
        raise DecodeError(f"{kind.value} row must be an object, got {type(item).__name__}")
    return ROUND_TYPES[kind].from_api_item(item)
