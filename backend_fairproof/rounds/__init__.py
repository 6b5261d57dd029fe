"""
Resolved round records: typed, immutable views of the upstream
/{game}/resolved rows, normalized once at ingestion.
"""

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

__all__ = [
    "CoinflipRound",
    "CrashRound",
    "DiceRound",
    "GameKind",
    "MinesRound",
    "PlinkoRound",
    "ResolvedRound",
    "SlotsRound",
    "parse_game",
    "parse_round",
]
