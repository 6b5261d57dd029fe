"""
Per-game outcome reproducers.

One Reproducer per GameKind; reproduce(record) dispatches on the record's game.
Each game module is independent and only shares the crypto layer.
"""

from __future__ import annotations

from backend_fairproof.games.base import Check, Reproducer, Reproduction
from backend_fairproof.games.coinflip import COINFLIP
from backend_fairproof.games.crash import CRASH
from backend_fairproof.games.dice import DICE
from backend_fairproof.games.mines import MINES
from backend_fairproof.games.plinko import PLINKO
from backend_fairproof.games.slots import SLOTS
from backend_fairproof.rounds.models import GameKind, ResolvedRound

REPRODUCERS: dict[GameKind, Reproducer] = {
    GameKind.DICE: DICE,
    GameKind.COINFLIP: COINFLIP,
    GameKind.CRASH: CRASH,
    GameKind.MINES: MINES,
    GameKind.SLOTS: SLOTS,
    GameKind.PLINKO: PLINKO,
}


def get_reproducer(kind: GameKind) -> Reproducer:
    return REPRODUCERS[kind]


def reproduce(record: ResolvedRound) -> Reproduction:
    """Re-derive a revealed round and run all of its checks."""
    return REPRODUCERS[record.game].reproduce(record)


__all__ = [
    "Check",
    "REPRODUCERS",
    "Reproducer",
    "Reproduction",
    "get_reproducer",
    "reproduce",
]
