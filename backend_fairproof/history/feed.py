"""
Paginated history feed for one wallet, across one game or all six.

Responsibilities:
- Fetch the first page per game (all games concurrently in "all" mode).
- Enrich and verify every fetched row, then replace the item list wholesale.
- Page further with per-game cursors; exhausted games are skipped.
- Resume from the cursors of an earlier response (stateless HTTP paging).
- Merge across games by resolution time, newest first (stable).
- Discard results of a load that was superseded by a newer one.
"""

from __future__ import annotations

import asyncio
import math
from typing import Any, Mapping

from backend_fairproof.fairproof_logging import bind_wallet
from backend_fairproof.history.client import Cursor, ResolvedRoundsClient, RoundPage
from backend_fairproof.history.enrich import EnrichedRow, enrich_items
from backend_fairproof.rounds.models import GameKind
from backend_fairproof.rounds.normalizer import parse_game

ALL_GAMES = "all"
DEFAULT_PAGE_SIZE = 10
MIN_PER_GAME_LIMIT = 3


def per_game_limit(page_size: int) -> int:
    """Rows requested from each game in "all" mode."""
    return max(MIN_PER_GAME_LIMIT, math.ceil(page_size / 2))


def merge_sorted(rows: list[EnrichedRow]) -> list[EnrichedRow]:
    """Newest first; rows with equal (or missing) timestamps keep their order."""
    return sorted(rows, key=lambda r: r.sort_key, reverse=True)


def _game_key(game: str) -> str:
    if (game or "").strip().lower() == ALL_GAMES:
        return ALL_GAMES
    return parse_game(game).value


class HistoryFeed:
    """
    In-memory history for a (wallet, game) filter.

    Not thread-safe; intended for a single event loop. Concurrent loads are
    resolved last-request-wins.
    """

    def __init__(
        self,
        client: ResolvedRoundsClient,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_workers: int | None = None,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._client = client
        self._page_size = page_size
        self._max_workers = max_workers
        self._wallet = ""
        self._game = ALL_GAMES
        self._items: list[EnrichedRow] = []
        self._cursors: dict[GameKind, Cursor] = {}
        self._generation = 0

    @property
    def wallet(self) -> str:
        return self._wallet

    @property
    def game(self) -> str:
        return self._game

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def items(self) -> tuple[EnrichedRow, ...]:
        return tuple(self._items)

    @property
    def cursors(self) -> dict[str, Cursor]:
        return {k.value: v for k, v in self._cursors.items()}

    @property
    def has_more(self) -> bool:
        return any(bool(c) for c in self._cursors.values())

    @property
    def total_pages(self) -> int:
        return max(1, math.ceil(len(self._items) / self._page_size))

    def page(self, n: int) -> list[EnrichedRow]:
        """1-based page of the current items; out-of-range pages are empty."""
        if n < 1:
            return []
        start = (n - 1) * self._page_size
        return self._items[start : start + self._page_size]

    def _games(self, game_key: str) -> list[GameKind]:
        if game_key == ALL_GAMES:
            return list(GameKind)
        return [parse_game(game_key)]

    def _limit(self, game_key: str) -> int:
        return per_game_limit(self._page_size) if game_key == ALL_GAMES else self._page_size

    async def _fetch(self, wallet: str, pages: dict[GameKind, Cursor], limit: int) -> list[RoundPage]:
        return list(
            await asyncio.gather(
                *(self._client.fetch_page(kind, wallet, limit, cursor) for kind, cursor in pages.items())
            )
        )

    async def _enrich(self, pages: list[RoundPage]) -> list[EnrichedRow]:
        pairs: list[tuple[GameKind, Any]] = [(p.game, item) for p in pages for item in p.items]
        return await asyncio.to_thread(enrich_items, pairs, self._max_workers)

    def _is_stale(self, generation: int, op: str, wallet: str, game: str) -> bool:
        if generation == self._generation:
            return False
        bind_wallet(wallet, game=game, name=__name__).info("history_stale_result_discarded", op=op)
        return True

    async def load_first_page(self, wallet: str, game: str = ALL_GAMES) -> list[EnrichedRow]:
        """
        Reset the feed to (wallet, game) and load its first page.

        The previous state stays visible until the new batch is complete.
        Returns the new items, or the current ones if this load was superseded.
        Raises NetworkFailure when any game's fetch fails after retries; the
        feed is then left as it was.
        """
        game_key = _game_key(game)
        wallet = (wallet or "").strip()
        self._generation += 1
        generation = self._generation

        pages = await self._fetch(wallet, {kind: None for kind in self._games(game_key)}, self._limit(game_key))
        rows = await self._enrich(pages)
        if self._is_stale(generation, "load_first_page", wallet, game_key):
            return list(self._items)

        self._wallet = wallet
        self._game = game_key
        self._cursors = {p.game: p.next_cursor for p in pages}
        self._items = merge_sorted(rows) if game_key == ALL_GAMES else rows
        bind_wallet(wallet, game=game_key, name=__name__).info(
            "history_loaded",
            rows=len(self._items),
            has_more=self.has_more,
        )
        return list(self._items)

    def resume(self, wallet: str, game: str, cursors: Mapping[str, Cursor]) -> None:
        """
        Point the feed at (wallet, game) with no items and the given per-game cursors.

        Used to continue a listing from the cursors of an earlier response;
        follow with load_more(). In single-game mode only that game's cursor
        is kept. Raises UnknownGameError for an unknown game key.
        """
        game_key = _game_key(game)
        parsed = {parse_game(name): cursor for name, cursor in cursors.items()}
        if game_key != ALL_GAMES:
            kind = parse_game(game_key)
            parsed = {kind: parsed[kind]} if kind in parsed else {}
        self._generation += 1
        self._wallet = (wallet or "").strip()
        self._game = game_key
        self._items = []
        self._cursors = parsed

    async def load_more(self) -> list[EnrichedRow]:
        """Fetch the next page for every game that still has a cursor and merge it in."""
        pending = {kind: cursor for kind, cursor in self._cursors.items() if cursor}
        if not pending or not self._wallet:
            return []
        generation = self._generation
        wallet, game_key = self._wallet, self._game
        pages = await self._fetch(wallet, pending, self._limit(game_key))
        rows = await self._enrich(pages)
        if self._is_stale(generation, "load_more", wallet, game_key):
            return []

        cursors = dict(self._cursors)
        cursors.update({p.game: p.next_cursor for p in pages})
        combined = self._items + rows
        self._items = merge_sorted(combined) if game_key == ALL_GAMES else combined
        self._cursors = cursors
        bind_wallet(wallet, game=game_key, name=__name__).info(
            "history_loaded_more",
            new_rows=len(rows),
            rows=len(self._items),
            has_more=self.has_more,
        )
        return rows
