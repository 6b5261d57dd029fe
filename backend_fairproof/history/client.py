"""
Resolved-rounds HTTP client.

GET {api_base}/{game}/resolved?wallet=<base58>&limit=<n>&cursor=<opaque>
-> {"items": [...], "nextCursor": <cursor> | null}

Transport errors, 429 and 5xx are retried with exponential backoff; after the
last attempt (or on any other non-2xx / undecodable body) NetworkFailure is
raised. Network failures never become verification verdicts.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import httpx

from backend_fairproof.config.settings import Settings, get_settings
from backend_fairproof.core.exceptions import NetworkFailure
from backend_fairproof.fairproof_logging import get_logger, short_wallet
from backend_fairproof.rounds.models import GameKind
from backend_fairproof.rounds.normalizer import parse_game

logger = get_logger(__name__)

RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504})

Cursor = int | str | None


@dataclass(frozen=True)
class RoundPage:
    game: GameKind
    items: list[dict[str, Any]] = field(default_factory=list)
    next_cursor: Cursor = None


class ResolvedRoundsClient:
    """
    Async client for the per-game resolved-rounds endpoints.

    Use as an async context manager, or call aclose() when done.
    """

    def __init__(
        self,
        api_base: str,
        *,
        timeout_sec: float = 15.0,
        max_retries: int = 3,
        min_retry_delay_sec: float = 0.5,
        max_retry_delay_sec: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            api_base: Base URL of the game backend (e.g. https://api.example.com).
            timeout_sec: HTTP timeout per request.
            max_retries: Attempts per page before giving up (>= 1).
            min_retry_delay_sec: Initial backoff delay.
            max_retry_delay_sec: Cap for backoff delay.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        if max_retries < 1:
            raise ValueError("max_retries must be >= 1")
        self._api_base = (api_base or "").rstrip("/")
        self._max_retries = max_retries
        self._min_retry_delay = min_retry_delay_sec
        self._max_retry_delay = max_retry_delay_sec
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_sec),
            transport=transport,
            headers={"Cache-Control": "no-store"},
        )

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, *, transport: httpx.AsyncBaseTransport | None = None
    ) -> "ResolvedRoundsClient":
        s = settings or get_settings()
        return cls(
            s.api_base,
            timeout_sec=s.request_timeout_sec,
            max_retries=s.max_retries,
            min_retry_delay_sec=s.min_retry_delay_sec,
            max_retry_delay_sec=s.max_retry_delay_sec,
            transport=transport,
        )

    async def __aenter__(self) -> "ResolvedRoundsClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def url_for(self, game: GameKind) -> str:
        return f"{self._api_base}/{game.value}/resolved"

    async def fetch_page(
        self,
        game: str | GameKind,
        wallet: str,
        limit: int,
        cursor: Cursor = None,
    ) -> RoundPage:
        """Fetch one page of resolved rounds for a wallet."""
        kind = parse_game(game)
        params: dict[str, Any] = {"wallet": wallet, "limit": str(limit)}
        if cursor:
            params["cursor"] = str(cursor)

        delay = self._min_retry_delay
        last_error = ""
        last_status: int | None = None
        for attempt in range(self._max_retries):
            try:
                resp = await self._client.get(self.url_for(kind), params=params)
            except httpx.HTTPError as e:
                last_error, last_status = str(e) or type(e).__name__, None
            else:
                if resp.is_success:
                    return self._parse_page(kind, resp)
                last_error, last_status = f"Fetch failed ({resp.status_code})", resp.status_code
                if resp.status_code not in RETRYABLE_STATUS:
                    break

            logger.warning(
                "history_fetch_retry",
                game=kind.value,
                wallet_id=short_wallet(wallet),
                attempt=attempt + 1,
                max_retries=self._max_retries,
                error=last_error,
            )
            if attempt + 1 < self._max_retries:
                await asyncio.sleep(delay)
                delay = min(delay * 2, self._max_retry_delay)

        logger.error(
            "history_fetch_give_up",
            game=kind.value,
            wallet_id=short_wallet(wallet),
            status_code=last_status,
            error=last_error,
        )
        raise NetworkFailure(last_error or "Fetch failed", game=kind.value, status_code=last_status)

    @staticmethod
    def _parse_page(kind: GameKind, resp: httpx.Response) -> RoundPage:
        try:
            body = resp.json()
        except ValueError as e:
            raise NetworkFailure(f"Invalid JSON from {kind.value}/resolved", game=kind.value) from e
        if not isinstance(body, dict):
            raise NetworkFailure(f"Unexpected body from {kind.value}/resolved", game=kind.value)
        items = body.get("items") or []
        if not isinstance(items, list):
            raise NetworkFailure(f"'items' is not a list in {kind.value}/resolved", game=kind.value)
        return RoundPage(game=kind, items=items, next_cursor=body.get("nextCursor"))
