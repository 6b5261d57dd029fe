"""
FastAPI server — history and verification endpoints.

GET /history fetches resolved rounds for a wallet from the upstream game
backend and returns one page of verified rows. Passing back the `cursors` of
a response fetches the next upstream batch. POST /verify/manual and
POST /verify/round/{game} check a single round without touching upstream.
Config via env (FAIRPROOF_API_BASE, FAIRPROOF_PAGE_SIZE, ...).
"""

from __future__ import annotations

import json
from typing import Any, AsyncIterator

from fastapi import Body, Depends, FastAPI, HTTPException, Query
from pydantic import BaseModel, Field

from backend_fairproof import __version__
from backend_fairproof.config.settings import Settings, get_settings
from backend_fairproof.core.exceptions import NetworkFailure, UnknownGameError
from backend_fairproof.fairproof_logging import get_logger, short_wallet
from backend_fairproof.history.client import Cursor, ResolvedRoundsClient
from backend_fairproof.history.enrich import enrich_item
from backend_fairproof.history.feed import ALL_GAMES, HistoryFeed
from backend_fairproof.utils.wallet_utils import normalize_wallet
from backend_fairproof.verification.manual import manual_verify

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Config and dependencies
# -----------------------------------------------------------------------------

def get_app_settings() -> Settings:
    return get_settings()


async def get_rounds_client(
    settings: Settings = Depends(get_app_settings),
) -> AsyncIterator[ResolvedRoundsClient]:
    """Dependency: one upstream client per request, closed afterwards."""
    async with ResolvedRoundsClient.from_settings(settings) as client:
        yield client


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------

class VerifyResponse(BaseModel):
    kind: str = Field(..., description="verified | pending | mismatch | error")
    reason: str | None = Field(None, description="Why the round is pending")
    details: str | None = Field(None, description="Failed checks or the decode error")
    computed: dict[str, Any] | None = Field(None, description="Re-derived values on mismatch")


class HistoryRow(BaseModel):
    id: Any = Field(None, description="Upstream round id")
    game_type: str
    result: str
    server_seed: str
    client_seed: str
    nonce: int | None = None
    hmac: str
    time: str | None = Field(None, description="Resolution time, UTC")
    time_ts: int | None = Field(None, description="Resolution time in ms since epoch")
    verify: VerifyResponse


class HistoryResponse(BaseModel):
    wallet: str
    game: str
    page: int
    total_pages: int
    total: int
    has_more: bool
    cursors: dict[str, Any] = Field(default_factory=dict, description="Next cursor per game (null = exhausted)")
    items: list[HistoryRow] = Field(default_factory=list)


class ManualVerifyRequest(BaseModel):
    """POST /verify/manual body: the literal inputs a player copies from a reveal."""

    game: str = Field(..., description="dice | coinflip | crash | mines | slots | plinko")
    server_seed_hex: str = Field(..., description="Revealed server seed (64 hex chars)")
    nonce: int = Field(..., ge=0)
    client_seed: str = ""
    client_seed_a: str = ""
    client_seed_b: str = ""
    expected_hmac: str | None = None
    server_seed_hash: str | None = None
    player: str = Field("", description="Mines only: player wallet (base58)")
    rows: int = Field(5, ge=1)
    cols: int = Field(5, ge=1)
    mines: int = Field(3, ge=1)
    first_safe_index: int | None = Field(None, ge=0)


class ManualVerifyResponse(BaseModel):
    game: str
    first_hmac_hex: str
    match_expected: bool | None = None
    commitment_match: bool | None = None
    outcome: dict[str, Any] = Field(default_factory=dict)


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Backend Fairproof API",
    description="Provably-fair verification of resolved casino rounds.",
    version=__version__,
)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


def _parse_cursors(raw: str) -> dict[str, Cursor]:
    """Decode the `cursors` query value: a JSON object of game -> int | str | null."""
    try:
        cursors = json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail="cursors must be a JSON object")
    if not isinstance(cursors, dict):
        raise HTTPException(status_code=400, detail="cursors must be a JSON object")
    for name, cursor in cursors.items():
        if cursor is not None and (isinstance(cursor, bool) or not isinstance(cursor, (int, str))):
            raise HTTPException(status_code=400, detail=f"Invalid cursor for {name}")
    return cursors


@app.get("/history", response_model=HistoryResponse)
async def history(
    wallet: str = Query(..., description="Player wallet (base58)"),
    game: str = Query(ALL_GAMES, description="Game key or 'all'"),
    page: int = Query(1, ge=1),
    cursors: str | None = Query(None, description="JSON cursors from a previous response; fetches the next batch"),
    client: ResolvedRoundsClient = Depends(get_rounds_client),
    settings: Settings = Depends(get_app_settings),
) -> HistoryResponse:
    """
    Return one page of verified history rows for a wallet.

    Without `cursors` the first upstream batch is loaded; with them, the batch
    that follows. `page` indexes into the loaded batch. 400 on an invalid
    wallet, unknown game or malformed cursors; 502 when the upstream backend
    fails after retries.
    """
    try:
        wallet = normalize_wallet(wallet)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid Solana wallet address")
    resume_from = _parse_cursors(cursors) if cursors is not None else None

    feed = HistoryFeed(client, page_size=settings.page_size, max_workers=settings.verify_workers)
    try:
        if resume_from is None:
            await feed.load_first_page(wallet, game)
        else:
            feed.resume(wallet, game, resume_from)
            await feed.load_more()
    except UnknownGameError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NetworkFailure as e:
        logger.error(
            "history_upstream_failed",
            wallet_id=short_wallet(wallet),
            game=e.game,
            status_code=e.status_code,
            error=str(e),
        )
        raise HTTPException(status_code=502, detail=f"Upstream fetch failed: {e}")

    return HistoryResponse(
        wallet=wallet,
        game=feed.game,
        page=page,
        total_pages=feed.total_pages,
        total=len(feed.items),
        has_more=feed.has_more,
        cursors=feed.cursors,
        items=[HistoryRow(**row.to_dict()) for row in feed.page(page)],
    )


@app.post("/verify/manual", response_model=ManualVerifyResponse)
def verify_manual(body: ManualVerifyRequest) -> ManualVerifyResponse:
    """Re-derive one round from literal inputs. 400 on malformed input."""
    try:
        result = manual_verify(
            body.game,
            body.server_seed_hex,
            nonce=body.nonce,
            client_seed=body.client_seed,
            client_seed_a=body.client_seed_a,
            client_seed_b=body.client_seed_b,
            expected_hmac=body.expected_hmac,
            server_seed_hash=body.server_seed_hash,
            player=body.player,
            rows=body.rows,
            cols=body.cols,
            mines=body.mines,
            first_safe_index=body.first_safe_index,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logger.info(
        "manual_verify_called",
        game=result.game.value,
        match_expected=result.match_expected,
        commitment_match=result.commitment_match,
    )
    return ManualVerifyResponse(**result.to_dict())


@app.post("/verify/round/{game}", response_model=HistoryRow)
def verify_round_item(game: str, item: dict[str, Any] = Body(...)) -> HistoryRow:
    """Verify one raw resolved-round record as returned by GET /{game}/resolved."""
    try:
        row = enrich_item(game, item)
    except UnknownGameError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return HistoryRow(**row.to_dict())
