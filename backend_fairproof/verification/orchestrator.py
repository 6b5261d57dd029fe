"""
Verification orchestrator: one verdict per resolved round.

Per round: NOT_REVEALED -> pending; otherwise reproduce inside an error
boundary and classify into verified / mismatch / error. Rounds share no
mutable state, so batches fan out over a thread pool; one bad record never
aborts its siblings.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, Sequence

from backend_fairproof.config.env import get_verify_workers
from backend_fairproof.fairproof_logging import get_logger
from backend_fairproof.games import reproduce
from backend_fairproof.rounds.models import ResolvedRound
from backend_fairproof.verification.status import VerifyStatus

logger = get_logger(__name__)


def is_revealed(record: ResolvedRound) -> bool:
    """A seed is revealed once the backend returns a non-blank server_seed_hex."""
    return bool((record.server_seed_hex or "").strip())


def verify_round(record: ResolvedRound) -> VerifyStatus:
    """
    Verify one round. Never raises: malformed data becomes an `error` verdict.

    A present-but-malformed seed (odd length, non-hex, wrong size) is an error,
    not a pending reveal.
    """
    if not is_revealed(record):
        return VerifyStatus.pending()
    try:
        rep = reproduce(record)
    except Exception as e:
        logger.warning(
            "verify_round_error",
            game=record.game.value,
            round_id=record.id,
            error=str(e),
            error_type=type(e).__name__,
        )
        return VerifyStatus.error(str(e) or type(e).__name__)

    failures = rep.failures
    if not failures:
        return VerifyStatus.verified()
    logger.info(
        "verify_round_mismatch",
        game=record.game.value,
        round_id=record.id,
        failures=failures,
    )
    return VerifyStatus.mismatch("; ".join(failures), rep.computed)


def verify_rounds(records: Iterable[ResolvedRound], max_workers: int | None = None) -> list[VerifyStatus]:
    """Verify a batch concurrently; results are in input order."""
    batch: Sequence[ResolvedRound] = list(records)
    if not batch:
        return []
    workers = max(1, min(max_workers or get_verify_workers(), len(batch)))
    if workers == 1:
        return [verify_round(r) for r in batch]
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="verify") as pool:
        return list(pool.map(verify_round, batch))

