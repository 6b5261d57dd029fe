"""
Plinko reproducer.

Two message encodings are live: v2 = client_seed || nonce || 00000000 and the
legacy v1 = client_seed || nonce. A round verifies if the stored first HMAC
matches either; with no stored HMAC, v2 is assumed.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_fairproof.crypto.primitives import bytes_to_hex, hmac_sha256, utf8
from backend_fairproof.fairproof_logging import get_logger
from backend_fairproof.games.base import (
    Check,
    Reproducer,
    Reproduction,
    commitment_check,
    require_revealed,
    server_seed_key,
)
from backend_fairproof.rounds.models import GameKind, PlinkoRound

logger = get_logger(__name__)

SCHEME_V2 = "v2"
SCHEME_V1 = "v1"
V2_SUFFIX = b"\x00\x00\x00\x00"


@dataclass(frozen=True)
class PlinkoOutcome:
    v2_hex: str
    v1_hex: str
    matched_scheme: str | None

    @property
    def hmac_hex(self) -> str:
        return self.v1_hex if self.matched_scheme == SCHEME_V1 else self.v2_hex


def plinko_hmacs(server_seed_hex: str, client_seed: str, nonce: int | str) -> tuple[str, str]:
    """(v2, v1) first-HMAC candidates."""
    key = server_seed_key(server_seed_hex)
    base = utf8(client_seed or "") + utf8(str(nonce))
    v2 = bytes_to_hex(hmac_sha256(key, base + V2_SUFFIX))
    v1 = bytes_to_hex(hmac_sha256(key, base))
    return v2, v1


def match_scheme(v2_hex: str, v1_hex: str, stored_hex: str | None) -> str | None:
    stored = (stored_hex or "").strip().lower()
    if not stored or v2_hex == stored:
        return SCHEME_V2
    if v1_hex == stored:
        return SCHEME_V1
    return None


def verify_plinko(
    server_seed_hex: str, client_seed: str, nonce: int | str, expected_hmac: str | None = None
) -> PlinkoOutcome:
    v2, v1 = plinko_hmacs(server_seed_hex, client_seed, nonce)
    return PlinkoOutcome(v2_hex=v2, v1_hex=v1, matched_scheme=match_scheme(v2, v1, expected_hmac))


def _outcome(record: PlinkoRound) -> PlinkoOutcome:
    return verify_plinko(require_revealed(record), record.client_seed, record.nonce, record.first_hmac_hex)


def _first_hmac(record: PlinkoRound) -> str:
    return _outcome(record).hmac_hex


def reproduce_plinko(record: PlinkoRound) -> Reproduction:
    out = _outcome(record)
    if out.matched_scheme is None:
        logger.warning(
            "plinko_unknown_hmac_scheme",
            round_id=record.id,
            nonce=record.nonce,
        )
    rep = Reproduction(first_hmac_hex=out.hmac_hex)
    rep.checks.append(commitment_check(record))
    rep.checks.append(
        Check("hmac", out.matched_scheme is not None, "HMAC mismatch (matches neither v1 nor v2 message scheme)")
    )
    rep.computed = {
        "hmac_hex": out.hmac_hex,
        "hmac_v2": out.v2_hex,
        "hmac_v1": out.v1_hex,
        "scheme": out.matched_scheme,
    }
    return rep


PLINKO = Reproducer(
    kind=GameKind.PLINKO,
    compute_first_hmac=_first_hmac,
    compute_outcome=_outcome,
    reproduce=reproduce_plinko,
)
