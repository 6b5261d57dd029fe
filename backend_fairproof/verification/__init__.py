"""
Verification: verdict types, the per-round orchestrator and manual checks.
"""

from backend_fairproof.verification.manual import ManualResult, manual_verify
from backend_fairproof.verification.orchestrator import (
    is_revealed,
    verify_round,
    verify_rounds,
)
from backend_fairproof.verification.status import (
    REVEAL_PENDING_REASON,
    VERDICT_ERROR,
    VERDICT_KINDS,
    VERDICT_MISMATCH,
    VERDICT_PENDING,
    VERDICT_VERIFIED,
    VerifyStatus,
)

__all__ = [
    "ManualResult",
    "REVEAL_PENDING_REASON",
    "VERDICT_ERROR",
    "VERDICT_KINDS",
    "VERDICT_MISMATCH",
    "VERDICT_PENDING",
    "VERDICT_VERIFIED",
    "VerifyStatus",
    "is_revealed",
    "manual_verify",
    "verify_round",
    "verify_rounds",
]
