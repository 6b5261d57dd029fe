"""
Verification verdicts.

Every round resolves to exactly one of four kinds:
- verified: every derivable field matches what the server stored;
- pending: the server seed is not revealed yet (not a failure);
- mismatch: the revealed seed reproduces something different (a finding);
- error: the record could not be verified (malformed data).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

VERDICT_VERIFIED = "verified"
VERDICT_PENDING = "pending"
VERDICT_MISMATCH = "mismatch"
VERDICT_ERROR = "error"

VERDICT_KINDS = (VERDICT_VERIFIED, VERDICT_PENDING, VERDICT_MISMATCH, VERDICT_ERROR)

REVEAL_PENDING_REASON = "Waiting for server seed reveal"


@dataclass(frozen=True)
class VerifyStatus:
    kind: str
    reason: str | None = None
    details: str | None = None
    computed: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def verified(cls) -> "VerifyStatus":
        return cls(kind=VERDICT_VERIFIED)

    @classmethod
    def pending(cls, reason: str = REVEAL_PENDING_REASON) -> "VerifyStatus":
        return cls(kind=VERDICT_PENDING, reason=reason)

    @classmethod
    def mismatch(cls, details: str, computed: dict[str, Any] | None = None) -> "VerifyStatus":
        return cls(kind=VERDICT_MISMATCH, details=details, computed=dict(computed or {}))

    @classmethod
    def error(cls, details: str) -> "VerifyStatus":
        return cls(kind=VERDICT_ERROR, details=details)

    @property
    def is_verified(self) -> bool:
        return self.kind == VERDICT_VERIFIED

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"kind": self.kind}
        if self.kind == VERDICT_PENDING:
            out["reason"] = self.reason
        elif self.kind == VERDICT_MISMATCH:
            out["details"] = self.details
            out["computed"] = dict(self.computed)
        elif self.kind == VERDICT_ERROR:
            out["details"] = self.details
        return out
