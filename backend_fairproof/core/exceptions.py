"""
Application-level exceptions.

DecodeError is always row-scoped: the orchestrator turns it into an `error`
verdict. NetworkFailure belongs to the history fetch layer and is the only
class that is retried. Pending reveals and outcome mismatches are verdicts,
not exceptions.
"""

from __future__ import annotations


class FairproofError(Exception):
    """Base class for all Backend Fairproof errors."""


class DecodeError(FairproofError, ValueError):
    """Malformed hex, base58, JSON or record field."""


class UnknownGameError(FairproofError, ValueError):
    """Game key outside the supported set."""

    def __init__(self, game: str) -> None:
        super().__init__(f"Unknown game: {game!r}")
        self.game = game


class NetworkFailure(FairproofError):
    """Upstream resolved-rounds fetch failed after retries."""

    def __init__(self, message: str, *, game: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.game = game
        self.status_code = status_code


class ConfigError(FairproofError):
    """Invalid configuration value in the environment."""
