"""
Environment variable loading for Backend Fairproof.

- FAIRPROOF_API_BASE: base URL of the game backend serving /{game}/resolved
- FAIRPROOF_VERIFY_WORKERS: thread fan-out for batch verification
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Project root: config is backend_fairproof/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_BACKEND_DIR = _CONFIG_DIR.parent
_ROOT = _BACKEND_DIR.parent
_ENV_PATH = _ROOT / ".env"

DEFAULT_API_BASE = "http://localhost:8080"
DEFAULT_VERIFY_WORKERS = 8


def load_fairproof_env() -> None:
    """Load .env from project root. Safe to call multiple times; never overrides the process env."""
    load_dotenv(_ENV_PATH, override=False)


def env_str(name: str, default: str = "") -> str:
    """Return a stripped env value, or default when unset/blank."""
    load_fairproof_env()
    return (os.getenv(name) or "").strip() or default


def get_api_base() -> str:
    """
    Return FAIRPROOF_API_BASE without trailing slash.
    Default: http://localhost:8080.
    """
    return env_str("FAIRPROOF_API_BASE", DEFAULT_API_BASE).rstrip("/")


def get_verify_workers() -> int:
    """Return FAIRPROOF_VERIFY_WORKERS (>= 1). Invalid values fall back to the default."""
    raw = env_str("FAIRPROOF_VERIFY_WORKERS")
    if not raw:
        return DEFAULT_VERIFY_WORKERS
    try:
        return max(1, int(raw))
    except ValueError:
        return DEFAULT_VERIFY_WORKERS
