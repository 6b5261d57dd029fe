"""Shared helpers for the API edge."""

from backend_fairproof.utils.wallet_utils import is_valid_wallet, normalize_wallet

__all__ = ["is_valid_wallet", "normalize_wallet"]
