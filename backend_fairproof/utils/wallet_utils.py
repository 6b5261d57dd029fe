"""Wallet validation utilities."""

from solders.pubkey import Pubkey


def is_valid_wallet(w: str | None) -> bool:
    """Return True if w is a valid Solana wallet (Pubkey) address."""
    if not w or not w.strip():
        return False
    try:
        Pubkey.from_string(w.strip())
        return True
    except ValueError:
        return False


def normalize_wallet(w: str | None) -> str:
    """Strip and validate a wallet address; raise ValueError if it is not a Solana pubkey."""
    wallet = (w or "").strip()
    if not is_valid_wallet(wallet):
        raise ValueError("Invalid Solana wallet address")
    return wallet
