"""
Structured logging for Backend Fairproof.

JSON logs with timestamp, wallet_id, event_type. Use get_logger() in all modules.
"""

from backend_fairproof.fairproof_logging.logger import bind_wallet, get_logger, short_wallet

__all__ = ["bind_wallet", "get_logger", "short_wallet"]
